"""Reading registry source files.

A registry source is one JSON or YAML document per registry::

    name: Level1            # optional, defaults to the file stem
    entries:
      - key: door_open
        asset: {id: clip_a, path: sfx/door_open.wav, duration: 0.8}
      - key: door_close
        asset: clip_b       # bare asset id

Documents are validated against the bundled ``registry.schema.json``. Any
problem with a single file surfaces as :class:`RegistrySourceError`, so callers
(the generator in particular) can fail that registry alone.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence, Tuple, Union

import yaml
from jsonschema import Draft202012Validator, exceptions as js_exceptions

from .errors import RegistrySourceError
from .models import AudioAsset, AudioEntry
from .registry import ClipRegistry

logger = logging.getLogger(__name__)

REGISTRY_SUFFIXES = (".json", ".yaml", ".yml")

PathLike = Union[str, Path]


@dataclass(frozen=True)
class RegistrySource:
    """A parsed and schema-valid registry file, before key uniqueness is checked."""

    name: str
    path: Path
    entries: Tuple[AudioEntry, ...]

    def to_registry(self) -> ClipRegistry:
        return ClipRegistry.load(self.name, self.entries)


@lru_cache(maxsize=1)
def registry_schema() -> Dict[str, Any]:
    with resources.files("audiokeys.resources").joinpath("registry.schema.json").open("r", encoding="utf-8") as fh:
        return json.load(fh)


def _format_schema_errors(errors: Sequence[js_exceptions.ValidationError]) -> str:
    lines = ["Schema validation failed:"]
    for err in errors:
        where = ".".join(str(p) for p in err.absolute_path) or "$"
        lines.append(f" - At {where}: {err.message}")
    return "\n".join(lines)


def _read_document(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise RegistrySourceError(path, f"cannot read file ({e})") from e

    if path.suffix.lower() == ".json":
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise RegistrySourceError(path, f"invalid JSON (line {e.lineno}, column {e.colno}): {e.msg}") from e
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise RegistrySourceError(path, f"invalid YAML: {e}") from e


def read_registry_source(path: PathLike) -> RegistrySource:
    """Parse and validate one registry file.

    Duplicate keys are kept as-is; :meth:`RegistrySource.to_registry` reports them.
    """
    p = Path(path)
    data = _read_document(p)
    if data is None:
        raise RegistrySourceError(p, "file is empty")

    validator = Draft202012Validator(registry_schema())
    errors = sorted(validator.iter_errors(data), key=lambda e: [str(x) for x in e.absolute_path])
    if errors:
        raise RegistrySourceError(p, _format_schema_errors(errors))

    name = data.get("name") or p.stem
    entries = tuple(AudioEntry(item["key"], AudioAsset.from_raw(item["asset"])) for item in data["entries"])
    logger.debug("Read registry source '%s' from %s (%d entries)", name, p, len(entries))
    return RegistrySource(name=name, path=p, entries=entries)


def discover_registry_files(source_dirs: Iterable[PathLike]) -> List[Path]:
    """Return every registry file under ``source_dirs``, sorted for stable ordering.

    A plain file given in ``source_dirs`` is taken as-is.
    """
    found: List[Path] = []
    seen: set[Path] = set()
    for src in source_dirs:
        root = Path(src)
        if root.is_file():
            candidates = [root]
        elif root.is_dir():
            candidates = sorted(
                (p for p in root.rglob("*") if p.is_file() and p.suffix.lower() in REGISTRY_SUFFIXES),
                key=lambda p: p.relative_to(root).as_posix(),
            )
        else:
            raise RegistrySourceError(root, "source directory does not exist")
        for c in candidates:
            resolved = c.resolve()
            if resolved not in seen:
                seen.add(resolved)
                found.append(c)
    return found


def load_registry(path: PathLike) -> ClipRegistry:
    return read_registry_source(path).to_registry()


def load_registries(source_dirs: Iterable[PathLike]) -> List[ClipRegistry]:
    """Load every registry under ``source_dirs``; the first failure propagates."""
    registries = [load_registry(p) for p in discover_registry_files(source_dirs)]
    logger.info("Loaded %d registries", len(registries))
    return registries


def find_registry(source_dirs: Iterable[PathLike], name: str) -> ClipRegistry:
    """Load only the registry called ``name`` (e.g. the one for the current level)."""
    for p in discover_registry_files(source_dirs):
        source = read_registry_source(p)
        if source.name == name:
            return source.to_registry()
    raise LookupError(f"No registry named '{name}'")


__all__ = [
    "REGISTRY_SUFFIXES",
    "RegistrySource",
    "read_registry_source",
    "discover_registry_files",
    "load_registry",
    "load_registries",
    "find_registry",
]
