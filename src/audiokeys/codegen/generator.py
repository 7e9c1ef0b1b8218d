from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from ..errors import AudioKeysError, GenerationIOError, IdentifierCollisionError, RegistrySourceError
from ..settings import GeneratorSettings
from ..sources import RegistrySource, discover_registry_files, read_registry_source
from .render import ModuleSpec, render_index, render_manifest, render_module, specs_from_manifest
from .sanitize import assign_identifiers, is_reserved, sanitize_identifier
from .writer import remove_file, write_if_changed

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

INDEX_FILE = "__init__.py"


class Status(str, Enum):
    WRITTEN = "written"
    UNCHANGED = "unchanged"
    FAILED = "failed"


@dataclass(frozen=True)
class RegistryOutcome:
    source: str
    status: Status
    registry: Optional[str] = None
    module: Optional[str] = None
    error: Optional[AudioKeysError] = None


@dataclass
class GenerationReport:
    """Result of one generator run.

    ``outcomes`` has one entry per discovered registry file. ``errors`` holds
    failures not tied to a single registry (a missing source directory, an
    unwritable index).
    """

    outcomes: List[RegistryOutcome] = field(default_factory=list)
    errors: List[AudioKeysError] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)

    @property
    def failed(self) -> List[RegistryOutcome]:
        return [o for o in self.outcomes if o.status is Status.FAILED]

    @property
    def ok(self) -> bool:
        return not self.failed and not self.errors

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def diagnostics(self) -> List[str]:
        """One message per failing registry (or run-level problem)."""
        lines = [f"{o.source}: {o.error}" for o in self.failed]
        lines.extend(str(e) for e in self.errors)
        return lines


@dataclass
class _Candidate:
    display: str
    source: RegistrySource
    module: str = ""


class KeyCodeGenerator:
    """Offline tool turning registry files into importable key-constant modules.

    For every registry found under the source directories it writes
    ``<output_dir>/<Module>.py`` holding one constant per entry, plus a package
    ``__init__.py`` exposing ``KEY_SETS`` and a JSON manifest. A registry that
    fails validation is skipped without touching its previous module; the
    other registries are generated normally and the report's exit code is 1.
    """

    def __init__(self, settings: Optional[GeneratorSettings] = None) -> None:
        self.settings = settings or GeneratorSettings()
        self.header = " ".join(self.settings.header.split())

    # ---------------------- Public API ----------------------
    def generate(self, source_dirs: Iterable[PathLike], output_dir: PathLike) -> GenerationReport:
        out_dir = Path(output_dir)
        report = GenerationReport()
        previous = self._read_previous_manifest(out_dir)

        files = self._discover(source_dirs, report)
        candidates: List[_Candidate] = []
        for path, display in files:
            try:
                candidates.append(_Candidate(display, read_registry_source(path)))
            except RegistrySourceError as e:
                self._fail(report, display, e)

        generated: Dict[str, ModuleSpec] = {}
        for cand in self._assign_module_names(candidates, report):
            spec = self._generate_one(cand, out_dir, report)
            if spec is not None:
                generated[spec.module] = spec

        index_specs = self._carry_over_failed(previous, generated, report, out_dir)
        self._remove_stale(previous, index_specs, out_dir, report)
        self._write_index(index_specs, out_dir, report)

        logger.info(
            "Key generation finished: %d written, %d unchanged, %d failed",
            sum(1 for o in report.outcomes if o.status is Status.WRITTEN),
            sum(1 for o in report.outcomes if o.status is Status.UNCHANGED),
            len(report.failed),
        )
        return report

    def check(self, source_dirs: Iterable[PathLike]) -> GenerationReport:
        """Run every validation ``generate`` runs, without writing anything."""
        report = GenerationReport()
        candidates: List[_Candidate] = []
        for path, display in self._discover(source_dirs, report):
            try:
                candidates.append(_Candidate(display, read_registry_source(path)))
            except RegistrySourceError as e:
                self._fail(report, display, e)
        for cand in self._assign_module_names(candidates, report):
            try:
                self._build_spec(cand)
            except AudioKeysError as e:
                self._fail(report, cand.display, e, cand.source.name, cand.module)
                continue
            report.outcomes.append(
                RegistryOutcome(cand.display, Status.UNCHANGED, cand.source.name, cand.module)
            )
        return report

    # ---------------------- Steps ----------------------
    def _discover(self, source_dirs: Iterable[PathLike], report: GenerationReport) -> List[Tuple[Path, str]]:
        files: List[Tuple[Path, str]] = []
        seen: set[Path] = set()
        for src in source_dirs:
            root = Path(src)
            try:
                found = discover_registry_files([root])
            except RegistrySourceError as e:
                logger.error("%s", e)
                report.errors.append(e)
                continue
            for p in found:
                resolved = p.resolve()
                if resolved in seen:
                    continue
                seen.add(resolved)
                # Paths relative to their source root keep output machine-independent
                display = p.name if root.is_file() else f"{root.resolve().name}/{p.relative_to(root).as_posix()}"
                files.append((p, display))
        return files

    def _assign_module_names(self, candidates: List[_Candidate], report: GenerationReport) -> List[_Candidate]:
        groups: Dict[str, List[_Candidate]] = {}
        for cand in candidates:
            try:
                cand.module = sanitize_identifier(cand.source.name)
                if is_reserved(cand.module):
                    raise IdentifierCollisionError(cand.module, (cand.source.name, "<package module>"))
            except AudioKeysError as e:
                self._fail(report, cand.display, e, cand.source.name)
                continue
            # Compare case-insensitively: Level1.py and level1.py clash on some filesystems
            groups.setdefault(cand.module.casefold(), []).append(cand)

        ready: List[_Candidate] = []
        for group in groups.values():
            if len(group) == 1:
                ready.append(group[0])
                continue
            names = tuple(f"{c.source.name} ({c.display})" for c in group)
            for c in group:
                err = IdentifierCollisionError(c.module, names)
                self._fail(report, c.display, err, c.source.name, c.module)
        return sorted(ready, key=lambda c: c.display)

    def _build_spec(self, cand: _Candidate) -> ModuleSpec:
        registry = cand.source.to_registry()
        idents = assign_identifiers(registry.keys(), registry=registry.name)
        return ModuleSpec(
            module=cand.module,
            registry=registry.name,
            source=cand.display,
            constants={ident: key for key, ident in idents.items()},
        )

    def _generate_one(self, cand: _Candidate, out_dir: Path, report: GenerationReport) -> Optional[ModuleSpec]:
        try:
            spec = self._build_spec(cand)
            changed = write_if_changed(out_dir / f"{spec.module}.py", render_module(spec, self.header))
        except AudioKeysError as e:
            self._fail(report, cand.display, e, cand.source.name, cand.module)
            return None
        status = Status.WRITTEN if changed else Status.UNCHANGED
        logger.info("%s: %s -> %s.py (%d keys)", status.value.upper(), cand.display, spec.module, len(spec.constants))
        report.outcomes.append(RegistryOutcome(cand.display, status, spec.registry, spec.module))
        return spec

    def _carry_over_failed(
        self,
        previous: Dict[str, ModuleSpec],
        generated: Dict[str, ModuleSpec],
        report: GenerationReport,
        out_dir: Path,
    ) -> List[ModuleSpec]:
        """Keep the last good module of a registry that failed this run in the index."""
        specs = dict(generated)
        failed_sources = {o.source for o in report.failed}
        for module, old in sorted(previous.items()):
            if old.source not in failed_sources or module.casefold() in {m.casefold() for m in specs}:
                continue
            if (out_dir / f"{module}.py").is_file():
                logger.warning("Keeping previous %s.py for failed registry source %s", module, old.source)
                specs[module] = old
        return list(specs.values())

    def _remove_stale(
        self,
        previous: Dict[str, ModuleSpec],
        current: List[ModuleSpec],
        out_dir: Path,
        report: GenerationReport,
    ) -> None:
        keep = {s.module.casefold() for s in current}
        for module, old in sorted(previous.items()):
            if module.casefold() in keep:
                continue
            try:
                remove_file(out_dir / f"{module}.py")
            except GenerationIOError as e:
                report.errors.append(e)
                continue
            logger.info("Removed stale module %s.py (was %s)", module, old.source)
            report.removed.append(module)

    def _write_index(self, specs: List[ModuleSpec], out_dir: Path, report: GenerationReport) -> None:
        try:
            write_if_changed(out_dir / INDEX_FILE, render_index(specs, self.header))
            write_if_changed(out_dir / self.settings.manifest_name, render_manifest(specs))
        except GenerationIOError as e:
            logger.error("%s", e)
            report.errors.append(e)

    # ---------------------- Helpers ----------------------
    def _read_previous_manifest(self, out_dir: Path) -> Dict[str, ModuleSpec]:
        path = out_dir / self.settings.manifest_name
        if not path.is_file():
            return {}
        try:
            return specs_from_manifest(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError, KeyError, TypeError, AttributeError):
            logger.warning("Ignoring unreadable manifest at %s", path, exc_info=True)
            return {}

    @staticmethod
    def _fail(
        report: GenerationReport,
        display: str,
        error: AudioKeysError,
        registry: Optional[str] = None,
        module: Optional[str] = None,
    ) -> None:
        logger.error("FAILED: %s: %s", display, error)
        report.outcomes.append(RegistryOutcome(display, Status.FAILED, registry, module or None, error))


def generate(source_dirs: Iterable[PathLike], output_dir: PathLike, settings: Optional[GeneratorSettings] = None) -> GenerationReport:
    return KeyCodeGenerator(settings).generate(source_dirs, output_dir)
