"""Text rendering for generated key modules, the package index and the manifest.

Everything here is a pure function of its inputs: no timestamps, no absolute
paths, ``\\n`` newlines and ``repr`` for string literals, so unchanged registry
contents always render to the same bytes.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Dict, Mapping, Sequence

MANIFEST_VERSION = 1


@dataclass(frozen=True)
class ModuleSpec:
    """What one generated module contains."""

    module: str
    registry: str
    source: str
    constants: Mapping[str, str]  # identifier -> original key, in entry order


def render_module(spec: ModuleSpec, header: str) -> str:
    lines = [
        f"# {header}",
        f"# Source: {spec.source}",
        f'"""Audio keys for registry {spec.registry!r}."""',
        "",
        f"__registry__ = {spec.registry!r}",
        "",
    ]
    for ident, key in spec.constants.items():
        lines.append(f"{ident} = {key!r}")
    if spec.constants:
        lines.append("")
    lines.append("__keys__ = {")
    for ident in spec.constants:
        lines.append(f"    {ident!r}: {ident},")
    lines.append("}")
    lines.append("")
    lines.append(f"__all__ = {list(spec.constants)!r}")
    return "\n".join(lines) + "\n"


def render_index(specs: Sequence[ModuleSpec], header: str) -> str:
    ordered = sorted(specs, key=lambda s: s.module)
    lines = [
        f"# {header}",
        '"""Generated audio key sets, one module per registry.',
        "",
        "KEY_SETS maps each registry name to its module of key constants.",
        '"""',
        "",
    ]
    for s in ordered:
        lines.append(f"from . import {s.module}")
    if ordered:
        lines.append("")
    lines.append("KEY_SETS = {")
    for s in ordered:
        lines.append(f"    {s.registry!r}: {s.module},")
    lines.append("}")
    lines.append("")
    lines.append(f"__all__ = {['KEY_SETS'] + [s.module for s in ordered]!r}")
    return "\n".join(lines) + "\n"


def render_manifest(specs: Sequence[ModuleSpec]) -> str:
    modules: Dict[str, dict] = {
        s.module: {"registry": s.registry, "source": s.source, "constants": dict(s.constants)}
        for s in specs
    }
    doc = {"version": MANIFEST_VERSION, "modules": modules}
    return json.dumps(doc, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


def specs_from_manifest(doc: Mapping) -> Dict[str, ModuleSpec]:
    """Rebuild module specs from a previously written manifest, keyed by module name."""
    out: Dict[str, ModuleSpec] = {}
    for module, info in (doc.get("modules") or {}).items():
        out[module] = ModuleSpec(
            module=module,
            registry=str(info["registry"]),
            source=str(info["source"]),
            constants=dict(info.get("constants") or {}),
        )
    return out
