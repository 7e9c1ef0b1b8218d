from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from .codegen import GenerationReport, KeyCodeGenerator, Status
from .errors import AudioKeysError
from .logging_config import configure_logging
from .settings import Settings
from .sources import discover_registry_files, read_registry_source

logger = logging.getLogger(__name__)

_LABELS = {
    Status.WRITTEN: "OK",
    Status.UNCHANGED: "UNCHANGED",
    Status.FAILED: "FAILED",
}


def _sources(args: argparse.Namespace, settings: Settings) -> List[str]:
    return list(args.sources) or list(settings.generator.source_dirs)


def _print_report(report: GenerationReport) -> int:
    for o in report.outcomes:
        target = f" -> {o.module}.py" if o.module and o.status is not Status.FAILED else ""
        print(f"{_LABELS[o.status]}: {o.source}{target}")
    for line in report.diagnostics():
        print(f"error: {line}", file=sys.stderr)
    return report.exit_code


def _cmd_generate(args: argparse.Namespace, settings: Settings) -> int:
    out = Path(args.out or settings.generator.output_dir)
    report = KeyCodeGenerator(settings.generator).generate(_sources(args, settings), out)
    for module in report.removed:
        print(f"REMOVED: {module}.py")
    return _print_report(report)


def _cmd_validate(args: argparse.Namespace, settings: Settings) -> int:
    report = KeyCodeGenerator(settings.generator).check(_sources(args, settings))
    for o in report.outcomes:
        if o.status is not Status.FAILED:
            print(f"OK: {o.source}")
    for line in report.diagnostics():
        print(f"INVALID: {line}", file=sys.stderr)
    return report.exit_code


def _cmd_list(args: argparse.Namespace, settings: Settings) -> int:
    success = True
    try:
        paths = discover_registry_files(_sources(args, settings))
    except AudioKeysError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    for p in paths:
        try:
            registry = read_registry_source(p).to_registry()
        except AudioKeysError as e:
            success = False
            print(f"error: {e}", file=sys.stderr)
            continue
        for entry in registry:
            print(f"{registry.name}\t{entry.key}\t{entry.asset.id}")
    return 0 if success else 1


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="audiokeys", description="Audio registry tools and key constant generator")
    p.add_argument(
        "--settings",
        dest="settings_path",
        type=Path,
        default=None,
        help="Path to a settings YAML file to overlay on the defaults.",
    )
    p.add_argument("--debug", action="store_true", help="Enable verbose debug logging.")
    sub = p.add_subparsers(dest="cmd", required=True)

    g = sub.add_parser("generate", help="Generate key constant modules from registry files")
    g.add_argument("sources", nargs="*", help="Registry directories or files (default: from settings)")
    g.add_argument("--out", help="Output package directory (default: from settings)", default=None)
    g.set_defaults(func=_cmd_generate)

    v = sub.add_parser("validate", help="Check registry files without writing anything")
    v.add_argument("sources", nargs="*", help="Registry directories or files (default: from settings)")
    v.set_defaults(func=_cmd_validate)

    ls = sub.add_parser("list", help="Print registry, key and asset id for every entry")
    ls.add_argument("sources", nargs="*", help="Registry directories or files (default: from settings)")
    ls.set_defaults(func=_cmd_list)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(level=logging.DEBUG if args.debug else logging.WARNING)

    try:
        settings = Settings.load(user_path=args.settings_path)
    except (ValueError, TypeError, OSError, yaml.YAMLError) as e:
        print(f"error: invalid settings: {e}", file=sys.stderr)
        return 2
    logger.debug("Running %s with %s", args.cmd, settings)
    return args.func(args, settings)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
