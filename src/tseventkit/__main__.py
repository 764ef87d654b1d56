"""CLI entry point for tseventkit.

Enables ``python -m tseventkit <command>`` usage.

Subcommands:
    doctor   - Environment check: core dependency versions.
    describe - Load a wire-format JSON file and print a summary as JSON.
    version  - Print tseventkit version.
"""

from __future__ import annotations

import argparse
import importlib
import json
import sys
from pathlib import Path


def _check_import(module_name: str) -> tuple[bool, str | None]:
    """Try importing a module and return (success, version_or_none)."""
    try:
        mod = importlib.import_module(module_name)
        version = getattr(mod, "__version__", getattr(mod, "VERSION", None))
        return True, str(version) if version is not None else "installed"
    except ImportError:
        return False, None


def _cmd_doctor() -> int:
    """Run environment diagnostics."""
    import tseventkit

    print(f"tseventkit {tseventkit.__version__}")
    print(f"Python {sys.version}")
    print()

    core_deps = [
        ("pandas", "pandas"),
        ("numpy", "numpy"),
        ("pydantic", "pydantic"),
    ]

    print("Core dependencies:")
    all_core_ok = True
    for display_name, module_name in core_deps:
        ok, version = _check_import(module_name)
        status = f"  {version}" if ok else "  NOT INSTALLED"
        marker = "ok" if ok else "MISSING"
        print(f"  [{marker:>7s}] {display_name}{status}")
        if not ok:
            all_core_ok = False

    print()

    if all_core_ok:
        print("All systems go.")
    else:
        print("WARNING: Some core dependencies are missing. Install with:")
        print("  pip install tseventkit")
        return 1

    return 0


def describe_series(series) -> dict:
    """Summary of a series: meta, size, columns, timerange and per-column avg."""
    tr = series.timerange()
    averages = {}
    for column in series.columns():
        if series.size_valid(column):
            averages[column] = series.avg(column)
    return {
        "name": series.name(),
        "tz": series.timezone(),
        "size": series.size(),
        "columns": series.columns(),
        "timerange": tr.to_json() if tr is not None else None,
        "avg": averages,
    }


def _cmd_describe(path: str) -> int:
    """Print a JSON summary of a wire-format series file."""
    from tseventkit.core.errors import TSEventKitError
    from tseventkit.series.timeseries import timeseries

    try:
        data = json.loads(Path(path).read_text())
    except (OSError, json.JSONDecodeError) as exc:
        print(f"Could not read {path}: {exc}", file=sys.stderr)
        return 2

    try:
        series = timeseries(data)
    except TSEventKitError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    json.dump(describe_series(series), sys.stdout, indent=2, default=str)
    print()  # trailing newline
    return 0


def _cmd_version() -> int:
    """Print version string."""
    import tseventkit

    print(tseventkit.__version__)
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="tseventkit",
        description="tseventkit - Immutable time-indexed event series",
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("doctor", help="Environment check: core dependencies")
    describe_parser = subparsers.add_parser("describe", help="Summarize a wire-format JSON file")
    describe_parser.add_argument("file", help="Path to a JSON file with name/columns/points")
    subparsers.add_parser("version", help="Print version")

    args = parser.parse_args(argv)

    if args.command == "doctor":
        return _cmd_doctor()
    elif args.command == "describe":
        return _cmd_describe(args.file)
    elif args.command == "version":
        return _cmd_version()
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
