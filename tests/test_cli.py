"""Tests for tseventkit CLI (python -m tseventkit)."""

from __future__ import annotations

import json
import subprocess
import sys

from tseventkit.__main__ import describe_series, main
from tseventkit.series.timeseries import timeseries

TRAFFIC = {
    "name": "traffic",
    "columns": ["time", "in", "out"],
    "points": [[1000, 52, "up"], [2000, 18, "down"]],
}


def test_cli_version_via_main() -> None:
    """main(['version']) exits 0."""
    assert main(["version"]) == 0


def test_cli_doctor_via_main() -> None:
    """main(['doctor']) exits 0."""
    assert main(["doctor"]) == 0


def test_cli_no_command_shows_help(capsys) -> None:
    """No subcommand prints help and exits 0."""
    ret = main([])
    assert ret == 0
    captured = capsys.readouterr()
    assert "tseventkit" in captured.out


def test_cli_doctor_detects_core_deps(capsys) -> None:
    """Doctor output mentions core dependencies."""
    main(["doctor"])
    captured = capsys.readouterr()
    assert "Core dependencies" in captured.out
    for dep in ["pandas", "numpy", "pydantic"]:
        assert dep in captured.out


def test_cli_describe_file(tmp_path, capsys) -> None:
    """describe FILE prints a JSON summary."""
    path = tmp_path / "traffic.json"
    path.write_text(json.dumps(TRAFFIC))
    assert main(["describe", str(path)]) == 0
    info = json.loads(capsys.readouterr().out)
    assert info["name"] == "traffic"
    assert info["size"] == 2
    assert info["columns"] == ["in", "out"]
    assert info["timerange"] == [1000, 2000]
    assert info["avg"] == {"in": 35.0}


def test_cli_describe_missing_file(tmp_path, capsys) -> None:
    """Unreadable files exit 2."""
    assert main(["describe", str(tmp_path / "nope.json")]) == 2
    assert "Could not read" in capsys.readouterr().err


def test_cli_describe_bad_wire(tmp_path, capsys) -> None:
    """Malformed wire data exits 2 with the error code."""
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"name": "x"}))
    assert main(["describe", str(path)]) == 2
    assert "[E_DATA]" in capsys.readouterr().err


def test_describe_series_empty() -> None:
    """Empty series have no timerange."""
    info = describe_series(timeseries({"columns": ["time", "value"], "points": []}))
    assert info["size"] == 0
    assert info["timerange"] is None


def test_cli_version_subprocess() -> None:
    """python -m tseventkit version outputs version string."""
    result = subprocess.run(
        [sys.executable, "-m", "tseventkit", "version"],
        capture_output=True,
        text=True,
        timeout=30,
    )
    assert result.returncode == 0
    assert result.stdout.strip()  # non-empty version
