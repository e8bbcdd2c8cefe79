# tests/test_engine.py
from __future__ import annotations

from pathlib import Path

import pytest

from jobfleet.testrun import (
    EngineError,
    PytestEngine,
    TestRunConfig,
    parse_junit_report,
    parse_summary_line,
)

SAMPLE_TESTS = """
import pytest

def test_one():
    assert True

def test_two():
    assert 1 + 1 == 2

def test_broken():
    assert False

@pytest.mark.skip(reason="not today")
def test_skipped():
    pass
"""


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "output, expected",
    [
        ("", (0, 0, 0)),
        ("..F\n1 failed, 2 passed in 0.05s\n", (2, 1, 0)),
        ("==== 3 passed, 1 skipped, 2 xfailed in 1.00s ====", (3, 0, 3)),
        ("1 passed, 1 error in 0.10s", (1, 1, 0)),
        ("no tests ran in 0.01s", (0, 0, 0)),
    ],
)
def test_parse_summary_line(output: str, expected: tuple[int, int, int]) -> None:
    assert parse_summary_line(output) == expected


def test_parse_junit_report_sums_suites(tmp_path: Path) -> None:
    report = _write(
        tmp_path / "report.xml",
        '<?xml version="1.0"?>\n'
        "<testsuites>"
        '<testsuite name="a" tests="5" failures="1" errors="1" skipped="1"/>'
        '<testsuite name="b" tests="2" failures="0" errors="0" skipped="0"/>'
        "</testsuites>",
    )

    assert parse_junit_report(report) == (4, 2, 1)


def test_parse_junit_report_rejects_garbage(tmp_path: Path) -> None:
    report = _write(tmp_path / "report.xml", "<testsuites")

    with pytest.raises(EngineError):
        parse_junit_report(report)


def test_command_reflects_verbosity() -> None:
    engine = PytestEngine(python="python3")

    quiet = engine.command(Path("t.py"), TestRunConfig(verbosity="minimal"))
    loud = engine.command(Path("t.py"), TestRunConfig(verbosity="detailed", extra_args=("-x",)))

    assert quiet[:4] == ["python3", "-m", "pytest", "t.py"]
    assert "-q" in quiet
    assert loud[-2:] == ["-v", "-x"]


def test_invalid_verbosity_rejected() -> None:
    with pytest.raises(ValueError):
        TestRunConfig(verbosity="chatty")


@pytest.mark.parametrize("collect_results", [True, False])
def test_runs_real_pytest_file(tmp_path: Path, collect_results: bool) -> None:
    target = _write(tmp_path / "test_sample.py", SAMPLE_TESTS)

    result = PytestEngine(timeout=60).run(target, TestRunConfig(collect_results=collect_results))

    assert (result.passed, result.failed, result.skipped) == (2, 1, 1)
    assert result.duration_s > 0


def test_usage_error_raises_engine_error(tmp_path: Path) -> None:
    target = _write(tmp_path / "test_sample.py", SAMPLE_TESTS)
    config = TestRunConfig(extra_args=("--definitely-not-an-option",))

    with pytest.raises(EngineError):
        PytestEngine(timeout=60).run(target, config)
