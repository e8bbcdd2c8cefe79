from __future__ import annotations

import re
import subprocess
import sys
import tempfile
import time
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Protocol

from .types import EngineError, EngineResult, TestRunConfig

_VERBOSITY_ARGS = {
    "minimal": ["-q"],
    "normal": [],
    "detailed": ["-v"],
}

# pytest exit codes: 0 all passed, 1 some failed, 5 nothing collected
_OK_EXIT_CODES = (0, 1, 5)

_SUMMARY_COUNT = re.compile(r"(\d+) (passed|failed|errors?|skipped|xfailed|xpassed)")


class TestEngine(Protocol):
    def run(self, target: Path, config: TestRunConfig) -> EngineResult: ...


class PytestEngine:
    """Runs a single test file with `python -m pytest` in a subprocess."""

    __test__ = False

    def __init__(self, python: str | None = None, timeout: float | None = None):
        self.python = python or sys.executable
        self.timeout = timeout

    def command(self, target: Path, config: TestRunConfig) -> list[str]:
        return [
            self.python,
            "-m",
            "pytest",
            str(target),
            "-p",
            "no:cacheprovider",
            *_VERBOSITY_ARGS[config.verbosity],
            *config.extra_args,
        ]

    def run(self, target: Path, config: TestRunConfig) -> EngineResult:
        cmd = self.command(target, config)

        with tempfile.TemporaryDirectory(prefix="jobfleet-") as tmp:
            report = Path(tmp) / "report.xml"
            if config.collect_results:
                cmd.append(f"--junitxml={report}")

            start = time.monotonic()
            try:
                proc = subprocess.run(
                    cmd,
                    capture_output=True,
                    text=True,
                    timeout=self.timeout,
                )
            except subprocess.TimeoutExpired as exc:
                raise EngineError(f"{target}: pytest did not finish within {self.timeout}s") from exc
            duration = time.monotonic() - start

            if proc.returncode not in _OK_EXIT_CODES:
                tail = (proc.stderr or proc.stdout).strip().splitlines()[-1:]
                raise EngineError(
                    f"{target}: pytest exited with code {proc.returncode}"
                    + (f": {tail[0]}" if tail else "")
                )

            if config.collect_results and report.exists():
                passed, failed, skipped = parse_junit_report(report)
            else:
                passed, failed, skipped = parse_summary_line(proc.stdout)

        return EngineResult(passed, failed, skipped, duration)


def parse_junit_report(path: Path) -> tuple[int, int, int]:
    try:
        root = ET.parse(path).getroot()
    except ET.ParseError as exc:
        raise EngineError(f"{path}: invalid JUnit XML") from exc

    suites = [root] if root.tag == "testsuite" else root.findall("testsuite")
    tests = failures = skipped = 0
    for suite in suites:
        tests += int(suite.get("tests", 0))
        failures += int(suite.get("failures", 0)) + int(suite.get("errors", 0))
        skipped += int(suite.get("skipped", 0))

    return max(tests - failures - skipped, 0), failures, skipped


def parse_summary_line(output: str) -> tuple[int, int, int]:
    passed = failed = skipped = 0
    lines = [line for line in output.strip().splitlines() if line.strip()]
    if not lines:
        return passed, failed, skipped

    for count, kind in _SUMMARY_COUNT.findall(lines[-1]):
        match kind:
            case "passed" | "xpassed":
                passed += int(count)
            case "failed" | "error" | "errors":
                failed += int(count)
            case "skipped" | "xfailed":
                skipped += int(count)

    return passed, failed, skipped
