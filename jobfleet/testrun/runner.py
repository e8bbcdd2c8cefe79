from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from jobfleet.logs import Logger, LogLevel, get_logger
from jobfleet.pool import ItemError, PoolTimeoutError, TaskPool
from jobfleet.results import ResultAggregator

from .engine import PytestEngine, TestEngine
from .types import NoValidInputError, TestFileOutcome, TestRunConfig, TestRunReport


class ParallelTestRunner:
    """Runs test files concurrently, one pool worker per file.

    Every valid file produces exactly one `TestFileOutcome`: engine faults
    and files cut off by the deadline are reported as failures instead of
    being raised.
    """

    __test__ = False

    def __init__(
        self,
        engine: TestEngine | None = None,
        logger: Logger | None = None,
        pool: TaskPool | None = None,
        aggregator: ResultAggregator | None = None,
    ):
        self.engine = engine or PytestEngine()
        self.logger = logger or get_logger(__name__)
        self.pool = pool or TaskPool(self.logger)
        self.aggregator = aggregator or ResultAggregator(self.logger)

    def run_test_files(
        self,
        files: Sequence[str | Path],
        config: TestRunConfig | None = None,
        max_concurrency: int | None = None,
        deadline: float | None = None,
    ) -> TestRunReport:
        valid: list[Path] = []
        missing: list[str] = []
        for file in files:
            path = Path(file)
            if path.exists():
                valid.append(path)
            else:
                self.logger.log(LogLevel.WARN, f"Test file not found, skipping: {path}")
                missing.append(str(path))

        if not valid:
            raise NoValidInputError([str(f) for f in files])

        def worker(path: Path) -> TestFileOutcome:
            return self._run_file(path, config)

        try:
            results = self.pool.run(valid, worker, max_concurrency, deadline)
        except PoolTimeoutError as exc:
            results = [
                exc.completed.get(index)
                or TestFileOutcome.from_fault(
                    str(path), f"Did not finish within {exc.deadline}s"
                )
                for index, path in enumerate(valid)
            ]

        outcomes = [
            TestFileOutcome.from_fault(str(valid[r.index]), r.message)
            if isinstance(r, ItemError)
            else r
            for r in results
        ]

        summary = self.aggregator.merge(outcomes)
        self.logger.log(
            LogLevel.INFO,
            f"Passed: {summary.passed}, Failed: {summary.failed}, Skipped: {summary.skipped}",
        )
        return TestRunReport(summary, outcomes, missing)

    def _run_file(self, path: Path, config: TestRunConfig | None) -> TestFileOutcome:
        if config is None:
            config = TestRunConfig(target=path, verbosity="minimal", collect_results=True)
        try:
            result = self.engine.run(path, config)
        except Exception as exc:
            self.logger.log(LogLevel.ERROR, f"{path}: {exc}")
            return TestFileOutcome.from_fault(str(path), str(exc) or type(exc).__name__)
        return TestFileOutcome.from_result(str(path), result)
