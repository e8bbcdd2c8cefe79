from __future__ import annotations

import argparse
import logging
import sys

from jobfleet.config import ConfigError, ProjectConfig, load_project
from jobfleet.executor import Executor, RunResult
from jobfleet.jobs import JobError, JobWaiter, TaskRegistry, TaskState
from jobfleet.pool import InputError
from jobfleet.testrun import ParallelTestRunner, PytestEngine, TestRunConfig, TestRunReport

from .args import build_parser


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def run_cli(argv: list[str] | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
        setup_logging(args.verbose)

        match args.command:
            case "run":
                return cmd_run(args)
            case "list":
                return cmd_list(args)
            case "test":
                return cmd_test(args)
            case _:
                return 2

    except (ConfigError, InputError, JobError, KeyError) as exc:
        print(str(exc), file=sys.stderr)
        return 2

    except KeyboardInterrupt:
        return 130


def main() -> None:
    sys.exit(run_cli())


def cmd_run(args: argparse.Namespace) -> int:
    project = load_project(args.config)
    rr = _run_with(project, args)
    _print_result(rr)
    return 0 if rr.success else 1


def cmd_list(args: argparse.Namespace) -> int:
    project = load_project(args.config)
    for tid in project.tasks_ids():
        print(tid)
    for path in project.tests.files:
        print(f"test: {path}")
    return 0


def cmd_test(args: argparse.Namespace) -> int:
    files: list[str] = args.files
    verbosity = args.verbosity
    deadline = args.deadline
    max_concurrency = args.max_concurrency

    if not files:
        project = load_project(args.config)
        files = project.tests.files
        verbosity = verbosity or project.tests.verbosity
        deadline = deadline or project.settings.deadline
        max_concurrency = max_concurrency or project.settings.max_concurrency

    config = None
    if verbosity is not None:
        config = TestRunConfig(verbosity=verbosity)

    # Bound each pytest child so nothing outlives the deadline
    runner = ParallelTestRunner(PytestEngine(timeout=deadline))
    report = runner.run_test_files(files, config, max_concurrency, deadline)
    _print_report(report)
    return 0 if report.summary.success else 1


def _run_with(project: ProjectConfig, args: argparse.Namespace) -> RunResult:
    settings = project.settings
    max_workers = args.max_concurrency or settings.max_concurrency

    with TaskRegistry(max_workers=max_workers) as registry:
        waiter = JobWaiter(registry, poll_interval=settings.poll_interval)
        executor = Executor(project, registry, waiter)
        show_progress = True if args.progress else None
        if args.targets:
            return executor.run_targets(
                args.targets, deadline=args.deadline, show_progress=show_progress
            )
        return executor.run_all(deadline=args.deadline, show_progress=show_progress)


def _print_result(rr: RunResult) -> None:
    for tid in rr.order:
        outcome = rr.outcomes.get(tid)
        if tid in rr.timed_out:
            print(f"TIMEOUT {tid}")
        elif outcome.state != TaskState.COMPLETED:
            errors = "; ".join(e.message for e in outcome.errors)
            print(f"FAIL {tid}, {outcome.state.value}: {errors}")
        else:
            result = outcome.result
            status = "OK" if result.returncode == 0 else "FAIL"
            print(f"{status} {tid}, {result.duration_s:.3f}s, exit code = {result.returncode}")


def _print_report(report: TestRunReport) -> None:
    for outcome in report.outcomes:
        status = "OK" if outcome.success else "FAIL"
        line = (
            f"{status} {outcome.file_path}, {outcome.duration_s:.3f}s, "
            f"passed = {outcome.passed}, failed = {outcome.failed}, skipped = {outcome.skipped}"
        )
        if outcome.error_message:
            line += f" ({outcome.error_message})"
        print(line)
    for path in report.missing:
        print(f"MISSING {path}")

    summary = report.summary
    print(
        f"Total: {summary.total_tests}, passed = {summary.passed}, "
        f"failed = {summary.failed}, skipped = {summary.skipped}, "
        f"{summary.total_duration_s:.3f}s"
    )
