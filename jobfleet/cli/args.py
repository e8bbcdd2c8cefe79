from __future__ import annotations

import argparse


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return number


def _positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return number


def _add_pool_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--deadline",
        type=_positive_float,
        default=None,
        help="Seconds to wait before giving up (overrides config)",
    )
    parser.add_argument(
        "--max-concurrency",
        type=_positive_int,
        default=None,
        help="Maximum number of tasks running at once (overrides config)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jobfleet")

    parser.add_argument(
        "--config",
        default="jobfleet.yml",
        help="Path to config file",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        required=True,
    )

    # run
    run = subparsers.add_parser("run", help="Run tasks in the background and wait")
    run.add_argument(
        "targets",
        nargs="*",
        help="Target task ids",
    )
    run.add_argument(
        "--progress",
        action="store_true",
        help="Report progress after every poll",
    )
    _add_pool_options(run)

    # list
    subparsers.add_parser("list", help="List tasks")

    # test
    test = subparsers.add_parser("test", help="Run test files in parallel")
    test.add_argument(
        "files",
        nargs="*",
        help="Test files (defaults to the files listed in the config)",
    )
    test.add_argument(
        "--verbosity",
        choices=["minimal", "normal", "detailed"],
        default=None,
        help="pytest output verbosity",
    )
    _add_pool_options(test)

    return parser
