from __future__ import annotations

import concurrent.futures
import os
import time
from collections.abc import Callable, Sequence
from typing import Any

from jobfleet.logs import Logger, LogLevel, get_logger

from .types import InputError, ItemError, PoolTimeoutError


def default_concurrency() -> int:
    return os.cpu_count() or 1


class TaskPool:
    """Run one worker call per item on a bounded thread pool.

    A worker that raises does not affect its siblings: the exception is
    returned in that item's slot as an `ItemError`. Results come back in
    the order the items were given.
    """

    def __init__(self, logger: Logger | None = None, thread_prefix: str = "jobfleet-pool"):
        self.logger = logger or get_logger(__name__)
        self.thread_prefix = thread_prefix

    def run(
        self,
        items: Sequence[Any],
        worker: Callable[[Any], Any],
        max_concurrency: int | None = None,
        deadline: float | None = None,
    ) -> list[Any]:
        if max_concurrency is None:
            max_concurrency = default_concurrency()
        if max_concurrency <= 0:
            raise InputError(f"max_concurrency must be positive, got {max_concurrency}")
        if deadline is not None and deadline <= 0:
            raise InputError(f"deadline must be positive, got {deadline}")

        items = list(items)
        if not items:
            return []

        self.logger.log(
            LogLevel.INFO,
            f"Starting {len(items)} item(s) with up to {max_concurrency} worker(s)",
        )
        start = time.monotonic()

        executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_concurrency, thread_name_prefix=self.thread_prefix
        )
        try:
            future_to_index = {
                executor.submit(worker, item): index for index, item in enumerate(items)
            }
            done, not_done = concurrent.futures.wait(future_to_index, timeout=deadline)
        except BaseException:
            executor.shutdown(wait=False, cancel_futures=True)
            raise

        completed = {
            future_to_index[future]: _unwrap(future, future_to_index[future], items)
            for future in done
        }

        if not_done:
            # Running workers are left to finish on their own.
            executor.shutdown(wait=False, cancel_futures=True)
            self.logger.log(
                LogLevel.ERROR,
                f"Pool deadline of {deadline}s exceeded, {len(not_done)} item(s) unfinished",
            )
            raise PoolTimeoutError(deadline or 0.0, completed, len(not_done))

        executor.shutdown(wait=True)
        duration = time.monotonic() - start
        failures = sum(1 for r in completed.values() if isinstance(r, ItemError))
        self.logger.log(
            LogLevel.SUCCESS,
            f"Completed {len(items)} item(s) in {duration:.3f}s ({failures} raised)",
        )
        return [completed[index] for index in range(len(items))]


def _unwrap(future: concurrent.futures.Future, index: int, items: list[Any]) -> Any:
    try:
        return future.result()
    except Exception as exc:
        return ItemError(index, items[index], exc)
