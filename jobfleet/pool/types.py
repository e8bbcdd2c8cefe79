from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ItemError:
    index: int
    item: Any
    error: BaseException

    @property
    def message(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"


class PoolError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class InputError(PoolError):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class PoolTimeoutError(PoolError):
    def __init__(self, deadline: float, completed: dict[int, Any], pending: int):
        super().__init__(
            f"Deadline of {deadline:.3f}s exceeded with {pending} item(s) unfinished"
        )
        self.deadline = deadline
        self.completed = completed
        self.pending = pending
