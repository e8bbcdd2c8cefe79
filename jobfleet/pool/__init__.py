from .pool import TaskPool, default_concurrency
from .types import InputError, ItemError, PoolError, PoolTimeoutError

__all__ = [
    "default_concurrency",
    "InputError",
    "ItemError",
    "PoolError",
    "PoolTimeoutError",
    "TaskPool",
]
