from .loader import load_project
from .types import ConfigError, ProjectConfig, RunSettings, TaskConfig, TestSettings

__all__ = [
    "load_project",
    "ProjectConfig",
    "RunSettings",
    "TaskConfig",
    "TestSettings",
    "ConfigError",
]
