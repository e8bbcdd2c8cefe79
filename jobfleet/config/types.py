from dataclasses import dataclass, field

DEFAULT_DEADLINE_S = 300.0
DEFAULT_POLL_INTERVAL_S = 1.0


@dataclass
class TaskConfig:
    id: str
    command: str
    env: dict[str, str]
    working_dir: str | None


@dataclass
class RunSettings:
    max_concurrency: int | None = None
    deadline: float = DEFAULT_DEADLINE_S
    poll_interval: float = DEFAULT_POLL_INTERVAL_S
    show_progress: bool = False


@dataclass
class TestSettings:
    __test__ = False

    files: list[str] = field(default_factory=list)
    verbosity: str = "minimal"


@dataclass
class ProjectConfig:
    tasks: dict[str, TaskConfig]
    settings: RunSettings = field(default_factory=RunSettings)
    tests: TestSettings = field(default_factory=TestSettings)

    def has_task(self, id: str) -> bool:
        return id in self.tasks

    def get_task(self, id: str) -> TaskConfig:
        if not self.has_task(id):
            raise KeyError(id)

        return self.tasks[id]

    def tasks_ids(self) -> list[str]:
        return sorted(self.tasks.keys())


class ConfigError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class UnsupportedConfigFormatError(ConfigError):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)
