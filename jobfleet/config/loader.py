import json
import tomllib
from pathlib import Path
from typing import Any, Mapping

import yaml

from jobfleet.testrun.types import VERBOSITY_LEVELS

from .types import (
    ConfigError,
    ProjectConfig,
    RunSettings,
    TaskConfig,
    TestSettings,
    UnsupportedConfigFormatError,
)

_SECTIONS = {"settings", "tasks", "tests"}


def load_project(path: str | Path) -> ProjectConfig:
    pure_path = Path(path).expanduser().resolve()

    if not pure_path.exists():
        raise ConfigError(f"Config file not found: {pure_path}")

    if not pure_path.is_file():
        raise ConfigError(f"Config path is not a file: {pure_path}")

    fmt = _detect_format(pure_path)
    raw_file = _parse_file(pure_path, fmt)
    return _build_project_config(raw_file, base_dir=pure_path.parent)


def _detect_format(path: Path) -> str:
    match path.suffix:
        case ".yaml" | ".yml":
            return "yaml"
        case ".toml":
            return "toml"
        case ".json":
            return "json"
        case other:
            raise UnsupportedConfigFormatError(
                f"Non supported file extension: {other}\n Expected format: .yml/.yaml, .toml, .json"
            )


def _parse_file(path: Path, fmt: str) -> Mapping[str, Any]:
    text = path.read_text(encoding="utf-8")
    try:
        match fmt:
            case "yaml":
                raw_file = yaml.safe_load(text)
            case "toml":
                raw_file = tomllib.loads(text)
            case "json":
                raw_file = json.loads(text)
            case _:
                raise AssertionError("Unreachable")
    except (yaml.YAMLError, tomllib.TOMLDecodeError, json.JSONDecodeError) as exc:
        raise ConfigError(f"{path}: invalid {fmt.upper()}") from exc

    if not isinstance(raw_file, Mapping):
        raise ConfigError(
            f"{path}: {fmt.upper()} parsed but top-level value is not an object: {type(raw_file)}"
        )

    return raw_file


def _build_project_config(raw: Mapping[str, Any], base_dir: Path) -> ProjectConfig:
    for key in raw.keys():
        if key not in _SECTIONS:
            raise ConfigError(f"Unknown top-level field: {key}")

    settings = _build_settings(raw.get("settings", {}))
    tests = _build_tests(raw.get("tests", {}), base_dir)
    tasks = _build_tasks(raw.get("tasks", {}))

    if not tasks and not tests.files:
        raise ConfigError("The config must define at least one task or test file")

    return ProjectConfig(tasks=tasks, settings=settings, tests=tests)


def _build_settings(raw: Any) -> RunSettings:
    if not isinstance(raw, Mapping):
        raise ConfigError(f"'settings' must be a mapping, got {type(raw)}")

    settings = RunSettings()
    for key, value in raw.items():
        match key:
            case "max_concurrency":
                if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                    raise ConfigError("settings: max_concurrency must be a positive integer")
                settings.max_concurrency = value
            case "deadline" | "poll_interval":
                if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                    raise ConfigError(f"settings: {key} must be a positive number of seconds")
                setattr(settings, key, float(value))
            case "show_progress":
                if not isinstance(value, bool):
                    raise ConfigError("settings: show_progress must be true or false")
                settings.show_progress = value
            case _:
                raise ConfigError(f"settings: Can't process: {key}")

    return settings


def _build_tests(raw: Any, base_dir: Path) -> TestSettings:
    if not isinstance(raw, Mapping):
        raise ConfigError(f"'tests' must be a mapping, got {type(raw)}")

    tests = TestSettings()
    for key in raw.keys():
        if key not in {"files", "verbosity"}:
            raise ConfigError(f"tests: Can't process: {key}")

    if "files" in raw:
        if not isinstance(raw["files"], list):
            raise ConfigError("tests: files should be a list")

        for item in raw["files"]:
            if not isinstance(item, str) or len(item.strip()) < 1:
                raise ConfigError(f"tests: {item!r} should be a non-empty string")
            # Relative paths are resolved against the config file location
            tests.files.append(str(base_dir / item.strip()))

    if "verbosity" in raw:
        if raw["verbosity"] not in VERBOSITY_LEVELS:
            raise ConfigError(
                f"tests: verbosity must be one of {', '.join(VERBOSITY_LEVELS)}"
            )
        tests.verbosity = raw["verbosity"]

    return tests


def _build_tasks(raw: Any) -> dict[str, TaskConfig]:
    if not isinstance(raw, Mapping):
        raise ConfigError(f"'tasks' must be a mapping, got {type(raw)}")

    tasks: dict[str, TaskConfig] = {}
    for task_id, fields in raw.items():
        if not isinstance(task_id, str):
            raise ConfigError(f"Task id must be a string, got {type(task_id)}")

        if not isinstance(fields, Mapping):
            raise ConfigError(f"{task_id} must be a mapping")

        task_id_norm = task_id.strip()

        if len(task_id_norm) < 1:
            raise ConfigError("A task id can't be empty")

        if task_id_norm in tasks:
            raise ConfigError(f"Duplicate task id after normalization: {task_id_norm}")

        tasks[task_id_norm] = _build_task_config(task_id_norm, fields)

    return tasks


def _build_task_config(task_id: str, fields: Mapping[str, Any]) -> TaskConfig:
    env = {}
    working_dir = None

    for field in fields.keys():
        if field not in {"command", "env", "working_dir"}:
            raise ConfigError(f"{task_id}: Can't process: {field}")

    command = fields.get("command")
    if not isinstance(command, str) or len(command.strip()) < 1:
        raise ConfigError(f"{task_id}: 'command' must be a non-empty string")

    if "env" in fields:
        if not isinstance(fields["env"], Mapping):
            raise ConfigError(f"{task_id}: Env should be a mapping")

        for key, item in fields["env"].items():
            if not isinstance(key, str) or len(key.strip()) < 1:
                raise ConfigError(f"{task_id}: env keys must be non-empty strings")

            if not isinstance(item, str):
                raise ConfigError(f"{task_id}: {item} should be a string")

            env[key.strip()] = item

    if "working_dir" in fields:
        if not isinstance(fields["working_dir"], str) or len(fields["working_dir"].strip()) < 1:
            raise ConfigError(f"{task_id}: working_dir must be a non-empty string")

        working_dir = fields["working_dir"].strip()

    return TaskConfig(task_id, command.strip(), env, working_dir)
