"""Parse a YAML jobs file into JobConfig objects."""

import os
from dataclasses import dataclass, field

import yaml

from command_utils.log import LEVELS


class ConfigError(ValueError):
    pass


@dataclass
class JobConfig:
    name: str
    command: str | list[str]
    env: dict[str, str] | None = None
    stdout_level: str = "info"
    stderr_level: str = "error"
    stdout_prefix: str = ""
    stderr_prefix: str = ""
    file_order: int = field(default=0, compare=False)


def _builtin_defaults() -> dict:
    """Defaults before x-defaults, with COMMAND_UTILS_* env overrides."""
    return {
        "stdout_level": os.environ.get("COMMAND_UTILS_STDOUT_LEVEL", "info"),
        "stderr_level": os.environ.get("COMMAND_UTILS_STDERR_LEVEL", "error"),
        "stdout_prefix": "",
        "stderr_prefix": "",
    }


def _parse_command(name: str, value) -> str | list[str]:
    if isinstance(value, str) and value:
        return value
    if isinstance(value, list) and value and all(isinstance(v, str) for v in value):
        return list(value)
    raise ConfigError(f"job {name!r}: command must be a string or a list of strings")


def _parse_env(name: str, value) -> dict[str, str] | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ConfigError(f"job {name!r}: env must be a mapping")
    # YAML scalars like 1 or true come back typed; the environment wants strings.
    return {str(k): str(v) for k, v in value.items()}


def parse_jobs(doc: dict) -> list[JobConfig]:
    """Parse a jobs document into JobConfig list, in file order.

    Per-job keys override x-defaults, which override built-in defaults.
    """
    if not isinstance(doc, dict) or not isinstance(doc.get("jobs"), dict) or not doc["jobs"]:
        raise ConfigError("config must contain a non-empty 'jobs' mapping")

    x_defaults = doc.get("x-defaults") or {}
    if not isinstance(x_defaults, dict):
        raise ConfigError("'x-defaults' must be a mapping")

    jobs = []
    for idx, (name, job) in enumerate(doc["jobs"].items()):
        if not isinstance(job, dict):
            raise ConfigError(f"job {name!r} must be a mapping")
        if "command" not in job:
            raise ConfigError(f"job {name!r} has no command")

        settings = _builtin_defaults()
        for key in settings:
            if key in x_defaults:
                settings[key] = x_defaults[key]
            if key in job:
                settings[key] = job[key]

        for key in ("stdout_level", "stderr_level"):
            if settings[key] not in LEVELS:
                raise ConfigError(f"job {name!r}: unknown {key} {settings[key]!r}")

        jobs.append(
            JobConfig(
                name=str(name),
                command=_parse_command(name, job["command"]),
                env=_parse_env(name, job.get("env", x_defaults.get("env"))),
                stdout_level=settings["stdout_level"],
                stderr_level=settings["stderr_level"],
                stdout_prefix=str(settings["stdout_prefix"]),
                stderr_prefix=str(settings["stderr_prefix"]),
                file_order=idx,
            )
        )
    return jobs


def load_jobs(path: str) -> list[JobConfig]:
    """Read and parse a jobs file."""
    try:
        with open(path) as f:
            doc = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigError(f"config file not found: {path}")
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}")
    return parse_jobs(doc)
