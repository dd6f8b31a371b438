"""Executor configuration loading."""
from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping
import os

from .config_loader import find_config_file, load_config_file
from .console import Console

CONFIG_ENV_VAR = "BUILDEXEC_CONFIG"


@dataclass(slots=True, frozen=True)
class ExecutorConfig:
    dry_run: bool = False
    log_level: str = "error"
    verbose: bool = False
    inherit_environment: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ExecutorConfig":
        section = data.get("executor", {}) if isinstance(data, Mapping) else {}
        if not isinstance(section, Mapping):
            raise TypeError("[executor] must be a table")
        log_level = str(section.get("log_level", "error")).lower()
        if log_level not in Console.LEVELS:
            levels = ", ".join(Console.LEVELS)
            raise ValueError(f"executor.log_level must be one of: {levels}")
        return cls(
            dry_run=bool(section.get("dry_run", False)),
            log_level=log_level,
            verbose=bool(section.get("verbose", False)),
            inherit_environment=bool(section.get("inherit_environment", False)),
        )

    def with_overrides(self, **overrides: Any) -> "ExecutorConfig":
        values = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **values)


def locate_config(workspace: Path, explicit: str | None = None) -> Path | None:
    """Return the configuration file to use, if any.

    ``explicit`` wins, then ``$BUILDEXEC_CONFIG``, then ``<workspace>/config/config.*``.
    """

    if explicit:
        return Path(explicit)
    env_value = os.environ.get(CONFIG_ENV_VAR)
    if env_value:
        path = Path(env_value)
        return path if path.is_absolute() else workspace / path
    return find_config_file(workspace / "config", "config")


def load_config(workspace: Path, explicit: str | None = None) -> ExecutorConfig:
    path = locate_config(workspace, explicit)
    if path is None:
        return ExecutorConfig()
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {path}")
    return ExecutorConfig.from_mapping(load_config_file(path))
