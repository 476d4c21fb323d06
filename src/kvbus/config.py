"""Configuration loading with environment variable substitution."""

import json
import os
import re
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from kvbus.exceptions import ConfigError
from kvbus.observability import LogLevel

ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)\}")


def substitute_env_vars(value: Any) -> Any:
    """Recursively substitute ${VAR_NAME} patterns with environment variables."""
    if isinstance(value, str):
        def replace(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ConfigError(f"Environment variable {var_name} is not set")
            return env_value

        return ENV_VAR_PATTERN.sub(replace, value)
    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]
    return value


class PersistenceConfig(BaseModel):
    """Persistence backend configuration."""

    backend: Literal["none", "memory", "file", "sqlite"] = "none"
    # Backend-specific settings
    path: str | None = None  # For file and sqlite
    indent: int | None = None  # For file
    table: str = "kvbus_entries"  # For sqlite

    @model_validator(mode="after")
    def _check_path(self) -> "PersistenceConfig":
        if self.backend in ("file", "sqlite") and not self.path:
            raise ValueError(f"persistence.path is required for backend '{self.backend}'")
        return self


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    format: Literal["json", "text"] = "json"


class Config(BaseModel):
    """Main configuration for a kvbus store."""

    name: str = "default"
    clean_interval_ms: int = Field(default=60_000, gt=0)
    auto_clean: bool = False
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: str | Path) -> "Config":
        """Load configuration from a YAML or JSON file."""
        path = Path(path)
        with path.open() as f:
            if path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Load configuration from a dictionary.

        Raises:
            ConfigError: On unset environment variables or invalid values
        """
        data = substitute_env_vars(data)
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(str(e)) from e
