"""
stackpilot configuration — TOML on disk, pydantic models in memory.

Lookup order for the file:

  1. ``path`` argument to ``load_config()``
  2. ``$STACKPILOT_CONFIG``
  3. ``~/.stackpilot/config.toml``

An explicitly named file (1 or 2) must exist.  The default location is
optional; when it is missing the built-in defaults apply.

Environment overrides are applied after the file is read:

  STACKPILOT_LOG_LEVEL    logging.level
  STACKPILOT_STACK        stack.stack_name
  STACKPILOT_AWS_REGION   aws.region
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Literal

import tomli_w
from pydantic import BaseModel, Field, ValidationError, field_validator

from stackpilot.core.exceptions import ConfigError, ConfigNotFoundError

CONFIG_VERSION = 1
CONFIG_FILENAME = "config.toml"
LOG_FILENAME = "stackpilot.log"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def stackpilot_dir() -> Path:
    """Directory holding the default config and log file."""
    return Path(os.environ.get("STACKPILOT_HOME", "") or Path.home() / ".stackpilot")


def default_config_path() -> Path:
    return stackpilot_dir() / CONFIG_FILENAME


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class StackConfig(BaseModel):
    project_name: str = "inlineS3Project"
    stack_name: str = "dev"
    remove_stack_on_destroy: bool = False

    @field_validator("project_name", "stack_name")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v


class AwsConfig(BaseModel):
    region: str = "us-west-2"
    plugin_version: str = "v6.0.0"


class UIConfig(BaseModel):
    spinner: Literal["dot", "line"] = "dot"
    spinner_interval: float = Field(default=0.1, gt=0.0, le=2.0)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    path: str = ""

    @field_validator("level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        upper = v.upper()
        if upper not in _LOG_LEVELS:
            raise ValueError(f"unknown log level {v!r}; expected one of {', '.join(_LOG_LEVELS)}")
        return upper


class StackPilotConfig(BaseModel):
    config_version: int = CONFIG_VERSION
    stack: StackConfig = Field(default_factory=StackConfig)
    aws: AwsConfig = Field(default_factory=AwsConfig)
    ui: UIConfig = Field(default_factory=UIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def log_path(self) -> Path:
        if self.logging.path:
            return Path(self.logging.path).expanduser()
        return stackpilot_dir() / LOG_FILENAME


# ---------------------------------------------------------------------------
# Load / save
# ---------------------------------------------------------------------------


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    overrides = {
        "STACKPILOT_LOG_LEVEL": ("logging", "level"),
        "STACKPILOT_STACK": ("stack", "stack_name"),
        "STACKPILOT_AWS_REGION": ("aws", "region"),
    }
    for env, (section, key) in overrides.items():
        value = os.environ.get(env)
        if value:
            data.setdefault(section, {})[key] = value
    return data


def load_config(path: Path | None = None) -> StackPilotConfig:
    """Read, validate, and return the configuration."""
    explicit = path is not None or bool(os.environ.get("STACKPILOT_CONFIG"))
    if path is None:
        path = Path(os.environ["STACKPILOT_CONFIG"]) if explicit else default_config_path()

    data: dict[str, Any] = {}
    if path.exists():
        try:
            with path.open("rb") as fh:
                data = tomllib.load(fh)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc
        except OSError as exc:
            raise ConfigError(f"Cannot read {path}: {exc}") from exc
    elif explicit:
        raise ConfigNotFoundError(f"Config file not found: {path}")

    try:
        return StackPilotConfig.model_validate(_apply_env_overrides(data))
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {path}:\n{exc}") from exc


def save_config(data: dict[str, Any], path: Path | None = None) -> Path:
    """Validate ``data`` and write it as TOML with owner-only permissions."""
    target = path or default_config_path()
    try:
        cfg = StackPilotConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Refusing to save invalid configuration:\n{exc}") from exc

    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    with target.open("wb") as fh:
        tomli_w.dump(cfg.model_dump(), fh)
    target.chmod(0o600)
    return target
