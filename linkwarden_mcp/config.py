"""Server settings, loaded from CLI flags, a YAML file and the environment.

Precedence, highest first: explicit CLI flag, config file, environment,
defaults. The resulting `Settings` is passed to constructors explicitly;
nothing else in the package reads the environment.
"""
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "linkwarden-mcp-server.yaml"

ENV_VARS = {
    "base_url": "LINKWARDEN_BASE_URL",
    "token": "LINKWARDEN_TOKEN",
}


class Settings(BaseModel):
    # Linkwarden instance
    base_url: str = ""
    token: str = ""
    timeout: float = 30.0

    # Exposed tools
    toolsets: List[str] = Field(default_factory=list)
    read_only: bool = False

    # Logging (never stdout, it carries the protocol)
    log_file: Optional[str] = None
    log_level: str = "INFO"

    @field_validator("toolsets", mode="before")
    @classmethod
    def _split_toolsets(cls, value):
        if isinstance(value, str):
            return [name.strip() for name in value.split(",") if name.strip()]
        return value

    @field_validator("base_url", "token")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()

    @field_validator("log_level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {value}")
        return level

    def require_backend(self) -> "Settings":
        """Raise ConfigurationError unless base_url and token are both set."""
        if not self.base_url:
            raise ConfigurationError(
                f"linkwarden base url is required (--base-url, config file or {ENV_VARS['base_url']})")
        if not self.token:
            raise ConfigurationError(
                f"linkwarden token is required (--token, config file or {ENV_VARS['token']})")
        return self


def default_config_path() -> Path:
    return Path.home() / CONFIG_FILE_NAME


def load_config_file(path: Path) -> Dict[str, Any]:
    """Read a YAML config file. Keys may use dashes or underscores."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"invalid config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"config file {path} must contain a mapping")
    return {str(key).replace("-", "_"): value for key, value in data.items()}


def load_settings(overrides: Optional[Mapping[str, Any]] = None,
                  config_file: Optional[Path] = None,
                  environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Merge every configuration source into one validated Settings.

    `overrides` holds the CLI flags the user actually passed; None values are
    ignored. Without `config_file` the default file is used when it exists.
    """
    env = os.environ if environ is None else environ
    values: Dict[str, Any] = {}

    for name, var in ENV_VARS.items():
        if env.get(var):
            values[name] = env[var]

    if config_file is not None:
        path = Path(config_file).expanduser()
        if not path.is_file():
            raise ConfigurationError(f"config file not found: {path}")
    else:
        path = default_config_path()
    if path.is_file():
        logger.debug(f"Using config file: {path}")
        values.update(load_config_file(path))

    values.update({k: v for k, v in (overrides or {}).items() if v is not None})

    try:
        return Settings(**values)
    except ValidationError as e:
        raise ConfigurationError(f"invalid configuration: {e}") from e
