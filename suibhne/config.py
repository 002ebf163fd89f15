"""Daemon configuration.

Settings are read from ``~/.suibhne/config.yaml`` (or the file named by
``SUIBHNE_CONFIG``). Every field has a default, so a missing file is fine.
``SUIBHNE_SOCKET`` overrides the socket path.

Example::

    socket_path: ~/.suibhne/suibhne.sock
    request_timeout: 30
    log_level: INFO
    access:
      contacts: allow
      config: allow
      skills: deny
"""

import os
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from suibhne.exceptions import ConfigError

SUIBHNE_HOME = Path.home() / ".suibhne"
DEFAULT_CONFIG_PATH = SUIBHNE_HOME / "config.yaml"
DEFAULT_SOCKET_PATH = SUIBHNE_HOME / "suibhne.sock"
DEFAULT_LOG_DIR = SUIBHNE_HOME / "logs"
DEFAULT_PID_FILE = SUIBHNE_HOME / "daemon.pid"

CONFIG_ENV_VAR = "SUIBHNE_CONFIG"
SOCKET_ENV_VAR = "SUIBHNE_SOCKET"


class AccessPolicy(str, Enum):
    """Answer given when a backend asks for access to its resource."""

    ALLOW = "allow"
    DENY = "deny"
    RESTRICTED = "restricted"


class Settings(BaseModel):
    """Daemon settings."""

    socket_path: Path = DEFAULT_SOCKET_PATH
    backlog: int = Field(default=16, ge=1)
    max_message_size: int = Field(default=1024 * 1024, ge=1024)
    request_timeout: float = Field(default=30.0, ge=0)

    contacts_path: Path = SUIBHNE_HOME / "contacts.yaml"
    openclaw_config_path: Path = Path.home() / ".openclaw" / "config.yaml"
    skills_dirs: list[Path] = Field(
        default_factory=lambda: [
            Path.home() / ".openclaw" / "skills",
            Path.home() / "moltbot" / "skills",
        ]
    )

    log_dir: Path = DEFAULT_LOG_DIR
    log_level: str = "INFO"

    access: dict[str, AccessPolicy] = Field(default_factory=dict)

    @field_validator("socket_path", "contacts_path", "openclaw_config_path", "log_dir")
    @classmethod
    def _expand_path(cls, value: Path) -> Path:
        return value.expanduser()

    @field_validator("skills_dirs")
    @classmethod
    def _expand_paths(cls, value: list[Path]) -> list[Path]:
        return [p.expanduser() for p in value]

    @field_validator("log_level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {value}")
        return level

    def access_policy(self, resource: str) -> AccessPolicy:
        """Get the access policy for a resource, defaulting to allow."""
        return self.access.get(resource, AccessPolicy.ALLOW)


def config_path() -> Path:
    """Get the config file path, honoring SUIBHNE_CONFIG."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from a YAML file plus environment overrides.

    Args:
        path: Explicit config file. Defaults to ``config_path()``.

    Returns:
        Validated settings.

    Raises:
        ConfigError: If the file cannot be parsed or holds invalid values.
    """
    path = path or config_path()
    data: dict[str, Any] = {}

    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read config {path}: {e}") from e
        if loaded is not None:
            if not isinstance(loaded, dict):
                raise ConfigError(f"Config {path} must be a mapping")
            data.update(loaded)

    env_socket = os.environ.get(SOCKET_ENV_VAR)
    if env_socket:
        data["socket_path"] = env_socket

    try:
        return Settings(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config {path}: {e}") from e


def default_socket_path() -> Path:
    """Socket path a client should use when none is given."""
    env_socket = os.environ.get(SOCKET_ENV_VAR)
    if env_socket:
        return Path(env_socket).expanduser()
    return DEFAULT_SOCKET_PATH
