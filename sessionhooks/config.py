"""
Configuration management for sessionhooks.

Precedence: env vars > .env file > config.yaml > defaults

Config file: <user config dir>/sessionhooks/config.yaml
Hook files:  <user config dir>/sessionhooks/hook/hooks.md (global)
             <project>/.sessionhooks/hook/hooks.md (project)
"""

import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

APP_DIR_NAME = "sessionhooks"
PROJECT_DIR_NAME = ".sessionhooks"
HOOKS_FILE_NAME = "hooks.md"

# Known config keys that can be set via `sessionhooks config set`
CONFIG_KEYS = {
    "bash_shell", "bash_timeout_ms", "feedback_max_chars",
    "global_hook_dir", "hooks_file_name", "log_level", "log_file",
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def get_user_config_dir() -> Path:
    """Return the user-level config directory.

    Linux/macOS use XDG_CONFIG_HOME or ~/.config. Windows prefers ~/.config
    when a hooks file already lives there, then %APPDATA% when one lives
    there, and otherwise falls back to ~/.config.
    """
    xdg = os.environ.get("XDG_CONFIG_HOME")
    default_dir = Path(xdg) if xdg else Path.home() / ".config"

    if sys.platform != "win32":
        return default_dir

    hooks_subpath = Path(APP_DIR_NAME) / "hook" / HOOKS_FILE_NAME
    if (default_dir / hooks_subpath).exists():
        return default_dir

    appdata = os.environ.get("APPDATA")
    appdata_dir = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
    if (appdata_dir / hooks_subpath).exists():
        return appdata_dir

    return default_dir


def get_app_config_dir() -> Path:
    """Get the sessionhooks directory inside the user config dir."""
    return get_user_config_dir() / APP_DIR_NAME


def get_global_hook_dir() -> Path:
    return get_app_config_dir() / "hook"


def get_project_hook_dir(directory: Path | str) -> Path:
    return Path(directory) / PROJECT_DIR_NAME / "hook"


def get_config_path(config_dir: Path) -> Path:
    """Get the config.yaml path inside a config directory."""
    return config_dir / "config.yaml"


def _load_yaml_config(config_dir: Path) -> dict[str, Any]:
    """Load config.yaml from the given config directory."""
    config_file = get_config_path(config_dir)
    if not config_file.exists():
        return {}
    try:
        with open(config_file) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            logger.warning(f"config.yaml is not a dict, ignoring: {config_file}")
            return {}
        return data
    except Exception as e:
        logger.warning(f"Error loading config.yaml: {e}")
        return {}


def save_yaml_config(config_dir: Path, data: dict[str, Any]) -> Path:
    """Write config values to <config_dir>/config.yaml."""
    config_file = get_config_path(config_dir)
    config_file.parent.mkdir(parents=True, exist_ok=True)
    with open(config_file, "w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    return config_file


class Settings(BaseSettings):
    """Engine configuration. Precedence: env vars > .env > config.yaml > defaults."""

    # Hook layers
    project_dir: Path = Field(
        default=Path("."),
        description="Project directory the host session runs in",
    )
    global_hook_dir: Optional[Path] = Field(
        default=None,
        description="Override for the global hook directory",
    )
    project_hook_dir: Optional[Path] = Field(
        default=None,
        description="Override for the project hook directory",
    )
    hooks_file_name: str = Field(
        default=HOOKS_FILE_NAME,
        description="Name of the hook definition file inside each hook directory",
    )

    # Bash actions
    bash_shell: str = Field(default="bash", description="Shell used for bash actions")
    bash_timeout_ms: int = Field(
        default=60000,
        gt=0,
        description="Default timeout for bash actions without an explicit timeout",
    )
    feedback_max_chars: int = Field(
        default=500,
        gt=0,
        description="Max characters of stdout/stderr echoed back into the session",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string",
    )
    log_file: Optional[Path] = Field(
        default=None,
        description="Optional file that receives a copy of every log record",
    )

    model_config = {
        "env_prefix": "SESSIONHOOKS_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @model_validator(mode="before")
    @classmethod
    def _inject_yaml_config(cls, data: Any) -> Any:
        """Inject config.yaml values as fallbacks below env vars and .env."""
        if not isinstance(data, dict):
            data = {}

        yaml_config = _load_yaml_config(get_app_config_dir())

        for key, value in yaml_config.items():
            if key not in data or data[key] is None:
                env_val = os.environ.get(f"SESSIONHOOKS_{key.upper()}")
                if env_val is None:
                    data[key] = value

        return data

    @field_validator("log_level", mode="before")
    @classmethod
    def _check_log_level(cls, value: Any) -> str:
        level = str(value).strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {value!r}")
        return level

    @property
    def resolved_project_dir(self) -> Path:
        return self.project_dir.expanduser().resolve()

    @property
    def global_hooks_path(self) -> Path:
        """Global hook directory, honoring the override."""
        if self.global_hook_dir:
            return self.global_hook_dir.expanduser()
        return get_global_hook_dir()

    def project_hooks_path(self, directory: Optional[Path] = None) -> Path:
        """Project hook directory for `directory` (defaults to project_dir)."""
        if self.project_hook_dir:
            return self.project_hook_dir.expanduser()
        return get_project_hook_dir(directory or self.resolved_project_dir)


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings
