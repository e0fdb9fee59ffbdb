"""
Settings loader — reads the optional YAML settings file.

Resolution order for the file path:
    --config flag  >  TERMSETUP_CONFIG env var  >  ~/.config/terminal-setup/config.yml

A missing file is not an error: the stock settings are used.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from termsetup.core.errors import ConfigError
from termsetup.core.models.settings import Settings

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TERMSETUP_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/terminal-setup/config.yml")


def find_settings_file(explicit: Path | None = None) -> Path | None:
    """Locate the settings file, or None if there is none to load.

    An explicit path (flag or env var) is returned even when it does
    not exist, so that ``load_settings`` can report it.
    """
    if explicit is not None:
        return explicit.expanduser()

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()

    default = DEFAULT_CONFIG_PATH.expanduser()
    return default if default.is_file() else None


def load_settings(path: Path | None = None) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit path to the YAML file. If None, the env var and
            default location are tried.

    Returns:
        Validated Settings model.

    Raises:
        ConfigError: If an explicitly named file is missing or the
            content is invalid.
    """
    path = find_settings_file(path)
    if path is None:
        logger.debug("No settings file found, using defaults")
        return Settings()

    if not path.is_file():
        raise ConfigError(f"Settings file not found: {path}")

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return Settings()

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {path}: {e}") from e

    logger.info("Loaded settings from %s", path)
    return settings
