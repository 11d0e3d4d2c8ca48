"""Autoread Runtime Configuration

Configuration loading with environment variable support and sensible defaults.

This covers runtime settings only (state directory, lock timing, logging).
The autoread *pattern* files (.autoread, ~/.config/autoread) are a separate,
line-oriented format handled by autoread.patterns.

Environment Variables:
    AUTOREAD_CONFIG_PATH: Path to config file (default: ~/.config/autoread.yaml)
    AUTOREAD_STATE_DIR: Override state directory from config
    AUTOREAD_LOG_LEVEL: Override logging level from config

Configuration Schema:
    state:
        dir: str - Directory for seen-state and lock files
                   (default: <tempdir>/autoread-plugin)
    lock:
        timeout: float - Seconds to wait for the session lock (default: 5.0)
        retry_interval: float - Seconds between attempts (default: 0.01)
        stale_after: float - Seconds before a lock is reclaimable (default: 30.0)
    logging:
        level: str - Logging level (default: "WARNING")
        file: str - Optional log file path
"""

import copy
import logging
import os
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from autoread.errors import ConfigurationError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

STATE_DIR_NAME = "autoread-plugin"

# Default configuration values
DEFAULT_CONFIG: Dict[str, Any] = {
    "state": {
        "dir": None,  # Use <tempdir>/autoread-plugin
    },
    "lock": {
        "timeout": 5.0,
        "retry_interval": 0.01,
        "stale_after": 30.0,
    },
    "logging": {
        "level": "WARNING",
        "file": None,
    },
}


@dataclass(frozen=True)
class LockSettings:
    """Timing parameters for the per-session file lock."""

    timeout: float = 5.0
    retry_interval: float = 0.01
    stale_after: float = 30.0


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge override dict into base dict.

    Args:
        base: Base dictionary (defaults)
        override: Override dictionary (user config)

    Returns:
        Merged dictionary with override values taking precedence
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _resolve_path(path: Optional[str], base_dir: Path) -> Optional[Path]:
    """
    Resolve a path, expanding ~ and making relative paths absolute from base_dir.

    Args:
        path: Path string (absolute, home-rooted or relative) or None
        base_dir: Base directory for relative path resolution

    Returns:
        Resolved absolute Path or None if path was None
    """
    if path is None:
        return None

    path_obj = Path(path).expanduser()
    if path_obj.is_absolute():
        return path_obj
    return (base_dir / path_obj).resolve()


def _read_config_file(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise yaml.YAMLError(f"top level must be a mapping, got {type(data).__name__}")
    return data


def get_default_config_path() -> Path:
    """Return the optional per-user config file location."""
    return Path.home() / ".config" / "autoread.yaml"


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file with environment variable overrides.

    Configuration Loading Order (later overrides earlier):
    1. Default values (DEFAULT_CONFIG)
    2. Config file (config_path parameter, AUTOREAD_CONFIG_PATH, or the
       optional ~/.config/autoread.yaml)
    3. Environment variable overrides (AUTOREAD_STATE_DIR, AUTOREAD_LOG_LEVEL)

    Args:
        config_path: Explicit config file path (overrides AUTOREAD_CONFIG_PATH)

    Returns:
        Merged configuration dictionary

    Raises:
        ConfigurationError: If an explicit config file is invalid or unreadable
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    file_path = config_path or os.environ.get("AUTOREAD_CONFIG_PATH")

    if file_path:
        # Explicit config path - must be valid if it exists
        resolved_path = _resolve_path(file_path, Path.cwd())
        if resolved_path and resolved_path.exists():
            try:
                config = _deep_merge(config, _read_config_file(resolved_path))
                logger.info(f"Loaded configuration from: {resolved_path}")
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in config file: {e}") from e
            except OSError as e:
                raise ConfigurationError(f"Cannot read config file: {e}") from e
        else:
            logger.warning(f"Config file not found (using defaults): {file_path}")
    else:
        default_config_path = get_default_config_path()
        if default_config_path.exists():
            try:
                config = _deep_merge(config, _read_config_file(default_config_path))
                logger.info(f"Loaded configuration from: {default_config_path}")
            except yaml.YAMLError as e:
                logger.warning(f"Invalid YAML in default config (ignoring): {e}")
            except OSError as e:
                logger.warning(f"Cannot read default config (ignoring): {e}")
        else:
            logger.debug("No config file found, using defaults")

    # Apply environment variable overrides
    state_dir_override = os.environ.get("AUTOREAD_STATE_DIR")
    if state_dir_override:
        config.setdefault("state", {})["dir"] = state_dir_override
        logger.debug(f"State dir override from env: {state_dir_override}")

    log_level_override = os.environ.get("AUTOREAD_LOG_LEVEL")
    if log_level_override:
        config.setdefault("logging", {})["level"] = log_level_override

    return config


def get_state_dir(config: Dict[str, Any]) -> Path:
    """
    Get the seen-state directory from config or default.

    The directory is not created here; SeenStateStore creates it lazily on
    first write.

    Args:
        config: Configuration dictionary from load_config()

    Returns:
        Path to the state directory
    """
    path_str = config.get("state", {}).get("dir")
    if path_str:
        resolved = _resolve_path(str(path_str), Path.cwd())
        if resolved is not None:
            return resolved
    return Path(tempfile.gettempdir()) / STATE_DIR_NAME


def get_lock_settings(config: Dict[str, Any]) -> LockSettings:
    """
    Extract lock timing settings.

    Raises:
        ConfigurationError: If a value is not a positive number
    """
    section = config.get("lock", {}) or {}
    defaults = DEFAULT_CONFIG["lock"]
    values: Dict[str, float] = {}
    for key in ("timeout", "retry_interval", "stale_after"):
        raw = section.get(key, defaults[key])
        try:
            value = float(raw)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"lock.{key} must be a number, got {raw!r}") from e
        if value <= 0:
            raise ConfigurationError(f"lock.{key} must be positive, got {value}")
        values[key] = value
    return LockSettings(**values)


def configure_logging(config: Dict[str, Any]) -> None:
    """
    Install stderr (and optional file) logging handlers on the package logger.

    Stdout is reserved for hook output, so nothing is ever logged there.
    Calling this more than once replaces the previously installed handlers.
    """
    section = config.get("logging", {}) or {}
    level_name = str(section.get("level") or "WARNING").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ConfigurationError(f"Unknown logging level: {level_name}")

    package_logger = logging.getLogger("autoread")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    package_logger.addHandler(stream_handler)

    log_file = section.get("file")
    if log_file:
        log_path = _resolve_path(str(log_file), Path.cwd())
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
        except OSError as e:
            package_logger.warning(f"Cannot open log file {log_path}: {e}")
        else:
            file_handler.setFormatter(formatter)
            package_logger.addHandler(file_handler)

    package_logger.setLevel(level)
