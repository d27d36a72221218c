"""Configuration file management.

Config is stored in TOML format at:
- macOS/Linux: ~/.config/lexicam/config.toml
- Windows: %APPDATA%\\lexicam\\config.toml

Usage:
    config = load_config()
    native = get_value(config, "general.native_language", "zh")
"""

import copy
import platform
from pathlib import Path
from typing import Any

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # type: ignore

import tomli_w

from ..constants import (
    DEFAULT_LEARNING_LANGUAGE,
    DEFAULT_NATIVE_LANGUAGE,
    DEFAULT_NETWORK_POLL_INTERVAL,
    DEFAULT_REQUEST_TIMEOUT,
    SUPPORTED_LANGUAGES,
    SyncBackend,
)
from ..exceptions import ConfigError


def get_config_dir() -> Path:
    """Get platform-appropriate config directory."""
    if platform.system() == "Windows":
        base = Path.home() / "AppData" / "Roaming"
    else:
        base = Path.home() / ".config"
    return base / "lexicam"


def get_config_path() -> Path:
    """Get path to config file."""
    return get_config_dir() / "config.toml"


DEFAULT_CONFIG = {
    "general": {
        "native_language": DEFAULT_NATIVE_LANGUAGE,
        "learning_language": DEFAULT_LEARNING_LANGUAGE,
    },
    "sync": {
        "backend": SyncBackend.NONE.value,
        "directory": "",
        "url": "",
        "api_key": "",
        "timeout": DEFAULT_REQUEST_TIMEOUT,
        "network_poll_interval": DEFAULT_NETWORK_POLL_INTERVAL,
    },
    # Consumed by the recognition client, not by the record store
    "recognition": {
        "base_url": "",
        "api_key": "",
        "model_name": "",
    },
    "models": {
        "resource_dir": "",
    },
}


def load_config() -> dict:
    """Load configuration from file.

    Creates default config if file doesn't exist.

    Returns:
        Dict with configuration values

    Raises:
        ConfigError: If config file is malformed
    """
    config_path = get_config_path()

    if not config_path.exists():
        save_config(DEFAULT_CONFIG)
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        raise ConfigError(f"Failed to load config: {e}")


def save_config(config: dict) -> None:
    """Save configuration to file.

    Args:
        config: Dict with configuration values
    """
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "wb") as f:
        tomli_w.dump(config, f)


def get_value(config: dict, key: str, default: Any = None) -> Any:
    """Get a nested config value using dot notation.

    Args:
        config: Config dict
        key: Dot-separated key (e.g., "sync.backend")
        default: Default value if key not found

    Returns:
        Config value or default

    Example:
        >>> config = {"general": {"native_language": "zh"}}
        >>> get_value(config, "general.native_language")
        'zh'
    """
    parts = key.split(".")
    current = config

    for part in parts:
        if isinstance(current, dict) and part in current:
            current = current[part]
        else:
            return default

    return current


def set_value(config: dict, key: str, value: Any) -> None:
    """Set a nested config value using dot notation.

    Args:
        config: Config dict (modified in place)
        key: Dot-separated key
        value: Value to set

    Example:
        >>> config = {}
        >>> set_value(config, "sync.backend", "directory")
        >>> config
        {'sync': {'backend': 'directory'}}
    """
    parts = key.split(".")
    current = config

    for part in parts[:-1]:
        if part not in current:
            current[part] = {}
        current = current[part]

    current[parts[-1]] = value


def validate_config(config: dict) -> None:
    """Check values the application depends on.

    Raises:
        ConfigError: If a language code or sync backend is unknown
    """
    for key in ("general.native_language", "general.learning_language"):
        code = get_value(config, key, get_value(DEFAULT_CONFIG, key))
        if code not in SUPPORTED_LANGUAGES:
            raise ConfigError(
                f"{key} must be one of {', '.join(SUPPORTED_LANGUAGES)} (got {code!r})"
            )

    backend = get_value(config, "sync.backend", SyncBackend.NONE.value)
    try:
        backend = SyncBackend(backend)
    except ValueError:
        choices = ", ".join(b.value for b in SyncBackend)
        raise ConfigError(f"sync.backend must be one of {choices} (got {backend!r})")

    if backend is SyncBackend.DIRECTORY and not get_value(config, "sync.directory"):
        raise ConfigError("sync.directory is required for the directory backend")
    if backend is SyncBackend.HTTP and not get_value(config, "sync.url"):
        raise ConfigError("sync.url is required for the http backend")

    timeout = get_value(config, "sync.timeout", DEFAULT_REQUEST_TIMEOUT)
    if not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ConfigError(f"sync.timeout must be a positive number (got {timeout!r})")
