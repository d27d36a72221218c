"""Utility modules for lexicam."""

from .config import get_config_path, get_value, load_config, save_config, set_value

__all__ = [
    "get_config_path",
    "get_value",
    "load_config",
    "save_config",
    "set_value",
]
