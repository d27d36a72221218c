"""Per-user data locations.

Example:
    >>> from lexicam.app_config import AppConfig
    >>> paths = AppConfig()
    >>> paths.defaults_file
    # ~/.lexicam/data/defaults.json
"""

from pathlib import Path

from .constants import APP_NAME


class AppConfig:
    """Data directory layout.

    - ~/.lexicam/data/defaults.json - Records and preferences
    - ~/.lexicam/cache/ - Compiled models
    - ~/.lexicam/models/ - Default bundled model directory

    Args:
        app_name: App identifier used for the directory name
        base_dir: Override base directory (default: ~/.{app_name})
    """

    def __init__(
        self,
        app_name: str = APP_NAME,
        base_dir: Path | None = None,
    ):
        self.app_name = app_name
        self._base_dir = Path(base_dir) if base_dir else Path.home() / f".{app_name}"
        self._data_dir = self._base_dir / "data"

    @property
    def base_dir(self) -> Path:
        """Base directory for all app data."""
        return self._base_dir

    @property
    def data_dir(self) -> Path:
        """Data directory (created on access)."""
        self._data_dir.mkdir(parents=True, exist_ok=True)
        return self._data_dir

    @property
    def defaults_file(self) -> Path:
        """Key-value store holding records and preferences."""
        return self.data_dir / "defaults.json"

    @property
    def models_dir(self) -> Path:
        """Default location of bundled model files."""
        return self._base_dir / "models"

    @property
    def cache_dir(self) -> Path:
        """Directory for cached data."""
        path = self._base_dir / "cache"
        path.mkdir(parents=True, exist_ok=True)
        return path

    def __repr__(self) -> str:
        return f"AppConfig(app_name={self.app_name!r}, base_dir={self._base_dir})"
