"""Tests for service wiring and data paths."""

from types import SimpleNamespace
from unittest.mock import patch

import pytest

from lexicam.app_config import AppConfig
from lexicam.exceptions import ConfigError
from lexicam.services import build_gateway, build_services
from lexicam.sync.gateway import DirectoryRecordGateway
from lexicam.sync.http_gateway import HttpRecordGateway


class TestAppConfig:
    """Tests for AppConfig paths."""

    def test_layout(self, temp_dir):
        """Test directory layout under the base dir."""
        paths = AppConfig(base_dir=temp_dir)
        assert paths.defaults_file == temp_dir / "data" / "defaults.json"
        assert paths.models_dir == temp_dir / "models"
        assert paths.cache_dir.is_dir()

    def test_default_base(self):
        """Test the default base dir is in the home directory."""
        assert AppConfig().base_dir.name == ".lexicam"


class TestBuildGateway:
    """Tests for build_gateway()."""

    def test_none(self):
        """Test no backend means no gateway."""
        assert build_gateway({"sync": {"backend": "none"}}) is None

    def test_directory(self, temp_dir):
        """Test the directory backend."""
        gateway = build_gateway({"sync": {"backend": "directory", "directory": str(temp_dir)}})
        assert isinstance(gateway, DirectoryRecordGateway)
        assert gateway.directory == temp_dir

    def test_http(self):
        """Test the http backend."""
        gateway = build_gateway({
            "sync": {"backend": "http", "url": "https://api.example.com", "api_key": "k", "timeout": 5}
        })
        try:
            assert isinstance(gateway, HttpRecordGateway)
        finally:
            gateway.close()

    def test_invalid(self):
        """Test invalid config raises ConfigError."""
        with pytest.raises(ConfigError):
            build_gateway({"sync": {"backend": "http"}})

    def test_http_requires_https(self):
        """Test a cleartext remote URL is a configuration error."""
        with pytest.raises(ConfigError, match="HTTPS"):
            build_gateway({"sync": {"backend": "http", "url": "http://example.com"}})


class TestBuildServices:
    """Tests for build_services()."""

    def test_end_to_end(self, temp_dir):
        """Test a full add/sync cycle through real threads."""
        cloud = temp_dir / "cloud"
        cloud.mkdir()
        config = {"sync": {"backend": "directory", "directory": str(cloud)}}
        stats = {"eth0": SimpleNamespace(isup=True)}

        with patch("lexicam.sync.reachability.psutil.net_if_stats", return_value=stats):
            services = build_services(config, AppConfig(base_dir=temp_dir / "home"))
            try:
                services.store.set_cloud_sync_enabled(True)
                assert services.settle(timeout=10)
                record = services.store.add_record("apple", "苹果", "Apple", "zh", "en")
                assert services.settle(timeout=10)

                assert (cloud / f"{record.id}.json").exists()
                assert services.monitor.status.sync_state.description == "Synced"
            finally:
                services.close()
