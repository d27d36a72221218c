"""Tests for the JSON key-value store."""

import json

from lexicam.storage.defaults import KeyValueStore


class TestKeyValueStore:
    """Tests for KeyValueStore."""

    def test_missing_file(self, temp_dir):
        """Test a missing file starts empty."""
        store = KeyValueStore(temp_dir / "defaults.json")
        assert store.get("x") is None
        assert store.get_bool("x") is False

    def test_set_persists(self, temp_dir):
        """Test values survive reopening."""
        path = temp_dir / "nested" / "defaults.json"
        KeyValueStore(path).set("cloud_sync_enabled", True)
        assert KeyValueStore(path).get_bool("cloud_sync_enabled") is True

    def test_unicode(self, temp_dir):
        """Test non-ASCII text is stored as-is."""
        path = temp_dir / "defaults.json"
        KeyValueStore(path).set("word", "苹果")
        assert "苹果" in path.read_text(encoding="utf-8")

    def test_non_object_file(self, temp_dir):
        """Test a file holding a JSON array is ignored."""
        path = temp_dir / "defaults.json"
        path.write_text(json.dumps([1, 2]))
        assert KeyValueStore(path).get("0") is None

    def test_no_temp_files_left(self, temp_dir):
        """Test atomic writes clean up after themselves."""
        store = KeyValueStore(temp_dir / "defaults.json")
        store.set("a", 1)
        store.set("b", 2)
        assert [p.name for p in temp_dir.iterdir()] == ["defaults.json"]
