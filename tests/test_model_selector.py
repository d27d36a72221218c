"""Tests for local model selection."""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from lexicam.core.model_selector import (
    ModelSelection,
    ModelSelector,
    ModelSource,
    TorchScriptLoader,
    _parse_version,
)
from lexicam.exceptions import ModelLoadError


class FakeLoader:
    """Loader that records calls and can fail per path."""

    def __init__(self, failing=()):
        self.failing = {Path(p).name for p in failing}
        self.loaded: list[Path] = []
        self.compiled: list[Path] = []

    def compile(self, path):
        self.compiled.append(path)
        return path.with_suffix(".ts")

    def load(self, path):
        self.loaded.append(path)
        if path.name in self.failing:
            raise ModelLoadError(f"corrupt {path.name}")
        return f"model:{path.name}"


@pytest.fixture
def resources(temp_dir):
    return temp_dir


def make_selector(resources, loader=None, environ=None, os_version=(15, 2), component=True, system_paths=()):
    return ModelSelector(
        resources,
        loader=loader or FakeLoader(),
        environ=environ or {},
        system_paths=system_paths,
        os_version=lambda: os_version,
        component_available=lambda: component,
    )


class TestCapabilityProbe:
    """Tests for supports_system_model()."""

    def test_capable(self, resources):
        """Test new OS with the system component is capable."""
        assert make_selector(resources).supports_system_model() is True

    def test_old_os(self, resources):
        """Test older OS versions are never capable."""
        selector = make_selector(resources, os_version=(15, 0), environ={"LEXICAM_FORCE_SYSTEM_MODEL": "1"})
        assert selector.supports_system_model() is False

    def test_not_macos(self, resources):
        """Test other platforms are not capable."""
        assert make_selector(resources, os_version=()).supports_system_model() is False

    def test_missing_component(self, resources):
        """Test a capable OS without the component is not capable."""
        assert make_selector(resources, component=False).supports_system_model() is False

    def test_forced(self, resources):
        """Test the force variable overrides component detection."""
        selector = make_selector(resources, component=False, environ={"LEXICAM_FORCE_SYSTEM_MODEL": "1"})
        assert selector.supports_system_model() is True

    @pytest.mark.parametrize("text,expected", [("15.1", (15, 1)), ("14.6.1", (14, 6, 1)), ("", ()), ("16.0b", (16,))])
    def test_parse_version(self, text, expected):
        """Test version string parsing."""
        assert _parse_version(text) == expected


class TestPreferredModel:
    """Tests for the three-tier selection."""

    def test_system_tier_first(self, resources):
        """Test the system model wins when capable and present."""
        (resources / "SystemObjectClassifier.ts").touch()
        (resources / "ObjectVLM.ts").touch()

        selection = make_selector(resources).preferred_model()

        assert selection.source is ModelSource.SYSTEM_INTELLIGENCE
        assert selection.model == "model:SystemObjectClassifier.ts"

    def test_path_override(self, resources, temp_dir):
        """Test the system model path override is honored."""
        override = temp_dir / "custom.ts"
        override.touch()
        selector = make_selector(resources, environ={"LEXICAM_SYSTEM_MODEL_PATH": str(override)})
        assert selector.preferred_model().path == override

    def test_system_path_list(self, resources, temp_dir):
        """Test fixed system locations are searched."""
        system_model = temp_dir / "system" / "model.ts"
        system_model.parent.mkdir()
        system_model.touch()
        selector = make_selector(resources, system_paths=[str(temp_dir / "nope.ts"), str(system_model)])
        assert selector.preferred_model().path == system_model

    def test_bundled_when_not_capable(self, resources):
        """Test an incapable OS skips to the bundled model."""
        (resources / "SystemObjectClassifier.ts").touch()
        (resources / "ObjectVLM.ts").touch()
        loader = FakeLoader()

        selection = make_selector(resources, loader=loader, os_version=(14, 6)).preferred_model()

        assert selection.source is ModelSource.BUNDLED_VLM
        assert [p.name for p in loader.loaded] == ["ObjectVLM.ts"]

    def test_system_load_failure_falls_through(self, resources):
        """Test a failing system model falls through to the bundled one."""
        (resources / "SystemObjectClassifier.ts").touch()
        (resources / "ObjectVLM.ts").touch()
        loader = FakeLoader(failing=["SystemObjectClassifier.ts"])

        selection = make_selector(resources, loader=loader).preferred_model()

        assert selection.source is ModelSource.BUNDLED_VLM

    def test_raw_model_compiled_first(self, resources):
        """Test a raw .pt bundled model is compiled before loading."""
        (resources / "ObjectVLM.pt").touch()
        loader = FakeLoader()

        selection = make_selector(resources, loader=loader, component=False).preferred_model()

        assert selection.source is ModelSource.BUNDLED_VLM
        assert selection.path == resources / "ObjectVLM.pt"
        assert [p.name for p in loader.compiled] == ["ObjectVLM.pt"]
        assert [p.name for p in loader.loaded] == ["ObjectVLM.ts"]

    def test_compiled_preferred_over_raw(self, resources):
        """Test ObjectVLM.ts is used before ObjectVLM.pt."""
        (resources / "ObjectVLM.ts").touch()
        (resources / "ObjectVLM.pt").touch()
        loader = FakeLoader()

        make_selector(resources, loader=loader, component=False).preferred_model()

        assert loader.compiled == []

    def test_builtin_fallback(self, resources):
        """Test no model files yields the built-in classifier."""
        selection = make_selector(resources).preferred_model()
        assert selection == ModelSelection(ModelSource.BUILTIN_CLASSIFIER)
        assert selection.model is None

    def test_every_tier_fails(self, resources):
        """Test all load failures end at the built-in classifier."""
        (resources / "SystemObjectClassifier.ts").touch()
        (resources / "ObjectVLM.ts").touch()
        loader = FakeLoader(failing=["SystemObjectClassifier.ts", "ObjectVLM.ts"])

        selection = make_selector(resources, loader=loader).preferred_model()

        assert selection.source is ModelSource.BUILTIN_CLASSIFIER
        assert len(loader.loaded) == 2

    def test_no_loader(self, resources):
        """Test a selector without a loader uses the built-in classifier."""
        (resources / "ObjectVLM.ts").touch()
        selector = ModelSelector(resources, os_version=lambda: (), environ={})
        assert selector.preferred_model().source is ModelSource.BUILTIN_CLASSIFIER


class TestCaching:
    """Tests for the cached selection."""

    def test_cached(self, resources):
        """Test selection runs once until reset."""
        (resources / "ObjectVLM.ts").touch()
        loader = FakeLoader()
        selector = make_selector(resources, loader=loader, component=False)

        first = selector.preferred_model()
        second = selector.preferred_model()

        assert first is second
        assert len(loader.loaded) == 1
        assert selector.current_source is ModelSource.BUNDLED_VLM

    def test_failures_not_retried(self, resources):
        """Test failed tiers are not re-attempted on later calls."""
        (resources / "SystemObjectClassifier.ts").touch()
        loader = FakeLoader(failing=["SystemObjectClassifier.ts"])
        selector = make_selector(resources, loader=loader)

        selector.preferred_model()
        selector.preferred_model()

        assert len(loader.loaded) == 1

    def test_reset(self, resources):
        """Test reset forces re-evaluation."""
        selector = make_selector(resources, component=False)
        assert selector.preferred_model().source is ModelSource.BUILTIN_CLASSIFIER

        (resources / "ObjectVLM.ts").touch()
        assert selector.preferred_model().source is ModelSource.BUILTIN_CLASSIFIER

        selector.reset_cached_selection()
        assert selector.current_source is ModelSource.BUILTIN_CLASSIFIER
        assert selector.preferred_model().source is ModelSource.BUNDLED_VLM


class TestTorchScriptLoader:
    """Tests for TorchScriptLoader with torch mocked out."""

    def test_load(self, temp_dir, monkeypatch):
        """Test load() returns an eval-mode TorchScript module."""
        torch = MagicMock()
        monkeypatch.setitem(sys.modules, "torch", torch)

        model = TorchScriptLoader(temp_dir).load(temp_dir / "ObjectVLM.ts")

        torch.jit.load.assert_called_once_with(str(temp_dir / "ObjectVLM.ts"), map_location="cpu")
        model.eval.assert_called_once_with()

    def test_compile(self, temp_dir, monkeypatch):
        """Test compile() scripts the module into the cache."""
        torch = MagicMock()
        monkeypatch.setitem(sys.modules, "torch", torch)
        cache = temp_dir / "cache"

        compiled = TorchScriptLoader(cache).compile(temp_dir / "ObjectVLM.pt")

        assert compiled == cache / "ObjectVLM.ts"
        torch.jit.script.return_value.save.assert_called_once_with(str(compiled))

    def test_load_error(self, temp_dir, monkeypatch):
        """Test loader errors become ModelLoadError."""
        torch = MagicMock()
        torch.jit.load.side_effect = RuntimeError("bad archive")
        monkeypatch.setitem(sys.modules, "torch", torch)

        with pytest.raises(ModelLoadError, match="bad archive"):
            TorchScriptLoader(temp_dir).load(temp_dir / "x.ts")
