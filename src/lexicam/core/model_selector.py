"""Local recognition model selection.

Picks the best available on-device model once per process, trying three
tiers in order:

1. System intelligence model: only on a capable OS (macOS 15.1+ with the
   system component present, or forced via LEXICAM_FORCE_SYSTEM_MODEL=1)
2. Bundled VLM: ``ObjectVLM.ts`` or ``ObjectVLM.pt`` in the resource dir
3. Built-in classifier: no model file, use the generic classifier

The first tier that loads wins and is cached until
``reset_cached_selection()``. Load errors are logged and fall through to
the next tier.

Usage:
    selector = ModelSelector(resource_dir=Path("./models"))
    selection = selector.preferred_model()
    if selection.model is None:
        ...  # use the generic classifier
"""

import importlib.util
import logging
import os
import platform
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Sequence

from ..constants import (
    BUNDLED_MODEL_RESOURCE,
    COMPILED_MODEL_EXTENSION,
    FORCE_SYSTEM_MODEL_ENV,
    RAW_MODEL_EXTENSION,
    SYSTEM_MODEL_COMPONENT,
    SYSTEM_MODEL_MIN_OS,
    SYSTEM_MODEL_PATH_ENV,
    SYSTEM_MODEL_PATHS,
    SYSTEM_MODEL_RESOURCE,
)
from ..exceptions import ModelLoadError

logger = logging.getLogger(__name__)


class ModelSource(str, Enum):
    """Tier that produced the selected model."""

    SYSTEM_INTELLIGENCE = "system_intelligence"
    BUNDLED_VLM = "bundled_vlm"
    BUILTIN_CLASSIFIER = "builtin_classifier"

    @property
    def display_name(self) -> str:
        return _SOURCE_INFO[self][0]

    @property
    def detail(self) -> str:
        return _SOURCE_INFO[self][1]


_SOURCE_INFO = {
    ModelSource.SYSTEM_INTELLIGENCE: ("System Intelligence", "System intelligence model"),
    ModelSource.BUNDLED_VLM: ("Object VLM", "Bundled TorchScript VLM"),
    ModelSource.BUILTIN_CLASSIFIER: ("Built-in Classifier", "Generic built-in classifier"),
}


@dataclass(frozen=True)
class ModelSelection:
    """Outcome of model selection.

    Attributes:
        source: Tier that won
        model: Loaded model, or None for the built-in classifier
        path: File the model was loaded from
    """

    source: ModelSource
    model: Any = None
    path: Optional[Path] = None

    def to_dict(self) -> dict:
        return {
            "source": self.source.value,
            "display_name": self.source.display_name,
            "detail": self.source.detail,
            "path": str(self.path) if self.path else None,
        }


class TorchScriptLoader:
    """Load TorchScript archives, compiling pickled modules first.

    A raw ``.pt`` file holds a pickled ``torch.nn.Module``; it is scripted
    and saved as ``.ts`` in the cache directory before loading. A ``.ts``
    file loads directly.

    Args:
        cache_dir: Where compiled archives are written
    """

    def __init__(self, cache_dir: Path):
        self.cache_dir = Path(cache_dir)

    def compile(self, path: Path) -> Path:
        try:
            import torch
        except ImportError as e:
            raise ModelLoadError("torch is required to compile models") from e

        self.cache_dir.mkdir(parents=True, exist_ok=True)
        compiled = self.cache_dir / f"{path.stem}{COMPILED_MODEL_EXTENSION}"
        try:
            module = torch.load(str(path), map_location="cpu", weights_only=False)
            torch.jit.script(module).save(str(compiled))
        except Exception as e:
            raise ModelLoadError(f"Failed to compile {path}: {e}") from e
        return compiled

    def load(self, path: Path) -> Any:
        try:
            import torch
        except ImportError as e:
            raise ModelLoadError("torch is required to load models") from e

        try:
            model = torch.jit.load(str(path), map_location="cpu")
        except Exception as e:
            raise ModelLoadError(f"Failed to load {path}: {e}") from e
        model.eval()
        return model


def _parse_version(text: str) -> tuple[int, ...]:
    parts = []
    for piece in text.split("."):
        if not piece.isdigit():
            break
        parts.append(int(piece))
    return tuple(parts)


def mac_os_version() -> tuple[int, ...]:
    """macOS version as a tuple, or () on other platforms."""
    if platform.system() != "Darwin":
        return ()
    return _parse_version(platform.mac_ver()[0])


def system_component_available() -> bool:
    return importlib.util.find_spec(SYSTEM_MODEL_COMPONENT) is not None


class ModelSelector:
    """Choose and cache the local recognition model.

    Args:
        resource_dir: Directory holding bundled model files
        loader: Object with ``compile(path)`` and ``load(path)``
        environ: Environment mapping (defaults to ``os.environ``)
        system_paths: Fixed system locations of the system model
        os_version: Callable returning the OS version tuple
        component_available: Callable detecting the system component
    """

    def __init__(
        self,
        resource_dir: Optional[Path] = None,
        *,
        loader: Any = None,
        environ: Optional[Mapping[str, str]] = None,
        system_paths: Sequence[str] = SYSTEM_MODEL_PATHS,
        os_version: Callable[[], tuple[int, ...]] = mac_os_version,
        component_available: Callable[[], bool] = system_component_available,
    ):
        self.resource_dir = Path(resource_dir) if resource_dir else None
        self._loader = loader
        self._environ = os.environ if environ is None else environ
        self._system_paths = tuple(system_paths)
        self._os_version = os_version
        self._component_available = component_available
        self._cached: Optional[ModelSelection] = None
        self.current_source = ModelSource.BUILTIN_CLASSIFIER

    def preferred_model(self) -> ModelSelection:
        """Return the cached selection, choosing one on first call."""
        if self._cached is not None:
            logger.debug(f"Using cached model: {self._cached.source.display_name}")
            return self._cached

        selection = (
            self._load_system_selection()
            or self._load_bundled_selection()
            or ModelSelection(ModelSource.BUILTIN_CLASSIFIER)
        )
        if selection.source is ModelSource.BUILTIN_CLASSIFIER:
            logger.info("Falling back to the built-in classifier")
        else:
            logger.info(f"Selected {selection.source.display_name} model from {selection.path}")

        self._cached = selection
        self.current_source = selection.source
        return selection

    def reset_cached_selection(self) -> None:
        """Forget the cached choice; the next request re-evaluates."""
        self._cached = None
        self.current_source = ModelSource.BUILTIN_CLASSIFIER

    # =========================================================================
    # TIERS
    # =========================================================================

    def supports_system_model(self) -> bool:
        """Capability probe for the system intelligence tier."""
        version = self._os_version()
        if not version or version < SYSTEM_MODEL_MIN_OS:
            return False
        if self._environ.get(FORCE_SYSTEM_MODEL_ENV) == "1":
            return True
        return self._component_available()

    def system_model_path(self) -> Optional[Path]:
        override = self._environ.get(SYSTEM_MODEL_PATH_ENV)
        if override and Path(override).exists():
            return Path(override)

        if self.resource_dir is not None:
            bundled = self.resource_dir / f"{SYSTEM_MODEL_RESOURCE}{COMPILED_MODEL_EXTENSION}"
            if bundled.exists():
                return bundled

        for candidate in self._system_paths:
            if Path(candidate).exists():
                return Path(candidate)
        return None

    def bundled_model_path(self) -> Optional[Path]:
        if self.resource_dir is None:
            return None
        for extension in (COMPILED_MODEL_EXTENSION, RAW_MODEL_EXTENSION):
            candidate = self.resource_dir / f"{BUNDLED_MODEL_RESOURCE}{extension}"
            if candidate.exists():
                return candidate
        return None

    def _load_system_selection(self) -> Optional[ModelSelection]:
        if not self.supports_system_model():
            logger.debug("System intelligence model not supported on this platform")
            return None

        path = self.system_model_path()
        if path is None:
            logger.info("System intelligence model not found")
            return None

        model = self._make_model(path)
        if model is None:
            logger.error(f"Failed to load system intelligence model at {path}")
            return None
        return ModelSelection(ModelSource.SYSTEM_INTELLIGENCE, model, path)

    def _load_bundled_selection(self) -> Optional[ModelSelection]:
        path = self.bundled_model_path()
        if path is None:
            logger.info(f"No bundled {BUNDLED_MODEL_RESOURCE} model in {self.resource_dir}")
            return None

        model = self._make_model(path)
        if model is None:
            logger.error(f"Failed to load bundled model at {path}")
            return None
        return ModelSelection(ModelSource.BUNDLED_VLM, model, path)

    def _make_model(self, path: Path) -> Any:
        if self._loader is None:
            logger.error("No model loader configured")
            return None
        try:
            if path.suffix == RAW_MODEL_EXTENSION:
                return self._loader.load(self._loader.compile(path))
            return self._loader.load(path)
        except Exception as e:
            logger.error(f"Model loading error: {e}")
            return None
