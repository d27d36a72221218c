"""Application-wide constants.

Centralizes magic numbers and strings to avoid hardcoding throughout the codebase.
"""

from enum import Enum
from typing import Final

# =============================================================================
# VERSION AND METADATA
# =============================================================================

APP_NAME: Final[str] = "lexicam"

# =============================================================================
# RECORD STORE
# =============================================================================

# Repeat recognitions of the newest record inside this window refresh it
MERGE_WINDOW_SECONDS: Final[float] = 180.0

RECORDS_STORAGE_KEY: Final[str] = "learning_records_v1"
CLOUD_SYNC_PREFERENCE_KEY: Final[str] = "cloud_sync_enabled"

RECENT_RECORDS_LIMIT: Final[int] = 5

# =============================================================================
# LANGUAGES
# =============================================================================

DEFAULT_NATIVE_LANGUAGE: Final[str] = "zh"
DEFAULT_LEARNING_LANGUAGE: Final[str] = "en"

SUPPORTED_LANGUAGES: Final[dict[str, str]] = {
    "en": "English",
    "zh": "中文",
    "es": "Español",
    "fr": "Français",
    "ja": "日本語",
    "ko": "한국어",
}

# =============================================================================
# SYNC
# =============================================================================

DEFAULT_REQUEST_TIMEOUT: Final[float] = 30.0  # seconds
DEFAULT_NETWORK_POLL_INTERVAL: Final[float] = 5.0  # seconds
DEFAULT_SETTLE_TIMEOUT: Final[float] = 60.0  # seconds


class SyncBackend(str, Enum):
    """Remote record backends selectable in config."""

    NONE = "none"
    DIRECTORY = "directory"
    HTTP = "http"


# =============================================================================
# MODEL SELECTION
# =============================================================================

FORCE_SYSTEM_MODEL_ENV: Final[str] = "LEXICAM_FORCE_SYSTEM_MODEL"
SYSTEM_MODEL_PATH_ENV: Final[str] = "LEXICAM_SYSTEM_MODEL_PATH"

# Minimum macOS release shipping the system intelligence stack
SYSTEM_MODEL_MIN_OS: Final[tuple[int, ...]] = (15, 1)

# Importable module that signals the system intelligence component is present
SYSTEM_MODEL_COMPONENT: Final[str] = "CoreML"

SYSTEM_MODEL_RESOURCE: Final[str] = "SystemObjectClassifier"
BUNDLED_MODEL_RESOURCE: Final[str] = "ObjectVLM"

COMPILED_MODEL_EXTENSION: Final[str] = ".ts"
RAW_MODEL_EXTENSION: Final[str] = ".pt"

SYSTEM_MODEL_PATHS: Final[tuple[str, ...]] = (
    "/System/Library/PrivateFrameworks/SystemIntelligence.framework/Models/ObjectUnderstanding.ts",
    "/System/Library/CoreServices/SystemIntelligence/ObjectUnderstanding.ts",
)

# =============================================================================
# ERROR CODES
# =============================================================================

class ExitCode(int, Enum):
    """CLI exit codes."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    NOT_FOUND = 2
    INVALID_INPUT = 3
    SYNC_ERROR = 4
    KEYBOARD_INTERRUPT = 130
