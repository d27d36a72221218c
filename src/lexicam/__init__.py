"""lexicam - Learn vocabulary from the objects around you.

A local-first store of learning records (a recognized object plus its
native/learning language translations) with cloud reconciliation and
on-device recognition model selection.

Features:
- Record store with repeat-capture deduplication and JSON persistence
- Newest-wins merge against a remote record service
- Sync status monitoring (network reachability, account state)
- Three-tier local model fallback

Example:
    >>> from lexicam import RecordStore, KeyValueStore
    >>> store = RecordStore(KeyValueStore("./defaults.json"))
    >>> store.add_record("apple", "苹果", "Apple", "zh", "en")
"""

__version__ = "0.1.0"

from lexicam.exceptions import (
    ConfigError,
    GatewayError,
    LexicamError,
    ModelLoadError,
    SyncError,
    SyncUnavailableError,
)
from lexicam.models import LearningRecord
from lexicam.storage.defaults import KeyValueStore
from lexicam.storage.records import RecordStore
from lexicam.sync.manager import CloudSyncManager
from lexicam.sync.monitor import SyncStatusMonitor
from lexicam.sync.status import AccountState, SyncPhase, SyncState, SyncStatus
from lexicam.core.model_selector import ModelSelection, ModelSelector, ModelSource

__all__ = [
    "LearningRecord",
    "KeyValueStore",
    "RecordStore",
    "CloudSyncManager",
    "SyncStatusMonitor",
    "AccountState",
    "SyncPhase",
    "SyncState",
    "SyncStatus",
    "ModelSelection",
    "ModelSelector",
    "ModelSource",
    "LexicamError",
    "ConfigError",
    "SyncError",
    "SyncUnavailableError",
    "GatewayError",
    "ModelLoadError",
]
