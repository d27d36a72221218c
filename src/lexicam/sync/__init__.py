"""Remote record sync: gateways, status monitoring, push/pull."""

from .gateway import DirectoryRecordGateway, RecordGateway, record_from_wire, record_to_wire
from .manager import CloudSyncManager
from .monitor import SyncStatusMonitor
from .status import AccountState, SyncPhase, SyncState, SyncStatus

__all__ = [
    "RecordGateway",
    "DirectoryRecordGateway",
    "record_from_wire",
    "record_to_wire",
    "CloudSyncManager",
    "SyncStatusMonitor",
    "AccountState",
    "SyncPhase",
    "SyncState",
    "SyncStatus",
]
