"""Pytest configuration and fixtures."""

import tempfile
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from click.testing import CliRunner

from lexicam.core.dispatch import ImmediateContext, InlineWorker
from lexicam.exceptions import GatewayError
from lexicam.models import LearningRecord
from lexicam.storage.defaults import KeyValueStore
from lexicam.storage.records import RecordStore
from lexicam.sync.gateway import RecordGateway
from lexicam.sync.manager import CloudSyncManager
from lexicam.sync.monitor import SyncStatusMonitor
from lexicam.sync.status import AccountState

T0 = datetime(2025, 10, 24, 9, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class MemoryGateway(RecordGateway):
    """In-memory record gateway that logs every call."""

    def __init__(self, account: AccountState = AccountState.AVAILABLE):
        self.account = account
        self.records: dict[uuid.UUID, LearningRecord] = {}
        self.calls: list[str] = []
        self.fail_save = False
        self.fail_delete = False
        self.fail_fetch = False
        self.fail_account = False

    def account_status(self) -> AccountState:
        self.calls.append("account")
        if self.fail_account:
            raise GatewayError("account service down")
        return self.account

    def save(self, records):
        self.calls.append("save")
        if self.fail_save:
            raise GatewayError("quota exceeded")
        for record in records:
            self.records[record.id] = record

    def delete(self, ids):
        self.calls.append("delete")
        if self.fail_delete:
            raise GatewayError("delete refused")
        for record_id in ids:
            self.records.pop(record_id, None)

    def fetch_all(self):
        self.calls.append("fetch")
        if self.fail_fetch:
            raise GatewayError("fetch refused")
        return list(self.records.values())

    def count(self, name: str) -> int:
        return self.calls.count(name)


def make_record(name: str = "apple", at: datetime = T0, record_id: uuid.UUID | None = None, **kwargs) -> LearningRecord:
    """Build a record with sensible defaults."""
    fields = {
        "object_name": name,
        "native_translation": kwargs.pop("native_translation", f"{name}-zh"),
        "learning_translation": kwargs.pop("learning_translation", name.title()),
        "native_language_code": kwargs.pop("native_language_code", "zh"),
        "learning_language_code": kwargs.pop("learning_language_code", "en"),
        "created_at": at,
    }
    if record_id is not None:
        fields["id"] = record_id
    return LearningRecord(**fields)


@pytest.fixture
def runner():
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def defaults(temp_dir):
    """Key-value store in a temporary directory."""
    return KeyValueStore(temp_dir / "defaults.json")


@pytest.fixture
def gateway():
    return MemoryGateway()


@pytest.fixture
def monitor(gateway):
    """Monitor running everything inline."""
    return SyncStatusMonitor(gateway, main=ImmediateContext(), worker=InlineWorker())


@pytest.fixture
def sync_manager(monitor, gateway, clock):
    return CloudSyncManager(
        monitor, gateway, main=ImmediateContext(), worker=InlineWorker(), clock=clock
    )


@pytest.fixture
def store(defaults, sync_manager, clock):
    """Record store wired to an in-memory gateway, sync disabled."""
    return RecordStore(defaults, sync_manager, clock=clock)


@pytest.fixture
def synced_store(store):
    """Record store with cloud sync turned on."""
    store.set_cloud_sync_enabled(True)
    return store
