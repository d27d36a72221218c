"""Local-first learning record store.

The store owns the authoritative list of learning records, newest first.
Every mutation is applied locally, persisted as one JSON array in the
key-value store, and then mirrored to the remote gateway when cloud sync
is enabled. Remote outcomes never roll back or block the local change.

Remote records are absorbed by ``merge_remote_records``: per id, the copy
with the newer ``created_at`` wins. Absorbing a pull never pushes.

Example:
    >>> store = RecordStore(KeyValueStore("./defaults.json"), sync_manager)
    >>> store.add_record("apple", "苹果", "Apple", "zh", "en")
    >>> store.total_entries
    1
"""

import logging
import uuid
from concurrent.futures import Future
from datetime import datetime
from typing import Callable, Iterable, Optional

from ..constants import (
    CLOUD_SYNC_PREFERENCE_KEY,
    MERGE_WINDOW_SECONDS,
    RECENT_RECORDS_LIMIT,
    RECORDS_STORAGE_KEY,
)
from ..core.events import Observable
from ..models import LearningRecord, normalize_key, sort_newest_first, utc_now
from ..sync.manager import CloudSyncManager
from .defaults import KeyValueStore

logger = logging.getLogger(__name__)


class RecordStore(Observable):
    """Single source of truth for the user's learning records.

    Listeners registered with ``subscribe`` receive a tuple of records
    after every change.

    Args:
        defaults: Key-value store holding records and the sync preference
        sync: Cloud sync manager, or None for local-only operation
        clock: Source of capture timestamps
        merge_window: Seconds within which a repeat of the newest record
            refreshes it instead of adding a new one
    """

    def __init__(
        self,
        defaults: KeyValueStore,
        sync: Optional[CloudSyncManager] = None,
        *,
        clock: Callable[[], datetime] = utc_now,
        merge_window: float = MERGE_WINDOW_SECONDS,
    ):
        super().__init__()
        self._defaults = defaults
        self._sync = sync
        self._clock = clock
        self._merge_window = merge_window
        self._records: list[LearningRecord] = self._load_records()

        if self._sync is not None:
            enabled = self.is_cloud_sync_enabled
            self._sync.monitor.configure(
                enabled, on_ready=self._fetch_remote_records if enabled else None
            )

    # =========================================================================
    # RETRIEVAL
    # =========================================================================

    @property
    def records(self) -> tuple[LearningRecord, ...]:
        """Records, newest first."""
        return tuple(self._records)

    @property
    def is_cloud_sync_enabled(self) -> bool:
        return self._defaults.get_bool(CLOUD_SYNC_PREFERENCE_KEY)

    @property
    def total_entries(self) -> int:
        return len(self._records)

    @property
    def unique_items(self) -> int:
        """Distinct object/language-pair combinations."""
        return len({r.normalized_key for r in self._records})

    def recent_records(self, limit: int = RECENT_RECORDS_LIMIT) -> list[LearningRecord]:
        return self._records[:limit]

    def match_id(self, prefix: str) -> list[LearningRecord]:
        """Records whose id equals or starts with ``prefix``."""
        prefix = prefix.strip().lower()
        if not prefix:
            return []
        try:
            exact = uuid.UUID(prefix)
        except ValueError:
            exact = None
        if exact is not None:
            return [r for r in self._records if r.id == exact]
        return [r for r in self._records if str(r.id).startswith(prefix)]

    # =========================================================================
    # MUTATION
    # =========================================================================

    def add_record(
        self,
        object_name: str,
        native_translation: str,
        learning_translation: str,
        native_language_code: str,
        learning_language_code: str,
    ) -> Optional[LearningRecord]:
        """Record a recognized object.

        An empty or whitespace-only name is dropped. A repeat of the newest
        record (same object and language pair) within the merge window
        refreshes that record in place, keeping its id and object name.

        Returns:
            The stored record, or None if the name was empty
        """
        trimmed = object_name.strip()
        if not trimmed:
            logger.debug("Dropping record with empty object name")
            return None

        now = self._clock()
        key = normalize_key(trimmed, native_language_code, learning_language_code)

        if self._should_merge_with_latest(key, now):
            stored = self._records[0].refreshed(
                native_translation=native_translation,
                learning_translation=learning_translation,
                native_language_code=native_language_code,
                learning_language_code=learning_language_code,
                created_at=now,
            )
            self._records[0] = stored
            logger.debug(f"Refreshed record {stored.id} ({stored.object_name})")
        else:
            stored = LearningRecord(
                object_name=trimmed,
                native_translation=native_translation,
                learning_translation=learning_translation,
                native_language_code=native_language_code,
                learning_language_code=learning_language_code,
                created_at=now,
            )
            self._records.insert(0, stored)
            logger.debug(f"Added record {stored.id} ({stored.object_name})")

        # Clock skew against merged remote records can put "now" behind the head
        self._records = sort_newest_first(self._records)
        self._commit(push=True)
        return stored

    def remove(self, record: LearningRecord) -> bool:
        """Remove the first record equal to ``record``.

        Returns:
            True if a record was removed
        """
        try:
            index = self._records.index(record)
        except ValueError:
            return False

        del self._records[index]
        self._commit(push=False)
        if self.is_cloud_sync_enabled and self._sync is not None:
            self._sync.delete([record.id])
        return True

    def set_cloud_sync_enabled(self, enabled: bool) -> None:
        """Turn cloud sync on or off.

        Turning it on pulls and merges remote records, then pushes the full
        local list. Turning it off leaves remote data in place.
        """
        if self.is_cloud_sync_enabled == enabled:
            return

        try:
            self._defaults.set(CLOUD_SYNC_PREFERENCE_KEY, enabled)
        except OSError as e:
            logger.warning(f"Failed to persist sync preference: {e}")

        if self._sync is None:
            return
        if enabled:
            self._sync.monitor.configure(True, on_ready=self._pull_then_push)
        else:
            self._sync.monitor.configure(False)

    def sync_with_cloud(self) -> Optional[Future]:
        """Push the full record list now. No-op unless sync is enabled."""
        if not self.is_cloud_sync_enabled or self._sync is None:
            return None
        return self._sync.sync(list(self._records))

    def merge_remote_records(self, remote: Iterable[LearningRecord]) -> None:
        """Absorb remote records; the newer ``created_at`` wins per id.

        The result is persisted locally but not pushed back.
        """
        remote = list(remote)
        if not remote:
            return

        combined = {r.id: r for r in self._records}
        for record in remote:
            existing = combined.get(record.id)
            if existing is None or record.created_at > existing.created_at:
                combined[record.id] = record

        self._records = sort_newest_first(combined.values())
        logger.debug(f"Merged {len(remote)} remote records, {len(self._records)} total")
        self._commit(push=False)

    # =========================================================================
    # INTERNAL
    # =========================================================================

    def _should_merge_with_latest(self, key: str, now: datetime) -> bool:
        if not self._records:
            return False
        latest = self._records[0]
        if latest.normalized_key != key:
            return False
        return (now - latest.created_at).total_seconds() < self._merge_window

    def _pull_then_push(self) -> None:
        self._fetch_remote_records(then=self.sync_with_cloud)

    def _fetch_remote_records(self, then: Optional[Callable[[], object]] = None) -> None:
        if self._sync is None:
            return

        def completion(records, error) -> None:
            if error is None and records:
                self.merge_remote_records(records)
            elif error is not None:
                logger.info(f"Remote fetch skipped: {error}")
            if then is not None:
                then()

        self._sync.fetch_all(completion)

    def _commit(self, push: bool) -> None:
        self._persist()
        self._emit(self.records)
        if push and self.is_cloud_sync_enabled and self._sync is not None:
            self._sync.sync(list(self._records), explicit=False)

    def _persist(self) -> None:
        payload = [r.to_dict() for r in self._records]
        try:
            self._defaults.set(RECORDS_STORAGE_KEY, payload)
        except (OSError, TypeError, ValueError) as e:
            # Best effort: the in-memory list stays usable for the session
            logger.warning(f"Failed to persist records: {e}")

    def _load_records(self) -> list[LearningRecord]:
        raw = self._defaults.get(RECORDS_STORAGE_KEY)
        if raw is None:
            return []
        try:
            records = [LearningRecord.from_dict(item) for item in raw]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Discarding unreadable stored records: {e}")
            return []
        return sort_newest_first(records)
