"""Cloud sync manager.

Mirrors local record mutations to the remote gateway. Gateway calls run on
a background worker; their outcome is written into the monitor's
``SyncStatus`` on the main context. Nothing here raises to the caller:
every failure ends up in the status for display.

Calls return a ``concurrent.futures.Future`` for the remote work so callers
can wait on it or cancel it while it is still queued. Overlapping calls are
not coalesced; the last completion to arrive wins.
"""

import logging
import uuid
from concurrent.futures import Future
from datetime import datetime
from typing import Callable, Optional

from ..core.dispatch import ImmediateContext, InlineWorker
from ..exceptions import SyncUnavailableError
from ..models import LearningRecord, utc_now
from .gateway import RecordGateway
from .monitor import SyncStatusMonitor
from .status import CANNOT_SYNC_MESSAGE

logger = logging.getLogger(__name__)

# completion(records, error): exactly one of the two is set
FetchCompletion = Callable[[Optional[list[LearningRecord]], Optional[BaseException]], None]


def _completed(result=None, exception: Optional[BaseException] = None) -> Future:
    future: Future = Future()
    future.set_running_or_notify_cancel()
    if exception is not None:
        future.set_exception(exception)
    else:
        future.set_result(result)
    return future


class CloudSyncManager:
    """Push, delete and fetch learning records remotely.

    Args:
        monitor: Status monitor consulted before every remote call
        gateway: Remote record service, or None for local-only operation
        main: Main context that applies status changes and completions
        worker: Background worker for gateway calls
        clock: Source of ``last_sync_date`` timestamps
    """

    def __init__(
        self,
        monitor: SyncStatusMonitor,
        gateway: Optional[RecordGateway] = None,
        *,
        main=None,
        worker=None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._monitor = monitor
        self._gateway = gateway
        self._main = main or ImmediateContext()
        self._worker = worker or InlineWorker()
        self._clock = clock

    @property
    def monitor(self) -> SyncStatusMonitor:
        return self._monitor

    @property
    def remote_enabled(self) -> bool:
        return self._gateway is not None

    def sync(self, records: list[LearningRecord], explicit: bool = True) -> Optional[Future]:
        """Upload the full record list.

        Skipped when sync is disabled. When the preconditions don't hold
        nothing is sent; an explicit request also records a "cannot sync"
        failure, while the push that follows a local mutation is skipped
        silently.
        """
        status = self._monitor.status
        if not status.is_enabled or self._gateway is None:
            return None
        if not status.can_sync:
            if not explicit:
                logger.debug("Skipping push: sync preconditions don't hold")
                return None
            logger.info("Sync requested but preconditions don't hold")
            self._monitor.mark_failure(CANNOT_SYNC_MESSAGE)
            return None

        self._monitor.mark_syncing()
        gateway = self._gateway
        snapshot = list(records)

        def push() -> None:
            try:
                gateway.save(snapshot)
            except Exception as e:
                logger.warning(f"Record upload failed: {e}")
                self._main.call(self._monitor.mark_failure, str(e), f"Cloud sync failed: {e}")
                raise
            logger.debug(f"Uploaded {len(snapshot)} records")
            self._main.call(self._monitor.mark_success, self._clock())

        return self._worker.submit(push)

    def delete(self, ids: list[uuid.UUID]) -> Optional[Future]:
        """Delete records remotely. Silently skipped when sync can't run."""
        if not self._monitor.status.is_enabled or self._gateway is None:
            return None
        if not self._monitor.can_sync:
            return None

        gateway = self._gateway
        targets = list(ids)

        def remove() -> None:
            try:
                gateway.delete(targets)
            except Exception as e:
                logger.warning(f"Remote delete failed: {e}")
                self._main.call(
                    self._monitor.mark_failure, str(e), f"Failed to delete cloud records: {e}"
                )
                raise
            self._main.call(self._monitor.mark_success, self._clock(), False)

        return self._worker.submit(remove)

    def fetch_all(self, completion: FetchCompletion) -> Future:
        """Fetch every remote record.

        ``completion`` runs on the main context. It receives an empty list
        when sync is disabled, and a ``SyncUnavailableError`` when the
        preconditions don't hold.
        """
        status = self._monitor.status
        if not status.is_enabled or self._gateway is None:
            self._main.call(completion, [], None)
            return _completed([])
        if not status.can_sync:
            error = SyncUnavailableError("Cannot sync right now.")
            self._main.call(completion, None, error)
            return _completed(exception=error)

        gateway = self._gateway

        def fetch() -> list[LearningRecord]:
            try:
                records = gateway.fetch_all()
            except Exception as e:
                logger.warning(f"Record fetch failed: {e}")
                self._main.call(self._fetch_failed, e, completion)
                raise
            logger.debug(f"Fetched {len(records)} remote records")
            self._main.call(self._fetch_succeeded, records, completion)
            return records

        return self._worker.submit(fetch)

    def _fetch_succeeded(self, records: list[LearningRecord], completion: FetchCompletion) -> None:
        self._monitor.record_error(None)
        completion(records, None)

    def _fetch_failed(self, error: BaseException, completion: FetchCompletion) -> None:
        self._monitor.record_error(f"Failed to fetch cloud records: {error}")
        completion(None, error)
