"""Sync status monitor.

Owns the process-wide ``SyncStatus``: network reachability from the
reachability watcher, remote account state from the gateway, and the
outcome of the latest remote operation. Everything that changes the status
runs on the main context; the account query and the reachability probe run
in the background and post their results back.

Example:
    >>> monitor = SyncStatusMonitor(gateway, main=MainContext(), worker=BackgroundWorker())
    >>> monitor.subscribe(lambda status: print(status.can_sync))
    >>> monitor.start()
    >>> monitor.configure(True)
"""

import logging
from concurrent.futures import Future
from datetime import datetime
from typing import Callable, Optional

from ..core.dispatch import ImmediateContext, InlineWorker
from ..core.events import Observable
from .gateway import RecordGateway
from .reachability import ReachabilityWatcher
from .status import AccountState, SyncState, SyncStatus

logger = logging.getLogger(__name__)


class SyncStatusMonitor(Observable):
    """Maintain ``SyncStatus`` and answer ``can_sync``.

    Args:
        gateway: Remote record service, or None for local-only operation
            (status still tracks the preference, nothing remote runs)
        main: Main context that applies status changes
        worker: Background worker for the account query
        watcher: Reachability watcher started by ``start()``
    """

    def __init__(
        self,
        gateway: Optional[RecordGateway] = None,
        *,
        main=None,
        worker=None,
        watcher: Optional[ReachabilityWatcher] = None,
    ):
        super().__init__()
        self._gateway = gateway
        self._main = main or ImmediateContext()
        self._worker = worker or InlineWorker()
        self._watcher = watcher
        self._status = SyncStatus()

    # =========================================================================
    # READ
    # =========================================================================

    @property
    def status(self) -> SyncStatus:
        """Current status snapshot."""
        return self._status

    @property
    def can_sync(self) -> bool:
        return self._status.can_sync

    @property
    def warning_messages(self) -> list[str]:
        return self._status.warning_messages

    @property
    def remote_enabled(self) -> bool:
        """False when running without a gateway."""
        return self._gateway is not None

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> None:
        """Start the reachability watcher and query the account once."""
        if not self.remote_enabled:
            return
        if self._watcher is not None:
            self._watcher.start(self._on_reachability)
        self.refresh_account_status()

    def stop(self) -> None:
        if self._watcher is not None:
            self._watcher.stop()

    def configure(
        self, enabled: bool, on_ready: Optional[Callable[[], None]] = None
    ) -> Optional[Future]:
        """Apply the user's sync preference.

        Disabling resets the sync state to idle and clears the last error.
        Enabling refreshes the account state; ``on_ready`` then runs on the
        main context once the new state is applied.

        Returns:
            Future of the account query, or None when nothing was queried
        """
        self._update(is_enabled=enabled)
        if not enabled:
            self._update(sync_state=SyncState.idle(), last_error=None)
            return None
        return self.refresh_account_status(on_complete=on_ready)

    def refresh_status(self) -> Optional[Future]:
        """Explicitly re-query the remote account state."""
        return self.refresh_account_status()

    def refresh_account_status(
        self, on_complete: Optional[Callable[[], None]] = None
    ) -> Optional[Future]:
        """Query the account state in the background.

        Any query error maps to ``could_not_determine`` with a recorded
        error message.
        """
        gateway = self._gateway
        if gateway is None:
            if on_complete is not None:
                self._main.call(on_complete)
            return None

        def query() -> None:
            try:
                state = gateway.account_status()
            except Exception as e:
                logger.warning(f"Account status query failed: {e}")
                self._main.call(self._apply_account_state, None, str(e), on_complete)
                return
            self._main.call(self._apply_account_state, state, None, on_complete)

        return self._worker.submit(query)

    def _apply_account_state(
        self,
        state: Optional[AccountState],
        error: Optional[str],
        on_complete: Optional[Callable[[], None]],
    ) -> None:
        if error is not None:
            self._update(
                account_state=AccountState.COULD_NOT_DETERMINE,
                last_error=f"Failed to query account status: {error}",
            )
        else:
            logger.debug(f"Account state: {state.value}")
            self._update(account_state=state)
        if on_complete is not None:
            on_complete()

    def _on_reachability(self, reachable: bool) -> None:
        self._main.call(self.set_network_reachable, reachable)

    # =========================================================================
    # MUTATION (main context only)
    # =========================================================================

    def set_network_reachable(self, reachable: bool) -> None:
        self._update(network_reachable=reachable)

    def mark_syncing(self) -> None:
        self._update(sync_state=SyncState.syncing(), last_error=None)

    def mark_success(self, at: datetime, clear_error: bool = True) -> None:
        changes = {"sync_state": SyncState.success(), "last_sync_date": at}
        if clear_error:
            changes["last_error"] = None
        self._update(**changes)

    def mark_failure(self, message: str, error: Optional[str] = None) -> None:
        changes = {"sync_state": SyncState.failure(message)}
        if error is not None:
            changes["last_error"] = error
        self._update(**changes)

    def record_error(self, error: Optional[str]) -> None:
        self._update(last_error=error)

    def _update(self, **changes) -> None:
        new_status = self._status.evolve(**changes)
        if new_status != self._status:
            self._status = new_status
            self._emit(new_status)
