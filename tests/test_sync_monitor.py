"""Tests for SyncStatusMonitor."""

from datetime import timedelta
from unittest.mock import MagicMock

from lexicam.core.dispatch import ImmediateContext, InlineWorker
from lexicam.sync.monitor import SyncStatusMonitor
from lexicam.sync.status import AccountState, SyncPhase

from conftest import T0, MemoryGateway


class FakeWatcher:
    """Watcher that reports readings on demand."""

    def __init__(self):
        self.handler = None
        self.stopped = False

    def start(self, handler):
        self.handler = handler

    def stop(self):
        self.stopped = True


def make_monitor(gateway=None, watcher=None):
    return SyncStatusMonitor(gateway, main=ImmediateContext(), worker=InlineWorker(), watcher=watcher)


class TestLifecycle:
    """Tests for start/stop/configure."""

    def test_start_queries_account(self):
        """Test start() starts the watcher and reads the account."""
        gateway = MemoryGateway()
        watcher = FakeWatcher()
        monitor = make_monitor(gateway, watcher)

        monitor.start()

        assert watcher.handler is not None
        assert monitor.status.account_state is AccountState.AVAILABLE

    def test_start_without_gateway(self):
        """Test start() does nothing when running local-only."""
        watcher = FakeWatcher()
        monitor = make_monitor(watcher=watcher)
        monitor.start()
        assert watcher.handler is None
        assert monitor.remote_enabled is False

    def test_reachability_updates_status(self):
        """Test watcher readings reach the status."""
        watcher = FakeWatcher()
        monitor = make_monitor(MemoryGateway(), watcher)
        monitor.start()

        watcher.handler(False)
        assert monitor.status.network_reachable is False
        watcher.handler(True)
        assert monitor.status.network_reachable is True

    def test_stop(self):
        """Test stop() stops the watcher."""
        watcher = FakeWatcher()
        monitor = make_monitor(MemoryGateway(), watcher)
        monitor.stop()
        assert watcher.stopped

    def test_configure_enable_runs_on_ready_after_account(self):
        """Test on_ready sees the refreshed account state."""
        monitor = make_monitor(MemoryGateway())
        seen = []
        monitor.configure(True, on_ready=lambda: seen.append(monitor.can_sync))
        assert seen == [True]

    def test_configure_disable(self):
        """Test disabling resets state and error without querying."""
        gateway = MemoryGateway()
        monitor = make_monitor(gateway)
        monitor.configure(True)
        monitor.mark_failure("boom", "Cloud sync failed: boom")
        calls = len(gateway.calls)

        assert monitor.configure(False) is None

        assert monitor.status.sync_state.phase is SyncPhase.IDLE
        assert monitor.status.last_error is None
        assert len(gateway.calls) == calls

    def test_configure_without_gateway_still_calls_on_ready(self):
        """Test on_ready runs even with no gateway."""
        monitor = make_monitor()
        on_ready = MagicMock()
        monitor.configure(True, on_ready=on_ready)
        on_ready.assert_called_once_with()
        assert monitor.status.is_enabled is True

    def test_refresh_status_picks_up_account_change(self):
        """Test refresh_status re-queries the account."""
        gateway = MemoryGateway()
        monitor = make_monitor(gateway)
        monitor.configure(True)
        gateway.account = AccountState.RESTRICTED

        monitor.refresh_status()

        assert monitor.status.account_state is AccountState.RESTRICTED
        assert monitor.can_sync is False


class TestMutation:
    """Tests for status mutators and notifications."""

    def test_mark_syncing_clears_error(self):
        """Test starting a sync clears the last error."""
        monitor = make_monitor()
        monitor.record_error("old")
        monitor.mark_syncing()
        assert monitor.status.sync_state.phase is SyncPhase.SYNCING
        assert monitor.status.last_error is None

    def test_mark_success(self):
        """Test success records the time."""
        monitor = make_monitor()
        monitor.mark_success(T0)
        assert monitor.status.last_sync_date == T0
        assert monitor.status.sync_state.phase is SyncPhase.SUCCESS

    def test_mark_failure_without_error_keeps_last_error(self):
        """Test a failure without an error message keeps last_error."""
        monitor = make_monitor()
        monitor.record_error("earlier")
        monitor.mark_failure("offline")
        assert monitor.status.last_error == "earlier"
        assert monitor.status.sync_state.message == "offline"

    def test_listeners_get_snapshots(self):
        """Test subscribers receive each new status."""
        monitor = make_monitor()
        seen = []
        monitor.subscribe(seen.append)

        monitor.mark_success(T0)
        monitor.mark_success(T0 + timedelta(seconds=1))

        assert [s.last_sync_date for s in seen] == [T0, T0 + timedelta(seconds=1)]

    def test_no_notification_without_change(self):
        """Test setting the same value twice notifies once."""
        monitor = make_monitor()
        seen = []
        monitor.subscribe(seen.append)

        monitor.set_network_reachable(False)
        monitor.set_network_reachable(False)

        assert len(seen) == 1
