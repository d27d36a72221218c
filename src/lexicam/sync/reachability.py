"""Network reachability watcher.

Polls a reachability probe on a daemon thread and reports changes to a
handler. The default probe asks psutil whether any non-loopback network
interface is up.

Usage:
    watcher = ReachabilityWatcher(interval=5.0)
    watcher.start(lambda reachable: print("online" if reachable else "offline"))
    ...
    watcher.stop()
"""

import logging
import threading
from typing import Callable, Optional

import psutil

from ..constants import DEFAULT_NETWORK_POLL_INTERVAL

logger = logging.getLogger(__name__)


def _is_loopback(name: str) -> bool:
    lowered = name.lower()
    return lowered == "lo" or lowered.startswith("lo0") or lowered.startswith("loopback")


def interfaces_up() -> bool:
    """True if any non-loopback network interface is up."""
    try:
        stats = psutil.net_if_stats()
    except (OSError, RuntimeError) as e:
        logger.debug(f"Interface query failed: {e}")
        return False
    return any(s.isup for name, s in stats.items() if not _is_loopback(name))


class ReachabilityWatcher:
    """Report network reachability changes from a background thread.

    The first reading is taken synchronously in ``start()`` so callers see
    a real value immediately; later readings come from the watcher thread
    and are only reported when they change.

    Args:
        probe: Callable returning True when the network is reachable
        interval: Seconds between polls
    """

    def __init__(
        self,
        probe: Callable[[], bool] = interfaces_up,
        interval: float = DEFAULT_NETWORK_POLL_INTERVAL,
    ):
        self._probe = probe
        self._interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last: Optional[bool] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, handler: Callable[[bool], None]) -> None:
        """Begin watching. Calling start twice is a no-op."""
        if self.is_running:
            return
        self._stop.clear()
        self._check(handler)
        self._thread = threading.Thread(
            target=self._run, args=(handler,), name="lexicam-reachability", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float = 1.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self, handler: Callable[[bool], None]) -> None:
        while not self._stop.wait(self._interval):
            self._check(handler)

    def _check(self, handler: Callable[[bool], None]) -> None:
        try:
            reachable = bool(self._probe())
        except Exception as e:
            logger.debug(f"Reachability probe failed: {e}")
            reachable = False
        if reachable != self._last:
            self._last = reachable
            logger.debug(f"Network {'reachable' if reachable else 'unreachable'}")
            handler(reachable)
