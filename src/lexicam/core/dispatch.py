"""Main-context dispatch and background workers.

Application state (the record list, the sync status) is only mutated by
the thread that owns it. Background work (network probing, remote calls,
model compilation) runs on a worker pool and posts its outcome back to the
main context as a callback.

Usage:
    main = MainContext()
    worker = BackgroundWorker()
    worker.submit(lambda: main.call(apply_result, fetch()))
    main.run_pending()  # on the owning thread
"""

import logging
import queue
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

logger = logging.getLogger(__name__)


class MainContext:
    """Callback queue drained by the thread that owns application state.

    Callbacks may be posted from any thread; they run in FIFO order when
    the owning thread calls ``run_pending()``.
    """

    def __init__(self):
        self._queue: queue.SimpleQueue = queue.SimpleQueue()
        self._owner = threading.get_ident()

    @property
    def is_current(self) -> bool:
        """True when called from the owning thread."""
        return threading.get_ident() == self._owner

    def call(self, fn: Callable[..., Any], *args: Any) -> None:
        """Schedule ``fn(*args)`` on the main context."""
        self._queue.put((fn, args))

    def run_pending(self) -> int:
        """Run every queued callback, including ones queued while running.

        Returns:
            Number of callbacks run

        Raises:
            RuntimeError: If called off the owning thread
        """
        if not self.is_current:
            raise RuntimeError("run_pending() must be called from the owning thread")

        count = 0
        while True:
            try:
                fn, args = self._queue.get_nowait()
            except queue.Empty:
                return count
            try:
                fn(*args)
            except Exception:
                logger.exception(f"Main-context callback {fn!r} failed")
            count += 1


class ImmediateContext:
    """Main context that runs callbacks inline on the calling thread.

    For single-threaded embedding and tests.
    """

    is_current = True

    def call(self, fn: Callable[..., Any], *args: Any) -> None:
        fn(*args)

    def run_pending(self) -> int:
        return 0


class BackgroundWorker:
    """Thread pool that tracks in-flight tasks.

    Args:
        max_workers: Pool size
    """

    def __init__(self, max_workers: int = 4):
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="lexicam-worker"
        )
        self._lock = threading.Lock()
        self._pending = 0

    @property
    def pending(self) -> int:
        """Tasks submitted but not yet finished."""
        with self._lock:
            return self._pending

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        """Run ``fn(*args)`` on a worker thread."""
        with self._lock:
            self._pending += 1
        future = self._executor.submit(fn, *args)
        future.add_done_callback(self._task_done)
        return future

    def _task_done(self, future: Future) -> None:
        with self._lock:
            self._pending -= 1

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


class InlineWorker:
    """Worker that runs tasks synchronously and returns completed futures."""

    pending = 0

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        future: Future = Future()
        future.set_running_or_notify_cancel()
        try:
            future.set_result(fn(*args))
        except BaseException as e:
            future.set_exception(e)
        return future

    def shutdown(self, wait: bool = True) -> None:
        pass


def settle(main, worker, timeout: float, poll_interval: float = 0.02) -> bool:
    """Drain the main context until no background work remains.

    Args:
        main: Main context to drain (must be called on its owning thread)
        worker: Worker whose ``pending`` count is watched
        timeout: Maximum seconds to wait
        poll_interval: Sleep between polls

    Returns:
        True if everything settled, False on timeout
    """
    deadline = time.monotonic() + timeout
    while True:
        # Tasks post their callback before they count as done, so read
        # the pending count before draining.
        idle = worker.pending == 0
        ran = main.run_pending()
        if idle and ran == 0:
            return True
        if time.monotonic() >= deadline:
            logger.warning(f"Background work still pending after {timeout:.0f}s")
            return False
        time.sleep(poll_interval)
