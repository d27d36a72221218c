"""Service wiring.

Builds the record store, sync monitor, sync manager and model selector
once at startup and hands them out by reference. Nothing here is a global:
callers own the returned ``Services`` and close it when done.

Example:
    >>> services = build_services(load_config())
    >>> services.store.add_record("apple", "苹果", "Apple", "zh", "en")
    >>> services.settle()
    >>> services.close()
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .app_config import AppConfig
from .constants import (
    DEFAULT_NETWORK_POLL_INTERVAL,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SETTLE_TIMEOUT,
    SyncBackend,
)
from .core.dispatch import BackgroundWorker, MainContext, settle
from .core.model_selector import ModelSelector, TorchScriptLoader
from .exceptions import ConfigError
from .storage.defaults import KeyValueStore
from .storage.records import RecordStore
from .sync.gateway import DirectoryRecordGateway, RecordGateway
from .sync.http_gateway import HttpRecordGateway
from .sync.manager import CloudSyncManager
from .sync.monitor import SyncStatusMonitor
from .sync.reachability import ReachabilityWatcher
from .utils.config import get_value, validate_config

logger = logging.getLogger(__name__)


def build_gateway(config: dict) -> Optional[RecordGateway]:
    """Create the remote gateway named by ``sync.backend``.

    Returns:
        Gateway instance, or None for the ``none`` backend

    Raises:
        ConfigError: If the sync section is invalid
    """
    validate_config(config)
    backend = SyncBackend(get_value(config, "sync.backend", SyncBackend.NONE.value))

    if backend is SyncBackend.DIRECTORY:
        return DirectoryRecordGateway(get_value(config, "sync.directory"))
    if backend is SyncBackend.HTTP:
        try:
            return HttpRecordGateway(
                get_value(config, "sync.url"),
                get_value(config, "sync.api_key", ""),
                timeout=float(get_value(config, "sync.timeout", DEFAULT_REQUEST_TIMEOUT)),
            )
        except ValueError as e:
            raise ConfigError(f"sync.url: {e}") from e
    return None


@dataclass
class Services:
    """Application services sharing one main context and worker pool."""

    main: MainContext
    worker: BackgroundWorker
    monitor: SyncStatusMonitor
    sync: CloudSyncManager
    store: RecordStore
    model_selector: ModelSelector
    gateway: Optional[RecordGateway] = None

    def settle(self, timeout: float = DEFAULT_SETTLE_TIMEOUT) -> bool:
        """Apply pending background results until remote work is idle."""
        return settle(self.main, self.worker, timeout)

    def close(self) -> None:
        self.monitor.stop()
        self.worker.shutdown(wait=True)
        self.main.run_pending()
        if self.gateway is not None:
            self.gateway.close()


def build_services(config: dict, paths: Optional[AppConfig] = None) -> Services:
    """Wire the application services from config.

    Must be called on the thread that will own application state; that
    thread drains the main context.

    Args:
        config: Loaded configuration
        paths: Data locations (default: ~/.lexicam)

    Raises:
        ConfigError: If the configuration is invalid
    """
    paths = paths or AppConfig()
    gateway = build_gateway(config)

    main = MainContext()
    worker = BackgroundWorker()
    watcher = ReachabilityWatcher(
        interval=float(
            get_value(config, "sync.network_poll_interval", DEFAULT_NETWORK_POLL_INTERVAL)
        )
    )

    monitor = SyncStatusMonitor(gateway, main=main, worker=worker, watcher=watcher)
    monitor.start()
    sync = CloudSyncManager(monitor, gateway, main=main, worker=worker)
    store = RecordStore(KeyValueStore(paths.defaults_file), sync)

    resource_dir = get_value(config, "models.resource_dir") or paths.models_dir
    model_selector = ModelSelector(
        Path(resource_dir).expanduser(), loader=TorchScriptLoader(paths.cache_dir)
    )

    logger.debug(f"Services ready (gateway={gateway!r})")
    return Services(
        main=main,
        worker=worker,
        monitor=monitor,
        sync=sync,
        store=store,
        model_selector=model_selector,
        gateway=gateway,
    )
