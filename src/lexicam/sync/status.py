"""Sync health snapshot.

``SyncStatus`` is an immutable value; the monitor replaces it wholesale on
every change so listeners always receive a consistent snapshot.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from ..models import format_timestamp

NETWORK_UNAVAILABLE_MESSAGE = "Network connection unavailable"
ACCOUNT_UNAVAILABLE_MESSAGE = "Cloud account unavailable"
CANNOT_SYNC_MESSAGE = "Cannot sync right now; check the network or account status."


class AccountState(str, Enum):
    """Remote account availability."""

    UNKNOWN = "unknown"
    AVAILABLE = "available"
    NO_ACCOUNT = "no_account"
    RESTRICTED = "restricted"
    COULD_NOT_DETERMINE = "could_not_determine"

    @property
    def description(self) -> str:
        return _ACCOUNT_DESCRIPTIONS[self]

    @property
    def is_available(self) -> bool:
        return self is AccountState.AVAILABLE


_ACCOUNT_DESCRIPTIONS = {
    AccountState.UNKNOWN: "Unknown",
    AccountState.AVAILABLE: "Signed in",
    AccountState.NO_ACCOUNT: "Not signed in",
    AccountState.RESTRICTED: "Restricted",
    AccountState.COULD_NOT_DETERMINE: "Could not determine",
}


class SyncPhase(str, Enum):
    """Discriminator for ``SyncState``."""

    IDLE = "idle"
    SYNCING = "syncing"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class SyncState:
    """Progress of the most recent remote operation.

    A tagged union: ``message`` is only set for ``SyncPhase.FAILURE``.

    Example:
        >>> SyncState.failure("timed out").description
        'Failed: timed out'
    """

    phase: SyncPhase = SyncPhase.IDLE
    message: Optional[str] = None

    @classmethod
    def idle(cls) -> "SyncState":
        return cls(SyncPhase.IDLE)

    @classmethod
    def syncing(cls) -> "SyncState":
        return cls(SyncPhase.SYNCING)

    @classmethod
    def success(cls) -> "SyncState":
        return cls(SyncPhase.SUCCESS)

    @classmethod
    def failure(cls, message: str) -> "SyncState":
        return cls(SyncPhase.FAILURE, message)

    @property
    def is_failure(self) -> bool:
        return self.phase is SyncPhase.FAILURE

    @property
    def description(self) -> str:
        if self.phase is SyncPhase.IDLE:
            return "Idle"
        if self.phase is SyncPhase.SYNCING:
            return "Syncing"
        if self.phase is SyncPhase.SUCCESS:
            return "Synced"
        return f"Failed: {self.message}"


@dataclass(frozen=True)
class SyncStatus:
    """Process-wide view of sync health.

    Attributes:
        is_enabled: User opted in to cloud sync
        network_reachable: Last reading of the reachability watcher
        account_state: Last reading of the remote account query
        sync_state: Outcome of the most recent remote operation
        last_sync_date: When a remote write last succeeded
        last_error: Most recent remote error message, for display
    """

    is_enabled: bool = False
    network_reachable: bool = True
    account_state: AccountState = AccountState.UNKNOWN
    sync_state: SyncState = field(default_factory=SyncState.idle)
    last_sync_date: Optional[datetime] = None
    last_error: Optional[str] = None

    @property
    def can_sync(self) -> bool:
        """All sync preconditions hold."""
        return self.is_enabled and self.network_reachable and self.account_state.is_available

    @property
    def warning_messages(self) -> list[str]:
        """Deduplicated display warnings. Order is not significant."""
        messages = []
        if not self.network_reachable:
            messages.append(NETWORK_UNAVAILABLE_MESSAGE)
        if self.is_enabled and not self.account_state.is_available:
            messages.append(ACCOUNT_UNAVAILABLE_MESSAGE)
        if self.sync_state.is_failure and self.sync_state.message:
            messages.append(self.sync_state.message)
        if self.last_error:
            messages.append(self.last_error)
        return list(dict.fromkeys(messages))

    def evolve(self, **changes: Any) -> "SyncStatus":
        """Copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "is_enabled": self.is_enabled,
            "network_reachable": self.network_reachable,
            "account_state": self.account_state.value,
            "sync_state": self.sync_state.phase.value,
            "sync_message": self.sync_state.message,
            "last_sync_date": format_timestamp(self.last_sync_date) if self.last_sync_date else None,
            "last_error": self.last_error,
            "can_sync": self.can_sync,
            "warnings": self.warning_messages,
        }
