"""Remote record gateway interface and wire codec.

A gateway is a key-value record service: learning records are upserted,
deleted and enumerated by their id. Concrete gateways:

- ``DirectoryRecordGateway``: one JSON file per record in a synced folder
- ``HttpRecordGateway`` (see ``http_gateway``): a JSON record API

Gateway methods are blocking and raise ``GatewayError`` on failure; the
``CloudSyncManager`` runs them on background workers.
"""

import json
import logging
import os
import tempfile
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterable, Optional

from ..exceptions import GatewayError
from ..models import LearningRecord, parse_timestamp
from .status import AccountState

logger = logging.getLogger(__name__)

WIRE_FIELDS = (
    "objectName",
    "nativeTranslation",
    "learningTranslation",
    "nativeLanguageCode",
    "learningLanguageCode",
)


def record_to_wire(record: LearningRecord) -> dict[str, Any]:
    """Encode a record for the remote store."""
    return record.to_dict()


def record_from_wire(data: Any) -> Optional[LearningRecord]:
    """Decode a remote record.

    Returns:
        The record, or None when any required field is missing, has the
        wrong type, or the id/timestamp cannot be parsed
    """
    if not isinstance(data, dict):
        return None
    if not all(isinstance(data.get(name), str) for name in WIRE_FIELDS):
        return None
    created_at = data.get("createdAt")
    if not isinstance(created_at, str):
        return None
    try:
        return LearningRecord(
            id=uuid.UUID(str(data.get("id"))),
            created_at=parse_timestamp(created_at),
            object_name=data["objectName"],
            native_translation=data["nativeTranslation"],
            learning_translation=data["learningTranslation"],
            native_language_code=data["nativeLanguageCode"],
            learning_language_code=data["learningLanguageCode"],
        )
    except ValueError:
        return None


def decode_records(items: Iterable[Any]) -> list[LearningRecord]:
    """Decode remote records, skipping malformed ones."""
    records = []
    for item in items:
        record = record_from_wire(item)
        if record is None:
            logger.debug(f"Skipping malformed remote record: {item!r}")
            continue
        records.append(record)
    return records


class RecordGateway(ABC):
    """Base class for remote record services.

    Lifecycle:
        1. Gateway is built from config
        2. account_status() is queried when sync is enabled or refreshed
        3. save()/delete()/fetch_all() mirror local mutations
    """

    @abstractmethod
    def save(self, records: list[LearningRecord]) -> None:
        """Upsert records by id.

        Raises:
            GatewayError: If the remote store rejects the write
        """
        pass

    @abstractmethod
    def delete(self, ids: list[uuid.UUID]) -> None:
        """Delete records by id. Unknown ids are ignored.

        Raises:
            GatewayError: If the remote store rejects the delete
        """
        pass

    @abstractmethod
    def fetch_all(self) -> list[LearningRecord]:
        """Return every remote record, skipping malformed ones.

        Raises:
            GatewayError: If the remote store cannot be read
        """
        pass

    @abstractmethod
    def account_status(self) -> AccountState:
        """Query the remote account/session state.

        Raises:
            GatewayError: If the state cannot be queried
        """
        pass

    def close(self) -> None:
        """Release resources. Default does nothing."""
        pass


class DirectoryRecordGateway(RecordGateway):
    """Records stored as ``<id>.json`` files in a synced folder.

    The folder is typically provided by a file-sync client (cloud drive,
    network share). The account counts as available when the folder exists
    and is writable.

    Args:
        directory: Folder holding the record files
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory).expanduser()

    def _record_path(self, record_id: uuid.UUID) -> Path:
        return self.directory / f"{record_id}.json"

    def account_status(self) -> AccountState:
        if not self.directory.exists():
            return AccountState.NO_ACCOUNT
        if not self.directory.is_dir():
            return AccountState.COULD_NOT_DETERMINE
        if not os.access(self.directory, os.W_OK):
            return AccountState.RESTRICTED
        return AccountState.AVAILABLE

    def save(self, records: list[LearningRecord]) -> None:
        try:
            for record in records:
                self._write_record(record)
        except OSError as e:
            raise GatewayError(f"Failed to write records to {self.directory}: {e}") from e

    def _write_record(self, record: LearningRecord) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(record_to_wire(record), f, ensure_ascii=False)
            os.replace(tmp_name, self._record_path(record.id))
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self, ids: list[uuid.UUID]) -> None:
        try:
            for record_id in ids:
                self._record_path(record_id).unlink(missing_ok=True)
        except OSError as e:
            raise GatewayError(f"Failed to delete records in {self.directory}: {e}") from e

    def fetch_all(self) -> list[LearningRecord]:
        if not self.directory.is_dir():
            raise GatewayError(f"Record folder not found: {self.directory}")

        items = []
        for path in sorted(self.directory.glob("*.json")):
            try:
                with open(path, encoding="utf-8") as f:
                    items.append(json.load(f))
            except (OSError, json.JSONDecodeError) as e:
                logger.debug(f"Skipping unreadable record file {path}: {e}")
        return decode_records(items)

    def __repr__(self) -> str:
        return f"DirectoryRecordGateway({str(self.directory)!r})"
