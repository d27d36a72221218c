"""Data models for lexicam.

Defines the learning record captured for each recognized object.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Encode a datetime as ISO-8601.

    Naive datetimes are assumed to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def parse_timestamp(value: str) -> datetime:
    """Decode an ISO-8601 timestamp.

    Accepts a trailing ``Z`` and treats naive values as UTC.

    Raises:
        ValueError: If the string is not ISO-8601
    """
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def normalize_key(object_name: str, native_language_code: str, learning_language_code: str) -> str:
    """Build the recency-dedup key for an object and language pair.

    Args:
        object_name: Recognized object label
        native_language_code: Native language code
        learning_language_code: Learning language code

    Returns:
        Key of the form ``name|native|learning`` with a lowercased name
    """
    return f"{object_name.lower()}|{native_language_code}|{learning_language_code}"


@dataclass(frozen=True)
class LearningRecord:
    """A captured object and its two-language translation pair.

    Attributes:
        id: Stable identifier, used as merge key and remote record key
        created_at: Capture time, refreshed when a repeat is merged in
        object_name: Recognized object label (trimmed, non-empty)
        native_translation: Display string in the native language
        learning_translation: Display string in the learning language
        native_language_code: Native language at capture time
        learning_language_code: Learning language at capture time
    """

    object_name: str
    native_translation: str
    learning_translation: str
    native_language_code: str
    learning_language_code: str
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=utc_now)

    @property
    def normalized_key(self) -> str:
        """Dedup key; not an identity."""
        return normalize_key(
            self.object_name, self.native_language_code, self.learning_language_code
        )

    def refreshed(
        self,
        *,
        native_translation: str,
        learning_translation: str,
        native_language_code: str,
        learning_language_code: str,
        created_at: datetime,
    ) -> "LearningRecord":
        """Copy of this record with new translations and timestamp.

        The id and object name are kept.
        """
        return replace(
            self,
            native_translation=native_translation,
            learning_translation=learning_translation,
            native_language_code=native_language_code,
            learning_language_code=learning_language_code,
            created_at=created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": str(self.id),
            "createdAt": format_timestamp(self.created_at),
            "objectName": self.object_name,
            "nativeTranslation": self.native_translation,
            "learningTranslation": self.learning_translation,
            "nativeLanguageCode": self.native_language_code,
            "learningLanguageCode": self.learning_language_code,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LearningRecord":
        """Create from dictionary.

        Raises:
            KeyError: If a required field is missing
            ValueError: If the id or timestamp is malformed
        """
        return cls(
            id=uuid.UUID(str(data["id"])),
            created_at=parse_timestamp(data["createdAt"]),
            object_name=data["objectName"],
            native_translation=data["nativeTranslation"],
            learning_translation=data["learningTranslation"],
            native_language_code=data["nativeLanguageCode"],
            learning_language_code=data["learningLanguageCode"],
        )


def sort_newest_first(records) -> list[LearningRecord]:
    """Sort records by ``created_at`` descending."""
    return sorted(records, key=lambda r: r.created_at, reverse=True)
