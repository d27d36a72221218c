"""Storage backends for lexicam."""

from .defaults import KeyValueStore
from .records import RecordStore

__all__ = ["KeyValueStore", "RecordStore"]
