"""Abstract base class for the durable key-value store."""

from __future__ import annotations

from abc import ABC, abstractmethod


class KeyValueStore(ABC):
    """Get/set string values by key in durable storage.

    Only the get/set contract matters to the rest of the system; values
    are always strings and a missing key reads as ``None``.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the value stored under ``key``, or None if absent.

        Raises:
            StorageError: If the underlying storage cannot be read.
        """
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value.

        Raises:
            StorageError: If the value cannot be persisted.
        """
        ...

    def close(self) -> None:
        """Release any resources held by the store."""

    def __enter__(self) -> KeyValueStore:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        self.close()


class StorageError(Exception):
    """Raised when the key-value store cannot be read or written."""
