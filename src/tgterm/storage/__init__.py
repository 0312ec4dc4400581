"""Persistent key-value storage for tgterm.

Holds the TOTP secret, the pinned owner id and the session timeout.

Public API:
    KeyValueStore -- Abstract base class
    SqliteKeyValueStore -- SQLite-backed implementation
"""

from tgterm.storage.base import KeyValueStore, StorageError
from tgterm.storage.sqlite import SqliteKeyValueStore

# Keys used by the bot
TOTP_SECRET_KEY = "totp_secret"
OWNER_KEY = "owner_id"
OTP_TIMEOUT_KEY = "otp_timeout"

__all__ = [
    "KeyValueStore",
    "SqliteKeyValueStore",
    "StorageError",
    "TOTP_SECRET_KEY",
    "OWNER_KEY",
    "OTP_TIMEOUT_KEY",
]
