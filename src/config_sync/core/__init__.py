"""
Core abstractions and data models for config sync.

The provider interface lives in ``config_sync.core.provider``.
"""

from .exceptions import (
    ConfigSyncError, ConfigNotFoundError, ConfigIOError,
    InvalidConfigKeyError, UnknownConfigTypeError, ConfigPolicyError,
)
from .file_store import FileStore
from .models import (
    Change, ChangeSet, ChangeType, ConfigEntry, ConfigKey,
    KeyResult, Snapshot, SyncAction, SyncReport,
)

__all__ = [
    "ConfigSyncError",
    "ConfigNotFoundError",
    "ConfigIOError",
    "InvalidConfigKeyError",
    "UnknownConfigTypeError",
    "ConfigPolicyError",
    "FileStore",
    "Change",
    "ChangeSet",
    "ChangeType",
    "ConfigEntry",
    "ConfigKey",
    "KeyResult",
    "Snapshot",
    "SyncAction",
    "SyncReport",
]
