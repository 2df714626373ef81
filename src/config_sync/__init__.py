"""
Config sync: reconcile database configuration with JSON files on disk.

This package provides:
- Key codec: (type, name) to composite keys and filenames
- Snapshot readers: file and database snapshots filtered by policy
- Diff engine: created/updated/deleted change sets between snapshots
- Sync engine: full and single-key import and export
- Providers: SQLite and SQL Server storage for config entries
"""

from .codec import decode_name, encode_name
from .config import SyncConfig, SyncPolicy
from .core.models import Change, ChangeType, ConfigKey, KeyResult, SyncAction, SyncReport
from .core.provider import ConfigProvider
from .diff import apply_change_set, diff
from .snapshot import DatabaseSnapshotReader, FileSnapshotReader
from .storage import ConfigFiles, LocalFileStore
from .sync_engine import SyncEngine

__version__ = "0.1.0"

__all__ = [
    "decode_name",
    "encode_name",
    "SyncConfig",
    "SyncPolicy",
    "Change",
    "ChangeType",
    "ConfigKey",
    "KeyResult",
    "SyncAction",
    "SyncReport",
    "ConfigProvider",
    "apply_change_set",
    "diff",
    "DatabaseSnapshotReader",
    "FileSnapshotReader",
    "ConfigFiles",
    "LocalFileStore",
    "SyncEngine",
]
