"""
Core data models for config synchronization.

Defines the identity of a config entry, the change records produced by the
diff engine and the per-key results reported by the sync engine.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
import uuid


# Composite key -> JSON content, for one side (files or database).
Snapshot = Dict[str, Any]


class ChangeType(str, Enum):
    """Kind of change between the database and the file snapshot."""
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class SyncAction(str, Enum):
    """Action recorded for a single key in a sync report."""
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    IMPORTED = "imported"
    EXPORTED = "exported"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class ConfigKey:
    """
    Logical identity of a config entry.

    Attributes:
        config_type: Managed type (e.g., 'core-store', 'role-permissions')
        name: Decoded entry name, may contain ':' but not '#'
    """
    config_type: str
    name: str

    @property
    def composite(self) -> str:
        """Get the composite key ``type.name``."""
        return f"{self.config_type}.{self.name}"

    def __str__(self) -> str:
        return self.composite


@dataclass
class ConfigEntry:
    """A config key with its opaque JSON content."""
    key: ConfigKey
    content: Any = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "config_type": self.key.config_type,
            "name": self.key.name,
            "content": self.content,
        }


@dataclass(frozen=True)
class Change:
    """
    A single entry of a change set.

    Attributes:
        change_type: created, updated or deleted
        config_type: Type part of the composite key
        name: Name part of the composite key
        content: Resulting content (None for deletions)
    """
    change_type: ChangeType
    config_type: str
    name: str
    content: Any = None

    @property
    def key(self) -> ConfigKey:
        return ConfigKey(self.config_type, self.name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "change_type": self.change_type.value,
            "config_type": self.config_type,
            "name": self.name,
            "content": self.content,
        }


# Composite key -> Change
ChangeSet = Dict[str, Change]


@dataclass
class KeyResult:
    """Outcome of one per-key operation inside a sync."""
    config_key: str
    action: SyncAction
    success: bool = True
    error: Optional[str] = None

    @classmethod
    def failed(cls, config_key: str, action: SyncAction, error: Exception) -> "KeyResult":
        """Build a failed result from an exception."""
        return cls(
            config_key=config_key,
            action=action,
            success=False,
            error=f"{type(error).__name__}: {error}",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "config_key": self.config_key,
            "action": self.action.value,
            "success": self.success,
            "error": self.error,
        }


@dataclass
class SyncReport:
    """Report of a sync operation."""
    operation: str
    dry_run: bool = False
    config_type: Optional[str] = None
    sync_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None
    results: List[KeyResult] = field(default_factory=list)

    def add(self, result: KeyResult) -> None:
        self.results.append(result)

    def extend(self, results: List[KeyResult]) -> None:
        self.results.extend(results)

    def complete(self) -> "SyncReport":
        """Stamp the completion time and return self."""
        self.completed_at = datetime.now(timezone.utc)
        return self

    @property
    def succeeded(self) -> List[KeyResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> List[KeyResult]:
        return [r for r in self.results if not r.success]

    @property
    def errors(self) -> List[str]:
        return [f"{r.config_key}: {r.error}" for r in self.failed]

    def count(self, action: SyncAction) -> int:
        """Count successful results with the given action."""
        return sum(1 for r in self.succeeded if r.action == action)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "operation": self.operation,
            "sync_id": self.sync_id,
            "dry_run": self.dry_run,
            "config_type": self.config_type,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "counts": {
                action.value: self.count(action) for action in SyncAction
            },
            "results": [r.to_dict() for r in self.results],
            "errors": self.errors,
        }

    def summary(self) -> str:
        """Get a human-readable summary."""
        lines = [
            f"Sync Report ({self.operation}, {self.sync_id})",
            f"  Type filter: {self.config_type or 'all'}",
            f"  Dry run: {self.dry_run}",
        ]
        if self.completed_at:
            duration = (self.completed_at - self.started_at).total_seconds()
            lines.append(f"  Duration: {duration:.1f}s")
        lines.append("")
        for action in SyncAction:
            count = self.count(action)
            if count:
                lines.append(f"  {action.value.capitalize()}: {count}")
        lines.append(f"  Failed: {len(self.failed)}")
        for error in self.errors:
            lines.append(f"    {error}")
        return "\n".join(lines)
