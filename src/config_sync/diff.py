"""
Diff engine for config snapshots.

Compares the database snapshot (old) with the file snapshot (new) and
produces the change set that turns the former into the latter:

- created: key only in the file snapshot
- updated: key in both, content differs
- deleted: key only in the database snapshot

Keys present in both with equal content produce no change, so diffing a
snapshot against itself yields an empty change set. The engine never
touches storage.
"""

import logging
from typing import Dict, Optional

from .canonical import contents_equal
from .codec import split_composite_key
from .core.exceptions import InvalidConfigKeyError
from .core.models import Change, ChangeSet, ChangeType, Snapshot


logger = logging.getLogger(__name__)


def _change(change_type: ChangeType, key: str, content=None) -> Optional[Change]:
    try:
        parsed = split_composite_key(key)
    except InvalidConfigKeyError:
        logger.warning(f"Ignoring invalid config key in diff: {key!r}")
        return None
    return Change(
        change_type=change_type,
        config_type=parsed.config_type,
        name=parsed.name,
        content=content,
    )


def diff(old: Snapshot, new: Snapshot) -> ChangeSet:
    """
    Compute the changes between two snapshots.

    Keys that are not composite keys ('type.name') are logged and left out
    of the change set.

    Args:
        old: Current state (database side)
        new: Desired state (file side)

    Returns:
        Mapping of composite key to Change
    """
    candidates = []

    for key, content in new.items():
        if key not in old:
            candidates.append((ChangeType.CREATED, key, content))
        elif not contents_equal(old[key], content):
            candidates.append((ChangeType.UPDATED, key, content))

    for key in old:
        if key not in new:
            candidates.append((ChangeType.DELETED, key, None))

    changes: ChangeSet = {}
    for change_type, key, content in candidates:
        change = _change(change_type, key, content)
        if change is not None:
            changes[key] = change
    return changes


def apply_change_set(snapshot: Snapshot, changes: ChangeSet) -> Snapshot:
    """
    Apply a change set to a snapshot in memory.

    Returns:
        A new snapshot; the input is not modified
    """
    result = dict(snapshot)
    for key, change in changes.items():
        if change.change_type == ChangeType.DELETED:
            result.pop(key, None)
        else:
            result[key] = change.content
    return result


def summarize(changes: ChangeSet) -> Dict[str, int]:
    """Count changes per change type."""
    counts = {change_type.value: 0 for change_type in ChangeType}
    for change in changes.values():
        counts[change.change_type.value] += 1
    return counts
