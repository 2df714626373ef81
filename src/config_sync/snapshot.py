"""
Snapshot readers for the two sides of a sync.

A snapshot maps composite keys ('type.name') to JSON content and is built
fresh for every operation. Both readers apply the sync policy, so excluded
entries and types that are not included never appear in a snapshot.
"""

import asyncio
import logging
from typing import Dict, Optional, Tuple

from .codec import split_composite_key
from .config.policy import SyncPolicy
from .core.concurrency import gather_isolated
from .core.exceptions import ConfigNotFoundError, InvalidConfigKeyError, UnknownConfigTypeError
from .core.models import ConfigKey, Snapshot
from .core.provider import ConfigProvider
from .storage.config_files import ConfigFiles

logger = logging.getLogger(__name__)


class FileSnapshotReader:
    """Reads the config files in the destination directory into a snapshot."""

    def __init__(self, files: ConfigFiles):
        self.files = files

    @property
    def policy(self) -> SyncPolicy:
        return self.files.policy

    def _wanted(self, key: ConfigKey, config_type: Optional[str]) -> bool:
        if config_type and config_type != key.config_type:
            return False
        return self.policy.manages(key.config_type, key.name)

    async def read(self, config_type: Optional[str] = None) -> Snapshot:
        """
        Read all managed config files.

        Files that exist but cannot be read or parsed are left out; use
        read_with_failures to find out which.

        Args:
            config_type: Only read files of this type (optional)

        Returns:
            Snapshot of the files; empty if the destination does not exist
        """
        snapshot, _ = await self.read_with_failures(config_type)
        return snapshot

    async def read_with_failures(
        self, config_type: Optional[str] = None
    ) -> Tuple[Snapshot, Dict[str, Exception]]:
        """
        Read all managed config files, keeping track of unreadable ones.

        Args:
            config_type: Only read files of this type (optional)

        Returns:
            Tuple of (snapshot, unreadable) where unreadable maps the composite
            key of each file that exists but could not be read or parsed to
            its error
        """
        keys = [
            key for key in await self.files.list_config_files()
            if self._wanted(key, config_type)
        ]

        outcomes = await gather_isolated(self.files.load_entry(key) for key in keys)

        snapshot: Snapshot = {}
        unreadable: Dict[str, Exception] = {}
        for key, outcome in zip(keys, outcomes):
            if isinstance(outcome, ConfigNotFoundError):
                # Removed between listing and reading
                continue
            if isinstance(outcome, Exception):
                logger.warning(f"Unreadable config file for {key}: {outcome}")
                unreadable[key.composite] = outcome
                continue
            snapshot[outcome.key.composite] = outcome.content

        logger.debug(
            f"Read {len(snapshot)} config entries from files, {len(unreadable)} unreadable"
        )
        return snapshot, unreadable


class DatabaseSnapshotReader:
    """Reads every included config type from its provider into a snapshot."""

    def __init__(self, policy: SyncPolicy, providers: Dict[str, ConfigProvider]):
        self.policy = policy
        self.providers = providers

    async def read(self, config_type: Optional[str] = None) -> Snapshot:
        """
        Read all managed entries from the database.

        Types are merged in the policy's include order; on a composite key
        collision the later type wins.

        Args:
            config_type: Only read this type (optional)

        Returns:
            Snapshot of the database

        Raises:
            UnknownConfigTypeError if an included type has no provider
        """
        types = self.policy.types_for(config_type)
        for t in types:
            if t not in self.providers:
                raise UnknownConfigTypeError(t)

        per_type = await asyncio.gather(
            *(self.providers[t].get_all_from_database() for t in types)
        )

        snapshot: Snapshot = {}
        for entries in per_type:
            for key, content in entries.items():
                try:
                    parsed = split_composite_key(key)
                except InvalidConfigKeyError:
                    logger.warning(f"Ignoring invalid database config key: {key!r}")
                    continue
                if not self.policy.manages(parsed.config_type, parsed.name):
                    continue
                snapshot[key] = content

        logger.debug(f"Read {len(snapshot)} config entries from database")
        return snapshot
