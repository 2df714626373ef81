"""
Sync engine for config import and export.

Import makes the database match the config files (files are the source of
truth); export writes the database entries out to the config files. Every
operation returns a SyncReport with one result per key. A failure on one
key is recorded in its result and never stops the other keys of a batch.
"""

import logging
from typing import Dict, List, Optional, Tuple

from .codec import composite_key
from .config.policy import SyncPolicy
from .core.concurrency import gather_isolated
from .core.exceptions import ConfigNotFoundError, UnknownConfigTypeError
from .core.file_store import FileStore
from .core.logging import sync_context
from .core.models import (
    Change, ChangeSet, ChangeType, ConfigKey, KeyResult, SyncAction, SyncReport,
)
from .core.provider import ConfigProvider
from .diff import diff
from .snapshot import DatabaseSnapshotReader, FileSnapshotReader
from .storage.config_files import ConfigFiles
from .storage.local_store import LocalFileStore

logger = logging.getLogger(__name__)


class SyncEngine:
    """
    Config sync orchestrator.

    Holds the read-only policy, the config file layer and one provider per
    managed type. No state is kept between invocations.
    """

    def __init__(
        self,
        policy: SyncPolicy,
        providers: Dict[str, ConfigProvider],
        store: Optional[FileStore] = None,
    ):
        """
        Initialize the sync engine.

        Args:
            policy: Sync policy (managed types, exclusions, destination, minify)
            providers: Config provider per type
            store: File store (defaults to the local filesystem)
        """
        self.policy = policy
        self.providers = dict(providers)
        self.files = ConfigFiles(store or LocalFileStore(), policy)
        self.file_reader = FileSnapshotReader(self.files)
        self.database_reader = DatabaseSnapshotReader(policy, self.providers)

        for config_type in policy.include:
            if config_type not in self.providers:
                logger.warning(f"No provider registered for included type '{config_type}'")

    def _provider_for(self, config_type: str) -> ConfigProvider:
        provider = self.providers.get(config_type)
        if provider is None:
            raise UnknownConfigTypeError(config_type)
        return provider

    async def _plan(
        self, config_type: Optional[str]
    ) -> Tuple[ChangeSet, Dict[str, Exception]]:
        file_snapshot, unreadable = await self.file_reader.read_with_failures(config_type)
        database_snapshot = await self.database_reader.read(config_type)
        changes = diff(database_snapshot, file_snapshot)
        # An unreadable file must not look like a deleted one
        for key in unreadable:
            changes.pop(key, None)
        return changes, unreadable

    async def diff(self, config_type: Optional[str] = None) -> ChangeSet:
        """
        Compute what an import would change, without applying anything.

        Keys whose config file exists but cannot be read or parsed are left
        out of the change set.

        Args:
            config_type: Only compare this type (optional)

        Returns:
            Change set from the database snapshot to the file snapshot
        """
        changes, _ = await self._plan(config_type or None)
        return changes

    async def import_all(
        self,
        config_type: Optional[str] = None,
        dry_run: bool = False,
    ) -> SyncReport:
        """
        Import all config files into the database.

        Args:
            config_type: Only import this type (optional)
            dry_run: If True, report the planned changes without applying them

        Returns:
            SyncReport with one result per changed key
            and one failed result per config file that could not be read
        """
        config_type = config_type or None
        report = SyncReport(operation="import", dry_run=dry_run, config_type=config_type)
        context = sync_context(report.sync_id, report.operation)

        try:
            changes, unreadable = await self._plan(config_type)
        except Exception as e:
            logger.exception("Error reading snapshots for import", extra=context)
            report.add(KeyResult.failed(config_type or "*", SyncAction.IMPORTED, e))
            return report.complete()

        for key, error in sorted(unreadable.items()):
            logger.error(
                f"Failed to read config file for {key}: {error}",
                extra=sync_context(report.sync_id, report.operation, key),
            )
            report.add(KeyResult.failed(key, SyncAction.IMPORTED, error))

        selected = [
            change for change in changes.values()
            if (not config_type or change.config_type == config_type)
            and self.policy.manages(change.config_type, change.name)
        ]

        if dry_run:
            for change in selected:
                report.add(KeyResult(change.key.composite, SyncAction(change.change_type.value)))
            logger.info(f"Dry run: {len(selected)} config changes planned", extra=context)
            return report.complete()

        outcomes = await gather_isolated(self._apply(change) for change in selected)
        for change, outcome in zip(selected, outcomes):
            key = change.key.composite
            action = SyncAction(change.change_type.value)
            if isinstance(outcome, Exception):
                logger.error(
                    f"Failed to import {key}: {outcome}",
                    extra=sync_context(report.sync_id, report.operation, key),
                )
                report.add(KeyResult.failed(key, action, outcome))
            else:
                report.add(KeyResult(key, action))

        logger.info(
            f"Imported {len(report.succeeded)} config changes, {len(report.failed)} failed",
            extra=context,
        )
        return report.complete()

    async def _apply(self, change: Change) -> None:
        provider = self._provider_for(change.config_type)
        if change.change_type == ChangeType.DELETED:
            await provider.delete_single(change.name)
        else:
            await provider.import_single(change.name, change.content)

    async def import_single(self, config_type: str, name: str) -> SyncReport:
        """
        Import a single config file into the database.

        The file is written through the provider directly without diffing.
        When the file does not exist the database entry is removed. A file
        holding JSON null imports null, as a full import does.

        Args:
            config_type: Config type
            name: Config name (decoded)

        Returns:
            SyncReport with exactly one result
        """
        report = SyncReport(operation="import_single", config_type=config_type)
        key = composite_key(config_type, name)
        context = sync_context(report.sync_id, report.operation, key)

        if not self.policy.manages(config_type, name):
            logger.debug("Config is not managed, skipping import", extra=context)
            report.add(KeyResult(key, SyncAction.SKIPPED))
            return report.complete()

        action = SyncAction.IMPORTED
        try:
            provider = self._provider_for(config_type)
            try:
                entry = await self.files.load_entry(ConfigKey(config_type, name))
            except ConfigNotFoundError:
                action = SyncAction.DELETED
                await provider.delete_single(name)
            else:
                await provider.import_single(name, entry.content)
        except Exception as e:
            logger.error(f"Failed to import {key}: {e}", extra=context)
            report.add(KeyResult.failed(key, action, e))
            return report.complete()

        logger.info(f"Config {action.value}", extra=context)
        report.add(KeyResult(key, action))
        return report.complete()

    async def export_all(self, config_type: Optional[str] = None) -> SyncReport:
        """
        Export all database config to files.

        Each included type's provider writes its own entries; a provider
        that fails as a whole is reported as one failed result for its type.

        Args:
            config_type: Only export this type (optional)

        Returns:
            SyncReport with one result per exported key
        """
        config_type = config_type or None
        report = SyncReport(operation="export", config_type=config_type)
        context = sync_context(report.sync_id, report.operation)
        types = self.policy.types_for(config_type)

        async def _export_type(t: str) -> List[KeyResult]:
            return await self._provider_for(t).export_all(self.files)

        outcomes = await gather_isolated(_export_type(t) for t in types)
        for t, outcome in zip(types, outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"Failed to export type {t}: {outcome}", extra=context)
                report.add(KeyResult.failed(t, SyncAction.EXPORTED, outcome))
            else:
                report.extend(outcome)

        logger.info(
            f"Exported {report.count(SyncAction.EXPORTED)} config entries, "
            f"{len(report.failed)} failed",
            extra=context,
        )
        return report.complete()

    async def export_single(self, config_type: str, name: str) -> SyncReport:
        """
        Export a single database config entry to its file.

        When the entry does not exist in the database its file is removed.

        Args:
            config_type: Config type
            name: Config name (decoded)

        Returns:
            SyncReport with exactly one result
        """
        report = SyncReport(operation="export_single", config_type=config_type)
        key = composite_key(config_type, name)
        context = sync_context(report.sync_id, report.operation, key)

        if not self.policy.manages(config_type, name):
            logger.debug("Config is not managed, skipping export", extra=context)
            report.add(KeyResult(key, SyncAction.SKIPPED))
            return report.complete()

        action = SyncAction.EXPORTED
        try:
            content = await self._provider_for(config_type).get_single_from_database(name)
            if content is None:
                action = SyncAction.DELETED
                if not await self.files.delete_config_file(config_type, name):
                    action = SyncAction.SKIPPED
            else:
                await self.files.write_config_file(config_type, name, content)
        except Exception as e:
            logger.error(f"Failed to export {key}: {e}", extra=context)
            report.add(KeyResult.failed(key, action, e))
            return report.complete()

        logger.info(f"Config {action.value}", extra=context)
        report.add(KeyResult(key, action))
        return report.complete()
