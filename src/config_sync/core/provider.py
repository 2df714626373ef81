"""
Provider interface for database-backed config types.
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..codec import composite_key, split_composite_key
from .concurrency import gather_isolated
from .models import KeyResult, SyncAction

if TYPE_CHECKING:
    from ..storage.config_files import ConfigFiles


logger = logging.getLogger(__name__)


class ConfigProvider(ABC):
    """
    Abstract base class for config providers.

    One provider instance manages exactly one config type. The sync engine
    only relies on this capability set and never on concrete types.
    """

    def __init__(self, config_type: str):
        self.config_type = config_type

    def key_for(self, name: str) -> str:
        """Composite key of one of this provider's entries."""
        return composite_key(self.config_type, name)

    @abstractmethod
    async def get_all_from_database(self) -> Dict[str, Any]:
        """
        Read every entry of this type from the database.

        Returns:
            Mapping of composite key to content
        """
        pass

    @abstractmethod
    async def get_single_from_database(self, name: str) -> Optional[Any]:
        """
        Read one entry from the database.

        Returns:
            The content, or None if the entry does not exist
        """
        pass

    @abstractmethod
    async def import_single(self, name: str, content: Any) -> None:
        """Create or replace one entry in the database."""
        pass

    @abstractmethod
    async def delete_single(self, name: str) -> None:
        """Delete one entry from the database; absent entries are ignored."""
        pass

    async def export_all(self, files: "ConfigFiles") -> List[KeyResult]:
        """
        Write every entry of this type to the config files.

        Each file is written independently; a failed write is reported in its
        own result and does not stop the other writes.

        Args:
            files: Policy-aware config file layer

        Returns:
            One KeyResult per database entry
        """
        entries = await self.get_all_from_database()
        keys = list(entries.keys())

        async def _export(key: str) -> KeyResult:
            name = split_composite_key(key).name
            if files.policy.is_excluded(self.config_type, name):
                return KeyResult(key, SyncAction.SKIPPED)
            await files.write_config_file(self.config_type, name, entries[key])
            return KeyResult(key, SyncAction.EXPORTED)

        outcomes = await gather_isolated(_export(key) for key in keys)

        results = []
        for key, outcome in zip(keys, outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"Failed to export {key}: {outcome}")
                results.append(KeyResult.failed(key, SyncAction.EXPORTED, outcome))
            else:
                results.append(outcome)
        return results

    def close(self) -> None:
        """Close any open resources. Optional."""
        pass
