"""
Policy-aware access to the config files in the destination directory.

Every read and write by name goes through the key codec, so the on-disk
layout is known only here and in ``codec``.
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Optional

from ..codec import composite_key, filename_for, parse_filename
from ..config.policy import SyncPolicy
from ..core.exceptions import ConfigNotFoundError
from ..core.file_store import FileStore
from ..core.models import ConfigEntry, ConfigKey


logger = logging.getLogger(__name__)


class ConfigFiles:
    """
    Reads and writes config entries as JSON files.

    Files are laid out as ``{destination}/{type}.{encoded_name}.json``.
    Writes and deletes of excluded keys are silent no-ops.
    """

    def __init__(self, store: FileStore, policy: SyncPolicy):
        """
        Initialize the config file layer.

        Args:
            store: File store used for all I/O
            policy: Sync policy (destination, exclusions, minify)
        """
        self.store = store
        self.policy = policy

    @property
    def destination(self) -> Path:
        return Path(self.policy.destination)

    def path_for(self, config_type: str, name: str) -> Path:
        return self.destination / filename_for(config_type, name)

    def serialize(self, content: Any) -> bytes:
        """Serialize content as indented JSON, or compact JSON when minify is set."""
        if self.policy.minify:
            text = json.dumps(content, ensure_ascii=False, separators=(",", ":"))
        else:
            text = json.dumps(content, ensure_ascii=False, indent=2)
        return text.encode("utf-8")

    async def write_config_file(self, config_type: str, name: str, content: Any) -> bool:
        """
        Write a single config file.

        Returns:
            True if written, False if the key is excluded

        Raises:
            ConfigIOError if the file cannot be written
        """
        if self.policy.is_excluded(config_type, name):
            logger.debug(f"Skipping excluded config {composite_key(config_type, name)}")
            return False

        if not await self.store.exists(self.destination):
            await self.store.ensure_dir(self.destination)

        await self.store.write(self.path_for(config_type, name), self.serialize(content))
        logger.debug(f"Exported config {composite_key(config_type, name)}")
        return True

    async def read_config_file(self, config_type: str, name: str) -> Optional[Any]:
        """
        Read a single config file.

        Returns:
            The parsed JSON content, or None if the file does not exist.
            A file holding JSON null also reads as None; use load_entry to
            tell the two apart.

        Raises:
            ConfigIOError if the file exists but cannot be read
            ValueError if the file is not valid JSON
        """
        try:
            return await self.load_config_file(config_type, name)
        except ConfigNotFoundError:
            return None

    async def load_config_file(self, config_type: str, name: str) -> Any:
        """Read and parse a config file, raising ConfigNotFoundError when absent."""
        data = await self.store.read(self.path_for(config_type, name))
        return json.loads(data.decode("utf-8"))

    async def load_entry(self, key: ConfigKey) -> ConfigEntry:
        """
        Read one config file as an entry.

        Raises:
            ConfigNotFoundError if the file does not exist
            ConfigIOError if the file exists but cannot be read
            ValueError if the file is not valid JSON
        """
        content = await self.load_config_file(key.config_type, key.name)
        return ConfigEntry(key=key, content=content)

    async def delete_config_file(self, config_type: str, name: str) -> bool:
        """
        Delete a single config file.

        Returns:
            True if a file was removed, False if excluded or already absent

        Raises:
            ConfigIOError if the file cannot be removed
        """
        if self.policy.is_excluded(config_type, name):
            logger.debug(f"Skipping excluded config {composite_key(config_type, name)}")
            return False

        try:
            await self.store.delete(self.path_for(config_type, name))
        except ConfigNotFoundError:
            return False
        logger.debug(f"Deleted config file for {composite_key(config_type, name)}")
        return True

    async def list_config_files(self) -> List[ConfigKey]:
        """
        List the config keys present in the destination directory.

        Files that do not follow the naming layout are ignored. A missing
        destination directory yields an empty list.
        """
        if not await self.store.exists(self.destination):
            return []

        keys = []
        for filename in await self.store.list(self.destination):
            key = parse_filename(filename)
            if key is None:
                logger.debug(f"Ignoring non-config file: {filename}")
                continue
            keys.append(key)
        return keys
