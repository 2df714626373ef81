"""
Local filesystem implementation of the file store.
"""

import logging
from pathlib import Path
from typing import List

from ..core.exceptions import ConfigIOError, ConfigNotFoundError
from ..core.file_store import FileStore


logger = logging.getLogger(__name__)


class LocalFileStore(FileStore):
    """
    File store backed by the local filesystem.

    Calls are plain blocking pathlib I/O inside coroutines. A fan-out over
    this store therefore runs its reads and writes one after another on the
    event loop thread.
    """

    async def exists(self, directory: Path) -> bool:
        return Path(directory).is_dir()

    async def ensure_dir(self, directory: Path) -> None:
        try:
            Path(directory).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigIOError(f"Failed to create directory {directory}: {e}") from e

    async def list(self, directory: Path) -> List[str]:
        directory = Path(directory)
        if not directory.is_dir():
            return []
        return sorted(p.name for p in directory.iterdir() if p.is_file())

    async def write(self, path: Path, data: bytes) -> None:
        try:
            Path(path).write_bytes(data)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            raise ConfigIOError(f"Failed to write {path}: {e}") from e
        logger.debug(f"Wrote {len(data)} bytes to {path}")

    async def read(self, path: Path) -> bytes:
        try:
            return Path(path).read_bytes()
        except FileNotFoundError as e:
            raise ConfigNotFoundError(f"File not found: {path}", path=str(path)) from e
        except OSError as e:
            raise ConfigIOError(f"Failed to read {path}: {e}") from e

    async def delete(self, path: Path) -> None:
        try:
            Path(path).unlink()
        except FileNotFoundError as e:
            raise ConfigNotFoundError(f"File not found: {path}", path=str(path)) from e
        except OSError as e:
            logger.error(f"Failed to delete {path}: {e}")
            raise ConfigIOError(f"Failed to delete {path}: {e}") from e
        logger.debug(f"Deleted {path}")
