"""
File store interface for reading and writing config blobs.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List


class FileStore(ABC):
    """
    Abstract base class for file stores.

    All operations are coroutines; each call is a suspension point of the
    sync engine.
    """

    @abstractmethod
    async def exists(self, directory: Path) -> bool:
        """Return True if the directory exists."""
        pass

    @abstractmethod
    async def ensure_dir(self, directory: Path) -> None:
        """Create the directory (and parents) if it does not exist."""
        pass

    @abstractmethod
    async def list(self, directory: Path) -> List[str]:
        """
        List the filenames in a directory.

        Returns:
            Sorted list of filenames (not paths)
        """
        pass

    @abstractmethod
    async def write(self, path: Path, data: bytes) -> None:
        """
        Write bytes to a file, replacing any previous content.

        Raises:
            ConfigIOError if the write fails
        """
        pass

    @abstractmethod
    async def read(self, path: Path) -> bytes:
        """
        Read the bytes of a file.

        Raises:
            ConfigNotFoundError if the file does not exist
        """
        pass

    @abstractmethod
    async def delete(self, path: Path) -> None:
        """
        Delete a file.

        Raises:
            ConfigNotFoundError if the file does not exist
            ConfigIOError if the delete fails
        """
        pass
