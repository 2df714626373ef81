"""
Storage implementations for config files.
"""

from .config_files import ConfigFiles
from .local_store import LocalFileStore

__all__ = ["ConfigFiles", "LocalFileStore"]
