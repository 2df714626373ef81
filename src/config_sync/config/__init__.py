"""
Configuration and policy for config sync.
"""

from .config_loader import SyncConfig
from .policy import SyncPolicy

__all__ = ["SyncConfig", "SyncPolicy"]
