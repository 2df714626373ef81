"""
Database-backed config providers.

The SQL Server providers are imported lazily since they need pyodbc.
"""

from .factory import build_providers, create_database, create_providers
from .sqlite_provider import SqliteConfigDatabase, SqliteConfigProvider

__all__ = [
    "build_providers",
    "create_database",
    "create_providers",
    "SqliteConfigDatabase",
    "SqliteConfigProvider",
]
