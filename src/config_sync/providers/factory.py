"""
Factory for the database providers described by the sync configuration.
"""

import logging
from typing import Dict, Tuple

from ..config.config_loader import SyncConfig
from ..config.policy import SyncPolicy
from ..core.exceptions import ConfigPolicyError
from ..core.provider import ConfigProvider
from .sqlite_provider import SqliteConfigDatabase, SqliteConfigProvider


logger = logging.getLogger(__name__)


def create_database(config: SyncConfig):
    """
    Open the config database for the configured backend.

    Returns:
        SqliteConfigDatabase or SqlServerConfigDatabase
    """
    db_config = config.get_database_config()
    backend = db_config.get("backend", "sqlite")
    table = db_config.get("table", "config_entries")

    if backend == "sqlite":
        path = config.get("database.sqlite.path", "data/config.db")
        logger.debug(f"Using SQLite config database at {path}")
        return SqliteConfigDatabase(path, table=table)

    if backend == "sqlserver":
        from .sqlserver_provider import SqlServerConfigDatabase

        sql = db_config.get("sqlserver", {})
        return SqlServerConfigDatabase(
            connection_string=sql.get("connection_string"),
            host=sql.get("host", "localhost"),
            port=int(sql.get("port", 1433)),
            database=sql.get("database", "Config"),
            username=sql.get("user", "sa"),
            password=sql.get("password"),
            driver=sql.get("driver", "ODBC Driver 18 for SQL Server"),
            schema=sql.get("schema", "dbo"),
            table=table,
        )

    raise ConfigPolicyError(f"Unknown database backend: {backend}")


def build_providers(database, policy: SyncPolicy) -> Dict[str, ConfigProvider]:
    """Create one provider per included type on the given database."""
    if isinstance(database, SqliteConfigDatabase):
        provider_cls = SqliteConfigProvider
    else:
        from .sqlserver_provider import SqlServerConfigProvider
        provider_cls = SqlServerConfigProvider

    return {t: provider_cls(t, database) for t in policy.include}


def create_providers(config: SyncConfig, policy: SyncPolicy) -> Tuple[Dict[str, ConfigProvider], object]:
    """
    Open the configured database and build its providers.

    Returns:
        Tuple of (providers by type, database); the caller closes the database
    """
    database = create_database(config)
    return build_providers(database, policy), database
