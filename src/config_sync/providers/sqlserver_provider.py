"""
SQL Server-backed config providers.

Same table contract as the SQLite providers: one table keyed by
(config_type, name) holding the JSON content of every managed entry.
pyodbc calls are synchronous and run one after another on the event loop
thread.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

try:
    import pyodbc
except ImportError:
    pyodbc = None

from ..core.exceptions import ConfigIOError
from ..core.provider import ConfigProvider


logger = logging.getLogger(__name__)


class SqlServerConfigDatabase:
    """
    Shared SQL Server connection holding the config entries table.
    """

    def __init__(
        self,
        connection_string: Optional[str] = None,
        host: str = "localhost",
        port: int = 1433,
        database: str = "Config",
        username: str = "sa",
        password: Optional[str] = None,
        driver: str = "ODBC Driver 18 for SQL Server",
        schema: str = "dbo",
        table: str = "config_entries",
        auto_init: bool = True,
        trust_server_certificate: bool = True,
    ):
        """
        Initialize the SQL Server config database.

        Args:
            connection_string: Full ODBC connection string (if provided, other params ignored)
            host: SQL Server host
            port: SQL Server port
            database: Database name
            username: Database username
            password: Database password
            driver: ODBC driver name
            schema: Schema name for the table
            table: Table name
            auto_init: Whether to create the table automatically
            trust_server_certificate: Whether to trust self-signed certificates
        """
        if pyodbc is None:
            raise ImportError(
                "pyodbc is required for SqlServerConfigDatabase. "
                "Install with: pip install pyodbc"
            )

        if not self._is_valid_identifier(schema):
            raise ValueError(f"Invalid schema name: {schema}")
        if not self._is_valid_identifier(table):
            raise ValueError(f"Invalid table name: {table}")

        self.schema = schema
        self.table = table

        if connection_string:
            self.connection_string = connection_string
        else:
            trust_cert = "yes" if trust_server_certificate else "no"
            self.connection_string = (
                f"Driver={{{driver}}};"
                f"Server={host},{port};"
                f"Database={database};"
                f"UID={username};"
                f"PWD={password};"
                f"TrustServerCertificate={trust_cert}"
            )

        self.conn = None
        self._connect()

        if auto_init:
            self._init_schema()

    def _is_valid_identifier(self, name: str) -> bool:
        """Validate that a name is a safe SQL identifier."""
        if not name or len(name) > 128:
            return False
        return bool(re.match(r'^[a-zA-Z_][a-zA-Z0-9_]*$', name))

    @property
    def qualified_table(self) -> str:
        return f"[{self.schema}].[{self.table}]"

    def _connect(self) -> None:
        """Establish database connection."""
        try:
            self.conn = pyodbc.connect(self.connection_string, autocommit=False)
            logger.debug("Connected to SQL Server")
        except pyodbc.Error as e:
            logger.error(f"Failed to connect to SQL Server: {e}")
            raise

    def _init_schema(self) -> None:
        """Create the config table if it does not exist."""
        cursor = self.conn.cursor()
        cursor.execute(f"""
            IF OBJECT_ID(N'{self.schema}.{self.table}', N'U') IS NULL
            CREATE TABLE {self.qualified_table} (
                config_type NVARCHAR(128) NOT NULL,
                name NVARCHAR(400) NOT NULL,
                value_json NVARCHAR(MAX) NOT NULL,
                updated_at_utc DATETIME2 NOT NULL DEFAULT SYSUTCDATETIME(),
                CONSTRAINT PK_{self.table} PRIMARY KEY (config_type, name)
            )
        """)
        self.conn.commit()
        logger.debug("Initialized config table schema")

    def list_entries(self, config_type: str) -> List[Tuple[str, Any]]:
        cursor = self.conn.cursor()
        cursor.execute(
            f"SELECT name, value_json FROM {self.qualified_table} "
            f"WHERE config_type = ? ORDER BY name",
            (config_type,),
        )
        return [(row[0], json.loads(row[1])) for row in cursor.fetchall()]

    def get_entry(self, config_type: str, name: str) -> Optional[Any]:
        cursor = self.conn.cursor()
        cursor.execute(
            f"SELECT value_json FROM {self.qualified_table} WHERE config_type = ? AND name = ?",
            (config_type, name),
        )
        row = cursor.fetchone()
        return json.loads(row[0]) if row else None

    def upsert_entry(self, config_type: str, name: str, content: Any) -> None:
        """Insert or update one entry with a single MERGE statement."""
        value_json = json.dumps(content, ensure_ascii=False)
        try:
            cursor = self.conn.cursor()
            cursor.execute(
                f"""MERGE {self.qualified_table} WITH (HOLDLOCK) AS target
                    USING (SELECT ? AS config_type, ? AS name, ? AS value_json) AS source
                    ON target.config_type = source.config_type AND target.name = source.name
                    WHEN MATCHED THEN
                        UPDATE SET value_json = source.value_json,
                                   updated_at_utc = SYSUTCDATETIME()
                    WHEN NOT MATCHED THEN
                        INSERT (config_type, name, value_json)
                        VALUES (source.config_type, source.name, source.value_json);""",
                (config_type, name, value_json),
            )
            self.conn.commit()
        except pyodbc.Error as e:
            logger.error(f"Failed to upsert {config_type}.{name}: {e}")
            self.conn.rollback()
            raise ConfigIOError(
                f"Failed to write {config_type}.{name}: {e}",
                config_key=f"{config_type}.{name}",
            ) from e

    def delete_entry(self, config_type: str, name: str) -> bool:
        try:
            cursor = self.conn.cursor()
            cursor.execute(
                f"DELETE FROM {self.qualified_table} WHERE config_type = ? AND name = ?",
                (config_type, name),
            )
            self.conn.commit()
        except pyodbc.Error as e:
            logger.error(f"Failed to delete {config_type}.{name}: {e}")
            self.conn.rollback()
            raise ConfigIOError(
                f"Failed to delete {config_type}.{name}: {e}",
                config_key=f"{config_type}.{name}",
            ) from e
        return cursor.rowcount > 0

    def close(self) -> None:
        """Close the database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.debug("Closed SQL Server connection")


class SqlServerConfigProvider(ConfigProvider):
    """Config provider for one type stored in a SqlServerConfigDatabase."""

    def __init__(self, config_type: str, database: SqlServerConfigDatabase):
        super().__init__(config_type)
        self.database = database

    async def get_all_from_database(self) -> Dict[str, Any]:
        return {
            self.key_for(name): content
            for name, content in self.database.list_entries(self.config_type)
        }

    async def get_single_from_database(self, name: str) -> Optional[Any]:
        return self.database.get_entry(self.config_type, name)

    async def import_single(self, name: str, content: Any) -> None:
        self.database.upsert_entry(self.config_type, name, content)

    async def delete_single(self, name: str) -> None:
        self.database.delete_entry(self.config_type, name)
