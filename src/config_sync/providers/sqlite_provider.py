"""
SQLite-backed config providers.

All managed types share one table keyed by (config_type, name); each
provider instance is scoped to a single type. Database calls are
synchronous, so provider coroutines run them one after another on the
event loop thread.
"""

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..core.exceptions import ConfigIOError
from ..core.provider import ConfigProvider


logger = logging.getLogger(__name__)


class SqliteConfigDatabase:
    """
    Shared SQLite connection holding the config entries table.
    """

    def __init__(self, db_path: Path, table: str = "config_entries", auto_init: bool = True):
        """
        Initialize the SQLite config database.

        Args:
            db_path: Path to the SQLite database file, or ':memory:'
            table: Table name
            auto_init: Whether to create the table automatically
        """
        if not self._is_valid_identifier(table):
            raise ValueError(f"Invalid table name: {table}")

        self.db_path = db_path
        self.table = table
        self.conn = None
        self._connect()

        if auto_init:
            self._init_schema()

    def _is_valid_identifier(self, name: str) -> bool:
        """Validate that a name is a safe SQL identifier."""
        return bool(name and name.replace('_', '').isalnum() and not name[0].isdigit())

    def _connect(self) -> None:
        """Establish database connection."""
        if str(self.db_path) != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        logger.debug(f"Connected to SQLite config database: {self.db_path}")

    def _init_schema(self) -> None:
        """Initialize database schema."""
        cursor = self.conn.cursor()
        cursor.execute(f"""
            CREATE TABLE IF NOT EXISTS {self.table} (
                config_type TEXT NOT NULL,
                name TEXT NOT NULL,
                value_json TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                PRIMARY KEY (config_type, name)
            )
        """)
        self.conn.commit()
        logger.debug("Initialized config database schema")

    def list_entries(self, config_type: str) -> List[Tuple[str, Any]]:
        """Get (name, content) pairs of a type, ordered by name."""
        cursor = self.conn.cursor()
        cursor.execute(
            f"SELECT name, value_json FROM {self.table} WHERE config_type = ? ORDER BY name",
            (config_type,),
        )
        return [(row["name"], json.loads(row["value_json"])) for row in cursor.fetchall()]

    def get_entry(self, config_type: str, name: str) -> Optional[Any]:
        cursor = self.conn.cursor()
        cursor.execute(
            f"SELECT value_json FROM {self.table} WHERE config_type = ? AND name = ?",
            (config_type, name),
        )
        row = cursor.fetchone()
        return json.loads(row["value_json"]) if row else None

    def upsert_entry(self, config_type: str, name: str, content: Any) -> None:
        """Insert or replace one entry."""
        now = datetime.now(timezone.utc).isoformat()
        try:
            self.conn.execute(
                f"""INSERT INTO {self.table} (config_type, name, value_json, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT (config_type, name)
                    DO UPDATE SET value_json = excluded.value_json,
                                  updated_at = excluded.updated_at""",
                (config_type, name, json.dumps(content, ensure_ascii=False), now),
            )
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            raise ConfigIOError(
                f"Failed to write {config_type}.{name}: {e}",
                config_key=f"{config_type}.{name}",
            ) from e

    def delete_entry(self, config_type: str, name: str) -> bool:
        """Delete one entry; returns False if it did not exist."""
        try:
            cursor = self.conn.execute(
                f"DELETE FROM {self.table} WHERE config_type = ? AND name = ?",
                (config_type, name),
            )
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            raise ConfigIOError(
                f"Failed to delete {config_type}.{name}: {e}",
                config_key=f"{config_type}.{name}",
            ) from e
        return cursor.rowcount > 0

    def count(self, config_type: Optional[str] = None) -> int:
        """Get the count of entries."""
        sql = f"SELECT COUNT(*) FROM {self.table}"
        params = []
        if config_type:
            sql += " WHERE config_type = ?"
            params.append(config_type)
        return self.conn.execute(sql, params).fetchone()[0]

    def close(self) -> None:
        """Close the database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.debug("Closed SQLite config database")


class SqliteConfigProvider(ConfigProvider):
    """Config provider for one type stored in a SqliteConfigDatabase."""

    def __init__(self, config_type: str, database: SqliteConfigDatabase):
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
        logger.debug(f"Imported {self.key_for(name)} into database")

    async def delete_single(self, name: str) -> None:
        if self.database.delete_entry(self.config_type, name):
            logger.debug(f"Deleted {self.key_for(name)} from database")
