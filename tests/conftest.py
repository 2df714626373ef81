"""
Shared test fixtures and configuration for pytest.
"""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import pytest

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from config_sync.config.policy import SyncPolicy
from config_sync.core.exceptions import ConfigIOError
from config_sync.core.provider import ConfigProvider
from config_sync.sync_engine import SyncEngine


logger = logging.getLogger(__name__)


# ============================================================================
# Environment detection
# ============================================================================

def is_sqlserver_available() -> bool:
    """Check if SQL Server is available for testing."""
    password = os.environ.get("CONFIG_SYNC_SQLSERVER_PASSWORD") or os.environ.get("MSSQL_SA_PASSWORD")
    if not password:
        return False

    try:
        import pyodbc

        host = os.environ.get("CONFIG_SYNC_SQLSERVER_HOST", "localhost")
        port = int(os.environ.get("CONFIG_SYNC_SQLSERVER_PORT", "1433"))
        database = os.environ.get("CONFIG_SYNC_SQLSERVER_DATABASE", "master")
        driver = os.environ.get("CONFIG_SYNC_SQLSERVER_DRIVER", "ODBC Driver 18 for SQL Server")

        conn_str = (
            f"Driver={{{driver}}};"
            f"Server={host},{port};"
            f"Database={database};"
            f"UID=sa;"
            f"PWD={password};"
            f"TrustServerCertificate=yes"
        )

        conn = pyodbc.connect(conn_str, timeout=5)
        conn.close()
        return True

    except Exception as e:
        logger.debug(f"SQL Server not available: {e}")
        return False


# ============================================================================
# Pytest hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (requires SQL Server)")


def pytest_collection_modifyitems(config, items):
    """Automatically skip integration tests if SQL Server is not available."""
    if not any("integration" in item.keywords for item in items):
        return
    if is_sqlserver_available():
        return

    skip_sqlserver = pytest.mark.skip(
        reason="SQL Server not available (set MSSQL_SA_PASSWORD and ensure SQL Server is running)"
    )

    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_sqlserver)


# ============================================================================
# Fakes
# ============================================================================

class InMemoryProvider(ConfigProvider):
    """
    Config provider backed by a dict, recording every call.

    Names listed in ``fail_on`` raise ConfigIOError on write and delete.
    """

    def __init__(
        self,
        config_type: str,
        entries: Optional[Dict[str, Any]] = None,
        fail_on: Iterable[str] = (),
    ):
        super().__init__(config_type)
        self.entries = dict(entries or {})
        self.fail_on = set(fail_on)
        self.calls = []

    async def get_all_from_database(self) -> Dict[str, Any]:
        return {self.key_for(name): content for name, content in self.entries.items()}

    async def get_single_from_database(self, name: str) -> Optional[Any]:
        return self.entries.get(name)

    async def import_single(self, name: str, content: Any) -> None:
        self.calls.append(("import", name, content))
        if name in self.fail_on:
            raise ConfigIOError(f"write failed for {name}")
        self.entries[name] = content

    async def delete_single(self, name: str) -> None:
        self.calls.append(("delete", name))
        if name in self.fail_on:
            raise ConfigIOError(f"delete failed for {name}")
        self.entries.pop(name, None)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def destination(tmp_path) -> Path:
    """Fixture providing the config file destination directory (not created)."""
    return tmp_path / "config" / "sync"


@pytest.fixture
def make_policy(destination):
    """Factory fixture for sync policies rooted at the test destination."""
    def _make(include=("settings", "roles"), exclude=(), minify=False) -> SyncPolicy:
        return SyncPolicy.create(
            destination=destination,
            include=include,
            exclude=exclude,
            minify=minify,
        )
    return _make


@pytest.fixture
def write_config(destination):
    """Factory fixture writing a raw config file into the destination."""
    def _write(filename: str, content: Any) -> Path:
        destination.mkdir(parents=True, exist_ok=True)
        path = destination / filename
        path.write_text(json.dumps(content), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def make_engine(make_policy):
    """Factory fixture building a SyncEngine over in-memory providers."""
    def _make(providers: Dict[str, InMemoryProvider], **policy_kwargs) -> SyncEngine:
        policy_kwargs.setdefault("include", tuple(providers))
        return SyncEngine(policy=make_policy(**policy_kwargs), providers=providers)
    return _make


@pytest.fixture
def make_provider():
    """Fixture providing the InMemoryProvider class."""
    return InMemoryProvider


@pytest.fixture(scope="session")
def sqlserver_config_database():
    """
    Session-scoped fixture providing a SQL Server config database.

    Uses a dedicated test table that is dropped after the session.
    """
    password = os.environ.get("CONFIG_SYNC_SQLSERVER_PASSWORD") or os.environ.get("MSSQL_SA_PASSWORD")
    if not password:
        pytest.skip("SQL Server password not configured")

    from config_sync.providers.sqlserver_provider import SqlServerConfigDatabase

    database = SqlServerConfigDatabase(
        host=os.environ.get("CONFIG_SYNC_SQLSERVER_HOST", "localhost"),
        port=int(os.environ.get("CONFIG_SYNC_SQLSERVER_PORT", "1433")),
        database=os.environ.get("CONFIG_SYNC_SQLSERVER_DATABASE", "master"),
        password=password,
        driver=os.environ.get("CONFIG_SYNC_SQLSERVER_DRIVER", "ODBC Driver 18 for SQL Server"),
        table="config_entries_test",
    )

    yield database

    cursor = database.conn.cursor()
    cursor.execute(f"DROP TABLE IF EXISTS {database.qualified_table}")
    database.conn.commit()
    database.close()
