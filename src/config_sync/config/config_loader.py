"""
Configuration loader for config sync.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..core.exceptions import ConfigPolicyError
from .policy import DEFAULT_INCLUDE, SyncPolicy


logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _as_bool(value: Any) -> bool:
    """Interpret a YAML or environment value as a boolean flag."""
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_VALUES
    return bool(value)


class SyncConfig:
    """
    Configuration for config sync.

    Loads a YAML configuration file, or defaults when no file is given,
    then applies environment variable overrides.
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to YAML config file (optional)
        """
        self.config_path = Path(config_path) if config_path else None
        self.config = self._load_config() if self.config_path else self._default_config()
        self._apply_env_overrides()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise ConfigPolicyError(f"Config file not found: {self.config_path}")

        logger.info(f"Loading config from: {self.config_path}")

        with open(self.config_path, "r", encoding="utf-8") as f:
            try:
                config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigPolicyError(f"Invalid YAML in {self.config_path}: {e}") from e

        if config is not None and not isinstance(config, dict):
            raise ConfigPolicyError(f"Config root must be a mapping: {self.config_path}")

        return config or {}

    def _default_config(self) -> Dict[str, Any]:
        """Return default configuration."""
        return {
            "sync": {
                "destination": "config/sync/",
                "minify": False,
                "include": list(DEFAULT_INCLUDE),
                "exclude": [],
            },
            "database": {
                "backend": "sqlite",
                "table": "config_entries",
                "sqlite": {
                    "path": "data/config.db",
                },
                "sqlserver": {
                    "host": "localhost",
                    "port": 1433,
                    "database": "Config",
                    "user": "sa",
                    "driver": "ODBC Driver 18 for SQL Server",
                    "schema": "dbo",
                },
            },
        }

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides to loaded config."""
        sync = self.config.setdefault("sync", {})
        database = self.config.setdefault("database", {})

        destination = os.environ.get("CONFIG_SYNC_DESTINATION")
        if destination:
            sync["destination"] = destination

        minify = os.environ.get("CONFIG_SYNC_MINIFY")
        if minify is not None:
            sync["minify"] = _as_bool(minify)

        db_path = os.environ.get("CONFIG_SYNC_DB_PATH")
        if db_path:
            database.setdefault("sqlite", {})["path"] = db_path

        password = os.environ.get("CONFIG_SYNC_SQLSERVER_PASSWORD")
        if password:
            database.setdefault("sqlserver", {})["password"] = password

    def get_sync_config(self) -> Dict[str, Any]:
        """Get sync policy configuration."""
        return self.config.get("sync", {})

    def get_database_config(self) -> Dict[str, Any]:
        """Get database backend configuration."""
        return self.config.get("database", {})

    def get_include(self) -> List[str]:
        return list(self.get("sync.include", list(DEFAULT_INCLUDE)))

    def get_exclude(self) -> List[str]:
        return list(self.get("sync.exclude", []))

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dotted key."""
        keys = key.split(".")
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default

        return value if value is not None else default

    def build_policy(self) -> SyncPolicy:
        """Build the sync policy described by this configuration."""
        destination = self.get("sync.destination")
        if not destination:
            raise ConfigPolicyError("sync.destination is required")

        return SyncPolicy.create(
            destination=Path(destination),
            include=self.get_include(),
            exclude=self.get_exclude(),
            minify=_as_bool(self.get("sync.minify", False)),
        )
