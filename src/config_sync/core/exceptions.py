"""
Custom exceptions for the config sync module.
"""


class ConfigSyncError(Exception):
    """Base exception for all config sync errors."""
    pass


class ConfigNotFoundError(ConfigSyncError):
    """
    A config file or database entry does not exist.

    Raised by storage backends on read; the config file layer recovers it
    locally and hands ``None`` to its caller.
    """

    def __init__(self, message: str, path: str = None):
        super().__init__(message)
        self.path = path


class ConfigIOError(ConfigSyncError):
    """
    Error writing or deleting a config entry.

    Raised when:
    - A config file cannot be written or removed
    - A database write or delete fails
    """

    def __init__(self, message: str, config_key: str = None):
        super().__init__(message)
        self.config_key = config_key


class InvalidConfigKeyError(ConfigSyncError):
    """A composite key or filename cannot be split into type and name."""
    pass


class UnknownConfigTypeError(ConfigSyncError):
    """No provider is registered for a config type."""

    def __init__(self, config_type: str):
        super().__init__(f"No provider registered for config type '{config_type}'")
        self.config_type = config_type


class ConfigPolicyError(ConfigSyncError):
    """
    Error in sync configuration.

    Raised when:
    - Configuration file is missing or invalid
    - Required configuration values are not set
    """
    pass
