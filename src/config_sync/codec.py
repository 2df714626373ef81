"""
Key codec for config entries.

Maps a logical ``(type, name)`` identity to composite keys and to the flat
filenames used in the destination directory:

    {type}.{encoded_name}.json

Names may contain ':' which is not allowed in Windows filenames, so it is
stored as '#'. A name that itself contains '#' does not survive the round
trip; such names are not supported.
"""

from typing import Optional

from .core.exceptions import InvalidConfigKeyError
from .core.models import ConfigKey

KEY_SEPARATOR = "."
RESERVED_CHAR = ":"
SUBSTITUTE_CHAR = "#"
FILE_EXTENSION = ".json"


def encode_name(name: str) -> str:
    """Replace every ':' with '#' for use in a filename."""
    return name.replace(RESERVED_CHAR, SUBSTITUTE_CHAR)


def decode_name(storage_name: str) -> str:
    """Inverse of encode_name."""
    return storage_name.replace(SUBSTITUTE_CHAR, RESERVED_CHAR)


def composite_key(config_type: str, name: str) -> str:
    """Build the ``type.name`` composite key."""
    return f"{config_type}{KEY_SEPARATOR}{name}"


def split_composite_key(key: str) -> ConfigKey:
    """
    Split a composite key on its first separator.

    Args:
        key: Composite key such as 'core-store.plugin_users-permissions_grant'

    Returns:
        ConfigKey with the type and the (possibly dotted) name

    Raises:
        InvalidConfigKeyError: If the key has no separator or an empty part
    """
    config_type, sep, name = key.partition(KEY_SEPARATOR)
    if not sep or not config_type or not name:
        raise InvalidConfigKeyError(f"Invalid config key: {key!r}")
    return ConfigKey(config_type, name)


def filename_for(config_type: str, name: str) -> str:
    """Get the destination filename for a config entry."""
    return f"{config_type}{KEY_SEPARATOR}{encode_name(name)}{FILE_EXTENSION}"


def parse_filename(filename: str) -> Optional[ConfigKey]:
    """
    Recover the config key from a destination filename.

    Returns None for files that do not follow the layout (wrong extension,
    missing type or name segment).
    """
    if not filename.endswith(FILE_EXTENSION):
        return None
    stem = filename[: -len(FILE_EXTENSION)]
    try:
        key = split_composite_key(stem)
    except InvalidConfigKeyError:
        return None
    return ConfigKey(key.config_type, decode_name(key.name))
