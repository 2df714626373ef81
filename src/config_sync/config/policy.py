"""
Sync policy: which config types are managed and how they are serialized.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple

from ..codec import composite_key


DEFAULT_INCLUDE = ("core-store", "role-permissions", "i18n-locale")


@dataclass(frozen=True)
class SyncPolicy:
    """
    Read-only policy for one sync engine.

    Attributes:
        destination: Directory holding the config files
        include: Managed config types, in provider iteration order
        exclude: Composite keys ('type.name') that are never synced
        minify: Write compact JSON instead of indented JSON
    """
    destination: Path
    include: Tuple[str, ...] = DEFAULT_INCLUDE
    exclude: FrozenSet[str] = field(default_factory=frozenset)
    minify: bool = False

    @classmethod
    def create(
        cls,
        destination: Path,
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
        minify: bool = False,
    ) -> "SyncPolicy":
        """Build a policy from plain iterables."""
        types = tuple(include) if include is not None else DEFAULT_INCLUDE
        return cls(
            destination=Path(destination),
            include=tuple(dict.fromkeys(types)),
            exclude=frozenset(exclude or ()),
            minify=bool(minify),
        )

    def is_included(self, config_type: str) -> bool:
        return config_type in self.include

    def is_excluded(self, config_type: str, name: str) -> bool:
        return composite_key(config_type, name) in self.exclude

    def manages(self, config_type: str, name: str) -> bool:
        """True if the entry is included by type and not excluded by key."""
        return self.is_included(config_type) and not self.is_excluded(config_type, name)

    def types_for(self, config_type: Optional[str] = None) -> Tuple[str, ...]:
        """Included types, narrowed to one type when a filter is given."""
        if not config_type:
            return self.include
        return tuple(t for t in self.include if t == config_type)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "destination": str(self.destination),
            "include": list(self.include),
            "exclude": sorted(self.exclude),
            "minify": self.minify,
        }
