"""
Booster domain objects for boosterops.

A booster is one managed repository as returned by discovery: a canonical
name plus the URL it is cloned from. The local working copy lives under the
configured boosters directory.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import FrozenSet, Iterable, List, Optional

DEFAULT_PREFIX = "spring-boot-"
DEFAULT_SUFFIX = "-booster"


def simple_name(name: str, prefix: str = DEFAULT_PREFIX, suffix: str = DEFAULT_SUFFIX) -> str:
    """
    Derive the short booster name used for selection.

    ``spring-boot-circuit-breaker-booster`` becomes ``circuit-breaker``.
    Names that do not follow the convention are returned unchanged.
    """
    if name.startswith(prefix) and name.endswith(suffix) and len(name) > len(prefix) + len(suffix):
        return name[len(prefix):len(name) - len(suffix)]
    return name


@dataclass(frozen=True)
class Booster:
    """A discovered booster repository."""
    name: str
    url: str
    prefix: str = DEFAULT_PREFIX
    suffix: str = DEFAULT_SUFFIX

    @property
    def simple_name(self) -> str:
        return simple_name(self.name, self.prefix, self.suffix)

    def local_path(self, boosters_dir: Path) -> Path:
        """Working copy location under the boosters directory."""
        return Path(boosters_dir) / self.name


class SelectionMode(Enum):
    """How explicitly named boosters affect processing."""
    ALL = "all"
    INCLUDE = "include"
    EXCLUDE = "exclude"


@dataclass(frozen=True)
class Selection:
    """
    Booster selection policy.

    Only one of include/exclude can be given. Names are booster simple
    names, e.g. ``circuit-breaker``.
    """
    mode: SelectionMode = SelectionMode.ALL
    names: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_lists(
        cls,
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None
    ) -> 'Selection':
        """
        Build a selection from include/exclude name lists.

        Raises:
            ValueError: If both lists are non-empty
        """
        include_set = frozenset(n.strip() for n in (include or []) if n.strip())
        exclude_set = frozenset(n.strip() for n in (exclude or []) if n.strip())

        if include_set and exclude_set:
            raise ValueError("Booster include and exclude lists cannot be used together")
        if include_set:
            return cls(SelectionMode.INCLUDE, include_set)
        if exclude_set:
            return cls(SelectionMode.EXCLUDE, exclude_set)
        return cls()

    def accepts(self, booster: Booster) -> bool:
        """Check whether a booster should be processed."""
        if self.mode is SelectionMode.INCLUDE:
            return booster.simple_name in self.names
        if self.mode is SelectionMode.EXCLUDE:
            return booster.simple_name not in self.names
        return True

    def apply(self, boosters: Iterable[Booster]) -> List[Booster]:
        return [b for b in boosters if self.accepts(b)]
