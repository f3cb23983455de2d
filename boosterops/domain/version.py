"""
Version domain object for boosterops.

Booster versions follow the ``<base>-<revision>[-<qualifier>][-SNAPSHOT]``
scheme, for example ``1.5.13-2-redhat-SNAPSHOT``:

- base: the platform version the booster is built against (``1.5.13``)
- revision: the booster's own incrementing counter (``2``)
- qualifier: optional distribution marker (``redhat``, ``rhoar``)
- snapshot: whether the version is a development snapshot

Versions are immutable snapshots of what a pom declared at one point in time.
"""

import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from ..errors import VersionParseError


SNAPSHOT = "SNAPSHOT"

_VERSION_RE = re.compile(
    r'^(?P<base>\d+(?:\.\d+){0,2})'
    r'-(?P<revision>\d+)'
    r'(?:-(?P<qualifier>[a-zA-Z0-9]+))?'
    r'(?:-(?P<snapshot>SNAPSHOT))?$'
)


class Ordering(Enum):
    """Result of comparing two versions."""
    LESS = -1
    EQUAL = 0
    GREATER = 1


@dataclass(frozen=True)
class Version:
    """A parsed booster version."""
    base: str
    revision: int
    qualifier: Optional[str] = None
    snapshot: bool = False

    @classmethod
    def parse(cls, raw: str) -> 'Version':
        """
        Parse a version string.

        Args:
            raw: Version string such as ``1.5.13-2-redhat-SNAPSHOT``

        Returns:
            Version instance

        Raises:
            VersionParseError: If the string does not match the scheme
        """
        match = _VERSION_RE.match(raw.strip()) if raw else None
        if not match:
            raise VersionParseError(raw)

        qualifier = match.group('qualifier')
        snapshot = match.group('snapshot') is not None

        # Without a qualifier, SNAPSHOT lands in the qualifier slot
        if qualifier == SNAPSHOT and not snapshot:
            qualifier = None
            snapshot = True

        return cls(
            base=match.group('base'),
            revision=int(match.group('revision')),
            qualifier=qualifier,
            snapshot=snapshot,
        )

    @property
    def base_parts(self) -> Tuple[int, ...]:
        """Numeric segments of the base version."""
        return tuple(int(part) for part in self.base.split('.'))

    @property
    def sort_key(self) -> Tuple[Tuple[int, ...], int]:
        """Key consistent with compare(); qualifier and snapshot are ignored."""
        parts = self.base_parts
        return parts + (0,) * (3 - len(parts)), self.revision

    def next_revision(self) -> 'Version':
        """
        Increment the revision, keeping the base.

        Snapshots keep their qualifier and snapshot marker, released
        versions keep their qualifier.
        """
        return replace(self, revision=self.revision + 1)

    def release_version(self) -> 'Version':
        """The version to tag when releasing this snapshot."""
        return replace(self, snapshot=False)

    def next_snapshot_version(self) -> 'Version':
        """The development version that follows a release of this version."""
        return replace(self, revision=self.revision + 1, snapshot=True)

    def __str__(self) -> str:
        value = f"{self.base}-{self.revision}"
        if self.qualifier:
            value += f"-{self.qualifier}"
        if self.snapshot:
            value += f"-{SNAPSHOT}"
        return value


_BASE_RE = re.compile(r'^\d+(?:\.\d+){0,2}$')


def is_valid_base(base: str) -> bool:
    """Check a base version such as ``1.5.13``."""
    return bool(base) and _BASE_RE.match(base) is not None


def parse_version(raw: str) -> Version:
    """Parse a raw version string, see Version.parse."""
    return Version.parse(raw)


def compare_base(left: str, right: str) -> Ordering:
    """
    Compare two dotted numeric base versions segment by segment.

    Missing trailing segments count as zero, so ``1.5`` equals ``1.5.0``.
    """
    left_parts = [int(p) for p in left.split('.')]
    right_parts = [int(p) for p in right.split('.')]
    length = max(len(left_parts), len(right_parts))
    left_parts += [0] * (length - len(left_parts))
    right_parts += [0] * (length - len(right_parts))

    for mine, theirs in zip(left_parts, right_parts):
        if mine > theirs:
            return Ordering.GREATER
        if mine < theirs:
            return Ordering.LESS
    return Ordering.EQUAL


def compare(a: Version, b: Version) -> Ordering:
    """
    Compare two versions by base, then by revision.

    Qualifier and snapshot take no part in the ordering: ``1.5.13-2-redhat``
    and ``1.5.13-2-SNAPSHOT`` compare EQUAL.
    """
    result = compare_base(a.base, b.base)
    if result is not Ordering.EQUAL:
        return result
    if a.revision > b.revision:
        return Ordering.GREATER
    if a.revision < b.revision:
        return Ordering.LESS
    return Ordering.EQUAL
