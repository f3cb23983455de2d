"""
Release tag selection for boosterops.

Boosters carry two kinds of tags:

- upstream tags, the plain release version (``1.5.13-2``)
- production tags, the release version with the production qualifier
  (``1.5.13-1-redhat``)

Tags that do not follow the version scheme (``v1.0``, ``latest``) are ignored.
"""

from typing import Iterable, List, Optional

from ..errors import VersionParseError
from .version import Version, compare_base, Ordering

DEFAULT_PRODUCTION_QUALIFIER = "redhat"


def parse_tags(names: Iterable[str]) -> List[Version]:
    """Parse tag names, dropping those that are not versions."""
    versions = []
    for name in names:
        if not name or name.startswith('v'):
            continue
        try:
            versions.append(Version.parse(name))
        except VersionParseError:
            continue
    return versions


def is_production(version: Version, production_qualifier: str = DEFAULT_PRODUCTION_QUALIFIER) -> bool:
    return version.qualifier == production_qualifier


def latest_tag(
    names: Iterable[str],
    production: bool = False,
    production_qualifier: str = DEFAULT_PRODUCTION_QUALIFIER
) -> Optional[Version]:
    """
    Find the most recent upstream or production tag.

    Args:
        names: Tag names as listed by git
        production: Look for production tags instead of upstream ones
        production_qualifier: Qualifier that marks production tags

    Returns:
        Highest matching tag, or None if there is none
    """
    candidates = [
        v for v in parse_tags(names)
        if not v.snapshot and is_production(v, production_qualifier) == production
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda v: v.sort_key)


def next_production_tag(
    names: Iterable[str],
    base: str,
    production_qualifier: str = DEFAULT_PRODUCTION_QUALIFIER
) -> Version:
    """
    Compute the next production tag for a base version.

    Revisions count up per base version, starting at 1.
    """
    revisions = [
        v.revision for v in parse_tags(names)
        if is_production(v, production_qualifier)
        and compare_base(v.base, base) is Ordering.EQUAL
    ]
    revision = max(revisions) + 1 if revisions else 1
    return Version(base=base, revision=revision, qualifier=production_qualifier)
