"""
Domain layer for boosterops.

Contains pure domain objects with no I/O or side effects:
- Version: Booster version parsing, ordering and bumping
- Booster: A discovered booster repository and the selection policy
- OutcomeRecord / RunResults: What happened to each booster/branch
- Tag helpers: Latest upstream/production tag, next production tag
"""

from .version import Version, Ordering, parse_version, compare, compare_base, is_valid_base
from .booster import Booster, Selection, SelectionMode, simple_name
from .outcome import Outcome, OutcomeRecord, RunResults
from .tags import latest_tag, next_production_tag, parse_tags

__all__ = [
    'Version',
    'Ordering',
    'parse_version',
    'compare',
    'compare_base',
    'is_valid_base',
    'Booster',
    'Selection',
    'SelectionMode',
    'simple_name',
    'Outcome',
    'OutcomeRecord',
    'RunResults',
    'latest_tag',
    'next_production_tag',
    'parse_tags',
]
