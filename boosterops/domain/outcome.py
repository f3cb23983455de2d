"""
Outcome domain objects for boosterops.

Each booster/branch combination handled during a run ends up in one of
three buckets: processed, failed or ignored (skipped). The collector is
owned by a single orchestration run and returned when the run completes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Set, Tuple


class Outcome(Enum):
    """Status of one booster/branch combination."""
    PROCESSED = "processed"
    FAILED = "failed"
    IGNORED = "ignored"


@dataclass(frozen=True)
class OutcomeRecord:
    """What happened to one booster on one branch."""
    outcome: Outcome
    branch: str
    booster: str
    reason: Optional[str] = None

    def __str__(self) -> str:
        parts = [self.branch, self.booster] if self.branch else [self.booster]
        if self.reason:
            parts.append(f'"{self.reason}"')
        return ':'.join(parts)


@dataclass
class RunResults:
    """
    Results accumulated by one orchestration run.

    Also carries the per-run memo of booster/branch combinations whose
    Maven setup was already verified.
    """
    processed: List[OutcomeRecord] = field(default_factory=list)
    failed: List[OutcomeRecord] = field(default_factory=list)
    ignored: List[OutcomeRecord] = field(default_factory=list)
    validated: Set[Tuple[str, str]] = field(default_factory=set)

    def record(
        self,
        outcome: Outcome,
        branch: str,
        booster: str,
        reason: Optional[str] = None
    ) -> OutcomeRecord:
        """Add a record to the matching bucket."""
        entry = OutcomeRecord(outcome, branch, booster, reason)
        if outcome is Outcome.PROCESSED:
            self.processed.append(entry)
        elif outcome is Outcome.FAILED:
            self.failed.append(entry)
        else:
            self.ignored.append(entry)
        return entry

    def processed_ok(self, branch: str, booster: str) -> OutcomeRecord:
        return self.record(Outcome.PROCESSED, branch, booster)

    def fail(self, branch: str, booster: str, reason: str) -> OutcomeRecord:
        return self.record(Outcome.FAILED, branch, booster, reason)

    def ignore(self, branch: str, booster: str, reason: str) -> OutcomeRecord:
        return self.record(Outcome.IGNORED, branch, booster, reason)

