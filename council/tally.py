"""Severity tally math shared by the voting gate and the debate consensus check."""

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass

from council.models import Severity


@dataclass(frozen=True)
class MajorityVote:
    severity: Severity
    count: int
    total: int

    @property
    def confidence(self) -> float:
        return self.count / self.total


def tally(severities: Iterable[Severity]) -> Counter:
    return Counter(Severity.parse(s) for s in severities)


def majority_vote(severities: Iterable[Severity]) -> MajorityVote | None:
    """Plurality severity; ties escalate to the higher-ranked severity.

    Returns None for an empty input.
    """
    counts = tally(severities)
    if not counts:
        return None
    winner = max(counts, key=lambda s: (counts[s], s.rank))
    return MajorityVote(severity=winner, count=counts[winner], total=sum(counts.values()))
