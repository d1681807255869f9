"""Turn gate consensus and debate results into reporting-level discussions."""

from collections.abc import Iterable

from council.models import (
    Consensus,
    DebateResult,
    Discussion,
    DiscussionSeverity,
    DiscussionStatus,
    Opinion,
    Severity,
)

SEVERITY_TO_DISCUSSION: dict[Severity, DiscussionSeverity] = {
    Severity.CRITICAL: DiscussionSeverity.CRITICAL,
    Severity.MAJOR: DiscussionSeverity.WARNING,
    Severity.MINOR: DiscussionSeverity.SUGGESTION,
    Severity.NITPICK: DiscussionSeverity.SUGGESTION,
}


class DiscussionIdGenerator:
    """Sequential discussion ids (d001, d002, ...). One instance per run."""

    def __init__(self, prefix: str = "d", start: int = 1, width: int = 3) -> None:
        self._prefix = prefix
        self._next = start
        self._width = width

    def __call__(self) -> str:
        value = f"{self._prefix}{self._next:0{self._width}d}"
        self._next += 1
        return value


def _line_range(opinions: Iterable[Opinion]) -> tuple[int, int]:
    ranges = [o.line_range for o in opinions]
    return (min(r[0] for r in ranges), max(r[1] for r in ranges))


def _opinion_ref(opinion: Opinion) -> str:
    return f"{opinion.reviewer_id}:{opinion.file}:{opinion.line}"


def _suggestions(opinions: Iterable[Opinion]) -> list[str]:
    """Reviewer fix suggestions in first-seen order, without repeats."""
    suggestions: list[str] = []
    for opinion in opinions:
        if opinion.suggestion and opinion.suggestion not in suggestions:
            suggestions.append(opinion.suggestion)
    return suggestions


class DiscussionResolver:
    def __init__(self, next_id: DiscussionIdGenerator | None = None) -> None:
        self._next_id = next_id or DiscussionIdGenerator()

    def from_consensus(self, consensus: Consensus) -> Discussion:
        group = consensus.group
        return Discussion(
            id=self._next_id(),
            severity=SEVERITY_TO_DISCUSSION[consensus.severity],
            title=group.key.title,
            file=group.key.file,
            line_range=_line_range(group.opinions),
            evidence_refs=[_opinion_ref(o) for o in group.opinions],
            status=DiscussionStatus.RESOLVED,
            suggestions=_suggestions(group.opinions),
        )

    def from_debate(self, result: DebateResult) -> Discussion:
        key = result.location.key
        refs = [_opinion_ref(p.original_opinion) for p in result.participants]
        for participant in result.participants:
            refs.extend(
                f"{participant.reviewer_id}:{key.file}:{key.line}:round-{r.round_number}" for r in participant.rounds
            )

        return Discussion(
            id=self._next_id(),
            severity=SEVERITY_TO_DISCUSSION[result.final_severity],
            title=key.title,
            file=key.file,
            line_range=_line_range(p.original_opinion for p in result.participants),
            evidence_refs=refs,
            status=DiscussionStatus.RESOLVED,
            suggestions=_suggestions(p.original_opinion for p in result.participants),
        )
