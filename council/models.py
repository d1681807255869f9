"""Dataclasses shared by grouping, voting, debate and deduplication. No I/O."""

from dataclasses import dataclass, field
from enum import Enum


class Severity(str, Enum):
    """Opinion severity, declared highest first."""

    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"
    NITPICK = "nitpick"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @classmethod
    def parse(cls, value: "str | Severity") -> "Severity":
        """Accept canonical names plus the warning/suggestion aliases."""
        if isinstance(value, Severity):
            return value
        key = str(value).strip().lower()
        key = _SEVERITY_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown severity: {value!r}") from None


_SEVERITY_RANK = {
    Severity.CRITICAL: 4,
    Severity.MAJOR: 3,
    Severity.MINOR: 2,
    Severity.NITPICK: 1,
}

_SEVERITY_ALIASES = {"warning": "major", "suggestion": "minor"}


class DiscussionSeverity(str, Enum):
    HARSHLY_CRITICAL = "harshly_critical"
    CRITICAL = "critical"
    WARNING = "warning"
    SUGGESTION = "suggestion"

    @property
    def rank(self) -> int:
        return _DISCUSSION_RANK[self]


_DISCUSSION_RANK = {
    DiscussionSeverity.HARSHLY_CRITICAL: 4,
    DiscussionSeverity.CRITICAL: 3,
    DiscussionSeverity.WARNING: 2,
    DiscussionSeverity.SUGGESTION: 1,
}


class DiscussionStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    ESCALATED = "escalated"


class ConsensusType(str, Enum):
    STRONG = "strong"
    MAJORITY = "majority"
    FAILED = "failed"


@dataclass(frozen=True)
class Opinion:
    reviewer_id: str
    severity: Severity
    category: str
    file: str
    line: int
    title: str
    line_end: int | None = None
    description: str | None = None
    suggestion: str | None = None
    confidence: float = 0.5

    def __post_init__(self) -> None:
        # Frozen, so normalize through object.__setattr__
        object.__setattr__(self, "severity", Severity.parse(self.severity))
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Opinion confidence must be in [0, 1], got {self.confidence}")

    @property
    def key(self) -> "LocationKey":
        return LocationKey(self.file, self.line, self.title)

    @property
    def line_range(self) -> tuple[int, int]:
        end = self.line_end if self.line_end is not None else self.line
        return (min(self.line, end), max(self.line, end))


@dataclass(frozen=True)
class LocationKey:
    file: str
    line: int
    title: str

    def __str__(self) -> str:
        return f"{self.file}:{self.line}"


@dataclass
class LocationGroup:
    key: LocationKey
    opinions: list[Opinion] = field(default_factory=list)

    def add(self, opinion: Opinion) -> None:
        if opinion.key != self.key:
            raise ValueError(f"Opinion at {opinion.key} does not belong to group {self.key}")
        self.opinions.append(opinion)

    @property
    def reviewer_ids(self) -> list[str]:
        return [o.reviewer_id for o in self.opinions]


@dataclass
class Consensus:
    group: LocationGroup
    severity: Severity
    confidence: float
    voter_ids: list[str]
    weak: bool = False          # single voter or classifier fallback


@dataclass
class NeedsDebate:
    group: LocationGroup
    reason: str
    triggering_opinions: list[Opinion]


ConsensusDecision = Consensus | NeedsDebate


@dataclass
class DebateDecision:
    required: bool
    reason: str
    triggering_opinions: list[Opinion] = field(default_factory=list)
    triggered: list[NeedsDebate] = field(default_factory=list)
    fallback: list[Consensus] = field(default_factory=list)


@dataclass(frozen=True)
class DebateRound:
    round_number: int
    argument: str
    confidence: float
    severity: Severity
    changed_position: bool
    quality_score: float
    failed: bool = False


@dataclass
class DebateParticipant:
    reviewer_id: str
    original_opinion: Opinion
    rounds: list[DebateRound] = field(default_factory=list)

    def record(self, debate_round: DebateRound) -> None:
        expected = len(self.rounds) + 1
        if debate_round.round_number != expected:
            raise ValueError(
                f"Round {debate_round.round_number} recorded out of order for "
                f"{self.reviewer_id} (expected {expected})"
            )
        self.rounds.append(debate_round)

    @property
    def current_severity(self) -> Severity:
        return self.rounds[-1].severity if self.rounds else self.original_opinion.severity

    @property
    def current_confidence(self) -> float:
        return self.rounds[-1].confidence if self.rounds else self.original_opinion.confidence


@dataclass(frozen=True)
class DebateContext:
    """Everything a backend needs to argue one participant's round."""

    reviewer_id: str
    location: LocationKey
    category: str
    position: Opinion
    current_severity: Severity
    current_confidence: float
    round_number: int
    opponent_summary: str       # anonymized, grouped by severity
    instruction: str
    previous_arguments: tuple[str, ...] = ()


@dataclass
class DebateResult:
    location: LocationGroup
    participants: list[DebateParticipant]
    rounds_run: int
    consensus_type: ConsensusType
    final_severity: Severity
    duration_sec: float
    early_stopped: bool = False


@dataclass
class Discussion:
    id: str
    severity: DiscussionSeverity
    title: str
    file: str
    line_range: tuple[int, int]
    evidence_refs: list[str] = field(default_factory=list)
    status: DiscussionStatus = DiscussionStatus.RESOLVED
    suggestions: list[str] = field(default_factory=list)


@dataclass
class DeduplicationResult:
    deduplicated: list[Discussion]
    merged_count: int
