"""Tests for council/resolver.py."""

import pytest

from council.grouping import group_by_location
from council.models import (
    Consensus,
    ConsensusType,
    DebateParticipant,
    DebateResult,
    DebateRound,
    DiscussionSeverity,
    DiscussionStatus,
    Severity,
)
from council.resolver import DiscussionIdGenerator, DiscussionResolver
from tests.conftest import make_opinion


def test_id_generator_is_sequential_and_zero_padded():
    next_id = DiscussionIdGenerator()
    assert [next_id() for _ in range(3)] == ["d001", "d002", "d003"]


def test_id_generator_custom_prefix_and_start():
    next_id = DiscussionIdGenerator(prefix="disc-", start=41, width=4)
    assert next_id() == "disc-0041"
    assert next_id() == "disc-0042"


@pytest.mark.parametrize(
    "severity,expected",
    [
        (Severity.CRITICAL, DiscussionSeverity.CRITICAL),
        (Severity.MAJOR, DiscussionSeverity.WARNING),
        (Severity.MINOR, DiscussionSeverity.SUGGESTION),
        (Severity.NITPICK, DiscussionSeverity.SUGGESTION),
    ],
)
def test_consensus_severity_mapping(severity, expected):
    group = group_by_location([make_opinion("alpha", severity)])[0]
    discussion = DiscussionResolver().from_consensus(Consensus(group, severity, 1.0, ["alpha"], weak=True))
    assert discussion.severity is expected


def test_from_consensus_uses_group_location_and_evidence():
    opinions = [
        make_opinion("alpha", Severity.MAJOR, line=10, line_end=15),
        make_opinion("beta", Severity.MAJOR, line=10, line_end=18),
    ]
    group = group_by_location(opinions)[0]
    discussion = DiscussionResolver().from_consensus(Consensus(group, Severity.MAJOR, 1.0, ["alpha", "beta"]))

    assert discussion.id == "d001"
    assert discussion.title == "SQL injection in login query"
    assert discussion.file == "src/auth.ts"
    assert discussion.line_range == (10, 18)
    assert discussion.evidence_refs == ["alpha:src/auth.ts:10", "beta:src/auth.ts:10"]
    assert discussion.status is DiscussionStatus.RESOLVED


def test_from_debate_adds_round_refs():
    opinions = [make_opinion("alpha", Severity.CRITICAL), make_opinion("beta", Severity.MINOR)]
    group = group_by_location(opinions)[0]
    participants = [DebateParticipant(o.reviewer_id, o) for o in opinions]
    for p in participants:
        p.record(DebateRound(1, "argument", 0.8, Severity.CRITICAL, False, 0.5))
    result = DebateResult(
        location=group,
        participants=participants,
        rounds_run=1,
        consensus_type=ConsensusType.STRONG,
        final_severity=Severity.CRITICAL,
        duration_sec=0.1,
    )

    discussion = DiscussionResolver().from_debate(result)

    assert discussion.severity is DiscussionSeverity.CRITICAL
    assert discussion.evidence_refs == [
        "alpha:src/auth.ts:42",
        "beta:src/auth.ts:42",
        "alpha:src/auth.ts:42:round-1",
        "beta:src/auth.ts:42:round-1",
    ]
    assert discussion.line_range == (42, 42)


def test_resolver_shares_id_sequence_across_kinds():
    next_id = DiscussionIdGenerator()
    resolver = DiscussionResolver(next_id)
    group = group_by_location([make_opinion("alpha")])[0]
    first = resolver.from_consensus(Consensus(group, Severity.MAJOR, 1.0, ["alpha"]))
    second = resolver.from_consensus(Consensus(group, Severity.MAJOR, 1.0, ["alpha"]))
    assert (first.id, second.id) == ("d001", "d002")
    assert next_id() == "d003"


def test_suggestions_are_carried_without_repeats():
    opinions = [
        make_opinion("alpha", Severity.MAJOR, suggestion="Use parameterized queries"),
        make_opinion("beta", Severity.MAJOR),
        make_opinion("gamma", Severity.MAJOR, suggestion="Use parameterized queries"),
        make_opinion("delta", Severity.MAJOR, suggestion="Escape user input"),
    ]
    group = group_by_location(opinions)[0]
    discussion = DiscussionResolver().from_consensus(Consensus(group, Severity.MAJOR, 1.0, ["alpha"]))
    assert discussion.suggestions == ["Use parameterized queries", "Escape user input"]
