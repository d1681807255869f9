"""End-to-end tests for council/pipeline.py with a mock backend."""

import asyncio

from config.config_loader import AppConfig, DebateConfig, RuntimeSettings
from council.models import ConsensusType, DebateContext, DiscussionSeverity, Severity
from council.pipeline import run_council
from council.resolver import DiscussionIdGenerator
from tests.conftest import MockBackend, make_opinion, reply


def _mixed_opinions():
    return [
        make_opinion("alpha", Severity.CRITICAL, line=42),
        make_opinion("alpha", Severity.MAJOR, line=1, title="Unused variable"),
        make_opinion("beta", Severity.MINOR, line=42),
        make_opinion("beta", Severity.MAJOR, line=1, title="Unused variable"),
        make_opinion("gamma", Severity.NITPICK, file="src/util.ts", line=3, title="Trailing whitespace"),
    ]


async def test_contested_location_is_debated():
    backend = MockBackend(
        {
            "alpha": [reply("CRITICAL", "Line 42 concatenates `username` into SQL.")],
            "beta": [reply("CRITICAL", "Agreed after checking the query builder.")],
        }
    )
    report = await run_council(_mixed_opinions(), backend)

    assert len(report.debates) == 1
    debate = report.debates[0]
    assert debate.consensus_type is ConsensusType.STRONG
    assert debate.location.key.line == 42
    assert report.decision.required is True
    assert {c.reviewer_id for c in backend.contexts} == {"alpha", "beta"}

    # Report order follows first-seen location order
    assert [d.id for d in report.discussions] == ["d001", "d002", "d003"]
    assert [d.line_range for d in report.discussions] == [(42, 42), (1, 1), (3, 3)]
    assert [d.severity for d in report.discussions] == [
        DiscussionSeverity.CRITICAL,
        DiscussionSeverity.WARNING,
        DiscussionSeverity.SUGGESTION,
    ]
    assert "alpha:src/auth.ts:42:round-1" in report.discussions[0].evidence_refs
    assert report.merged_count == 0


async def test_without_backend_contested_locations_use_plurality():
    report = await run_council(_mixed_opinions(), backend=None)

    assert report.debates == []
    assert report.discussions[0].severity is DiscussionSeverity.CRITICAL
    contested = [c for c in report.consensus if c.group.key.line == 42]
    assert len(contested) == 1 and contested[0].weak is True


async def test_unanimous_batch_needs_no_debate(mock_backend):
    opinions = [make_opinion("alpha", Severity.MINOR), make_opinion("beta", Severity.MINOR)]
    report = await run_council(opinions, mock_backend)

    assert report.decision.required is False
    assert mock_backend.contexts == []
    assert len(report.discussions) == 1
    assert report.discussions[0].evidence_refs == ["alpha:src/auth.ts:42", "beta:src/auth.ts:42"]


async def test_near_duplicate_locations_merge_in_report():
    opinions = [
        make_opinion("alpha", Severity.MAJOR, line=10, line_end=15, title="SQL injection in login query"),
        make_opinion("beta", Severity.CRITICAL, line=12, line_end=18, title="SQL injection in the login query"),
    ]
    report = await run_council(opinions, backend=None)

    assert report.merged_count == 1
    assert len(report.discussions) == 1
    merged = report.discussions[0]
    assert merged.line_range == (10, 18)
    assert merged.severity is DiscussionSeverity.CRITICAL
    assert merged.title.endswith("(merged with 1 duplicate(s))")


async def test_custom_id_generator_is_used():
    opinions = [make_opinion("alpha", Severity.MINOR)]
    report = await run_council(opinions, None, id_generator=DiscussionIdGenerator(prefix="x", start=7))
    assert report.discussions[0].id == "x007"


async def test_parallel_debates_respect_limit():
    in_flight = 0
    peak = 0

    class CountingBackend(MockBackend):
        async def execute(self, context: DebateContext, timeout: float | None = None) -> str:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return reply("MAJOR", "Settled.")

    opinions = []
    for line in (1, 20, 40):
        opinions.append(make_opinion("alpha", Severity.CRITICAL, line=line, title=f"Issue {line}"))
        opinions.append(make_opinion("beta", Severity.NITPICK, line=line, title=f"Issue {line}"))

    config = AppConfig(debate=DebateConfig(max_rounds=1), runtime=RuntimeSettings(max_parallel_debates=1))
    report = await run_council(opinions, CountingBackend(), config)

    assert len(report.debates) == 3
    assert peak == 2


async def test_round_callback_fires_per_debate_round():
    seen: list[int] = []
    backend = MockBackend(
        {"alpha": [reply("CRITICAL", "Yes.")], "beta": [reply("CRITICAL", "Agreed.")]}
    )
    await run_council(_mixed_opinions(), backend, on_round_complete=lambda n, _: seen.append(n))
    assert seen == [1]


async def test_merged_debates_keep_every_evidence_ref():
    opinions = []
    for line, line_end, title in ((10, 15, "SQL Injection"), (12, 18, "SQL Injection Risk")):
        opinions.append(make_opinion("alpha", Severity.CRITICAL, file="auth.ts", line=line, line_end=line_end, title=title))
        opinions.append(make_opinion("beta", Severity.MINOR, file="auth.ts", line=line, line_end=line_end, title=title))
    backend = MockBackend(default=reply("CRITICAL", "Input reaches the query unescaped."))

    report = await run_council(opinions, backend)

    assert len(report.debates) == 2
    assert report.merged_count == 1
    merged = report.discussions[0]
    assert merged.line_range == (10, 18)
    assert len(merged.evidence_refs) == 8
    assert "alpha:auth.ts:10:round-1" in merged.evidence_refs
    assert "alpha:auth.ts:12:round-1" in merged.evidence_refs
