"""End-to-end run: group, vote, classify, debate, resolve, deduplicate."""

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from config.config_loader import AppConfig
from council.backends.base import DebateBackend
from council.debate import run_debate
from council.dedup import deduplicate_discussions
from council.grouping import group_by_location
from council.models import (
    Consensus,
    DebateDecision,
    DebateParticipant,
    DebateResult,
    Discussion,
    NeedsDebate,
    Opinion,
)
from council.parsing import ResponseParser
from council.resolver import DiscussionIdGenerator, DiscussionResolver
from council.tally import majority_vote
from council.triggers import classify_debate_need
from council.voting import decide_consensus

logger = logging.getLogger(__name__)


@dataclass
class CouncilReport:
    discussions: list[Discussion]
    merged_count: int
    consensus: list[Consensus] = field(default_factory=list)
    debates: list[DebateResult] = field(default_factory=list)
    decision: DebateDecision | None = None


def _unresolved_consensus(item: NeedsDebate) -> Consensus:
    """Plurality verdict for a contested location when no debate can run."""
    vote = majority_vote(o.severity for o in item.group.opinions)
    return Consensus(
        group=item.group,
        severity=vote.severity,
        confidence=vote.confidence,
        voter_ids=[o.reviewer_id for o in item.group.opinions if o.severity is vote.severity],
        weak=True,
    )


async def run_council(
    opinions: Iterable[Opinion],
    backend: DebateBackend | None,
    config: AppConfig | None = None,
    parser: ResponseParser | None = None,
    id_generator: DiscussionIdGenerator | None = None,
    on_round_complete: Callable[[int, list[DebateParticipant]], None] | None = None,
) -> CouncilReport:
    """Resolve a batch of reviewer opinions into deduplicated discussions.

    With backend=None, contested locations take their plurality severity
    instead of being debated.
    """
    config = config or AppConfig()
    resolver = DiscussionResolver(id_generator or DiscussionIdGenerator())

    groups = group_by_location(opinions)
    consensus: list[Consensus] = []
    contested: list[NeedsDebate] = []
    for group in groups:
        decision = decide_consensus(group, config.consensus.threshold)
        if isinstance(decision, Consensus):
            consensus.append(decision)
        else:
            contested.append(decision)

    logger.info(
        "%d location(s): %d resolved by majority vote, %d contested",
        len(groups),
        len(consensus),
        len(contested),
    )

    debate_decision = classify_debate_need(contested, config.consensus.threshold)
    consensus.extend(debate_decision.fallback)

    debates: list[DebateResult] = []
    if debate_decision.required and backend is None:
        logger.warning("No debate backend; resolving %d contested location(s) by plurality", len(debate_decision.triggered))
        consensus.extend(_unresolved_consensus(item) for item in debate_decision.triggered)
    elif debate_decision.required:
        semaphore = asyncio.Semaphore(config.runtime.max_parallel_debates)

        async def _bounded(item: NeedsDebate) -> DebateResult:
            async with semaphore:
                return await run_debate(
                    item.group,
                    item.triggering_opinions,
                    backend,
                    config=config.debate,
                    parser=parser,
                    timeout=config.runtime.timeout_sec,
                    on_round_complete=on_round_complete,
                )

        debates = list(await asyncio.gather(*(_bounded(item) for item in debate_decision.triggered)))

    # Keep the report in the order locations were first seen
    order = {id(group): index for index, group in enumerate(groups)}
    outcomes: list[Consensus | DebateResult] = [*consensus, *debates]
    outcomes.sort(key=lambda o: order[id(o.group if isinstance(o, Consensus) else o.location)])

    discussions = [
        resolver.from_consensus(o) if isinstance(o, Consensus) else resolver.from_debate(o)
        for o in outcomes
    ]
    dedup = deduplicate_discussions(discussions)
    return CouncilReport(
        discussions=dedup.deduplicated,
        merged_count=dedup.merged_count,
        consensus=consensus,
        debates=debates,
        decision=debate_decision,
    )
