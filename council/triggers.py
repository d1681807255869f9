"""Debate trigger classification for locations that failed the voting gate."""

import logging
from collections.abc import Iterable

from council.models import (
    Consensus,
    DebateDecision,
    LocationGroup,
    NeedsDebate,
    Opinion,
    Severity,
)
from council.tally import majority_vote

logger = logging.getLogger(__name__)

# Individual major opinions below this confidence are considered unsure
LOW_CONFIDENCE = 0.7
# "Many eyes": this many independent opinions always warrants a debate
MANY_REVIEWERS = 3


def find_trigger(group: LocationGroup) -> tuple[str, list[Opinion]] | None:
    """Return (reason, triggering opinions) for the first matching check, or None."""
    opinions = group.opinions
    where = str(group.key)

    critical = [o for o in opinions if o.severity is Severity.CRITICAL]
    if critical:
        return f"{len(critical)} critical issue(s) without strong majority on {where}", list(opinions)

    if len(opinions) >= 2 and len({o.severity for o in opinions}) > 1:
        return f"Conflicting severity opinions on {where}", list(opinions)

    unsure = [o for o in opinions if o.severity is Severity.MAJOR and o.confidence < LOW_CONFIDENCE]
    if unsure:
        return f"{len(unsure)} major issue(s) with low confidence on {where}", list(opinions)

    if len(opinions) >= MANY_REVIEWERS:
        return f"{len(opinions)} reviewers identified issues at {where}", list(opinions)

    return None


def _fallback_consensus(group: LocationGroup) -> Consensus:
    vote = majority_vote(o.severity for o in group.opinions)
    return Consensus(
        group=group,
        severity=vote.severity,
        confidence=vote.confidence,
        voter_ids=[o.reviewer_id for o in group.opinions if o.severity is vote.severity],
        weak=True,
    )


def classify_debate_need(
    candidates: Iterable[LocationGroup | NeedsDebate],
    threshold: float = 0.75,
) -> DebateDecision:
    """Decide globally whether a debate must run, and for which locations.

    Accepts raw location groups or NeedsDebate decisions. Groups that pass the
    voting gate are skipped; failing groups with no trigger fall back to a
    weak consensus instead of being deferred.
    """
    from council.voting import decide_consensus

    triggered: list[NeedsDebate] = []
    fallback: list[Consensus] = []
    skipped = 0

    for candidate in candidates:
        group = candidate.group if isinstance(candidate, NeedsDebate) else candidate
        if isinstance(candidate, LocationGroup) and isinstance(decide_consensus(group, threshold), Consensus):
            skipped += 1
            continue

        trigger = find_trigger(group)
        if trigger is None:
            fallback.append(_fallback_consensus(group))
            continue
        reason, opinions = trigger
        triggered.append(NeedsDebate(group=group, reason=reason, triggering_opinions=opinions))

    if not triggered:
        reason = (
            f"No debate triggers found ({skipped} location(s) resolved by majority vote, "
            f"{len(fallback)} accepted as weak consensus)"
        )
        logger.info(reason)
        return DebateDecision(required=False, reason=reason, fallback=fallback)

    triggering: list[Opinion] = []
    for item in triggered:
        triggering.extend(o for o in item.triggering_opinions if o not in triggering)

    logger.info("Debate required for %d location(s)", len(triggered))
    return DebateDecision(
        required=True,
        reason="; ".join(item.reason for item in triggered),
        triggering_opinions=triggering,
        triggered=triggered,
        fallback=fallback,
    )
