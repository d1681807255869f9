"""Majority voting gate: accept a location's verdict or escalate it."""

import logging

from council.models import Consensus, ConsensusDecision, LocationGroup, NeedsDebate, Severity
from council.tally import majority_vote
from council.triggers import LOW_CONFIDENCE, find_trigger

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.75
# Agreement at or above this counts as unanimous for the low-confidence override
_NEAR_UNANIMOUS = 0.99


def decide_consensus(group: LocationGroup, threshold: float = DEFAULT_THRESHOLD) -> ConsensusDecision:
    """Apply the voting gate to one location group.

    Args:
        group: Opinions sharing one (file, line, title) key.
        threshold: Minimum agreement fraction to accept without debate.

    Returns:
        Consensus when the group agrees strongly enough, otherwise NeedsDebate
        carrying the full opinion set.

    Raises:
        ValueError: If the group is empty.
    """
    vote = majority_vote(o.severity for o in group.opinions)
    if vote is None:
        raise ValueError(f"Location group {group.key} has no opinions")

    voters = [o.reviewer_id for o in group.opinions if o.severity is vote.severity]

    # Majority arithmetic is undefined for one voter
    if vote.total == 1:
        return Consensus(group=group, severity=vote.severity, confidence=1.0, voter_ids=voters, weak=True)

    unsure_unanimous = (
        vote.severity is Severity.MAJOR
        and vote.confidence >= _NEAR_UNANIMOUS
        and any(o.severity is Severity.MAJOR and o.confidence < LOW_CONFIDENCE for o in group.opinions)
    )

    if vote.confidence >= threshold and not unsure_unanimous:
        logger.debug("Consensus at %s: %s (%.0f%%)", group.key, vote.severity.value, vote.confidence * 100)
        return Consensus(group=group, severity=vote.severity, confidence=vote.confidence, voter_ids=voters)

    trigger = find_trigger(group)
    if trigger is not None:
        reason = trigger[0]
    else:
        reason = (
            f"No strong majority on {group.key}: "
            f"{vote.confidence:.0%} agreement < {threshold:.0%} threshold"
        )
    return NeedsDebate(group=group, reason=reason, triggering_opinions=list(group.opinions))
