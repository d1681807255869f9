"""Debate orchestration: anonymized rounds, parallel backend calls, early stopping."""

import asyncio
import logging
import random
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from config.config_loader import DebateConfig
from council.backends.base import BackendError, DebateBackend
from council.models import (
    ConsensusType,
    DebateContext,
    DebateParticipant,
    DebateResult,
    DebateRound,
    LocationGroup,
    Opinion,
    Severity,
)
from council.parsing import LabeledResponseParser, ResponseParseError, ResponseParser, normalize_confidence
from council.prompts import round_instruction
from council.scoring import jaccard_similarity, score_reasoning
from council.tally import majority_vote

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConsensusCheck:
    reached: bool
    consensus_type: ConsensusType
    severity: Severity
    agreement: float


@dataclass(frozen=True)
class EarlyStopCheck:
    should_stop: bool
    reason: str
    similarities: dict[str, float] = field(default_factory=dict)


def anonymize_opponents(
    opponents: Sequence[DebateParticipant],
    round_number: int,
    rng: random.Random | None = None,
) -> str:
    """Summarize opponents by current severity, never by identity.

    From round 2 on, each opponent's previous-round argument is included.
    When rng is given, entries are shuffled within each severity group.
    """
    groups: dict[Severity, list[DebateParticipant]] = {}
    for opponent in opponents:
        groups.setdefault(opponent.current_severity, []).append(opponent)

    blocks: list[str] = []
    for severity in sorted(groups, key=lambda s: s.rank, reverse=True):
        members = list(groups[severity])
        if rng is not None:
            rng.shuffle(members)
        lines = [f"{len(members)} reviewer(s) identified as {severity.value.upper()}:"]
        for idx, member in enumerate(members, start=1):
            position = member.original_opinion
            lines.append(f'  {idx}. "{position.title}"')
            if position.description:
                lines.append(f"     {position.description}")
            if round_number >= 2 and member.rounds:
                lines.append(f"     Previous argument: {member.rounds[-1].argument}")
        blocks.append("\n".join(lines))

    return "\n\n".join(blocks)


def detect_consensus(participants: Sequence[DebateParticipant], config: DebateConfig) -> ConsensusCheck:
    """Classify agreement over participants' current severities."""
    vote = majority_vote(p.current_severity for p in participants)
    if vote is None:
        return ConsensusCheck(False, ConsensusType.FAILED, Severity.MINOR, 0.0)

    agreement = vote.confidence
    if agreement >= config.strong_consensus_threshold:
        return ConsensusCheck(True, ConsensusType.STRONG, vote.severity, agreement)
    if agreement >= config.majority_threshold:
        return ConsensusCheck(True, ConsensusType.MAJORITY, vote.severity, agreement)
    return ConsensusCheck(False, ConsensusType.FAILED, vote.severity, agreement)


def check_early_stop(participants: Sequence[DebateParticipant], similarity_threshold: float = 0.9) -> EarlyStopCheck:
    """Stop when nobody moved and every argument repeats the previous round."""
    if not participants or any(len(p.rounds) < 2 for p in participants):
        return EarlyStopCheck(False, "Not all participants have completed two rounds")

    similarities: dict[str, float] = {}
    for p in participants:
        last, prev = p.rounds[-1], p.rounds[-2]
        similarities[p.reviewer_id] = jaccard_similarity(last.argument, prev.argument)
        if last.severity is not prev.severity:
            return EarlyStopCheck(False, f"{p.reviewer_id} changed severity", similarities)

    lowest = min(similarities.values())
    if lowest >= similarity_threshold:
        return EarlyStopCheck(
            True,
            f"Lowest argument similarity {lowest:.0%} >= {similarity_threshold:.0%} threshold",
            similarities,
        )
    return EarlyStopCheck(
        False,
        f"Lowest argument similarity {lowest:.0%} < {similarity_threshold:.0%} threshold",
        similarities,
    )


def _build_context(
    participant: DebateParticipant,
    opponents: Sequence[DebateParticipant],
    round_number: int,
    location: LocationGroup,
    rng: random.Random | None,
) -> DebateContext:
    return DebateContext(
        reviewer_id=participant.reviewer_id,
        location=location.key,
        category=participant.original_opinion.category,
        position=participant.original_opinion,
        current_severity=participant.current_severity,
        current_confidence=participant.current_confidence,
        round_number=round_number,
        opponent_summary=anonymize_opponents(opponents, round_number, rng),
        instruction=round_instruction(round_number),
        previous_arguments=tuple(r.argument for r in participant.rounds),
    )


async def _argue(
    backend: DebateBackend,
    participant: DebateParticipant,
    context: DebateContext,
    parser: ResponseParser,
    timeout: float | None,
) -> DebateRound:
    """Run one participant's round. Never raises; failures keep the prior stance."""
    prior_severity = participant.current_severity
    prior_confidence = participant.current_confidence
    round_number = context.round_number

    try:
        text = await asyncio.wait_for(backend.execute(context, timeout), timeout=timeout)
        parsed = parser.parse(text, prior_severity)
        severity = Severity.parse(parsed.severity) if parsed.severity is not None else prior_severity
    except TimeoutError:
        failure = f"Failed to get response: timed out after {timeout}s"
    except BackendError as exc:
        failure = f"Failed to get response: {exc}"
    except ResponseParseError as exc:
        failure = f"Failed to parse response: {exc}"
    except Exception as exc:
        failure = f"Unexpected error: {exc}"
    else:
        argument = parsed.argument
        return DebateRound(
            round_number=round_number,
            argument=argument,
            confidence=(
                prior_confidence
                if parsed.confidence is None
                else normalize_confidence(parsed.confidence, prior_confidence)
            ),
            severity=severity,
            changed_position=parsed.changed_position or severity is not prior_severity,
            quality_score=score_reasoning(argument),
        )

    logger.warning("Participant %s failed in round %d: %s", participant.reviewer_id, round_number, failure)
    return DebateRound(
        round_number=round_number,
        argument=failure,
        confidence=prior_confidence,
        severity=prior_severity,
        changed_position=False,
        quality_score=score_reasoning(failure),
        failed=True,
    )


async def _run_round(
    participants: list[DebateParticipant],
    round_number: int,
    location: LocationGroup,
    backend: DebateBackend,
    parser: ResponseParser,
    timeout: float | None,
    rng: random.Random | None,
) -> None:
    # All contexts are built before dispatch so every prompt sees the same round N-1 state
    contexts = [
        _build_context(p, [o for o in participants if o is not p], round_number, location, rng)
        for p in participants
    ]
    for context in contexts:
        logger.debug("Round %d context for %s:\n%s", round_number, context.reviewer_id, context.opponent_summary)

    results = await asyncio.gather(
        *(_argue(backend, p, ctx, parser, timeout) for p, ctx in zip(participants, contexts))
    )
    for participant, debate_round in zip(participants, results):
        participant.record(debate_round)

    failed = sum(1 for r in results if r.failed)
    logger.info(
        "Round %d complete for %s: %d/%d participants responded",
        round_number,
        location.key,
        len(results) - failed,
        len(results),
    )


async def run_debate(
    location: LocationGroup,
    opinions: Sequence[Opinion],
    backend: DebateBackend,
    config: DebateConfig | None = None,
    parser: ResponseParser | None = None,
    timeout: float | None = None,
    on_round_complete: Callable[[int, list[DebateParticipant]], None] | None = None,
    rng: random.Random | None = None,
) -> DebateResult:
    """Run a bounded multi-round debate over one contested location.

    Args:
        location: The contested location group.
        opinions: Opinions entering the debate, one per reviewer.
        backend: Backend that argues each participant's round.
        config: Round limit and consensus thresholds.
        parser: Strategy turning reply text into a stance.
        timeout: Per-call timeout in seconds; a timeout is a participant failure.
        on_round_complete: Optional callback invoked after each round.
        rng: Optional shuffler for the anonymized opponent summaries.

    Returns:
        DebateResult. Disagreement is reported as ConsensusType.FAILED, with a
        best-effort final severity.

    Raises:
        ValueError: If fewer than two distinct reviewers take part.
    """
    config = config or DebateConfig()
    parser = parser or LabeledResponseParser()

    reviewer_ids = [o.reviewer_id for o in opinions]
    if len(opinions) < 2:
        raise ValueError(f"A debate needs at least two participants, got {len(opinions)}")
    if len(set(reviewer_ids)) != len(reviewer_ids):
        raise ValueError(f"Duplicate reviewers in debate at {location.key}: {reviewer_ids}")

    participants = [DebateParticipant(reviewer_id=o.reviewer_id, original_opinion=o) for o in opinions]
    start = time.monotonic()
    rounds_run = 0
    early_stopped = False

    logger.info("Debate at %s with %d participants", location.key, len(participants))

    for round_number in range(1, config.max_rounds + 1):
        logger.info("Round %d/%d for %s", round_number, config.max_rounds, location.key)
        await _run_round(participants, round_number, location, backend, parser, timeout, rng)
        rounds_run = round_number

        if on_round_complete:
            on_round_complete(round_number, participants)

        check = detect_consensus(participants, config)
        if check.reached:
            logger.info("Consensus reached at %s: %s (%s)", location.key, check.consensus_type.value, check.severity.value)
            break

        if round_number >= 2:
            stop = check_early_stop(participants, config.early_stop_similarity)
            if stop.should_stop:
                early_stopped = True
                logger.info("Early stopping at %s: %s (round %d)", location.key, stop.reason, round_number)
                break

    final = detect_consensus(participants, config)

    return DebateResult(
        location=location,
        participants=participants,
        rounds_run=rounds_run,
        consensus_type=final.consensus_type,
        final_severity=final.severity,
        duration_sec=time.monotonic() - start,
        early_stopped=early_stopped,
    )
