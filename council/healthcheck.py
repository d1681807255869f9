"""Backend health checks: ping each reviewer backend before debating."""

import asyncio
import logging

from council.backends.base import DebateBackend
from council.models import DebateContext, LocationKey, Opinion, Severity

logger = logging.getLogger(__name__)

_TIMEOUT_SEC = 15.0


def _ping_context(reviewer_id: str) -> DebateContext:
    position = Opinion(
        reviewer_id=reviewer_id,
        severity=Severity.NITPICK,
        category="healthcheck",
        file="healthcheck",
        line=1,
        title="Connectivity check",
        description="Reply with the word OK only.",
        confidence=1.0,
    )
    return DebateContext(
        reviewer_id=reviewer_id,
        location=LocationKey(position.file, position.line, position.title),
        category=position.category,
        position=position,
        current_severity=position.severity,
        current_confidence=position.confidence,
        round_number=0,
        opponent_summary="",
        instruction="Reply with the word OK only.",
    )


async def _check_one(name: str, backend: DebateBackend) -> tuple[str, bool, str]:
    """Ping a single backend. Returns (name, ok, error_message)."""
    try:
        await asyncio.wait_for(backend.execute(_ping_context(name), _TIMEOUT_SEC), timeout=_TIMEOUT_SEC)
        return name, True, ""
    except Exception as exc:
        logger.debug("Health check failed for %s: %s", name, exc)
        return name, False, str(exc) or type(exc).__name__


async def run_health_checks(
    backends: dict[str, DebateBackend],
) -> dict[str, tuple[bool, str]]:
    """Ping all backends in parallel.

    Returns:
        Dict mapping reviewer name -> (ok, error_message).
        error_message is "" when ok is True.
    """
    results = await asyncio.gather(*(_check_one(n, b) for n, b in backends.items()))
    return {name: (ok, err) for name, ok, err in results}
