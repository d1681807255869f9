"""Shared pytest fixtures."""

from pathlib import Path

import pytest

from config.config_loader import AppConfig, ConsensusSettings, DebateConfig, ReviewerConfig, RuntimeSettings
from council.backends.base import DebateBackend
from council.grouping import group_by_location
from council.models import DebateContext, LocationGroup, Opinion, Severity


def make_opinion(
    reviewer_id: str = "alpha",
    severity: Severity | str = Severity.MAJOR,
    confidence: float = 0.9,
    file: str = "src/auth.ts",
    line: int = 42,
    title: str = "SQL injection in login query",
    **kwargs,
) -> Opinion:
    return Opinion(
        reviewer_id=reviewer_id,
        severity=severity,
        category=kwargs.pop("category", "security"),
        file=file,
        line=line,
        title=title,
        confidence=confidence,
        **kwargs,
    )


def make_group(*specs: tuple[str, Severity | str, float]) -> LocationGroup:
    """Build one location group from (reviewer, severity, confidence) triples."""
    opinions = [make_opinion(reviewer, severity, confidence) for reviewer, severity, confidence in specs]
    groups = group_by_location(opinions)
    assert len(groups) == 1
    return groups[0]


def reply(severity: str, argument: str, confidence: float = 0.8) -> str:
    return f"Severity: {severity}\nConfidence: {confidence}\n{argument}"


class MockBackend(DebateBackend):
    """Test double backend with scripted replies per reviewer.

    Each reviewer's queue is consumed one entry per round; an Exception entry
    is raised instead of returned. Exhausted queues fall back to ``default``.
    """

    def __init__(self, replies: dict[str, list] | None = None, default: str = "") -> None:
        self._replies = {k: list(v) for k, v in (replies or {}).items()}
        self._default = default or reply("MAJOR", "Default mock argument because of line 42.")
        self.contexts: list[DebateContext] = []

    def name(self) -> str:
        return "mock"

    async def execute(self, context: DebateContext, timeout: float | None = None) -> str:
        self.contexts.append(context)
        queue = self._replies.get(context.reviewer_id)
        value = queue.pop(0) if queue else self._default
        if isinstance(value, BaseException):
            raise value
        return value


@pytest.fixture
def debate_config() -> DebateConfig:
    return DebateConfig(max_rounds=3, strong_consensus_threshold=0.8, majority_threshold=0.6, early_stop_similarity=0.9)


@pytest.fixture
def sample_app_config() -> AppConfig:
    return AppConfig(
        consensus=ConsensusSettings(threshold=0.75),
        debate=DebateConfig(),
        runtime=RuntimeSettings(timeout_sec=5, max_parallel_debates=2),
        reviewers={
            "claude": ReviewerConfig(
                name="claude",
                sdk="anthropic",
                model="claude-haiku-4-5",
                api_key_env="TEST_ANTHROPIC_KEY",
                max_tokens=1024,
            )
        },
        available_reviewers={"claude"},
    )


@pytest.fixture
def mock_backend() -> MockBackend:
    return MockBackend()


@pytest.fixture
def opinions_yaml(tmp_path: Path) -> Path:
    path = tmp_path / "opinions.yaml"
    path.write_text(
        """
- reviewer: alpha
  severity: critical
  category: security
  file: src/auth.ts
  line: 10
  line_end: 15
  title: SQL Injection
  confidence: 0.9
- reviewer: beta
  severity: minor
  category: security
  file: src/auth.ts
  line: 10
  line_end: 15
  title: SQL Injection
  confidence: 0.6
- reviewer: gamma
  severity: warning
  category: style
  file: src/util.ts
  line: 3
  title: Unused import
  confidence: 0.8
""",
        encoding="utf-8",
    )
    return path
