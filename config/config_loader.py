"""Load settings.yaml into typed dataclasses. Validates thresholds at startup."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"


class ConfigError(ValueError):
    """Raised when a settings value is out of range."""


def _check_fraction(name: str, value: float) -> None:
    if not 0.0 < value <= 1.0:
        raise ConfigError(f"{name} must be in (0, 1], got {value}")


@dataclass
class ConsensusSettings:
    threshold: float = 0.75

    def __post_init__(self) -> None:
        _check_fraction("consensus.threshold", self.threshold)


@dataclass
class DebateConfig:
    max_rounds: int = 3
    strong_consensus_threshold: float = 0.8
    majority_threshold: float = 0.6
    early_stop_similarity: float = 0.9

    def __post_init__(self) -> None:
        if self.max_rounds < 1:
            raise ConfigError(f"debate.max_rounds must be >= 1, got {self.max_rounds}")
        _check_fraction("debate.strong_consensus_threshold", self.strong_consensus_threshold)
        _check_fraction("debate.majority_threshold", self.majority_threshold)
        _check_fraction("debate.early_stop_similarity", self.early_stop_similarity)
        if self.majority_threshold > self.strong_consensus_threshold:
            raise ConfigError("debate.majority_threshold cannot exceed strong_consensus_threshold")


@dataclass
class RuntimeSettings:
    timeout_sec: float = 300.0
    max_parallel_debates: int = 4

    def __post_init__(self) -> None:
        if self.timeout_sec <= 0:
            raise ConfigError(f"runtime.timeout_sec must be positive, got {self.timeout_sec}")
        if self.max_parallel_debates < 1:
            raise ConfigError(f"runtime.max_parallel_debates must be >= 1, got {self.max_parallel_debates}")


@dataclass
class ReviewerConfig:
    name: str
    sdk: str
    model: str
    api_key_env: str
    max_tokens: int
    base_url: str | None = None


@dataclass
class AppConfig:
    consensus: ConsensusSettings = field(default_factory=ConsensusSettings)
    debate: DebateConfig = field(default_factory=DebateConfig)
    runtime: RuntimeSettings = field(default_factory=RuntimeSettings)
    reviewers: dict[str, ReviewerConfig] = field(default_factory=dict)
    available_reviewers: set[str] = field(default_factory=set)


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing, ConfigError for
    out-of-range values. Logs reviewers skipped for a missing API key but does
    not raise; callers check available_reviewers.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    consensus_raw = raw.get("consensus", {})
    consensus = ConsensusSettings(threshold=float(consensus_raw.get("threshold", 0.75)))

    debate_raw = raw.get("debate", {})
    debate = DebateConfig(
        max_rounds=int(debate_raw.get("max_rounds", 3)),
        strong_consensus_threshold=float(debate_raw.get("strong_consensus_threshold", 0.8)),
        majority_threshold=float(debate_raw.get("majority_threshold", 0.6)),
        early_stop_similarity=float(debate_raw.get("early_stop_similarity", 0.9)),
    )

    runtime_raw = raw.get("runtime", {})
    runtime = RuntimeSettings(
        timeout_sec=float(runtime_raw.get("timeout_sec", 300)),
        max_parallel_debates=int(runtime_raw.get("max_parallel_debates", 4)),
    )

    reviewers: dict[str, ReviewerConfig] = {}
    available_reviewers: set[str] = set()

    for reviewer_name, reviewer_raw in (raw.get("reviewers") or {}).items():
        reviewer_cfg = ReviewerConfig(
            name=reviewer_name,
            sdk=reviewer_raw["sdk"],
            model=reviewer_raw["model"],
            api_key_env=reviewer_raw["api_key_env"],
            max_tokens=int(reviewer_raw.get("max_tokens", 2048)),
            base_url=reviewer_raw.get("base_url"),
        )
        reviewers[reviewer_name] = reviewer_cfg

        api_key = os.environ.get(reviewer_raw["api_key_env"], "").strip()
        if api_key:
            available_reviewers.add(reviewer_name)
            logger.info("Reviewer available: %s", reviewer_name)
        else:
            logger.info(
                "Reviewer skipped (no API key): %s, set %s in .env",
                reviewer_name,
                reviewer_raw["api_key_env"],
            )

    return AppConfig(
        consensus=consensus,
        debate=debate,
        runtime=runtime,
        reviewers=reviewers,
        available_reviewers=available_reviewers,
    )
