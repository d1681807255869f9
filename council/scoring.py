"""Argument quality heuristics and token-set similarity."""

import re
from dataclasses import dataclass

BASE_SCORE = 0.5
SIGNAL_WEIGHT = 0.1

_SIGNALS: dict[str, re.Pattern[str]] = {
    "code_reference": re.compile(r"line\s+\d+|function\s+\w+|variable\s+\w+|method\s+\w+", re.IGNORECASE),
    "technical_depth": re.compile(r"memory|performance|security|thread|race\s+condition|deadlock|leak", re.IGNORECASE),
    "evidence_based": re.compile(r"because|since|given\s+that|due\s+to|as\s+a\s+result", re.IGNORECASE),
    "specific_examples": re.compile(r"specifically|exactly|for\s+example|such\s+as|this\s+will\s+cause", re.IGNORECASE),
    "code_snippets": re.compile(r"`[^`]+`|```"),
}


@dataclass(frozen=True)
class ReasoningScore:
    score: float
    signals: dict[str, bool]


def score_breakdown(argument: str) -> ReasoningScore:
    signals = {name: bool(pattern.search(argument)) for name, pattern in _SIGNALS.items()}
    score = min(BASE_SCORE + SIGNAL_WEIGHT * sum(signals.values()), 1.0)
    return ReasoningScore(score=round(score, 4), signals=signals)


def score_reasoning(argument: str) -> float:
    """Score 0.5–1.0 for how concrete and technical an argument reads."""
    return score_breakdown(argument).score


def _tokens(text: str) -> set[str]:
    return {w for w in text.lower().split() if w}


def jaccard_similarity(first: str, second: str) -> float:
    """Word-set Jaccard similarity; 0.0 when both texts are empty."""
    a, b = _tokens(first), _tokens(second)
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)
