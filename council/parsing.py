"""Pluggable strategies that turn a debate reply into a structured stance."""

import re
from dataclasses import dataclass
from typing import Protocol

from council.models import Severity


class ResponseParseError(Exception):
    """Raised when a debate reply carries nothing usable."""


@dataclass(frozen=True)
class ParsedArgument:
    argument: str
    confidence: float | None        # None when the reply states no confidence
    changed_position: bool
    severity: Severity | None = None


class ResponseParser(Protocol):
    def parse(self, text: str, prior_severity: Severity) -> ParsedArgument:
        ...


def normalize_confidence(value: float, fallback: float | None) -> float | None:
    """Map a raw confidence onto [0, 1]; values in (1, 100] are percentages."""
    if 0.0 <= value <= 1.0:
        return value
    if 1.0 < value <= 100.0:
        return value / 100.0
    return fallback


_CONFIDENCE_RE = re.compile(r"confidence\W*\s*([\d.]+)\s*(%?)", re.IGNORECASE)
_SEVERITY_RE = re.compile(
    r"severity\W*\s*(critical|major|minor|nitpick|warning|suggestion)", re.IGNORECASE
)
_POSITION_RE = re.compile(r"(?:changed\s+)?position\W*\s*(.*)", re.IGNORECASE)
_METADATA_RE = re.compile(r"^\W*(confidence|severity|(changed\s+)?position)\W*\s*:", re.IGNORECASE)

# Used when no metadata-free line remains
_FALLBACK_ARGUMENT_CHARS = 200


class LabeledResponseParser:
    """Reads ``Severity:``/``Confidence:``/``Changed position:`` lines.

    Every other line is kept as the argument text. Confidence is None when no
    usable label is present, so the caller keeps the prior confidence.
    """

    def parse(self, text: str, prior_severity: Severity) -> ParsedArgument:
        if not text or not text.strip():
            raise ResponseParseError("Empty debate response")

        confidence: float | None = None
        severity: Severity | None = None
        changed = False
        argument_lines: list[str] = []

        for line in text.strip().splitlines():
            if not _METADATA_RE.match(line):
                argument_lines.append(line)
                continue

            if match := _CONFIDENCE_RE.search(line):
                try:
                    raw = float(match.group(1))
                except ValueError:
                    raw = -1.0
                if match.group(2):
                    raw /= 100.0
                confidence = normalize_confidence(raw, confidence)
            elif match := _SEVERITY_RE.search(line):
                severity = Severity.parse(match.group(1))
            elif match := _POSITION_RE.search(line):
                answer = match.group(1).strip().lower()
                if answer.startswith(("yes", "true", "changed")):
                    changed = True

        if severity is not None and severity is not Severity.parse(prior_severity):
            changed = True

        argument = "\n".join(argument_lines).strip() or text.strip()[:_FALLBACK_ARGUMENT_CHARS]
        return ParsedArgument(argument=argument, confidence=confidence, changed_position=changed, severity=severity)
