"""Post-resolution merge of near-duplicate discussions."""

import logging
from dataclasses import replace

from council.models import DeduplicationResult, Discussion
from council.scoring import jaccard_similarity

logger = logging.getLogger(__name__)

TITLE_SIMILARITY_THRESHOLD = 0.6


def are_duplicates(first: Discussion, second: Discussion) -> bool:
    """Same file, overlapping line ranges, and similar titles."""
    if first.file != second.file:
        return False
    start1, end1 = first.line_range
    start2, end2 = second.line_range
    if not (start1 <= end2 and start2 <= end1):
        return False
    return jaccard_similarity(first.title, second.title) > TITLE_SIMILARITY_THRESHOLD


def find_duplicates(discussions: list[Discussion]) -> dict[str, list[str]]:
    """Map each primary discussion id to the ids of its later duplicates.

    A discussion already claimed as someone's duplicate never becomes a primary.
    """
    duplicates: dict[str, list[str]] = {}
    claimed: set[str] = set()

    for i, primary in enumerate(discussions):
        if primary.id in claimed:
            continue
        for candidate in discussions[i + 1:]:
            if candidate.id in claimed:
                continue
            if are_duplicates(primary, candidate):
                duplicates.setdefault(primary.id, []).append(candidate.id)
                claimed.add(candidate.id)

    return duplicates


def merge_discussions(primary: Discussion, duplicates: list[Discussion]) -> Discussion:
    """Fold duplicates into a copy of primary; inputs are left untouched."""
    cluster = [primary, *duplicates]

    evidence: list[str] = []
    for discussion in cluster:
        evidence.extend(ref for ref in discussion.evidence_refs if ref not in evidence)

    suggestions: list[str] = []
    for discussion in cluster:
        suggestions.extend(s for s in discussion.suggestions if s not in suggestions)

    return replace(
        primary,
        severity=max((d.severity for d in cluster), key=lambda s: s.rank),
        line_range=(min(d.line_range[0] for d in cluster), max(d.line_range[1] for d in cluster)),
        evidence_refs=evidence,
        suggestions=suggestions,
        title=f"{primary.title} (merged with {len(duplicates)} duplicate(s))",
    )


def deduplicate_discussions(discussions: list[Discussion]) -> DeduplicationResult:
    duplicate_map = find_duplicates(discussions)
    by_id = {d.id: d for d in discussions}
    merged_away = {dup_id for ids in duplicate_map.values() for dup_id in ids}

    result: list[Discussion] = []
    for discussion in discussions:
        if discussion.id in merged_away:
            continue
        duplicate_ids = duplicate_map.get(discussion.id)
        if duplicate_ids:
            logger.debug("Merging %s into %s", ", ".join(duplicate_ids), discussion.id)
            result.append(merge_discussions(discussion, [by_id[i] for i in duplicate_ids]))
        else:
            result.append(discussion)

    merged_count = len(discussions) - len(result)
    if merged_count:
        logger.info("Merged %d duplicate discussion(s)", merged_count)
    return DeduplicationResult(deduplicated=result, merged_count=merged_count)
