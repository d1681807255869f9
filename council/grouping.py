"""Exact-key location grouping of reviewer opinions."""

import logging
from collections.abc import Iterable

from council.models import LocationGroup, LocationKey, Opinion

logger = logging.getLogger(__name__)


def group_by_location(opinions: Iterable[Opinion]) -> list[LocationGroup]:
    """Cluster opinions by (file, line, title), first-seen order.

    Two reviewers flagging different problems on one line stay in separate
    groups. A reviewer only votes once per group; repeats are dropped.
    """
    groups: dict[LocationKey, LocationGroup] = {}

    for opinion in opinions:
        key = opinion.key
        group = groups.get(key)
        if group is None:
            group = groups[key] = LocationGroup(key=key)
        if opinion.reviewer_id in group.reviewer_ids:
            logger.debug("Dropping repeat opinion from %s at %s", opinion.reviewer_id, key)
            continue
        group.add(opinion)

    return list(groups.values())
