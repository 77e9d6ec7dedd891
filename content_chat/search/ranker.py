"""
Ranking and selection of scored content entries.
"""

import logging
from typing import Any, Callable, Iterable, List

from ..domain.entities import ContentEntry, ScoredEntry

logger = logging.getLogger(__name__)


def normalize_max_results(max_results: Any) -> int:
    """
    Coerce a requested result count to a non-negative int.

    Non-numeric and non-positive values become 0, which yields an
    empty result downstream.
    """
    if isinstance(max_results, bool):
        return 0
    try:
        value = int(max_results)
    except (TypeError, ValueError):
        return 0
    return max(value, 0)


def rank_entries(
    entries: Iterable[ContentEntry],
    score_fn: Callable[[ContentEntry], ScoredEntry],
    max_results: Any,
) -> List[ScoredEntry]:
    """
    Score all entries, keep positive scores, and return the best ones.

    Every entry is scored (no early exit). Entries with equal scores keep
    their fetch order since sorted() is stable, also with reverse=True.

    Args:
        entries: Candidate entries in fetch order
        score_fn: Scores a single entry
        max_results: Maximum number of results

    Returns:
        Up to max_results entries sorted by score, highest first
    """
    limit = normalize_max_results(max_results)
    if limit == 0:
        return []

    scored = [score_fn(entry) for entry in entries]
    positive = [match for match in scored if match.score > 0]
    ranked = sorted(positive, key=lambda match: match.score, reverse=True)

    logger.debug(f"Ranked {len(positive)} of {len(scored)} entries, returning {limit}")
    return ranked[:limit]


def take_first(entries: List[ContentEntry], max_results: Any) -> List[ContentEntry]:
    """First max_results entries in fetch order, without scoring."""
    return list(entries[: normalize_max_results(max_results)])
