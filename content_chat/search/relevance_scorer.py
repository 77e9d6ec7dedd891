"""
Relevance scoring system for content search results.

Scores schemaless content entries against a query using weighted
substring matches on title, description and whole-entry text, plus an
optional exact-phrase bonus and fuzzy-match bonus.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from ..domain.entities import (
    INTELLIGENT_DESCRIPTION_FIELDS,
    PLAIN_DESCRIPTION_FIELDS,
    ContentEntry,
    ScoredEntry,
    get_all_text,
    get_description,
    get_title,
)
from .fuzzy_matcher import FuzzyMatcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoringWeights:
    """
    Weight table for one search variant.

    Attributes:
        title: Points per term found in the title
        description: Points per term found in the description
        all_text: Points per term found anywhere in the entry's string fields
        fuzzy: Points per term fuzzy-matching a word of title + description
        exact_phrase: Points when the whole original query appears verbatim
        description_fields: Ordered fallbacks used to read the description
    """

    title: int = 5
    description: int = 3
    all_text: int = 0
    fuzzy: int = 0
    exact_phrase: int = 0
    description_fields: Sequence[str] = PLAIN_DESCRIPTION_FIELDS


PLAIN_SEARCH_WEIGHTS = ScoringWeights(
    title=5,
    description=3,
    all_text=1,
    fuzzy=0,
    exact_phrase=0,
    description_fields=PLAIN_DESCRIPTION_FIELDS,
)

INTELLIGENT_SEARCH_WEIGHTS = ScoringWeights(
    title=5,
    description=2,
    all_text=0,
    fuzzy=1,
    exact_phrase=10,
    description_fields=INTELLIGENT_DESCRIPTION_FIELDS,
)


class RelevanceScorer:
    """
    Calculate relevance scores for content entries.

    Scoring factors:
    1. Exact phrase - the original query appears in "title description"
    2. Title hits - each enhanced-query term found in the title
    3. Description hits - each term found in the description
    4. Whole-entry hits - each term found in any string field
    5. Fuzzy hits - each term close to some word of title + description

    Missing or non-string fields are read as empty strings, so scoring
    never raises on malformed entries.
    """

    def __init__(
        self,
        weights: ScoringWeights = PLAIN_SEARCH_WEIGHTS,
        fuzzy_matcher: Optional[FuzzyMatcher] = None,
    ):
        """
        Initialize relevance scorer.

        Args:
            weights: Weight table of the search variant
            fuzzy_matcher: Matcher used for the fuzzy bonus
        """
        self.weights = weights
        self.fuzzy_matcher = fuzzy_matcher or FuzzyMatcher()

    def score(
        self, entry: ContentEntry, query: str, enhanced_query: Optional[str] = None
    ) -> ScoredEntry:
        """
        Calculate the relevance score of one entry.

        Args:
            entry: Content entry to score (read-only)
            query: Original user query, used for the exact-phrase bonus
            enhanced_query: Query after synonym expansion; terms are taken
                from it. Defaults to the original query.

        Returns:
            ScoredEntry wrapping the untouched entry
        """
        weights = self.weights
        terms = (enhanced_query if enhanced_query is not None else query).lower().split()

        title = get_title(entry).lower()
        description = get_description(entry, weights.description_fields).lower()
        content = f"{title} {description}"
        all_text = get_all_text(entry).lower() if weights.all_text else ""

        total = 0

        if weights.exact_phrase and query.lower() in content:
            total += weights.exact_phrase

        for term in terms:
            if term in title:
                total += weights.title
            if term in description:
                total += weights.description
            if weights.all_text and term in all_text:
                total += weights.all_text
            if weights.fuzzy and self.fuzzy_matcher.matches(term, content):
                total += weights.fuzzy

        return ScoredEntry(
            entry=entry, score=total, relevance=total / max(len(terms), 1)
        )
