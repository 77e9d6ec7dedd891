"""
Search module for content retrieval.

Provides query enhancement, fuzzy matching, relevance scoring and ranking.
"""
from .fuzzy_matcher import FuzzyMatcher, calculate_similarity, levenshtein_distance
from .query_enhancer import SYNONYMS, enhance_query
from .ranker import rank_entries, take_first
from .relevance_scorer import (
    INTELLIGENT_SEARCH_WEIGHTS,
    PLAIN_SEARCH_WEIGHTS,
    RelevanceScorer,
    ScoringWeights,
)

__all__ = [
    "FuzzyMatcher",
    "INTELLIGENT_SEARCH_WEIGHTS",
    "PLAIN_SEARCH_WEIGHTS",
    "RelevanceScorer",
    "SYNONYMS",
    "ScoringWeights",
    "calculate_similarity",
    "enhance_query",
    "levenshtein_distance",
    "rank_entries",
    "take_first",
]
