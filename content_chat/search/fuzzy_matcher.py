"""
Fuzzy matching engine for content search.

Provides typo-tolerant word matching based on normalized Levenshtein
similarity. Used as a small scoring bonus when a search term does not
appear verbatim in an entry.
"""

import logging
from typing import List

logger = logging.getLogger(__name__)


def levenshtein_distance(a: str, b: str) -> int:
    """
    Classic Levenshtein edit distance.

    Builds the full (len(b) + 1) x (len(a) + 1) dynamic programming matrix.
    Insertion, deletion and substitution each cost 1.

    Examples:
        levenshtein_distance("kitten", "sitting") -> 3
        levenshtein_distance("", "abc") -> 3
    """
    matrix: List[List[int]] = [[0] * (len(a) + 1) for _ in range(len(b) + 1)]

    for i in range(len(b) + 1):
        matrix[i][0] = i
    for j in range(len(a) + 1):
        matrix[0][j] = j

    for i in range(1, len(b) + 1):
        for j in range(1, len(a) + 1):
            if b[i - 1] == a[j - 1]:
                matrix[i][j] = matrix[i - 1][j - 1]
            else:
                matrix[i][j] = 1 + min(
                    matrix[i - 1][j - 1],  # substitution
                    matrix[i][j - 1],  # insertion
                    matrix[i - 1][j],  # deletion
                )

    return matrix[len(b)][len(a)]


def calculate_similarity(s1: str, s2: str) -> float:
    """
    Normalized similarity between two strings.

    Returns:
        1 - distance / len(longer), where 1.0 means identical.
        Two empty strings are considered identical.
    """
    longer, shorter = (s1, s2) if len(s1) > len(s2) else (s2, s1)

    if len(longer) == 0:
        return 1.0

    distance = levenshtein_distance(longer, shorter)
    return (len(longer) - distance) / len(longer)


class FuzzyMatcher:
    """
    Word-level fuzzy matching for search terms.

    A term matches a text when any whitespace-separated word of the text
    is similar enough to it. Terms and words shorter than min_length never
    match, so short tokens like "to" or "of" do not produce noise.
    """

    DEFAULT_THRESHOLD = 0.7
    DEFAULT_MIN_LENGTH = 3

    def __init__(
        self,
        threshold: float = DEFAULT_THRESHOLD,
        min_length: int = DEFAULT_MIN_LENGTH,
    ):
        """
        Initialize fuzzy matcher.

        Args:
            threshold: Similarity a word must exceed to match (0-1)
            min_length: Minimum length of both term and word
        """
        self.threshold = threshold
        self.min_length = min_length

    def matches(self, term: str, text: str) -> bool:
        """
        Check if term fuzzy-matches any word in text.

        Args:
            term: Single search term (already lowercased by the caller)
            text: Text to scan

        Returns:
            True if some word has similarity strictly above the threshold
        """
        if len(term) < self.min_length:
            return False

        for word in text.split():
            if len(word) < self.min_length:
                continue
            if calculate_similarity(term, word) > self.threshold:
                return True

        return False

    def best_similarity(self, term: str, text: str) -> float:
        """
        Highest similarity of term against any eligible word in text.

        Returns:
            Similarity in [0, 1]; 0.0 when no word is eligible
        """
        if len(term) < self.min_length:
            return 0.0

        best = 0.0
        for word in text.split():
            if len(word) < self.min_length:
                continue
            best = max(best, calculate_similarity(term, word))
        return best

    def get_stats(self) -> dict:
        """Get matcher configuration."""
        return {
            "threshold": self.threshold,
            "min_length": self.min_length,
            "algorithm": "levenshtein",
        }
