"""
Synonym-based query expansion.

Appends related travel and hospitality vocabulary to a query so that
entries worded differently from the question still score.
"""

from typing import Dict, List

# Declaration order determines the order enhancements are appended in.
# Only keys trigger expansion; the synonym values themselves never do.
SYNONYMS: Dict[str, List[str]] = {
    "travel": ["trip", "journey", "vacation", "tour"],
    "food": ["cuisine", "dining", "restaurant", "meal"],
    "hotel": ["accommodation", "lodging", "stay"],
    "activity": ["attraction", "experience", "thing to do"],
}


def enhance_query(query: str, synonyms: Dict[str, List[str]] = SYNONYMS) -> str:
    """
    Expand a query with synonyms of every trigger word it contains.

    Matching is a case-insensitive substring check against the raw query,
    so "Travelling" triggers "travel". The original query is returned
    unchanged when nothing triggers.

    Examples:
        "Paris food tour" -> "Paris food tour cuisine dining restaurant meal"
        "guided tour" -> "guided tour"
    """
    lowered = query.lower()
    enhanced = query

    for trigger, related in synonyms.items():
        if trigger in lowered:
            enhanced += " " + " ".join(related)

    return enhanced
