"""
Post-scoring filters: minimum score, preferred types (with a high-score
override) and complexity. The complexity filter has no override.
"""

from typing import List, Tuple

from .schemas import UserPreferences
from .scoring import complexity
from .types import RecommendedItem

MIN_SCORE = 0.1
TYPE_OVERRIDE_SCORE = 0.7
SIMPLE_MAX_COMPLEXITY = 0.5
COMPLEX_MIN_COMPLEXITY = 0.6


def matches_complexity(value: float, preference: str) -> bool:
    if preference == "simple":
        return value < SIMPLE_MAX_COMPLEXITY
    elif preference == "complex":
        return value > COMPLEX_MIN_COMPLEXITY
    return True


def applied_filter_names(preferences: UserPreferences) -> List[str]:
    filters = ["min_score"]
    if preferences.preferred_types:
        filters.append("content_type")
    if preferences.complexity_preference != "medium":
        filters.append("complexity")
    return filters


def apply_filters(items: List[RecommendedItem], preferences: UserPreferences) -> Tuple[List[RecommendedItem], List[str]]:
    """Return the surviving items, in input order, and the names of the filters applied."""
    filtered = [item for item in items if item.score > MIN_SCORE]

    if preferences.preferred_types:
        filtered = [
            item for item in filtered
            if item.item.type in preferences.preferred_types or item.score > TYPE_OVERRIDE_SCORE
        ]

    if preferences.complexity_preference != "medium":
        filtered = [
            item for item in filtered
            if matches_complexity(complexity(item.item), preferences.complexity_preference)
        ]

    return filtered, applied_filter_names(preferences)
