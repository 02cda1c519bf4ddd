"""
Human-readable reasons, relevance factors, result explanations and
confidence for recommendation results.
"""

from datetime import datetime
from typing import List, Optional

import numpy as np

from recall.core.items import Item

from .schemas import UserPreferences, WorkingContext
from .scoring import ScoreBreakdown, complexity, freshness
from .types import (
    REASON_COLLABORATIVE_FILTERING,
    REASON_CONTENT_BASED,
    REASON_SEMANTIC_SIMILARITY,
    REASON_TEMPORAL_RELEVANCE,
    REASON_TOPIC_MATCH,
    REASON_USER_PREFERENCE,
    REASON_WORKING_CONTEXT,
    RecommendationReason,
    RecommendedItem,
    RelevanceFactor,
)

# Components at or below this weighted value produce no reason
REASON_THRESHOLD = 0.1

COMPONENT_REASONS = {
    "semantic": (REASON_SEMANTIC_SIMILARITY, "High semantic similarity to the query", "Vector similarity between query and content"),
    "temporal": (REASON_TEMPORAL_RELEVANCE, "Creation time fits the time preference", "Item age and time preference"),
    "preference": (REASON_USER_PREFERENCE, "Matches user preferences", "Preferred types, topics and languages"),
    "usage": (REASON_COLLABORATIVE_FILTERING, "Frequently used before", "Interaction history"),
    "quality": (REASON_CONTENT_BASED, "Content quality", "Length, preview and metadata"),
}

STRATEGY_DESCRIPTIONS = {
    "semantic_search": "By semantic similarity",
    "contextual": "From the current context",
    "content_based": "By content features",
    "collaborative_filtering": "By usage patterns",
    "hybrid": "By hybrid ranking",
    "temporal": "By time relevance",
}


def _percent(value: float) -> str:
    return f"{value * 100:.1f}%"


def _terms(value) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(term) for term in value]


def generate_reasons(
    item: Item,
    breakdown: ScoreBreakdown,
    preferences: UserPreferences,
    working_context: Optional[WorkingContext] = None,
) -> List[RecommendationReason]:
    reasons = []

    for component, value in breakdown.components():
        if value > REASON_THRESHOLD:
            reason_type, description, evidence = COMPONENT_REASONS[component]
            reasons.append(RecommendationReason(
                type=reason_type,
                description=f"{description} ({_percent(value)})",
                weight=value,
                evidence=evidence,
            ))

    # Analyzer keywords and topics against stated interests
    interests = {topic.lower() for topic in preferences.topic_interests}
    analysed = _terms(item.metadata.get("keywords")) + _terms(item.metadata.get("topics"))
    matched = sorted({term for term in analysed if term.lower() in interests})
    if matched:
        reasons.append(RecommendationReason(
            type=REASON_TOPIC_MATCH,
            description=f"Covers topics of interest: {', '.join(matched)}",
            weight=min(1.0, len(matched) / max(1, len(interests))),
            evidence="Analyzer keywords and topics",
        ))

    if working_context and working_context.active_topics:
        text = f"{item.title} {item.content}".lower()
        active = [topic for topic in working_context.active_topics if topic.lower() in text]
        if active:
            reasons.append(RecommendationReason(
                type=REASON_WORKING_CONTEXT,
                description=f"Related to active work: {', '.join(active)}",
                weight=min(1.0, len(active) / len(working_context.active_topics)),
                evidence="Working context active topics",
            ))

    return reasons


def relevance_factors(item: Item, preferences: UserPreferences, now: Optional[datetime] = None) -> List[RelevanceFactor]:
    item_freshness = freshness(item.timestamp, now)
    item_complexity = complexity(item)
    if item_complexity > 0.7:
        level = "high"
    elif item_complexity > 0.4:
        level = "medium"
    else:
        level = "low"

    return [
        RelevanceFactor(
            factor="content_type",
            value=1.0 if item.type in preferences.preferred_types else 0.5,
            weight=0.2,
            description=f"Content type: {item.type}",
        ),
        RelevanceFactor(
            factor="freshness",
            value=item_freshness,
            weight=0.15,
            description=f"Freshness: {_percent(item_freshness)}",
        ),
        RelevanceFactor(
            factor="complexity",
            value=item_complexity,
            weight=0.1,
            description=f"Complexity: {level}",
        ),
    ]


def generate_explanation(items: List[RecommendedItem], strategy: str) -> str:
    if not items:
        return "No recommendations matched the request."

    average = sum(item.score for item in items) / len(items)
    description = STRATEGY_DESCRIPTIONS.get(strategy, "By hybrid ranking")
    explanation = (
        f"{description}, found {len(items)} recommendation{'s' if len(items) != 1 else ''} "
        f"with an average relevance of {_percent(average)}."
    )

    top_reasons = items[0].reasons[:2]
    if top_reasons:
        explanation += f" Main reasons: {'; '.join(reason.description for reason in top_reasons)}."

    return explanation


def score_variance(scores: List[float]) -> float:
    """Population variance."""
    if not scores:
        return 0.0
    return float(np.var(scores))


def overall_confidence(items: List[RecommendedItem]) -> float:
    """0.7 * mean score + 0.3 * (1 - variance), so a tight spread beats a wide one at equal mean."""
    if not items:
        return 0.0

    scores = [item.score for item in items]
    average = sum(scores) / len(scores)
    consistency = max(0.0, 1 - score_variance(scores))
    return average * 0.7 + consistency * 0.3
