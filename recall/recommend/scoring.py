"""
Per-candidate scoring. Five independent components, each scaled into [0, 1]
and then weighted; the total is their plain sum.
"""

from dataclasses import dataclass
from datetime import datetime
import re
from typing import List, Optional, Tuple

from recall.core.items import Item, ItemType

from .schemas import UserPreferences
from .types import UsageRecord

SEMANTIC_WEIGHT = 0.4
TEMPORAL_WEIGHT = 0.2
PREFERENCE_WEIGHT = 0.2
USAGE_WEIGHT = 0.1
QUALITY_WEIGHT = 0.1

TEMPORAL_WINDOW_DAYS = 30
FRESHNESS_WINDOW_DAYS = 365

CONTROL_STRUCTURES = re.compile(r"\b(if|for|while|switch|try)\b")
FUNCTION_DEFINITIONS = re.compile(r"\bfunction\b|\bdef\b|=>")


@dataclass(frozen=True)
class ScoreBreakdown:
    """Weighted contributions of each scoring component."""

    semantic: float
    temporal: float
    preference: float
    usage: float
    quality: float

    @property
    def total(self) -> float:
        return self.semantic + self.temporal + self.preference + self.usage + self.quality

    def components(self) -> List[Tuple[str, float]]:
        return [
            ("semantic", self.semantic),
            ("temporal", self.temporal),
            ("preference", self.preference),
            ("usage", self.usage),
            ("quality", self.quality),
        ]


def age_in_days(timestamp: datetime, now: Optional[datetime] = None) -> float:
    if now is None:
        now = datetime.now(timestamp.tzinfo)
    elif (now.tzinfo is None) != (timestamp.tzinfo is None):
        # Mixed naive/aware: compare wall-clock values
        now = now.replace(tzinfo=None)
        timestamp = timestamp.replace(tzinfo=None)
    return (now - timestamp).total_seconds() / 86400


def temporal_score(item: Item, time_preference: str, now: Optional[datetime] = None) -> float:
    days = age_in_days(item.timestamp, now)
    if time_preference == "recent":
        return max(0.0, 1 - days / TEMPORAL_WINDOW_DAYS)
    elif time_preference == "historical":
        return min(1.0, days / TEMPORAL_WINDOW_DAYS)
    else:
        return 0.5


def preference_score(item: Item, preferences: UserPreferences) -> float:
    score = 0.0

    if item.type in preferences.preferred_types:
        score += 0.3

    text = f"{item.title} {item.content}".lower()
    hits = [topic for topic in preferences.topic_interests if topic.lower() in text]
    score += min(0.4, len(hits) * 0.1)

    language = item.metadata.get("language")
    if item.type == ItemType.CODE.value and language:
        languages = {lang.lower() for lang in preferences.language_preferences}
        if str(language).lower() in languages:
            score += 0.3

    return min(1.0, score)


def usage_score(usage: Optional[UsageRecord]) -> float:
    """0.7 * interaction frequency + 0.3 * like ratio. Zero without history."""
    if usage is None:
        return 0.0

    total_interactions = usage.view_count + usage.use_count + usage.like_count
    frequency = min(1.0, total_interactions / 10)
    sentiment = usage.like_count / max(1, usage.like_count + usage.dislike_count)
    return frequency * 0.7 + sentiment * 0.3


def quality_score(item: Item) -> float:
    score = 0.5

    if 100 < len(item.content) < 2000:
        score += 0.2
    if item.preview:
        score += 0.1
    if item.metadata:
        score += 0.2

    return min(1.0, score)


def code_complexity(code: str) -> float:
    complexity = 0.0
    complexity += min(0.5, len(CONTROL_STRUCTURES.findall(code)) / 10)
    complexity += min(0.3, len(FUNCTION_DEFINITIONS.findall(code)) / 5)
    complexity += min(0.2, code.count("{") / 20)
    return min(1.0, complexity)


def complexity(item: Item) -> float:
    value = min(0.4, len(item.content) / 5000)
    if item.type == ItemType.CODE.value:
        value += code_complexity(item.content) * 0.6
    return min(1.0, value)


def freshness(timestamp: datetime, now: Optional[datetime] = None) -> float:
    return max(0.0, 1 - age_in_days(timestamp, now) / FRESHNESS_WINDOW_DAYS)


def score_item(
    item: Item,
    preferences: UserPreferences,
    usage: Optional[UsageRecord] = None,
    similarity: Optional[float] = None,
    now: Optional[datetime] = None,
) -> ScoreBreakdown:
    """Score one candidate. similarity is the cosine similarity to the query, if any."""
    return ScoreBreakdown(
        semantic=(similarity or 0.0) * SEMANTIC_WEIGHT,
        temporal=temporal_score(item, preferences.time_preference, now) * TEMPORAL_WEIGHT,
        preference=preference_score(item, preferences) * PREFERENCE_WEIGHT,
        usage=usage_score(usage) * USAGE_WEIGHT,
        quality=quality_score(item) * QUALITY_WEIGHT,
    )
