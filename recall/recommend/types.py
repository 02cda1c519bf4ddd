"""
Result-side records produced by the recommendation engine.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from recall.core.items import Item

# Recommendation strategies
STRATEGY_SEMANTIC_SEARCH = "semantic_search"
STRATEGY_CONTEXTUAL = "contextual"
STRATEGY_CONTENT_BASED = "content_based"
STRATEGY_HYBRID = "hybrid"
STRATEGY_COLLABORATIVE_FILTERING = "collaborative_filtering"
STRATEGY_TEMPORAL = "temporal"

# Reason type tags
REASON_SEMANTIC_SIMILARITY = "semantic_similarity"
REASON_TEMPORAL_RELEVANCE = "temporal_relevance"
REASON_TOPIC_MATCH = "topic_match"
REASON_USER_PREFERENCE = "user_preference"
REASON_WORKING_CONTEXT = "working_context"
REASON_COLLABORATIVE_FILTERING = "collaborative_filtering"
REASON_CONTENT_BASED = "content_based"

INTERACTION_TYPES = ("view", "use", "like", "dislike")


@dataclass
class RecommendationReason:
    type: str
    description: str
    weight: float
    evidence: str


@dataclass
class RelevanceFactor:
    factor: str
    value: float
    weight: float
    description: str


@dataclass
class RecommendedItem:
    item: Item
    score: float
    reasons: List[RecommendationReason] = field(default_factory=list)
    relevance_factors: List[RelevanceFactor] = field(default_factory=list)
    similarity: Optional[float] = None


@dataclass
class RecommendationMetadata:
    processing_time: float
    """Milliseconds"""

    total_candidates: int
    filters_applied: List[str]
    algorithm_version: str


@dataclass
class RecommendationResult:
    items: List[RecommendedItem]
    explanation: str
    confidence: float
    strategy: str
    metadata: RecommendationMetadata


@dataclass
class UsageRecord:
    """Per-item interaction counters."""

    item_id: str
    view_count: int = 0
    use_count: int = 0
    like_count: int = 0
    dislike_count: int = 0
    first_accessed: datetime = field(default_factory=datetime.now)
    last_accessed: datetime = field(default_factory=datetime.now)
