"""
Recommendation engine: strategy selection, candidate retrieval from the vector
index, five-factor scoring, filtering, ranking and explanation.

recommend() never raises. Any unexpected failure yields an empty, well-formed
result with zero confidence.
"""

from dataclasses import dataclass
from datetime import datetime
import time
from typing import Callable, Dict, List, Optional, Protocol

from recall.core.config import (
    ALGORITHM_VERSION,
    get_max_recommendations,
    get_recommendation_threshold,
    is_learning_enabled,
)
from recall.core.errors import RecommendationFailed
from recall.core.items import Item
from recall.util.logging import logger
from recall.vector.index import InMemoryVectorIndex, item_from_record

from .explain import generate_explanation, generate_reasons, overall_confidence, relevance_factors
from .filters import apply_filters
from .schemas import RecommendationRequest, UserPreferences
from .scoring import score_item
from .types import (
    INTERACTION_TYPES,
    REASON_SEMANTIC_SIMILARITY,
    STRATEGY_CONTENT_BASED,
    STRATEGY_CONTEXTUAL,
    STRATEGY_HYBRID,
    STRATEGY_SEMANTIC_SEARCH,
    RecommendationMetadata,
    RecommendationReason,
    RecommendationResult,
    RecommendedItem,
    RelevanceFactor,
    UsageRecord,
)

QUERY_THRESHOLD = 0.5
QUERY_CANDIDATE_LIMIT = 50
CONTEXT_THRESHOLD = 0.4
CONTEXT_CANDIDATE_LIMIT = 20
BROWSE_CANDIDATE_LIMIT = 100

HISTORY_LIMIT = 1000
HISTORY_KEEP = 500


class ItemStore(Protocol):
    """External store able to return the full item for an id."""

    def get_item(self, item_id: str) -> Optional[Item]:
        ...


@dataclass
class Candidate:
    item: Item
    similarity: Optional[float] = None


def determine_strategy(request: RecommendationRequest) -> str:
    """First matching condition wins: query, current context, working context, else hybrid."""
    if request.query:
        return STRATEGY_SEMANTIC_SEARCH
    elif request.current_context:
        return STRATEGY_CONTEXTUAL
    elif request.working_context is not None:
        return STRATEGY_CONTENT_BASED
    else:
        return STRATEGY_HYBRID


def deduplicate(candidates: List[Candidate]) -> List[Candidate]:
    """Drop repeated item ids, keeping the first occurrence in place."""
    seen = set()
    unique = []
    for candidate in candidates:
        if candidate.item.id in seen:
            continue
        seen.add(candidate.item.id)
        unique.append(candidate)
    return unique


class RecommendationEngine:
    """Ranks indexed items for a request and explains the ranking.

    Owns user preferences, per-item usage history and a bounded history of
    results used only for get_stats().
    """

    def __init__(
        self,
        index: InMemoryVectorIndex,
        item_store: Optional[ItemStore] = None,
        preferences: Optional[UserPreferences] = None,
        max_results: Optional[int] = None,
        learning_enabled: Optional[bool] = None,
        related_threshold: Optional[float] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.index = index
        self.item_store = item_store
        self.preferences = preferences or UserPreferences()
        self.max_results = max_results or get_max_recommendations()
        self.learning_enabled = is_learning_enabled() if learning_enabled is None else learning_enabled
        self.related_threshold = get_recommendation_threshold() if related_threshold is None else related_threshold
        self.clock = clock

        self._usage: Dict[str, UsageRecord] = {}
        self._history: List[RecommendationResult] = []

    # Entry points

    def recommend(self, request: Optional[RecommendationRequest] = None) -> RecommendationResult:
        request = request or RecommendationRequest()
        start = time.perf_counter()
        status = "success"

        try:
            result = self._recommend(request, start)
        except Exception as e:
            status = "fallback"
            error = RecommendationFailed(f"{type(e).__name__}: {e}")
            logger.error(f"Recommendation failed, returning fallback: {error}", exc_info=True)
            result = self._fallback_result(start)

        self._record(result)
        logger.log_recommendation(
            result.strategy,
            result.metadata.total_candidates,
            len(result.items),
            result.metadata.processing_time,
            status=status,
        )
        return result

    def recommend_by_query(self, query: str, max_results: int = 10) -> RecommendationResult:
        return self.recommend(RecommendationRequest(
            query=query,
            max_results=max_results,
            user_preferences=self.preferences,
        ))

    def recommend_by_context(self, current_context: List[Item], max_results: int = 10) -> RecommendationResult:
        return self.recommend(RecommendationRequest(
            current_context=current_context,
            max_results=max_results,
            user_preferences=self.preferences,
        ))

    def get_related_content(self, item_id: str, max_results: int = 5,
                            threshold: Optional[float] = None) -> RecommendationResult:
        """
        Nearest neighbours of a stored item ranked by similarity alone.

        Raises ItemNotFound when item_id has no vector record.
        """
        start = time.perf_counter()
        threshold = self.related_threshold if threshold is None else threshold
        similar = self.index.find_similar_by_id(item_id, threshold, max_results)

        items = [
            RecommendedItem(
                item=self._resolve(result.item),
                score=result.similarity,
                similarity=result.similarity,
                reasons=[RecommendationReason(
                    type=REASON_SEMANTIC_SIMILARITY,
                    description=f"Semantic similarity to the current item is {result.similarity * 100:.1f}%",
                    weight=1.0,
                    evidence="Vector similarity",
                )],
                relevance_factors=[RelevanceFactor(
                    factor="semantic_similarity",
                    value=result.similarity,
                    weight=1.0,
                    description="Semantic similarity",
                )],
            )
            for result in similar
        ]

        result = RecommendationResult(
            items=items,
            explanation=f"Found {len(items)} related item{'s' if len(items) != 1 else ''} by semantic similarity.",
            confidence=overall_confidence(items),
            strategy=STRATEGY_SEMANTIC_SEARCH,
            metadata=RecommendationMetadata(
                processing_time=(time.perf_counter() - start) * 1000,
                total_candidates=len(similar),
                filters_applied=["similarity_threshold"],
                algorithm_version=ALGORITHM_VERSION,
            ),
        )
        self._record(result)
        return result

    # Preferences and usage

    def get_user_preferences(self) -> UserPreferences:
        return self.preferences

    def update_user_preferences(self, preferences: Optional[dict] = None, **changes) -> UserPreferences:
        """Merge changes into the current preferences. Unmentioned fields are kept."""
        merged = self.preferences.model_dump()
        merged.update(preferences or {})
        merged.update(changes)
        self.preferences = UserPreferences.model_validate(merged)
        logger.log_operation("recommend.preferences", "updated", {"fields": sorted({**(preferences or {}), **changes})})
        return self.preferences

    def record_user_interaction(self, item_id: str, interaction_type: str) -> Optional[UsageRecord]:
        if interaction_type not in INTERACTION_TYPES:
            raise ValueError(f"interaction_type must be one of: {list(INTERACTION_TYPES)}")

        if not self.learning_enabled:
            logger.debug(f"Learning disabled, ignoring {interaction_type} for {item_id}")
            return None

        now = self.clock()
        usage = self._usage.get(item_id)
        if usage is None:
            usage = UsageRecord(item_id=item_id, first_accessed=now, last_accessed=now)
            self._usage[item_id] = usage

        if interaction_type == "view":
            usage.view_count += 1
        elif interaction_type == "use":
            usage.use_count += 1
        elif interaction_type == "like":
            usage.like_count += 1
        else:
            usage.dislike_count += 1

        usage.last_accessed = now
        return usage

    def get_usage(self, item_id: str) -> Optional[UsageRecord]:
        return self._usage.get(item_id)

    def get_stats(self) -> dict:
        total = len(self._history)
        if total == 0:
            return {
                "total_recommendations": 0,
                "average_confidence": 0.0,
                "strategy_distribution": {},
                "average_processing_time": 0.0,
            }

        distribution: Dict[str, int] = {}
        for result in self._history:
            distribution[result.strategy] = distribution.get(result.strategy, 0) + 1

        return {
            "total_recommendations": total,
            "average_confidence": sum(r.confidence for r in self._history) / total,
            "strategy_distribution": distribution,
            "average_processing_time": sum(r.metadata.processing_time for r in self._history) / total,
        }

    # Pipeline

    def _recommend(self, request: RecommendationRequest, start: float) -> RecommendationResult:
        strategy = determine_strategy(request)
        preferences = request.user_preferences or self.preferences

        candidates = self._get_candidates(request, strategy)
        scored = self._score_candidates(candidates, request, preferences)
        filtered, filters_applied = apply_filters(scored, preferences)

        # sorted() is stable: equal scores keep candidate order
        ranked = sorted(filtered, key=lambda recommended: recommended.score, reverse=True)
        final = ranked[:request.max_results or self.max_results]

        return RecommendationResult(
            items=final,
            explanation=generate_explanation(final, strategy),
            confidence=overall_confidence(final),
            strategy=strategy,
            metadata=RecommendationMetadata(
                processing_time=(time.perf_counter() - start) * 1000,
                total_candidates=len(candidates),
                filters_applied=filters_applied,
                algorithm_version=ALGORITHM_VERSION,
            ),
        )

    def _get_candidates(self, request: RecommendationRequest, strategy: str) -> List[Candidate]:
        candidates: List[Candidate] = []

        if strategy == STRATEGY_SEMANTIC_SEARCH:
            for result in self.index.find_similar(request.query, QUERY_THRESHOLD, QUERY_CANDIDATE_LIMIT):
                candidates.append(Candidate(result.item, result.similarity))

        elif strategy == STRATEGY_CONTEXTUAL:
            for context_item in request.current_context:
                if context_item.id not in self.index:
                    logger.warning(f"Context item {context_item.id} is not indexed, skipping")
                    continue
                for result in self.index.find_similar_by_id(context_item.id, CONTEXT_THRESHOLD, CONTEXT_CANDIDATE_LIMIT):
                    candidates.append(Candidate(result.item, result.similarity))

        else:
            # No strong seed: breadth over precision
            for item_id in self.index.list_ids()[:BROWSE_CANDIDATE_LIMIT]:
                record = self.index.get(item_id)
                if record is not None:
                    candidates.append(Candidate(item_from_record(record)))

        return [
            Candidate(self._resolve(candidate.item), candidate.similarity)
            for candidate in deduplicate(candidates)
        ]

    def _score_candidates(self, candidates: List[Candidate], request: RecommendationRequest,
                          preferences: UserPreferences) -> List[RecommendedItem]:
        now = self.clock()
        scored = []
        for candidate in candidates:
            query_similarity = candidate.similarity if request.query else None
            breakdown = score_item(
                candidate.item,
                preferences,
                usage=self._usage.get(candidate.item.id),
                similarity=query_similarity,
                now=now,
            )
            scored.append(RecommendedItem(
                item=candidate.item,
                score=breakdown.total,
                reasons=generate_reasons(candidate.item, breakdown, preferences, request.working_context),
                relevance_factors=relevance_factors(candidate.item, preferences, now),
                similarity=candidate.similarity,
            ))
        return scored

    def _resolve(self, item: Item) -> Item:
        """Prefer the full item from the item store over the index snapshot."""
        if self.item_store is None:
            return item
        stored = self.item_store.get_item(item.id)
        return stored if stored is not None else item

    def _fallback_result(self, start: float) -> RecommendationResult:
        return RecommendationResult(
            items=[],
            explanation="Recommendations are temporarily unavailable. Please try again later.",
            confidence=0.0,
            strategy=STRATEGY_HYBRID,
            metadata=RecommendationMetadata(
                processing_time=(time.perf_counter() - start) * 1000,
                total_candidates=0,
                filters_applied=[],
                algorithm_version=ALGORITHM_VERSION,
            ),
        )

    def _record(self, result: RecommendationResult) -> None:
        self._history.append(result)
        if len(self._history) > HISTORY_LIMIT:
            self._history = self._history[-HISTORY_KEEP:]
