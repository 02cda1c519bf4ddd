"""
High-level service composing the vector index and recommendation engine:
indexing analysed items, combined semantic search, relationship clustering
and processing statistics.
"""

from dataclasses import asdict, dataclass, replace
import math
import time
from typing import Dict, List, Optional

from recall.core.config import IntelligenceSettings, get_embedding_source
from recall.core.items import AnalysisResult, Item, apply_analysis
from recall.recommend.engine import ItemStore, RecommendationEngine
from recall.recommend.schemas import RecommendationRequest
from recall.recommend.types import RecommendationResult
from recall.util.logging import logger
from recall.vector.embeddings import EmbeddingGenerator, EmbeddingSource
from recall.vector.index import InMemoryVectorIndex
from recall.vector.types import Cluster

SHALLOW_ANALYSIS_MIN_CHARS = 200
SEARCH_THRESHOLD = 0.5
MAX_CLUSTERS = 5


@dataclass
class IndexingResult:
    items: List[Item]
    recommendations: Optional[RecommendationResult] = None


@dataclass
class SearchResult:
    semantic_matches: List[Item]
    recommendations: Optional[RecommendationResult] = None


class KnowledgeRecallService:
    """
    Entry point for hosts: owns one index and one engine.

    Items and analyses are supplied by external collaborators; this service
    never writes back to them.
    """

    def __init__(
        self,
        index: Optional[InMemoryVectorIndex] = None,
        engine: Optional[RecommendationEngine] = None,
        source: Optional[EmbeddingSource] = None,
        item_store: Optional[ItemStore] = None,
        settings: Optional[IntelligenceSettings] = None,
    ):
        self.settings = settings or IntelligenceSettings.from_env()
        if index is None:
            index = InMemoryVectorIndex(EmbeddingGenerator(source if source is not None else get_embedding_source()))
        self.index = index
        self.engine = engine or RecommendationEngine(
            index,
            item_store=item_store,
            max_results=self.settings.max_recommendations,
            learning_enabled=self.settings.learning_enabled,
            related_threshold=self.settings.recommendation_threshold,
        )
        self._processing_times: List[float] = []

    def index_items(self, items: List[Item], analyses: Optional[Dict[str, AnalysisResult]] = None) -> IndexingResult:
        """
        Merge analyses into item metadata, store the items and, when real-time
        processing is on, recommend related content for them.

        With shallow analysis depth only items longer than 200 characters keep
        their analysis.
        """
        start = time.perf_counter()
        analyses = analyses or {}

        enriched = []
        for item in items:
            analysis = analyses.get(item.id)
            if self.settings.analysis_depth == "shallow" and len(item.content) <= SHALLOW_ANALYSIS_MIN_CHARS:
                analysis = None
            enriched.append(apply_analysis(item, analysis))

        self.index.store_batch(enriched)

        recommendations = None
        if self.settings.realtime_processing and enriched:
            recommendations = self.engine.recommend_by_context(enriched, self.settings.max_recommendations)

        duration_ms = (time.perf_counter() - start) * 1000
        self._processing_times.append(duration_ms)
        logger.log_operation("service.index_items", "success", {
            "count": len(enriched),
            "analysed": sum(1 for item in enriched if "importance" in item.metadata),
            "duration_ms": round(duration_ms, 2),
        })
        return IndexingResult(items=enriched, recommendations=recommendations)

    def recommend(self, query: Optional[str] = None, current_context: Optional[List[Item]] = None,
                  max_results: Optional[int] = None) -> RecommendationResult:
        return self.engine.recommend(RecommendationRequest(
            query=query,
            current_context=current_context or [],
            max_results=max_results or self.settings.max_recommendations,
        ))

    def search(self, query: str, include_semantic: bool = True, include_recommendations: bool = True,
               max_results: int = 20) -> SearchResult:
        semantic_matches = []
        if include_semantic:
            semantic_matches = [
                result.item for result in self.index.find_similar(query, SEARCH_THRESHOLD, max_results)
            ]

        recommendations = None
        if include_recommendations:
            recommendations = self.engine.recommend_by_query(query, max_results)

        return SearchResult(semantic_matches=semantic_matches, recommendations=recommendations)

    def get_related_content(self, item_id: str, max_results: int = 5) -> RecommendationResult:
        return self.engine.get_related_content(item_id, max_results)

    def analyze_clusters(self, item_ids: Optional[List[str]] = None) -> List[Cluster]:
        """
        Cluster the index with k = min(5, ceil(n / 3)), n being the number of
        items of interest. When item_ids is given, clusters are narrowed to
        those items and clusters left empty are dropped.
        """
        count = len(item_ids) if item_ids is not None else len(self.index)
        if count == 0:
            return []

        k = min(MAX_CLUSTERS, math.ceil(count / 3))
        clusters = self.index.cluster(k)
        if item_ids is None:
            return clusters

        wanted = set(item_ids)
        narrowed = []
        for cluster in clusters:
            members = [item for item in cluster.items if item.id in wanted]
            if members:
                narrowed.append(replace(cluster, items=members))
        return narrowed

    def record_interaction(self, item_id: str, interaction_type: str):
        return self.engine.record_user_interaction(item_id, interaction_type)

    def get_processing_stats(self) -> dict:
        processed = len(self._processing_times)
        return {
            "total_processed": processed,
            "average_processing_time": sum(self._processing_times) / processed if processed else 0.0,
            "vector_stats": asdict(self.index.stats()),
            "recommendation_stats": self.engine.get_stats(),
            "settings": asdict(self.settings),
        }

    def update_config(self, **changes) -> IntelligenceSettings:
        self.settings = replace(self.settings, **changes)
        self.engine.max_results = self.settings.max_recommendations
        self.engine.learning_enabled = self.settings.learning_enabled
        self.engine.related_threshold = self.settings.recommendation_threshold
        if self.settings.auto_reorganization:
            logger.warning("Auto reorganization is not implemented; setting has no effect")
        return self.settings

    def cleanup(self) -> None:
        """Drop cached embeddings and processing timings. Stored vectors are kept."""
        self.index.clear_cache()
        self._processing_times = []
