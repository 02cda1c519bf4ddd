"""
Tests for the knowledge recall service facade.
"""

import pytest

from recall.core.config import IntelligenceSettings
from recall.core.items import AnalysisResult
from recall.service import KnowledgeRecallService


@pytest.fixture
def service(index):
    return KnowledgeRecallService(index=index, settings=IntelligenceSettings())


@pytest.fixture
def items(make_item):
    return [
        make_item("react", "react component renders jsx react component"),
        make_item("vue", "ui component built with vue component"),
        make_item("python", "python database query with sql"),
    ]


class TestIndexing:

    def test_analysis_merged_into_metadata(self, service, items):
        analyses = {"react": AnalysisResult(importance=1.5, keywords=["react"], summary="A component")}
        result = service.index_items(items, analyses)

        react = result.items[0]
        assert react.metadata["importance"] == 1.0
        assert react.metadata["keywords"] == ["react"]
        assert react.metadata["summary"] == "A component"
        assert "importance" not in result.items[1].metadata
        assert service.index.get("react").metadata["keywords"] == ["react"]

    def test_items_are_not_mutated(self, service, items):
        service.index_items(items, {"react": AnalysisResult(importance=0.5)})
        assert items[0].metadata == {}

    def test_shallow_depth_skips_short_items(self, index, make_item):
        service = KnowledgeRecallService(index=index, settings=IntelligenceSettings(analysis_depth="shallow"))
        short = make_item("short", "react")
        long = make_item("long", "react component " * 20)
        analyses = {"short": AnalysisResult(importance=0.9), "long": AnalysisResult(importance=0.9)}

        result = service.index_items([short, long], analyses)

        assert "importance" not in result.items[0].metadata
        assert result.items[1].metadata["importance"] == 0.9

    def test_realtime_recommendations(self, service, items):
        result = service.index_items(items)

        assert result.recommendations is not None
        assert result.recommendations.strategy == "contextual"
        assert len(service.index) == 3

    def test_realtime_disabled(self, index, items):
        service = KnowledgeRecallService(index=index, settings=IntelligenceSettings(realtime_processing=False))
        assert service.index_items(items).recommendations is None


class TestSearch:

    def test_semantic_and_recommendations(self, service, items):
        service.index_items(items)
        result = service.search("react component")

        assert [item.id for item in result.semantic_matches] == ["react", "vue"]
        assert result.recommendations.strategy == "semantic_search"

    def test_semantic_only(self, service, items):
        service.index_items(items)
        result = service.search("react component", include_recommendations=False)

        assert result.recommendations is None
        assert result.semantic_matches

    def test_recommend_passthrough(self, service, items):
        service.index_items(items)
        result = service.recommend(query="react component", max_results=1)

        assert [r.item.id for r in result.items] == ["react"]


class TestClusters:

    def test_empty_index(self, service):
        assert service.analyze_clusters() == []

    def test_all_items_clustered(self, service, items):
        service.index_items(items)
        clusters = service.analyze_clusters()

        # k = ceil(3 / 3) = 1
        assert len(clusters) == 1
        assert sorted(item.id for item in clusters[0].items) == ["python", "react", "vue"]

    def test_narrowed_to_requested_items(self, service, items):
        service.index_items(items)
        clusters = service.analyze_clusters(["react", "vue"])

        assert sorted(item.id for cluster in clusters for item in cluster.items) == ["react", "vue"]


def test_processing_stats(service, items):
    service.index_items(items)
    stats = service.get_processing_stats()

    assert stats["total_processed"] == 1
    assert stats["vector_stats"]["total_vectors"] == 3
    assert stats["recommendation_stats"]["total_recommendations"] == 1
    assert stats["settings"]["analysis_depth"] == "medium"


def test_update_config_reaches_engine(service):
    settings = service.update_config(max_recommendations=3, learning_enabled=False, recommendation_threshold=0.2)

    assert settings.max_recommendations == 3
    assert service.engine.max_results == 3
    assert service.engine.learning_enabled is False
    assert service.engine.related_threshold == 0.2
    assert service.record_interaction("react", "like") is None


def test_cleanup_keeps_vectors(service, items):
    service.index_items(items)
    service.cleanup()

    assert len(service.index) == 3
    assert service.index.stats().cache_size == 0
    assert service.get_processing_stats()["total_processed"] == 0
