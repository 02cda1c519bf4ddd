"""
Semantic retrieval and recommendation over a personal knowledge store.
"""

from .core.errors import DimensionMismatch, EmbeddingUnavailable, ItemNotFound, RecallError, RecommendationFailed
from .core.items import AnalysisResult, Item, ItemType, apply_analysis
from .recommend import RecommendationEngine, RecommendationRequest, RecommendationResult, UserPreferences
from .service import KnowledgeRecallService
from .vector import EmbeddingGenerator, InMemoryVectorIndex

__version__ = "1.0.0"

__all__ = [
    'RecallError',
    'EmbeddingUnavailable',
    'DimensionMismatch',
    'ItemNotFound',
    'RecommendationFailed',
    'Item',
    'ItemType',
    'AnalysisResult',
    'apply_analysis',
    'EmbeddingGenerator',
    'InMemoryVectorIndex',
    'RecommendationEngine',
    'RecommendationRequest',
    'RecommendationResult',
    'UserPreferences',
    'KnowledgeRecallService',
]
