"""
Multi-factor recommendation over the vector index.
"""

from .engine import RecommendationEngine, ItemStore, determine_strategy
from .schemas import RecommendationRequest, UserPreferences, WorkingContext
from .types import (
    RecommendationResult,
    RecommendedItem,
    RecommendationReason,
    RelevanceFactor,
    RecommendationMetadata,
    UsageRecord,
)

__all__ = [
    'RecommendationEngine',
    'ItemStore',
    'determine_strategy',
    'RecommendationRequest',
    'UserPreferences',
    'WorkingContext',
    'RecommendationResult',
    'RecommendedItem',
    'RecommendationReason',
    'RelevanceFactor',
    'RecommendationMetadata',
    'UsageRecord',
]
