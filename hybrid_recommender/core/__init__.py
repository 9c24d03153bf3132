"""Core recommendation engine components"""

from .algorithms import AlgorithmConfig, AlgorithmRegistry, BaseRecommendationAlgorithm, ScoringContext
from .models import (
    ActivityLevel, Community, CommunitySize, Event, Interaction, InteractionType, Location,
    RecommendationMetadata, RecommendationMethod, RecommendationReason, RecommendationResult,
    RecommendationScore, ReasonType, User, UserPreferences,
)
from .options import AlgorithmWeightOverrides, EventRecommendationOptions, RecommendationOptions
from .strategy import AlgorithmWeights, Strategy, StrategySelector

__all__ = [
    "AlgorithmConfig",
    "AlgorithmRegistry",
    "BaseRecommendationAlgorithm",
    "ScoringContext",
    "ActivityLevel",
    "Community",
    "CommunitySize",
    "Event",
    "Interaction",
    "InteractionType",
    "Location",
    "RecommendationMetadata",
    "RecommendationMethod",
    "RecommendationReason",
    "RecommendationResult",
    "RecommendationScore",
    "ReasonType",
    "User",
    "UserPreferences",
    "AlgorithmWeightOverrides",
    "EventRecommendationOptions",
    "RecommendationOptions",
    "AlgorithmWeights",
    "Strategy",
    "StrategySelector"
]
