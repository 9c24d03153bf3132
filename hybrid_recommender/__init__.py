"""
Hybrid Recommendation Engine

Ranks communities and events for a user by blending content-based,
collaborative, popularity and community-membership signals.
"""

__version__ = "1.0.0"
__author__ = "Hybrid Recommendation Engine Team"

from .core.engine import EngineConfig, merge_recommendations
from .core.community_engine import CommunityRecommendationEngine
from .core.event_engine import EventRecommendationEngine
from .core.models import Community, Event, RecommendationResult, User
from .core.options import EventRecommendationOptions, RecommendationOptions
from .recommend import generate_community_recommendations, generate_event_recommendations

__all__ = [
    "EngineConfig",
    "merge_recommendations",
    "CommunityRecommendationEngine",
    "EventRecommendationEngine",
    "Community",
    "Event",
    "RecommendationResult",
    "User",
    "EventRecommendationOptions",
    "RecommendationOptions",
    "generate_community_recommendations",
    "generate_event_recommendations"
]
