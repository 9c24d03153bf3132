"""
Synchronous entry points

Each call builds a fresh engine, runs it on its own event loop and releases
its worker threads. Use the engine classes directly from async code.
"""

import asyncio
from datetime import datetime
from typing import Any, Dict, Optional, Sequence, Union

from .core.community_engine import CommunityRecommendationEngine
from .core.engine import EngineConfig
from .core.event_engine import EventRecommendationEngine
from .core.models import Community, Event, RecommendationResult, User
from .core.options import EventRecommendationOptions, RecommendationOptions


def generate_community_recommendations(
    user: User,
    all_users: Sequence[User],
    communities: Sequence[Community],
    options: Union[None, Dict[str, Any], RecommendationOptions] = None,
    now: Optional[datetime] = None,
    config: Optional[EngineConfig] = None,
) -> RecommendationResult:
    """Recommend communities for ``user``"""
    with CommunityRecommendationEngine(config) as engine:
        return asyncio.run(
            engine.generate_recommendations(user, all_users, communities, options=options, now=now)
        )


def generate_event_recommendations(
    user: User,
    all_users: Sequence[User],
    events: Sequence[Event],
    user_community_ids: Sequence[str] = (),
    options: Union[None, Dict[str, Any], EventRecommendationOptions] = None,
    now: Optional[datetime] = None,
    config: Optional[EngineConfig] = None,
) -> RecommendationResult:
    """Recommend upcoming events for ``user``"""
    with EventRecommendationEngine(config) as engine:
        return asyncio.run(
            engine.generate_recommendations(
                user, all_users, events, user_community_ids, options=options, now=now
            )
        )
