"""
Event recommendation engine
"""

import calendar
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Union

from ..ml import (
    CommunityMembership, EventCollaborativeFiltering, EventContentBased, EventPopularityBased,
    load_interest_keywords,
)
from .algorithms import AlgorithmConfig, ScoringContext
from .engine import HybridRecommendationEngine
from .models import Event, RecommendationResult, RecommendationScore, User
from .options import EventRecommendationOptions, RecommendationOptions, coerce_options
from .ranking import EVENT_FACETS, apply_timing_boost, index_candidates
from .similarity import days_between
from .strategy import EVENT_DEFAULT_WEIGHTS, EVENT_PROFILE, AlgorithmWeights, Strategy, StrategySelector


def add_months(value: datetime, months: int) -> datetime:
    """Same day ``months`` later, clamped to the end of a shorter month"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def date_range_end(date_range: str, now: datetime) -> Optional[datetime]:
    """Latest allowed start time for a date range filter, None for ``all``"""
    if date_range == "today":
        return now.replace(hour=23, minute=59, second=59, microsecond=999999)
    if date_range == "week":
        return now + timedelta(days=7)
    if date_range == "month":
        return add_months(now, 1)
    return None


class EventRecommendationEngine(HybridRecommendationEngine):
    """
    Ranks upcoming events for a user

    Adds a community-membership scorer to the content, collaborative and
    popularity blend, boosts events starting within two weeks and rewards
    variety in both category and hosting community.
    """

    candidate_key = "event_id"
    diversity_facets = EVENT_FACETS
    algorithm_order = ("content_based", "community_based", "collaborative_filtering", "popularity_based")

    def _create_strategy_selector(self) -> StrategySelector:
        return StrategySelector(EVENT_PROFILE, signal="attended_events")

    def _initialize_algorithms(self):
        keywords = load_interest_keywords(self.config.keywords_path)

        self.algorithm_registry.register_algorithm(
            "content_based",
            EventContentBased(keywords=keywords),
            AlgorithmConfig(name="content_based")
        )
        self.algorithm_registry.register_algorithm(
            "collaborative_filtering",
            EventCollaborativeFiltering(),
            AlgorithmConfig(
                name="collaborative_filtering",
                time_budget_ms=self.config.collaborative_timeout_ms
            )
        )
        self.algorithm_registry.register_algorithm(
            "community_based",
            CommunityMembership(),
            AlgorithmConfig(name="community_based")
        )
        self.algorithm_registry.register_algorithm(
            "popularity_based",
            EventPopularityBased(),
            AlgorithmConfig(name="popularity_based")
        )

    def _default_weights(self) -> AlgorithmWeights:
        return EVENT_DEFAULT_WEIGHTS

    def _algorithm_weight(self, name: str, weights: AlgorithmWeights) -> float:
        return {
            "content_based": weights.content_based,
            "collaborative_filtering": weights.collaborative,
            "community_based": weights.community,
            "popularity_based": weights.popularity,
        }[name]

    def _algorithm_applies(
        self,
        name: str,
        context: ScoringContext,
        strategy: Strategy,
        options: RecommendationOptions,
    ) -> bool:
        if name == "community_based":
            return bool(context.user_community_ids)
        return super()._algorithm_applies(name, context, strategy, options)

    def _post_merge(self, recommendations: List[RecommendationScore], context: ScoringContext) -> None:
        apply_timing_boost(recommendations, index_candidates(context.candidates, "event_id"), context.now)

    def filter_events(
        self,
        user: User,
        events: Sequence[Event],
        options: EventRecommendationOptions,
        now: datetime,
    ) -> List[Event]:
        """Upcoming events matching the date and venue filters, minus attended ones"""
        latest_start = date_range_end(options.date_range_filter, now)
        attended = set(user.attended_events)

        filtered = []
        for event in events:
            if days_between(event.start_time, now) < 0:
                continue
            if latest_start is not None and days_between(event.start_time, latest_start) > 0:
                continue
            if options.include_online_only and not event.is_online:
                continue
            if options.include_in_person_only and event.is_online:
                continue
            if event.event_id in attended:
                continue
            filtered.append(event)

        return filtered

    async def generate_recommendations(
        self,
        user: User,
        all_users: Sequence[User],
        events: Sequence[Event],
        user_community_ids: Sequence[str] = (),
        options: Union[None, Dict[str, Any], EventRecommendationOptions] = None,
        now: Optional[datetime] = None,
    ) -> RecommendationResult:
        """
        Recommend events for ``user``

        Args:
            user: User to recommend for
            all_users: Population used for collaborative filtering
            events: Candidate events, past and attended ones are skipped
            user_community_ids: Communities the user belongs to
            options: Request options (model, plain dict or None for defaults)
            now: Reference time, defaults to the current UTC time

        Returns:
            Ranked recommendations and call metadata
        """
        options = coerce_options(options, EventRecommendationOptions)
        now = now or datetime.now(timezone.utc)

        candidates = self.filter_events(user, events, options, now)
        self.logger.debug(f"User {user.user_id}: {len(candidates)} of {len(events)} events after filtering")

        return await self._run(
            user=user,
            all_users=all_users,
            candidates=candidates,
            catalog=events,
            options=options,
            now=now,
            user_community_ids=list(user_community_ids),
        )
