"""
Community recommendation engine
"""

from datetime import datetime
from typing import Any, Dict, Optional, Sequence, Union

from ..ml import CollaborativeFiltering, ContentBased, PopularityBased, load_interest_keywords
from .algorithms import AlgorithmConfig
from .engine import HybridRecommendationEngine
from .models import Community, RecommendationResult, User
from .options import RecommendationOptions, coerce_options
from .ranking import COMMUNITY_FACETS
from .strategy import COMMUNITY_DEFAULT_WEIGHTS, COMMUNITY_PROFILE, AlgorithmWeights, StrategySelector


class CommunityRecommendationEngine(HybridRecommendationEngine):
    """
    Ranks communities a user has not joined yet

    Blends content-based, collaborative and popularity scores (default
    weights 0.4 / 0.4 / 0.2) and rewards category variety.
    """

    candidate_key = "community_id"
    diversity_facets = COMMUNITY_FACETS
    algorithm_order = ("content_based", "collaborative_filtering", "popularity_based")

    def _create_strategy_selector(self) -> StrategySelector:
        return StrategySelector(COMMUNITY_PROFILE, signal="joined_communities")

    def _initialize_algorithms(self):
        keywords = load_interest_keywords(self.config.keywords_path)

        self.algorithm_registry.register_algorithm(
            "content_based",
            ContentBased(keywords=keywords),
            AlgorithmConfig(name="content_based", limit_factor=1.5)
        )
        self.algorithm_registry.register_algorithm(
            "collaborative_filtering",
            CollaborativeFiltering(),
            AlgorithmConfig(
                name="collaborative_filtering",
                time_budget_ms=self.config.collaborative_timeout_ms,
                limit_factor=0.75
            )
        )
        self.algorithm_registry.register_algorithm(
            "popularity_based",
            PopularityBased(),
            AlgorithmConfig(name="popularity_based", limit_factor=0.5)
        )

    def _default_weights(self) -> AlgorithmWeights:
        return COMMUNITY_DEFAULT_WEIGHTS

    def _algorithm_weight(self, name: str, weights: AlgorithmWeights) -> float:
        return {
            "content_based": weights.content_based,
            "collaborative_filtering": weights.collaborative,
            "popularity_based": weights.popularity,
        }[name]

    async def generate_recommendations(
        self,
        user: User,
        all_users: Sequence[User],
        communities: Sequence[Community],
        options: Union[None, Dict[str, Any], RecommendationOptions] = None,
        now: Optional[datetime] = None,
    ) -> RecommendationResult:
        """
        Recommend communities for ``user``

        Args:
            user: User to recommend for
            all_users: Population used for collaborative filtering
            communities: Candidate communities, joined ones are skipped
            options: Request options (model, plain dict or None for defaults)
            now: Reference time, defaults to the current UTC time

        Returns:
            Ranked recommendations and call metadata
        """
        options = coerce_options(options, RecommendationOptions)

        joined = set(user.joined_communities)
        candidates = [c for c in communities if c.community_id not in joined]
        self.logger.debug(
            f"User {user.user_id}: {len(candidates)} of {len(communities)} communities after filtering"
        )

        return await self._run(
            user=user,
            all_users=all_users,
            candidates=candidates,
            catalog=communities,
            options=options,
            now=now,
        )
