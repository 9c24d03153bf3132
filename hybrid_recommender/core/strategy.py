"""
Strategy selection and adaptive algorithm weighting

Decides per user whether collaborative filtering can be trusted and moves
weight between algorithms for new and data-poor users.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence
import logging

from .models import User
from .options import AlgorithmWeightOverrides


@dataclass(frozen=True)
class AlgorithmWeights:
    """Weight of each algorithm in the final blend"""
    collaborative: float
    content_based: float
    popularity: float
    community: float = 0.0

    def with_overrides(self, overrides: Optional[AlgorithmWeightOverrides]) -> "AlgorithmWeights":
        if overrides is None:
            return self
        return AlgorithmWeights(
            collaborative=self.collaborative if overrides.collaborative is None else overrides.collaborative,
            content_based=self.content_based if overrides.content_based is None else overrides.content_based,
            popularity=self.popularity if overrides.popularity is None else overrides.popularity,
            community=self.community if overrides.community is None else overrides.community,
        )

    @property
    def total(self) -> float:
        return self.collaborative + self.content_based + self.popularity + self.community

    def normalized(self) -> "AlgorithmWeights":
        """Negative weights clamped to 0, then scaled to sum to 1"""
        clamped = AlgorithmWeights(
            collaborative=max(0.0, self.collaborative),
            content_based=max(0.0, self.content_based),
            popularity=max(0.0, self.popularity),
            community=max(0.0, self.community),
        )
        total = clamped.total
        if total <= 0:
            return AlgorithmWeights(collaborative=0.0, content_based=1.0, popularity=0.0)
        return AlgorithmWeights(
            collaborative=clamped.collaborative / total,
            content_based=clamped.content_based / total,
            popularity=clamped.popularity / total,
            community=clamped.community / total,
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            "collaborative": self.collaborative,
            "content_based": self.content_based,
            "popularity": self.popularity,
            "community": self.community
        }


COMMUNITY_DEFAULT_WEIGHTS = AlgorithmWeights(collaborative=0.40, content_based=0.40, popularity=0.20)
EVENT_DEFAULT_WEIGHTS = AlgorithmWeights(collaborative=0.25, content_based=0.35, popularity=0.15, community=0.25)


@dataclass(frozen=True)
class StrategyProfile:
    """Domain constants for strategy selection"""
    new_user_interaction_threshold: int
    min_own_signal: int
    min_overlapping_users: int
    # Shares of the collaborative weight handed out when it is switched off
    redistribution: Dict[str, float] = field(default_factory=dict)
    # Deltas applied for new users and for data-poor users
    new_user_shift: Dict[str, float] = field(default_factory=dict)
    low_richness_shift: Dict[str, float] = field(default_factory=dict)
    richness_normalizer: float = 20.0
    low_richness_threshold: float = 0.3
    count_user_communities: bool = False


COMMUNITY_PROFILE = StrategyProfile(
    new_user_interaction_threshold=5,
    min_own_signal=2,
    min_overlapping_users=5,
    redistribution={"content_based": 0.70, "popularity": 0.30},
    new_user_shift={"popularity": 0.20, "content_based": -0.10, "collaborative": -0.10},
    low_richness_shift={"popularity": 0.10, "content_based": -0.05, "collaborative": -0.05},
    richness_normalizer=20.0,
)

EVENT_PROFILE = StrategyProfile(
    new_user_interaction_threshold=3,
    min_own_signal=2,
    min_overlapping_users=3,
    redistribution={"content_based": 0.50, "community": 0.30, "popularity": 0.20},
    new_user_shift={"popularity": 0.15, "community": 0.075, "content_based": -0.075, "collaborative": -0.075},
    low_richness_shift={"popularity": 0.10, "community": 0.05, "content_based": -0.075, "collaborative": -0.075},
    richness_normalizer=15.0,
    count_user_communities=True,
)


@dataclass
class Strategy:
    """How much to trust each signal for one user"""
    use_collaborative: bool
    is_new_user: bool
    data_richness: float
    own_signal_count: int = 0
    overlapping_users: int = 0


def _shift(weights: Dict[str, float], deltas: Dict[str, float]) -> None:
    for name, delta in deltas.items():
        weights[name] += delta


class StrategySelector:
    """
    Per-user strategy and weight adjustment

    The own signal is the user's joined communities (community engine) or
    attended events (event engine), picked by ``signal``.
    """

    def __init__(self, profile: StrategyProfile, signal: str = "joined_communities"):
        self.profile = profile
        self.signal = signal
        self.logger = logging.getLogger(__name__)

    def _own_signal(self, user: User) -> Sequence[str]:
        return getattr(user, self.signal)

    def determine_strategy(
        self,
        user: User,
        all_users: Sequence[User],
        user_community_ids: Sequence[str] = (),
    ) -> Strategy:
        own = set(self._own_signal(user))
        interactions_count = len(user.interactions)
        overlapping_users = sum(
            1 for other in all_users
            if other.user_id != user.user_id and own.intersection(self._own_signal(other))
        )

        is_new_user = len(own) == 0 and interactions_count < self.profile.new_user_interaction_threshold
        use_collaborative = (
            len(own) >= self.profile.min_own_signal
            and overlapping_users >= self.profile.min_overlapping_users
        )

        richness_signal = len(own) + interactions_count
        if self.profile.count_user_communities:
            richness_signal += len(user_community_ids)
        data_richness = min(1.0, richness_signal / self.profile.richness_normalizer)

        return Strategy(
            use_collaborative=use_collaborative,
            is_new_user=is_new_user,
            data_richness=data_richness,
            own_signal_count=len(own),
            overlapping_users=overlapping_users,
        )

    def adjust_weights(self, weights: AlgorithmWeights, strategy: Strategy) -> AlgorithmWeights:
        """Apply the strategy rules in order and normalize"""
        running = weights.to_dict()

        if not strategy.use_collaborative:
            redistributed = running["collaborative"]
            for name, share in self.profile.redistribution.items():
                running[name] += redistributed * share
            running["collaborative"] = 0.0

        if strategy.is_new_user:
            _shift(running, self.profile.new_user_shift)

        if strategy.data_richness < self.profile.low_richness_threshold:
            _shift(running, self.profile.low_richness_shift)

        adjusted = AlgorithmWeights(**running).normalized()
        self.logger.debug(f"Adjusted weights {weights.to_dict()} -> {adjusted.to_dict()} for {strategy}")
        return adjusted
