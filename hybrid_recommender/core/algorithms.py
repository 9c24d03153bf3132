"""
Algorithm Registry for Recommendation Algorithms

Manages the scorers an engine can run and the per-call context handed to them.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Any, Optional, Sequence, Union
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .models import Community, Event, RecommendationMethod, RecommendationScore, User


Candidate = Union[Community, Event]


@dataclass
class AlgorithmConfig:
    """Configuration for a recommendation algorithm"""
    name: str
    enabled: bool = True
    time_budget_ms: Optional[float] = None
    limit_factor: Optional[float] = None
    config: Dict[str, Any] = None

    def __post_init__(self):
        if self.config is None:
            self.config = {}


@dataclass
class ScoringContext:
    """
    Read-only inputs of one recommendation call

    ``candidates`` is the filtered pool the scorers rank; ``catalog`` is the
    unfiltered pool, needed where a scorer looks at entities the user already
    engaged with.
    """
    user: User
    all_users: Sequence[User]
    candidates: Sequence[Candidate]
    catalog: Sequence[Candidate] = field(default_factory=list)
    user_community_ids: Sequence[str] = field(default_factory=list)
    now: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    max_recommendations: int = 20


class BaseRecommendationAlgorithm(ABC):
    """
    Base class for all recommendation algorithms

    Scorers only read the context and return fresh score objects, so several
    of them can run concurrently over the same inputs.
    """

    name: str = "base"
    method: RecommendationMethod = RecommendationMethod.HYBRID

    def __init__(self, config: Optional[AlgorithmConfig] = None):
        self.config = config or AlgorithmConfig(name=self.name)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    def recommend(self, context: ScoringContext) -> List[RecommendationScore]:
        """
        Score candidates for the context's user

        Args:
            context: Inputs of the current call

        Returns:
            Raw (unweighted) scores, best first
        """
        pass

    def result_limit(self, context: ScoringContext) -> Optional[int]:
        """Cap on the number of scores returned, None when uncapped"""
        if self.config.limit_factor is None:
            return None
        return math.ceil(context.max_recommendations * self.config.limit_factor)

    def get_metadata(self) -> Dict[str, Any]:
        """Get algorithm metadata"""
        return {
            "name": self.config.name,
            "method": self.method.value,
            "enabled": self.config.enabled,
            "time_budget_ms": self.config.time_budget_ms,
            "config": self.config.config
        }


class AlgorithmRegistry:
    """
    Registry for managing recommendation algorithms
    """

    def __init__(self):
        self.algorithms: Dict[str, BaseRecommendationAlgorithm] = {}
        self.configs: Dict[str, AlgorithmConfig] = {}
        self.logger = logging.getLogger(__name__)

    def register_algorithm(
        self,
        name: str,
        algorithm: BaseRecommendationAlgorithm,
        config: Optional[AlgorithmConfig] = None
    ):
        """
        Register a recommendation algorithm

        Args:
            name: Algorithm name reported in result metadata
            algorithm: Algorithm instance
            config: Algorithm configuration
        """
        if config:
            algorithm.config = config

        self.algorithms[name] = algorithm
        self.configs[name] = algorithm.config

        self.logger.info(f"Registered algorithm: {name}")

    def get_algorithm(self, name: str) -> Optional[BaseRecommendationAlgorithm]:
        """Get algorithm by name"""
        return self.algorithms.get(name)

    def is_enabled(self, name: str) -> bool:
        return name in self.configs and self.configs[name].enabled

    def get_enabled_algorithms(self) -> Dict[str, BaseRecommendationAlgorithm]:
        """Get all enabled algorithms"""
        return {
            name: algo for name, algo in self.algorithms.items()
            if self.configs[name].enabled
        }

    def enable_algorithm(self, name: str):
        """Enable an algorithm"""
        if name in self.configs:
            self.configs[name].enabled = True
            self.logger.info(f"Enabled algorithm: {name}")

    def disable_algorithm(self, name: str):
        """Disable an algorithm"""
        if name in self.configs:
            self.configs[name].enabled = False
            self.logger.info(f"Disabled algorithm: {name}")

    def get_algorithm_stats(self) -> Dict[str, Dict[str, Any]]:
        """Get metadata for all algorithms"""
        return {name: algo.get_metadata() for name, algo in self.algorithms.items()}

    def list_algorithms(self) -> List[str]:
        """List all registered algorithm names"""
        return list(self.algorithms.keys())
