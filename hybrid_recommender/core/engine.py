"""
Hybrid Recommendation Engine

Shared pipeline of the community and event engines: strategy selection,
concurrent scorer execution, confidence-weighted merge, diversity re-ranking
and final selection.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Any, Sequence, Tuple

from .algorithms import AlgorithmRegistry, BaseRecommendationAlgorithm, Candidate, ScoringContext
from .models import RecommendationMetadata, RecommendationMethod, RecommendationResult, RecommendationScore, User
from .options import RecommendationOptions
from .ranking import DiversityFacet, apply_diversity_filtering, calculate_diversity_score, index_candidates
from .strategy import AlgorithmWeights, Strategy, StrategySelector


# Weights at or below this are treated as switched off
MIN_ACTIVE_WEIGHT = 1e-6


@dataclass
class EngineConfig:
    """Configuration for the recommendation engines"""
    worker_threads: int = 4
    parallel_scoring: bool = True
    collaborative_timeout_ms: Optional[float] = 2000
    max_latency_ms: float = 250
    keywords_path: Optional[str] = None
    algorithms: List[str] = None

    def __post_init__(self):
        if self.algorithms is None:
            self.algorithms = [
                "content_based",
                "collaborative_filtering",
                "popularity_based",
                "community_based"
            ]


def merge_recommendations(recommendations: Sequence[RecommendationScore]) -> List[RecommendationScore]:
    """
    Merge per-algorithm scores into one entry per candidate

    The first occurrence seeds a copy. A later occurrence folds in as a
    confidence-weighted average, keeps the higher confidence, appends its
    reasons and marks the entry ``hybrid`` when the methods differ. Order of
    first appearance is kept.
    """
    merged: Dict[str, RecommendationScore] = {}

    for rec in recommendations:
        existing = merged.get(rec.candidate_id)
        if existing is None:
            merged[rec.candidate_id] = rec.copy()
            continue

        total_confidence = existing.confidence + rec.confidence
        if total_confidence > 0:
            existing.score = (
                existing.score * existing.confidence + rec.score * rec.confidence
            ) / total_confidence
        else:
            existing.score = 0.0
        existing.confidence = max(existing.confidence, rec.confidence)
        existing.reasons.extend(rec.reasons)

        if existing.method != rec.method:
            existing.method = RecommendationMethod.HYBRID

    return list(merged.values())


class HybridRecommendationEngine(ABC):
    """
    Base class of the domain engines

    Subclasses register their scorers, filter the candidate pool and decide
    which scorers apply to a call; everything after scoring is shared.
    Engines hold no per-call state, one instance can serve many users.
    """

    candidate_key: str = "candidate_id"
    diversity_facets: Sequence[DiversityFacet] = ()
    # Fixed merge order keeps results independent of scorer completion order
    algorithm_order: Tuple[str, ...] = ()

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize the recommendation engine

        Args:
            config: Engine configuration
        """
        self.config = config or EngineConfig()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

        self.algorithm_registry = AlgorithmRegistry()
        self.executor = ThreadPoolExecutor(max_workers=self.config.worker_threads)
        # Set once a scorer outlives its budget; its worker thread is not joined on shutdown
        self._abandoned_work = False
        self.strategy_selector = self._create_strategy_selector()

        self._initialize_algorithms()
        for name in self.algorithm_registry.list_algorithms():
            if name not in self.config.algorithms:
                self.algorithm_registry.disable_algorithm(name)

        self.logger.info(f"{self.__class__.__name__} initialized with config: {self.config}")

    @abstractmethod
    def _create_strategy_selector(self) -> StrategySelector:
        pass

    @abstractmethod
    def _initialize_algorithms(self):
        """Register the engine's scorers"""
        pass

    @abstractmethod
    def _default_weights(self) -> AlgorithmWeights:
        pass

    @abstractmethod
    def _algorithm_weight(self, name: str, weights: AlgorithmWeights) -> float:
        pass

    def _algorithm_applies(
        self,
        name: str,
        context: ScoringContext,
        strategy: Strategy,
        options: RecommendationOptions,
    ) -> bool:
        """Prerequisites beyond a positive weight"""
        if name == "collaborative_filtering":
            return strategy.use_collaborative
        if name == "popularity_based":
            return options.include_popular
        return True

    def _post_merge(self, recommendations: List[RecommendationScore], context: ScoringContext) -> None:
        """Hook applied after merge and before diversity filtering"""

    async def _run(
        self,
        user: User,
        all_users: Sequence[User],
        candidates: Sequence[Candidate],
        catalog: Sequence[Candidate],
        options: RecommendationOptions,
        now: Optional[datetime],
        user_community_ids: Sequence[str] = (),
    ) -> RecommendationResult:
        start_time = time.perf_counter()
        now = now or datetime.now(timezone.utc)

        context = ScoringContext(
            user=user,
            all_users=all_users,
            candidates=candidates,
            catalog=catalog,
            user_community_ids=user_community_ids,
            now=now,
            max_recommendations=options.max_recommendations,
        )

        strategy = self.strategy_selector.determine_strategy(user, all_users, user_community_ids)
        weights = self.strategy_selector.adjust_weights(
            self._default_weights().with_overrides(options.algorithm_weights), strategy
        )

        plan: Dict[str, float] = {}
        if candidates:
            for name in self.algorithm_order:
                if not self.algorithm_registry.is_enabled(name):
                    continue
                weight = self._algorithm_weight(name, weights)
                if weight > MIN_ACTIVE_WEIGHT and self._algorithm_applies(name, context, strategy, options):
                    plan[name] = weight

        self.logger.debug(
            f"User {user.user_id}: {len(candidates)} candidates, strategy {strategy}, running {list(plan)}"
        )

        algorithm_results = await self._run_algorithms_parallel(context, list(plan))

        all_recommendations: List[RecommendationScore] = []
        algorithms_used: List[str] = []
        for name in plan:
            if name not in algorithm_results:
                continue
            for rec in algorithm_results[name]:
                rec.score *= plan[name]
            all_recommendations.extend(algorithm_results[name])
            algorithms_used.append(name)

        merged = merge_recommendations(all_recommendations)
        self._post_merge(merged, context)

        lookup = index_candidates(candidates, self.candidate_key)
        diverse = apply_diversity_filtering(merged, lookup, options.diversity_weight, self.diversity_facets)

        final_recommendations = sorted(diverse, key=lambda r: r.score, reverse=True)
        final_recommendations = final_recommendations[:options.max_recommendations]

        processing_time_ms = (time.perf_counter() - start_time) * 1000
        if processing_time_ms > self.config.max_latency_ms:
            self.logger.warning(
                f"Latency SLA violation: {processing_time_ms:.2f}ms > {self.config.max_latency_ms}ms"
            )

        return RecommendationResult(
            recommendations=final_recommendations,
            metadata=RecommendationMetadata(
                total_candidates=len(candidates),
                algorithms_used=algorithms_used,
                processing_time_ms=processing_time_ms,
                diversity_score=calculate_diversity_score(
                    final_recommendations, lookup, self.diversity_facets
                ),
            ),
        )

    async def _run_algorithms_parallel(
        self,
        context: ScoringContext,
        names: List[str],
    ) -> Dict[str, List[RecommendationScore]]:
        """
        Run scorers concurrently on the thread pool

        Scorers that raise or exceed their time budget are logged and left
        out of the returned mapping.

        Args:
            context: Inputs shared read-only by every scorer
            names: Registered algorithm names to run

        Returns:
            Dictionary of algorithm results
        """
        if not self.config.parallel_scoring:
            results = {}
            for name in names:
                try:
                    results[name] = self.algorithm_registry.get_algorithm(name).recommend(context)
                except Exception as e:
                    self.logger.error(f"Algorithm {name} failed: {e}")
            return results

        loop = asyncio.get_running_loop()
        tasks = []

        for name in names:
            algorithm = self.algorithm_registry.get_algorithm(name)
            task = asyncio.ensure_future(self._run_single_algorithm(loop, algorithm, context))
            tasks.append((name, task))

        results = {}
        for name, task in tasks:
            try:
                results[name] = await task
            except asyncio.TimeoutError:
                self._abandoned_work = True
                self.logger.warning(
                    f"Algorithm {name} exceeded its {self.algorithm_registry.configs[name].time_budget_ms}ms budget"
                )
            except Exception as e:
                self.logger.error(f"Algorithm {name} failed: {e}")

        return results

    async def _run_single_algorithm(
        self,
        loop: asyncio.AbstractEventLoop,
        algorithm: BaseRecommendationAlgorithm,
        context: ScoringContext,
    ) -> List[RecommendationScore]:
        future = loop.run_in_executor(self.executor, algorithm.recommend, context)
        budget_ms = algorithm.config.time_budget_ms
        if budget_ms is None:
            return await future
        return await asyncio.wait_for(future, timeout=budget_ms / 1000)

    def get_algorithm_stats(self) -> Dict[str, Any]:
        return self.algorithm_registry.get_algorithm_stats()

    def shutdown(self):
        """
        Release the scoring thread pool

        Waits for running scorers unless one already exceeded its time budget,
        in which case queued work is cancelled and the call returns at once.
        """
        self.logger.info(f"Shutting down {self.__class__.__name__}...")
        self.executor.shutdown(wait=not self._abandoned_work, cancel_futures=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()

    def __repr__(self) -> str:
        return f"""{self.__class__.__name__}(
    algorithms={self.algorithm_registry.list_algorithms()},
    parallel_scoring={self.config.parallel_scoring}
)"""
