"""
Post-merge ranking adjustments: timing boost and diversity re-ranking
"""

import math
from datetime import datetime
from typing import Callable, Dict, List, Mapping, Sequence, Tuple

from .algorithms import Candidate
from .models import Event, ReasonType, RecommendationReason, RecommendationScore
from .similarity import days_between


TIMING_WINDOW_DAYS = 14
TIMING_MAX_BOOST = 0.1
TIMING_REASON_THRESHOLD = 0.05

# (facet extractor, share of the diversity weight)
DiversityFacet = Tuple[Callable[[Candidate], str], float]

COMMUNITY_FACETS: Sequence[DiversityFacet] = (
    (lambda candidate: candidate.category, 1.0),
)
EVENT_FACETS: Sequence[DiversityFacet] = (
    (lambda candidate: candidate.category, 0.6),
    (lambda candidate: candidate.community_id, 0.4),
)


def timing_boost(days_until_start: float) -> float:
    """Up to +0.1 for events starting now, fading to 0 at two weeks"""
    if days_until_start > TIMING_WINDOW_DAYS:
        return 0.0
    return max(0.0, TIMING_MAX_BOOST * (1 - days_until_start / TIMING_WINDOW_DAYS))


def apply_timing_boost(
    recommendations: List[RecommendationScore],
    events: Mapping[str, Event],
    now: datetime,
) -> None:
    """Add the timing boost to each recommendation in place"""
    for rec in recommendations:
        event = events.get(rec.candidate_id)
        if event is None:
            continue

        days_until = days_between(event.start_time, now)
        boost = timing_boost(days_until)
        if boost <= 0:
            continue

        rec.score += boost
        if boost > TIMING_REASON_THRESHOLD:
            if days_until <= 1:
                description = "Happening very soon!"
            else:
                description = f"Coming up in {math.ceil(days_until)} days"
            rec.reasons.append(
                RecommendationReason(
                    type=ReasonType.TIMING,
                    description=description,
                    weight=boost,
                    evidence={"days_until_event": days_until},
                )
            )


def apply_diversity_filtering(
    recommendations: List[RecommendationScore],
    candidates: Mapping[str, Candidate],
    diversity_weight: float,
    facets: Sequence[DiversityFacet] = COMMUNITY_FACETS,
) -> List[RecommendationScore]:
    """
    Reward the first candidate of every category (and community)

    Walks recommendations best first; each facet value not seen yet earns
    ``diversity_weight * share``. Bonuses are added to the raw score and the
    list is returned re-sorted. A weight of 0 returns the input untouched.
    """
    if diversity_weight == 0:
        return recommendations

    seen: List[set] = [set() for _ in facets]
    diverse: List[RecommendationScore] = []

    for rec in sorted(recommendations, key=lambda r: r.score, reverse=True):
        candidate = candidates.get(rec.candidate_id)
        if candidate is None:
            continue

        bonus = 0.0
        for (extract, share), values in zip(facets, seen):
            value = extract(candidate)
            if value not in values:
                bonus += diversity_weight * share
                values.add(value)

        rec.score += bonus
        diverse.append(rec)

    return sorted(diverse, key=lambda r: r.score, reverse=True)


def calculate_diversity_score(
    recommendations: Sequence[RecommendationScore],
    candidates: Mapping[str, Candidate],
    facets: Sequence[DiversityFacet] = COMMUNITY_FACETS,
) -> float:
    """Mean share of distinct facet values in the final list, in [0, 1]"""
    if not recommendations or not facets:
        return 0.0

    known = [candidates[rec.candidate_id] for rec in recommendations if rec.candidate_id in candidates]
    ratios = [
        len({extract(candidate) for candidate in known}) / len(recommendations)
        for extract, _ in facets
    ]
    return sum(ratios) / len(ratios)


def index_candidates(candidates: Sequence[Candidate], key: str) -> Dict[str, Candidate]:
    return {getattr(candidate, key): candidate for candidate in candidates}
