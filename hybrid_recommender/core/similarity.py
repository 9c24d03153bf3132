"""
Similarity primitives shared by every scorer

Pure functions: set overlap, great-circle distance, weighted blending of
partial signals and neighbour selection.
"""

import math
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar

import numpy as np

from .models import ActivityLevel, Location, User


EARTH_RADIUS_KM = 6371.0

T = TypeVar("T")


def jaccard(a: Iterable, b: Iterable) -> float:
    """|A ∩ B| / |A ∪ B|, 0.0 when both sets are empty"""
    set_a, set_b = set(a), set(b)
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


def haversine_distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points in kilometres"""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    # Rounding can push a past 1 for near-antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def location_distance_km(a: Location, b: Location) -> float:
    return haversine_distance_km(a.lat, a.lng, b.lat, b.lng)


def weighted_blend(terms: Iterable[Tuple[float, float]]) -> float:
    """
    Σ(score·weight) / Σweight over (score, weight) pairs

    Signals that could not be evaluated are simply absent from ``terms`` so
    they do not drag the denominator. Returns 0.0 when no weight accumulated.
    """
    pairs = np.asarray(list(terms), dtype=float).reshape(-1, 2)
    total_weight = pairs[:, 1].sum()
    if total_weight <= 0:
        return 0.0
    return float(np.dot(pairs[:, 0], pairs[:, 1]) / total_weight)


class WeightedBlend:
    """Accumulates (score, weight) terms for :func:`weighted_blend`"""

    def __init__(self):
        self.terms: List[Tuple[float, float]] = []

    def add(self, score: float, weight: float) -> None:
        self.terms.append((score, weight))

    @property
    def total_weight(self) -> float:
        return sum(weight for _, weight in self.terms)

    @property
    def value(self) -> float:
        return weighted_blend(self.terms)


def activity_closeness(a: ActivityLevel, b: ActivityLevel) -> float:
    """1.0 for equal activity levels, 0.0 for low vs high"""
    return 1 - abs(a.rank - b.rank) / 2


def days_between(later: datetime, earlier: datetime) -> float:
    """Fractional days from ``earlier`` to ``later`` (naive values are UTC)"""
    if later.tzinfo is None:
        later = later.replace(tzinfo=timezone.utc)
    if earlier.tzinfo is None:
        earlier = earlier.replace(tzinfo=timezone.utc)
    return (later - earlier).total_seconds() / 86400


def find_similar_users(
    target: User,
    population: Sequence[User],
    similarity: Callable[[User, User], float],
    threshold: float,
    limit: Optional[int] = None,
) -> List[Tuple[User, float]]:
    """
    Neighbours of ``target`` ordered by similarity

    Keeps users strictly above ``threshold``; ties keep population order.
    """
    others = [user for user in population if user.user_id != target.user_id]
    if not others:
        return []

    scores = np.array([similarity(target, user) for user in others], dtype=float)
    order = np.argsort(-scores, kind="stable")

    neighbours = [(others[i], float(scores[i])) for i in order if scores[i] > threshold]
    if limit is not None:
        neighbours = neighbours[:limit]
    return neighbours
