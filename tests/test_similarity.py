"""
Tests for the similarity primitives
"""

import math
from datetime import datetime, timedelta, timezone

import pytest
from hypothesis import given, strategies as st

from hybrid_recommender.core.models import ActivityLevel
from hybrid_recommender.core.similarity import (
    WeightedBlend, activity_closeness, days_between, find_similar_users, haversine_distance_km,
    jaccard, location_distance_km, weighted_blend,
)

from conftest import LONDON, PARIS, make_user


ids = st.sets(st.sampled_from(["a", "b", "c", "d", "e", "f"]))


@given(ids, ids)
def test_jaccard_is_bounded_and_symmetric(a, b):
    value = jaccard(a, b)
    assert 0.0 <= value <= 1.0
    assert value == jaccard(b, a)


@given(ids.filter(bool))
def test_jaccard_of_identical_sets_is_one(a):
    assert jaccard(a, set(a)) == 1.0


def test_jaccard_of_empty_sets_is_zero():
    assert jaccard([], []) == 0.0
    assert jaccard(["a"], []) == 0.0


def test_haversine_london_paris():
    assert location_distance_km(LONDON, PARIS) == pytest.approx(343.5, abs=2.0)
    assert haversine_distance_km(10.0, 20.0, 10.0, 20.0) == 0.0


@pytest.mark.parametrize("lat1, lng1, lat2, lng2", [
    (-82.0, 0.0, 82.0, 180.0),
    (0.0, 0.0, 0.0, 180.0),
    (90.0, 0.0, -90.0, 0.0),
    (51.5074, -0.1278, -51.5074, 179.8722),
])
def test_haversine_antipodal_points(lat1, lng1, lat2, lng2):
    assert haversine_distance_km(lat1, lng1, lat2, lng2) == pytest.approx(math.pi * 6371.0, rel=1e-6)


@given(st.floats(-90, 90), st.floats(-180, 180))
def test_haversine_never_exceeds_half_circumference(lat, lng):
    distance = haversine_distance_km(lat, lng, -lat, lng + 180)
    assert 0.0 <= distance <= math.pi * 6371.0 + 1e-6


def test_weighted_blend_ignores_missing_terms():
    assert weighted_blend([]) == 0.0
    assert weighted_blend([(1.0, 0.4), (0.0, 0.1)]) == pytest.approx(0.8)

    blend = WeightedBlend()
    blend.add(0.5, 0.2)
    blend.add(1.0, 0.2)
    assert blend.total_weight == pytest.approx(0.4)
    assert blend.value == pytest.approx(0.75)


def test_activity_closeness():
    assert activity_closeness(ActivityLevel.LOW, ActivityLevel.LOW) == 1.0
    assert activity_closeness(ActivityLevel.LOW, ActivityLevel.MEDIUM) == 0.5
    assert activity_closeness(ActivityLevel.LOW, ActivityLevel.HIGH) == 0.0


def test_days_between_treats_naive_as_utc():
    aware = datetime(2026, 1, 1, tzinfo=timezone.utc)
    naive = datetime(2026, 1, 2, 12)
    assert days_between(naive, aware) == pytest.approx(1.5)
    assert days_between(aware, aware + timedelta(days=2)) == pytest.approx(-2.0)


def test_find_similar_users_orders_and_filters():
    target = make_user("me")
    population = [
        make_user("me"),
        make_user("low"),
        make_user("high"),
        make_user("mid"),
        make_user("tie"),
    ]
    scores = {"low": 0.05, "high": 0.9, "mid": 0.5, "tie": 0.5}

    neighbours = find_similar_users(
        target, population, lambda a, b: scores.get(b.user_id, 1.0), threshold=0.1
    )

    assert [user.user_id for user, _ in neighbours] == ["high", "mid", "tie"]
    assert neighbours[0][1] == pytest.approx(0.9)

    limited = find_similar_users(
        target, population, lambda a, b: scores.get(b.user_id, 1.0), threshold=0.1, limit=1
    )
    assert [user.user_id for user, _ in limited] == ["high"]


def test_find_similar_users_empty_population():
    assert find_similar_users(make_user("me"), [], lambda a, b: 1.0, threshold=0.0) == []
