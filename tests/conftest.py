"""
Shared fixtures for the hybrid recommendation engine test suite.

Every test runs against a fixed clock so time-dependent scores (recency,
timing boost, date range filters) are reproducible.
"""

from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from hybrid_recommender.core.models import (
    ActivityLevel, Community, Event, Location, User, UserPreferences,
)


NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

LONDON = Location(lat=51.5074, lng=-0.1278, city="London", country="UK")
PARIS = Location(lat=48.8566, lng=2.3522, city="Paris", country="France")


def make_user(user_id: str = "u1", **overrides) -> User:
    fields = {
        "interests": [],
        "activity_level": ActivityLevel.MEDIUM,
        "location": None,
        "preferences": UserPreferences(),
        "joined_communities": [],
        "attended_events": [],
    }
    fields.update(overrides)
    return User(user_id=user_id, **fields)


def make_community(community_id: str, category: str = "Technology", **overrides) -> Community:
    fields = {
        "name": f"{category} {community_id}",
        "tags": [],
        "member_count": 50,
        "growth_rate": 0.05,
        "engagement_score": 20.0,
        "last_activity": NOW,
        "created_at": NOW - timedelta(days=90),
    }
    fields.update(overrides)
    return Community(community_id=community_id, category=category, **fields)


def make_event(event_id: str, starts_in: timedelta = timedelta(days=3), **overrides) -> Event:
    fields = {
        "title": f"Event {event_id}",
        "category": "Technology",
        "community_id": "c1",
        "community_name": "Tech Circle",
        "created_at": NOW - timedelta(days=30),
    }
    fields.update(overrides)
    return Event(event_id=event_id, start_time=NOW + starts_in, **fields)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def new_user() -> User:
    """User with nothing but declared interests"""
    return make_user("newbie", interests=["tech & innovation"])


@pytest.fixture
def communities() -> List[Community]:
    """Three categories with three communities each, Technology first"""
    return [
        make_community("t1", "Technology", tags=["ai"]),
        make_community("t2", "Technology", tags=["software"]),
        make_community("t3", "Technology", tags=["programming"]),
        make_community("k1", "Cooking"),
        make_community("k2", "Cooking"),
        make_community("k3", "Cooking"),
        make_community("m1", "Music"),
        make_community("m2", "Music"),
        make_community("m3", "Music"),
    ]


@pytest.fixture
def population() -> List[User]:
    """Users clustered around the Technology communities"""
    return [
        make_user(f"p{i}", interests=["tech & innovation"], joined_communities=["t1", "t2", "k1"])
        for i in range(6)
    ]


@pytest.fixture
def events() -> List[Event]:
    return [
        make_event("e1", timedelta(hours=12), title="Intro to Machine Learning"),
        make_event("e2", timedelta(days=5), category="Music", community_id="c2", community_name="Jam"),
        make_event("e3", timedelta(days=20), title="Startup Networking", category="Business",
                   community_id="c3", current_attendees=40, max_attendees=50),
        make_event("e4", timedelta(days=2), title="Online Coding Dojo", is_online=True),
        make_event("past", timedelta(days=-1)),
    ]
