"""
Data Models for the Hybrid Recommendation Engine

Users, candidate entities (communities and events) and the scored output of
the recommendation pipeline. All of them are plain value objects: the engine
never mutates its inputs and keeps no state between calls.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Any, Union
from datetime import datetime, timezone
from enum import Enum
import json
import logging


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


class ActivityLevel(Enum):
    """How active a user or community is"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return {"low": 1, "medium": 2, "high": 3}[self.value]


class CommunitySize(Enum):
    """Preferred community size bracket"""
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    ANY = "any"


class InteractionType(Enum):
    """Types of user interactions"""
    VIEW = "view"
    LIKE = "like"
    COMMENT = "comment"
    SHARE = "share"
    JOIN = "join"
    LEAVE = "leave"


class RecommendationMethod(Enum):
    """Label of the algorithm that produced a score"""
    CONTENT_BASED = "content_based"
    COLLABORATIVE_USER_BASED = "collaborative_user_based"
    COLLABORATIVE_ITEM_BASED = "collaborative_item_based"
    COLLABORATIVE = "collaborative"
    POPULARITY_BASED = "popularity_based"
    POPULARITY = "popularity"
    COMMUNITY_BASED = "community_based"
    HYBRID = "hybrid"


class ReasonType(Enum):
    """Kinds of explanation attached to a recommendation"""
    INTEREST_MATCH = "interest_match"
    LOCATION_PROXIMITY = "location_proximity"
    SIMILAR_USERS = "similar_users"
    POPULARITY = "popularity"
    ACTIVITY_MATCH = "activity_match"
    SIZE_MATCH = "size_match"
    DEMOGRAPHIC_MATCH = "demographic_match"
    COMMUNITY_MEMBER = "community_member"
    TIMING = "timing"


def _coerce_enum(value, enum_cls, default=None):
    if value is None:
        return default
    if isinstance(value, enum_cls):
        return value
    return enum_cls(str(value).lower())


@dataclass
class Location:
    """Geographic point with an optional city label"""
    lat: float
    lng: float
    city: str = ""
    country: str = ""

    @classmethod
    def parse(cls, raw: Any) -> Optional["Location"]:
        """
        Build a Location from a loosely structured payload

        Accepts a Location, a mapping with ``lat`` and ``lng``/``lon`` keys, or a
        JSON string holding such a mapping. Plain-text places and payloads
        without usable coordinates (missing or exactly 0) yield None.
        """
        if raw is None:
            return None
        if isinstance(raw, Location):
            return raw

        if isinstance(raw, str):
            text = raw.strip()
            if not text.startswith(("{", "[")):
                return None
            try:
                raw = json.loads(text)
            except ValueError as e:
                logger.warning(f"Unparsable location payload: {e}")
                return None

        if not isinstance(raw, dict):
            return None

        lat = raw.get("lat")
        lng = raw.get("lng", raw.get("lon"))
        if not lat or not lng:
            return None

        return cls(
            lat=float(lat),
            lng=float(lng),
            city=raw.get("city") or "Unknown",
            country=raw.get("country") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lat": self.lat,
            "lng": self.lng,
            "city": self.city,
            "country": self.country
        }


@dataclass
class Interaction:
    """Single entry of a user's interaction log"""
    interaction_type: Union[str, InteractionType]
    target_id: str
    target_type: str = "community"
    timestamp: datetime = field(default_factory=_utcnow)
    duration: Optional[float] = None
    rating: Optional[float] = None

    def __post_init__(self):
        if isinstance(self.interaction_type, str):
            try:
                self.interaction_type = InteractionType(self.interaction_type)
            except ValueError:
                # Keep as string if not in enum
                pass

    def to_dict(self) -> Dict[str, Any]:
        return {
            "interaction_type": self.interaction_type.value if isinstance(self.interaction_type, InteractionType) else self.interaction_type,
            "target_id": self.target_id,
            "target_type": self.target_type,
            "timestamp": _isoformat(self.timestamp),
            "duration": self.duration,
            "rating": self.rating
        }


@dataclass
class UserPreferences:
    """Explicit user preferences"""
    preferred_categories: List[str] = field(default_factory=list)
    max_distance: Optional[float] = None
    community_size: Optional[CommunitySize] = None

    DEFAULT_MAX_DISTANCE_KM = 50.0

    def __post_init__(self):
        self.community_size = _coerce_enum(self.community_size, CommunitySize)

    @property
    def effective_max_distance(self) -> float:
        return self.max_distance or self.DEFAULT_MAX_DISTANCE_KM

    def to_dict(self) -> Dict[str, Any]:
        return {
            "preferred_categories": list(self.preferred_categories),
            "max_distance": self.max_distance,
            "community_size": self.community_size.value if self.community_size else None
        }


@dataclass
class User:
    """User data model"""
    user_id: str
    interests: List[str] = field(default_factory=list)
    activity_level: ActivityLevel = ActivityLevel.MEDIUM
    location: Optional[Location] = None
    preferences: UserPreferences = field(default_factory=UserPreferences)
    joined_communities: List[str] = field(default_factory=list)
    attended_events: List[str] = field(default_factory=list)
    interactions: List[Interaction] = field(default_factory=list)

    def __post_init__(self):
        self.activity_level = _coerce_enum(self.activity_level, ActivityLevel, ActivityLevel.MEDIUM)
        self.location = Location.parse(self.location)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "interests": list(self.interests),
            "activity_level": self.activity_level.value,
            "location": self.location.to_dict() if self.location else None,
            "preferences": self.preferences.to_dict(),
            "joined_communities": list(self.joined_communities),
            "attended_events": list(self.attended_events),
            "interactions": [i.to_dict() for i in self.interactions]
        }


@dataclass
class Community:
    """Community candidate"""
    community_id: str
    name: str
    category: str
    tags: List[str] = field(default_factory=list)
    content_topics: List[str] = field(default_factory=list)
    member_count: int = 0
    growth_rate: float = 0.0
    engagement_score: float = 0.0
    last_activity: datetime = field(default_factory=_utcnow)
    location: Optional[Location] = None
    created_at: datetime = field(default_factory=_utcnow)
    description: str = ""
    activity_level: Optional[ActivityLevel] = None

    def __post_init__(self):
        self.location = Location.parse(self.location)
        if self.activity_level is None:
            # Derived from membership when the source does not track it
            if self.member_count >= 100:
                self.activity_level = ActivityLevel.HIGH
            elif self.member_count >= 20:
                self.activity_level = ActivityLevel.MEDIUM
            else:
                self.activity_level = ActivityLevel.LOW
        else:
            self.activity_level = _coerce_enum(self.activity_level, ActivityLevel)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "community_id": self.community_id,
            "name": self.name,
            "category": self.category,
            "tags": list(self.tags),
            "content_topics": list(self.content_topics),
            "member_count": self.member_count,
            "growth_rate": self.growth_rate,
            "engagement_score": self.engagement_score,
            "last_activity": _isoformat(self.last_activity),
            "location": self.location.to_dict() if self.location else None,
            "created_at": _isoformat(self.created_at),
            "description": self.description,
            "activity_level": self.activity_level.value
        }


@dataclass
class Event:
    """Event candidate"""
    event_id: str
    title: str
    category: str
    community_id: str
    start_time: datetime
    description: str = ""
    tags: List[str] = field(default_factory=list)
    content_topics: List[str] = field(default_factory=list)
    community_name: Optional[str] = None
    location: Optional[Location] = None
    is_online: bool = False
    end_time: Optional[datetime] = None
    max_attendees: Optional[int] = None
    current_attendees: int = 0
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        self.location = Location.parse(self.location)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "title": self.title,
            "category": self.category,
            "community_id": self.community_id,
            "community_name": self.community_name,
            "start_time": _isoformat(self.start_time),
            "end_time": _isoformat(self.end_time),
            "description": self.description,
            "tags": list(self.tags),
            "content_topics": list(self.content_topics),
            "location": self.location.to_dict() if self.location else None,
            "is_online": self.is_online,
            "max_attendees": self.max_attendees,
            "current_attendees": self.current_attendees,
            "created_at": _isoformat(self.created_at)
        }


@dataclass
class RecommendationReason:
    """Human readable explanation for part of a score"""
    type: ReasonType
    description: str
    weight: float
    evidence: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "description": self.description,
            "weight": self.weight,
            "evidence": self.evidence
        }


@dataclass
class RecommendationScore:
    """
    Score of one candidate

    ``score`` is not a probability: boosts and diversity bonuses are added on
    top of the blended value without clamping, so it is only comparable with
    the scores of other candidates in the same result.
    """
    candidate_id: str
    score: float
    confidence: float
    method: RecommendationMethod
    reasons: List[RecommendationReason] = field(default_factory=list)

    def copy(self) -> "RecommendationScore":
        """Working copy with its own reasons list"""
        return replace(self, reasons=list(self.reasons))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "candidate_id": self.candidate_id,
            "score": self.score,
            "confidence": self.confidence,
            "method": self.method.value,
            "reasons": [reason.to_dict() for reason in self.reasons]
        }


EventRecommendationScore = RecommendationScore


@dataclass
class RecommendationMetadata:
    """Diagnostics reported with every result"""
    total_candidates: int = 0
    algorithms_used: List[str] = field(default_factory=list)
    processing_time_ms: float = 0.0
    diversity_score: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_candidates": self.total_candidates,
            "algorithms_used": list(self.algorithms_used),
            "processing_time_ms": self.processing_time_ms,
            "diversity_score": self.diversity_score
        }


@dataclass
class RecommendationResult:
    """Response containing recommendations"""
    recommendations: List[RecommendationScore] = field(default_factory=list)
    metadata: RecommendationMetadata = field(default_factory=RecommendationMetadata)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recommendations": [rec.to_dict() for rec in self.recommendations],
            "metadata": self.metadata.to_dict()
        }


EventRecommendationResult = RecommendationResult
