"""
Popularity-based scorers

Rank candidates by intrinsic traction (size, growth, engagement, freshness)
with a small nudge towards the user's own preferences.
"""

from typing import Any, Dict, List

from ..core.algorithms import BaseRecommendationAlgorithm, ScoringContext
from ..core.models import (
    Community, Event, ReasonType, RecommendationMethod, RecommendationReason, RecommendationScore, User,
)
from ..core.similarity import WeightedBlend, days_between, location_distance_km


class PopularityBased(BaseRecommendationAlgorithm):
    """Community popularity with personalization boost"""

    name = "popularity_based"
    method = RecommendationMethod.POPULARITY_BASED

    MEMBER_COUNT_CAP = 5000
    WEIGHTS = {
        "member_count": 0.30,
        "growth_rate": 0.25,
        "engagement": 0.35,
        "recency": 0.10,
    }
    RECENCY_WINDOW_DAYS = 30
    CATEGORY_BOOST = 0.20
    LOCATION_BOOST = 0.10
    CONFIDENCE = 0.8

    def recommend(self, context: ScoringContext) -> List[RecommendationScore]:
        scores = [
            self.score_community(context.user, community, context)
            for community in context.candidates
        ]
        scores.sort(key=lambda s: s.score, reverse=True)

        limit = self.result_limit(context)
        return scores[:limit] if limit is not None else scores

    def score_community(self, user: User, community: Community, context: ScoringContext) -> RecommendationScore:
        blend = WeightedBlend()
        evidence: Dict[str, Any] = {}

        member_score = min(1.0, community.member_count / self.MEMBER_COUNT_CAP)
        blend.add(member_score, self.WEIGHTS["member_count"])
        evidence["member_count"] = community.member_count
        evidence["member_score"] = member_score

        growth_score = min(1.0, community.growth_rate * 2)
        blend.add(growth_score, self.WEIGHTS["growth_rate"])
        evidence["growth_rate"] = community.growth_rate

        blend.add(community.engagement_score / 100, self.WEIGHTS["engagement"])
        evidence["engagement_score"] = community.engagement_score

        days_since_activity = days_between(context.now, community.last_activity)
        recency = max(0.0, 1 - days_since_activity / self.RECENCY_WINDOW_DAYS)
        blend.add(recency, self.WEIGHTS["recency"])
        evidence["days_since_activity"] = days_since_activity

        boost = 0.0
        preferred = {category.lower() for category in user.preferences.preferred_categories}
        if community.category.lower() in preferred:
            boost += self.CATEGORY_BOOST
            evidence["category_boost"] = True

        if user.location and community.location:
            distance = location_distance_km(user.location, community.location)
            max_distance = user.preferences.effective_max_distance
            if distance <= max_distance:
                location_boost = self.LOCATION_BOOST * (1 - distance / max_distance)
                boost += location_boost
                evidence["location_boost"] = location_boost

        description = f"Popular community with {community.member_count} members"
        if community.growth_rate > 0.1:
            description += f" and {community.growth_rate * 100:.0f}% growth"

        return RecommendationScore(
            candidate_id=community.community_id,
            score=blend.value + boost,
            confidence=self.CONFIDENCE,
            method=self.method,
            reasons=[
                RecommendationReason(
                    type=ReasonType.POPULARITY,
                    description=description,
                    weight=1.0,
                    evidence=evidence,
                )
            ],
        )


class EventPopularityBased(BaseRecommendationAlgorithm):
    """Event popularity from attendance and freshness"""

    name = "popularity_based"
    method = RecommendationMethod.POPULARITY

    ATTENDANCE_WEIGHT = 0.4
    MIN_ATTENDANCE_RATE = 0.5
    MIN_UNCAPPED_ATTENDEES = 10
    NEW_EVENT_DAYS = 7
    NEW_EVENT_BOOST = 0.15
    CATEGORY_BOOST = 0.1
    MAX_CONFIDENCE = 0.75
    MIN_SCORE = 0.1

    def recommend(self, context: ScoringContext) -> List[RecommendationScore]:
        scores = [self.score_event(context.user, event, context) for event in context.candidates]
        return [score for score in scores if score.score > self.MIN_SCORE]

    def score_event(self, user: User, event: Event, context: ScoringContext) -> RecommendationScore:
        score = 0.0
        reasons: List[RecommendationReason] = []

        if event.max_attendees:
            attendance_rate = event.current_attendees / event.max_attendees
            if attendance_rate > self.MIN_ATTENDANCE_RATE:
                score += attendance_rate * self.ATTENDANCE_WEIGHT
                reasons.append(RecommendationReason(
                    type=ReasonType.POPULARITY,
                    description=f"{round(attendance_rate * 100)}% full",
                    weight=self.ATTENDANCE_WEIGHT,
                    evidence={"attendance_rate": attendance_rate},
                ))
        elif event.current_attendees > self.MIN_UNCAPPED_ATTENDEES:
            score += min(self.ATTENDANCE_WEIGHT, event.current_attendees / 100)
            reasons.append(RecommendationReason(
                type=ReasonType.POPULARITY,
                description=f"{event.current_attendees} people attending",
                weight=0.3,
                evidence={"attendees": event.current_attendees},
            ))

        days_since_created = days_between(context.now, event.created_at)
        if days_since_created < self.NEW_EVENT_DAYS:
            score += self.NEW_EVENT_BOOST
            reasons.append(RecommendationReason(
                type=ReasonType.POPULARITY,
                description="New event",
                weight=self.NEW_EVENT_BOOST,
                evidence={"days_since_created": days_since_created},
            ))

        category = event.category.lower()
        if any(
            category in preferred.lower() or preferred.lower() in category
            for preferred in user.preferences.preferred_categories
        ):
            score += self.CATEGORY_BOOST

        return RecommendationScore(
            candidate_id=event.event_id,
            score=score,
            confidence=min(self.MAX_CONFIDENCE, score),
            method=self.method,
            reasons=reasons,
        )
