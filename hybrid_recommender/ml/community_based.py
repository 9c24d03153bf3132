"""
Community membership scorer for events
"""

from typing import List

from ..core.algorithms import BaseRecommendationAlgorithm, ScoringContext
from ..core.models import ReasonType, RecommendationMethod, RecommendationReason, RecommendationScore


class CommunityMembership(BaseRecommendationAlgorithm):
    """Flat boost for events hosted by communities the user belongs to"""

    name = "community_based"
    method = RecommendationMethod.COMMUNITY_BASED

    SCORE = 0.7
    CONFIDENCE = 0.85

    def recommend(self, context: ScoringContext) -> List[RecommendationScore]:
        communities = set(context.user_community_ids)
        return [
            RecommendationScore(
                candidate_id=event.event_id,
                score=self.SCORE,
                confidence=self.CONFIDENCE,
                method=self.method,
                reasons=[RecommendationReason(
                    type=ReasonType.COMMUNITY_MEMBER,
                    description=f"From {event.community_name or 'your community'}",
                    weight=self.SCORE,
                    evidence={"community_id": event.community_id},
                )],
            )
            for event in context.candidates
            if event.community_id in communities
        ]
