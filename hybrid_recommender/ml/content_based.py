"""
Content-based scorers

Match what the user says they like (interests, preferred categories, size,
location) against candidate attributes.
"""

import re
from typing import Iterable, List, Optional, Sequence, Tuple

from ..core.algorithms import AlgorithmConfig, BaseRecommendationAlgorithm, ScoringContext
from ..core.models import (
    Community, CommunitySize, Event, ReasonType, RecommendationMethod, RecommendationReason,
    RecommendationScore, User,
)
from ..core.similarity import WeightedBlend, activity_closeness, location_distance_km
from .keywords import KeywordTable, expand_interest, load_interest_keywords


_INTEREST_SPLIT = re.compile(r"[\s&]+")


def match_preferred_category(
    preferred_categories: Iterable[str],
    category: str,
    keywords: KeywordTable,
) -> Optional[str]:
    """
    First preferred category matching ``category``

    Matches on equality, containment either way, or one of the preference's
    keywords occurring in the category.
    """
    category_lower = category.lower()
    for preference in preferred_categories:
        preference_lower = preference.lower()
        if not preference_lower:
            continue
        if preference_lower == category_lower:
            return preference
        if preference_lower in category_lower or category_lower in preference_lower:
            return preference
        if any(keyword in category_lower for keyword in expand_interest(preference_lower, keywords)):
            return preference
    return None


class ContentBased(BaseRecommendationAlgorithm):
    """Community content-based filtering"""

    name = "content_based"
    method = RecommendationMethod.CONTENT_BASED

    WEIGHTS = {
        "interest": 0.4,
        "category": 0.2,
        "location": 0.2,
        "online": 0.1,
        "activity": 0.1,
        "size": 0.1,
    }
    CATEGORY_MATCH_SCORE = 0.8
    PARTIAL_MATCH = 0.5
    MAX_CONFIDENCE = 0.9
    MIN_SCORE = 0.1

    # [low, high) member count brackets
    SIZE_RANGES = {
        CommunitySize.SMALL: (0, 100),
        CommunitySize.MEDIUM: (100, 1000),
        CommunitySize.LARGE: (1000, float("inf")),
    }

    def __init__(self, config: Optional[AlgorithmConfig] = None, keywords: Optional[KeywordTable] = None):
        super().__init__(config)
        self.keywords = keywords if keywords is not None else load_interest_keywords()

    def recommend(self, context: ScoringContext) -> List[RecommendationScore]:
        scores = [self.score_community(context.user, community) for community in context.candidates]
        scores = [score for score in scores if score.score > self.MIN_SCORE]
        scores.sort(key=lambda s: s.score, reverse=True)

        self.logger.debug(f"{len(scores)} of {len(context.candidates)} communities above content threshold")
        limit = self.result_limit(context)
        return scores[:limit] if limit is not None else scores

    def score_community(self, user: User, community: Community) -> RecommendationScore:
        blend = WeightedBlend()
        reasons: List[RecommendationReason] = []

        interest_score, matched = self.interest_match(user.interests, self._community_terms(community))
        if user.interests and self._community_terms(community):
            blend.add(interest_score, self.WEIGHTS["interest"])
            if matched:
                reasons.append(RecommendationReason(
                    type=ReasonType.INTEREST_MATCH,
                    description=f"Matches your interests: {', '.join(matched)}",
                    weight=self.WEIGHTS["interest"],
                    evidence={"matched_interests": matched, "score": interest_score},
                ))

        preferred = {category.lower() for category in user.preferences.preferred_categories}
        if community.category.lower() in preferred:
            blend.add(self.CATEGORY_MATCH_SCORE, self.WEIGHTS["category"])
            reasons.append(RecommendationReason(
                type=ReasonType.INTEREST_MATCH,
                description=f"Matches your preferred category: {community.category}",
                weight=self.WEIGHTS["category"],
                evidence={"category": community.category},
            ))

        if community.location is None:
            # Online-capable community: no distance to judge
            blend.add(interest_score, self.WEIGHTS["online"])
        elif user.location is not None:
            distance = location_distance_km(user.location, community.location)
            location_score = max(0.0, 1 - distance / user.preferences.effective_max_distance)
            blend.add(location_score, self.WEIGHTS["location"])
            if location_score > 0:
                reasons.append(RecommendationReason(
                    type=ReasonType.LOCATION_PROXIMITY,
                    description=f"Located {distance:.1f}km from you",
                    weight=self.WEIGHTS["location"],
                    evidence={"distance": distance, "score": location_score},
                ))

        activity_score = activity_closeness(user.activity_level, community.activity_level)
        blend.add(activity_score, self.WEIGHTS["activity"])
        if activity_score > 0:
            reasons.append(RecommendationReason(
                type=ReasonType.ACTIVITY_MATCH,
                description="Activity level matches your preference",
                weight=self.WEIGHTS["activity"],
                evidence={
                    "user_level": user.activity_level.value,
                    "community_level": community.activity_level.value,
                },
            ))

        preferred_size = user.preferences.community_size
        if preferred_size in self.SIZE_RANGES:
            size_score = self.size_match(preferred_size, community.member_count)
            blend.add(size_score, self.WEIGHTS["size"])
            if size_score > 0:
                reasons.append(RecommendationReason(
                    type=ReasonType.SIZE_MATCH,
                    description=f"Community size fits your preference for {preferred_size.value} groups",
                    weight=self.WEIGHTS["size"],
                    evidence={"member_count": community.member_count, "score": size_score},
                ))

        return RecommendationScore(
            candidate_id=community.community_id,
            score=blend.value,
            confidence=min(self.MAX_CONFIDENCE, blend.total_weight),
            method=self.method,
            reasons=reasons,
        )

    @staticmethod
    def _community_terms(community: Community) -> List[str]:
        terms = [*community.tags, *community.content_topics, community.category]
        return [term.lower() for term in terms if term]

    def interest_match(self, interests: Sequence[str], terms: Sequence[str]) -> Tuple[float, List[str]]:
        """
        Exact (or keyword) matches count 1, substring matches 0.5

        Normalized by the larger of the interest and term counts.
        """
        matched: List[str] = []
        total = 0.0

        for interest in interests:
            interest_lower = interest.lower()
            expansions = {interest_lower, *expand_interest(interest_lower, self.keywords)}

            exact = [term for term in terms if term in expansions]
            if exact:
                matched.append(interest)
                total += len(exact)
                continue

            partial = [term for term in terms if term in interest_lower or interest_lower in term]
            if partial:
                matched.append(interest)
                total += len(partial) * self.PARTIAL_MATCH

        score = min(1.0, total / max(len(interests), len(terms), 1))
        return score, matched

    def size_match(self, preferred: CommunitySize, member_count: int) -> float:
        low, high = self.SIZE_RANGES[preferred]
        if low <= member_count < high:
            return 1.0

        # Neighbouring bracket
        if preferred is CommunitySize.SMALL and member_count < 200:
            return 0.5
        if preferred is CommunitySize.MEDIUM and 100 <= member_count < 2000:
            return 0.5
        if preferred is CommunitySize.LARGE and member_count > 1000:
            return 0.5
        return 0.0


class EventContentBased(BaseRecommendationAlgorithm):
    """Event content-based filtering with keyword expansion"""

    name = "content_based"
    method = RecommendationMethod.CONTENT_BASED

    CATEGORY_WEIGHT = 0.4
    KEYWORD_WEIGHT = 0.35
    LOCATION_WEIGHT = 0.15
    ONLINE_BOOST = 0.1
    MAX_CONFIDENCE = 0.9
    MIN_SCORE = 0.1

    def __init__(self, config: Optional[AlgorithmConfig] = None, keywords: Optional[KeywordTable] = None):
        super().__init__(config)
        self.keywords = keywords if keywords is not None else load_interest_keywords()

    def recommend(self, context: ScoringContext) -> List[RecommendationScore]:
        scores = [self.score_event(context.user, event) for event in context.candidates]
        return [score for score in scores if score.score > self.MIN_SCORE]

    def score_event(self, user: User, event: Event) -> RecommendationScore:
        score = 0.0
        reasons: List[RecommendationReason] = []

        matched_preference = match_preferred_category(
            user.preferences.preferred_categories, event.category, self.keywords
        )
        if matched_preference is not None:
            score += self.CATEGORY_WEIGHT
            reasons.append(RecommendationReason(
                type=ReasonType.INTEREST_MATCH,
                description=f"Matches your interest in {event.category}",
                weight=self.CATEGORY_WEIGHT,
                evidence={"category": event.category, "matched_preference": matched_preference},
            ))

        keyword_score, matched_keywords = self.keyword_match(user.interests, event)
        if keyword_score > 0:
            score += keyword_score * self.KEYWORD_WEIGHT
            reasons.append(RecommendationReason(
                type=ReasonType.INTEREST_MATCH,
                description=f"Related to: {', '.join(matched_keywords[:3])}",
                weight=self.KEYWORD_WEIGHT,
                evidence={"matched_keywords": matched_keywords},
            ))

        if user.location and event.location and not event.is_online:
            distance = location_distance_km(user.location, event.location)
            location_score = max(0.0, 1 - distance / user.preferences.effective_max_distance)
            if location_score > 0:
                score += location_score * self.LOCATION_WEIGHT
                reasons.append(RecommendationReason(
                    type=ReasonType.LOCATION_PROXIMITY,
                    description=f"{distance:.1f}km away",
                    weight=self.LOCATION_WEIGHT,
                    evidence={"distance": distance},
                ))

        if event.is_online and not user.location:
            score += self.ONLINE_BOOST
            reasons.append(RecommendationReason(
                type=ReasonType.LOCATION_PROXIMITY,
                description="Online event - accessible from anywhere",
                weight=self.ONLINE_BOOST,
                evidence={"is_online": True},
            ))

        return RecommendationScore(
            candidate_id=event.event_id,
            score=score,
            confidence=min(self.MAX_CONFIDENCE, score),
            method=self.method,
            reasons=reasons,
        )

    def keyword_match(self, interests: Sequence[str], event: Event) -> Tuple[float, List[str]]:
        """Share of interests with at least one keyword in the event text"""
        if not interests:
            return 0.0, []

        text = " ".join(
            [event.title, event.description, event.category, *event.tags, *event.content_topics]
        ).lower()

        matched: List[str] = []
        for interest in interests:
            interest_lower = interest.lower()
            words = [word for word in _INTEREST_SPLIT.split(interest_lower) if len(word) > 2]
            for keyword in [*expand_interest(interest_lower, self.keywords), *words]:
                if keyword in matched:
                    continue
                if re.search(rf"\b{re.escape(keyword)}", text):
                    matched.append(keyword)
                    break

        return min(1.0, len(matched) / len(interests)), matched
