"""
Collaborative filtering scorers

User-based and item-based neighbourhood methods for communities, and
neighbour attendance for events.
"""

from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..core.algorithms import BaseRecommendationAlgorithm, ScoringContext
from ..core.models import (
    Community, ReasonType, RecommendationMethod, RecommendationReason, RecommendationScore, User,
)
from ..core.similarity import (
    WeightedBlend, activity_closeness, find_similar_users, jaccard, location_distance_km,
)


def _lower(values: Sequence[str]) -> Set[str]:
    return {value.lower() for value in values}


def merge_collaborative_results(
    user_based: Sequence[RecommendationScore],
    item_based: Sequence[RecommendationScore],
    user_weight: float = 0.6,
    item_weight: float = 0.4,
) -> List[RecommendationScore]:
    """
    Combine the two neighbourhood methods

    User-based scores seed the result scaled by ``user_weight``; item-based
    scores scaled by ``item_weight`` are added onto an existing entry or
    inserted. Inputs are not modified.
    """
    merged: Dict[str, RecommendationScore] = {}

    for rec in user_based:
        seeded = rec.copy()
        seeded.score = rec.score * user_weight
        merged[rec.candidate_id] = seeded

    for rec in item_based:
        existing = merged.get(rec.candidate_id)
        if existing is not None:
            existing.score += rec.score * item_weight
            existing.confidence = max(existing.confidence, rec.confidence)
            existing.reasons.extend(rec.reasons)
        else:
            inserted = rec.copy()
            inserted.score = rec.score * item_weight
            merged[rec.candidate_id] = inserted

    return list(merged.values())


class CollaborativeFiltering(BaseRecommendationAlgorithm):
    """
    Community collaborative filtering

    Runs the user-based and item-based variants and merges them 0.6 / 0.4.
    """

    name = "collaborative_filtering"
    method = RecommendationMethod.COLLABORATIVE_USER_BASED

    SIMILARITY_WEIGHTS = {
        "communities": 0.4,
        "interests": 0.3,
        "location": 0.2,
        "activity": 0.1,
    }
    LOCATION_SCALE_KM = 100
    NEIGHBOUR_THRESHOLD = 0.1
    MAX_NEIGHBOURS = 50
    FULL_SUPPORT_NEIGHBOURS = 5
    ITEM_MATCH_THRESHOLD = 0.3
    USER_BASED_WEIGHT = 0.6
    ITEM_BASED_WEIGHT = 0.4

    def recommend(self, context: ScoringContext) -> List[RecommendationScore]:
        user_based = self.user_based_recommendations(context)
        item_based = self.item_based_recommendations(context)
        self.logger.debug(f"Collaborative: {len(user_based)} user-based, {len(item_based)} item-based")
        return merge_collaborative_results(
            user_based, item_based, self.USER_BASED_WEIGHT, self.ITEM_BASED_WEIGHT
        )

    def _truncate(self, scores: List[RecommendationScore], context: ScoringContext) -> List[RecommendationScore]:
        scores.sort(key=lambda s: s.score, reverse=True)
        limit = self.result_limit(context)
        return scores[:limit] if limit is not None else scores

    def similarity_terms(self, user1: User, user2: User) -> Dict[str, Tuple[float, float]]:
        """(score, weight) of each similarity signal available for the pair"""
        terms: Dict[str, Tuple[float, float]] = {}

        if set(user1.joined_communities) | set(user2.joined_communities):
            terms["communities"] = (
                jaccard(user1.joined_communities, user2.joined_communities),
                self.SIMILARITY_WEIGHTS["communities"],
            )

        interests1, interests2 = _lower(user1.interests), _lower(user2.interests)
        if interests1 | interests2:
            terms["interests"] = (jaccard(interests1, interests2), self.SIMILARITY_WEIGHTS["interests"])

        if user1.location and user2.location:
            distance = location_distance_km(user1.location, user2.location)
            terms["location"] = (
                max(0.0, 1 - distance / self.LOCATION_SCALE_KM),
                self.SIMILARITY_WEIGHTS["location"],
            )

        terms["activity"] = (
            activity_closeness(user1.activity_level, user2.activity_level),
            self.SIMILARITY_WEIGHTS["activity"],
        )
        return terms

    def calculate_user_similarity(self, user1: User, user2: User) -> float:
        blend = WeightedBlend()
        for score, weight in self.similarity_terms(user1, user2).values():
            blend.add(score, weight)
        return blend.value

    def find_similar_users(self, user: User, all_users: Sequence[User]) -> List[Tuple[User, float]]:
        return find_similar_users(
            user, all_users, self.calculate_user_similarity,
            threshold=self.NEIGHBOUR_THRESHOLD, limit=self.MAX_NEIGHBOURS,
        )

    def user_based_recommendations(self, context: ScoringContext) -> List[RecommendationScore]:
        """Communities joined by similar users"""
        user = context.user
        neighbours = self.find_similar_users(user, context.all_users)
        if not neighbours:
            return []

        joined = set(user.joined_communities)
        supporters: Dict[str, List[float]] = defaultdict(list)
        for neighbour, similarity in neighbours:
            for community_id in set(neighbour.joined_communities) - joined:
                supporters[community_id].append(similarity)

        scores = []
        for community in context.candidates:
            similarities = supporters.get(community.community_id)
            if not similarities:
                continue

            count = len(similarities)
            avg_similarity = sum(similarities) / count
            scores.append(RecommendationScore(
                candidate_id=community.community_id,
                score=avg_similarity * min(1.0, count / self.FULL_SUPPORT_NEIGHBOURS),
                confidence=min(0.9, (count / 10) * avg_similarity),
                method=RecommendationMethod.COLLABORATIVE_USER_BASED,
                reasons=[RecommendationReason(
                    type=ReasonType.SIMILAR_USERS,
                    description=f"{count} similar users joined this community",
                    weight=0.8,
                    evidence={"similar_user_count": count, "avg_similarity": avg_similarity},
                )],
            ))

        return self._truncate(scores, context)

    def item_based_recommendations(self, context: ScoringContext) -> List[RecommendationScore]:
        """Communities resembling the ones the user already joined"""
        user = context.user
        joined = set(user.joined_communities)
        catalog = context.catalog or context.candidates
        user_communities = [c for c in catalog if c.community_id in joined]
        if not user_communities:
            return []

        members = self._member_index(context.all_users)

        scores = []
        for candidate in context.candidates:
            if candidate.community_id in joined:
                continue

            best = 0.0
            similar_names: List[str] = []
            for own in user_communities:
                similarity = self.community_pair_similarity(candidate, own, members)
                if similarity > self.ITEM_MATCH_THRESHOLD:
                    best = max(best, similarity)
                    similar_names.append(own.name)

            if not similar_names:
                continue

            scores.append(RecommendationScore(
                candidate_id=candidate.community_id,
                score=best,
                confidence=min(0.8, len(similar_names) / len(user_communities)),
                method=RecommendationMethod.COLLABORATIVE_ITEM_BASED,
                reasons=[RecommendationReason(
                    type=ReasonType.SIMILAR_USERS,
                    description=f"Similar to communities you've joined: {', '.join(similar_names)}",
                    weight=0.7,
                    evidence={"similar_communities": similar_names, "max_similarity": best},
                )],
            ))

        return self._truncate(scores, context)

    @staticmethod
    def _member_index(all_users: Sequence[User]) -> Dict[str, Set[str]]:
        members: Dict[str, Set[str]] = defaultdict(set)
        for user in all_users:
            for community_id in user.joined_communities:
                members[community_id].add(user.user_id)
        return members

    @staticmethod
    def community_pair_similarity(
        community1: Community,
        community2: Community,
        members: Optional[Dict[str, Set[str]]] = None,
    ) -> float:
        """Category equality 0.3, tag overlap 0.4, member overlap 0.3"""
        members = members or {}
        similarity = 0.3 if community1.category == community2.category else 0.0
        similarity += 0.4 * jaccard(_lower(community1.tags), _lower(community2.tags))
        similarity += 0.3 * jaccard(
            members.get(community1.community_id, set()),
            members.get(community2.community_id, set()),
        )
        return similarity


class EventCollaborativeFiltering(BaseRecommendationAlgorithm):
    """
    Events attended by similar users

    Accumulated similarity is divided by the total neighbour count, not by
    the number of neighbours who attended, so events few neighbours attended
    score low even when those neighbours are very similar.
    """

    name = "collaborative_filtering"
    method = RecommendationMethod.COLLABORATIVE

    SIMILARITY_WEIGHTS = {
        "events": 0.4,
        "communities": 0.3,
        "interests": 0.3,
    }
    NEIGHBOUR_THRESHOLD = 0.15
    MAX_NEIGHBOURS = 30
    MAX_RESULTS = 30

    def similarity_terms(self, user1: User, user2: User) -> Dict[str, Tuple[float, float]]:
        terms: Dict[str, Tuple[float, float]] = {}
        if set(user1.attended_events) | set(user2.attended_events):
            terms["events"] = (
                jaccard(user1.attended_events, user2.attended_events),
                self.SIMILARITY_WEIGHTS["events"],
            )
        if set(user1.joined_communities) | set(user2.joined_communities):
            terms["communities"] = (
                jaccard(user1.joined_communities, user2.joined_communities),
                self.SIMILARITY_WEIGHTS["communities"],
            )
        interests1, interests2 = _lower(user1.interests), _lower(user2.interests)
        if interests1 | interests2:
            terms["interests"] = (jaccard(interests1, interests2), self.SIMILARITY_WEIGHTS["interests"])
        return terms

    def calculate_user_similarity(self, user1: User, user2: User) -> float:
        blend = WeightedBlend()
        for score, weight in self.similarity_terms(user1, user2).values():
            blend.add(score, weight)
        return blend.value

    def recommend(self, context: ScoringContext) -> List[RecommendationScore]:
        user = context.user
        neighbours = find_similar_users(
            user, context.all_users, self.calculate_user_similarity,
            threshold=self.NEIGHBOUR_THRESHOLD, limit=self.MAX_NEIGHBOURS,
        )
        if not neighbours:
            return []

        attended = set(user.attended_events)
        supporters: Dict[str, List[float]] = defaultdict(list)
        for neighbour, similarity in neighbours:
            for event_id in neighbour.attended_events:
                if event_id not in attended:
                    supporters[event_id].append(similarity)

        scores = []
        for event in context.candidates:
            similarities = supporters.get(event.event_id)
            if not similarities:
                continue

            count = len(similarities)
            scores.append(RecommendationScore(
                candidate_id=event.event_id,
                score=sum(similarities) / len(neighbours),
                confidence=min(0.8, count / 5),
                method=self.method,
                reasons=[RecommendationReason(
                    type=ReasonType.SIMILAR_USERS,
                    description=f"{count} similar users attended",
                    weight=0.7,
                    evidence={"user_count": count, "avg_similarity": sum(similarities) / count},
                )],
            ))

        scores.sort(key=lambda s: s.score, reverse=True)
        return scores[:self.MAX_RESULTS]
