"""
Tests for the individual scoring algorithms
"""

from datetime import timedelta

import pytest

from hybrid_recommender.core.algorithms import AlgorithmConfig, ScoringContext
from hybrid_recommender.core.models import (
    CommunitySize, ReasonType, RecommendationMethod, RecommendationScore, UserPreferences,
)
from hybrid_recommender.ml import (
    CollaborativeFiltering, CommunityMembership, ContentBased, EventCollaborativeFiltering,
    EventContentBased, EventPopularityBased, PopularityBased, merge_collaborative_results,
)

from conftest import LONDON, NOW, PARIS, make_community, make_event, make_user


def context_for(user, candidates, all_users=(), **kwargs):
    return ScoringContext(
        user=user,
        all_users=list(all_users),
        candidates=list(candidates),
        now=NOW,
        **kwargs
    )


class TestContentBased:

    def setup_method(self):
        self.scorer = ContentBased()

    def test_interest_keywords_beat_unrelated_category(self):
        user = make_user(interests=["tech & innovation"])
        technology = make_community("tech", "Technology", tags=["ai"])
        cooking = make_community("cook", "Cooking")

        tech_score = self.scorer.score_community(user, technology)
        cooking_score = self.scorer.score_community(user, cooking)

        assert tech_score.score > cooking_score.score
        assert tech_score.reasons[0].type is ReasonType.INTEREST_MATCH

    def test_missing_locations_use_online_term(self):
        user = make_user(interests=["tech & innovation"])
        community = make_community("tech", "Technology", tags=["ai"])

        score = self.scorer.score_community(user, community)

        # interest 0.4 + online 0.1 + activity 0.1
        assert score.confidence == pytest.approx(0.6)
        assert all(reason.type is not ReasonType.LOCATION_PROXIMITY for reason in score.reasons)

    def test_located_community_without_user_location_skips_location(self):
        user = make_user(interests=["tech & innovation"])
        community = make_community("tech", "Technology", tags=["ai"], location=LONDON)

        score = self.scorer.score_community(user, community)
        assert score.confidence == pytest.approx(0.5)

    def test_location_and_size_terms(self):
        user = make_user(
            interests=["tech & innovation"],
            location=LONDON,
            preferences=UserPreferences(
                preferred_categories=["Technology"], max_distance=10, community_size=CommunitySize.SMALL
            ),
        )
        nearby = make_community("near", "Technology", tags=["ai"], location=LONDON)
        far_away = make_community("far", "Technology", tags=["ai"], location=PARIS)

        near_score = self.scorer.score_community(user, nearby)
        far_score = self.scorer.score_community(user, far_away)

        assert near_score.score > far_score.score
        assert near_score.confidence == pytest.approx(0.9)
        assert {reason.type for reason in near_score.reasons} >= {
            ReasonType.INTEREST_MATCH, ReasonType.LOCATION_PROXIMITY, ReasonType.SIZE_MATCH
        }

    def test_size_match_brackets(self):
        assert self.scorer.size_match(CommunitySize.SMALL, 50) == 1.0
        assert self.scorer.size_match(CommunitySize.SMALL, 150) == 0.5
        assert self.scorer.size_match(CommunitySize.SMALL, 500) == 0.0
        assert self.scorer.size_match(CommunitySize.LARGE, 1500) == 1.0

    def test_recommend_drops_weak_scores_and_caps_results(self):
        user = make_user(interests=["tech & innovation"])
        candidates = [make_community(f"t{i}", "Technology", tags=["ai"]) for i in range(5)]
        scorer = ContentBased(AlgorithmConfig(name="content_based", limit_factor=1.5))

        results = scorer.recommend(context_for(user, candidates, max_recommendations=2))
        assert len(results) == 3

        unrelated = make_user(interests=["knitting"], activity_level="low")
        quiet = [make_community("q", "Cooking", member_count=150)]
        assert self.scorer.recommend(context_for(unrelated, quiet)) == []


class TestEventContentBased:

    def setup_method(self):
        self.scorer = EventContentBased()

    def test_category_and_keywords(self):
        user = make_user(
            interests=["tech & innovation"],
            preferences=UserPreferences(preferred_categories=["Technology"]),
        )
        event = make_event("e1", title="Intro to Machine Learning")

        score = self.scorer.score_event(user, event)

        assert score.score == pytest.approx(0.4 + 0.35)
        assert score.confidence == pytest.approx(0.75)

    def test_keywords_match_on_word_start_only(self):
        user = make_user(interests=["tech & innovation"])
        event = make_event("e1", title="Sit down dinner", category="Food", description="rabbit stew")

        keyword_score, matched = self.scorer.keyword_match(user.interests, event)
        # "it" and "ai" only occur inside words
        assert keyword_score == 0.0
        assert matched == []

    def test_online_event_for_user_without_location(self):
        user = make_user()
        online = make_event("e1", is_online=True, category="Other")

        score = self.scorer.score_event(user, online)
        assert score.score == pytest.approx(0.1)
        assert self.scorer.recommend(context_for(user, [online])) == []

    def test_nearby_in_person_event(self):
        user = make_user(location=LONDON)
        event = make_event("e1", category="Other", location=LONDON)

        score = self.scorer.score_event(user, event)
        assert score.score == pytest.approx(0.15)
        assert score.reasons[0].type is ReasonType.LOCATION_PROXIMITY


class TestPopularity:

    def test_community_score_personalization(self):
        scorer = PopularityBased()
        plain = make_user()
        fan = make_user(preferences=UserPreferences(preferred_categories=["technology"]))
        community = make_community("t1", "Technology", member_count=5000, growth_rate=0.5, engagement_score=100)

        base = scorer.score_community(plain, community, context_for(plain, [community]))
        boosted = scorer.score_community(fan, community, context_for(fan, [community]))

        assert base.score == pytest.approx(1.0)
        assert boosted.score == pytest.approx(1.2)
        assert base.confidence == 0.8
        assert "50% growth" in base.reasons[0].description

    def test_stale_community_loses_recency(self):
        scorer = PopularityBased()
        user = make_user()
        fresh = make_community("fresh", last_activity=NOW)
        stale = make_community("stale", last_activity=NOW - timedelta(days=60))

        context = context_for(user, [fresh, stale])
        assert scorer.score_community(user, fresh, context).score > scorer.score_community(user, stale, context).score

    def test_event_attendance_and_freshness(self):
        scorer = EventPopularityBased()
        user = make_user()
        event = make_event("e1", current_attendees=80, max_attendees=100, created_at=NOW - timedelta(days=1))

        score = scorer.score_event(user, event, context_for(user, [event]))

        assert score.score == pytest.approx(0.8 * 0.4 + 0.15)
        assert score.confidence == pytest.approx(0.47)
        assert score.method is RecommendationMethod.POPULARITY

    def test_uncapped_event_attendance(self):
        scorer = EventPopularityBased()
        user = make_user()
        event = make_event("e1", current_attendees=25)

        assert scorer.score_event(user, event, context_for(user, [event])).score == pytest.approx(0.25)


class TestCollaborative:

    def test_identical_communities_give_full_community_term(self):
        scorer = CollaborativeFiltering()
        user1 = make_user("a", joined_communities=["c1", "c2"])
        user2 = make_user("b", joined_communities=["c2", "c1"])

        assert scorer.similarity_terms(user1, user2)["communities"] == (1.0, 0.4)

    def test_missing_signals_are_not_terms(self):
        terms = CollaborativeFiltering().similarity_terms(make_user("a"), make_user("b"))
        assert set(terms) == {"activity"}

    def test_user_based_scores_neighbour_communities(self, population):
        scorer = CollaborativeFiltering()
        user = make_user("me", interests=["tech & innovation"], joined_communities=["t1", "t2"])
        candidates = [make_community("k1", "Cooking"), make_community("m1", "Music")]

        results = scorer.user_based_recommendations(context_for(user, candidates, population))

        assert [r.candidate_id for r in results] == ["k1"]
        assert results[0].method is RecommendationMethod.COLLABORATIVE_USER_BASED
        assert "6 similar users" in results[0].reasons[0].description

    def test_item_based_uses_catalog_for_joined_communities(self):
        scorer = CollaborativeFiltering()
        joined = make_community("a", "Technology", tags=["ai", "ml"])
        similar = make_community("b", "Technology", tags=["ai", "ml"])
        user = make_user("me", joined_communities=["a"])

        context = context_for(user, [similar], catalog=[joined, similar])
        results = scorer.item_based_recommendations(context)

        assert len(results) == 1
        assert results[0].score == pytest.approx(0.7)
        assert results[0].confidence == pytest.approx(0.8)
        assert results[0].method is RecommendationMethod.COLLABORATIVE_ITEM_BASED

    def test_merge_collaborative_results(self):
        user_based = [RecommendationScore("x", 0.5, 0.6, RecommendationMethod.COLLABORATIVE_USER_BASED)]
        item_based = [
            RecommendationScore("x", 0.5, 0.8, RecommendationMethod.COLLABORATIVE_ITEM_BASED),
            RecommendationScore("y", 0.5, 0.4, RecommendationMethod.COLLABORATIVE_ITEM_BASED),
        ]

        merged = {r.candidate_id: r for r in merge_collaborative_results(user_based, item_based)}

        assert merged["x"].score == pytest.approx(0.5)
        assert merged["x"].confidence == 0.8
        assert merged["y"].score == pytest.approx(0.2)
        assert user_based[0].score == 0.5

    def test_event_scores_are_diluted_by_neighbour_count(self):
        scorer = EventCollaborativeFiltering()
        user = make_user("me", attended_events=["e1"])
        neighbours = [
            make_user("n1", attended_events=["e1", "e2"]),
            make_user("n2", attended_events=["e1"]),
        ]
        candidates = [make_event("e2")]

        results = scorer.recommend(context_for(user, candidates, neighbours))

        assert len(results) == 1
        # n1 similarity 0.5, divided by both neighbours
        assert results[0].score == pytest.approx(0.25)
        assert results[0].confidence == pytest.approx(0.2)


def test_community_membership_scorer():
    user = make_user()
    events = [make_event("e1", community_id="c1"), make_event("e2", community_id="c9", community_name=None)]

    results = CommunityMembership().recommend(context_for(user, events, user_community_ids=["c1"]))

    assert [r.candidate_id for r in results] == ["e1"]
    assert results[0].score == 0.7
    assert results[0].confidence == 0.85
    assert results[0].reasons[0].description == "From Tech Circle"
