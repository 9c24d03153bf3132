"""
Tests for merging, timing boost and diversity re-ranking
"""

from datetime import timedelta

import pytest

from hybrid_recommender.core.engine import merge_recommendations
from hybrid_recommender.core.models import (
    ReasonType, RecommendationMethod, RecommendationReason, RecommendationScore,
)
from hybrid_recommender.core.ranking import (
    COMMUNITY_FACETS, EVENT_FACETS, apply_diversity_filtering, apply_timing_boost,
    calculate_diversity_score, index_candidates, timing_boost,
)

from conftest import NOW, make_community, make_event


def score(candidate_id, value, confidence=0.5, method=RecommendationMethod.CONTENT_BASED, reasons=None):
    return RecommendationScore(candidate_id, value, confidence, method, list(reasons or []))


class TestMerge:

    def test_distinct_candidates_pass_through(self):
        inputs = [score("a", 0.9), score("b", 0.4)]
        merged = merge_recommendations(inputs)

        assert [(r.candidate_id, r.score) for r in merged] == [("a", 0.9), ("b", 0.4)]
        assert merged[0] is not inputs[0]

    def test_collision_is_confidence_weighted(self):
        reason_a = RecommendationReason(ReasonType.INTEREST_MATCH, "a", 0.4)
        reason_b = RecommendationReason(ReasonType.POPULARITY, "b", 1.0)
        inputs = [
            score("x", 0.8, 0.6, RecommendationMethod.CONTENT_BASED, [reason_a]),
            score("x", 0.2, 0.2, RecommendationMethod.POPULARITY_BASED, [reason_b]),
        ]

        merged = merge_recommendations(inputs)

        assert len(merged) == 1
        assert merged[0].score == pytest.approx((0.8 * 0.6 + 0.2 * 0.2) / 0.8)
        assert merged[0].confidence == 0.6
        assert merged[0].method is RecommendationMethod.HYBRID
        assert merged[0].reasons == [reason_a, reason_b]
        assert inputs[0].reasons == [reason_a]

    def test_same_method_keeps_label(self):
        merged = merge_recommendations([score("x", 0.5), score("x", 0.7)])
        assert merged[0].method is RecommendationMethod.CONTENT_BASED
        assert merged[0].score == pytest.approx(0.6)

    def test_zero_confidence_collision(self):
        merged = merge_recommendations([score("x", 0.5, 0.0), score("x", 0.7, 0.0)])
        assert merged[0].score == 0.0

    def test_overlap_across_methods_keeps_highest_confidence(self):
        content = [score("x", 0.8, 0.6), score("y", 0.3, 0.2), score("z", 0.5, 0.4)]
        popular = [
            score("y", 0.9, 0.7, RecommendationMethod.POPULARITY),
            score("x", 0.1, 0.3, RecommendationMethod.POPULARITY),
            score("w", 0.2, 0.1, RecommendationMethod.POPULARITY),
        ]

        merged = {rec.candidate_id: rec for rec in merge_recommendations(content + popular)}

        assert list(merged) == ["x", "y", "z", "w"]
        for candidate_id in ("x", "y"):
            inputs = [rec for rec in content + popular if rec.candidate_id == candidate_id]
            assert merged[candidate_id].method is RecommendationMethod.HYBRID
            assert merged[candidate_id].confidence >= max(rec.confidence for rec in inputs)
            assert min(r.score for r in inputs) <= merged[candidate_id].score <= max(r.score for r in inputs)
        assert merged["z"].method is RecommendationMethod.CONTENT_BASED
        assert merged["w"].method is RecommendationMethod.POPULARITY

    def test_merging_merged_output_is_stable(self):
        merged = merge_recommendations([score("x", 0.5), score("y", 0.3), score("x", 0.7)])
        again = merge_recommendations(merged)
        assert [(r.candidate_id, r.score) for r in again] == [(r.candidate_id, r.score) for r in merged]


class TestTimingBoost:

    def test_sooner_events_get_larger_boost(self):
        soon = timing_boost(0.5)
        later = timing_boost(13)

        assert 0 < soon <= 0.1
        assert soon > later > 0
        assert timing_boost(15) == 0.0
        assert timing_boost(0) == pytest.approx(0.1)

    def test_reasons_added_above_threshold(self):
        events = index_candidates(
            [
                make_event("soon", timedelta(hours=12)),
                make_event("days", timedelta(days=3, hours=2)),
                make_event("late", timedelta(days=10)),
            ],
            "event_id",
        )
        recs = [score("soon", 0.5), score("days", 0.5), score("late", 0.5), score("unknown", 0.5)]

        apply_timing_boost(recs, events, NOW)

        assert recs[0].reasons[0].type is ReasonType.TIMING
        assert recs[0].reasons[0].description == "Happening very soon!"
        assert recs[1].reasons[0].description == "Coming up in 4 days"
        # 10 days out: boost below the reason threshold
        assert recs[2].score == pytest.approx(0.5 + 0.1 * (1 - 10 / 14))
        assert recs[2].reasons == []
        assert recs[3].score == 0.5


class TestDiversity:

    def setup_method(self):
        self.communities = index_candidates(
            [
                make_community("t1", "Technology"),
                make_community("t2", "Technology"),
                make_community("k1", "Cooking"),
            ],
            "community_id",
        )

    def test_zero_weight_is_a_no_op(self):
        recs = [score("t1", 0.9), score("t2", 0.8), score("k1", 0.1)]
        assert apply_diversity_filtering(recs, self.communities, 0.0) is recs
        assert [r.score for r in recs] == [0.9, 0.8, 0.1]

    def test_first_of_each_category_is_rewarded(self):
        recs = [score("t1", 0.9), score("t2", 0.8), score("k1", 0.1)]

        diverse = apply_diversity_filtering(recs, self.communities, 0.75, COMMUNITY_FACETS)

        assert [r.candidate_id for r in diverse] == ["t1", "k1", "t2"]
        assert diverse[0].score == pytest.approx(1.65)
        assert diverse[1].score == pytest.approx(0.85)

    def test_unknown_candidates_are_dropped(self):
        diverse = apply_diversity_filtering([score("t1", 0.9), score("ghost", 0.95)], self.communities, 0.3)
        assert [r.candidate_id for r in diverse] == ["t1"]

    def test_event_facets_reward_category_and_community(self):
        events = index_candidates(
            [
                make_event("a", category="Music", community_id="c1"),
                make_event("b", category="Music", community_id="c2"),
                make_event("c", category="Art", community_id="c1"),
            ],
            "event_id",
        )
        recs = [score("a", 0.9), score("b", 0.8), score("c", 0.7)]

        diverse = {r.candidate_id: r.score for r in apply_diversity_filtering(recs, events, 1.0, EVENT_FACETS)}

        assert diverse["a"] == pytest.approx(0.9 + 1.0)
        assert diverse["b"] == pytest.approx(0.8 + 0.4)
        assert diverse["c"] == pytest.approx(0.7 + 0.6)

    def test_diversity_score(self):
        assert calculate_diversity_score([], self.communities) == 0.0
        recs = [score("t1", 0.9), score("t2", 0.8), score("k1", 0.1)]
        assert calculate_diversity_score(recs, self.communities, COMMUNITY_FACETS) == pytest.approx(2 / 3)
