"""
Tests for SessionPulse Session Scorer.

Tests the deterministic session aggregation and attention scoring:
- Attention score formula, clamping and monotonicity
- Status bands (70 / 40)
- Aggregates: avg_rating, avg_sentiment, pct_negative, themes, top-N roll-ups
- Ordering: latest first, undated reviews last
- Serialized records: absent stays absent, re-runs are byte-identical
- End-to-end journey example

Usage:
    pytest tests/test_session_scorer.py -v
"""

import json
from datetime import datetime

import pytest

from sessionpulse.reviews.review_enricher import ReviewEnricher
from sessionpulse.reviews.review_models import EnrichedReview, Review, SentimentLabel
from sessionpulse.scoring.records import dumps_sessions, session_analysis_to_dict
from sessionpulse.scoring.scoring_config import AttentionConfig, ScoringConfig
from sessionpulse.scoring.session_scorer import (
    RankedText, SessionScorer, SessionStatus, rollup_texts, round_half_up, sort_latest_first,
)


# ============================================================================
# TEST DATA
# ============================================================================

def make_enriched(
    sentiment: float = 0.5,
    session_id: str = "s1",
    rating=None,
    review_date=None,
    themes=(),
    pain_points=(),
    feature_requests=(),
    review_id: str = None,
    **extra,
) -> EnrichedReview:
    """Helper to create an EnrichedReview without running the classifiers."""
    record = {"session_id": session_id, "review_text": "text"}
    if rating is not None:
        record["rating"] = rating
    if review_date is not None:
        record["review_date"] = review_date
    if review_id is not None:
        record["review_id"] = review_id
    record.update(extra)
    if sentiment >= 0.05:
        label = SentimentLabel.POSITIVE
    elif sentiment <= -0.05:
        label = SentimentLabel.NEGATIVE
    else:
        label = SentimentLabel.NEUTRAL
    return EnrichedReview(
        review=Review.from_record(record),
        sentiment=sentiment,
        sentiment_label=label,
        themes=frozenset(themes),
        pain_points=tuple(pain_points),
        feature_requests=tuple(feature_requests),
    )


JOURNEY_RECORDS = [
    {"session_id": "journey-ritual", "review_text": "Loved the pacing", "rating": 5},
    {"session_id": "journey-ritual", "review_text": "Audio volume is too low, please add a louder mode", "rating": 2},
    {"session_id": "journey-ritual", "review_text": "Great exercises", "rating": 5},
]


# ============================================================================
# ATTENTION SCORE
# ============================================================================

class TestAttentionScore:
    """Formula, bounds and monotonicity."""

    def setup_method(self):
        self.scorer = SessionScorer()

    def test_extremes(self):
        assert self.scorer.attention_score(0.0, 1.0, 0.0) == 0
        assert self.scorer.attention_score(1.0, -1.0, 1.0) == 100

    def test_formula(self):
        # 100 * (0.5*0.5 + 0.3*(1-0)/2 + 0.2*min(1, 0.2*1.5)) = 25 + 15 + 6
        assert self.scorer.attention_score(0.5, 0.0, 0.2) == 46

    def test_rounds_half_up(self):
        assert round_half_up(42.5) == 43
        assert round_half_up(41.5) == 42
        assert round_half_up(41.49) == 41

    def test_always_within_bounds(self):
        for p in (0.0, 0.3, 1.0, 2.0):
            for s in (-5.0, -1.0, 0.0, 1.0, 5.0):
                for t in (0.0, 0.5, 1.0, 3.0):
                    assert 0 <= self.scorer.attention_score(p, s, t) <= 100

    def test_monotonic_in_pct_negative(self):
        steps = [i / 20 for i in range(21)]
        for s in (-1.0, -0.4, 0.0, 0.3, 1.0):
            for t in (0.0, 0.25, 0.5, 1.0):
                for lo, hi in zip(steps, steps[1:]):
                    assert self.scorer.attention_score(hi, s, t) >= self.scorer.attention_score(lo, s, t)

    def test_monotonic_in_technical_fraction(self):
        steps = [i / 20 for i in range(21)]
        for p in (0.0, 0.33, 0.7, 1.0):
            for s in (-1.0, 0.0, 0.6):
                for lo, hi in zip(steps, steps[1:]):
                    assert self.scorer.attention_score(p, s, hi) >= self.scorer.attention_score(p, s, lo)

    def test_sentiment_lowers_score(self):
        assert self.scorer.attention_score(0.3, 0.8, 0.1) < self.scorer.attention_score(0.3, -0.8, 0.1)

    @pytest.mark.parametrize("score,status", [
        (85, SessionStatus.PROBLEMATIC),
        (70, SessionStatus.PROBLEMATIC),
        (69, SessionStatus.MIXED),
        (55, SessionStatus.MIXED),
        (40, SessionStatus.MIXED),
        (39, SessionStatus.SUCCESSFUL),
        (10, SessionStatus.SUCCESSFUL),
        (0, SessionStatus.SUCCESSFUL),
    ])
    def test_status_bands(self, score, status):
        assert self.scorer.status_for(score) == status

    def test_custom_bands(self):
        config = ScoringConfig(attention=AttentionConfig(
            status_bands=((50, "problematic"), (20, "mixed"), (0, "successful")),
        ))
        scorer = SessionScorer(config)
        assert scorer.status_for(55) == SessionStatus.PROBLEMATIC
        assert scorer.status_for(25) == SessionStatus.MIXED


# ============================================================================
# AGGREGATION
# ============================================================================

class TestSessionAggregation:
    """Per-session fold."""

    def setup_method(self):
        self.scorer = SessionScorer()

    def test_pct_negative_exact(self):
        reviews = [make_enriched(0.6), make_enriched(-0.4), make_enriched(0.0)]
        analysis = self.scorer.score_session("s1", reviews)
        assert analysis.pct_negative == 1 / 3
        assert analysis.negative_count == 1
        assert analysis.n_reviews == 3

    def test_avg_rating_ignores_missing_ratings(self):
        reviews = [make_enriched(rating=5), make_enriched(rating="n/a"), make_enriched(rating=2)]
        analysis = self.scorer.score_session("s1", reviews)
        assert analysis.avg_rating == 3.5

    def test_avg_rating_none_without_ratings(self):
        analysis = self.scorer.score_session("s1", [make_enriched(), make_enriched()])
        assert analysis.avg_rating is None

    def test_avg_sentiment(self):
        reviews = [make_enriched(0.5), make_enriched(-0.1), make_enriched(0.2)]
        assert self.scorer.score_session("s1", reviews).avg_sentiment == 0.2

    def test_theme_counts(self):
        reviews = [
            make_enriched(themes={"technical", "content"}),
            make_enriched(themes={"content"}),
            make_enriched(),
        ]
        analysis = self.scorer.score_session("s1", reviews)
        assert analysis.themes == {"content": 2, "technical": 1}
        assert analysis.theme_fraction("technical") == 1 / 3

    def test_empty_session_is_not_emitted(self):
        assert self.scorer.score_session("s1", []) is None

    def test_sessions_in_first_seen_order(self):
        reviews = [
            make_enriched(session_id="b"),
            make_enriched(session_id="a"),
            make_enriched(session_id="b"),
        ]
        analyses = self.scorer.score_sessions(reviews)
        assert [a.session_id for a in analyses] == ["b", "a"]
        assert analyses[0].n_reviews == 2

    def test_threaded_scoring_matches_sequential(self):
        reviews = [
            make_enriched(sentiment=(i % 5 - 2) / 4, session_id=f"s{i % 7}", rating=1 + i % 5)
            for i in range(40)
        ]
        assert dumps_sessions(self.scorer.score_sessions(reviews, workers=4)) == \
            dumps_sessions(self.scorer.score_sessions(reviews, workers=1))

    def test_session_title_first_non_empty(self):
        reviews = [
            make_enriched(session_title=""),
            make_enriched(session_title="Morning Ritual"),
            make_enriched(session_title="Other"),
        ]
        assert self.scorer.score_session("s1", reviews).session_title == "Morning Ritual"

    def test_rank_by_attention_score(self):
        calm = self.scorer.score_session("calm", [make_enriched(0.9)])
        angry = self.scorer.score_session("angry", [make_enriched(-0.9, themes={"technical"})])
        assert [a.session_id for a in SessionScorer.rank([calm, angry])] == ["angry", "calm"]
        assert angry.needs_attention


class TestOrdering:
    """Latest-first review ordering."""

    def test_undated_reviews_sort_last(self):
        reviews = [
            make_enriched(review_id="undated-1"),
            make_enriched(review_id="old", review_date="2024-01-10"),
            make_enriched(review_id="bad-date", review_date="last tuesday"),
            make_enriched(review_id="new", review_date="2024-03-02T08:00:00Z"),
        ]
        ordered = sort_latest_first(reviews)
        assert [r.review.review_id for r in ordered] == ["new", "old", "undated-1", "bad-date"]

    def test_session_reviews_latest_first(self):
        reviews = [
            make_enriched(review_id="a"),
            make_enriched(review_id="b", review_date="2024-02-01"),
        ]
        analysis = SessionScorer().score_session("s1", reviews)
        assert [r.review.review_id for r in analysis.reviews] == ["b", "a"]
        assert analysis.reviews[0].review.review_date == datetime(2024, 2, 1)


class TestRollups:
    """Top-N pain points / feature requests."""

    def test_counts_merge_after_normalization(self):
        groups = [
            ["Audio volume is too low"],
            ["audio volume is  too low!"],
            ["The app crashed", "Audio volume is too low"],
        ]
        assert rollup_texts(groups, top_n=5) == [
            RankedText("Audio volume is too low", 3),
            RankedText("The app crashed", 1),
        ]

    def test_ties_keep_first_seen_order(self):
        groups = [["b"], ["a"], ["c", "a"], ["b"]]
        assert [r.text for r in rollup_texts(groups, top_n=5)] == ["b", "a", "c"]

    def test_top_n_limit(self):
        groups = [[f"pain {i}"] for i in range(10)]
        assert len(rollup_texts(groups, top_n=5)) == 5

    def test_session_rollups_use_config_top_n(self):
        reviews = [make_enriched(-0.5, pain_points=[f"pain {i}"]) for i in range(8)]
        scorer = SessionScorer(ScoringConfig().with_top_n(3))
        assert len(scorer.score_session("s1", reviews).top_pain_points) == 3


# ============================================================================
# RECORDS
# ============================================================================

class TestRecords:
    """Serialized session records."""

    def setup_method(self):
        self.scorer = SessionScorer()

    def test_missing_rating_never_written_as_zero(self):
        analysis = self.scorer.score_session("s1", [make_enriched(review_id="r1")])
        record = session_analysis_to_dict(analysis)
        assert record["avg_rating"] is None
        assert "rating" not in record["reviews"][0]

    def test_present_null_stays_null(self):
        analysis = self.scorer.score_session("s1", [make_enriched(reviewer=None)])
        review = session_analysis_to_dict(analysis)["reviews"][0]
        assert "reviewer" in review and review["reviewer"] is None

    def test_record_shape(self):
        analysis = self.scorer.score_session("s1", [
            make_enriched(-0.5, rating=2, themes={"technical"}, pain_points=["It lags"]),
        ])
        record = session_analysis_to_dict(analysis)
        assert set(record) == {
            "session_id", "session_title", "n_reviews", "avg_rating", "avg_sentiment",
            "pct_negative", "themes", "top_pain_points", "top_feature_requests",
            "attention_score", "status", "reviews",
        }
        assert record["top_pain_points"] == [{"text": "It lags", "count": 1}]
        assert record["status"] in ("successful", "mixed", "problematic")

    def test_reaggregation_is_byte_identical(self):
        reviews = [
            make_enriched(0.4, rating=4, review_date="2024-05-01", themes={"content"}),
            make_enriched(-0.3, rating=2, pain_points=["Too quiet"], feature_requests=["Add music"]),
            make_enriched(0.0, session_id="s2", review_date="2024-04-01"),
        ]
        first = dumps_sessions(self.scorer.score_sessions(reviews))
        second = dumps_sessions(SessionScorer().score_sessions(list(reviews)))
        assert first == second
        assert json.loads(first)[0]["session_id"] == "s1"


# ============================================================================
# END TO END
# ============================================================================

class TestJourneyExample:
    """Three reviews of one session through enrichment and scoring."""

    def setup_method(self):
        enricher = ReviewEnricher()
        self.reviews = enricher.enrich_many([Review.from_record(r) for r in JOURNEY_RECORDS])
        self.analysis = SessionScorer().score_sessions(self.reviews)[0]

    def test_review_two_is_negative(self):
        labels = [r.sentiment_label for r in self.reviews]
        assert labels == [SentimentLabel.POSITIVE, SentimentLabel.NEGATIVE, SentimentLabel.POSITIVE]
        assert self.reviews[1].pain_points == ("Audio volume is too low",)
        assert self.reviews[1].feature_requests == ("please add a louder mode",)

    def test_session_aggregates(self):
        analysis = self.analysis
        assert analysis.session_id == "journey-ritual"
        assert analysis.n_reviews == 3
        assert analysis.avg_rating == 4.0
        assert analysis.pct_negative == pytest.approx(0.33, abs=0.01)
        assert analysis.themes["technical"] == 1
        assert analysis.themes["content"] >= 1
        assert analysis.themes["utility"] >= 1
        assert analysis.top_pain_points == [RankedText("Audio volume is too low", 1)]
        assert analysis.top_feature_requests == [RankedText("please add a louder mode", 1)]

    def test_status_not_problematic(self):
        assert self.analysis.attention_score < 70
        assert self.analysis.status in (SessionStatus.SUCCESSFUL, SessionStatus.MIXED)
