"""
SessionPulse Session Scorer - deterministic session aggregation.

Folds the enriched reviews of each session into one SessionAnalysis:
counts, average rating, average sentiment, share of negative reviews,
theme counts, top pain points / feature requests, and the attention score
with its status.

PHILOSOPHY:
- No ML, no incremental state: every run recomputes from the full review set
- Every score is REPRODUCIBLE with the same inputs
- attention_score and status depend only on session-level fields

USAGE:
    from sessionpulse.scoring import SessionScorer

    scorer = SessionScorer()
    analyses = scorer.score_sessions(enriched_reviews)
    for analysis in SessionScorer.rank(analyses):
        print(analysis.session_id, analysis.attention_score, analysis.status.value)
"""

import logging
import math
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..reviews.review_models import EnrichedReview
from ..reviews.tokenizer import signal_key
from .scoring_config import DEFAULT_CONFIG, ScoringConfig, SessionStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankedText:
    """A deduplicated pain point / feature request with its occurrence count."""
    text: str
    count: int


@dataclass
class SessionAnalysis:
    """
    Scored session record.

    reviews are ordered latest-first; undated reviews come last.
    """
    session_id: str
    session_title: Optional[str]
    n_reviews: int
    avg_rating: Optional[float]
    avg_sentiment: float
    pct_negative: float
    themes: Dict[str, int]
    top_pain_points: List[RankedText]
    top_feature_requests: List[RankedText]
    attention_score: int
    status: SessionStatus
    reviews: List[EnrichedReview] = field(default_factory=list)

    @property
    def negative_count(self) -> int:
        return sum(1 for r in self.reviews if r.is_negative)

    @property
    def needs_attention(self) -> bool:
        return self.status in (SessionStatus.PROBLEMATIC, SessionStatus.MIXED)

    def theme_fraction(self, theme: str) -> float:
        if self.n_reviews == 0:
            return 0.0
        return self.themes.get(theme, 0) / self.n_reviews


def round_half_up(value: float) -> int:
    """Nearest integer, .5 rounds up (round() would round to even)."""
    return int(math.floor(value + 0.5))


def sort_latest_first(reviews: Sequence[EnrichedReview]) -> List[EnrichedReview]:
    """
    Order by review_date descending. Reviews without a usable date go last.
    Ties keep their input order.
    """
    dated = [r for r in reviews if r.review.review_date is not None]
    undated = [r for r in reviews if r.review.review_date is None]
    dated = sorted(dated, key=lambda r: r.review.review_date, reverse=True)
    return dated + undated


def rollup_texts(groups: Iterable[Sequence[str]], top_n: int) -> List[RankedText]:
    """
    Count extracted sentences across reviews.

    Near-identical texts (same after case/whitespace/punctuation trimming)
    merge; the first-seen wording is kept. Sorted by count desc, then
    first-seen order; top_n kept.
    """
    counts: "OrderedDict[str, List]" = OrderedDict()
    for texts in groups:
        for text in texts:
            key = signal_key(text)
            if not key:
                continue
            if key not in counts:
                counts[key] = [text.strip(), 0]
            counts[key][1] += 1

    ranked = sorted(
        enumerate(counts.values()),
        key=lambda item: (-item[1][1], item[0]),
    )
    return [RankedText(text=text, count=count) for _, (text, count) in ranked[:top_n]]


class SessionScorer:
    """
    Session aggregator and attention scorer - 100% deterministic.

    attention_score (0-100) combines:
    - NEGATIVITY: share of negative reviews
    - SENTIMENT: average sentiment, inverted
    - TECHNICAL: share of reviews tagged with the technical theme (boosted)

    Status bands: >= 70 problematic, >= 40 mixed, else successful.
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.config.validate()

    # =========================================================================
    # SCORE AND STATUS
    # =========================================================================

    def attention_score(
        self,
        pct_negative: float,
        avg_sentiment: float,
        technical_fraction: float,
    ) -> int:
        """
        Weighted urgency score, clamped to [0, 100] and rounded half-up.

        Non-decreasing in pct_negative and technical_fraction, and
        non-increasing in avg_sentiment.
        """
        a = self.config.attention
        negativity = min(1.0, max(0.0, pct_negative))
        inverse_sentiment = (1.0 - min(1.0, max(-1.0, avg_sentiment))) / 2.0
        technical = min(1.0, max(0.0, technical_fraction) * a.technical_boost)

        raw = self.config.max_score * (
            a.negative_weight * negativity
            + a.sentiment_weight * inverse_sentiment
            + a.technical_weight * technical
        )
        return max(0, min(self.config.max_score, round_half_up(raw)))

    def status_for(self, score: int) -> SessionStatus:
        """Status band for an attention score."""
        for cutoff, status in self.config.attention.status_bands:
            if score >= cutoff:
                return SessionStatus(status)
        return SessionStatus.SUCCESSFUL

    # =========================================================================
    # AGGREGATION
    # =========================================================================

    @staticmethod
    def group_by_session(reviews: Iterable[EnrichedReview]) -> "OrderedDict[str, List[EnrichedReview]]":
        """Group reviews by session_id, sessions in first-seen order."""
        groups: "OrderedDict[str, List[EnrichedReview]]" = OrderedDict()
        for review in reviews:
            groups.setdefault(review.session_id, []).append(review)
        return groups

    def score_session(
        self,
        session_id: str,
        reviews: Sequence[EnrichedReview],
    ) -> Optional[SessionAnalysis]:
        """
        Build the SessionAnalysis of one session.

        Returns None for a session without reviews (never emitted).
        """
        if not reviews:
            logger.debug(f"Session {session_id} has no reviews, skipped")
            return None

        ordered = sort_latest_first(reviews)
        n = len(ordered)

        ratings = [r.review.rating for r in ordered if r.review.rating is not None]
        avg_rating = round(sum(ratings) / len(ratings), 2) if ratings else None
        avg_sentiment = round(sum(r.sentiment for r in ordered) / n, 4)
        negatives = sum(1 for r in ordered if r.is_negative)
        pct_negative = negatives / n

        themes: Dict[str, int] = {}
        for review in ordered:
            for theme in sorted(review.themes):
                themes[theme] = themes.get(theme, 0) + 1
        themes = dict(sorted(themes.items()))

        # Roll-ups count in text order of the original input, not date order
        top_n = self.config.extraction.top_n
        top_pain_points = rollup_texts((r.pain_points for r in reviews), top_n)
        top_feature_requests = rollup_texts((r.feature_requests for r in reviews), top_n)

        technical_fraction = themes.get(self.config.attention.technical_theme, 0) / n
        score = self.attention_score(pct_negative, avg_sentiment, technical_fraction)
        status = self.status_for(score)

        title = next(
            (r.review.session_title for r in reviews if r.review.session_title),
            None,
        )
        logger.debug(
            f"Session {session_id}: {n} reviews, score {score} ({status.value})",
            extra={"session_id": session_id, "score": score, "status": status.value},
        )

        return SessionAnalysis(
            session_id=session_id,
            session_title=title,
            n_reviews=n,
            avg_rating=avg_rating,
            avg_sentiment=avg_sentiment,
            pct_negative=pct_negative,
            themes=themes,
            top_pain_points=top_pain_points,
            top_feature_requests=top_feature_requests,
            attention_score=score,
            status=status,
            reviews=ordered,
        )

    def score_sessions(
        self,
        reviews: Iterable[EnrichedReview],
        workers: int = 1,
    ) -> List[SessionAnalysis]:
        """
        Group and score every session.

        Sessions are independent: with workers > 1 they are scored on a
        thread pool. Output keeps first-seen session order.
        """
        groups = self.group_by_session(reviews)
        items: List[Tuple[str, List[EnrichedReview]]] = list(groups.items())

        if workers <= 1 or len(items) <= 1:
            results = [self.score_session(sid, revs) for sid, revs in items]
        else:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="score") as pool:
                results = list(pool.map(lambda item: self.score_session(*item), items))

        analyses = [a for a in results if a is not None]
        logger.info(
            f"Scored {len(analyses)} sessions "
            f"({sum(1 for a in analyses if a.needs_attention)} need attention)"
        )
        return analyses

    @staticmethod
    def rank(analyses: Iterable[SessionAnalysis]) -> List[SessionAnalysis]:
        """Sessions by attention_score descending (stable)."""
        return sorted(analyses, key=lambda a: a.attention_score, reverse=True)
