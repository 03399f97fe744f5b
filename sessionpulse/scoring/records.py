"""
Record Assembler
================

Serializes enriched reviews and session analyses into the JSON shapes the
dashboard and exports consume.

Presence semantics: an input field that was absent stays absent, a present
null stays null, and a missing rating is never written as 0. Serialization
is byte-stable for identical inputs.
"""

import json
from typing import Any, Dict, Iterable, List

from ..reviews.review_models import EnrichedReview
from .session_scorer import RankedText, SessionAnalysis


def enriched_review_to_dict(review: EnrichedReview) -> Dict[str, Any]:
    """Input fields as received, plus sentiment, label, themes and extractions."""
    return review.to_dict()


def ranked_texts_to_list(items: Iterable[RankedText]) -> List[Dict[str, Any]]:
    return [{"text": item.text, "count": item.count} for item in items]


def session_analysis_to_dict(analysis: SessionAnalysis) -> Dict[str, Any]:
    """One session record; reviews latest-first."""
    return {
        "session_id": analysis.session_id,
        "session_title": analysis.session_title,
        "n_reviews": analysis.n_reviews,
        "avg_rating": analysis.avg_rating,
        "avg_sentiment": analysis.avg_sentiment,
        "pct_negative": analysis.pct_negative,
        "themes": dict(analysis.themes),
        "top_pain_points": ranked_texts_to_list(analysis.top_pain_points),
        "top_feature_requests": ranked_texts_to_list(analysis.top_feature_requests),
        "attention_score": analysis.attention_score,
        "status": analysis.status.value,
        "reviews": [enriched_review_to_dict(r) for r in analysis.reviews],
    }


def _dumps(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2, default=str) + "\n"


def dumps_sessions(analyses: Iterable[SessionAnalysis]) -> str:
    """JSON array of session records (sessions_analysis.json)."""
    return _dumps([session_analysis_to_dict(a) for a in analyses])


def dumps_reviews(reviews: Iterable[EnrichedReview]) -> str:
    """JSON array of enriched review records (enriched_reviews.json)."""
    return _dumps([enriched_review_to_dict(r) for r in reviews])
