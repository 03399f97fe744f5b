"""
Analysis Reports
================

Read-side views over a written sessions_analysis.json: rankings, search and
sorting, attention lists, trends, recent reviews, KPI cards and CSV export.

Everything here works on the serialized records (plain dicts), so the CLI
and the API can report on a file without re-running the analysis.
"""

import json
import logging
import re
from collections import OrderedDict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from ..reviews.review_models import SentimentLabel, parse_rating, parse_review_date
from ..scoring.session_scorer import SessionStatus

logger = logging.getLogger(__name__)

ATTENTION_STATUSES = (SessionStatus.PROBLEMATIC.value, SessionStatus.MIXED.value)
CSV_HEADER = "review_id,session_id,review_date,rating,sentiment_label,preview"
PREVIEW_LENGTH = 160
RECENT_REVIEWS_LIMIT = 4
SORT_KEYS = ("attention_score", "n_reviews", "avg_rating", "avg_sentiment", "last_review_date")
SORT_DIRECTIONS = ("asc", "desc")

_TITLE_SPLIT_RE = re.compile(r"[-_]+")
_WHITESPACE_RE = re.compile(r"\s+")


def load_analysis(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    Load session records written by the pipeline.

    Raises:
        FileNotFoundError: file missing
        ValueError: not a JSON array of session objects
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list) or not all(isinstance(s, dict) for s in data):
        raise ValueError(f"{path} must contain a JSON array of session records")
    logger.debug(f"Loaded {len(data)} session records from {path}")
    return data


def all_reviews(analyses: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Flatten the reviews of every session, in file order."""
    return [review for session in analyses for review in session.get("reviews") or []]


# =============================================================================
# SESSIONS
# =============================================================================

def rank_sessions(analyses: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Attention score descending; ties keep their input order."""
    return sorted(analyses, key=lambda s: -(s.get("attention_score") or 0))


def sessions_needing_attention(
    analyses: Iterable[Dict[str, Any]],
    status: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Problematic and mixed sessions, most urgent first."""
    wanted = (status,) if status else ATTENTION_STATUSES
    return rank_sessions(s for s in analyses if s.get("status") in wanted)


def filter_by_status(analyses: Iterable[Dict[str, Any]], status: Optional[str]) -> List[Dict[str, Any]]:
    if not status:
        return list(analyses)
    return [s for s in analyses if s.get("status") == status]


def find_session(analyses: Iterable[Dict[str, Any]], session_id: str) -> Optional[Dict[str, Any]]:
    for session in analyses:
        if session.get("session_id") == session_id:
            return session
    return None


def format_session_title(session_id: Optional[str], session_title: Optional[str] = None) -> str:
    """
    Display title for a session.

    "journey-ritual" without a title becomes "Journey Ritual".
    """
    base = session_title.strip() if isinstance(session_title, str) else ""
    if base:
        return base
    if not session_id:
        return "Untitled session"
    words = [w for w in _TITLE_SPLIT_RE.split(session_id) if w]
    return " ".join(w[:1].upper() + w[1:] for w in words) or "Untitled session"


def latest_review_date(reviews: Iterable[Dict[str, Any]]) -> Optional[datetime]:
    """Most recent parseable review_date, or None."""
    dates = [d for d in (parse_review_date(r.get("review_date")) for r in reviews) if d is not None]
    return max(dates) if dates else None


def search_sessions(analyses: Iterable[Dict[str, Any]], query: Optional[str]) -> List[Dict[str, Any]]:
    """Sessions whose display title or id contains the query (case-insensitive)."""
    q = (query or "").strip().lower()
    if not q:
        return list(analyses)
    return [
        s for s in analyses
        if q in format_session_title(s.get("session_id"), s.get("session_title")).lower()
        or q in str(s.get("session_id") or "").lower()
    ]


def _sort_value(session: Dict[str, Any], key: str) -> Any:
    if key == "last_review_date":
        return latest_review_date(session.get("reviews") or []) or datetime.min
    return session.get(key) or 0


def sort_sessions(
    analyses: Iterable[Dict[str, Any]],
    key: str = "attention_score",
    direction: str = "desc",
) -> List[Dict[str, Any]]:
    """
    Sort sessions by one column. Ties keep their input order.

    Missing values sort as 0 (the oldest date for last_review_date).

    Raises:
        ValueError: unknown key or direction
    """
    if key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key {key!r}, expected one of {SORT_KEYS}")
    if direction not in SORT_DIRECTIONS:
        raise ValueError(f"Unknown sort direction {direction!r}, expected 'asc' or 'desc'")
    return sorted(analyses, key=lambda s: _sort_value(s, key), reverse=direction == "desc")


# =============================================================================
# TRENDS
# =============================================================================

def sentiment_counts(reviews: Iterable[Dict[str, Any]], label: Optional[str] = None) -> Dict[str, int]:
    """Per-label counts; a missing or unknown label counts as neutral."""
    counts = {lbl.value: 0 for lbl in SentimentLabel}
    for review in reviews:
        value = review.get("sentiment_label")
        if value not in counts:
            value = SentimentLabel.NEUTRAL.value
        counts[value] += 1
    if label:
        return {label: counts.get(label, 0)}
    return counts


def _average(values: List[float]) -> Optional[float]:
    if not values:
        return None
    return round(sum(values) / len(values), 4)


def monthly_trend(reviews: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Sentiment mix and average rating per calendar month, oldest first.

    Undated reviews are left out.
    """
    buckets: Dict[str, Dict[str, Any]] = {}
    for review in reviews:
        parsed = parse_review_date(review.get("review_date"))
        if parsed is None:
            continue
        key = parsed.strftime("%Y-%m")
        bucket = buckets.setdefault(key, {
            "month_key": key,
            "month": parsed.strftime("%b"),
            "positive": 0,
            "neutral": 0,
            "negative": 0,
            "total": 0,
            "_ratings": [],
        })
        label = review.get("sentiment_label")
        if label not in ("positive", "negative"):
            label = "neutral"
        bucket[label] += 1
        bucket["total"] += 1
        rating = parse_rating(review.get("rating"))
        if rating is not None:
            bucket["_ratings"].append(rating)

    trend = []
    for key in sorted(buckets):
        bucket = buckets[key]
        bucket["avg_rating"] = _average(bucket.pop("_ratings"))
        trend.append(bucket)
    return trend


def daily_trend(reviews: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Review count and average rating per day, oldest first."""
    days: "OrderedDict[str, List[Optional[float]]]" = OrderedDict()
    for review in reviews:
        parsed = parse_review_date(review.get("review_date"))
        if parsed is None:
            continue
        days.setdefault(parsed.date().isoformat(), []).append(parse_rating(review.get("rating")))
    return [
        {
            "date": day,
            "count": len(ratings),
            "avg_rating": _average([r for r in ratings if r is not None]),
        }
        for day, ratings in sorted(days.items())
    ]


def date_range_label(reviews: Iterable[Dict[str, Any]]) -> str:
    dates = sorted(
        d for d in (parse_review_date(r.get("review_date")) for r in reviews) if d is not None
    )
    if not dates:
        return "No dated reviews"
    return f"{dates[0]:%d %b %Y} - {dates[-1]:%d %b %Y}"


def recent_reviews(reviews: Iterable[Dict[str, Any]], limit: int = RECENT_REVIEWS_LIMIT) -> List[Dict[str, Any]]:
    """Latest reviews that have text, newest first; undated ones last."""
    with_text = [r for r in reviews if isinstance(r.get("review_text"), str) and r["review_text"].strip()]
    with_text.sort(key=lambda r: parse_review_date(r.get("review_date")) or datetime.min, reverse=True)
    return with_text[:limit]


# =============================================================================
# EXPORT / KPIs
# =============================================================================

def _csv_value(value: Any) -> str:
    text = "" if value is None else str(value)
    return '"' + text.replace('"', '""') + '"'


def review_preview(text: Any) -> str:
    if not isinstance(text, str):
        return ""
    return _WHITESPACE_RE.sub(" ", text).strip()[:PREVIEW_LENGTH]


def export_reviews_csv(reviews: Iterable[Dict[str, Any]], sentiment: Optional[str] = None) -> str:
    """
    CSV of reviews (one per line, every value quoted).

    Args:
        reviews: Serialized enriched reviews
        sentiment: Keep only this sentiment label
    """
    lines = [CSV_HEADER]
    for review in reviews:
        if sentiment and review.get("sentiment_label") != sentiment:
            continue
        values = [
            review.get("review_id"),
            review.get("session_id"),
            review.get("review_date"),
            review.get("rating"),
            review.get("sentiment_label"),
            review_preview(review.get("review_text")),
        ]
        lines.append(",".join(_csv_value(v) for v in values))
    return "\n".join(lines)


def kpi_summary(analyses: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Headline numbers for the dashboard cards.

    Deltas compare the last two months that have dated reviews and are None
    when there is no previous month to compare with.
    """
    analyses = list(analyses)
    reviews = all_reviews(analyses)
    ratings = [r for r in (parse_rating(rv.get("rating")) for rv in reviews) if r is not None]
    trend = monthly_trend(reviews)

    rating_delta = None
    reviews_delta_pct = None
    if len(trend) >= 2:
        last, prev = trend[-1], trend[-2]
        if last["avg_rating"] is not None and prev["avg_rating"] is not None:
            rating_delta = round(last["avg_rating"] - prev["avg_rating"], 4)
        if prev["total"]:
            reviews_delta_pct = round((last["total"] - prev["total"]) / prev["total"] * 100, 2)

    return {
        "total_sessions": len(analyses),
        "total_reviews": len(reviews),
        "avg_rating": _average(ratings),
        "rating_delta": rating_delta,
        "reviews_delta_pct": reviews_delta_pct,
        "sentiment": sentiment_counts(reviews),
        "sessions_needing_attention": len(sessions_needing_attention(analyses)),
        "date_range": date_range_label(reviews),
    }
