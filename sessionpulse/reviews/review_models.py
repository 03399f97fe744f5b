"""
Review Data Models
==================

Input review records and their enriched (classified) counterpart.

A Review keeps the raw input mapping untouched so that output records can
echo every input field with its original presence/absence. Parsed views
(rating, review date) degrade to None when the raw value is unusable.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from ..errors import MalformedRecordError

logger = logging.getLogger(__name__)


class SentimentLabel(str, Enum):
    """Discrete sentiment label of a review or sentence."""
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


MIN_RATING = 1.0
MAX_RATING = 5.0


def parse_rating(value: Any) -> Optional[float]:
    """
    Parse a 1-5 rating. Returns None for absent or unusable values.

    Accepts ints, floats and numeric strings ("4", "4.5").
    Booleans, NaN and out-of-range values are rejected.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        rating = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(rating) or not (MIN_RATING <= rating <= MAX_RATING):
        return None
    return rating


def parse_review_date(value: Any) -> Optional[datetime]:
    """
    Parse an ISO date / datetime string.

    Timezone-aware values are converted to naive UTC so that every parsed
    date is comparable. Returns None when absent or unparseable.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug(f"Unparseable review_date {value!r}, treating as absent")
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _optional_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


@dataclass(frozen=True)
class Review:
    """One collected review. Read-only to the analysis core."""
    session_id: str
    review_text: str
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False)
    rating: Optional[float] = None
    review_date: Optional[datetime] = None
    session_title: Optional[str] = None
    reviewer: Optional[str] = None
    source_url: Optional[str] = None

    @classmethod
    def from_record(cls, record: Any) -> "Review":
        """
        Build a Review from an input mapping.

        Raises:
            MalformedRecordError: session_id missing/empty/non-string, or
                review_text key absent or of a non-string type.
        """
        if not isinstance(record, Mapping):
            raise MalformedRecordError(f"Review record must be an object, got {type(record).__name__}")

        session_id = record.get("session_id")
        if not isinstance(session_id, str) or not session_id.strip():
            raise MalformedRecordError("Missing or invalid session_id", dict(record))

        if "review_text" not in record:
            raise MalformedRecordError("Missing review_text", dict(record))
        text = record["review_text"]
        if text is None:
            text = ""
        elif not isinstance(text, str):
            raise MalformedRecordError(
                f"review_text must be a string, got {type(text).__name__}", dict(record)
            )

        return cls(
            session_id=session_id.strip(),
            review_text=text,
            raw=dict(record),
            rating=parse_rating(record.get("rating")),
            review_date=parse_review_date(record.get("review_date")),
            session_title=_optional_str(record.get("session_title")),
            reviewer=_optional_str(record.get("reviewer")),
            source_url=_optional_str(record.get("source_url")),
        )

    @property
    def review_id(self) -> Optional[str]:
        value = self.raw.get("review_id")
        return None if value is None else str(value)

    @property
    def has_text(self) -> bool:
        return bool(self.review_text.strip())


@dataclass(frozen=True)
class EnrichedReview:
    """A Review plus its derived signals. Created once per Review."""
    review: Review
    sentiment: float
    sentiment_label: SentimentLabel
    themes: FrozenSet[str] = frozenset()
    pain_points: Tuple[str, ...] = ()
    feature_requests: Tuple[str, ...] = ()

    @property
    def session_id(self) -> str:
        return self.review.session_id

    @property
    def is_negative(self) -> bool:
        return self.sentiment_label == SentimentLabel.NEGATIVE

    def to_dict(self) -> Dict[str, Any]:
        """Input fields echoed as-is, derived fields appended."""
        record = dict(self.review.raw)
        record.update({
            "sentiment": self.sentiment,
            "sentiment_label": self.sentiment_label.value,
            "themes": sorted(self.themes),
            "pain_points": list(self.pain_points),
            "feature_requests": list(self.feature_requests),
        })
        return record
