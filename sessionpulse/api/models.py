"""
SessionPulse API Models
=======================

Pydantic models for API response serialization.
Field names follow the sessions_analysis.json records.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from enum import Enum


class SessionStatusEnum(str, Enum):
    """Session status derived from the attention score."""
    SUCCESSFUL = "successful"
    MIXED = "mixed"
    PROBLEMATIC = "problematic"


class SentimentLabelEnum(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class SessionSortEnum(str, Enum):
    """Sortable session columns."""
    ATTENTION_SCORE = "attention_score"
    N_REVIEWS = "n_reviews"
    AVG_RATING = "avg_rating"
    AVG_SENTIMENT = "avg_sentiment"
    LAST_REVIEW_DATE = "last_review_date"


class SortDirectionEnum(str, Enum):
    ASC = "asc"
    DESC = "desc"


class RankedTextModel(BaseModel):
    """Pain point or feature request with its frequency."""
    text: str
    count: int = Field(ge=1)


class ReviewModel(BaseModel):
    """
    Enriched review.

    Input fields are echoed as received (a rating may be any raw value), so
    unknown fields are kept.
    """
    model_config = ConfigDict(extra="allow")

    session_id: str
    review_id: Optional[Any] = None
    review_text: Optional[str] = None
    review_date: Optional[Any] = None
    rating: Optional[Any] = None
    session_title: Optional[Any] = None
    sentiment: float = Field(ge=-1.0, le=1.0)
    sentiment_label: SentimentLabelEnum
    themes: List[str] = Field(default_factory=list)
    pain_points: List[str] = Field(default_factory=list)
    feature_requests: List[str] = Field(default_factory=list)


class SessionSummaryModel(BaseModel):
    """Session analysis without its reviews."""
    session_id: str
    session_title: Optional[str] = None
    display_title: str
    last_review_date: Optional[str] = None
    n_reviews: int = Field(ge=1)
    avg_rating: Optional[float] = None
    avg_sentiment: float
    pct_negative: float = Field(ge=0.0, le=1.0)
    themes: Dict[str, int] = Field(default_factory=dict)
    top_pain_points: List[RankedTextModel] = Field(default_factory=list)
    top_feature_requests: List[RankedTextModel] = Field(default_factory=list)
    attention_score: int = Field(ge=0, le=100)
    status: SessionStatusEnum


class SessionDetailModel(SessionSummaryModel):
    """Session analysis with its reviews, latest first."""
    reviews: List[ReviewModel] = Field(default_factory=list)


class SessionListResponse(BaseModel):
    """Ranked session list."""
    sessions: List[SessionSummaryModel]
    total: int


class RecentReviewsResponse(BaseModel):
    """Latest reviews with text, newest first."""
    reviews: List[ReviewModel]
    total: int


class MonthlyTrendPoint(BaseModel):
    month_key: str
    month: str
    positive: int
    neutral: int
    negative: int
    total: int
    avg_rating: Optional[float] = None


class TrendResponse(BaseModel):
    """Monthly sentiment and rating trend."""
    months: List[MonthlyTrendPoint]
    date_range: str


class KpiResponse(BaseModel):
    """Headline numbers for dashboard cards."""
    total_sessions: int
    total_reviews: int
    avg_rating: Optional[float] = None
    rating_delta: Optional[float] = None
    reviews_delta_pct: Optional[float] = None
    sentiment: Dict[str, int]
    sessions_needing_attention: int
    date_range: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    analysis_file: str
    analysis_loaded: bool
    sessions: int = 0
