"""
SessionPulse Scoring Module
===========================

Deterministic session aggregation and attention scoring.

Components:
    - SessionScorer: groups enriched reviews, computes session statistics,
      attention score and status (100% deterministic)
    - records: JSON record assembly for enriched reviews and sessions

Usage:
    from sessionpulse.scoring import SessionScorer

    scorer = SessionScorer()
    analyses = scorer.score_sessions(enriched_reviews)

    print(analyses[0].attention_score, analyses[0].status.value)
"""

from .scoring_config import (
    ScoringConfig,
    SentimentConfig,
    ExtractionConfig,
    AttentionConfig,
    DEFAULT_CONFIG,
)
from .session_scorer import (
    SessionScorer,
    SessionAnalysis,
    SessionStatus,
    RankedText,
)
from .records import (
    enriched_review_to_dict,
    session_analysis_to_dict,
    dumps_sessions,
    dumps_reviews,
)

__all__ = [
    "ScoringConfig",
    "SentimentConfig",
    "ExtractionConfig",
    "AttentionConfig",
    "DEFAULT_CONFIG",
    "SessionScorer",
    "SessionAnalysis",
    "SessionStatus",
    "RankedText",
    "enriched_review_to_dict",
    "session_analysis_to_dict",
    "dumps_sessions",
    "dumps_reviews",
]
