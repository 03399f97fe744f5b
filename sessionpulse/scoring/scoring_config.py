"""
Thresholds and weights for SessionPulse scoring.

This file centralizes ALL calibration parameters of the session scorer.

PHILOSOPHY:
- Every threshold is explicit and documented
- No "magic number" in the scoring logic
- Adjustable without touching the scoring code

The defaults below were inferred from observed dashboard behaviour
(70/40 status bands, +/-0.05 sentiment band). They are tunables, not
business truth.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Tuple

from ..errors import ConfigurationError


class SessionStatus(str, Enum):
    """Session health derived from the attention score."""
    SUCCESSFUL = "successful"
    MIXED = "mixed"
    PROBLEMATIC = "problematic"


@dataclass(frozen=True)
class SentimentConfig:
    """
    Sentiment labelling thresholds.

    score >= positive_threshold -> positive
    score <= negative_threshold -> negative
    otherwise                   -> neutral

    clue_floor: score forced onto a neutral-band text that contains a
    negative clue phrase. Must sit below negative_threshold.
    """
    positive_threshold: float = 0.05
    negative_threshold: float = -0.05
    clue_floor: float = -0.25


@dataclass(frozen=True)
class ExtractionConfig:
    """
    Pain-point / feature-request caps.

    max_feature_requests: per review, first N in text order.
    top_n: per session roll-up of pain points and feature requests.
    """
    max_feature_requests: int = 2
    top_n: int = 5


@dataclass(frozen=True)
class AttentionConfig:
    """
    Attention score (0-100, higher = more urgent).

    score = 100 * (
        negative_weight  * pct_negative
      + sentiment_weight * (1 - avg_sentiment) / 2
      + technical_weight * min(1, technical_fraction * technical_boost)
    )

    Technical complaints (audio, playback, crashes) block the journey
    entirely, hence the boost on the technical theme fraction.
    """
    negative_weight: float = 0.5
    sentiment_weight: float = 0.3
    technical_weight: float = 0.2
    technical_boost: float = 1.5
    technical_theme: str = "technical"

    # Status bands: (min_score, status), checked top-down
    status_bands: Tuple[Tuple[int, str], ...] = (
        (70, "problematic"),
        (40, "mixed"),
        (0, "successful"),
    )


@dataclass(frozen=True)
class ScoringConfig:
    """
    Global SessionPulse scoring configuration.

    Single entry point for calibration.
    """
    sentiment: SentimentConfig = field(default_factory=SentimentConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    attention: AttentionConfig = field(default_factory=AttentionConfig)

    max_score: int = 100

    def with_top_n(self, top_n: int) -> "ScoringConfig":
        """Copy of this config with another top-N roll-up cap."""
        return replace(self, extraction=replace(self.extraction, top_n=top_n))

    def validate(self) -> bool:
        """Check configuration consistency. Raises ConfigurationError."""
        s = self.sentiment
        if not (-1.0 <= s.negative_threshold < s.positive_threshold <= 1.0):
            raise ConfigurationError(
                f"Sentiment thresholds out of order: "
                f"negative={s.negative_threshold}, positive={s.positive_threshold}"
            )
        if not (-1.0 <= s.clue_floor <= s.negative_threshold):
            raise ConfigurationError(
                f"clue_floor ({s.clue_floor}) must lie in [-1, negative_threshold]"
            )

        e = self.extraction
        if e.max_feature_requests < 0:
            raise ConfigurationError("max_feature_requests cannot be negative")
        if e.top_n <= 0:
            raise ConfigurationError("top_n must be positive")

        a = self.attention
        weights = (a.negative_weight, a.sentiment_weight, a.technical_weight)
        if any(w < 0 for w in weights):
            raise ConfigurationError(f"Attention weights cannot be negative: {weights}")
        if sum(weights) <= 0:
            raise ConfigurationError("At least one attention weight must be positive")
        if a.technical_boost < 0:
            raise ConfigurationError("technical_boost cannot be negative")
        if not a.status_bands:
            raise ConfigurationError("status_bands cannot be empty")
        cutoffs = [cutoff for cutoff, _ in a.status_bands]
        if cutoffs != sorted(cutoffs, reverse=True):
            raise ConfigurationError(f"status_bands must be sorted descending: {cutoffs}")
        if cutoffs[-1] > 0:
            raise ConfigurationError("Lowest status band must start at 0")
        valid = {status.value for status in SessionStatus}
        unknown = [name for _, name in a.status_bands if name not in valid]
        if unknown:
            raise ConfigurationError(f"Unknown status names in status_bands: {unknown}")
        return True


DEFAULT_CONFIG = ScoringConfig()
