"""
Review Enricher
===============

Runs the per-review classification stages on each Review:
sentiment -> themes -> pain points / feature requests.

Each review is classified by a pure function of its own text, so
enrich_many() may fan out across a thread pool. Output order always
matches input order.

Usage:
    enricher = ReviewEnricher(load_lexicons())
    enriched = enricher.enrich_many(reviews, workers=4)
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional

from ..scoring.scoring_config import ScoringConfig, DEFAULT_CONFIG
from .lexicons import LexiconConfig, default_lexicons
from .review_models import EnrichedReview, Review, SentimentLabel
from .review_signals import SignalExtractor, ThemeTagger
from .sentiment import SentimentClassifier
from .tokenizer import Tokenizer

logger = logging.getLogger(__name__)


class ReviewEnricher:
    """Builds an EnrichedReview from a Review. Thread-safe after construction."""

    def __init__(
        self,
        lexicons: Optional[LexiconConfig] = None,
        config: Optional[ScoringConfig] = None,
    ):
        self.lexicons = lexicons or default_lexicons()
        self.config = config or DEFAULT_CONFIG
        self.config.validate()

        self.tokenizer = Tokenizer(self.lexicons)
        self.classifier = SentimentClassifier(self.lexicons, self.config.sentiment)
        self.tagger = ThemeTagger(self.lexicons, self.tokenizer)
        self.extractor = SignalExtractor(self.lexicons, self.classifier, self.config.extraction)

    def enrich(self, review: Review) -> EnrichedReview:
        """Classify one review. Empty text -> neutral, no themes, no extractions."""
        if not review.has_text:
            return EnrichedReview(
                review=review,
                sentiment=0.0,
                sentiment_label=SentimentLabel.NEUTRAL,
            )

        text = review.review_text
        score, label = self.classifier.classify(text)
        pain_points, feature_requests = self.extractor.extract(text)

        return EnrichedReview(
            review=review,
            sentiment=score,
            sentiment_label=label,
            themes=self.tagger.tag(text),
            pain_points=tuple(pain_points),
            feature_requests=tuple(feature_requests),
        )

    def enrich_many(self, reviews: Iterable[Review], workers: int = 1) -> List[EnrichedReview]:
        """
        Enrich a batch of reviews.

        Args:
            reviews: Reviews to classify.
            workers: Thread count. 1 runs inline.
        """
        reviews = list(reviews)
        if workers <= 1 or len(reviews) <= 1:
            return [self.enrich(r) for r in reviews]

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="enrich") as pool:
            enriched = list(pool.map(self.enrich, reviews))

        logger.debug(f"Enriched {len(enriched)} reviews with {workers} workers")
        return enriched
