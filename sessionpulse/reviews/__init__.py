"""
SessionPulse Review Analysis
============================

Deterministic per-review classification. No ML model, no network.

Modules:
    review_models   - Review / EnrichedReview data models
    lexicons        - Lexicon file loading and validation
    tokenizer       - Sentences, clauses, stop-word filtering, stemming
    sentiment       - VADER polarity + negative-clue override
    review_signals  - Theme tagging, pain points, feature requests
    review_enricher - Runs every stage on a review (optionally threaded)
"""

from .review_models import Review, EnrichedReview, SentimentLabel
from .lexicons import LexiconConfig, load_lexicons, default_lexicons
from .tokenizer import Tokenizer, split_sentences, split_clauses
from .sentiment import SentimentClassifier, label_for
from .review_signals import ThemeTagger, SignalExtractor
from .review_enricher import ReviewEnricher
