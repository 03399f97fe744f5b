"""
Sentiment Classifier
====================

Lexicon/rule-based polarity scoring of raw review text.

Base pass: VADER compound score (valence lexicon, negation window,
booster/dampener intensifiers, CAPS and "!" emphasis, normalized with
x / sqrt(x^2 + 15)). The configured sentiment_lexicon entries are merged
over VADER's lexicon for this classifier instance only.

VADER only knows English negators. A configured negator ("non", "mai")
flips every configured lexicon word in the NEGATION_WINDOW tokens after it
by VADER's own negation scalar, so "non è utile" scores like "not useful".

Clue pass: a neutral-band text containing a configured negative clue
("too low", "non funziona", ...) is forced negative, its score pushed down
to the configured clue floor.

Usage:
    classifier = SentimentClassifier(load_lexicons())
    score, label = classifier.classify("Audio volume is too low")
"""

import logging
import re
import string
from typing import Dict, List, Optional, Pattern, Tuple

from vaderSentiment.vaderSentiment import N_SCALAR, SentimentIntensityAnalyzer

from ..errors import ConfigurationError
from ..scoring.scoring_config import SentimentConfig
from .lexicons import LexiconConfig
from .review_models import SentimentLabel
from .tokenizer import normalize_text

logger = logging.getLogger(__name__)

# Same look-back VADER uses for its English negators.
NEGATION_WINDOW = 3

NEGATED_PREFIX = "neg_"


def phrase_pattern(phrase: str) -> Pattern:
    """Case-insensitive, word-bounded pattern for a phrase (whitespace-tolerant)."""
    body = r"\s+".join(re.escape(part) for part in phrase.split())
    return re.compile(rf"(?<!\w){body}(?!\w)", re.IGNORECASE)


def label_for(score: float, config: Optional[SentimentConfig] = None) -> SentimentLabel:
    """Map a score to its label. The only place thresholds are applied."""
    config = config or SentimentConfig()
    if score >= config.positive_threshold:
        return SentimentLabel.POSITIVE
    if score <= config.negative_threshold:
        return SentimentLabel.NEGATIVE
    return SentimentLabel.NEUTRAL


class SentimentClassifier:
    """
    Deterministic sentiment scorer.

    Holds only read-only state after construction (its own copy of the
    VADER lexicon, compiled clue patterns): safe to call from many threads.
    """

    def __init__(
        self,
        lexicons: LexiconConfig,
        config: Optional[SentimentConfig] = None,
    ):
        self.config = config or SentimentConfig()
        self._analyzer = SentimentIntensityAnalyzer()
        if not self._analyzer.lexicon:
            raise ConfigurationError("VADER sentiment lexicon is empty")
        self._analyzer.lexicon.update(lexicons.sentiment_lexicon)

        self._negations = frozenset(lexicons.negations)
        # configured word -> token carrying its negated valence
        self._negated_tokens: Dict[str, str] = {}
        for word, valence in lexicons.sentiment_lexicon.items():
            if valence and " " not in word:
                token = NEGATED_PREFIX + word
                self._negated_tokens[word] = token
                self._analyzer.lexicon[token] = valence * N_SCALAR

        self._clue_patterns: List[Tuple[str, Pattern]] = [
            (clue, phrase_pattern(clue)) for clue in lexicons.negative_clues
        ]
        logger.debug(
            f"SentimentClassifier ready: {len(self._analyzer.lexicon)} lexicon entries, "
            f"{len(self._clue_patterns)} negative clues, {len(self._negations)} extra negators"
        )

    def base_score(self, text: str) -> float:
        """VADER compound score in [-1, 1]; 0.0 for empty text."""
        if not text or not text.strip():
            return 0.0
        return float(self._analyzer.polarity_scores(self.apply_negations(text))["compound"])

    def apply_negations(self, text: str) -> str:
        """
        Swap configured lexicon words that follow a configured negator for
        their negated token. English negation is left to VADER.
        """
        if not self._negations:
            return text
        words = text.split()
        remaining = 0
        for i, word in enumerate(words):
            core = word.strip(string.punctuation)
            bare = core.lower()
            if bare in self._negations:
                remaining = NEGATION_WINDOW
                continue
            if remaining:
                remaining -= 1
                token = self._negated_tokens.get(bare)
                if token:
                    words[i] = word.replace(core, token, 1)
        return " ".join(words)

    def find_clues(self, text: str) -> List[str]:
        """Negative clue phrases present in the text, in lexicon order."""
        if not text:
            return []
        normalized = normalize_text(text)
        return [clue for clue, pattern in self._clue_patterns if pattern.search(normalized)]

    def has_negative_clue(self, text: str) -> bool:
        if not text:
            return False
        normalized = normalize_text(text)
        return any(pattern.search(normalized) for _, pattern in self._clue_patterns)

    def classify(self, text: str) -> Tuple[float, SentimentLabel]:
        """
        Score and label a text.

        Returns:
            (score in [-1, 1], label). Empty text -> (0.0, NEUTRAL).
        """
        score = round(self.base_score(text), 4)
        label = label_for(score, self.config)

        if label == SentimentLabel.NEUTRAL and self.has_negative_clue(text):
            score = min(score, self.config.clue_floor)
            label = label_for(score, self.config)

        return score, label

    def score(self, text: str) -> float:
        return self.classify(text)[0]
