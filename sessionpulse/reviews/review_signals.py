"""
Review Signal Extractor (Deterministic)
=======================================

Theme tagging, pain-point and feature-request extraction from review text
using the configured lexicons. No LLM required: fast, explainable,
reproducible.

Usage:
    tagger = ThemeTagger(lexicons, tokenizer)
    themes = tagger.tag(text)

    extractor = SignalExtractor(lexicons, classifier)
    pain_points = extractor.extract_pain_points(text)
    requests = extractor.extract_feature_requests(text)
"""

import logging
import re
from collections import defaultdict
from typing import Dict, FrozenSet, List, Optional, Pattern, Set, Tuple

from ..scoring.scoring_config import ExtractionConfig
from .lexicons import LexiconConfig
from .review_models import SentimentLabel
from .sentiment import SentimentClassifier, phrase_pattern
from .tokenizer import MIN_STEM_LENGTH, Tokenizer, normalize_text, segment

logger = logging.getLogger(__name__)


def fallback_request_pattern(verbs: List[str]) -> Optional[Pattern]:
    """'would/could/should (+ really/please/also) + request verb'."""
    if not verbs:
        return None
    alternatives = "|".join(
        r"\s+".join(re.escape(part) for part in verb.split())
        for verb in sorted(verbs, key=len, reverse=True)
    )
    return re.compile(
        rf"\b(?:would|could|should)(?:\s+(?:really|please|also|definitely))?\s+(?:{alternatives})\b",
        re.IGNORECASE,
    )


class ThemeTagger:
    """
    Tags a review with the theme categories it touches.

    Single-word keywords match by stem, comparing each token's stem in a
    language with the keyword stems of that same language. Multi-word
    keywords match as phrases in the raw text. Categories come from the
    lexicon dictionary; none are hard-coded.
    """

    def __init__(self, lexicons: LexiconConfig, tokenizer: Optional[Tokenizer] = None):
        self.tokenizer = tokenizer or Tokenizer(lexicons)
        self.categories: Tuple[str, ...] = tuple(lexicons.themes)

        # category -> language -> keyword stems
        self._stems: Dict[str, Dict[str, Set[str]]] = {}
        # category -> phrase patterns
        self._phrases: Dict[str, List[Pattern]] = {}

        for category, keywords in lexicons.themes.items():
            stems: Dict[str, Set[str]] = defaultdict(set)
            phrases: List[Pattern] = []
            for keyword in keywords:
                if " " in keyword:
                    phrases.append(phrase_pattern(keyword))
                    continue
                for lang, stem in self.tokenizer.stems(keyword).items():
                    if len(stem) >= MIN_STEM_LENGTH:
                        stems[lang].add(stem)
                    else:
                        # short keywords ("app") still need an exact match
                        stems[lang].add(keyword)
            self._stems[category] = dict(stems)
            self._phrases[category] = phrases

    def tag(self, text: str) -> FrozenSet[str]:
        """Set of matched categories. Empty text -> empty set."""
        if not text or not text.strip():
            return frozenset()
        return self.tag_tokens(self.tokenizer.stem_tokens(text), text)

    def tag_tokens(self, token_stems: List[Dict[str, str]], text: str) -> FrozenSet[str]:
        """Match pre-stemmed tokens (plus raw text for phrases)."""
        normalized = normalize_text(text)
        matched = set()
        for category in self.categories:
            if self._matches_stems(category, token_stems) or any(
                p.search(normalized) for p in self._phrases[category]
            ):
                matched.add(category)
        return frozenset(matched)

    def _matches_stems(self, category: str, token_stems: List[Dict[str, str]]) -> bool:
        keyword_stems = self._stems[category]
        for stems in token_stems:
            for lang, stem in stems.items():
                if stem in keyword_stems.get(lang, ()):
                    return True
        return False


class SignalExtractor:
    """
    Pain-point and feature-request extraction at clause level.

    - Pain point: clause whose own sentiment is negative, or that holds a
      negative clue. All kept, in order.
    - Feature request: clause matching a trigger phrase (or the
      would/could/should fallback). First max_feature_requests kept.
    """

    def __init__(
        self,
        lexicons: LexiconConfig,
        classifier: SentimentClassifier,
        config: Optional[ExtractionConfig] = None,
    ):
        self.classifier = classifier
        self.config = config or ExtractionConfig()
        self._triggers: List[Pattern] = [phrase_pattern(t) for t in lexicons.feature_request_triggers]
        self._fallback = fallback_request_pattern(lexicons.feature_request_verbs)

    def is_pain_point(self, clause: str) -> bool:
        _, label = self.classifier.classify(clause)
        return label == SentimentLabel.NEGATIVE or self.classifier.has_negative_clue(clause)

    def is_feature_request(self, clause: str) -> bool:
        normalized = normalize_text(clause)
        if any(p.search(normalized) for p in self._triggers):
            return True
        return bool(self._fallback and self._fallback.search(normalized))

    def extract_pain_points(self, text: str, clauses: Optional[List[str]] = None) -> List[str]:
        """Every negative or clue-bearing clause, in order of appearance."""
        if clauses is None:
            clauses = segment(text)
        return [c for c in clauses if self.is_pain_point(c)]

    def extract_feature_requests(self, text: str, clauses: Optional[List[str]] = None) -> List[str]:
        """First N request clauses in text order (stops once N are found)."""
        if clauses is None:
            clauses = segment(text)
        limit = self.config.max_feature_requests
        requests: List[str] = []
        if limit <= 0:
            return requests
        for clause in clauses:
            if self.is_feature_request(clause):
                requests.append(clause)
                if len(requests) >= limit:
                    break
        return requests

    def extract(self, text: str) -> Tuple[List[str], List[str]]:
        """(pain_points, feature_requests) for one review text."""
        if not text or not text.strip():
            return [], []
        clauses = segment(text)
        return (
            self.extract_pain_points(text, clauses),
            self.extract_feature_requests(text, clauses),
        )
