"""
Tokenizer / Normalizer
======================

Splits review text into sentences, clauses and stemmed tokens.

Stemming uses NLTK's Snowball stemmers, one per configured language
(primary English, secondary Italian by default). Every token is stemmed in
every language: the secondary language is picked up by lexicon match, not by
language detection.
"""

import re
import unicodedata
from typing import Dict, List, Tuple

from nltk.stem.snowball import SnowballStemmer

from .lexicons import LexiconConfig

# Terminal punctuation (incl. ellipsis) or line breaks end a sentence.
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?…])\s+|[\r\n]+|(?<=[.!?…])(?=[A-ZÀ-Ý])")

# Clause boundaries inside a sentence.
_CLAUSE_SPLIT_RE = re.compile(
    r"\s*[,;:]\s+|\s*[,;:]$|\s+(?:but|however|although|ma|però|pero)\s+",
    re.IGNORECASE,
)

_WORD_RE = re.compile(r"[^\W\d_]+(?:'[^\W\d_]+)*", re.UNICODE)

_APOSTROPHES = str.maketrans({"’": "'", "‘": "'", "`": "'", "´": "'"})

_TRAILING_PUNCT = " \t.,;:!?…-–—\"'()[]"

# Stems shorter than this are too ambiguous to match across languages.
MIN_STEM_LENGTH = 3


def normalize_text(text: str) -> str:
    """Lower-case, unify apostrophes, NFC-normalize, collapse whitespace."""
    if not text:
        return ""
    text = unicodedata.normalize("NFC", text).translate(_APOSTROPHES)
    return " ".join(text.lower().split())


def clean_fragment(text: str) -> str:
    """Trim a sentence/clause and drop trailing punctuation."""
    return " ".join(text.split()).strip(_TRAILING_PUNCT)


def signal_key(text: str) -> str:
    """Dedup key for extracted sentences: lower-cased, whitespace-collapsed, trimmed."""
    return normalize_text(text).strip(_TRAILING_PUNCT)


def split_sentences(text: str) -> List[str]:
    """
    Split text on terminal punctuation, preserving order.

    Run-on text without boundary markers is a single sentence.
    Empty or whitespace-only text yields [].
    """
    if not text or not text.strip():
        return []
    parts = _SENTENCE_SPLIT_RE.split(text.strip())
    return [" ".join(p.split()) for p in parts if p and p.strip(_TRAILING_PUNCT)]


def split_clauses(sentence: str) -> List[str]:
    """Split one sentence at commas/semicolons/colons and contrastive conjunctions."""
    if not sentence or not sentence.strip():
        return []
    parts = _CLAUSE_SPLIT_RE.split(sentence)
    clauses = [clean_fragment(p) for p in parts if p]
    return [c for c in clauses if c]


def segment(text: str) -> List[str]:
    """All clauses of a text, in order of appearance."""
    return [clause for sentence in split_sentences(text) for clause in split_clauses(sentence)]


def words(text: str) -> List[str]:
    """Lower-cased word tokens (letters and inner apostrophes only)."""
    return _WORD_RE.findall(normalize_text(text))


class Tokenizer:
    """
    Stop-word filtering and multi-language stemming.

    Stateless after construction: safe to share across threads.
    """

    def __init__(self, lexicons: LexiconConfig):
        self.languages: Tuple[str, ...] = tuple(lexicons.languages)
        self.stopwords = lexicons.all_stopwords
        self._stemmers: Dict[str, SnowballStemmer] = {
            lang: SnowballStemmer(lang) for lang in self.languages
        }

    def tokenize(self, text: str) -> List[str]:
        """
        Normalized tokens: lower-cased, stop words removed, stemmed with the
        primary language stemmer.
        """
        primary = self._stemmers[self.languages[0]]
        return [primary.stem(w) for w in self.content_words(text)]

    def content_words(self, text: str) -> List[str]:
        """Lower-cased words with every language's stop words removed."""
        return [w for w in words(text) if w not in self.stopwords and len(w) > 1]

    def stems(self, word: str) -> Dict[str, str]:
        """Stem of one word in every configured language."""
        word = word.lower()
        return {lang: stemmer.stem(word) for lang, stemmer in self._stemmers.items()}

    def stem_tokens(self, text: str) -> List[Dict[str, str]]:
        """Per content word, its stem in every language."""
        return [self.stems(w) for w in self.content_words(text)]
