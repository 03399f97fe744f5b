"""
Lexicon Configuration
=====================

Loads the static lexicons (stop words, sentiment extensions, extra negators,
negative clues, feature-request triggers, theme dictionaries) from a JSON file
and validates them with pydantic. Lexicons are data: new languages or theme
categories are added by editing the file, never the code.

An empty or missing lexicon is a ConfigurationError. Scoring with an empty
lexicon would silently label everything neutral.

Usage:
    lexicons = load_lexicons()                 # bundled defaults
    lexicons = load_lexicons("my_lexicons.json")
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_LEXICON_PATH = Path(__file__).parent / "data" / "default_lexicons.json"

# Languages with a Snowball stemmer in NLTK that the tokenizer accepts.
SUPPORTED_LANGUAGES = frozenset({
    "danish", "dutch", "english", "finnish", "french", "german", "hungarian",
    "italian", "norwegian", "portuguese", "romanian", "russian", "spanish", "swedish",
})


def _clean_phrases(values: List[str]) -> List[str]:
    """Lower-case, trim, drop blanks, keep first occurrence order."""
    seen = set()
    cleaned = []
    for value in values:
        phrase = " ".join(value.lower().split())
        if phrase and phrase not in seen:
            seen.add(phrase)
            cleaned.append(phrase)
    return cleaned


class LexiconConfig(BaseModel):
    """Validated lexicon set. Immutable once loaded."""

    model_config = {"frozen": True}

    version: str = "1.0"
    languages: List[str] = Field(min_length=1)
    stopwords: Dict[str, List[str]] = Field(default_factory=dict)
    sentiment_lexicon: Dict[str, float] = Field(default_factory=dict)
    negative_clues: List[str] = Field(min_length=1)
    feature_request_triggers: List[str] = Field(min_length=1)
    feature_request_verbs: List[str] = Field(default_factory=list)
    negations: List[str] = Field(default_factory=list)
    themes: Dict[str, List[str]] = Field(min_length=1)

    @field_validator("languages")
    @classmethod
    def check_languages(cls, value: List[str]) -> List[str]:
        languages = [lang.lower().strip() for lang in value]
        unknown = [lang for lang in languages if lang not in SUPPORTED_LANGUAGES]
        if unknown:
            raise ValueError(f"Unsupported stemming languages: {unknown}")
        return languages

    @field_validator("negative_clues", "feature_request_triggers", "feature_request_verbs", "negations")
    @classmethod
    def check_phrases(cls, value: List[str]) -> List[str]:
        return _clean_phrases(value)

    @field_validator("stopwords")
    @classmethod
    def check_stopwords(cls, value: Dict[str, List[str]]) -> Dict[str, List[str]]:
        return {lang.lower(): _clean_phrases(words) for lang, words in value.items()}

    @field_validator("sentiment_lexicon")
    @classmethod
    def check_sentiment_lexicon(cls, value: Dict[str, float]) -> Dict[str, float]:
        for word, valence in value.items():
            if not -4.0 <= valence <= 4.0:
                raise ValueError(f"Valence for {word!r} must lie in [-4, 4], got {valence}")
        return {word.lower().strip(): valence for word, valence in value.items()}

    @field_validator("themes")
    @classmethod
    def check_themes(cls, value: Dict[str, List[str]]) -> Dict[str, List[str]]:
        themes = {}
        for category, keywords in value.items():
            name = category.strip()
            cleaned = _clean_phrases(keywords)
            if not name:
                raise ValueError("Theme category names cannot be blank")
            if not cleaned:
                raise ValueError(f"Theme category {name!r} has no keywords")
            themes[name] = cleaned
        return themes

    @property
    def all_stopwords(self) -> frozenset:
        """Stop words of every language, checked regardless of detected language."""
        return frozenset(word for words in self.stopwords.values() for word in words)

    @property
    def categories(self) -> List[str]:
        return list(self.themes)


def parse_lexicons(data: dict, source: str = "<dict>") -> LexiconConfig:
    """Validate a raw lexicon mapping. Raises ConfigurationError."""
    try:
        return LexiconConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid lexicon configuration in {source}: {e}") from e


def load_lexicons(path: Optional[Union[str, Path]] = None) -> LexiconConfig:
    """
    Load and validate a lexicon file.

    Args:
        path: JSON file path. None loads the bundled defaults.

    Raises:
        ConfigurationError: file missing, unreadable, not JSON, or invalid.
    """
    lexicon_path = Path(path) if path else DEFAULT_LEXICON_PATH
    try:
        with open(lexicon_path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Lexicon file not found: {lexicon_path}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read lexicon file {lexicon_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Lexicon file {lexicon_path} must contain a JSON object")

    lexicons = parse_lexicons(data, source=str(lexicon_path))
    logger.info(
        f"Loaded lexicons v{lexicons.version} from {lexicon_path.name}: "
        f"{len(lexicons.themes)} themes, {len(lexicons.negative_clues)} clues, "
        f"{len(lexicons.feature_request_triggers)} triggers, languages={lexicons.languages}"
    )
    return lexicons


@lru_cache(maxsize=1)
def default_lexicons() -> LexiconConfig:
    """Bundled lexicons, loaded once per process."""
    return load_lexicons()
