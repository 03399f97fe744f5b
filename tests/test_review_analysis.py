"""
Tests for SessionPulse review analysis (per-review stages).

Tests the deterministic classification of a single review:
- Tokenizer: sentence / clause splitting, stop words, stemming
- Sentiment: VADER base score, lexicon overrides, extra negators, negative clue pass
- Themes: stem and phrase matching, English and Italian
- Extraction: pain points (uncapped) and feature requests (max 2)
- Lexicons: validation errors surface as ConfigurationError

Usage:
    pytest tests/test_review_analysis.py -v
"""

import json

import pytest

from sessionpulse.errors import ConfigurationError, MalformedRecordError
from sessionpulse.reviews.lexicons import (
    DEFAULT_LEXICON_PATH, default_lexicons, load_lexicons, parse_lexicons,
)
from sessionpulse.reviews.review_enricher import ReviewEnricher
from sessionpulse.reviews.review_models import Review, SentimentLabel, parse_rating, parse_review_date
from sessionpulse.reviews.review_signals import SignalExtractor, ThemeTagger
from sessionpulse.reviews.sentiment import SentimentClassifier, label_for
from sessionpulse.reviews.tokenizer import (
    Tokenizer, segment, signal_key, split_clauses, split_sentences,
)
from sessionpulse.scoring.scoring_config import AttentionConfig, ExtractionConfig, ScoringConfig, SentimentConfig


# ============================================================================
# TEST DATA
# ============================================================================

def make_review(text, session_id: str = "journey-ritual", **extra) -> Review:
    """Helper to create a Review from a raw record."""
    record = {"session_id": session_id, "review_text": text}
    record.update(extra)
    return Review.from_record(record)


SAMPLE_TEXTS = [
    "Loved the pacing",
    "Audio volume is too low, please add a louder mode",
    "Great exercises",
    "The app keeps crashing. The audio is muffled.",
    "It was okay I guess",
    "The session was too long",
    "Il contenuto è ottimo",
    "Il video non funziona",
    "Terrible, boring and far too repetitive!!!",
    "",
]


def lexicon_data(**overrides) -> dict:
    """Bundled lexicon file contents with some keys replaced."""
    with open(DEFAULT_LEXICON_PATH, encoding="utf-8") as f:
        data = json.load(f)
    data.update(overrides)
    return data


# ============================================================================
# TOKENIZER
# ============================================================================

class TestTokenizer:
    """Sentence / clause splitting and stemming."""

    def setup_method(self):
        self.tokenizer = Tokenizer(default_lexicons())

    def test_split_sentences_on_terminal_punctuation(self):
        text = "The app keeps crashing. The audio is muffled! Why?"
        assert split_sentences(text) == [
            "The app keeps crashing.",
            "The audio is muffled!",
            "Why?",
        ]

    def test_run_on_text_is_one_sentence(self):
        text = "loved it the pacing was great and the voice was calm"
        assert split_sentences(text) == [text]

    def test_empty_text_has_no_sentences(self):
        assert split_sentences("") == []
        assert split_sentences("   \n ") == []
        assert segment("") == []

    def test_split_clauses_on_comma_and_contrast(self):
        assert split_clauses("Audio volume is too low, please add a louder mode") == [
            "Audio volume is too low",
            "please add a louder mode",
        ]
        assert split_clauses("Nice voice but the audio cuts out.") == [
            "Nice voice",
            "the audio cuts out",
        ]

    def test_tokenize_drops_stopwords_and_stems(self):
        tokens = self.tokenizer.tokenize("The exercises were really relaxing")
        assert "the" not in tokens
        assert "exercis" in tokens
        assert "relax" in tokens

    def test_stems_every_language(self):
        stems = self.tokenizer.stems("Esercizio")
        assert set(stems) == {"english", "italian"}
        assert stems == self.tokenizer.stems("esercizio")
        assert stems["italian"].startswith("eserciz")

    def test_signal_key_normalizes_case_whitespace_and_punctuation(self):
        assert signal_key("  Audio   volume is TOO low. ") == "audio volume is too low"
        assert signal_key("Audio volume is too low") == signal_key("audio volume is too low!")


# ============================================================================
# SENTIMENT
# ============================================================================

class TestSentimentClassifier:
    """VADER score, overrides and clue pass."""

    def setup_method(self):
        self.classifier = SentimentClassifier(default_lexicons())

    def test_empty_text_is_neutral_zero(self):
        assert self.classifier.classify("") == (0.0, SentimentLabel.NEUTRAL)
        assert self.classifier.classify("   ") == (0.0, SentimentLabel.NEUTRAL)

    def test_positive_and_negative(self):
        assert self.classifier.classify("Loved the pacing")[1] == SentimentLabel.POSITIVE
        assert self.classifier.classify("Great exercises")[1] == SentimentLabel.POSITIVE
        assert self.classifier.classify("Terrible and boring")[1] == SentimentLabel.NEGATIVE

    def test_low_volume_review_is_negative(self):
        score, label = self.classifier.classify("Audio volume is too low, please add a louder mode")
        assert label == SentimentLabel.NEGATIVE
        assert score <= -0.05

    def test_label_always_agrees_with_score(self):
        config = SentimentConfig()
        for text in SAMPLE_TEXTS:
            score, label = self.classifier.classify(text)
            assert -1.0 <= score <= 1.0
            assert label == label_for(score, config), text
            if score >= 0.05:
                assert label == SentimentLabel.POSITIVE
            elif score <= -0.05:
                assert label == SentimentLabel.NEGATIVE
            else:
                assert label == SentimentLabel.NEUTRAL

    def test_threshold_edges(self):
        assert label_for(0.05) == SentimentLabel.POSITIVE
        assert label_for(-0.05) == SentimentLabel.NEGATIVE
        assert label_for(0.0499) == SentimentLabel.NEUTRAL
        assert label_for(-0.0499) == SentimentLabel.NEUTRAL

    def test_negative_clue_forces_neutral_text_negative(self):
        assert self.classifier.base_score("The session was too long") == 0.0
        score, label = self.classifier.classify("The session was too long")
        assert label == SentimentLabel.NEGATIVE
        assert score == SentimentConfig().clue_floor

    def test_italian_clue_and_lexicon(self):
        assert self.classifier.classify("Il video non funziona")[1] == SentimentLabel.NEGATIVE
        assert self.classifier.classify("Il contenuto è ottimo")[1] == SentimentLabel.POSITIVE

    def test_italian_negation_flips_praise(self):
        for text in ("Non è utile", "Il percorso non è bello", "La lezione non è ottima"):
            score, label = self.classifier.classify(text)
            assert label == SentimentLabel.NEGATIVE, text
            assert score <= -0.05, text
        assert self.classifier.classify("Il percorso è bello")[1] == SentimentLabel.POSITIVE
        assert self.classifier.classify("Not useful at all")[1] == SentimentLabel.NEGATIVE

    def test_negation_window(self):
        assert self.classifier.apply_negations("Non è utile.") == "Non è neg_utile."
        assert self.classifier.apply_negations("non lo so se è utile") == "non lo so se è utile"
        assert self.classifier.apply_negations("not useful") == "not useful"

    def test_negators_come_from_lexicon(self):
        classifier = SentimentClassifier(parse_lexicons(lexicon_data(negations=[])))
        assert classifier.apply_negations("Non è utile") == "Non è utile"
        assert classifier.classify("Non è utile")[1] == SentimentLabel.POSITIVE

    def test_find_clues(self):
        assert self.classifier.find_clues("It keeps crashing and the sound is TOO  LOW") == [
            "too low", "keeps crashing",
        ]
        assert self.classifier.find_clues("") == []

    def test_overrides_do_not_leak_between_classifiers(self):
        data = lexicon_data(sentiment_lexicon={"pacing": 3.0})
        custom = SentimentClassifier(parse_lexicons(data))
        assert custom.base_score("pacing") > 0
        assert self.classifier.base_score("pacing") == 0.0

    def test_deterministic(self):
        for text in SAMPLE_TEXTS:
            assert self.classifier.classify(text) == self.classifier.classify(text)


# ============================================================================
# THEMES
# ============================================================================

class TestThemeTagger:
    """Lexicon-driven theme tagging."""

    def setup_method(self):
        self.tagger = ThemeTagger(default_lexicons())

    def test_stem_match(self):
        assert self.tagger.tag("Loved the pacing") == frozenset({"content"})
        assert self.tagger.tag("Great exercises") == frozenset({"content", "utility"})

    def test_technical(self):
        themes = self.tagger.tag("Audio volume is too low, please add a louder mode")
        assert "technical" in themes

    def test_multiword_phrase(self):
        assert "technical" in self.tagger.tag("I could not log in this morning")

    def test_italian_keywords(self):
        assert "content" in self.tagger.tag("Il contenuto è ottimo")
        assert "technical" in self.tagger.tag("Il video non funziona")

    def test_ordinary_words_are_not_technical(self):
        assert "technical" not in self.tagger.tag("That sounds like a lovely idea")
        assert "technical" in self.tagger.tag("The sound is muffled")
        assert "utility" not in self.tagger.tag("Questo tipo di esperienza mi piace")

    def test_empty_text_has_no_themes(self):
        assert self.tagger.tag("") == frozenset()

    def test_categories_come_from_lexicon(self):
        data = lexicon_data(themes={"pricing": ["price", "expensive", "subscription"]})
        tagger = ThemeTagger(parse_lexicons(data))
        assert tagger.categories == ("pricing",)
        assert tagger.tag("Too expensive for a subscription") == frozenset({"pricing"})
        assert tagger.tag("Loved the pacing") == frozenset()


# ============================================================================
# PAIN POINTS / FEATURE REQUESTS
# ============================================================================

class TestSignalExtractor:
    """Clause-level extraction."""

    def setup_method(self):
        lexicons = default_lexicons()
        self.extractor = SignalExtractor(lexicons, SentimentClassifier(lexicons))

    def test_pain_point_and_request_from_one_sentence(self):
        pains, requests = self.extractor.extract("Audio volume is too low, please add a louder mode")
        assert pains == ["Audio volume is too low"]
        assert requests == ["please add a louder mode"]

    def test_all_pain_points_kept_in_order(self):
        pains = self.extractor.extract_pain_points(
            "The app keeps crashing. The audio is muffled. The lessons are rushed."
        )
        assert pains == [
            "The app keeps crashing",
            "The audio is muffled",
            "The lessons are rushed",
        ]

    def test_feature_requests_capped_at_two(self):
        text = "I wish it had subtitles. Please add a timer. It would be nice if it had music."
        assert self.extractor.extract_feature_requests(text) == [
            "I wish it had subtitles",
            "Please add a timer",
        ]

    def test_fallback_request_pattern(self):
        assert self.extractor.is_feature_request("They should really offer offline downloads")
        assert not self.extractor.is_feature_request("It should be fine")

    def test_negated_italian_praise_is_a_pain_point(self):
        assert self.extractor.extract_pain_points("Non è utile") == ["Non è utile"]
        assert self.extractor.extract_pain_points("Il percorso non è bello") == [
            "Il percorso non è bello",
        ]

    def test_positive_text_has_no_pain_points(self):
        assert self.extractor.extract("Loved the pacing") == ([], [])

    def test_empty_text(self):
        assert self.extractor.extract("") == ([], [])

    def test_custom_request_limit(self):
        lexicons = default_lexicons()
        extractor = SignalExtractor(
            lexicons, SentimentClassifier(lexicons), ExtractionConfig(max_feature_requests=1)
        )
        text = "I wish it had subtitles. Please add a timer."
        assert extractor.extract_feature_requests(text) == ["I wish it had subtitles"]


# ============================================================================
# ENRICHER
# ============================================================================

class TestReviewEnricher:
    """Full per-review enrichment."""

    def setup_method(self):
        self.enricher = ReviewEnricher()

    def test_empty_text_record(self):
        enriched = self.enricher.enrich(make_review(""))
        assert enriched.sentiment == 0.0
        assert enriched.sentiment_label == SentimentLabel.NEUTRAL
        assert enriched.themes == frozenset()
        assert enriched.pain_points == ()
        assert enriched.feature_requests == ()

    def test_null_text_is_empty(self):
        enriched = self.enricher.enrich(make_review(None))
        assert enriched.sentiment_label == SentimentLabel.NEUTRAL
        assert enriched.to_dict()["review_text"] is None

    def test_negative_review(self):
        enriched = self.enricher.enrich(
            make_review("Audio volume is too low, please add a louder mode", rating=2)
        )
        assert enriched.is_negative
        assert "technical" in enriched.themes
        assert enriched.pain_points == ("Audio volume is too low",)
        assert enriched.feature_requests == ("please add a louder mode",)

    def test_feature_requests_never_exceed_two(self):
        for text in SAMPLE_TEXTS + ["I wish it had A. Please add B. Please make C. Would love D."]:
            assert len(self.enricher.enrich(make_review(text)).feature_requests) <= 2

    def test_to_dict_echoes_input_fields(self):
        enriched = self.enricher.enrich(make_review("Great exercises", review_id="r-1", rating=5))
        record = enriched.to_dict()
        assert record["review_id"] == "r-1"
        assert record["rating"] == 5
        assert record["sentiment_label"] == "positive"
        assert record["themes"] == ["content", "utility"]
        assert "review_date" not in record

    def test_enrich_many_keeps_order_with_threads(self):
        reviews = [make_review(text, review_id=str(i)) for i, text in enumerate(SAMPLE_TEXTS)]
        sequential = self.enricher.enrich_many(reviews, workers=1)
        threaded = self.enricher.enrich_many(reviews, workers=4)
        assert [e.review.review_id for e in threaded] == [str(i) for i in range(len(SAMPLE_TEXTS))]
        assert threaded == sequential


# ============================================================================
# REVIEW MODEL
# ============================================================================

class TestReviewModel:
    """Input record validation."""

    def test_missing_session_id(self):
        with pytest.raises(MalformedRecordError):
            Review.from_record({"review_text": "Great"})
        with pytest.raises(MalformedRecordError):
            Review.from_record({"session_id": "  ", "review_text": "Great"})

    def test_missing_or_non_string_text(self):
        with pytest.raises(MalformedRecordError):
            Review.from_record({"session_id": "s1"})
        with pytest.raises(MalformedRecordError):
            Review.from_record({"session_id": "s1", "review_text": 42})

    def test_not_a_mapping(self):
        with pytest.raises(MalformedRecordError):
            Review.from_record(["s1", "Great"])

    def test_parse_rating(self):
        assert parse_rating(4) == 4.0
        assert parse_rating("4.5") == 4.5
        assert parse_rating(None) is None
        assert parse_rating(True) is None
        assert parse_rating(0) is None
        assert parse_rating(6) is None
        assert parse_rating("great") is None
        assert parse_rating(float("nan")) is None

    def test_parse_review_date(self):
        assert parse_review_date("2024-05-01").day == 1
        aware = parse_review_date("2024-05-01T10:00:00Z")
        assert aware.tzinfo is None and aware.hour == 10
        assert parse_review_date("yesterday") is None
        assert parse_review_date(None) is None

    def test_invalid_rating_kept_raw(self):
        review = make_review("Fine", rating="n/a")
        assert review.rating is None
        assert review.raw["rating"] == "n/a"


# ============================================================================
# LEXICONS / CONFIG
# ============================================================================

class TestLexiconConfig:
    """Lexicon and scoring configuration validation."""

    def test_bundled_lexicons_load(self):
        lexicons = load_lexicons()
        assert lexicons.languages == ["english", "italian"]
        assert set(lexicons.categories) == {"content", "presenter", "utility", "technical"}
        assert "non" in lexicons.negations

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_lexicons(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "lexicons.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_lexicons(path)

    @pytest.mark.parametrize("key,value", [
        ("negative_clues", []),
        ("feature_request_triggers", []),
        ("themes", {}),
        ("themes", {"content": []}),
        ("languages", ["klingon"]),
        ("sentiment_lexicon", {"low": -9.0}),
    ])
    def test_empty_or_invalid_sections(self, key, value):
        with pytest.raises(ConfigurationError):
            parse_lexicons(lexicon_data(**{key: value}))

    def test_custom_lexicon_file(self, tmp_path):
        path = tmp_path / "lexicons.json"
        path.write_text(json.dumps(lexicon_data(negative_clues=["meh"])), encoding="utf-8")
        lexicons = load_lexicons(path)
        assert lexicons.negative_clues == ["meh"]

    def test_scoring_config_validation(self):
        assert ScoringConfig().validate()
        with pytest.raises(ConfigurationError):
            ScoringConfig(sentiment=SentimentConfig(positive_threshold=-0.1)).validate()
        with pytest.raises(ConfigurationError):
            ScoringConfig(extraction=ExtractionConfig(top_n=0)).validate()
        with pytest.raises(ConfigurationError):
            ScoringConfig(
                attention=AttentionConfig(status_bands=((70, "problematc"), (0, "successful")))
            ).validate()

    def test_enricher_rejects_invalid_config(self):
        with pytest.raises(ConfigurationError):
            ReviewEnricher(config=ScoringConfig(sentiment=SentimentConfig(clue_floor=0.5)))
