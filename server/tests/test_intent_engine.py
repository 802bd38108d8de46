"""Tests for IntentEngine: tokenisation, IDF table and keyword scoring.

Covers:
- tokenize: punctuation, casing, stop words
- IDF over the shared catalog
- detect_intents: thresholds, ordering, tie-breaking, empty input
- get_best_intent / has_multiple_intents / get_intent_by_name
- Replaceable confidence function
"""
import math

import pytest

from core.intent_catalog import GREETING_RESPONSE, INTENT_CATALOG
from core.intent_engine import IntentEngine, linear_confidence, tokenize
from models.intent import Intent, IntentName


def _make_intent(name, keywords, weight=1.0):
    return Intent(name=name, keywords=tuple(keywords), weight=weight, response=f"{name.value} reply")


# ---------------------------------------------------------------------------
# tokenize
# ---------------------------------------------------------------------------

class TestTokenize:

    def test_lowercases_and_strips_punctuation(self):
        assert tokenize("Predict TOMATO price!!!") == ["predict", "tomato", "price"]

    def test_punctuation_splits_words(self):
        assert tokenize("price,cost;rate") == ["price", "cost", "rate"]

    def test_drops_stop_words(self):
        assert tokenize("what is the price of it") == ["price"]

    @pytest.mark.parametrize("text", ["", "   ", "?!...", "what about that?", "how do you do"])
    def test_nothing_left(self, text):
        assert tokenize(text) == []


# ---------------------------------------------------------------------------
# IDF
# ---------------------------------------------------------------------------

class TestIdf:

    def test_token_unique_to_one_intent(self, intent_engine):
        assert intent_engine.idf_scores["hello"] == pytest.approx(math.log(len(INTENT_CATALOG)))

    def test_token_shared_by_two_intents(self, intent_engine):
        # "market" appears in predict_demand and market_trends
        assert intent_engine.idf_scores["market"] == pytest.approx(math.log(len(INTENT_CATALOG) / 2))

    def test_stop_word_only_keywords_have_no_entry(self, intent_engine):
        assert "what" not in intent_engine.idf_scores
        assert "will" not in intent_engine.idf_scores

    def test_idf_is_positive_for_catalog(self, intent_engine):
        assert all(value > 0 for value in intent_engine.idf_scores.values())

    def test_empty_catalog_rejected(self):
        with pytest.raises(ValueError):
            IntentEngine(catalog=[])


# ---------------------------------------------------------------------------
# detect_intents
# ---------------------------------------------------------------------------

class TestDetectIntents:

    def test_greeting_is_confident(self, intent_engine):
        matches = intent_engine.detect_intents("Hello")

        assert matches[0].intent.name == IntentName.GREETING
        assert matches[0].confidence >= 0.7
        assert matches[0].intent.response == GREETING_RESPONSE

    def test_all_keywords_of_one_intent(self, intent_engine):
        matches = intent_engine.detect_intents("accuracy r2 mae rmse reliable")

        assert len(matches) == 1
        assert matches[0].intent.name == IntentName.MODEL_ACCURACY
        assert matches[0].confidence >= 0.7

    def test_price_request(self, intent_engine):
        matches = intent_engine.detect_intents("predict tomato price")

        assert [m.intent.name for m in matches] == [IntentName.PREDICT_PRICE]
        assert matches[0].confidence == pytest.approx(math.log(15) / 3, rel=1e-6)
        assert matches[0].matched_keywords == ["price", "predict"]

    @pytest.mark.parametrize("message", ["", "what about that?", "and it is too", "...!!!"])
    def test_stop_words_only_returns_nothing(self, intent_engine, message):
        assert intent_engine.detect_intents(message) == []

    def test_unknown_words_return_nothing(self, intent_engine):
        assert intent_engine.detect_intents("xyzzy plugh") == []

    def test_sorted_by_confidence(self, intent_engine):
        matches = intent_engine.detect_intents("quality order")

        assert [m.intent.name for m in matches] == [IntentName.QUALITY_INFO, IntentName.ORDER_INFO]
        assert matches[0].confidence >= matches[1].confidence

    def test_confidences_within_bounds(self, intent_engine):
        for message in ["Hello", "price demand yield", "why why why", "thanks bye"]:
            for match in intent_engine.detect_intents(message, confidence_threshold=0.0):
                assert 0.0 <= match.confidence <= 1.0

    def test_threshold_filters_weak_matches(self, intent_engine):
        message = "tell me about the weather forecast for tomato farms in kandy"

        low = intent_engine.detect_intents(message, confidence_threshold=0.1)
        assert [m.intent.name for m in low] == [IntentName.PREDICT_PRICE]
        assert low[0].confidence < 0.4

        assert intent_engine.detect_intents(message, confidence_threshold=0.5) == []

    def test_ties_keep_catalog_order(self):
        first = _make_intent(IntentName.GREETING, ["alpha", "beta"])
        second = _make_intent(IntentName.HELP, ["alpha", "gamma"])
        other = _make_intent(IntentName.FAREWELL, ["delta", "epsilon"])

        forward = IntentEngine(catalog=[first, second, other]).detect_intents("alpha")
        backward = IntentEngine(catalog=[second, first, other]).detect_intents("alpha")

        assert forward[0].confidence == backward[0].confidence == forward[1].confidence
        assert [m.intent.name for m in forward] == [IntentName.GREETING, IntentName.HELP]
        assert [m.intent.name for m in backward] == [IntentName.HELP, IntentName.GREETING]

    def test_weight_scales_score(self):
        light = _make_intent(IntentName.GRATITUDE, ["thanks", "cheers"], weight=0.5)
        heavy = _make_intent(IntentName.HELP, ["help", "assist"], weight=2.0)
        filler = _make_intent(IntentName.FAREWELL, ["bye", "later"])
        engine = IntentEngine(catalog=[light, heavy, filler], confidence_fn=lambda s: min(1.0, s / 10))

        matches = engine.detect_intents("thanks help", confidence_threshold=0.0)
        assert [m.intent.name for m in matches] == [IntentName.HELP, IntentName.GRATITUDE]
        assert matches[0].confidence == pytest.approx(4 * matches[1].confidence)


# ---------------------------------------------------------------------------
# Convenience queries
# ---------------------------------------------------------------------------

class TestConvenienceQueries:

    def test_best_intent(self, intent_engine):
        best = intent_engine.get_best_intent("thanks a lot")
        assert best.intent.name == IntentName.GRATITUDE

    def test_best_intent_none(self, intent_engine):
        assert intent_engine.get_best_intent("xyzzy") is None

    def test_multiple_intents(self, intent_engine):
        assert intent_engine.has_multiple_intents("quality order") is True
        assert intent_engine.has_multiple_intents("Hello") is False

    def test_get_intent_by_name(self, intent_engine):
        intent = intent_engine.get_intent_by_name("show_dashboard")
        assert intent.name == IntentName.SHOW_DASHBOARD
        assert intent_engine.get_intent_by_name("not_an_intent") is None

    def test_catalog_exposed_in_order(self, intent_engine):
        assert [i.name for i in intent_engine.intents] == [i.name for i in INTENT_CATALOG]
        assert len(intent_engine.intents) == 15


# ---------------------------------------------------------------------------
# Confidence function
# ---------------------------------------------------------------------------

class TestConfidenceFunction:

    def test_linear_clamps_at_one(self):
        assert linear_confidence(5.0, scale=2.0) == 1.0
        assert linear_confidence(1.0, scale=2.0) == pytest.approx(0.5)

    def test_custom_confidence_fn(self):
        engine = IntentEngine(confidence_fn=lambda score: 0.42)

        matches = engine.detect_intents("quality order")
        assert [m.confidence for m in matches] == [0.42, 0.42]

    def test_custom_fn_below_threshold_drops_everything(self):
        engine = IntentEngine(confidence_fn=lambda score: 0.05)
        assert engine.detect_intents("Hello", confidence_threshold=0.1) == []
