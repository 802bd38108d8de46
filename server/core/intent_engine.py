"""Intent Engine: TF-IDF weighted keyword scoring over the intent catalog."""
import logging
import math
import re
from collections import Counter
from typing import Callable, Iterable, Optional

from models.intent import Intent, IntentMatch, IntentName
from core.intent_catalog import INTENT_CATALOG
from config.settings import settings

logger = logging.getLogger(__name__)

BEST_INTENT_THRESHOLD = 0.15
MULTI_INTENT_THRESHOLD = 0.2

_PUNCTUATION_RE = re.compile(r"[^\w\s]")

# Function words carry no intent signal. Dropped from messages and keywords
# alike so that "what about that?" scores nothing.
STOP_WORDS = frozenset({
    "a", "an", "the", "is", "are", "am", "was", "were", "be", "been",
    "to", "of", "in", "on", "at", "for", "and", "or", "but", "if", "so",
    "it", "its", "that", "this", "these", "those", "there", "here",
    "i", "me", "my", "we", "our", "you", "your", "he", "she", "they", "them",
    "what", "which", "who", "how", "when", "where",
    "do", "does", "did", "can", "could", "will", "would", "should",
    "about", "with", "as", "by", "from", "too", "also", "just", "please",
    "some", "any", "s", "m",
})


def tokenize(text: str) -> list[str]:
    """Lowercase, strip punctuation, split on whitespace, drop stop words."""
    cleaned = _PUNCTUATION_RE.sub(" ", text.lower())
    return [token for token in cleaned.split() if token and token not in STOP_WORDS]


def linear_confidence(score: float, scale: Optional[float] = None) -> float:
    """Map a raw TF-IDF score to [0, 1] with a linear clamp.

    ``scale`` is a sensitivity knob, not a probability calibration.
    """
    divisor = scale if scale is not None else settings.CONFIDENCE_SCALE
    return min(1.0, score / divisor)


class IntentEngine:
    """
    Scores free text against a fixed intent catalog.

    Stateless after construction: the catalog and its IDF table are built
    once and shared by every session.
    """

    def __init__(
        self,
        catalog: Iterable[Intent] = INTENT_CATALOG,
        confidence_fn: Optional[Callable[[float], float]] = None,
    ):
        self._intents: tuple[Intent, ...] = tuple(catalog)
        if not self._intents:
            raise ValueError("Intent catalog must not be empty")
        self._confidence_fn = confidence_fn or linear_confidence
        self._keyword_tokens: dict[IntentName, list[list[str]]] = {
            intent.name: [tokenize(keyword) for keyword in intent.keywords]
            for intent in self._intents
        }
        self.idf_scores = self._calculate_idf()
        logger.info(
            f"Intent engine ready: {len(self._intents)} intents, "
            f"{len(self.idf_scores)} keyword tokens"
        )

    def _calculate_idf(self) -> dict[str, float]:
        """idf(token) = ln(total intents / intents containing token)"""
        document_frequency: Counter = Counter()
        for intent in self._intents:
            unique_tokens = {
                token
                for phrase_tokens in self._keyword_tokens[intent.name]
                for token in phrase_tokens
            }
            document_frequency.update(unique_tokens)

        total = len(self._intents)
        return {
            token: math.log(total / count)
            for token, count in document_frequency.items()
        }

    def _score(self, term_frequency: dict[str, float], intent: Intent) -> float:
        score = 0.0
        matched = 0

        for phrase_tokens in self._keyword_tokens[intent.name]:
            for token in phrase_tokens:
                if token in term_frequency:
                    score += term_frequency[token] * self.idf_scores.get(token, 0.0) * intent.weight
                    matched += 1

        # Normalise so intents with long keyword lists are not favoured
        if matched == 0:
            return 0.0
        return score / math.sqrt(len(intent.keywords))

    def _matched_keywords(self, message_lower: str, intent: Intent) -> list[str]:
        """Keywords with at least one token present in the raw message."""
        return [
            keyword
            for keyword, phrase_tokens in zip(intent.keywords, self._keyword_tokens[intent.name])
            if any(token in message_lower for token in phrase_tokens)
        ]

    def detect_intents(
        self,
        message: str,
        confidence_threshold: float = 0.1,
    ) -> list[IntentMatch]:
        """
        Score every intent and return the matches above the threshold,
        highest confidence first. Ties keep catalog order.
        """
        tokens = tokenize(message)
        if not tokens:
            return []

        counts = Counter(tokens)
        term_frequency = {token: count / len(tokens) for token, count in counts.items()}
        message_lower = message.lower()

        matches: list[IntentMatch] = []
        for intent in self._intents:
            score = self._score(term_frequency, intent)
            if score <= 0:
                continue

            confidence = self._confidence_fn(score)
            if confidence < confidence_threshold:
                continue

            matches.append(IntentMatch(
                intent=intent,
                confidence=confidence,
                matched_keywords=self._matched_keywords(message_lower, intent),
            ))

        # list.sort is stable, so equal confidences stay in catalog order
        matches.sort(key=lambda m: m.confidence, reverse=True)

        logger.debug(
            "Intent scores: "
            + ", ".join(f"{m.intent.name.value}={m.confidence:.3f}" for m in matches)
        )
        return matches

    def get_best_intent(self, message: str) -> Optional[IntentMatch]:
        """Top match at the standard threshold, or None."""
        matches = self.detect_intents(message, BEST_INTENT_THRESHOLD)
        return matches[0] if matches else None

    def has_multiple_intents(self, message: str) -> bool:
        """True when at least two intents clear the ambiguity threshold."""
        return len(self.detect_intents(message, MULTI_INTENT_THRESHOLD)) > 1

    @property
    def intents(self) -> tuple[Intent, ...]:
        return self._intents

    def get_intent_by_name(self, name: str) -> Optional[Intent]:
        for intent in self._intents:
            if intent.name.value == name:
                return intent
        return None
