"""Context Manager: per-session entity memory and bounded turn history."""
import json
import logging
import re
from typing import Any, Callable, List, Optional
from uuid import uuid4

from pydantic import ValidationError

from models.context import ConversationContext, HistoryEntry, ResolvedEntities
from config.settings import settings

logger = logging.getLogger(__name__)

AVAILABLE_CROPS = [
    'beans', 'bean',
    'brinjal', 'brinjals', 'eggplant', 'aubergine',
    'cabbage', 'cabbages',
    'carrot', 'carrots',
    'pumpkin', 'pumpkins',
    'snake gourd', 'snakegourd',
    'tomato', 'tomatoes',
    'big onion', 'onion', 'onions',
    'coconut', 'coconuts',
    'dried chilli', 'chilli', 'chillies', 'dried chillies',
    'green chilli', 'green chillies',
    'potato', 'potatoes',
    'red onion', 'red onions',
    'leeks', 'leek',
    'pepper', 'peppers',
]

# Checked before AVAILABLE_CROPS so "onion" never shadows "red onion"
MULTI_WORD_CROPS = ['big onion', 'snake gourd', 'dried chilli', 'green chilli', 'red onion']

# Lowercase vocabulary -> name used by the prediction backend
CROP_CANONICAL_NAMES = {
    'beans': 'Beans', 'bean': 'Beans',
    'brinjal': 'Brinjal', 'brinjals': 'Brinjal', 'eggplant': 'Brinjal', 'aubergine': 'Brinjal',
    'cabbage': 'Cabbage', 'cabbages': 'Cabbage',
    'carrot': 'Carrot', 'carrots': 'Carrot',
    'pumpkin': 'Pumpkin', 'pumpkins': 'Pumpkin',
    'snake gourd': 'Snake gourd', 'snakegourd': 'Snake gourd',
    'tomato': 'Tomato', 'tomatoes': 'Tomato',
    'big onion': 'Big Onion', 'onion': 'Big Onion', 'onions': 'Big Onion',
    'coconut': 'Coconut', 'coconuts': 'Coconut',
    'dried chilli': 'Dried Chilli', 'chilli': 'Dried Chilli', 'chillies': 'Dried Chilli',
    'dried chillies': 'Dried Chilli',
    'green chilli': 'Green Chilli', 'green chillies': 'Green Chilli',
    'potato': 'Potato', 'potatoes': 'Potato',
    'red onion': 'Red Onion', 'red onions': 'Red Onion',
    'leeks': 'Leeks', 'leek': 'Leeks',
    'pepper': 'Pepper', 'peppers': 'Pepper',
}

TIMEFRAMES = [
    'today', 'tomorrow', 'next week', 'next month',
    'this week', 'this month', 'week', 'month',
]

TIMEFRAME_PATTERNS = [
    re.compile(r"in (\d+) days?"),
    re.compile(r"in (\d+) weeks?"),
    re.compile(r"(\d{1,2})/(\d{1,2})"),  # DD/MM or MM/DD
]

MARKETS = ['colombo', 'pettah', 'dambulla', 'kandy', 'galle', 'jaffna']

FOLLOW_UP_MARKERS = ['that', 'it', 'same', 'also', 'and', 'too', 'what about', 'how about']


def _compile_word_patterns(keywords: List[str]) -> re.Pattern:
    """
    Build a single compiled regex that matches any of the keywords
    on word boundaries, so "it" does not fire inside "italian".
    """
    escaped = [re.escape(kw) for kw in keywords]
    pattern = r"\b(?:" + "|".join(escaped) + r")\b"
    return re.compile(pattern, re.IGNORECASE)


_FOLLOW_UP_RE = _compile_word_patterns(FOLLOW_UP_MARKERS)


def is_follow_up(message: str) -> bool:
    """Heuristic: does the message lean on earlier turns ("what about ...", "same for it")?"""
    return bool(_FOLLOW_UP_RE.search(message))


def normalize_crop_name(crop: str) -> str:
    """Map a vocabulary entry to its canonical form; unknown names are capitalised."""
    canonical = CROP_CANONICAL_NAMES.get(crop.lower())
    if canonical:
        return canonical
    return crop[:1].upper() + crop[1:]


def _new_session_id() -> str:
    return f"session_{uuid4().hex}"


class ContextManager:
    """
    Manages a single session's conversation context:
    - Extracts crop / timeframe / market entities by vocabulary lookup
    - Remembers the last value seen for each entity (last write wins, no expiry)
    - Keeps the most recent turns, oldest dropped first
    - Resolves follow-up questions against remembered entities
    """

    def __init__(
        self,
        session_id: Optional[str] = None,
        max_history: Optional[int] = None,
        follow_up_detector: Optional[Callable[[str], bool]] = None,
    ):
        self.max_history = max_history or settings.MAX_HISTORY
        self.is_follow_up = follow_up_detector or is_follow_up
        self._context = ConversationContext(session_id=session_id or _new_session_id())

    # ------------------------------------------------------------------
    # Entity extraction
    # ------------------------------------------------------------------

    def extract_crop(self, message: str) -> Optional[str]:
        message_lower = message.lower()

        for crop in MULTI_WORD_CROPS:
            if crop in message_lower:
                return normalize_crop_name(crop)

        for crop in AVAILABLE_CROPS:
            if crop in message_lower:
                return normalize_crop_name(crop)

        return None

    def extract_timeframe(self, message: str) -> Optional[str]:
        """Return the first timeframe phrase or numeric pattern, as written."""
        message_lower = message.lower()

        for timeframe in TIMEFRAMES:
            if timeframe in message_lower:
                return timeframe

        for pattern in TIMEFRAME_PATTERNS:
            match = pattern.search(message_lower)
            if match:
                return match.group(0)

        return None

    def extract_market(self, message: str) -> Optional[str]:
        message_lower = message.lower()

        for market in MARKETS:
            if market in message_lower:
                return market

        return None

    # ------------------------------------------------------------------
    # Context updates
    # ------------------------------------------------------------------

    def update_context(self, message: str, intent: str, bot_response: str) -> None:
        """Remember entities found in the message and append the turn to history."""
        found = {
            "crop": self.extract_crop(message),
            "timeframe": self.extract_timeframe(message),
            "market": self.extract_market(message),
        }
        # Entities not mentioned this turn keep their previous value
        for key, value in found.items():
            if value:
                self._context.entities[key] = value

        self._context.conversation_history.append(HistoryEntry(
            user_message=message,
            bot_response=bot_response,
            intent=intent,
        ))

        if len(self._context.conversation_history) > self.max_history:
            self._context.conversation_history = self._context.conversation_history[-self.max_history:]

    def record_bot_response(self, bot_response: str) -> None:
        """Fill in the reply for the most recent turn."""
        if self._context.conversation_history:
            self._context.conversation_history[-1].bot_response = bot_response

    def resolve_entities(self, message: str, follow_up: Optional[bool] = None) -> ResolvedEntities:
        """
        Entities explicitly in the message win. On a follow-up ("what about
        next week?") the gaps are filled from memory.

        ``follow_up`` overrides the detector when the caller already knows
        the message continues an earlier turn.
        """
        explicit_crop = self.extract_crop(message)
        explicit_timeframe = self.extract_timeframe(message)
        explicit_market = self.extract_market(message)

        if follow_up is None:
            follow_up = self.is_follow_up(message)
        ctx = self._context

        return ResolvedEntities(
            crop=explicit_crop or (ctx.last_crop if follow_up else None),
            timeframe=explicit_timeframe or (ctx.last_timeframe if follow_up else None),
            market=explicit_market or (ctx.last_market if follow_up else None),
            from_context=follow_up and bool(ctx.last_crop or ctx.last_timeframe),
        )

    def get_missing_entities(self, required_entities: List[str]) -> List[str]:
        """Required entities with no remembered value (ignores the current turn)."""
        return [
            entity for entity in required_entities
            if entity in ("crop", "timeframe", "market") and not self._context.entities.get(entity)
        ]

    def store_prediction(self, prediction: Any) -> None:
        """Keep the latest prediction so it can be explained later."""
        self._context.last_prediction = prediction

    def get_last_prediction(self) -> Any:
        return self._context.last_prediction

    def get_history(self) -> List[HistoryEntry]:
        return list(self._context.conversation_history)

    @property
    def context(self) -> ConversationContext:
        return self._context

    @property
    def session_id(self) -> str:
        return self._context.session_id

    @property
    def last_crop(self) -> Optional[str]:
        return self._context.last_crop

    @property
    def last_timeframe(self) -> Optional[str]:
        return self._context.last_timeframe

    @property
    def last_market(self) -> Optional[str]:
        return self._context.last_market

    def clear_context(self) -> None:
        """Start over with a new session id and no memory."""
        self._context = ConversationContext(session_id=_new_session_id())

    # ------------------------------------------------------------------
    # Persistence hooks
    # ------------------------------------------------------------------

    def export_context(self) -> str:
        """Serialise the whole context; entities become ordered [key, value] pairs."""
        ctx = self._context
        payload = {
            "session_id": ctx.session_id,
            "last_crop": ctx.last_crop,
            "last_market": ctx.last_market,
            "last_timeframe": ctx.last_timeframe,
            "last_prediction": ctx.last_prediction,
            "conversation_history": [
                entry.model_dump(mode="json") for entry in ctx.conversation_history
            ],
            "entities": [[key, value] for key, value in ctx.entities.items()],
        }
        return json.dumps(payload, default=str)

    def import_context(self, context_data: str) -> bool:
        """
        Replace the context with a previously exported one.

        Invalid data is logged and leaves the current context untouched.
        Returns True on success.
        """
        try:
            parsed = json.loads(context_data)
            if not isinstance(parsed, dict):
                raise ValueError("context payload must be a JSON object")

            raw_entities = parsed.get("entities", [])
            if not isinstance(raw_entities, list):
                raise ValueError("entities must be a list of [key, value] pairs")

            entities = {}
            for pair in raw_entities:
                if not (
                    isinstance(pair, list)
                    and len(pair) == 2
                    and all(isinstance(part, str) and part for part in pair)
                ):
                    raise ValueError(f"Invalid entity pair: {pair!r}")
                entities[pair[0]] = pair[1]
            for key, field in (("crop", "last_crop"), ("market", "last_market"),
                               ("timeframe", "last_timeframe")):
                if parsed.get(field) and key not in entities:
                    entities[key] = parsed[field]

            history = [
                HistoryEntry.model_validate(entry)
                for entry in parsed.get("conversation_history", [])
            ]

            imported = ConversationContext(
                session_id=parsed["session_id"],
                entities=entities,
                last_prediction=parsed.get("last_prediction"),
                conversation_history=history[-self.max_history:],
            )
        except (ValueError, TypeError, KeyError, ValidationError) as e:
            logger.error(f"Failed to import context: {e}")
            return False

        self._context = imported
        logger.info(f"Imported context for session {imported.session_id}")
        return True
