"""Conversation Manager: confidence-tiered dialog controller."""
import logging
import re
from typing import Any, List, Optional

from models.intent import ActionType, Intent, IntentMatch, PREDICTION_ACTIONS
from models.action import BotResponse, ConversationState
from core.context_manager import ContextManager, AVAILABLE_CROPS, MARKETS
from core.intent_catalog import get_intent_display_name
from core.intent_engine import IntentEngine
from config.settings import settings

logger = logging.getLogger(__name__)

_ACKNOWLEDGEMENT_RE = re.compile(r"^(yes|yeah|yep|sure|ok|okay|no|nope)\s*$", re.IGNORECASE)

UNKNOWN_INTENT_TEXT = (
    "I didn't quite understand that. 🤔\n\n"
    "I can help with:\n"
    "📊 Price predictions\n"
    "🌾 Yield forecasting\n"
    "📈 Demand analysis\n"
    "💡 Market insights\n\n"
    'Type "help" to see examples!'
)

LOW_CONFIDENCE_TEXT = (
    "I'm not quite sure what you're asking. Here are some things I can help with:\n\n"
    '• **Price Predictions**: "What will tomato price be next week?"\n'
    '• **Yield Forecasting**: "What yield for carrots?"\n'
    '• **Demand Analysis**: "What\'s the demand for potatoes?"\n'
    '• **Explanations**: "Why is the price increasing?"\n'
    '• **Market Info**: "Show me market trends"\n\n'
    "Try asking in a different way! 😊"
)

GIVE_UP_TEXT = (
    "I still couldn't work out which crop you mean, so let's try something else. 🌱\n\n"
    + LOW_CONFIDENCE_TEXT
)

UNCERTAINTY_NOTE = "\n\n💡 (If this isn't what you meant, try rephrasing your question)"

KEY_FACTORS = (
    "Seasonal patterns",
    "Current supply-demand balance",
    "Recent price trends",
)


class ConversationManager:
    """
    Per-session dialog controller.

    Classifies each message, picks a strategy from the confidence tier,
    resolves entities through the ContextManager and describes (never
    performs) the external action the caller should run.
    """

    def __init__(
        self,
        context_manager: ContextManager,
        intent_engine: Optional[IntentEngine] = None,
    ):
        self.context_manager = context_manager
        self.intent_engine = intent_engine or IntentEngine()
        self.state = ConversationState()

    def process_message(self, message: str) -> BotResponse:
        """Produce the response for one user turn. Never raises."""
        try:
            matches = self.intent_engine.detect_intents(message, settings.DETECTION_THRESHOLD)

            if not matches:
                resumed = self._resume_pending_intent(message)
                if resumed is not None:
                    return resumed
                return self._handle_unknown_intent(message)

            best = matches[0]
            logger.info(
                f"Best intent for session {self.context_manager.session_id}: "
                f"{best.intent.name.value} ({best.confidence:.2f})"
            )

            if best.confidence >= settings.HIGH_CONFIDENCE:
                return self._handle_high_confidence_intent(best, message)
            if best.confidence >= settings.MEDIUM_CONFIDENCE:
                return self._handle_medium_confidence_intent(best, matches, message)
            return self._handle_low_confidence_intent(best)

        except Exception as e:
            logger.error(f"Error processing message: {e}", exc_info=True)
            return BotResponse(text=UNKNOWN_INTENT_TEXT, confidence=0.0)

    # ------------------------------------------------------------------
    # Confidence tiers
    # ------------------------------------------------------------------

    def _handle_high_confidence_intent(self, match: IntentMatch, message: str) -> BotResponse:
        intent = match.intent

        # Context is recorded whether or not the intent can be completed
        self.context_manager.update_context(message, intent.name.value, "")
        response = self._dispatch(intent, match, message)
        self.context_manager.record_bot_response(response.text)
        return response

    def _dispatch(self, intent: Intent, match: IntentMatch, message: str) -> BotResponse:
        if intent.action in PREDICTION_ACTIONS:
            return self._handle_prediction_intent(intent, message)

        if intent.action == ActionType.EXPLAIN:
            return self._handle_explanation_intent()

        if intent.action == ActionType.SHOW_DASHBOARD:
            return BotResponse(
                text=intent.response,
                confidence=match.confidence,
                requires_action=True,
                action_type=ActionType.SHOW_DASHBOARD,
            )

        return BotResponse(text=intent.response, confidence=match.confidence)

    def _handle_medium_confidence_intent(
        self,
        match: IntentMatch,
        all_matches: List[IntentMatch],
        message: str,
    ) -> BotResponse:
        top_matches = [
            m for m in all_matches if m.confidence >= settings.DISAMBIGUATION_THRESHOLD
        ][:3]

        if len(top_matches) > 1:
            options = "\n".join(
                f"{i}. {get_intent_display_name(m.intent.name)}"
                for i, m in enumerate(top_matches, start=1)
            )
            return BotResponse(
                text=(
                    "I'm not entirely sure what you're asking about. Did you want to:\n"
                    f"{options}\n\nPlease clarify!"
                ),
                confidence=match.confidence,
                suggested_responses=[m.intent.response.split("\n")[0] for m in top_matches],
            )

        response = self._handle_high_confidence_intent(match, message)
        response = response.model_copy(update={"text": response.text + UNCERTAINTY_NOTE})
        self.context_manager.record_bot_response(response.text)
        return response

    def _handle_low_confidence_intent(self, match: IntentMatch) -> BotResponse:
        return BotResponse(text=LOW_CONFIDENCE_TEXT, confidence=match.confidence)

    def _resume_pending_intent(self, message: str) -> Optional[BotResponse]:
        """Answer to a crop prompt: a bare crop name completes the pending prediction."""
        if self.state.waiting_for != "crop" or self.state.pending_intent is None:
            return None
        if not self.context_manager.extract_crop(message):
            return None

        intent = self.intent_engine.get_intent_by_name(self.state.pending_intent.value)
        if intent is None:
            return None

        logger.info(f"Resuming pending {intent.name.value} with crop from reply")
        self.context_manager.update_context(message, intent.name.value, "")
        # The reply continues the prompting turn, so its timeframe and market carry over
        response = self._handle_prediction_intent(intent, message, resuming=True)
        self.context_manager.record_bot_response(response.text)
        return response

    def _handle_unknown_intent(self, message: str) -> BotResponse:
        if _ACKNOWLEDGEMENT_RE.match(message.strip()):
            return BotResponse(text="Got it! What would you like to know?", confidence=0.5)

        return BotResponse(text=UNKNOWN_INTENT_TEXT, confidence=0.0)

    # ------------------------------------------------------------------
    # Intent handlers
    # ------------------------------------------------------------------

    def _handle_prediction_intent(
        self,
        intent: Intent,
        message: str,
        resuming: bool = False,
    ) -> BotResponse:
        entities = self.context_manager.resolve_entities(
            message, follow_up=True if resuming else None
        )

        if not entities.crop:
            limit = settings.MAX_CLARIFICATION_ATTEMPTS
            if limit and self.state.clarification_attempts >= limit:
                logger.info(
                    f"Giving up on crop clarification after {self.state.clarification_attempts} attempts"
                )
                self.reset_state()
                return BotResponse(text=GIVE_UP_TEXT, confidence=0.5)

            self.state.waiting_for = "crop"
            self.state.pending_intent = intent.action
            self.state.clarification_attempts += 1
            return self.ask_for_missing_entity("crop")

        self.reset_state()
        prediction_type = intent.action.value.replace("predict_", "")
        memory_note = "(Using context from previous conversation)" if entities.from_context else ""

        return BotResponse(
            text=f"🤖 Analyzing {prediction_type} prediction for {entities.crop}...\n\n{memory_note}",
            confidence=0.95,
            requires_action=True,
            action_type=intent.action,
            action_data={
                "crop": entities.crop,
                "timeframe": entities.timeframe or settings.DEFAULT_TIMEFRAME,
                "market": entities.market or settings.DEFAULT_MARKET,
            },
        )

    def _handle_explanation_intent(self) -> BotResponse:
        last_prediction = self.context_manager.get_last_prediction()

        if not last_prediction:
            return BotResponse(
                text="I don't have a recent prediction to explain. Please make a prediction first, then ask why!",
                confidence=0.9,
            )

        return BotResponse(
            text="Let me explain the factors behind this prediction...",
            confidence=0.9,
            requires_action=True,
            action_type=ActionType.EXPLAIN,
            action_data=last_prediction,
        )

    def ask_for_missing_entity(self, entity_type: str) -> BotResponse:
        """Clarification prompt with quick replies for a missing entity."""
        if entity_type == "crop":
            examples = ", ".join(AVAILABLE_CROPS[::2][:6])
            return BotResponse(
                text=f"Which crop are you interested in? 🌾\n\nAvailable: {examples}, etc.",
                confidence=0.8,
                suggested_responses=["Tomato", "Carrot", "Potato", "Onion"],
            )
        if entity_type == "timeframe":
            return BotResponse(
                text="For which time period? 📅\n\nExamples: tomorrow, next week, next month",
                confidence=0.8,
                suggested_responses=["Next week", "Tomorrow", "Next month"],
            )
        if entity_type == "market":
            markets = MARKETS[:4]
            return BotResponse(
                text=f"Which market location? 📍\n\nAvailable: {', '.join(markets)}",
                confidence=0.8,
                suggested_responses=[m.capitalize() for m in markets],
            )
        raise ValueError(f"Unknown entity type: {entity_type}")

    # ------------------------------------------------------------------
    # Result presentation
    # ------------------------------------------------------------------

    def format_prediction_with_confidence(
        self,
        prediction: Any,
        model_confidence: float,
        crop: str,
    ) -> str:
        """Render a price prediction with wording scaled to the model's confidence."""
        model_confidence = _as_confidence(model_confidence)
        confidence_text, emoji = confidence_band(model_confidence)
        price = _format_number(prediction, "predicted_price")

        return (
            f"{emoji} **AI Prediction for {_crop_label(crop)}**\n\n"
            f"💰 Predicted Price: **Rs. {price}** per kg\n"
            f"📊 Confidence: **{model_confidence * 100:.1f}%** ({confidence_text})\n\n"
            f"Key Factors:\n"
            f"{_key_factors()}\n"
            f"{_uncertainty_note(model_confidence, confidence_text)}\n\n"
            '💡 Want to know why? Ask "Why is this the price?" or "Explain this prediction"'
        )

    def format_forecast_with_confidence(
        self,
        prediction: Any,
        model_confidence: float,
        crop: str,
        action_type: ActionType,
    ) -> str:
        """Demand / yield counterpart of format_prediction_with_confidence."""
        if action_type == ActionType.PREDICT_PRICE:
            return self.format_prediction_with_confidence(prediction, model_confidence, crop)

        if action_type == ActionType.PREDICT_DEMAND:
            label, field, icon = "Predicted Demand", "predicted_demand", "📈"
        elif action_type == ActionType.PREDICT_YIELD:
            label, field, icon = "Predicted Yield", "predicted_yield", "🌾"
        else:
            raise ValueError(f"{action_type} is not a prediction action")

        model_confidence = _as_confidence(model_confidence)
        confidence_text, emoji = confidence_band(model_confidence)
        value = _format_number(prediction, field)
        unit = prediction.get("unit", "kg") if isinstance(prediction, dict) else "kg"

        return (
            f"{emoji} **AI Forecast for {_crop_label(crop)}**\n\n"
            f"{icon} {label}: **{value}** {unit}\n"
            f"📊 Confidence: **{model_confidence * 100:.1f}%** ({confidence_text})\n\n"
            f"Key Factors:\n"
            f"{_key_factors()}\n"
            f"{_uncertainty_note(model_confidence, confidence_text)}"
        )

    def reset_state(self) -> None:
        """Forget any pending clarification. Entity memory is left alone."""
        self.state = ConversationState()


def confidence_band(model_confidence: float) -> tuple[str, str]:
    """Qualitative label and emoji for a model confidence in [0, 1]."""
    if model_confidence >= 0.95:
        return "High confidence", "🎯"
    if model_confidence >= 0.85:
        return "Good confidence", "✅"
    if model_confidence >= 0.70:
        return "Moderate confidence", "⚠️"
    return "Lower confidence - treat as estimate", "📊"


def _as_confidence(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _uncertainty_note(model_confidence: float, confidence_text: str) -> str:
    if model_confidence >= 0.85:
        return ""
    return (
        f"\n\n⚠️ **Note**: This prediction has {confidence_text.lower()}. "
        "Market conditions can vary."
    )


def _crop_label(crop: Optional[str]) -> str:
    label = crop or "your crop"
    return label[:1].upper() + label[1:]


def _key_factors() -> str:
    return "\n".join(f"• {factor}" for factor in KEY_FACTORS)


def _format_number(payload: Any, field: str) -> str:
    """Two-decimal rendering of a numeric payload field, "N/A" when unusable."""
    if not isinstance(payload, dict):
        return "N/A"
    value = payload.get(field)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return "N/A"
    return f"{value:.2f}"
