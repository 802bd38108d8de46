"""Action Executor: performs the side effects a BotResponse asks for."""
import json
import time
import logging
from typing import Any, Optional

import httpx

from models.intent import ActionType, PREDICTION_ACTIONS
from models.action import ActionOutcome
from core.conversation_manager import ConversationManager, KEY_FACTORS, confidence_band
from integrations.prediction_api.client import PredictionClient

logger = logging.getLogger(__name__)

DASHBOARD_TEXT = "📊 Opening ML Dashboard..."


class ActionExecutor:
    """
    Caller side of the action contract.

    The conversation core only describes what should happen; this class
    calls the prediction API, stores the result in the session context for
    later explanations, and renders it. Failures still produce display text.
    """

    def __init__(self, prediction_client: PredictionClient):
        self.prediction_client = prediction_client

    async def execute(
        self,
        conversation_manager: ConversationManager,
        action_type: ActionType,
        action_data: Optional[Any] = None,
    ) -> ActionOutcome:
        if action_type == ActionType.SHOW_DASHBOARD:
            return ActionOutcome(
                action_type=action_type,
                success=True,
                text=DASHBOARD_TEXT,
                result={"view": "ml_dashboard"},
            )

        if action_type == ActionType.EXPLAIN:
            return self._explain(action_data)

        if action_type in PREDICTION_ACTIONS:
            return await self._predict(conversation_manager, action_type, action_data)

        raise ValueError(f"Unsupported action type: {action_type}")

    async def _predict(
        self,
        conversation_manager: ConversationManager,
        action_type: ActionType,
        action_data: Optional[Any],
    ) -> ActionOutcome:
        crop = action_data.get("crop") if isinstance(action_data, dict) else None
        if not crop:
            logger.error(f"Prediction action {action_type.value} without a crop: {action_data!r}")
            return ActionOutcome(
                action_type=action_type,
                success=False,
                text=conversation_manager.format_forecast_with_confidence(None, 0.0, "", action_type),
                error="A crop is required for predictions",
                error_code="invalid_arguments",
                retryable=False,
            )

        start_time = time.time()
        try:
            result = await self.prediction_client.predict(action_type, action_data)
        except Exception as e:
            retryable = _is_retryable(e)
            error_code = _classify_error(e)
            logger.error(
                f"Prediction {action_type.value} for {crop} failed "
                f"(code={error_code}, retryable={retryable}): {e}",
                exc_info=True,
            )
            return ActionOutcome(
                action_type=action_type,
                success=False,
                text=conversation_manager.format_forecast_with_confidence(None, 0.0, crop, action_type),
                error="The prediction service is unavailable. Please try again.",
                error_code=error_code,
                retryable=retryable,
            )

        execution_time_ms = int((time.time() - start_time) * 1000)
        logger.info(f"Prediction {action_type.value} for {crop} completed in {execution_time_ms}ms")

        stored = {**result, "action_type": action_type.value, "crop": crop}
        conversation_manager.context_manager.store_prediction(stored)

        return ActionOutcome(
            action_type=action_type,
            success=True,
            text=conversation_manager.format_forecast_with_confidence(
                result, result.get("confidence", 0.0), crop, action_type
            ),
            result=stored,
        )

    def _explain(self, prediction: Optional[Any]) -> ActionOutcome:
        if not isinstance(prediction, dict) or not prediction:
            return ActionOutcome(
                action_type=ActionType.EXPLAIN,
                success=False,
                text="I don't have a recent prediction to explain. Please make a prediction first, then ask why!",
                error="No prediction to explain",
                error_code="invalid_arguments",
            )

        return ActionOutcome(
            action_type=ActionType.EXPLAIN,
            success=True,
            text=explain_prediction(prediction),
            result=prediction,
        )


def explain_prediction(prediction: dict[str, Any]) -> str:
    """Templated explanation of a stored prediction."""
    crop = prediction.get("crop") or prediction.get("crop_type") or "this crop"
    kind = str(prediction.get("action_type", "predict_price")).replace("predict_", "")
    confidence = prediction.get("confidence")

    lines = [f"🔍 **Why this {kind} prediction for {crop}?**", "", "The model weighed:"]
    lines.extend(f"• {factor}" for factor in KEY_FACTORS)

    if isinstance(confidence, (int, float)) and not isinstance(confidence, bool):
        label, emoji = confidence_band(float(confidence))
        lines.extend(["", f"{emoji} Model confidence: {confidence * 100:.1f}% ({label})"])

    accuracy = prediction.get("model_accuracy")
    if isinstance(accuracy, dict) and isinstance(accuracy.get("r2_score"), (int, float)):
        lines.append(f"🎯 Model accuracy (R²): {accuracy['r2_score'] * 100:.2f}%")

    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_RETRYABLE_ERRORS = (
    ConnectionError,
    TimeoutError,
    OSError,
)


def _is_retryable(exc: Exception) -> bool:
    """Classify an exception as transient (retryable) or permanent."""
    if isinstance(exc, _RETRYABLE_ERRORS):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500 or exc.response.status_code == 429
    msg = str(exc).lower()
    return any(kw in msg for kw in ("timeout", "connection", "unreachable"))


def _classify_error(exc: Exception) -> str:
    """Return a machine-readable error code for the exception."""
    if isinstance(exc, TimeoutError):
        return "prediction_timeout"
    if isinstance(exc, (ConnectionError, OSError)):
        return "connection_error"
    if isinstance(exc, httpx.HTTPStatusError):
        return "prediction_http_error"
    if isinstance(exc, json.JSONDecodeError):
        return "parse_error"
    msg = str(exc).lower()
    if "timeout" in msg:
        return "prediction_timeout"
    if "connection" in msg or "unreachable" in msg:
        return "connection_error"
    if "json" in msg or "payload" in msg:
        return "parse_error"
    return "internal_error"
