"""Prediction API client: price, demand and yield models served over HTTP."""
import httpx
import re
from datetime import date, timedelta
from typing import Any, Optional
from config.settings import settings
from models.intent import ActionType
import logging

logger = logging.getLogger(__name__)

_IN_DAYS_RE = re.compile(r"in (\d+) days?")
_IN_WEEKS_RE = re.compile(r"in (\d+) weeks?")

_TIMEFRAME_OFFSETS = {
    "today": 0,
    "tomorrow": 1,
    "this week": 3,
    "week": 7,
    "next week": 7,
    "this month": 15,
    "month": 30,
    "next month": 30,
}

# Defaults sent when the conversation gives us nothing more specific
DEFAULT_SUPPLY = 1000.0
DEFAULT_DEMAND = 1200.0
DEFAULT_MARKET_TREND = "stable"
DEFAULT_YIELD_INPUTS = {
    "rainfall": 1500.0,
    "temperature": 27.0,
    "soil_quality": "good",
    "fertilizer": 200.0,
    "irrigation": True,
}


def resolve_target_date(timeframe: Optional[str], today: Optional[date] = None) -> date:
    """Turn a conversational timeframe ("next week", "in 3 days") into a date."""
    today = today or date.today()
    if not timeframe:
        return today

    text = timeframe.lower().strip()
    if text in _TIMEFRAME_OFFSETS:
        return today + timedelta(days=_TIMEFRAME_OFFSETS[text])

    match = _IN_DAYS_RE.search(text)
    if match:
        return today + timedelta(days=int(match.group(1)))

    match = _IN_WEEKS_RE.search(text)
    if match:
        return today + timedelta(weeks=int(match.group(1)))

    # Bare dates like 12/05 are ambiguous between DD/MM and MM/DD
    return today


def get_season(month: int) -> str:
    """Sri Lankan monsoon season for a calendar month (1-12)."""
    if 3 <= month <= 5:
        return "first_inter_monsoon"
    if 6 <= month <= 9:
        return "southwest_monsoon"
    if 10 <= month <= 11:
        return "second_inter_monsoon"
    return "northeast_monsoon"


class PredictionClient:
    """Thin async wrapper around the ML prediction endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_s: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.PREDICTION_API_BASE).rstrip("/")
        self.timeout_s = timeout_s or settings.PREDICTION_TIMEOUT
        self.client = httpx.AsyncClient(timeout=float(self.timeout_s), transport=transport)

    async def predict(self, action_type: ActionType, arguments: dict[str, Any]) -> dict[str, Any]:
        """Run the prediction described by a conversation action descriptor."""
        crop = arguments["crop"]
        timeframe = arguments.get("timeframe")
        market = arguments.get("market")

        if action_type == ActionType.PREDICT_PRICE:
            return await self.predict_price(crop, timeframe, market)
        if action_type == ActionType.PREDICT_DEMAND:
            return await self.predict_demand(crop, timeframe)
        if action_type == ActionType.PREDICT_YIELD:
            return await self.predict_yield(crop)
        raise ValueError(f"{action_type} is not a prediction action")

    async def predict_price(
        self,
        crop: str,
        timeframe: Optional[str] = None,
        market: Optional[str] = None,
    ) -> dict[str, Any]:
        target = resolve_target_date(timeframe)
        payload = {
            "crop_type": crop,
            "season": get_season(target.month),
            "supply": DEFAULT_SUPPLY,
            "demand": DEFAULT_DEMAND,
            "market_trend": DEFAULT_MARKET_TREND,
        }
        if market:
            payload["market"] = market
        return await self._post("/predict/price/", payload)

    async def predict_demand(self, crop: str, timeframe: Optional[str] = None) -> dict[str, Any]:
        target = resolve_target_date(timeframe)
        payload = {"crop_type": crop, "year": target.year, "month": target.month}
        return await self._post("/predict/demand/", payload)

    async def predict_yield(self, crop: str) -> dict[str, Any]:
        payload = {"crop_type": crop, **DEFAULT_YIELD_INPUTS}
        return await self._post("/predict/yield/", payload)

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = await self.client.post(url, json=payload)
            response.raise_for_status()
            result = response.json()
        except httpx.TimeoutException:
            logger.error(f"Prediction request to {path} timed out after {self.timeout_s}s")
            raise TimeoutError(f"Prediction request timed out after {self.timeout_s}s")
        except httpx.TransportError as e:
            logger.error(f"Prediction API unreachable ({path}): {e}")
            raise ConnectionError(f"Prediction API unreachable: {e}")

        if not isinstance(result, dict):
            raise ValueError(f"Unexpected prediction payload from {path}")
        logger.info(f"Prediction {path} for {payload.get('crop_type')} succeeded")
        return result

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()
