"""Intent data models"""
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class IntentName(str, Enum):
    """Every conversational purpose the assistant recognises."""
    PREDICT_PRICE = "predict_price"
    PREDICT_YIELD = "predict_yield"
    PREDICT_DEMAND = "predict_demand"
    EXPLAIN_PREDICTION = "explain_prediction"
    GREETING = "greeting"
    HELP = "help"
    BROWSE_PRODUCTS = "browse_products"
    MARKET_TRENDS = "market_trends"
    QUALITY_INFO = "quality_info"
    ORDER_INFO = "order_info"
    FARMER_REGISTRATION = "farmer_registration"
    GRATITUDE = "gratitude"
    FAREWELL = "farewell"
    MODEL_ACCURACY = "model_accuracy"
    SHOW_DASHBOARD = "show_dashboard"


class ActionType(str, Enum):
    """Side-effecting operations the caller performs on the assistant's behalf."""
    PREDICT_PRICE = "predict_price"
    PREDICT_YIELD = "predict_yield"
    PREDICT_DEMAND = "predict_demand"
    EXPLAIN = "explain"
    SHOW_DASHBOARD = "show_dashboard"


PREDICTION_ACTIONS = frozenset({
    ActionType.PREDICT_PRICE,
    ActionType.PREDICT_YIELD,
    ActionType.PREDICT_DEMAND,
})


class Intent(BaseModel):
    """Catalog entry describing one intent"""
    model_config = ConfigDict(frozen=True)

    name: IntentName
    keywords: tuple[str, ...]
    weight: float = Field(gt=0)  # importance multiplier
    response: str
    required_entities: tuple[str, ...] = ()
    action: Optional[ActionType] = None


class IntentMatch(BaseModel):
    """Result of scoring one message against one intent"""
    intent: Intent
    confidence: float = Field(ge=0.0, le=1.0)
    matched_keywords: list[str] = []
