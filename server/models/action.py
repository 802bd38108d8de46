"""Bot response, dialog state and action outcome models"""
from pydantic import BaseModel
from typing import Optional, Any, Literal

from models.intent import ActionType

EntityType = Literal["crop", "timeframe", "market", "confirmation"]


class ConversationState(BaseModel):
    """Dialog progression across turns"""
    waiting_for: Optional[EntityType] = None
    pending_intent: Optional[ActionType] = None
    clarification_attempts: int = 0


class BotResponse(BaseModel):
    """Output of one conversational turn"""
    text: str
    confidence: float
    requires_action: bool = False
    action_type: Optional[ActionType] = None
    action_data: Optional[Any] = None
    suggested_responses: Optional[list[str]] = None


class ActionOutcome(BaseModel):
    """Result of the caller executing an action descriptor"""
    action_type: ActionType
    success: bool
    text: str
    result: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    retryable: bool = False
