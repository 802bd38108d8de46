"""API response schemas"""
from pydantic import BaseModel
from typing import Optional, List

from models.action import BotResponse, ActionOutcome, ConversationState


class SessionResponse(BaseModel):
    session_id: str


class ChatTurnResponse(BaseModel):
    session_id: str
    response: BotResponse
    state: ConversationState


class ActionExecutionResponse(BaseModel):
    session_id: str
    outcome: ActionOutcome


class ContextExportResponse(BaseModel):
    session_id: str
    context: str


class IntentSummary(BaseModel):
    name: str
    display_name: str
    keywords: List[str]
    weight: float
    action: Optional[str] = None


class IntentCatalogResponse(BaseModel):
    intents: List[IntentSummary]


class ErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None
