"""API request schemas"""
from pydantic import BaseModel, Field, field_validator
from typing import Any, Optional

from models.intent import ActionType


class ChatMessageRequest(BaseModel):
    text: str = Field(..., max_length=2000)

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("text must not be blank")
        return v


class ExecuteActionRequest(BaseModel):
    """Action descriptor echoed back from a BotResponse"""
    action_type: ActionType
    action_data: Optional[Any] = None


class ResetSessionRequest(BaseModel):
    clear_context: bool = False


class ImportContextRequest(BaseModel):
    context: str = Field(..., max_length=200_000)
