"""Conversation context data models"""
from pydantic import BaseModel, Field
from typing import Any, Optional
from datetime import datetime, timezone


class HistoryEntry(BaseModel):
    """One user/bot exchange"""
    user_message: str
    bot_response: str
    intent: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ConversationContext(BaseModel):
    """Per-session entity memory and bounded history.

    ``entities`` is the single store for remembered values; the named
    ``last_*`` accessors read from it.
    """
    session_id: str
    entities: dict[str, str] = {}
    last_prediction: Optional[Any] = None
    conversation_history: list[HistoryEntry] = []

    @property
    def last_crop(self) -> Optional[str]:
        return self.entities.get("crop")

    @property
    def last_timeframe(self) -> Optional[str]:
        return self.entities.get("timeframe")

    @property
    def last_market(self) -> Optional[str]:
        return self.entities.get("market")


class ResolvedEntities(BaseModel):
    """Entities for the current turn, merged with memory on follow-ups"""
    crop: Optional[str] = None
    timeframe: Optional[str] = None
    market: Optional[str] = None
    from_context: bool = False
