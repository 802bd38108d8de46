"""
Shared singleton dependencies for the application.

The intent catalog (and its IDF table) and the prediction HTTP client are
created once at startup and shared. Conversation state is per session: each
session owns its own ContextManager + ConversationManager pair, so sessions
never share mutable state.
"""
import logging
import time
from typing import Optional

from config.settings import settings
from core.action_executor import ActionExecutor
from core.context_manager import ContextManager
from core.conversation_manager import ConversationManager
from core.intent_engine import IntentEngine
from integrations.prediction_api.client import PredictionClient

logger = logging.getLogger(__name__)


class ChatSession:
    """One user's conversation: entity memory plus dialog controller."""

    def __init__(self, context_manager: ContextManager, conversation_manager: ConversationManager):
        self.context_manager = context_manager
        self.conversation_manager = conversation_manager
        self.last_active = time.time()

    @property
    def session_id(self) -> str:
        return self.context_manager.session_id

    def touch(self) -> None:
        self.last_active = time.time()


class SessionRegistry:
    """
    In-process map of session id -> ChatSession.

    Idle sessions are evicted after ``idle_minutes``; when the registry is
    full the least recently used half is dropped.
    """

    def __init__(
        self,
        intent_engine: IntentEngine,
        max_sessions: Optional[int] = None,
        idle_minutes: Optional[int] = None,
    ):
        self.intent_engine = intent_engine
        self.max_sessions = max_sessions or settings.MAX_SESSIONS
        self.idle_seconds = (idle_minutes or settings.SESSION_IDLE_MINUTES) * 60
        self._sessions: dict[str, ChatSession] = {}

    def create(self, session_id: Optional[str] = None) -> ChatSession:
        self._evict()
        context_manager = ContextManager(session_id=session_id)
        session = ChatSession(
            context_manager=context_manager,
            conversation_manager=ConversationManager(context_manager, self.intent_engine),
        )
        self._sessions[session.session_id] = session
        logger.info(f"Created chat session {session.session_id}")
        return session

    def get(self, session_id: str) -> Optional[ChatSession]:
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if time.time() - session.last_active > self.idle_seconds:
            logger.info(f"Chat session {session_id} expired")
            del self._sessions[session_id]
            return None
        session.touch()
        return session

    def get_or_create(self, session_id: str) -> ChatSession:
        return self.get(session_id) or self.create(session_id)

    def rekey(self, old_session_id: str, session: ChatSession) -> None:
        """Re-register a session whose context (and id) was replaced or cleared."""
        self._sessions.pop(old_session_id, None)
        self._sessions[session.session_id] = session

    def remove(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)

    def _evict(self) -> None:
        now = time.time()
        stale = [
            sid for sid, s in self._sessions.items()
            if now - s.last_active > self.idle_seconds
        ]
        for sid in stale:
            del self._sessions[sid]

        if len(self._sessions) >= self.max_sessions:
            by_age = sorted(self._sessions, key=lambda sid: self._sessions[sid].last_active)
            for sid in by_age[: max(1, len(by_age) // 2)]:
                del self._sessions[sid]

        if stale:
            logger.info(f"Evicted {len(stale)} idle chat sessions")


# Module-level singletons, initialized once via init_dependencies()
_intent_engine: Optional[IntentEngine] = None
_prediction_client: Optional[PredictionClient] = None
_session_registry: Optional[SessionRegistry] = None
_action_executor: Optional[ActionExecutor] = None


def init_dependencies() -> None:
    """
    Initialize all shared singletons. Called once at application startup.
    """
    global _intent_engine, _prediction_client, _session_registry, _action_executor

    logger.info("Initializing shared dependencies...")

    _intent_engine = IntentEngine()
    _prediction_client = PredictionClient()
    _session_registry = SessionRegistry(_intent_engine)
    _action_executor = ActionExecutor(_prediction_client)

    logger.info(
        f"Dependencies initialized: {len(_intent_engine.intents)} intents, "
        f"prediction API at {_prediction_client.base_url}"
    )


async def shutdown_dependencies() -> None:
    """Clean up resources on shutdown."""
    global _prediction_client
    if _prediction_client:
        await _prediction_client.close()
        _prediction_client = None
        logger.info("PredictionClient closed")


def get_intent_engine() -> IntentEngine:
    if _intent_engine is None:
        raise RuntimeError("Dependencies not initialized. Call init_dependencies() first.")
    return _intent_engine


def get_session_registry() -> SessionRegistry:
    if _session_registry is None:
        raise RuntimeError("Dependencies not initialized. Call init_dependencies() first.")
    return _session_registry


def get_action_executor() -> ActionExecutor:
    if _action_executor is None:
        raise RuntimeError("Dependencies not initialized. Call init_dependencies() first.")
    return _action_executor
