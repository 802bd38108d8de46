"""Chat API routes: one conversational turn per request, plus session housekeeping."""
from fastapi import APIRouter, HTTPException, status
import logging

from api.schemas.request_schemas import (
    ChatMessageRequest,
    ExecuteActionRequest,
    ImportContextRequest,
    ResetSessionRequest,
)
from api.schemas.response_schemas import (
    ActionExecutionResponse,
    ChatTurnResponse,
    ContextExportResponse,
    ErrorResponse,
    IntentCatalogResponse,
    IntentSummary,
    SessionResponse,
)
from core.dependencies import (
    ChatSession,
    get_action_executor,
    get_intent_engine,
    get_session_registry,
)
from core.intent_catalog import get_intent_display_name

logger = logging.getLogger(__name__)
router = APIRouter()

_NOT_FOUND = {404: {"model": ErrorResponse}}


def _require_session(session_id: str) -> ChatSession:
    session = get_session_registry().get(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Chat session not found or expired",
        )
    return session


# ---------------------------------------------------------------------------
# Catalog discovery
# ---------------------------------------------------------------------------

@router.get("/intents", response_model=IntentCatalogResponse)
async def list_intents():
    """List the intents the assistant recognises, in catalog order."""
    engine = get_intent_engine()
    return IntentCatalogResponse(
        intents=[
            IntentSummary(
                name=intent.name.value,
                display_name=get_intent_display_name(intent.name),
                keywords=list(intent.keywords),
                weight=intent.weight,
                action=intent.action.value if intent.action else None,
            )
            for intent in engine.intents
        ]
    )


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

@router.post("/sessions", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session():
    session = get_session_registry().create()
    return SessionResponse(session_id=session.session_id)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT, responses=_NOT_FOUND)
async def end_session(session_id: str):
    if not get_session_registry().remove(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat session not found")


@router.post("/sessions/{session_id}/messages", response_model=ChatTurnResponse)
async def send_message(session_id: str, request: ChatMessageRequest):
    """
    Process one user turn.

    Unknown session ids start a new session under that id, so a client can
    keep using an id across server restarts.
    """
    session = get_session_registry().get_or_create(session_id)
    manager = session.conversation_manager

    # process_message never raises; it falls back to the capability menu
    response = manager.process_message(request.text)

    return ChatTurnResponse(
        session_id=session.session_id,
        response=response,
        state=manager.state,
    )


@router.post("/sessions/{session_id}/actions", response_model=ActionExecutionResponse, responses=_NOT_FOUND)
async def execute_action(session_id: str, request: ExecuteActionRequest):
    """Run the action a previous turn asked for and return display text."""
    session = _require_session(session_id)

    try:
        outcome = await get_action_executor().execute(
            session.conversation_manager,
            request.action_type,
            request.action_data,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except Exception as e:
        logger.error(f"Error executing action {request.action_type.value}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to execute action. Please try again.",
        )

    return ActionExecutionResponse(session_id=session.session_id, outcome=outcome)


@router.post("/sessions/{session_id}/reset", response_model=SessionResponse, responses=_NOT_FOUND)
async def reset_session(session_id: str, request: ResetSessionRequest):
    """Drop any pending clarification; optionally wipe entity memory too."""
    session = _require_session(session_id)
    session.conversation_manager.reset_state()

    if request.clear_context:
        session.context_manager.clear_context()
        get_session_registry().rekey(session_id, session)

    return SessionResponse(session_id=session.session_id)


# ---------------------------------------------------------------------------
# Context persistence
# ---------------------------------------------------------------------------

@router.get("/sessions/{session_id}/context", response_model=ContextExportResponse, responses=_NOT_FOUND)
async def export_context(session_id: str):
    session = _require_session(session_id)
    return ContextExportResponse(
        session_id=session.session_id,
        context=session.context_manager.export_context(),
    )


@router.put("/sessions/{session_id}/context", response_model=SessionResponse, responses=_NOT_FOUND)
async def import_context(session_id: str, request: ImportContextRequest):
    """Restore an exported context. The session id follows the imported blob."""
    session = _require_session(session_id)

    if not session.context_manager.import_context(request.context):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Invalid context payload; previous context kept",
        )

    get_session_registry().rekey(session_id, session)
    return SessionResponse(session_id=session.session_id)
