"""Health check routes"""
from fastapi import APIRouter
import logging

from core.dependencies import get_intent_engine, get_session_registry

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check"""
    return {"status": "ok", "service": "agrimarket-assistant"}


@router.get("/health/assistant")
async def assistant_health():
    """Report whether the intent catalog is loaded and how many sessions are live"""
    try:
        engine = get_intent_engine()
        registry = get_session_registry()
    except RuntimeError as e:
        logger.error(f"Assistant health check failed: {e}")
        return {
            "status": "error",
            "message": "Assistant dependencies are not initialized",
        }

    return {
        "status": "ok",
        "assistant": {
            "intents": len(engine.intents),
            "keyword_tokens": len(engine.idf_scores),
            "active_sessions": len(registry),
        },
    }
