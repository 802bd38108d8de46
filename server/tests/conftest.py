"""Shared test fixtures and configuration."""
import sys
import os

# Ensure the server package is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from core.context_manager import ContextManager
from core.conversation_manager import ConversationManager
from core.intent_engine import IntentEngine


@pytest.fixture(scope="session")
def intent_engine():
    """The catalog engine is stateless, so one instance serves every test."""
    return IntentEngine()


@pytest.fixture
def context_manager():
    return ContextManager(session_id="session_test")


@pytest.fixture
def conversation(context_manager, intent_engine):
    return ConversationManager(context_manager, intent_engine)
