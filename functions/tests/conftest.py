"""Pytest configuration and shared fixtures for SiteLedger tests."""

import os
import sys
import random
import pytest
from unittest.mock import AsyncMock, MagicMock, patch


# ============================================================================
# Ensure local imports work (agents/, models/, services/, config/)
# ============================================================================
#
# The codebase uses absolute imports like `from models...` / `from agents...`.
# This guarantees that `functions/` is importable as the top-level module root.
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


# ============================================================================
# LLM Mocks
# ============================================================================

@pytest.fixture
def mock_ai_message():
    """Factory for ChatOpenAI-style replies."""
    def _make(content="Mock response content", tool_calls=None, invalid_tool_calls=None, tokens=100):
        return MagicMock(
            content=content,
            tool_calls=tool_calls or [],
            invalid_tool_calls=invalid_tool_calls or [],
            response_metadata={"token_usage": {"total_tokens": tokens}}
        )
    return _make


@pytest.fixture
def mock_chat_openai(mock_ai_message):
    """Mock ChatOpenAI client.

    bind_tools returns the same mock so tool and non-tool calls share
    ``ainvoke``.
    """
    mock = MagicMock()
    mock.ainvoke = AsyncMock(return_value=mock_ai_message())
    mock.bind_tools.return_value = mock
    return mock


@pytest.fixture
def mock_llm_service(mock_chat_openai):
    """LLMService with a mocked ChatOpenAI client."""
    from services.llm_service import LLMService

    service = LLMService(api_key="test-api-key")
    service._client = mock_chat_openai
    return service


@pytest.fixture
def mock_remote_client():
    """Remote model client double exposing only ``chat``."""
    client = MagicMock()
    client.chat = AsyncMock()
    return client


# ============================================================================
# Estimator Fixtures
# ============================================================================

class FixedRandom:
    """Random source that always returns the same value."""

    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture
def fixed_random():
    """Factory for a random source pinned to one value in [0, 1)."""
    return FixedRandom


@pytest.fixture
def seeded_random():
    """Deterministic random.Random instance."""
    return random.Random(1234)


# ============================================================================
# Environment Setup
# ============================================================================

@pytest.fixture(autouse=True)
def mock_settings():
    """Mock settings seen by the LLM service for all tests."""
    with patch('services.llm_service.settings') as mock:
        mock.openai_api_key = "test-api-key"
        mock.llm_model = "gpt-4o"
        mock.llm_temperature = 0.1
        mock.llm_timeout_seconds = 60
        mock.log_level = "INFO"
        yield mock
