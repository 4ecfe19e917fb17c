"""
Pytest configuration and shared fixtures for backend tests.

WHAT: Centralized test configuration with component markers
WHY: Enable test organization, filtering, and shared test utilities
HOW: Define pytest markers, reset process-wide singletons, provide fake collaborators
"""

import pytest

from quicksupply.core.config import settings
from quicksupply.core.workspace_manager import reset_workspace_manager
from quicksupply.llm.provider_factory import reset_provider
from quicksupply.persistence.store_factory import reset_store
from quicksupply.services.ai_assistant import SupplierAssistant
from quicksupply.services.workspace import Workspace

from tests.fixtures.fake_store import FakeStore
from tests.fixtures.mock_llm import MockLLMProvider
from tests.fixtures.sample_records import FALLBACK


def pytest_configure(config):
    """Register custom markers for test components."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (isolated component tests)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (multiple components)"
    )
    config.addinivalue_line(
        "markers", "reconciler: Directory state reconciler tests"
    )
    config.addinivalue_line(
        "markers", "navigation: View navigation state machine tests"
    )
    config.addinivalue_line(
        "markers", "persistence: Store backends and row mapping tests"
    )
    config.addinivalue_line(
        "markers", "llm: LLM provider and assistant tests"
    )
    config.addinivalue_line(
        "markers", "api: FastAPI endpoint tests"
    )


@pytest.fixture(autouse=True)
def reset_singletons():
    """
    Reset provider, store and workspace registry singletons around each test.

    WHAT: Clear process-wide caches between tests
    WHY: Prevent test pollution and ensure clean state
    HOW: Call the reset helpers before and after each test
    """
    reset_provider()
    reset_store()
    reset_workspace_manager()
    yield
    reset_provider()
    reset_store()
    reset_workspace_manager()


@pytest.fixture(autouse=True)
def fast_settings(monkeypatch):
    """Short store timeout and no retry backoff."""
    monkeypatch.setattr(settings, "STORE_TIMEOUT", 2.0)
    monkeypatch.setattr(settings, "LLM_RETRY_DELAY", 0)
    monkeypatch.setattr(settings, "AI_MATCH_LIMIT", 3)


@pytest.fixture
def fake_store():
    """Empty in-memory store."""
    return FakeStore()


@pytest.fixture
def mock_provider():
    """LLM provider with a single canned reply."""
    return MockLLMProvider()


@pytest.fixture
def assistant(mock_provider):
    return SupplierAssistant(provider=mock_provider)


@pytest.fixture
def workspace(fake_store, assistant):
    """Workspace over the fake store and the small fallback dataset."""
    return Workspace("ws-test", fake_store, assistant, fallback=FALLBACK)
