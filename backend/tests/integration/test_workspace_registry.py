"""
Workspace registry tests.

WHAT: Test in-memory workspace storage, lookup and idle expiry
WHY: Abandoned tabs must be evicted without touching active ones
HOW: WorkspaceManager with a fake factory; cleanup driven with an explicit clock
"""

from datetime import datetime, timedelta

import pytest

from quicksupply.core.workspace_manager import (
    WorkspaceManager, get_workspace_manager, reset_workspace_manager,
)
from quicksupply.services.ai_assistant import SupplierAssistant
from quicksupply.services.workspace import Workspace
from quicksupply.utils.exceptions import WorkspaceNotFoundException

from tests.fixtures.fake_store import FakeStore
from tests.fixtures.mock_llm import MockLLMProvider
from tests.fixtures.sample_records import FALLBACK


@pytest.fixture
def manager():
    store = FakeStore()
    assistant = SupplierAssistant(MockLLMProvider())
    manager = WorkspaceManager(
        workspace_factory=lambda wid: Workspace(wid, store, assistant, fallback=FALLBACK),
        ttl_minutes=30,
        start_cleanup=False,
    )
    yield manager
    manager.stop()


@pytest.mark.integration
class TestRegistry:
    """Test create/get/delete."""

    def test_create_registers_unique_ids(self, manager):
        first = manager.create()
        second = manager.create()

        assert first.id != second.id
        assert len(manager) == 2
        assert manager.get(first.id) is first

    def test_get_unknown(self, manager):
        with pytest.raises(WorkspaceNotFoundException) as exc_info:
            manager.get("missing")

        assert exc_info.value.code == "WORKSPACE_NOT_FOUND"

    def test_delete(self, manager):
        workspace = manager.create()

        manager.delete(workspace.id)

        assert len(manager) == 0
        with pytest.raises(WorkspaceNotFoundException):
            manager.delete(workspace.id)

    def test_get_marks_active(self, manager):
        workspace = manager.create()
        workspace.last_active = datetime.utcnow() - timedelta(hours=1)

        manager.get(workspace.id)

        assert datetime.utcnow() - workspace.last_active < timedelta(minutes=1)

    def test_clear(self, manager):
        manager.create()
        manager.create()

        manager.clear()

        assert len(manager) == 0


@pytest.mark.integration
class TestExpiry:
    """Test idle workspace cleanup."""

    def test_idle_workspaces_removed(self, manager):
        idle = manager.create()
        active = manager.create()
        now = datetime.utcnow()
        idle.last_active = now - timedelta(minutes=31)
        active.last_active = now - timedelta(minutes=5)

        removed = manager.cleanup_stale_workspaces(now=now)

        assert removed == 1
        assert list(manager.workspaces) == [active.id]

    def test_nothing_to_remove(self, manager):
        manager.create()

        assert manager.cleanup_stale_workspaces() == 0
        assert len(manager) == 1

    def test_cleanup_thread_stops(self):
        manager = WorkspaceManager(workspace_factory=lambda wid: None, ttl_minutes=1)

        assert manager._cleanup_thread is not None

        manager.stop()
        assert manager._cleanup_thread is None


@pytest.mark.integration
class TestProcessRegistry:
    """Test the process-wide singleton."""

    def test_singleton_until_reset(self):
        first = get_workspace_manager()

        assert get_workspace_manager() is first

        reset_workspace_manager()
        assert get_workspace_manager() is not first
