"""
Workspace registry.

WHAT: Lifecycle management for per-tab workspaces
WHY: Each browser tab has its own view state, directory copy and chat thread
HOW: Dict cache guarded by a lock, background Timer evicting idle workspaces
"""

import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional
from uuid import uuid4

from .config import settings
from ..persistence.store_factory import get_store
from ..services.ai_assistant import SupplierAssistant
from ..services.workspace import Workspace
from ..utils.exceptions import WorkspaceNotFoundException
from ..utils.logger import get_logger

logger = get_logger(__name__)


class WorkspaceManager:
    """
    Create, look up and expire workspaces.

    WHAT: Central registry of live workspaces
    WHY: HTTP requests address a workspace by id; abandoned tabs must not leak memory
    HOW: Methods for create/get/delete with TTL cleanup
    """

    def __init__(
        self,
        workspace_factory: Optional[Callable[[str], Workspace]] = None,
        ttl_minutes: Optional[int] = None,
        start_cleanup: bool = True,
    ):
        """Initialize workspace manager with in-memory cache."""
        self.workspaces: Dict[str, Workspace] = {}
        self._factory = workspace_factory or self._default_factory
        self._ttl = timedelta(minutes=ttl_minutes or settings.WORKSPACE_TTL_MINUTES)
        self._cache_lock = threading.Lock()
        self._cleanup_thread: Optional[threading.Timer] = None
        if start_cleanup:
            self._start_cleanup_thread()

    @staticmethod
    def _default_factory(workspace_id: str) -> Workspace:
        return Workspace(workspace_id, get_store(), SupplierAssistant())

    def _start_cleanup_thread(self):
        """
        Start background thread for cache cleanup.

        WHAT: Periodic cleanup of idle workspaces
        WHY: Prevent memory leaks from abandoned tabs
        HOW: Threading.Timer with WORKSPACE_CLEANUP_MINUTES interval
        """
        interval = settings.WORKSPACE_CLEANUP_MINUTES * 60

        def cleanup_task():
            self.cleanup_stale_workspaces()
            # Schedule next cleanup
            self._cleanup_thread = threading.Timer(interval, cleanup_task)
            self._cleanup_thread.daemon = True
            self._cleanup_thread.start()

        self._cleanup_thread = threading.Timer(interval, cleanup_task)
        self._cleanup_thread.daemon = True
        self._cleanup_thread.start()
        logger.info(f"Started workspace cleanup thread (interval: {settings.WORKSPACE_CLEANUP_MINUTES}m)")

    def stop(self) -> None:
        if self._cleanup_thread is not None:
            self._cleanup_thread.cancel()
            self._cleanup_thread = None

    def cleanup_stale_workspaces(self, now: Optional[datetime] = None) -> int:
        """
        Remove workspaces idle for longer than the TTL.

        Returns:
            Number of workspaces removed
        """
        cutoff = (now or datetime.utcnow()) - self._ttl
        with self._cache_lock:
            stale = [wid for wid, ws in self.workspaces.items() if ws.last_active < cutoff]
            for workspace_id in stale:
                del self.workspaces[workspace_id]
                logger.info(f"Cleaned up idle workspace: {workspace_id}")
        if stale:
            logger.info(f"Removed {len(stale)} idle workspaces from cache")
        return len(stale)

    def create(self) -> Workspace:
        workspace = self._factory(str(uuid4()))
        with self._cache_lock:
            self.workspaces[workspace.id] = workspace
        logger.info(f"Created workspace {workspace.id}")
        return workspace

    def get(self, workspace_id: str) -> Workspace:
        """
        Look up a live workspace and mark it active.

        Raises:
            WorkspaceNotFoundException: Unknown or expired id
        """
        with self._cache_lock:
            workspace = self.workspaces.get(workspace_id)
        if workspace is None:
            raise WorkspaceNotFoundException(workspace_id)
        workspace.touch()
        return workspace

    def delete(self, workspace_id: str) -> None:
        with self._cache_lock:
            if self.workspaces.pop(workspace_id, None) is None:
                raise WorkspaceNotFoundException(workspace_id)
        logger.info(f"Deleted workspace {workspace_id}")

    def clear(self) -> None:
        with self._cache_lock:
            self.workspaces.clear()

    def __len__(self) -> int:
        return len(self.workspaces)


_manager: Optional[WorkspaceManager] = None


def get_workspace_manager() -> WorkspaceManager:
    """Process-wide registry (FastAPI dependency)."""
    global _manager
    if _manager is None:
        _manager = WorkspaceManager()
    return _manager


def reset_workspace_manager() -> None:
    global _manager
    if _manager is not None:
        _manager.stop()
    _manager = None
