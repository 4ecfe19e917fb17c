"""
Directory store factory with singleton pattern.

WHAT: Factory to get the configured persistence backend
WHY: Centralize backend selection and share one client/engine per process
HOW: Read PERSISTENCE_BACKEND from config, cache singleton, log selection
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .store import DirectoryStore

# Singleton instance
_store_instance: "DirectoryStore | None" = None


def get_store() -> "DirectoryStore":
    """
    Get the configured directory store singleton.

    Returns:
        DirectoryStore instance based on settings.PERSISTENCE_BACKEND

    Raises:
        ValueError: If backend name is unknown
    """
    global _store_instance

    if _store_instance is None:
        # Import here to avoid circular dependencies
        from ..core.config import settings
        from ..utils.logger import get_logger

        logger = get_logger(__name__)
        backend = settings.PERSISTENCE_BACKEND

        if backend == "sql":
            from .sql_store import SQLStore
            _store_instance = SQLStore()
        elif backend == "supabase":
            from .supabase_store import SupabaseStore
            _store_instance = SupabaseStore()
        else:
            raise ValueError(f"Unknown persistence backend: {backend}")

        logger.info(f"Directory store initialized: {backend}")

    return _store_instance


def set_store(store: "DirectoryStore | None") -> None:
    """Install a specific store instance (tests, embedding)."""
    global _store_instance
    _store_instance = store


def reset_store() -> None:
    """Reset the store singleton (useful for testing)."""
    global _store_instance
    _store_instance = None
