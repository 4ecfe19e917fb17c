"""
Directory store protocol definition.

WHAT: Abstract interface for the persistence collaborator
WHY: Decouple the reconciler and workspaces from a specific backend
HOW: Protocol with async record CRUD and session/auth queries
"""

from typing import Any, Protocol

from ..models.directory import SupplierRecord
from ..models.session import AuthSession, OrderSummary, Role


class DirectoryStore(Protocol):
    """Protocol every persistence backend implements."""

    def bind_session(self, access_token: str | None) -> "DirectoryStore":
        """Return a store that issues requests on behalf of the given session."""
        ...

    async def ping(self) -> dict:
        """Check backend reachability."""
        ...

    async def fetch_suppliers(self) -> list[SupplierRecord]:
        """Fetch all suppliers with nested products."""
        ...

    async def insert_supplier(self, fields: dict[str, Any]) -> SupplierRecord:
        """Insert a supplier row and return it with its durable id."""
        ...

    async def update_supplier(self, supplier_id: str, fields: dict[str, Any]) -> None:
        """Update supplier columns by id."""
        ...

    async def delete_products(self, supplier_id: str) -> None:
        """Delete every product owned by a supplier."""
        ...

    async def insert_products(self, products: list[dict[str, Any]]) -> None:
        """Insert product rows."""
        ...

    async def fetch_orders(self, buyer_id: str) -> list[OrderSummary]:
        """Fetch a buyer's orders, newest first."""
        ...

    async def get_current_session(self, access_token: str) -> AuthSession | None:
        """Resolve an access token to a session (None when expired or unknown)."""
        ...

    async def sign_in(self, email: str, password: str) -> AuthSession:
        """Authenticate with email and password."""
        ...

    async def sign_up(self, email: str, password: str, username: str, role: Role) -> AuthSession | None:
        """Register an account; None when the provider requires email confirmation first."""
        ...

    async def sign_out(self, access_token: str) -> None:
        """Invalidate a session."""
        ...

    async def close(self) -> None:
        """Release connections held by the backend."""
        ...
