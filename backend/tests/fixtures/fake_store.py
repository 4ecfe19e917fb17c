"""
In-memory directory store for deterministic testing.

WHAT: DirectoryStore implementation over plain dicts
WHY: Exercise reconciler, workspace and API flows without a database or network
HOW: Rows kept in store column shape, mapped with the real row mapping; per-method failure injection
"""

import asyncio
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import uuid4

from quicksupply.models.directory import SupplierRecord
from quicksupply.models.session import AuthSession, OrderSummary, Role, UserProfile
from quicksupply.persistence.mapping import supplier_from_row, supplier_insert_fields
from quicksupply.persistence.types import StoreAuthError, StoreConflictError, StoreError


class FakeStore:
    """
    Fake store that records every call.

    fail(method, error) makes the named method raise until heal() is called.
    """

    def __init__(self, suppliers: Iterable[SupplierRecord] = ()):
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.products: Dict[str, List[Dict[str, Any]]] = {}
        self.orders: Dict[str, List[OrderSummary]] = {}
        self.accounts: Dict[str, Tuple[str, UserProfile]] = {}
        self.sessions: Dict[str, AuthSession] = {}
        self.failures: Dict[str, StoreError] = {}
        self.calls: List[Tuple[str, tuple]] = []
        self.bound_tokens: List[Optional[str]] = []
        self.confirm_email = False
        self.closed = False
        self._release: Optional[asyncio.Event] = None
        self.fetch_started: Optional[asyncio.Event] = None
        for record in suppliers:
            self.seed(record)

    # ---------- test controls ----------

    def seed(self, record: SupplierRecord) -> None:
        row = supplier_insert_fields(record)
        row["id"] = record.id
        self.rows[record.id] = row
        self.products[record.id] = [
            {
                "id": p.id, "supplier_id": record.id, "name": p.name, "description": p.description,
                "price": p.price, "moq": p.moq, "category": p.category, "images": list(p.images),
            }
            for p in record.products
        ]

    def fail(self, method: str, error: StoreError) -> None:
        self.failures[method] = error

    def heal(self, method: Optional[str] = None) -> None:
        if method is None:
            self.failures.clear()
        else:
            self.failures.pop(method, None)

    def hold_fetches(self) -> None:
        """Make fetch_suppliers snapshot its rows, then wait for release_fetches()."""
        self._release = asyncio.Event()
        self.fetch_started = asyncio.Event()

    def release_fetches(self) -> None:
        if self._release is not None:
            self._release.set()

    def add_account(self, email: str, password: str, role: Role, username: str = "user") -> UserProfile:
        profile = UserProfile(username=username, email=email, role=role, user_id=str(uuid4()))
        self.accounts[email] = (password, profile)
        return profile

    def open_session(self, profile: UserProfile) -> AuthSession:
        session = AuthSession(access_token=f"token-{uuid4().hex}", profile=profile)
        self.sessions[session.access_token] = session
        return session

    def call_names(self) -> List[str]:
        return [name for name, _ in self.calls]

    def _enter(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        error = self.failures.get(method)
        if error is not None:
            raise error

    def _records(self) -> List[SupplierRecord]:
        return [
            supplier_from_row({**row, "products": list(self.products.get(row_id, []))})
            for row_id, row in self.rows.items()
        ]

    # ---------- DirectoryStore ----------

    def bind_session(self, access_token: str | None) -> "FakeStore":
        self.bound_tokens.append(access_token)
        return self

    async def ping(self) -> dict:
        self._enter("ping")
        return {"available": True, "url": "memory://", "error": None}

    async def fetch_suppliers(self) -> list[SupplierRecord]:
        self._enter("fetch_suppliers")
        snapshot = self._records()
        if self._release is not None:
            self.fetch_started.set()
            await self._release.wait()
        return snapshot

    async def insert_supplier(self, fields: dict[str, Any]) -> SupplierRecord:
        self._enter("insert_supplier", fields)
        row_id = fields.get("id") or str(uuid4())
        self.rows[row_id] = {**fields, "id": row_id}
        self.products[row_id] = []
        return supplier_from_row({**self.rows[row_id], "products": []})

    async def update_supplier(self, supplier_id: str, fields: dict[str, Any]) -> None:
        self._enter("update_supplier", supplier_id, fields)
        if supplier_id not in self.rows:
            raise StoreConflictError(f"no supplier with id {supplier_id}")
        self.rows[supplier_id].update(fields)

    async def delete_products(self, supplier_id: str) -> None:
        self._enter("delete_products", supplier_id)
        self.products[supplier_id] = []

    async def insert_products(self, products: list[dict[str, Any]]) -> None:
        self._enter("insert_products", products)
        for product in products:
            self.products.setdefault(product["supplier_id"], []).append({**product, "id": str(uuid4())})

    async def fetch_orders(self, buyer_id: str) -> list[OrderSummary]:
        self._enter("fetch_orders", buyer_id)
        return list(self.orders.get(buyer_id, []))

    async def get_current_session(self, access_token: str) -> AuthSession | None:
        self._enter("get_current_session", access_token)
        return self.sessions.get(access_token)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        self._enter("sign_in", email)
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise StoreAuthError("Invalid login credentials")
        return self.open_session(account[1])

    async def sign_up(self, email: str, password: str, username: str, role: Role) -> AuthSession | None:
        self._enter("sign_up", email, username, role)
        if email in self.accounts:
            raise StoreAuthError("User already registered")
        profile = self.add_account(email, password, role, username)
        if self.confirm_email:
            return None
        return self.open_session(profile)

    async def sign_out(self, access_token: str) -> None:
        self._enter("sign_out", access_token)
        self.sessions.pop(access_token, None)

    async def close(self) -> None:
        self.closed = True
