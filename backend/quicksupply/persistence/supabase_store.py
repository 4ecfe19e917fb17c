"""
Supabase store implementation.

WHAT: DirectoryStore over the hosted PostgREST (records) and GoTrue (auth) APIs
WHY: Use the managed relational backend and identity provider in production
HOW: Shared httpx.AsyncClient, per-session bearer tokens, HTTP errors mapped to store errors
"""

from typing import Any

import httpx

from .mapping import order_from_row, supplier_from_row
from .types import (
    StoreAuthError, StoreConflictError, StoreError, StoreResponseError,
    StoreTimeoutError, StoreUnavailableError,
)
from ..core.config import settings
from ..models.directory import SupplierRecord
from ..models.session import AuthSession, OrderSummary, Role, UserProfile
from ..utils.logger import get_logger

logger = get_logger(__name__)


def _profile_from_user(user: dict[str, Any], fallback_role: Role = "buyer") -> UserProfile:
    """Build a profile from a GoTrue user object and its metadata."""
    metadata = user.get("user_metadata") or {}
    email = user.get("email") or ""
    role = metadata.get("role") if metadata.get("role") in ("buyer", "supplier") else fallback_role
    return UserProfile(
        username=metadata.get("username") or email.split("@")[0],
        email=email,
        role=role,
        user_id=user.get("id"),
    )


class SupabaseStore:
    """Supabase-backed directory store."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        *,
        access_token: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = (base_url or settings.SUPABASE_URL).rstrip("/")
        self.api_key = api_key or settings.SUPABASE_ANON_KEY
        self.access_token = access_token

        if not self.base_url or not self.api_key:
            logger.warning("Supabase store configured without SUPABASE_URL or SUPABASE_ANON_KEY")

        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(5.0, read=settings.STORE_TIMEOUT),
            limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
        )
        if client is None:
            logger.info(f"Supabase store initialized ({self.base_url})")

    def bind_session(self, access_token: str | None) -> "SupabaseStore":
        """Return a store view that authorizes requests with the user's token."""
        return SupabaseStore(self.base_url, self.api_key, access_token=access_token, client=self.client)

    def _headers(self, token: str | None = None, **extra: str) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token or self.access_token or self.api_key}",
        }
        headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        label: str,
        token: str | None = None,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> Any:
        """
        Send a request and translate transport and HTTP failures.

        Returns:
            Decoded JSON body, or None for empty responses

        Raises:
            StoreTimeoutError, StoreUnavailableError, StoreAuthError,
            StoreConflictError, StoreResponseError
        """
        merged = self._headers(token, **(headers or {}))
        try:
            response = await self.client.request(method, f"{self.base_url}{path}", headers=merged, **kwargs)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise StoreTimeoutError(f"{label} timed out") from e
        except httpx.TransportError as e:
            raise StoreUnavailableError(f"{label}: Supabase not reachable ({e})") from e
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            body = e.response.text
            if status_code >= 500:
                raise StoreUnavailableError(f"{label}: server error {status_code}") from e
            if status_code == 401 or (path.startswith("/auth/") and status_code in (400, 403, 422)):
                raise StoreAuthError(self._auth_message(e.response)) from e
            raise StoreConflictError(f"{label}: HTTP {status_code}: {body}") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise StoreResponseError(f"{label}: invalid JSON body") from e

    @staticmethod
    def _auth_message(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text or "Authentication failed"
        return data.get("msg") or data.get("error_description") or data.get("message") or "Authentication failed"

    async def ping(self) -> dict:
        try:
            await self._request("GET", "/auth/v1/health", label="ping")
            return {"available": True, "url": self.base_url, "error": None}
        except StoreError as e:
            logger.warning(f"Supabase ping failed: {e}")
            return {"available": False, "url": self.base_url, "error": str(e)}

    # ---------- records ----------

    async def fetch_suppliers(self) -> list[SupplierRecord]:
        rows = await self._request(
            "GET", "/rest/v1/suppliers", label="fetch suppliers",
            params={"select": "*,products(*)"},
        )
        if not isinstance(rows, list):
            raise StoreResponseError("fetch suppliers: expected a list of rows")
        return [supplier_from_row(row) for row in rows]

    async def insert_supplier(self, fields: dict[str, Any]) -> SupplierRecord:
        rows = await self._request(
            "POST", "/rest/v1/suppliers", label="insert supplier",
            json=fields, headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise StoreResponseError("insert supplier: no row returned")
        row = rows[0] if isinstance(rows, list) else rows
        logger.info(f"Inserted supplier {row.get('id')} ({row.get('name')})")
        return supplier_from_row(row)

    async def update_supplier(self, supplier_id: str, fields: dict[str, Any]) -> None:
        await self._request(
            "PATCH", "/rest/v1/suppliers", label="update supplier",
            params={"id": f"eq.{supplier_id}"}, json=fields,
        )

    async def delete_products(self, supplier_id: str) -> None:
        await self._request(
            "DELETE", "/rest/v1/products", label="delete products",
            params={"supplier_id": f"eq.{supplier_id}"},
        )

    async def insert_products(self, products: list[dict[str, Any]]) -> None:
        if not products:
            return
        await self._request("POST", "/rest/v1/products", label="insert products", json=products)

    async def fetch_orders(self, buyer_id: str) -> list[OrderSummary]:
        rows = await self._request(
            "GET", "/rest/v1/orders", label="fetch orders",
            params={
                "select": "*,supplier:suppliers(name,industry,location)",
                "buyer_id": f"eq.{buyer_id}",
                "order": "created_at.desc",
            },
        )
        return [order_from_row(row) for row in rows or []]

    # ---------- accounts ----------

    async def sign_in(self, email: str, password: str) -> AuthSession:
        data = await self._request(
            "POST", "/auth/v1/token", label="sign in",
            params={"grant_type": "password"}, json={"email": email, "password": password},
        )
        if not data or "access_token" not in data:
            raise StoreResponseError("sign in: no session returned")
        return AuthSession(access_token=data["access_token"], profile=_profile_from_user(data.get("user") or {}))

    async def sign_up(self, email: str, password: str, username: str, role: Role) -> AuthSession | None:
        data = await self._request(
            "POST", "/auth/v1/signup", label="sign up",
            json={"email": email, "password": password, "data": {"username": username, "role": role}},
        )
        if not data or "access_token" not in data:
            # Email confirmation pending: the provider returns the user without a session
            logger.info(f"Sign up for {email} awaiting confirmation")
            return None

        session = AuthSession(
            access_token=data["access_token"],
            profile=_profile_from_user(data.get("user") or {}, fallback_role=role),
        )
        await self._ensure_profile_row(session, role)
        return session

    async def _ensure_profile_row(self, session: AuthSession, role: Role) -> None:
        """Insert the profiles row if the database trigger did not create it."""
        row = {
            "id": session.profile.user_id,
            "email": session.profile.email,
            "username": session.profile.username,
            "role": role,
        }
        try:
            await self._request(
                "POST", "/rest/v1/profiles", label="insert profile", token=session.access_token,
                json=row, headers={"Prefer": "resolution=ignore-duplicates"},
            )
        except StoreError as e:
            logger.warning(f"Profile row insert skipped (likely created by trigger): {e}")

    async def get_current_session(self, access_token: str) -> AuthSession | None:
        try:
            user = await self._request("GET", "/auth/v1/user", label="get session", token=access_token)
        except StoreAuthError:
            return None
        if not user:
            return None
        return AuthSession(access_token=access_token, profile=_profile_from_user(user))

    async def sign_out(self, access_token: str) -> None:
        await self._request("POST", "/auth/v1/logout", label="sign out", token=access_token)

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
