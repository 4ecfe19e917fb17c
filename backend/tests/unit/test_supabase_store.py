"""
Unit tests for the Supabase store.

WHAT: Test PostgREST/GoTrue requests and HTTP error translation
WHY: The reconciler branches on the store error kind, so the mapping must be exact
HOW: Mock HTTP with respx against a fake project URL
"""

import json

import httpx
import pytest
import respx

from quicksupply.persistence.supabase_store import SupabaseStore
from quicksupply.persistence.types import (
    ErrorKind, StoreAuthError, StoreConflictError, StoreResponseError,
    StoreTimeoutError, StoreUnavailableError,
)

BASE = "https://project.supabase.test"
SUPPLIER_ID = "123e4567-e89b-12d3-a456-426614174000"

SUPPLIER_ROW = {
    "id": SUPPLIER_ID,
    "user_id": "user-1",
    "name": "Mekong Garments",
    "industry": "Garment & Textile",
    "category": "Knitwear",
    "location": "Phnom Penh",
    "rating": 4.7,
    "description": "Sweaters",
    "contact_email": "sales@mekong.kh",
    "image_url": "",
    "is_owner": True,
    "belongs_to_owner": False,
    "certifications": ["WRAP"],
    "export_markets": [],
    "products": [{"id": "p-1", "supplier_id": SUPPLIER_ID, "name": "Sweater", "images": []}],
}

USER = {"id": "user-1", "email": "owner@mekong.kh", "user_metadata": {"username": "Owner", "role": "supplier"}}


@pytest.fixture
async def store():
    supabase = SupabaseStore(BASE, "anon-key")
    yield supabase
    await supabase.close()


@pytest.mark.unit
@pytest.mark.persistence
class TestRecords:
    """Test record endpoints."""

    async def test_fetch_suppliers_with_products(self, store):
        with respx.mock:
            route = respx.get(f"{BASE}/rest/v1/suppliers").mock(return_value=httpx.Response(200, json=[SUPPLIER_ROW]))

            records = await store.fetch_suppliers()

        assert records[0].id == SUPPLIER_ID
        assert records[0].owner_user_id == "user-1"
        assert records[0].products[0].name == "Sweater"
        request = route.calls.last.request
        assert request.url.params["select"] == "*,products(*)"
        assert request.headers["apikey"] == "anon-key"
        assert request.headers["Authorization"] == "Bearer anon-key"

    async def test_bound_session_sends_user_token(self, store):
        bound = store.bind_session("user-token")

        with respx.mock:
            route = respx.get(f"{BASE}/rest/v1/suppliers").mock(return_value=httpx.Response(200, json=[]))

            await bound.fetch_suppliers()

        assert route.calls.last.request.headers["Authorization"] == "Bearer user-token"
        assert bound.client is store.client

    async def test_insert_supplier_returns_representation(self, store):
        with respx.mock:
            route = respx.post(f"{BASE}/rest/v1/suppliers").mock(return_value=httpx.Response(201, json=[SUPPLIER_ROW]))

            record = await store.insert_supplier({"name": "Mekong Garments"})

        assert record.id == SUPPLIER_ID
        request = route.calls.last.request
        assert request.headers["Prefer"] == "return=representation"
        assert json.loads(request.content) == {"name": "Mekong Garments"}

    async def test_insert_without_row_is_invalid(self, store):
        with respx.mock:
            respx.post(f"{BASE}/rest/v1/suppliers").mock(return_value=httpx.Response(201, json=[]))

            with pytest.raises(StoreResponseError):
                await store.insert_supplier({"name": "x"})

    async def test_update_and_product_replacement_filters(self, store):
        with respx.mock:
            patch = respx.patch(f"{BASE}/rest/v1/suppliers").mock(return_value=httpx.Response(204))
            delete = respx.delete(f"{BASE}/rest/v1/products").mock(return_value=httpx.Response(204))
            insert = respx.post(f"{BASE}/rest/v1/products").mock(return_value=httpx.Response(201))

            await store.update_supplier(SUPPLIER_ID, {"name": "Renamed"})
            await store.delete_products(SUPPLIER_ID)
            await store.insert_products([{"supplier_id": SUPPLIER_ID, "name": "Scarf"}])

        assert patch.calls.last.request.url.params["id"] == f"eq.{SUPPLIER_ID}"
        assert delete.calls.last.request.url.params["supplier_id"] == f"eq.{SUPPLIER_ID}"
        assert json.loads(insert.calls.last.request.content) == [{"supplier_id": SUPPLIER_ID, "name": "Scarf"}]

    async def test_fetch_orders_joins_supplier(self, store):
        order = {
            "id": "o-1", "buyer_id": "b-1", "supplier_id": SUPPLIER_ID, "total": "$900",
            "status": "Processing", "progress": 20, "est_delivery": "Dec 1", "created_at": "2024-11-01",
            "supplier": {"name": "Mekong Garments", "industry": "Garment & Textile", "location": "Phnom Penh"},
        }
        with respx.mock:
            route = respx.get(f"{BASE}/rest/v1/orders").mock(return_value=httpx.Response(200, json=[order]))

            orders = await store.fetch_orders("b-1")

        assert orders[0].supplier_name == "Mekong Garments"
        params = route.calls.last.request.url.params
        assert params["buyer_id"] == "eq.b-1"
        assert params["order"] == "created_at.desc"


@pytest.mark.unit
@pytest.mark.persistence
class TestErrorTranslation:
    """Test HTTP and transport failures map to store errors."""

    @pytest.mark.parametrize("status_code,error,kind", [
        (500, StoreUnavailableError, ErrorKind.CONNECTIVITY),
        (503, StoreUnavailableError, ErrorKind.CONNECTIVITY),
        (401, StoreAuthError, ErrorKind.UNAUTHORIZED),
        (403, StoreConflictError, ErrorKind.CONFLICT),
        (409, StoreConflictError, ErrorKind.CONFLICT),
    ])
    async def test_status_codes(self, store, status_code, error, kind):
        with respx.mock:
            respx.post(f"{BASE}/rest/v1/suppliers").mock(return_value=httpx.Response(status_code, text="nope"))

            with pytest.raises(error) as exc_info:
                await store.insert_supplier({"name": "x"})

        assert exc_info.value.kind == kind

    async def test_timeout(self, store):
        with respx.mock:
            respx.get(f"{BASE}/rest/v1/suppliers").mock(side_effect=httpx.ReadTimeout("slow"))

            with pytest.raises(StoreTimeoutError):
                await store.fetch_suppliers()

    async def test_unreachable(self, store):
        with respx.mock:
            respx.get(f"{BASE}/rest/v1/suppliers").mock(side_effect=httpx.ConnectError("refused"))

            with pytest.raises(StoreUnavailableError):
                await store.fetch_suppliers()

    async def test_non_list_body_is_invalid(self, store):
        with respx.mock:
            respx.get(f"{BASE}/rest/v1/suppliers").mock(return_value=httpx.Response(200, json={"oops": True}))

            with pytest.raises(StoreResponseError):
                await store.fetch_suppliers()

    async def test_ping_reports_failure(self, store):
        with respx.mock:
            respx.get(f"{BASE}/auth/v1/health").mock(return_value=httpx.Response(503))

            status = await store.ping()

        assert status["available"] is False


@pytest.mark.unit
@pytest.mark.persistence
class TestAuth:
    """Test GoTrue endpoints."""

    async def test_sign_in(self, store):
        with respx.mock:
            route = respx.post(f"{BASE}/auth/v1/token").mock(return_value=httpx.Response(
                200, json={"access_token": "jwt-1", "user": USER},
            ))

            session = await store.sign_in("owner@mekong.kh", "secret")

        assert session.access_token == "jwt-1"
        assert session.profile.role == "supplier"
        assert session.profile.username == "Owner"
        assert session.profile.user_id == "user-1"
        assert route.calls.last.request.url.params["grant_type"] == "password"

    async def test_bad_credentials(self, store):
        with respx.mock:
            respx.post(f"{BASE}/auth/v1/token").mock(return_value=httpx.Response(
                400, json={"error_description": "Invalid login credentials"},
            ))

            with pytest.raises(StoreAuthError, match="Invalid login credentials"):
                await store.sign_in("owner@mekong.kh", "wrong")

    async def test_sign_up_creates_profile_row(self, store):
        with respx.mock:
            respx.post(f"{BASE}/auth/v1/signup").mock(return_value=httpx.Response(
                200, json={"access_token": "jwt-2", "user": {"id": "user-2", "email": "new@buyer.com"}},
            ))
            profiles = respx.post(f"{BASE}/rest/v1/profiles").mock(return_value=httpx.Response(201))

            session = await store.sign_up("new@buyer.com", "secret", "New Buyer", "buyer")

        assert session.profile.role == "buyer"
        assert session.profile.username == "new"
        request = profiles.calls.last.request
        assert request.headers["Authorization"] == "Bearer jwt-2"
        assert json.loads(request.content)["role"] == "buyer"

    async def test_sign_up_profile_conflict_is_ignored(self, store):
        with respx.mock:
            respx.post(f"{BASE}/auth/v1/signup").mock(return_value=httpx.Response(
                200, json={"access_token": "jwt-3", "user": USER},
            ))
            respx.post(f"{BASE}/rest/v1/profiles").mock(return_value=httpx.Response(409, text="duplicate"))

            session = await store.sign_up("owner@mekong.kh", "secret", "Owner", "supplier")

        assert session.access_token == "jwt-3"

    async def test_sign_up_pending_confirmation(self, store):
        with respx.mock:
            respx.post(f"{BASE}/auth/v1/signup").mock(return_value=httpx.Response(200, json={"id": "user-4"}))

            assert await store.sign_up("slow@buyer.com", "secret", "Slow", "buyer") is None

    async def test_current_session(self, store):
        with respx.mock:
            respx.get(f"{BASE}/auth/v1/user").mock(return_value=httpx.Response(200, json=USER))

            session = await store.get_current_session("jwt-1")

        assert session.access_token == "jwt-1"
        assert session.profile.email == "owner@mekong.kh"

    async def test_expired_session_is_none(self, store):
        with respx.mock:
            respx.get(f"{BASE}/auth/v1/user").mock(return_value=httpx.Response(401, json={"msg": "expired"}))

            assert await store.get_current_session("old") is None

    async def test_sign_out(self, store):
        with respx.mock:
            route = respx.post(f"{BASE}/auth/v1/logout").mock(return_value=httpx.Response(204))

            await store.sign_out("jwt-1")

        assert route.calls.last.request.headers["Authorization"] == "Bearer jwt-1"
