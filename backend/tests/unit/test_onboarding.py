"""
Unit tests for supplier onboarding.

WHAT: Test dossier creation from the onboarding form
WHY: A supplier reaches the dashboard only once a dossier exists, online or not
HOW: complete_onboarding over FakeStore and MockLLMProvider
"""

import json

import pytest

from quicksupply.core.config import settings
from quicksupply.models.directory import Industry, OnboardingForm
from quicksupply.persistence.types import StoreConflictError, StoreUnavailableError
from quicksupply.services.ai_assistant import SupplierAssistant, fallback_dossier
from quicksupply.services.onboarding import DEMO_SUPPLIER_EMAIL, complete_onboarding
from quicksupply.services.reconciler import DirectoryReconciler, is_persistence_id

from tests.fixtures.fake_store import FakeStore
from tests.fixtures.mock_llm import MockLLMProvider
from tests.fixtures.sample_records import FALLBACK, SUPPLIER_EMAIL, dossier, owner

FORM = OnboardingForm(
    name="Mekong Garments",
    location="Kampong Speu",
    industry=Industry.GARMENT_TEXTILE,
    category="Knitwear",
    capacity="1M units",
)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def reconciler(store):
    return DirectoryReconciler(store, FALLBACK)


@pytest.mark.unit
class TestCompleteOnboarding:
    """Test dossier creation."""

    async def test_generated_dossier_is_stored(self, store, reconciler):
        generated = json.dumps({
            "description": "Knitwear exporter.", "certifications": ["WRAP"], "establishedYear": 2010,
            "employeeCount": "300", "factorySize": "5,000 sqm", "businessType": "Manufacturer",
        })
        assistant = SupplierAssistant(MockLLMProvider(responses=[generated]))

        record = await complete_onboarding(FORM, owner("user-1"), reconciler, store, assistant)

        assert is_persistence_id(record.id)
        assert record.is_owner is True
        assert record.owner_user_id == "user-1"
        assert record.contact_email == SUPPLIER_EMAIL
        assert record.description == "Knitwear exporter."
        assert record.certifications == ("WRAP",)
        assert record.production_capacity == "1M units"
        assert record.image_url == settings.DEFAULT_LISTING_IMAGE_URL
        assert store.rows[record.id]["is_owner"] is True
        assert reconciler.derive_own_profile(SUPPLIER_EMAIL, "user-1") == record

    async def test_ai_failure_uses_template(self, store, reconciler):
        assistant = SupplierAssistant(MockLLMProvider(should_fail=True))

        record = await complete_onboarding(FORM, owner(), reconciler, store, assistant)

        assert record.description == fallback_dossier(FORM).description
        assert record.established_year == 2020

    @pytest.mark.parametrize("error", [StoreUnavailableError("down"), StoreConflictError("policy")])
    async def test_store_failure_registers_locally(self, store, reconciler, error):
        store.fail("insert_supplier", error)
        assistant = SupplierAssistant(MockLLMProvider(should_fail=True))

        record = await complete_onboarding(FORM, owner(), reconciler, store, assistant)

        assert record.id.startswith("temp-")
        assert reconciler.suppliers[0] == record

    async def test_dossier_stored_after_timeout_is_not_duplicated(self, store, reconciler):
        store.fail("insert_supplier", StoreUnavailableError("timed out"))
        assistant = SupplierAssistant(MockLLMProvider(should_fail=True))

        local = await complete_onboarding(FORM, owner(), reconciler, store, assistant)
        store.heal()
        _, (fields,) = store.calls[-1]
        store.seed(dossier(fields["id"], name=FORM.name))

        await reconciler.refresh()

        own = reconciler.derive_own_profile(SUPPLIER_EMAIL)
        assert own.id == fields["id"]
        assert [s.id for s in reconciler.suppliers if s.is_owner] == [fields["id"]]
        assert reconciler.find_by_id(local.id) is None

    async def test_offline_demo_owner(self, store, reconciler):
        assistant = SupplierAssistant(MockLLMProvider(should_fail=True))

        record = await complete_onboarding(FORM, None, reconciler, store, assistant)

        assert record.contact_email == DEMO_SUPPLIER_EMAIL
        assert record.owner_user_id is None

    async def test_replaces_previous_dossier(self, store, reconciler):
        reconciler.register_dossier(dossier("temp-old"))
        assistant = SupplierAssistant(MockLLMProvider(should_fail=True))

        record = await complete_onboarding(FORM, owner(), reconciler, store, assistant)

        owned = [s for s in reconciler.suppliers if s.is_owner]
        assert owned == [record]

    async def test_blank_capacity_is_none(self, store, reconciler):
        form = OnboardingForm(name="Small Co", location="Kep", industry=Industry.AGRICULTURE, category="Pepper")
        assistant = SupplierAssistant(MockLLMProvider(should_fail=True))

        record = await complete_onboarding(form, owner(), reconciler, store, assistant)

        assert record.production_capacity is None
