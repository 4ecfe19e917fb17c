"""
Supplier onboarding.

WHAT: Turn the onboarding form into the supplier's company dossier
WHY: A supplier without a dossier cannot reach the dashboard
HOW: AI-generated fields (or template) -> remote insert with is_owner -> register with the reconciler
"""

from dataclasses import replace
from typing import Optional

from .ai_assistant import SupplierAssistant
from .reconciler import DirectoryReconciler
from ..core.config import settings
from ..models.directory import OnboardingForm, SupplierRecord
from ..models.session import UserProfile
from ..persistence.store import DirectoryStore
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEMO_SUPPLIER_EMAIL = "demo@supplier.com"


async def complete_onboarding(
    form: OnboardingForm,
    owner: Optional[UserProfile],
    reconciler: DirectoryReconciler,
    store: DirectoryStore,
    assistant: SupplierAssistant,
) -> SupplierRecord:
    """
    Create and register the owner's dossier.

    The dossier is registered locally even when the store rejects it; it then
    carries a temporary id.

    Args:
        form: Basic company facts
        owner: Signed-in supplier, None in offline demo mode
        reconciler: Workspace directory
        store: Persistence backend bound to the owner's session
        assistant: AI collaborator for the generated fields

    Returns:
        The registered dossier
    """
    generated = await assistant.generate_profile(form)

    user_id = owner.user_id if owner else None
    email = (owner.email if owner else "") or DEMO_SUPPLIER_EMAIL
    if user_id is None:
        logger.warning("No authenticated supplier session; proceeding in offline demo mode")

    dossier = SupplierRecord(
        id="",
        owner_user_id=user_id,
        name=form.name,
        industry=form.industry,
        category=form.category,
        location=form.location,
        rating=5.0,
        description=generated.description,
        contact_email=email,
        image_url=settings.DEFAULT_LISTING_IMAGE_URL,
        is_owner=True,
        established_year=generated.established_year,
        employee_count=generated.employee_count,
        factory_size=generated.factory_size,
        production_capacity=form.capacity or None,
        business_type=generated.business_type,
        certifications=generated.certifications,
    )

    dossier_id, outcome = await reconciler.insert_record("insert dossier", dossier, store)
    if not (outcome.ok and outcome.value is not None):
        logger.error(f"Dossier insert failed, keeping local copy: {outcome.message}")

    return reconciler.register_dossier(replace(dossier, id=dossier_id))
