"""
Workspace controller.

WHAT: One user's running directory session: reconciler, view state, chat thread and auth token
WHY: The presentation layer only asks for transitions and mutations; this is where they are sequenced
HOW: Each action awaits its collaborators (through attempt()), then replaces the ViewState
"""

from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional

from . import navigation as nav
from .ai_assistant import SupplierAssistant
from .chat_service import ChatEntry, ChatThread, contact_message
from .directory_filter import Grouped, group_suppliers, match_candidates, visible_suppliers
from .onboarding import complete_onboarding
from .reconciler import DirectoryReconciler, UpsertResult
from ..models.directory import (
    DossierUpdate, ListingDraft, MatchResult, OnboardingForm, SupplierRecord,
)
from ..models.session import OrderSummary, Role, UserProfile
from ..persistence.gateway import attempt
from ..persistence.store import DirectoryStore
from ..persistence.types import ErrorKind
from ..utils.exceptions import AuthenticationException
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEMO_NAMES = {"supplier": "Demo Supplier", "buyer": "Demo Buyer"}
DEMO_EMAILS = {"supplier": "demo@supplier.com", "buyer": "demo@buyer.com"}


class Workspace:
    """Per-tab application state."""

    def __init__(
        self,
        workspace_id: str,
        store: DirectoryStore,
        assistant: SupplierAssistant,
        fallback: Iterable[SupplierRecord] | None = None,
    ):
        self.id = workspace_id
        self._base_store = store
        self.store = store
        self.assistant = assistant
        self.reconciler = DirectoryReconciler(store, fallback)
        self.state = nav.ViewState()
        self.chat = ChatThread(assistant)
        self.access_token: Optional[str] = None
        self.notice: Optional[str] = None
        self.created_at = datetime.utcnow()
        self.last_active = self.created_at

    def touch(self) -> None:
        self.last_active = datetime.utcnow()

    # ---------- identity helpers ----------

    @property
    def owner(self) -> Optional[UserProfile]:
        return self.state.supplier_profile

    def own_dossier(self) -> Optional[SupplierRecord]:
        owner = self.owner
        if owner is None:
            return None
        return self.reconciler.derive_own_profile(owner.email, owner.user_id)

    def own_listings(self) -> list[SupplierRecord]:
        owner = self.owner
        if owner is None:
            return []
        return self.reconciler.derive_own_listings(owner.email, owner.user_id)

    def _has_dossier_for(self, profile: UserProfile) -> bool:
        return self.reconciler.derive_own_profile(profile.email, profile.user_id) is not None

    def _bind(self, access_token: Optional[str]) -> None:
        self.access_token = access_token
        self.store = self._base_store.bind_session(access_token)
        self.reconciler.rebind(self.store)

    # ---------- bootstrap ----------

    async def bootstrap(self, access_token: Optional[str] = None) -> nav.ViewState:
        """
        Load the directory, then resolve an existing session into the first view.

        Args:
            access_token: Token from a previous sign-in, if the client has one
        """
        await self.reconciler.load()

        if not access_token:
            self.state = nav.bootstrap_resolved(self.state, None, False)
            return self.state

        outcome = await attempt("resolve session", self._base_store.get_current_session(access_token))
        if not outcome.ok:
            logger.warning(f"Offline Mode Active: could not resolve session ({outcome.message})")
            self.state = nav.bootstrap_failed(self.state)
            return self.state

        session = outcome.value
        if session is None:
            self.state = nav.bootstrap_resolved(self.state, None, False)
            return self.state

        self._bind(session.access_token)
        profile = session.profile
        self.state = nav.bootstrap_resolved(self.state, profile, self._has_dossier_for(profile))
        logger.info(f"Workspace {self.id} resumed {profile.role} session ({self.state.view.value})")
        return self.state

    # ---------- navigation actions ----------

    def become_supplier(self) -> nav.ViewState:
        self.state = nav.become_supplier(self.state, self.own_dossier() is not None)
        return self.state

    def become_buyer(self) -> nav.ViewState:
        self.state = nav.become_buyer(self.state)
        return self.state

    def open_buyer_profile(self) -> nav.ViewState:
        self.state = nav.open_buyer_profile(self.state)
        return self.state

    def open_own_profile(self) -> nav.ViewState:
        self.state = nav.open_own_profile(self.state)
        return self.state

    def back(self) -> nav.ViewState:
        self.state = nav.back(self.state)
        return self.state

    def go_home(self) -> nav.ViewState:
        self.state = nav.go_home(self.state)
        return self.state

    def open_supplier(self, name: str) -> nav.ViewState:
        self.state = nav.open_supplier_profile(self.state, self.reconciler.find_by_name(name))
        return self.state

    def open_product(self, product_id: str) -> nav.ViewState:
        product, supplier = self.reconciler.find_product(product_id)
        if product is None:
            # Own-profile composites expose listings as products
            owner_view = self.active_profile_supplier()
            if owner_view is not None:
                product = next((p for p in owner_view.products if p.id == product_id), None)
                supplier = owner_view
        if product is None:
            return self.state
        self.state = nav.open_product_detail(self.state, product, supplier)
        return self.state

    def active_profile_supplier(self) -> Optional[SupplierRecord]:
        """Record shown on the profile screen; the owner sees their whole catalog."""
        if self.state.view == nav.View.SUPPLIER_OWN_PROFILE or (
            self.state.view == nav.View.PRODUCT_DETAIL
            and self.state.return_view == nav.View.SUPPLIER_OWN_PROFILE
        ):
            dossier = self.own_dossier()
            if dossier is not None:
                return self.reconciler.project_owner_dossier_view(dossier, self.own_listings())
        return self.state.selected_supplier

    # ---------- auth ----------

    async def login(
        self,
        role: Role,
        email: str,
        password: str,
        username: Optional[str] = None,
        register: bool = False,
    ) -> nav.ViewState:
        """
        Sign in (or register) as buyer or supplier.

        Connectivity failures start an offline demo session; rejected credentials raise.

        Raises:
            AuthenticationException: The identity provider rejected the credentials
        """
        display_name = username or (email.split("@")[0] if email else DEMO_NAMES[role])

        if register:
            outcome = await attempt("sign up", self._base_store.sign_up(email, password, display_name, role))
            if outcome.ok and outcome.value is None:
                # Email confirmation pending; try a direct sign-in before going local
                outcome = await attempt("sign in", self._base_store.sign_in(email, password))
                if not outcome.ok and outcome.error == ErrorKind.UNAUTHORIZED:
                    logger.warning(f"Account {email} awaits confirmation; continuing with a local session")
                    return self._enter(role, UserProfile(username=display_name, email=email, role=role), None)
        else:
            outcome = await attempt("sign in", self._base_store.sign_in(email, password))

        if not outcome.ok:
            if outcome.error == ErrorKind.CONNECTIVITY:
                logger.warning("Network unreachable. Entering Offline Demo Mode.")
                profile = UserProfile(
                    username=username or DEMO_NAMES[role],
                    email=email or DEMO_EMAILS[role],
                    role=role,
                )
                return self._enter(role, profile, None)
            raise AuthenticationException(outcome.message or "Authentication failed")

        session = outcome.value
        profile = session.profile
        if profile.role != role:
            logger.info(f"{profile.role} account {profile.email} signing in as {role}")
            profile = replace(profile, role=role)
        if register and username:
            profile = replace(profile, username=username)
        return self._enter(role, profile, session.access_token)

    def _enter(self, role: Role, profile: UserProfile, access_token: Optional[str]) -> nav.ViewState:
        self._bind(access_token)
        if role == "supplier":
            self.state = nav.supplier_login_succeeded(self.state, profile, self._has_dossier_for(profile))
        else:
            self.state = nav.buyer_login_succeeded(self.state, profile)
        logger.info(f"Workspace {self.id}: {role} login as {profile.email} -> {self.state.view.value}")
        return self.state

    async def logout(self) -> nav.ViewState:
        if self.access_token:
            outcome = await attempt("sign out", self._base_store.sign_out(self.access_token))
            if not outcome.ok:
                logger.info(f"Local signout ({outcome.message})")
        self._bind(None)
        self.chat.reset(None)
        self.state = nav.logout(self.state)
        return self.state

    # ---------- supplier ----------

    async def complete_onboarding(self, form: OnboardingForm) -> SupplierRecord:
        dossier = await complete_onboarding(form, self.owner, self.reconciler, self.store, self.assistant)
        self.state = nav.onboarding_completed(self.state, dossier.name, dossier.contact_email)
        await self.reconciler.refresh()
        return dossier

    def listing_prefill(self) -> ListingDraft:
        """Starting values for a new listing, taken from the dossier."""
        dossier = self.own_dossier()
        if dossier is None:
            return ListingDraft()
        return ListingDraft(
            name=dossier.name,
            industry=dossier.industry,
            category=dossier.category,
            location=dossier.location,
            description=dossier.description,
            image_url=dossier.image_url,
            contact_email=dossier.contact_email,
            products=(),
        )

    async def save_listing(self, draft: ListingDraft, edit_target_id: Optional[str] = None) -> UpsertResult:
        owner = self.owner or UserProfile(
            username=DEMO_NAMES["supplier"], email=DEMO_EMAILS["supplier"], role="supplier",
        )
        result = await self.reconciler.upsert_listing(owner, draft, edit_target_id)
        self.notice = result.notice
        if result.record is not None:
            self.state = nav.listing_saved(self.state)
        return result

    async def update_dossier(self, updates: DossierUpdate) -> UpsertResult:
        if self.owner is None:
            return UpsertResult(record=None)
        result = await self.reconciler.upsert_dossier(self.owner, updates)
        self.notice = result.notice
        return result

    # ---------- buyer directory ----------

    def directory(self) -> Grouped:
        return group_suppliers(visible_suppliers(
            self.reconciler.suppliers,
            self.state.search_term,
            self.state.industry_filter,
            self.state.match,
        ))

    def set_filters(self, search_term: Optional[str] = None, industry: Optional[str] = None) -> nav.ViewState:
        if search_term is not None:
            self.state = nav.set_search_term(self.state, search_term)
        if industry is not None:
            self.state = nav.set_industry_filter(self.state, industry)
        return self.state

    def reset_filters(self) -> nav.ViewState:
        self.state = nav.reset_filters(self.state)
        return self.state

    async def run_match(self, query: Optional[str] = None) -> MatchResult:
        """AI match over the current search term (or an explicit query)."""
        if query is not None:
            self.state = nav.set_search_term(self.state, query)
        term = self.state.search_term
        if not term:
            return self.state.match
        match = await self.assistant.match_suppliers(term, match_candidates(self.reconciler.suppliers))
        self.state = nav.apply_match(self.state, match)
        return match

    async def refresh(self) -> bool:
        return await self.reconciler.refresh()

    async def orders(self) -> list[OrderSummary]:
        """Buyer order history; empty for offline sessions."""
        buyer = self.state.buyer_profile
        if buyer is None or not buyer.user_id:
            return []
        outcome = await attempt("fetch orders", self.store.fetch_orders(buyer.user_id))
        if not outcome.ok:
            logger.warning(f"Orders unavailable: {outcome.message}")
            return []
        return outcome.value

    # ---------- chat ----------

    async def contact_supplier(self, supplier_id: str) -> Optional[ChatEntry]:
        """Open a direct conversation with the templated opening message."""
        supplier = self.reconciler.find_by_id(supplier_id)
        if supplier is None:
            return None
        message = contact_message(supplier)
        if self.chat.recipient is None or self.chat.recipient.id != supplier.id:
            self.chat.reset(supplier)
        self.state = nav.open_chat(self.state, supplier, message)
        return await self.chat.direct_message(message)

    async def send_chat(self, text: str) -> Optional[ChatEntry]:
        if not self.state.chat_open:
            self.state = nav.open_chat(self.state, self.chat.recipient)
        return await self.chat.send(text, self.reconciler.suppliers)

    def exit_direct_message(self) -> nav.ViewState:
        self.chat.reset(None)
        self.state = nav.exit_direct_message(self.state)
        return self.state

    def close_chat(self) -> nav.ViewState:
        """Hide the chat panel; the next one opens on the assistant."""
        self.chat.reset(None)
        self.state = nav.close_chat(self.state)
        return self.state
