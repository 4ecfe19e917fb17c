"""
View navigation state machine.

WHAT: Which screen a workspace shows, plus the transient selection state behind it
WHY: Role and dossier guards decide reachable views; drill-downs need one level of "back"
HOW: One frozen ViewState replaced wholesale by pure transition functions
"""

import enum
from dataclasses import dataclass, replace
from typing import Optional

from ..models.directory import MatchResult, ProductRecord, SupplierRecord
from ..models.session import UserProfile
from ..utils.logger import get_logger

logger = get_logger(__name__)

ALL_INDUSTRIES = "All"


class View(str, enum.Enum):
    LANDING = "landing"
    BUYER = "buyer"
    BUYER_LOGIN = "buyer_login"
    BUYER_PROFILE = "buyer_profile"
    SUPPLIER_LOGIN = "supplier_login"
    SUPPLIER_DASHBOARD = "supplier_dashboard"
    SUPPLIER_ONBOARDING = "supplier_onboarding"
    SUPPLIER_PROFILE = "supplier_profile"
    SUPPLIER_OWN_PROFILE = "supplier_own_profile"
    PRODUCT_DETAIL = "product_detail"


# Views whose "back" leads to the landing page
_ENTRY_VIEWS = frozenset({View.BUYER_LOGIN, View.SUPPLIER_LOGIN, View.SUPPLIER_ONBOARDING})


@dataclass(frozen=True)
class ViewState:
    """Everything the presentation layer needs to pick and fill a screen."""
    view: View = View.LANDING
    loading: bool = True
    buyer_profile: Optional[UserProfile] = None
    supplier_profile: Optional[UserProfile] = None
    is_registered_supplier: bool = False
    selected_supplier: Optional[SupplierRecord] = None
    selected_product: Optional[ProductRecord] = None
    return_view: View = View.BUYER
    chat_open: bool = False
    chat_recipient: Optional[SupplierRecord] = None
    chat_initial_message: Optional[str] = None
    search_term: str = ""
    industry_filter: str = ALL_INDUSTRIES
    match: MatchResult = MatchResult()

    @property
    def is_logged_in_buyer(self) -> bool:
        return self.buyer_profile is not None

    @property
    def active_profile(self) -> Optional[UserProfile]:
        """The profile driving the current role, supplier first."""
        if self.is_registered_supplier and self.supplier_profile:
            return self.supplier_profile
        return self.buyer_profile or self.supplier_profile


def _go(state: ViewState, view: View, **changes) -> ViewState:
    if state.view != view:
        logger.debug(f"View transition: {state.view.value} -> {view.value}")
    return replace(state, view=view, **changes)


# ---------- bootstrap ----------

def bootstrap_resolved(state: ViewState, profile: Optional[UserProfile], has_dossier: bool) -> ViewState:
    """Session resolution finished; route by role and dossier existence."""
    if profile is None:
        return _go(state, View.LANDING, loading=False)
    if profile.role == "supplier":
        destination = View.SUPPLIER_DASHBOARD if has_dossier else View.SUPPLIER_ONBOARDING
        return _go(state, destination, loading=False, supplier_profile=profile, is_registered_supplier=True)
    return _go(state, View.BUYER, loading=False, buyer_profile=profile)


def bootstrap_failed(state: ViewState) -> ViewState:
    return _go(state, View.LANDING, loading=False)


# ---------- role entry ----------

def become_supplier(state: ViewState, has_dossier: bool) -> ViewState:
    if state.is_registered_supplier and has_dossier:
        return _go(state, View.SUPPLIER_DASHBOARD)
    if state.supplier_profile is not None:
        return _go(state, View.SUPPLIER_ONBOARDING)
    return _go(state, View.SUPPLIER_LOGIN)


def become_buyer(state: ViewState) -> ViewState:
    return _go(state, View.BUYER if state.is_logged_in_buyer else View.BUYER_LOGIN)


def buyer_login_succeeded(state: ViewState, profile: UserProfile) -> ViewState:
    return _go(state, View.BUYER, buyer_profile=profile, is_registered_supplier=False)


def supplier_login_succeeded(state: ViewState, profile: UserProfile, has_dossier: bool) -> ViewState:
    destination = View.SUPPLIER_DASHBOARD if has_dossier else View.SUPPLIER_ONBOARDING
    return _go(
        state,
        destination,
        supplier_profile=profile,
        is_registered_supplier=True,
        buyer_profile=None,
    )


def onboarding_completed(state: ViewState, company_name: str, contact_email: str = "") -> ViewState:
    """The supplier's display name becomes the company name."""
    if state.supplier_profile is not None:
        profile = replace(state.supplier_profile, username=company_name)
    else:
        profile = UserProfile(username=company_name, email=contact_email, role="supplier")
    return _go(state, View.SUPPLIER_DASHBOARD, supplier_profile=profile, is_registered_supplier=True)


def listing_saved(state: ViewState) -> ViewState:
    return _go(state, View.SUPPLIER_DASHBOARD)


# ---------- drill-downs ----------

def open_supplier_profile(state: ViewState, record: Optional[SupplierRecord]) -> ViewState:
    """Lookup misses leave the state untouched."""
    if record is None:
        return state
    return _go(state, View.SUPPLIER_PROFILE, selected_supplier=record)


def open_own_profile(state: ViewState) -> ViewState:
    return _go(state, View.SUPPLIER_OWN_PROFILE)


def open_buyer_profile(state: ViewState) -> ViewState:
    return _go(state, View.BUYER_PROFILE)


def open_product_detail(state: ViewState, product: ProductRecord, supplier: SupplierRecord) -> ViewState:
    """Remember where we came from; re-opening from the detail view keeps the original origin."""
    origin = state.return_view if state.view == View.PRODUCT_DETAIL else state.view
    return _go(
        state,
        View.PRODUCT_DETAIL,
        selected_product=product,
        selected_supplier=supplier,
        return_view=origin,
    )


def back(state: ViewState) -> ViewState:
    if state.view == View.PRODUCT_DETAIL:
        return _go(state, state.return_view)
    if state.view == View.SUPPLIER_OWN_PROFILE:
        return _go(state, View.SUPPLIER_DASHBOARD)
    if state.view in (View.SUPPLIER_PROFILE, View.BUYER_PROFILE):
        return _go(state, View.BUYER)
    if state.view in _ENTRY_VIEWS:
        return _go(state, View.LANDING)
    return state


# ---------- exits ----------

def logout(state: ViewState) -> ViewState:
    """Back to landing with every session and selection field cleared."""
    return _go(
        state,
        View.LANDING,
        buyer_profile=None,
        supplier_profile=None,
        is_registered_supplier=False,
        selected_supplier=None,
        selected_product=None,
        return_view=View.BUYER,
        chat_open=False,
        chat_recipient=None,
        chat_initial_message=None,
    )


def reset_filters(state: ViewState) -> ViewState:
    return replace(state, search_term="", industry_filter=ALL_INDUSTRIES, match=MatchResult())


def go_home(state: ViewState) -> ViewState:
    return _go(reset_filters(state), View.LANDING)


# ---------- directory filters ----------

def set_search_term(state: ViewState, term: str) -> ViewState:
    return replace(state, search_term=term)


def set_industry_filter(state: ViewState, industry: str) -> ViewState:
    """Changing sector discards the AI match."""
    return replace(state, industry_filter=industry or ALL_INDUSTRIES, match=MatchResult())


def apply_match(state: ViewState, match: MatchResult) -> ViewState:
    return _go(state, View.BUYER, match=match)


# ---------- chat ----------

def open_chat(
    state: ViewState,
    recipient: Optional[SupplierRecord] = None,
    initial_message: Optional[str] = None,
) -> ViewState:
    return replace(state, chat_open=True, chat_recipient=recipient, chat_initial_message=initial_message)


def exit_direct_message(state: ViewState) -> ViewState:
    """Leave the supplier conversation; the general assistant stays open."""
    return replace(state, chat_recipient=None, chat_initial_message=None)


def close_chat(state: ViewState) -> ViewState:
    return replace(state, chat_open=False, chat_recipient=None, chat_initial_message=None)
