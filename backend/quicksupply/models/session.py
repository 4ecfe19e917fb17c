"""
Session, profile and order models.

WHAT: Identity data consumed from the auth collaborator plus buyer orders
WHY: Navigation guards and owner matching depend on role and identity
HOW: Frozen dataclasses
"""

from dataclasses import dataclass
from typing import Literal, Optional

Role = Literal["buyer", "supplier"]


@dataclass(frozen=True)
class UserProfile:
    """Signed-in user as seen by the directory (user_id is None in offline demo sessions)."""
    username: str
    email: str
    role: Role
    user_id: Optional[str] = None


@dataclass(frozen=True)
class AuthSession:
    """An authenticated session issued by the identity provider."""
    access_token: str
    profile: UserProfile


@dataclass(frozen=True)
class OrderSummary:
    """A buyer order with the supplier columns joined in."""
    id: str
    buyer_id: str
    supplier_id: str
    total: str
    status: str
    progress: int
    est_delivery: str
    created_at: str
    supplier_name: Optional[str] = None
    supplier_industry: Optional[str] = None
    supplier_location: Optional[str] = None
