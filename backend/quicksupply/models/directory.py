"""
Directory domain models.

WHAT: Supplier, product and draft records held by the directory reconciler
WHY: One immutable shape for data coming from the store and the fallback dataset
HOW: Frozen dataclasses; mutations produce a new record via dataclasses.replace
"""

import enum
from dataclasses import dataclass, field
from typing import Optional


class Industry(str, enum.Enum):
    """Top-level sectors shown in the buyer directory."""
    AGRICULTURE = "Agriculture"
    GARMENT_TEXTILE = "Garment & Textile"
    HANDICRAFTS = "Handicrafts"
    ELECTRONICS = "Electronics"
    CONSTRUCTION = "Construction"
    FOOD_PROCESSING = "Food Processing"

    @classmethod
    def parse(cls, value: Optional[str], default: "Industry | None" = None) -> "Industry":
        """Map a stored label back to the enum, tolerating unknown values."""
        for member in cls:
            if value in (member.value, member.name):
                return member
        return default or cls.GARMENT_TEXTILE


@dataclass(frozen=True)
class ProductRecord:
    """A product offered by a supplier."""
    id: str
    supplier_id: str
    name: str
    description: str = ""
    price: str = ""  # display string, e.g. "$15.00"
    moq: str = ""  # display string, e.g. "500 units"
    category: str = ""
    images: tuple[str, ...] = ()


@dataclass(frozen=True)
class SupplierRecord:
    """
    A directory entry.

    is_owner marks the authenticated supplier's company dossier.
    belongs_to_owner marks an independent listing owned by that supplier.
    """
    id: str
    name: str
    industry: Industry
    category: str
    location: str
    description: str
    rating: float = 5.0
    contact_email: str = ""
    image_url: str = ""
    owner_user_id: Optional[str] = None
    certifications: tuple[str, ...] = ()
    export_markets: tuple[str, ...] = ()
    established_year: Optional[int] = None
    employee_count: Optional[str] = None
    factory_size: Optional[str] = None
    production_capacity: Optional[str] = None
    business_type: Optional[str] = None
    is_owner: bool = False
    belongs_to_owner: bool = False
    products: tuple[ProductRecord, ...] = ()


@dataclass(frozen=True)
class ProductDraft:
    """Product fields submitted with a listing; ids are assigned on write."""
    name: str
    description: str = ""
    price: str = ""
    moq: str = ""
    category: str = ""
    images: tuple[str, ...] = ()


@dataclass(frozen=True)
class ListingDraft:
    """
    Listing fields submitted by a supplier.

    None means "not provided": edits keep the existing value, inserts use defaults.
    """
    name: Optional[str] = None
    industry: Optional[Industry] = None
    category: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    contact_email: Optional[str] = None
    products: Optional[tuple[ProductDraft, ...]] = None


@dataclass(frozen=True)
class DossierUpdate:
    """Company dossier fields editable by the owner."""
    name: Optional[str] = None
    industry: Optional[Industry] = None
    category: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    established_year: Optional[int] = None
    employee_count: Optional[str] = None
    factory_size: Optional[str] = None
    production_capacity: Optional[str] = None
    business_type: Optional[str] = None
    export_markets: Optional[tuple[str, ...]] = None
    certifications: Optional[tuple[str, ...]] = None


@dataclass(frozen=True)
class OnboardingForm:
    """Basic company facts collected before the AI dossier is generated."""
    name: str
    location: str
    industry: Industry
    category: str
    capacity: str = ""


@dataclass(frozen=True)
class GeneratedDossier:
    """Dossier fields produced by the AI assistant (or its fallback template)."""
    description: str
    certifications: tuple[str, ...] = field(default_factory=tuple)
    established_year: Optional[int] = None
    employee_count: Optional[str] = None
    factory_size: Optional[str] = None
    business_type: Optional[str] = None


@dataclass(frozen=True)
class MatchExplanation:
    """Why the assistant picked a supplier."""
    name: str
    reason: str


@dataclass(frozen=True)
class MatchResult:
    """
    Most recent AI match: ordered supplier ids with a parallel explanation list.

    An empty result means "no match active" and the directory falls back to search.
    """
    ids: tuple[str, ...] = ()
    analysis: tuple[MatchExplanation, ...] = ()

    @property
    def active(self) -> bool:
        return bool(self.ids)
