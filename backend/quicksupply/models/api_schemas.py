"""
Pydantic API schemas for the workspace endpoints.

WHAT: Request and response models for FastAPI
WHY: Type-safe validation and serialization of directory records and view state
HOW: Pydantic v2 models; responses read the core dataclasses via from_attributes
"""

from typing import Optional, List, Dict, Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .directory import (
    DossierUpdate, Industry, ListingDraft, OnboardingForm, ProductDraft,
)
from ..services.navigation import ALL_INDUSTRIES, View


# ========== Records ==========

class ProductOut(BaseModel):
    """Product as shown to clients."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    supplier_id: str
    name: str
    description: str
    price: str
    moq: str
    category: str
    images: List[str]


class SupplierOut(BaseModel):
    """Directory entry as shown to clients."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_user_id: Optional[str] = None
    name: str
    industry: Industry
    category: str
    location: str
    description: str
    rating: float
    contact_email: str
    image_url: str
    certifications: List[str]
    export_markets: List[str]
    established_year: Optional[int] = None
    employee_count: Optional[str] = None
    factory_size: Optional[str] = None
    production_capacity: Optional[str] = None
    business_type: Optional[str] = None
    is_owner: bool
    belongs_to_owner: bool
    products: List[ProductOut]


class ProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    username: str
    email: str
    role: Literal["buyer", "supplier"]
    user_id: Optional[str] = None


class MatchExplanationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    reason: str


class MatchOut(BaseModel):
    """Most recent AI match (empty when no match is active)."""
    model_config = ConfigDict(from_attributes=True)

    ids: List[str]
    analysis: List[MatchExplanationOut]


# ========== Workspace ==========

class ChatContextOut(BaseModel):
    open: bool
    recipient_id: Optional[str] = None
    recipient_name: Optional[str] = None
    initial_message: Optional[str] = None


class WorkspaceSnapshot(BaseModel):
    """Everything a client needs to render the current screen."""
    workspace_id: str
    view: View
    loading: bool
    offline: bool
    is_registered_supplier: bool
    is_logged_in_buyer: bool
    buyer_profile: Optional[ProfileOut] = None
    supplier_profile: Optional[ProfileOut] = None
    selected_supplier: Optional[SupplierOut] = None
    selected_product: Optional[ProductOut] = None
    return_view: View
    chat: ChatContextOut
    search_term: str
    industry_filter: str
    match: MatchOut
    access_token: Optional[str] = None
    notice: Optional[str] = None


class DirectoryResponse(BaseModel):
    """Buyer directory: industry -> category -> suppliers."""
    groups: Dict[str, Dict[str, List[SupplierOut]]]
    sectors: List[str]
    search_term: str
    industry_filter: str
    match: MatchOut
    offline: bool


class DashboardResponse(BaseModel):
    dossier: Optional[SupplierOut] = None
    listings: List[SupplierOut]


class UpsertResponse(BaseModel):
    record: Optional[SupplierOut] = None
    persisted: bool
    notice: Optional[str] = None
    state: WorkspaceSnapshot


class CitationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    title: str
    uri: str


class ChatEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    role: Literal["user", "model"]
    text: str
    links: List[CitationOut] = Field(default_factory=list)


class ChatResponse(BaseModel):
    recipient_id: Optional[str] = None
    recipient_name: Optional[str] = None
    messages: List[ChatEntryOut]
    reply: Optional[ChatEntryOut] = None


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

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


class RefreshResponse(BaseModel):
    refreshed: bool
    offline: bool
    supplier_count: int


# ========== Requests ==========

class LoginRequest(BaseModel):
    """Sign in, or register first when create_account=true."""
    email: str = Field(default="", max_length=254, description="Account email")
    password: str = Field(default="", max_length=128, description="Account password")
    username: Optional[str] = Field(default=None, max_length=100, description="Display name (registration)")
    create_account: bool = Field(default=False, description="Register the account first")


class OnboardingRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    location: str = Field(..., min_length=1, max_length=200)
    industry: Industry
    category: str = Field(..., min_length=1, max_length=100)
    capacity: str = Field(default="", max_length=100, description="Annual production capacity")

    def to_form(self) -> OnboardingForm:
        return OnboardingForm(
            name=self.name.strip(),
            location=self.location.strip(),
            industry=self.industry,
            category=self.category.strip(),
            capacity=self.capacity.strip(),
        )


class FiltersRequest(BaseModel):
    search_term: Optional[str] = Field(default=None, max_length=200)
    industry: Optional[str] = Field(default=None, description="Industry label or 'All'")

    @field_validator("industry")
    @classmethod
    def validate_industry(cls, v):
        """Industry must be 'All' or a known sector label."""
        if v is None or v == ALL_INDUSTRIES:
            return v
        labels = [industry.value for industry in Industry]
        if v not in labels:
            raise ValueError(f"industry must be one of {[ALL_INDUSTRIES, *labels]}")
        return v


class MatchRequest(BaseModel):
    query: Optional[str] = Field(default=None, max_length=1000, description="Defaults to the current search term")


class OpenSupplierRequest(BaseModel):
    name: str = Field(..., min_length=1)


class OpenProductRequest(BaseModel):
    product_id: str = Field(..., min_length=1)


class ProductIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    price: str = ""
    moq: str = ""
    category: str = ""
    images: List[str] = Field(default_factory=list)

    def to_draft(self) -> ProductDraft:
        return ProductDraft(
            name=self.name,
            description=self.description,
            price=self.price,
            moq=self.moq,
            category=self.category,
            images=tuple(self.images),
        )


class ListingRequest(BaseModel):
    """Listing fields; omitted fields keep existing values (edit) or use defaults (create)."""
    name: Optional[str] = None
    industry: Optional[Industry] = None
    category: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    contact_email: Optional[str] = None
    products: Optional[List[ProductIn]] = None

    def to_draft(self) -> ListingDraft:
        return ListingDraft(
            name=self.name,
            industry=self.industry,
            category=self.category,
            location=self.location,
            description=self.description,
            image_url=self.image_url,
            contact_email=self.contact_email,
            products=None if self.products is None else tuple(p.to_draft() for p in self.products),
        )


class ListingDraftOut(BaseModel):
    """Pre-filled values for a new listing."""
    model_config = ConfigDict(from_attributes=True)

    name: Optional[str] = None
    industry: Optional[Industry] = None
    category: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    contact_email: Optional[str] = None
    products: Optional[List[ProductIn]] = None


class DossierRequest(BaseModel):
    name: Optional[str] = None
    industry: Optional[Industry] = None
    category: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    established_year: Optional[int] = Field(default=None, ge=1800, le=2100)
    employee_count: Optional[str] = None
    factory_size: Optional[str] = None
    production_capacity: Optional[str] = None
    business_type: Optional[str] = None
    export_markets: Optional[List[str]] = None
    certifications: Optional[List[str]] = None

    def to_update(self) -> DossierUpdate:
        data = self.model_dump()
        for key in ("export_markets", "certifications"):
            if data[key] is not None:
                data[key] = tuple(data[key])
        return DossierUpdate(**data)


class ContactRequest(BaseModel):
    supplier_id: str = Field(..., min_length=1)


class ChatMessageRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=4000)
