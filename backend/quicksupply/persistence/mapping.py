"""
Row mapping between store columns and directory records.

WHAT: Adapters from loosely-typed rows to SupplierRecord/ProductRecord and back
WHY: Keep the store's column naming out of the reconciler and navigation code
HOW: Exhaustive field enumeration with defaults in both directions
"""

from dataclasses import asdict
from typing import Any, Iterable, Mapping, Optional

from ..models.directory import (
    DossierUpdate, Industry, ProductDraft, ProductRecord, SupplierRecord,
)
from ..models.session import OrderSummary

SUPPLIER_COLUMNS = (
    "id", "user_id", "name", "industry", "category", "location", "rating",
    "description", "contact_email", "image_url", "is_owner", "belongs_to_owner",
    "established_year", "employee_count", "factory_size", "production_capacity",
    "business_type", "export_markets", "certifications",
)

PRODUCT_COLUMNS = (
    "id", "supplier_id", "name", "description", "price", "moq", "category", "images",
)


def _text(value: Any, default: str = "") -> str:
    return default if value is None else str(value)


def _strings(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(str(item) for item in value)


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _rating(value: Any) -> float:
    try:
        return float(value) if value is not None else 5.0
    except (TypeError, ValueError):
        return 5.0


def product_from_row(row: Mapping[str, Any]) -> ProductRecord:
    """Map a products row to a ProductRecord."""
    return ProductRecord(
        id=_text(row.get("id")),
        supplier_id=_text(row.get("supplier_id")),
        name=_text(row.get("name")),
        description=_text(row.get("description")),
        price=_text(row.get("price")),
        moq=_text(row.get("moq")),
        category=_text(row.get("category")),
        images=_strings(row.get("images")),
    )


def supplier_from_row(row: Mapping[str, Any]) -> SupplierRecord:
    """Map a suppliers row (optionally with nested products) to a SupplierRecord."""
    user_id = row.get("user_id")
    return SupplierRecord(
        id=_text(row.get("id")),
        owner_user_id=str(user_id) if user_id else None,
        name=_text(row.get("name")),
        industry=Industry.parse(row.get("industry")),
        category=_text(row.get("category")),
        location=_text(row.get("location")),
        rating=_rating(row.get("rating")),
        description=_text(row.get("description")),
        contact_email=_text(row.get("contact_email")),
        image_url=_text(row.get("image_url")),
        is_owner=bool(row.get("is_owner")),
        belongs_to_owner=bool(row.get("belongs_to_owner")),
        established_year=_optional_int(row.get("established_year")),
        employee_count=row.get("employee_count"),
        factory_size=row.get("factory_size"),
        production_capacity=row.get("production_capacity"),
        business_type=row.get("business_type"),
        export_markets=_strings(row.get("export_markets")),
        certifications=_strings(row.get("certifications")),
        products=tuple(product_from_row(p) for p in (row.get("products") or [])),
    )


def supplier_insert_fields(record: SupplierRecord) -> dict[str, Any]:
    """Columns for inserting a new supplier row; callers may add an "id" of their choosing."""
    return {
        "user_id": record.owner_user_id,
        "name": record.name,
        "industry": record.industry.value,
        "category": record.category,
        "location": record.location,
        "rating": record.rating,
        "description": record.description,
        "contact_email": record.contact_email,
        "image_url": record.image_url,
        "is_owner": record.is_owner,
        "belongs_to_owner": record.belongs_to_owner,
        "established_year": record.established_year,
        "employee_count": record.employee_count,
        "factory_size": record.factory_size,
        "production_capacity": record.production_capacity,
        "business_type": record.business_type,
        "export_markets": list(record.export_markets),
        "certifications": list(record.certifications),
    }


def listing_update_fields(record: SupplierRecord) -> dict[str, Any]:
    """Columns a listing edit writes back."""
    return {
        "name": record.name,
        "industry": record.industry.value,
        "category": record.category,
        "description": record.description,
        "location": record.location,
        "image_url": record.image_url,
        "contact_email": record.contact_email,
    }


def dossier_update_fields(updates: DossierUpdate) -> dict[str, Any]:
    """Columns a dossier edit writes back; unset fields are left alone."""
    fields: dict[str, Any] = {}
    for name, value in asdict(updates).items():
        if value is None:
            continue
        if isinstance(value, Industry):
            value = value.value
        elif isinstance(value, tuple):
            value = list(value)
        fields[name] = value
    return fields


def product_insert_rows(supplier_id: str, drafts: Iterable[ProductDraft]) -> list[dict[str, Any]]:
    """Rows for inserting a listing's products under supplier_id."""
    return [
        {
            "supplier_id": supplier_id,
            "name": draft.name,
            "description": draft.description,
            "price": draft.price,
            "moq": draft.moq,
            "category": draft.category,
            "images": list(draft.images),
        }
        for draft in drafts
    ]


def order_from_row(row: Mapping[str, Any]) -> OrderSummary:
    """Map an orders row (with optional joined supplier) to an OrderSummary."""
    supplier = row.get("supplier") or {}
    return OrderSummary(
        id=_text(row.get("id")),
        buyer_id=_text(row.get("buyer_id")),
        supplier_id=_text(row.get("supplier_id")),
        total=_text(row.get("total")),
        status=_text(row.get("status")),
        progress=_optional_int(row.get("progress")) or 0,
        est_delivery=_text(row.get("est_delivery")),
        created_at=_text(row.get("created_at")),
        supplier_name=supplier.get("name"),
        supplier_industry=supplier.get("industry"),
        supplier_location=supplier.get("location"),
    )
