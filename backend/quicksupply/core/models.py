"""
ORM models for the SQL store backend.

WHAT: SQLAlchemy models for suppliers, products, orders and profiles
WHY: Mirror the hosted schema so both store backends share one row mapping
HOW: Declarative models with uuid string keys, JSON array columns, cascades
"""

from datetime import datetime
from uuid import uuid4
from sqlalchemy import (
    Column, Integer, String, Float, Boolean, DateTime, Text, JSON,
    ForeignKey, CheckConstraint, Index,
)
from sqlalchemy.orm import relationship

from .database import Base


def _uuid() -> str:
    return str(uuid4())


class SupplierRow(Base):
    """
    Suppliers table - dossiers and listings.

    WHAT: One row per directory entry
    WHY: is_owner rows are company dossiers, belongs_to_owner rows are extra listings
    HOW: uuid primary key, products cascade on delete
    """
    __tablename__ = "suppliers"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    name = Column(String(200), nullable=False)
    industry = Column(String(50), nullable=False)
    category = Column(String(100), nullable=False, default="General")
    location = Column(String(100), nullable=False, default="")
    rating = Column(Float, nullable=False, default=5.0)
    description = Column(Text, nullable=False, default="")
    contact_email = Column(String(255), nullable=False, default="")
    image_url = Column(String(500), nullable=False, default="")
    is_owner = Column(Boolean, nullable=False, default=False)
    belongs_to_owner = Column(Boolean, nullable=False, default=False)
    established_year = Column(Integer, nullable=True)
    employee_count = Column(String(50), nullable=True)
    factory_size = Column(String(50), nullable=True)
    production_capacity = Column(String(100), nullable=True)
    business_type = Column(String(100), nullable=True)
    export_markets = Column(JSON, nullable=False, default=list)
    certifications = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("rating >= 0 AND rating <= 5", name="check_rating_range"),
        Index("idx_suppliers_contact_email", "contact_email"),
    )

    products = relationship("ProductRow", back_populates="supplier", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<SupplierRow(id={self.id}, name={self.name}, is_owner={self.is_owner})>"


class ProductRow(Base):
    """Products table - items offered under a supplier row."""
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=_uuid)
    supplier_id = Column(String(36), ForeignKey("suppliers.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(String(50), nullable=False, default="")
    moq = Column(String(50), nullable=False, default="")
    category = Column(String(100), nullable=False, default="")
    images = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_products_supplier", "supplier_id"),
    )

    supplier = relationship("SupplierRow", back_populates="products")

    def __repr__(self):
        return f"<ProductRow(id={self.id}, name={self.name})>"


class ProfileRow(Base):
    """Profiles table - local accounts (password hash only used by the SQL backend)."""
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(String(255), nullable=False, unique=True)
    username = Column(String(100), nullable=False)
    role = Column(String(20), nullable=False)
    password_hash = Column(String(255), nullable=False)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("role IN ('buyer', 'supplier')", name="check_profile_role"),
    )

    def __repr__(self):
        return f"<ProfileRow(id={self.id}, email={self.email}, role={self.role})>"


class OrderRow(Base):
    """Orders table - buyer purchase history."""
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=_uuid)
    buyer_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    supplier_id = Column(String(36), ForeignKey("suppliers.id", ondelete="CASCADE"), nullable=False)
    total = Column(String(50), nullable=False)
    status = Column(String(50), nullable=False, default="Processing")
    progress = Column(Integer, nullable=False, default=0)
    est_delivery = Column(String(50), nullable=False, default="")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("progress >= 0 AND progress <= 100", name="check_progress_range"),
        Index("idx_orders_buyer", "buyer_id"),
    )

    supplier = relationship("SupplierRow")

    def __repr__(self):
        return f"<OrderRow(id={self.id}, status={self.status})>"
