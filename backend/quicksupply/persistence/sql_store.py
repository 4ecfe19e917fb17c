"""
SQL store implementation.

WHAT: DirectoryStore backed by SQLAlchemy (sqlite by default)
WHY: Self-hosted persistence and local accounts without a hosted backend
HOW: Sync ORM sessions run in worker threads; passlib hashes, python-jose tokens
"""

import asyncio
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import joinedload, selectinload, sessionmaker

from .mapping import (
    PRODUCT_COLUMNS, SUPPLIER_COLUMNS, order_from_row, supplier_from_row,
)
from .types import (
    StoreAuthError, StoreConflictError, StoreResponseError, StoreUnavailableError,
)
from ..core.config import settings
from ..core.database import get_db, ping_database
from ..core.models import OrderRow, ProductRow, ProfileRow, SupplierRow
from ..models.directory import SupplierRecord
from ..models.session import AuthSession, OrderSummary, Role, UserProfile
from ..utils.logger import get_logger

logger = get_logger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def _supplier_dict(row: SupplierRow) -> dict[str, Any]:
    data = {column: getattr(row, column) for column in SUPPLIER_COLUMNS}
    data["products"] = [
        {column: getattr(product, column) for column in PRODUCT_COLUMNS}
        for product in row.products
    ]
    return data


def _profile(row: ProfileRow) -> UserProfile:
    return UserProfile(username=row.username, email=row.email, role=row.role, user_id=row.id)


@contextmanager
def _translate_errors(label: str):
    """Re-raise SQLAlchemy errors as store errors."""
    try:
        yield
    except OperationalError as e:
        raise StoreUnavailableError(f"{label}: database unavailable ({e.orig})") from e
    except IntegrityError as e:
        raise StoreConflictError(f"{label}: {e.orig}") from e
    except SQLAlchemyError as e:
        raise StoreResponseError(f"{label}: {e}") from e


class SQLStore:
    """SQLAlchemy-backed directory store with local accounts."""

    def __init__(
        self,
        session_factory: sessionmaker | None = None,
        *,
        secret_key: str | None = None,
        algorithm: str | None = None,
        token_ttl_minutes: int | None = None,
    ):
        self._session_factory = session_factory
        self._secret_key = secret_key or settings.AUTH_SECRET_KEY
        self._algorithm = algorithm or settings.AUTH_JWT_ALGORITHM
        self._token_ttl = timedelta(minutes=token_ttl_minutes or settings.AUTH_TOKEN_EXPIRE_MINUTES)
        # revoked token -> its expiry
        self._revoked_tokens: dict[str, datetime] = {}
        logger.info("SQL store initialized")

    def bind_session(self, access_token: str | None) -> "SQLStore":
        """Local accounts need no per-request authorization."""
        return self

    async def ping(self) -> dict:
        bind = self._session_factory.kw.get("bind") if self._session_factory else None
        return await asyncio.to_thread(ping_database, bind)

    # ---------- records ----------

    async def fetch_suppliers(self) -> list[SupplierRecord]:
        return await asyncio.to_thread(self._fetch_suppliers)

    def _fetch_suppliers(self) -> list[SupplierRecord]:
        with _translate_errors("fetch suppliers"), get_db(self._session_factory) as db:
            rows = (
                db.query(SupplierRow)
                .options(selectinload(SupplierRow.products))
                .order_by(SupplierRow.created_at.desc())
                .all()
            )
            return [supplier_from_row(_supplier_dict(row)) for row in rows]

    async def insert_supplier(self, fields: dict[str, Any]) -> SupplierRecord:
        return await asyncio.to_thread(self._insert_supplier, fields)

    def _insert_supplier(self, fields: dict[str, Any]) -> SupplierRecord:
        # A caller-chosen id is kept so a retry or refresh can recognise the row
        values = {k: v for k, v in fields.items() if k in SUPPLIER_COLUMNS and (k != "id" or v)}
        with _translate_errors("insert supplier"), get_db(self._session_factory) as db:
            row = SupplierRow(**values)
            db.add(row)
            db.flush()
            db.refresh(row)
            logger.info(f"Inserted supplier {row.id} ({row.name})")
            return supplier_from_row(_supplier_dict(row))

    async def update_supplier(self, supplier_id: str, fields: dict[str, Any]) -> None:
        await asyncio.to_thread(self._update_supplier, supplier_id, fields)

    def _update_supplier(self, supplier_id: str, fields: dict[str, Any]) -> None:
        with _translate_errors("update supplier"), get_db(self._session_factory) as db:
            row = db.get(SupplierRow, supplier_id)
            if row is None:
                raise StoreConflictError(f"update supplier: no supplier with id {supplier_id}")
            for column, value in fields.items():
                if column in SUPPLIER_COLUMNS and column != "id":
                    setattr(row, column, value)
            db.flush()
            logger.info(f"Updated supplier {supplier_id} ({', '.join(sorted(fields))})")

    async def delete_products(self, supplier_id: str) -> None:
        await asyncio.to_thread(self._delete_products, supplier_id)

    def _delete_products(self, supplier_id: str) -> None:
        with _translate_errors("delete products"), get_db(self._session_factory) as db:
            deleted = db.query(ProductRow).filter(ProductRow.supplier_id == supplier_id).delete()
            logger.debug(f"Deleted {deleted} products of supplier {supplier_id}")

    async def insert_products(self, products: list[dict[str, Any]]) -> None:
        await asyncio.to_thread(self._insert_products, products)

    def _insert_products(self, products: list[dict[str, Any]]) -> None:
        with _translate_errors("insert products"), get_db(self._session_factory) as db:
            for product in products:
                values = {k: v for k, v in product.items() if k in PRODUCT_COLUMNS and k != "id"}
                db.add(ProductRow(**values))
            db.flush()
            logger.debug(f"Inserted {len(products)} products")

    async def fetch_orders(self, buyer_id: str) -> list[OrderSummary]:
        return await asyncio.to_thread(self._fetch_orders, buyer_id)

    def _fetch_orders(self, buyer_id: str) -> list[OrderSummary]:
        with _translate_errors("fetch orders"), get_db(self._session_factory) as db:
            rows = (
                db.query(OrderRow)
                .options(joinedload(OrderRow.supplier))
                .filter(OrderRow.buyer_id == buyer_id)
                .order_by(OrderRow.created_at.desc())
                .all()
            )
            return [
                order_from_row({
                    "id": row.id,
                    "buyer_id": row.buyer_id,
                    "supplier_id": row.supplier_id,
                    "total": row.total,
                    "status": row.status,
                    "progress": row.progress,
                    "est_delivery": row.est_delivery,
                    "created_at": row.created_at.isoformat() if row.created_at else "",
                    "supplier": {
                        "name": row.supplier.name,
                        "industry": row.supplier.industry,
                        "location": row.supplier.location,
                    } if row.supplier else None,
                })
                for row in rows
            ]

    # ---------- accounts ----------

    def _issue_token(self, profile: UserProfile) -> str:
        now = datetime.now(timezone.utc)
        claims = {"sub": profile.user_id, "role": profile.role, "iat": now, "exp": now + self._token_ttl}
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    async def sign_up(self, email: str, password: str, username: str, role: Role) -> AuthSession | None:
        return await asyncio.to_thread(self._sign_up, email, password, username, role)

    def _sign_up(self, email: str, password: str, username: str, role: Role) -> AuthSession:
        normalized = email.strip().lower()
        with _translate_errors("sign up"), get_db(self._session_factory) as db:
            if db.query(ProfileRow).filter(ProfileRow.email == normalized).first():
                raise StoreAuthError("User already registered")
            row = ProfileRow(
                email=normalized,
                username=username,
                role=role,
                password_hash=pwd_context.hash(password),
            )
            db.add(row)
            db.flush()
            profile = _profile(row)
        logger.info(f"Registered {role} account {profile.user_id}")
        return AuthSession(access_token=self._issue_token(profile), profile=profile)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        return await asyncio.to_thread(self._sign_in, email, password)

    def _sign_in(self, email: str, password: str) -> AuthSession:
        with _translate_errors("sign in"), get_db(self._session_factory) as db:
            row = db.query(ProfileRow).filter(ProfileRow.email == email.strip().lower()).first()
            if row is None or not pwd_context.verify(password, row.password_hash):
                raise StoreAuthError("Invalid login credentials")
            profile = _profile(row)
        return AuthSession(access_token=self._issue_token(profile), profile=profile)

    async def get_current_session(self, access_token: str) -> AuthSession | None:
        return await asyncio.to_thread(self._get_current_session, access_token)

    def _get_current_session(self, access_token: str) -> AuthSession | None:
        if not access_token or access_token in self._revoked_tokens:
            return None
        try:
            claims = jwt.decode(access_token, self._secret_key, algorithms=[self._algorithm])
        except JWTError:
            logger.debug("Rejected invalid or expired access token")
            return None
        with _translate_errors("get session"), get_db(self._session_factory) as db:
            row = db.get(ProfileRow, claims.get("sub"))
            if row is None:
                return None
            return AuthSession(access_token=access_token, profile=_profile(row))

    async def sign_out(self, access_token: str) -> None:
        self._prune_revoked()
        try:
            expires = jwt.get_unverified_claims(access_token).get("exp")
        except JWTError:
            logger.debug("Sign-out with an undecodable token; nothing to revoke")
            return
        # Tokens without exp never expire and are revoked for the store's lifetime
        self._revoked_tokens[access_token] = (
            datetime.fromtimestamp(expires, timezone.utc) if expires is not None else datetime.max.replace(tzinfo=timezone.utc)
        )
        logger.info("Access token revoked")

    def _prune_revoked(self) -> None:
        """Forget revoked tokens that have expired; jwt.decode rejects those on its own."""
        now = datetime.now(timezone.utc)
        expired = [token for token, expires in self._revoked_tokens.items() if expires <= now]
        for token in expired:
            del self._revoked_tokens[token]

    async def close(self) -> None:
        """Engines are disposed by close_db(); nothing is held per store."""
        return None
