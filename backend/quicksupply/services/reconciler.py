"""
Directory state reconciler.

WHAT: Owns the in-memory supplier collection shown to one workspace
WHY: Remote data must win when available, fallback data must fill gaps, and user edits must show immediately
HOW: Merge-by-id on load/refresh, optimistic whole-record replacement on writes, explicit Outcome branches
"""

import re
import time
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Sequence
from uuid import uuid4

from ..core.config import settings
from ..data.fallback_suppliers import FALLBACK_SUPPLIERS
from ..models.directory import (
    DossierUpdate, Industry, ListingDraft, ProductDraft, ProductRecord, SupplierRecord,
)
from ..models.session import UserProfile
from ..persistence.gateway import attempt
from ..persistence.mapping import (
    dossier_update_fields, listing_update_fields, product_insert_rows, supplier_insert_fields,
)
from ..persistence.store import DirectoryStore
from ..persistence.types import ErrorKind, Outcome
from ..utils.logger import get_logger

logger = get_logger(__name__)

_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

DEFAULT_PRICE = "Inquire"
DEFAULT_MOQ = "N/A"


def is_persistence_id(value: Optional[str]) -> bool:
    """True when value is a canonical 8-4-4-4-12 hex identifier issued by the store."""
    return bool(value) and bool(_UUID_PATTERN.match(value))


def merge_records(
    remote: Sequence[SupplierRecord],
    fallback: Sequence[SupplierRecord],
) -> list[SupplierRecord]:
    """
    Merge remote records with the fallback dataset.

    Remote records come first and win on id collision; fallback records fill ids
    the remote set lacks.
    """
    remote_ids = {record.id for record in remote}
    return [*remote, *(record for record in fallback if record.id not in remote_ids)]


def _same_email(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a) and bool(b) and a.strip().lower() == b.strip().lower()


def _owned_by(record: SupplierRecord, email: Optional[str], user_id: Optional[str]) -> bool:
    """Stable owner id when both sides have one, email otherwise."""
    if user_id and record.owner_user_id:
        return record.owner_user_id == user_id
    return _same_email(record.contact_email, email)


@dataclass(frozen=True)
class UpsertResult:
    """
    Result of an optimistic write.

    record is the locally visible record (None when nothing was written).
    persisted tells whether the store accepted the write.
    notice is a non-blocking message for failures other than connectivity.
    """
    record: Optional[SupplierRecord]
    persisted: bool = False
    notice: Optional[str] = None


class DirectoryReconciler:
    """
    Authoritative in-memory supplier list for one workspace.

    WHAT: load/refresh merge, optimistic listing and dossier writes, lookups, owner views
    WHY: Availability over consistency; the local list is the presentation source of truth
    HOW: Every store call goes through attempt(); failures pick a local-only branch
    """

    def __init__(
        self,
        store: DirectoryStore,
        fallback: Iterable[SupplierRecord] | None = None,
    ):
        self._store = store
        self._fallback: tuple[SupplierRecord, ...] = tuple(
            FALLBACK_SUPPLIERS if fallback is None else fallback
        )
        self._suppliers: list[SupplierRecord] = list(self._fallback)
        self.offline = False
        # Sequence numbers of local mutations, used to keep fresh edits over stale fetches
        self._mutation_seq = 0
        self._touched: dict[str, int] = {}
        # temp id -> store id sent with an insert whose outcome is unknown
        self._pending_inserts: dict[str, str] = {}

    @property
    def suppliers(self) -> tuple[SupplierRecord, ...]:
        """Snapshot of the merged collection."""
        return tuple(self._suppliers)

    @property
    def fallback(self) -> tuple[SupplierRecord, ...]:
        return self._fallback

    def rebind(self, store: DirectoryStore) -> None:
        """Issue subsequent writes through another store (e.g. one bound to a new session)."""
        self._store = store

    # ---------- sync ----------

    async def load(self) -> bool:
        """
        Fetch all suppliers and merge with the fallback dataset.

        On failure the collection becomes the fallback dataset and offline mode is set.

        Returns:
            True when remote data was merged
        """
        outcome = await attempt("fetch suppliers", self._store.fetch_suppliers())
        if not outcome.ok:
            logger.warning(f"Using offline data due to connection error: {outcome.message}")
            self._suppliers = list(self._fallback)
            self.offline = True
            return False

        self._suppliers = merge_records(outcome.value, self._fallback)
        self.offline = False
        logger.info(f"Loaded {len(outcome.value)} remote suppliers ({len(self._suppliers)} after merge)")
        return True

    async def refresh(self) -> bool:
        """
        Re-merge with the latest remote state.

        Failures leave the collection untouched. Records mutated locally after the
        fetch began are kept over the fetched copies, and local-only records
        (temporary ids) stay in the collection unless the fetch shows their insert
        was stored after all.

        Returns:
            True when remote data was merged
        """
        started_at = self._mutation_seq
        outcome = await attempt("refresh suppliers", self._store.fetch_suppliers())
        if not outcome.ok:
            logger.info(f"Refresh skipped (offline mode): {outcome.message}")
            return False

        merged = merge_records(outcome.value, self._fallback)
        merged_ids = {record.id for record in merged}
        landed = self._settle_pending_inserts(merged_ids)
        fresh_local = [
            record for record in self._suppliers
            if self._touched.get(record.id, -1) > started_at and record.id not in landed
        ]
        local_only = [
            record for record in self._suppliers
            if record.id not in merged_ids and not is_persistence_id(record.id) and record.id not in landed
        ]
        if fresh_local:
            by_id = {record.id: record for record in fresh_local}
            merged = [by_id.get(record.id, record) for record in merged]
            logger.debug(f"Kept {len(fresh_local)} locally edited records over refreshed copies")

        kept = {record.id for record in local_only}
        extra = local_only + [r for r in fresh_local if r.id not in merged_ids and r.id not in kept]
        self._suppliers = extra + merged
        self.offline = False
        return True

    def _settle_pending_inserts(self, fetched_ids: set[str]) -> set[str]:
        """Temp ids whose timed-out insert turned out to have been stored; the fetched copy replaces them."""
        landed = {temp for temp, store_id in self._pending_inserts.items() if store_id in fetched_ids}
        for temp in landed:
            store_id = self._pending_inserts.pop(temp)
            logger.info(f"Local record {temp} was stored as {store_id}; using the stored copy")
        return landed

    # ---------- local mutation helpers ----------

    def _touch(self, record_id: str) -> None:
        self._mutation_seq += 1
        self._touched[record_id] = self._mutation_seq

    def _replace(self, record: SupplierRecord) -> None:
        self._suppliers = [record if s.id == record.id else s for s in self._suppliers]
        self._touch(record.id)

    def _prepend(self, record: SupplierRecord) -> None:
        self._suppliers = [record, *(s for s in self._suppliers if s.id != record.id)]
        self._touch(record.id)

    def temporary_id(self) -> str:
        """Local id for records the store has not accepted: temp-<epoch millis>, suffixed if taken."""
        candidate = f"temp-{int(time.time() * 1000)}"
        existing = {s.id for s in self._suppliers}
        suffix = 1
        unique = candidate
        while unique in existing:
            unique = f"{candidate}-{suffix}"
            suffix += 1
        return unique

    async def insert_record(
        self,
        label: str,
        record: SupplierRecord,
        store: Optional[DirectoryStore] = None,
    ) -> tuple[str, Outcome[SupplierRecord]]:
        """
        Insert a new supplier row under an id chosen here.

        A failed or timed-out insert yields a temporary id. The chosen id is
        remembered so a later refresh can tell whether the write landed anyway.

        Returns:
            (id to show locally, insert Outcome)
        """
        store_id = str(uuid4())
        fields = {**supplier_insert_fields(record), "id": store_id}
        outcome = await attempt(label, (store or self._store).insert_supplier(fields))
        if outcome.ok and outcome.value is not None:
            return outcome.value.id, outcome

        temp_id = self.temporary_id()
        self._pending_inserts[temp_id] = store_id
        return temp_id, outcome

    @staticmethod
    def _products_for(supplier_id: str, drafts: Sequence[ProductDraft], id_prefix: str) -> tuple[ProductRecord, ...]:
        return tuple(
            ProductRecord(
                id=f"{id_prefix}-{index}",
                supplier_id=supplier_id,
                name=draft.name,
                description=draft.description,
                price=draft.price,
                moq=draft.moq,
                category=draft.category,
                images=tuple(draft.images),
            )
            for index, draft in enumerate(drafts)
        )

    @staticmethod
    def _notice_for(error: ErrorKind, message: str) -> Optional[str]:
        """Connectivity failures stay silent; anything else is shown inline."""
        if error == ErrorKind.CONNECTIVITY:
            return None
        return f"Saved locally, but the directory rejected the update: {message}"

    # ---------- writes ----------

    async def upsert_listing(
        self,
        owner: UserProfile,
        draft: ListingDraft,
        edit_target_id: Optional[str] = None,
    ) -> UpsertResult:
        """
        Create or edit a listing owned by the signed-in supplier.

        The local collection reflects the draft when this returns, whatever the store did.

        Args:
            owner: Signed-in supplier
            draft: Submitted listing fields (None fields keep existing values / use defaults)
            edit_target_id: Id of the listing being edited; absent for a new listing

        Returns:
            UpsertResult with the locally visible record
        """
        if edit_target_id:
            return await self._edit_listing(owner, draft, edit_target_id)
        return await self._create_listing(owner, draft)

    async def _edit_listing(self, owner: UserProfile, draft: ListingDraft, target_id: str) -> UpsertResult:
        existing = next(
            (s for s in self.derive_own_listings(owner.email, owner.user_id) if s.id == target_id),
            None,
        )
        if existing is None:
            logger.info(f"Listing {target_id} is not one of {owner.email}'s listings; edit ignored")
            return UpsertResult(record=None)

        products = existing.products
        if draft.products is not None:
            products = self._products_for(target_id, draft.products, f"{target_id}-p{self._mutation_seq + 1}")

        updated = replace(
            existing,
            name=draft.name if draft.name is not None else existing.name,
            industry=draft.industry or existing.industry,
            category=draft.category if draft.category is not None else existing.category,
            location=draft.location if draft.location is not None else existing.location,
            description=draft.description if draft.description is not None else existing.description,
            image_url=draft.image_url if draft.image_url is not None else existing.image_url,
            # contact_email identifies the owner and is not editable here
            products=products,
        )

        persisted = False
        notice = None
        if is_persistence_id(target_id):
            outcome = await attempt("update listing", self._store.update_supplier(target_id, listing_update_fields(updated)))
            if outcome.ok:
                persisted = await self._replace_remote_products(target_id, draft.products)
            else:
                logger.warning("Offline/rejected listing update: updating local state only")
                notice = self._notice_for(outcome.error, outcome.message)
        else:
            logger.debug(f"Listing {target_id} is not a store id; local edit only")

        self._replace(updated)
        return UpsertResult(record=updated, persisted=persisted, notice=notice)

    async def _replace_remote_products(self, supplier_id: str, drafts: Optional[Sequence[ProductDraft]]) -> bool:
        """Delete-all-then-insert; returns False if either step failed."""
        if drafts is None:
            return True
        deleted = await attempt("delete products", self._store.delete_products(supplier_id))
        if not deleted.ok:
            return False
        if not drafts:
            return True
        inserted = await attempt("insert products", self._store.insert_products(product_insert_rows(supplier_id, drafts)))
        return inserted.ok

    async def _create_listing(self, owner: UserProfile, draft: ListingDraft) -> UpsertResult:
        dossier = self.derive_own_profile(owner.email, owner.user_id)
        listing = SupplierRecord(
            id="",
            owner_user_id=owner.user_id,
            name=draft.name or (dossier.name if dossier else "Factory Listing"),
            industry=draft.industry or Industry.GARMENT_TEXTILE,
            category=draft.category or "General",
            location=draft.location or "Phnom Penh",
            description=draft.description or "Verified market listing.",
            contact_email=owner.email or draft.contact_email or "",
            image_url=draft.image_url or settings.DEFAULT_LISTING_IMAGE_URL,
            rating=5.0,
            is_owner=False,
            belongs_to_owner=True,
        )

        persisted = False
        new_id, outcome = await self.insert_record("insert listing", listing)
        if outcome.ok and outcome.value is not None:
            persisted = True
            if draft.products:
                # Products only go to the store once the parent row has a durable id
                inserted = await attempt(
                    "insert products",
                    self._store.insert_products(product_insert_rows(new_id, draft.products)),
                )
                persisted = inserted.ok
        else:
            logger.warning("Offline insert: creating local listing only")

        # The local entry shows the draft as typed; store-side defaults arrive with the next refresh
        listing = replace(
            listing,
            id=new_id,
            name=draft.name or "New Item",
            description=draft.description or "",
            products=self._products_for(new_id, draft.products or (), f"{new_id}-p"),
        )
        self._prepend(listing)
        return UpsertResult(record=listing, persisted=persisted)

    async def upsert_dossier(self, owner: UserProfile, updates: DossierUpdate) -> UpsertResult:
        """
        Apply owner edits to the signed-in supplier's company dossier.

        Returns:
            UpsertResult; record is None when the owner has no dossier
        """
        dossier = self.derive_own_profile(owner.email, owner.user_id)
        if dossier is None:
            logger.info(f"No dossier for {owner.email}; update ignored")
            return UpsertResult(record=None)

        changes = {name: value for name, value in vars(updates).items() if value is not None}
        updated = replace(dossier, **changes)

        persisted = False
        notice = None
        if is_persistence_id(dossier.id):
            outcome = await attempt("update dossier", self._store.update_supplier(dossier.id, dossier_update_fields(updates)))
            persisted = outcome.ok
            if not outcome.ok:
                logger.warning(f"Offline/error updating dossier: {outcome.message}")
                notice = self._notice_for(outcome.error, outcome.message)

        self._replace(updated)
        return UpsertResult(record=updated, persisted=persisted, notice=notice)

    def register_dossier(self, dossier: SupplierRecord) -> SupplierRecord:
        """
        Add a freshly onboarded company dossier.

        Any other dossier of the same owner is dropped so each identity has at most one.
        """
        dossier = replace(dossier, is_owner=True, belongs_to_owner=False)
        self._suppliers = [
            s for s in self._suppliers
            if not (s.is_owner and s.id != dossier.id and _owned_by(s, dossier.contact_email, dossier.owner_user_id))
        ]
        self._prepend(dossier)
        logger.info(f"Registered dossier {dossier.id} for {dossier.contact_email}")
        return dossier

    # ---------- lookups ----------

    def find_by_id(self, record_id: str) -> Optional[SupplierRecord]:
        return next((s for s in self._suppliers if s.id == record_id), None)

    def find_by_name(self, name: str) -> Optional[SupplierRecord]:
        return next((s for s in self._suppliers if s.name == name), None)

    def find_product(self, product_id: str) -> tuple[Optional[ProductRecord], Optional[SupplierRecord]]:
        """Locate a product and the supplier that lists it."""
        for supplier in self._suppliers:
            for product in supplier.products:
                if product.id == product_id:
                    return product, supplier
        return None, None

    def derive_own_profile(self, email: Optional[str], user_id: Optional[str] = None) -> Optional[SupplierRecord]:
        """The signed-in supplier's company dossier, if any."""
        if not email and not user_id:
            return None
        return next(
            (s for s in self._suppliers if s.is_owner and _owned_by(s, email, user_id)),
            None,
        )

    def derive_own_listings(self, email: Optional[str], user_id: Optional[str] = None) -> list[SupplierRecord]:
        """Listings owned by the signed-in supplier, excluding the dossier."""
        if not email and not user_id:
            return []
        return [
            s for s in self._suppliers
            if s.belongs_to_owner and not s.is_owner and _owned_by(s, email, user_id)
        ]

    @staticmethod
    def project_owner_dossier_view(
        dossier: SupplierRecord,
        listings: Sequence[SupplierRecord],
    ) -> SupplierRecord:
        """
        Read-only composite of the dossier and its listings.

        Each listing is shown as a product (listing id, name, description, category,
        image), priced from its first product. Never written back.
        """
        aggregated = []
        for listing in listings:
            base = listing.products[0] if listing.products else None
            aggregated.append(ProductRecord(
                id=listing.id,
                supplier_id=dossier.id,
                name=listing.name,
                description=listing.description,
                price=(base.price if base and base.price else DEFAULT_PRICE),
                moq=(base.moq if base and base.moq else DEFAULT_MOQ),
                category=listing.category,
                images=(listing.image_url, *(base.images[1:] if base else ())),
            ))
        return replace(dossier, products=(*aggregated, *dossier.products))
