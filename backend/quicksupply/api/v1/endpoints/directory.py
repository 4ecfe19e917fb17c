"""
Directory endpoints.

WHAT: Buyer directory, AI match, drill-downs, supplier dashboard, listing/dossier writes, orders
WHY: Everything that reads or mutates the workspace's supplier collection
HOW: FastAPI endpoints delegating to the Workspace; writes return the optimistic record
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, status

from ..dependencies import get_workspace, match_out, snapshot, supplier_out
from ....models.api_schemas import (
    DashboardResponse, DirectoryResponse, DossierRequest, FiltersRequest, ListingDraftOut,
    ListingRequest, MatchRequest, OpenProductRequest, OpenSupplierRequest, OrderOut,
    ProductIn, RefreshResponse, SupplierOut, UpsertResponse, WorkspaceSnapshot,
)
from ....services.directory_filter import sectors
from ....services.reconciler import UpsertResult
from ....services.workspace import Workspace
from ....utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


def _upsert_response(workspace: Workspace, result: UpsertResult) -> UpsertResponse:
    return UpsertResponse(
        record=supplier_out(result.record),
        persisted=result.persisted,
        notice=result.notice,
        state=snapshot(workspace),
    )


# ========== Buyer directory ==========

@router.get("/workspaces/{workspace_id}/directory", response_model=DirectoryResponse)
async def get_directory(workspace: Workspace = Depends(get_workspace)):
    """
    Grouped buyer directory.

    WHAT: industry -> category -> suppliers under the active search, sector filter and AI match
    WHY: Main buyer screen
    HOW: Filter the merged collection, then group
    """
    groups = workspace.directory()
    state = workspace.state
    return DirectoryResponse(
        groups={
            industry: {category: [supplier_out(s) for s in members] for category, members in categories.items()}
            for industry, categories in groups.items()
        },
        sectors=sectors(),
        search_term=state.search_term,
        industry_filter=state.industry_filter,
        match=match_out(state.match),
        offline=workspace.reconciler.offline,
    )


@router.put("/workspaces/{workspace_id}/directory/filters", response_model=WorkspaceSnapshot)
async def set_filters(request: FiltersRequest, workspace: Workspace = Depends(get_workspace)):
    """Update search term and/or sector filter (changing sector clears the AI match)."""
    workspace.set_filters(search_term=request.search_term, industry=request.industry)
    return snapshot(workspace)


@router.delete("/workspaces/{workspace_id}/directory/filters", response_model=WorkspaceSnapshot)
async def reset_filters(workspace: Workspace = Depends(get_workspace)):
    """Clear search, sector filter and AI match."""
    workspace.reset_filters()
    return snapshot(workspace)


@router.post("/workspaces/{workspace_id}/directory/match", response_model=WorkspaceSnapshot)
async def match(request: MatchRequest, workspace: Workspace = Depends(get_workspace)):
    """
    Run the AI match.

    An empty query and search term leave the state unchanged.
    """
    result = await workspace.run_match(request.query)
    logger.info(f"Workspace {workspace.id} AI match: {list(result.ids)}")
    return snapshot(workspace)


@router.post("/workspaces/{workspace_id}/directory/refresh", response_model=RefreshResponse)
async def refresh(workspace: Workspace = Depends(get_workspace)):
    """Re-merge with the latest remote state (failures keep the current list)."""
    refreshed = await workspace.refresh()
    return RefreshResponse(
        refreshed=refreshed,
        offline=workspace.reconciler.offline,
        supplier_count=len(workspace.reconciler.suppliers),
    )


# ========== Drill-downs ==========

@router.post("/workspaces/{workspace_id}/suppliers/open", response_model=WorkspaceSnapshot)
async def open_supplier(request: OpenSupplierRequest, workspace: Workspace = Depends(get_workspace)):
    """Open a supplier profile by name; unknown names leave the view unchanged."""
    workspace.open_supplier(request.name)
    return snapshot(workspace)


@router.post("/workspaces/{workspace_id}/products/open", response_model=WorkspaceSnapshot)
async def open_product(request: OpenProductRequest, workspace: Workspace = Depends(get_workspace)):
    """Open product detail; back returns to the current view."""
    workspace.open_product(request.product_id)
    return snapshot(workspace)


@router.get("/workspaces/{workspace_id}/profile", response_model=Optional[SupplierOut])
async def active_profile(workspace: Workspace = Depends(get_workspace)):
    """Supplier shown on the profile screen (the owner sees the full catalog composite)."""
    return supplier_out(workspace.active_profile_supplier())


# ========== Supplier dashboard ==========

@router.get("/workspaces/{workspace_id}/dashboard", response_model=DashboardResponse)
async def dashboard(workspace: Workspace = Depends(get_workspace)):
    """Own dossier and own listings."""
    return DashboardResponse(
        dossier=supplier_out(workspace.own_dossier()),
        listings=[supplier_out(listing) for listing in workspace.own_listings()],
    )


@router.get("/workspaces/{workspace_id}/listings/draft", response_model=ListingDraftOut)
async def listing_draft(workspace: Workspace = Depends(get_workspace)):
    """Pre-filled values for a new listing, copied from the dossier."""
    draft = workspace.listing_prefill()
    return ListingDraftOut(
        name=draft.name,
        industry=draft.industry,
        category=draft.category,
        location=draft.location,
        description=draft.description,
        image_url=draft.image_url,
        contact_email=draft.contact_email,
        products=None if draft.products is None else [
            ProductIn(
                name=p.name, description=p.description, price=p.price,
                moq=p.moq, category=p.category, images=list(p.images),
            )
            for p in draft.products
        ],
    )


@router.post("/workspaces/{workspace_id}/listings", response_model=UpsertResponse, status_code=status.HTTP_201_CREATED)
async def create_listing(request: ListingRequest, workspace: Workspace = Depends(get_workspace)):
    """
    Create a listing.

    The listing is visible locally even when the store rejects it (temporary id).
    """
    result = await workspace.save_listing(request.to_draft())
    return _upsert_response(workspace, result)


@router.put("/workspaces/{workspace_id}/listings/{listing_id}", response_model=UpsertResponse)
async def update_listing(
    listing_id: str,
    request: ListingRequest,
    workspace: Workspace = Depends(get_workspace),
):
    """
    Edit a listing.

    Only the signed-in supplier's own listings are editable; anything else is left
    untouched and returns no record. Temporary ids are edited locally only.
    """
    result = await workspace.save_listing(request.to_draft(), edit_target_id=listing_id)
    return _upsert_response(workspace, result)


@router.put("/workspaces/{workspace_id}/dossier", response_model=UpsertResponse)
async def update_dossier(request: DossierRequest, workspace: Workspace = Depends(get_workspace)):
    """Edit the signed-in supplier's company dossier."""
    result = await workspace.update_dossier(request.to_update())
    return _upsert_response(workspace, result)


# ========== Buyer orders ==========

@router.get("/workspaces/{workspace_id}/orders", response_model=List[OrderOut])
async def orders(workspace: Workspace = Depends(get_workspace)):
    """Buyer order history, newest first."""
    return [OrderOut.model_validate(order) for order in await workspace.orders()]
