"""
Workspace endpoints.

WHAT: Workspace lifecycle, navigation actions, sign-in/out and onboarding
WHY: Clients drive the view state machine one action at a time
HOW: FastAPI endpoints wrapping Workspace methods; every response is a WorkspaceSnapshot
"""

from typing import Dict, Literal, Optional

from fastapi import APIRouter, Depends, status

from ..dependencies import bearer_token, get_workspace, snapshot, supplier_out
from ....core.workspace_manager import WorkspaceManager, get_workspace_manager
from ....models.api_schemas import (
    LoginRequest, OnboardingRequest, UpsertResponse, WorkspaceSnapshot,
)
from ....services.reconciler import is_persistence_id
from ....services.workspace import Workspace
from ....utils.exceptions import ValidationException
from ....utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

NavigationAction = Literal["become-supplier", "become-buyer", "buyer-profile", "own-profile", "back", "home"]


@router.post("/workspaces", response_model=WorkspaceSnapshot, status_code=status.HTTP_201_CREATED)
async def create_workspace(
    access_token: Optional[str] = Depends(bearer_token),
    manager: WorkspaceManager = Depends(get_workspace_manager),
):
    """
    Create a workspace and run the bootstrap.

    WHAT: Load the directory and resolve an existing session
    WHY: First screen depends on role and dossier existence
    HOW: Workspace.bootstrap with the optional bearer token

    Returns:
        WorkspaceSnapshot for the initial view
    """
    workspace = manager.create()
    await workspace.bootstrap(access_token)
    logger.info(f"Workspace {workspace.id} bootstrapped into {workspace.state.view.value}")
    return snapshot(workspace)


@router.get("/workspaces/{workspace_id}", response_model=WorkspaceSnapshot)
async def get_workspace_state(workspace: Workspace = Depends(get_workspace)):
    """Current view state."""
    return snapshot(workspace)


@router.delete("/workspaces/{workspace_id}")
async def delete_workspace(
    workspace_id: str,
    manager: WorkspaceManager = Depends(get_workspace_manager),
) -> Dict:
    """
    Discard a workspace.

    Raises:
        WorkspaceNotFoundException: If workspace doesn't exist
    """
    manager.delete(workspace_id)
    return {"deleted": True, "workspace_id": workspace_id}


@router.post("/workspaces/{workspace_id}/navigation/{action}", response_model=WorkspaceSnapshot)
async def navigate(action: NavigationAction, workspace: Workspace = Depends(get_workspace)):
    """
    Apply a navigation action.

    Actions: become-supplier, become-buyer, buyer-profile, own-profile, back, home
    """
    handlers = {
        "become-supplier": workspace.become_supplier,
        "become-buyer": workspace.become_buyer,
        "buyer-profile": workspace.open_buyer_profile,
        "own-profile": workspace.open_own_profile,
        "back": workspace.back,
        "home": workspace.go_home,
    }
    handlers[action]()
    return snapshot(workspace)


@router.post("/workspaces/{workspace_id}/auth/logout", response_model=WorkspaceSnapshot)
async def logout(workspace: Workspace = Depends(get_workspace)):
    """Sign out and return to the landing view."""
    await workspace.logout()
    return snapshot(workspace)


@router.post("/workspaces/{workspace_id}/auth/{role}", response_model=WorkspaceSnapshot)
async def login(
    role: Literal["buyer", "supplier"],
    request: LoginRequest,
    workspace: Workspace = Depends(get_workspace),
):
    """
    Sign in (or register) as buyer or supplier.

    Unreachable identity provider -> offline demo session.

    Raises:
        ValidationException: Credentials missing while signing up
        AuthenticationException: Credentials rejected
    """
    if request.create_account and (not request.email or not request.password):
        raise ValidationException(
            "Email and password are required to create an account",
            field_errors=[{"field": "email", "message": "required"}, {"field": "password", "message": "required"}],
        )
    await workspace.login(
        role,
        request.email.strip(),
        request.password,
        username=request.username,
        register=request.create_account,
    )
    return snapshot(workspace)


@router.post("/workspaces/{workspace_id}/onboarding", response_model=UpsertResponse, status_code=status.HTTP_201_CREATED)
async def onboarding(request: OnboardingRequest, workspace: Workspace = Depends(get_workspace)):
    """
    Complete supplier onboarding.

    WHAT: Generate and store the company dossier
    WHY: Suppliers reach the dashboard only with a dossier
    HOW: AI profile (or template) -> store insert -> local registration
    """
    dossier = await workspace.complete_onboarding(request.to_form())
    return UpsertResponse(
        record=supplier_out(dossier),
        persisted=is_persistence_id(dossier.id),
        state=snapshot(workspace),
    )
