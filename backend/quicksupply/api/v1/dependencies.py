"""
Shared endpoint helpers.

WHAT: Workspace lookup dependency and core-to-schema conversion
WHY: Every workspace endpoint resolves the same way and returns the same snapshot shape
HOW: FastAPI Depends on the registry; pydantic model_validate over the core dataclasses
"""

from typing import Optional

from fastapi import Depends, Header

from ...core.workspace_manager import WorkspaceManager, get_workspace_manager
from ...models.api_schemas import (
    ChatContextOut, ChatEntryOut, ChatResponse, CitationOut, MatchOut, ProductOut,
    ProfileOut, SupplierOut, WorkspaceSnapshot,
)
from ...models.directory import MatchResult, SupplierRecord
from ...services.chat_service import ChatEntry
from ...services.workspace import Workspace


def get_workspace(
    workspace_id: str,
    manager: WorkspaceManager = Depends(get_workspace_manager),
) -> Workspace:
    """Resolve the path's workspace_id (404 when unknown)."""
    return manager.get(workspace_id)


def bearer_token(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    """Access token from an optional 'Authorization: Bearer <token>' header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def supplier_out(record: Optional[SupplierRecord]) -> Optional[SupplierOut]:
    return None if record is None else SupplierOut.model_validate(record)


def match_out(match: MatchResult) -> MatchOut:
    return MatchOut.model_validate(match)


def snapshot(workspace: Workspace) -> WorkspaceSnapshot:
    """Current view state of a workspace."""
    state = workspace.state
    recipient = state.chat_recipient
    return WorkspaceSnapshot(
        workspace_id=workspace.id,
        view=state.view,
        loading=state.loading,
        offline=workspace.reconciler.offline,
        is_registered_supplier=state.is_registered_supplier,
        is_logged_in_buyer=state.is_logged_in_buyer,
        buyer_profile=ProfileOut.model_validate(state.buyer_profile) if state.buyer_profile else None,
        supplier_profile=ProfileOut.model_validate(state.supplier_profile) if state.supplier_profile else None,
        selected_supplier=supplier_out(state.selected_supplier),
        selected_product=ProductOut.model_validate(state.selected_product) if state.selected_product else None,
        return_view=state.return_view,
        chat=ChatContextOut(
            open=state.chat_open,
            recipient_id=recipient.id if recipient else None,
            recipient_name=recipient.name if recipient else None,
            initial_message=state.chat_initial_message,
        ),
        search_term=state.search_term,
        industry_filter=state.industry_filter,
        match=match_out(state.match),
        access_token=workspace.access_token,
        notice=workspace.notice,
    )


def chat_entry_out(entry: ChatEntry) -> ChatEntryOut:
    return ChatEntryOut(
        role=entry.role.value,
        text=entry.text,
        links=[CitationOut(title=link.title, uri=link.uri) for link in entry.links],
    )


def chat_response(workspace: Workspace, reply: Optional[ChatEntry] = None) -> ChatResponse:
    recipient = workspace.chat.recipient
    return ChatResponse(
        recipient_id=recipient.id if recipient else None,
        recipient_name=recipient.name if recipient else None,
        messages=[chat_entry_out(entry) for entry in workspace.chat.messages],
        reply=chat_entry_out(reply) if reply else None,
    )
