"""
Chat endpoints.

WHAT: Contact-supplier flow, message sending and direct-message exit
WHY: Buyers talk to supplier personas or the sourcing assistant from any screen
HOW: FastAPI endpoints wrapping the workspace ChatThread
"""

from fastapi import APIRouter, Depends

from ..dependencies import chat_response, get_workspace
from ....models.api_schemas import ChatMessageRequest, ChatResponse, ContactRequest
from ....services.workspace import Workspace
from ....utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/workspaces/{workspace_id}/chat", response_model=ChatResponse)
async def get_chat(workspace: Workspace = Depends(get_workspace)):
    """Current thread."""
    return chat_response(workspace)


@router.post("/workspaces/{workspace_id}/chat/contact", response_model=ChatResponse)
async def contact_supplier(request: ContactRequest, workspace: Workspace = Depends(get_workspace)):
    """
    Contact a supplier.

    WHAT: Open a direct thread and send the templated opening message
    WHY: One-tap inquiry from the directory
    HOW: Reset thread to the supplier, send, append the persona reply

    Unknown supplier ids leave the thread unchanged.
    """
    reply = await workspace.contact_supplier(request.supplier_id)
    return chat_response(workspace, reply)


@router.post("/workspaces/{workspace_id}/chat/messages", response_model=ChatResponse)
async def send_message(request: ChatMessageRequest, workspace: Workspace = Depends(get_workspace)):
    """Send a message to the current recipient, or to the sourcing assistant."""
    reply = await workspace.send_chat(request.text)
    return chat_response(workspace, reply)


@router.delete("/workspaces/{workspace_id}/chat/recipient", response_model=ChatResponse)
async def exit_direct_message(workspace: Workspace = Depends(get_workspace)):
    """Leave the supplier thread and return to the sourcing assistant."""
    workspace.exit_direct_message()
    return chat_response(workspace)


@router.delete("/workspaces/{workspace_id}/chat", response_model=ChatResponse)
async def close_chat(workspace: Workspace = Depends(get_workspace)):
    """Close the chat panel."""
    workspace.close_chat()
    return chat_response(workspace)
