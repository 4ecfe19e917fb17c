"""
Simulated messaging.

WHAT: One chat thread per workspace, either a direct conversation with a supplier or the sourcing assistant
WHY: Buyers contact suppliers from the directory; the supplier side is played by the AI persona
HOW: Greeting on context change, duplicate guard for auto-sent contact messages, assistant replies appended
"""

import enum
from dataclasses import dataclass
from typing import Optional, Sequence

from .ai_assistant import SupplierAssistant
from ..llm.types import Citation
from ..models.directory import SupplierRecord
from ..utils.logger import get_logger

logger = get_logger(__name__)

ASSISTANT_GREETING = (
    "Hello! I'm your Cambodian Sourcing Assistant. Tell me what you're looking for, "
    "and I'll find the best suppliers for you."
)


class ChatRole(str, enum.Enum):
    USER = "user"
    MODEL = "model"


@dataclass(frozen=True)
class ChatEntry:
    role: ChatRole
    text: str
    links: tuple[Citation, ...] = ()


def contact_message(supplier: SupplierRecord) -> str:
    """Opening message sent when a buyer taps "contact supplier"."""
    return (
        f"Hello, I'm interested in your {supplier.category} products. "
        "Could you provide more details about lead times and wholesale pricing?"
    )


def greeting(recipient: Optional[SupplierRecord]) -> str:
    if recipient is None:
        return ASSISTANT_GREETING
    return (
        f"Hello! This is the Sales Team from {recipient.name}. Thank you for reaching out. "
        f"How can we assist you with our {recipient.category} products today?"
    )


class ChatThread:
    """Message list for the current chat context."""

    def __init__(self, assistant: SupplierAssistant):
        self._assistant = assistant
        self.recipient: Optional[SupplierRecord] = None
        self.messages: list[ChatEntry] = [ChatEntry(ChatRole.MODEL, greeting(None))]

    def reset(self, recipient: Optional[SupplierRecord]) -> None:
        """Switch context; history restarts with the matching greeting."""
        self.recipient = recipient
        self.messages = [ChatEntry(ChatRole.MODEL, greeting(recipient))]
        logger.debug(f"Chat context: {recipient.name if recipient else 'sourcing assistant'}")

    async def direct_message(self, text: str) -> Optional[ChatEntry]:
        """
        Send text to the current supplier.

        An identical user message already in the thread is not appended again,
        but the supplier still replies.

        Returns:
            The supplier reply, or None when there is no recipient
        """
        if self.recipient is None:
            return None
        if not any(m.role == ChatRole.USER and m.text == text for m in self.messages):
            self.messages.append(ChatEntry(ChatRole.USER, text))
        reply = ChatEntry(ChatRole.MODEL, await self._assistant.chat_reply(text, self.recipient))
        self.messages.append(reply)
        return reply

    async def send(self, text: str, suppliers: Sequence[SupplierRecord]) -> Optional[ChatEntry]:
        """
        Send a typed message to whoever the thread talks to.

        Returns:
            The reply, or None for blank input
        """
        if not text.strip():
            return None
        self.messages.append(ChatEntry(ChatRole.USER, text))
        if self.recipient is not None:
            reply = ChatEntry(ChatRole.MODEL, await self._assistant.chat_reply(text, self.recipient))
        else:
            advice = await self._assistant.sourcing_advice(text, suppliers)
            reply = ChatEntry(ChatRole.MODEL, advice.text, advice.links)
        self.messages.append(reply)
        return reply
