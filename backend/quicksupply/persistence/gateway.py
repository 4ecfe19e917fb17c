"""
Boundary helper for store calls.

WHAT: Run a store coroutine under a timeout and return an Outcome
WHY: Make "degrade instead of raise" an explicit, auditable branch at each call site
HOW: asyncio.wait_for + StoreError.kind mapping; unexpected errors count as invalid responses
"""

import asyncio
from typing import Awaitable, TypeVar

from .types import ErrorKind, Outcome, StoreError
from ..core.config import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


async def attempt(label: str, call: Awaitable[T], timeout: float | None = None) -> Outcome[T]:
    """
    Await a store call and capture its failure kind.

    Args:
        label: Short operation name for logs
        call: The store coroutine
        timeout: Seconds before the call counts as a connectivity failure

    Returns:
        Outcome with the value, or with the ErrorKind that replaced it
    """
    limit = settings.STORE_TIMEOUT if timeout is None else timeout
    try:
        value = await asyncio.wait_for(call, timeout=limit)
        return Outcome.success(value)
    except asyncio.TimeoutError:
        logger.warning(f"Store call '{label}' timed out after {limit}s")
        return Outcome.failure(ErrorKind.CONNECTIVITY, f"{label} timed out")
    except StoreError as e:
        logger.warning(f"Store call '{label}' failed ({e.kind.value}): {e}")
        return Outcome.failure(e.kind, str(e))
    except Exception as e:
        logger.error(f"Store call '{label}' raised unexpectedly: {e!r}")
        return Outcome.failure(ErrorKind.INVALID_RESPONSE, str(e))
