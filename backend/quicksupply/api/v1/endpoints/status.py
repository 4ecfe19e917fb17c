"""
Status and health check endpoints.

WHAT: Health monitoring for the LLM provider and the directory store
WHY: Quick diagnostics for frontend and ops
HOW: FastAPI endpoints calling provider ping and store ping
"""

from fastapi import APIRouter

from ....llm.provider_factory import get_provider
from ....persistence.gateway import attempt
from ....persistence.store_factory import get_store
from ....core.config import settings
from ....utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


async def _llm_status() -> dict:
    try:
        provider = get_provider()
        llm_status = await provider.ping()

        # Convert dataclass to dict
        return {
            "available": llm_status.available,
            "base_url": llm_status.base_url,
            "models": llm_status.models,
            "error": llm_status.error
        }
    except Exception as e:
        logger.error(f"Failed to get LLM status: {e}")
        return {
            "available": False,
            "base_url": "unknown",
            "models": None,
            "error": str(e)
        }


async def _store_status() -> dict:
    outcome = await attempt("ping store", get_store().ping())
    if not outcome.ok:
        return {"available": False, "error": outcome.message}
    return outcome.value


@router.get("/status")
async def status():
    """
    Check collaborator status.

    WHAT: Health of the configured LLM provider and directory store
    WHY: Frontend can show offline/AI-unavailable banners up front
    HOW: Call provider.ping() and store.ping()

    Returns:
        JSON with provider status and store status
    """
    return {
        "llm": await _llm_status(),
        "store": await _store_status(),
        "backend": settings.PERSISTENCE_BACKEND,
    }


@router.get("/health")
async def health_check():
    """
    Overall application health check.

    The directory keeps working offline, so a down collaborator only degrades health.

    Returns:
        JSON with overall health status
    """
    llm_available = (await _llm_status())["available"]
    store_available = (await _store_status()).get("available", False)

    healthy = llm_available and store_available

    return {
        "status": "healthy" if healthy else "degraded",
        "version": settings.APP_VERSION,
        "app_name": settings.APP_NAME,
        "components": {
            "llm": {
                "available": llm_available,
                "provider": settings.LLM_PROVIDER
            },
            "store": {
                "available": store_available,
                "backend": settings.PERSISTENCE_BACKEND
            }
        }
    }
