"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running
and the user store is reachable.
"""

from fastapi import APIRouter, Depends

from userdesk import __version__
from userdesk.auth.dependencies import get_store
from userdesk.store.base import UserStore

router = APIRouter()


@router.get("/health")
async def health_check(store: UserStore = Depends(get_store)):
    """Check server health and store connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        await store.ping()
        checks["store"] = "ok"
    except Exception as e:
        checks["store"] = f"error: {e}"

    status = "healthy" if checks["store"] == "ok" else "degraded"
    return {"status": status, **checks}
