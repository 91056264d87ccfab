"""Health endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from messenger.api.dependencies import get_session_store
from messenger.services.session_store import SessionStore

router = APIRouter()


@router.get("/health")
async def health_check(store: SessionStore = Depends(get_session_store)) -> dict:
    """Health check endpoint.

    Returns:
        Status, timestamp in ISO8601 format, and record/session store health
    """
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    try:
        from messenger.database import health_check as db_health_check
        db_healthy = await db_health_check()
        health_status["database"] = "healthy" if db_healthy else "unhealthy"
    except Exception:
        health_status["database"] = "unavailable"

    health_status["sessions"] = "healthy" if await store.ping() else "unavailable"

    return health_status
