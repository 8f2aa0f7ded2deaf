"""Health check endpoint"""

from fastapi import APIRouter, Request
from typing import Any, Dict

from app.core.config import settings
from app.models import utcnow

router = APIRouter()

@router.get("/health")
async def health_check(request: Request) -> Dict[str, Any]:
    """Liveness plus a summary of the loaded state"""
    store = getattr(request.app.state, "store", None)
    return {
        "status": "healthy" if store is not None else "starting",
        "version": settings.APP_VERSION,
        "backend": settings.STORE_BACKEND,
        "autoReply": bool(store and store.auto_reply.client),
        "timestamp": utcnow().isoformat()
    }
