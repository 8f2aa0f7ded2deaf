"""Notification feed and broadcast routes"""

from fastapi import APIRouter, Depends, status
from typing import List

from app.api.dependencies import get_store, require_admin, require_session
from app.models import Notification
from app.schemas.social import BroadcastRequest
from app.services import LoyaltyStore

router = APIRouter()

@router.get("/", response_model=List[Notification], dependencies=[Depends(require_session)])
async def list_notifications(store: LoyaltyStore = Depends(get_store)):
    """Newest first"""
    return store.notifications

@router.post("/broadcast", status_code=status.HTTP_201_CREATED)
async def broadcast(
    payload: BroadcastRequest,
    _: str = Depends(require_admin),
    store: LoyaltyStore = Depends(get_store)
):
    """Send a notification to every client and post it as news"""
    notification, announcement = await store.broadcast(payload.title, payload.message)
    return {"notification": notification, "announcement": announcement}
