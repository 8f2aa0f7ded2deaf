"""Announcement feed routes"""

from fastapi import APIRouter, Depends, status
from typing import List

from app.api.dependencies import get_current_user, get_store, require_session
from app.models import Announcement, User
from app.schemas.social import CommentRequest
from app.services import LoyaltyStore

router = APIRouter()

@router.get("/", response_model=List[Announcement], dependencies=[Depends(require_session)])
async def list_announcements(store: LoyaltyStore = Depends(get_store)):
    return store.announcements

@router.post("/{announcement_id}/like", response_model=Announcement)
async def toggle_like(
    announcement_id: str,
    current_user: User = Depends(get_current_user),
    store: LoyaltyStore = Depends(get_store)
):
    return await store.toggle_announcement_like(announcement_id, current_user)

@router.post("/{announcement_id}/comments", response_model=Announcement, status_code=status.HTTP_201_CREATED)
async def add_comment(
    announcement_id: str,
    payload: CommentRequest,
    current_user: User = Depends(get_current_user),
    store: LoyaltyStore = Depends(get_store)
):
    return await store.comment_on_announcement(announcement_id, current_user, payload.text)
