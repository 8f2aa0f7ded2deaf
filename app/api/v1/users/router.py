"""User profile and admin client-list routes"""

from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from app.api.dependencies import get_current_user, get_store, require_admin
from app.core.exceptions import BadRequestException
from app.models import User
from app.schemas.users import DashboardStats, ProfileUpdateRequest
from app.services import LoyaltyStore

router = APIRouter()

@router.patch("/me", response_model=User)
async def update_profile(
    payload: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    store: LoyaltyStore = Depends(get_store)
):
    """Edit name or profile picture; send null to clear the picture"""
    fields = payload.model_dump(exclude_unset=True)
    if fields.get("name") is None:
        fields.pop("name", None)
    if not fields:
        raise BadRequestException("Nothing to update")
    return await store.update_user(current_user.id, fields)

@router.get("/", response_model=List[User])
async def list_users(
    q: Optional[str] = Query(None, description="Match on name or email"),
    _: str = Depends(require_admin),
    store: LoyaltyStore = Depends(get_store)
):
    return store.search_users(q)

@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(
    _: str = Depends(require_admin),
    store: LoyaltyStore = Depends(get_store)
):
    """Headline numbers for the admin dashboard"""
    return DashboardStats(**store.dashboard_stats())
