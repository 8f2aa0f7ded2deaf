"""Referral routes"""

from fastapi import APIRouter, Depends, status
from typing import List

from app.api.dependencies import get_current_user, get_store, require_admin
from app.models import Referral, User
from app.schemas.claims import ReferralDecisionResponse, ReferralRequest
from app.services import LoyaltyStore

router = APIRouter()

@router.post("/", response_model=Referral, status_code=status.HTTP_201_CREATED)
async def add_referral(
    payload: ReferralRequest,
    current_user: User = Depends(get_current_user),
    store: LoyaltyStore = Depends(get_store)
):
    return await store.add_referral(current_user, payload.friend_name)

@router.get("/mine", response_model=List[Referral])
async def my_referrals(
    current_user: User = Depends(get_current_user),
    store: LoyaltyStore = Depends(get_store)
):
    return store.referrals_for(current_user.id)

@router.get("/", response_model=List[Referral])
async def list_referrals(
    _: str = Depends(require_admin),
    store: LoyaltyStore = Depends(get_store)
):
    return store.referrals

@router.post("/{referral_id}/confirm", response_model=ReferralDecisionResponse)
async def confirm_referral(
    referral_id: str,
    _: str = Depends(require_admin),
    store: LoyaltyStore = Depends(get_store)
):
    """Confirm the referred friend visited; the third one earns a free cut"""
    referral, outcome = await store.confirm_referral(referral_id)
    return ReferralDecisionResponse(referral=referral, user=outcome.user, notifications=outcome.notifications)

@router.post("/{referral_id}/reject", response_model=Referral)
async def reject_referral(
    referral_id: str,
    _: str = Depends(require_admin),
    store: LoyaltyStore = Depends(get_store)
):
    return await store.reject_referral(referral_id)
