"""Testimonial feed routes"""

from fastapi import APIRouter, Depends, status
from typing import List

from app.api.dependencies import get_current_user, get_store, require_session
from app.models import Testimonial, User
from app.schemas.social import CommentRequest, TestimonialRequest
from app.services import LoyaltyStore

router = APIRouter()

@router.get("/", response_model=List[Testimonial], dependencies=[Depends(require_session)])
async def list_testimonials(store: LoyaltyStore = Depends(get_store)):
    return store.testimonials

@router.post("/", response_model=Testimonial, status_code=status.HTTP_201_CREATED)
async def submit_testimonial(
    payload: TestimonialRequest,
    current_user: User = Depends(get_current_user),
    store: LoyaltyStore = Depends(get_store)
):
    return await store.submit_testimonial(current_user, payload.content, payload.rating, payload.image)

@router.post("/{testimonial_id}/like", response_model=Testimonial)
async def toggle_like(
    testimonial_id: str,
    current_user: User = Depends(get_current_user),
    store: LoyaltyStore = Depends(get_store)
):
    return await store.toggle_testimonial_like(testimonial_id, current_user)

@router.post("/{testimonial_id}/comments", response_model=Testimonial, status_code=status.HTTP_201_CREATED)
async def add_comment(
    testimonial_id: str,
    payload: CommentRequest,
    current_user: User = Depends(get_current_user),
    store: LoyaltyStore = Depends(get_store)
):
    return await store.comment_on_testimonial(testimonial_id, current_user, payload.text)
