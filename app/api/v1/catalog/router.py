"""Service catalogue routes"""

from fastapi import APIRouter, Depends
from typing import List

from app.api.dependencies import get_current_user
from app.core.config import settings
from app.core.exceptions import NotFoundException
from app.models import SERVICES, Service, User, find_service
from app.schemas.claims import BookingRequest
from app.services.rewards import payment_amount

router = APIRouter()

@router.get("/services", response_model=List[Service])
async def list_services():
    return SERVICES

@router.post("/book")
async def book_service(
    payload: BookingRequest,
    current_user: User = Depends(get_current_user)
):
    """Acknowledge a booking; scheduling happens offline with the shop"""
    service = find_service(payload.service_id)
    if service is None:
        raise NotFoundException("Service not found")
    return {
        "message": f"Booking request for {service.name} received",
        "serviceId": service.id,
        "amount": payment_amount(service, payload.room_service),
        "currency": settings.CURRENCY_SYMBOL,
    }
