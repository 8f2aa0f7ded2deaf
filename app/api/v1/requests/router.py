"""
Approval request routes
Clients report payments and VIP transfers; the manager approves or rejects
"""

from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from app.api.dependencies import get_current_user, get_store, require_admin
from app.core.exceptions import NotFoundException
from app.models import ApprovalRequest, RequestStatus, User, find_service
from app.schemas.claims import DecisionResponse, PaymentReportRequest, VipRequest
from app.services import LoyaltyStore
from app.services.rewards import payment_amount

router = APIRouter()

@router.post("/payments", response_model=ApprovalRequest, status_code=status.HTTP_201_CREATED)
async def report_payment(
    payload: PaymentReportRequest,
    current_user: User = Depends(get_current_user),
    store: LoyaltyStore = Depends(get_store)
):
    """Report a payment made at the shop for manager approval"""
    service_name = None
    amount = payload.amount

    if payload.service_id is not None:
        service = find_service(payload.service_id)
        if service is None:
            raise NotFoundException("Service not found")
        amount = payment_amount(service, payload.room_service)
        service_name = f"{service.name} (Room Service)" if payload.room_service else service.name

    return await store.report_payment(current_user, amount, service_name, payload.comment)

@router.post("/vip", response_model=ApprovalRequest, status_code=status.HTTP_201_CREATED)
async def request_vip(
    payload: VipRequest,
    current_user: User = Depends(get_current_user),
    store: LoyaltyStore = Depends(get_store)
):
    return await store.request_vip(current_user, payload.proof_ref, payload.proof_image)

@router.get("/mine", response_model=List[ApprovalRequest])
async def my_requests(
    current_user: User = Depends(get_current_user),
    store: LoyaltyStore = Depends(get_store)
):
    return store.requests_for(current_user.id)

@router.get("/", response_model=List[ApprovalRequest])
async def list_requests(
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    _: str = Depends(require_admin),
    store: LoyaltyStore = Depends(get_store)
):
    if status_filter is None:
        return store.requests
    return [r for r in store.requests if r.status == status_filter]

@router.post("/{request_id}/approve", response_model=DecisionResponse)
async def approve_request(
    request_id: str,
    _: str = Depends(require_admin),
    store: LoyaltyStore = Depends(get_store)
):
    approved, outcome = await store.approve_request(request_id)
    return DecisionResponse(request=approved, user=outcome.user, notifications=outcome.notifications)

@router.post("/{request_id}/reject", response_model=ApprovalRequest)
async def reject_request(
    request_id: str,
    _: str = Depends(require_admin),
    store: LoyaltyStore = Depends(get_store)
):
    return await store.reject_request(request_id)
