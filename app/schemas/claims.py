"""Payment, VIP and referral claim schemas"""

from pydantic import Field, model_validator
from typing import List, Optional

from app.models import ApprovalRequest, Notification, Referral, User
from app.schemas.base import BaseSchema

class PaymentReportRequest(BaseSchema):
    """
    Report an offline payment

    Either name a catalogue service (price looked up server-side, plus the
    room-service fee when requested) or give an explicit amount.
    """
    service_id: Optional[str] = None
    room_service: bool = False
    amount: Optional[int] = Field(None, gt=0)
    comment: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="after")
    def _service_or_amount(self):
        if self.service_id is None and self.amount is None:
            raise ValueError("Either serviceId or amount is required")
        return self

class VipRequest(BaseSchema):
    proof_ref: Optional[str] = Field(None, max_length=64)
    proof_image: Optional[str] = None

class ReferralRequest(BaseSchema):
    friend_name: str = Field(..., min_length=1, max_length=120)

class BookingRequest(BaseSchema):
    service_id: str
    room_service: bool = False

class DecisionResponse(BaseSchema):
    """Outcome of an approval: the request, the updated client, any rewards"""
    request: ApprovalRequest
    user: User
    notifications: List[Notification] = []

class ReferralDecisionResponse(BaseSchema):
    referral: Referral
    user: User
    notifications: List[Notification] = []
