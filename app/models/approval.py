"""Approval request model"""

from pydantic import Field
from typing import Optional
import enum

from app.models.base import DocumentModel

class RequestType(str, enum.Enum):
    SPENDING = "spending"
    VIP = "vip"

class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class ApprovalRequest(DocumentModel):
    """Payment or VIP subscription claim awaiting manager review"""

    id: str
    user_id: str
    user_name: str
    amount: int = Field(..., ge=0)
    type: RequestType
    service_name: Optional[str] = None
    comment: Optional[str] = None
    proof_of_payment: Optional[str] = None
    proof_image: Optional[str] = None
    timestamp: str
    status: RequestStatus = RequestStatus.PENDING

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING
