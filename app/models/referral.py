"""Referral model"""

import enum

from app.models.base import DocumentModel

class ReferralStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REJECTED = "rejected"

class Referral(DocumentModel):
    """A friend referral claimed by a client"""

    id: str
    referrer_id: str
    referred_name: str
    status: ReferralStatus = ReferralStatus.PENDING

    @property
    def is_pending(self) -> bool:
        return self.status == ReferralStatus.PENDING
