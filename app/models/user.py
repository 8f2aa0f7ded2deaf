"""User profile model"""

from datetime import datetime, timezone
from pydantic import Field
from typing import Optional

from app.models.base import DocumentModel, utcnow

class User(DocumentModel):
    """Client identity plus loyalty ledger"""

    id: str
    name: str
    email: str
    total_spent: int = Field(0, ge=0)  # current cycle, rolls over at the threshold
    lifetime_spent: int = Field(0, ge=0)  # never decreases
    referral_count: int = Field(0, ge=0)
    is_vip: bool = False
    vip_expiry: Optional[datetime] = None
    pending_spent: Optional[int] = None
    profile_picture: Optional[str] = None

    @classmethod
    def new(cls, user_id: str, name: str, email: str) -> "User":
        """Fresh profile with every counter at zero"""
        return cls(id=user_id, name=name, email=email)

    def is_vip_active(self, now: Optional[datetime] = None) -> bool:
        """VIP flag set and the access window not yet expired"""
        if not self.is_vip or self.vip_expiry is None:
            return False
        now = now or utcnow()
        expiry = self.vip_expiry
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)
        return expiry >= now
