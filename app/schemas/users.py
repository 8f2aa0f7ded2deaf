"""User profile schemas"""

from pydantic import Field
from typing import Optional

from app.schemas.base import BaseSchema

class ProfileUpdateRequest(BaseSchema):
    """Editable profile fields; omitted fields are left unchanged"""
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    profile_picture: Optional[str] = None

class DashboardStats(BaseSchema):
    pending_requests: int
    approved_requests: int
    pending_referrals: int
    total_revenue: int
    total_clients: int
    active_vips: int
    expired_vips: int
    unread_messages: int
