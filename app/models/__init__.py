"""Models package initialization"""

from .base import DocumentModel, new_id, utcnow
from .user import User
from .notification import Notification
from .social import AnnouncementType, Comment, Announcement, Testimonial
from .approval import ApprovalRequest, RequestStatus, RequestType
from .referral import Referral, ReferralStatus
from .chat import ChatMessage, Conversation, ADMIN_SENDER_ID, CONCIERGE_SENDER_ID
from .catalog import Service, SERVICES, find_service

__all__ = [
    "DocumentModel",
    "new_id",
    "utcnow",
    "User",
    "Notification",
    "AnnouncementType",
    "Comment",
    "Announcement",
    "Testimonial",
    "ApprovalRequest",
    "RequestStatus",
    "RequestType",
    "Referral",
    "ReferralStatus",
    "ChatMessage",
    "Conversation",
    "ADMIN_SENDER_ID",
    "CONCIERGE_SENDER_ID",
    "Service",
    "SERVICES",
    "find_service",
]
