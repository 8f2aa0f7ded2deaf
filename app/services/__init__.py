"""Services package"""

from .auto_reply import AutoReplyService
from .store import LoyaltyStore

__all__ = [
    "AutoReplyService",
    "LoyaltyStore",
]
