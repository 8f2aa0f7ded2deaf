"""Chat models"""

from pydantic import ConfigDict, Field
from typing import List, Optional

from app.models.base import DocumentModel

ADMIN_SENDER_ID = "admin"
CONCIERGE_SENDER_ID = "concierge"

class ChatMessage(DocumentModel):
    """Single message in a client thread, immutable once appended"""

    model_config = ConfigDict(frozen=True)

    id: str
    sender_id: str  # "admin", "concierge" or a user id
    sender_name: str
    text: str
    timestamp: str
    is_ai: Optional[bool] = None

class Conversation(DocumentModel):
    """The one thread between a client and shop management, keyed by user id"""

    user_id: str
    user_name: str
    last_message: str
    timestamp: str
    unread_count: int = Field(0, ge=0)
    messages: List[ChatMessage] = Field(default_factory=list)
