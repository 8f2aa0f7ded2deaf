"""Notification model"""

from pydantic import ConfigDict

from app.models.base import DocumentModel, new_id

class Notification(DocumentModel):
    """One-way system or broadcast message, immutable once created"""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    message: str
    timestamp: str

    @classmethod
    def create(cls, title: str, message: str, timestamp: str = "Just now", prefix: str = "n") -> "Notification":
        return cls(id=new_id(prefix), title=title, message=message, timestamp=timestamp)
