"""Social feed models: announcements, testimonials and their comments"""

from pydantic import ConfigDict, Field, computed_field, field_validator, model_validator
from typing import Any, List, Optional
import enum

from app.models.base import DocumentModel

class AnnouncementType(str, enum.Enum):
    EVENT = "event"
    DEAL = "deal"
    NEWS = "news"

class Comment(DocumentModel):
    """Comment on a testimonial or announcement, immutable once posted"""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    user_name: str
    user_image: Optional[str] = None
    text: str
    timestamp: str

class LikeableDocument(DocumentModel):
    """
    Document carrying a like set and an append-only comment list

    ``likes`` is always derived from ``liked_by``. Stored documents may
    still carry a ``likes`` counter; it is discarded on load.
    """

    liked_by: List[str] = Field(default_factory=list)
    comments: List[Comment] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _drop_stored_like_count(cls, data: Any) -> Any:
        if isinstance(data, dict) and "likes" in data:
            data = {k: v for k, v in data.items() if k != "likes"}
        return data

    @field_validator("liked_by")
    @classmethod
    def _unique_likers(cls, value: List[str]) -> List[str]:
        # keep first occurrence order
        return list(dict.fromkeys(value))

    @computed_field
    @property
    def likes(self) -> int:
        return len(self.liked_by)

class Announcement(LikeableDocument):
    """Shop-wide post"""

    id: str
    title: str
    description: str
    date: str
    type: AnnouncementType = AnnouncementType.NEWS

class Testimonial(LikeableDocument):
    """Client-submitted review"""

    id: str
    user_id: str
    user_name: str
    user_image: Optional[str] = None
    content: str
    rating: int = Field(..., ge=1, le=5)
    date: str
    image: Optional[str] = None
