"""Broadcast, testimonial and comment schemas"""

from pydantic import Field
from typing import Optional

from app.schemas.base import BaseSchema

class BroadcastRequest(BaseSchema):
    title: str = Field(..., min_length=1, max_length=120)
    message: str = Field(..., min_length=1, max_length=2000)

class TestimonialRequest(BaseSchema):
    content: str = Field(..., min_length=1, max_length=2000)
    rating: int = Field(5, ge=1, le=5)
    image: Optional[str] = None

class CommentRequest(BaseSchema):
    text: str = Field(..., min_length=1, max_length=1000)
