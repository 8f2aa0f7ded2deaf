"""Chat schemas"""

from pydantic import Field

from app.schemas.base import BaseSchema

class MessageRequest(BaseSchema):
    text: str = Field(..., min_length=1, max_length=2000)
