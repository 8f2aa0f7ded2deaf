"""Base document model shared by every stored entity"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from datetime import datetime, timezone
from typing import Any, Dict
import uuid

def utcnow() -> datetime:
    """Timezone-aware UTC now, the one clock the service reads"""
    return datetime.now(timezone.utc)

def new_id(prefix: str) -> str:
    """Issue a never-reused identifier such as ``req-3f2a...``"""
    return f"{prefix}-{uuid.uuid4().hex}"

class DocumentModel(BaseModel):
    """
    Pydantic base for documents held in the document store

    Field names are snake_case in Python and camelCase in storage,
    matching the documents written by the web client. Unknown keys are
    rejected so a malformed document never enters application state.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    def to_document(self) -> Dict[str, Any]:
        """Serialize for the document store"""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")

    @classmethod
    def from_document(cls, data: Dict[str, Any]):
        """Validate a raw stored document"""
        return cls.model_validate(data)
