"""Collaborator interfaces for identity and document storage"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

USERS = "users"
NOTIFICATIONS = "notifications"
ANNOUNCEMENTS = "announcements"
TESTIMONIALS = "testimonials"
APPROVAL_REQUESTS = "approvalRequests"
REFERRALS = "referrals"
CONVERSATIONS = "conversations"

@dataclass
class IdentityRecord:
    """What the identity provider knows about an account"""

    uid: str
    email: str
    display_name: Optional[str] = None
    id_token: Optional[str] = None

@dataclass
class SessionClaims:
    """A verified session token; ``expires_at`` is None when the provider gives no expiry"""

    uid: str
    expires_at: Optional[datetime] = None

class DocumentStore(ABC):
    """
    Collection-level document storage

    Implementations raise ``StoreUnavailableError`` for transient
    offline/network conditions and ``KeyError`` when updating a document
    that does not exist.
    """

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def list_all(self, collection: str) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        ...

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        """Store under the document's own ``id`` (or ``userId`` for threads)"""
        doc_id = data.get("id") or data.get("userId")
        if not doc_id:
            raise ValueError(f"Document for {collection} has no identifier")
        await self.set(collection, doc_id, data)
        return doc_id

class IdentityProvider(ABC):
    """Email and password accounts plus session tokens"""

    @abstractmethod
    async def sign_up(self, email: str, password: str, name: str) -> IdentityRecord:
        ...

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> IdentityRecord:
        ...

    @abstractmethod
    async def sign_out(self, uid: str) -> None:
        ...

    @abstractmethod
    async def verify_token(self, token: str) -> SessionClaims:
        """Return the owner and expiry of a session token"""
        ...
