"""
Persistence gateway
Entity-shaped operations over the identity provider and document store
"""

from datetime import datetime
from enum import Enum
from pydantic import BaseModel, ValidationError
from pydantic.alias_generators import to_camel
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Type, TypeVar
import asyncio
import logging

from app.core.exceptions import (
    AuthenticationException,
    DuplicateAccountException,
    IdentityError,
    ServiceUnavailableException,
    StoreUnavailableError,
    UnauthorizedException,
)
from app.models import (
    Announcement,
    ApprovalRequest,
    Conversation,
    DocumentModel,
    Notification,
    Referral,
    Testimonial,
    User,
)
from .base import (
    ANNOUNCEMENTS,
    APPROVAL_REQUESTS,
    CONVERSATIONS,
    NOTIFICATIONS,
    REFERRALS,
    TESTIMONIALS,
    USERS,
    DocumentStore,
    IdentityProvider,
    SessionClaims,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=DocumentModel)

BAD_CREDENTIAL_CODES = {"EMAIL_NOT_FOUND", "INVALID_PASSWORD", "INVALID_LOGIN_CREDENTIALS", "USER_DISABLED"}

async def with_retry(
    operation: Callable[[], Awaitable[T]],
    attempts: int = 3,
    base_delay: float = 0.5,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """
    Run a store read, retrying transient unavailability

    Only ``StoreUnavailableError`` is retried, waiting ``base_delay * 2**n``
    between attempts. Any other error propagates on the first failure.
    """
    for attempt in range(attempts):
        try:
            return await operation()
        except StoreUnavailableError:
            if attempt >= attempts - 1:
                raise
            wait = base_delay * (2 ** attempt)
            logger.info(f"Store unavailable, retrying in {wait:.2f}s (attempt {attempt + 1}/{attempts})")
            await sleep(wait)
    raise StoreUnavailableError("No attempts made")

def _encode(value: Any) -> Any:
    """Convert a python value into its stored representation"""
    if isinstance(value, DocumentModel):
        return value.to_document()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (list, tuple)):
        return [_encode(v) for v in value]
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value

def to_document_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """snake_case partial update -> camelCase document fields"""
    return {to_camel(key): _encode(value) for key, value in fields.items()}

def _auth_message(error: IdentityError) -> str:
    if error.code in BAD_CREDENTIAL_CODES:
        return "Invalid email or password"
    return str(error) or "Authentication failed"

class PersistenceGateway:
    """Façade over identity and document storage"""

    def __init__(
        self,
        store: DocumentStore,
        identity: IdentityProvider,
        retry_attempts: int = 3,
        retry_base_delay: float = 0.5,
    ):
        self.store = store
        self.identity = identity
        self.retry_attempts = retry_attempts
        self.retry_base_delay = retry_base_delay

    async def _read(self, operation: Callable[[], Awaitable[T]]) -> T:
        return await with_retry(operation, self.retry_attempts, self.retry_base_delay)

    # ===== AUTHENTICATION =====

    async def authenticate(self, email: str, password: str) -> Tuple[User, Optional[str]]:
        """
        Sign in and load the profile

        A missing or unreachable profile never blocks login: a minimal
        profile is synthesized from the identity record instead.

        Returns:
            The profile and the session token
        """
        try:
            record = await self.identity.sign_in(email, password)
        except IdentityError as e:
            logger.warning(f"Login failed for {email}: {e.code}")
            raise AuthenticationException(_auth_message(e)) from e

        profile_missing = False
        try:
            doc = await self._read(lambda: self.store.get(USERS, record.uid))
            if doc is not None:
                return User.from_document(doc), record.id_token
            profile_missing = True
            logger.warning(f"Profile document for {record.uid} not found, using minimal profile")
        except StoreUnavailableError as e:
            logger.warning(f"Store error while loading profile (continuing with minimal profile): {str(e)}")
        except ValidationError as e:
            logger.error(f"Stored profile for {record.uid} is malformed: {str(e)}")

        user = User.new(
            record.uid,
            record.display_name or email.split("@")[0],
            record.email or email,
        )
        if profile_missing:
            # heal accounts whose profile write failed during registration
            try:
                await self.store.set(USERS, user.id, user.to_document())
            except Exception as e:
                logger.error(f"Could not write minimal profile for {user.id}: {str(e)}")
        return user, record.id_token

    async def register(self, email: str, password: str, name: str) -> Tuple[User, Optional[str]]:
        """Create the identity, then a profile document with zero counters"""
        try:
            record = await self.identity.sign_up(email, password, name)
        except IdentityError as e:
            logger.warning(f"Registration failed for {email}: {e.code}")
            if e.code == "EMAIL_EXISTS":
                raise DuplicateAccountException(email) from e
            raise AuthenticationException(_auth_message(e)) from e

        user = User.new(record.uid, name, email)
        try:
            await self.store.set(USERS, user.id, user.to_document())
        except Exception as e:
            logger.error(f"Identity {record.uid} created but profile write failed: {str(e)}")
            raise ServiceUnavailableException("Account created but the profile could not be saved") from e

        logger.info(f"User registered: {user.id}")
        return user, record.id_token

    async def logout(self, user_id: str) -> None:
        """End the user's sessions; safe to call repeatedly"""
        try:
            await self.identity.sign_out(user_id)
        except IdentityError as e:
            logger.warning(f"Sign-out for {user_id} failed: {str(e)}")

    async def resolve_session(self, token: str) -> SessionClaims:
        """Map a session token to its user id and expiry"""
        try:
            return await self.identity.verify_token(token)
        except IdentityError as e:
            raise UnauthorizedException("Invalid or expired session") from e

    # ===== USERS =====

    async def fetch_profile(self, user_id: str) -> Optional[User]:
        """Profile or None; not-found and unavailable are not distinguished"""
        try:
            doc = await self._read(lambda: self.store.get(USERS, user_id))
        except StoreUnavailableError as e:
            logger.warning(f"Store offline while fetching profile {user_id}: {str(e)}")
            return None
        if doc is None:
            return None
        try:
            return User.from_document(doc)
        except ValidationError as e:
            logger.error(f"Stored profile for {user_id} is malformed: {str(e)}")
            return None

    async def update_profile(self, user_id: str, fields: Dict[str, Any]) -> None:
        """Merge fields into the stored profile (last writer wins)"""
        await self.store.update(USERS, user_id, to_document_fields(fields))

    async def list_users(self) -> List[User]:
        return await self._list(USERS, User)

    # ===== GENERIC HELPERS =====

    async def _list(self, collection: str, model: Type[M]) -> List[M]:
        try:
            docs = await self._read(lambda: self.store.list_all(collection))
        except StoreUnavailableError as e:
            logger.error(f"Error fetching {collection}: {str(e)}")
            return []

        entities = []
        for doc in docs:
            try:
                entities.append(model.from_document(doc))
            except ValidationError as e:
                logger.error(f"Skipping malformed {collection} document: {str(e)}")
        return entities

    async def _add(self, collection: str, entity: DocumentModel) -> str:
        return await self.store.add(collection, entity.to_document())

    async def _update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        await self.store.update(collection, doc_id, to_document_fields(fields))

    # ===== NOTIFICATIONS =====

    async def list_notifications(self) -> List[Notification]:
        return await self._list(NOTIFICATIONS, Notification)

    async def add_notification(self, notification: Notification) -> str:
        return await self._add(NOTIFICATIONS, notification)

    async def update_notification(self, notification_id: str, fields: Dict[str, Any]) -> None:
        await self._update(NOTIFICATIONS, notification_id, fields)

    # ===== ANNOUNCEMENTS =====

    async def list_announcements(self) -> List[Announcement]:
        return await self._list(ANNOUNCEMENTS, Announcement)

    async def add_announcement(self, announcement: Announcement) -> str:
        return await self._add(ANNOUNCEMENTS, announcement)

    async def update_announcement(self, announcement_id: str, fields: Dict[str, Any]) -> None:
        await self._update(ANNOUNCEMENTS, announcement_id, fields)

    # ===== TESTIMONIALS =====

    async def list_testimonials(self) -> List[Testimonial]:
        return await self._list(TESTIMONIALS, Testimonial)

    async def add_testimonial(self, testimonial: Testimonial) -> str:
        return await self._add(TESTIMONIALS, testimonial)

    async def update_testimonial(self, testimonial_id: str, fields: Dict[str, Any]) -> None:
        await self._update(TESTIMONIALS, testimonial_id, fields)

    # ===== APPROVAL REQUESTS =====

    async def list_approval_requests(self) -> List[ApprovalRequest]:
        return await self._list(APPROVAL_REQUESTS, ApprovalRequest)

    async def add_approval_request(self, request: ApprovalRequest) -> str:
        return await self._add(APPROVAL_REQUESTS, request)

    async def update_approval_request(self, request_id: str, fields: Dict[str, Any]) -> None:
        await self._update(APPROVAL_REQUESTS, request_id, fields)

    # ===== REFERRALS =====

    async def list_referrals(self) -> List[Referral]:
        return await self._list(REFERRALS, Referral)

    async def add_referral(self, referral: Referral) -> str:
        return await self._add(REFERRALS, referral)

    async def update_referral(self, referral_id: str, fields: Dict[str, Any]) -> None:
        await self._update(REFERRALS, referral_id, fields)

    # ===== CONVERSATIONS =====

    async def list_conversations(self) -> List[Conversation]:
        return await self._list(CONVERSATIONS, Conversation)

    async def add_conversation(self, conversation: Conversation) -> str:
        return await self._add(CONVERSATIONS, conversation)

    async def update_conversation(self, user_id: str, fields: Dict[str, Any]) -> None:
        await self._update(CONVERSATIONS, user_id, fields)
