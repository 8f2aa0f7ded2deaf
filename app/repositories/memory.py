"""In-process backends used for local runs and tests"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple
import copy
import hashlib
import logging
import secrets
import uuid

from app.core.exceptions import IdentityError, StoreUnavailableError
from app.models import utcnow
from .base import DocumentStore, IdentityProvider, IdentityRecord, SessionClaims

logger = logging.getLogger(__name__)

class MemoryDocumentStore(DocumentStore):
    """Dict-of-dicts document store"""

    def __init__(self):
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.offline = False

    def _check_online(self):
        if self.offline:
            raise StoreUnavailableError("Failed to get document because the client is offline.")

    def _collection(self, name: str) -> Dict[str, Dict[str, Any]]:
        return self.collections.setdefault(name, {})

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        self._check_online()
        doc = self._collection(collection).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def list_all(self, collection: str) -> List[Dict[str, Any]]:
        self._check_online()
        return [copy.deepcopy(doc) for doc in self._collection(collection).values()]

    async def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self._check_online()
        self._collection(collection)[doc_id] = copy.deepcopy(data)

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        self._check_online()
        docs = self._collection(collection)
        if doc_id not in docs:
            raise KeyError(f"No document {collection}/{doc_id}")
        docs[doc_id].update(copy.deepcopy(fields))

class MemoryIdentityProvider(IdentityProvider):
    """Password accounts kept in memory, with opaque expiring session tokens"""

    def __init__(self, token_ttl_seconds: int = 3600):
        self._accounts: Dict[str, Dict[str, Any]] = {}
        # token -> (uid, expires at)
        self._tokens: Dict[str, Tuple[str, datetime]] = {}
        self.token_ttl = timedelta(seconds=token_ttl_seconds)

    @staticmethod
    def _hash(password: str, salt: bytes) -> bytes:
        return hashlib.pbkdf2_hmac("sha256", password.encode(), salt, 100_000)

    def _issue_token(self, uid: str) -> str:
        token = secrets.token_urlsafe(32)
        now = utcnow()
        self._tokens = {t: entry for t, entry in self._tokens.items() if entry[1] > now}
        self._tokens[token] = (uid, now + self.token_ttl)
        logger.debug(f"Issued session token for {uid}")
        return token

    async def sign_up(self, email: str, password: str, name: str) -> IdentityRecord:
        key = email.lower()
        if key in self._accounts:
            raise IdentityError("The email address is already in use by another account.", code="EMAIL_EXISTS")
        if len(password) < 6:
            raise IdentityError("Password should be at least 6 characters", code="WEAK_PASSWORD")

        salt = secrets.token_bytes(16)
        uid = uuid.uuid4().hex
        self._accounts[key] = {
            "uid": uid,
            "email": email,
            "display_name": name,
            "salt": salt,
            "password_hash": self._hash(password, salt),
        }
        return IdentityRecord(uid=uid, email=email, display_name=name, id_token=self._issue_token(uid))

    async def sign_in(self, email: str, password: str) -> IdentityRecord:
        account = self._accounts.get(email.lower())
        if not account or not secrets.compare_digest(
            account["password_hash"], self._hash(password, account["salt"])
        ):
            raise IdentityError("Invalid email or password", code="INVALID_LOGIN_CREDENTIALS")
        return IdentityRecord(
            uid=account["uid"],
            email=account["email"],
            display_name=account["display_name"],
            id_token=self._issue_token(account["uid"]),
        )

    async def sign_out(self, uid: str) -> None:
        for token in [t for t, (owner, _) in self._tokens.items() if owner == uid]:
            del self._tokens[token]

    async def verify_token(self, token: str) -> SessionClaims:
        entry = self._tokens.get(token)
        if entry is not None and entry[1] <= utcnow():
            del self._tokens[token]
            entry = None
        if entry is None:
            raise IdentityError("Session token is invalid or expired", code="INVALID_ID_TOKEN")
        return SessionClaims(uid=entry[0], expires_at=entry[1])
