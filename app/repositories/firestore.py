"""Firebase-backed identity provider and document store"""

from firebase_admin import auth, firestore_async
from firebase_admin import exceptions as firebase_exceptions
from google.api_core import exceptions as google_exceptions
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import asyncio
import firebase_admin
import httpx
import logging

from app.core.config import Settings
from app.core.exceptions import IdentityError, StoreUnavailableError
from .base import DocumentStore, IdentityProvider, IdentityRecord, SessionClaims

logger = logging.getLogger(__name__)

TRANSIENT_MARKERS = ("offline", "unavailable", "network")

def _is_transient(exc: Exception) -> bool:
    if isinstance(exc, (google_exceptions.ServiceUnavailable, google_exceptions.DeadlineExceeded)):
        return True
    message = str(exc).lower()
    return any(marker in message for marker in TRANSIENT_MARKERS)

class FirestoreDocumentStore(DocumentStore):
    """Cloud Firestore collections via the async admin client"""

    def __init__(self, app: Optional[firebase_admin.App] = None):
        self.db = firestore_async.client(app)

    async def _call(self, coro):
        try:
            return await coro
        except google_exceptions.NotFound as e:
            raise KeyError(str(e)) from e
        except google_exceptions.GoogleAPICallError as e:
            if _is_transient(e):
                raise StoreUnavailableError(str(e)) from e
            raise

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        snapshot = await self._call(self.db.collection(collection).document(doc_id).get())
        return snapshot.to_dict() if snapshot.exists else None

    async def list_all(self, collection: str) -> List[Dict[str, Any]]:
        async def _collect():
            return [doc.to_dict() async for doc in self.db.collection(collection).stream()]
        return await self._call(_collect())

    async def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        await self._call(self.db.collection(collection).document(doc_id).set(data))

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        await self._call(self.db.collection(collection).document(doc_id).update(fields))

class FirebaseIdentityProvider(IdentityProvider):
    """
    Firebase Authentication

    Account management and token checks go through the Admin SDK; password
    sign-in uses the Identity Toolkit REST endpoint, which the Admin SDK
    does not expose.
    """

    def __init__(
        self,
        settings: Settings,
        app: Optional[firebase_admin.App] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.app = app
        self.transport = transport
        self.api_key = settings.FIREBASE_WEB_API_KEY
        self.base_url = settings.IDENTITY_TOOLKIT_URL

    async def _password_sign_in(self, email: str, password: str) -> IdentityRecord:
        if not self.api_key:
            raise IdentityError("FIREBASE_WEB_API_KEY is not configured", code="CONFIGURATION_NOT_FOUND")

        try:
            async with httpx.AsyncClient(timeout=10.0, transport=self.transport) as client:
                response = await client.post(
                    f"{self.base_url}/accounts:signInWithPassword",
                    params={"key": self.api_key},
                    json={"email": email, "password": password, "returnSecureToken": True},
                )
        except httpx.HTTPError as e:
            logger.error(f"Identity Toolkit request failed: {str(e)}")
            raise IdentityError("Network request failed", code="NETWORK_REQUEST_FAILED") from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if response.status_code != 200:
            # e.g. "INVALID_PASSWORD" or "TOO_MANY_ATTEMPTS_TRY_LATER : detail"
            code = payload.get("error", {}).get("message", "SIGN_IN_FAILED").split(":")[0].strip()
            raise IdentityError(code.replace("_", " ").capitalize(), code=code)

        return IdentityRecord(
            uid=payload["localId"],
            email=payload.get("email", email),
            display_name=payload.get("displayName") or None,
            id_token=payload.get("idToken"),
        )

    async def sign_up(self, email: str, password: str, name: str) -> IdentityRecord:
        try:
            await asyncio.to_thread(
                auth.create_user, email=email, password=password, display_name=name, app=self.app
            )
        except auth.EmailAlreadyExistsError as e:
            raise IdentityError(str(e), code="EMAIL_EXISTS") from e
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            raise IdentityError(str(e)) from e

        return await self._password_sign_in(email, password)

    async def sign_in(self, email: str, password: str) -> IdentityRecord:
        return await self._password_sign_in(email, password)

    async def sign_out(self, uid: str) -> None:
        try:
            await asyncio.to_thread(auth.revoke_refresh_tokens, uid, app=self.app)
        except firebase_exceptions.FirebaseError as e:
            raise IdentityError(str(e)) from e

    async def verify_token(self, token: str) -> SessionClaims:
        try:
            claims = await asyncio.to_thread(auth.verify_id_token, token, app=self.app, check_revoked=True)
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            raise IdentityError(str(e), code="INVALID_ID_TOKEN") from e
        expires_at = datetime.fromtimestamp(claims["exp"], timezone.utc) if "exp" in claims else None
        return SessionClaims(uid=claims["uid"], expires_at=expires_at)
