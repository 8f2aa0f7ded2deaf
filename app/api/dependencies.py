"""
Authentication dependencies
"""

from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.exceptions import ForbiddenException, UnauthorizedException
from app.models import User
from app.services import LoyaltyStore

security = HTTPBearer(auto_error=False)

def get_store(request: Request) -> LoyaltyStore:
    """The process-wide store built during startup"""
    return request.app.state.store

def get_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedException("Not authenticated")
    return credentials.credentials

async def get_current_user(
    request: Request,
    token: str = Depends(get_token),
    store: LoyaltyStore = Depends(get_store)
) -> User:
    """
    Resolve the bearer token to a client profile
    Raises 401 if the session is unknown or the profile cannot be loaded
    """
    user = await store.session_user(token)
    request.state.user_id = user.id
    return user

def require_admin(
    token: str = Depends(get_token),
    store: LoyaltyStore = Depends(get_store)
) -> str:
    """Admin portal token required"""
    if not store.is_admin(token):
        raise ForbiddenException("Admin access required")
    return token

async def require_session(
    token: str = Depends(get_token),
    store: LoyaltyStore = Depends(get_store)
) -> Optional[User]:
    """
    Any signed-in viewer: a client (returns the profile) or the admin
    portal (returns None)
    """
    if store.is_admin(token):
        return None
    return await store.session_user(token)
