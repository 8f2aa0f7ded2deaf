"""
Authentication API routes
"""

from fastapi import APIRouter, Depends, Request, status

from app.api.dependencies import get_current_user, get_store, get_token
from app.core.config import settings
from app.middleware.rate_limit import auth_limiter
from app.models import User
from app.schemas.auth import (
    AdminAuthResponse,
    AdminLoginRequest,
    AuthResponse,
    LoginRequest,
    RegisterRequest,
)
from app.services import LoyaltyStore

router = APIRouter()

@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new client",
    description="Create an identity and a loyalty profile with every counter at zero"
)
@auth_limiter
async def register(
    request: Request,
    payload: RegisterRequest,
    store: LoyaltyStore = Depends(get_store)
):
    user, token = await store.register(payload.email, payload.password, payload.name)
    return AuthResponse(access_token=token, user=user)

@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login client",
    description="Sign in with email and password; a missing profile is replaced by a minimal one"
)
@auth_limiter
async def login(
    request: Request,
    payload: LoginRequest,
    store: LoyaltyStore = Depends(get_store)
):
    user, token = await store.login(payload.email, payload.password)
    return AuthResponse(access_token=token, user=user)

@router.post("/logout", summary="Logout")
async def logout(
    token: str = Depends(get_token),
    store: LoyaltyStore = Depends(get_store)
):
    """End the session; repeating the call is harmless"""
    await store.logout(token)
    return {"message": "Logged out successfully"}

@router.get("/me", response_model=User, summary="Current profile")
async def me(current_user: User = Depends(get_current_user)):
    return current_user

@router.post(
    "/admin/login",
    response_model=AdminAuthResponse,
    summary="Admin portal login",
    description="Open a management session with the master PIN"
)
@auth_limiter
async def admin_login(
    request: Request,
    payload: AdminLoginRequest,
    store: LoyaltyStore = Depends(get_store)
):
    token = store.admin_login(payload.email, payload.pin)
    return AdminAuthResponse(access_token=token, name=settings.ADMIN_SESSION_NAME)
