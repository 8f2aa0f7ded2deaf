"""API v1 routes aggregation"""

from fastapi import APIRouter

from .auth.router import router as auth_router
from .users.router import router as users_router
from .catalog.router import router as catalog_router
from .requests.router import router as requests_router
from .referrals.router import router as referrals_router
from .notifications.router import router as notifications_router
from .announcements.router import router as announcements_router
from .testimonials.router import router as testimonials_router
from .chat.router import router as chat_router

# Create v1 router
api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])
api_router.include_router(users_router, prefix="/users", tags=["Users"])
api_router.include_router(catalog_router, prefix="/catalog", tags=["Catalog"])
api_router.include_router(requests_router, prefix="/requests", tags=["Approval Requests"])
api_router.include_router(referrals_router, prefix="/referrals", tags=["Referrals"])
api_router.include_router(notifications_router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(announcements_router, prefix="/announcements", tags=["Announcements"])
api_router.include_router(testimonials_router, prefix="/testimonials", tags=["Testimonials"])
api_router.include_router(chat_router, prefix="/chat", tags=["Chat"])
