"""Rate limiting middleware using slowapi"""

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from app.core.config import settings

def get_rate_limit_key(request: Request) -> str:
    """Get rate limit key based on user or IP"""
    user_id = getattr(request.state, "user_id", None)

    if user_id:
        return f"user:{user_id}"

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"

    return f"ip:{get_remote_address(request)}"

# In-process counters; one API worker holds all sessions anyway
limiter = Limiter(
    key_func=get_rate_limit_key,
    storage_uri="memory://",
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED
)

async def custom_rate_limit_handler(request: Request, exc: RateLimitExceeded) -> Response:
    return JSONResponse(
        status_code=429,
        content={
            "error": {
                "code": "RATE_LIMITED",
                "message": f"Too many requests. {exc.detail}"
            }
        }
    )

# Credential endpoints share one budget per caller
auth_limiter = limiter.shared_limit(settings.RATE_LIMIT_AUTH, scope="auth")
