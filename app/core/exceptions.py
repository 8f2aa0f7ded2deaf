"""
Custom exception classes and error handlers
Provides consistent error responses across the application
"""

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from typing import Any, Dict, Optional

class BarberException(HTTPException):
    """Base exception class for the loyalty API"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code

class BadRequestException(BarberException):
    """400 Bad Request"""

    def __init__(self, detail: str, error_code: str = "BAD_REQUEST"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code
        )

class UnauthorizedException(BarberException):
    """401 Unauthorized"""

    def __init__(self, detail: str = "Unauthorized", error_code: str = "UNAUTHORIZED"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code=error_code,
            headers={"WWW-Authenticate": "Bearer"}
        )

class ForbiddenException(BarberException):
    """403 Forbidden"""

    def __init__(self, detail: str = "Forbidden", error_code: str = "FORBIDDEN"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code=error_code
        )

class NotFoundException(BarberException):
    """404 Not Found"""

    def __init__(self, detail: str = "Not found", error_code: str = "NOT_FOUND"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code=error_code
        )

class ConflictException(BarberException):
    """409 Conflict"""

    def __init__(self, detail: str, error_code: str = "CONFLICT"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code=error_code
        )

class ValidationException(BarberException):
    """422 Unprocessable Entity"""

    def __init__(self, detail: str, error_code: str = "VALIDATION_ERROR"):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code=error_code
        )

class ServiceUnavailableException(BarberException):
    """503 Service Unavailable"""

    def __init__(
        self,
        detail: str = "Service temporarily unavailable",
        error_code: str = "SERVICE_UNAVAILABLE"
    ):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
            error_code=error_code
        )

# Business logic exceptions
class AuthenticationException(UnauthorizedException):
    """Login or registration rejected by the identity provider"""

    def __init__(self, detail: str = "Invalid email or password"):
        super().__init__(
            detail=detail,
            error_code="AUTHENTICATION_FAILED"
        )

class DuplicateAccountException(ConflictException):
    """Email already registered"""

    def __init__(self, email: str):
        super().__init__(
            detail=f"An account with email '{email}' already exists",
            error_code="DUPLICATE_ACCOUNT"
        )

class InvalidTransitionException(ConflictException):
    """Status can only move forward from pending"""

    def __init__(self, resource: str, current: str, target: str):
        super().__init__(
            detail=f"{resource} is already {current}; cannot mark it {target}",
            error_code="INVALID_STATUS_TRANSITION"
        )

# Collaborator errors (not HTTP-facing)
class StoreUnavailableError(Exception):
    """Document store is offline, unreachable or temporarily unavailable"""

class IdentityError(Exception):
    """Identity provider rejected a request"""

    def __init__(self, message: str, code: str = "IDENTITY_ERROR"):
        super().__init__(message)
        self.code = code

async def barber_exception_handler(request: Request, exc: BarberException) -> JSONResponse:
    """Render application exceptions with a stable error envelope"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "code": exc.error_code or "ERROR",
                "message": exc.detail
            }
        },
        headers=exc.headers
    )
