"""
Authentication schemas for request/response validation
"""

from pydantic import EmailStr, Field

from app.models import User
from app.schemas.base import BaseSchema

class RegisterRequest(BaseSchema):
    """Client sign-up"""
    name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Tunde Bakare",
                "email": "tunde@example.com",
                "password": "secret123"
            }
        }
    }

class LoginRequest(BaseSchema):
    """Client sign-in"""
    email: EmailStr
    password: str = Field(..., min_length=1)

class AdminLoginRequest(BaseSchema):
    """Admin portal sign-in with the master PIN"""
    email: EmailStr
    pin: str = Field(..., min_length=4, max_length=12)

class AuthResponse(BaseSchema):
    """Session token plus the loaded profile"""
    access_token: str
    token_type: str = "bearer"
    user: User

class AdminAuthResponse(BaseSchema):
    access_token: str
    token_type: str = "bearer"
    name: str
