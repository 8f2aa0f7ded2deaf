"""
Application configuration management using Pydantic Settings
Handles all environment variables and application settings
"""

from pydantic_settings import BaseSettings
from typing import Optional, List
from functools import lru_cache

class Settings(BaseSettings):
    """Main application settings"""

    # Application Settings
    APP_NAME: str = "Celebrity Barber API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # CORS Configuration
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Backend selection: "firestore" or "memory"
    STORE_BACKEND: str = "firestore"

    # Firebase Configuration
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_WEB_API_KEY: Optional[str] = None
    FIREBASE_CREDENTIALS_JSON: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None
    IDENTITY_TOOLKIT_URL: str = "https://identitytoolkit.googleapis.com/v1"

    # Store retry policy (read paths only)
    STORE_RETRY_ATTEMPTS: int = 3
    STORE_RETRY_BASE_DELAY: float = 0.5

    # AI/ML Services
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    AUTO_REPLY_TIMEOUT_SECONDS: float = 15.0
    AUTO_REPLY_MAX_TOKENS: int = 120

    # Admin portal
    ADMIN_PIN: str = "123456"
    ADMIN_SESSION_NAME: str = "Manager"

    # Session lifetimes (Firebase ID tokens last one hour)
    SESSION_TTL_SECONDS: int = 3600
    ADMIN_SESSION_TTL_SECONDS: int = 28800

    # Business Logic Settings
    SPENDING_THRESHOLD: int = 5000
    BONUS_AMOUNT: int = 500
    VIP_SUBSCRIPTION_FEE: int = 2500
    VIP_DURATION_DAYS: int = 30
    REFERRAL_GOAL: int = 3
    ROOM_SERVICE_FEE: int = 500
    CURRENCY_SYMBOL: str = "N"

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_AUTH: str = "5/minute"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

@lru_cache()
def get_settings() -> Settings:
    """
    Create cached settings instance
    This ensures settings are loaded only once
    """
    return Settings()

# Global settings instance
settings = get_settings()
