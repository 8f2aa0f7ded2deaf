"""Main FastAPI application"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from slowapi.errors import RateLimitExceeded
import logging

from app.api.health import router as health_router
from app.api.v1 import api_router
from app.core.config import Settings, settings
from app.core.exceptions import BarberException, barber_exception_handler
from app.core.firebase import initialize_firebase
from app.core.logging import setup_logging
from app.middleware.rate_limit import limiter, custom_rate_limit_handler
from app.repositories import (
    MemoryDocumentStore,
    MemoryIdentityProvider,
    PersistenceGateway,
)
from app.repositories.firestore import FirebaseIdentityProvider, FirestoreDocumentStore
from app.services import AutoReplyService, LoyaltyStore

logger = logging.getLogger(__name__)

def build_store(config: Settings) -> LoyaltyStore:
    """Wire the store to the configured persistence backend"""
    if config.STORE_BACKEND == "memory":
        document_store = MemoryDocumentStore()
        identity = MemoryIdentityProvider(token_ttl_seconds=config.SESSION_TTL_SECONDS)
    else:
        firebase_app = initialize_firebase(config)
        document_store = FirestoreDocumentStore(firebase_app)
        identity = FirebaseIdentityProvider(config, firebase_app)

    gateway = PersistenceGateway(
        document_store,
        identity,
        retry_attempts=config.STORE_RETRY_ATTEMPTS,
        retry_base_delay=config.STORE_RETRY_BASE_DELAY,
    )
    return LoyaltyStore(gateway, AutoReplyService.from_settings(config), config)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    setup_logging(settings.LOG_LEVEL, settings.LOG_JSON)
    logger.info(f"Starting up {settings.APP_NAME} ({settings.ENVIRONMENT}, {settings.STORE_BACKEND} backend)...")

    store = build_store(settings)
    await store.load()
    app.state.store = store

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Celebrity Barber loyalty, rewards and concierge API",
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, custom_rate_limit_handler)
app.add_exception_handler(BarberException, barber_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(api_router, prefix="/api/v1")
app.include_router(health_router)

@app.get("/")
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "docs": "/api/docs",
        "health": "/health"
    }
