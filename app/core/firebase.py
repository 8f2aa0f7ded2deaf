"""Firebase configuration and initialization"""

import firebase_admin
from firebase_admin import credentials
import json
import logging
from typing import Optional

from app.core.config import Settings

logger = logging.getLogger(__name__)

# Initialized lazily by the lifespan when the firestore backend is selected
firebase_app: Optional[firebase_admin.App] = None

def initialize_firebase(settings: Settings) -> firebase_admin.App:
    """Initialize Firebase Admin SDK"""
    global firebase_app

    if firebase_app:
        return firebase_app

    options = {"projectId": settings.FIREBASE_PROJECT_ID} if settings.FIREBASE_PROJECT_ID else None

    # Try to load credentials from environment variable
    if settings.FIREBASE_CREDENTIALS_JSON:
        cred = credentials.Certificate(json.loads(settings.FIREBASE_CREDENTIALS_JSON))
    # Or from file path
    elif settings.FIREBASE_CREDENTIALS_PATH:
        cred = credentials.Certificate(settings.FIREBASE_CREDENTIALS_PATH)
    # Fall back to Application Default Credentials
    else:
        logger.warning("Firebase service account not configured, using application default credentials")
        cred = credentials.ApplicationDefault()

    firebase_app = firebase_admin.initialize_app(cred, options)
    logger.info("Firebase Admin SDK initialized for project %s", settings.FIREBASE_PROJECT_ID or "<default>")
    return firebase_app
