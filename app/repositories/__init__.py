"""Persistence collaborators and the gateway façade"""

from .base import DocumentStore, IdentityProvider, IdentityRecord, SessionClaims
from .gateway import PersistenceGateway, with_retry
from .memory import MemoryDocumentStore, MemoryIdentityProvider

__all__ = [
    "DocumentStore",
    "IdentityProvider",
    "IdentityRecord",
    "SessionClaims",
    "PersistenceGateway",
    "with_retry",
    "MemoryDocumentStore",
    "MemoryIdentityProvider",
]
