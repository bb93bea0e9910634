"""
Storage Services Package

Provides the audit storage interface and the in-memory implementation
used for a single session.
"""

from trackwise.services.storage.interface import (
    AuditStorageInterface,
    InMemoryAuditStorage,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "InMemoryAuditStorage",
    "StorageError",
]
