"""
Domain package for the User Registry.

Exports the record schema, write-side validation, and the error taxonomy used
across the store, lifecycle controller, and CLI. Keep this package free of I/O.
"""

from user_registry.domain.errors import (
    DuplicateEmail,
    ExportFailed,
    LifecycleError,
    NotFound,
    NotReady,
    RegistryError,
    SeedFileError,
    StoreError,
    StoreUnavailable,
    ValidationError,
)
from user_registry.domain.models import Record, SeedEntry, UserDraft, validate_draft

__all__ = [
    "Record",
    "SeedEntry",
    "UserDraft",
    "validate_draft",
    "RegistryError",
    "StoreError",
    "StoreUnavailable",
    "ValidationError",
    "DuplicateEmail",
    "NotFound",
    "ExportFailed",
    "SeedFileError",
    "LifecycleError",
    "NotReady",
]
