"""
Error taxonomy for the User Registry.

Every failure surfaced across the presentation boundary is a `RegistryError`
subclass, so callers can branch on the type instead of parsing messages.
Nothing here retries; each error is reported once and the caller decides.
"""

from __future__ import annotations

from typing import Optional


class RegistryError(Exception):
    """Base class for all registry failures."""


class StoreError(RegistryError):
    """A store operation failed for a reason other than the ones below."""


class StoreUnavailable(StoreError):
    """The database could not be opened or its schema created, or it is closed."""


class ValidationError(RegistryError):
    """
    A required field is missing or malformed. No store write was attempted.

    `field` names the offending input when it is known.
    """

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class DuplicateEmail(RegistryError):
    """Another live record already owns this email."""

    def __init__(self, email: str) -> None:
        super().__init__(f"A user with email '{email}' already exists")
        self.email = email


class NotFound(RegistryError):
    def __init__(self, record_id: int) -> None:
        super().__init__(f"No user with id {record_id}")
        self.record_id = record_id


class ExportFailed(RegistryError):
    """The export file could not be written or read back."""


class SeedFileError(RegistryError):
    """A seed file is missing or is not a JSON array of objects."""


class LifecycleError(RegistryError):
    """The controller cannot perform the request in its current state."""


class NotReady(LifecycleError):
    def __init__(self, operation: str, state: str) -> None:
        super().__init__(f"Cannot {operation} while registry is {state}")
        self.operation = operation
        self.state = state


__all__ = [
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
