"""
Domain models for the User Registry.

Defines the `users` row schema (`Record`), the validated input used for every
write (`UserDraft`), and the raw entries read from a seed file (`SeedEntry`).
Timestamps are stored as ISO-8601 UTC text with microsecond precision so that
lexical order in SQLite equals chronological order.
"""
from __future__ import annotations

import re
import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from user_registry.domain.errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render a datetime in the canonical storage form (UTC, microseconds, `Z`)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


class Record(BaseModel):
    """
    Representation of a single row in the `users` table.
    """

    id: int = Field(..., description="Primary key (AUTOINCREMENT, never reused).")
    name: str = Field(..., description="Display name; not unique.")
    email: str = Field(..., description="Unique email, case-sensitive as stored.")
    created_at: datetime = Field(..., description="Creation timestamp (UTC).")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "arbitrary_types_allowed": False,
    }

    @field_validator("created_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Record":
        return cls(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            created_at=row["created_at"],
        )

    def to_export_dict(self) -> Dict[str, Any]:
        """Plain JSON-safe mapping with every column, `created_at` in storage form."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "created_at": format_timestamp(self.created_at),
        }


class UserDraft(BaseModel):
    """
    Validated name/email (and optional creation time) about to be written.

    Whitespace around name and email is trimmed before the checks run.
    """

    name: str
    email: str
    created_at: Optional[datetime] = None

    model_config = {
        "frozen": True,
        "str_strip_whitespace": True,
    }

    @field_validator("name")
    @classmethod
    def _name_required(cls, value: str) -> str:
        if not value:
            raise ValueError("name is required")
        return value

    @field_validator("email")
    @classmethod
    def _email_shape(cls, value: str) -> str:
        if not value:
            raise ValueError("email is required")
        if not EMAIL_PATTERN.match(value):
            raise ValueError(f"'{value}' is not a valid email address")
        return value

    @field_validator("created_at")
    @classmethod
    def _created_at_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def validate_draft(name: Any, email: Any, created_at: Any = None) -> UserDraft:
    """
    Build a `UserDraft`, translating pydantic failures into `ValidationError`.

    Only the first failing field is reported, matching how a form would show
    one message at a time.
    """
    try:
        return UserDraft(name=name, email=email, created_at=created_at)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = str(first["loc"][0]) if first.get("loc") else None
        message = str(first["msg"]).removeprefix("Value error, ")
        if field and field not in message:
            message = f"{field}: {message}"
        raise ValidationError(message, field=field) from None


class SeedEntry(BaseModel):
    """
    One row of seed input. Fields are kept raw; validation happens on insert
    so a malformed entry is skipped instead of rejecting the whole file.
    """

    name: str = ""
    email: str = ""
    created_at: Optional[str] = None

    model_config = {
        "frozen": True,
        "extra": "ignore",
    }


__all__ = [
    "EMAIL_PATTERN",
    "Record",
    "SeedEntry",
    "UserDraft",
    "format_timestamp",
    "utc_now",
    "validate_draft",
]
