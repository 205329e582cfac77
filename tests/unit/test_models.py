from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from user_registry.domain.errors import ValidationError
from user_registry.domain.models import Record, format_timestamp, validate_draft


def test_validate_draft_trims_whitespace() -> None:
    draft = validate_draft("  Anna  ", " ann@x.com ")

    assert draft.name == "Anna"
    assert draft.email == "ann@x.com"
    assert draft.created_at is None


@pytest.mark.parametrize(
    ("name", "email", "field", "fragment"),
    [
        ("", "ann@x.com", "name", "name is required"),
        ("Anna", "  ", "email", "email is required"),
        ("Anna", "ann.x.com", "email", "not a valid email"),
        ("Anna", "ann @x.com", "email", "not a valid email"),
        (None, "ann@x.com", "name", "name"),
    ],
)
def test_validate_draft_reports_first_bad_field(name, email, field, fragment) -> None:
    with pytest.raises(ValidationError) as excinfo:
        validate_draft(name, email)

    assert excinfo.value.field == field
    assert fragment in str(excinfo.value)


def test_validate_draft_rejects_unparseable_created_at() -> None:
    with pytest.raises(ValidationError) as excinfo:
        validate_draft("Anna", "ann@x.com", "not a date")

    assert excinfo.value.field == "created_at"


def test_validate_draft_normalizes_created_at_to_utc() -> None:
    naive = validate_draft("Anna", "ann@x.com", datetime(2024, 1, 1, 12, 0))
    offset = validate_draft("Anna", "ann@x.com", "2024-01-01T14:00:00+02:00")

    assert naive.created_at == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert offset.created_at.utcoffset() == timedelta(0)
    assert offset.created_at == naive.created_at


def test_format_timestamp_sorts_lexically_in_time_order() -> None:
    earlier = datetime(2024, 1, 1, 9, 59, 59, 999999, tzinfo=timezone.utc)
    later = datetime(2024, 1, 1, 10, 0, tzinfo=timezone(timedelta(hours=-1)))

    assert format_timestamp(earlier) == "2024-01-01T09:59:59.999999Z"
    assert format_timestamp(later) == "2024-01-01T11:00:00.000000Z"
    assert format_timestamp(earlier) < format_timestamp(later)


def test_record_export_dict_carries_every_column() -> None:
    record = Record(id=7, name="Anna", email="ann@x.com", created_at="2024-01-15T10:30:00Z")

    assert record.to_export_dict() == {
        "id": 7,
        "name": "Anna",
        "email": "ann@x.com",
        "created_at": "2024-01-15T10:30:00.000000Z",
    }


def test_record_is_frozen() -> None:
    record = Record(id=1, name="Anna", email="ann@x.com", created_at="2024-01-15T10:30:00Z")

    with pytest.raises(PydanticValidationError):
        record.name = "Other"  # type: ignore[misc]
