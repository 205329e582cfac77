from __future__ import annotations

import asyncio
import re
import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path

import pytest

from user_registry.domain.errors import (
    DuplicateEmail,
    NotFound,
    StoreUnavailable,
    ValidationError,
)
from user_registry.infrastructure.record_store import RecordStore

pytestmark = pytest.mark.integration


@pytest.mark.asyncio
async def test_initialize_is_idempotent_and_creates_schema(store: RecordStore, db_path: Path) -> None:
    await store.initialize()
    assert await store.count() == 0

    with closing(sqlite3.connect(db_path)) as conn:
        columns = [row[1] for row in conn.execute("PRAGMA table_info(users)")]
    assert columns == ["id", "name", "email", "created_at"]


@pytest.mark.asyncio
async def test_add_assigns_new_unused_id(store: RecordStore) -> None:
    first = await store.insert("Anna", "ann@x.com")
    second = await store.insert("Bob", "bob@x.com")

    records = await store.list_all()
    matching = [r for r in records if r.email == "bob@x.com"]

    assert len(matching) == 1
    assert matching[0].name == "Bob"
    assert second.id > first.id
    assert matching[0] == second


@pytest.mark.asyncio
async def test_ids_are_never_reused_after_delete(store: RecordStore) -> None:
    first = await store.insert("Anna", "ann@x.com")
    await store.delete(first.id)
    second = await store.insert("Anna", "ann@x.com")

    assert second.id > first.id


@pytest.mark.asyncio
async def test_insert_trims_input_and_defaults_created_at(store: RecordStore) -> None:
    before = datetime.now(timezone.utc)
    record = await store.insert("  Anna  ", "  ann@x.com ")

    assert record.name == "Anna"
    assert record.email == "ann@x.com"
    assert record.created_at >= before
    assert record.created_at.tzinfo is not None


@pytest.mark.asyncio
async def test_insert_keeps_explicit_created_at(store: RecordStore) -> None:
    record = await store.insert("Anna", "ann@x.com", "2024-01-15T10:30:00Z")

    assert record.created_at == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
    assert (await store.get(record.id)).created_at == record.created_at


@pytest.mark.asyncio
async def test_duplicate_email_leaves_store_unchanged(store: RecordStore) -> None:
    await store.insert("Anna", "ann@x.com")
    count_before = await store.count()

    with pytest.raises(DuplicateEmail) as excinfo:
        await store.insert("Another Anna", "ann@x.com")

    assert excinfo.value.email == "ann@x.com"
    assert await store.count() == count_before


@pytest.mark.asyncio
async def test_email_uniqueness_is_case_sensitive(store: RecordStore) -> None:
    await store.insert("Anna", "ann@x.com")
    await store.insert("Anna Upper", "Ann@x.com")

    assert await store.count() == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("name", "email", "field"),
    [
        ("", "ann@x.com", "name"),
        ("   ", "ann@x.com", "name"),
        ("Anna", "", "email"),
        ("Anna", "not-an-email", "email"),
        ("Anna", "ann@x", "email"),
    ],
)
async def test_insert_rejects_invalid_input_without_writing(
    store: RecordStore, name: str, email: str, field: str
) -> None:
    with pytest.raises(ValidationError) as excinfo:
        await store.insert(name, email)

    assert excinfo.value.field == field
    assert await store.count() == 0


@pytest.mark.asyncio
async def test_update_changes_name_and_email_only(store: RecordStore) -> None:
    original = await store.insert("Anna", "ann@x.com", "2024-01-15T10:30:00Z")

    updated = await store.update(original.id, "Anna Maria", "anna.maria@x.com")
    listed = {r.id: r for r in await store.list_all()}[original.id]

    assert updated == listed
    assert listed.name == "Anna Maria"
    assert listed.email == "anna.maria@x.com"
    assert listed.id == original.id
    assert listed.created_at == original.created_at


@pytest.mark.asyncio
async def test_update_to_own_email_is_allowed(store: RecordStore) -> None:
    record = await store.insert("Anna", "ann@x.com")

    updated = await store.update(record.id, "Anna B.", "ann@x.com")

    assert updated.name == "Anna B."


@pytest.mark.asyncio
async def test_update_missing_id_raises_not_found(store: RecordStore) -> None:
    with pytest.raises(NotFound) as excinfo:
        await store.update(999, "Ghost", "ghost@x.com")

    assert excinfo.value.record_id == 999


@pytest.mark.asyncio
async def test_update_to_other_records_email_raises_duplicate(store: RecordStore) -> None:
    await store.insert("Anna", "ann@x.com")
    bob = await store.insert("Bob", "bob@x.com")

    with pytest.raises(DuplicateEmail):
        await store.update(bob.id, "Bob", "ann@x.com")

    assert (await store.get(bob.id)).email == "bob@x.com"


@pytest.mark.asyncio
async def test_delete_is_idempotent(store: RecordStore) -> None:
    record = await store.insert("Anna", "ann@x.com")

    assert await store.delete(record.id) is True
    assert record.id not in {r.id for r in await store.list_all()}
    assert await store.delete(record.id) is False
    assert await store.count() == 0


@pytest.mark.asyncio
async def test_delete_all_returns_removed_count(store: RecordStore) -> None:
    await store.insert("Anna", "ann@x.com")
    await store.insert("Bob", "bob@x.com")

    assert await store.delete_all() == 2
    assert await store.count() == 0
    assert await store.delete_all() == 0


@pytest.mark.asyncio
async def test_get_missing_raises_not_found(store: RecordStore) -> None:
    with pytest.raises(NotFound):
        await store.get(42)


@pytest.mark.asyncio
async def test_list_all_is_newest_first(store: RecordStore) -> None:
    await store.insert("Old", "old@x.com", "2024-01-01T00:00:00Z")
    await store.insert("New", "new@x.com", "2024-03-01T00:00:00Z")
    await store.insert("Mid", "mid@x.com", "2024-02-01T00:00:00Z")

    names = [r.name for r in await store.list_all()]

    assert names == ["New", "Mid", "Old"]


@pytest.mark.asyncio
async def test_search_blank_term_equals_list_all(store: RecordStore) -> None:
    await store.insert("Anna", "ann@x.com")
    await store.insert("Bob", "bob@x.com")

    everything = await store.list_all()

    assert await store.search("") == everything
    assert await store.search("   ") == everything
    assert await store.search(None) == everything


@pytest.mark.asyncio
async def test_search_matches_name_or_email_case_insensitively(store: RecordStore) -> None:
    anna = await store.insert("Anna", "ann@x.com")
    await store.insert("Bob", "bob@x.com")

    assert [r.id for r in await store.search("ann")] == [anna.id]
    assert [r.id for r in await store.search("ANNA")] == [anna.id]
    assert [r.id for r in await store.search("ann@X")] == [anna.id]


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(store: RecordStore) -> None:
    await store.insert("Under Score", "under_score@x.com")
    await store.insert("Plain", "plain@x.com")

    results = await store.search("_")

    assert [r.name for r in results] == ["Under Score"]
    assert await store.search("%") == []


@pytest.mark.asyncio
async def test_search_keeps_spaces_inside_the_term(store: RecordStore) -> None:
    await store.insert("Anna Lee", "anna@x.com", "2024-01-01T00:00:00Z")
    await store.insert("Leeroy", "leeroy@x.com", "2024-01-02T00:00:00Z")

    assert [r.name for r in await store.search(" Lee")] == ["Anna Lee"]
    assert [r.name for r in await store.search("lee")] == ["Leeroy", "Anna Lee"]


@pytest.mark.asyncio
async def test_seed_marker_survives_clearing_and_reopening(db_path: Path) -> None:
    async with RecordStore(db_path) as first:
        assert await first.is_seeded() is False
        await first.insert("Anna", "ann@x.com")
        await first.mark_seeded()
        await first.delete_all()

    async with RecordStore(db_path) as second:
        assert await second.count() == 0
        assert await second.is_seeded() is True


@pytest.mark.asyncio
async def test_schema_default_timestamp_uses_canonical_precision(
    store: RecordStore, db_path: Path
) -> None:
    with closing(sqlite3.connect(db_path)) as conn:
        conn.execute("INSERT INTO users (name, email) VALUES ('Raw', 'raw@x.com')")
        conn.commit()
        (stamp,) = conn.execute("SELECT created_at FROM users").fetchone()

    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{6}Z", stamp)
    assert stamp.endswith("000Z")
    assert (await store.get(1)).created_at.tzinfo is not None


@pytest.mark.asyncio
async def test_concurrent_adds_with_same_email_yield_one_record(store: RecordStore) -> None:
    outcomes = await asyncio.gather(
        store.insert("Anna", "ann@x.com"),
        store.insert("Anna Again", "ann@x.com"),
        return_exceptions=True,
    )

    assert sum(isinstance(o, DuplicateEmail) for o in outcomes) == 1
    assert await store.count() == 1


@pytest.mark.asyncio
async def test_mutations_are_visible_to_a_second_connection(store: RecordStore, db_path: Path) -> None:
    await store.insert("Anna", "ann@x.com")

    async with RecordStore(db_path) as other:
        assert [r.email for r in await other.list_all()] == ["ann@x.com"]


@pytest.mark.asyncio
async def test_operations_on_closed_store_raise_unavailable(db_path: Path) -> None:
    record_store = RecordStore(db_path)

    with pytest.raises(StoreUnavailable):
        await record_store.count()

    await record_store.initialize()
    await record_store.close()

    with pytest.raises(StoreUnavailable):
        await record_store.list_all()


@pytest.mark.asyncio
async def test_unopenable_path_raises_unavailable(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("occupied", encoding="utf-8")

    with pytest.raises(StoreUnavailable):
        await RecordStore(blocker / "user.db").initialize()


@pytest.mark.asyncio
async def test_unknown_journal_mode_raises_unavailable(db_path: Path) -> None:
    with pytest.raises(StoreUnavailable):
        await RecordStore(db_path, journal_mode="bogus; DROP TABLE users").initialize()


@pytest.mark.asyncio
async def test_in_memory_store_supports_full_crud() -> None:
    async with RecordStore(":memory:", journal_mode="memory") as memory_store:
        record = await memory_store.insert("Anna", "ann@x.com")
        await memory_store.update(record.id, "Anna B.", "ann@x.com")

        assert [r.name for r in await memory_store.search("anna")] == ["Anna B."]
