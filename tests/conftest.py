"""
Pytest configuration for the User Registry.

Provides fixtures for:
- Settings pointed at a per-test temporary directory
- A freshly initialized record store on a real SQLite file
- A small seed sequence and a lifecycle controller wired to both
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import AsyncGenerator, Tuple

import pytest
import pytest_asyncio

from user_registry.config import Settings, get_settings
from user_registry.domain.models import SeedEntry
from user_registry.export import ExportSerializer
from user_registry.infrastructure.record_store import RecordStore
from user_registry.lifecycle import LifecycleController

SEED_SOURCE = "test-seed"


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Each test sees settings built from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    return Settings(
        data_dir=tmp_path / "var",
        export_dir=tmp_path / "exports",
        log_level="DEBUG",
    )


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "var" / "user.db"


@pytest.fixture
def export_path(tmp_path: Path) -> Path:
    return tmp_path / "exports" / "users_export.json"


@pytest.fixture
def seed_entries() -> Tuple[SeedEntry, ...]:
    """Three unique-email entries, oldest first."""
    return (
        SeedEntry(name="John Doe", email="john.doe@example.com", created_at="2024-01-15T10:30:00Z"),
        SeedEntry(name="Jane Smith", email="jane.smith@example.com", created_at="2024-01-16T14:20:00Z"),
        SeedEntry(name="Bob Johnson", email="bob.johnson@example.com", created_at="2024-01-17T09:15:00Z"),
    )


@pytest_asyncio.fixture
async def store(db_path: Path) -> AsyncGenerator[RecordStore, None]:
    """
    An initialized, empty record store. Closed after the test.
    """
    record_store = RecordStore(db_path)
    await record_store.initialize()
    try:
        yield record_store
    finally:
        await record_store.close()


@pytest_asyncio.fixture
async def controller(
    db_path: Path, export_path: Path, seed_entries: Tuple[SeedEntry, ...]
) -> AsyncGenerator[LifecycleController, None]:
    """
    A controller over an unopened store; tests call `initialize()` themselves.
    """
    record_store = RecordStore(db_path)
    registry = LifecycleController(
        record_store,
        seed_entries,
        seed_source=SEED_SOURCE,
        exporter=ExportSerializer(record_store, export_path),
    )
    try:
        yield registry
    finally:
        await registry.close()


@pytest.fixture
def restore_root_logging():
    """Undo `configure_logging` so handlers bound to captured streams do not leak."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
