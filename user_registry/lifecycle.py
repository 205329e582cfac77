"""
Lifecycle controller for the User Registry.

Drives the store through its states and is the only surface the presentation
layer talks to:

    UNINITIALIZED -> OPENING -> SEEDING -> READY   (SEEDING skipped if rows exist)
    READY -> RESETTING -> READY

CRUD is exposed only in READY. Every mutation is followed by a re-read that
replaces `view`, the snapshot handed to the presentation layer. Destructive
calls (`delete`, `clear_all`, `reset`) are unguarded here; confirming them is
the caller's job.

Usage:
    from user_registry.lifecycle import build_controller

    async with build_controller() as registry:
        await registry.add("Anna", "ann@x.com")
        print(registry.view)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from user_registry.config import Settings, get_settings
from user_registry.domain.errors import LifecycleError, NotReady, StoreError, StoreUnavailable
from user_registry.domain.models import Record, SeedEntry
from user_registry.export import ExportSerializer
from user_registry.infrastructure.record_store import RecordStore
from user_registry.query import UserQuery
from user_registry.seed import BUNDLED_SOURCE, SeedReport, apply_seed, resolve_seed_data
from user_registry.utils.logging import get_logger

log = get_logger(__name__)


class LifecycleState(str, Enum):
    UNINITIALIZED = "uninitialized"
    OPENING = "opening"
    SEEDING = "seeding"
    READY = "ready"
    RESETTING = "resetting"


@dataclass
class LifecycleResult:
    """
    Outcome of `initialize()` or `reset()`.

    `first_run` is True only for the startup that performed the automatic seed
    pass. `seed_report` is None when the call did not seed.
    """

    records: List[Record] = field(default_factory=list)
    first_run: bool = False
    seed_report: Optional[SeedReport] = None

    @property
    def seeded(self) -> bool:
        return self.seed_report is not None


class LifecycleController:
    """
    Orchestrates initialization, first-run seeding, CRUD, reset and export.

    Parameters
    ----------
    store : RecordStore
        The explicitly constructed store this controller owns for its lifetime.
    seed_entries : Sequence[SeedEntry] | None
        Seed sequence replayed on first run and on reset. Defaults to the
        configured seed file, else the bundled dataset.
    seed_source : str
        Label used in logs and seed reports.
    query : UserQuery | None
        Search façade; defaults to one over `store`.
    exporter : ExportSerializer | None
        Export writer; defaults to the configured export path.
    """

    def __init__(
        self,
        store: RecordStore,
        seed_entries: Optional[Sequence[SeedEntry]] = None,
        *,
        seed_source: str = BUNDLED_SOURCE,
        query: Optional[UserQuery] = None,
        exporter: Optional[ExportSerializer] = None,
    ) -> None:
        if seed_entries is None:
            seed_entries, seed_source = resolve_seed_data()
        self._store = store
        self._seed_entries: Tuple[SeedEntry, ...] = tuple(seed_entries)
        self._seed_source = seed_source
        self._query = query or UserQuery(store)
        self._exporter = exporter or ExportSerializer(store, get_settings().export_path)

        self._state = LifecycleState.UNINITIALIZED
        self._init_task: Optional[asyncio.Task] = None
        self._first_run = False
        self._last_seed_report: Optional[SeedReport] = None
        self._view: Tuple[Record, ...] = ()

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def first_run(self) -> bool:
        """Whether the most recent startup found an empty store and seeded it."""
        return self._first_run

    @property
    def last_seed_report(self) -> Optional[SeedReport]:
        return self._last_seed_report

    @property
    def view(self) -> Tuple[Record, ...]:
        return self._view

    async def __aenter__(self) -> "LifecycleController":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ------------------------------------------------------------------ #
    # Lifecycle transitions
    # ------------------------------------------------------------------ #

    async def initialize(self) -> LifecycleResult:
        """
        Open the store, seed it on first run, load all records, and become READY.

        First run means the store is empty and has never been seeded; a store
        emptied by `clear_all()` stays empty until `reset()`.

        Concurrent calls while opening or seeding share the in-flight run. Once
        READY, further calls only return a fresh snapshot.

        Raises
        ------
        StoreUnavailable
            If the store cannot be opened or inspected. State returns to
            UNINITIALIZED.
        LifecycleError
            If a reset is in progress.
        """
        if self._state is LifecycleState.RESETTING:
            raise LifecycleError("Cannot initialize while a reset is in progress")
        if self._state is LifecycleState.READY:
            return LifecycleResult(records=await self._refresh())

        if self._init_task is None or self._init_task.done():
            self._init_task = asyncio.ensure_future(self._run_initialize())
        task = self._init_task
        try:
            return await asyncio.shield(task)
        finally:
            if task.done() and self._init_task is task:
                self._init_task = None

    async def _run_initialize(self) -> LifecycleResult:
        log.info("[LIFECYCLE] Initializing registry", extra={"state": self._state.value})
        self._state = LifecycleState.OPENING
        report: Optional[SeedReport] = None
        try:
            await self._store.initialize()
            existing = await self._store.count()
            already_seeded = await self._store.is_seeded()
            if existing == 0 and not already_seeded:
                log.info(
                    "[LIFECYCLE] Store is empty, importing seed data",
                    extra={"source": self._seed_source, "entries": len(self._seed_entries)},
                )
                self._state = LifecycleState.SEEDING
                report = await apply_seed(self._store, self._seed_entries, self._seed_source)
                await self._store.mark_seeded()
            elif existing == 0:
                log.info("[LIFECYCLE] Store was emptied after seeding, leaving it empty")
            else:
                log.info(
                    f"[LIFECYCLE] Store already has {existing} users, skipping seed",
                    extra={"rows": existing},
                )
                if not already_seeded:
                    await self._store.mark_seeded()
            records = await self._refresh()
        except StoreUnavailable:
            self._state = LifecycleState.UNINITIALIZED
            raise
        except StoreError as exc:
            self._state = LifecycleState.UNINITIALIZED
            raise StoreUnavailable(f"Registry store failed during startup: {exc}") from exc
        except BaseException:
            self._state = LifecycleState.UNINITIALIZED
            raise

        self._first_run = report is not None
        self._last_seed_report = report
        self._state = LifecycleState.READY
        log.info(
            f"[LIFECYCLE] Ready with {len(records)} users",
            extra={"rows": len(records), "first_run": self._first_run},
        )
        return LifecycleResult(records=records, first_run=self._first_run, seed_report=report)

    async def reset(self) -> LifecycleResult:
        """
        Discard every record and replay the seed sequence (best-effort).

        Raises
        ------
        NotReady
            Unless the controller is READY (this also rejects overlapping resets).
        """
        self._require_ready("reset")
        self._state = LifecycleState.RESETTING
        log.info("[LIFECYCLE] Resetting registry to seed data", extra={"source": self._seed_source})
        try:
            removed = await self._store.delete_all()
            report = await apply_seed(self._store, self._seed_entries, self._seed_source)
            await self._store.mark_seeded()
            records = await self._refresh()
        finally:
            self._state = LifecycleState.READY

        self._last_seed_report = report
        log.info(
            f"[LIFECYCLE] Reset complete: removed {removed}, restored {len(report.inserted)}",
            extra={"removed": removed, "inserted": len(report.inserted)},
        )
        return LifecycleResult(records=records, seed_report=report)

    async def close(self) -> None:
        await self._store.close()
        self._state = LifecycleState.UNINITIALIZED
        self._view = ()

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    async def list_all(self) -> List[Record]:
        self._require_ready("list users")
        return await self._refresh()

    async def search(self, term: Optional[str]) -> List[Record]:
        self._require_ready("search users")
        return await self._query.search(term)

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    async def add(self, name: str, email: str) -> Record:
        self._require_ready("add a user")
        record = await self._store.insert(name, email)
        await self._refresh()
        log.info(f"[USER ADDED] #{record.id}", extra={"record_id": record.id, "email": record.email})
        return record

    async def update(self, record_id: int, name: str, email: str) -> Record:
        self._require_ready("update a user")
        record = await self._store.update(record_id, name, email)
        await self._refresh()
        log.info(f"[USER UPDATED] #{record.id}", extra={"record_id": record.id})
        return record

    async def delete(self, record_id: int) -> bool:
        """Delete by id. An absent id is a no-op and returns False."""
        self._require_ready("delete a user")
        removed = await self._store.delete(record_id)
        await self._refresh()
        log.info(
            f"[USER DELETED] #{record_id}" if removed else f"[USER DELETE NOOP] #{record_id}",
            extra={"record_id": record_id, "removed": removed},
        )
        return removed

    async def clear_all(self) -> int:
        self._require_ready("clear users")
        removed = await self._store.delete_all()
        await self._refresh()
        log.info(f"[USERS CLEARED] {removed} removed", extra={"removed": removed})
        return removed

    async def export(self) -> Path:
        self._require_ready("export users")
        return await self._exporter.export()

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _require_ready(self, operation: str) -> None:
        if self._state is not LifecycleState.READY:
            raise NotReady(operation, self._state.value)

    async def _refresh(self) -> List[Record]:
        records = await self._query.list_all()
        self._view = tuple(records)
        return records


def build_controller(settings: Settings | None = None) -> LifecycleController:
    """
    Wire a store, search façade, exporter and seed sequence from settings.
    """
    settings = settings or get_settings()
    store = RecordStore(settings.db_path, journal_mode=settings.journal_mode)
    entries, source = resolve_seed_data(settings)
    return LifecycleController(
        store,
        entries,
        seed_source=source,
        query=UserQuery(store),
        exporter=ExportSerializer(store, settings.export_path),
    )


__all__ = [
    "LifecycleController",
    "LifecycleResult",
    "LifecycleState",
    "build_controller",
]
