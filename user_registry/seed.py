"""
Seed loader: the immutable initial dataset and the logic that replays it.

The bundled `data/users.json` is read once and cached as a tuple of
`SeedEntry`. `apply_seed` inserts entries in sequence order through the
record store's normal insert path, so an entry that repeats an earlier email
or fails validation is rejected exactly as a user insert would be. Rejections
are logged and recorded in the returned `SeedReport`; they never stop the
remaining entries.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from user_registry.config import Settings, get_settings
from user_registry.domain.errors import (
    DuplicateEmail,
    RegistryError,
    SeedFileError,
    StoreUnavailable,
)
from user_registry.domain.models import SeedEntry
from user_registry.infrastructure.record_store import RecordStore
from user_registry.utils.logging import get_logger

log = get_logger(__name__)

BUNDLED_SOURCE = "bundled:users.json"

INSERTED = "inserted"
SKIPPED = "skipped"


@dataclass(frozen=True)
class SeedOutcome:
    """What happened to one seed entry."""

    index: int
    name: str
    email: str
    status: str
    record_id: Optional[int] = None
    reason: Optional[str] = None

    @property
    def inserted(self) -> bool:
        return self.status == INSERTED


@dataclass
class SeedReport:
    """
    Per-entry result of one seeding pass, in sequence order.
    """

    source: str
    outcomes: List[SeedOutcome] = field(default_factory=list)

    @property
    def inserted(self) -> List[SeedOutcome]:
        return [o for o in self.outcomes if o.inserted]

    @property
    def skipped(self) -> List[SeedOutcome]:
        return [o for o in self.outcomes if not o.inserted]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "inserted": len(self.inserted),
            "skipped": [
                {"index": o.index, "email": o.email, "reason": o.reason} for o in self.skipped
            ],
        }


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _parse_entries(payload: Any, source: str) -> Tuple[SeedEntry, ...]:
    if not isinstance(payload, list):
        raise SeedFileError(f"Seed data in {source} must be a JSON array")
    entries: List[SeedEntry] = []
    for position, item in enumerate(payload):
        if not isinstance(item, dict):
            raise SeedFileError(f"Seed entry #{position} in {source} is not an object")
        created_at = item.get("created_at")
        entries.append(
            SeedEntry(
                name=_text(item.get("name")),
                email=_text(item.get("email")),
                created_at=None if created_at in (None, "") else str(created_at),
            )
        )
    return tuple(entries)


@lru_cache(maxsize=1)
def seed_data() -> Tuple[SeedEntry, ...]:
    """
    The fixed, ordered seed sequence bundled with the package.
    """
    resource = resources.files("user_registry") / "data" / "users.json"
    payload = json.loads(resource.read_text(encoding="utf-8"))
    return _parse_entries(payload, BUNDLED_SOURCE)


def load_seed_file(path: Path | str) -> Tuple[SeedEntry, ...]:
    """
    Read seed entries from a JSON file.

    Accepts any array of objects carrying `name`, `email` and an optional
    `created_at`; other keys (e.g. `id` in an export file) are ignored.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SeedFileError(f"Cannot read seed file {path}: {exc}") from exc
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SeedFileError(f"Seed file {path} is not valid JSON: {exc}") from exc
    return _parse_entries(payload, str(path))


def resolve_seed_data(settings: Settings | None = None) -> Tuple[Tuple[SeedEntry, ...], str]:
    """Seed entries and a label for their source: the configured file, else the bundle."""
    settings = settings or get_settings()
    if settings.seed_path is not None:
        return load_seed_file(settings.seed_path), str(settings.seed_path)
    return seed_data(), BUNDLED_SOURCE


async def apply_seed(
    store: RecordStore,
    entries: Iterable[SeedEntry],
    source: str = BUNDLED_SOURCE,
) -> SeedReport:
    """
    Insert every entry in order, skipping (and reporting) the ones the store rejects.

    `StoreUnavailable` still propagates: a store that went away is not a bad row.
    """
    report = SeedReport(source=source)
    for index, entry in enumerate(entries):
        try:
            record = await store.insert(entry.name, entry.email, entry.created_at)
        except StoreUnavailable:
            raise
        except RegistryError as exc:
            reason = "duplicate email" if isinstance(exc, DuplicateEmail) else str(exc)
            log.warning(
                f"[SEED SKIP] entry #{index} ({entry.email or '<no email>'}): {reason}",
                extra={"index": index, "email": entry.email, "reason": reason},
            )
            report.outcomes.append(
                SeedOutcome(index, entry.name, entry.email, SKIPPED, reason=reason)
            )
        else:
            report.outcomes.append(
                SeedOutcome(index, record.name, record.email, INSERTED, record_id=record.id)
            )

    log.info(
        f"[SEED COMPLETE] {len(report.inserted)} inserted, {len(report.skipped)} skipped",
        extra={"source": source, "inserted": len(report.inserted), "skipped": len(report.skipped)},
    )
    return report


__all__ = [
    "BUNDLED_SOURCE",
    "SeedOutcome",
    "SeedReport",
    "apply_seed",
    "load_seed_file",
    "resolve_seed_data",
    "seed_data",
]
