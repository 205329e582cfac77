"""
User Registry - a local-first user list backed by SQLite.

On first launch the store is seeded from a bundled JSON snapshot; afterwards
it serves create/read/update/delete/search against that store. The package
provides:

- A record store over a single aiosqlite connection
- A seed loader with per-entry success/skip reporting
- A lifecycle controller (first-run detection, reset-to-seed)
- A stateless search façade
- A lossless JSON export

The presentation layer is the caller's; a small typer CLI is included.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from user_registry.config import Settings, get_settings
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
from user_registry.domain.models import Record, SeedEntry
from user_registry.export import ExportSerializer, read_export
from user_registry.infrastructure.record_store import RecordStore
from user_registry.lifecycle import (
    LifecycleController,
    LifecycleResult,
    LifecycleState,
    build_controller,
)
from user_registry.query import UserQuery
from user_registry.seed import SeedOutcome, SeedReport, apply_seed, load_seed_file, seed_data
from user_registry.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "Record",
    "SeedEntry",
    # Errors
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
    # Components
    "RecordStore",
    "UserQuery",
    "ExportSerializer",
    "read_export",
    "SeedOutcome",
    "SeedReport",
    "apply_seed",
    "load_seed_file",
    "seed_data",
    "LifecycleController",
    "LifecycleResult",
    "LifecycleState",
    "build_controller",
    # Logging
    "configure_logging",
    "get_logger",
]
