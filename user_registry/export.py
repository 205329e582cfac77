"""
Export serializer: snapshot the store into a portable JSON document.

Output is a UTF-8, pretty-printed JSON array of `{id, name, email, created_at}`
objects in list order (newest first). The file is written next to its final
location and atomically moved into place, so a failed export never leaves a
truncated file behind. The same file is accepted by `seed.load_seed_file`.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import List

from pydantic import ValidationError as PydanticValidationError

from user_registry.domain.errors import ExportFailed
from user_registry.domain.models import Record
from user_registry.infrastructure.record_store import RecordStore
from user_registry.utils.logging import get_logger

log = get_logger(__name__)


class ExportSerializer:
    """
    Writes the full record list to a fixed, application-owned path.

    Parameters
    ----------
    store : RecordStore
        Source of the snapshot.
    export_path : Path
        Destination file; its directory is created on demand.
    """

    def __init__(self, store: RecordStore, export_path: Path | str) -> None:
        self._store = store
        self.export_path = Path(export_path)

    async def export(self) -> Path:
        """
        Serialize `list_all()` to the export path and return the resolved path.

        Raises
        ------
        ExportFailed
            If the directory or file cannot be written.
        """
        records = await self._store.list_all()
        document = json.dumps([r.to_export_dict() for r in records], indent=2, ensure_ascii=False)
        target = self.export_path

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(document)
                    f.write("\n")
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise ExportFailed(f"Cannot write export to {target}: {exc}") from exc

        resolved = target.resolve()
        log.info(
            f"[EXPORT] {len(records)} users written to {resolved}",
            extra={"path": str(resolved), "rows": len(records)},
        )
        return resolved


def read_export(path: Path | str) -> List[Record]:
    """
    Parse an export file back into records.

    Raises
    ------
    ExportFailed
        If the file is unreadable, not JSON, or rows do not match the schema.
    """
    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ExportFailed(f"Cannot read export {path}: {exc}") from exc
    if not isinstance(payload, list):
        raise ExportFailed(f"Export {path} is not a JSON array")
    try:
        return [Record.model_validate(item) for item in payload]
    except PydanticValidationError as exc:
        raise ExportFailed(f"Export {path} has malformed rows: {exc}") from exc


__all__ = ["ExportSerializer", "read_export"]
