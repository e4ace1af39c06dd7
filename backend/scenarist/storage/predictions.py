"""File-based prediction record store.

Each generation is written as its own JSON file under
data/predictions/{event_id}/, so historical predictions for an event coexist
and are superseded rather than mutated.
"""

import asyncio
import json
import logging
import re
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Iterator
from uuid import uuid4

from pydantic import ValidationError

from scenarist.prediction.exceptions import PersistenceError
from scenarist.prediction.models import CachedPrediction

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def safe_event_dirname(event_id: str) -> str:
    """Map an event ID to a filesystem-safe directory name."""
    name = _UNSAFE_CHARS.sub("_", event_id).strip(".")
    if not name:
        raise ValueError(f"Invalid event ID: {event_id!r}")
    return name


class FilePredictionStore:
    """Stores CachedPrediction records as JSON files with atomic writes."""

    def __init__(self, base_dir: Path):
        self.base_dir = base_dir

    def _event_dir(self, event_id: str) -> Path:
        return self.base_dir / safe_event_dirname(event_id)

    def _record_filename(self, record: CachedPrediction) -> str:
        """Timestamp-prefixed filename (YYYYMMDDTHHMMSSffffff_{uuid}.json)."""
        timestamp = record.generated_at.strftime("%Y%m%dT%H%M%S%f")
        return f"{timestamp}_{uuid4().hex[:8]}.json"

    def _write(self, record: CachedPrediction) -> Path:
        event_dir = self._event_dir(record.event_id)
        event_dir.mkdir(parents=True, exist_ok=True)
        file_path = event_dir / self._record_filename(record)

        temp_path: Path | None = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                dir=event_dir,
                delete=False,
                suffix=".tmp",
                encoding="utf-8",
            ) as temp_file:
                temp_file.write(record.model_dump_json(indent=2))
                temp_path = Path(temp_file.name)

            shutil.move(str(temp_path), str(file_path))
            logger.debug(f"Saved prediction record to {file_path}")
            return file_path

        except Exception:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            raise

    def _iter_newest_first(self, event_id: str) -> Iterator[CachedPrediction]:
        """Parse records lazily, newest filename first; unreadable files are skipped."""
        event_dir = self._event_dir(event_id)
        if not event_dir.exists():
            return

        for file_path in sorted(event_dir.glob("*.json"), key=lambda p: p.name, reverse=True):
            try:
                yield CachedPrediction.model_validate_json(file_path.read_text(encoding="utf-8"))
            except (OSError, ValidationError, json.JSONDecodeError) as e:
                logger.warning(f"Skipping unreadable prediction record {file_path}: {e}")
                continue

    def _read_all(self, event_id: str) -> list[CachedPrediction]:
        records = list(self._iter_newest_first(event_id))
        records.sort(key=lambda r: r.generated_at, reverse=True)
        return records

    def _find_newest(
        self, event_id: str, predicate: Callable[[CachedPrediction], bool]
    ) -> CachedPrediction | None:
        return next((r for r in self._iter_newest_first(event_id) if predicate(r)), None)

    async def save(self, record: CachedPrediction) -> None:
        try:
            await asyncio.to_thread(self._write, record)
        except (OSError, ValueError) as e:
            raise PersistenceError(
                f"Failed to save prediction for {record.event_id}: {e}",
                event_id=record.event_id,
            ) from e

    async def history(self, event_id: str) -> list[CachedPrediction]:
        """All stored records for an event, newest first."""
        return await asyncio.to_thread(self._read_all, event_id)

    async def find_newest(
        self, event_id: str, predicate: Callable[[CachedPrediction], bool]
    ) -> CachedPrediction | None:
        """Newest record matching `predicate`, reading no older files than needed."""
        return await asyncio.to_thread(self._find_newest, event_id, predicate)
