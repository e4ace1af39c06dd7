"""Read-only event store backed by YAML files in data/events/.

Files are written by the upstream extraction pipeline; this service never
writes to them.
"""

import asyncio
import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from scenarist.prediction.models import EventData
from scenarist.storage.predictions import safe_event_dirname

logger = logging.getLogger(__name__)


class FileEventStore:
    """Loads EventData from data/events/{event_id}.yaml (or .yml / .json)."""

    def __init__(self, base_dir: Path):
        self.base_dir = base_dir

    def _find_file(self, event_id: str) -> Path | None:
        name = safe_event_dirname(event_id)
        for suffix in (".yaml", ".yml", ".json"):
            file_path = self.base_dir / f"{name}{suffix}"
            if file_path.is_file():
                return file_path
        return None

    def _load(self, event_id: str) -> EventData | None:
        file_path = self._find_file(event_id)
        if file_path is None:
            return None

        with open(file_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)  # JSON is a YAML subset

        if not raw:
            logger.warning(f"Empty event file: {file_path}")
            return None

        raw.setdefault("event_id", event_id)
        try:
            return EventData(**raw)
        except ValidationError as e:
            logger.error(f"Invalid event file {file_path}: {e}")
            raise

    async def get_event(self, event_id: str) -> EventData | None:
        try:
            safe_event_dirname(event_id)
        except ValueError:
            logger.warning(f"Rejected malformed event ID: {event_id!r}")
            return None
        return await asyncio.to_thread(self._load, event_id)
