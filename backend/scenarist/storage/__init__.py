"""Storage layer for Scenarist - file-based persistence and caching.

This package provides:
- Event store (read-only upstream events from data/events/)
- Prediction store (one JSON record per generation under data/predictions/)
- Prediction cache (tier-aware TTL lookup on top of the prediction store)

All operations use Pydantic models for type safety and atomic writes to prevent corruption.
"""

from .cache import PredictionCache, generate_cache_key, utc_now
from .events import FileEventStore
from .predictions import FilePredictionStore, safe_event_dirname

__all__ = [
    "PredictionCache",
    "generate_cache_key",
    "utc_now",
    "FileEventStore",
    "FilePredictionStore",
    "safe_event_dirname",
]
