"""Tier-aware TTL cache for event predictions.

Expiry is lazy: expired records stay in the store and are simply ignored on
read. Write failures are logged and never raised to the caller.
"""

import hashlib
import json
import logging
from datetime import datetime, timezone
from typing import Callable

from scenarist.prediction.models import CachedPrediction, EventPrediction, Tier
from scenarist.prediction.protocols import PredictionStore

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_cache_key(event_id: str, tier: Tier, version: int = 1) -> str:
    """Stable 32-char key identifying an (event, tier, cache version) triple."""
    payload = json.dumps({"eventId": event_id, "tier": tier, "version": version})
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:32]


class PredictionCache:
    """Cache keyed by event identity; each record carries its own ttl_expires_at."""

    def __init__(
        self,
        store: PredictionStore,
        version: int = 1,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.version = version
        self.clock = clock

    async def get(self, event_id: str) -> EventPrediction | None:
        """Most recent non-expired prediction for an event, if any."""
        now = self.clock()
        try:
            record = await self.store.find_newest(
                event_id, lambda r: r.cache_version == self.version and r.is_fresh(now)
            )
        except Exception as e:
            logger.error(f"Cache read failed for {event_id}: {e}")
            return None

        if record is None:
            return None
        logger.debug(f"Cache hit for {event_id} (expires {record.ttl_expires_at})")
        return record.prediction

    async def put(
        self,
        event_id: str,
        prediction: EventPrediction,
        tier: Tier,
        api_calls: int,
        cost: float,
    ) -> bool:
        """Store a prediction. Returns False (after logging) if persistence failed."""
        record = CachedPrediction(
            event_id=event_id,
            cache_key=generate_cache_key(event_id, tier, self.version),
            cache_version=self.version,
            tier=tier,
            generated_at=prediction.generated_at,
            ttl_expires_at=prediction.ttl_expires_at,
            evidence_count=prediction.evidence_count,
            historical_patterns_count=prediction.historical_patterns_count,
            confidence_score=prediction.confidence_score,
            api_calls_count=api_calls,
            estimated_cost_usd=cost,
            prediction=prediction,
        )

        try:
            await self.store.save(record)
        except Exception as e:
            logger.error(f"Error storing prediction for {event_id}: {e}")
            return False

        logger.info(f"Cached prediction for {event_id} until {prediction.ttl_expires_at.isoformat()}")
        return True

    async def history(self, event_id: str) -> list[CachedPrediction]:
        """Every stored record for an event, newest first (including expired)."""
        return await self.store.history(event_id)
