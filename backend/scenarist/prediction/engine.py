"""Prediction orchestrator: cache -> event -> collect -> extract -> generate -> normalize -> store."""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import AsyncIterator, Callable

import logfire

from scenarist.config import Settings, TierProfile
from scenarist.prediction.collector import EvidenceCollector
from scenarist.prediction.exceptions import (
    EventNotFoundError,
    PredictionError,
    PredictionTimeoutError,
)
from scenarist.prediction.extractor import EvidenceExtractor
from scenarist.prediction.generator import ScenarioGenerator
from scenarist.prediction.models import (
    ArticleEvidence,
    CachedPrediction,
    EventData,
    EventPrediction,
    HistoricalPatternEvidence,
    PredictionRequest,
    PredictionResponse,
    ResponseMetadata,
    Tier,
)
from scenarist.prediction.normalizer import calculate_confidence_score, normalize_outlooks
from scenarist.prediction.protocols import EventStore
from scenarist.storage.cache import PredictionCache, utc_now

logger = logging.getLogger(__name__)


@dataclass
class _Usage:
    """API calls and estimated cost accumulated across stages."""

    api_calls: int = 0
    cost: float = 0.0

    def add(self, api_calls: int, cost: float) -> None:
        self.api_calls += api_calls
        self.cost += cost


@dataclass
class _Flight:
    lock: asyncio.Lock
    users: int = 0


def build_evidence_pool(
    articles: list[ArticleEvidence],
    patterns: list[HistoricalPatternEvidence],
) -> list[ArticleEvidence | HistoricalPatternEvidence]:
    """Articles then historical patterns, deduplicated by URL (first wins)."""
    pool: list[ArticleEvidence | HistoricalPatternEvidence] = []
    seen: set[str] = set()
    for item in [*articles, *patterns]:
        if item.url in seen:
            continue
        seen.add(item.url)
        pool.append(item)
    return pool


class PredictionEngine:
    """Sequences the prediction pipeline and owns the per-event single-flight guard.

    At most one generation runs per event ID at a time. A caller that waited on
    an in-flight generation re-reads the cache and serves the fresh record
    instead of generating again (unless it asked for a forced refresh).
    """

    def __init__(
        self,
        event_store: EventStore,
        collector: EvidenceCollector,
        extractor: EvidenceExtractor,
        generator: ScenarioGenerator,
        cache: PredictionCache,
        settings: Settings,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.event_store = event_store
        self.collector = collector
        self.extractor = extractor
        self.generator = generator
        self.cache = cache
        self.settings = settings
        self.clock = clock
        self._flights: dict[str, _Flight] = {}

    @asynccontextmanager
    async def _single_flight(self, event_id: str) -> AsyncIterator[None]:
        flight = self._flights.get(event_id)
        if flight is None:
            flight = self._flights[event_id] = _Flight(lock=asyncio.Lock())
        flight.users += 1
        try:
            async with flight.lock:
                yield
        finally:
            flight.users -= 1
            if flight.users == 0:
                self._flights.pop(event_id, None)

    def in_flight(self, event_id: str) -> bool:
        return event_id in self._flights

    async def generate_prediction(self, request: PredictionRequest) -> PredictionResponse:
        """Return a cached or freshly generated prediction wrapped in the uniform envelope."""
        start_time = time.perf_counter()
        usage = _Usage()

        def elapsed_ms() -> int:
            return int((time.perf_counter() - start_time) * 1000)

        def cache_hit(prediction: EventPrediction) -> PredictionResponse:
            logger.info(f"Serving cached prediction for {request.event_id}")
            return PredictionResponse(
                success=True,
                prediction=prediction,
                from_cache=True,
                metadata=ResponseMetadata(cache_hit=True, generation_time_ms=elapsed_ms()),
            )

        def failure(error: str) -> PredictionResponse:
            return PredictionResponse(
                success=False,
                error=error,
                metadata=ResponseMetadata(
                    generation_time_ms=elapsed_ms(),
                    api_calls_count=usage.api_calls,
                    estimated_cost_usd=usage.cost,
                ),
            )

        if not request.force_refresh:
            cached = await self.cache.get(request.event_id)
            if cached is not None:
                return cache_hit(cached)

        async with self._single_flight(request.event_id):
            if not request.force_refresh:
                cached = await self.cache.get(request.event_id)
                if cached is not None:
                    return cache_hit(cached)

            try:
                prediction = await self._generate(request, usage)
            except EventNotFoundError as e:
                logger.warning(str(e))
                return failure(str(e))
            except PredictionError as e:
                logger.error(f"Prediction failed for {request.event_id}: {e}")
                return failure(str(e))
            except Exception as e:
                logger.exception(f"Unexpected error generating prediction for {request.event_id}")
                return failure(str(e) or "Failed to generate prediction")

            await self.cache.put(
                request.event_id,
                prediction,
                prediction.tier,
                usage.api_calls,
                usage.cost,
            )

        generation_ms = elapsed_ms()
        logger.info(
            f"Generated prediction for {request.event_id} in {generation_ms}ms "
            f"({usage.api_calls} API calls, ~${usage.cost:.3f})"
        )
        return PredictionResponse(
            success=True,
            prediction=prediction,
            from_cache=False,
            metadata=ResponseMetadata(
                cache_hit=False,
                generation_time_ms=generation_ms,
                api_calls_count=usage.api_calls,
                estimated_cost_usd=usage.cost,
            ),
        )

    def resolve_tier(self, request: PredictionRequest, event: EventData) -> Tier:
        return request.tier or event.tier or self.settings.engine.default_tier

    async def _generate(self, request: PredictionRequest, usage: _Usage) -> EventPrediction:
        event = await self.event_store.get_event(request.event_id)
        if event is None:
            raise EventNotFoundError(request.event_id)

        tier = self.resolve_tier(request, event)
        profile = self.settings.tier_profile(tier)

        try:
            return await asyncio.wait_for(
                self._run_stages(request.event_id, event, tier, profile, usage),
                timeout=profile.time_budget_seconds,
            )
        except asyncio.TimeoutError:
            raise PredictionTimeoutError(
                f"Prediction generation timed out after {profile.time_budget_seconds:g}s",
                event_id=request.event_id,
            )

    async def _run_stages(
        self,
        event_id: str,
        event: EventData,
        tier: Tier,
        profile: TierProfile,
        usage: _Usage,
    ) -> EventPrediction:
        with logfire.span("prediction.collect", event_id=event_id, tier=tier):
            collected = await self.collector.collect(event, profile)
        usage.add(collected.api_calls, collected.estimated_cost)

        with logfire.span("prediction.extract", event_id=event_id, articles=len(collected.articles)):
            extracted = await self.extractor.extract(collected.articles, profile)
        usage.add(extracted.api_calls, extracted.estimated_cost)

        pool = build_evidence_pool(extracted.evidence, collected.historical_patterns)

        with logfire.span("prediction.generate", event_id=event_id, evidence=len(pool)):
            scenarios = await self.generator.generate(event, pool, profile)
        usage.add(scenarios.api_calls, scenarios.estimated_cost)

        normalized = normalize_outlooks(scenarios.outlooks)

        generated_at = self.clock()
        historical_count = sum(1 for item in pool if isinstance(item, HistoricalPatternEvidence))
        return EventPrediction(
            event_id=event_id,
            generated_at=generated_at,
            ttl_expires_at=generated_at + timedelta(hours=profile.cache_ttl_hours),
            assumptions=scenarios.assumptions,
            outlooks=normalized.outlooks,
            probability_check=normalized.probability_check,
            tier=tier,
            evidence_count=len(pool),
            historical_patterns_count=historical_count,
            confidence_score=calculate_confidence_score(normalized.outlooks),
        )

    async def generate_many(
        self,
        event_ids: list[str],
        tier: Tier | None = None,
        force_refresh: bool = False,
    ) -> list[PredictionResponse]:
        """Generate predictions for independent events concurrently (bounded)."""
        semaphore = asyncio.Semaphore(self.settings.engine.batch_concurrency)

        async def run_one(event_id: str) -> PredictionResponse:
            async with semaphore:
                return await self.generate_prediction(
                    PredictionRequest(event_id=event_id, tier=tier, force_refresh=force_refresh)
                )

        responses = await asyncio.gather(*(run_one(eid) for eid in event_ids))
        succeeded = sum(1 for r in responses if r.success)
        logger.info(f"Batch complete: {succeeded}/{len(event_ids)} predictions succeeded")
        return list(responses)

    async def history(self, event_id: str) -> list[CachedPrediction]:
        """Stored prediction records for an event, newest first."""
        return await self.cache.history(event_id)
