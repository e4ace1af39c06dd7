"""In-memory collaborators and builders shared by the test suite."""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from scenarist.config import Settings
from scenarist.prediction.collector import EvidenceCollector
from scenarist.prediction.engine import PredictionEngine
from scenarist.prediction.exceptions import PersistenceError
from scenarist.prediction.extractor import EvidenceExtractor
from scenarist.prediction.generator import ScenarioGenerator
from scenarist.prediction.models import (
    CachedPrediction,
    Claim,
    EventData,
    EventPrediction,
    EventSource,
    Outlook,
    ProbabilityCheck,
)
from scenarist.prediction.prompts import HISTORIAN_SYSTEM_PROMPT
from scenarist.prediction.protocols import SearchHit
from scenarist.services.exa import ExaAPIError
from scenarist.storage.cache import PredictionCache

SOURCE_URLS = [
    "https://reuters.com/markets/central-bank-hike",
    "https://ft.com/content/rate-decision",
    "https://bloomberg.com/news/rates-surprise",
]


class FakeClock:
    """Controllable UTC clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, hours: float) -> None:
        self.now += timedelta(hours=hours)


class FakeEventStore:
    def __init__(self, events: list[EventData] | None = None):
        self.events = {e.event_id: e for e in events or []}
        self.calls: list[str] = []

    async def get_event(self, event_id: str) -> EventData | None:
        self.calls.append(event_id)
        return self.events.get(event_id)


class FakeSearch:
    """Routes historical queries and supporting queries to separate hit lists."""

    def __init__(
        self,
        supporting: list[SearchHit] | None = None,
        historical: list[SearchHit] | None = None,
        fail: bool = False,
    ):
        self.supporting = supporting or []
        self.historical = historical or []
        self.fail = fail
        self.queries: list[dict[str, Any]] = []

    async def search(
        self,
        query: str,
        *,
        max_results: int,
        min_score: float,
        depth: str = "basic",
    ) -> list[SearchHit]:
        self.queries.append(
            {"query": query, "max_results": max_results, "min_score": min_score, "depth": depth}
        )
        if self.fail:
            raise ExaAPIError("search backend unavailable", status_code=503)
        hits = self.historical if query.startswith("historical") else self.supporting
        kept = [h for h in hits if h.score is None or h.score >= min_score]
        return kept[:max_results]


class FakeFetcher:
    def __init__(
        self,
        contents: dict[str, str] | None = None,
        available: bool = True,
        fail_urls: tuple[str, ...] = (),
        delay: float = 0.0,
    ):
        self.contents = contents or {}
        self._available = available
        self.fail_urls = set(fail_urls)
        self.delay = delay
        self.fetched: list[str] = []

    @property
    def available(self) -> bool:
        return self._available

    async def fetch(self, url: str) -> str | None:
        self.fetched.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if url in self.fail_urls:
            raise RuntimeError(f"connection reset fetching {url}")
        return self.contents.get(url)


class FakeLanguageModel:
    """Scripted model: historian prompts get `pattern_output`, everything else `scenario_output`."""

    def __init__(
        self,
        scenario_output: str = "",
        pattern_output: str = '{"patterns": []}',
        fail: bool = False,
        delay: float = 0.0,
    ):
        self.scenario_output = scenario_output
        self.pattern_output = pattern_output
        self.fail = fail
        self.delay = delay
        self.calls: list[dict[str, Any]] = []

    @property
    def scenario_calls(self) -> int:
        return sum(1 for c in self.calls if c["system_prompt"] != HISTORIAN_SYSTEM_PROMPT)

    async def complete(
        self,
        prompt: str,
        *,
        system_prompt: str,
        temperature: float = 0.0,
        output_type: type | None = None,
    ) -> str:
        self.calls.append(
            {
                "prompt": prompt,
                "system_prompt": system_prompt,
                "temperature": temperature,
                "output_type": output_type,
            }
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        if system_prompt == HISTORIAN_SYSTEM_PROMPT:
            return self.pattern_output
        if self.fail:
            raise RuntimeError("model provider unavailable")
        return self.scenario_output


class InMemoryPredictionStore:
    def __init__(self):
        self.records: dict[str, list[CachedPrediction]] = {}

    async def save(self, record: CachedPrediction) -> None:
        self.records.setdefault(record.event_id, []).append(record)

    async def history(self, event_id: str) -> list[CachedPrediction]:
        return sorted(
            self.records.get(event_id, []), key=lambda r: r.generated_at, reverse=True
        )

    async def find_newest(
        self, event_id: str, predicate: Callable[[CachedPrediction], bool]
    ) -> CachedPrediction | None:
        return next((r for r in await self.history(event_id) if predicate(r)), None)


class FailingPredictionStore(InMemoryPredictionStore):
    async def save(self, record: CachedPrediction) -> None:
        raise PersistenceError("disk full", event_id=record.event_id)


# ============================================================================
# Builders
# ============================================================================


def make_event(event_id: str = "evt-rates", **overrides: Any) -> EventData:
    data: dict[str, Any] = {
        "event_id": event_id,
        "title": "Central bank raises rates by 75bp",
        "summary": "Surprise hike to fight persistent inflation.",
        "sources": [
            EventSource(title=f"Source {i}", url=url, publisher="wire", date="2025-02-28")
            for i, url in enumerate(SOURCE_URLS, 1)
        ],
        "entities": ["Central Bank", "Treasury", "IMF"],
        "countries": ["US"],
        "topics": ["monetary policy"],
        "claims": [Claim(text="Further hikes are likely", type="forecast", certainty=0.7)],
        "tier": "fast",
    }
    data.update(overrides)
    return EventData(**data)


def evidence_ref(url: str, why: str = "Backs the mechanism", kind: str = "article") -> dict:
    return {"type": kind, "title": "cited", "url": url, "why_relevant": why}


def outlook_dict(
    outlook_id: str,
    probability: float,
    confidence: str = "medium",
    supporting: list[dict] | None = None,
    counter: list[dict] | None = None,
) -> dict:
    return {
        "id": outlook_id,
        "title": f"Outlook {outlook_id}",
        "probability": probability,
        "time_horizon": "1-3 months",
        "mechanism": "Higher rates tighten credit. Demand slows.",
        "supporting_evidence": supporting
        if supporting is not None
        else [evidence_ref(SOURCE_URLS[0]), evidence_ref(SOURCE_URLS[2])],
        "counter_evidence": counter,
        "watch_indicators": ["CPI print", "Bond yields"],
        "confidence": confidence,
    }


def scenario_json(outlooks: list[dict], assumptions: list[str] | None = None) -> str:
    return json.dumps(
        {"assumptions": assumptions or ["No further shocks"], "outlooks": outlooks}
    )


def default_scenarios(count: int = 3) -> str:
    probabilities = [0.5, 0.3, 0.2, 0.1, 0.1, 0.1, 0.05, 0.05, 0.05][:count]
    confidences = ["high", "medium", "low"]
    return scenario_json(
        [
            outlook_dict(
                f"O{i + 1}",
                p,
                confidence=confidences[i % 3],
                counter=[evidence_ref(SOURCE_URLS[1], "Contradicts")] if i == 0 else None,
            )
            for i, p in enumerate(probabilities)
        ]
    )


def make_settings(**overrides: Any) -> Settings:
    return Settings(_env_file=None, **overrides)


def build_engine(
    events: list[EventData] | None = None,
    search: FakeSearch | None = None,
    fetcher: FakeFetcher | None = None,
    llm: FakeLanguageModel | None = None,
    store: InMemoryPredictionStore | None = None,
    settings: Settings | None = None,
    clock: FakeClock | None = None,
) -> PredictionEngine:
    settings = settings or make_settings()
    clock = clock or FakeClock()
    llm = llm or FakeLanguageModel(default_scenarios())
    return PredictionEngine(
        event_store=FakeEventStore(events if events is not None else [make_event()]),
        collector=EvidenceCollector(search or FakeSearch(), llm, settings.collector, settings.costs),
        extractor=EvidenceExtractor(fetcher, settings.extractor, settings.costs),
        generator=ScenarioGenerator(llm, settings.generator, settings.costs),
        cache=PredictionCache(store if store is not None else InMemoryPredictionStore(), clock=clock),
        settings=settings,
        clock=clock,
    )


def make_prediction(
    clock: FakeClock, ttl_hours: int = 3, event_id: str = "evt-rates"
) -> EventPrediction:
    generated_at = clock()
    return EventPrediction(
        event_id=event_id,
        generated_at=generated_at,
        ttl_expires_at=generated_at + timedelta(hours=ttl_hours),
        outlooks=[
            Outlook(
                id="O1",
                title="Rates stay high",
                probability=1.0,
                time_horizon="1-3 months",
                mechanism="Inflation persists.",
                confidence="medium",
            )
        ],
        probability_check=ProbabilityCheck(sum=1.0, original_sum=1.0),
        tier="fast",
        evidence_count=4,
        historical_patterns_count=1,
        confidence_score=0.5,
    )
