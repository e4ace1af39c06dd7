"""Collaborator contracts consumed by the prediction pipeline.

Concrete implementations live in `scenarist.services` and `scenarist.storage`;
tests substitute in-memory doubles.
"""

from typing import Callable, Literal, Protocol

from pydantic import BaseModel

from scenarist.prediction.models import CachedPrediction, EventData

SearchDepth = Literal["basic", "advanced"]


class SearchHit(BaseModel):
    """Single web search result."""

    url: str
    title: str | None = None
    publisher: str | None = None
    published_date: str | None = None
    score: float | None = None


class EventStore(Protocol):
    async def get_event(self, event_id: str) -> EventData | None: ...


class WebSearch(Protocol):
    async def search(
        self,
        query: str,
        *,
        max_results: int,
        min_score: float,
        depth: SearchDepth = "basic",
    ) -> list[SearchHit]: ...


class DocumentFetcher(Protocol):
    """Full-content retrieval. Returns None for expected failures (404, paywall, timeout)."""

    @property
    def available(self) -> bool: ...

    async def fetch(self, url: str) -> str | None: ...


class LanguageModel(Protocol):
    """Chat completion in JSON mode.

    With `output_type`, the provider is constrained to that schema and the
    returned text is its JSON. Output that still fails the schema raises
    `ModelOutputError`.
    """

    async def complete(
        self,
        prompt: str,
        *,
        system_prompt: str,
        temperature: float = 0.0,
        output_type: type[BaseModel] | None = None,
    ) -> str: ...


class PredictionStore(Protocol):
    async def save(self, record: CachedPrediction) -> None: ...

    async def history(self, event_id: str) -> list[CachedPrediction]: ...

    async def find_newest(
        self, event_id: str, predicate: Callable[[CachedPrediction], bool]
    ) -> CachedPrediction | None: ...
