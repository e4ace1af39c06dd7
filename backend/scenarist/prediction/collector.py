"""Evidence Collector: gather candidate articles and historical patterns for an event."""

import logging

from scenarist.config import CollectorConfig, CostConfig, TierProfile
from scenarist.prediction.models import (
    CandidateArticle,
    CollectedEvidence,
    EventData,
    HistoricalPatternEvidence,
    HistoricalPatternSet,
)
from scenarist.prediction.parsing import complete_json
from scenarist.prediction.prompts import (
    HISTORIAN_SYSTEM_PROMPT,
    build_historical_patterns_prompt,
)
from scenarist.prediction.protocols import LanguageModel, SearchHit, WebSearch
from scenarist.services.exa import hostname

logger = logging.getLogger(__name__)


def build_supporting_query(event: EventData) -> str:
    return f"{event.title} {event.summary}".strip()


def build_historical_query(event: EventData) -> str:
    entities = " ".join(event.entities[:2])
    return f"historical similar events to {event.title} OR past cases where {entities}".strip()


def _hit_to_article(hit: SearchHit) -> CandidateArticle:
    return CandidateArticle(
        url=hit.url,
        title=hit.title or "Untitled",
        publisher=hit.publisher or hostname(hit.url),
        date=hit.published_date,
    )


def _hit_to_pattern(hit: SearchHit) -> HistoricalPatternEvidence:
    date_range = hit.published_date[:4] if hit.published_date else "unknown"
    return HistoricalPatternEvidence(
        title=hit.title or "Untitled",
        date_range=date_range,
        url=hit.url,
        why_relevant="Past coverage of a comparable situation",
    )


class EvidenceCollector:
    """Collects the candidate evidence pool for one prediction request.

    Every external call is isolated: a failing search or model call is logged
    and collection continues with whatever was gathered.
    """

    def __init__(
        self,
        search: WebSearch,
        llm: LanguageModel,
        config: CollectorConfig | None = None,
        costs: CostConfig | None = None,
    ):
        self.search = search
        self.llm = llm
        self.config = config or CollectorConfig()
        self.costs = costs or CostConfig()

    async def collect(self, event: EventData, tier: TierProfile) -> CollectedEvidence:
        result = CollectedEvidence()
        seen_urls: set[str] = set()

        for source in event.sources:
            if not source.url or source.url in seen_urls:
                continue
            seen_urls.add(source.url)
            result.articles.append(
                CandidateArticle(
                    url=source.url,
                    title=source.title,
                    publisher=source.publisher,
                    date=source.date,
                )
            )

        await self._collect_supporting(event, tier, result, seen_urls)
        await self._collect_historical(event, result)

        result.articles = result.articles[: self.config.max_articles]
        logger.info(
            f"Collected {len(result.articles)} articles and "
            f"{len(result.historical_patterns)} historical patterns for {event.event_id}"
        )
        return result

    async def _collect_supporting(
        self,
        event: EventData,
        tier: TierProfile,
        result: CollectedEvidence,
        seen_urls: set[str],
    ) -> None:
        try:
            hits = await self.search.search(
                build_supporting_query(event),
                max_results=tier.search_max_results,
                min_score=self.config.supporting_min_score,
                depth=tier.search_depth,
            )
            result.api_calls += 1
            result.estimated_cost += self.costs.search_call
        except Exception as e:
            logger.error(f"Supporting evidence search failed for {event.event_id}: {e}")
            return

        added = 0
        for hit in hits:
            if not hit.url or hit.url in seen_urls:
                continue
            seen_urls.add(hit.url)
            result.articles.append(_hit_to_article(hit))
            added += 1
        logger.debug(f"Supporting search added {added} new articles")

    async def _collect_historical(self, event: EventData, result: CollectedEvidence) -> None:
        pattern_urls: set[str] = set()

        def add_pattern(pattern: HistoricalPatternEvidence) -> None:
            if pattern.url and pattern.url not in pattern_urls:
                pattern_urls.add(pattern.url)
                result.historical_patterns.append(pattern)

        try:
            hits = await self.search.search(
                build_historical_query(event),
                max_results=self.config.historical_max_results,
                min_score=self.config.historical_min_score,
                depth="basic",
            )
            result.api_calls += 1
            result.estimated_cost += self.costs.search_call
            for hit in hits:
                if hit.url:
                    add_pattern(_hit_to_pattern(hit))
        except Exception as e:
            logger.error(f"Historical pattern search failed for {event.event_id}: {e}")

        try:
            for pattern in await self._propose_analogues(event, result):
                add_pattern(pattern)
        except Exception as e:
            logger.error(f"Historical analogue inference failed for {event.event_id}: {e}")

    async def _propose_analogues(
        self, event: EventData, result: CollectedEvidence
    ) -> list[HistoricalPatternEvidence]:
        """Ask the model for well-known historical analogues with source URLs."""
        parsed = await complete_json(
            self.llm,
            build_historical_patterns_prompt(event),
            HistoricalPatternSet,
            system_prompt=HISTORIAN_SYSTEM_PROMPT,
            temperature=self.config.pattern_temperature,
        )
        result.api_calls += 1
        result.estimated_cost += self.costs.pattern_llm_call

        if not parsed.ok:
            logger.warning(f"Discarding historical analogues for {event.event_id}: {parsed.error}")
            return []

        return [
            HistoricalPatternEvidence(
                title=p.title,
                date_range=p.date_range,
                url=p.url,
                why_relevant=p.why_relevant,
            )
            for p in parsed.value.patterns
            if p.url
        ]
