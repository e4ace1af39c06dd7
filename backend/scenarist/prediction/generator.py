"""Scenario Generator: request N structured outlooks and repair their citations."""

import logging

from scenarist.config import CostConfig, GeneratorConfig, TierProfile
from scenarist.prediction.exceptions import GenerationError, ScenarioParseError
from scenarist.prediction.models import (
    ArticleEvidence,
    EventData,
    EvidenceCitation,
    GeneratedScenarios,
    HistoricalPatternEvidence,
    Outlook,
    OutlookDraft,
    ScenarioSet,
    unconfirmed_evidence,
)
from scenarist.prediction.parsing import complete_json
from scenarist.prediction.prompts import SCENARIO_SYSTEM_PROMPT, build_scenario_prompt
from scenarist.prediction.protocols import LanguageModel

logger = logging.getLogger(__name__)

PoolItem = ArticleEvidence | HistoricalPatternEvidence

MIN_SUPPORTING, MAX_SUPPORTING = 2, 6
MIN_WATCH, MAX_WATCH = 2, 5
FALLBACK_WATCH_INDICATORS = (
    "Official statements from the parties involved",
    "Follow-up coverage from the cited sources",
)


def resolve_citation(
    citation: EvidenceCitation, pool: dict[str, PoolItem]
) -> ArticleEvidence | HistoricalPatternEvidence:
    """Resolve a model citation to its pool item, or the unconfirmed sentinel."""
    item = pool.get(citation.url) if citation.url else None
    if item is None:
        return unconfirmed_evidence(citation.why_relevant)
    if citation.why_relevant:
        return item.model_copy(update={"why_relevant": citation.why_relevant})
    return item


def bound_watch_indicators(indicators: list[str]) -> list[str]:
    """Keep 2 to 5 distinct, non-blank indicators."""
    kept: list[str] = []
    for indicator in indicators:
        indicator = indicator.strip()
        if indicator and indicator not in kept:
            kept.append(indicator)
    for fallback in FALLBACK_WATCH_INDICATORS:
        if len(kept) >= MIN_WATCH:
            break
        if fallback not in kept:
            kept.append(fallback)
    return kept[:MAX_WATCH]


def repair_references(draft: OutlookDraft, pool: dict[str, PoolItem]) -> Outlook:
    """Build an Outlook whose every evidence URL is in the pool or is the sentinel.

    Supporting evidence is cut to 6 items and padded with the sentinel up to 2;
    watch indicators are bounded to 2 to 5.
    """
    supporting = [
        resolve_citation(c, pool) for c in draft.supporting_evidence[:MAX_SUPPORTING]
    ]
    while len(supporting) < MIN_SUPPORTING:
        supporting.append(unconfirmed_evidence())
    counter = [resolve_citation(c, pool) for c in draft.counter_evidence or []]
    return Outlook(
        id=draft.id,
        title=draft.title,
        probability=draft.probability,
        time_horizon=draft.time_horizon,
        mechanism=draft.mechanism,
        supporting_evidence=supporting,
        counter_evidence=counter or None,
        watch_indicators=bound_watch_indicators(draft.watch_indicators),
        confidence=draft.confidence,
    )


class ScenarioGenerator:
    """Generates tier-sized outlook sets at temperature 0."""

    def __init__(
        self,
        llm: LanguageModel,
        config: GeneratorConfig | None = None,
        costs: CostConfig | None = None,
    ):
        self.llm = llm
        self.config = config or GeneratorConfig()
        self.costs = costs or CostConfig()

    async def generate(
        self,
        event: EventData,
        evidence: list[PoolItem],
        tier: TierProfile,
    ) -> GeneratedScenarios:
        """Generate outlooks for an event.

        Raises:
            ScenarioParseError: If the model output does not match the schema
            GenerationError: If the model call fails or returns no outlooks
        """
        num_scenarios = tier.num_outlooks
        prompt = build_scenario_prompt(
            event,
            evidence,
            num_scenarios,
            snippet_chars=self.config.prompt_snippet_chars,
            counter_evidence_top_n=self.config.counter_evidence_top_n,
        )

        try:
            parsed = await complete_json(
                self.llm,
                prompt,
                ScenarioSet,
                system_prompt=SCENARIO_SYSTEM_PROMPT,
                temperature=0.0,
            )
        except Exception as e:
            logger.error(f"Scenario generation call failed for {event.event_id}: {e}")
            raise GenerationError(
                f"Scenario generation failed: {e}", event_id=event.event_id
            ) from e

        if not parsed.ok:
            logger.error(f"Unparseable scenario output for {event.event_id}: {parsed.error}")
            raise ScenarioParseError(parsed.error, event_id=event.event_id)

        drafts = parsed.value.outlooks
        if not drafts:
            raise GenerationError("No outlooks generated", event_id=event.event_id)
        if len(drafts) > num_scenarios:
            logger.info(f"Truncating {len(drafts)} outlooks to {num_scenarios}")
        elif len(drafts) < num_scenarios:
            logger.warning(
                f"Model returned {len(drafts)} outlooks, expected {num_scenarios}"
            )

        pool: dict[str, PoolItem] = {}
        for item in evidence:
            pool.setdefault(item.url, item)

        outlooks = [repair_references(d, pool) for d in drafts[:num_scenarios]]
        unconfirmed = sum(
            1
            for o in outlooks
            for ev in [*o.supporting_evidence, *(o.counter_evidence or [])]
            if ev.url not in pool
        )
        if unconfirmed:
            logger.warning(
                f"Replaced {unconfirmed} unresolvable citations for {event.event_id}"
            )

        return GeneratedScenarios(
            outlooks=outlooks,
            assumptions=parsed.value.assumptions,
            api_calls=1,
            estimated_cost=self.costs.scenario_llm_call,
        )
