"""Wire production collaborators into a PredictionEngine."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from scenarist.config import Settings
from scenarist.llm_providers import get_model_string, parse_model_name
from scenarist.prediction.collector import EvidenceCollector
from scenarist.prediction.engine import PredictionEngine
from scenarist.prediction.extractor import EvidenceExtractor
from scenarist.prediction.generator import ScenarioGenerator
from scenarist.services.exa import ExaClient
from scenarist.services.llm import AgentLanguageModel, setup_api_keys
from scenarist.storage import FileEventStore, FilePredictionStore, PredictionCache

logger = logging.getLogger(__name__)


@asynccontextmanager
async def open_prediction_engine(settings: Settings) -> AsyncIterator[PredictionEngine]:
    """Yield an engine backed by Exa, PydanticAI agents and file storage."""
    setup_api_keys(settings)

    scenario_llm = AgentLanguageModel(
        get_model_string(parse_model_name(settings.generator.scenario_model)),
        max_tokens=settings.generator.max_output_tokens,
    )
    pattern_llm = AgentLanguageModel(
        get_model_string(parse_model_name(settings.generator.pattern_model)),
        max_tokens=1000,
    )

    async with ExaClient(api_key=settings.exa_api_key) as exa_client:
        engine = PredictionEngine(
            event_store=FileEventStore(settings.data_dir / "events"),
            collector=EvidenceCollector(
                exa_client, pattern_llm, settings.collector, settings.costs
            ),
            extractor=EvidenceExtractor(exa_client, settings.extractor, settings.costs),
            generator=ScenarioGenerator(scenario_llm, settings.generator, settings.costs),
            cache=PredictionCache(
                FilePredictionStore(settings.data_dir / "predictions"),
                version=settings.cache.version,
            ),
            settings=settings,
        )
        logger.info(f"Prediction engine ready (data_dir={settings.data_dir})")
        yield engine
