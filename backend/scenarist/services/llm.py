"""Language model access through PydanticAI agents."""

import logging
import os

from pydantic import BaseModel
from pydantic_ai import Agent
from pydantic_ai.exceptions import UnexpectedModelBehavior
from pydantic_ai.models import Model
from pydantic_ai.settings import ModelSettings

from scenarist.config import Settings
from scenarist.prediction.exceptions import ModelOutputError

logger = logging.getLogger(__name__)


class AgentLanguageModel:
    """Completion backed by one PydanticAI agent per (system prompt, output type).

    With an `output_type` the agent runs in structured mode, so the provider is
    asked for JSON matching that schema, and the validated result is handed back
    as JSON text. Schema validation still happens in the caller so that every
    malformed response surfaces as the same typed parse error.
    """

    def __init__(self, model: Model | str, max_tokens: int = 4000, retries: int = 1):
        self.model = model
        self.max_tokens = max_tokens
        self.retries = retries
        self._agents: dict[tuple[str, type], Agent] = {}

    def _get_agent(self, system_prompt: str, output_type: type) -> Agent:
        key = (system_prompt, output_type)
        agent = self._agents.get(key)
        if agent is None:
            agent = Agent(
                model=self.model,
                output_type=output_type,
                system_prompt=system_prompt,
                retries=self.retries,
            )
            self._agents[key] = agent
        return agent

    async def complete(
        self,
        prompt: str,
        *,
        system_prompt: str,
        temperature: float = 0.0,
        output_type: type[BaseModel] | None = None,
    ) -> str:
        agent = self._get_agent(system_prompt, output_type or str)
        settings = ModelSettings(temperature=temperature, max_tokens=self.max_tokens)
        try:
            result = await agent.run(prompt, model_settings=settings)
        except UnexpectedModelBehavior as e:
            if output_type is None:
                raise
            logger.warning(f"Model output rejected for {output_type.__name__}: {e}")
            raise ModelOutputError(str(e)) from e

        if output_type is None:
            return result.output
        return result.output.model_dump_json()


def setup_api_keys(settings: Settings) -> None:
    """Export provider API keys from settings for PydanticAI model inference."""
    if settings.openai_api_key:
        os.environ["OPENAI_API_KEY"] = settings.openai_api_key
    if settings.anthropic_api_key:
        os.environ["ANTHROPIC_API_KEY"] = settings.anthropic_api_key
