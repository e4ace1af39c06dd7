"""LLM Model Enums for easy model selection and hotswapping.

This module provides enums for the supported OpenAI and Anthropic models,
making it easy to switch between different models across the codebase.
"""

from enum import StrEnum


class OpenAIModel(StrEnum):
    """OpenAI models available via API."""

    GPT_4O = "gpt-4o"
    GPT_4O_MINI = "gpt-4o-mini"
    GPT_4_1 = "gpt-4.1"
    GPT_4_1_MINI = "gpt-4.1-mini"


class AnthropicModel(StrEnum):
    """Anthropic Claude models available via API."""

    CLAUDE_SONNET_4_5 = "claude-sonnet-4-5"
    CLAUDE_HAIKU_4_5 = "claude-haiku-4-5"


# =============================================================================
# Helper Functions
# =============================================================================


def get_model_string(model: OpenAIModel | AnthropicModel) -> str:
    """Get the pydantic-ai model string for any supported model.

    Scenario generation needs temperature=0 and JSON-only output, so OpenAI
    models go through the chat completions API rather than the Responses API.
    """
    if isinstance(model, OpenAIModel):
        return f"openai:{model.value}"
    elif isinstance(model, AnthropicModel):
        return f"anthropic:{model.value}"
    return model.value


def parse_model_name(name: str) -> OpenAIModel | AnthropicModel:
    """Resolve a configured model name (e.g. 'gpt-4o') to its enum member."""
    for enum_cls in (OpenAIModel, AnthropicModel):
        try:
            return enum_cls(name)
        except ValueError:
            continue
    raise ValueError(f"Unsupported model: {name}")
