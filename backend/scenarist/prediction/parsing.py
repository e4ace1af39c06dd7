"""Strict schema parsing of language model output."""

from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from scenarist.prediction.exceptions import ModelOutputError
from scenarist.prediction.protocols import LanguageModel

ModelT = TypeVar("ModelT", bound=BaseModel)

_FENCE = "```"


@dataclass(frozen=True)
class ParseResult(Generic[ModelT]):
    """Either a validated value or the reason parsing failed."""

    value: ModelT | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None


def _strip_code_fence(raw: str) -> str:
    text = raw.strip()
    if not text.startswith(_FENCE):
        return text
    first_newline = text.find("\n")
    if first_newline == -1:
        return text
    text = text[first_newline + 1 :]
    if text.rstrip().endswith(_FENCE):
        text = text.rstrip()[: -len(_FENCE)]
    return text.strip()


def parse_model_output(raw: str | None, schema: type[ModelT]) -> ParseResult[ModelT]:
    """Validate raw model text against `schema`.

    A single surrounding markdown code fence is tolerated; anything else that is
    not valid JSON for the schema is reported as an error, never repaired.
    """
    if not raw or not raw.strip():
        return ParseResult(error="Empty response from language model")

    try:
        value = schema.model_validate_json(_strip_code_fence(raw))
    except ValidationError as e:
        return ParseResult(
            error=f"Invalid {schema.__name__} output: {e.error_count()} validation error(s): "
            f"{e.errors()[0]['msg']}"
        )
    return ParseResult(value=value)


async def complete_json(
    llm: LanguageModel,
    prompt: str,
    schema: type[ModelT],
    *,
    system_prompt: str,
    temperature: float = 0.0,
) -> ParseResult[ModelT]:
    """Run a JSON-mode completion and parse it against `schema`.

    Output the provider could not fit to the schema becomes a parse error;
    failures of the call itself propagate.
    """
    try:
        raw = await llm.complete(
            prompt,
            system_prompt=system_prompt,
            temperature=temperature,
            output_type=schema,
        )
    except ModelOutputError as e:
        return ParseResult(error=f"Invalid {schema.__name__} output: {e}")
    return parse_model_output(raw, schema)
