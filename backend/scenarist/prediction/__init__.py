"""Probabilistic scenario prediction pipeline.

Stages: collector -> extractor -> generator -> normalizer, sequenced by
`scenarist.prediction.engine.PredictionEngine`.
"""

from .exceptions import (
    EventNotFoundError,
    GenerationError,
    ModelOutputError,
    PersistenceError,
    PredictionError,
    PredictionTimeoutError,
    ScenarioParseError,
)
from .models import (
    EventData,
    EventPrediction,
    Outlook,
    PredictionRequest,
    PredictionResponse,
)

__all__ = [
    "EventNotFoundError",
    "GenerationError",
    "ModelOutputError",
    "PersistenceError",
    "PredictionError",
    "PredictionTimeoutError",
    "ScenarioParseError",
    "EventData",
    "EventPrediction",
    "Outlook",
    "PredictionRequest",
    "PredictionResponse",
]
