"""Custom exceptions for the prediction pipeline."""


class PredictionError(Exception):
    """Base exception for prediction pipeline errors."""

    def __init__(self, message: str, event_id: str | None = None):
        super().__init__(message)
        self.event_id = event_id


class EventNotFoundError(PredictionError):
    """Requested event does not exist upstream."""

    def __init__(self, event_id: str):
        super().__init__(f"Event not found: {event_id}", event_id=event_id)


class GenerationError(PredictionError):
    """Language model call failed or produced no usable outlooks."""

    pass


class ScenarioParseError(GenerationError):
    """Model output did not match the required scenario schema."""

    pass


class PredictionTimeoutError(PredictionError):
    """Generation exceeded the tier's wall-clock budget."""

    pass


class PersistenceError(PredictionError):
    """Prediction store read or write failed."""

    pass


class ModelOutputError(PredictionError):
    """Language model answered, but not with output matching the requested schema."""

    pass
