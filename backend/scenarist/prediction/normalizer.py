"""Validator & Normalizer: enforce probability mass and compute overall confidence.

These pure functions correct model drift in place of rejecting it; the drift
is recorded in `ProbabilityCheck.original_sum`.
"""

import math
import sys

from scenarist.prediction.exceptions import GenerationError
from scenarist.prediction.models import NormalizedOutlooks, Outlook, ProbabilityCheck

CONFIDENCE_WEIGHTS = {"high": 0.8, "medium": 0.5, "low": 0.3}


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def normalize_outlooks(outlooks: list[Outlook]) -> NormalizedOutlooks:
    """Rescale outlook probabilities into a distribution summing to 1.0.

    A zero original sum, or any non-finite probability, assigns 1/N to every
    outlook. The recorded original sum only counts finite values so the check
    stays serializable.
    """
    if not outlooks:
        raise GenerationError("No outlooks generated")

    finite = [o.probability for o in outlooks if math.isfinite(o.probability)]
    original_sum = sum(finite)
    if not math.isfinite(original_sum):
        original_sum = sys.float_info.max

    if len(finite) == len(outlooks) and 0 < original_sum < sys.float_info.max:
        probabilities = [o.probability / original_sum for o in outlooks]
    else:
        probabilities = [1.0 / len(outlooks)] * len(outlooks)

    probabilities = [_clamp(p) for p in probabilities]

    clamped_sum = sum(probabilities)
    if clamped_sum > 0:
        probabilities = [p / clamped_sum for p in probabilities]
    else:
        probabilities = [1.0 / len(outlooks)] * len(outlooks)

    normalized = [
        o.model_copy(update={"probability": p}) for o, p in zip(outlooks, probabilities)
    ]

    return NormalizedOutlooks(
        outlooks=normalized,
        probability_check=ProbabilityCheck(
            sum=sum(probabilities),
            method="normalize",
            original_sum=original_sum,
        ),
    )


def calculate_confidence_score(outlooks: list[Outlook]) -> float:
    """Probability-weighted confidence (high=0.8, medium=0.5, low=0.3), 2 decimals."""
    if not outlooks:
        return 0.0

    weighted = sum(
        CONFIDENCE_WEIGHTS.get(o.confidence, 0.5) * o.probability for o in outlooks
    )
    return round(_clamp(weighted), 2)
