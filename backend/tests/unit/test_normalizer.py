"""
Unit Tests: Validator & Normalizer

Test cases:
- Drifted sums are rescaled to unit mass
- All-zero probabilities fall back to 1/N
- Non-finite probabilities fall back to 1/N with a finite recorded sum
- Overshoot and negative values are clamped then renormalized
- Confidence score weighting and rounding
"""

import math

import pytest

from scenarist.prediction.exceptions import GenerationError
from scenarist.prediction.models import Outlook
from scenarist.prediction.normalizer import calculate_confidence_score, normalize_outlooks


def _outlook(outlook_id: str, probability: float, confidence: str = "medium") -> Outlook:
    return Outlook(
        id=outlook_id,
        title=f"Outlook {outlook_id}",
        probability=probability,
        time_horizon="1-3 months",
        mechanism="Cause leads to effect.",
        confidence=confidence,
    )


def test_rescales_drifted_sum():
    result = normalize_outlooks([_outlook("O1", 0.6), _outlook("O2", 0.6)])

    assert [o.probability for o in result.outlooks] == pytest.approx([0.5, 0.5])
    assert result.probability_check.original_sum == pytest.approx(1.2)
    assert result.probability_check.sum == pytest.approx(1.0)
    assert result.probability_check.method == "normalize"


def test_zero_sum_assigns_equal_probability():
    outlooks = [_outlook(f"O{i}", 0.0) for i in range(4)]

    result = normalize_outlooks(outlooks)

    assert [o.probability for o in result.outlooks] == pytest.approx([0.25] * 4)
    assert result.probability_check.original_sum == 0.0


@pytest.mark.parametrize("bad", [float("inf"), float("-inf"), float("nan")])
def test_non_finite_probability_falls_back_to_equal_split(bad):
    result = normalize_outlooks([_outlook("O1", bad), _outlook("O2", 0.3), _outlook("O3", 0.2)])

    assert [o.probability for o in result.outlooks] == pytest.approx([1 / 3] * 3)
    assert result.probability_check.original_sum == pytest.approx(0.5)
    assert result.probability_check.model_dump_json().count("null") == 0


def test_overflowing_sum_is_recorded_finite():
    result = normalize_outlooks([_outlook("O1", 1e308), _outlook("O2", 1e308)])

    assert [o.probability for o in result.outlooks] == pytest.approx([0.5, 0.5])
    assert math.isfinite(result.probability_check.original_sum)


def test_negative_values_are_clamped():
    result = normalize_outlooks([_outlook("O1", -0.5), _outlook("O2", 1.0), _outlook("O3", 0.5)])

    probabilities = [o.probability for o in result.outlooks]
    assert all(0.0 <= p <= 1.0 for p in probabilities)
    assert sum(probabilities) == pytest.approx(1.0, abs=1e-6)
    assert probabilities[0] == 0.0


def test_preserves_order_and_other_fields():
    originals = [_outlook("A", 0.2, "high"), _outlook("B", 0.2, "low")]

    result = normalize_outlooks(originals)

    assert [o.id for o in result.outlooks] == ["A", "B"]
    assert [o.confidence for o in result.outlooks] == ["high", "low"]
    # Inputs are not mutated
    assert originals[0].probability == 0.2


def test_empty_outlooks_raise():
    with pytest.raises(GenerationError):
        normalize_outlooks([])


def test_confidence_score_weighting():
    outlooks = [
        _outlook("O1", 0.5, "high"),
        _outlook("O2", 0.3, "medium"),
        _outlook("O3", 0.2, "low"),
    ]

    # 0.8*0.5 + 0.5*0.3 + 0.3*0.2 = 0.61
    assert calculate_confidence_score(outlooks) == 0.61


def test_confidence_score_bounds():
    assert calculate_confidence_score([]) == 0.0
    assert calculate_confidence_score([_outlook("O1", 1.0, "high")]) == 0.8
