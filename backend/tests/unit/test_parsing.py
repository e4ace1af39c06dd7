"""
Unit Tests: Model Output Parsing

Test cases:
- Valid JSON parses into the schema
- A single surrounding code fence is tolerated
- Malformed or schema-violating output is reported, not repaired
"""

from scenarist.prediction.models import HistoricalPatternSet, ScenarioSet
from scenarist.prediction.parsing import parse_model_output

from fakes import outlook_dict, scenario_json


def test_parses_valid_json():
    result = parse_model_output(scenario_json([outlook_dict("O1", 1.0)]), ScenarioSet)

    assert result.ok
    assert result.error is None
    assert result.value.outlooks[0].id == "O1"


def test_tolerates_code_fence():
    raw = '```json\n{"patterns": [{"title": "1997 Asian crisis", "url": "https://imf.org/x"}]}\n```'

    result = parse_model_output(raw, HistoricalPatternSet)

    assert result.ok
    assert result.value.patterns[0].date_range == "unknown"


def test_empty_output_is_error():
    for raw in (None, "", "   \n"):
        result = parse_model_output(raw, ScenarioSet)
        assert not result.ok
        assert result.error == "Empty response from language model"


def test_trailing_prose_is_not_repaired():
    raw = scenario_json([outlook_dict("O1", 1.0)]) + "\nHope this helps!"

    result = parse_model_output(raw, ScenarioSet)

    assert not result.ok
    assert result.value is None
    assert result.error.startswith("Invalid ScenarioSet output")


def test_schema_violation_is_error():
    bad = outlook_dict("O1", 1.0)
    bad["time_horizon"] = "someday"

    result = parse_model_output(scenario_json([bad]), ScenarioSet)

    assert not result.ok
    assert "1 validation error" in result.error
