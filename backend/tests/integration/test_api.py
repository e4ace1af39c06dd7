"""
Integration Tests: HTTP API

Test cases:
- GET serves cached-or-generated predictions
- Unknown tier strings fall back to standard
- POST forces regeneration; body tier wins over the query tier
- History lists stored records newest first
- Not-found maps to 404, other failures to 500
"""

from fastapi.testclient import TestClient

from scenarist.api import create_app

from fakes import (
    FakeClock,
    FakeLanguageModel,
    build_engine,
    default_scenarios,
    make_settings,
)


def _client(llm: FakeLanguageModel | None = None, clock: FakeClock | None = None) -> TestClient:
    settings = make_settings()
    engine = build_engine(llm=llm, settings=settings, clock=clock)
    return TestClient(create_app(settings=settings, engine=engine))


def test_get_generates_then_serves_cache():
    client = _client()

    first = client.get("/api/events/evt-rates/predictions")
    second = client.get("/api/events/evt-rates/predictions")

    assert first.status_code == 200
    body = first.json()
    assert body["success"] is True
    assert body["from_cache"] is False
    assert len(body["prediction"]["outlooks"]) == 3
    assert body["metadata"]["api_calls_count"] > 0

    assert second.status_code == 200
    assert second.json()["from_cache"] is True
    assert second.json()["metadata"]["cache_hit"] is True


def test_unknown_tier_falls_back_to_standard():
    client = _client(FakeLanguageModel(default_scenarios(6)))

    response = client.get("/api/events/evt-rates/predictions", params={"tier": "ultra"})

    assert response.status_code == 200
    prediction = response.json()["prediction"]
    assert prediction["tier"] == "standard"
    assert len(prediction["outlooks"]) == 6


def test_post_forces_refresh():
    clock = FakeClock()
    llm = FakeLanguageModel(default_scenarios())
    client = _client(llm, clock)

    client.get("/api/events/evt-rates/predictions")
    clock.advance(hours=1)
    refreshed = client.post("/api/events/evt-rates/predictions", json={"tier": "fast"})
    bare = client.post("/api/events/evt-rates/predictions")

    assert refreshed.status_code == 200
    assert refreshed.json()["from_cache"] is False
    assert bare.status_code == 200
    assert bare.json()["from_cache"] is False
    assert llm.scenario_calls == 3


def test_post_uses_query_tier_without_body():
    client = _client(FakeLanguageModel(default_scenarios(9)))

    from_query = client.post("/api/events/evt-rates/predictions", params={"tier": "deep"})
    from_body = client.post(
        "/api/events/evt-rates/predictions", params={"tier": "deep"}, json={"tier": "fast"}
    )

    assert from_query.status_code == 200
    assert from_query.json()["prediction"]["tier"] == "deep"
    assert len(from_query.json()["prediction"]["outlooks"]) == 9
    assert from_body.json()["prediction"]["tier"] == "fast"
    assert len(from_body.json()["prediction"]["outlooks"]) == 3


def test_history_lists_records():
    clock = FakeClock()
    client = _client(clock=clock)

    client.get("/api/events/evt-rates/predictions")
    clock.advance(hours=1)
    client.post("/api/events/evt-rates/predictions")

    response = client.get("/api/events/evt-rates/predictions/history")

    assert response.status_code == 200
    records = response.json()
    assert len(records) == 2
    assert records[0]["generated_at"] > records[1]["generated_at"]
    assert records[0]["tier"] == "fast"
    assert len(records[0]["cache_key"]) == 32


def test_missing_event_is_404():
    response = _client().get("/api/events/nonexistent/predictions")

    assert response.status_code == 404
    assert response.json()["error"] == "Event not found: nonexistent"
    assert response.json()["success"] is False


def test_generation_failure_is_500():
    response = _client(FakeLanguageModel("not json")).get("/api/events/evt-rates/predictions")

    assert response.status_code == 500
    assert response.json()["success"] is False
    assert response.json()["error"].startswith("Invalid ScenarioSet output")
