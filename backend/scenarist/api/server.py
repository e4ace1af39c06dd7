"""FastAPI server exposing scenario predictions per event."""

import logging
from contextlib import asynccontextmanager
from typing import get_args

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from scenarist import __version__
from scenarist.config import Settings, get_settings
from scenarist.factory import open_prediction_engine
from scenarist.prediction.engine import PredictionEngine
from scenarist.prediction.models import PredictionRequest, PredictionResponse, Tier

logger = logging.getLogger(__name__)

VALID_TIERS: tuple[str, ...] = get_args(Tier)


class RefreshBody(BaseModel):
    tier: str | None = None


def _coerce_tier(tier: str | None) -> Tier | None:
    """Unknown tier strings fall back to standard; absent means event default."""
    if tier is None:
        return None
    if tier not in VALID_TIERS:
        logger.warning(f"Unknown tier '{tier}', using standard")
        return "standard"
    return tier  # type: ignore[return-value]


def _envelope(response: PredictionResponse) -> JSONResponse:
    if response.success:
        status_code = 200
    elif response.error and "not found" in response.error.lower():
        status_code = 404
    else:
        status_code = 500
    return JSONResponse(
        status_code=status_code,
        content=response.model_dump(mode="json"),
    )


def _engine(request: Request) -> PredictionEngine:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Prediction engine not ready")
    return engine


def create_app(
    settings: Settings | None = None,
    engine: PredictionEngine | None = None,
) -> FastAPI:
    """Build the API app. Without an injected engine, one is opened on startup."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "engine", None) is not None:
            yield
            return
        async with open_prediction_engine(settings) as built:
            app.state.engine = built
            yield
            app.state.engine = None

    app = FastAPI(title="Scenarist Prediction API", version=__version__, lifespan=lifespan)
    app.state.engine = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/events/{event_id}/predictions")
    async def get_prediction(event_id: str, request: Request, tier: str | None = None):
        """Return the cached prediction, generating one on a miss."""
        response = await _engine(request).generate_prediction(
            PredictionRequest(event_id=event_id, tier=_coerce_tier(tier))
        )
        return _envelope(response)

    @app.post("/api/events/{event_id}/predictions")
    async def refresh_prediction(
        event_id: str,
        request: Request,
        body: RefreshBody | None = None,
        tier: str | None = None,
    ):
        """Force a fresh generation, bypassing the cache.

        The body tier wins over the `?tier=` query parameter.
        """
        tier = _coerce_tier(body.tier if body and body.tier else tier)
        response = await _engine(request).generate_prediction(
            PredictionRequest(event_id=event_id, tier=tier, force_refresh=True)
        )
        return _envelope(response)

    @app.get("/api/events/{event_id}/predictions/history")
    async def prediction_history(event_id: str, request: Request):
        """Stored prediction records for an event, newest first."""
        try:
            records = await _engine(request).history(event_id)
        except ValueError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return [record.model_dump(mode="json") for record in records]

    return app
