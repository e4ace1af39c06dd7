"""Pydantic models for the scenario prediction pipeline.

Shapes flow strictly downstream:
EventData -> CollectedEvidence -> ExtractedEvidence -> GeneratedScenarios
-> NormalizedOutlooks -> EventPrediction -> PredictionResponse.
"""

from datetime import date, datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

Tier = Literal["fast", "standard", "deep"]
TimeHorizon = Literal["1-2 weeks", "1-3 months", "6-12 months", "1-2 years", "2+ years"]
Confidence = Literal["high", "medium", "low"]

UNCONFIRMED_URL = "Not confirmed by available sources."
UNCONFIRMED_TITLE = "Source not available"


def to_iso_date(v: Any) -> Any:
    """Render YAML-parsed dates and datetimes as ISO strings."""
    if isinstance(v, (date, datetime)):
        return v.isoformat()
    return v


# ============================================================================
# Upstream event (read-only)
# ============================================================================


class EventSource(BaseModel):
    """Known source article attached to an upstream event."""

    title: str
    url: str
    publisher: str | None = None
    date: str

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: Any) -> Any:
        return to_iso_date(v)


class Claim(BaseModel):
    """Pre-extracted claim from the upstream extraction pipeline."""

    text: str
    type: str
    certainty: float = Field(ge=0, le=1)


class EventData(BaseModel):
    """Read-only projection of an upstream event."""

    event_id: str
    title: str
    summary: str = ""
    sources: list[EventSource] = Field(default_factory=list)
    entities: list[str] = Field(default_factory=list)
    countries: list[str] | None = None
    topics: list[str] | None = None
    claims: list[Claim] = Field(default_factory=list)
    tier: Tier = "standard"
    score: float | None = None


# ============================================================================
# Evidence pool
# ============================================================================


class CandidateArticle(BaseModel):
    """Article gathered by the collector, before extraction."""

    url: str
    title: str
    publisher: str | None = None
    date: str | None = None

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: Any) -> Any:
        return to_iso_date(v)


class ArticleEvidence(BaseModel):
    """Article evidence, optionally grounded with an extracted snippet."""

    model_config = ConfigDict(extra="forbid")

    type: Literal["article"] = "article"
    title: str
    publisher: str | None = None
    date: str | None = None
    url: str
    snippet: str | None = None
    why_relevant: str = ""

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: Any) -> Any:
        return to_iso_date(v)


class HistoricalPatternEvidence(BaseModel):
    """Historical analogue backing an outlook."""

    model_config = ConfigDict(extra="forbid")

    type: Literal["historical_pattern"] = "historical_pattern"
    title: str
    date_range: str
    url: str
    why_relevant: str = ""


EvidenceItem = Annotated[
    Union[ArticleEvidence, HistoricalPatternEvidence],
    Field(discriminator="type"),
]


def unconfirmed_evidence(why_relevant: str = "") -> ArticleEvidence:
    """Sentinel reference used in place of a citation outside the evidence pool."""
    return ArticleEvidence(
        title=UNCONFIRMED_TITLE,
        url=UNCONFIRMED_URL,
        why_relevant=why_relevant,
    )


# ============================================================================
# Outlooks and predictions
# ============================================================================


class Outlook(BaseModel):
    """One probabilistic future scenario for an event.

    `probability` is unbounded here because raw model output may overshoot;
    the normalizer guarantees the [0, 1] range and unit mass.
    """

    id: str
    title: str
    probability: float
    time_horizon: TimeHorizon
    mechanism: str
    supporting_evidence: list[EvidenceItem] = Field(default_factory=list)
    counter_evidence: list[EvidenceItem] | None = None
    watch_indicators: list[str] = Field(default_factory=list)
    confidence: Confidence


class ProbabilityCheck(BaseModel):
    """Pre- and post-normalization probability sums."""

    sum: float
    method: Literal["normalize"] = "normalize"
    original_sum: float


class EventPrediction(BaseModel):
    """Persisted/returned prediction aggregate for one event."""

    event_id: str
    generated_at: datetime
    ttl_expires_at: datetime
    assumptions: list[str] = Field(default_factory=list)
    outlooks: list[Outlook]
    probability_check: ProbabilityCheck
    tier: Tier
    evidence_count: int = 0
    historical_patterns_count: int = 0
    confidence_score: float = Field(ge=0, le=1)


class CachedPrediction(BaseModel):
    """Stored cache record wrapping a prediction with its generation metadata."""

    event_id: str
    cache_key: str
    cache_version: int = 1
    tier: Tier
    generated_at: datetime
    ttl_expires_at: datetime
    evidence_count: int = 0
    historical_patterns_count: int = 0
    confidence_score: float = 0.0
    api_calls_count: int = 0
    estimated_cost_usd: float = 0.0
    prediction: EventPrediction

    def is_fresh(self, now: datetime) -> bool:
        return self.ttl_expires_at > now


# ============================================================================
# Stage results
# ============================================================================


class CollectedEvidence(BaseModel):
    """Output of the evidence collector."""

    articles: list[CandidateArticle] = Field(default_factory=list)
    historical_patterns: list[HistoricalPatternEvidence] = Field(default_factory=list)
    api_calls: int = 0
    estimated_cost: float = 0.0


class ExtractedEvidence(BaseModel):
    """Output of the evidence extractor."""

    evidence: list[ArticleEvidence] = Field(default_factory=list)
    api_calls: int = 0
    estimated_cost: float = 0.0


class GeneratedScenarios(BaseModel):
    """Output of the scenario generator, after reference repair."""

    outlooks: list[Outlook]
    assumptions: list[str] = Field(default_factory=list)
    api_calls: int = 0
    estimated_cost: float = 0.0


class NormalizedOutlooks(BaseModel):
    """Outlooks whose probabilities form a valid distribution."""

    outlooks: list[Outlook]
    probability_check: ProbabilityCheck


# ============================================================================
# Model output schemas (strictly validated)
# ============================================================================


class HistoricalPatternProposal(BaseModel):
    title: str
    date_range: str = "unknown"
    url: str
    why_relevant: str = ""


class HistoricalPatternSet(BaseModel):
    """Language model output for historical analogues."""

    patterns: list[HistoricalPatternProposal] = Field(default_factory=list)


class EvidenceCitation(BaseModel):
    """Evidence reference as cited by the model; resolved against the pool later."""

    type: Literal["article", "historical_pattern"] = "article"
    title: str = ""
    url: str = ""
    publisher: str | None = None
    date: str | None = None
    date_range: str | None = None
    why_relevant: str = ""


class OutlookDraft(BaseModel):
    """Outlook as produced by the model, before reference repair."""

    id: str
    title: str
    probability: float
    time_horizon: TimeHorizon
    mechanism: str
    supporting_evidence: list[EvidenceCitation] = Field(default_factory=list)
    counter_evidence: list[EvidenceCitation] | None = None
    watch_indicators: list[str] = Field(default_factory=list)
    confidence: Confidence


class ScenarioSet(BaseModel):
    """Language model output for scenario generation."""

    assumptions: list[str] = Field(default_factory=list)
    outlooks: list[OutlookDraft]


# ============================================================================
# Request / response envelope
# ============================================================================


class PredictionRequest(BaseModel):
    event_id: str
    tier: Tier | None = None
    force_refresh: bool = False


class ResponseMetadata(BaseModel):
    cache_hit: bool = False
    generation_time_ms: int = 0
    api_calls_count: int = 0
    estimated_cost_usd: float = 0.0


class PredictionResponse(BaseModel):
    """Uniform envelope returned for every outcome; callers branch on `success`."""

    success: bool
    prediction: EventPrediction | None = None
    from_cache: bool | None = None
    error: str | None = None
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)
