"""Configuration management using Pydantic Settings."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class TierProfile(BaseModel):
    """Resource budget for one prediction tier."""

    num_outlooks: int
    search_max_results: int
    search_depth: Literal["basic", "advanced"] = "basic"
    extraction_depth: int
    cache_ttl_hours: int
    time_budget_seconds: float


def _default_tiers() -> dict[str, TierProfile]:
    return {
        "fast": TierProfile(
            num_outlooks=3,
            search_max_results=3,
            extraction_depth=1,
            cache_ttl_hours=3,
            time_budget_seconds=60.0,
        ),
        "standard": TierProfile(
            num_outlooks=6,
            search_max_results=5,
            extraction_depth=3,
            cache_ttl_hours=6,
            time_budget_seconds=120.0,
        ),
        "deep": TierProfile(
            num_outlooks=9,
            search_max_results=10,
            search_depth="advanced",
            extraction_depth=5,
            cache_ttl_hours=12,
            time_budget_seconds=240.0,
        ),
    }


class CollectorConfig(BaseModel):
    """Evidence collection thresholds and caps."""

    supporting_min_score: float = 0.5
    historical_min_score: float = 0.4  # Patterns are intentionally noisier
    historical_max_results: int = 5
    max_articles: int = 20
    pattern_temperature: float = 0.3


class ExtractorConfig(BaseModel):
    """Evidence extraction parameters."""

    fetch_timeout_seconds: float = 20.0
    snippet_max_words: int = 250
    snippet_max_chars: int = 500
    max_evidence: int = 10


class GeneratorConfig(BaseModel):
    """Scenario generation parameters."""

    scenario_model: str = "gpt-4o"
    pattern_model: str = "gpt-4o-mini"  # Cheaper model for historical analogues
    max_output_tokens: int = 4000
    prompt_snippet_chars: int = 200
    counter_evidence_top_n: int = 3


class CostConfig(BaseModel):
    """Estimated USD cost per external call."""

    search_call: float = 0.001
    pattern_llm_call: float = 0.01
    fetch_call: float = 0.01
    scenario_llm_call: float = 0.05


class CacheConfig(BaseModel):
    """Prediction cache parameters."""

    version: int = 1


class EngineConfig(BaseModel):
    """Orchestrator parameters."""

    default_tier: Literal["fast", "standard", "deep"] = "standard"
    batch_concurrency: int = 3


class SchedulerConfig(BaseModel):
    """Batch regeneration schedule."""

    refresh_interval_minutes: int = 180
    refresh_event_ids: list[str] = Field(default_factory=list)
    refresh_tier: Literal["fast", "standard", "deep"] = "standard"


class ApiConfig(BaseModel):
    """HTTP API parameters."""

    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"]
    )


class Settings(BaseSettings):
    """Main configuration class."""

    # Paths
    data_dir: Path = Path("data")

    # API Keys
    exa_api_key: str = ""
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    logfire_token: str = ""

    # Nested configuration sections
    tiers: dict[str, TierProfile] = Field(default_factory=_default_tiers)
    collector: CollectorConfig = Field(default_factory=CollectorConfig)
    extractor: ExtractorConfig = Field(default_factory=ExtractorConfig)
    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)
    costs: CostConfig = Field(default_factory=CostConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("data_dir", mode="after")
    @classmethod
    def resolve_data_dir(cls, v: Path) -> Path:
        """Resolve data directory to absolute path."""
        return v.resolve()

    @field_validator("tiers", mode="after")
    @classmethod
    def require_all_tiers(cls, v: dict[str, TierProfile]) -> dict[str, TierProfile]:
        missing = {"fast", "standard", "deep"} - set(v)
        if missing:
            raise ValueError(f"Missing tier profiles: {sorted(missing)}")
        return v

    def tier_profile(self, tier: str) -> TierProfile:
        """Get the resource profile for a tier."""
        return self.tiers[tier]

    def load_yaml_config(self) -> None:
        """Load and merge YAML configuration."""
        config_path = self.data_dir / "config.yaml"

        if not config_path.exists():
            logger.warning(
                f"Config file not found: {config_path}. "
                "Using defaults. Run 'python -m scenarist init' to create it."
            )
            return

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)

            if not yaml_config:
                logger.warning(f"Empty config file: {config_path}")
                return

            for section_name in [
                "collector",
                "extractor",
                "generator",
                "costs",
                "cache",
                "engine",
                "scheduler",
                "api",
            ]:
                if section_name in yaml_config:
                    section = getattr(self, section_name)
                    yaml_section = yaml_config[section_name]

                    section_dict = section.model_dump()
                    section_dict.update(yaml_section)

                    new_section = section.__class__(**section_dict)
                    setattr(self, section_name, new_section)

            for tier_name, overrides in (yaml_config.get("tiers") or {}).items():
                if tier_name not in self.tiers:
                    logger.warning(f"Ignoring unknown tier in config: {tier_name}")
                    continue
                tier_dict = self.tiers[tier_name].model_dump()
                tier_dict.update(overrides)
                self.tiers[tier_name] = TierProfile(**tier_dict)

            logger.info(f"Loaded configuration from {config_path}")

        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML config: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to load config: {e}")
            raise


@lru_cache()
def get_settings() -> Settings:
    """Get singleton Settings instance."""
    settings = Settings()
    settings.load_yaml_config()
    return settings
