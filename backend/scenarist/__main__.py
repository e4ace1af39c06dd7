"""Scenarist CLI entry point."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

env_file = Path(__file__).parent.parent / ".env"
load_dotenv(env_file)

from scenarist import __version__
from scenarist.config import get_settings
from scenarist.factory import open_prediction_engine
from scenarist.prediction.models import PredictionRequest, PredictionResponse
from scenarist.scheduler import start_scheduler

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)

TIER_CHOICES = ["fast", "standard", "deep"]


def _init_logfire() -> None:
    """Initialize Logfire if available, without failing commands."""
    try:
        from scenarist.observability import initialize_logfire

        initialize_logfire(get_settings())
    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")


def _print_response(event_id: str, response: PredictionResponse) -> None:
    if not response.success or response.prediction is None:
        print(f"  ✗ {event_id}: {response.error}")
        return

    prediction = response.prediction
    source = "cache" if response.from_cache else "generated"
    print(f"  ✓ {event_id} ({prediction.tier}, {source})")
    print(f"    Confidence Score: {prediction.confidence_score:.2f}")
    print(
        f"    Evidence: {prediction.evidence_count} items "
        f"({prediction.historical_patterns_count} historical)"
    )
    for outlook in prediction.outlooks:
        print(
            f"    • [{outlook.probability:.0%}] {outlook.title} "
            f"({outlook.time_horizon}, {outlook.confidence})"
        )
    meta = response.metadata
    print(
        f"    {meta.generation_time_ms}ms, {meta.api_calls_count} API calls, "
        f"~${meta.estimated_cost_usd:.3f}"
    )


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize data directory structure and configuration files."""
    data_dir = Path("data").resolve()

    try:
        data_dir.mkdir(exist_ok=True)
        logger.info(f"Created data directory: {data_dir}")

        for subdir in ["events", "predictions"]:
            (data_dir / subdir).mkdir(parents=True, exist_ok=True)

        logger.info("Created all subdirectories")

        config_path = data_dir / "config.yaml"
        if not config_path.exists():
            config_template = """# Scenarist Configuration
# Operational parameters for scenario prediction.
# API keys and secrets should be stored in .env file, not here.

tiers:
  fast:
    num_outlooks: 3
    cache_ttl_hours: 3
    time_budget_seconds: 60
  standard:
    num_outlooks: 6
    cache_ttl_hours: 6
    time_budget_seconds: 120
  deep:
    num_outlooks: 9
    cache_ttl_hours: 12
    time_budget_seconds: 240

collector:
  supporting_min_score: 0.5
  historical_min_score: 0.4
  max_articles: 20

extractor:
  fetch_timeout_seconds: 20
  max_evidence: 10

generator:
  scenario_model: gpt-4o
  pattern_model: gpt-4o-mini

engine:
  default_tier: standard
  batch_concurrency: 3

scheduler:
  refresh_interval_minutes: 180
  refresh_tier: standard
  refresh_event_ids: []

api:
  host: 127.0.0.1
  port: 8000
"""
            config_path.write_text(config_template)
            logger.info(f"Created config template: {config_path}")
        else:
            logger.info(f"Config file already exists: {config_path}")

        print(f"\n✓ Data directory initialized at {data_dir}")
        print("\nNext steps:")
        print("1. Copy .env.example to .env and add your API keys")
        print("2. Place event files in data/events/<event_id>.yaml")
        print("3. Run 'python -m scenarist config' to verify configuration")
        print("4. Run 'python -m scenarist predict <event_id>' to generate a prediction\n")

        return 0

    except Exception as e:
        logger.error(f"Failed to initialize: {e}")
        print(f"\n❌ Initialization failed: {e}\n")
        return 1


def cmd_config(args: argparse.Namespace) -> int:
    """Display merged configuration."""
    try:
        settings = get_settings()

        print("\n=== Scenarist Configuration ===\n")
        print(f"Data Directory: {settings.data_dir}\n")

        print("Tiers:")
        for name in TIER_CHOICES:
            profile = settings.tier_profile(name)
            print(
                f"  {name}: {profile.num_outlooks} outlooks, "
                f"search {profile.search_max_results} ({profile.search_depth}), "
                f"extract {profile.extraction_depth}, "
                f"TTL {profile.cache_ttl_hours}h, budget {profile.time_budget_seconds:g}s"
            )
        print()

        print("Collector:")
        print(f"  Supporting Min Score: {settings.collector.supporting_min_score}")
        print(f"  Historical Min Score: {settings.collector.historical_min_score}")
        print(f"  Max Articles: {settings.collector.max_articles}\n")

        print("Extractor:")
        print(f"  Fetch Timeout: {settings.extractor.fetch_timeout_seconds:g}s")
        print(f"  Max Evidence: {settings.extractor.max_evidence}\n")

        print("Generator:")
        print(f"  Scenario Model: {settings.generator.scenario_model}")
        print(f"  Pattern Model: {settings.generator.pattern_model}\n")

        print("Scheduler:")
        print(f"  Refresh Interval: {settings.scheduler.refresh_interval_minutes} min")
        print(f"  Refresh Events: {len(settings.scheduler.refresh_event_ids)}\n")

        print("API Keys:")
        print(f"  Exa AI: {'✓ Set' if settings.exa_api_key else '✗ Not set'}")
        print(f"  OpenAI: {'✓ Set' if settings.openai_api_key else '✗ Not set'}")
        print(f"  Anthropic: {'✓ Set' if settings.anthropic_api_key else '✗ Not set'}")
        print(f"  Logfire: {'✓ Set' if settings.logfire_token else '✗ Not set'}\n")

        return 0

    except ValidationError as e:
        print("\n❌ Configuration Error:\n")
        for error in e.errors():
            print(f"  • {'.'.join(str(x) for x in error['loc'])}: {error['msg']}")
        print()
        return 1
    except Exception as e:
        logger.error(f"Failed to load config: {e}")
        print(f"\n❌ Failed to load configuration: {e}\n")
        return 1


async def _run_predict(event_id: str, tier: str | None, force_refresh: bool) -> PredictionResponse:
    async with open_prediction_engine(get_settings()) as engine:
        return await engine.generate_prediction(
            PredictionRequest(event_id=event_id, tier=tier, force_refresh=force_refresh)
        )


def cmd_predict(args: argparse.Namespace) -> int:
    """Generate (or serve cached) prediction for one event."""
    _init_logfire()

    try:
        print(f"\n=== Scenario Prediction ===\n")
        response = asyncio.run(_run_predict(args.event_id, args.tier, args.force_refresh))
        _print_response(args.event_id, response)
        print()
        return 0 if response.success else 1

    except Exception as e:
        logger.error(f"Prediction failed: {e}", exc_info=True)
        print(f"\n❌ Prediction failed: {e}\n")
        return 1


async def _run_batch(
    event_ids: list[str], tier: str | None, force_refresh: bool
) -> list[PredictionResponse]:
    async with open_prediction_engine(get_settings()) as engine:
        return await engine.generate_many(event_ids, tier=tier, force_refresh=force_refresh)


def cmd_batch(args: argparse.Namespace) -> int:
    """Generate predictions for several events concurrently."""
    _init_logfire()

    try:
        print(f"\n=== Batch Prediction ({len(args.event_ids)} events) ===\n")
        responses = asyncio.run(_run_batch(args.event_ids, args.tier, args.force_refresh))
        for event_id, response in zip(args.event_ids, responses):
            _print_response(event_id, response)

        failed = sum(1 for r in responses if not r.success)
        print(f"\n{len(responses) - failed}/{len(responses)} succeeded\n")
        return 0 if failed == 0 else 1

    except Exception as e:
        logger.error(f"Batch failed: {e}", exc_info=True)
        print(f"\n❌ Batch failed: {e}\n")
        return 1


def cmd_history(args: argparse.Namespace) -> int:
    """List stored predictions for an event."""
    from scenarist.storage import FilePredictionStore

    try:
        settings = get_settings()
        store = FilePredictionStore(settings.data_dir / "predictions")
        records = asyncio.run(store.history(args.event_id))

        print(f"\n=== Prediction History: {args.event_id} ===\n")
        if not records:
            print("  (None)\n")
            return 0

        for record in records[: args.limit]:
            print(
                f"  {record.generated_at.isoformat()}  {record.tier:<8} "
                f"outlooks={len(record.prediction.outlooks)} "
                f"confidence={record.confidence_score:.2f} "
                f"expires={record.ttl_expires_at.isoformat()}"
            )
        if len(records) > args.limit:
            print(f"  ... and {len(records) - args.limit} more")
        print()
        return 0

    except Exception as e:
        logger.error(f"Failed to read history: {e}")
        print(f"\n❌ Failed to read history: {e}\n")
        return 1


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the HTTP API server."""
    import uvicorn

    from scenarist.api import create_app

    try:
        _init_logfire()
        settings = get_settings()
        host = args.host or settings.api.host
        port = args.port or settings.api.port

        print(f"\n=== Scenarist API v{__version__} on http://{host}:{port} ===\n")
        uvicorn.run(create_app(settings), host=host, port=port)
        return 0

    except KeyboardInterrupt:
        print("\n\nReceived interrupt signal. Shutting down...\n")
        return 0
    except Exception as e:
        logger.error(f"Failed to start server: {e}", exc_info=True)
        print(f"\nFailed to start: {e}\n")
        return 1


def cmd_schedule(args: argparse.Namespace) -> int:
    """Start the periodic prediction refresh scheduler."""
    try:
        _init_logfire()

        if args.debug:
            logging.getLogger().setLevel(logging.DEBUG)

        settings = get_settings()
        print("\n=== Scenarist Refresh Scheduler ===\n")
        print(f"Version: {__version__}")
        print(f"Events: {len(settings.scheduler.refresh_event_ids)}")
        print(f"Data Directory: {settings.data_dir}\n")

        start_scheduler(settings)
        return 0

    except KeyboardInterrupt:
        print("\n\nReceived interrupt signal. Shutting down...\n")
        return 0
    except Exception as e:
        logger.error(f"Failed to start scheduler: {e}", exc_info=True)
        print(f"\nFailed to start: {e}\n")
        return 1


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Scenarist: probabilistic scenario predictions for events",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Scenarist {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parser_init = subparsers.add_parser(
        "init",
        help="Initialize data directory and configuration files",
    )
    parser_init.set_defaults(func=cmd_init)

    parser_config = subparsers.add_parser(
        "config",
        help="Display merged configuration",
    )
    parser_config.set_defaults(func=cmd_config)

    parser_predict = subparsers.add_parser(
        "predict",
        help="Generate a scenario prediction for one event",
    )
    parser_predict.add_argument("event_id", help="Event ID to predict")
    parser_predict.add_argument("--tier", choices=TIER_CHOICES, help="Prediction tier")
    parser_predict.add_argument(
        "--force-refresh",
        action="store_true",
        help="Bypass the cache and regenerate",
    )
    parser_predict.set_defaults(func=cmd_predict)

    parser_batch = subparsers.add_parser(
        "batch",
        help="Generate predictions for several events",
    )
    parser_batch.add_argument("event_ids", nargs="+", help="Event IDs to predict")
    parser_batch.add_argument("--tier", choices=TIER_CHOICES, help="Prediction tier")
    parser_batch.add_argument(
        "--force-refresh",
        action="store_true",
        help="Bypass the cache and regenerate",
    )
    parser_batch.set_defaults(func=cmd_batch)

    parser_history = subparsers.add_parser(
        "history",
        help="List stored predictions for an event",
    )
    parser_history.add_argument("event_id", help="Event ID")
    parser_history.add_argument("--limit", type=int, default=10, help="Max records to show")
    parser_history.set_defaults(func=cmd_history)

    parser_serve = subparsers.add_parser(
        "serve",
        help="Start the HTTP API server",
    )
    parser_serve.add_argument("--host", help="Bind host (default from config)")
    parser_serve.add_argument("--port", type=int, help="Bind port (default from config)")
    parser_serve.set_defaults(func=cmd_serve)

    parser_schedule = subparsers.add_parser(
        "schedule",
        help="Start the periodic prediction refresh scheduler",
    )
    parser_schedule.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser_schedule.set_defaults(func=cmd_schedule)

    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
