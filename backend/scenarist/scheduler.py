"""Job scheduler using APScheduler."""

import asyncio
import logging
from typing import NoReturn

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from scenarist.config import Settings
from scenarist.factory import open_prediction_engine
from scenarist.prediction.models import PredictionResponse

logger = logging.getLogger(__name__)


async def refresh_predictions(settings: Settings) -> list[PredictionResponse]:
    """Force-regenerate predictions for every configured event."""
    event_ids = settings.scheduler.refresh_event_ids
    if not event_ids:
        logger.info("No events configured for refresh")
        return []

    async with open_prediction_engine(settings) as engine:
        responses = await engine.generate_many(
            event_ids,
            tier=settings.scheduler.refresh_tier,
            force_refresh=True,
        )

    for event_id, response in zip(event_ids, responses):
        if not response.success:
            logger.warning(f"Refresh failed for {event_id}: {response.error}")
    return responses


def refresh_job(settings: Settings) -> None:
    """Synchronous wrapper run by the scheduler thread."""
    try:
        asyncio.run(refresh_predictions(settings))
    except Exception as e:
        logger.error(f"Prediction refresh job failed: {e}", exc_info=True)


def start_scheduler(settings: Settings) -> NoReturn:
    """Start the APScheduler with the prediction refresh job."""
    scheduler = BlockingScheduler()

    scheduler.add_job(
        refresh_job,
        IntervalTrigger(minutes=settings.scheduler.refresh_interval_minutes),
        args=[settings],
        id="prediction-refresh",
        name="Predictions: Batch Refresh",
        max_instances=1,
    )
    logger.info(
        f"Registered job: Prediction Refresh "
        f"({len(settings.scheduler.refresh_event_ids)} events, "
        f"every {settings.scheduler.refresh_interval_minutes} min)"
    )

    try:
        logger.info("✓ Scheduler starting...")
        logger.info(f"✓ {len(scheduler.get_jobs())} jobs registered")
        logger.info("Press Ctrl+C to stop\n")

        scheduler.start()

    except (KeyboardInterrupt, SystemExit):
        logger.info("\nReceived interrupt signal")
        scheduler.shutdown()
        logger.info("✓ Scheduler stopped cleanly")
