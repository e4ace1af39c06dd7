"""Logfire cloud observability initialization and instrumentation."""

import logging

import logfire

from scenarist import __version__
from scenarist.config import Settings

logger = logging.getLogger(__name__)


def initialize_logfire(settings: Settings) -> None:
    """
    Initialize Logfire with instrumentation for the prediction service.

    Must be called ONCE at application startup, BEFORE any pipeline code runs.

    This function configures Logfire cloud tracking and instruments:
    - PydanticAI agents (historical analogues, scenario generation)
    - HTTPX clients (LLM provider calls)
    - Python logging (bridges to Logfire)

    Without a token, Logfire is configured locally with no export and no
    console output so that pipeline spans are cheap no-ops.

    Args:
        settings: Application settings containing Logfire token
    """
    if not settings.logfire_token:
        logfire.configure(send_to_logfire=False, console=False)
        logger.warning("Logfire token not set - observability disabled")
        return

    try:
        logfire.configure(
            token=settings.logfire_token,
            service_name="scenarist",
            service_version=__version__,
        )

        logfire.instrument_pydantic_ai()
        logfire.instrument_httpx()

        root_logger = logging.getLogger()
        root_logger.addHandler(logfire.LogfireLoggingHandler())

        logger.info("✓ Logfire cloud tracking initialized")

    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")
        # Continue running - observability is optional
