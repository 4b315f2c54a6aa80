"""Logfire cloud observability initialization."""

import logging

import logfire

from azpipes import __version__
from azpipes.config import Settings

logger = logging.getLogger(__name__)


def initialize_logfire(settings: Settings) -> None:
    """
    Initialize Logfire for one CLI invocation.

    Instruments:
    - HTTPX clients (Azure DevOps Pipelines API)
    - Python logging (bridges to Logfire)

    Does nothing when no Logfire token is configured. Failures are logged and
    never stop the command.
    """
    if not settings.logfire_token:
        logger.debug("Logfire token not set - observability disabled")
        return

    try:
        logfire.configure(
            token=settings.logfire_token,
            service_name="azpipes",
            service_version=__version__,
            environment=settings.organization or "default",
        )

        logfire.instrument_httpx()

        root_logger = logging.getLogger()
        root_logger.addHandler(logfire.LogfireLoggingHandler())

        logger.info("✓ Logfire cloud tracking initialized")

    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")
