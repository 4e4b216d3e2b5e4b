"""Logging and observability setup using Pydantic Logfire."""

import logging
import sys

from lgtm_reviewer.config.settings import Settings, settings as default_settings

NULL_LOGGER_NAME = "lgtm_reviewer.null"


def setup_logging(settings: Settings | None = None) -> None:
    """Configure application logging.

    Log lines go to stderr: stdout may carry a host protocol.
    Reduces noise from verbose third-party libraries.
    """
    settings = settings or default_settings
    log_level = getattr(logging, settings.log_level)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
        force=True,
    )

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("google_genai").setLevel(logging.WARNING)


def setup_observability(settings: Settings | None = None) -> None:
    """Setup logging and observability with Logfire instrumentation.

    Configures standard logging and optionally enables Logfire for
    distributed tracing if a token is configured.
    """
    settings = settings or default_settings
    setup_logging(settings)

    logger = logging.getLogger(__name__)

    if settings.logfire_token:
        try:
            import logfire

            logfire.configure(token=settings.logfire_token)
            # google-genai talks to the API over httpx
            logfire.instrument_httpx()

            logger.info(
                f"Logfire observability enabled for {settings.environment} environment"
            )

        except ImportError:
            logger.warning(
                "Logfire package not installed. Install with: pip install 'lgtm-reviewer[observability]'"
            )
        except Exception as e:
            logger.error(f"Failed to setup Logfire observability: {e}")
    else:
        logger.info("Logfire token not configured, skipping observability setup")


def get_null_logger() -> logging.Logger:
    """Return a logger that discards everything, for tests and quiet embedding."""
    logger = logging.getLogger(NULL_LOGGER_NAME)
    if not any(isinstance(h, logging.NullHandler) for h in logger.handlers):
        logger.addHandler(logging.NullHandler())
    logger.propagate = False
    logger.disabled = True
    return logger
