"""
Sentry initialization for centralized error tracking.
Observes reality, never controls logic.
"""
import logging
from typing import Dict, Any

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from catalog.config import config
from catalog.logger import logger


def initialize_sentry():
    """Initialize Sentry SDK if DSN is configured."""
    if not config.has_sentry:
        logger.info("Sentry not configured, skipping initialization")
        return

    try:
        sentry_sdk.init(
            dsn=config.SENTRY_DSN,
            environment=config.ENVIRONMENT,
            integrations=[
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)
            ],
            traces_sample_rate=0.1,
            send_default_pii=False,
            debug=False,
            before_send=_enrich_sentry_event
        )

        logger.info("Sentry initialized for error tracking")

    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}")


def _enrich_sentry_event(event: Dict[str, Any], hint: Dict[str, Any]) -> Dict[str, Any]:
    """Tag events with system context and group by exception type."""
    event.setdefault("tags", {})
    event["tags"]["system"] = "amazon-catalog"
    event["tags"]["environment"] = config.ENVIRONMENT

    if "exception" in event:
        exceptions = event["exception"].get("values", [])
        if exceptions:
            exc = exceptions[0]
            event["fingerprint"] = [
                "{{ default }}",
                exc.get("type", "Unknown"),
                exc.get("module", "unknown")
            ]

    return event


def capture_validation_error(asin: str, operation: str, error: str):
    """Report a per-item failure as a warning."""
    if not config.has_sentry:
        return

    with sentry_sdk.new_scope() as scope:
        scope.set_tag("error_type", "validation")
        scope.set_tag("operation", operation)
        scope.set_extra("asin", asin)
        scope.set_extra("error", error)
        scope.set_level("warning")

        sentry_sdk.capture_message(
            f"{operation} failed for ASIN: {asin}",
            "warning"
        )
