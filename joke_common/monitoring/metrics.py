"""Prometheus metrics for the joke pipeline services."""

import logging

from fastapi import FastAPI
from prometheus_client import Counter, make_asgi_app

logger = logging.getLogger(__name__)

JOKES_SUBMITTED = Counter(
    "joke_pipeline_jokes_submitted_total",
    "Number of jokes enqueued on the SUBMITTED queue",
)

MODERATION_DECISIONS = Counter(
    "joke_pipeline_moderation_decisions_total",
    "Moderation decisions taken",
    ["decision"],
)

ETL_MESSAGES = Counter(
    "joke_pipeline_etl_messages_total",
    "Moderated messages handled by the ETL worker",
    ["result"],
)

TYPE_EVENTS_PUBLISHED = Counter(
    "joke_pipeline_type_events_published_total",
    "type_update events broadcast by the ETL worker",
)

TYPE_EVENTS_APPLIED = Counter(
    "joke_pipeline_type_events_applied_total",
    "type_update events received by a Type Cache",
    ["outcome"],
)


def mount_metrics(app: FastAPI, enabled: bool = True) -> None:
    """Expose the default registry on ``/metrics``."""
    if not enabled:
        logger.info("Metrics endpoint disabled")
        return
    app.mount("/metrics", make_asgi_app())
