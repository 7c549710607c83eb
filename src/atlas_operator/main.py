"""Main entry point for the Atlas Operator.

Run with ``kopf run -m atlas_operator.main --all-namespaces``.
"""

from __future__ import annotations

from typing import Any

import kopf

from . import handlers  # noqa: F401
from . import health
from . import logging as structured_logging
from .handlers.shared import get_config
from .tracing import initialize_tracing


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure the operator."""
    # Set up structured JSON logging
    structured_logging.setup_structured_logging()
    initialize_tracing()

    config = get_config()

    # Use AnnotationsProgressStorage to avoid conflicts with status updates
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()

    settings.posting.level = 0
    settings.networking.request_timeout = 30.0
    settings.execution.max_workers = config.max_concurrent_reconciles

    # Start metrics HTTP server with health check endpoints
    health.start_metrics_server(config.metrics_port)
