"""Main entry point for the STACKIT Cluster API Operator."""

from __future__ import annotations

import logging
import os
from typing import Any

import kopf

from . import handlers  # noqa: F401
from . import health
from . import logging as structured_logging
from . import tracing
from .constants import API_GROUP, FINALIZER
from .handlers.base import STOP_EVENT
from .utils.kube import REQUEST_TIMEOUT, load_kube_config

logger = logging.getLogger(__name__)


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure the operator."""
    structured_logging.setup_structured_logging()
    tracing.initialize_tracing()
    load_kube_config()

    settings.persistence.finalizer = FINALIZER
    # Keep kopf's bookkeeping out of status so it never collides with scope patches
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage(prefix=API_GROUP)
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage(
        prefix=API_GROUP,
        key="last-handled-configuration",
    )

    settings.posting.level = logging.WARNING
    settings.networking.request_timeout = REQUEST_TIMEOUT
    settings.execution.max_workers = int(os.getenv("MAX_WORKERS", "4"))

    # Start metrics HTTP server with health check endpoints
    metrics_port = int(os.getenv("METRICS_PORT", "8080"))
    health.start_server(metrics_port)
    health.mark_ready()
    logger.info(f"Operator started, serving metrics on port {metrics_port}")


@kopf.on.cleanup()
def shutdown(**_: Any) -> None:
    """Stop in-flight reconciles at their next step."""
    health.mark_not_ready()
    STOP_EVENT.set()


def main() -> None:
    """Run the operator, scoped to WATCH_NAMESPACE when it is set."""
    namespace = os.getenv("WATCH_NAMESPACE")
    if namespace:
        kopf.run(namespaces=[namespace])
    else:
        kopf.run(clusterwide=True)


if __name__ == "__main__":
    main()
