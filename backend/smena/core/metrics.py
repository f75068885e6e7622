"""Prometheus instrumentation helpers for the FastAPI application."""

from __future__ import annotations

import os

from fastapi import FastAPI
from fastapi.responses import Response
from prometheus_client import REGISTRY, CollectorRegistry, Counter, multiprocess
from prometheus_client.exposition import CONTENT_TYPE_LATEST, generate_latest
from prometheus_fastapi_instrumentator import Instrumentator, metrics

AUTH_FAILURES = Counter(
    "smena_auth_failures_total",
    "Rejected Telegram Mini App authentication attempts.",
    labelnames=("cause",),
)

# Built once per process; prometheus_client refuses to register a collector twice.
_DEFAULT_HTTP_METRICS = metrics.default(
    should_only_respect_2xx_for_highr=True,
    should_exclude_streaming_duration=True,
)


def setup_metrics(app: FastAPI) -> None:
    """Attach Prometheus instrumentation and expose the /metrics endpoint."""

    instrumentator = Instrumentator(
        should_group_status_codes=False,
        should_ignore_untemplated=True,
        should_respect_env_var=False,
        excluded_handlers=[r"/metrics"],
    )
    instrumentator.add(_DEFAULT_HTTP_METRICS)
    instrumentator.instrument(app)

    @app.get("/metrics", include_in_schema=False, tags=["observability"])
    async def metrics_endpoint() -> Response:
        registry: CollectorRegistry = REGISTRY
        if "PROMETHEUS_MULTIPROC_DIR" in os.environ:
            registry = CollectorRegistry()
            multiprocess.MultiProcessCollector(registry)
        return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)


__all__ = ["AUTH_FAILURES", "setup_metrics"]
