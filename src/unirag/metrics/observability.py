"""Observability helpers for UniRAG."""

from __future__ import annotations

import logging
import time

import structlog
from prometheus_client import Counter, Histogram

_logger_configured = False


def configure_logging(level: int | str = logging.INFO) -> None:
    global _logger_configured  # noqa: PLW0603 - module-level guard
    if _logger_configured:
        return
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format="%(message)s")
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _logger_configured = True


def bind_correlation_id(correlation_id: str) -> None:
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_correlation_id() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str = "unirag") -> structlog.BoundLogger:
    configure_logging()
    return structlog.get_logger(name)


class PipelineMetrics:
    """Prometheus metrics for ingestion and the model gateway."""

    ingestion_latency = Histogram(
        "unirag_ingestion_duration_seconds",
        "Time spent reading an upload into memory.",
        buckets=(0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.5),
    )
    ingestion_bytes = Histogram(
        "unirag_ingestion_bytes",
        "Size of ingested files in bytes.",
        buckets=(1024, 64 * 1024, 512 * 1024, 1024**2, 5 * 1024**2, 25 * 1024**2),
    )
    gateway_latency = Histogram(
        "unirag_gateway_duration_seconds",
        "Time spent waiting on the generative model.",
        buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
    )
    gateway_failures = Counter(
        "unirag_gateway_failures_total",
        "Generative model calls that did not yield an answer.",
        ["reason"],
    )
    gateway_empty_responses = Counter(
        "unirag_gateway_empty_responses",
        "Successful model replies that carried no answer text.",
    )

    @classmethod
    def observe_ingestion(cls, duration_seconds: float, size_bytes: int) -> None:
        cls.ingestion_latency.observe(duration_seconds)
        cls.ingestion_bytes.observe(size_bytes)

    @classmethod
    def observe_gateway(cls, duration_seconds: float) -> None:
        cls.gateway_latency.observe(duration_seconds)

    @classmethod
    def record_gateway_failure(cls, reason: str) -> None:
        cls.gateway_failures.labels(reason=reason).inc()

    @classmethod
    def record_empty_response(cls) -> None:
        cls.gateway_empty_responses.inc()


class TimedSection:
    """Context manager capturing elapsed time for metrics."""

    def __init__(self, callback) -> None:
        self._callback = callback
        self._start = 0.0

    def __enter__(self) -> "TimedSection":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: D401
        duration = time.perf_counter() - self._start
        self._callback(duration)


__all__ = [
    "PipelineMetrics",
    "TimedSection",
    "bind_correlation_id",
    "clear_correlation_id",
    "configure_logging",
    "get_logger",
]
