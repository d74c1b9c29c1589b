"""Sentry error tracking and tracing integration."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import sentry_sdk

from fuzzysearch.core.tracing import RequestTracer

logger = logging.getLogger(__name__)


def init_sentry(
    dsn: str | None,
    environment: str = "production",
    release: str | None = None,
    traces_sample_rate: float = 1.0,
) -> None:
    """Initialize Sentry SDK.

    Args:
        dsn: Sentry DSN (Data Source Name). If None, Sentry is not initialized.
        environment: Deployment environment (e.g., "production", "staging", "development")
        release: Optional release version string
        traces_sample_rate: Fraction of transactions to send for performance monitoring
    """
    if not dsn:
        logger.info("Sentry DSN not configured, skipping initialization")
        return

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=release,
        traces_sample_rate=traces_sample_rate,
        sample_rate=1.0,
    )

    logger.info(f"Sentry initialized (environment: {environment})")


def add_fuzzysearch_breadcrumb(
    operation: str,
    data: dict[str, Any] | None = None,
    level: str = "info",
) -> None:
    """Add a breadcrumb for a FuzzySearch operation.

    Args:
        operation: Name of the operation (e.g., "lookup_by_hash", "image_search")
        data: Optional dictionary of contextual data
        level: Severity level ("debug", "info", "warning", "error")
    """
    sentry_sdk.add_breadcrumb(
        category="fuzzysearch",
        message=operation,
        data=data or {},
        level=level,
    )


def capture_exception(
    error: Exception,
    context: dict[str, Any] | None = None,
) -> None:
    """Capture an exception and send it to Sentry.

    Args:
        error: The exception to capture
        context: Optional dictionary of contextual data to attach
    """
    if context:
        sentry_sdk.set_context("fuzzysearch", context)

    sentry_sdk.capture_exception(error)


class SentryTracer(RequestTracer):
    """Tracer that wraps each API call in a Sentry ``http.client`` span."""

    @contextmanager
    def span(self, operation: str, data: dict[str, Any] | None = None) -> Iterator[None]:
        data = data or {}
        add_fuzzysearch_breadcrumb(operation, data)
        with sentry_sdk.start_span(op="http.client", name=f"fuzzysearch.{operation}") as span:
            for key, value in data.items():
                span.set_data(key, value)
            try:
                yield
            except Exception as e:
                add_fuzzysearch_breadcrumb(
                    f"{operation}_failed", {"error": type(e).__name__}, level="error"
                )
                raise

    def inject_headers(self, headers: dict[str, str]) -> dict[str, str]:
        traceparent = sentry_sdk.get_traceparent()
        if traceparent:
            headers["sentry-trace"] = traceparent
        baggage = sentry_sdk.get_baggage()
        if baggage:
            headers["baggage"] = baggage
        return headers
