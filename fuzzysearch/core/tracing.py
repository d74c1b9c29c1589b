"""Request tracing strategy.

The client calls the tracer around every request. The default tracer does
nothing; ``fuzzysearch.core.sentry.SentryTracer`` emits real spans when the
``trace`` extra is installed.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any


class RequestTracer:
    """No-op tracer used when tracing is disabled."""

    @contextmanager
    def span(self, operation: str, data: dict[str, Any] | None = None) -> Iterator[None]:
        """Wrap a single API call.

        Args:
            operation: Client operation name (e.g., "lookup_by_hash")
            data: Optional dictionary of contextual data
        """
        yield

    def inject_headers(self, headers: dict[str, str]) -> dict[str, str]:
        """Return headers with trace propagation entries added."""
        return headers


NULL_TRACER = RequestTracer()
