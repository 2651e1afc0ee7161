"""Optional OpenTelemetry tracing for Common Ground.

Tracing turns on only when OTEL_EXPORTER_OTLP_ENDPOINT is configured. Without
it every room action runs inside a no-op span and the OpenTelemetry packages
are never imported.
"""

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from .version import get_version_info

logger = logging.getLogger(__name__)

# Environment configuration
OTEL_EXPORTER_OTLP_ENDPOINT = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
OTEL_SERVICE_NAME = os.getenv("OTEL_SERVICE_NAME", "common-ground")

# Module-level state
_tracer = None
_telemetry_enabled = False


def is_telemetry_enabled() -> bool:
    return _telemetry_enabled


def _configure_tracer() -> bool:
    global _tracer, _telemetry_enabled

    try:
        from opentelemetry import trace
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
            OTLPSpanExporter,
        )
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
    except ImportError as e:
        logger.warning("Tracing requested but OpenTelemetry is not installed: %s", e)
        return False

    info = get_version_info()
    provider = TracerProvider(
        resource=Resource.create(
            {
                "service.name": OTEL_SERVICE_NAME,
                "service.version": info.version,
                "vcs.commit": info.git_commit_short,
            }
        )
    )
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=OTEL_EXPORTER_OTLP_ENDPOINT))
    )
    trace.set_tracer_provider(provider)

    _tracer = trace.get_tracer("common_ground.rooms")
    _telemetry_enabled = True
    logger.info(
        "OpenTelemetry initialized. Endpoint: %s, Service: %s",
        OTEL_EXPORTER_OTLP_ENDPOINT,
        OTEL_SERVICE_NAME,
    )
    return True


def setup_telemetry(app: Any = None) -> bool:
    """Turn on tracing when an OTLP endpoint is configured.

    Safe to call more than once; the tracer provider is installed only the
    first time. When ``app`` is given, its HTTP and WebSocket routes are
    instrumented as well.

    Returns:
        True if tracing is active after the call
    """
    if not OTEL_EXPORTER_OTLP_ENDPOINT:
        logger.debug("OpenTelemetry disabled: OTEL_EXPORTER_OTLP_ENDPOINT not configured")
        return False

    if not _telemetry_enabled and not _configure_tracer():
        return False

    if app is not None:
        try:
            from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
        except ImportError:
            logger.warning("FastAPI instrumentation package not available")
        else:
            FastAPIInstrumentor.instrument_app(app)
            logger.info("FastAPI instrumentation enabled")
    return True


class _NoOpSpan:
    """Stand-in span used while tracing is disabled."""

    def set_attribute(self, key: str, value: Any) -> None:
        pass

    def record_exception(self, exception: BaseException) -> None:
        pass


@contextmanager
def trace_room_action(room_id: str, action_type: str, user_id: str | None = None) -> Iterator[Any]:
    """Span around one session transition in a room.

    A rejected action (any ``ValueError`` raised by the reducer) is marked on
    the span and re-raised.

    Yields:
        The span object (real or no-op)
    """
    if not _telemetry_enabled or _tracer is None:
        yield _NoOpSpan()
        return

    with _tracer.start_as_current_span(f"room.{action_type.lower()}") as span:
        span.set_attribute("room.id", room_id)
        span.set_attribute("action.type", action_type)
        if user_id:
            span.set_attribute("participant.id", user_id)
        try:
            yield span
        except ValueError as e:
            span.set_attribute("action.rejected", True)
            span.record_exception(e)
            raise
