"""Tracing: one process-wide provider, exporters chosen from settings."""

from __future__ import annotations

from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from dxcrm import __version__
from dxcrm.context import clean_correlation_id
from dxcrm.core.config import Settings, get_settings


_provider: TracerProvider | None = None
_exporters_installed = False


def _provider_for(settings: Settings) -> TracerProvider:
    global _provider

    # the global provider can only be set once per process
    if _provider is None:
        _provider = TracerProvider(
            resource=Resource.create(
                {
                    "service.name": settings.otel_service_name,
                    "service.version": __version__,
                    "deployment.environment": settings.app_env,
                }
            )
        )
        trace.set_tracer_provider(_provider)
    return _provider


def setup_otel(settings: Settings) -> TracerProvider | None:
    global _exporters_installed

    if not settings.otel_enabled:
        return None

    provider = _provider_for(settings)
    if _exporters_installed:
        return provider

    if settings.otel_exporter_otlp_endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otel_exporter_otlp_endpoint))
        )
    if settings.otel_console_exporter:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    _exporters_installed = True
    return provider


def setup_inmemory_otel() -> InMemorySpanExporter:
    exporter = InMemorySpanExporter()
    _provider_for(get_settings()).add_span_processor(SimpleSpanProcessor(exporter))
    return exporter


def get_tracer(name: str) -> trace.Tracer:
    return trace.get_tracer(name, __version__)


def tag_request_span(span: Any, *, correlation_id: str | None, request_id: str | None = None) -> None:
    if span is None or not span.is_recording():
        return
    if correlation_id:
        span.set_attribute("correlation_id", correlation_id)
    if request_id:
        span.set_attribute("request_id", request_id)


def server_request_hook(span: Any, scope: dict[str, Any]) -> None:
    """Tag the server span before any middleware runs, so rejected requests still carry the caller's id."""
    headers = dict(scope.get("headers") or [])
    raw = headers.get(b"x-correlation-id")
    if raw:
        tag_request_span(span, correlation_id=clean_correlation_id(raw.decode("latin-1")))
    client = scope.get("client")
    if client and span is not None and span.is_recording():
        span.set_attribute("client.address", str(client[0]))
