from __future__ import annotations

import uuid

from opentelemetry import trace
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from dxcrm.context import clean_correlation_id, request_scope
from dxcrm.otel import tag_request_span


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Binds the caller's correlation id (or a fresh one) and a per-request id.

    A malformed inbound ``x-correlation-id`` is replaced rather than echoed.
    Both ids are returned as ``x-correlation-id`` and ``x-request-id``.
    """

    async def dispatch(self, request: Request, call_next):  # type: ignore[no-untyped-def]
        correlation_id = clean_correlation_id(request.headers.get("x-correlation-id")) or str(uuid.uuid4())
        request_id = uuid.uuid4().hex
        request.state.correlation_id = correlation_id
        request.state.request_id = request_id
        tag_request_span(trace.get_current_span(), correlation_id=correlation_id, request_id=request_id)

        with request_scope(correlation_id, request_id):
            response = await call_next(request)

        response.headers["x-correlation-id"] = correlation_id
        response.headers["x-request-id"] = request_id
        return response
