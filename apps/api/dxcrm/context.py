"""Request-scoped identifiers shared by logging, error envelopes and tracing."""

from __future__ import annotations

import re
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

# ids travel in headers and log lines, so only short token-like values are accepted
_CORRELATION_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def clean_correlation_id(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value if _CORRELATION_ID_RE.match(value) else None


def set_correlation_id(value: str | None) -> Token[str | None]:
    return correlation_id_var.set(value)


def reset_correlation_id(token: Token[str | None]) -> None:
    correlation_id_var.reset(token)


def get_correlation_id() -> str | None:
    return correlation_id_var.get()


def get_request_id() -> str | None:
    return request_id_var.get()


@contextmanager
def request_scope(correlation_id: str, request_id: str) -> Iterator[None]:
    correlation_token = correlation_id_var.set(correlation_id)
    request_token = request_id_var.set(request_id)
    try:
        yield
    finally:
        request_id_var.reset(request_token)
        correlation_id_var.reset(correlation_token)


def get_log_context() -> dict[str, str | None]:
    return {"correlation_id": get_correlation_id(), "request_id": get_request_id()}
