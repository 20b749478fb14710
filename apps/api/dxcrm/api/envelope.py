from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from pydantic import BaseModel


T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    message: str
    data: T


class ListMetadata(BaseModel):
    total: int


class ListEnvelope(BaseModel, Generic[T]):
    success: bool = True
    message: str
    data: list[T]
    metadata: ListMetadata


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class PagedEnvelope(BaseModel, Generic[T]):
    success: bool = True
    message: str
    data: list[T]
    pagination: Pagination


class Deleted(BaseModel):
    success: bool = True
    message: str


def ok(message: str, data: Any) -> dict[str, Any]:
    return {"success": True, "message": message, "data": data}


def listed(message: str, rows: Sequence[Any]) -> dict[str, Any]:
    return {"success": True, "message": message, "data": list(rows), "metadata": {"total": len(rows)}}


def paged(message: str, rows: Sequence[Any], *, page: int, limit: int, total: int) -> dict[str, Any]:
    pages = math.ceil(total / limit) if limit else 0
    return {
        "success": True,
        "message": message,
        "data": list(rows),
        "pagination": {"page": page, "limit": limit, "total": total, "pages": pages},
    }


def deleted(message: str) -> dict[str, Any]:
    return {"success": True, "message": message}
