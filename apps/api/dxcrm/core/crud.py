from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel
from sqlalchemy import ColumnElement, Select, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dxcrm.core.clock import as_utc, day_end, day_start
from dxcrm.core.errors import NotFound, ValidationFailed


def ilike_any(term: str, *columns: Any) -> ColumnElement[bool]:
    pattern = f"%{term.strip()}%"
    return or_(*(column.ilike(pattern) for column in columns))


def apply_sort(query: Select[Any], sortable: dict[str, Any], sort_by: str, sort_dir: str) -> Select[Any]:
    column = sortable.get(sort_by)
    if column is None:
        raise ValidationFailed(f"Cannot sort by '{sort_by}'", allowed=sorted(sortable))
    direction = sort_dir.lower()
    if direction not in {"asc", "desc"}:
        raise ValidationFailed("sortDir must be 'asc' or 'desc'")
    return query.order_by(column.asc() if direction == "asc" else column.desc())


def apply_date_range(query: Select[Any], column: Any, start: date | None, end: date | None) -> Select[Any]:
    if start is not None:
        query = query.where(column >= day_start(start))
    if end is not None:
        query = query.where(column <= day_end(end))
    return query


def get_or_404(session: Session, model: type[Any], key: str, label: str) -> Any:
    entity = session.get(model, key)
    if entity is None:
        raise NotFound(f"{label} not found")
    return entity


def ensure_reference(session: Session, model: type[Any], key: str | None, label: str) -> None:
    if key is not None and session.get(model, key) is None:
        raise ValidationFailed(f"{label} '{key}' does not exist")


def ensure_key_free(session: Session, model: type[Any], key: str, label: str) -> None:
    if session.get(model, key) is not None:
        raise ValidationFailed(f"{label} '{key}' already exists")


def ensure_name_free(session: Session, model: type[Any], name: str, label: str, *, exclude: str | None = None) -> None:
    query = select(model.code).where(model.name == name)
    if exclude is not None:
        query = query.where(model.code != exclude)
    if session.scalar(query.limit(1)) is not None:
        raise ValidationFailed(f"{label} name '{name}' already exists")


def normalize_values(values: dict[str, Any]) -> dict[str, Any]:
    return {key: as_utc(value) if isinstance(value, datetime) else value for key, value in values.items()}


def collect_changes(payload: BaseModel, *, required: tuple[str, ...] = ()) -> dict[str, Any]:
    changes = normalize_values(payload.model_dump(exclude_unset=True))
    if not changes:
        raise ValidationFailed("No data to update")
    blank = [name for name in required if name in changes and changes[name] in (None, "")]
    if blank:
        raise ValidationFailed(f"Fields cannot be empty: {', '.join(blank)}")
    return changes


def commit(session: Session) -> None:
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise ValidationFailed("Record conflicts with existing data") from exc


