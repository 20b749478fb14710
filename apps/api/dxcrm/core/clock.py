from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

from dxcrm.core.config import get_settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_display_time(value: datetime | None) -> str | None:
    if value is None:
        return None
    offset = timezone(timedelta(hours=get_settings().display_utc_offset_hours))
    return as_utc(value).astimezone(offset).strftime("%d/%m/%Y %H:%M:%S")


def day_start(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def day_end(value: date) -> datetime:
    return datetime.combine(value, time.max, tzinfo=timezone.utc)
