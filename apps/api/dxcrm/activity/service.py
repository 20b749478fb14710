from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session, selectinload

from dxcrm.activity.models import UserActivityLog
from dxcrm.activity.schemas import (
    ActiveUser,
    ActivityRead,
    ActivityStats,
    ActivityTypeCount,
    ActivityUser,
    DailyLoginCount,
)
from dxcrm.context import get_correlation_id
from dxcrm.core.clock import day_end, day_start, format_display_time, utcnow
from dxcrm.identity.models import Account
from dxcrm.metrics import observe_activity_log_failure
from dxcrm.otel import get_tracer


logger = logging.getLogger("dxcrm.activity")
tracer = get_tracer(__name__)

LOGIN = "login"
FAILED_LOGIN = "failed_login"
UNKNOWN_USER = "unknown"
STATS_WINDOW_DAYS = 30


def log_user_activity(
    session: Session,
    user_id: str,
    activity_type: str,
    *,
    ip_address: str | None = None,
    user_agent: str | None = None,
    details: str | None = None,
) -> UserActivityLog | None:
    """Append an activity row; never raises, returns ``None`` when the write fails."""
    entry = UserActivityLog(
        user_id=user_id,
        activity_type=activity_type,
        ip_address=ip_address,
        user_agent=user_agent,
        details=details,
        timestamp=utcnow(),
    )
    with tracer.start_as_current_span("activity.log") as span:
        span.set_attribute("user_id", user_id)
        span.set_attribute("activity_type", activity_type)
        span.set_attribute("correlation_id", get_correlation_id() or "")
        try:
            session.add(entry)
            session.commit()
            session.refresh(entry)
        except Exception as exc:
            session.rollback()
            span.set_attribute("activity.dropped", True)
            observe_activity_log_failure()
            logger.error(
                "activity.log_failed",
                exc_info=True,
                extra={"user_id": user_id, "activity_type": activity_type, "error": str(exc)},
            )
            return None
        return entry


def utc_day(session: Session, column: Any) -> Any:
    """Calendar day of ``column`` in UTC, whatever the connection time zone is."""
    if session.get_bind().dialect.name == "postgresql":
        return func.date(func.timezone("UTC", column))
    # SQLite stores the UTC wall clock as text
    return func.date(column)


def _to_read(entry: UserActivityLog) -> ActivityRead:
    return ActivityRead(
        id=entry.id,
        user_id=entry.user_id,
        activity_type=entry.activity_type,
        ip_address=entry.ip_address,
        user_agent=entry.user_agent,
        details=entry.details,
        timestamp=format_display_time(entry.timestamp),
        user=ActivityUser.model_validate(entry.account) if entry.account is not None else None,
    )


@dataclass(slots=True)
class ActivityPage:
    rows: list[ActivityRead]
    total: int


class ActivityHistoryService:
    def _page(self, session: Session, query: Select[Any], page: int, limit: int) -> ActivityPage:
        total = session.scalar(select(func.count()).select_from(query.order_by(None).subquery())) or 0
        entries = session.scalars(
            query.options(selectinload(UserActivityLog.account))
            .order_by(UserActivityLog.timestamp.desc(), UserActivityLog.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()
        return ActivityPage(rows=[_to_read(entry) for entry in entries], total=total)

    def user_history(
        self,
        session: Session,
        user_id: str,
        *,
        page: int = 1,
        limit: int = 20,
        activity_type: str | None = None,
    ) -> ActivityPage:
        query = select(UserActivityLog).where(UserActivityLog.user_id == user_id)
        if activity_type:
            query = query.where(UserActivityLog.activity_type == activity_type)
        return self._page(session, query, page, limit)

    def all_history(
        self,
        session: Session,
        *,
        page: int = 1,
        limit: int = 20,
        user_id: str | None = None,
        activity_type: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> ActivityPage:
        query = select(UserActivityLog)
        if user_id:
            query = query.where(UserActivityLog.user_id == user_id)
        if activity_type:
            query = query.where(UserActivityLog.activity_type == activity_type)
        if start_date is not None:
            query = query.where(UserActivityLog.timestamp >= day_start(start_date))
        if end_date is not None:
            query = query.where(UserActivityLog.timestamp <= day_end(end_date))
        return self._page(session, query, page, limit)

    def stats(self, session: Session, now: datetime | None = None) -> ActivityStats:
        since = (now or utcnow()) - timedelta(days=STATS_WINDOW_DAYS)
        in_window = UserActivityLog.timestamp >= since
        entry_count = func.count(UserActivityLog.id)

        by_type = session.execute(
            select(UserActivityLog.activity_type, entry_count)
            .where(in_window)
            .group_by(UserActivityLog.activity_type)
            .order_by(entry_count.desc())
        ).all()

        day = utc_day(session, UserActivityLog.timestamp)
        logins = session.execute(
            select(day, entry_count)
            .where(in_window, UserActivityLog.activity_type == LOGIN)
            .group_by(day)
            .order_by(day)
        ).all()

        top_users = session.execute(
            select(UserActivityLog.user_id, Account.full_name, Account.username, entry_count)
            .outerjoin(Account, Account.user_id == UserActivityLog.user_id)
            .where(in_window)
            .group_by(UserActivityLog.user_id, Account.full_name, Account.username)
            .order_by(entry_count.desc())
            .limit(5)
        ).all()

        recent = session.scalars(
            select(UserActivityLog)
            .options(selectinload(UserActivityLog.account))
            .order_by(UserActivityLog.timestamp.desc(), UserActivityLog.id.desc())
            .limit(20)
        ).all()

        return ActivityStats(
            activity_by_type=[ActivityTypeCount(activity_type=kind, count=count) for kind, count in by_type],
            logins_by_day=[DailyLoginCount(day=str(value), count=count) for value, count in logins],
            top_active_users=[
                ActiveUser(user_id=user_id, full_name=full_name, username=username, count=count)
                for user_id, full_name, username, count in top_users
            ],
            recent_activities=[_to_read(entry) for entry in recent],
        )


activity_history_service = ActivityHistoryService()
