from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dxcrm.activity.schemas import ActivityRead, ActivityStats
from dxcrm.activity.service import activity_history_service
from dxcrm.api.envelope import Envelope, PagedEnvelope, ok, paged
from dxcrm.core.auth import require_auth
from dxcrm.core.database import get_db


router = APIRouter(prefix="/admin/activity", tags=["admin.activity"], dependencies=[Depends(require_auth)])


@router.get("/user/{user_id}", response_model=PagedEnvelope[ActivityRead])
def user_activity(
    user_id: str,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=500),
    activity_type: str | None = Query(default=None, alias="activityType"),
    db: Session = Depends(get_db),
):
    result = activity_history_service.user_history(
        db, user_id, page=page, limit=limit, activity_type=activity_type
    )
    return paged("User activity retrieved", result.rows, page=page, limit=limit, total=result.total)


@router.get("/all", response_model=PagedEnvelope[ActivityRead])
def all_activity(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=500),
    user_id: str | None = Query(default=None, alias="userId"),
    activity_type: str | None = Query(default=None, alias="activityType"),
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    db: Session = Depends(get_db),
):
    result = activity_history_service.all_history(
        db,
        page=page,
        limit=limit,
        user_id=user_id,
        activity_type=activity_type,
        start_date=start_date,
        end_date=end_date,
    )
    return paged("Activity history retrieved", result.rows, page=page, limit=limit, total=result.total)


@router.get("/stats", response_model=Envelope[ActivityStats])
def activity_stats(db: Session = Depends(get_db)):
    return ok("Activity statistics retrieved", activity_history_service.stats(db))
