from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ActivityUser(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    full_name: str
    username: str


class ActivityRead(BaseModel):
    id: int
    user_id: str
    activity_type: str
    ip_address: str | None
    user_agent: str | None
    details: str | None
    timestamp: str | None
    user: ActivityUser | None = None


class ActivityTypeCount(BaseModel):
    activity_type: str
    count: int


class DailyLoginCount(BaseModel):
    day: str
    count: int


class ActiveUser(BaseModel):
    user_id: str
    full_name: str | None
    username: str | None
    count: int


class ActivityStats(BaseModel):
    activity_by_type: list[ActivityTypeCount]
    logins_by_day: list[DailyLoginCount]
    top_active_users: list[ActiveUser]
    recent_activities: list[ActivityRead]
