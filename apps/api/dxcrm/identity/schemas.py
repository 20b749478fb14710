from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RoleSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    name: str | None


class RoleCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=100)
    updated_by: str | None = None
    notes: str | None = None


class RoleUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=100)
    updated_by: str | None = None
    notes: str | None = None


class RoleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    stt: int | None
    code: str
    name: str | None
    updated_by: str | None
    updated_at: datetime | None
    notes: str | None
    account_count: int = 0


class AccountCreate(BaseModel):
    user_id: str = Field(min_length=1, max_length=50)
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1)
    full_name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=1, max_length=20)
    role_code: str | None = None


class AccountUpdate(BaseModel):
    username: str | None = Field(default=None, max_length=100)
    password: str | None = None
    full_name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=20)
    role_code: str | None = None


class AccountRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    stt: int | None
    user_id: str
    username: str
    full_name: str
    email: str | None
    phone: str | None
    role_code: str | None
    created_at: datetime
    role: RoleSummary | None = None


class LoginRequest(BaseModel):
    """Credentials as posted. Anything that is not a string counts as missing."""

    username: str | None = None
    password: str | None = None

    @model_validator(mode="before")
    @classmethod
    def keep_string_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return {}
        return {key: value for key, value in data.items() if key in ("username", "password") and isinstance(value, str)}


class LoginData(AccountRead):
    access_token: str
    token_type: str = "bearer"


class RoleCount(BaseModel):
    role_code: str | None
    role_name: str | None
    count: int


class AccountStats(BaseModel):
    total_count: int
    first_created: datetime | None
    last_created: datetime | None
    by_role: list[RoleCount]
