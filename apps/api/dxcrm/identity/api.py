from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Request, status
from sqlalchemy.orm import Session

from dxcrm.api.envelope import Deleted, Envelope, ListEnvelope, deleted, listed, ok
from dxcrm.core.auth import AuthUser, require_auth
from dxcrm.core.context import client_ip
from dxcrm.core.database import get_db
from dxcrm.identity.schemas import (
    AccountCreate,
    AccountRead,
    AccountStats,
    AccountUpdate,
    LoginData,
    LoginRequest,
    RoleCreate,
    RoleRead,
    RoleUpdate,
)
from dxcrm.identity.service import account_service, login_service, role_service


router = APIRouter(prefix="/warehouse", tags=["warehouse.accounts"])


@router.post("/auth/login", response_model=Envelope[LoginData], tags=["auth"])
def login(request: Request, body: Any = Body(default=None), db: Session = Depends(get_db)):
    # a missing or malformed body is still a login attempt and gets recorded
    data = login_service.login(
        db,
        LoginRequest.model_validate(body),
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return ok("Login successful", data)


@router.get("/accounts", response_model=ListEnvelope[AccountRead])
def list_accounts(
    search: str | None = Query(default=None),
    role: str | None = Query(default=None),
    sort_by: str = Query(default="stt", alias="sortBy"),
    sort_dir: str = Query(default="asc", alias="sortDir"),
    db: Session = Depends(get_db),
):
    rows = account_service.list(db, search=search, role_code=role, sort_by=sort_by, sort_dir=sort_dir)
    return listed("Accounts retrieved", rows)


@router.get("/accounts/stats/overview", response_model=Envelope[AccountStats])
def account_stats(db: Session = Depends(get_db)):
    return ok("Account statistics retrieved", account_service.stats(db))


@router.get("/accounts/{user_id}", response_model=Envelope[AccountRead])
def get_account(user_id: str, db: Session = Depends(get_db)):
    return ok("Account retrieved", account_service.get(db, user_id))


@router.post("/accounts", response_model=Envelope[AccountRead], status_code=status.HTTP_201_CREATED)
def create_account(payload: AccountCreate, db: Session = Depends(get_db)):
    return ok("Account created", account_service.create(db, payload))


@router.put("/accounts/{user_id}", response_model=Envelope[AccountRead])
def update_account(user_id: str, payload: AccountUpdate, db: Session = Depends(get_db)):
    return ok("Account updated", account_service.update(db, user_id, payload))


@router.delete("/accounts/{user_id}", response_model=Deleted)
def delete_account(user_id: str, db: Session = Depends(get_db), _: AuthUser = Depends(require_auth)):
    account_service.delete(db, user_id)
    return deleted("Account deleted")


@router.get("/roles", response_model=ListEnvelope[RoleRead], tags=["warehouse.roles"])
def list_roles(
    search: str | None = Query(default=None),
    sort_by: str = Query(default="stt", alias="sortBy"),
    sort_dir: str = Query(default="asc", alias="sortDir"),
    db: Session = Depends(get_db),
):
    return listed("Roles retrieved", role_service.list(db, search=search, sort_by=sort_by, sort_dir=sort_dir))


@router.get("/roles/{code}", response_model=Envelope[RoleRead], tags=["warehouse.roles"])
def get_role(code: str, db: Session = Depends(get_db)):
    return ok("Role retrieved", role_service.get(db, code))


@router.post(
    "/roles",
    response_model=Envelope[RoleRead],
    status_code=status.HTTP_201_CREATED,
    tags=["warehouse.roles"],
)
def create_role(payload: RoleCreate, db: Session = Depends(get_db), _: AuthUser = Depends(require_auth)):
    return ok("Role created", role_service.create(db, payload))


@router.put("/roles/{code}", response_model=Envelope[RoleRead], tags=["warehouse.roles"])
def update_role(
    code: str,
    payload: RoleUpdate,
    db: Session = Depends(get_db),
    _: AuthUser = Depends(require_auth),
):
    return ok("Role updated", role_service.update(db, code, payload))


@router.delete("/roles/{code}", response_model=Deleted, tags=["warehouse.roles"])
def delete_role(code: str, db: Session = Depends(get_db), _: AuthUser = Depends(require_auth)):
    role_service.delete(db, code)
    return deleted("Role deleted")
