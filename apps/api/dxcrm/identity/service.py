from __future__ import annotations

import logging
import re
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session, selectinload

from dxcrm.activity.service import FAILED_LOGIN, LOGIN, UNKNOWN_USER, log_user_activity
from dxcrm.core.clock import utcnow
from dxcrm.core.crud import (
    apply_sort,
    collect_changes,
    commit,
    ensure_key_free,
    ensure_reference,
    get_or_404,
    ilike_any,
)
from dxcrm.core.errors import DependentRowsExist, NotFound, Unauthorized, ValidationFailed
from dxcrm.core.security import hash_password, issue_access_token, verify_password
from dxcrm.core.sequence import next_sequence
from dxcrm.crm.models import (
    CustomerGroup,
    CustomerInteraction,
    InteractionType,
    OpportunitySource,
    PotentialCustomer,
    Quotation,
    QuotationStatus,
    QuotationType,
)
from dxcrm.identity.models import Account, Role
from dxcrm.identity.schemas import (
    AccountCreate,
    AccountRead,
    AccountStats,
    AccountUpdate,
    LoginData,
    LoginRequest,
    RoleCount,
    RoleCreate,
    RoleRead,
    RoleUpdate,
)
from dxcrm.metrics import observe_login_attempt
from dxcrm.warehouse.models import Product


logger = logging.getLogger("dxcrm.identity")

EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
PHONE_RE = re.compile(r"^0[0-9]{9}$")
INVALID_CREDENTIALS = "Invalid username or password"

# every column that points back at an account
ACCOUNT_REFERENCES: tuple[tuple[Any, str], ...] = (
    (PotentialCustomer.manager_id, "potential customers"),
    (Quotation.manager_id, "quotations"),
    (CustomerInteraction.manager_id, "customer interactions"),
    (Product.updated_by, "products"),
    (CustomerGroup.updated_by, "customer groups"),
    (OpportunitySource.updated_by, "opportunity sources"),
    (QuotationStatus.updated_by, "quotation statuses"),
    (QuotationType.updated_by, "quotation types"),
    (InteractionType.updated_by, "interaction types"),
    (Role.updated_by, "roles"),
)


def _validate_contact(email: str | None, phone: str | None) -> None:
    if email is not None and not EMAIL_RE.match(email):
        raise ValidationFailed("Invalid email address")
    if phone is not None and not PHONE_RE.match(phone):
        raise ValidationFailed("Phone number must be 10 digits starting with 0")


class AccountService:
    sortable = {
        "stt": Account.stt,
        "user_id": Account.user_id,
        "username": Account.username,
        "full_name": Account.full_name,
        "created_at": Account.created_at,
    }

    @staticmethod
    def _query() -> Select[Any]:
        return select(Account).options(selectinload(Account.role))

    def find_by_username(self, session: Session, username: str) -> Account | None:
        return session.scalar(
            self._query().where(func.lower(Account.username) == username.strip().lower()).limit(1)
        )

    def list(
        self,
        session: Session,
        *,
        search: str | None = None,
        role_code: str | None = None,
        sort_by: str = "stt",
        sort_dir: str = "asc",
    ) -> list[AccountRead]:
        query = self._query()
        if search:
            query = query.where(
                ilike_any(search, Account.user_id, Account.username, Account.full_name, Account.email)
            )
        if role_code:
            query = query.where(Account.role_code == role_code)
        query = apply_sort(query, self.sortable, sort_by, sort_dir)
        return [AccountRead.model_validate(row) for row in session.scalars(query).all()]

    def get(self, session: Session, user_id: str) -> AccountRead:
        return AccountRead.model_validate(get_or_404(session, Account, user_id, "Account"))

    def create(self, session: Session, payload: AccountCreate) -> AccountRead:
        _validate_contact(payload.email, payload.phone)
        if session.get(Account, payload.user_id) is not None:
            raise ValidationFailed(f"Account '{payload.user_id}' already exists")
        if self.find_by_username(session, payload.username) is not None:
            raise ValidationFailed(f"Username '{payload.username}' is already taken")
        ensure_reference(session, Role, payload.role_code, "Role")

        account = Account(**payload.model_dump(exclude={"password"}), password=hash_password(payload.password))
        account.stt = next_sequence(session, Account)
        session.add(account)
        commit(session)
        session.refresh(account)
        logger.info("identity.account_created", extra={"entity": "account", "entity_id": account.user_id})
        return AccountRead.model_validate(account)

    def update(self, session: Session, user_id: str, payload: AccountUpdate) -> AccountRead:
        account = get_or_404(session, Account, user_id, "Account")
        changes = collect_changes(payload, required=("username", "password", "full_name"))
        _validate_contact(changes.get("email"), changes.get("phone"))
        if "username" in changes:
            existing = self.find_by_username(session, changes["username"])
            if existing is not None and existing.user_id != user_id:
                raise ValidationFailed(f"Username '{changes['username']}' is already taken")
        ensure_reference(session, Role, changes.get("role_code"), "Role")
        if "password" in changes:
            changes["password"] = hash_password(changes["password"])

        for field_name, value in changes.items():
            setattr(account, field_name, value)
        commit(session)
        session.refresh(account)
        logger.info("identity.account_updated", extra={"entity": "account", "entity_id": user_id})
        return AccountRead.model_validate(account)

    def delete(self, session: Session, user_id: str) -> None:
        account = get_or_404(session, Account, user_id, "Account")
        blocking: list[str] = []
        total = 0
        for column, label in ACCOUNT_REFERENCES:
            count = session.scalar(select(func.count()).where(column == user_id)) or 0
            if count:
                blocking.append(f"{count} {label}")
                total += count
        if total:
            raise DependentRowsExist(f"Cannot delete account: still referenced by {', '.join(blocking)}", count=total)

        session.delete(account)
        commit(session)
        logger.info("identity.account_deleted", extra={"entity": "account", "entity_id": user_id})

    def stats(self, session: Session) -> AccountStats:
        total, first_created, last_created = session.execute(
            select(func.count(Account.user_id), func.min(Account.created_at), func.max(Account.created_at))
        ).one()

        role_count = func.count(Account.user_id)
        by_role = session.execute(
            select(Account.role_code, Role.name, role_count)
            .outerjoin(Role, Role.code == Account.role_code)
            .group_by(Account.role_code, Role.name)
            .order_by(role_count.desc())
        ).all()

        return AccountStats(
            total_count=total or 0,
            first_created=first_created,
            last_created=last_created,
            by_role=[RoleCount(role_code=code, role_name=name, count=count) for code, name, count in by_role],
        )


class RoleService:
    sortable = {
        "stt": Role.stt,
        "code": Role.code,
        "name": Role.name,
        "updated_at": Role.updated_at,
    }

    @staticmethod
    def _query() -> Select[Any]:
        account_count = (
            select(func.count(Account.user_id)).where(Account.role_code == Role.code).correlate(Role).scalar_subquery()
        )
        return select(Role, account_count)

    @staticmethod
    def _read(role: Role, account_count: int) -> RoleRead:
        read = RoleRead.model_validate(role)
        read.account_count = account_count or 0
        return read

    def list(
        self,
        session: Session,
        *,
        search: str | None = None,
        sort_by: str = "stt",
        sort_dir: str = "asc",
    ) -> list[RoleRead]:
        query = self._query()
        if search:
            query = query.where(ilike_any(search, Role.code, Role.name))
        query = apply_sort(query, self.sortable, sort_by, sort_dir)
        return [self._read(role, count) for role, count in session.execute(query).all()]

    def get(self, session: Session, code: str) -> RoleRead:
        row = session.execute(self._query().where(Role.code == code)).one_or_none()
        if row is None:
            raise NotFound("Role not found")
        return self._read(*row)

    def create(self, session: Session, payload: RoleCreate) -> RoleRead:
        ensure_key_free(session, Role, payload.code, "Role")
        ensure_reference(session, Account, payload.updated_by, "Account")

        role = Role(**payload.model_dump())
        role.stt = next_sequence(session, Role)
        role.updated_at = utcnow()
        session.add(role)
        commit(session)
        session.refresh(role)
        logger.info("identity.role_created", extra={"entity": "role", "entity_id": role.code})
        return self._read(role, 0)

    def update(self, session: Session, code: str, payload: RoleUpdate) -> RoleRead:
        role = get_or_404(session, Role, code, "Role")
        changes = collect_changes(payload, required=("name",))
        ensure_reference(session, Account, changes.get("updated_by"), "Account")

        for field_name, value in changes.items():
            setattr(role, field_name, value)
        role.updated_at = utcnow()
        commit(session)
        logger.info("identity.role_updated", extra={"entity": "role", "entity_id": code})
        return self.get(session, code)

    def delete(self, session: Session, code: str) -> None:
        role = get_or_404(session, Role, code, "Role")
        count = session.scalar(select(func.count()).select_from(Account).where(Account.role_code == code)) or 0
        if count:
            raise DependentRowsExist(f"Cannot delete role: {count} accounts still use it", count=count)

        session.delete(role)
        commit(session)
        logger.info("identity.role_deleted", extra={"entity": "role", "entity_id": code})


class LoginService:
    def __init__(self, accounts: AccountService) -> None:
        self.accounts = accounts

    def _reject(
        self,
        session: Session,
        user_id: str,
        reason: str,
        *,
        ip_address: str | None,
        user_agent: str | None,
    ) -> None:
        log_user_activity(
            session,
            user_id,
            FAILED_LOGIN,
            ip_address=ip_address,
            user_agent=user_agent,
            details=reason,
        )
        logger.info("auth.login_failed", extra={"user_id": user_id, "outcome": reason})

    def login(
        self,
        session: Session,
        payload: LoginRequest,
        *,
        ip_address: str | None,
        user_agent: str | None,
    ) -> LoginData:
        username = (payload.username or "").strip()
        password = payload.password or ""
        if not username or not password:
            self._reject(session, UNKNOWN_USER, "missing credentials", ip_address=ip_address, user_agent=user_agent)
            observe_login_attempt("missing_fields")
            raise ValidationFailed("Username and password are required")

        account = self.accounts.find_by_username(session, username)
        if account is None:
            self._reject(
                session,
                UNKNOWN_USER,
                f"unknown username {username}",
                ip_address=ip_address,
                user_agent=user_agent,
            )
            observe_login_attempt("invalid_credentials")
            raise Unauthorized(INVALID_CREDENTIALS)

        if not verify_password(password, account.password):
            self._reject(session, account.user_id, "wrong password", ip_address=ip_address, user_agent=user_agent)
            observe_login_attempt("invalid_credentials")
            raise Unauthorized(INVALID_CREDENTIALS)

        log_user_activity(
            session,
            account.user_id,
            LOGIN,
            ip_address=ip_address,
            user_agent=user_agent,
            details="login succeeded",
        )
        observe_login_attempt("success")
        logger.info("auth.login", extra={"user_id": account.user_id, "outcome": "success"})

        roles = [account.role_code] if account.role_code else []
        token = issue_access_token(account.user_id, username=account.username, roles=roles)
        read = AccountRead.model_validate(account)
        return LoginData(**read.model_dump(), access_token=token)


account_service = AccountService()
role_service = RoleService()
login_service = LoginService(account_service)
