from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from dxcrm.activity.models import UserActivityLog
from dxcrm.core.config import get_settings
from dxcrm.core.database import Base, get_db
from dxcrm.core.security import hash_password, verify_password
from dxcrm.identity.models import Account, Role
from dxcrm.main import app


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    session.add(Role(code="sales", name="Sales"))
    session.add_all(
        [
            Account(
                user_id="NV001",
                username="an.nguyen",
                password=hash_password("s3cret"),
                full_name="Nguyen Van An",
                email="an@example.com",
                phone="0901234567",
                role_code="sales",
            ),
            Account(
                user_id="NV002",
                username="legacy",
                password="plain-text",
                full_name="Legacy User",
                email="legacy@example.com",
                phone="0907654321",
            ),
        ]
    )
    session.commit()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        test_client.headers.update({"user-agent": "pytest-agent"})
        yield test_client
    app.dependency_overrides.clear()


def _activity(db_session: Session) -> list[UserActivityLog]:
    db_session.expire_all()
    return list(db_session.scalars(select(UserActivityLog).order_by(UserActivityLog.id)).all())


def test_login_success_returns_account_and_token(client: TestClient, db_session: Session) -> None:
    response = client.post("/warehouse/auth/login", json={"username": "An.Nguyen", "password": "s3cret"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["user_id"] == "NV001"
    assert data["token_type"] == "bearer"
    assert "password" not in data

    settings = get_settings()
    claims = jwt.decode(data["access_token"], settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    assert claims["sub"] == "NV001"
    assert claims["username"] == "an.nguyen"
    assert claims["roles"] == ["sales"]
    assert claims["exp"] > claims["iat"]

    rows = _activity(db_session)
    assert len(rows) == 1
    assert rows[0].user_id == "NV001"
    assert rows[0].activity_type == "login"
    assert rows[0].user_agent == "pytest-agent"
    assert rows[0].ip_address


def test_login_accepts_legacy_plaintext_password(client: TestClient) -> None:
    response = client.post("/warehouse/auth/login", json={"username": "legacy", "password": "plain-text"})
    assert response.status_code == 200
    assert response.json()["data"]["user_id"] == "NV002"


def test_login_wrong_password(client: TestClient, db_session: Session) -> None:
    response = client.post("/warehouse/auth/login", json={"username": "an.nguyen", "password": "nope"})

    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Invalid username or password"
    assert "password" not in body

    rows = _activity(db_session)
    assert [(row.user_id, row.activity_type) for row in rows] == [("NV001", "failed_login")]


def test_login_unknown_user_records_unknown(client: TestClient, db_session: Session) -> None:
    response = client.post("/warehouse/auth/login", json={"username": "ghost", "password": "whatever"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid username or password"

    rows = _activity(db_session)
    assert [(row.user_id, row.activity_type) for row in rows] == [("unknown", "failed_login")]


@pytest.mark.parametrize(
    "payload",
    [{}, {"username": "an.nguyen"}, {"password": "s3cret"}, {"username": "   ", "password": "s3cret"}],
)
def test_login_missing_fields(client: TestClient, db_session: Session, payload: dict) -> None:
    response = client.post("/warehouse/auth/login", json=payload)

    assert response.status_code == 400
    assert response.json()["message"] == "Username and password are required"

    rows = _activity(db_session)
    assert [(row.user_id, row.activity_type) for row in rows] == [("unknown", "failed_login")]


def test_login_uses_forwarded_client_ip(client: TestClient, db_session: Session) -> None:
    response = client.post(
        "/warehouse/auth/login",
        json={"username": "an.nguyen", "password": "s3cret"},
        headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
    )
    assert response.status_code == 200
    assert _activity(db_session)[0].ip_address == "203.0.113.7"


def test_verify_password_variants() -> None:
    digest = hash_password("abc")
    assert len(digest) == 64
    assert verify_password("abc", digest)
    assert verify_password("abc", "abc")
    assert not verify_password("abc", "abd")
    assert not verify_password("abc", None)


def test_login_with_non_ascii_legacy_password(client: TestClient, db_session: Session) -> None:
    db_session.add(
        Account(
            user_id="NV003",
            username="viet",
            password="mậtkhẩu",
            full_name="Le Van Viet",
            email="viet@example.com",
            phone="0912345678",
        )
    )
    db_session.commit()

    accepted = client.post("/warehouse/auth/login", json={"username": "viet", "password": "mậtkhẩu"})
    assert accepted.status_code == 200
    assert accepted.json()["data"]["user_id"] == "NV003"

    rejected = client.post("/warehouse/auth/login", json={"username": "viet", "password": "matkhau"})
    assert rejected.status_code == 401

    rows = _activity(db_session)
    assert [(row.user_id, row.activity_type) for row in rows] == [("NV003", "login"), ("NV003", "failed_login")]


def test_login_without_body_is_recorded(client: TestClient, db_session: Session) -> None:
    response = client.post("/warehouse/auth/login")

    assert response.status_code == 400
    assert response.json()["message"] == "Username and password are required"
    rows = _activity(db_session)
    assert [(row.user_id, row.activity_type) for row in rows] == [("unknown", "failed_login")]


@pytest.mark.parametrize(
    "payload",
    [{"username": 123, "password": ["x"]}, {"username": "an.nguyen", "password": None}, ["an.nguyen", "s3cret"]],
)
def test_login_with_non_string_credentials_is_recorded(
    client: TestClient, db_session: Session, payload: object
) -> None:
    response = client.post("/warehouse/auth/login", json=payload)

    assert response.status_code == 400
    assert response.json()["message"] == "Username and password are required"
    rows = _activity(db_session)
    assert [(row.user_id, row.activity_type) for row in rows] == [("unknown", "failed_login")]


def test_verify_password_handles_non_ascii() -> None:
    assert verify_password("mậtkhẩu", "mậtkhẩu")
    assert verify_password("mậtkhẩu", hash_password("mậtkhẩu"))
    assert not verify_password("matkhau", "mậtkhẩu")
