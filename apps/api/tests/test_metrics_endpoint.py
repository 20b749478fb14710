from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from dxcrm.core.config import get_settings
from dxcrm.core.database import Base, get_db
from dxcrm.core.security import hash_password, issue_access_token
from dxcrm.identity.models import Account
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
    session.add(
        Account(
            user_id="NV001",
            username="an.nguyen",
            password=hash_password("s3cret"),
            full_name="Nguyen Van An",
            email="an@example.com",
            phone="0901234567",
        )
    )
    session.commit()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def configure_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    monkeypatch.setenv("METRICS_ENABLED", "true")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_access_token('NV001', username='an.nguyen', roles=[])}"}


def test_metrics_endpoint_exposes_http_and_login_metrics(client: TestClient) -> None:
    assert client.get("/health").status_code == 200
    assert client.get("/crm/customer-groups/KH404").status_code == 404
    assert client.post("/warehouse/auth/login", json={"username": "an.nguyen", "password": "s3cret"}).status_code == 200
    assert client.post("/warehouse/auth/login", json={"username": "an.nguyen", "password": "bad"}).status_code == 401

    metrics = client.get("/metrics", headers=_auth_headers())
    assert metrics.status_code == 200
    assert metrics.headers["content-type"].startswith("text/plain")
    body = metrics.text

    assert "http_requests_total" in body
    assert "http_request_duration_seconds" in body
    assert "activity_log_failures_total" in body
    assert 'path="/health"' in body
    assert 'path="/crm/customer-groups/{id}"' in body
    assert 'auth_login_attempts_total{outcome="success"}' in body
    assert 'auth_login_attempts_total{outcome="invalid_credentials"}' in body


def test_metrics_requires_token(client: TestClient) -> None:
    assert client.get("/metrics").status_code == 401


def test_metrics_disabled_returns_404(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("METRICS_ENABLED", "false")
    get_settings.cache_clear()

    assert client.get("/metrics", headers=_auth_headers()).status_code == 404


def test_health_reports_service(client: TestClient) -> None:
    body = client.get("/health").json()
    assert body == {"status": "ok", "service": "DX CRM API", "environment": get_settings().app_env}
