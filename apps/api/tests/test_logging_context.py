from __future__ import annotations

import json
import logging
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from dxcrm.context import get_log_context, request_scope
from dxcrm.core.database import Base, get_db
from dxcrm.logging import JsonLogFormatter
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
        yield test_client
    app.dependency_overrides.clear()


def test_logs_include_correlation_id_for_http(client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO)

    response = client.get("/crm/quotations/BG404", headers={"X-Correlation-Id": "abc-123"})
    assert response.status_code == 404

    records = [
        record for record in caplog.records if record.name == "dxcrm.request" and record.getMessage() == "http.request"
    ]
    assert records
    assert any(
        getattr(record, "correlation_id", None) == "abc-123"
        and getattr(record, "method", None) == "GET"
        and getattr(record, "path", None) == "/crm/quotations/{id}"
        and getattr(record, "status_code", None) == 404
        and isinstance(getattr(record, "duration_ms", None), float)
        for record in records
    )


def test_mutation_logs_carry_entity_and_correlation_id(client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO)

    response = client.post(
        "/crm/customer-groups",
        json={"code": "KH01", "name": "Retail"},
        headers={"X-Correlation-Id": "corr-mutation-1"},
    )
    assert response.status_code == 201

    assert any(
        record.name == "dxcrm.crm"
        and record.getMessage() == "crm.created"
        and getattr(record, "entity", None) == "customer_group"
        and getattr(record, "entity_id", None) == "KH01"
        and getattr(record, "correlation_id", None) == "corr-mutation-1"
        for record in caplog.records
    )


def test_json_formatter_emits_known_fields_only() -> None:
    with request_scope("fmt-1", "req-1"):
        record = logging.getLogger("dxcrm.test").makeRecord(
            "dxcrm.test",
            logging.INFO,
            __file__,
            1,
            "crm.updated",
            (),
            None,
            extra={"entity": "quotation", "entity_id": "BG01", "secret": "hidden", "error": "x" * 600},
        )
        for key, value in get_log_context().items():
            setattr(record, key, value)

    payload = json.loads(JsonLogFormatter().format(record))
    assert payload["msg"] == "crm.updated"
    assert payload["correlation_id"] == "fmt-1"
    assert payload["request_id"] == "req-1"
    assert payload["fields"]["entity"] == "quotation"
    assert payload["fields"]["entity_id"] == "BG01"
    assert "secret" not in payload["fields"]
    assert len(payload["fields"]["error"]) == 500


def test_request_logs_carry_the_issued_request_id(client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO)

    response = client.get("/crm/customer-groups", headers={"X-Correlation-Id": "corr-req-1"})
    assert response.status_code == 200

    request_id = response.headers["x-request-id"]
    assert any(
        record.getMessage() == "http.request" and getattr(record, "request_id", None) == request_id
        for record in caplog.records
    )
