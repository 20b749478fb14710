from __future__ import annotations

from collections.abc import Generator
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from dxcrm.core.database import Base, get_db
from dxcrm.core.security import hash_password
from dxcrm.crm.models import PotentialCustomer
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
            password=hash_password("secret"),
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


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _create_group(client: TestClient, code: str, name: str, **extra: object) -> dict:
    response = client.post("/crm/customer-groups", json={"code": code, "name": name, **extra})
    assert response.status_code == 201, response.text
    return response.json()["data"]


def _add_customer(db_session: Session, code: str, name: str, group_code: str | None) -> None:
    db_session.add(
        PotentialCustomer(
            code=code,
            name=name,
            group_code=group_code,
            status="Mới",
            added_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
        )
    )
    db_session.commit()


def test_create_customer_group_assigns_sequence_and_updater(client: TestClient) -> None:
    response = client.post(
        "/crm/customer-groups",
        json={"code": "KH01", "name": "Retail", "description": "Shops", "updated_by": "NV001"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Customer group created"
    assert body["data"]["stt"] == 1
    assert body["data"]["updater"] == {"user_id": "NV001", "full_name": "Nguyen Van An"}
    assert body["data"]["potential_customer_count"] == 0

    second = _create_group(client, "KH02", "Wholesale")
    assert second["stt"] == 2


def test_duplicate_code_or_name_is_rejected(client: TestClient) -> None:
    _create_group(client, "KH01", "Retail")

    same_code = client.post("/crm/customer-groups", json={"code": "KH01", "name": "Other"})
    assert same_code.status_code == 400
    assert same_code.json()["success"] is False
    assert "already exists" in same_code.json()["message"]

    same_name = client.post("/crm/customer-groups", json={"code": "KH09", "name": "Retail"})
    assert same_name.status_code == 400
    assert same_name.json()["message"] == "Customer group name 'Retail' already exists"


def test_unknown_updater_is_rejected(client: TestClient) -> None:
    response = client.post(
        "/crm/customer-groups",
        json={"code": "KH01", "name": "Retail", "updated_by": "NV404"},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Account 'NV404' does not exist"


def test_missing_required_fields_return_400_with_details(client: TestClient) -> None:
    response = client.post("/crm/customer-groups", json={"code": "KH01"})
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "validation_error"
    assert "name" in body["message"]
    assert any(item["field"] == "name" for item in body["details"])


def test_get_customer_group_includes_customers_and_count(client: TestClient, db_session: Session) -> None:
    _create_group(client, "KH01", "Retail")
    _add_customer(db_session, "PC02", "Beta Shop", "KH01")
    _add_customer(db_session, "PC01", "Alpha Shop", "KH01")
    _add_customer(db_session, "PC03", "Gamma Shop", None)

    response = client.get("/crm/customer-groups/KH01")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["potential_customer_count"] == 2
    assert [item["name"] for item in data["potential_customers"]] == ["Alpha Shop", "Beta Shop"]

    listed = client.get("/crm/customer-groups").json()
    assert listed["metadata"] == {"total": 1}
    assert listed["data"][0]["potential_customer_count"] == 2


def test_delete_is_blocked_while_customers_reference_group(client: TestClient, db_session: Session) -> None:
    _create_group(client, "KH01", "Retail")
    _add_customer(db_session, "PC01", "Alpha Shop", "KH01")
    _add_customer(db_session, "PC02", "Beta Shop", "KH01")

    response = client.delete("/crm/customer-groups/KH01")
    assert response.status_code == 400
    body = response.json()
    assert body["count"] == 2
    assert "2 potential customers" in body["message"]

    assert client.get("/crm/customer-groups/KH01").status_code == 200


def test_delete_unreferenced_group(client: TestClient) -> None:
    _create_group(client, "KH01", "Retail")

    response = client.delete("/crm/customer-groups/KH01")
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Customer group deleted"}
    assert client.get("/crm/customer-groups/KH01").status_code == 404


@pytest.mark.parametrize(
    ("method", "payload"),
    [("get", None), ("put", {"name": "Renamed"}), ("delete", None)],
)
def test_unknown_group_returns_404(client: TestClient, method: str, payload: dict | None) -> None:
    kwargs = {"json": payload} if payload is not None else {}
    response = client.request(method.upper(), "/crm/customer-groups/NOPE", **kwargs)
    assert response.status_code == 404
    assert response.json()["message"] == "Customer group not found"


def test_partial_update_keeps_other_fields(client: TestClient) -> None:
    _create_group(client, "KH01", "Retail", description="Shops", updated_by="NV001")

    response = client.put("/crm/customer-groups/KH01", json={"name": "Retail chains"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Retail chains"
    assert data["description"] == "Shops"
    assert data["updated_by"] == "NV001"


def test_update_rejects_empty_body_and_taken_name(client: TestClient) -> None:
    _create_group(client, "KH01", "Retail")
    _create_group(client, "KH02", "Wholesale")

    empty = client.put("/crm/customer-groups/KH01", json={})
    assert empty.status_code == 400
    assert empty.json()["message"] == "No data to update"

    taken = client.put("/crm/customer-groups/KH01", json={"name": "Wholesale"})
    assert taken.status_code == 400

    blank = client.put("/crm/customer-groups/KH01", json={"name": None})
    assert blank.status_code == 400
    assert blank.json()["message"] == "Fields cannot be empty: name"


def test_list_search_filter_and_sort(client: TestClient) -> None:
    _create_group(client, "KH01", "Retail", updated_by="NV001")
    _create_group(client, "KH02", "Wholesale")
    _create_group(client, "KH03", "Online retail")

    searched = client.get("/crm/customer-groups", params={"search": "retail"}).json()["data"]
    assert {row["code"] for row in searched} == {"KH01", "KH03"}

    by_updater = client.get("/crm/customer-groups", params={"updatedBy": "NV001"}).json()["data"]
    assert [row["code"] for row in by_updater] == ["KH01"]

    sorted_rows = client.get("/crm/customer-groups", params={"sortBy": "name", "sortDir": "desc"}).json()["data"]
    assert [row["name"] for row in sorted_rows] == ["Wholesale", "Retail", "Online retail"]


def test_unknown_sort_column_is_rejected(client: TestClient) -> None:
    response = client.get("/crm/customer-groups", params={"sortBy": "password"})
    assert response.status_code == 400
    body = response.json()
    assert "stt" in body["allowed"]
    assert "password" not in body["allowed"]


def test_customer_group_stats(client: TestClient, db_session: Session) -> None:
    _create_group(client, "KH01", "Retail")
    _create_group(client, "KH02", "Wholesale")
    _create_group(client, "KH03", "Online")
    _add_customer(db_session, "PC01", "Alpha", "KH02")
    _add_customer(db_session, "PC02", "Beta", "KH02")
    _add_customer(db_session, "PC03", "Gamma", "KH01")

    response = client.get("/crm/customer-groups/stats/overview")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total_count"] == 3
    assert [(row["code"], row["count"]) for row in data["top_groups"]] == [("KH02", 2), ("KH01", 1), ("KH03", 0)]
    assert len(data["recent_groups"]) == 3
