from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

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
            user_id="NV000",
            username="root",
            password=hash_password("s3cret"),
            full_name="System Admin",
            email="root@example.com",
            phone="0900000000",
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


@pytest.fixture()
def auth_headers() -> dict[str, str]:
    token = issue_access_token("NV000", username="root", roles=["admin"])
    return {"Authorization": f"Bearer {token}"}


def _create_role(client: TestClient, auth_headers: dict[str, str], code: str = "sales", name: str = "Sales") -> dict:
    response = client.post("/warehouse/roles", json={"code": code, "name": name}, headers=auth_headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_create_role_then_assign_it_to_an_account(client: TestClient, auth_headers: dict[str, str]) -> None:
    role = _create_role(client, auth_headers)
    assert role["stt"] == 1
    assert role["account_count"] == 0
    assert role["updated_at"] is not None

    account = client.post(
        "/warehouse/accounts",
        json={
            "user_id": "NV001",
            "username": "an.nguyen",
            "password": "s3cret",
            "full_name": "Nguyen Van An",
            "email": "an@example.com",
            "phone": "0901234567",
            "role_code": "sales",
        },
    )
    assert account.status_code == 201
    assert account.json()["data"]["role"] == {"code": "sales", "name": "Sales"}

    fetched = client.get("/warehouse/roles/sales").json()["data"]
    assert fetched["account_count"] == 1


def test_role_mutations_require_token(client: TestClient, auth_headers: dict[str, str]) -> None:
    assert client.post("/warehouse/roles", json={"code": "sales", "name": "Sales"}).status_code == 401

    _create_role(client, auth_headers)
    assert client.put("/warehouse/roles/sales", json={"name": "Sellers"}).status_code == 401
    forged = client.delete("/warehouse/roles/sales", headers={"Authorization": "Bearer not-a-jwt"})
    assert forged.status_code == 403

    # reads stay open
    assert client.get("/warehouse/roles").status_code == 200


def test_create_role_validation(client: TestClient, auth_headers: dict[str, str]) -> None:
    _create_role(client, auth_headers)

    duplicate = client.post("/warehouse/roles", json={"code": "sales", "name": "Other"}, headers=auth_headers)
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "Role 'sales' already exists"

    unknown_updater = client.post(
        "/warehouse/roles",
        json={"code": "ops", "name": "Operations", "updated_by": "NV404"},
        headers=auth_headers,
    )
    assert unknown_updater.status_code == 400
    assert unknown_updater.json()["message"] == "Account 'NV404' does not exist"

    missing = client.post("/warehouse/roles", json={"code": "ops"}, headers=auth_headers)
    assert missing.status_code == 400
    assert {item["field"] for item in missing.json()["details"]} == {"name"}


def test_list_roles_sorted_and_searched(client: TestClient, auth_headers: dict[str, str]) -> None:
    _create_role(client, auth_headers, "sales", "Sales")
    _create_role(client, auth_headers, "admin", "Administrator")

    listed = client.get("/warehouse/roles").json()
    assert listed["metadata"] == {"total": 2}
    assert [row["code"] for row in listed["data"]] == ["sales", "admin"]

    by_name = client.get("/warehouse/roles", params={"sortBy": "name"}).json()["data"]
    assert [row["code"] for row in by_name] == ["admin", "sales"]

    searched = client.get("/warehouse/roles", params={"search": "admin"}).json()["data"]
    assert [row["code"] for row in searched] == ["admin"]


def test_update_role(client: TestClient, auth_headers: dict[str, str]) -> None:
    _create_role(client, auth_headers)

    response = client.put(
        "/warehouse/roles/sales",
        json={"notes": "Field sales team", "updated_by": "NV000"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Sales"
    assert data["notes"] == "Field sales team"
    assert data["updated_by"] == "NV000"

    assert client.put("/warehouse/roles/sales", json={}, headers=auth_headers).status_code == 400
    assert client.put("/warehouse/roles/sales", json={"name": ""}, headers=auth_headers).status_code == 400
    assert client.put("/warehouse/roles/sales", json={"updated_by": "NV404"}, headers=auth_headers).status_code == 400


def test_delete_role_blocked_while_accounts_use_it(
    client: TestClient, db_session: Session, auth_headers: dict[str, str]
) -> None:
    _create_role(client, auth_headers)
    db_session.get(Account, "NV000").role_code = "sales"
    db_session.commit()

    response = client.delete("/warehouse/roles/sales", headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["count"] == 1
    assert response.json()["message"] == "Cannot delete role: 1 accounts still use it"


def test_delete_role(client: TestClient, auth_headers: dict[str, str]) -> None:
    _create_role(client, auth_headers)

    response = client.delete("/warehouse/roles/sales", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Role deleted"}


@pytest.mark.parametrize("method", ["get", "put", "delete"])
def test_unknown_role_is_404(client: TestClient, auth_headers: dict[str, str], method: str) -> None:
    kwargs: dict = {"headers": auth_headers}
    if method == "put":
        kwargs["json"] = {"name": "Ghost"}
    response = client.request(method.upper(), "/warehouse/roles/ghost", **kwargs)
    assert response.status_code == 404
    assert response.json()["message"] == "Role not found"


def test_account_referenced_as_role_updater_cannot_be_deleted(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    client.post(
        "/warehouse/roles",
        json={"code": "sales", "name": "Sales", "updated_by": "NV000"},
        headers=auth_headers,
    )

    response = client.delete("/warehouse/accounts/NV000", headers=auth_headers)
    assert response.status_code == 400
    assert "1 roles" in response.json()["message"]
