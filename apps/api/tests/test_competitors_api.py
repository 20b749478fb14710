from __future__ import annotations

from collections.abc import Generator
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from dxcrm.core.database import Base, get_db
from dxcrm.main import app
from dxcrm.warehouse.models import Product


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
    session.add_all(
        [
            Product(product_code="SP01", name="Steel door", price=Decimal("2500000"), origin_country="VN"),
            Product(product_code="SP02", name="Glass panel"),
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
        yield test_client
    app.dependency_overrides.clear()


def test_create_and_get_competitor(client: TestClient) -> None:
    response = client.post(
        "/crm/competitors",
        json={
            "code": "DT01",
            "name": "Rival Co",
            "product_code": "SP01",
            "pricing_strategy": "Undercut by 5%",
            "competition_level": "High",
        },
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["stt"] == 1
    assert data["product"] == {"product_code": "SP01", "name": "Steel door"}

    fetched = client.get("/crm/competitors/DT01")
    assert fetched.status_code == 200
    assert fetched.json()["message"] == "Competitor retrieved"
    assert fetched.json()["data"]["pricing_strategy"] == "Undercut by 5%"


def test_competitor_requires_existing_product_and_unique_code(client: TestClient) -> None:
    missing = client.post("/crm/competitors", json={"code": "DT01", "name": "Rival", "product_code": "SP99"})
    assert missing.status_code == 400
    assert missing.json()["message"] == "Product 'SP99' does not exist"

    assert client.post("/crm/competitors", json={"code": "DT01", "name": "Rival"}).status_code == 201
    duplicate = client.post("/crm/competitors", json={"code": "DT01", "name": "Another"})
    assert duplicate.status_code == 400


def test_competitor_list_filters(client: TestClient) -> None:
    client.post("/crm/competitors", json={"code": "DT01", "name": "Rival Co", "product_code": "SP01"})
    client.post("/crm/competitors", json={"code": "DT02", "name": "Other Works", "product_code": "SP02"})

    by_product = client.get("/crm/competitors", params={"product": "SP02"}).json()
    assert [row["code"] for row in by_product["data"]] == ["DT02"]
    assert by_product["metadata"] == {"total": 1}

    searched = client.get("/crm/competitors", params={"search": "rival"}).json()["data"]
    assert [row["code"] for row in searched] == ["DT01"]


def test_competitor_update_and_delete(client: TestClient) -> None:
    client.post("/crm/competitors", json={"code": "DT01", "name": "Rival Co", "notes": "Watch closely"})

    updated = client.put("/crm/competitors/DT01", json={"product_code": "SP02"})
    assert updated.status_code == 200
    assert updated.json()["data"]["product"]["name"] == "Glass panel"
    assert updated.json()["data"]["notes"] == "Watch closely"

    assert client.put("/crm/competitors/DT01", json={"product_code": "SP99"}).status_code == 400
    assert client.delete("/crm/competitors/DT01").status_code == 200
    assert client.get("/crm/competitors/DT01").status_code == 404
    assert client.put("/crm/competitors/DT01", json={"name": "x"}).status_code == 404


def test_create_competitor_keeps_every_field(client: TestClient) -> None:
    payload = {
        "code": "DT02",
        "name": "Đối thủ Miền Nam",
        "product_code": "SP01",
        "pricing_strategy": "Bundle discounts",
        "competition_level": "Medium",
        "notes": "Strong in HCMC",
    }
    created = client.post("/crm/competitors", json=payload)
    assert created.status_code == 201

    fetched = client.get("/crm/competitors/DT02").json()["data"]
    assert {key: fetched[key] for key in payload} == payload
    assert fetched["updated_at"] is not None

    duplicate = client.post("/crm/competitors", json={**payload, "name": "Copy"})
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "Competitor 'DT02' already exists"
