from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from dxcrm.core.config import get_settings
from dxcrm.core.security import issue_access_token
from dxcrm.main import app


@pytest.fixture()
def client() -> TestClient:
    return TestClient(app)


def test_me_without_header_is_401(client: TestClient) -> None:
    response = client.get("/me")
    assert response.status_code == 401
    body = response.json()
    assert body["error"] == "Unauthorized"
    assert body["success"] is False


@pytest.mark.parametrize("header", ["Token abc", "Bearer", "Bearer    ", "basic abc"])
def test_me_with_malformed_header_is_401(client: TestClient, header: str) -> None:
    response = client.get("/me", headers={"Authorization": header})
    assert response.status_code == 401


def test_me_with_bad_signature_is_403(client: TestClient) -> None:
    token = jwt.encode({"sub": "NV001"}, "some-other-secret", algorithm="HS256")
    response = client.get("/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 403
    assert response.json()["error"] == "Forbidden"


def test_me_with_expired_token_is_403(client: TestClient) -> None:
    settings = get_settings()
    expired = datetime.now(timezone.utc) - timedelta(minutes=5)
    token = jwt.encode(
        {"sub": "NV001", "exp": int(expired.timestamp())},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    response = client.get("/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 403


def test_me_with_valid_token(client: TestClient) -> None:
    token = issue_access_token("NV001", username="an.nguyen", roles=["sales"])
    response = client.get("/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json() == {"sub": "NV001", "roles": ["sales"]}
