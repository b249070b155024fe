from unittest.mock import AsyncMock, MagicMock

import jwt
from fastapi.testclient import TestClient

from temple_api.config import AuthorizationSettings, Settings
from temple_api.main import create_app

SECRET = "router-secret"


def make_client(service: MagicMock | None = None, **authorization) -> TestClient:
    settings = Settings(
        database_url="sqlite+aiosqlite://",
        allowed_origins=["http://localhost:3000"],
        secret_key=SECRET,
        authorization=AuthorizationSettings(**authorization),
    )
    return TestClient(
        create_app(settings, permission_service=service or MagicMock(), store=AsyncMock())
    )


def auth_headers(user_id: int = 7) -> dict[str, str]:
    token = jwt.encode({"userid": user_id}, SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


def test_catalog_lists_permissions() -> None:
    client = make_client()

    response = client.get("/api/permissions/catalog", headers=auth_headers())

    assert response.status_code == 200
    assert [entry["label"] for entry in response.json()] == ["View", "Create", "Edit", "Delete"]


def test_catalog_requires_authentication_by_default() -> None:
    client = make_client()

    response = client.get("/api/permissions/catalog")

    assert response.status_code == 401


def test_my_permissions_returns_every_page() -> None:
    service = MagicMock()
    service.get_all_user_permissions = AsyncMock(
        return_value={"/roles": ["View", "Edit"], "/donations": ["View"]}
    )
    client = make_client(service)

    response = client.get("/api/permissions/me", headers=auth_headers(7))

    assert response.status_code == 200
    assert response.json() == {
        "user_id": 7,
        "pages": {"/roles": ["View", "Edit"], "/donations": ["View"]},
    }
    service.get_all_user_permissions.assert_awaited_once_with(7)


def test_my_page_permissions_filters_by_page() -> None:
    service = MagicMock()
    service.get_user_permissions_for_page = AsyncMock(return_value=["View"])
    client = make_client(service)

    response = client.get(
        "/api/permissions/me/pages", params={"page_url": "/roles"}, headers=auth_headers(9)
    )

    assert response.status_code == 200
    assert response.json() == {"page_url": "/roles", "permissions": ["View"]}
    service.get_user_permissions_for_page.assert_awaited_once_with(9, "/roles")


def test_my_page_permissions_requires_page_url() -> None:
    client = make_client()

    response = client.get("/api/permissions/me/pages", headers=auth_headers())

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_anonymous_caller_gets_json_error_when_middleware_lets_it_through() -> None:
    client = make_client(default_require_authentication=False)

    response = client.get("/api/permissions/me")

    assert response.status_code == 401
    assert response.json()["error"] == {
        "code": "AUTHENTICATION_REQUIRED",
        "message": "Authentication required",
        "details": None,
    }


def test_token_without_numeric_id_is_rejected_by_dependency() -> None:
    client = make_client(enable_permission_based_auth=False)
    token = jwt.encode({"userid": "abc"}, SECRET, algorithm="HS256")

    response = client.get("/api/permissions/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "MISSING_IDENTITY"
