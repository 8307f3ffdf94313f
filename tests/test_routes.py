"""HTTP-level tests for the role endpoints."""

from __future__ import annotations

from collections.abc import AsyncIterator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from rbac_service.features.roles.demo_data import DEMO_PERMISSIONS, DEMO_ROLES
from rbac_service.features.roles.service import RoleService
from rbac_service.features.roles.store import RoleStore
from rbac_service.main import app


@pytest_asyncio.fixture()
async def async_client(backend) -> AsyncIterator[AsyncClient]:
    """HTTPX client bound to the app, wired to the backend under test."""

    app.state.role_service = RoleService(backend.store)
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client
    finally:
        app.state.role_service = None


def _payload(role_id: str, permissions) -> dict:
    return {
        "roleId": role_id,
        "permissions": [permission.model_dump(mode="json") for permission in permissions],
    }


@pytest.mark.asyncio
async def test_health(async_client) -> None:
    response = await async_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_list_permissions(async_client) -> None:
    response = await async_client.get("/auth/permissions")

    assert response.status_code == 200
    body = response.json()
    assert {item["id"] for item in body} == {p.id for p in DEMO_PERMISSIONS}
    first = next(item for item in body if item["id"] == DEMO_PERMISSIONS[0].id)
    assert first["action"] == ["db:read"]
    assert first["effect"] == "Allow"


@pytest.mark.asyncio
async def test_list_roles(async_client) -> None:
    response = await async_client.get("/auth/roles")

    assert response.status_code == 200
    assert {item["id"]: item["permissions"] for item in response.json()} == {
        role.id: [] for role in DEMO_ROLES
    }


@pytest.mark.asyncio
async def test_set_permissions(async_client) -> None:
    role = DEMO_ROLES[0]

    response = await async_client.put("/auth/roles", json=_payload(role.id, DEMO_PERMISSIONS[:2]))

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == role.id
    assert [item["id"] for item in body["permissions"]] == [p.id for p in DEMO_PERMISSIONS[:2]]


@pytest.mark.asyncio
async def test_unknown_role_is_404(async_client) -> None:
    response = await async_client.put(
        "/auth/roles",
        json=_payload("11111111-1111-4111-8111-111111111111", DEMO_PERMISSIONS[:1]),
    )

    assert response.status_code == 404
    assert response.json()["code"] == "ROLE_NOT_FOUND"


@pytest.mark.asyncio
async def test_unknown_permission_is_400_with_missing_ids(async_client) -> None:
    unknown = DEMO_PERMISSIONS[0].model_copy(update={"id": "00000000-0000-4000-8000-000000000001"})

    response = await async_client.put("/auth/roles", json=_payload(DEMO_ROLES[0].id, [unknown]))

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "INVALID_PERMISSION"
    assert body["data"] == {"nonexistent_permissions": [unknown.id]}


@pytest.mark.asyncio
async def test_malformed_role_id_is_400(async_client) -> None:
    response = await async_client.put("/auth/roles", json=_payload("not-a-uuid", []))

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "INVALID_INPUT"
    assert "roleId" in body["data"]


@pytest.mark.asyncio
async def test_mixed_action_namespaces_are_rejected(async_client) -> None:
    permission = DEMO_PERMISSIONS[0].model_dump(mode="json")
    permission["action"] = ["db:read", "ath:verify"]

    response = await async_client.put(
        "/auth/roles",
        json={"roleId": DEMO_ROLES[0].id, "permissions": [permission]},
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_service_not_initialized_is_500(async_client) -> None:
    app.state.role_service = None

    response = await async_client.get("/auth/roles")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal Server Error"}


@pytest.mark.asyncio
async def test_unexpected_error_is_json_500() -> None:
    store = AsyncMock(spec=RoleStore)
    store.get_roles.side_effect = RuntimeError("boom")
    app.state.role_service = RoleService(store)
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    try:
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            response = await client.get("/auth/roles")
    finally:
        app.state.role_service = None

    assert response.status_code == 500
    assert response.headers["content-type"] == "application/json"
    assert response.json() == {"error": "Internal Server Error"}
