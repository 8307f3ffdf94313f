"""Tests for the RoleService pass-through."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from rbac_service.core.errors import InvalidPermissionError
from rbac_service.features.roles.demo_data import DEMO_PERMISSIONS, DEMO_ROLES
from rbac_service.features.roles.service import RoleService
from rbac_service.features.roles.store import RoleStore


@pytest.fixture
def mock_store() -> AsyncMock:
    return AsyncMock(spec=RoleStore)


@pytest.mark.asyncio
async def test_get_roles_delegates(mock_store) -> None:
    mock_store.get_roles.return_value = list(DEMO_ROLES)

    roles = await RoleService(mock_store).get_roles()

    assert roles == list(DEMO_ROLES)
    mock_store.get_roles.assert_awaited_once_with()


@pytest.mark.asyncio
async def test_get_permissions_delegates(mock_store) -> None:
    mock_store.get_permissions.return_value = list(DEMO_PERMISSIONS)

    assert await RoleService(mock_store).get_permissions() == list(DEMO_PERMISSIONS)


@pytest.mark.asyncio
async def test_set_permissions_passes_arguments_through(mock_store) -> None:
    updated = DEMO_ROLES[0].model_copy(update={"permissions": [DEMO_PERMISSIONS[0]]})
    mock_store.set_permissions_for_role.return_value = updated

    result = await RoleService(mock_store).set_permissions_for_role(DEMO_ROLES[0].id, [DEMO_PERMISSIONS[0]])

    assert result is updated
    mock_store.set_permissions_for_role.assert_awaited_once_with(DEMO_ROLES[0].id, [DEMO_PERMISSIONS[0]])


@pytest.mark.asyncio
async def test_store_errors_propagate(mock_store) -> None:
    mock_store.set_permissions_for_role.side_effect = InvalidPermissionError(["x"])

    with pytest.raises(InvalidPermissionError):
        await RoleService(mock_store).set_permissions_for_role(DEMO_ROLES[0].id, [])
