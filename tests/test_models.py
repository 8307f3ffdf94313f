"""Tests for the domain model invariants."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from rbac_service.features.roles.models import DatabaseAction, Effect, Permission, Role


PERMISSION_ID = "0D6179FC-BC2F-4A50-BFD8-4CE4D10680F4"


def _permission(**overrides) -> Permission:
    fields = {
        "id": PERMISSION_ID,
        "name": "Permission 1",
        "effect": "Allow",
        "action": ["db:read", "db:write"],
        "resource": "Database1",
    }
    fields.update(overrides)
    return Permission(**fields)


def test_permission_parses_strings_into_enums() -> None:
    permission = _permission()

    assert permission.id == PERMISSION_ID.lower()
    assert permission.effect is Effect.ALLOW
    assert permission.action == [DatabaseAction.READ, DatabaseAction.WRITE]
    assert permission.description is None


def test_permission_rejects_mixed_namespaces() -> None:
    with pytest.raises(ValidationError):
        _permission(action=["db:read", "ath:verify"])


def test_permission_rejects_empty_action_list() -> None:
    with pytest.raises(ValidationError):
        _permission(action=[])


def test_permission_rejects_non_uuid_id() -> None:
    with pytest.raises(ValidationError):
        _permission(id="not-a-uuid")


def test_role_rejects_duplicate_permissions() -> None:
    permission = _permission()

    with pytest.raises(ValidationError):
        Role(id="9faaf9ba-464e-4c68-a901-630fc4de123b", name="User", permissions=[permission, permission])


def test_role_defaults_to_no_permissions() -> None:
    role = Role(id="9faaf9ba-464e-4c68-a901-630fc4de123b", name="User")

    assert role.permissions == []
    assert role.permission_ids() == set()
