"""
Conversion between embedded-backend entities and domain models.
"""
from typing import Dict, Iterable, List, Optional, Tuple

from rbac_service.features.roles.actions import decode_actions, encode_actions
from rbac_service.features.roles.entities import PermissionEntity, RoleEntity, RolePermissionEntity
from rbac_service.features.roles.models import Permission, Role


def to_permission(entity: PermissionEntity) -> Permission:
    """
    Convert a PermissionEntity to a Permission.

    Raises:
        ConversionError: if the stored action string is not a known namespace
    """
    return Permission(
        id=entity.id,
        name=entity.name,
        effect=entity.effect,
        action=decode_actions(entity.action),
        resource=entity.resource,
        description=entity.description or None,
    )


def from_permission(permission: Permission) -> PermissionEntity:
    """Convert a Permission to a new PermissionEntity with its actions flattened."""
    return PermissionEntity(
        id=permission.id,
        name=permission.name,
        effect=permission.effect.value,
        action=encode_actions(permission.action),
        resource=permission.resource,
        description=permission.description,
    )


def from_role(role: Role) -> Tuple[RoleEntity, List[RolePermissionEntity]]:
    """Convert a Role to its entity and one association entity per permission."""
    role_entity = RoleEntity(id=role.id, name=role.name)
    links = [
        RolePermissionEntity(role_id=role.id, permission_id=permission.id)
        for permission in role.permissions
    ]
    return role_entity, links


def to_roles(rows: Iterable[Tuple[RoleEntity, Optional[PermissionEntity]]]) -> List[Role]:
    """
    Fold (role, permission) pairs from an outer join into roles.

    The first pair for a role creates it with no permissions; a None permission
    means the role has no associations.
    """
    roles: Dict[str, Role] = {}
    for role_entity, permission_entity in rows:
        role = roles.get(role_entity.id)
        if role is None:
            role = Role(id=role_entity.id, name=role_entity.name, permissions=[])
            roles[role_entity.id] = role
        if permission_entity is not None:
            role.permissions.append(to_permission(permission_entity))
    return list(roles.values())
