"""
Storage contract for roles and permissions.

Two backends implement RoleStore:
- RelationalRoleStore: SQL statements on connections with explicit transactions
- EmbeddedRoleStore: ORM entities in a session transaction scope

The backend is chosen once at startup by build_role_store() and handed to the
service explicitly.
"""
from abc import ABC, abstractmethod
from typing import List, Sequence

from rbac_service.core import config
from rbac_service.core.database.engine import DatabaseClient
from rbac_service.features.roles.models import Permission, Role, canonical_uuid


class RoleStore(ABC):
    """Backend-agnostic access to roles, the permission catalog and their associations."""

    @abstractmethod
    async def get_roles(self) -> List[Role]:
        """
        Return every role with its resolved permissions.

        A role without associations has ``permissions == []``.

        Raises:
            QueryError: if the engine rejects the read
        """

    @abstractmethod
    async def get_permissions(self) -> List[Permission]:
        """
        Return the full permission catalog.

        Raises:
            QueryError: if the engine rejects the read
        """

    @abstractmethod
    async def get_role_by_id(self, role_id: str) -> Role:
        """
        Return one role with its resolved permissions.

        Raises:
            RoleNotFoundError: if no role has this id
            QueryError: if the engine rejects the read
        """

    @abstractmethod
    async def set_permissions_for_role(self, role_id: str, permissions: Sequence[Permission]) -> Role:
        """
        Atomically replace the role's permission set with ``permissions``.

        Only the permission ids are used. Within one transaction the role must
        exist, every id must exist in the catalog, then associations for ids
        no longer wanted are deleted and those for new ids are inserted. The
        role is reloaded after commit.

        Raises:
            RoleNotFoundError: if the role does not exist
            InvalidPermissionError: if any id is missing from the catalog;
                carries every missing id
            ServerError: if the role disappeared between commit and reload
            QueryError: if the engine rejects a statement
        """


def desired_permission_ids(permissions: Sequence[Permission]) -> List[str]:
    """Permission ids in request order with duplicates removed."""
    return list(dict.fromkeys(permission.id for permission in permissions))


def role_key(role_id: str) -> str:
    """The stored form of a role id; anything that is not a UUID is looked up as given."""
    try:
        return canonical_uuid(role_id)
    except ValueError:
        return role_id


def build_role_store(database_type: str, database: DatabaseClient) -> RoleStore:
    """
    Build the store for the configured backend.

    Args:
        database_type: config.DATABASE_TYPE_POSTGRES or config.DATABASE_TYPE_SQLITE_MEM
        database: an initialized DatabaseClient

    Raises:
        ValueError: for an unknown database type
    """
    if database_type == config.DATABASE_TYPE_POSTGRES:
        from rbac_service.features.roles.relational import RelationalRoleStore
        return RelationalRoleStore(database)
    if database_type == config.DATABASE_TYPE_SQLITE_MEM:
        from rbac_service.features.roles.embedded import EmbeddedRoleStore
        return EmbeddedRoleStore(database)
    raise ValueError(f"Unknown DATABASE_TYPE: {database_type}")
