"""
Role service: the caller-facing entry point to the role store.
"""
from typing import List, Sequence

from rbac_service.features.roles.models import Permission, Role
from rbac_service.features.roles.store import RoleStore
from rbac_service.utils import get_logger


log = get_logger(__name__)


class RoleService:
    """Thin orchestrator over a RoleStore; errors from the store propagate unchanged."""

    def __init__(self, store: RoleStore):
        self.store = store

    async def get_roles(self) -> List[Role]:
        roles = await self.store.get_roles()
        log.debug("Fetched %d roles", len(roles))
        return roles

    async def get_permissions(self) -> List[Permission]:
        permissions = await self.store.get_permissions()
        log.debug("Fetched %d permissions", len(permissions))
        return permissions

    async def set_permissions_for_role(self, role_id: str, permissions: Sequence[Permission]) -> Role:
        """
        Replace the permissions of a role.

        Args:
            role_id: Role UUID, already validated by the caller
            permissions: The complete desired permission set

        Returns:
            The role as stored after the update
        """
        log.info("Setting %d permissions for role %s", len(permissions), role_id)
        return await self.store.set_permissions_for_role(role_id, permissions)
