"""
Role management API routes.

Errors raised by the service are ProjectErrors and are turned into responses by
the exception handler registered in main.py.
"""
from typing import List

from fastapi import APIRouter, Depends, Request

from rbac_service.core.errors import DatabaseNotInitializedError
from rbac_service.features.roles.models import Permission, Role
from rbac_service.features.roles.schemas import ErrorResponse, SetPermissionsRequest
from rbac_service.features.roles.service import RoleService
from rbac_service.utils import get_logger


log = get_logger(__name__)
router = APIRouter()


def get_role_service(request: Request) -> RoleService:
    """
    Dependency returning the RoleService built at startup.

    Usage in FastAPI routes:
        @router.get("/roles")
        async def list_roles(service: RoleService = Depends(get_role_service)):
            return await service.get_roles()
    """
    service = getattr(request.app.state, "role_service", None)
    if service is None:
        raise DatabaseNotInitializedError("Role service is not initialized")
    return service


@router.get("/roles", response_model=List[Role])
async def list_roles(service: RoleService = Depends(get_role_service)):
    """List all roles with their permissions."""
    return await service.get_roles()


@router.get("/permissions", response_model=List[Permission])
async def list_permissions(service: RoleService = Depends(get_role_service)):
    """List the permission catalog."""
    return await service.get_permissions()


@router.put(
    "/roles",
    response_model=Role,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def set_permissions_for_role(
    body: SetPermissionsRequest,
    service: RoleService = Depends(get_role_service),
):
    """Replace the permission set of a role."""
    return await service.set_permissions_for_role(str(body.role_id), body.permissions)
