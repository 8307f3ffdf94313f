"""
Pydantic schemas for the role endpoints.

Roles and permissions are returned as the domain models themselves; only the
update request needs its own shape.
"""
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from rbac_service.features.roles.models import Permission


class SetPermissionsRequest(BaseModel):
    """Body of PUT /auth/roles: the complete permission set a role should end up with."""
    role_id: UUID = Field(..., alias="roleId", description="Role to update")
    permissions: List[Permission] = Field(..., description="Desired permissions; only ids are used")

    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    """Error body returned for failed requests."""
    error: str
    code: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
