"""
Domain models for roles and permissions.

These are the values that cross the storage contract. Backends translate them
to and from their own persisted shapes.
"""
from enum import Enum
from typing import List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator


class Effect(str, Enum):
    """Polarity of a permission."""
    ALLOW = "Allow"
    DENY = "Deny"


class DatabaseAction(str, Enum):
    """Actions on database resources."""
    READ = "db:read"
    WRITE = "db:write"
    UPDATE = "db:update"
    DELETE = "db:delete"


class AuthenticationAction(str, Enum):
    """Actions on the authentication system."""
    VERIFY = "ath:verify"
    CHANGE_PASSWORD = "ath:change_password"
    RESET_PASSWORD = "ath:update_password"
    CREATE_USER = "ath:create_user"


# Every known action namespace, in lookup order
ACTION_NAMESPACES: tuple[type[Enum], ...] = (DatabaseAction, AuthenticationAction)

ActionList = Union[List[DatabaseAction], List[AuthenticationAction]]


def canonical_uuid(value: Union[str, UUID]) -> str:
    """Return the canonical lowercase string form of a UUID."""
    if isinstance(value, UUID):
        return str(value)
    return str(UUID(str(value)))


class Permission(BaseModel):
    """
    An access rule on a resource.

    Example:
        Permission(
            id="0d6179fc-bc2f-4a50-bfd8-4ce4d10680f4",
            name="Permission 1",
            effect=Effect.ALLOW,
            action=[DatabaseAction.READ],
            resource="Database1",
        )

    The action list must be non-empty and stay within a single namespace.
    """
    id: str = Field(..., description="Permission UUID")
    name: str
    effect: Effect
    action: ActionList = Field(..., description="Actions, all from one namespace")
    resource: str
    description: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def id_is_uuid(cls, v):
        return canonical_uuid(v)

    @field_validator("action")
    @classmethod
    def action_not_empty(cls, v: ActionList) -> ActionList:
        if not v:
            raise ValueError("Permission must have at least one action")
        return v


class Role(BaseModel):
    """A named bundle of permission associations."""
    id: str = Field(..., description="Role UUID")
    name: str
    permissions: List[Permission] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def id_is_uuid(cls, v):
        return canonical_uuid(v)

    @model_validator(mode="after")
    def no_duplicate_permissions(self) -> "Role":
        ids = [permission.id for permission in self.permissions]
        if len(ids) != len(set(ids)):
            raise ValueError("Role permissions must not contain duplicate ids")
        return self

    def permission_ids(self) -> set[str]:
        return {permission.id for permission in self.permissions}
