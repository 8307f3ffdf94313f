"""
ORM entities for the embedded backend.

The role-permission link is its own entity keyed by (role_id, permission_id).
Entities hold no relationship attributes; roles and their permissions are
joined explicitly through RolePermissionEntity when queried.
"""
from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rbac_service.core.database.base import Base


class PermissionEntity(Base):
    """A permission in the catalog. ``action`` holds the comma-delimited action string."""
    __tablename__ = "permissions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    effect: Mapped[str] = mapped_column(String(255), nullable=False)
    action: Mapped[str] = mapped_column(Text, nullable=False)
    resource: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<PermissionEntity(id={self.id}, name={self.name!r}, action={self.action!r})>"


class RoleEntity(Base):
    __tablename__ = "roles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)

    def __repr__(self) -> str:
        return f"<RoleEntity(id={self.id}, name={self.name!r})>"


class RolePermissionEntity(Base):
    """
    Association between a role and a permission.

    Deleting either side cascades to its associations.
    """
    __tablename__ = "role_permissions"

    role_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("roles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    permission_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("permissions.id", ondelete="CASCADE"),
        primary_key=True,
    )

    def __repr__(self) -> str:
        return f"<RolePermissionEntity(role_id={self.role_id}, permission_id={self.permission_id})>"
