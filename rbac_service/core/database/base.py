"""
SQLAlchemy declarative base for the embedded backend's entities.

All ORM entities should inherit from Base.
"""
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy entities.

    Usage:
        from rbac_service.core.database.base import Base

        class RoleEntity(Base):
            __tablename__ = "roles"

            id: Mapped[str] = mapped_column(String(36), primary_key=True)
            name: Mapped[str] = mapped_column(String(256))
    """
    pass
