"""
Embedded role store.

Uses the ORM: entities are loaded and changed inside an AsyncSession whose
transaction (``session.begin()``) commits on success and rolls back every
entity change on failure. Runs on SQLite in memory by default.
"""
from typing import List, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from rbac_service.core.database.base import Base
from rbac_service.core.database.engine import DatabaseClient
from rbac_service.core.errors import (
    InvalidPermissionError,
    QueryError,
    RoleNotFoundError,
    ServerError,
)
from rbac_service.features.roles import converters
from rbac_service.features.roles.demo_data import DEMO_PERMISSIONS, DEMO_ROLES
from rbac_service.features.roles.entities import PermissionEntity, RoleEntity, RolePermissionEntity
from rbac_service.features.roles.models import Permission, Role
from rbac_service.features.roles.store import RoleStore, desired_permission_ids, role_key
from rbac_service.utils import get_logger


log = get_logger(__name__)


def _roles_with_permissions_query():
    return (
        select(RoleEntity, PermissionEntity)
        .outerjoin(RolePermissionEntity, RolePermissionEntity.role_id == RoleEntity.id)
        .outerjoin(PermissionEntity, PermissionEntity.id == RolePermissionEntity.permission_id)
        .order_by(RoleEntity.name, RoleEntity.id, PermissionEntity.name, PermissionEntity.id)
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


class EmbeddedRoleStore(RoleStore):
    """RoleStore backed by ORM entities and session transactions."""

    def __init__(self, database: DatabaseClient):
        self.database = database
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = build_session_factory(self.database.engine)
        return self._session_factory

    async def get_roles(self) -> List[Role]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(_roles_with_permissions_query())
                rows = result.all()
        except SQLAlchemyError as e:
            log.exception("Error fetching roles")
            raise QueryError("Error fetching roles from the database") from e
        return converters.to_roles(rows)

    async def get_permissions(self) -> List[Permission]:
        try:
            async with self.session_factory() as session:
                result = await session.scalars(
                    select(PermissionEntity).order_by(PermissionEntity.name, PermissionEntity.id)
                )
                entities = result.all()
        except SQLAlchemyError as e:
            log.exception("Error fetching permissions")
            raise QueryError("Error fetching permissions from the database") from e
        return [converters.to_permission(entity) for entity in entities]

    async def get_role_by_id(self, role_id: str) -> Role:
        role_id = role_key(role_id)
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    _roles_with_permissions_query().where(RoleEntity.id == role_id)
                )
                rows = result.all()
        except SQLAlchemyError as e:
            log.exception("Error fetching role %s", role_id)
            raise QueryError(f"Error fetching role {role_id} from the database") from e

        roles = converters.to_roles(rows)
        if not roles:
            raise RoleNotFoundError(role_id)
        return roles[0]

    async def set_permissions_for_role(self, role_id: str, permissions: Sequence[Permission]) -> Role:
        role_id = role_key(role_id)
        desired_ids = desired_permission_ids(permissions)
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    await self._check_role_existence(session, role_id)
                    await self._validate_permission_ids(session, desired_ids)

                    result = await session.scalars(
                        select(RolePermissionEntity).where(RolePermissionEntity.role_id == role_id)
                    )
                    current = {link.permission_id: link for link in result.all()}
                    desired = set(desired_ids)

                    removed = [link for permission_id, link in current.items() if permission_id not in desired]
                    added = [
                        RolePermissionEntity(role_id=role_id, permission_id=permission_id)
                        for permission_id in desired_ids
                        if permission_id not in current
                    ]
                    for link in removed:
                        await session.delete(link)
                    session.add_all(added)
        except SQLAlchemyError as e:
            log.exception("Error setting permissions for role %s", role_id)
            raise QueryError(f"Error setting permissions for role {role_id}") from e

        log.info(
            "Permissions set for role %s: %d added, %d removed",
            role_id, len(added), len(removed),
        )

        try:
            return await self.get_role_by_id(role_id)
        except RoleNotFoundError:
            raise ServerError(f"Role with ID {role_id} does not exist after update, Server error") from None

    async def _check_role_existence(self, session: AsyncSession, role_id: str) -> RoleEntity:
        role_entity = await session.get(RoleEntity, role_id, with_for_update=True)
        if role_entity is None:
            raise RoleNotFoundError(role_id)
        return role_entity

    async def _validate_permission_ids(self, session: AsyncSession, permission_ids: List[str]) -> None:
        if not permission_ids:
            return
        result = await session.scalars(
            select(PermissionEntity.id).where(PermissionEntity.id.in_(permission_ids))
        )
        valid_ids = set(result.all())
        invalid_ids = [permission_id for permission_id in permission_ids if permission_id not in valid_ids]
        if invalid_ids:
            raise InvalidPermissionError(invalid_ids)


# ============================================================================
# Provisioning
# ============================================================================

async def create_tables(engine: AsyncEngine) -> None:
    """Create the entity tables if they do not exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def fill_demo_data(engine: AsyncEngine) -> None:
    """Merge the demo permissions and roles; existing entities are overwritten."""
    async with build_session_factory(engine)() as session:
        async with session.begin():
            for permission in DEMO_PERMISSIONS:
                await session.merge(converters.from_permission(permission))
            for role in DEMO_ROLES:
                role_entity, links = converters.from_role(role)
                await session.merge(role_entity)
                for link in links:
                    await session.merge(link)
