"""
Relational role store.

Works directly with SQL statements on engine connections. Each write runs in
an explicit transaction (``engine.begin()``) that commits on success and rolls
back on any exception. Written for PostgreSQL; the statements also run on
SQLite, which the test suite uses.

Schema:
    role(uid, name)
    permission(id, name, effect, action, resource, description)
    role_permission(role_id -> role.uid, permission_id -> permission.id)
"""
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence

from sqlalchemy import (
    Column,
    ForeignKey,
    MetaData,
    String,
    Table,
    Text,
    and_,
    delete,
    insert,
    select,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from rbac_service.core.database.engine import DatabaseClient
from rbac_service.core.errors import (
    InvalidPermissionError,
    QueryError,
    RoleNotFoundError,
    ServerError,
)
from rbac_service.features.roles.actions import decode_actions, encode_actions
from rbac_service.features.roles.demo_data import DEMO_PERMISSIONS, DEMO_ROLES
from rbac_service.features.roles.models import Permission, Role
from rbac_service.features.roles.store import RoleStore, desired_permission_ids, role_key
from rbac_service.utils import get_logger


log = get_logger(__name__)


# ============================================================================
# Tables
# ============================================================================

metadata = MetaData()

role_table = Table(
    "role",
    metadata,
    Column("uid", String(36), primary_key=True),
    Column("name", String(256), nullable=False),
)

permission_table = Table(
    "permission",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(256), nullable=False),
    Column("effect", String(15), nullable=False),
    Column("action", Text, nullable=False),
    Column("resource", String(256), nullable=False),
    Column("description", String(500), nullable=True),
)

role_permission_table = Table(
    "role_permission",
    metadata,
    Column("role_id", String(36), ForeignKey("role.uid", ondelete="CASCADE"), primary_key=True),
    Column("permission_id", String(36), ForeignKey("permission.id", ondelete="CASCADE"), primary_key=True),
)


# ============================================================================
# Row shapes
# ============================================================================

class PermissionRow(NamedTuple):
    """One row of the permission table."""
    id: str
    name: str
    effect: str
    action: str
    resource: str
    description: Optional[str]


class RolePermissionRow(NamedTuple):
    """One row of the role/permission outer join; permission columns are None for roles without any."""
    role_id: str
    role_name: str
    permission_id: Optional[str]
    permission_name: Optional[str]
    effect: Optional[str]
    action: Optional[str]
    resource: Optional[str]
    description: Optional[str]


_PERMISSION_COLUMNS = (
    permission_table.c.id,
    permission_table.c.name,
    permission_table.c.effect,
    permission_table.c.action,
    permission_table.c.resource,
    permission_table.c.description,
)

_ROLE_PERMISSION_COLUMNS = (
    role_table.c.uid.label("role_id"),
    role_table.c.name.label("role_name"),
    permission_table.c.id.label("permission_id"),
    permission_table.c.name.label("permission_name"),
    permission_table.c.effect,
    permission_table.c.action,
    permission_table.c.resource,
    permission_table.c.description,
)


def _roles_with_permissions_query():
    return (
        select(*_ROLE_PERMISSION_COLUMNS)
        .select_from(
            role_table
            .outerjoin(role_permission_table, role_table.c.uid == role_permission_table.c.role_id)
            .outerjoin(permission_table, role_permission_table.c.permission_id == permission_table.c.id)
        )
        .order_by(role_table.c.name, role_table.c.uid, permission_table.c.name, permission_table.c.id)
    )


def _permission_from_row(row: PermissionRow) -> Permission:
    return Permission(
        id=row.id,
        name=row.name,
        effect=row.effect,
        action=decode_actions(row.action),
        resource=row.resource,
        description=row.description,
    )


def _fold_roles(rows: Iterable[RolePermissionRow]) -> List[Role]:
    """Fold joined rows into roles; the first row of a role creates it with no permissions."""
    roles: Dict[str, Role] = {}
    for row in rows:
        role = roles.get(row.role_id)
        if role is None:
            role = Role(id=row.role_id, name=row.role_name, permissions=[])
            roles[row.role_id] = role

        if row.permission_id is not None:
            role.permissions.append(
                _permission_from_row(
                    PermissionRow(
                        id=row.permission_id,
                        name=row.permission_name,
                        effect=row.effect,
                        action=row.action,
                        resource=row.resource,
                        description=row.description,
                    )
                )
            )
    return list(roles.values())


def _dialect_insert(conn: AsyncConnection, table: Table):
    """INSERT construct for the connection's dialect, so ON CONFLICT clauses are available."""
    dialect_name = conn.dialect.name
    if dialect_name == "postgresql":
        return postgresql.insert(table)
    if dialect_name == "sqlite":
        return sqlite.insert(table)
    return insert(table)


# ============================================================================
# Store
# ============================================================================

class RelationalRoleStore(RoleStore):
    """RoleStore backed by SQL statements over explicit transactions."""

    def __init__(self, database: DatabaseClient):
        self.database = database

    async def get_roles(self) -> List[Role]:
        try:
            async with self.database.engine.connect() as conn:
                result = await conn.execute(_roles_with_permissions_query())
                rows = [RolePermissionRow(*row) for row in result.all()]
        except SQLAlchemyError as e:
            log.exception("Error fetching roles")
            raise QueryError("Error fetching roles from the database") from e
        return _fold_roles(rows)

    async def get_permissions(self) -> List[Permission]:
        try:
            async with self.database.engine.connect() as conn:
                result = await conn.execute(
                    select(*_PERMISSION_COLUMNS).order_by(permission_table.c.name, permission_table.c.id)
                )
                rows = [PermissionRow(*row) for row in result.all()]
        except SQLAlchemyError as e:
            log.exception("Error fetching permissions")
            raise QueryError("Error fetching permissions from the database") from e
        return [_permission_from_row(row) for row in rows]

    async def get_role_by_id(self, role_id: str) -> Role:
        role_id = role_key(role_id)
        try:
            async with self.database.engine.connect() as conn:
                result = await conn.execute(
                    _roles_with_permissions_query().where(role_table.c.uid == role_id)
                )
                rows = [RolePermissionRow(*row) for row in result.all()]
        except SQLAlchemyError as e:
            log.exception("Error fetching role %s", role_id)
            raise QueryError(f"Error fetching role {role_id} from the database") from e

        # No rows means no role; a role without permissions still yields one row
        if not rows:
            raise RoleNotFoundError(role_id)
        return _fold_roles(rows)[0]

    async def set_permissions_for_role(self, role_id: str, permissions: Sequence[Permission]) -> Role:
        role_id = role_key(role_id)
        desired_ids = desired_permission_ids(permissions)
        try:
            async with self.database.engine.begin() as conn:
                await self._validate_role_exists(conn, role_id)
                await self._validate_permissions_exist(conn, desired_ids)

                current_ids = await self._current_permission_ids(conn, role_id)
                desired = set(desired_ids)
                to_insert = [permission_id for permission_id in desired_ids if permission_id not in current_ids]
                to_delete = [permission_id for permission_id in current_ids if permission_id not in desired]

                await self._insert_associations(conn, role_id, to_insert)
                await self._delete_associations(conn, role_id, to_delete)
        except SQLAlchemyError as e:
            log.exception("Error setting permissions for role %s", role_id)
            raise QueryError(f"Error setting permissions for role {role_id}") from e

        log.info(
            "Permissions set for role %s: %d added, %d removed",
            role_id, len(to_insert), len(to_delete),
        )

        try:
            return await self.get_role_by_id(role_id)
        except RoleNotFoundError:
            raise ServerError(f"Role with ID {role_id} does not exist after update, Server error") from None

    async def _validate_role_exists(self, conn: AsyncConnection, role_id: str) -> None:
        # Row lock on the role serializes concurrent reconciliations of the same role
        result = await conn.execute(
            select(role_table.c.uid).where(role_table.c.uid == role_id).with_for_update()
        )
        if result.first() is None:
            raise RoleNotFoundError(role_id)

    async def _validate_permissions_exist(self, conn: AsyncConnection, permission_ids: List[str]) -> None:
        if not permission_ids:
            return
        result = await conn.execute(
            select(permission_table.c.id).where(permission_table.c.id.in_(permission_ids))
        )
        found = set(result.scalars().all())
        missing = [permission_id for permission_id in permission_ids if permission_id not in found]
        if missing:
            raise InvalidPermissionError(missing)

    async def _current_permission_ids(self, conn: AsyncConnection, role_id: str) -> List[str]:
        result = await conn.execute(
            select(role_permission_table.c.permission_id)
            .where(role_permission_table.c.role_id == role_id)
            .order_by(role_permission_table.c.permission_id)
        )
        return list(result.scalars().all())

    async def _insert_associations(self, conn: AsyncConnection, role_id: str, permission_ids: List[str]) -> None:
        if not permission_ids:
            return
        stmt = _dialect_insert(conn, role_permission_table)
        if hasattr(stmt, "on_conflict_do_nothing"):
            stmt = stmt.on_conflict_do_nothing()
        await conn.execute(
            stmt,
            [{"role_id": role_id, "permission_id": permission_id} for permission_id in permission_ids],
        )

    async def _delete_associations(self, conn: AsyncConnection, role_id: str, permission_ids: List[str]) -> None:
        if not permission_ids:
            return
        await conn.execute(
            delete(role_permission_table).where(
                and_(
                    role_permission_table.c.role_id == role_id,
                    role_permission_table.c.permission_id.in_(permission_ids),
                )
            )
        )


# ============================================================================
# Provisioning
# ============================================================================

async def create_tables(engine: AsyncEngine) -> None:
    """Create role, permission and role_permission if they do not exist."""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)


async def fill_demo_data(engine: AsyncEngine) -> None:
    """Upsert the demo permissions and roles; existing rows are overwritten."""
    async with engine.begin() as conn:
        for permission in DEMO_PERMISSIONS:
            values = {
                "id": permission.id,
                "name": permission.name,
                "effect": permission.effect.value,
                "action": encode_actions(permission.action),
                "resource": permission.resource,
                "description": permission.description,
            }
            stmt = _dialect_insert(conn, permission_table).values(**values)
            if hasattr(stmt, "on_conflict_do_update"):
                stmt = stmt.on_conflict_do_update(
                    index_elements=[permission_table.c.id],
                    set_={key: value for key, value in values.items() if key != "id"},
                )
            await conn.execute(stmt)

        for role in DEMO_ROLES:
            stmt = _dialect_insert(conn, role_table).values(uid=role.id, name=role.name)
            if hasattr(stmt, "on_conflict_do_update"):
                stmt = stmt.on_conflict_do_update(
                    index_elements=[role_table.c.uid],
                    set_={"name": role.name},
                )
            await conn.execute(stmt)
