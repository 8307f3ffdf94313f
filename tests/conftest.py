"""Shared pytest fixtures for the role store tests."""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass

import pytest
import pytest_asyncio
from sqlalchemy import text

from rbac_service.core import config
from rbac_service.core.database.engine import DatabaseClient
from rbac_service.features.roles.demo_data import DEMO_PERMISSIONS, DEMO_ROLES
from rbac_service.features.roles.models import Permission
from rbac_service.features.roles.store import RoleStore, build_role_store


MEMORY_URL = "sqlite+aiosqlite:///:memory:"


@dataclass
class Backend:
    """An initialized store plus the table names its backend persists to."""

    name: str
    database: DatabaseClient
    store: RoleStore
    role_table: str
    permission_table: str
    link_table: str

    async def linked_permission_ids(self, role_id: str) -> set[str]:
        async with self.database.engine.connect() as conn:
            result = await conn.execute(
                text(f"SELECT permission_id FROM {self.link_table} WHERE role_id = :role_id"),
                {"role_id": role_id},
            )
            return set(result.scalars().all())

    async def link_count(self) -> int:
        async with self.database.engine.connect() as conn:
            result = await conn.execute(text(f"SELECT COUNT(*) FROM {self.link_table}"))
            return result.scalar_one()

    async def execute(self, statement: str, params: dict | None = None) -> None:
        async with self.database.engine.begin() as conn:
            await conn.execute(text(statement), params or {})


BACKENDS = {
    "relational": (config.DATABASE_TYPE_POSTGRES, "role", "permission", "role_permission"),
    "embedded": (config.DATABASE_TYPE_SQLITE_MEM, "roles", "permissions", "role_permissions"),
}


@pytest_asyncio.fixture(params=sorted(BACKENDS))
async def backend(request: pytest.FixtureRequest) -> AsyncIterator[Backend]:
    """Each backend on a fresh in-memory SQLite database seeded with the demo data."""

    database_type, role_table, permission_table, link_table = BACKENDS[request.param]
    database = DatabaseClient(MEMORY_URL)
    await database.initialize(database_type, create_tables=True, fill_demo_data=True)
    try:
        yield Backend(
            name=request.param,
            database=database,
            store=build_role_store(database_type, database),
            role_table=role_table,
            permission_table=permission_table,
            link_table=link_table,
        )
    finally:
        await database.dispose()


@pytest.fixture
def role_id() -> str:
    return DEMO_ROLES[0].id


@pytest.fixture
def p1() -> Permission:
    """db:read on Database1."""
    return DEMO_PERMISSIONS[0]


@pytest.fixture
def p2() -> Permission:
    """db:write on Database2."""
    return DEMO_PERMISSIONS[1]


@pytest.fixture
def unknown_permission(p1: Permission) -> Permission:
    return p1.model_copy(update={"id": "00000000-0000-4000-8000-000000000001"})
