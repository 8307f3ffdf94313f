"""Tests for the database handle lifecycle and backend selection."""

from __future__ import annotations

import pytest

from rbac_service.core import config
from rbac_service.core.database.engine import DatabaseClient
from rbac_service.core.errors import DatabaseInitializationError, DatabaseNotInitializedError
from rbac_service.features.roles.embedded import EmbeddedRoleStore
from rbac_service.features.roles.relational import RelationalRoleStore
from rbac_service.features.roles.store import build_role_store


MEMORY_URL = "sqlite+aiosqlite:///:memory:"


def test_engine_before_initialize_raises() -> None:
    with pytest.raises(DatabaseNotInitializedError):
        DatabaseClient(MEMORY_URL).engine


@pytest.mark.asyncio
async def test_initialize_and_dispose() -> None:
    database = DatabaseClient(MEMORY_URL)

    await database.initialize(config.DATABASE_TYPE_SQLITE_MEM, create_tables=True)
    assert database.is_initialized
    engine = database.engine
    await database.initialize(config.DATABASE_TYPE_SQLITE_MEM)
    assert database.engine is engine

    await database.dispose()
    assert not database.is_initialized
    with pytest.raises(DatabaseNotInitializedError):
        database.engine


@pytest.mark.asyncio
async def test_initialize_unknown_database_type_fails() -> None:
    database = DatabaseClient(MEMORY_URL)

    with pytest.raises(DatabaseInitializationError):
        await database.initialize("oracle", create_tables=True)
    assert not database.is_initialized


@pytest.mark.asyncio
async def test_initialize_unreachable_file_fails(tmp_path) -> None:
    missing_dir = tmp_path / "missing" / "rbac.sqlite"
    database = DatabaseClient(f"sqlite+aiosqlite:///{missing_dir}")

    with pytest.raises(DatabaseInitializationError):
        await database.initialize(config.DATABASE_TYPE_SQLITE_MEM)


@pytest.mark.asyncio
async def test_fill_demo_data_is_repeatable(tmp_path) -> None:
    url = f"sqlite+aiosqlite:///{tmp_path / 'rbac.sqlite'}"
    for _ in range(2):
        database = DatabaseClient(url)
        await database.initialize(config.DATABASE_TYPE_POSTGRES, create_tables=True, fill_demo_data=True)
        store = build_role_store(config.DATABASE_TYPE_POSTGRES, database)
        assert len(await store.get_permissions()) == 10
        assert len(await store.get_roles()) == 3
        await database.dispose()


def test_build_role_store_selects_backend() -> None:
    database = DatabaseClient(MEMORY_URL)

    assert isinstance(build_role_store(config.DATABASE_TYPE_POSTGRES, database), RelationalRoleStore)
    assert isinstance(build_role_store(config.DATABASE_TYPE_SQLITE_MEM, database), EmbeddedRoleStore)
    with pytest.raises(ValueError):
        build_role_store("oracle", database)
