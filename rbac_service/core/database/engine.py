"""
Database engine configuration and lifecycle.

One DatabaseClient is created at startup, initialized once and passed to the
role store. It is disposed on shutdown.

Relational backend: PostgreSQL (async with asyncpg)
Embedded backend: SQLite in memory (async with aiosqlite)
"""
from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool, NullPool

from rbac_service.core import config
from rbac_service.core.errors import DatabaseInitializationError, DatabaseNotInitializedError
from rbac_service.utils import get_logger


log = get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record):
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine for ``url``.

    SQLite in memory: a single pooled connection, so the database survives for
    the life of the engine and transactions queue for it.
    SQLite file: NullPool to avoid connection pool issues.
    PostgreSQL: default pool.
    """
    parsed = make_url(url)
    kwargs = {}
    if parsed.get_backend_name() == "sqlite":
        if parsed.database in (None, "", ":memory:"):
            kwargs.update(poolclass=AsyncAdaptedQueuePool, pool_size=1, max_overflow=0)
        else:
            kwargs.update(poolclass=NullPool)

    engine = create_async_engine(url, echo=echo, future=True, **kwargs)
    if parsed.get_backend_name() == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


class DatabaseClient:
    """
    Process-wide database handle.

    Usage:
        database = DatabaseClient(config.DATABASE_URL)
        await database.initialize("postgres", create_tables=True)
        ...
        await database.dispose()
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: AsyncEngine | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise DatabaseNotInitializedError()
        return self._engine

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    async def initialize(
        self,
        database_type: str,
        create_tables: bool = False,
        fill_demo_data: bool = False,
    ) -> None:
        """
        Connect, then optionally create the backend's tables and seed demo data.

        Raises:
            DatabaseInitializationError: if any step fails; the engine is disposed
        """
        if self._engine is not None:
            return

        engine = build_engine(self.url, echo=self.echo)
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            log.info("Successfully connected to the database")

            if create_tables:
                await init_db(engine, database_type)
            if fill_demo_data:
                await seed_db(engine, database_type)
        except (SQLAlchemyError, OSError, ValueError) as e:
            await engine.dispose()
            raise DatabaseInitializationError(f"Database initialization failed: {e}") from e

        self._engine = engine

    async def dispose(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        log.info("Database connections closed")


def _backend_module(database_type: str):
    # Import backends lazily so their tables are registered only when used
    if database_type == config.DATABASE_TYPE_POSTGRES:
        from rbac_service.features.roles import relational
        return relational
    if database_type == config.DATABASE_TYPE_SQLITE_MEM:
        from rbac_service.features.roles import embedded
        return embedded
    raise ValueError(f"Unknown DATABASE_TYPE: {database_type}")


async def init_db(engine: AsyncEngine, database_type: str) -> None:
    """Create the tables of the selected backend if they do not exist."""
    await _backend_module(database_type).create_tables(engine)
    log.info("Tables created for %s backend", database_type)


async def seed_db(engine: AsyncEngine, database_type: str) -> None:
    """Upsert the demo roles and permissions for the selected backend."""
    await _backend_module(database_type).fill_demo_data(engine)
    log.info("Demo data inserted for %s backend", database_type)
