"""
Seed script to populate the demo permissions and roles.

Creates the tables of the configured backend (DATABASE_TYPE) and upserts:
- The demo permission catalog
- The demo roles, without permission assignments

Only useful against a persistent database (PostgreSQL, or a file-backed
SQLITE_DATABASE_URL); an in-memory database is gone when the script exits.

Usage:
    DATABASE_TYPE=postgres python -m scripts.seed_permissions
"""
import asyncio

from rbac_service.core import config
from rbac_service.core.database.engine import DatabaseClient
from rbac_service.features.roles.demo_data import DEMO_PERMISSIONS, DEMO_ROLES
from rbac_service.utils import get_logger


log = get_logger(__name__)


async def main():
    """Create tables and upsert the demo data."""
    log.info("Starting permission seeding...")
    database_url = (
        config.DATABASE_URL
        if config.DATABASE_TYPE == config.DATABASE_TYPE_POSTGRES
        else config.SQLITE_DATABASE_URL
    )
    database = DatabaseClient(database_url, echo=config.DB_LOGGING)
    try:
        await database.initialize(config.DATABASE_TYPE, create_tables=True, fill_demo_data=True)
        log.info("Permission seeding completed successfully!")
        log.info("%d permissions, %d roles:", len(DEMO_PERMISSIONS), len(DEMO_ROLES))
        for role in DEMO_ROLES:
            log.info("  - %s (%s)", role.name, role.id)
    finally:
        await database.dispose()


if __name__ == "__main__":
    asyncio.run(main())
