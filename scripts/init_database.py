#!/usr/bin/env python3
"""
Initialize the personal data server database.

Creates the accounts and documents tables on the configured DATABASE_URL
(SQLite by default) and prepares the document store directory.

Usage:
    python scripts/init_database.py            # create tables
    python scripts/init_database.py status     # show tables and row counts
    python scripts/init_database.py drop       # drop all tables

    # With environment file
    ENV_FILE=.env.production python scripts/init_database.py

Environment Variables:
    DATABASE_URL - SQLAlchemy async URL (sqlite+aiosqlite or postgresql+asyncpg)
    DOCUMENT_STORE_PATH - Root directory for document content
    JWT_SECRET_KEY - Required by the settings loader
"""

import asyncio
import logging
import os
import sys
from pathlib import Path

# Configure logging for CLI output
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Load environment variables
from dotenv import load_dotenv

env_file = os.environ.get("ENV_FILE", ".env")
env_path = project_root / env_file
if env_path.exists():
    load_dotenv(env_path)
    logger.info(f"Loaded environment from: {env_path}")
else:
    logger.warning(f"No environment file found at: {env_path}")
    logger.info("Using system environment variables")

from sqlalchemy import func, inspect, select

from pds.core.config import get_settings
from pds.core.db_client import DatabaseManager
from pds.models.db_models import Base


def _table_names(sync_conn):
    return inspect(sync_conn).get_table_names()


async def init_tables():
    """Create all database tables and the document store root."""
    settings = get_settings()
    db = DatabaseManager.from_settings(settings)

    logger.info("=== Database Initialization ===")

    logger.info("Testing database connection...")
    if not await db.test_connection():
        logger.error("Could not connect to database")
        logger.error("Please check DATABASE_URL")
        sys.exit(1)

    logger.info("Database connection successful!")

    logger.info("Creating tables...")
    try:
        await db.create_tables()
        logger.info("Tables created successfully!")
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        await db.close()
        sys.exit(1)

    async with db.engine.connect() as conn:
        tables = await conn.run_sync(_table_names)
    logger.info("Tables in database:")
    for table_name in tables:
        logger.info(f"  - {table_name}")

    store_path = Path(settings.DOCUMENT_STORE_PATH)
    store_path.mkdir(parents=True, exist_ok=True)
    logger.info(f"Document store ready at: {store_path}")

    await db.close()
    logger.info("=== Initialization Complete ===")


async def drop_tables():
    """Drop all tables (use with caution!)."""
    settings = get_settings()
    db = DatabaseManager.from_settings(settings)

    logger.warning("=== WARNING: Dropping All Tables ===")

    confirm = input("Are you sure you want to drop all tables? (type 'yes' to confirm): ")
    if confirm.lower() != "yes":
        logger.info("Aborted.")
        return

    await db.drop_tables()
    logger.info("All tables dropped.")
    logger.warning(
        f"Document content under {settings.DOCUMENT_STORE_PATH} was not removed"
    )
    await db.close()


async def show_status():
    """Show table information and row counts."""
    db = DatabaseManager.from_settings(get_settings())

    logger.info("=== Database Status ===")

    if not await db.test_connection():
        logger.error("Could not connect to database")
        sys.exit(1)

    async with db.engine.connect() as conn:
        existing = set(await conn.run_sync(_table_names))
        for table in Base.metadata.sorted_tables:
            if table.name not in existing:
                logger.info(f"  - {table.name}: missing")
                continue
            result = await conn.execute(select(func.count()).select_from(table))
            logger.info(f"  - {table.name}: {result.scalar()} rows")

    await db.close()


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Initialize the database for the personal data server"
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="init",
        choices=["init", "drop", "status"],
        help="Command to run (default: init)"
    )

    args = parser.parse_args()

    if args.command == "init":
        asyncio.run(init_tables())
    elif args.command == "drop":
        asyncio.run(drop_tables())
    elif args.command == "status":
        asyncio.run(show_status())


if __name__ == "__main__":
    main()
