#!/usr/bin/env python3
"""
Stock Control Database Initialization Script
Creates database tables for the configured DATABASE_URL
"""
import sys

from stockcore.core.config import settings
from stockcore.core.database import check_db_connection, init_db
from stockcore.core.logging import get_logger, setup_logging

logger = get_logger("database.init")


def main() -> int:
    setup_logging()
    logger.info(f"Initializing database at {settings.DATABASE_URL}")

    if not check_db_connection():
        logger.error("Database is not reachable")
        return 1

    init_db()
    logger.info("Database initialization completed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
