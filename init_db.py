"""
Database initialization script.
Creates every table directly from the models, or applies the Alembic
migrations with --migrate.
Run this as: python init_db.py [--migrate]
"""

import argparse
import logging
import sys

from kinship.core.config import settings
from kinship.db.init_db import create_all_tables, init_db

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("db-init")

def main():
    parser = argparse.ArgumentParser(description="Create the Kinship database schema")
    parser.add_argument("--migrate", action="store_true", help="Run alembic upgrade head instead of create_all")
    args = parser.parse_args()

    logger.info(f"Initializing database for environment: {settings.ENVIRONMENT}")
    if args.migrate:
        init_db()
        return

    if not create_all_tables():
        logger.error("Database initialization failed")
        sys.exit(1)
    logger.info("Database initialization completed successfully")

if __name__ == "__main__":
    main()
