import logging

from alembic.config import Config
from alembic import command
from sqlalchemy import inspect

from kinship.db.base import Base
from kinship.db.session import engine

logger = logging.getLogger(__name__)

def init_db() -> None:
    """
    Initialize the database by running Alembic migrations.
    """
    try:
        alembic_cfg = Config("alembic.ini")
        command.upgrade(alembic_cfg, "head")
        logger.info("Database migrations applied successfully")
    except Exception as e:
        logger.error(f"Error applying database migrations: {e}")
        raise

def create_all_tables() -> bool:
    """Create any table that is missing; existing tables are left alone"""
    try:
        existing_tables = set(inspect(engine).get_table_names())
        Base.metadata.create_all(bind=engine)

        new_tables = set(inspect(engine).get_table_names()) - existing_tables
        if new_tables:
            logger.info(f"Created new tables: {sorted(new_tables)}")
        return True
    except Exception as e:
        logger.error(f"Error creating database tables: {e}")
        return False

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    logger.info("Applying migrations")
    init_db()
    logger.info("Database ready")
