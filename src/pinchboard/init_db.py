"""Create all tables for local development without running migrations."""

import logging

from pinchboard.core.settings import settings
from pinchboard.db.session import create_tables

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Initialize the database by creating all tables."""
    create_tables()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    init_db()
    logger.info("Database initialized at %s", settings.effective_database_url)


if __name__ == "__main__":
    main()
