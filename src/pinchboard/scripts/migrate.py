# src/pinchboard/scripts/migrate.py
"""Apply or roll back Alembic migrations for the configured database."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path

from alembic import command
from alembic.config import Config

from pinchboard.core.settings import settings

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[3]


def build_config(url: str | None = None) -> Config:
    """Return an Alembic config pointing at the project's migrations folder."""
    cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", url or settings.database_url_sync)
    return cfg


def main() -> None:
    parser = argparse.ArgumentParser(description="Run PinchBoard schema migrations")
    parser.add_argument("revision", nargs="?", default="head", help="Target revision")
    parser.add_argument("--downgrade", action="store_true", help="Downgrade instead of upgrade")
    parser.add_argument("--url", default=None, help="Override the database URL")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    cfg = build_config(args.url)
    if args.downgrade:
        logger.info("Downgrading schema to %s", args.revision)
        command.downgrade(cfg, args.revision)
    else:
        logger.info("Upgrading schema to %s", args.revision)
        command.upgrade(cfg, args.revision)


if __name__ == "__main__":
    main()
