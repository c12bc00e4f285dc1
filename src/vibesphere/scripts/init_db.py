"""Create or reset the tables of the configured database.

Production deployments should prefer `alembic upgrade head`; this is meant
for local development and throwaway databases.
"""
from __future__ import annotations

import argparse
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from vibesphere.core.logging import configure_logging
from vibesphere.db.session import create_tables, drop_tables

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create or reset the VibeSphere tables")
    parser.add_argument(
        "--drop-tables",
        action="store_true",
        help="Drop every table before creating them again.",
    )
    args = parser.parse_args(argv)

    configure_logging()
    try:
        if args.drop_tables:
            drop_tables()
            logger.info("Dropped all tables")
        create_tables()
    except SQLAlchemyError as exc:
        logger.error("Database initialisation failed: %s", exc)
        return 1
    logger.info("Tables ready")
    return 0


if __name__ == "__main__":
    sys.exit(main())
