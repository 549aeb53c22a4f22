"""CLI entry point.

Usage:
    python -m db_preflight.cli check
    python -m db_preflight.cli tls
    db-preflight check
    db-preflight check --skip-migration
"""

from loguru import logger

import db_preflight
from db_preflight.cli.app import app


def main() -> None:
    """CLI entry point."""
    # Enable logging for the package (libraries embedding it may disable it)
    logger.enable(db_preflight.__name__)
    app()


if __name__ == "__main__":
    main()
