"""CLI module for db-preflight.

Provides the command-line interface that runs the pre-flight checks at deploy
or boot time.
"""

from db_preflight.cli.app import app

__all__ = ["app"]
