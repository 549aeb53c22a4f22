"""Enums for the pre-flight pipeline.

This module contains basic enums to avoid circular dependencies.
"""

from enum import StrEnum


class CheckStatus(StrEnum):
    """Status of an individual check."""

    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class PipelineState(StrEnum):
    """Pipeline state machine.

    Checks run in state order; any state may move to FAILED on the first
    failure, after which nothing else runs.
    """

    IDLE = "idle"
    ENVIRONMENT = "environment"
    CONNECTIVITY = "connectivity"
    VERSION = "version"
    MIGRATION = "migration"
    DONE = "done"
    FAILED = "failed"
