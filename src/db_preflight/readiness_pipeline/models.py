"""Data models for the pre-flight pipeline.

This module contains Pydantic models used throughout the pipeline to avoid
circular dependencies between components.
"""

from typing import Any

import arrow
from pydantic import BaseModel, Field

from .enums import CheckStatus, PipelineState

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


class CheckResult(BaseModel):
    """Result of an individual pre-flight check."""

    model_config = {"use_enum_values": True}

    check_name: str
    status: CheckStatus
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
    notes: list[str] = Field(default_factory=list)  # Informational lines, never failures
    error_type: str | None = None
    executed_at: str | None = None  # ISO 8601 UTC timestamp
    execution_time_ms: float | None = None


class PipelineOutcome(BaseModel):
    """Complete result of one pre-flight run."""

    model_config = {"use_enum_values": True}

    state: PipelineState
    exit_code: int = EXIT_SUCCESS
    message: str = ""
    results: list[CheckResult] = Field(default_factory=list)
    skipped_all: bool = False
    executed_at: str = Field(default_factory=lambda: arrow.utcnow().isoformat())
    total_execution_time_ms: float | None = None

    @property
    def succeeded(self) -> bool:
        return self.exit_code == EXIT_SUCCESS

    @property
    def failed_result(self) -> CheckResult | None:
        """The failing check result, if the run failed."""
        return next((result for result in self.results if result.status == CheckStatus.FAILED), None)
