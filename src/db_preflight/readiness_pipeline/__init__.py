"""Pre-flight pipeline runtime.

This module provides the check runtime:
- A common check contract (raise to fail, return to pass)
- Strictly sequential, fail-fast execution
- A state machine tracking which concern is being checked
- A single outcome with a process exit code

The runtime is decoupled from specific check implementations, which live in
the checks submodule.
"""

from .base import PreflightCheck
from .builder import PipelineBuilder
from .context import PreflightContext
from .enums import CheckStatus, PipelineState
from .models import EXIT_FAILURE, EXIT_SUCCESS, CheckResult, PipelineOutcome
from .pipeline import ReadinessPipeline, ResultCallback

__all__ = [
    # Core models
    "CheckStatus",
    "PipelineState",
    "CheckResult",
    "PipelineOutcome",
    "EXIT_SUCCESS",
    "EXIT_FAILURE",
    # Pipeline components
    "PreflightCheck",
    "PreflightContext",
    "ReadinessPipeline",
    "PipelineBuilder",
    "ResultCallback",
]
