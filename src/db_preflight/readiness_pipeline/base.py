"""Base abstraction for pre-flight checks."""

from abc import ABC, abstractmethod
from typing import Any

from loguru import logger

from .context import PreflightContext
from .enums import CheckStatus, PipelineState
from .models import CheckResult


class PreflightCheck(ABC):
    """Abstract base class for individual pre-flight checks.

    A check performs exactly one concern. It returns a success (or skipped)
    result and signals failure by raising a ``PreflightError`` subclass; the
    check executor turns that into a failed result.

    Attributes:
        state: Pipeline state entered while this check runs
    """

    state: PipelineState

    def __init__(self, context: PreflightContext, name: str):
        """Initialize the pre-flight check.

        Args:
            context: Run context shared with the other checks
            name: The name of this check (used in result.check_name field)
        """
        self.context = context
        self.name = name

    @property
    def settings(self):
        return self.context.settings

    @abstractmethod
    async def _execute(self) -> CheckResult:
        """Execute the check.

        This method should be implemented by subclasses.

        Returns:
            CheckResult: Success or skipped result

        Raises:
            PreflightError: If the check fails
        """

    async def run(self) -> CheckResult:
        """Execute the check and return its result."""
        logger.debug("Running check '{}'", self.name)
        return await self._execute()

    def success(self, message: str, details: dict[str, Any] | None = None, notes: list[str] | None = None) -> CheckResult:
        """Return a successful check result."""
        return CheckResult(
            check_name=self.name,
            status=CheckStatus.SUCCESS,
            message=message,
            details=details or {},
            notes=notes or [],
        )

    def skipped(self, message: str, details: dict[str, Any] | None = None) -> CheckResult:
        """Return a skipped check result.

        Use when configuration explicitly opts out of the check. A skipped
        check does not fail the pipeline.
        """
        return CheckResult(
            check_name=self.name,
            status=CheckStatus.SKIPPED,
            message=message,
            details=details or {},
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name='{self.name}', state='{self.state}')"
