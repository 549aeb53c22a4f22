"""Check execution for the pre-flight pipeline.

This module provides the CheckExecutor class responsible for executing
individual checks. It handles timing, converts raised errors into failed
results and stamps every result with its execution time.

The executor is the only place check failures are caught: a check raises,
the executor renders the error as a single failed result, and the pipeline
decides what to do next.
"""

import arrow
from loguru import logger

from db_preflight.exceptions import PreflightError

from .base import PreflightCheck
from .enums import CheckStatus
from .models import CheckResult


class CheckExecutor:
    """Handles individual check execution.

    Attributes:
        None (stateless executor - all state is in the results)
    """

    async def execute_single_check(self, check: PreflightCheck) -> CheckResult:
        """Execute a single check and return its timed result.

        Args:
            check: The check to execute

        Returns:
            CheckResult: Result containing status, timing and timestamp.
                A raised error becomes a failed result carrying the error
                message and type.
        """
        check_start_time = arrow.utcnow().float_timestamp
        executed_at = arrow.utcnow().isoformat()

        try:
            check_result = await check.run()
        except PreflightError as e:
            return self._handle_check_error(check, e, check_start_time, str(e))
        except (OSError, RuntimeError, ValueError, TypeError, AttributeError, KeyError) as e:
            # Errors a check did not classify itself
            logger.exception("Check {} raised an unexpected error", check.name)
            return self._handle_check_error(check, e, check_start_time, f"Check execution failed: {e}")

        check_result.executed_at = executed_at
        check_result.execution_time_ms = (arrow.utcnow().float_timestamp - check_start_time) * 1000
        logger.debug("Check {} finished with status {}", check.name, check_result.status)
        return check_result

    def _handle_check_error(
        self,
        check: PreflightCheck,
        e: Exception,
        check_start_time: float,
        message: str,
    ) -> CheckResult:
        """Convert an error raised by a check into a failed result.

        Args:
            check: The check that raised
            e: The raised error
            check_start_time: Timestamp when the check started
            message: Human-readable failure line

        Returns:
            CheckResult: A failed result with error details
        """
        details = {"error": str(e), "type": type(e).__name__}
        output = getattr(e, "output", None)
        if output:
            details["output"] = output

        logger.debug("Check {} failed: {}", check.name, e)
        return CheckResult(
            check_name=check.name,
            status=CheckStatus.FAILED,
            message=message,
            details=details,
            error_type=type(e).__name__,
            executed_at=arrow.utcnow().isoformat(),
            execution_time_ms=(arrow.utcnow().float_timestamp - check_start_time) * 1000,
        )
