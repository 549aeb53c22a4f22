"""Pipeline state machine for the pre-flight checks.

This module provides the ReadinessPipeline class, which runs an ordered list
of checks and turns their results into a single outcome with a process exit
code.

Key Features:
- Strictly sequential execution in the order the checks were added
- Fail-fast: the first failed check ends the run, later checks never execute
- State tracking (IDLE -> ENVIRONMENT -> CONNECTIVITY -> VERSION -> MIGRATION -> DONE, or FAILED)
- A global skip switch that succeeds without running anything
- Result callback for live reporting while the pipeline runs

Typical Usage:
    pipeline = ReadinessPipeline(context, [
        EnvironmentCheck(context),
        ConnectivityCheck(context),
    ])

    outcome = await pipeline.execute()
    sys.exit(outcome.exit_code)
"""

from collections.abc import Callable

import arrow
from loguru import logger

from .base import PreflightCheck
from .check_executor import CheckExecutor
from .context import PreflightContext
from .enums import CheckStatus, PipelineState
from .models import EXIT_FAILURE, EXIT_SUCCESS, CheckResult, PipelineOutcome

ResultCallback = Callable[[CheckResult], None]

SKIP_ALL_MESSAGE = "Skipping database check."


class ReadinessPipeline:
    """Runs pre-flight checks in order and stops at the first failure.

    Later checks presuppose the success of earlier ones (connectivity needs
    valid configuration, the version and migration checks need a live
    connection), so nothing runs after a failure.

    Attributes:
        context: Run context owned by this pipeline
        checks: Checks to execute, in order
        current_state: Current PipelineState
        last_outcome: Outcome of the most recent run
    """

    def __init__(
        self,
        context: PreflightContext,
        checks: list[PreflightCheck],
        on_result: ResultCallback | None = None,
    ):
        """Initialize the pipeline.

        Args:
            context: Run context shared by the checks
            checks: Checks to execute in order
            on_result: Called with each result as soon as it is available
        """
        self.context = context
        self.checks = checks
        self.on_result = on_result
        self.current_state = PipelineState.IDLE
        self.last_outcome: PipelineOutcome | None = None

        self._executor = CheckExecutor()

    async def execute(self) -> PipelineOutcome:
        """Run the pipeline and return its outcome.

        Returns:
            PipelineOutcome: Ordered results of the executed checks and the exit code
        """
        start_time = arrow.utcnow().float_timestamp

        if self.context.settings.skip_db_check:
            logger.info(SKIP_ALL_MESSAGE)
            self.current_state = PipelineState.DONE
            outcome = PipelineOutcome(
                state=PipelineState.DONE,
                exit_code=EXIT_SUCCESS,
                message=SKIP_ALL_MESSAGE,
                skipped_all=True,
            )
            return self._finalize(outcome, start_time)

        logger.info("Starting pre-flight pipeline with {} checks", len(self.checks))
        outcome = PipelineOutcome(state=PipelineState.IDLE, message="Pre-flight checks in progress")

        try:
            for check in self.checks:
                self.current_state = check.state
                result = await self._executor.execute_single_check(check)
                outcome.results.append(result)
                self._report(result)

                if result.status == CheckStatus.FAILED:
                    self.current_state = PipelineState.FAILED
                    outcome.exit_code = EXIT_FAILURE
                    outcome.message = f"Check '{check.name}' failed: {result.message}"
                    logger.debug("Stopping pipeline after failed check {}", check.name)
                    break
            else:
                self.current_state = PipelineState.DONE
                outcome.message = "All pre-flight checks passed"
        finally:
            await self.context.close()

        outcome.state = self.current_state
        return self._finalize(outcome, start_time)

    def _report(self, result: CheckResult) -> None:
        if self.on_result is not None:
            self.on_result(result)

    def _finalize(self, outcome: PipelineOutcome, start_time: float) -> PipelineOutcome:
        outcome.total_execution_time_ms = (arrow.utcnow().float_timestamp - start_time) * 1000
        self.last_outcome = outcome
        logger.info("Pre-flight pipeline finished in state {} with exit code {}", outcome.state, outcome.exit_code)
        return outcome

    def get_check_names(self) -> list[str]:
        """Get names of all checks in this pipeline, in execution order."""
        return [check.name for check in self.checks]

    def get_check(self, check_name: str) -> PreflightCheck | None:
        """Get a check by name.

        Args:
            check_name: Name of the check to retrieve

        Returns:
            The check if found, None otherwise
        """
        return next((check for check in self.checks if check.name == check_name), None)

    def __str__(self) -> str:
        """String representation of the pipeline."""
        return f"ReadinessPipeline(checks={len(self.checks)})"

    def __repr__(self) -> str:
        """Detailed representation of the pipeline."""
        return f"ReadinessPipeline(checks={self.get_check_names()})"
