"""Pipeline builder for constructing pre-flight pipelines."""

from db_preflight.readiness_pipeline.base import PreflightCheck
from db_preflight.readiness_pipeline.context import PreflightContext
from db_preflight.readiness_pipeline.pipeline import ReadinessPipeline, ResultCallback


class PipelineBuilder:
    """Builder with method chaining for pipeline construction."""

    def __init__(self, context: PreflightContext):
        """Initialize the builder.

        Args:
            context: Run context handed to the pipeline
        """
        self.context = context
        self._checks: list[PreflightCheck] = []
        self._on_result: ResultCallback | None = None

    def check(self, check: PreflightCheck) -> "PipelineBuilder":
        """Append a check.

        Args:
            check: Check to add

        Returns:
            This builder for method chaining

        Raises:
            ValueError: If a check with the same name was already added, or
                the check belongs to another context
        """
        if any(existing.name == check.name for existing in self._checks):
            raise ValueError(f"Check '{check.name}' already exists")
        if check.context is not self.context:
            raise ValueError(f"Check '{check.name}' was created for a different context")
        self._checks.append(check)
        return self

    def checks(self, checks: list[PreflightCheck]) -> "PipelineBuilder":
        """Append multiple checks, in order."""
        for check in checks:
            self.check(check)
        return self

    def on_result(self, callback: ResultCallback | None) -> "PipelineBuilder":
        """Set the callback invoked with each check result."""
        self._on_result = callback
        return self

    def build(self) -> ReadinessPipeline:
        """Build the final pipeline.

        Returns:
            Configured ReadinessPipeline
        """
        return ReadinessPipeline(self.context, list(self._checks), self._on_result)

    def __str__(self) -> str:
        """String representation of the builder."""
        return f"PipelineBuilder(checks={len(self._checks)})"
