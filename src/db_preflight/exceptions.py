"""Pre-flight error kinds.

Every check failure is raised as one of the ``PreflightError`` subclasses
below. They are caught only by the check executor, which renders them as a
single failed result line.
"""


class PreflightError(Exception):
    """Base class for failures that end a pre-flight run."""


class ConfigError(PreflightError):
    """Raised when required configuration is missing or invalid, before any I/O."""


class ConnectivityError(PreflightError):
    """Raised when the database cannot be reached, authenticated or talked to over TLS."""


class CompatibilityError(PreflightError):
    """Raised when the server version is below the minimum or cannot be determined."""


class MigrationError(PreflightError):
    """Raised when the migration runner reports a non-zero outcome.

    The runner's captured output is kept verbatim on ``output``.
    """

    def __init__(self, message: str, output: str = ""):
        self.output = output
        super().__init__(message)
