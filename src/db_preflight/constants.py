"""Global constants for the pre-flight pipeline.

This module defines constants used throughout the package to avoid
hardcoded strings in checks, the CLI and tests.
"""

# Check names, in pipeline order
CHECK_ENVIRONMENT = "environment"
CHECK_CONNECTIVITY = "connectivity"
CHECK_VERSION = "version_compatibility"
CHECK_MIGRATION = "migration_apply"

DEFAULT_MIN_SERVER_VERSION = "9.4.0"

# URL query parameters consumed by the pipeline rather than the driver
TLS_QUERY_PARAMS = ("ssl", "sslmode", "sslrootcert", "sslcert", "sslkey")
SCHEMA_QUERY_PARAM = "schema"
