"""
Exception types for the conformance grading harness.

Only connectivity loss is fatal. Statement errors and malformed expectations
are raised here and turned into recorded failures or load-time errors by the
callers.
"""


class GradingError(Exception):
    """Base class for harness errors."""


class DatabaseConnectionError(GradingError, ConnectionError):
    """The database handle is unusable; the run must abort."""


class QueryError(GradingError):
    """A statement failed for a reason other than connectivity (bad SQL, missing table)."""

    def __init__(self, sql: str, message: str):
        super().__init__(message)
        self.sql = sql


class ExpectationsError(GradingError, ValueError):
    """The expectations document is malformed."""


class ConfigError(GradingError, ValueError):
    """A connection or run setting is invalid (bad port, non-numeric timeout)."""
