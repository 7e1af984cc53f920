"""Custom exception hierarchy for ScaleX configuration and reconciliation."""

from __future__ import annotations

from collections.abc import Sequence


class ScalexError(Exception):
    """Base exception for all ScaleX errors.

    All ScaleX-specific exceptions inherit from this class, enabling
    centralized exception handling at the command boundary.
    """

    pass


class ConfigError(ScalexError):
    """Exception raised for configuration errors.

    This exception is raised when the service configuration cannot be loaded,
    parsed or validated. It includes field-specific information to help users
    identify and fix configuration issues.

    Attributes:
        field: The configuration field that caused the error
        message: Human-readable error message describing the issue
    """

    def __init__(self, field: str, message: str) -> None:
        """Initialize ConfigError with field and message.

        Args:
            field: Configuration field name where error occurred
            message: Descriptive error message
        """
        self.field = field
        self.message = message
        super().__init__(f"Configuration error in '{field}': {message}")


class ResolutionError(ScalexError):
    """Exception raised when gateway objects required by a run cannot be found.

    Covers a declared event without a matching route, a route whose target
    integration is missing from the snapshot, a missing compute integration
    on scale-down, and an API that cannot be located by name. The compute
    deployment is expected to have created all of these, so any absence means
    configuration drift and the run must stop.

    Attributes:
        function_name: Function (or API name) the lookup was performed for
        message: Human-readable error message
    """

    def __init__(self, function_name: str, message: str) -> None:
        """Create a resolution error with context."""
        self.function_name = function_name
        self.message = message
        super().__init__(
            f"Failed to resolve gateway objects for '{function_name}': {message}"
        )


class DeploymentError(ScalexError):
    """Exception raised when a remote gateway mutation fails.

    Attributes:
        operation: Operation that failed (e.g. create_integration, update_route)
        message: Human-readable error message with diagnostic context
    """

    def __init__(self, operation: str, message: str) -> None:
        """Initialize DeploymentError with operation and message.

        Args:
            operation: Name of the failed operation
            message: Descriptive error message
        """
        self.operation = operation
        self.message = message
        super().__init__(f"{operation} failed: {message}")


class StateStoreError(DeploymentError):
    """Exception raised when the state record cannot be read, written or deleted."""

    def __init__(self, message: str) -> None:
        """Create a state store error."""
        super().__init__(operation="state", message=message)


class StateNotFoundError(ScalexError):
    """Raised by object stores when the requested state record does not exist.

    Attributes:
        bucket: Bucket that was queried
        key: Object key that was not found
    """

    def __init__(self, bucket: str, key: str) -> None:
        """Create a not-found error for a bucket/key pair."""
        self.bucket = bucket
        self.key = key
        super().__init__(f"State record s3://{bucket}/{key} not found")


class ReconciliationError(DeploymentError):
    """Aggregate of failures raised by concurrently reconciled routes.

    Attributes:
        errors: Individual failures, one per failed route or deletion
    """

    def __init__(self, operation: str, errors: Sequence[Exception]) -> None:
        """Create an aggregate error from individual failures.

        Args:
            operation: Phase of the run that failed (e.g. "deploy", "remove")
            errors: Failures collected from concurrent tasks
        """
        self.errors = list(errors)
        noun = "error" if len(self.errors) == 1 else "errors"
        super().__init__(
            operation=operation,
            message=f"{len(self.errors)} {noun} during {operation}",
        )

