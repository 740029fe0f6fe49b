"""Custom exceptions for the indexing layer.

This module defines the exception hierarchy raised by the record store,
the indexes and the backends. Absent records are not an error: reads
return an empty mapping instead of raising.
"""

from typing import Any, Optional


class KVIndexError(Exception):
    """Base exception for all indexing-layer errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code
        context: Additional context information about the error
    """

    def __init__(
        self, message: str, error_code: str, context: Optional[dict[str, Any]] = None
    ) -> None:
        """Initialize indexing-layer error.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code
            context: Optional additional context information
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}


class InvalidInputError(KVIndexError):
    """Raised when input is rejected before any write reaches the store.

    Covers malformed scores, unsupported field values, empty field mappings
    and missing required fields.
    """

    def __init__(self, reason: str, field: Optional[str] = None) -> None:
        """Initialize invalid input error.

        Args:
            reason: Description of why the input was rejected
            field: Optional name of the offending field or argument
        """
        if field:
            message = f"Invalid input for '{field}': {reason}"
        else:
            message = f"Invalid input: {reason}"

        context: dict[str, Any] = {"reason": reason}
        if field:
            context["field"] = field

        super().__init__(message=message, error_code="invalid_input", context=context)
        self.reason = reason
        self.field = field


class BackendUnavailableError(KVIndexError):
    """Raised when the key-value backend cannot serve a request.

    Wraps transport failures and timeouts. The original exception is chained
    as ``__cause__``. Callers should treat this as retryable: the layer never
    retries on its own.
    """

    def __init__(self, operation: str, key: str, reason: str) -> None:
        """Initialize backend unavailable error.

        Args:
            operation: Backend command that failed (e.g. "zadd")
            key: Key the command was addressed to
            reason: Underlying failure description
        """
        super().__init__(
            message=f"Backend operation '{operation}' on '{key}' failed: {reason}",
            error_code="backend_unavailable",
            context={"operation": operation, "key": key, "reason": reason},
        )
        self.operation = operation
        self.key = key
        self.reason = reason
