"""
Structured exceptions for persona audit runs.

This module defines a hierarchy of exceptions with error codes
for consistent error handling across the orchestrator, the
evaluation client and the export pipeline.
"""

from typing import Any, Dict, Optional


class AuditError(Exception):
    """
    Base exception for all persona-audit errors.

    All custom exceptions in the package inherit from this class,
    providing consistent error code and detail handling.
    """

    error_code: str = "AUDIT_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for presentation."""
        return {
            "error": True,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class ConfigError(AuditError):
    """
    Configuration-related errors.

    Raised when a config file names an unknown provider, policy
    or evaluation model, or a required value is missing.
    """

    error_code = "CONFIG_ERROR"


class PreconditionError(AuditError):
    """
    Invalid call shape.

    Raised before any backend call is issued: empty artifact,
    empty persona set, duplicate persona ids, or a run already
    in flight on the same orchestrator. Never retried.
    """

    error_code = "PRECONDITION_ERROR"


class BackendError(AuditError):
    """
    Evaluation backend errors.

    Base class for any failure from the evaluation client:
    network, auth, or a malformed/incomplete response.
    """

    error_code = "BACKEND_ERROR"


class BackendTimeoutError(BackendError):
    """Raised when a backend call times out."""

    error_code = "BACKEND_TIMEOUT"


class BackendAuthError(BackendError):
    """Raised when the backend rejects the configured credentials."""

    error_code = "BACKEND_AUTH_ERROR"


class BackendUnavailableError(BackendError):
    """Raised on connection failures and 5xx responses."""

    error_code = "BACKEND_UNAVAILABLE"


class BackendResponseError(BackendError):
    """Raised when the backend returns an unparseable or schema-violating response."""

    error_code = "BACKEND_RESPONSE_ERROR"


class RateLimitError(BackendError):
    """
    Rate limit exceeded error.

    Raised when the provider's rate limit is exceeded and retries
    are exhausted. Includes retry-after information when available.
    """

    error_code = "RATE_LIMIT_ERROR"

    def __init__(
        self,
        message: str,
        retry_after: Optional[float] = None,
        **kwargs,
    ):
        """
        Initialize rate limit error.

        Args:
            message: Error message
            retry_after: Seconds to wait before retrying
            **kwargs: Additional arguments for parent class
        """
        super().__init__(message, **kwargs)
        self.retry_after = retry_after
        if retry_after:
            self.details["retry_after"] = retry_after


class AnalysisAbortedError(BackendError):
    """
    Fail-fast run abort.

    Raised once per run when at least one persona's analysis failed
    under the fail-fast policy. Names the first failing persona and
    carries every per-persona failure reason.
    """

    error_code = "ANALYSIS_ABORTED"

    def __init__(
        self,
        message: str,
        persona_id: str = "",
        persona_name: str = "",
        failures: Optional[Dict[str, str]] = None,
        **kwargs,
    ):
        """
        Initialize analysis aborted error.

        Args:
            message: Error message
            persona_id: Id of the first persona whose analysis failed
            persona_name: Display name of that persona
            failures: Mapping of persona id to failure message
            **kwargs: Additional arguments for parent class
        """
        super().__init__(message, **kwargs)
        self.persona_id = persona_id
        self.persona_name = persona_name
        self.failures = failures or {}
        self.details["persona_id"] = persona_id
        self.details["persona_name"] = persona_name
        self.details["failures"] = self.failures


class PartialRunError(AuditError):
    """
    Best-effort run with no survivors.

    Raised only under the best-effort policy when zero personas
    produced a report in the analysis phase.
    """

    error_code = "PARTIAL_RUN_ERROR"

    def __init__(
        self,
        message: str,
        failures: Optional[Dict[str, str]] = None,
        **kwargs,
    ):
        """
        Initialize partial run error.

        Args:
            message: Error message
            failures: Mapping of persona id to failure message
            **kwargs: Additional arguments for parent class
        """
        super().__init__(message, **kwargs)
        self.failures = failures or {}
        self.details["failures"] = self.failures


class ExportError(AuditError):
    """Raised when a batch export is requested with no surfaces."""

    error_code = "EXPORT_ERROR"


class RasterizationError(AuditError):
    """Raised when a single report surface cannot be rasterized."""

    error_code = "RASTERIZATION_ERROR"
