"""
Core components for persona audit runs.

- Config: YAML-backed configuration values passed explicitly to every call
- Settings: environment edge that produces a Config
- Exceptions: structured error handling
- Logger: structlog setup with correlation ids
"""

from persona_audit.core.config import (
    AuditConfig,
    BackendConfig,
    OrchestratorConfig,
    ExportConfig,
    load_config,
)
from persona_audit.core.exceptions import (
    AuditError,
    ConfigError,
    PreconditionError,
    BackendError,
    BackendTimeoutError,
    BackendAuthError,
    BackendUnavailableError,
    BackendResponseError,
    RateLimitError,
    AnalysisAbortedError,
    PartialRunError,
    ExportError,
    RasterizationError,
)
from persona_audit.core.logger import (
    configure_logging,
    get_logger,
    correlation_context,
    clear_correlation_context,
)

__all__ = [
    # Config
    "AuditConfig",
    "BackendConfig",
    "OrchestratorConfig",
    "ExportConfig",
    "load_config",
    # Exceptions
    "AuditError",
    "ConfigError",
    "PreconditionError",
    "BackendError",
    "BackendTimeoutError",
    "BackendAuthError",
    "BackendUnavailableError",
    "BackendResponseError",
    "RateLimitError",
    "AnalysisAbortedError",
    "PartialRunError",
    "ExportError",
    "RasterizationError",
    # Logging
    "configure_logging",
    "get_logger",
    "correlation_context",
    "clear_correlation_context",
]
