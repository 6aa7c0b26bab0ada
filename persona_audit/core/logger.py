"""
Structured logging configuration using structlog.

Provides:
- Structured logging with JSON output (production) or console (development)
- Correlation context (run id, persona id) bound through structlog
  contextvars, so it propagates across awaits and stays isolated
  between concurrent per-persona tasks
"""
import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import structlog


# =============================================================================
# CORRELATION CONTEXT
# =============================================================================
# asyncio tasks copy the current context when created, so a persona id bound
# inside one fan-out coroutine never leaks into its siblings.


@contextmanager
def correlation_context(
    run_id: Optional[str] = None,
    persona_id: Optional[str] = None,
) -> Iterator[None]:
    """
    Bind correlation IDs for every log entry emitted inside the block.

    Args:
        run_id: Orchestrator run identifier
        persona_id: Persona being processed by the current task
    """
    bindings = {}
    if run_id is not None:
        bindings["run_id"] = run_id
    if persona_id is not None:
        bindings["persona_id"] = persona_id
    with structlog.contextvars.bound_contextvars(**bindings):
        yield


def clear_correlation_context() -> None:
    """Drop all bound correlation IDs."""
    structlog.contextvars.clear_contextvars()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================


def configure_logging(level: str = "INFO", structured: bool = False) -> None:
    """
    Configure structured logging.

    Args:
        level: Standard logging level name
        structured: JSON output when True, colored console output otherwise
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if structured:
        # JSON output for production
        processors.append(structlog.processors.JSONRenderer())
    else:
        # Human-readable output for development
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Structured logger instance
    """
    return structlog.get_logger(name)
