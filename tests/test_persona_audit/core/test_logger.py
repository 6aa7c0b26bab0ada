"""Tests for persona_audit.core.logger module."""

import asyncio

import pytest
import structlog
from persona_audit.core.logger import (
    clear_correlation_context,
    configure_logging,
    correlation_context,
    get_logger,
)


@pytest.fixture(autouse=True)
def clean_context():
    clear_correlation_context()
    yield
    clear_correlation_context()


class TestCorrelationContext:
    """Tests for correlation id binding."""

    def test_binds_and_unbinds(self):
        with correlation_context(run_id="run-1", persona_id="p1"):
            assert structlog.contextvars.get_contextvars() == {"run_id": "run-1", "persona_id": "p1"}
        assert structlog.contextvars.get_contextvars() == {}

    def test_nested_keeps_outer(self):
        with correlation_context(run_id="run-1"):
            with correlation_context(persona_id="p2"):
                assert structlog.contextvars.get_contextvars() == {"run_id": "run-1", "persona_id": "p2"}
            assert structlog.contextvars.get_contextvars() == {"run_id": "run-1"}

    @pytest.mark.asyncio
    async def test_isolated_between_tasks(self):
        """Test persona ids bound in sibling tasks do not leak."""
        seen = {}

        async def task(persona_id):
            with correlation_context(persona_id=persona_id):
                await asyncio.sleep(0)
                seen[persona_id] = structlog.contextvars.get_contextvars()["persona_id"]

        with correlation_context(run_id="run-1"):
            await asyncio.gather(task("p1"), task("p2"))
            assert structlog.contextvars.get_contextvars() == {"run_id": "run-1"}
        assert seen == {"p1": "p1", "p2": "p2"}


class TestConfigureLogging:
    """Tests for logging setup."""

    def test_structured_logging(self):
        configure_logging(level="INFO", structured=True)
        get_logger("test").info("test.event", value=1)

    def test_get_logger(self):
        assert get_logger(__name__) is not None
