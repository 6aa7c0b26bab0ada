"""
Environment settings for the application edge.

Only the hosting application reads the environment. It turns these
settings into an explicit AuditConfig that is handed to the core.
"""
from dataclasses import replace
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from persona_audit.core.config import AuditConfig, load_config


class Settings(BaseSettings):
    """Settings loaded from PERSONA_AUDIT_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PERSONA_AUDIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Config file
    config_path: Optional[str] = Field(default=None, description="Path to YAML config")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    enable_structured_logging: bool = Field(
        default=False, description="Emit JSON logs instead of console output"
    )

    # Backend overrides
    provider: Optional[Literal["google", "openrouter"]] = Field(
        default=None, description="Backend provider"
    )
    api_key: str = Field(default="", description="Backend API key")
    analysis_model: Optional[str] = Field(default=None, description="Analysis model id")
    image_model: Optional[str] = Field(default=None, description="Image model id")
    timeout_seconds: Optional[float] = Field(default=None, description="Per-call timeout")

    # Orchestrator overrides
    failure_policy: Optional[Literal["fail_fast", "best_effort"]] = Field(
        default=None, description="Analysis failure policy"
    )

    def to_audit_config(self) -> AuditConfig:
        """Load the YAML config and apply environment overrides."""
        base = load_config(Path(self.config_path) if self.config_path else None)

        backend_changes = {}
        if self.provider:
            backend_changes["provider"] = self.provider
        if self.api_key:
            backend_changes["api_key"] = self.api_key
        if self.analysis_model:
            backend_changes["analysis_model"] = self.analysis_model
        if self.image_model:
            backend_changes["image_model"] = self.image_model
        if self.timeout_seconds:
            backend_changes["timeout_seconds"] = self.timeout_seconds
        backend = base.backend.with_overrides(**backend_changes) if backend_changes else base.backend

        orchestrator = base.orchestrator
        if self.failure_policy:
            orchestrator = replace(orchestrator, failure_policy=self.failure_policy)

        return AuditConfig(backend=backend, orchestrator=orchestrator, export=base.export)
