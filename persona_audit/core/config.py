"""
Configuration loading for persona audit runs.

This module loads backend, orchestrator and export settings from a
YAML file. Configuration is always returned as a value and passed
explicitly into every orchestrator and client call; nothing here is
cached at module level.
"""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from persona_audit.core.exceptions import ConfigError
from persona_audit.core.logger import get_logger
from persona_audit.models.enums import ApiProvider, EvaluationModel, FailurePolicy

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "persona_audit.yaml"

# Endpoint and model ids used when a config leaves them blank
PROVIDER_DEFAULTS: Dict[ApiProvider, Dict[str, str]] = {
    ApiProvider.GOOGLE: {
        "base_url": "https://generativelanguage.googleapis.com/v1beta",
        "analysis_model": "gemini-2.5-flash",
        "image_model": "gemini-3-pro-image-preview",
    },
    ApiProvider.OPENROUTER: {
        "base_url": "https://openrouter.ai/api/v1",
        "analysis_model": "google/gemini-3-pro-preview",
        "image_model": "google/gemini-3-pro-image-preview",
    },
}


def _parse_enum(enum_cls, value: Any, setting: str):
    try:
        return enum_cls(value)
    except ValueError as e:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ConfigError(
            f"Invalid {setting}: {value!r} (expected one of {allowed})",
            details={"setting": setting, "value": value},
        ) from e


@dataclass(frozen=True)
class BackendConfig:
    """
    Connection settings for the evaluation backend.

    Passed into every analyze/regenerate call so that runs with
    different providers or keys can proceed side by side.
    """
    provider: ApiProvider = ApiProvider.GOOGLE
    api_key: str = ""
    analysis_model: str = ""
    image_model: str = ""
    base_url: str = ""

    # Per-call contract
    timeout_seconds: float = 120.0
    max_retries: int = 2
    retry_delay_seconds: float = 1.0

    # Request shaping
    response_language: str = "English"
    aspect_ratio: str = "1:1"
    image_size: str = "1K"

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "provider", _parse_enum(ApiProvider, self.provider, "provider")
        )
        defaults = PROVIDER_DEFAULTS[self.provider]
        for name in ("base_url", "analysis_model", "image_model"):
            if not getattr(self, name):
                object.__setattr__(self, name, defaults[name])
        if self.max_retries < 0:
            raise ConfigError("max_retries must be >= 0", details={"max_retries": self.max_retries})
        if self.timeout_seconds <= 0:
            raise ConfigError(
                "timeout_seconds must be positive",
                details={"timeout_seconds": self.timeout_seconds},
            )

    def with_overrides(self, **changes: Any) -> "BackendConfig":
        """
        Copy with some fields replaced.

        Switching provider resets endpoint and model ids not given
        explicitly, so they fall back to the new provider's defaults.
        """
        if "provider" in changes:
            changes["provider"] = _parse_enum(ApiProvider, changes["provider"], "provider")
        if "provider" in changes and changes["provider"] is not self.provider:
            for name in ("base_url", "analysis_model", "image_model"):
                changes.setdefault(name, "")
        return replace(self, **changes)

    def redacted(self) -> Dict[str, Any]:
        """Dictionary safe for logs."""
        data = self.to_dict()
        data["api_key"] = "***" if self.api_key else ""
        return data

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "provider": self.provider.value,
            "api_key": self.api_key,
            "analysis_model": self.analysis_model,
            "image_model": self.image_model,
            "base_url": self.base_url,
            "timeout_seconds": self.timeout_seconds,
            "max_retries": self.max_retries,
            "retry_delay_seconds": self.retry_delay_seconds,
            "response_language": self.response_language,
            "aspect_ratio": self.aspect_ratio,
            "image_size": self.image_size,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BackendConfig":
        """Create from dictionary."""
        return cls(
            provider=data.get("provider", ApiProvider.GOOGLE.value),
            api_key=data.get("api_key", ""),
            analysis_model=data.get("analysis_model", ""),
            image_model=data.get("image_model", ""),
            base_url=data.get("base_url", ""),
            timeout_seconds=data.get("timeout_seconds", 120.0),
            max_retries=data.get("max_retries", 2),
            retry_delay_seconds=data.get("retry_delay_seconds", 1.0),
            response_language=data.get("response_language", "English"),
            aspect_ratio=data.get("aspect_ratio", "1:1"),
            image_size=data.get("image_size", "1K"),
        )


@dataclass(frozen=True)
class OrchestratorConfig:
    """Run-level settings for a deployment."""
    failure_policy: FailurePolicy = FailurePolicy.BEST_EFFORT
    generate_images: bool = False
    evaluation_model: EvaluationModel = EvaluationModel.ETS

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "failure_policy",
            _parse_enum(FailurePolicy, self.failure_policy, "failure_policy"),
        )
        object.__setattr__(
            self,
            "evaluation_model",
            _parse_enum(EvaluationModel, self.evaluation_model, "evaluation_model"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "failure_policy": self.failure_policy.value,
            "generate_images": self.generate_images,
            "evaluation_model": self.evaluation_model.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrchestratorConfig":
        """Create from dictionary."""
        return cls(
            failure_policy=data.get("failure_policy", FailurePolicy.BEST_EFFORT.value),
            generate_images=bool(data.get("generate_images", False)),
            evaluation_model=data.get("evaluation_model", EvaluationModel.ETS.value),
        )


@dataclass(frozen=True)
class ExportConfig:
    """Rasterization and archive naming settings."""
    padding: int = 40
    background: str = "#f8fafc"
    pixel_ratio: float = 2.0
    filename_prefix: str = "ETS_Report"
    archive_name: str = "ETS_Analysis_Reports.zip"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "padding": self.padding,
            "background": self.background,
            "pixel_ratio": self.pixel_ratio,
            "filename_prefix": self.filename_prefix,
            "archive_name": self.archive_name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExportConfig":
        """Create from dictionary."""
        return cls(
            padding=data.get("padding", 40),
            background=data.get("background", "#f8fafc"),
            pixel_ratio=data.get("pixel_ratio", 2.0),
            filename_prefix=data.get("filename_prefix", "ETS_Report"),
            archive_name=data.get("archive_name", "ETS_Analysis_Reports.zip"),
        )


@dataclass(frozen=True)
class AuditConfig:
    """
    Complete configuration for a persona audit deployment.

    Aggregates backend, orchestrator and export settings.
    """
    backend: BackendConfig = field(default_factory=BackendConfig)
    orchestrator: OrchestratorConfig = field(default_factory=OrchestratorConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "backend": self.backend.to_dict(),
            "orchestrator": self.orchestrator.to_dict(),
            "export": self.export.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuditConfig":
        """Create from dictionary."""
        return cls(
            backend=BackendConfig.from_dict(data.get("backend") or {}),
            orchestrator=OrchestratorConfig.from_dict(data.get("orchestrator") or {}),
            export=ExportConfig.from_dict(data.get("export") or {}),
        )


def load_config(config_path: Optional[Union[str, Path]] = None) -> AuditConfig:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to config file. If None, uses the bundled default.

    Returns:
        Loaded AuditConfig. Defaults when the file does not exist.

    Raises:
        ConfigError: If the file is not valid YAML or holds invalid values.
    """
    config_file = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH

    if not config_file.exists():
        logger.warning("config.file_not_found", path=str(config_file))
        return AuditConfig()

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Failed to parse config file: {config_file}",
            details={"path": str(config_file), "error": str(e)},
        ) from e

    if not isinstance(data, dict):
        raise ConfigError(
            f"Config file must contain a mapping: {config_file}",
            details={"path": str(config_file)},
        )

    return AuditConfig.from_dict(data)
