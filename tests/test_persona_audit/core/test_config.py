"""Tests for persona_audit.core.config and persona_audit.core.settings modules."""

from pathlib import Path

import persona_audit
import pytest
from persona_audit.core.config import (
    DEFAULT_CONFIG_PATH,
    AuditConfig,
    BackendConfig,
    ExportConfig,
    OrchestratorConfig,
    PROVIDER_DEFAULTS,
    load_config,
)
from persona_audit.core.exceptions import ConfigError
from persona_audit.core.settings import Settings
from persona_audit.models import ApiProvider, EvaluationModel, FailurePolicy


class TestBackendConfig:
    """Tests for BackendConfig dataclass."""

    def test_google_defaults(self):
        """Test blank endpoint and models fall back to provider defaults."""
        config = BackendConfig()
        assert config.provider is ApiProvider.GOOGLE
        assert config.analysis_model == "gemini-2.5-flash"
        assert config.image_model == "gemini-3-pro-image-preview"
        assert config.base_url == PROVIDER_DEFAULTS[ApiProvider.GOOGLE]["base_url"]
        assert config.timeout_seconds == 120.0
        assert config.max_retries == 2

    def test_openrouter_from_string(self):
        """Test provider given as a string is parsed."""
        config = BackendConfig(provider="openrouter")
        assert config.provider is ApiProvider.OPENROUTER
        assert config.analysis_model == "google/gemini-3-pro-preview"
        assert config.base_url == "https://openrouter.ai/api/v1"

    def test_unknown_provider(self):
        with pytest.raises(ConfigError) as exc_info:
            BackendConfig(provider="azure")
        assert exc_info.value.details["setting"] == "provider"

    def test_invalid_numbers(self):
        with pytest.raises(ConfigError):
            BackendConfig(max_retries=-1)
        with pytest.raises(ConfigError):
            BackendConfig(timeout_seconds=0)

    def test_with_overrides_switches_provider_defaults(self):
        """Test switching provider resets models not given explicitly."""
        config = BackendConfig(api_key="k").with_overrides(provider="openrouter")
        assert config.provider is ApiProvider.OPENROUTER
        assert config.analysis_model == "google/gemini-3-pro-preview"
        assert config.api_key == "k"

    def test_with_overrides_keeps_explicit_model(self):
        config = BackendConfig().with_overrides(provider="openrouter", analysis_model="x/y")
        assert config.analysis_model == "x/y"

    def test_with_overrides_unknown_provider(self):
        with pytest.raises(ConfigError):
            BackendConfig().with_overrides(provider="azure")

    def test_with_overrides_same_provider_as_string(self):
        """Test naming the current provider as a string keeps explicit models."""
        config = BackendConfig(analysis_model="custom").with_overrides(provider="google")
        assert config.provider is ApiProvider.GOOGLE
        assert config.analysis_model == "custom"

    def test_redacted_hides_key(self):
        config = BackendConfig(api_key="secret")
        assert config.redacted()["api_key"] == "***"
        assert config.to_dict()["api_key"] == "secret"

    def test_dict_roundtrip(self):
        config = BackendConfig(provider="openrouter", api_key="k", timeout_seconds=30)
        assert BackendConfig.from_dict(config.to_dict()) == config


class TestOrchestratorConfig:
    """Tests for OrchestratorConfig dataclass."""

    def test_defaults(self):
        config = OrchestratorConfig()
        assert config.failure_policy is FailurePolicy.BEST_EFFORT
        assert config.generate_images is False
        assert config.evaluation_model is EvaluationModel.ETS

    def test_from_dict(self):
        config = OrchestratorConfig.from_dict({"failure_policy": "fail_fast", "evaluation_model": "UES"})
        assert config.failure_policy is FailurePolicy.FAIL_FAST
        assert config.evaluation_model is EvaluationModel.UES

    def test_unknown_policy(self):
        with pytest.raises(ConfigError):
            OrchestratorConfig.from_dict({"failure_policy": "retry_forever"})


class TestLoadConfig:
    """Tests for load_config."""

    def test_bundled_config(self):
        """Test the bundled YAML loads."""
        config = load_config()
        assert isinstance(config, AuditConfig)
        assert config.export.filename_prefix == "ETS_Report"

    def test_bundled_config_ships_with_package(self):
        """Test the default path points inside the installed package."""
        package_dir = Path(persona_audit.__file__).parent
        assert DEFAULT_CONFIG_PATH.exists()
        assert package_dir in DEFAULT_CONFIG_PATH.parents

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config(tmp_path / "missing.yaml") == AuditConfig()

    def test_custom_file(self, tmp_path):
        path = tmp_path / "audit.yaml"
        path.write_text(
            "backend:\n"
            "  provider: openrouter\n"
            "  max_retries: 0\n"
            "orchestrator:\n"
            "  failure_policy: fail_fast\n"
            "export:\n"
            "  padding: 10\n"
        )
        config = load_config(path)
        assert config.backend.provider is ApiProvider.OPENROUTER
        assert config.backend.max_retries == 0
        assert config.orchestrator.failure_policy is FailurePolicy.FAIL_FAST
        assert config.export == ExportConfig(padding=10)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("backend: [unclosed\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            load_config(path)


class TestSettings:
    """Tests for environment overrides."""

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        path = tmp_path / "audit.yaml"
        path.write_text("backend:\n  provider: google\n  timeout_seconds: 60\n")
        monkeypatch.setenv("PERSONA_AUDIT_CONFIG_PATH", str(path))
        monkeypatch.setenv("PERSONA_AUDIT_PROVIDER", "openrouter")
        monkeypatch.setenv("PERSONA_AUDIT_API_KEY", "env-key")
        monkeypatch.setenv("PERSONA_AUDIT_FAILURE_POLICY", "fail_fast")

        config = Settings().to_audit_config()

        assert config.backend.provider is ApiProvider.OPENROUTER
        assert config.backend.api_key == "env-key"
        assert config.backend.timeout_seconds == 60
        assert config.backend.analysis_model == "google/gemini-3-pro-preview"
        assert config.orchestrator.failure_policy is FailurePolicy.FAIL_FAST

    def test_no_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PERSONA_AUDIT_CONFIG_PATH", str(tmp_path / "missing.yaml"))
        assert Settings().to_audit_config() == AuditConfig()
