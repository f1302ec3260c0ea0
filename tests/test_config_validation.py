"""Tests for configuration validation with Pydantic."""

import tempfile
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from sonora.domain.config import ApiConfig, AppConfig, LoggingConfig, RetryConfig
from sonora.infrastructure.config.config_manager import ConfigManager, ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate tests from SONORA_* variables and stray .sonora.yml files"""
    for env_name, _, _ in ConfigManager.ENV_OVERRIDES:
        monkeypatch.delenv(env_name, raising=False)
    monkeypatch.chdir(tmp_path)


class TestRetryConfigValidation:
    """Tests for RetryConfig validation."""

    def test_defaults(self):
        """Test documented default values"""
        config = RetryConfig()
        assert config.enabled is True
        assert config.max_attempts == 3
        assert config.base_delay_ms == 1000
        assert config.max_delay_ms == 60000
        assert config.respect_retry_after is True
        assert config.use_jitter is True
        assert config.retry_transport_errors is False

    def test_max_attempts_zero(self):
        """Test max_attempts must be at least 1"""
        with pytest.raises(ValidationError, match="max_attempts"):
            RetryConfig(max_attempts=0)

    def test_max_attempts_above_limit(self):
        """Test max_attempts is rejected above 20 rather than clamped"""
        with pytest.raises(ValidationError, match="max_attempts"):
            RetryConfig(max_attempts=99)

    def test_negative_delay(self):
        """Test delays must be non-negative"""
        with pytest.raises(ValidationError, match="base_delay_ms"):
            RetryConfig(base_delay_ms=-1)
        with pytest.raises(ValidationError, match="max_delay_ms"):
            RetryConfig(max_delay_ms=-1)

    def test_immutable(self):
        """Test retry configuration cannot be changed after construction"""
        config = RetryConfig()
        with pytest.raises(ValidationError):
            config.max_attempts = 10

    def test_effective_max_attempts(self):
        """Test disabled retry collapses the budget to one attempt"""
        assert RetryConfig(max_attempts=5).effective_max_attempts == 5
        assert RetryConfig(max_attempts=5, enabled=False).effective_max_attempts == 1


class TestApiConfigValidation:
    """Tests for ApiConfig validation."""

    def test_defaults(self):
        config = ApiConfig()
        assert config.api_key is None
        assert config.base_uri == "https://api.elevenlabs.io/v1/"
        assert config.timeout == 30.0

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError, match="timeout"):
            ApiConfig(timeout=0)


class TestLoggingConfig:
    """Tests for LoggingConfig."""

    def test_defaults(self):
        config = LoggingConfig()
        assert config.enabled is True
        assert config.log_requests is False
        assert config.log_responses is True
        assert config.log_retries is True
        assert "xi-api-key" in config.sensitive_fields
        assert "authorization" in config.sensitive_fields


class TestAppConfigValidation:
    """Tests for AppConfig validation."""

    def test_default_config(self):
        config = AppConfig()
        assert config.retry.max_attempts == 3
        assert config.logging.enabled is True

    def test_unknown_field_rejected(self):
        """Test unknown fields are rejected"""
        with pytest.raises(ValidationError, match="extra"):
            AppConfig(unknown_field="value")

    def test_nested_validation(self):
        """Test nested validation works"""
        with pytest.raises(ValidationError, match="max_attempts"):
            AppConfig(retry={"max_attempts": 0})


class TestConfigManagerValidation:
    """Tests for ConfigManager validation."""

    def test_load_valid_config_from_file(self):
        """Test loading valid configuration from file"""
        config_data = {"retry": {"max_attempts": 5, "use_jitter": False}}

        with tempfile.NamedTemporaryFile(mode="w", suffix=".yml", delete=False) as f:
            yaml.dump(config_data, f)
            config_path = f.name

        try:
            manager = ConfigManager(config_path=config_path)
            assert manager.config.retry.max_attempts == 5
            assert manager.config.retry.use_jitter is False
            assert manager.config.retry.base_delay_ms == 1000
        finally:
            Path(config_path).unlink()

    def test_load_invalid_config_raises_error(self):
        """Test loading invalid configuration raises error"""
        config_data = {"retry": {"max_delay_ms": -5}}

        with tempfile.NamedTemporaryFile(mode="w", suffix=".yml", delete=False) as f:
            yaml.dump(config_data, f)
            config_path = f.name

        try:
            with pytest.raises(ConfigurationError, match="retry.max_delay_ms"):
                ConfigManager(config_path=config_path)
        finally:
            Path(config_path).unlink()

    def test_config_file_found_in_parent_directory(self, tmp_path, monkeypatch):
        """Test .sonora.yml is searched upwards from the working directory"""
        (tmp_path / ".sonora.yml").write_text("logging:\n  log_requests: true\n", encoding="utf-8")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        manager = ConfigManager()
        assert manager.config_path == tmp_path / ".sonora.yml"
        assert manager.config.logging.log_requests is True

    def test_default_config_is_valid(self):
        """Test default configuration is valid"""
        manager = ConfigManager()
        assert isinstance(manager.config, AppConfig)
        assert manager.config.api.api_key is None

    def test_get_typed_config_sections(self):
        """Test getter methods return typed models"""
        manager = ConfigManager()

        assert isinstance(manager.get_api_config(), ApiConfig)
        assert isinstance(manager.get_retry_config(), RetryConfig)
        assert isinstance(manager.get_logging_config(), LoggingConfig)

    def test_env_overrides_work(self, monkeypatch):
        """Test environment variable overrides"""
        monkeypatch.setenv("SONORA_API_KEY", "sk_from_env_123456")
        monkeypatch.setenv("SONORA_RETRY_MAX_ATTEMPTS", "5")
        monkeypatch.setenv("SONORA_RETRY_USE_JITTER", "false")
        monkeypatch.setenv("SONORA_LOGGING_ENABLED", "0")
        monkeypatch.setenv("SONORA_TIMEOUT", "12.5")

        manager = ConfigManager()
        assert manager.config.api.api_key == "sk_from_env_123456"
        assert manager.config.api.timeout == 12.5
        assert manager.config.retry.max_attempts == 5
        assert manager.config.retry.use_jitter is False
        assert manager.config.logging.enabled is False

    def test_invalid_env_override_raises_error(self, monkeypatch):
        """Test invalid environment values fail validation"""
        monkeypatch.setenv("SONORA_RETRY_MAX_ATTEMPTS", "lots")
        with pytest.raises(ConfigurationError, match="max_attempts"):
            ConfigManager()

    def test_get_dot_notation(self):
        """Test dot-notation lookup"""
        manager = ConfigManager()
        assert manager.get("retry.max_delay_ms") == 60000
        assert manager.get("retry.missing", "fallback") == "fallback"
        assert manager.get("logging")["log_retries"] is True

    def test_out_of_range_env_override_raises_error(self, monkeypatch):
        """Test out-of-range environment values are rejected, not clamped"""
        monkeypatch.setenv("SONORA_RETRY_MAX_ATTEMPTS", "99")
        with pytest.raises(ConfigurationError, match="max_attempts"):
            ConfigManager()
