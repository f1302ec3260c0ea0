"""Configuration manager for loading and validating .sonora.yml"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from sonora.domain.config import ApiConfig, AppConfig, LoggingConfig, RetryConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".sonora.yml"


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass


class ConfigManager:
    """Manages configuration from .sonora.yml and environment variables

    Loads configuration with validation using Pydantic models. Configuration priority:
    1. Default values (defined in Pydantic models)
    2. .sonora.yml file (searched from current directory upwards)
    3. Environment variables (SONORA_*)
    4. CLI arguments (handled by CLI layer)
    """

    DEFAULT_CONFIG = {
        "api": {
            "api_key": None,
            "base_uri": "https://api.elevenlabs.io/v1/",
            "timeout": 30,
        },
        "retry": {
            "enabled": True,
            "max_attempts": 3,
            "base_delay_ms": 1000,
            "max_delay_ms": 60000,
            "respect_retry_after": True,
            "use_jitter": True,
            "retry_transport_errors": False,
        },
        "logging": {
            "enabled": True,
            "log_requests": False,
            "log_responses": True,
            "log_retries": True,
            "log_rate_limits": True,
        },
    }

    # (environment variable, section, key)
    ENV_OVERRIDES = [
        ("SONORA_API_KEY", "api", "api_key"),
        ("SONORA_BASE_URI", "api", "base_uri"),
        ("SONORA_TIMEOUT", "api", "timeout"),
        ("SONORA_RETRY_ENABLED", "retry", "enabled"),
        ("SONORA_RETRY_MAX_ATTEMPTS", "retry", "max_attempts"),
        ("SONORA_RETRY_BASE_DELAY_MS", "retry", "base_delay_ms"),
        ("SONORA_RETRY_MAX_DELAY_MS", "retry", "max_delay_ms"),
        ("SONORA_RETRY_RESPECT_RETRY_AFTER", "retry", "respect_retry_after"),
        ("SONORA_RETRY_USE_JITTER", "retry", "use_jitter"),
        ("SONORA_RETRY_TRANSPORT_ERRORS", "retry", "retry_transport_errors"),
        ("SONORA_LOGGING_ENABLED", "logging", "enabled"),
        ("SONORA_LOG_REQUESTS", "logging", "log_requests"),
        ("SONORA_LOG_RESPONSES", "logging", "log_responses"),
        ("SONORA_LOG_RETRIES", "logging", "log_retries"),
        ("SONORA_LOG_RATE_LIMITS", "logging", "log_rate_limits"),
    ]

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config manager

        Args:
            config_path: Path to .sonora.yml (searches from current dir if None)

        Raises:
            ConfigurationError: If configuration validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        try:
            self.config: AppConfig = self._load_config()
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                msg = error["msg"]
                errors.append(f"  - {field}: {msg}")
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            ) from e

    def _find_config_file(self) -> Optional[Path]:
        """Find .sonora.yml starting from current directory

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILE_NAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")
        return None

    def _load_config(self) -> AppConfig:
        """Load configuration from file and validate with Pydantic

        Raises:
            ValidationError: If configuration is invalid
        """
        config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
                config_dict = self._merge_config(config_dict, file_config)
                logger.info(f"Loaded configuration from {self.config_path}")
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config from {self.config_path}: {e}")
                logger.info("Using default configuration")

        config_dict = self._apply_env_overrides(config_dict)
        return AppConfig(**config_dict)

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries"""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply SONORA_* environment variable overrides

        Values are passed as strings; pydantic coerces them to the field types.
        """
        for env_name, section, key in self.ENV_OVERRIDES:
            value = os.getenv(env_name)
            if value:
                config.setdefault(section, {})[key] = value
        return config

    def get_api_config(self) -> ApiConfig:
        return self.config.api

    def get_retry_config(self) -> RetryConfig:
        return self.config.retry

    def get_logging_config(self) -> LoggingConfig:
        return self.config.logging

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key (supports dot notation)

        Args:
            key: Configuration key (e.g., "retry.max_attempts" or "retry")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split(".")
        value = self.config.model_dump()
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value
