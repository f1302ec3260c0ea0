"""Configuration models with Pydantic validation."""

from sonora.domain.config.api import ApiConfig
from sonora.domain.config.app import AppConfig
from sonora.domain.config.logging import LoggingConfig
from sonora.domain.config.retry import RetryConfig

__all__ = [
    "AppConfig",
    "ApiConfig",
    "LoggingConfig",
    "RetryConfig",
]
