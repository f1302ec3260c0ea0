"""Main application configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from sonora.domain.config.api import ApiConfig
from sonora.domain.config.logging import LoggingConfig
from sonora.domain.config.retry import RetryConfig


class AppConfig(BaseModel):
    """Main application configuration.

    Root model aggregating all configuration sections. Validation is
    performed at load time to fail fast on configuration errors.

    Attributes:
        api: Remote API connection settings
        retry: Retry logic configuration
        logging: Request/response logging configuration
    """

    api: ApiConfig = Field(default_factory=ApiConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
        json_schema_extra={
            "example": {
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
        },
    )
