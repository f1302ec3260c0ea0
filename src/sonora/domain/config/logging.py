"""Logging configuration model."""

from typing import List

from pydantic import BaseModel, Field

DEFAULT_SENSITIVE_FIELDS = [
    "xi-api-key",
    "api_key",
    "apikey",
    "api-key",
    "authorization",
    "token",
    "secret",
    "password",
]


class LoggingConfig(BaseModel):
    """Configuration for API request/response logging.

    Attributes:
        enabled: Master switch, nothing is logged when False
        log_requests: Log outgoing requests
        log_responses: Log received responses
        log_retries: Log retry attempts and exhaustion
        log_rate_limits: Log rate limit responses
        sensitive_fields: Key fragments whose values are masked (case-insensitive)
    """

    enabled: bool = True
    log_requests: bool = False
    log_responses: bool = True
    log_retries: bool = True
    log_rate_limits: bool = True
    sensitive_fields: List[str] = Field(default_factory=lambda: list(DEFAULT_SENSITIVE_FIELDS))
