"""Retry configuration model."""

from pydantic import BaseModel, ConfigDict, Field


class RetryConfig(BaseModel):
    """Configuration for retry logic.

    Attributes:
        enabled: Whether failed requests are retried at all
        max_attempts: Maximum number of attempts (including the first one)
        base_delay_ms: Delay before the first retry in milliseconds
        max_delay_ms: Upper bound for any single delay in milliseconds
        respect_retry_after: Honor the server's Retry-After header on 429
        use_jitter: Add a random +/-10% offset to computed delays
        retry_transport_errors: Retry failures where no response was received
    """

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    max_attempts: int = Field(3, ge=1, le=20)
    base_delay_ms: int = Field(1000, ge=0)  # Allow 0 for tests
    max_delay_ms: int = Field(60000, ge=0)
    respect_retry_after: bool = True
    use_jitter: bool = True
    retry_transport_errors: bool = False

    @property
    def effective_max_attempts(self) -> int:
        """Attempt budget after applying the enabled flag."""
        return self.max_attempts if self.enabled else 1
