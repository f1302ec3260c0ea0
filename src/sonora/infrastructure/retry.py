"""Retry execution for API calls using tenacity.

``RetryExecutor.execute`` runs a zero-argument operation (one network round
trip) until it succeeds, fails with a non-retryable error, or the attempt
budget is spent. Failures raised by ``requests`` are classified into a
``ClassifiedError``; anything else is wrapped in ``RuntimeError`` and
propagated without retrying.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional, TypeVar

import requests
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    stop_when_event_set,
)

from sonora.domain.config.retry import RetryConfig
from sonora.domain.models.attempt import Attempt
from sonora.domain.models.errors import ClassifiedError
from sonora.infrastructure.backoff import BackoffPolicy
from sonora.infrastructure.error_classifier import classify
from sonora.infrastructure.redacting_logger import RedactingLogger

logger = logging.getLogger(__name__)

T = TypeVar("T")

RATE_LIMIT_HEADER_PREFIXES = ("x-ratelimit", "ratelimit", "retry-after")


def _rate_limit_headers(error: ClassifiedError) -> dict:
    if error.response is None:
        return {}
    return {
        key: value
        for key, value in error.response.headers.items()
        if key.lower().startswith(RATE_LIMIT_HEADER_PREFIXES)
    }


class RetryExecutor:
    """Runs operations with classification, backoff and logging.

    One executor may be shared by concurrent callers: every call to
    ``execute`` keeps its own attempt state, and ``last_attempts`` is
    tracked per thread.
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        api_logger: Optional[RedactingLogger] = None,
        backoff: Optional[BackoffPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize executor

        Args:
            config: Retry configuration (defaults to RetryConfig())
            api_logger: Logger for retry events (defaults to RedactingLogger())
            backoff: Delay policy (defaults to BackoffPolicy(config))
            sleep: Blocking sleep function taking seconds. Not used by
                calls that pass a ``cancel_event``; those wait on the event.
        """
        self.config = config or RetryConfig()
        self.api_logger = api_logger or RedactingLogger()
        self.backoff = backoff or BackoffPolicy(self.config)
        self._sleep = sleep
        self._local = threading.local()

    @property
    def last_attempts(self) -> List[Attempt]:
        """Attempt history of the most recent ``execute`` in the calling thread."""
        return getattr(self._local, "attempts", [])

    @property
    def max_attempts(self) -> int:
        return self.config.effective_max_attempts

    def is_retryable(self, error: ClassifiedError) -> bool:
        """Retry policy: 429 and 5xx, plus transport failures when enabled."""
        if error.is_retryable:
            return True
        return self.config.retry_transport_errors and error.is_transport_error

    def execute(
        self,
        operation: Callable[[], T],
        label: str = "HTTP request",
        cancel_event: Optional[threading.Event] = None,
    ) -> T:
        """Run ``operation`` with retries.

        Args:
            operation: Performs one request and returns its result
            label: Operation label for logs (e.g. "GET /voices")
            cancel_event: Optional event; once set, no further attempt is made.
                Delays are waited on the event instead of the injected sleep.

        Returns:
            Result of the first successful attempt

        Raises:
            ClassifiedError: Last failure when not retryable or attempts are exhausted
            RuntimeError: Operation raised something other than a request failure
        """
        max_attempts = self.max_attempts
        attempts: List[Attempt] = []
        last_error: List[ClassifiedError] = []
        pending_delay_ms = [0.0]

        def _attempt() -> T:
            if cancel_event is not None and cancel_event.is_set() and last_error:
                raise last_error[-1]

            attempt = Attempt(number=len(attempts) + 1, started_at=time.monotonic())
            attempts.append(attempt)
            logger.debug(f"Attempt {attempt.number}/{max_attempts} for {label}")
            try:
                result = operation()
            except ClassifiedError as e:
                self._finish(attempt, succeeded=False)
                last_error.append(e)
                raise
            except requests.exceptions.RequestException as e:
                self._finish(attempt, succeeded=False)
                error = classify(e)
                last_error.append(error)
                raise error from e
            except Exception as e:
                self._finish(attempt, succeeded=False)
                raise RuntimeError(f"{label} failed: {e}") from e
            self._finish(attempt, succeeded=True)
            return result

        def _retry_condition(exception: BaseException) -> bool:
            return isinstance(exception, ClassifiedError) and self.is_retryable(exception)

        def _wait(retry_state: RetryCallState) -> float:
            error = retry_state.outcome.exception()
            pending_delay_ms[0] = self.backoff.delay_ms(error, retry_state.attempt_number)
            return pending_delay_ms[0] / 1000.0

        def _before_sleep(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception()
            if error.is_rate_limited:
                self.api_logger.log_rate_limit(label, error.retry_after_seconds(), _rate_limit_headers(error))
            self.api_logger.log_retry(
                retry_state.attempt_number, max_attempts, label, str(error), pending_delay_ms[0]
            )

        stop = stop_after_attempt(max_attempts)
        sleep = self._sleep
        if cancel_event is not None:
            stop = stop | stop_when_event_set(cancel_event)
            sleep = cancel_event.wait

        retrying = Retrying(
            stop=stop,
            wait=_wait,
            retry=retry_if_exception(_retry_condition),
            reraise=True,
            before_sleep=_before_sleep,
            sleep=sleep,
        )

        try:
            result = retrying(_attempt)
        except ClassifiedError as e:
            if self.is_retryable(e):
                self.api_logger.log_retry_exhausted(label, len(attempts), str(e))
            else:
                logger.debug(f"Not retrying {label}: {e.kind.value} (HTTP {e.status_code})")
                self.api_logger.log_error(
                    f"{label} failed with non-retryable {e.kind.value} error",
                    {"status_code": e.status_code, "error": e.message},
                )
            raise
        finally:
            self._local.attempts = attempts

        if len(attempts) > 1:
            self.api_logger.log_info(f"{label} succeeded after {len(attempts)} attempts")
        else:
            logger.debug(f"{label} succeeded")
        return result

    @staticmethod
    def _finish(attempt: Attempt, succeeded: bool) -> None:
        attempt.succeeded = succeeded
        attempt.elapsed = time.monotonic() - attempt.started_at
