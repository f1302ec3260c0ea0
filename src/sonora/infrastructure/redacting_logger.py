"""Structured logging of API traffic with secret redaction.

Every mapping passed to the logger is sanitized before it is formatted:
values whose key contains a sensitive fragment (``xi-api-key``,
``authorization``, ``token``...) are masked, response bodies are truncated
and binary payloads are replaced by a size marker.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Mapping, Optional, Union

from sonora.domain.config.logging import LoggingConfig

DEFAULT_LOGGER_NAME = "sonora.api"
MAX_BODY_LENGTH = 5000
SMALL_BODY_LENGTH = 1000
MASK = "***"


class RedactingLogger:
    """Logger for API requests, responses and retries"""

    def __init__(self, config: Optional[LoggingConfig] = None, logger: Optional[logging.Logger] = None):
        """Initialize logger

        Args:
            config: Logging configuration (defaults to LoggingConfig())
            logger: Underlying logger (defaults to the "sonora.api" logger)
        """
        self.config = config or LoggingConfig()
        self.logger = logger or logging.getLogger(DEFAULT_LOGGER_NAME)
        self._enabled = self.config.enabled
        self._sensitive_fields = tuple(f.lower() for f in self.config.sensitive_fields)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = bool(value)

    def is_sensitive(self, key: Any) -> bool:
        lower_key = str(key).lower()
        return any(fragment in lower_key for fragment in self._sensitive_fields)

    @staticmethod
    def mask(value: Any) -> str:
        """Mask a secret, keeping 4 characters on each side of long strings"""
        if isinstance(value, str) and len(value) > 8:
            return f"{value[:4]}{MASK}{value[-4:]}"
        return MASK

    def sanitize_data(self, data: Mapping[Any, Any]) -> Dict[Any, Any]:
        """Return a copy of ``data`` with sensitive values masked.

        Nested mappings are sanitized recursively; other values are kept as is.
        """
        sanitized: Dict[Any, Any] = {}
        for key, value in data.items():
            if self.is_sensitive(key):
                sanitized[key] = self.mask(value)
            elif isinstance(value, Mapping):
                sanitized[key] = self.sanitize_data(value)
            else:
                sanitized[key] = value
        return sanitized

    @staticmethod
    def sanitize_response_body(body: Union[str, bytes]) -> str:
        """Make a response body safe to log.

        Binary content is replaced by "[Binary data - N bytes]" and text
        longer than MAX_BODY_LENGTH characters is truncated.
        """
        if isinstance(body, (bytes, bytearray)):
            try:
                text = bytes(body).decode("utf-8")
            except UnicodeDecodeError:
                return f"[Binary data - {len(body)} bytes]"
            size = len(body)
        else:
            text = body
            size = len(body.encode("utf-8", errors="surrogatepass"))

        if "\x00" in text:
            return f"[Binary data - {size} bytes]"

        if len(text) > MAX_BODY_LENGTH:
            return text[:MAX_BODY_LENGTH] + "... [truncated]"
        return text

    def log_request(
        self,
        method: str,
        endpoint: str,
        headers: Optional[Mapping[str, Any]] = None,
        body: Optional[Mapping[str, Any]] = None,
    ) -> None:
        if not (self._enabled and self.config.log_requests):
            return

        context: Dict[str, Any] = {
            "method": method,
            "endpoint": endpoint,
            "headers": self.sanitize_data(headers or {}),
        }
        if body is not None:
            context["body"] = self.sanitize_data(body)

        self._emit(logging.INFO, f"API Request: {method} {endpoint}", context)

    def log_response(
        self,
        method: str,
        endpoint: str,
        status_code: int,
        headers: Optional[Mapping[str, Any]] = None,
        body: Optional[Union[str, bytes]] = None,
        start_time: Optional[float] = None,
    ) -> None:
        """Log a response; the body is included for errors or small payloads

        Args:
            start_time: time.monotonic() value taken before the request
        """
        if not (self._enabled and self.config.log_responses):
            return

        context: Dict[str, Any] = {
            "method": method,
            "endpoint": endpoint,
            "status_code": status_code,
        }
        if headers is not None:
            context["response_headers"] = self.sanitize_data(headers)
        if body is not None and (status_code >= 400 or len(body) < SMALL_BODY_LENGTH):
            context["response_body"] = self.sanitize_response_body(body)
        if start_time is not None:
            context["duration_ms"] = round((time.monotonic() - start_time) * 1000, 2)

        level = logging.ERROR if status_code >= 400 else logging.INFO
        self._emit(level, f"API Response: {method} {endpoint} [{status_code}]", context)

    def log_retry(self, attempt: int, max_attempts: int, context: str, error: str, delay_ms: float) -> None:
        if not (self._enabled and self.config.log_retries):
            return

        self._emit(
            logging.WARNING,
            f"API Retry: Attempt {attempt}/{max_attempts} for {context}",
            {
                "attempt": attempt,
                "max_attempts": max_attempts,
                "context": context,
                "error": error,
                "delay_ms": round(delay_ms, 2),
            },
        )

    def log_retry_exhausted(self, context: str, total_attempts: int, final_error: str) -> None:
        if not (self._enabled and self.config.log_retries):
            return

        self._emit(
            logging.ERROR,
            f"API Retry Exhausted: All {total_attempts} attempts failed for {context}",
            {
                "context": context,
                "total_attempts": total_attempts,
                "final_error": final_error,
            },
        )

    def log_rate_limit(
        self,
        endpoint: str,
        retry_after: Optional[int] = None,
        rate_limit_headers: Optional[Mapping[str, Any]] = None,
    ) -> None:
        if not (self._enabled and self.config.log_rate_limits):
            return

        context: Dict[str, Any] = {"endpoint": endpoint, "retry_after": retry_after}
        if rate_limit_headers:
            context["rate_limit_headers"] = self.sanitize_data(rate_limit_headers)
        self._emit(logging.WARNING, f"API Rate Limited: {endpoint}", context)

    def log_error(self, message: str, context: Optional[Mapping[str, Any]] = None) -> None:
        if not self._enabled:
            return
        self._emit(logging.ERROR, f"API Error: {message}", self.sanitize_data(context or {}))

    def log_info(self, message: str, context: Optional[Mapping[str, Any]] = None) -> None:
        if not self._enabled:
            return
        self._emit(logging.INFO, f"API Info: {message}", self.sanitize_data(context or {}))

    def _emit(self, level: int, message: str, context: Dict[str, Any]) -> None:
        if not self.logger.isEnabledFor(level):
            return
        rendered = json.dumps(context, default=str, ensure_ascii=False)
        self.logger.log(level, f"{message} {rendered}", extra={"context": context})
