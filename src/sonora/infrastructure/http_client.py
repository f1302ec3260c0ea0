"""Shared HTTP client utilities (requests + retry/backoff).

We keep HTTP logic centralized so every endpoint goes through the same
retry, classification and logging path.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import requests

from sonora.domain.config.api import ApiConfig
from sonora.domain.config.logging import LoggingConfig
from sonora.domain.config.retry import RetryConfig
from sonora.domain.models.errors import ApiResult, ClassifiedError
from sonora.infrastructure.redacting_logger import RedactingLogger
from sonora.infrastructure.retry import RetryExecutor

logger = logging.getLogger(__name__)


class ApiClient:
    """Generic client for the speech API.

    Each request method performs one round trip through ``RetryExecutor``
    and returns an ``ApiResult`` instead of raising on API errors.
    """

    def __init__(
        self,
        api_config: Optional[ApiConfig] = None,
        retry_config: Optional[RetryConfig] = None,
        logging_config: Optional[LoggingConfig] = None,
        session: Optional[requests.Session] = None,
        executor: Optional[RetryExecutor] = None,
    ):
        """Initialize client

        Args:
            api_config: Connection settings (api_key is required)
            retry_config: Retry settings
            logging_config: Request/response logging settings
            session: Optional pre-configured requests session
            executor: Optional executor (built from retry_config if omitted)

        Raises:
            ValueError: If no API key is configured
        """
        self.api_config = api_config or ApiConfig()
        if not self.api_config.api_key:
            raise ValueError(
                "API key is required. "
                "Set SONORA_API_KEY environment variable or provide api.api_key in config."
            )

        self.api_logger = RedactingLogger(logging_config)
        self.executor = executor or RetryExecutor(retry_config, api_logger=self.api_logger)
        self.base_url = self.api_config.base_uri.rstrip("/")
        self.timeout = self.api_config.timeout

        self.session = session or requests.Session()
        self.session.headers["xi-api-key"] = self.api_config.api_key

    def _url(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def _send(self, method: str, endpoint: str, **kwargs: Any) -> requests.Response:
        """Perform a single HTTP round trip (one attempt)."""
        url = self._url(endpoint)
        self.api_logger.log_request(method, endpoint, dict(self.session.headers), kwargs.get("json"))
        start = time.monotonic()
        resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        self.api_logger.log_response(
            method, endpoint, resp.status_code, dict(resp.headers), resp.content, start_time=start
        )
        resp.raise_for_status()
        return resp

    def request(self, method: str, endpoint: str, **kwargs: Any) -> requests.Response:
        """Send a request with retries, raising ClassifiedError on failure."""
        method = method.upper()
        label = f"{method} {endpoint}"
        return self.executor.execute(lambda: self._send(method, endpoint, **kwargs), label)

    def call(self, method: str, endpoint: str, binary: bool = False, **kwargs: Any) -> ApiResult:
        """Send a request and convert the outcome into an ApiResult."""
        try:
            resp = self.request(method, endpoint, **kwargs)
        except ClassifiedError as e:
            logger.error(f"{method} {endpoint} failed: {e.message}")
            return ApiResult.from_error(e)

        if binary:
            return ApiResult.ok(
                resp.content,
                headers=dict(resp.headers),
                content_type=resp.headers.get("Content-Type", "audio/mpeg"),
            )
        return ApiResult.ok(self._decode(resp), headers=dict(resp.headers))

    @staticmethod
    def _decode(resp: requests.Response) -> Any:
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return resp.text

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> ApiResult:
        return self.call("GET", endpoint, params=params)

    def post(self, endpoint: str, json: Optional[Dict[str, Any]] = None, **kwargs: Any) -> ApiResult:
        return self.call("POST", endpoint, json=json, **kwargs)

    def patch(self, endpoint: str, json: Optional[Dict[str, Any]] = None) -> ApiResult:
        return self.call("PATCH", endpoint, json=json)

    def delete(self, endpoint: str) -> ApiResult:
        return self.call("DELETE", endpoint)

    def post_binary(self, endpoint: str, json: Optional[Dict[str, Any]] = None, **kwargs: Any) -> ApiResult:
        """POST and return the raw body (e.g. synthesized audio)."""
        return self.call("POST", endpoint, binary=True, json=json, **kwargs)

    def close(self) -> None:
        self.session.close()
