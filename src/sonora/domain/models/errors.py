"""Error taxonomy for failed API calls.

A failed attempt is described by a single ``ClassifiedError`` tagged with an
``ErrorKind`` instead of one exception subclass per category, so callers can
branch on ``error.kind`` exhaustively.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    import requests


class ErrorKind(str, Enum):
    """Category of a failed attempt"""

    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    CLIENT_ERROR = "client_error"
    TRANSPORT_ERROR = "transport_error"


class ClassifiedError(Exception):
    """A failed API attempt, classified by status code.

    Attributes:
        status_code: HTTP status, 0 when no response was received
        kind: Error category
        message: Human-readable message
        error_data: JSON object decoded from the response body, if any
        response: Raw response (for header inspection), if any
        cause: Original transport exception
    """

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind,
        status_code: int = 0,
        error_data: Optional[Dict[str, Any]] = None,
        response: Optional["requests.Response"] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code
        self.error_data = error_data
        self.response = response
        self.cause = cause

    def __repr__(self) -> str:
        return (
            f"ClassifiedError(kind={self.kind.value!r}, status_code={self.status_code}, "
            f"message={self.message!r})"
        )

    @property
    def is_rate_limited(self) -> bool:
        return self.kind is ErrorKind.RATE_LIMITED

    @property
    def is_server_error(self) -> bool:
        return self.kind is ErrorKind.SERVER_ERROR

    @property
    def is_client_error(self) -> bool:
        return self.kind is ErrorKind.CLIENT_ERROR

    @property
    def is_transport_error(self) -> bool:
        return self.kind is ErrorKind.TRANSPORT_ERROR

    @property
    def is_retryable(self) -> bool:
        """Rate limits and server errors are worth another attempt."""
        return self.kind in (ErrorKind.RATE_LIMITED, ErrorKind.SERVER_ERROR)

    @property
    def response_body(self) -> Optional[str]:
        """Raw response body as text, None if there was no response"""
        if self.response is None:
            return None
        return self.response.text

    def retry_after_seconds(self) -> Optional[int]:
        """Parse the Retry-After header of the response.

        The header may hold either a number of seconds or an HTTP-date.

        Returns:
            Seconds to wait (never negative), or None if absent or unparsable
        """
        if self.response is None:
            return None

        value = self.response.headers.get("Retry-After")
        if not value:
            return None
        value = value.strip()

        try:
            return max(0, int(float(value)))
        except (ValueError, OverflowError):
            pass

        try:
            retry_at = parsedate_to_datetime(value)
        except (TypeError, ValueError, OverflowError):
            return None
        if retry_at.tzinfo is None:
            retry_at = retry_at.replace(tzinfo=timezone.utc)
        delta = (retry_at - datetime.now(timezone.utc)).total_seconds()
        return max(0, int(delta))


@dataclass
class ApiResult:
    """Uniform result returned by the request layer"""

    success: bool
    data: Any = None
    error: Optional[str] = None
    code: int = 0
    error_data: Optional[Dict[str, Any]] = None
    exception: Optional[ClassifiedError] = None
    headers: Dict[str, str] = field(default_factory=dict)
    content_type: Optional[str] = None

    @classmethod
    def ok(cls, data: Any, headers: Optional[Dict[str, str]] = None, content_type: Optional[str] = None) -> "ApiResult":
        return cls(success=True, data=data, headers=dict(headers or {}), content_type=content_type)

    @classmethod
    def from_error(cls, error: ClassifiedError) -> "ApiResult":
        """Convert a classified error into a failed result"""
        return cls(
            success=False,
            error=error.message,
            code=error.status_code,
            error_data=error.error_data,
            exception=error,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Plain dictionary view (without the exception object)"""
        result: Dict[str, Any] = {"success": self.success}
        if self.success:
            result["data"] = self.data
            if self.content_type:
                result["content_type"] = self.content_type
        else:
            result["error"] = self.error
            result["code"] = self.code
            if self.exception is not None:
                result["kind"] = self.exception.kind.value
            if self.error_data is not None:
                result["error_data"] = self.error_data
        return result
