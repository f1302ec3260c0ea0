"""Classification of failed transport attempts.

Maps a ``requests`` exception to a ``ClassifiedError``. Classification
depends only on the response status code and on whether a response was
received at all.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from sonora.domain.models.errors import ClassifiedError, ErrorKind

logger = logging.getLogger(__name__)


def kind_for_status(status_code: Optional[int]) -> ErrorKind:
    """Error kind for a status code (None means no response was received)."""
    if status_code is None:
        return ErrorKind.TRANSPORT_ERROR
    if status_code == 429:
        return ErrorKind.RATE_LIMITED
    if 500 <= status_code < 600:
        return ErrorKind.SERVER_ERROR
    return ErrorKind.CLIENT_ERROR


def parse_error_data(response: Optional[requests.Response]) -> Optional[Dict[str, Any]]:
    """Decode a JSON object from the response body; never raises."""
    if response is None:
        return None
    try:
        data = response.json()
    except Exception:
        return None
    return data if isinstance(data, dict) else None


def classify(exception: requests.exceptions.RequestException) -> ClassifiedError:
    """Classify a failed request.

    Args:
        exception: Exception raised by requests (HTTPError, ConnectionError, ...)

    Returns:
        ClassifiedError describing the failure
    """
    response = getattr(exception, "response", None)
    if response is None:
        return ClassifiedError(
            str(exception) or type(exception).__name__,
            kind=ErrorKind.TRANSPORT_ERROR,
            status_code=0,
            cause=exception,
        )

    status_code = response.status_code
    kind = kind_for_status(status_code)
    logger.debug(f"Classified HTTP {status_code} as {kind.value}")
    return ClassifiedError(
        str(exception) or f"HTTP {status_code}",
        kind=kind,
        status_code=status_code,
        error_data=parse_error_data(response),
        response=response,
        cause=exception,
    )
