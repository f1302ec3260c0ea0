"""Domain models for API calls and their failures."""

from sonora.domain.models.attempt import Attempt
from sonora.domain.models.errors import ApiResult, ClassifiedError, ErrorKind

__all__ = ["ApiResult", "Attempt", "ClassifiedError", "ErrorKind"]
