"""API connection configuration model."""

from typing import Optional

from pydantic import BaseModel, Field


class ApiConfig(BaseModel):
    """Configuration for the remote speech API.

    Attributes:
        api_key: API key sent in the xi-api-key header
        base_uri: Base URL of the API
        timeout: Request timeout in seconds
    """

    api_key: Optional[str] = None
    base_uri: str = "https://api.elevenlabs.io/v1/"
    timeout: float = Field(30.0, gt=0.0, le=600.0)
