"""Attempt model - one invocation of an operation within a retry sequence"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Attempt:
    """Single try of an operation"""

    number: int  # 1-based
    started_at: float  # time.monotonic() at start
    succeeded: Optional[bool] = None  # None while in flight
    elapsed: float = 0.0  # seconds

    @property
    def outcome(self) -> str:
        if self.succeeded is None:
            return "pending"
        return "success" if self.succeeded else "failure"
