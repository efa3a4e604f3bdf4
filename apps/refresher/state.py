"""
Last-update state cell shared by the refresh cycle and the status endpoint.
"""

from datetime import datetime, timezone
from typing import Optional

NEVER = "Never"


class LastUpdate:
    """Single-writer cell holding the start time of the latest cycle attempt.

    The refresh cycle is the only writer; the /status endpoint reads it.
    """

    def __init__(self) -> None:
        self._value: Optional[datetime] = None

    @property
    def value(self) -> Optional[datetime]:
        return self._value

    def mark(self, when: Optional[datetime] = None) -> datetime:
        """Record a cycle start, defaulting to now (UTC)."""
        self._value = when or datetime.now(timezone.utc)
        return self._value

    def render(self) -> str:
        if self._value is None:
            return NEVER
        return self._value.isoformat()
