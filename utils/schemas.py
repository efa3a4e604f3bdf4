"""
Pydantic Schemas - Data Validation Models

Defines the schemas used throughout the refresh pipeline:
- Upstream API responses (token, content payload)
- Static content request descriptors
- Per-item and per-cycle results
- HTTP status response

Usage:
    from utils.schemas import Token

    token = Token(**raw_data)
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, validator


def _require_truthy(v: Any) -> Any:
    if not v:
        raise ValueError("must be present and non-empty")
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v


class Token(BaseModel):
    """Short-lived authorization pair minted once per cycle.

    Both fields must be truthy; a cycle cannot proceed otherwise.
    """

    timestamp: str = Field(..., description="Token timestamp")
    signature: str = Field(..., description="Token signature")

    @validator("timestamp", "signature", pre=True)
    def validate_present(cls, v: Any) -> Any:
        return _require_truthy(v)

    def headers(self) -> dict[str, str]:
        """Headers that authorize a content request."""
        return {"x-timestamp": self.timestamp, "x-signature": self.signature}


class ContentPayload(BaseModel):
    """Content endpoint response carrying base64 text in `data`."""

    data: str = Field(..., description="Base64-encoded UTF-8 text")

    @validator("data", pre=True)
    def validate_data(cls, v: Any) -> Any:
        if not v:
            raise ValueError("must be present and non-empty")
        return v


class ContentRequestSpec(BaseModel):
    """Static descriptor for one content category."""

    type: str
    filename: str
    label: str

    class Config:
        frozen = True


CONTENT_REQUESTS: tuple[ContentRequestSpec, ...] = (
    ContentRequestSpec(type="up", filename="upcoming.json", label="Upcoming"),
    ContentRequestSpec(type="live", filename="live.json", label="Live"),
    ContentRequestSpec(type="completed", filename="completed.json", label="Completed"),
)


class CacheResult(BaseModel):
    """Outcome of one content fetch-and-cache attempt."""

    type: str
    filename: str
    ok: bool
    error: Optional[str] = None
    path: Optional[str] = None


class CycleReport(BaseModel):
    """Outcome of one refresh cycle."""

    started_at: Optional[datetime] = None
    skipped: bool = False
    token_ok: bool = False
    error: Optional[str] = None
    results: list[CacheResult] = Field(default_factory=list)

    @property
    def succeeded(self) -> list[CacheResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> list[CacheResult]:
        return [r for r in self.results if not r.ok]


class StatusResponse(BaseModel):
    """Body of GET /status."""

    lastUpdate: str
