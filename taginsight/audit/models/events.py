"""Normalized vendor event model derived from a captured request."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .capture import CapturedRequest


class NormalizedEvent(BaseModel):
    """One vendor event, ready for rule evaluation.

    Every normalized event belongs to exactly one vendor and one batch, and its
    ``event_id`` is unique within that batch.
    """

    model_config = ConfigDict(frozen=True)

    event_id: int = Field(ge=1, description="1-based identifier, unique within the batch")
    vendor: str = Field(description="Vendor key the event was attributed to")
    event_name: str = Field(description="Vendor-specific semantic event name")
    timestamp: Optional[datetime] = Field(default=None, description="Capture timestamp")
    url: str = Field(description="Request URL")
    page_url: Optional[str] = Field(default=None, description="Page active when the request fired")
    method: str = Field(default="GET", description="HTTP method")
    params: Dict[str, Any] = Field(
        default_factory=dict,
        description="Flattened, vendor-decoded request parameters"
    )
    pixel_id: Optional[str] = Field(default=None, description="Tracking/pixel ID, if present")
    request: Optional[CapturedRequest] = Field(
        default=None,
        description="Source request this event was derived from"
    )

    @property
    def timestamp_ms(self) -> Optional[float]:
        """Capture time as epoch milliseconds, or None when unknown."""
        if self.timestamp is None:
            return None
        return self.timestamp.timestamp() * 1000.0

    @property
    def location(self) -> str:
        """Page location reported by the event, falling back to the page/request URL."""
        for key in ("dl", "page_location"):
            value = self.params.get(key)
            if isinstance(value, str) and value:
                return value
        return self.page_url or self.url

    def param(self, name: str, default: Any = None) -> Any:
        """Look up a parameter, treating empty strings as absent."""
        value = self.params.get(name, default)
        if value == "":
            return default
        return value
