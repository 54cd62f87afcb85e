"""Pydantic models for captured tracking requests.

The crawler records every outbound request it considers tracking-related while
it walks the simulated user journey. This module defines the immutable record
the audit engine consumes, plus helpers that coerce raw crawler payloads into
those records without letting one bad record sink the whole batch.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
from urllib.parse import urlsplit

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator


logger = logging.getLogger(__name__)


class CapturedRequest(BaseModel):
    """A single outbound HTTP request captured by the crawler."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    url: str = Field(description="Full request URL")
    domain: str = Field(
        default="",
        description="Request hostname (derived from the URL when omitted)"
    )
    method: str = Field(default="GET", description="HTTP method")
    query_string: str = Field(
        default="",
        validation_alias=AliasChoices("query_string", "queryString", "params", "query"),
        description="Raw query string without the leading '?'"
    )
    post_body: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("post_body", "postBody", "payload", "body"),
        description="Raw request body, if any"
    )
    timestamp: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("timestamp", "timestampCapturedAt", "captured_at"),
        description="When the crawler captured the request"
    )
    page_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("page_url", "pageUrl"),
        description="Page active in the browser when the request fired"
    )
    journey_step: int = Field(
        default=0,
        validation_alias=AliasChoices("journey_step", "journeyStep", "journeyStepIndex"),
        description="Index of the journey step the request belongs to"
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v):
        """Reject empty URLs; everything else is kept verbatim."""
        if not isinstance(v, str) or not v.strip():
            raise ValueError("Request URL must be a non-empty string")
        return v.strip()

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, v):
        """Uppercase the HTTP method, defaulting to GET."""
        if not v:
            return "GET"
        return str(v).upper()

    @field_validator("query_string", mode="before")
    @classmethod
    def normalize_query_string(cls, v):
        """Strip a leading '?' and coerce missing values to an empty string."""
        if v is None:
            return ""
        if not isinstance(v, str):
            return ""
        return v[1:] if v.startswith("?") else v

    @field_validator("post_body", mode="before")
    @classmethod
    def normalize_post_body(cls, v):
        """Empty bodies are treated as absent."""
        if v is None or v == "":
            return None
        if not isinstance(v, str):
            return str(v)
        return v

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_timestamp(cls, v):
        """Parse ISO strings and epoch milliseconds; anything else is dropped."""
        if v is None or v == "":
            return None
        if isinstance(v, datetime):
            return v
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            try:
                return datetime.fromtimestamp(v / 1000.0, tz=timezone.utc)
            except (OverflowError, OSError, ValueError):
                return None
        if isinstance(v, str):
            text = v.strip()
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            try:
                return datetime.fromisoformat(text)
            except ValueError:
                logger.debug(f"Dropping unparseable capture timestamp: {v!r}")
                return None
        return None

    @field_validator("journey_step", mode="before")
    @classmethod
    def parse_journey_step(cls, v):
        """Coerce the journey step to an int, falling back to 0."""
        try:
            return int(v) if v is not None else 0
        except (TypeError, ValueError):
            return 0

    @model_validator(mode="after")
    def fill_derived_fields(self):
        """Derive domain and query string from the URL when the crawler omitted them."""
        if self.domain and self.query_string:
            return self

        try:
            parsed = urlsplit(self.url)
            hostname = parsed.hostname or ""
            query = parsed.query
        except ValueError:
            hostname, query = "", ""

        # Frozen model: bypass __setattr__ while still inside validation
        if not self.domain:
            object.__setattr__(self, "domain", hostname.lower())
        if not self.query_string and query:
            object.__setattr__(self, "query_string", query)
        return self


RequestInput = Union[CapturedRequest, Dict[str, Any]]


def coerce_requests(items: Iterable[RequestInput]) -> Tuple[List[CapturedRequest], int]:
    """Coerce raw crawler records into CapturedRequest instances.

    Records that cannot be validated at all are skipped and logged; they are
    never allowed to abort processing of the rest of the batch.

    Args:
        items: CapturedRequest instances or plain dicts from the crawler

    Returns:
        Tuple of (valid requests in input order, number of rejected records)
    """
    requests: List[CapturedRequest] = []
    rejected = 0

    for index, item in enumerate(items):
        if isinstance(item, CapturedRequest):
            requests.append(item)
            continue

        if not isinstance(item, dict):
            logger.warning(f"Skipping captured request #{index + 1}: expected an object, got {type(item).__name__}")
            rejected += 1
            continue

        try:
            requests.append(CapturedRequest.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping malformed captured request #{index + 1}: {e.error_count()} validation error(s)")
            rejected += 1

    return requests, rejected
