"""Audit data models package."""

from .capture import (
    CapturedRequest,
    RequestInput,
    coerce_requests,
)

from .events import NormalizedEvent

__all__ = [
    # Capture models
    'CapturedRequest',
    'RequestInput',
    'coerce_requests',

    # Event models
    'NormalizedEvent',
]
