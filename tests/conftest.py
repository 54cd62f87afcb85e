"""Shared test fixtures and configuration for Tag Insight tests."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from urllib.parse import urlencode

import pytest

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from taginsight.audit.models import NormalizedEvent
from taginsight.audit.rules import EventValidator, build_default_catalog


PIXEL_ID = "123456789012345"
FBP = "fb.1.1700000000000.987654321"
BASE_TIME = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def meta_url(**params) -> str:
    """Build a Meta pixel /tr URL with the given query parameters."""
    return "https://www.facebook.com/tr/?" + urlencode(params)


@pytest.fixture
def base_time():
    """Fixed capture time used across tests."""
    return BASE_TIME


@pytest.fixture
def make_request():
    """Factory for raw crawler request records."""
    def _make(url, offset_ms=0, **extra):
        record = {
            "url": url,
            "method": "GET",
            "timestamp": (BASE_TIME + timedelta(milliseconds=offset_ms)).isoformat(),
            "page_url": "https://shop.example.com/",
        }
        record.update(extra)
        return record
    return _make


@pytest.fixture
def clean_pageview_request(make_request):
    """Meta PageView request that passes every Meta rule."""
    return make_request(meta_url(
        id=PIXEL_ID,
        ev="PageView",
        dl="https://shop.example.com/",
        fbp=FBP,
    ))


@pytest.fixture
def make_event():
    """Factory for normalized events."""
    def _make(event_id=1, vendor="meta", event_name="PageView", params=None,
              offset_ms=0, timestamp=True, method="GET", pixel_id=None,
              url="https://www.facebook.com/tr/"):
        return NormalizedEvent(
            event_id=event_id,
            vendor=vendor,
            event_name=event_name,
            timestamp=BASE_TIME + timedelta(milliseconds=offset_ms) if timestamp else None,
            url=url,
            page_url="https://shop.example.com/",
            method=method,
            params=params or {},
            pixel_id=pixel_id,
        )
    return _make


@pytest.fixture
def clean_pageview_params():
    """Parameters of a Meta PageView that satisfies every rule."""
    return {
        "id": PIXEL_ID,
        "ev": "PageView",
        "dl": "https://shop.example.com/",
        "fbp": FBP,
    }


@pytest.fixture
def default_catalog():
    """Built-in rule catalog with default settings."""
    return build_default_catalog()


@pytest.fixture
def validator(default_catalog):
    """Event validator over the built-in catalog."""
    return EventValidator(default_catalog)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove TAG_INSIGHT_* variables so config tests see only their own settings."""
    for name in ("TAG_INSIGHT_ENVIRONMENT", "TAG_INSIGHT_DUPLICATE_WINDOW_MS",
                 "TAG_INSIGHT_ENABLED_VENDORS", "TAG_INSIGHT_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
