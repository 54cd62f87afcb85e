"""Unit tests for captured request and normalized event models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from taginsight.audit.models import CapturedRequest, NormalizedEvent, coerce_requests


class TestCapturedRequest:
    """Test CapturedRequest parsing and derived fields."""

    def test_derives_domain_and_query_from_url(self):
        """Test domain and query string are taken from the URL when omitted."""
        request = CapturedRequest(url="https://WWW.Facebook.com/tr/?id=1&ev=PageView")

        assert request.domain == "www.facebook.com"
        assert request.query_string == "id=1&ev=PageView"
        assert request.method == "GET"
        assert request.post_body is None

    def test_accepts_crawler_aliases(self):
        """Test crawler field spellings populate the model."""
        request = CapturedRequest.model_validate({
            "url": "https://www.google-analytics.com/g/collect",
            "queryString": "?tid=G-ABC123&en=page_view",
            "postBody": "",
            "timestampCapturedAt": "2024-05-01T12:00:00Z",
            "pageUrl": "https://shop.example.com/",
            "journeyStepIndex": "2",
            "method": "post",
        })

        assert request.query_string == "tid=G-ABC123&en=page_view"
        assert request.post_body is None
        assert request.timestamp == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        assert request.page_url == "https://shop.example.com/"
        assert request.journey_step == 2
        assert request.method == "POST"

    def test_epoch_millisecond_timestamp(self):
        """Test numeric timestamps are read as epoch milliseconds."""
        request = CapturedRequest(url="https://example.com/", timestamp=1714564800000)

        assert request.timestamp == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def test_unparseable_timestamp_is_absent(self):
        """Test an invalid timestamp degrades to None instead of failing."""
        request = CapturedRequest(url="https://example.com/", timestamp="yesterday-ish")

        assert request.timestamp is None

    def test_empty_url_rejected(self):
        """Test a blank URL is a validation error."""
        with pytest.raises(ValidationError):
            CapturedRequest(url="   ")

    def test_model_is_frozen(self):
        """Test captured requests are immutable."""
        request = CapturedRequest(url="https://example.com/")
        with pytest.raises(ValidationError):
            request.url = "https://other.example.com/"


class TestCoerceRequests:
    """Test batch coercion of raw crawler records."""

    def test_skips_malformed_records(self, caplog):
        """Test bad records are counted and logged without aborting the batch."""
        items = [
            {"url": "https://www.facebook.com/tr/?id=1"},
            {"method": "GET"},
            "not a record",
            CapturedRequest(url="https://analytics.tiktok.com/api/v2/pixel"),
        ]

        with caplog.at_level("WARNING"):
            requests, rejected = coerce_requests(items)

        assert len(requests) == 2
        assert rejected == 2
        assert [r.domain for r in requests] == ["www.facebook.com", "analytics.tiktok.com"]
        assert "Skipping" in caplog.text


class TestNormalizedEvent:
    """Test NormalizedEvent helpers."""

    def test_location_prefers_reported_page(self):
        """Test dl beats page_url and the request URL."""
        event = NormalizedEvent(
            event_id=1, vendor="meta", event_name="PageView",
            url="https://www.facebook.com/tr/", page_url="https://shop.example.com/",
            params={"dl": "https://shop.example.com/product"},
        )
        assert event.location == "https://shop.example.com/product"

    def test_location_falls_back_to_page_url(self):
        """Test page_url is used when no location parameter was sent."""
        event = NormalizedEvent(
            event_id=1, vendor="meta", event_name="PageView",
            url="https://www.facebook.com/tr/", page_url="https://shop.example.com/",
        )
        assert event.location == "https://shop.example.com/"

    def test_param_treats_empty_as_absent(self):
        """Test empty-string parameters return the default."""
        event = NormalizedEvent(
            event_id=1, vendor="meta", event_name="PageView",
            url="https://www.facebook.com/tr/", params={"ev": ""},
        )
        assert event.param("ev", "missing") == "missing"

    def test_event_id_is_one_based(self):
        """Test event IDs start at 1."""
        with pytest.raises(ValidationError):
            NormalizedEvent(event_id=0, vendor="meta", event_name="PageView", url="https://x/")
