"""Unit tests for vendor detection."""

import pytest

from taginsight.audit.detectors import VendorDefinition, VendorDetector, VendorRegistry
from taginsight.audit.models import CapturedRequest


@pytest.fixture
def detector():
    """Detector over the built-in registry."""
    return VendorDetector()


class TestVendorDetection:
    """Test detection against the built-in registry."""

    @pytest.mark.parametrize("url,expected", [
        ("https://www.facebook.com/tr/?id=123456789012345&ev=PageView", "meta"),
        ("https://www.facebook.com/tr?id=123456789012345", "meta"),
        ("https://region1.google-analytics.com/g/collect?v=2&tid=G-ABC123&en=page_view", "ga4"),
        ("https://www.googletagmanager.com/gtm.js?id=GTM-ABC123", "gtm"),
        ("https://www.googletagmanager.com/gtag/js?id=G-ABC123", "gtm"),
        ("https://googleads.g.doubleclick.net/pagead/viewthroughconversion/123456/?label=abc", "gads"),
        ("https://www.google.com/ccm/collect?label=abc", "gads"),
        ("https://analytics.tiktok.com/api/v2/pixel", "tiktok"),
        ("https://px.ads.linkedin.com/collect/?pid=12345&fmt=gif", "linkedin"),
        ("https://script.hotjar.com/modules.js", "hotjar"),
        ("https://sslwidget.criteo.com/event?a=1234&p=viewItem", "criteo"),
    ])
    def test_known_vendors(self, detector, url, expected):
        """Test representative endpoints map to their vendor."""
        request = CapturedRequest(url=url)
        assert detector.detect_request(request) == expected

    def test_domain_without_signature_is_unmatched(self, detector):
        """Test a vendor domain whose path does not match is not attributed."""
        request = CapturedRequest(url="https://www.facebook.com/login.php")
        assert detector.detect_request(request) is None

    def test_unrelated_domain_is_unmatched(self, detector):
        """Test a non-tracking request yields no vendor."""
        assert detector.detect("cdn.example.com", "https://cdn.example.com/app.js") is None

    def test_query_signature_rescues_path_mismatch(self, detector):
        """Test a GA4 hit on an unusual path is still matched by its tid."""
        url = "https://www.google-analytics.com/custom/endpoint?v=2&tid=G-XYZ789"
        assert detector.detect("www.google-analytics.com", url, "v=2&tid=G-XYZ789") == "ga4"

    def test_ga4_hit_on_doubleclick_is_not_google_ads(self, detector):
        """Test GA4 traffic on shared doubleclick infrastructure stays GA4."""
        url = "https://stats.g.doubleclick.net/g/collect?v=2&tid=G-ABC123"
        assert detector.detect("stats.g.doubleclick.net", url, "v=2&tid=G-ABC123") == "ga4"

    def test_signature_mismatch_falls_through_to_next_vendor(self, detector):
        """Test a doubleclick request failing GA4's signature can match Google Ads."""
        url = "https://stats.g.doubleclick.net/pagead/conversion/123/?label=abc"
        assert detector.detect("stats.g.doubleclick.net", url, "label=abc") == "gads"

    def test_domain_is_derived_when_missing(self, detector):
        """Test an empty domain argument is filled in from the URL."""
        assert detector.detect("", "https://www.facebook.com/tr/?ev=PageView") == "meta"

    def test_domain_match_is_case_insensitive(self, detector):
        """Test uppercase hostnames are matched."""
        assert detector.detect("WWW.FACEBOOK.COM", "https://WWW.FACEBOOK.COM/tr/") == "meta"

    def test_meta_path_is_anchored(self, detector):
        """Test paths merely ending in /tr are not Meta pixel hits."""
        assert detector.detect("www.facebook.com", "https://www.facebook.com/foo/tr") is None
        assert detector.detect("www.facebook.com", "https://www.facebook.com/tr/extra") is None

    def test_unsplittable_url_does_not_raise(self, detector):
        """Test a URL urlsplit rejects yields no vendor instead of an exception."""
        assert detector.detect("", "https://[broken/tr/") is None
        assert detector.detect("www.facebook.com", "https://[broken/tr/") is None

    def test_unsplittable_url_is_matched_as_path(self):
        """Test the raw URL string stands in for the path when it cannot be split."""
        vendor = VendorDefinition(key="acme", name="Acme", domains=("acme.example",), path_pattern=r"/tr/")
        detector = VendorDetector(VendorRegistry([vendor]))

        assert detector.detect("acme.example", "https://[acme.example/tr/") == "acme"


class TestDetectionOrder:
    """Test registry order decides between vendors sharing infrastructure."""

    def test_first_matching_vendor_wins(self):
        """Test declaration order is respected."""
        first = VendorDefinition(key="first", name="First", domains=("shared.example",), path_pattern=r"/collect")
        second = VendorDefinition(key="second", name="Second", domains=("shared.example",))
        detector = VendorDetector(VendorRegistry([first, second]))

        assert detector.detect("shared.example", "https://shared.example/collect") == "first"
        assert detector.detect("shared.example", "https://shared.example/other") == "second"
