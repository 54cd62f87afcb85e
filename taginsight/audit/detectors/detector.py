"""Vendor detection for captured tracking requests."""

import logging
from typing import Optional

from ..models.capture import CapturedRequest
from .base import VendorRegistry, default_registry
from .utils import extract_url_components


logger = logging.getLogger(__name__)


class VendorDetector:
    """Assigns a captured request to at most one configured vendor.

    The registry is walked in declaration order. A vendor whose domain matches
    but whose path/query signature does not is skipped, and detection moves on
    to the next vendor rather than falling back to a domain-only match.
    """

    def __init__(self, registry: Optional[VendorRegistry] = None):
        self.registry = registry if registry is not None else default_registry

    def detect(self, domain: str, url: str, raw_query: str = "") -> Optional[str]:
        """Determine which vendor a request belongs to.

        Args:
            domain: Request hostname
            url: Full request URL
            raw_query: Raw query string (without the leading '?')

        Returns:
            Vendor key, or None when no vendor matches
        """
        if not domain:
            domain = extract_url_components(url or "")["domain"]

        path = extract_url_components(url or "")["path"]

        for vendor in self.registry:
            if not vendor.matches_domain(domain):
                continue

            if not vendor.path_pattern:
                return vendor.key

            if vendor.matches_path(path) or vendor.matches_query(raw_query):
                return vendor.key

            logger.debug(f"Domain {domain} matched {vendor.key} but path/query signature did not")

        return None

    def detect_request(self, request: CapturedRequest) -> Optional[str]:
        """Detect the vendor of a captured request."""
        vendor_key = self.detect(request.domain, request.url, request.query_string)
        if vendor_key is None:
            logger.debug(f"No vendor matched request to {request.domain}")
        return vendor_key
