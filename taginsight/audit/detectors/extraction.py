"""Parameter, event-name and tracking-ID extraction for detected requests.

Extraction runs in two passes. The first collects flat keys from the URL query
string and the POST body. The second expands the vendor's embedded data blob
(for example Meta's ``cd`` custom-data parameter) into the flat map. Decode
failures in the second pass are ignored and the raw value is kept.
"""

import logging
import re
from typing import Any, Dict, Optional

from .base import VendorDefinition, VendorRegistry, default_registry
from .utils import ParameterParser, compile_pattern, extract_url_components, is_blank


logger = logging.getLogger(__name__)


class ParameterExtractor:
    """Parses a request's query string and body into a flat parameter map."""

    def __init__(self, registry: Optional[VendorRegistry] = None):
        self.registry = registry if registry is not None else default_registry

    def extract(self, url: str, post_body: Optional[str], vendor_key: Optional[str],
                raw_query: Optional[str] = None) -> Dict[str, Any]:
        """Extract request parameters.

        Args:
            url: Request URL
            post_body: Raw request body, if any
            vendor_key: Detected vendor, used for blob expansion
            raw_query: Raw query string; taken from the URL when omitted

        Returns:
            Flat parameter map; query parameters take precedence over body keys
        """
        params = self._extract_flat(url, post_body, raw_query)

        vendor = self.registry.get(vendor_key) if vendor_key else None
        if vendor is not None and vendor.custom_data_param:
            self._expand_blob(params, vendor.custom_data_param)

        return params

    def _extract_flat(self, url: str, post_body: Optional[str], raw_query: Optional[str]) -> Dict[str, Any]:
        """First pass: query string, then body, without overwriting."""
        if raw_query is None:
            raw_query = extract_url_components(url or "")["query"]

        params: Dict[str, Any] = {}
        ParameterParser.fold_pairs(ParameterParser.parse_url_encoded(raw_query) or [], into=params)

        if not post_body:
            return params

        decoded = ParameterParser.parse_json_payload(post_body)
        if isinstance(decoded, dict):
            ParameterParser.fold_pairs(decoded.items(), into=params)
            return params
        if decoded is not None:
            params.setdefault("body", decoded)
            return params

        pairs = ParameterParser.parse_url_encoded(post_body, strict=True)
        if pairs:
            ParameterParser.fold_pairs(pairs, into=params)
        else:
            params.setdefault("body", post_body)

        return params

    def _expand_blob(self, params: Dict[str, Any], blob_param: str) -> None:
        """Second pass: merge a JSON data blob into the map, keeping existing keys."""
        raw = params.get(blob_param)
        if raw is None:
            return

        decoded = ParameterParser.decode_json_blob(raw)
        if decoded is None:
            logger.debug(f"Parameter '{blob_param}' is not a JSON object; keeping raw value")
            return

        for key, value in decoded.items():
            params.setdefault(key, value)


def extract_event_name(params: Dict[str, Any], vendor: VendorDefinition) -> str:
    """Derive the vendor-specific event name for a request.

    Name parameters are consulted first, then conversion markers, and finally
    the vendor's default event name.
    """
    for name in vendor.event_name_params:
        value = params.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()

    if vendor.conversion_event_name:
        if any(not is_blank(params.get(name)) for name in vendor.conversion_params):
            return vendor.conversion_event_name

    return vendor.default_event_name


def extract_pixel_id(params: Dict[str, Any], url: str, vendor: VendorDefinition) -> Optional[str]:
    """Extract the tracking/pixel ID from the parameters or the URL path."""
    for name in vendor.pixel_id_params:
        value = params.get(name)
        if not is_blank(value) and not isinstance(value, (dict, list)):
            return str(value)

    if vendor.pixel_id_path_pattern:
        pattern = compile_pattern(vendor.pixel_id_path_pattern, re.IGNORECASE)
        path = extract_url_components(url or "")["path"]
        match = pattern.search(path) if pattern else None
        if match:
            return match.group(1)

    return None
