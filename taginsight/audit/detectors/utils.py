"""Utilities for tracking-request detection including regex caching and parameter parsing."""

import json
import re
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional, Pattern, Tuple
from urllib.parse import parse_qsl, unquote, urlsplit


# Bracketed keys such as cd[value] or ud[em]
BRACKET_KEY_PATTERN = re.compile(r"^([^\[\]]+)\[([^\[\]]*)\]$")

META_PIXEL_ID_PATTERN = re.compile(r"^\d{15,16}$")
GA4_MEASUREMENT_ID_PATTERN = re.compile(r"^G-[A-Z0-9]+$", re.IGNORECASE)
FBP_PATTERN = re.compile(r"^fb\.\d\.\d+\.\d+$")
FBC_PATTERN = re.compile(r"^fb\.\d\.\d+\.")


@lru_cache(maxsize=128)
def compile_pattern(pattern: str, flags: int = 0) -> Optional[Pattern[str]]:
    """Compile and cache a regex pattern.

    Args:
        pattern: Regex pattern string
        flags: Regex compilation flags

    Returns:
        Compiled pattern or None if invalid
    """
    try:
        return re.compile(pattern, flags)
    except re.error:
        return None


def extract_url_components(url: str) -> Dict[str, str]:
    """Extract components from a URL for pattern matching.

    A URL that cannot be split falls back to using the whole string as the
    path so pattern checks still have something to look at.

    Args:
        url: URL to parse

    Returns:
        Dict with domain, path, query, fragment components
    """
    try:
        parsed = urlsplit(url)
        return {
            "scheme": parsed.scheme,
            "domain": (parsed.hostname or "").lower(),
            "path": parsed.path,
            "query": parsed.query,
            "fragment": parsed.fragment,
            "full_url": url
        }
    except ValueError:
        return {
            "scheme": "",
            "domain": "",
            "path": url,
            "query": "",
            "fragment": "",
            "full_url": url
        }


def validate_meta_pixel_id(pixel_id: Any) -> bool:
    """Check that a Meta pixel ID is a 15-16 digit number."""
    if pixel_id is None:
        return False
    return META_PIXEL_ID_PATTERN.match(str(pixel_id)) is not None


def validate_measurement_id(measurement_id: Any) -> bool:
    """Check GA4 measurement ID format (G-XXXXXXX)."""
    if not isinstance(measurement_id, str) or not measurement_id:
        return False
    return GA4_MEASUREMENT_ID_PATTERN.match(measurement_id) is not None


def is_blank(value: Any) -> bool:
    """True for values a tracking call effectively did not send."""
    return value is None or value == ""


class ParameterParser:
    """Utilities for parsing request parameters from various wire formats."""

    @staticmethod
    def parse_json_payload(payload: str) -> Optional[Any]:
        """Parse a JSON payload.

        Args:
            payload: JSON string to parse

        Returns:
            Decoded value, or None if the payload is not JSON
        """
        if not payload:
            return None

        try:
            return json.loads(payload)
        except (json.JSONDecodeError, ValueError):
            return None

    @staticmethod
    def parse_url_encoded(query_string: str, strict: bool = False) -> Optional[List[Tuple[str, str]]]:
        """Parse URL-encoded parameters into ordered key/value pairs.

        Args:
            query_string: Query string or form body (leading ? tolerated)
            strict: Reject input that is not well-formed form data

        Returns:
            List of decoded (key, value) pairs, or None when strict parsing fails
        """
        if not query_string:
            return []

        if query_string.startswith('?'):
            query_string = query_string[1:]

        try:
            return parse_qsl(query_string, keep_blank_values=True, strict_parsing=strict)
        except ValueError:
            if strict:
                return None
            return []

    @staticmethod
    def fold_pairs(pairs: Iterable[Tuple[str, Any]], into: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Fold key/value pairs into a flat map without overwriting existing keys.

        The first occurrence of a repeated key wins. Bracketed keys such as
        ``cd[value]`` are folded into a nested dict under ``cd``.

        Args:
            pairs: Ordered (key, value) pairs
            into: Existing map to extend

        Returns:
            The extended map
        """
        result = into if into is not None else {}

        for key, value in pairs:
            match = BRACKET_KEY_PATTERN.match(key)
            if match and match.group(2):
                parent, child = match.group(1), match.group(2)
                container = result.setdefault(parent, {})
                if isinstance(container, dict):
                    container.setdefault(child, value)
                    continue
                # Parent already holds a scalar; keep the raw bracketed key
            result.setdefault(key, value)

        return result

    @staticmethod
    def decode_json_blob(value: Any) -> Optional[Dict[str, Any]]:
        """Percent-decode and JSON-decode an embedded data blob.

        Args:
            value: Raw parameter value (string or already-decoded dict)

        Returns:
            Decoded dict, or None when the value does not hold a JSON object
        """
        if isinstance(value, dict):
            return value
        if not isinstance(value, str) or not value:
            return None

        for candidate in (value, unquote(value)):
            try:
                decoded = json.loads(candidate)
            except (json.JSONDecodeError, ValueError):
                continue
            return decoded if isinstance(decoded, dict) else None

        return None
