"""Reusable value-format validations shared by vendor rules."""

import json
import math
import re
from enum import Enum
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field


CURRENCY_PATTERN = re.compile(r"^[A-Za-z]{3}$")

# Common ISO 4217 codes; other well-formed codes still pass
KNOWN_CURRENCY_CODES: Tuple[str, ...] = (
    'USD', 'EUR', 'GBP', 'JPY', 'CAD', 'AUD', 'CHF', 'CNY', 'INR', 'BRL',
    'MXN', 'SGD', 'HKD', 'NOK', 'SEK', 'DKK', 'NZD', 'ZAR', 'RUB', 'KRW',
    'PLN', 'THB', 'IDR', 'MYR', 'PHP', 'CZK', 'HUF', 'ILS', 'CLP', 'AED',
    'SAR', 'TWD', 'TRY', 'VND', 'PKR', 'EGP', 'NGN', 'BDT', 'ARS', 'COP',
)


class FormatStatus(str, Enum):
    """Outcome tier of a format validation."""
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class FormatCheck(BaseModel):
    """Result of a format validation."""

    model_config = ConfigDict(frozen=True)

    status: FormatStatus = Field(description="success, warning or error")
    message: Optional[str] = Field(default=None, description="Explanation for non-success results")
    suggestion: Optional[str] = Field(default=None, description="Corrected value, when one is obvious")

    @property
    def valid(self) -> bool:
        """Warnings are still valid values."""
        return self.status != FormatStatus.ERROR


def validate_currency(value: Any, known_codes: Optional[Iterable[str]] = None) -> FormatCheck:
    """Validate an ISO 4217 currency code.

    Exactly three letters are required. A code that is not fully uppercase is
    a formatting warning whose suggestion is the uppercase form.

    Args:
        value: Currency value to check
        known_codes: Optional list of expected codes; unknown but well-formed
            codes pass with a note

    Returns:
        FormatCheck describing the result
    """
    if value is None or value == "":
        return FormatCheck(status=FormatStatus.ERROR, message="Missing currency")

    text = str(value)
    if not CURRENCY_PATTERN.match(text):
        return FormatCheck(status=FormatStatus.ERROR, message="Invalid currency code format")

    upper = text.upper()
    if text != upper:
        return FormatCheck(
            status=FormatStatus.WARNING,
            message=f"Should be uppercase: {upper}",
            suggestion=upper
        )

    if known_codes is not None and upper not in set(known_codes):
        return FormatCheck(status=FormatStatus.SUCCESS, message="uncommon currency code")

    return FormatCheck(status=FormatStatus.SUCCESS)


def parse_number(value: Any) -> Optional[float]:
    """Parse a numeric parameter value, or None when it is not a finite number."""
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None

    return number if math.isfinite(number) else None


def validate_monetary_value(value: Any) -> FormatCheck:
    """Validate a monetary amount.

    Numeric values pass, negative numbers are a warning, and anything
    non-numeric or missing is an error.
    """
    if value is None or value == "":
        return FormatCheck(status=FormatStatus.ERROR, message="Missing value")

    number = parse_number(value)
    if number is None:
        return FormatCheck(status=FormatStatus.ERROR, message="Value must be numeric")

    if number < 0:
        return FormatCheck(status=FormatStatus.WARNING, message="Negative value detected")

    return FormatCheck(status=FormatStatus.SUCCESS)


def _decode_list(value: Any) -> Tuple[Optional[List[Any]], Optional[str]]:
    if isinstance(value, (list, tuple)):
        return list(value), None

    if isinstance(value, str):
        try:
            value = json.loads(value)
        except (json.JSONDecodeError, ValueError):
            return None, "not valid JSON"

    if not isinstance(value, list):
        return None, "not an array"

    return value, None


def parse_id_list(value: Any) -> Tuple[Optional[List[Any]], Optional[str]]:
    """Parse a list of IDs given natively or as a JSON string.

    Returns:
        Tuple of (parsed list, None) on success or (None, failure detail)
    """
    items, detail = _decode_list(value)
    if items is None:
        return None, detail

    for item in items:
        if isinstance(item, bool) or not isinstance(item, (str, int, float)):
            return None, "contains non-string/number elements"

    return items, None


def parse_object_list(value: Any, required_keys: Sequence[str] = ("id", "quantity")) -> Tuple[Optional[List[Any]], Optional[str]]:
    """Parse a list of objects carrying the required keys.

    Returns:
        Tuple of (parsed list, None) on success or (None, failure detail)
    """
    items, detail = _decode_list(value)
    if items is None:
        return None, detail

    for item in items:
        if not isinstance(item, dict) or any(key not in item for key in required_keys):
            keys = " or ".join(f"'{key}'" for key in required_keys)
            return None, f"objects missing {keys}"

    return items, None
