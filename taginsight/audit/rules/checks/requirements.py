"""Required/recommended parameter rules for table-driven vendors.

GA4, Google Ads and TikTok are validated from per-event tables of required
and recommended parameters, plus shared currency/value format rules. Each
vendor sends some parameters under wire aliases (GA4's ``cu`` or ``epn.value``,
Google Ads' ``currency_code``), so lookups try the canonical name first and
then the vendor's aliases.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ...detectors.utils import is_blank, validate_measurement_id
from ...models.events import NormalizedEvent
from ..models import CheckMethod, CheckOutcome, IssueType, RuleDefinition, Severity
from .formats import FormatStatus, parse_number, validate_currency, validate_monetary_value


REQUIRED_DEDUCTION = 20
RECOMMENDED_DEDUCTION = 5

RequirementTable = Mapping[str, Mapping[str, Tuple[str, ...]]]

REQUIREMENT_TABLES: Dict[str, RequirementTable] = {
    "ga4": {
        "purchase": {
            "required": ("transaction_id", "value", "currency"),
            "recommended": ("items", "coupon", "shipping", "tax"),
        },
        "add_to_cart": {
            "required": ("items",),
            "recommended": ("value", "currency"),
        },
        "view_item": {
            "required": ("items",),
            "recommended": ("value", "currency"),
        },
        "begin_checkout": {
            "required": ("items",),
            "recommended": ("value", "currency", "coupon"),
        },
        "page_view": {
            "required": (),
            "recommended": ("page_title", "page_location"),
        },
    },
    "gads": {
        "conversion": {
            "required": ("value", "currency"),
            "recommended": ("transaction_id", "items"),
        },
        "remarketing": {
            "required": (),
            "recommended": ("ecomm_prodid", "ecomm_pagetype"),
        },
    },
    "tiktok": {
        "CompletePayment": {
            "required": ("value", "currency", "contents"),
            "recommended": ("content_type", "event_id"),
        },
        "AddToCart": {
            "required": ("contents",),
            "recommended": ("value", "currency", "content_type"),
        },
        "ViewContent": {
            "required": ("contents",),
            "recommended": ("value", "currency", "content_type"),
        },
        "InitiateCheckout": {
            "required": ("contents", "value", "currency"),
            "recommended": ("content_type",),
        },
    },
}

PARAMETER_ALIASES: Dict[str, Dict[str, Tuple[str, ...]]] = {
    "ga4": {
        "currency": ("cu",),
        "page_location": ("dl",),
        "page_title": ("dt",),
        "items": ("pr1",),
    },
    "gads": {
        "currency": ("currency_code",),
        "transaction_id": ("oid",),
    },
    "tiktok": {},
}

# GA4 prefixes event parameters by type: ep.* for strings, epn.* for numbers
PARAMETER_PREFIXES: Dict[str, Tuple[str, ...]] = {
    "ga4": ("ep.", "epn."),
}

RULE_PREFIXES: Dict[str, str] = {
    "ga4": "GA4",
    "gads": "GADS",
    "tiktok": "TT",
}

DOC_URLS: Dict[str, str] = {
    "ga4": "https://developers.google.com/analytics/devguides/collection/ga4/reference/events",
    "gads": "https://support.google.com/google-ads/answer/6095821",
    "tiktok": "https://business-api.tiktok.com/portal/docs?id=1739585700402178",
}


def lookup_param(params: Mapping[str, Any], name: str, vendor: str) -> Any:
    """Find a parameter by canonical name, prefixed name or vendor alias.

    Returns:
        The first non-blank value found, or None
    """
    candidates = [name]
    candidates.extend(prefix + name for prefix in PARAMETER_PREFIXES.get(vendor, ()))
    candidates.extend(PARAMETER_ALIASES.get(vendor, {}).get(name, ()))

    for candidate in candidates:
        value = params.get(candidate)
        if not is_blank(value):
            return value
    return None


def _rule_slug(event_name: str) -> str:
    return event_name.upper().replace(" ", "_")


def missing_fields_check(vendor: str, fields: Sequence[str]):
    """Build a check reporting each listed field the event does not carry."""
    fields = tuple(fields)

    def check_missing_fields(event: NormalizedEvent) -> CheckOutcome:
        missing = [name for name in fields if lookup_param(event.params, name, vendor) is None]
        if missing:
            return CheckOutcome.fail(", ".join(missing), fields=missing)
        return CheckOutcome.ok()

    return check_missing_fields


def currency_format_check(vendor: str, known_codes: Optional[Iterable[str]] = None):
    """Build a check failing on malformed currency codes."""
    codes = tuple(known_codes) if known_codes is not None else None

    def check_currency_format(event: NormalizedEvent) -> CheckOutcome:
        currency = lookup_param(event.params, "currency", vendor)
        if currency is None:
            return CheckOutcome.not_applicable()
        result = validate_currency(currency, codes)
        if result.status == FormatStatus.ERROR:
            return CheckOutcome.fail(str(currency))
        return CheckOutcome.ok(result.message)

    return check_currency_format


def currency_case_check(vendor: str):
    """Build a check flagging currency codes that are not uppercase."""

    def check_currency_case(event: NormalizedEvent) -> CheckOutcome:
        currency = lookup_param(event.params, "currency", vendor)
        if currency is None:
            return CheckOutcome.not_applicable()
        result = validate_currency(currency)
        if result.status == FormatStatus.WARNING:
            return CheckOutcome.fail(str(currency), suggestion=result.suggestion)
        return CheckOutcome.ok()

    return check_currency_case


def value_format_check(vendor: str):
    """Build a check failing on non-numeric monetary values."""

    def check_value_format(event: NormalizedEvent) -> CheckOutcome:
        value = lookup_param(event.params, "value", vendor)
        if value is None:
            return CheckOutcome.not_applicable()
        if validate_monetary_value(value).status == FormatStatus.ERROR:
            return CheckOutcome.fail(str(value))
        return CheckOutcome.ok()

    return check_value_format


def negative_value_check(vendor: str):
    """Build a check flagging negative monetary values."""

    def check_negative_value(event: NormalizedEvent) -> CheckOutcome:
        value = lookup_param(event.params, "value", vendor)
        if parse_number(value) is None:
            return CheckOutcome.not_applicable()
        if validate_monetary_value(value).status == FormatStatus.WARNING:
            return CheckOutcome.fail(str(value))
        return CheckOutcome.ok()

    return check_negative_value


def check_measurement_id(event: NormalizedEvent) -> CheckOutcome:
    """Every GA4 hit must report to a well-formed G- measurement ID."""
    tid = event.param("tid")
    if tid is None:
        return CheckOutcome.fail("missing")
    if not validate_measurement_id(tid):
        return CheckOutcome.fail(f"invalid format: {tid}")
    return CheckOutcome.ok()


def check_multiple_measurement_ids(event: NormalizedEvent, batch: Sequence[NormalizedEvent]) -> CheckOutcome:
    """Flag batches whose GA4 hits report to more than one measurement ID."""
    if event.param("tid") is None:
        return CheckOutcome.not_applicable()

    measurement_ids: List[str] = []
    for other in batch:
        tid = other.param("tid")
        if tid is not None and str(tid) not in measurement_ids:
            measurement_ids.append(str(tid))

    if len(measurement_ids) > 1:
        return CheckOutcome.fail(", ".join(measurement_ids))
    return CheckOutcome.ok()


def required_parameters_rule(vendor: str, event_name: str, fields: Sequence[str],
                             score_deduction: int = REQUIRED_DEDUCTION) -> RuleDefinition:
    """Build the Critical rule reporting missing required parameters for one event."""
    prefix = RULE_PREFIXES.get(vendor, vendor.upper())
    return RuleDefinition(
        rule_id=f"{prefix}-REQ-{_rule_slug(event_name)}",
        vendor=vendor,
        name=f"{event_name} - Required Parameters",
        description=f"Checks that {event_name} events carry {', '.join(fields)}.",
        check_method=CheckMethod.CONDITIONAL_VALIDATION,
        fields=tuple(fields),
        applies_to=frozenset({event_name}),
        severity=Severity.CRITICAL,
        score_deduction=score_deduction,
        message_template="Missing required parameter: {field}",
        recommendation=f"Add the missing parameter to your {event_name} event.",
        doc_url=DOC_URLS.get(vendor),
        issue_type=IssueType.MISSING_PARAMETER,
        check=missing_fields_check(vendor, fields),
    )


def recommended_parameters_rule(vendor: str, event_name: str, fields: Sequence[str],
                                score_deduction: int = RECOMMENDED_DEDUCTION) -> RuleDefinition:
    """Build the Optimization rule reporting missing recommended parameters for one event."""
    prefix = RULE_PREFIXES.get(vendor, vendor.upper())
    return RuleDefinition(
        rule_id=f"{prefix}-REC-{_rule_slug(event_name)}",
        vendor=vendor,
        name=f"{event_name} - Recommended Parameters",
        description=f"Checks whether {event_name} events carry {', '.join(fields)}.",
        check_method=CheckMethod.CONDITIONAL_VALIDATION,
        fields=tuple(fields),
        applies_to=frozenset({event_name}),
        severity=Severity.OPTIMIZATION,
        score_deduction=score_deduction,
        message_template="Missing recommended parameter: {field}",
        recommendation="Consider adding the parameter to improve tracking accuracy.",
        doc_url=DOC_URLS.get(vendor),
        issue_type=IssueType.MISSING_PARAMETER,
        check=missing_fields_check(vendor, fields),
    )


def format_rules(vendor: str, known_currencies: Optional[Iterable[str]] = None) -> List[RuleDefinition]:
    """Build the currency and value format rules shared by table-driven vendors."""
    prefix = RULE_PREFIXES.get(vendor, vendor.upper())
    doc_url = DOC_URLS.get(vendor)
    return [
        RuleDefinition(
            rule_id=f"{prefix}-FMT-CURRENCY",
            vendor=vendor,
            name="Currency Format",
            description="Checks that the currency, when present, is a three-letter ISO 4217 code.",
            check_method=CheckMethod.PARAMETER_VALIDATION,
            fields=("currency",),
            severity=Severity.IMPORTANT,
            score_deduction=10,
            message_template="Invalid currency code '{detail}' in {event_name} event.",
            recommendation="Use an ISO 4217 three-letter currency code in uppercase (e.g. USD, EUR).",
            doc_url=doc_url,
            issue_type=IssueType.MALFORMED_VALUE,
            check=currency_format_check(vendor, known_currencies),
        ),
        RuleDefinition(
            rule_id=f"{prefix}-FMT-CURRENCY-CASE",
            vendor=vendor,
            name="Currency Case",
            description="Checks that the currency code is uppercase.",
            check_method=CheckMethod.PARAMETER_VALIDATION,
            fields=("currency",),
            severity=Severity.OPTIMIZATION,
            score_deduction=2,
            message_template="Currency '{detail}' should be uppercase.",
            recommendation="Use uppercase currency codes.",
            doc_url=doc_url,
            issue_type=IssueType.MALFORMED_VALUE,
            check=currency_case_check(vendor),
        ),
        RuleDefinition(
            rule_id=f"{prefix}-FMT-VALUE",
            vendor=vendor,
            name="Value Format",
            description="Checks that the monetary value, when present, is numeric.",
            check_method=CheckMethod.PARAMETER_VALIDATION,
            fields=("value",),
            severity=Severity.IMPORTANT,
            score_deduction=10,
            message_template="Value must be numeric, got '{detail}'.",
            recommendation="Ensure value is a valid number.",
            doc_url=doc_url,
            issue_type=IssueType.MALFORMED_VALUE,
            check=value_format_check(vendor),
        ),
        RuleDefinition(
            rule_id=f"{prefix}-FMT-VALUE-NEGATIVE",
            vendor=vendor,
            name="Negative Value",
            description="Flags a negative monetary value.",
            check_method=CheckMethod.PARAMETER_VALIDATION,
            fields=("value",),
            severity=Severity.OPTIMIZATION,
            score_deduction=2,
            message_template="Negative value detected: '{detail}'.",
            recommendation="Report refunds separately instead of sending negative values.",
            doc_url=doc_url,
            issue_type=IssueType.MALFORMED_VALUE,
            check=negative_value_check(vendor),
        ),
    ]


def build_requirement_rules(vendor: str, table: Optional[RequirementTable] = None,
                            known_currencies: Optional[Iterable[str]] = None) -> List[RuleDefinition]:
    """Build the complete rule set for a table-driven vendor.

    Args:
        vendor: Vendor key
        table: Per-event requirement table (defaults to the built-in one)
        known_currencies: Currency codes considered common

    Returns:
        Measurement ID rule (GA4 only), requirement rules, then format rules
    """
    if table is None:
        table = REQUIREMENT_TABLES.get(vendor, {})

    rules: List[RuleDefinition] = []
    if vendor == "ga4":
        rules.append(RuleDefinition(
            rule_id="GA4-TID",
            vendor=vendor,
            name="Measurement ID",
            description="Checks that the hit carries a valid GA4 measurement ID (G-XXXXXXX).",
            check_method=CheckMethod.PARAMETER_VALIDATION,
            fields=("tid",),
            severity=Severity.CRITICAL,
            score_deduction=30,
            message_template="GA4 measurement ID {detail} in {event_name} event.",
            recommendation="Send hits with the G- measurement ID of your GA4 data stream.",
            doc_url=DOC_URLS["ga4"],
            issue_type=IssueType.MISSING_PARAMETER,
            check=check_measurement_id,
        ))

    for event_name, requirements in table.items():
        required = tuple(requirements.get("required", ()))
        recommended = tuple(requirements.get("recommended", ()))
        if required:
            rules.append(required_parameters_rule(vendor, event_name, required))
        if recommended:
            rules.append(recommended_parameters_rule(vendor, event_name, recommended))

    rules.extend(format_rules(vendor, known_currencies))

    if vendor == "ga4":
        rules.append(RuleDefinition(
            rule_id="GA4-MULTI-TID",
            vendor=vendor,
            name="Multiple Measurement IDs",
            description="Detects GA4 hits sent to more than one measurement ID from the same site.",
            check_method=CheckMethod.CROSS_REQUEST_VALIDATION,
            fields=("tid",),
            severity=Severity.IMPORTANT,
            score_deduction=10,
            message_template="Multiple GA4 measurement IDs detected: {detail}.",
            recommendation="Confirm that every measurement ID is intentional; stray properties fragment reporting.",
            doc_url=DOC_URLS["ga4"],
            issue_type=IssueType.CROSS_REQUEST_ISSUE,
            check=check_multiple_measurement_ids,
        ))

    return rules
