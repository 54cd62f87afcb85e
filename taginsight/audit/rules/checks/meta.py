"""Meta (Facebook) pixel rules.

Each rule is a small pure check function paired with a declarative
``RuleDefinition``. Rule IDs FB-001 to FB-021 follow Meta's pixel reference;
FB-022 and FB-023 cover value formatting that earlier rules only tolerate.
"""

from typing import Any, Iterable, List, Optional, Sequence

from ...detectors.utils import FBC_PATTERN, FBP_PATTERN, is_blank, validate_meta_pixel_id
from ...models.events import NormalizedEvent
from ..models import CheckMethod, CheckOutcome, IssueType, RuleDefinition, Severity
from .formats import (
    FormatStatus,
    parse_id_list,
    parse_number,
    parse_object_list,
    validate_currency,
)


VENDOR = "meta"

STANDARD_EVENTS = frozenset({
    'PageView', 'ViewContent', 'Search', 'AddToCart', 'AddToWishlist',
    'InitiateCheckout', 'AddPaymentInfo', 'Purchase', 'Lead',
    'CompleteRegistration', 'Contact', 'CustomizeProduct', 'Donate',
    'FindLocation', 'Schedule', 'StartTrial', 'SubmitApplication', 'Subscribe',
})

# Events where user data materially improves match rates
CONVERSION_EVENTS = frozenset({
    'Purchase', 'Lead', 'CompleteRegistration', 'AddToCart', 'InitiateCheckout',
    'AddPaymentInfo', 'Subscribe', 'StartTrial', 'SubmitApplication',
})

DEDUPLICATION_EVENTS = frozenset({
    'Purchase', 'Lead', 'AddToCart', 'InitiateCheckout', 'CompleteRegistration', 'ViewContent',
})

ECOMMERCE_EVENTS = frozenset({'ViewContent', 'AddToCart', 'Purchase', 'Search'})

ADVANCED_MATCHING_PARAMS = ('em', 'ph', 'fn', 'ln', 'ge', 'db', 'ct', 'st', 'zp', 'country')

CONSENT_PARAMS = ('coo', 'npa', 'gdpr', 'gdpr_consent', 'consent')
BOOLEAN_FLAGS = frozenset({'true', 'false', '0', '1'})

CONTENT_TYPES = frozenset({'product', 'product_group'})


def _event_name(event: NormalizedEvent) -> str:
    name = event.params.get('ev')
    return name if isinstance(name, str) and name else event.event_name


def _custom(event: NormalizedEvent, key: str) -> Any:
    """Look a key up in the flat params, then in the ``cd`` custom-data dict."""
    value = event.param(key)
    if value is None:
        custom_data = event.params.get('cd')
        if isinstance(custom_data, dict):
            value = custom_data.get(key)
    return None if is_blank(value) else value


def check_pixel_id(event: NormalizedEvent) -> CheckOutcome:
    pixel_id = event.param('id')
    if pixel_id is None:
        return CheckOutcome.fail('missing')
    if not validate_meta_pixel_id(pixel_id):
        return CheckOutcome.fail('invalid format')
    return CheckOutcome.ok()


def check_event_name(event: NormalizedEvent) -> CheckOutcome:
    if event.param('ev') is None and is_blank(event.event_name):
        return CheckOutcome.fail()
    return CheckOutcome.ok()


def duplicate_pageview_check(window_ms: int):
    """Build the duplicate-PageView check for a detection window."""

    def check_duplicate_pageview(event: NormalizedEvent, batch: Sequence[NormalizedEvent]) -> CheckOutcome:
        timestamp = event.timestamp_ms
        if timestamp is None:
            return CheckOutcome.ok()

        page_url = event.location
        pixel_id = event.params.get('id')

        duplicates = [
            other for other in batch
            if other.event_id != event.event_id
            and _event_name(other) == 'PageView'
            and other.location == page_url
            and other.params.get('id') == pixel_id
            and other.timestamp_ms is not None
            and abs(other.timestamp_ms - timestamp) < window_ms
        ]

        if duplicates:
            return CheckOutcome.fail(f"{len(duplicates) + 1} identical PageView events")
        return CheckOutcome.ok()

    return check_duplicate_pageview


def check_standard_event(event: NormalizedEvent) -> CheckOutcome:
    name = _event_name(event)
    if not name:
        return CheckOutcome.not_applicable()
    if name in STANDARD_EVENTS:
        return CheckOutcome.ok()
    return CheckOutcome.fail(name)


def check_multiple_pixel_ids(event: NormalizedEvent, batch: Sequence[NormalizedEvent]) -> CheckOutcome:
    if event.param('id') is None:
        return CheckOutcome.not_applicable()

    pixel_ids: List[str] = []
    for other in batch:
        other_id = other.param('id')
        if other_id is not None and str(other_id) not in pixel_ids:
            pixel_ids.append(str(other_id))

    if len(pixel_ids) > 1:
        return CheckOutcome.fail(', '.join(pixel_ids))
    return CheckOutcome.ok()


def check_fbp(event: NormalizedEvent) -> CheckOutcome:
    fbp = event.param('fbp')
    if fbp is None:
        return CheckOutcome.fail('missing')
    if not FBP_PATTERN.match(str(fbp)):
        return CheckOutcome.fail('invalid format')
    return CheckOutcome.ok()


def check_fbc(event: NormalizedEvent) -> CheckOutcome:
    if 'fbclid=' not in event.location:
        return CheckOutcome.not_applicable()

    fbc = event.param('fbc')
    if fbc is None:
        return CheckOutcome.fail('fbclid present but fbc missing')
    if not FBC_PATTERN.match(str(fbc)):
        return CheckOutcome.fail('invalid format')
    return CheckOutcome.ok()


def check_purchase_value_currency(event: NormalizedEvent) -> CheckOutcome:
    problems = []
    fields = []

    value = _custom(event, 'value')
    if value is None:
        problems.append('value')
        fields.append('value')
    else:
        number = parse_number(value)
        if number is None or number <= 0:
            problems.append('value (must be > 0)')
            fields.append('value')

    currency = _custom(event, 'currency')
    if currency is None:
        problems.append('currency')
        fields.append('currency')
    elif validate_currency(currency).status == FormatStatus.ERROR:
        problems.append('currency (invalid ISO code)')
        fields.append('currency')

    if problems:
        return CheckOutcome.fail(', '.join(problems), fields=fields)
    return CheckOutcome.ok()


def check_content_ids_present(event: NormalizedEvent) -> CheckOutcome:
    if _custom(event, 'content_ids') is None and _custom(event, 'contents') is None:
        return CheckOutcome.fail('neither content_ids nor contents found')
    return CheckOutcome.ok()


def check_advanced_matching(event: NormalizedEvent) -> CheckOutcome:
    params = event.params
    if any(not is_blank(params.get(name)) for name in ADVANCED_MATCHING_PARAMS):
        return CheckOutcome.ok()

    user_data = params.get('ud')
    if isinstance(user_data, dict) and any(not is_blank(user_data.get(name)) for name in ADVANCED_MATCHING_PARAMS):
        return CheckOutcome.ok()

    return CheckOutcome.fail('no advanced matching params found')


def check_consent(event: NormalizedEvent) -> CheckOutcome:
    present = {name: event.params[name] for name in CONSENT_PARAMS if name in event.params}
    if not present:
        return CheckOutcome.not_applicable()

    invalid = [
        name for name in ('coo', 'npa', 'gdpr')
        if name in present and str(present[name]).lower() not in BOOLEAN_FLAGS
    ]
    if str(present.get('gdpr', '')) == '1' and is_blank(present.get('gdpr_consent')):
        invalid.append('gdpr_consent')

    if invalid:
        return CheckOutcome.fail(', '.join(invalid), fields=invalid)
    return CheckOutcome.ok()


def check_request_method(event: NormalizedEvent) -> CheckOutcome:
    method = (event.method or 'GET').upper()
    if method in ('GET', 'POST'):
        return CheckOutcome.ok(method)
    return CheckOutcome.fail(method)


def check_num_items(event: NormalizedEvent) -> CheckOutcome:
    num_items = _custom(event, 'num_items')
    if num_items is None:
        return CheckOutcome.fail('missing')
    number = parse_number(num_items)
    if number is None or not number.is_integer():
        return CheckOutcome.fail('not an integer')
    return CheckOutcome.ok()


def check_search_string(event: NormalizedEvent) -> CheckOutcome:
    if _custom(event, 'search_string') is None:
        return CheckOutcome.fail('missing')
    return CheckOutcome.ok()


def check_subscription_value(event: NormalizedEvent) -> CheckOutcome:
    for name in ('value', 'predicted_ltv'):
        if parse_number(_custom(event, name)) is not None:
            return CheckOutcome.ok()
    return CheckOutcome.fail()


def check_content_type(event: NormalizedEvent) -> CheckOutcome:
    if _custom(event, 'content_ids') is None and _custom(event, 'contents') is None:
        return CheckOutcome.not_applicable()

    content_type = _custom(event, 'content_type')
    if content_type is None:
        return CheckOutcome.fail('content_type missing')
    if content_type not in CONTENT_TYPES:
        return CheckOutcome.fail(f'invalid value: {content_type}')
    return CheckOutcome.ok()


def check_event_id(event: NormalizedEvent) -> CheckOutcome:
    for name in ('eid', 'eventID', 'event_id'):
        if event.param(name) is not None:
            return CheckOutcome.ok()
    return CheckOutcome.fail()


def check_value_type(event: NormalizedEvent) -> CheckOutcome:
    value = _custom(event, 'value')
    if value is None:
        return CheckOutcome.not_applicable()
    if parse_number(value) is None:
        return CheckOutcome.fail(str(value))
    return CheckOutcome.ok()


def currency_type_check(known_codes: Optional[Iterable[str]] = None):
    """Build the ISO 4217 currency check against an optional list of known codes."""
    codes = tuple(known_codes) if known_codes is not None else None

    def check_currency_type(event: NormalizedEvent) -> CheckOutcome:
        currency = _custom(event, 'currency')
        if currency is None:
            return CheckOutcome.not_applicable()

        result = validate_currency(currency, codes)
        if result.status == FormatStatus.ERROR:
            return CheckOutcome.fail(str(currency))
        return CheckOutcome.ok(result.message)

    return check_currency_type


def check_content_ids_format(event: NormalizedEvent) -> CheckOutcome:
    content_ids = _custom(event, 'content_ids')
    if content_ids is None:
        return CheckOutcome.not_applicable()

    _, detail = parse_id_list(content_ids)
    if detail:
        return CheckOutcome.fail(detail)
    return CheckOutcome.ok()


def check_contents_format(event: NormalizedEvent) -> CheckOutcome:
    contents = _custom(event, 'contents')
    if contents is None:
        return CheckOutcome.not_applicable()

    _, detail = parse_object_list(contents, ('id', 'quantity'))
    if detail:
        return CheckOutcome.fail(detail)
    return CheckOutcome.ok()


def check_currency_case(event: NormalizedEvent) -> CheckOutcome:
    currency = _custom(event, 'currency')
    if currency is None:
        return CheckOutcome.not_applicable()

    result = validate_currency(currency)
    if result.status == FormatStatus.WARNING:
        return CheckOutcome.fail(str(currency), suggestion=result.suggestion)
    return CheckOutcome.ok()


def check_negative_value(event: NormalizedEvent) -> CheckOutcome:
    number = parse_number(_custom(event, 'value'))
    if number is None:
        return CheckOutcome.not_applicable()
    if number < 0:
        return CheckOutcome.fail(str(_custom(event, 'value')))
    return CheckOutcome.ok()


PIXEL_DOCS = 'https://developers.facebook.com/docs/meta-pixel/reference'
OBJECT_PROPERTIES_DOCS = PIXEL_DOCS + '#object-properties'


def build_meta_rules(duplicate_window_ms: int = 500,
                     known_currencies: Optional[Iterable[str]] = None) -> List[RuleDefinition]:
    """Build the Meta pixel rule set.

    Args:
        duplicate_window_ms: Window within which identical PageView events count as duplicates
        known_currencies: Currency codes considered common

    Returns:
        Rules in evaluation order
    """
    return [
        RuleDefinition(
            rule_id='FB-001',
            vendor=VENDOR,
            name='Pixel ID Presence',
            description='Checks that the `id` parameter (Pixel ID) is present and is a 15-16 digit number.',
            check_method=CheckMethod.PARAMETER_VALIDATION,
            fields=('id',),
            severity=Severity.CRITICAL,
            score_deduction=30,
            message_template='Facebook Pixel ID missing or invalid in {event_name} event.',
            recommendation='Check the Pixel base code installation and make sure the Pixel ID is configured and sent.',
            doc_url='https://www.facebook.com/business/help/952192354843755',
            issue_type=IssueType.MISSING_PARAMETER,
            check=check_pixel_id,
        ),
        RuleDefinition(
            rule_id='FB-002',
            vendor=VENDOR,
            name='Event Name Presence',
            description='Checks that the `ev` parameter (event name) is present and not empty.',
            check_method=CheckMethod.PARAMETER_VALIDATION,
            fields=('ev',),
            severity=Severity.IMPORTANT,
            score_deduction=15,
            message_template='Event name missing from Meta Pixel request on {url}.',
            recommendation="Make sure each `fbq('track', ...)` call includes a standard or custom event name.",
            doc_url=PIXEL_DOCS + '#standard-events',
            issue_type=IssueType.MISSING_PARAMETER,
            check=check_event_name,
        ),
        RuleDefinition(
            rule_id='FB-003',
            vendor=VENDOR,
            name='Duplicate PageView Event',
            description='Detects PageView events sent more than once for the same page and pixel within a short window.',
            check_method=CheckMethod.CROSS_REQUEST_VALIDATION,
            fields=('id', 'ev', 'dl'),
            applies_to=frozenset({'PageView'}),
            severity=Severity.CRITICAL,
            score_deduction=25,
            message_template='Duplicate PageView event detected on {url}.',
            recommendation='Check your tag manager or page code so the PageView tag fires only once per page load.',
            doc_url='https://www.facebook.com/business/help/952192354843755',
            issue_type=IssueType.DUPLICATE,
            check=duplicate_pageview_check(duplicate_window_ms),
        ),
        RuleDefinition(
            rule_id='FB-004',
            vendor=VENDOR,
            name='Standard Event Verification',
            description='Checks that the `ev` value is one of Meta\'s standard events.',
            check_method=CheckMethod.PARAMETER_VALIDATION,
            fields=('ev',),
            severity=Severity.OPTIMIZATION,
            score_deduction=5,
            message_template="Event '{event_name}' is not a standard Meta event.",
            recommendation='Prefer standard events to benefit from Meta optimizations, and check their spelling.',
            doc_url=PIXEL_DOCS + '#standard-events',
            check=check_standard_event,
        ),
        RuleDefinition(
            rule_id='FB-005',
            vendor=VENDOR,
            name='Multiple Different Pixel IDs',
            description='Detects requests sent to different Pixel IDs from the same site.',
            check_method=CheckMethod.CROSS_REQUEST_VALIDATION,
            fields=('id',),
            severity=Severity.IMPORTANT,
            score_deduction=15,
            message_template='Multiple Pixel IDs detected: {detail}.',
            recommendation='Confirm that multiple Pixels are intentional; otherwise remove redundant ones to avoid fragmented data.',
            doc_url='https://developers.facebook.com/docs/meta-pixel/get-started',
            issue_type=IssueType.CROSS_REQUEST_ISSUE,
            check=check_multiple_pixel_ids,
        ),
        RuleDefinition(
            rule_id='FB-006',
            vendor=VENDOR,
            name='FBP Parameter Presence',
            description='Checks that the `fbp` parameter (`_fbp` cookie) is present and well formed.',
            check_method=CheckMethod.PARAMETER_VALIDATION,
            fields=('fbp',),
            severity=Severity.OPTIMIZATION,
            score_deduction=5,
            message_template="'fbp' parameter missing or invalid in {event_name} event.",
            recommendation='Make sure the `_fbp` cookie is created and not blocked by cookie or script policies.',
            doc_url='https://developers.facebook.com/docs/meta-pixel/implementation/cookie-usage#_fbp-cookie',
            issue_type=IssueType.MISSING_PARAMETER,
            check=check_fbp,
        ),
        RuleDefinition(
            rule_id='FB-007',
            vendor=VENDOR,
            name='FBC Parameter Presence',
            description='Checks that `fbc` (`_fbc` cookie) is present when the landing URL carried `fbclid`.',
            check_method=CheckMethod.CONDITIONAL_VALIDATION,
            fields=('fbc',),
            severity=Severity.OPTIMIZATION,
            score_deduction=5,
            message_template="'fbc' parameter missing on {url} where fbclid was present.",
            recommendation='Load the Pixel early enough to capture `fbclid` and create the `_fbc` cookie.',
            doc_url='https://developers.facebook.com/docs/meta-pixel/implementation/cookie-usage#_fbc-cookie',
            issue_type=IssueType.ATTRIBUTION_BREAK,
            check=check_fbc,
        ),
        RuleDefinition(
            rule_id='FB-008',
            vendor=VENDOR,
            name='Purchase - Value/Currency (Required)',
            description='For Purchase events, checks that `value` (> 0) and a valid `currency` are present.',
            check_method=CheckMethod.CONDITIONAL_VALIDATION,
            fields=('value', 'currency'),
            applies_to=frozenset({'Purchase'}),
            severity=Severity.CRITICAL,
            score_deduction=25,
            message_template='Purchase event missing required data: {detail}.',
            recommendation='`value` and `currency` are mandatory for Purchase events; always send both with valid values.',
            doc_url=PIXEL_DOCS + '#purchase',
            issue_type=IssueType.MISSING_PARAMETER,
            check=check_purchase_value_currency,
        ),
        RuleDefinition(
            rule_id='FB-009',
            vendor=VENDOR,
            name='Ecom - Content (Dyn. Ads)',
            description='For e-commerce events, checks that `content_ids` or `contents` is present.',
            check_method=CheckMethod.CONDITIONAL_VALIDATION,
            fields=('content_ids', 'contents'),
            applies_to=ECOMMERCE_EVENTS,
            severity=Severity.IMPORTANT,
            score_deduction=15,
            message_template="Content IDs missing for '{event_name}' event.",
            recommendation='Include product IDs on key e-commerce events to enable dynamic retargeting.',
            doc_url='https://developers.facebook.com/docs/meta-pixel/implementation/commerce',
            issue_type=IssueType.MISSING_PARAMETER,
            check=check_content_ids_present,
        ),
        RuleDefinition(
            rule_id='FB-010',
            vendor=VENDOR,
            name='Advanced Matching Parameters Check',
            description='Checks that conversion events carry Advanced Matching parameters (e.g. `em`, `ph`).',
            check_method=CheckMethod.PARAMETER_VALIDATION,
            fields=ADVANCED_MATCHING_PARAMS,
            applies_to=CONVERSION_EVENTS,
            severity=Severity.IMPORTANT,
            score_deduction=10,
            message_template='No Advanced Matching parameters in {event_name} event.',
            recommendation="If you use Advanced Matching, send hashed user data (e.g. `fbq('init', 'ID', {em: '...'})`).",
            doc_url='https://developers.facebook.com/docs/meta-pixel/implementation/advanced-matching',
            check=check_advanced_matching,
        ),
        RuleDefinition(
            rule_id='FB-011',
            vendor=VENDOR,
            name='Consent Parameters Check',
            description='Checks that consent-related parameters, when sent, carry valid values.',
            check_method=CheckMethod.CONDITIONAL_VALIDATION,
            fields=('coo', 'npa', 'gdpr_consent'),
            severity=Severity.IMPORTANT,
            score_deduction=15,
            message_template='Consent parameters invalid in {event_name} event: {detail}.',
            recommendation='Check the Pixel integration with your CMP to ensure GDPR/ePrivacy compliance.',
            doc_url='https://developers.facebook.com/docs/meta-pixel/implementation/gdpr',
            issue_type=IssueType.CONSENT_VIOLATION,
            check=check_consent,
        ),
        RuleDefinition(
            rule_id='FB-012',
            vendor=VENDOR,
            name='Request Method Verification',
            description='Checks that the HTTP method is GET or POST.',
            check_method=CheckMethod.REQUEST_PROPERTY,
            fields=('method',),
            severity=Severity.OPTIMIZATION,
            score_deduction=5,
            message_template='Request uses {detail} method.',
            recommendation='Use GET, or POST for payloads too long for a URL.',
            doc_url=PIXEL_DOCS,
            check=check_request_method,
        ),
        RuleDefinition(
            rule_id='FB-013',
            vendor=VENDOR,
            name='InitiateCheckout - Num Items',
            description='For InitiateCheckout events, checks that an integer `num_items` is present.',
            check_method=CheckMethod.CONDITIONAL_VALIDATION,
            fields=('num_items',),
            applies_to=frozenset({'InitiateCheckout'}),
            severity=Severity.OPTIMIZATION,
            score_deduction=5,
            message_template="'num_items' missing or invalid for InitiateCheckout on {url}.",
            recommendation='Add `num_items` to InitiateCheckout events to record the number of items in the cart.',
            doc_url=PIXEL_DOCS + '#initiatecheckout',
            issue_type=IssueType.MISSING_PARAMETER,
            check=check_num_items,
        ),
        RuleDefinition(
            rule_id='FB-014',
            vendor=VENDOR,
            name='Search - Search String',
            description='For Search events, checks that `search_string` is present.',
            check_method=CheckMethod.CONDITIONAL_VALIDATION,
            fields=('search_string',),
            applies_to=frozenset({'Search'}),
            severity=Severity.OPTIMIZATION,
            score_deduction=5,
            message_template="'search_string' missing for Search event on {url}.",
            recommendation='Add `search_string` to Search events to record the searched term.',
            doc_url=PIXEL_DOCS + '#search',
            issue_type=IssueType.MISSING_PARAMETER,
            check=check_search_string,
        ),
        RuleDefinition(
            rule_id='FB-015',
            vendor=VENDOR,
            name='Subscribe/StartTrial - Value',
            description='For Subscribe and StartTrial events, checks that `value` or `predicted_ltv` is present.',
            check_method=CheckMethod.CONDITIONAL_VALIDATION,
            fields=('value', 'predicted_ltv'),
            applies_to=frozenset({'Subscribe', 'StartTrial'}),
            severity=Severity.OPTIMIZATION,
            score_deduction=5,
            message_template="'value' or 'predicted_ltv' missing for {event_name} event.",
            recommendation='Send `value` or `predicted_ltv` with subscription events to measure their impact.',
            doc_url=PIXEL_DOCS + '#subscribe',
            issue_type=IssueType.MISSING_PARAMETER,
            check=check_subscription_value,
        ),
        RuleDefinition(
            rule_id='FB-016',
            vendor=VENDOR,
            name='Ecom - Content Type',
            description="When `content_ids` or `contents` is sent, checks that `content_type` is 'product' or 'product_group'.",
            check_method=CheckMethod.CONDITIONAL_VALIDATION,
            fields=('content_type',),
            severity=Severity.IMPORTANT,
            score_deduction=10,
            message_template="'content_type' issue in {event_name}: {detail}.",
            recommendation="Send `content_type` ('product' or 'product_group') alongside content identifiers.",
            doc_url=OBJECT_PROPERTIES_DOCS,
            issue_type=IssueType.MALFORMED_VALUE,
            check=check_content_type,
        ),
        RuleDefinition(
            rule_id='FB-017',
            vendor=VENDOR,
            name='Event ID Presence (Deduplication)',
            description='Checks for the `eventID` parameter used to deduplicate with the Conversions API.',
            check_method=CheckMethod.PARAMETER_VALIDATION,
            fields=('eid', 'eventID'),
            applies_to=DEDUPLICATION_EVENTS,
            severity=Severity.OPTIMIZATION,
            score_deduction=5,
            message_template="'eventID' missing for {event_name} event.",
            recommendation='When the Conversions API runs alongside the Pixel, give each event a unique `eventID`.',
            doc_url='https://developers.facebook.com/docs/marketing-api/conversions-api/deduplicate-pixel-and-server-events',
            issue_type=IssueType.MISSING_PARAMETER,
            check=check_event_id,
        ),
        RuleDefinition(
            rule_id='FB-018',
            vendor=VENDOR,
            name='Value Type Validation',
            description='Checks that `value`, when present, is numeric.',
            check_method=CheckMethod.PARAMETER_VALIDATION,
            fields=('value',),
            severity=Severity.IMPORTANT,
            score_deduction=10,
            message_template="Invalid 'value' parameter: '{detail}'.",
            recommendation='Always send `value` as a number, using a period as the decimal separator.',
            doc_url=OBJECT_PROPERTIES_DOCS,
            issue_type=IssueType.MALFORMED_VALUE,
            check=check_value_type,
        ),
        RuleDefinition(
            rule_id='FB-019',
            vendor=VENDOR,
            name='Currency Type Validation',
            description='Checks that `currency`, when present, is a three-letter ISO 4217 code.',
            check_method=CheckMethod.PARAMETER_VALIDATION,
            fields=('currency',),
            severity=Severity.IMPORTANT,
            score_deduction=10,
            message_template="Invalid 'currency' parameter: '{detail}'.",
            recommendation='Use a standard ISO 4217 code (three uppercase letters) for `currency`.',
            doc_url=OBJECT_PROPERTIES_DOCS,
            issue_type=IssueType.MALFORMED_VALUE,
            check=currency_type_check(known_currencies),
        ),
        RuleDefinition(
            rule_id='FB-020',
            vendor=VENDOR,
            name='Content IDs Format Validation',
            description='Checks that `content_ids` is a JSON array of strings or numbers.',
            check_method=CheckMethod.PARAMETER_VALIDATION,
            fields=('content_ids',),
            severity=Severity.IMPORTANT,
            score_deduction=10,
            message_template="'content_ids' format issue: {detail}.",
            recommendation='Send `content_ids` as a JSON array of product IDs, e.g. ["ID1", "ID2"].',
            doc_url=OBJECT_PROPERTIES_DOCS,
            issue_type=IssueType.MALFORMED_VALUE,
            check=check_content_ids_format,
        ),
        RuleDefinition(
            rule_id='FB-021',
            vendor=VENDOR,
            name='Contents Format Validation',
            description="Checks that `contents` is a JSON array of objects with at least 'id' and 'quantity'.",
            check_method=CheckMethod.PARAMETER_VALIDATION,
            fields=('contents',),
            severity=Severity.IMPORTANT,
            score_deduction=10,
            message_template="'contents' format issue: {detail}.",
            recommendation='Send `contents` as a JSON array of objects such as [{"id": "ID1", "quantity": 1}].',
            doc_url=OBJECT_PROPERTIES_DOCS,
            issue_type=IssueType.MALFORMED_VALUE,
            check=check_contents_format,
        ),
        RuleDefinition(
            rule_id='FB-022',
            vendor=VENDOR,
            name='Currency Case',
            description='Checks that `currency` is sent in uppercase.',
            check_method=CheckMethod.PARAMETER_VALIDATION,
            fields=('currency',),
            severity=Severity.OPTIMIZATION,
            score_deduction=2,
            message_template="Currency '{detail}' should be uppercase.",
            recommendation='Send currency codes in uppercase (e.g. USD, EUR).',
            doc_url=OBJECT_PROPERTIES_DOCS,
            issue_type=IssueType.MALFORMED_VALUE,
            check=check_currency_case,
        ),
        RuleDefinition(
            rule_id='FB-023',
            vendor=VENDOR,
            name='Negative Value',
            description='Flags a negative `value`.',
            check_method=CheckMethod.PARAMETER_VALIDATION,
            fields=('value',),
            severity=Severity.OPTIMIZATION,
            score_deduction=2,
            message_template="Negative 'value' parameter: '{detail}'.",
            recommendation='Send refunds through a dedicated flow rather than negative event values.',
            doc_url=OBJECT_PROPERTIES_DOCS,
            issue_type=IssueType.MALFORMED_VALUE,
            check=check_negative_value,
        ),
    ]
