"""Unit tests for the Meta pixel rule set."""

import pytest

from taginsight.audit.rules import EventStatus, IssueType, Severity, build_default_catalog
from taginsight.audit.rules.checks.meta import build_meta_rules


PIXEL_ID = "123456789012345"
OTHER_PIXEL_ID = "543210987654321"


def rule_ids(result):
    return [issue.rule_id for issue in result.issues]


class TestMetaRuleSet:
    """Test the shape of the Meta rule set."""

    def test_rule_ids_in_order(self):
        """Test FB-001 through FB-023 are defined in order."""
        rules = build_meta_rules()
        assert [rule.rule_id for rule in rules] == [f"FB-{n:03d}" for n in range(1, 24)]

    def test_cross_event_rules(self):
        """Test only the duplicate and multi-pixel rules need the batch."""
        cross = [rule.rule_id for rule in build_meta_rules() if rule.is_cross_event]
        assert cross == ["FB-003", "FB-005"]


class TestCleanPageView:
    """Test a correctly implemented PageView."""

    def test_no_issues(self, validator, make_event, clean_pageview_params):
        """Test a clean PageView passes every rule."""
        event = make_event(params=clean_pageview_params)
        result = validator.validate(event, [event])

        assert result.issues == []
        assert result.status == EventStatus.SUCCESS
        assert result.score_deduction == 0
        assert result.scoring.success_count == len(clean_pageview_params)


class TestPixelAndEventRules:
    """Test identifier rules."""

    def test_missing_pixel_id(self, validator, make_event, clean_pageview_params):
        """Test a missing id is a Critical FB-001 issue."""
        params = dict(clean_pageview_params)
        del params["id"]
        event = make_event(params=params)
        result = validator.validate(event, [event])

        assert rule_ids(result) == ["FB-001"]
        assert result.issues[0].severity == Severity.CRITICAL
        assert result.issues[0].message == "Facebook Pixel ID missing or invalid in PageView event."
        assert result.status == EventStatus.ERROR
        assert result.score_deduction == 30

    def test_empty_identifiers_count_as_missing(self, validator, make_event, clean_pageview_params):
        """Test empty id and fbp values are treated as not sent."""
        event = make_event(params={**clean_pageview_params, "id": "", "fbp": ""})
        result = validator.validate(event, [event])

        assert rule_ids(result) == ["FB-001", "FB-006"]

    def test_malformed_pixel_id(self, validator, make_event, clean_pageview_params):
        """Test a short pixel ID fails FB-001."""
        event = make_event(params={**clean_pageview_params, "id": "12345"})
        assert "FB-001" in rule_ids(validator.validate(event, [event]))

    def test_custom_event_name(self, validator, make_event, clean_pageview_params):
        """Test a non-standard event is an Optimization FB-004 issue."""
        event = make_event(event_name="MyCustomEvent", params={**clean_pageview_params, "ev": "MyCustomEvent"})
        result = validator.validate(event, [event])

        assert rule_ids(result) == ["FB-004"]
        assert result.issues[0].message == "Event 'MyCustomEvent' is not a standard Meta event."
        assert result.status == EventStatus.WARNING

    def test_request_method(self, validator, make_event, clean_pageview_params):
        """Test methods other than GET and POST fail FB-012."""
        event = make_event(params=clean_pageview_params, method="PUT")
        result = validator.validate(event, [event])

        assert rule_ids(result) == ["FB-012"]
        assert result.issues[0].message == "Request uses PUT method."


class TestCrossRequestRules:
    """Test rules that compare events within a batch."""

    def test_duplicate_pageview(self, validator, make_event, clean_pageview_params):
        """Test identical PageViews inside the window are Critical duplicates."""
        first = make_event(event_id=1, params=clean_pageview_params, offset_ms=0)
        second = make_event(event_id=2, params=clean_pageview_params, offset_ms=100)
        batch = [first, second]

        for event in batch:
            result = validator.validate(event, batch)
            assert rule_ids(result) == ["FB-003"]
            issue = result.issues[0]
            assert issue.type == IssueType.DUPLICATE
            assert issue.message == "Duplicate PageView event detected on https://shop.example.com/."
            assert result.score_deduction == 25

    def test_pageviews_outside_window(self, validator, make_event, clean_pageview_params):
        """Test PageViews exactly one window apart are not duplicates."""
        first = make_event(event_id=1, params=clean_pageview_params, offset_ms=0)
        second = make_event(event_id=2, params=clean_pageview_params, offset_ms=500)

        assert validator.validate(first, [first, second]).issues == []

    def test_missing_timestamp_is_never_duplicate(self, validator, make_event, clean_pageview_params):
        """Test events without capture times are excluded from duplicate detection."""
        first = make_event(event_id=1, params=clean_pageview_params, timestamp=False)
        second = make_event(event_id=2, params=clean_pageview_params)

        assert validator.validate(first, [first, second]).issues == []
        assert validator.validate(second, [first, second]).issues == []

    def test_different_pages_are_not_duplicates(self, validator, make_event, clean_pageview_params):
        """Test PageViews for different locations are distinct."""
        first = make_event(event_id=1, params=clean_pageview_params)
        second = make_event(event_id=2, params={**clean_pageview_params, "dl": "https://shop.example.com/cart"})

        assert validator.validate(first, [first, second]).issues == []

    def test_custom_duplicate_window(self, make_event, clean_pageview_params):
        """Test the duplicate window comes from configuration."""
        from taginsight.audit.config import EngineConfig
        from taginsight.audit.rules import EventValidator

        validator = EventValidator(build_default_catalog(EngineConfig(duplicate_window_ms=2000)))
        first = make_event(event_id=1, params=clean_pageview_params, offset_ms=0)
        second = make_event(event_id=2, params=clean_pageview_params, offset_ms=1500)

        assert rule_ids(validator.validate(first, [first, second])) == ["FB-003"]

    def test_multiple_pixel_ids(self, validator, make_event, clean_pageview_params):
        """Test a batch reporting to two pixels flags FB-005."""
        first = make_event(event_id=1, params=clean_pageview_params)
        second = make_event(
            event_id=2, offset_ms=5000,
            params={**clean_pageview_params, "id": OTHER_PIXEL_ID, "dl": "https://shop.example.com/b"},
        )
        result = validator.validate(first, [first, second])

        assert rule_ids(result) == ["FB-005"]
        assert result.issues[0].message == f"Multiple Pixel IDs detected: {PIXEL_ID}, {OTHER_PIXEL_ID}."


class TestPurchaseRules:
    """Test conversion and e-commerce rules."""

    def test_purchase_missing_value_and_currency(self, validator, make_event, clean_pageview_params):
        """Test FB-008 reports one issue per missing field but deducts once."""
        event = make_event(event_name="Purchase", params={**clean_pageview_params, "ev": "Purchase"})
        result = validator.validate(event, [event])

        fb008 = [issue for issue in result.issues if issue.rule_id == "FB-008"]
        assert [issue.field for issue in fb008] == ["value", "currency"]
        assert all(issue.message == "Purchase event missing required data: value, currency." for issue in fb008)

        assert rule_ids(result) == ["FB-008", "FB-008", "FB-009", "FB-010", "FB-017"]
        assert result.score_deduction == 25 + 15 + 10 + 5
        assert result.status == EventStatus.ERROR

        missing = {param.name: param for param in result.parameters if param.value is None}
        assert missing["value"].status == EventStatus.ERROR
        assert missing["currency"].status == EventStatus.ERROR

    def test_complete_purchase(self, validator, make_event, clean_pageview_params):
        """Test a fully populated Purchase passes."""
        params = {
            **clean_pageview_params,
            "ev": "Purchase",
            "eid": "order-1",
            "em": "5f4dcc3b5aa765d61d8327deb882cf99",
            "cd": {
                "value": "49.99",
                "currency": "EUR",
                "content_ids": '["SKU-1"]',
                "content_type": "product",
            },
        }
        event = make_event(event_name="Purchase", params=params)
        assert validator.validate(event, [event]).issues == []

    def test_zero_purchase_value(self, validator, make_event, clean_pageview_params):
        """Test a zero value fails FB-008 on the value field only."""
        params = {**clean_pageview_params, "ev": "Purchase", "value": "0", "currency": "USD"}
        event = make_event(event_name="Purchase", params=params)
        fb008 = [issue for issue in validator.validate(event, [event]).issues if issue.rule_id == "FB-008"]

        assert [issue.field for issue in fb008] == ["value"]

    def test_malformed_content_ids(self, validator, make_event, clean_pageview_params):
        """Test content_ids that are not a JSON array fail FB-020."""
        params = {**clean_pageview_params, "content_ids": "SKU-1", "content_type": "product"}
        event = make_event(params=params)
        result = validator.validate(event, [event])

        assert rule_ids(result) == ["FB-020"]
        assert result.issues[0].message == "'content_ids' format issue: not valid JSON."


class TestValueFormatRules:
    """Test value and currency formatting rules."""

    def test_lowercase_currency(self, validator, make_event, clean_pageview_params):
        """Test a lowercase currency only triggers the case rule, with a suggestion."""
        event = make_event(params={**clean_pageview_params, "currency": "usd"})
        result = validator.validate(event, [event])

        assert rule_ids(result) == ["FB-022"]
        assert result.issues[0].suggestion == "USD"
        assert result.issues[0].severity == Severity.OPTIMIZATION
        assert result.score_deduction == 2

    def test_invalid_currency(self, validator, make_event, clean_pageview_params):
        """Test a two-letter currency fails FB-019."""
        event = make_event(params={**clean_pageview_params, "currency": "US"})
        result = validator.validate(event, [event])

        assert rule_ids(result) == ["FB-019"]
        assert result.issues[0].message == "Invalid 'currency' parameter: 'US'."

    def test_non_numeric_value(self, validator, make_event, clean_pageview_params):
        """Test a non-numeric value fails FB-018."""
        event = make_event(params={**clean_pageview_params, "value": "ten"})
        assert rule_ids(validator.validate(event, [event])) == ["FB-018"]

    def test_negative_value(self, validator, make_event, clean_pageview_params):
        """Test a negative value fails FB-023 only."""
        event = make_event(params={**clean_pageview_params, "value": "-5"})
        assert rule_ids(validator.validate(event, [event])) == ["FB-023"]


class TestConditionalRules:
    """Test consent and attribution rules."""

    def test_consent_issue_per_field(self, validator, make_event, clean_pageview_params):
        """Test each invalid consent field is its own issue, deducted once."""
        event = make_event(params={**clean_pageview_params, "coo": "maybe", "gdpr": "1"})
        result = validator.validate(event, [event])

        assert rule_ids(result) == ["FB-011", "FB-011"]
        assert [issue.field for issue in result.issues] == ["coo", "gdpr_consent"]
        assert result.score_deduction == 15

    def test_absent_consent_is_not_applicable(self, validator, make_event, clean_pageview_params):
        """Test events without consent parameters are not checked."""
        event = make_event(params=clean_pageview_params)
        assert "FB-011" not in rule_ids(validator.validate(event, [event]))

    def test_fbclid_without_fbc(self, validator, make_event, clean_pageview_params):
        """Test a landing URL with fbclid requires fbc."""
        params = {**clean_pageview_params, "dl": "https://shop.example.com/?fbclid=abc"}
        event = make_event(params=params)
        result = validator.validate(event, [event])

        assert rule_ids(result) == ["FB-007"]
        assert result.issues[0].type == IssueType.ATTRIBUTION_BREAK

    def test_fbclid_with_fbc(self, validator, make_event, clean_pageview_params):
        """Test a well-formed fbc satisfies FB-007."""
        params = {
            **clean_pageview_params,
            "dl": "https://shop.example.com/?fbclid=abc",
            "fbc": "fb.1.1700000000000.abc",
        }
        event = make_event(params=params)
        assert validator.validate(event, [event]).issues == []

    @pytest.mark.parametrize("event_name,missing", [
        ("InitiateCheckout", "FB-013"),
        ("Search", "FB-014"),
        ("Subscribe", "FB-015"),
    ])
    def test_event_specific_parameters(self, validator, make_event, clean_pageview_params, event_name, missing):
        """Test event-specific parameter rules fire for their events."""
        event = make_event(event_name=event_name, params={**clean_pageview_params, "ev": event_name})
        assert missing in rule_ids(validator.validate(event, [event]))
