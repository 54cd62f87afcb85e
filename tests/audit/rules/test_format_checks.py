"""Unit tests for shared value-format validations."""

import pytest

from taginsight.audit.rules.checks.formats import (
    KNOWN_CURRENCY_CODES,
    FormatStatus,
    parse_id_list,
    parse_number,
    parse_object_list,
    validate_currency,
    validate_monetary_value,
)


class TestValidateCurrency:
    """Test currency code validation tiers."""

    def test_missing_currency(self):
        """Test a missing currency is an error."""
        result = validate_currency(None)
        assert result.status == FormatStatus.ERROR
        assert result.message == "Missing currency"
        assert not result.valid

    @pytest.mark.parametrize("value", ["US", "USDX", "US1", "€UR"])
    def test_malformed_currency(self, value):
        """Test anything other than three letters is an error."""
        assert validate_currency(value).status == FormatStatus.ERROR

    def test_lowercase_currency_is_warning_with_suggestion(self):
        """Test a lowercase code warns and suggests the uppercase form."""
        result = validate_currency("usd")

        assert result.status == FormatStatus.WARNING
        assert result.message == "Should be uppercase: USD"
        assert result.suggestion == "USD"
        assert result.valid

    def test_uncommon_code_passes_with_note(self):
        """Test well-formed but unknown codes still pass."""
        result = validate_currency("XYZ", KNOWN_CURRENCY_CODES)

        assert result.status == FormatStatus.SUCCESS
        assert result.message == "uncommon currency code"

    def test_known_code(self):
        """Test a common code passes silently."""
        result = validate_currency("EUR", KNOWN_CURRENCY_CODES)
        assert result.status == FormatStatus.SUCCESS
        assert result.message is None


class TestNumbers:
    """Test numeric parsing and monetary validation."""

    @pytest.mark.parametrize("value,expected", [
        ("10", 10.0),
        (" 49.99 ", 49.99),
        (3, 3.0),
        ("-5", -5.0),
    ])
    def test_parse_number(self, value, expected):
        """Test numbers are parsed from strings and numerics."""
        assert parse_number(value) == expected

    @pytest.mark.parametrize("value", [None, True, "abc", "nan", "inf", [1], "10,5"])
    def test_parse_number_rejects(self, value):
        """Test non-numeric and non-finite values are rejected."""
        assert parse_number(value) is None

    def test_monetary_value_tiers(self):
        """Test missing and non-numeric values error, negatives warn."""
        assert validate_monetary_value(None).status == FormatStatus.ERROR
        assert validate_monetary_value("ten").status == FormatStatus.ERROR
        assert validate_monetary_value("-1").status == FormatStatus.WARNING
        assert validate_monetary_value("0").status == FormatStatus.SUCCESS


class TestListParsing:
    """Test JSON list parsing helpers."""

    def test_id_list(self):
        """Test ID lists accept native lists and JSON strings."""
        assert parse_id_list('["A", 2]') == (["A", 2], None)
        assert parse_id_list(["A"]) == (["A"], None)

    @pytest.mark.parametrize("value,detail", [
        ("[A, B]", "not valid JSON"),
        ('{"id": 1}', "not an array"),
        ('[{"id": 1}]', "contains non-string/number elements"),
        ("[true]", "contains non-string/number elements"),
    ])
    def test_id_list_failures(self, value, detail):
        """Test each failure mode reports its detail."""
        assert parse_id_list(value) == (None, detail)

    def test_object_list(self):
        """Test object lists need the required keys on every element."""
        items, detail = parse_object_list('[{"id": "A", "quantity": 1}]')
        assert detail is None
        assert items == [{"id": "A", "quantity": 1}]

        assert parse_object_list('[{"id": "A"}]') == (None, "objects missing 'id' or 'quantity'")
        assert parse_object_list('["A"]') == (None, "objects missing 'id' or 'quantity'")
