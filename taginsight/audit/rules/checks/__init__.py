"""Vendor rule checks and reusable format validations.

This package provides the Meta pixel rule set, the table-driven
required/recommended parameter rules for other vendors, and the currency,
monetary value and list validations they share.
"""

from .formats import (
    # Format validations
    FormatCheck,
    FormatStatus,
    KNOWN_CURRENCY_CODES,
    parse_id_list,
    parse_number,
    parse_object_list,
    validate_currency,
    validate_monetary_value,
)

from .meta import (
    # Meta pixel rules
    STANDARD_EVENTS,
    build_meta_rules,
)

from .requirements import (
    # Table-driven rules
    REQUIREMENT_TABLES,
    build_requirement_rules,
    lookup_param,
    recommended_parameters_rule,
    required_parameters_rule,
)

__all__ = [
    # Format validations
    'FormatCheck',
    'FormatStatus',
    'KNOWN_CURRENCY_CODES',
    'parse_id_list',
    'parse_number',
    'parse_object_list',
    'validate_currency',
    'validate_monetary_value',

    # Meta pixel rules
    'STANDARD_EVENTS',
    'build_meta_rules',

    # Table-driven rules
    'REQUIREMENT_TABLES',
    'build_requirement_rules',
    'lookup_param',
    'recommended_parameters_rule',
    'required_parameters_rule',
]
