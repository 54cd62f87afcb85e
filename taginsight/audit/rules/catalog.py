"""Immutable per-vendor rule catalog."""

import logging
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .checks.formats import KNOWN_CURRENCY_CODES
from .checks.meta import build_meta_rules
from .checks.requirements import REQUIREMENT_TABLES, build_requirement_rules
from .models import RuleDefinition

if TYPE_CHECKING:
    from ..config.loader import EngineConfig


logger = logging.getLogger(__name__)


class CatalogError(ValueError):
    """Raised when a rule catalog is built from inconsistent rules."""
    pass


class RuleCatalog:
    """Maps vendor keys to their ordered rules.

    The catalog is built once and never mutated; it is safe to share between
    validators and across audits.
    """

    def __init__(self, rules: Iterable[RuleDefinition]):
        by_vendor: Dict[str, List[RuleDefinition]] = {}
        seen: Dict[Tuple[str, str], RuleDefinition] = {}

        for rule in rules:
            key = (rule.vendor, rule.rule_id)
            if key in seen:
                raise CatalogError(f"Duplicate rule ID '{rule.rule_id}' for vendor '{rule.vendor}'")
            seen[key] = rule
            by_vendor.setdefault(rule.vendor, []).append(rule)

        self._rules: Mapping[str, Tuple[RuleDefinition, ...]] = MappingProxyType(
            {vendor: tuple(vendor_rules) for vendor, vendor_rules in by_vendor.items()}
        )

    def rules_for(self, vendor: str) -> Tuple[RuleDefinition, ...]:
        """Rules for a vendor in evaluation order (empty for unknown vendors)."""
        return self._rules.get(vendor, ())

    def get_rule(self, vendor: str, rule_id: str) -> Optional[RuleDefinition]:
        """Look up a single rule."""
        for rule in self.rules_for(vendor):
            if rule.rule_id == rule_id:
                return rule
        return None

    @property
    def vendors(self) -> List[str]:
        return list(self._rules)

    def __iter__(self) -> Iterator[RuleDefinition]:
        for vendor_rules in self._rules.values():
            yield from vendor_rules

    def __len__(self) -> int:
        return sum(len(vendor_rules) for vendor_rules in self._rules.values())

    def __contains__(self, vendor: object) -> bool:
        return vendor in self._rules


def build_default_catalog(config: Optional["EngineConfig"] = None) -> RuleCatalog:
    """Assemble the built-in catalog.

    Args:
        config: Engine configuration (duplicate window, known currencies)

    Returns:
        Catalog covering Meta and the table-driven vendors
    """
    duplicate_window_ms = config.duplicate_window_ms if config else 500
    known_currencies = config.known_currencies if config else list(KNOWN_CURRENCY_CODES)

    rules: List[RuleDefinition] = build_meta_rules(duplicate_window_ms, known_currencies)
    for vendor in REQUIREMENT_TABLES:
        rules.extend(build_requirement_rules(vendor, known_currencies=known_currencies))

    catalog = RuleCatalog(rules)
    logger.debug(f"Built rule catalog with {len(catalog)} rules for {len(catalog.vendors)} vendors")
    return catalog
