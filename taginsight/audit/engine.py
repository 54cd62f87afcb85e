"""End-to-end audit pipeline over a batch of captured requests.

The engine classifies each captured request by vendor, normalizes it into an
event, validates every vendor batch against the rule catalog and assembles the
scored report. It keeps no state between calls, so one engine can be reused
for any number of batches.
"""

import logging
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional

from .config.loader import ConfigurationError, EngineConfig
from .detectors.base import VendorRegistry, VendorRegistryError, default_registry
from .detectors.detector import VendorDetector
from .detectors.extraction import ParameterExtractor, extract_event_name, extract_pixel_id
from .models.capture import CapturedRequest, RequestInput, coerce_requests
from .models.events import NormalizedEvent
from .rules.catalog import RuleCatalog, build_default_catalog
from .rules.evaluator import EventValidator
from .rules.grouping import IssueGrouper
from .rules.reporting import AuditReport, SolutionReport, build_audit_report, build_solution_report


logger = logging.getLogger(__name__)


class AuditEngine:
    """Runs the detection, validation and reporting pipeline."""

    def __init__(self, config: Optional[EngineConfig] = None,
                 registry: Optional[VendorRegistry] = None,
                 catalog: Optional[RuleCatalog] = None):
        """Initialize the engine.

        Args:
            config: Engine configuration; defaults are used when omitted
            registry: Vendor registry; the built-in registry when omitted
            catalog: Rule catalog; built from ``config`` when omitted

        Raises:
            ConfigurationError: If ``enabled_vendors`` names an unknown vendor
        """
        self.config = config or EngineConfig()

        registry = registry if registry is not None else default_registry
        try:
            self.registry = registry.restrict(self.config.enabled_vendors)
        except VendorRegistryError as e:
            raise ConfigurationError(f"Invalid enabled_vendors: {e}")

        self.catalog = catalog if catalog is not None else build_default_catalog(self.config)
        self.detector = VendorDetector(self.registry)
        self.extractor = ParameterExtractor(self.registry)
        self.validator = EventValidator(self.catalog, max_issue_preview=self.config.max_issue_preview)
        self.grouper = IssueGrouper()

    def audit(self, requests: Iterable[RequestInput]) -> AuditReport:
        """Audit a batch of captured requests.

        Args:
            requests: CapturedRequest instances or raw crawler dicts

        Returns:
            AuditReport with one solution per detected vendor, in registry order
        """
        items = list(requests)
        captured, rejected = coerce_requests(items)

        batches = self._build_batches(captured)
        matched = sum(len(events) for events in batches.values())

        solutions: Dict[str, SolutionReport] = {}
        for vendor in self.registry:
            events = batches.get(vendor.key)
            if not events:
                continue
            results = self.validator.validate_batch(events)
            solutions[vendor.key] = build_solution_report(vendor, events, results, self.grouper)

        report = build_audit_report(
            solutions,
            requests_received=len(items),
            requests_matched=matched,
            requests_rejected=rejected,
        )

        logger.info(
            f"Audited {len(items)} requests: {matched} matched across "
            f"{len(solutions)} vendors, {len(captured) - matched} unmatched, {rejected} rejected; "
            f"overall score {report.overall.score} ({report.overall.score_label})"
        )
        return report

    def normalize(self, request: CapturedRequest, vendor_key: str, event_id: int) -> NormalizedEvent:
        """Turn a detected request into a normalized event."""
        vendor = self.registry.get(vendor_key)
        params = self.extractor.extract(request.url, request.post_body, vendor_key,
                                        raw_query=request.query_string)

        return NormalizedEvent(
            event_id=event_id,
            vendor=vendor_key,
            event_name=extract_event_name(params, vendor),
            timestamp=request.timestamp,
            url=request.url,
            page_url=request.page_url,
            method=request.method,
            params=params,
            pixel_id=extract_pixel_id(params, request.url, vendor),
            request=request,
        )

    def _build_batches(self, captured: List[CapturedRequest]) -> "OrderedDict[str, List[NormalizedEvent]]":
        """Group detected requests into per-vendor batches with 1-based event IDs."""
        batches: "OrderedDict[str, List[NormalizedEvent]]" = OrderedDict()

        for request in captured:
            vendor_key = self.detector.detect_request(request)
            if vendor_key is None:
                continue

            batch = batches.setdefault(vendor_key, [])
            batch.append(self.normalize(request, vendor_key, event_id=len(batch) + 1))

        return batches


def audit_requests(requests: Iterable[RequestInput],
                   config: Optional[EngineConfig] = None) -> AuditReport:
    """Audit a batch of captured requests with a fresh engine."""
    return AuditEngine(config).audit(requests)
