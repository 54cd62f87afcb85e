"""Event validation: runs a vendor's rule catalog against normalized events.

Every rule is evaluated through one generic loop. Rule-specific behavior lives
in the rule's check function; this module only handles applicability,
not-applicable outcomes, failing checks, issue construction and the
per-parameter breakdown.
"""

import logging
from typing import Dict, List, Optional, Sequence

from ..models.events import NormalizedEvent
from .catalog import RuleCatalog
from .models import (
    CheckOutcome,
    EventResult,
    EventScoring,
    EventStatus,
    Issue,
    ParamResult,
    RuleDefinition,
    Severity,
)
from .scoring import event_status


logger = logging.getLogger(__name__)


DEFAULT_MAX_ISSUE_PREVIEW = 3


def interpolate_message(template: str, event: NormalizedEvent, detail: Optional[str] = None,
                        field: str = "") -> str:
    """Fill a rule's message template with event data.

    Supported placeholders: {event_name}, {url}, {detail}, {pixel_id}, {field}.
    """
    event_name = event.params.get("ev") or event.event_name or "Unknown"
    replacements = {
        "{event_name}": str(event_name),
        "{url}": event.location or "Unknown",
        "{detail}": detail or "",
        "{pixel_id}": event.pixel_id or str(event.params.get("id") or "Unknown"),
        "{field}": field,
    }

    message = template
    for placeholder, value in replacements.items():
        message = message.replace(placeholder, value)
    return message


class EventValidator:
    """Validates normalized events against a rule catalog."""

    def __init__(self, catalog: RuleCatalog, max_issue_preview: int = DEFAULT_MAX_ISSUE_PREVIEW):
        self.catalog = catalog
        self.max_issue_preview = max_issue_preview

    def validate(self, event: NormalizedEvent, batch: Sequence[NormalizedEvent]) -> EventResult:
        """Validate one event.

        Args:
            event: Event to validate
            batch: Every event of the same vendor batch, for cross-request rules

        Returns:
            EventResult with issues, status, scoring and parameter breakdown
        """
        issues: List[Issue] = []
        total_deduction = 0

        for rule in self.catalog.rules_for(event.vendor):
            if not rule.applies_to_event(event.event_name):
                continue

            outcome = self._run_check(rule, event, batch)
            if outcome is None or not outcome.failed:
                continue

            issues.extend(self._build_issues(rule, event, outcome))
            total_deduction += rule.score_deduction

        parameters = self._build_parameters(event, issues)

        scoring = EventScoring(
            success_count=sum(1 for p in parameters if p.status == EventStatus.SUCCESS),
            warning_count=sum(1 for i in issues if i.severity != Severity.CRITICAL),
            error_count=sum(1 for i in issues if i.severity == Severity.CRITICAL),
        )

        return EventResult(
            event_id=event.event_id,
            event_name=event.event_name,
            status=event_status(issues),
            timestamp=event.timestamp,
            url=event.location,
            scoring=scoring,
            score_deduction=total_deduction,
            issue_preview=[issue.preview() for issue in issues[:self.max_issue_preview]],
            issues=issues,
            parameters=parameters,
        )

    def validate_batch(self, batch: Sequence[NormalizedEvent]) -> List[EventResult]:
        """Validate every event of a vendor batch in order."""
        return [self.validate(event, batch) for event in batch]

    def _run_check(self, rule: RuleDefinition, event: NormalizedEvent,
                   batch: Sequence[NormalizedEvent]) -> Optional[CheckOutcome]:
        """Run a rule's check; a check that raises is treated as not applicable."""
        try:
            if rule.is_cross_event:
                outcome = rule.check(event, batch)
            else:
                outcome = rule.check(event)
        except Exception as e:
            logger.warning(f"Rule {rule.rule_id} failed on event {event.event_id} ({event.event_name}): {e}")
            return None

        if not isinstance(outcome, CheckOutcome):
            logger.warning(f"Rule {rule.rule_id} returned {type(outcome).__name__}; treating as not applicable")
            return None

        return outcome

    def _build_issues(self, rule: RuleDefinition, event: NormalizedEvent,
                      outcome: CheckOutcome) -> List[Issue]:
        """One issue per failing field, or one issue for the rule's declared fields.

        Only the first issue carries the rule's deduction, so issue deductions
        always sum to the event's deduction.
        """
        field_groups = list(outcome.fields) if outcome.fields else [", ".join(rule.fields)]

        return [
            Issue(
                rule_id=rule.rule_id,
                rule_name=rule.name,
                type=rule.issue_type,
                severity=rule.severity,
                field=field,
                message=interpolate_message(rule.message_template, event, outcome.detail, field),
                description=rule.description,
                recommendation=rule.recommendation,
                doc_url=rule.doc_url,
                score_deduction=rule.score_deduction if index == 0 else 0,
                suggestion=outcome.suggestion,
            )
            for index, field in enumerate(field_groups)
        ]

    def _build_parameters(self, event: NormalizedEvent, issues: Sequence[Issue]) -> List[ParamResult]:
        """Walk the event's parameters, marking those referenced by issues."""
        worst: Dict[str, Issue] = {}
        for issue in issues:
            for name in issue.field_names:
                current = worst.get(name)
                if current is None or issue.severity.priority < current.severity.priority:
                    worst[name] = issue

        parameters: List[ParamResult] = []
        for name, value in event.params.items():
            parameters.append(self._param_result(name, value, worst.get(name)))

        # Referenced fields the event never sent
        for name, issue in worst.items():
            if name not in event.params:
                parameters.append(self._param_result(name, None, issue))

        return parameters

    @staticmethod
    def _param_result(name: str, value, issue: Optional[Issue]) -> ParamResult:
        if issue is None:
            return ParamResult(name=name, value=value, status=EventStatus.SUCCESS)
        status = EventStatus.ERROR if issue.severity == Severity.CRITICAL else EventStatus.WARNING
        return ParamResult(name=name, value=value, status=status, message=issue.message)
