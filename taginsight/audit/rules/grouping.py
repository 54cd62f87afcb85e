"""Severity-bucketed aggregation of issues across events."""

import logging
from typing import Dict, List, Sequence

from .models import AffectedEvent, EventResult, Issue, IssueGroup, IssueType, Severity, SeverityBuckets


logger = logging.getLogger(__name__)


RULE_LABEL_TEMPLATE = "{rule_id}: {rule_name} ({count} {event_word})"

LABEL_TEMPLATES: Dict[IssueType, str] = {
    IssueType.MISSING_PARAMETER: "{count} {event_word} missing {field}",
    IssueType.MALFORMED_VALUE: "{count} {event_word} with malformed {field}",
    IssueType.DUPLICATE: "{count} duplicate {event_word} detected ({event_names})",
    IssueType.CONSENT_VIOLATION: "{count} {event_word} with consent issues",
    IssueType.ATTRIBUTION_BREAK: "{count} {event_word} with broken attribution",
    IssueType.CROSS_REQUEST_ISSUE: "{count} {event_word} with cross-request issues",
    IssueType.RULE_VIOLATION: "{count} {event_word} with rule violations",
}


def group_key(issue: Issue) -> str:
    """Rule ID when present, otherwise ``type|field``."""
    if issue.rule_id:
        return issue.rule_id
    return f"{issue.type.value}|{issue.field or 'general'}"


def format_group_label(group: IssueGroup) -> str:
    """Render a group's human-readable label."""
    values = {
        "count": group.count,
        "event_word": "event" if group.count == 1 else "events",
        "field": group.field or "parameter",
        "rule_id": group.rule_id or "",
        "rule_name": group.rule_name or group.message,
        "event_names": ", ".join(group.event_names),
    }
    template = RULE_LABEL_TEMPLATE if group.rule_id else LABEL_TEMPLATES.get(group.type, LABEL_TEMPLATES[IssueType.RULE_VIOLATION])
    return template.format(**values)


class IssueGrouper:
    """Aggregates event issues into groups bucketed by severity.

    Groups are looked up by key in a per-bucket dict, keep first-seen order,
    and count each distinct event once no matter how many issues the event
    contributes to the group.
    """

    def group(self, event_results: Sequence[EventResult]) -> SeverityBuckets:
        """Group the issues of a set of event results.

        Args:
            event_results: Validated events of one solution

        Returns:
            Dict with 'critical', 'important' and 'optimization' group lists
        """
        buckets: Dict[Severity, Dict[str, IssueGroup]] = {severity: {} for severity in Severity}

        for result in event_results:
            affected = AffectedEvent(
                event_id=result.event_id,
                event_name=result.event_name,
                url=result.url,
                timestamp=result.timestamp,
            )

            for issue in result.issues:
                key = group_key(issue)
                bucket = buckets[issue.severity]
                group = bucket.get(key)
                if group is None:
                    group = IssueGroup(
                        key=key,
                        rule_id=issue.rule_id,
                        rule_name=issue.rule_name,
                        type=issue.type,
                        field=issue.field,
                        severity=issue.severity,
                        message=issue.message,
                        description=issue.description,
                        recommendation=issue.recommendation,
                        doc_url=issue.doc_url,
                        score_deduction=issue.score_deduction,
                        suggestion=issue.suggestion,
                    )
                    bucket[key] = group
                else:
                    group.add_fields(issue.field_names)

                group.add_event(affected)

        grouped: SeverityBuckets = {}
        for severity, bucket in buckets.items():
            groups: List[IssueGroup] = list(bucket.values())
            for group in groups:
                group.label = format_group_label(group)
            grouped[severity.value] = groups

        logger.debug(
            f"Grouped issues: {len(grouped['critical'])} critical, "
            f"{len(grouped['important'])} important, {len(grouped['optimization'])} optimization"
        )
        return grouped
