"""Data models for the tag validation rule engine.

This module defines rule descriptors, check outcomes, issues and the
per-event and grouped results produced while validating normalized events.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


class Severity(str, Enum):
    """Rule severity tiers, from strictest to most lenient."""
    CRITICAL = "critical"
    IMPORTANT = "important"
    OPTIMIZATION = "optimization"

    @property
    def priority(self) -> int:
        """1 for Critical, 2 for Important, 3 for Optimization."""
        return _SEVERITY_PRIORITY[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()


_SEVERITY_PRIORITY = {
    Severity.CRITICAL: 1,
    Severity.IMPORTANT: 2,
    Severity.OPTIMIZATION: 3,
}


class IssueType(str, Enum):
    """Kinds of issue, used for grouping labels."""
    MISSING_PARAMETER = "missing_parameter"
    MALFORMED_VALUE = "malformed_value"
    DUPLICATE = "duplicate"
    CONSENT_VIOLATION = "consent_violation"
    ATTRIBUTION_BREAK = "attribution_break"
    RULE_VIOLATION = "rule_violation"
    CROSS_REQUEST_ISSUE = "cross_request_issue"


class CheckMethod(str, Enum):
    """How a rule inspects an event."""
    PARAMETER_VALIDATION = "parameter_validation"
    CONDITIONAL_VALIDATION = "conditional_validation"
    CROSS_REQUEST_VALIDATION = "cross_request_validation"
    REQUEST_PROPERTY = "request_property"


class EventStatus(str, Enum):
    """Overall status of a validated event or parameter."""
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class CheckOutcome(BaseModel):
    """Result of running one rule's check against one event."""

    model_config = ConfigDict(frozen=True)

    passed: bool = Field(description="Whether the check passed")
    applicable: bool = Field(default=True, description="False when the rule's precondition is not met")
    detail: Optional[str] = Field(default=None, description="Short detail interpolated into messages")
    fields: Tuple[str, ...] = Field(
        default_factory=tuple,
        description="Specific failing fields; one issue is reported per field"
    )
    suggestion: Optional[str] = Field(default=None, description="Suggested corrected value")

    @classmethod
    def ok(cls, detail: Optional[str] = None) -> "CheckOutcome":
        return cls(passed=True, detail=detail)

    @classmethod
    def fail(cls, detail: Optional[str] = None, fields: Sequence[str] = (),
             suggestion: Optional[str] = None) -> "CheckOutcome":
        return cls(passed=False, detail=detail, fields=tuple(fields), suggestion=suggestion)

    @classmethod
    def not_applicable(cls) -> "CheckOutcome":
        return cls(passed=True, applicable=False)

    @property
    def failed(self) -> bool:
        return self.applicable and not self.passed


CheckFunction = Callable[..., CheckOutcome]


@dataclass(frozen=True)
class RuleDefinition:
    """Declarative descriptor of one validation rule.

    Rules are evaluated by a single generic loop in the event validator; the
    rule-specific logic lives entirely in ``check``, a pure function taking
    the event (and the batch, for cross-request rules).
    """

    rule_id: str
    vendor: str
    name: str
    description: str
    check_method: CheckMethod
    fields: Tuple[str, ...]
    severity: Severity
    score_deduction: int
    message_template: str
    recommendation: str
    check: CheckFunction = field(compare=False)
    applies_to: Optional[FrozenSet[str]] = None
    doc_url: Optional[str] = None
    issue_type: IssueType = IssueType.RULE_VIOLATION

    def __post_init__(self):
        if not self.rule_id:
            raise ValueError("Rule ID cannot be empty")
        if self.score_deduction <= 0:
            raise ValueError(f"Rule {self.rule_id}: score deduction must be positive")
        if not callable(self.check):
            raise ValueError(f"Rule {self.rule_id}: check must be callable")

    @property
    def is_cross_event(self) -> bool:
        """Cross-request rules receive the whole batch."""
        return self.check_method == CheckMethod.CROSS_REQUEST_VALIDATION

    def applies_to_event(self, event_name: str) -> bool:
        """Check whether the rule covers an event name."""
        return self.applies_to is None or event_name in self.applies_to


class Issue(BaseModel):
    """One failed rule applied to one event."""

    model_config = ConfigDict(frozen=True)

    rule_id: Optional[str] = Field(default=None, description="ID of the rule that failed")
    rule_name: Optional[str] = Field(default=None, description="Name of the rule that failed")
    type: IssueType = Field(default=IssueType.RULE_VIOLATION, description="Issue type")
    severity: Severity = Field(description="Severity tier")
    field: str = Field(default="", description="Affected parameter name(s), comma separated")
    message: str = Field(description="Interpolated human-readable message")
    description: Optional[str] = Field(default=None, description="What the rule checks")
    recommendation: Optional[str] = Field(default=None, description="How to fix the issue")
    doc_url: Optional[str] = Field(default=None, description="Vendor documentation link")
    score_deduction: int = Field(default=0, ge=0, description="Deduction this issue adds to its event")
    suggestion: Optional[str] = Field(default=None, description="Suggested corrected value")

    @property
    def field_names(self) -> List[str]:
        """Individual parameter names referenced by the issue."""
        return [name.strip() for name in self.field.split(",") if name.strip()]

    @property
    def is_critical(self) -> bool:
        return self.severity == Severity.CRITICAL

    def preview(self, width: int = 40) -> str:
        """Short one-line form for event previews."""
        text = self.message if len(self.message) <= width else self.message[:width] + "..."
        if self.rule_id:
            return f"{self.rule_id}: {text}"
        return text


class ParamResult(BaseModel):
    """Status of one parameter within an event."""

    name: str = Field(description="Parameter name")
    value: Any = Field(default=None, description="Parameter value (None when missing)")
    status: EventStatus = Field(default=EventStatus.SUCCESS, description="Parameter status")
    message: Optional[str] = Field(default=None, description="Message of the issue referencing it")


class EventScoring(BaseModel):
    """Parameter and issue counts for one event."""

    success_count: int = Field(default=0, ge=0)
    warning_count: int = Field(default=0, ge=0)
    error_count: int = Field(default=0, ge=0)


class EventResult(BaseModel):
    """Validation result for one normalized event."""

    event_id: int = Field(description="Event ID within the vendor batch")
    event_name: str = Field(description="Event name")
    status: EventStatus = Field(description="Status derived from issue severities")
    timestamp: Optional[datetime] = Field(default=None, description="Capture timestamp")
    url: str = Field(description="Page location or request URL")
    scoring: EventScoring = Field(default_factory=EventScoring)
    score_deduction: int = Field(default=0, ge=0, description="Sum of failing rules' deductions")
    issue_preview: List[str] = Field(default_factory=list, description="Short issue strings")
    issues: List[Issue] = Field(default_factory=list)
    parameters: List[ParamResult] = Field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        return bool(self.issues)

    def issues_by_severity(self, severity: Severity) -> List[Issue]:
        return [issue for issue in self.issues if issue.severity == severity]


class AffectedEvent(BaseModel):
    """Reference from an issue group back to one event."""

    event_id: int
    event_name: str
    url: str
    timestamp: Optional[datetime] = None


class IssueGroup(BaseModel):
    """Issues of one rule (or one type/field pair) aggregated across events."""

    key: str = Field(description="Group key: rule ID, or type|field")
    rule_id: Optional[str] = None
    rule_name: Optional[str] = None
    type: IssueType = IssueType.RULE_VIOLATION
    field: str = ""
    severity: Severity
    label: str = ""
    message: str = ""
    description: Optional[str] = None
    recommendation: Optional[str] = None
    doc_url: Optional[str] = None
    score_deduction: int = 0
    suggestion: Optional[str] = None
    count: int = Field(default=0, ge=0, description="Number of distinct affected events")
    affected_events: List[AffectedEvent] = Field(default_factory=list)

    _event_ids: Set[int] = PrivateAttr(default_factory=set)

    def add_event(self, event: AffectedEvent) -> bool:
        """Add an affected event once; returns False if it was already present."""
        if event.event_id in self._event_ids:
            return False
        self._event_ids.add(event.event_id)
        self.affected_events.append(event)
        self.count += 1
        return True

    def add_fields(self, names: List[str]) -> None:
        """Extend the group's field list, keeping first-seen order."""
        current = [name.strip() for name in self.field.split(",") if name.strip()]
        for name in names:
            if name not in current:
                current.append(name)
        self.field = ", ".join(current)

    @property
    def event_names(self) -> List[str]:
        """Distinct affected event names in first-seen order."""
        names: List[str] = []
        for event in self.affected_events:
            if event.event_name not in names:
                names.append(event.event_name)
        return names


SeverityBuckets = Dict[str, List[IssueGroup]]
