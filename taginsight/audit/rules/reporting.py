"""Per-solution and whole-audit report models and builders.

Reports carry no generated timestamps or run identifiers, so auditing the same
batch twice produces byte-identical JSON.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ..detectors.base import VendorDefinition
from ..models.events import NormalizedEvent
from .grouping import IssueGrouper
from .models import EventResult, EventScoring, EventStatus, Issue, IssueGroup, ParamResult
from .scoring import overall_score, score_label, solution_score


class ReportFormat(str, Enum):
    """Supported report output formats."""
    JSON = "json"
    YAML = "yaml"


class EventSummary(BaseModel):
    """Flat per-event entry listed for every audited event."""

    event_id: int
    event_name: str
    status: EventStatus
    timestamp: Optional[datetime] = None
    url: str
    scoring: EventScoring
    issue_preview: List[str] = Field(default_factory=list)


class EventDetail(BaseModel):
    """Full breakdown of an event with at least one issue."""

    event_id: int
    event_name: str
    status: EventStatus
    timestamp: Optional[datetime] = None
    url: str
    scoring: EventScoring
    score_deduction: int = 0
    parameters: List[ParamResult] = Field(default_factory=list)
    issues: List[Issue] = Field(default_factory=list)


class DiagnosisSummary(BaseModel):
    """Totals across every event of a solution."""

    all_count: int = 0
    success_count: int = 0
    warning_count: int = 0
    error_count: int = 0
    total_deductions: int = 0


class SeverityGroups(BaseModel):
    """Issue groups bucketed by severity tier."""

    critical: List[IssueGroup] = Field(default_factory=list)
    important: List[IssueGroup] = Field(default_factory=list)
    optimization: List[IssueGroup] = Field(default_factory=list)


class ProblemDiagnosis(BaseModel):
    """Summary counts plus severity-grouped issues."""

    model_config = ConfigDict(populate_by_name=True)

    summary: DiagnosisSummary = Field(default_factory=DiagnosisSummary)
    by_severity: SeverityGroups = Field(
        default_factory=SeverityGroups,
        validation_alias=AliasChoices("by_severity", "bySeverity"),
        serialization_alias="bySeverity",
    )


class SolutionReport(BaseModel):
    """Audit result for one detected vendor."""

    solution_name: str = Field(description="Display name of the vendor")
    vendor_key: str = Field(description="Vendor identity key")
    pixel_id: Optional[str] = Field(default=None, description="First tracking ID seen in the batch")
    score: int = Field(ge=0, le=100, description="Solution score")
    score_label: str = Field(description="Label for the score band")
    events_audited: int = Field(ge=0)
    success_count: int = Field(default=0, ge=0, description="Events with status success")
    warning_count: int = Field(default=0, ge=0, description="Events with status warning")
    error_count: int = Field(default=0, ge=0, description="Events with status error")
    events: List[EventSummary] = Field(default_factory=list)
    problem_diagnosis: ProblemDiagnosis = Field(default_factory=ProblemDiagnosis)
    event_details: Dict[str, EventDetail] = Field(
        default_factory=dict,
        description="Events with at least one issue, keyed by event ID"
    )


class OverallSummary(BaseModel):
    """Cross-vendor summary of an audit."""

    score: int = Field(ge=0, le=100)
    score_label: str
    events_audited: int = 0
    success_count: int = Field(default=0, ge=0, description="Passing parameters across all solutions")
    warning_count: int = Field(default=0, ge=0, description="Non-critical issues across all solutions")
    error_count: int = Field(default=0, ge=0, description="Critical issues across all solutions")
    solutions_detected: int = 0
    requests_received: int = 0
    requests_matched: int = 0
    requests_rejected: int = 0


class AuditReport(BaseModel):
    """Complete audit report for one batch of captured requests."""

    overall: OverallSummary
    solutions: Dict[str, SolutionReport] = Field(default_factory=dict)

    @property
    def has_critical_issues(self) -> bool:
        """True if any solution reported a Critical issue."""
        return any(
            solution.problem_diagnosis.by_severity.critical
            for solution in self.solutions.values()
        )

    @property
    def has_issues(self) -> bool:
        return any(solution.event_details for solution in self.solutions.values())

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready payload."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self, pretty: bool = False) -> str:
        text = json.dumps(self.to_dict(), indent=2 if pretty else None, ensure_ascii=False)
        # Lone surrogates from undecodable payloads become \uXXXX escapes so the text stays UTF-8 encodable
        return text.encode("utf-8", "backslashreplace").decode("utf-8")

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)

    def render(self, report_format: ReportFormat = ReportFormat.JSON, pretty: bool = False) -> str:
        """Render the report in the requested format."""
        if report_format == ReportFormat.YAML:
            return self.to_yaml()
        return self.to_json(pretty=pretty)


def _first_pixel_id(events: Sequence[NormalizedEvent]) -> Optional[str]:
    for event in events:
        if event.pixel_id:
            return event.pixel_id
    return None


def build_solution_report(vendor: VendorDefinition, events: Sequence[NormalizedEvent],
                          results: Sequence[EventResult],
                          grouper: Optional[IssueGrouper] = None) -> SolutionReport:
    """Assemble the report for one vendor batch.

    Args:
        vendor: Vendor the batch belongs to
        events: Normalized events of the batch
        results: Validation results, in the same order as ``events``
        grouper: Issue grouper to use

    Returns:
        SolutionReport for the vendor
    """
    grouper = grouper or IssueGrouper()
    score = solution_score(results)

    status_counts = {status: 0 for status in EventStatus}
    summary = DiagnosisSummary()
    for result in results:
        status_counts[result.status] += 1
        summary.success_count += result.scoring.success_count
        summary.warning_count += result.scoring.warning_count
        summary.error_count += result.scoring.error_count
        summary.total_deductions += result.score_deduction
    summary.all_count = summary.success_count + summary.warning_count + summary.error_count

    grouped = grouper.group(results)

    return SolutionReport(
        solution_name=vendor.name,
        vendor_key=vendor.key,
        pixel_id=_first_pixel_id(events),
        score=score,
        score_label=score_label(score),
        events_audited=len(results),
        success_count=status_counts[EventStatus.SUCCESS],
        warning_count=status_counts[EventStatus.WARNING],
        error_count=status_counts[EventStatus.ERROR],
        events=[
            EventSummary(
                event_id=result.event_id,
                event_name=result.event_name,
                status=result.status,
                timestamp=result.timestamp,
                url=result.url,
                scoring=result.scoring,
                issue_preview=result.issue_preview,
            )
            for result in results
        ],
        problem_diagnosis=ProblemDiagnosis(
            summary=summary,
            by_severity=SeverityGroups(**grouped),
        ),
        event_details={
            str(result.event_id): EventDetail(
                event_id=result.event_id,
                event_name=result.event_name,
                status=result.status,
                timestamp=result.timestamp,
                url=result.url,
                scoring=result.scoring,
                score_deduction=result.score_deduction,
                parameters=result.parameters,
                issues=result.issues,
            )
            for result in results
            if result.has_issues
        },
    )


def build_audit_report(solutions: Dict[str, SolutionReport], requests_received: int,
                       requests_matched: int, requests_rejected: int) -> AuditReport:
    """Combine solution reports into the overall audit report."""
    score = overall_score([solution.score for solution in solutions.values()])
    summaries = [solution.problem_diagnosis.summary for solution in solutions.values()]
    return AuditReport(
        overall=OverallSummary(
            score=score,
            score_label=score_label(score),
            events_audited=sum(solution.events_audited for solution in solutions.values()),
            success_count=sum(summary.success_count for summary in summaries),
            warning_count=sum(summary.warning_count for summary in summaries),
            error_count=sum(summary.error_count for summary in summaries),
            solutions_detected=len(solutions),
            requests_received=requests_received,
            requests_matched=requests_matched,
            requests_rejected=requests_rejected,
        ),
        solutions=solutions,
    )
