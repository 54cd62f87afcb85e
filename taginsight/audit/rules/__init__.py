"""Tag validation rule engine.

This package provides the rule catalog, the generic event validator, scoring,
severity-bucketed issue grouping, and the report models built from them.
"""

from .models import (
    # Core models
    Severity,
    IssueType,
    CheckMethod,
    EventStatus,
    CheckOutcome,
    RuleDefinition,
    Issue,
    ParamResult,
    EventScoring,
    EventResult,
    AffectedEvent,
    IssueGroup,
)

from .catalog import (
    # Catalog
    RuleCatalog,
    CatalogError,
    build_default_catalog,
)

from .evaluator import (
    # Evaluation
    EventValidator,
    interpolate_message,
)

from .scoring import (
    # Scoring
    event_status,
    overall_score,
    score_from_deductions,
    score_label,
    solution_score,
)

from .grouping import (
    # Grouping
    IssueGrouper,
    format_group_label,
    group_key,
)

from .reporting import (
    # Reporting
    AuditReport,
    OverallSummary,
    ReportFormat,
    SolutionReport,
    build_audit_report,
    build_solution_report,
)

__all__ = [
    # Core models
    'Severity',
    'IssueType',
    'CheckMethod',
    'EventStatus',
    'CheckOutcome',
    'RuleDefinition',
    'Issue',
    'ParamResult',
    'EventScoring',
    'EventResult',
    'AffectedEvent',
    'IssueGroup',

    # Catalog
    'RuleCatalog',
    'CatalogError',
    'build_default_catalog',

    # Evaluation
    'EventValidator',
    'interpolate_message',

    # Scoring
    'event_status',
    'overall_score',
    'score_from_deductions',
    'score_label',
    'solution_score',

    # Grouping
    'IssueGrouper',
    'format_group_label',
    'group_key',

    # Reporting
    'AuditReport',
    'OverallSummary',
    'ReportFormat',
    'SolutionReport',
    'build_audit_report',
    'build_solution_report',
]
