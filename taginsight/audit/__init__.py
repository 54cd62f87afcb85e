"""Audit engine package for Tag Insight.

This package provides vendor detection, rule evaluation, scoring and
reporting over batches of captured tracking requests.
"""

from .config import ConfigurationError, EngineConfig
from .engine import AuditEngine, audit_requests
from .models import CapturedRequest, NormalizedEvent
from .rules import AuditReport, ReportFormat, SolutionReport

__all__ = [
    # Pipeline
    'AuditEngine',
    'audit_requests',

    # Configuration
    'EngineConfig',
    'ConfigurationError',

    # Models
    'CapturedRequest',
    'NormalizedEvent',

    # Reports
    'AuditReport',
    'ReportFormat',
    'SolutionReport',
]
