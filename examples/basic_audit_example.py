#!/usr/bin/env python3
"""
Basic audit example for Tag Insight.

This example audits a small batch of captured tracking requests and prints
the per-vendor scores and grouped issues.
"""

import json
import logging
from pathlib import Path
import sys

# Add the parent directory to Python path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from taginsight.audit import AuditEngine, EngineConfig


def load_sample_requests():
    """Load the sample capture shipped next to this script."""
    with open(Path(__file__).parent / "sample_requests.json") as f:
        return json.load(f)["requests"]


def print_report(report):
    """Print a short human-readable summary."""
    print(f"Overall score: {report.overall.score} ({report.overall.score_label})")
    print(f"Requests: {report.overall.requests_received} received, "
          f"{report.overall.requests_matched} matched, {report.overall.requests_rejected} rejected")

    for key, solution in report.solutions.items():
        print(f"\n[{key}] {solution.solution_name} - {solution.score} ({solution.score_label})")
        print(f"  events: {solution.events_audited} "
              f"(success {solution.success_count}, warning {solution.warning_count}, error {solution.error_count})")

        by_severity = solution.problem_diagnosis.by_severity
        for tier in ("critical", "important", "optimization"):
            for group in getattr(by_severity, tier):
                print(f"  {tier:<12} {group.label}")


def main():
    """Run the example audit."""
    logging.basicConfig(level=logging.INFO)

    config = EngineConfig(duplicate_window_ms=500)
    engine = AuditEngine(config)
    report = engine.audit(load_sample_requests())

    print_report(report)


if __name__ == "__main__":
    main()
