"""Score aggregation for events, solutions and whole audits.

Scores use a flat deduction model: a solution starts at 100 and loses each
event's total deduction, floored at 0. Deductions are not capped per rule or
per event before summing.
"""

import math
from typing import Iterable, Sequence, Tuple

from .models import EventResult, EventStatus, Issue, Severity


MAX_SCORE = 100

# Inclusive lower bounds, checked in order
SCORE_LABELS: Tuple[Tuple[int, str], ...] = (
    (90, "High"),
    (75, "Good"),
    (50, "Medium"),
    (25, "Low"),
    (0, "Critical"),
)


def event_status(issues: Iterable[Issue]) -> EventStatus:
    """Derive an event status from the severities of its issues.

    Any Critical issue makes the event an error; any other issue makes it a
    warning; no issues means success.
    """
    severities = {issue.severity for issue in issues}
    if Severity.CRITICAL in severities:
        return EventStatus.ERROR
    if severities:
        return EventStatus.WARNING
    return EventStatus.SUCCESS


def score_from_deductions(total_deductions: int) -> int:
    """Clamp a deduction total into a 0-100 score."""
    return max(0, MAX_SCORE - total_deductions)


def solution_score(event_results: Sequence[EventResult]) -> int:
    """Score one vendor's events; a vendor with no events scores 100."""
    return score_from_deductions(sum(result.score_deduction for result in event_results))


def score_label(score: int) -> str:
    """Map a score to its label."""
    for threshold, label in SCORE_LABELS:
        if score >= threshold:
            return label
    return SCORE_LABELS[-1][1]


def overall_score(solution_scores: Sequence[int]) -> int:
    """Average solution scores, rounding halves up; no solutions scores 0."""
    if not solution_scores:
        return 0
    mean = sum(solution_scores) / len(solution_scores)
    return int(math.floor(mean + 0.5))
