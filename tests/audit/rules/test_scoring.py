"""Unit tests for score aggregation."""

import pytest

from taginsight.audit.rules import (
    EventResult,
    EventStatus,
    overall_score,
    score_from_deductions,
    score_label,
    solution_score,
)


def result_with(deduction, event_id=1):
    return EventResult(
        event_id=event_id,
        event_name="PageView",
        status=EventStatus.WARNING if deduction else EventStatus.SUCCESS,
        url="https://shop.example.com/",
        score_deduction=deduction,
    )


class TestSolutionScore:
    """Test solution-level scoring."""

    def test_no_events_scores_full(self):
        """Test a vendor with no events scores 100."""
        assert solution_score([]) == 100

    def test_deductions_are_summed(self):
        """Test deductions across events add up."""
        assert solution_score([result_with(25), result_with(10, 2)]) == 65

    def test_score_is_floored_at_zero(self):
        """Test large deduction totals never go negative."""
        results = [result_with(30, n) for n in range(1, 6)]
        assert solution_score(results) == 0
        assert score_from_deductions(1000) == 0


class TestScoreLabel:
    """Test score band labels."""

    @pytest.mark.parametrize("score,label", [
        (100, "High"),
        (90, "High"),
        (89, "Good"),
        (75, "Good"),
        (74, "Medium"),
        (50, "Medium"),
        (49, "Low"),
        (25, "Low"),
        (24, "Critical"),
        (0, "Critical"),
    ])
    def test_bands(self, score, label):
        """Test band boundaries are inclusive lower bounds."""
        assert score_label(score) == label


class TestOverallScore:
    """Test the cross-vendor average."""

    def test_no_solutions_scores_zero(self):
        """Test an audit with no detected vendors scores 0."""
        assert overall_score([]) == 0

    def test_mean_rounds_half_up(self):
        """Test halves round up rather than to even."""
        assert overall_score([100, 75]) == 88
        assert overall_score([90, 91]) == 91
        assert overall_score([0, 1]) == 1

    def test_mean_rounds_down_below_half(self):
        """Test fractions below one half round down."""
        assert overall_score([100, 100, 99]) == 100
        assert overall_score([100, 99, 99]) == 99
