"""Unit tests for solution and audit report builders."""

import json

import yaml

from taginsight.audit.detectors import default_registry
from taginsight.audit.rules import ReportFormat, build_audit_report, build_solution_report


PIXEL_ID = "123456789012345"


class TestSolutionReport:
    """Test per-vendor report assembly."""

    def test_zero_event_solution(self):
        """Test an empty batch scores 100 with no details."""
        report = build_solution_report(default_registry.get("meta"), [], [])

        assert report.score == 100
        assert report.score_label == "High"
        assert report.events_audited == 0
        assert report.pixel_id is None
        assert report.event_details == {}

    def test_report_contents(self, validator, make_event, clean_pageview_params):
        """Test counts, pixel ID, diagnosis and details for a mixed batch."""
        clean = make_event(event_id=1, params=clean_pageview_params)
        broken = make_event(
            event_id=2, offset_ms=5000,
            params={**clean_pageview_params, "dl": "https://shop.example.com/b", "fbp": "garbage"},
        )
        events = [clean, broken]
        results = validator.validate_batch(events)
        report = build_solution_report(default_registry.get("meta"), events, results)

        assert report.solution_name == "Facebook Pixel"
        assert report.vendor_key == "meta"
        assert report.pixel_id is None
        assert report.score == 95
        assert report.success_count == 1
        assert report.warning_count == 1
        assert report.error_count == 0
        assert [event.event_id for event in report.events] == [1, 2]
        assert list(report.event_details) == ["2"]
        assert report.problem_diagnosis.summary.total_deductions == 5
        assert [group.key for group in report.problem_diagnosis.by_severity.optimization] == ["FB-006"]

    def test_pixel_id_is_first_seen(self, validator, make_event, clean_pageview_params):
        """Test the solution pixel ID comes from the first event carrying one."""
        events = [
            make_event(event_id=1, params=clean_pageview_params),
            make_event(event_id=2, params=clean_pageview_params, offset_ms=5000, pixel_id=PIXEL_ID),
        ]
        report = build_solution_report(default_registry.get("meta"), events, validator.validate_batch(events))

        assert report.pixel_id == PIXEL_ID


class TestAuditReport:
    """Test the overall report and its serialization."""

    def test_no_solutions(self):
        """Test an audit with no vendors scores 0."""
        report = build_audit_report({}, requests_received=3, requests_matched=0, requests_rejected=1)

        assert report.overall.score == 0
        assert report.overall.score_label == "Critical"
        assert report.overall.solutions_detected == 0
        assert report.overall.requests_rejected == 1
        assert not report.has_issues
        assert not report.has_critical_issues

    def test_serialization(self, validator, make_event, clean_pageview_params):
        """Test JSON uses the bySeverity key and YAML carries the same payload."""
        events = [make_event(params={**clean_pageview_params, "id": "1"})]
        solution = build_solution_report(default_registry.get("meta"), events, validator.validate_batch(events))
        report = build_audit_report({"meta": solution}, 1, 1, 0)

        payload = json.loads(report.to_json())
        assert "bySeverity" in payload["solutions"]["meta"]["problem_diagnosis"]
        assert payload["solutions"]["meta"]["problem_diagnosis"]["bySeverity"]["critical"][0]["rule_id"] == "FB-001"
        assert report.has_critical_issues

        assert yaml.safe_load(report.render(ReportFormat.YAML)) == payload
        assert report.render(ReportFormat.JSON, pretty=True) == report.to_json(pretty=True)

    def test_json_is_deterministic(self, validator, make_event, clean_pageview_params):
        """Test identical inputs serialize to identical JSON."""
        def build():
            events = [make_event(params=clean_pageview_params), make_event(event_id=2, params={})]
            solution = build_solution_report(default_registry.get("meta"), events, validator.validate_batch(events))
            return build_audit_report({"meta": solution}, 2, 2, 0).to_json()

        assert build() == build()

    def test_overall_status_totals(self, validator, make_event, clean_pageview_params):
        """Test overall parameter and issue totals add up across solutions."""
        meta_events = [make_event(params={**clean_pageview_params, "id": "1"})]
        tiktok_events = [make_event(vendor="tiktok", event_name="CompletePayment", params={})]
        solutions = {
            "meta": build_solution_report(default_registry.get("meta"), meta_events,
                                          validator.validate_batch(meta_events)),
            "tiktok": build_solution_report(default_registry.get("tiktok"), tiktok_events,
                                            validator.validate_batch(tiktok_events)),
        }
        report = build_audit_report(solutions, 2, 2, 0)

        for name in ("success_count", "warning_count", "error_count"):
            expected = sum(getattr(s.problem_diagnosis.summary, name) for s in solutions.values())
            assert getattr(report.overall, name) == expected
        assert report.overall.error_count == 1 + 3
        assert report.overall.warning_count == solutions["tiktok"].problem_diagnosis.summary.warning_count
        assert solutions["tiktok"].problem_diagnosis.summary.warning_count == 2

    def test_overall_totals_without_solutions(self):
        """Test totals are zero when nothing was detected."""
        overall = build_audit_report({}, 1, 0, 0).overall
        assert (overall.success_count, overall.warning_count, overall.error_count) == (0, 0, 0)
