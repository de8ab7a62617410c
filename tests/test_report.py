"""
Tests for report aggregation, persistence and formatting.
"""

import json
import os
import sys

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from markupaudit.core.domains import ACCESSIBILITY, SEO, get_domain
from markupaudit.core.findings import (
    Disposition, Finding, FixOutcome, FixReport, Report, Severity,
)
from markupaudit.core.report import (
    build_report, load_report, utc_timestamp, write_fix_report, write_report,
)
from markupaudit.errors import (
    ConfigError, ReportError, ReportNotFoundError, ReportWriteError,
)
from markupaudit.formatters import get_formatter
from markupaudit.formatters.json_formatter import JSONFormatter
from markupaudit.formatters.markdown import FOOTER, MarkdownFormatter


def make_finding(category="images", severity=Severity.MEDIUM, problem="Problem",
                 file="src/App.jsx", line=1, auto_fix=False):
    return Finding(
        severity=severity,
        category=category,
        file=file,
        line=line,
        problem=problem,
        impact="Users are affected",
        recommended_fix="Fix it",
        auto_fix_possible=auto_fix,
    )


@pytest.fixture
def findings():
    return [
        make_finding("keyboard", Severity.LOW, "Low keyboard"),
        make_finding("images", Severity.MEDIUM, "Medium image", auto_fix=True),
        make_finding("semantics", Severity.HIGH, "High semantics"),
        make_finding("images", Severity.CRITICAL, "Critical image", auto_fix=True),
        make_finding("semantics", Severity.HIGH, "Second high semantics"),
    ]


class TestDomains:
    """Tests for domain descriptors."""

    def test_file_names(self):
        assert ACCESSIBILITY.report_json == "a11y-report.json"
        assert ACCESSIBILITY.report_markdown == "a11y-report.md"
        assert SEO.fix_report == "seo-fix-report.md"

    def test_id_pattern_is_case_insensitive(self):
        assert ACCESSIBILITY.id_pattern.match("a11y-003")
        assert not ACCESSIBILITY.id_pattern.match("SEO-003")

    def test_unknown_domain(self):
        with pytest.raises(ConfigError):
            get_domain("perf")


class TestBuildReport:
    """Tests for the aggregator."""

    def test_sorted_by_category_then_severity(self, findings):
        report = build_report(ACCESSIBILITY, findings, "react", "/tmp/site")
        problems = [f.problem for f in report.issues]

        assert problems == [
            "High semantics",
            "Second high semantics",
            "Critical image",
            "Medium image",
            "Low keyboard",
        ]

    def test_ids_are_contiguous(self, findings):
        report = build_report(ACCESSIBILITY, findings, "react", "/tmp/site")
        assert [f.id for f in report.issues] == [
            "A11Y-001", "A11Y-002", "A11Y-003", "A11Y-004", "A11Y-005",
        ]

    def test_fingerprint_ignores_line(self):
        first = build_report(ACCESSIBILITY, [make_finding(line=3)], "react", "/")
        second = build_report(ACCESSIBILITY, [make_finding(line=40)], "react", "/")

        assert first.issues[0].fingerprint == second.issues[0].fingerprint
        assert len(first.issues[0].fingerprint) == 12

    def test_summary(self, findings):
        summary = build_report(ACCESSIBILITY, findings, "react", "/").summary

        assert summary["totalIssues"] == 5
        assert summary["bySeverity"] == {"critical": 1, "high": 2, "medium": 1, "low": 1}
        assert summary["byCategory"]["semantics"] == 2
        assert summary["byCategory"]["dynamic"] == 0
        assert list(summary["byCategory"]) == ACCESSIBILITY.category_names
        assert summary["autoFixable"] == 2

    def test_empty_report(self):
        report = build_report(SEO, [], "html", "/")

        assert report.issues == []
        assert report.summary["totalIssues"] == 0
        assert set(report.summary["byCategory"]) == set(SEO.category_names)

    def test_timestamp_format(self):
        stamp = utc_timestamp()
        assert stamp.endswith("Z")
        assert len(stamp) == len("2024-01-01T00:00:00.000Z")


class TestFinding:
    """Tests for the persisted finding form."""

    def test_from_dict_missing_fields(self):
        with pytest.raises(ReportError) as exc:
            Finding.from_dict({"id": "A11Y-001", "severity": "high"})
        assert "A11Y-001" in str(exc.value)
        assert "category" in str(exc.value)

    def test_from_dict_keeps_unknown_keys(self):
        data = make_finding().to_dict()
        data["source"] = "browser"

        finding = Finding.from_dict(data)

        assert finding.extra == {"source": "browser"}
        assert finding.to_dict()["source"] == "browser"

    def test_seo_impact_key(self):
        data = make_finding().to_dict("seoImpact")
        assert "impact" not in data
        assert Finding.from_dict(data).impact == "Users are affected"

    def test_unknown_severity(self):
        data = make_finding().to_dict()
        data["severity"] = "blocker"
        with pytest.raises(ReportError):
            Finding.from_dict(data)

    def test_severity_ordering(self):
        assert Severity.LOW < Severity.CRITICAL
        assert max(Severity.MEDIUM, Severity.HIGH) == Severity.HIGH


class TestPersistence:
    """Tests for writing and loading reports."""

    def test_write_and_load(self, tmp_path, findings):
        report = build_report(ACCESSIBILITY, findings, "react", str(tmp_path))
        json_path, md_path = write_report(ACCESSIBILITY, report, str(tmp_path))

        assert json_path == str(tmp_path / "a11y-report.json")
        assert os.path.exists(md_path)

        loaded = load_report(ACCESSIBILITY, str(tmp_path))
        assert loaded.issues == report.issues
        assert loaded.framework == "react"

    def test_seo_report_uses_seo_impact(self, tmp_path):
        report = build_report(SEO, [make_finding("title")], "html", str(tmp_path))
        json_path, _ = write_report(SEO, report, str(tmp_path))

        with open(json_path) as f:
            data = json.load(f)

        issue = data["issues"][0]
        assert issue["id"] == "SEO-001"
        assert "seoImpact" in issue
        assert data["domain"] == "seo"

    def test_missing_report(self, tmp_path):
        with pytest.raises(ReportNotFoundError) as exc:
            load_report(SEO, str(tmp_path))
        assert str(exc.value) == (
            "seo-report.json not found. Run `markupaudit audit --domain seo` first."
        )

    def test_invalid_json(self, tmp_path):
        (tmp_path / "a11y-report.json").write_text("{not json")
        with pytest.raises(ReportError):
            load_report(ACCESSIBILITY, str(tmp_path))

    def test_report_without_issues_list(self, tmp_path):
        (tmp_path / "a11y-report.json").write_text('{"issues": "none"}')
        with pytest.raises(ReportError):
            load_report(ACCESSIBILITY, str(tmp_path))

    def test_unwritable_destination(self, tmp_path):
        missing = str(tmp_path / "does-not-exist")
        report = build_report(ACCESSIBILITY, [], "html", missing)

        with pytest.raises(ReportWriteError) as exc:
            write_report(ACCESSIBILITY, report, missing)
        assert "Could not write" in str(exc.value)

    def test_write_fix_report(self, tmp_path):
        path = write_fix_report(SEO, "# SEO Fix Report", str(tmp_path))
        assert path == str(tmp_path / "seo-fix-report.md")


class TestMarkdownFormatter:
    """Tests for the human-readable reports."""

    def test_report_sections(self, findings):
        report = build_report(ACCESSIBILITY, findings, "react", "/srv/site")
        output = MarkdownFormatter(ACCESSIBILITY).format_report(report)

        assert output.startswith("# Accessibility Audit Report")
        assert "## Summary" in output
        assert "### Issues by Category" in output
        assert "| Total Issues | 5 |" in output
        assert "### A11Y-001 [HIGH]" in output
        assert "- **Impact:** Users are affected" in output
        assert output.rstrip().endswith(FOOTER)

    def test_empty_categories_are_listed(self):
        report = build_report(SEO, [make_finding("gtm")], "html", "/")
        output = MarkdownFormatter(SEO).format_report(report)

        for category in SEO.category_names:
            assert f"## {SEO.label(category)}" in output
        assert output.count("No issues found.") == len(SEO.category_names) - 1
        assert "- **SEO Impact:**" in output

    def test_fix_report(self):
        fix_report = FixReport(
            selector="all", dry_run=False, total_targeted=2, generated_at=utc_timestamp(),
        )
        fix_report.add(FixOutcome(
            Disposition.FIXED, "A11Y-001", "src/App.jsx", "Missing alt", action="Added alt",
        ))
        fix_report.add(FixOutcome(
            Disposition.MANUAL_REVIEW, "A11Y-002", "src/App.jsx", "Live region",
            recommendation="Add aria-live", reason="Dynamic content",
        ))

        output = MarkdownFormatter(ACCESSIBILITY).format_fix_report(fix_report)

        assert output.startswith("# Accessibility Fix Report")
        assert "| Fixed | 1 |" in output
        assert "- **Action:** Added alt" in output
        assert "No issues were skipped." in output
        assert "- **Recommendation:** Add aria-live" in output


class TestJSONFormatter:
    """Tests for the machine-readable output."""

    def test_fix_report_shape(self):
        fix_report = FixReport(
            selector="images", dry_run=True, total_targeted=1, generated_at=utc_timestamp(),
        )
        fix_report.add(FixOutcome(
            Disposition.FIXED, "SEO-001", "index.html", "Missing title",
            action="Would apply: Add title", dry_run=True,
        ))

        data = json.loads(JSONFormatter(SEO).format_fix_report(fix_report))

        assert data["success"] is True
        assert data["dryRun"] is True
        assert data["filter"] == "images"
        assert data["counts"] == {"fixed": 1, "skipped": 0, "manualReview": 0}
        assert data["fixed"][0]["dryRun"] is True
        assert "message" not in data

    def test_audit_result(self):
        report = build_report(SEO, [make_finding("title")], "html", "/")
        data = json.loads(
            JSONFormatter(SEO).format_audit_result(report, "/seo-report.json", "/seo-report.md")
        )

        assert data["domain"] == "seo"
        assert data["jsonReport"] == "/seo-report.json"
        assert data["summary"]["totalIssues"] == 1

    def test_get_formatter(self):
        assert isinstance(get_formatter("json", SEO), JSONFormatter)
        assert isinstance(get_formatter("MD", SEO), MarkdownFormatter)
        with pytest.raises(ValueError):
            get_formatter("xml", SEO)

    def test_report_round_trip_through_dict(self, findings):
        report = build_report(ACCESSIBILITY, findings, "react", "/")
        restored = Report.from_dict(json.loads(report.to_json()), "a11y")

        assert restored.summary == report.summary
        assert restored.summary["bySeverity"]["critical"] == 1
        assert restored.summary["bySeverity"]["high"] == 2
