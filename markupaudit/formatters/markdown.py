"""
Markdown output formatter for the human-readable reports.
"""

from typing import List

from markupaudit.core.domains import AuditDomain
from markupaudit.core.findings import Report, FixReport, FixOutcome


FOOTER = "*Generated by markupaudit*"


class MarkdownFormatter:
    """
    Renders ``<domain>-report.md`` and ``<domain>-fix-report.md``.

    Every declared category gets a section, in rank order, even when it has
    no findings.
    """

    def __init__(self, domain: AuditDomain):
        self.domain = domain

    def format_report(self, report: Report) -> str:
        summary = report.summary
        by_severity = summary.get("bySeverity", {})
        by_category = summary.get("byCategory", {})
        lines: List[str] = []

        lines.append(f"# {self.domain.title} Audit Report")
        lines.append("")
        lines.append(f"**Generated:** {report.generated_at}")
        lines.append(f"**Framework:** {report.framework}")
        lines.append(f"**Project:** {report.project_root}")
        lines.append("")

        lines.append("## Summary")
        lines.append("")
        lines.append("| Metric | Count |")
        lines.append("|--------|-------|")
        lines.append(f"| Total Issues | {summary.get('totalIssues', report.total_issues)} |")
        for severity in ("critical", "high", "medium", "low"):
            lines.append(f"| {severity.capitalize()} | {by_severity.get(severity, 0)} |")
        lines.append(f"| Auto-fixable | {summary.get('autoFixable', report.auto_fixable_count)} |")
        lines.append("")

        lines.append("### Issues by Category")
        lines.append("")
        lines.append("| Category | Issues |")
        lines.append("|----------|--------|")
        for category in self.domain.category_names:
            lines.append(f"| {self.domain.label(category)} | {by_category.get(category, 0)} |")
        lines.append("")

        for category in self.domain.category_names:
            issues = [f for f in report.issues if f.category == category]
            lines.append(f"## {self.domain.label(category)}")
            lines.append("")
            if not issues:
                lines.append("No issues found.")
                lines.append("")
                continue
            for issue in issues:
                lines.append(f"### {issue.id} [{issue.severity.value.upper()}]")
                lines.append("")
                lines.append(f"- **File:** `{issue.file}` (line {issue.line})")
                lines.append(f"- **Problem:** {issue.problem}")
                lines.append(f"- **{self.domain.impact_label}:** {issue.impact}")
                lines.append(f"- **Recommended Fix:** {issue.recommended_fix}")
                if issue.compliance_tag:
                    lines.append(f"- **Compliance:** {issue.compliance_tag}")
                lines.append(f"- **Auto-fix Available:** {'Yes' if issue.auto_fix_possible else 'No'}")
                lines.append("")

        lines.append("---")
        lines.append("")
        lines.append(FOOTER)
        return "\n".join(lines)

    def format_fix_report(self, fix_report: FixReport) -> str:
        counts = fix_report.counts
        lines: List[str] = []

        lines.append(f"# {self.domain.title} Fix Report")
        lines.append("")
        lines.append(f"**Generated:** {fix_report.generated_at}")
        lines.append(f"**Filter:** {fix_report.selector}")
        lines.append("")

        lines.append("## Summary")
        lines.append("")
        lines.append("| Status | Count |")
        lines.append("|--------|-------|")
        lines.append(f"| Fixed | {counts['fixed']} |")
        lines.append(f"| Skipped | {counts['skipped']} |")
        lines.append(f"| Manual Review | {counts['manualReview']} |")
        lines.append("")

        self._section(lines, "Fixed Issues", fix_report.fixed, "No issues were fixed.")
        self._section(lines, "Skipped Issues", fix_report.skipped, "No issues were skipped.")
        self._section(
            lines, "Manual Review Required", fix_report.manual_review,
            "No issues require manual review.",
        )

        lines.append("---")
        lines.append("")
        lines.append(FOOTER)
        return "\n".join(lines)

    def _section(self, lines: List[str], title: str, outcomes: List[FixOutcome], empty: str):
        lines.append(f"## {title}")
        lines.append("")
        if not outcomes:
            lines.append(empty)
            lines.append("")
            return
        for outcome in outcomes:
            lines.append(f"### {outcome.id}")
            lines.append(f"- **File:** `{outcome.file}`")
            lines.append(f"- **Problem:** {outcome.problem}")
            if outcome.action is not None:
                lines.append(f"- **Action:** {outcome.action}")
            if outcome.recommendation is not None:
                lines.append(f"- **Recommendation:** {outcome.recommendation}")
            if outcome.reason is not None:
                lines.append(f"- **Reason:** {outcome.reason}")
            lines.append("")
