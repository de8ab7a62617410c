"""
Aggregation and persistence of audit reports.

The aggregator turns the concatenated findings of one run into a Report:
findings are stably sorted by (category rank, severity rank), numbered
``PREFIX-001`` ... ``PREFIX-N`` and summarized. IDs are positional, so they
are only meaningful against the report file they were written to.
"""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

from markupaudit.core.domains import AuditDomain
from markupaudit.core.findings import Finding, Report, SEVERITY_ORDER
from markupaudit.formatters.markdown import MarkdownFormatter
from markupaudit.errors import ReportError, ReportNotFoundError, ReportWriteError
from markupaudit.utils import fingerprint

logger = logging.getLogger(__name__)


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def sort_findings(domain: AuditDomain, findings: List[Finding]) -> List[Finding]:
    """Stable sort on (category rank, severity rank); ties keep scan order."""
    return sorted(
        findings,
        key=lambda f: (domain.category_rank(f.category), f.severity.rank),
    )


def assign_ids(domain: AuditDomain, findings: List[Finding]) -> List[Finding]:
    """Return copies of ``findings`` numbered in order, with fingerprints."""
    return [
        finding.with_identity(
            f"{domain.id_prefix}-{index:03d}",
            fingerprint(finding.category, finding.file, finding.problem),
        )
        for index, finding in enumerate(findings, start=1)
    ]


def summarize(domain: AuditDomain, findings: List[Finding]) -> Dict[str, Any]:
    by_severity = {severity.value: 0 for severity in SEVERITY_ORDER}
    by_category = {name: 0 for name in domain.category_names}
    for finding in findings:
        by_severity[finding.severity.value] += 1
        by_category[finding.category] = by_category.get(finding.category, 0) + 1
    return {
        "totalIssues": len(findings),
        "bySeverity": by_severity,
        "byCategory": by_category,
        "autoFixable": sum(1 for f in findings if f.auto_fix_possible),
    }


def build_report(
    domain: AuditDomain,
    findings: List[Finding],
    framework: str,
    project_root: str,
) -> Report:
    """Aggregate the findings of one run into a Report."""
    issues = assign_ids(domain, sort_findings(domain, findings))
    return Report(
        domain=domain.name,
        framework=framework,
        project_root=project_root,
        generated_at=utc_timestamp(),
        summary=summarize(domain, issues),
        issues=issues,
    )


def _write(path: str, content: str):
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
    except OSError as e:
        raise ReportWriteError(f"Could not write {path}: {e.strerror or e}") from e


def write_report(domain: AuditDomain, report: Report, project_root: str) -> Tuple[str, str]:
    """
    Write the structured and the human-readable report under ``project_root``.

    Returns:
        (json_path, markdown_path)

    Raises:
        ReportWriteError: if either file cannot be written.
    """
    json_path = os.path.join(project_root, domain.report_json)
    md_path = os.path.join(project_root, domain.report_markdown)

    _write(json_path, report.to_json(domain.impact_key))
    _write(md_path, MarkdownFormatter(domain).format_report(report))

    logger.info("Report saved to %s", json_path)
    return json_path, md_path


def write_fix_report(domain: AuditDomain, content: str, project_root: str) -> str:
    path = os.path.join(project_root, domain.fix_report)
    _write(path, content)
    logger.info("Fix report saved to %s", path)
    return path


def load_report(domain: AuditDomain, project_root: str) -> Report:
    """
    Read ``<domain>-report.json`` from ``project_root``.

    Raises:
        ReportNotFoundError: when the audit has not been run yet.
        ReportError: when the file exists but cannot be interpreted.
    """
    path = os.path.join(project_root, domain.report_json)
    if not os.path.isfile(path):
        raise ReportNotFoundError(domain.report_json, domain.name)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ReportError(f"Could not read {path}: {e}") from e
    except ValueError as e:
        raise ReportError(f"{path} is not valid JSON: {e}") from e
    return Report.from_dict(data, domain.name)
