"""
JSON output formatter for machine-readable results.
"""

import json
from typing import Any, Dict

from markupaudit.core.domains import AuditDomain
from markupaudit.core.findings import Report, FixReport


class JSONFormatter:
    """
    Formats audit and fix results as JSON for machine consumption.
    """

    def __init__(self, domain: AuditDomain, indent: int = 2):
        self.domain = domain
        self.indent = indent

    def format_fix_report(self, fix_report: FixReport) -> str:
        return fix_report.to_json(indent=self.indent)

    def format_audit_result(self, report: Report, json_path: str, md_path: str) -> str:
        """The short result printed after an audit when JSON output is requested."""
        data: Dict[str, Any] = {
            "success": True,
            "domain": self.domain.name,
            "jsonReport": json_path,
            "mdReport": md_path,
            "summary": report.summary,
        }
        return json.dumps(data, indent=self.indent)
