"""
Frontend Accessibility and SEO Auditor

Static auditing of web projects (Next.js, React, Angular and plain HTML) for
WCAG and SEO defects, with conservative, reversible automatic fixes.
"""

__version__ = "1.0.0"
__author__ = "markupaudit Team"

from markupaudit.core.engine import AuditEngine
from markupaudit.core.findings import Finding, Severity, Report
from markupaudit.config import AuditConfig

__all__ = [
    "AuditEngine",
    "Finding",
    "Severity",
    "Report",
    "AuditConfig",
]
