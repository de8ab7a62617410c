"""Core audit engine and data structures."""

from markupaudit.core.findings import Finding, Severity, Report, FixReport, FixOutcome, Disposition
from markupaudit.core.domains import AuditDomain, ACCESSIBILITY, SEO, get_domain
from markupaudit.core.rules import Rule, RuleRegistry
from markupaudit.core.sources import Ecosystem, detect_ecosystem
from markupaudit.core.engine import AuditEngine

__all__ = [
    "Finding",
    "Severity",
    "Report",
    "FixReport",
    "FixOutcome",
    "Disposition",
    "AuditDomain",
    "ACCESSIBILITY",
    "SEO",
    "get_domain",
    "Rule",
    "RuleRegistry",
    "Ecosystem",
    "detect_ecosystem",
    "AuditEngine",
]
