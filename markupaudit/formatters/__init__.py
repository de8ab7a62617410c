"""
Output formatters for audit and fix results.

Provides:
- Human-readable terminal summaries (rich)
- JSON for machine processing
- Markdown for the persisted human reports
"""

from markupaudit.core.domains import AuditDomain
from markupaudit.formatters.cli import CLIFormatter
from markupaudit.formatters.json_formatter import JSONFormatter
from markupaudit.formatters.markdown import MarkdownFormatter

__all__ = [
    "CLIFormatter",
    "JSONFormatter",
    "MarkdownFormatter",
    "get_formatter",
]


def get_formatter(format_name: str, domain: AuditDomain):
    """Get a formatter by name."""
    formatters = {
        "text": CLIFormatter,
        "cli": CLIFormatter,
        "json": JSONFormatter,
        "markdown": MarkdownFormatter,
        "md": MarkdownFormatter,
    }

    formatter_class = formatters.get(format_name.lower())
    if formatter_class:
        return formatter_class(domain)

    raise ValueError(f"Unknown format: {format_name}")
