"""
Terminal output for audit and fix runs, rendered with rich.
"""

from typing import List, Optional

from rich.console import Console
from rich.table import Table

from markupaudit.core.domains import AuditDomain
from markupaudit.core.findings import Report, FixReport, Severity


SEVERITY_STYLES = {
    Severity.CRITICAL: "bold white on red",
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "blue",
}


class CLIFormatter:
    """
    Prints human-readable summaries.

    Output goes to stderr by default so stdout stays machine-readable.
    """

    def __init__(self, domain: AuditDomain, use_color: bool = True, console: Optional[Console] = None):
        self.domain = domain
        self.console = console or Console(stderr=True, no_color=not use_color, highlight=False)

    def print_audit_summary(
        self,
        report: Report,
        paths: Optional[List[str]] = None,
        errors: Optional[List[str]] = None,
    ):
        summary = report.summary
        self.console.print()
        self.console.rule(f"[bold blue]{self.domain.title} Audit Summary")

        table = Table(show_header=False, box=None)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Framework", report.framework)
        table.add_row("Total Issues", str(summary.get("totalIssues", 0)))
        for severity in Severity:
            count = summary.get("bySeverity", {}).get(severity.value, 0)
            table.add_row(f"[{SEVERITY_STYLES[severity]}]{severity.value.capitalize()}[/]", str(count))
        table.add_row("Auto-fixable", str(summary.get("autoFixable", 0)))
        self.console.print(table)

        if summary.get("totalIssues", 0) > 0:
            self.console.print()
            cat_table = Table(show_header=True, title="Issues by Category")
            cat_table.add_column("Category", style="magenta")
            cat_table.add_column("Issues", style="yellow", justify="right")
            for category in self.domain.category_names:
                count = summary.get("byCategory", {}).get(category, 0)
                cat_table.add_row(self.domain.label(category), str(count))
            self.console.print(cat_table)

        if errors:
            self.console.print()
            self.console.rule("[bold red]Errors")
            for error in errors:
                self.console.print(f"  • {error}", markup=False)

        for path in paths or []:
            self.console.print(f"Report written to [bold]{path}[/bold]")

    def print_fix_summary(self, fix_report: FixReport, path: Optional[str] = None):
        counts = fix_report.counts
        label = "Dry run" if fix_report.dry_run else "Fix run"
        self.console.print(
            f"{label} ({fix_report.selector}): "
            f"[green]{counts['fixed']} fixed[/green], "
            f"[yellow]{counts['skipped']} skipped[/yellow], "
            f"[magenta]{counts['manualReview']} need manual review[/magenta]"
        )
        if path:
            self.console.print(f"Fix report written to [bold]{path}[/bold]")
