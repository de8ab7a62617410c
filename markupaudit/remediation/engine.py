"""
Fix orchestrator.

Loads the persisted report of a domain, selects findings, and walks them in
report order through the policy gates (manual-only category, no automatic
remedy, dry run) before dispatching each one to its category's handler.
"""

import difflib
import logging
import os
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple, Union

from markupaudit.config import AuditConfig
from markupaudit.core.domains import AuditDomain, get_domain
from markupaudit.core.findings import Disposition, Finding, FixOutcome, FixReport
from markupaudit.core.report import load_report, utc_timestamp, write_fix_report
from markupaudit.formatters.markdown import MarkdownFormatter
from markupaudit.remediation.dispatch import (
    Dispatcher, InProcessDispatcher, SubprocessDispatcher,
)
from markupaudit.utils import read_text

logger = logging.getLogger(__name__)

NO_REMEDY = "No automatic remedy available."

Opcodes = List[Tuple[str, int, int, int, int]]


def select_findings(domain: AuditDomain, findings: Sequence[Finding], selector: str) -> List[Finding]:
    """
    Findings matched by ``selector``: ``all``, one report id such as
    ``A11Y-003``, or a category name. Matching is case-insensitive.
    """
    key = selector.strip().lower()
    if key == "all":
        return list(findings)
    if domain.id_pattern.match(key):
        return [f for f in findings if f.id and f.id.lower() == key]
    return [f for f in findings if f.category.lower() == key]


def map_line(opcodes: Opcodes, index: int) -> int:
    """Where 0-based line ``index`` of the old text ended up in the new one."""
    for tag, i1, i2, j1, j2 in opcodes:
        if i1 <= index < i2:
            if tag == "equal":
                return j1 + (index - i1)
            return j1 + min(index - i1, max(j2 - j1 - 1, 0))
    return index


class LineTracker:
    """
    Keeps report line numbers valid while earlier fixes of the same run
    insert or remove lines in a file.
    """

    def __init__(self):
        self._edits: Dict[str, List[Opcodes]] = {}

    def record(self, rel_path: str, before: str, after: str):
        matcher = difflib.SequenceMatcher(
            None, before.split("\n"), after.split("\n"), autojunk=False
        )
        self._edits.setdefault(rel_path, []).append(matcher.get_opcodes())

    def current_line(self, rel_path: str, line: int) -> int:
        index = line - 1
        for opcodes in self._edits.get(rel_path, []):
            index = map_line(opcodes, index)
        return index + 1


class FixOrchestrator:
    """
    Applies the fixes of one domain to a project.

    Findings are processed strictly one after another; a failing handler
    only skips its own finding.
    """

    def __init__(
        self,
        domain: Union[str, AuditDomain],
        project_root: str,
        config: Optional[AuditConfig] = None,
        dispatcher: Optional[Dispatcher] = None,
    ):
        self.config = config or AuditConfig()
        self.domain = get_domain(domain) if isinstance(domain, str) else domain
        self.project_root = os.path.abspath(project_root)
        self.dispatcher = dispatcher or self._create_dispatcher()
        self.report_path: Optional[str] = None

    def _create_dispatcher(self) -> Dispatcher:
        if self.config.remediation.isolated:
            return SubprocessDispatcher(self.domain.name, timeout=self.config.remediation.timeout)
        return InProcessDispatcher(self.domain.name)

    def run(self, selector: str = "all", dry_run: bool = False) -> FixReport:
        """
        Fix every finding selected from ``<domain>-report.json``.

        Args:
            selector: ``all``, a report id or a category name.
            dry_run: Report what would be applied without touching any file.

        Returns:
            The FixReport; ``<domain>-fix-report.md`` is written unless this
            is a dry run or nothing matched.

        Raises:
            ReportNotFoundError: if the audit has not been run.
            ReportWriteError: if the fix report cannot be written.
        """
        report = load_report(self.domain, self.project_root)
        targets = select_findings(self.domain, report.issues, selector)
        fix_report = FixReport(
            selector=selector,
            dry_run=dry_run,
            total_targeted=len(targets),
            generated_at=utc_timestamp(),
        )

        if not targets:
            fix_report.message = f"No issues found matching filter: {selector}"
            logger.info(fix_report.message)
            return fix_report

        logger.info("Processing %d %s finding(s)%s", len(targets), self.domain.name,
                    " (dry run)" if dry_run else "")
        tracker = LineTracker()
        for finding in targets:
            fix_report.add(self.process(finding, dry_run, tracker))

        if not dry_run:
            content = MarkdownFormatter(self.domain).format_fix_report(fix_report)
            self.report_path = write_fix_report(self.domain, content, self.project_root)
        return fix_report

    def process(self, finding: Finding, dry_run: bool, tracker: LineTracker) -> FixOutcome:
        """Decide and, when allowed, apply the fix for one finding."""
        if self.domain.is_manual_only(finding.category):
            return self._outcome(
                Disposition.MANUAL_REVIEW, finding,
                reason=self.domain.manual_reason,
                recommendation=finding.recommended_fix,
            )
        if not finding.auto_fix_possible:
            return self._outcome(Disposition.SKIPPED, finding, reason=NO_REMEDY)
        if dry_run:
            return self._outcome(
                Disposition.FIXED, finding,
                action=f"Would apply: {finding.recommended_fix}",
                dry_run=True,
            )

        before = self._read(finding.file)
        target = replace(finding, line=tracker.current_line(finding.file, finding.line))
        try:
            result = self.dispatcher.dispatch(target, self.project_root)
        except Exception as e:
            logger.warning("Fix for %s failed: %s", finding.id, e)
            return self._outcome(Disposition.SKIPPED, finding, reason=f"Fix failed: {e}")

        if not result.success:
            return self._outcome(Disposition.SKIPPED, finding, reason=result.reason or "Fix failed.")

        after = self._read(finding.file)
        if before is not None and after is not None and before != after:
            tracker.record(finding.file, before, after)
        return self._outcome(Disposition.FIXED, finding, action=result.action)

    def _read(self, rel_path: str) -> Optional[str]:
        return read_text(os.path.join(self.project_root, rel_path))

    def _outcome(self, disposition: Disposition, finding: Finding, **kwargs) -> FixOutcome:
        return FixOutcome(
            disposition=disposition,
            id=finding.id or "",
            file=finding.file,
            problem=finding.problem,
            **kwargs
        )
