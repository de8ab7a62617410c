"""
Widget pattern rules: dialogs, tabs and menu buttons.
"""

import re
from typing import Generator, List

from markupaudit.core.rules import Rule, PatternRule, RuleMetadata, ScanContext, rule
from markupaudit.core.findings import Finding, Severity
from markupaudit.rules.accessibility.common import (
    DOMAIN, class_hint_pattern, has_accessible_name, wcag
)

CATEGORY = "patterns"

DIALOG_ROLE = re.compile(r"\brole\s*=\s*[\"'](dialog|alertdialog)[\"']")


@rule
class DialogSemanticsRule(PatternRule):
    """
    Detects modal-looking containers (by class name) without dialog
    semantics: role, aria-modal and an accessible title.
    """

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-PAT-001",
            name="Dialog semantics",
            description="Detects modal containers missing dialog role, aria-modal or title.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact=(
                "Screen readers do not announce this as a dialog. Users may not realize "
                "they are in a modal context."
            ),
            recommended_fix=(
                "Add role=\"dialog\" (or role=\"alertdialog\" for critical confirmations) "
                "and aria-modal=\"true\"."
            ),
            compliance=wcag("4.1.2"),
            auto_fixable=True,
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [class_hint_pattern("div|section", "modal|dialog|popup|overlay|lightbox")]

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        tag = match.group(0)
        line = context.line_at(match.start())
        has_role = DIALOG_ROLE.search(tag)

        if not has_role:
            yield self.create_finding(
                context.rel_path, line,
                problem="Modal/dialog container missing role=\"dialog\" or role=\"alertdialog\"",
            )
        elif not re.search(r"\baria-modal\s*=\s*[\"']true[\"']", tag):
            yield self.create_finding(
                context.rel_path, line,
                problem="Dialog has role=\"dialog\" but missing aria-modal=\"true\"",
                impact="Without aria-modal, screen readers may still interact with background content.",
                recommended_fix="Add aria-modal=\"true\" to prevent screen readers from leaving the dialog.",
                severity=Severity.MEDIUM,
            )

        if has_role and not has_accessible_name(tag):
            yield self.create_finding(
                context.rel_path, line,
                problem="Dialog missing accessible title (no aria-label or aria-labelledby)",
                impact=(
                    "Screen readers announce \"dialog\" without a title. Users cannot "
                    "identify the dialog purpose."
                ),
                recommended_fix=(
                    "Add aria-labelledby pointing to the dialog heading ID, or add "
                    "aria-label=\"Dialog title\"."
                ),
            )


@rule
class NativeDialogTitleRule(PatternRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-PAT-002",
            name="Native dialog without title",
            description="Detects <dialog> elements without aria-label or aria-labelledby.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact="Screen readers announce the dialog without context about its purpose.",
            recommended_fix="Add aria-labelledby pointing to a heading inside the dialog, or add aria-label.",
            compliance=wcag("4.1.2"),
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [re.compile(r"<dialog\s([^>]*?)>", re.IGNORECASE)]

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        if has_accessible_name(match.group(1)):
            return
        yield self.create_finding(
            context.rel_path, context.line_at(match.start()),
            problem="Native <dialog> missing accessible title",
        )


@rule
class TabPatternRule(Rule):
    """
    Detects incomplete tab widgets.

    Tabs are looked for in a window of 2000 characters after the tablist.
    """

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-PAT-003",
            name="Incomplete tab pattern",
            description="Detects tablists without tabs, tabs without selection state and tab-like UI without roles.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact=(
                "The tab pattern is incomplete. Screen readers announce a tablist but find "
                "no tabs inside it."
            ),
            recommended_fix=(
                "Add role=\"tab\" to each tab element, role=\"tabpanel\" to content panels, "
                "and aria-selected to the active tab."
            ),
            compliance=wcag("4.1.2"),
        )

    def analyze(self, context: ScanContext) -> Generator[Finding, None, None]:
        content = context.content
        for match in re.finditer(r"role\s*=\s*[\"']tablist[\"']", content, re.IGNORECASE):
            line = context.line_at(match.start())
            window = content[match.start():match.start() + 2000]
            if not re.search(r"role\s*=\s*[\"']tab[\"']", window):
                yield self.create_finding(
                    context.rel_path, line,
                    problem="role=\"tablist\" found but no child elements with role=\"tab\"",
                )
            elif not re.search(r"aria-selected\s*=", window):
                yield self.create_finding(
                    context.rel_path, line,
                    problem="Tab pattern missing aria-selected state",
                    impact="Screen readers cannot convey which tab is currently active.",
                    recommended_fix=(
                        "Add aria-selected=\"true\" to the active tab and "
                        "aria-selected=\"false\" to inactive tabs."
                    ),
                    severity=Severity.MEDIUM,
                )

        for match in class_hint_pattern("div|ul|nav", "tabs|tab-list|tablist").finditer(content):
            if re.search(r"\brole\s*=\s*[\"']tablist[\"']", match.group(0)):
                continue
            yield self.create_finding(
                context.rel_path, context.line_at(match.start()),
                problem="Tab-like UI pattern detected but missing ARIA tab roles",
                impact="Screen readers see this as a generic list instead of a navigable tab interface.",
                recommended_fix=(
                    "Add role=\"tablist\" to the container, role=\"tab\" to tabs, "
                    "role=\"tabpanel\" to panels, and manage aria-selected."
                ),
                severity=Severity.MEDIUM,
            )


@rule
class MenuButtonStateRule(PatternRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-PAT-004",
            name="Menu button without state",
            description="Detects popup menu triggers without aria-expanded.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact="Screen readers cannot convey whether the menu is currently open or closed.",
            recommended_fix="Add aria-expanded=\"false\" (or \"true\" when open) to the trigger button.",
            compliance=wcag("4.1.2"),
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [re.compile(r"<button\s[^>]*aria-controls\s*=\s*[\"'][^\"']+[\"'][^>]*>", re.IGNORECASE)]

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        tag = match.group(0)
        if re.search(r"\baria-expanded\s*=", tag) or not re.search(r"\baria-haspopup\s*=", tag):
            return
        yield self.create_finding(
            context.rel_path, context.line_at(match.start()),
            problem="Menu button with aria-haspopup missing aria-expanded state",
        )
