"""
Semantic structure rules.

Detects generic elements used as controls, broken heading outlines and
missing landmark regions.
"""

import re
from typing import Generator, List

from markupaudit.core.rules import (
    Rule, PatternRule, RuleMetadata, ScanContext, rule
)
from markupaudit.core.findings import Finding, Severity
from markupaudit.rules.accessibility.common import (
    DOMAIN, KEY_HANDLER, TABINDEX, wcag
)

CATEGORY = "semantics"

CONTROL_ROLE = re.compile(r"\brole\s*=\s*[\"'](button|link|menuitem|tab|switch)[\"']")


@rule
class ClickableGenericElementRule(PatternRule):
    """
    Detects <div>/<span> elements with an onClick handler.

    Without a role they are reported as needing conversion to a button;
    with a role they still need a tabindex and a keyboard handler.
    """

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-SEM-001",
            name="Clickable generic element",
            description="Detects <div> and <span> elements used as interactive controls.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.CRITICAL,
            impact=(
                "Screen readers announce this as generic text, not a clickable element. "
                "Keyboard users cannot activate it without explicit tabindex and key handlers."
            ),
            recommended_fix="Replace the element with <button type=\"button\">.",
            compliance=wcag("4.1.2"),
            auto_fixable=True,
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [re.compile(r"<(div|span)\s([^>]*?)onClick", re.IGNORECASE)]

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        tag_name = match.group(1)
        end = context.content.find(">", match.start())
        tag = context.content[match.start():end + 1 if end != -1 else len(context.content)]
        line = context.line_at(match.start())
        has_role = bool(CONTROL_ROLE.search(tag))

        if not has_role:
            yield self.create_finding(
                context.rel_path, line,
                problem=f"<{tag_name}> with onClick handler used as interactive control without semantic role",
                recommended_fix=(
                    f"Replace <{tag_name} onClick> with <button type=\"button\" onClick>. "
                    "If it navigates, use <a href>. Preserve className and handlers."
                ),
            )
        elif not TABINDEX.search(tag):
            yield self.create_finding(
                context.rel_path, line,
                problem=f"<{tag_name}> with role but missing tabindex for keyboard accessibility",
                impact="Element has a role but is not reachable via keyboard Tab navigation.",
                recommended_fix="Add tabindex=\"0\" to make the element keyboard-focusable.",
                severity=Severity.HIGH,
                compliance=wcag("2.1.1"),
            )

        if has_role and not KEY_HANDLER.search(tag):
            yield self.create_finding(
                context.rel_path, line,
                problem=f"<{tag_name}> with role and onClick but no keyboard event handler",
                impact=(
                    "Keyboard users cannot activate this control. onClick alone does not "
                    "fire on Enter/Space for non-button elements."
                ),
                recommended_fix="Add an onKeyDown handler that triggers on Enter and Space, or replace with <button>.",
                severity=Severity.HIGH,
                auto_fix=False,
                compliance=wcag("2.1.1"),
            )


@rule
class HeadingOutlineRule(Rule):
    """Detects multiple <h1> elements on a page and skipped heading levels."""

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-SEM-002",
            name="Heading outline",
            description="Detects multiple H1 headings and skipped heading levels.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact=(
                "Screen reader users navigate by heading level. Skipped levels break "
                "the document outline and cause confusion."
            ),
            recommended_fix="Use a single <h1> and nest headings without skipping levels.",
            compliance=wcag("1.3.1"),
        )

    def analyze(self, context: ScanContext) -> Generator[Finding, None, None]:
        h1_count = len(re.findall(r"<h1[\s>]", context.content, re.IGNORECASE))
        if h1_count > 1 and context.is_page:
            yield self.create_finding(
                context.rel_path, context.find_line("<h1"),
                problem=f"Multiple <h1> tags found ({h1_count}) — only one H1 per page recommended",
                impact=(
                    "Screen reader users rely on a single H1 to identify the main topic. "
                    "Multiple H1s reduce navigability."
                ),
                recommended_fix="Keep one <h1> for the main page heading. Demote others to <h2> or lower.",
            )

        headings = [
            (int(m.group(1)), context.line_at(m.start()))
            for m in re.finditer(r"<h([1-6])[\s>]", context.content, re.IGNORECASE)
        ]
        for (previous, _), (level, line) in zip(headings, headings[1:]):
            if level > previous + 1:
                yield self.create_finding(
                    context.rel_path, line,
                    problem=f"Skipped heading level: H{previous} → H{level} (expected H{previous + 1})",
                    recommended_fix=f"Change <h{level}> to <h{previous + 1}> or add intermediate headings.",
                )


@rule
class LandmarkRule(Rule):
    """Detects page files without <main> or <nav> landmarks."""

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-SEM-003",
            name="Missing landmarks",
            description="Detects pages without main and navigation landmark regions.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact=(
                "Screen reader users cannot quickly skip to the main content area. "
                "Landmark navigation is a primary orientation method."
            ),
            recommended_fix="Wrap the primary content in a <main> element.",
            compliance=wcag("1.3.1"),
        )

    def analyze(self, context: ScanContext) -> Generator[Finding, None, None]:
        if not context.is_page:
            return
        content = context.content
        if not (re.search(r"<main[\s>]", content, re.IGNORECASE)
                or re.search(r"role\s*=\s*[\"']main[\"']", content)):
            yield self.create_finding(context.rel_path, 1, problem="Missing <main> landmark region")

        has_nav = re.search(r"<nav[\s>]", content, re.IGNORECASE) or re.search(
            r"role\s*=\s*[\"']navigation[\"']", content
        )
        link_count = len(re.findall(r"<a\s", content, re.IGNORECASE))
        if not has_nav and link_count >= 3:
            yield self.create_finding(
                context.rel_path, 1,
                problem="Navigation links present but no <nav> landmark",
                impact="Screen reader users cannot quickly identify and jump to navigation sections.",
                recommended_fix="Wrap navigation link groups in a <nav> element with an aria-label.",
                severity=Severity.LOW,
            )


@rule
class AnchorWithoutHrefRule(PatternRule):
    """Detects <a> elements with onClick but no href."""

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-SEM-004",
            name="Anchor used as button",
            description="Detects anchors that act as buttons because they have no href.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact=(
                "Links without href have no semantic meaning. Screen readers may ignore "
                "them or announce them incorrectly."
            ),
            recommended_fix=(
                "Replace <a onClick> with <button type=\"button\" onClick> if it performs "
                "an action, or add an href if it navigates."
            ),
            compliance=wcag("4.1.2"),
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [re.compile(r"<a\s(?![^>]*href\s*=)([^>]*?)onClick", re.IGNORECASE)]

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        yield self.create_finding(
            context.rel_path, context.line_at(match.start()),
            problem="<a> tag with onClick but no href — should be a <button>",
        )
