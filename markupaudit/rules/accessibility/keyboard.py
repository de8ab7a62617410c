"""
Keyboard operability rules for markup and stylesheets.
"""

import re
from typing import Generator, List

from markupaudit.core.rules import (
    Rule, PatternRule, RuleMetadata, ScanContext, ProjectContext, rule
)
from markupaudit.core.findings import Finding, Severity
from markupaudit.rules.accessibility.common import DOMAIN, KEY_HANDLER, TABINDEX, wcag
from markupaudit.utils import line_at

CATEGORY = "keyboard"


@rule
class PositiveTabindexRule(PatternRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-KBD-001",
            name="Positive tabindex",
            description="Detects tabindex values greater than zero.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact=(
                "Positive tabindex values override the natural DOM order, making keyboard "
                "navigation unpredictable and confusing."
            ),
            recommended_fix=(
                "Use tabindex=\"0\" to add to normal tab order, or tabindex=\"-1\" for "
                "programmatic focus only. Reorder DOM instead."
            ),
            compliance=wcag("2.4.3"),
            auto_fixable=True,
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [re.compile(r"tabindex\s*=\s*[\"'{]?(\d+)[\"'}]?", re.IGNORECASE)]

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        value = int(match.group(1))
        if value > 0:
            yield self.create_finding(
                context.rel_path, context.line_at(match.start()),
                problem=f"tabindex=\"{value}\" — positive tabindex disrupts natural focus order",
            )


@rule
class ClickWithoutKeyboardRule(PatternRule):
    """
    Detects clickable <div>/<span> elements that keyboard users cannot
    operate: no key handler, or a key handler but no tabindex.
    """

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-KBD-002",
            name="Click handler without keyboard support",
            description="Detects mouse-only click handlers on generic elements.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact=(
                "Keyboard users cannot activate this control. Mouse-only interactions exclude "
                "keyboard and switch users."
            ),
            recommended_fix=(
                "Replace with <button> (handles keyboard automatically), or add onKeyDown "
                "for Enter/Space support."
            ),
            compliance=wcag("2.1.1"),
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [re.compile(r"<(div|span)\s([^>]*?)onClick", re.IGNORECASE)]

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        tag = context.tag_at(match.start())
        line = context.line_at(match.start())
        has_key_handler = KEY_HANDLER.search(tag)
        if not has_key_handler:
            yield self.create_finding(
                context.rel_path, line,
                problem=f"<{match.group(1)}> with onClick but no keyboard event handler",
            )
        elif not TABINDEX.search(tag):
            yield self.create_finding(
                context.rel_path, line,
                problem=f"<{match.group(1)}> has keyboard handler but no tabindex — not keyboard-focusable",
                impact=(
                    "The element handles key events but cannot receive focus via Tab, so "
                    "keyboard users cannot reach it."
                ),
                recommended_fix="Add tabindex=\"0\" to make the element focusable, or replace with <button>.",
                severity=Severity.MEDIUM,
                auto_fix=True,
            )


@rule
class MouseOnlyHandlerRule(PatternRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-KBD-003",
            name="Mouse-only handler",
            description="Detects hover and mouse-down handlers without keyboard or focus equivalents.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact="Functionality triggered by mouse events is not available to keyboard users.",
            recommended_fix="Add equivalent keyboard/focus event handlers (onKeyDown, onFocus/onBlur for hover effects).",
            compliance=wcag("2.1.1"),
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [re.compile(r"<\w+\s[^>]*(onMouseDown|onMouseOver|onMouseEnter)\s*=[^>]*>", re.IGNORECASE)]

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        if re.search(r"\b(onKeyDown|onKeyUp|onKeyPress|onFocus|onBlur)\s*=", match.group(0)):
            return
        yield self.create_finding(
            context.rel_path, context.line_at(match.start()),
            problem="Mouse-only event handler without keyboard equivalent",
        )


@rule
class FocusOutlineRule(Rule):
    """Detects stylesheets that remove the focus indicator."""

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-KBD-004",
            name="Focus outline removed",
            description="Detects :focus rules and global resets that remove the outline.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact="Keyboard users cannot see which element is focused, making navigation impossible.",
            recommended_fix="Add a visible focus indicator: box-shadow, border, or custom outline style.",
            compliance=wcag("2.4.7", "AA"),
        )

    def finalize(self, project: ProjectContext) -> Generator[Finding, None, None]:
        focus_block = re.compile(r":focus\s*\{[^}]*outline\s*:\s*(none|0)[^}]*\}", re.IGNORECASE)
        global_reset = re.compile(r"\*\s*\{[^}]*outline\s*:\s*(none|0)", re.IGNORECASE)
        replacement = re.compile(r"box-shadow|border|background|color|text-decoration")

        for rel_path, content in project.stylesheets.items():
            for match in focus_block.finditer(content):
                if replacement.search(match.group(0)):
                    continue
                yield self.create_finding(
                    rel_path, line_at(content, match.start()),
                    problem="Focus outline removed without visible replacement",
                )
            for match in global_reset.finditer(content):
                yield self.create_finding(
                    rel_path, line_at(content, match.start()),
                    problem="Global focus outline removed (outline: none on *)",
                    impact="Removes focus indicators from ALL elements, making keyboard navigation completely invisible.",
                    recommended_fix=(
                        "Remove the global outline reset. Add focus styles per component "
                        "instead, or use :focus-visible."
                    ),
                    severity=Severity.CRITICAL,
                )
