"""
Accessible name rules for buttons, links and SVG graphics.
"""

import re
from typing import Generator, List

from markupaudit.core.rules import PatternRule, RuleMetadata, ScanContext, rule
from markupaudit.core.findings import Finding, Severity
from markupaudit.rules.accessibility.common import (
    DOMAIN, has_accessible_name, visible_text, wcag
)

CATEGORY = "accessible-names"

TITLE_ATTR = re.compile(r"\btitle\s*=\s*[\"'][^\"']+[\"']")
ICON_HINT = re.compile(r"icon|Icon|<i[\s>]|<span[^>]*class[^>]*(icon|fa-|material)", re.IGNORECASE)


@rule
class UnnamedButtonRule(PatternRule):
    """Detects buttons with no text, aria-label, aria-labelledby or title."""

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-NAM-001",
            name="Button without accessible name",
            description="Detects buttons that screen readers announce without a label.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.CRITICAL,
            impact="Screen readers cannot convey the purpose of this button to users.",
            recommended_fix="Add visible text content inside the button, or add aria-label=\"descriptive label\".",
            compliance=wcag("4.1.2"),
            auto_fixable=True,
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [
            re.compile(r"<button\s([^>]*?)>([\s\S]*?)</button>", re.IGNORECASE),
            re.compile(r"<button\s([^>]*?)/>", re.IGNORECASE),
        ]

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        attrs = match.group(1)
        line = context.line_at(match.start())
        if match.lastindex == 1:
            if has_accessible_name(attrs):
                return
            yield self.create_finding(
                context.rel_path, line,
                problem="Self-closing <button /> has no accessible name",
                impact="Screen readers announce this as an unlabeled button.",
                recommended_fix="Add aria-label=\"descriptive label\" to the button.",
            )
            return

        if attrs.rstrip().endswith("/"):
            return
        inner = match.group(2).strip()
        if has_accessible_name(attrs) or TITLE_ATTR.search(attrs) or visible_text(inner):
            return
        if re.search(r"<svg[\s>]", inner, re.IGNORECASE) or ICON_HINT.search(inner):
            yield self.create_finding(
                context.rel_path, line,
                problem="Icon-only button missing accessible name",
                impact="Screen readers announce this as \"button\" with no label. Users cannot determine its purpose.",
                recommended_fix=(
                    "Add aria-label=\"descriptive label\" to the button, e.g., "
                    "aria-label=\"Close\" or aria-label=\"Menu\"."
                ),
            )
        else:
            yield self.create_finding(
                context.rel_path, line,
                problem="Button has no accessible name (no text content, aria-label, or title)",
            )


@rule
class UnnamedLinkRule(PatternRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-NAM-002",
            name="Link without accessible name",
            description="Detects links with no text, aria-label or aria-labelledby.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.CRITICAL,
            impact=(
                "Screen readers announce \"link\" with no description. Users cannot "
                "determine where the link goes."
            ),
            recommended_fix="Add visible text inside the link, or add aria-label=\"descriptive label\".",
            compliance=wcag("4.1.2"),
            auto_fixable=True,
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [re.compile(r"<a\s([^>]*?)>([\s\S]*?)</a>", re.IGNORECASE)]

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        if has_accessible_name(match.group(1)) or visible_text(match.group(2)):
            return
        yield self.create_finding(
            context.rel_path, context.line_at(match.start()),
            problem="Link has no accessible name (no text, aria-label, or aria-labelledby)",
        )


@rule
class UnnamedSvgRule(PatternRule):
    """
    Detects SVG graphics that are neither hidden nor named.

    SVGs inside a button or link opening tag are left alone since the
    control provides the name.
    """

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-NAM-003",
            name="SVG without accessible name",
            description="Detects SVG images that screen readers cannot describe.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact="Screen readers announce the SVG as an image but cannot describe it.",
            recommended_fix="Add aria-label=\"description\" to the SVG, or include a <title> child element.",
            compliance=wcag("1.1.1"),
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [re.compile(r"<svg\s([^>]*?)>", re.IGNORECASE)]

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        attrs = match.group(1)
        content = context.content
        has_role = re.search(r"\brole\s*=\s*[\"']img[\"']", attrs)
        hidden = re.search(r"\baria-hidden\s*=\s*[\"']true[\"']", attrs)
        close = content.find("</svg>", match.start())
        body = content[match.start():close if close != -1 else len(content)]
        named = has_accessible_name(attrs) or re.search(r"<title[^>]*>[^<]+</title>", body)
        line = context.line_at(match.start())

        if has_role and not named:
            yield self.create_finding(
                context.rel_path, line, problem="SVG with role=\"img\" missing accessible name"
            )

        if not hidden and not has_role and not named:
            before = content[max(0, match.start() - 200):match.start()]
            if re.search(r"<(button|a)\s[^>]*$", before):
                return
            yield self.create_finding(
                context.rel_path, line,
                problem="SVG without aria-hidden=\"true\" or accessible name — may confuse screen readers",
                impact=(
                    "Unlabeled, non-hidden SVGs are announced but without meaning. "
                    "Decorative SVGs should have aria-hidden=\"true\"."
                ),
                recommended_fix=(
                    "Add aria-hidden=\"true\" if decorative, or add role=\"img\" and "
                    "aria-label=\"description\" if meaningful."
                ),
                severity=Severity.LOW,
            )


@rule
class EmptyAriaLabelRule(PatternRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-NAM-004",
            name="Empty aria-label",
            description="Detects aria-label attributes with an empty value.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact=(
                "An empty aria-label overrides any visible text, making the element "
                "unnamed to screen readers."
            ),
            recommended_fix="Add a descriptive value to aria-label, or remove it if the element has visible text.",
            compliance=wcag("4.1.2"),
            auto_fixable=True,
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [re.compile(r"aria-label\s*=\s*[\"']\s*[\"']", re.IGNORECASE)]

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        yield self.create_finding(
            context.rel_path, context.line_at(match.start()),
            problem="Empty aria-label provides no accessible name",
        )
