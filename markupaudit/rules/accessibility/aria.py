"""
ARIA usage rules: redundant roles, hidden focusable content and broken
ID references.
"""

import re
from typing import Generator, List

from markupaudit.core.rules import Rule, PatternRule, RuleMetadata, ScanContext, rule
from markupaudit.core.findings import Finding, Severity
from markupaudit.rules.accessibility.common import DOMAIN, wcag

CATEGORY = "aria"

# Element -> implicit ARIA role.
REDUNDANT_ROLES = {
    "button": "button",
    "a": "link",
    "nav": "navigation",
    "main": "main",
    "header": "banner",
    "footer": "contentinfo",
    "aside": "complementary",
    "form": "form",
    "table": "table",
    "img": "img",
    "input": "textbox",
    "select": "listbox",
}

FOCUSABLE_TAG = re.compile(r"^<(button|a|input|select|textarea|details)\s", re.IGNORECASE)
FOCUSABLE_CHILD = re.compile(r"<(button|a|input|select|textarea)\s", re.IGNORECASE)


@rule
class RedundantRoleRule(Rule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-ARIA-001",
            name="Redundant role",
            description="Detects explicit roles that repeat an element's implicit role.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.LOW,
            impact=(
                "While not harmful, redundant roles add noise to the code and may confuse "
                "developers about ARIA usage."
            ),
            recommended_fix="Remove the redundant role attribute.",
            compliance=wcag("4.1.2"),
            auto_fixable=True,
        )

    def analyze(self, context: ScanContext) -> Generator[Finding, None, None]:
        for tag, role in REDUNDANT_ROLES.items():
            pattern = re.compile(
                r"<" + tag + r"\s[^>]*role\s*=\s*[\"']" + role + r"[\"']", re.IGNORECASE
            )
            for match in pattern.finditer(context.content):
                yield self.create_finding(
                    context.rel_path, context.line_at(match.start()),
                    problem=f"Redundant role=\"{role}\" on <{tag}> — this is the element's implicit role",
                    recommended_fix=f"Remove role=\"{role}\" from the <{tag}> element.",
                )


@rule
class HiddenFocusableRule(PatternRule):
    """
    Detects aria-hidden="true" on focusable elements or on containers that
    hold focusable children.
    """

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-ARIA-002",
            name="aria-hidden on focusable content",
            description="Detects keyboard-reachable content hidden from assistive technology.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.CRITICAL,
            impact=(
                "The element is hidden from screen readers but still reachable via keyboard, "
                "creating a confusing ghost focus trap."
            ),
            recommended_fix=(
                "Remove aria-hidden if the element should be accessible, or add tabindex=\"-1\" "
                "and remove href to also hide it from keyboard."
            ),
            compliance=wcag("4.1.2"),
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [re.compile(r"aria-hidden\s*=\s*[\"']true[\"']", re.IGNORECASE)]

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        content = context.content
        start = content.rfind("<", 0, match.start())
        end = content.find(">", match.start())
        if start == -1 or end == -1:
            return
        tag = content[start:end + 1]
        line = context.line_at(start)

        if re.search(r"\b(href|tabindex)\s*=", tag, re.IGNORECASE) or FOCUSABLE_TAG.match(tag):
            yield self.create_finding(
                context.rel_path, line, problem="aria-hidden=\"true\" on a focusable element"
            )

        name = re.match(r"^<(\w+)", tag)
        if not name:
            return
        close = content.find(f"</{name.group(1)}>", end)
        if close == -1:
            return
        inner = content[end + 1:close]
        if FOCUSABLE_CHILD.search(inner) or re.search(r"tabindex\s*=\s*[\"'](?!-1)[^\"']*[\"']", inner, re.IGNORECASE):
            yield self.create_finding(
                context.rel_path, line,
                problem="aria-hidden=\"true\" on container with focusable children",
                impact=(
                    "Focusable elements inside an aria-hidden container are hidden from screen "
                    "readers but reachable via keyboard."
                ),
                recommended_fix="Either remove aria-hidden from the container, or ensure all children have tabindex=\"-1\".",
            )


@rule
class BrokenIdReferenceRule(Rule):
    """Detects aria-controls, aria-labelledby and aria-describedby pointing at missing IDs."""

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-ARIA-003",
            name="Broken ARIA reference",
            description="Detects ARIA relationship attributes referencing IDs absent from the file.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact="The ARIA relationship is broken. Assistive technology cannot navigate to the referenced element.",
            recommended_fix="Add the referenced id to the target element, or fix the attribute value.",
            compliance=wcag("4.1.2"),
        )

    def analyze(self, context: ScanContext) -> Generator[Finding, None, None]:
        content = context.content
        ids = set(re.findall(r"\bid\s*=\s*[\"']([^\"']+)[\"']", content, re.IGNORECASE))

        for match in re.finditer(r"aria-controls\s*=\s*[\"']([^\"']+)[\"']", content, re.IGNORECASE):
            ref = match.group(1)
            if ref not in ids:
                yield self.create_finding(
                    context.rel_path, context.line_at(match.start()),
                    problem=f"aria-controls references non-existent ID \"{ref}\"",
                    recommended_fix=f"Add id=\"{ref}\" to the controlled element, or fix the aria-controls value.",
                )

        for attr, severity, impact, what in (
            ("aria-labelledby", Severity.HIGH,
             "The element has no effective accessible name because the referenced label element does not exist.",
             "label text"),
            ("aria-describedby", Severity.MEDIUM,
             "The supplementary description is not provided because the referenced element does not exist.",
             "description"),
        ):
            pattern = re.compile(attr + r"\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE)
            for match in pattern.finditer(content):
                for ref in match.group(1).split():
                    if ref in ids:
                        continue
                    yield self.create_finding(
                        context.rel_path, context.line_at(match.start()),
                        problem=f"{attr} references non-existent ID \"{ref}\"",
                        impact=impact,
                        recommended_fix=(
                            f"Add an element with id=\"{ref}\" containing the {what}, "
                            f"or fix the {attr} value."
                        ),
                        severity=severity,
                    )


@rule
class DisclosureStateRule(PatternRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-ARIA-004",
            name="Disclosure without aria-expanded",
            description="Detects controls with aria-controls but no expanded state.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact="Screen readers cannot convey whether the controlled element is currently expanded or collapsed.",
            recommended_fix="Add aria-expanded=\"true\" or aria-expanded=\"false\" to indicate the current state.",
            compliance=wcag("4.1.2"),
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [re.compile(
            r"<(button|div|span)\s[^>]*aria-controls\s*=\s*[\"'][^\"']+[\"'][^>]*>", re.IGNORECASE
        )]

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        if re.search(r"\baria-expanded\s*=", match.group(0)):
            return
        yield self.create_finding(
            context.rel_path, context.line_at(match.start()),
            problem="Element with aria-controls missing aria-expanded state",
        )
