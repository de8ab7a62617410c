"""
Form control labelling and error messaging rules.
"""

import re
from typing import Generator, List, Set

from markupaudit.core.rules import Rule, PatternRule, RuleMetadata, ScanContext, rule
from markupaudit.core.findings import Finding, Severity
from markupaudit.rules.accessibility.common import (
    DOMAIN, class_hint_pattern, has_accessible_name, wcag
)

CATEGORY = "forms"

CONTROL = re.compile(r"<(input|select|textarea)\s([^>]*?)/?\s*>", re.IGNORECASE)


def labelled_ids(content: str) -> Set[str]:
    return set(re.findall(r"(?:htmlFor|for)\s*=\s*[\"']([^\"']+)[\"']", content, re.IGNORECASE))


def wrapped_control_offsets(content: str) -> Set[int]:
    """Offsets of the first control nested inside each <label>...</label>."""
    offsets = set()
    pattern = re.compile(r"<label[^>]*>[\s\S]*?<(input|select|textarea)[\s\S]*?</label>", re.IGNORECASE)
    for match in pattern.finditer(content):
        inner = re.search(r"<(input|select|textarea)\s", match.group(0))
        if inner:
            offsets.add(match.start() + inner.start())
    return offsets


@rule
class UnlabelledControlRule(Rule):
    """
    Detects inputs, selects and textareas without a programmatic label.

    A control counts as labelled through aria-label, aria-labelledby, a
    <label for> pointing at its id, or a wrapping <label>.
    """

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-FRM-001",
            name="Form control without label",
            description="Detects form controls that screen readers cannot identify.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.CRITICAL,
            impact="Screen readers cannot identify this form control. Users do not know what to enter.",
            recommended_fix="Add a <label htmlFor=\"id\"> and an id to the control, or add aria-label=\"descriptive label\".",
            compliance=wcag("1.3.1"),
            auto_fixable=True,
        )

    def analyze(self, context: ScanContext) -> Generator[Finding, None, None]:
        content = context.content
        ids = labelled_ids(content)
        wrapped = wrapped_control_offsets(content)

        for match in CONTROL.finditer(content):
            tag_name, attrs = match.group(1), match.group(2)
            if re.search(r"\btype\s*=\s*[\"'](hidden|submit)[\"']", attrs):
                continue
            line = context.line_at(match.start())
            id_match = re.search(r"\bid\s*=\s*[\"']([^\"']+)[\"']", attrs)
            labelled = (
                has_accessible_name(attrs)
                or (id_match and id_match.group(1) in ids)
                or match.start() in wrapped
            )

            if not labelled:
                if re.search(r"\bplaceholder\s*=", attrs):
                    yield self.create_finding(
                        context.rel_path, line,
                        problem=f"<{tag_name}> uses placeholder as its only label",
                        impact=(
                            "Placeholder text disappears when typing, leaving users with no label "
                            "reference. Screen readers may not announce placeholders consistently."
                        ),
                        recommended_fix=(
                            "Add a visible <label> element associated via htmlFor/id, or add "
                            "aria-label if a visible label is not possible."
                        ),
                        severity=Severity.HIGH,
                    )
                else:
                    yield self.create_finding(
                        context.rel_path, line,
                        problem=f"<{tag_name}> has no associated label",
                        recommended_fix=(
                            f"Add a <label htmlFor=\"id\"> and an id to the {tag_name}, "
                            "or add aria-label=\"descriptive label\"."
                        ),
                    )

            if re.search(r"\baria-invalid\s*=", attrs) and not re.search(r"\baria-describedby\s*=", attrs):
                yield self.create_finding(
                    context.rel_path, line,
                    problem=f"<{tag_name}> has aria-invalid but no aria-describedby for error message",
                    impact="Screen readers know the field is invalid but cannot find the error message explaining why.",
                    recommended_fix="Add aria-describedby pointing to the error message element ID.",
                    severity=Severity.MEDIUM,
                    auto_fix=False,
                    compliance=wcag("3.3.1"),
                )


@rule
class ChoiceGroupFieldsetRule(Rule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-FRM-002",
            name="Choice group without fieldset",
            description="Detects radio and checkbox groups not wrapped in a fieldset.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact=(
                "Screen readers cannot associate the group label with the individual options. "
                "Users may not understand the grouping context."
            ),
            recommended_fix="Wrap the group in <fieldset> and add a <legend> describing the group purpose.",
            compliance=wcag("1.3.1"),
        )

    def analyze(self, context: ScanContext) -> Generator[Finding, None, None]:
        content = context.content
        names: List[str] = []
        for match in re.finditer(r"type\s*=\s*[\"'](radio|checkbox)[\"']", content, re.IGNORECASE):
            name = re.search(r"\bname\s*=\s*[\"']([^\"']+)[\"']", context.tag_at(match.start()))
            if name and name.group(1) not in names:
                names.append(name.group(1))

        for name in names:
            pattern = re.compile(r"name\s*=\s*[\"']" + re.escape(name) + r"[\"']")
            occurrences = list(pattern.finditer(content))
            if len(occurrences) < 2:
                continue
            before = content[:occurrences[0].start()]
            if before.rfind("<fieldset") > before.rfind("</fieldset"):
                continue
            yield self.create_finding(
                context.rel_path, context.line_at(occurrences[0].start()),
                problem=f"Radio/checkbox group \"{name}\" not wrapped in <fieldset> with <legend>",
            )


@rule
class ErrorContainerLiveRegionRule(PatternRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-FRM-003",
            name="Error container without live region",
            description="Detects error message containers that are not announced.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact="Dynamic error messages are not announced to screen reader users when they appear.",
            recommended_fix="Add role=\"alert\" for important errors or aria-live=\"polite\" for non-critical messages.",
            compliance=wcag("4.1.3", "AA"),
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [class_hint_pattern("div|span|p", "error|invalid|alert|warning")]

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        tag = match.group(0)
        if re.search(r"\baria-live\s*=", tag) or re.search(r"\brole\s*=\s*[\"'](alert|status)[\"']", tag):
            return
        yield self.create_finding(
            context.rel_path, context.line_at(match.start()),
            problem="Error message container missing role=\"alert\" or aria-live attribute",
        )
