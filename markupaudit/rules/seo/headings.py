"""
Heading hierarchy rules.

All four rules share one pass over the ``<h1>``..``<h6>`` tags of a file.
Files without any heading are left alone.
"""

import re
from typing import Generator, List, Tuple

from markupaudit.core.rules import Rule, RuleMetadata, ScanContext, rule
from markupaudit.core.findings import Finding, Severity
from markupaudit.rules.seo.common import DOMAIN, scans_pages

CATEGORY = "headings"

HEADING = re.compile(r"<(h[1-6])[^>]*>", re.IGNORECASE)


def heading_levels(context: ScanContext) -> List[Tuple[int, int]]:
    """(level, line) for every opening heading tag, in document order."""
    return [
        (int(match.group(1)[1]), context.line_at(match.start()))
        for match in HEADING.finditer(context.content)
    ]


class HeadingRule(Rule):
    """Base for rules that look at the heading outline of a page."""

    def analyze(self, context: ScanContext) -> Generator[Finding, None, None]:
        if not scans_pages(context):
            return
        headings = heading_levels(context)
        if headings:
            yield from self.check(context, headings)

    def check(self, context: ScanContext, headings: List[Tuple[int, int]]) -> Generator[Finding, None, None]:
        yield from ()


@rule
class MultipleH1Rule(HeadingRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-HDG-001",
            name="Multiple H1",
            description="Detects pages with more than one H1.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact="Multiple H1 tags dilute the main topic signal for search engines.",
            recommended_fix="Keep only one H1 tag per page. Convert additional H1 tags to H2 or lower.",
            auto_fixable=True,
        )

    def check(self, context, headings):
        h1_lines = [line for level, line in headings if level == 1]
        for line in h1_lines[1:]:
            yield self.create_finding(
                context.rel_path, line,
                problem=(
                    f"Multiple H1 tags found ({len(h1_lines)} total). Only one H1 per page "
                    "is recommended."
                ),
            )


@rule
class MissingH1Rule(HeadingRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-HDG-002",
            name="Missing H1",
            description="Detects pages with headings but no H1.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact="The H1 tag is a primary signal for page topic. Missing H1 weakens SEO.",
            recommended_fix="Add a single H1 tag that describes the main content of the page.",
        )

    def check(self, context, headings):
        if context.is_page and not any(level == 1 for level, _ in headings):
            yield self.create_finding(context.rel_path, 1, problem="Page is missing an H1 tag")


@rule
class SkippedHeadingLevelRule(HeadingRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-HDG-003",
            name="Skipped heading level",
            description="Detects headings that jump more than one level deeper.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact=(
                "Skipped heading levels break the document outline and reduce accessibility "
                "and SEO structure."
            ),
            recommended_fix="Change the heading to the next level down or add intermediate heading levels.",
            auto_fixable=True,
        )

    def check(self, context, headings):
        for (previous, _), (current, line) in zip(headings, headings[1:]):
            if current - previous > 1:
                yield self.create_finding(
                    context.rel_path, line,
                    problem=f"Skipped heading level: H{previous} → H{current} (expected H{previous + 1})",
                    recommended_fix=(
                        f"Change <h{current}> to <h{previous + 1}> or add intermediate "
                        "heading levels."
                    ),
                )


@rule
class FirstHeadingRule(HeadingRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-HDG-004",
            name="First heading is not H1",
            description="Detects pages whose outline does not start with an H1.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact="The first heading on a page should be H1 to establish the main topic.",
            recommended_fix="Add an H1 tag before other headings, or change the first heading to H1.",
        )

    def check(self, context, headings):
        level, line = headings[0]
        if level != 1 and context.is_page:
            yield self.create_finding(
                context.rel_path, line, problem=f"First heading is H{level} instead of H1"
            )
