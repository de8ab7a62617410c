"""
Semantic HTML rules: landmark elements and div soup.
"""

import re
from typing import Dict, Generator

from markupaudit.core.rules import Rule, RuleMetadata, ScanContext, rule
from markupaudit.core.findings import Finding, Severity
from markupaudit.core.sources import Ecosystem
from markupaudit.rules.seo.common import DOMAIN, scans_pages

CATEGORY = "semantic-html"

SEMANTIC_TAGS = ("header", "nav", "main", "section", "article", "footer", "aside")

# Share of <div> among container elements above which a file is flagged.
DIV_THRESHOLD = 0.7


def count_tags(content: str) -> Dict[str, int]:
    counts = {
        tag: len(re.findall(r"<" + tag + r"[\s>]", content, re.IGNORECASE))
        for tag in SEMANTIC_TAGS
    }
    counts["div"] = len(re.findall(r"<div[\s>]", content, re.IGNORECASE))
    return counts


def has_navigation_content(content: str) -> bool:
    links = len(re.findall(r"<a\s", content, re.IGNORECASE))
    return links >= 3 or bool(re.search(r"<(ul|ol)[^>]*>[\s\S]*?<a\s", content, re.IGNORECASE))


class LandmarkRule(Rule):
    """Base for landmark checks, which only run on page files."""

    def analyze(self, context: ScanContext) -> Generator[Finding, None, None]:
        if context.is_page and scans_pages(context):
            yield from self.check(context, count_tags(context.content))

    def check(self, context: ScanContext, counts: Dict[str, int]) -> Generator[Finding, None, None]:
        yield from ()


@rule
class MainLandmarkRule(LandmarkRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-SEM-001",
            name="Main landmark",
            description="Detects pages with no <main> or more than one.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact="The <main> tag helps search engines identify the primary content area of the page.",
            recommended_fix="Wrap the primary content area in a <main> tag.",
            auto_fixable=True,
        )

    def check(self, context, counts):
        if counts["main"] == 0:
            yield self.create_finding(
                context.rel_path, 1, problem="Missing <main> landmark element"
            )
        elif counts["main"] > 1:
            yield self.create_finding(
                context.rel_path, context.find_line("<main"),
                problem=f"Multiple <main> tags found ({counts['main']})",
                impact="Only one <main> element should exist per page.",
                recommended_fix="Keep only one <main> element that wraps the primary content.",
                auto_fix=False,
            )


@rule
class HeaderLandmarkRule(LandmarkRule):
    """Next.js pages usually inherit the header from a layout, so they are skipped."""

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-SEM-002",
            name="Header landmark",
            description="Detects pages without a <header>.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.LOW,
            impact="The <header> tag identifies the introductory content or navigational aids.",
            recommended_fix="Wrap site header/navigation area in a <header> tag.",
            auto_fixable=True,
        )

    def check(self, context, counts):
        if counts["header"] == 0 and context.ecosystem != Ecosystem.NEXTJS:
            yield self.create_finding(
                context.rel_path, 1, problem="Missing <header> landmark element"
            )


@rule
class NavLandmarkRule(LandmarkRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-SEM-003",
            name="Navigation landmark",
            description="Detects link lists that are not wrapped in <nav>.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.LOW,
            impact="The <nav> tag helps search engines identify navigation sections.",
            recommended_fix="Wrap navigation links in a <nav> element.",
        )

    def check(self, context, counts):
        if counts["nav"] == 0 and has_navigation_content(context.content):
            yield self.create_finding(
                context.rel_path, 1,
                problem="Navigation links found but no <nav> landmark element",
            )


@rule
class FooterLandmarkRule(LandmarkRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-SEM-004",
            name="Footer landmark",
            description="Detects pages without a <footer>.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.LOW,
            impact="The <footer> tag helps identify site-wide footer content.",
            recommended_fix="Wrap footer content in a <footer> tag.",
        )

    def check(self, context, counts):
        if counts["footer"] == 0 and context.ecosystem != Ecosystem.NEXTJS:
            yield self.create_finding(
                context.rel_path, 1, problem="Missing <footer> landmark element"
            )


@rule
class DivSoupRule(Rule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-SEM-005",
            name="Excessive div usage",
            description="Detects files where generic divs dominate the container elements.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact=(
                "Over-reliance on <div> tags reduces semantic meaning. Search engines use "
                "semantic tags to understand content structure."
            ),
            recommended_fix=(
                "Replace <div> elements with appropriate semantic tags (section, article, "
                "aside, etc.) where meaningful."
            ),
        )

    def analyze(self, context: ScanContext) -> Generator[Finding, None, None]:
        if not scans_pages(context):
            return
        counts = count_tags(context.content)
        divs = counts["div"]
        semantic = sum(counts[tag] for tag in SEMANTIC_TAGS)
        total = divs + semantic
        if total > 5 and divs / total > DIV_THRESHOLD:
            yield self.create_finding(
                context.rel_path, 1,
                problem=(
                    f"Excessive <div> usage: {divs} divs vs {semantic} semantic elements "
                    f"({round(divs / total * 100)}% divs)"
                ),
            )
