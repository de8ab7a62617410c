"""
Internal link rules.
"""

import os
import re
from typing import Generator, List

from markupaudit.core.rules import PatternRule, RuleMetadata, ScanContext, rule
from markupaudit.core.findings import Finding, Severity
from markupaudit.core.sources import Ecosystem
from markupaudit.rules.seo.common import DOMAIN, scans_markup

CATEGORY = "internal-links"

ANCHOR = re.compile(r"<a\s([^>]*href\s*=\s*[\"']([^\"']+)[\"'][^>]*)>", re.IGNORECASE)
EXTERNAL_PREFIXES = ("http://", "https://", "//", "#", "mailto:", "tel:", "javascript:")


def is_internal(href: str) -> bool:
    return not href.startswith(EXTERNAL_PREFIXES) and "://" not in href


@rule
class RouterLinkRule(PatternRule):
    """
    Detects plain anchors used for in-app navigation where the framework
    ships a client-side link component.
    """

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-LNK-001",
            name="Internal navigation without router link",
            description="Detects <a href> used for internal routes in Next.js, React and Angular.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact=(
                "next/link provides client-side navigation with prefetching, improving "
                "performance and user experience which impacts SEO."
            ),
            recommended_fix="Import Link from 'next/link' and replace <a> with <Link>.",
            ecosystems=["nextjs", "react", "angular"],
            auto_fixable=True,
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [ANCHOR]

    def applies_to(self, context: ScanContext) -> bool:
        return scans_markup(context)

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        attrs, href = match.group(1), match.group(2)
        if not is_internal(href):
            return
        line = context.line_at(match.start())
        ecosystem = context.ecosystem

        if ecosystem == Ecosystem.NEXTJS and "next/link" not in context.content:
            yield self.create_finding(
                context.rel_path, line,
                problem=f"Using <a href=\"{href}\"> for internal navigation instead of next/link",
            )
        elif ecosystem == Ecosystem.ANGULAR and not re.search(r"routerLink", attrs, re.IGNORECASE):
            yield self.create_finding(
                context.rel_path, line,
                problem=f"Using <a href=\"{href}\"> for internal navigation instead of routerLink",
                impact="routerLink enables SPA navigation without full page reloads, improving performance.",
                recommended_fix="Use routerLink directive: <a routerLink=\"/path\">.",
            )
        elif ecosystem == Ecosystem.REACT and (
            "react-router" in context.content or "Link" in context.content
        ):
            yield self.create_finding(
                context.rel_path, line,
                problem=f"Using <a href=\"{href}\"> for internal navigation instead of React Router Link",
                impact="React Router Link enables SPA navigation without full page reloads.",
                recommended_fix="Replace <a> with <Link to=\"/path\"> from react-router-dom.",
                severity=Severity.MEDIUM,
            )


@rule
class BrokenRelativeLinkRule(PatternRule):
    """Resolves relative links of static sites against the linking file."""

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-LNK-002",
            name="Broken relative link",
            description="Detects relative links whose target file does not exist.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact="Broken links create poor user experience and waste crawl budget.",
            recommended_fix="Fix the href to point to an existing file or remove the link.",
            ecosystems=["html"],
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [ANCHOR]

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        href = match.group(2)
        if not is_internal(href) or href.startswith("/"):
            return
        target = re.split(r"[?#]", href, maxsplit=1)[0]
        if not target:
            return
        path = os.path.normpath(os.path.join(os.path.dirname(context.file_path), target))
        if os.path.exists(path):
            return
        yield self.create_finding(
            context.rel_path, context.line_at(match.start()),
            problem=f"Potentially broken internal link: \"{href}\" — target file not found",
        )


@rule
class EmptyLinkRule(PatternRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-LNK-003",
            name="Empty link",
            description="Detects anchors with no text content.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact="Links without anchor text provide no context to search engines about the linked page.",
            recommended_fix="Add descriptive text inside the link or an aria-label attribute.",
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [re.compile(r"<a\s[^>]*>\s*</a>", re.IGNORECASE)]

    def applies_to(self, context: ScanContext) -> bool:
        return scans_markup(context)

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        yield self.create_finding(
            context.rel_path, context.line_at(match.start()),
            problem="Empty link found (no anchor text)",
        )
