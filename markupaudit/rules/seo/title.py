"""
Page title rules.
"""

import re
from collections import OrderedDict
from typing import Generator, List, Optional, Tuple

from markupaudit.core.rules import Rule, RuleMetadata, ScanContext, ProjectContext, rule
from markupaudit.core.findings import Finding, Severity
from markupaudit.core.sources import Ecosystem
from markupaudit.rules.seo.common import (
    DOMAIN, METADATA_TITLE, TITLE_TAG, basename, html_title, is_app_route_file,
    is_pages_route_file
)
from markupaudit.utils import find_line

CATEGORY = "title"

METADATA_TITLE_VALUE = re.compile(r"title\s*:\s*['\"`]([^'\"`]+)['\"`]")


def page_title(rel_path: str, content: str, ecosystem: Ecosystem) -> Optional[Tuple[str, int]]:
    """The static title a file declares and its line, when one can be read."""
    lines = content.split("\n")
    if ecosystem == Ecosystem.HTML:
        title = html_title(content)
        if title and title.strip():
            return title.strip(), find_line(lines, "<title")
    elif ecosystem == Ecosystem.NEXTJS:
        if is_app_route_file(rel_path) and basename(rel_path).startswith("page"):
            if METADATA_TITLE.search(content):
                match = METADATA_TITLE_VALUE.search(content)
                if match:
                    return match.group(1).strip(), find_line(lines, "title")
        elif is_pages_route_file(rel_path):
            match = TITLE_TAG.search(content)
            if match and match.group(1).strip():
                return match.group(1).strip(), find_line(lines, "<title")
    elif ecosystem == Ecosystem.REACT and "Helmet" in content:
        match = TITLE_TAG.search(content)
        if match and match.group(1).strip():
            return match.group(1).strip(), find_line(lines, "<title")
    return None


@rule
class HtmlTitleRule(Rule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-TTL-001",
            name="HTML title",
            description="Detects HTML documents with a missing or empty <title>.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.CRITICAL,
            impact=(
                "Pages without title tags cannot be properly indexed or displayed in "
                "search results."
            ),
            recommended_fix="Add a <title> tag inside <head> with a descriptive, unique title.",
            ecosystems=["html"],
            auto_fixable=True,
        )

    def analyze(self, context: ScanContext) -> Generator[Finding, None, None]:
        if not context.is_html:
            return
        title = html_title(context.content)
        if title is None:
            yield self.create_finding(context.rel_path, 1, problem="HTML file missing <title> tag")
        elif not title.strip():
            yield self.create_finding(
                context.rel_path, context.find_line("<title"),
                problem="Empty <title> tag",
                impact="An empty title is equivalent to having no title for SEO purposes.",
                recommended_fix="Add descriptive text inside the <title> tag.",
            )


@rule
class NextTitleRule(Rule):
    """
    Detects Next.js pages and layouts that never set a title.

    App Router files need a ``metadata`` export with a title or a
    ``generateMetadata`` function; Pages Router pages need ``next/head`` or a
    ``<title>`` element.
    """

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-TTL-002",
            name="Next.js page title",
            description="Detects Next.js pages and layouts without a title.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact="Pages without unique titles rank poorly and have reduced click-through rates.",
            recommended_fix="Add metadata export: export const metadata = { title: 'Page Title' }",
            ecosystems=["nextjs"],
            auto_fixable=True,
        )

    def analyze(self, context: ScanContext) -> Generator[Finding, None, None]:
        rel_path = context.rel_path
        content = context.content

        if is_app_route_file(rel_path):
            if METADATA_TITLE.search(content) or "generateMetadata" in content:
                return
            if basename(rel_path).startswith("layout"):
                yield self.create_finding(
                    rel_path, 1,
                    problem="Layout file missing metadata title or generateMetadata",
                    impact=(
                        "Pages without titles appear poorly in search results and may not "
                        "be indexed properly."
                    ),
                    recommended_fix="Add metadata export: export const metadata = { title: 'Your Title' }",
                )
            else:
                yield self.create_finding(rel_path, 1, problem="Page missing metadata title")

        elif is_pages_route_file(rel_path) and "/api/" not in rel_path:
            if "next/head" in content or re.search(r"<title[^>]*>", content, re.IGNORECASE):
                return
            yield self.create_finding(
                rel_path, 1,
                problem="Page missing title (no Head component or title tag found)",
                impact="Pages without titles are poorly represented in search results.",
                recommended_fix="Import Head from 'next/head' and add a <title> tag.",
                auto_fix=False,
            )


@rule
class IndexTitleRule(Rule):
    """Checks the single HTML shell of client-rendered applications."""

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-TTL-003",
            name="Application shell title",
            description="Detects default or missing titles in index.html and missing title services.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact="Pages without titles are poorly represented in search results.",
            recommended_fix="Add a descriptive <title> tag to index.html.",
            ecosystems=["react", "angular", "html"],
            auto_fixable=True,
        )

    def finalize(self, project: ProjectContext) -> Generator[Finding, None, None]:
        if project.ecosystem == Ecosystem.REACT:
            yield from self._react(project)
        elif project.ecosystem == Ecosystem.ANGULAR:
            yield from self._angular(project)
        elif not project.html_files:
            yield self.create_finding(
                ".", 1,
                problem="No HTML files found in project",
                impact="Cannot verify title tags without HTML files.",
                recommended_fix="Ensure HTML files are in the project root or a public directory.",
                severity=Severity.LOW,
                auto_fix=False,
            )

    def _react(self, project: ProjectContext) -> Generator[Finding, None, None]:
        content = project.read("public/index.html")
        if content is None:
            return
        title = html_title(content)
        if title is None or not title.strip() or "React App" in title:
            yield self.create_finding(
                "public/index.html", find_line(content.split("\n"), "<title"),
                problem="Default or missing title in index.html",
                impact="The default \"React App\" title provides no SEO value.",
                recommended_fix=(
                    "Set a descriptive title in public/index.html and use react-helmet for "
                    "per-page titles."
                ),
            )

    def _angular(self, project: ProjectContext) -> Generator[Finding, None, None]:
        content = project.read("src/index.html")
        if content is not None:
            title = html_title(content)
            if title is None or not title.strip():
                yield self.create_finding(
                    "src/index.html", find_line(content.split("\n"), "<title"),
                    problem="Missing or empty title tag in index.html",
                    recommended_fix=(
                        "Add a descriptive <title> tag and use Angular's Title service for "
                        "dynamic titles."
                    ),
                )

        if not project.exists("src"):
            return
        scripts: List[str] = [c for p, c in project.sources.items() if p.endswith(".ts")]
        if any("Title" in c and "@angular/platform-browser" in c for c in scripts):
            return
        yield self.create_finding(
            "src/", 1,
            problem="Angular Title service not used for dynamic page titles",
            impact="Without dynamic titles, all pages share the same title from index.html.",
            recommended_fix=(
                "Import Title from '@angular/platform-browser' and use titleService.setTitle() "
                "in route components."
            ),
            severity=Severity.MEDIUM,
            auto_fix=False,
        )


@rule
class DuplicateTitleRule(Rule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-TTL-004",
            name="Duplicate title",
            description="Detects pages sharing the same title.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact=(
                "Duplicate titles confuse search engines and reduce click-through rates in "
                "search results."
            ),
            recommended_fix="Make each page title unique and descriptive of its specific content.",
        )

    def finalize(self, project: ProjectContext) -> Generator[Finding, None, None]:
        groups: "OrderedDict[str, List[Tuple[str, str, int]]]" = OrderedDict()
        for rel_path, content in project.sources.items():
            found = page_title(rel_path, content, project.ecosystem)
            if found:
                title, line = found
                groups.setdefault(title.lower(), []).append((title, rel_path, line))

        for entries in groups.values():
            if len(entries) < 2:
                continue
            for title, rel_path, line in entries:
                yield self.create_finding(
                    rel_path, line,
                    problem=f"Duplicate title: \"{title}\" (found in {len(entries)} files)",
                )
