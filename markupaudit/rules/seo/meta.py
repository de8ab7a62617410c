"""
Meta description rules.
"""

import re
from collections import OrderedDict
from typing import Generator, List, Optional, Tuple

from markupaudit.core.rules import Rule, RuleMetadata, ScanContext, ProjectContext, rule
from markupaudit.core.findings import Finding, Severity
from markupaudit.core.sources import Ecosystem
from markupaudit.rules.seo.common import (
    DOMAIN, MAX_DESCRIPTION_LENGTH, METADATA_DESCRIPTION, MIN_DESCRIPTION_LENGTH, basename,
    is_app_route_file, is_pages_route_file, meta_description
)
from markupaudit.utils import find_line

CATEGORY = "meta-description"

METADATA_DESCRIPTION_VALUE = re.compile(r"description\s*:\s*['\"`]([^'\"`]+)['\"`]")
HELMET_DESCRIPTION = re.compile(
    r"name=[\"']description[\"'][^>]*content=[\"']([^\"']+)[\"']", re.IGNORECASE
)


def page_description(rel_path: str, content: str, ecosystem: Ecosystem) -> Optional[Tuple[str, int]]:
    """The non-empty static description a file declares and its line."""
    lines = content.split("\n")
    value = None
    if ecosystem == Ecosystem.HTML:
        value = meta_description(content)
    elif ecosystem == Ecosystem.NEXTJS:
        if (is_app_route_file(rel_path) and basename(rel_path).startswith("page")
                and METADATA_DESCRIPTION.search(content)):
            match = METADATA_DESCRIPTION_VALUE.search(content)
            value = match.group(1) if match else None
    elif ecosystem == Ecosystem.REACT and "Helmet" in content:
        match = HELMET_DESCRIPTION.search(content)
        value = match.group(1) if match else None
    if value and value.strip():
        return value, find_line(lines, "description")
    return None


@rule
class HtmlMetaDescriptionRule(Rule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-MTA-001",
            name="HTML meta description",
            description="Detects HTML documents with a missing or empty meta description.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact="Search engines cannot generate meaningful snippets without a meta description.",
            recommended_fix="Add <meta name='description' content='Page description here' /> inside <head>.",
            ecosystems=["html"],
            auto_fixable=True,
        )

    def analyze(self, context: ScanContext) -> Generator[Finding, None, None]:
        if not context.is_html:
            return
        value = meta_description(context.content)
        if value is None:
            yield self.create_finding(
                context.rel_path, 1, problem="HTML file missing meta description tag"
            )
        elif not value.strip():
            yield self.create_finding(
                context.rel_path, context.find_line("description"),
                problem="Empty meta description",
                impact="An empty description is equivalent to having none.",
                recommended_fix="Add descriptive content to the meta description tag.",
            )


@rule
class NextMetaDescriptionRule(Rule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-MTA-002",
            name="Next.js page description",
            description="Detects Next.js pages without a meta description.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact=(
                "Pages without meta descriptions show auto-generated snippets in search "
                "results, reducing click-through rates."
            ),
            recommended_fix=(
                "Add description to metadata: export const metadata = { description: "
                "'Your description here' }"
            ),
            ecosystems=["nextjs"],
            auto_fixable=True,
        )

    def analyze(self, context: ScanContext) -> Generator[Finding, None, None]:
        rel_path = context.rel_path
        content = context.content

        if is_app_route_file(rel_path):
            if not basename(rel_path).startswith("page"):
                return
            if METADATA_DESCRIPTION.search(content) or "generateMetadata" in content:
                return
            yield self.create_finding(
                rel_path, 1, problem="Page missing meta description in metadata export"
            )

        elif is_pages_route_file(rel_path) and "/api/" not in rel_path:
            value = meta_description(content)
            if value and value.strip():
                return
            yield self.create_finding(
                rel_path, 1,
                problem="Page missing meta description",
                impact=(
                    "Without a meta description, search engines generate their own snippet "
                    "which may not represent the page well."
                ),
                recommended_fix="Add <meta name='description' content='...' /> inside the Head component.",
                auto_fix=False,
            )


@rule
class DescriptionLengthRule(Rule):
    """Flags descriptions outside the range search engines display in full."""

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-MTA-003",
            name="Meta description length",
            description=(
                f"Detects descriptions shorter than {MIN_DESCRIPTION_LENGTH} or longer than "
                f"{MAX_DESCRIPTION_LENGTH} characters."
            ),
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact="Short descriptions may not provide enough context in search results.",
            recommended_fix=(
                f"Expand the description to at least {MIN_DESCRIPTION_LENGTH} characters."
            ),
        )

    def analyze(self, context: ScanContext) -> Generator[Finding, None, None]:
        found = page_description(context.rel_path, context.content, context.ecosystem)
        if not found:
            return
        value, line = found
        length = len(value)
        if length < MIN_DESCRIPTION_LENGTH:
            yield self.create_finding(
                context.rel_path, line,
                problem=(
                    f"Meta description too short ({length} chars, minimum "
                    f"{MIN_DESCRIPTION_LENGTH})"
                ),
            )
        elif length > MAX_DESCRIPTION_LENGTH:
            yield self.create_finding(
                context.rel_path, line,
                problem=(
                    f"Meta description too long ({length} chars, maximum "
                    f"{MAX_DESCRIPTION_LENGTH})"
                ),
                impact="Long descriptions get truncated in search results.",
                recommended_fix=f"Shorten the description to under {MAX_DESCRIPTION_LENGTH} characters.",
                severity=Severity.LOW,
            )


@rule
class IndexMetaDescriptionRule(Rule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-MTA-004",
            name="Application shell description",
            description="Detects missing descriptions in index.html and a missing Angular Meta service.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact="The default page has no description for search engines.",
            recommended_fix="Add <meta name='description' content='Your site description' /> to index.html.",
            ecosystems=["react", "angular"],
            auto_fixable=True,
        )

    def finalize(self, project: ProjectContext) -> Generator[Finding, None, None]:
        index = "public/index.html" if project.ecosystem == Ecosystem.REACT else "src/index.html"
        content = project.read(index)
        if content is not None:
            value = meta_description(content)
            if value is None or not value.strip():
                yield self.create_finding(
                    index, find_line(content.split("\n"), "description"),
                    problem="Missing or empty meta description in index.html",
                    recommended_fix=(
                        f"Add <meta name='description' content='Your description' /> to {index}."
                    ),
                )

        if project.ecosystem != Ecosystem.ANGULAR or not project.exists("src"):
            return
        scripts: List[str] = [c for p, c in project.sources.items() if p.endswith(".ts")]
        if any("Meta" in c and "@angular/platform-browser" in c for c in scripts):
            return
        yield self.create_finding(
            "src/", 1,
            problem="Angular Meta service not used for dynamic meta descriptions",
            impact="All pages share the same meta description from index.html.",
            recommended_fix=(
                "Import Meta from '@angular/platform-browser' and use metaService.updateTag() "
                "in route components."
            ),
            severity=Severity.MEDIUM,
            auto_fix=False,
        )


@rule
class DuplicateMetaDescriptionRule(Rule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-MTA-005",
            name="Duplicate meta description",
            description="Detects pages sharing the same meta description.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact=(
                "Duplicate descriptions reduce uniqueness signals for search engines and lower "
                "click-through rates."
            ),
            recommended_fix="Write a unique description for each page that summarizes its specific content.",
        )

    def finalize(self, project: ProjectContext) -> Generator[Finding, None, None]:
        groups: "OrderedDict[str, List[Tuple[str, int]]]" = OrderedDict()
        for rel_path, content in project.sources.items():
            found = page_description(rel_path, content, project.ecosystem)
            if found:
                value, line = found
                groups.setdefault(value.strip().lower(), []).append((rel_path, line))

        for entries in groups.values():
            if len(entries) < 2:
                continue
            for rel_path, line in entries:
                yield self.create_finding(
                    rel_path, line,
                    problem=f"Duplicate meta description found in {len(entries)} files",
                )
