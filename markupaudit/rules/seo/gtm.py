"""
Google Tag Manager installation rules.

GTM lives in a handful of project-wide documents (the root layout, the
custom ``_document``, or the HTML shell), so these rules run once per audit.
"""

import re
from typing import Generator, List, Optional, Tuple

from markupaudit.core.rules import Rule, RuleMetadata, ProjectContext, rule
from markupaudit.core.findings import Finding, Severity
from markupaudit.core.sources import Ecosystem
from markupaudit.rules.seo.common import APP_DIRS, DOMAIN, PAGES_DIRS, ROUTE_DIRS, basename
from markupaudit.utils import find_line

CATEGORY = "gtm"

GTM_SCRIPT = re.compile(r"googletagmanager\.com/gtm\.js")
GTM_NOSCRIPT = re.compile(r"googletagmanager\.com/ns\.html")
HARDCODED_ID = re.compile(r"['\"`]GTM-[A-Z0-9]+['\"`]")
SCRIPT_ID = re.compile(r"googletagmanager\.com/gtm\.js\?id=(GTM-[A-Z0-9]+)")
NOSCRIPT_ID = re.compile(r"googletagmanager\.com/ns\.html\?id=(GTM-[A-Z0-9]+)")

ENV_VAR_NAMES = (
    "NEXT_PUBLIC_GTM_ID",
    "VITE_GTM_ID",
    "REACT_APP_GTM_ID",
    "GTM_ID",
    "GATSBY_GTM_ID",
    "NG_APP_GTM_ID",
)

NEXT_LAYOUT = re.compile(r"^layout\.(tsx?|jsx?)$")
NEXT_DOCUMENT = re.compile(r"^_(document|app)\.(tsx?|jsx?)$")
NEXT_TARGETS = (
    "app/layout.tsx", "app/layout.jsx", "src/app/layout.tsx", "src/app/layout.jsx",
    "pages/_document.tsx", "pages/_document.jsx", "src/pages/_document.tsx", "src/pages/_document.jsx",
)

INSTALL_FIX = {
    Ecosystem.NEXTJS: "Install GTM by adding the official script snippet to the root layout or _document file.",
    Ecosystem.REACT: "Install GTM by adding the official script and noscript snippets to index.html.",
    Ecosystem.ANGULAR: "Install GTM by adding the official script and noscript snippets to src/index.html.",
    Ecosystem.HTML: "Install GTM by adding the official script and noscript snippets to your HTML files.",
}


def has_gtm(content: str) -> bool:
    return bool(GTM_SCRIPT.search(content) or GTM_NOSCRIPT.search(content))


def container_documents(project: ProjectContext) -> List[Tuple[str, str, bool]]:
    """
    (path, content, is_html) for every document GTM is expected to live in.

    Placement inside <head>/<body> can only be checked for real HTML.
    """
    documents: List[Tuple[str, str, bool]] = []
    if project.ecosystem == Ecosystem.NEXTJS:
        for rel_path in project.files_under(*APP_DIRS):
            if NEXT_LAYOUT.match(basename(rel_path)):
                documents.append((rel_path, project.sources[rel_path], False))
        for rel_path in project.files_under(*PAGES_DIRS):
            if NEXT_DOCUMENT.match(basename(rel_path)):
                documents.append((rel_path, project.sources[rel_path], False))
        return documents

    if project.ecosystem == Ecosystem.HTML:
        candidates = project.html_files
    elif project.ecosystem == Ecosystem.REACT:
        candidates = ["public/index.html", "index.html"]
    else:
        candidates = ["src/index.html"]
    for rel_path in candidates:
        content = project.read(rel_path)
        if content is not None:
            documents.append((rel_path, content, True))
    return documents


def script_sources(project: ProjectContext) -> List[Tuple[str, str]]:
    """Components that inject the GTM script themselves (React and Angular)."""
    if project.ecosystem == Ecosystem.REACT:
        extensions = (".ts", ".tsx", ".js", ".jsx")
    elif project.ecosystem == Ecosystem.ANGULAR:
        extensions = (".ts",)
    else:
        return []
    return [
        (rel_path, content)
        for rel_path, content in project.sources.items()
        if rel_path.startswith("src/") and rel_path.endswith(extensions) and GTM_SCRIPT.search(content)
    ]


@rule
class GtmInstalledRule(Rule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-GTM-001",
            name="GTM not installed",
            description="Detects projects without a Google Tag Manager container.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact=(
                "Without GTM, tracking and analytics cannot collect data. This impacts marketing "
                "measurement, conversion tracking, and data-driven SEO decisions."
            ),
            recommended_fix=INSTALL_FIX[Ecosystem.HTML],
            auto_fixable=True,
        )

    def finalize(self, project: ProjectContext) -> Generator[Finding, None, None]:
        if project.ecosystem == Ecosystem.HTML and not project.html_files:
            return
        if any(has_gtm(content) for _, content, _ in container_documents(project)):
            return
        if script_sources(project):
            return
        if project.ecosystem == Ecosystem.NEXTJS and any(
            "@next/third-parties/google" in project.sources[p] for p in project.files_under(*ROUTE_DIRS)
        ):
            return
        yield self.create_finding(
            self._target(project), 1,
            problem="Google Tag Manager is not installed",
            recommended_fix=INSTALL_FIX[project.ecosystem],
        )

    def _target(self, project: ProjectContext) -> str:
        if project.ecosystem == Ecosystem.NEXTJS:
            return next((p for p in NEXT_TARGETS if project.exists(p)), "app/layout.tsx")
        if project.ecosystem == Ecosystem.REACT:
            return "public/index.html" if project.exists("public/index.html") else "index.html"
        if project.ecosystem == Ecosystem.ANGULAR:
            return "src/index.html"
        return project.html_files[0]


@rule
class GtmSnippetRule(Rule):
    """
    Checks that both halves of the GTM snippet are present, placed where
    Google expects them and pointing at the same container.
    """

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-GTM-002",
            name="GTM snippet placement",
            description="Detects incomplete, misplaced or inconsistent GTM snippets.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact=(
                "The noscript iframe ensures GTM fires for users with JavaScript disabled. "
                "Missing it reduces tracking coverage."
            ),
            recommended_fix="Add the GTM noscript iframe immediately after the opening <body> tag.",
            auto_fixable=True,
        )

    def finalize(self, project: ProjectContext) -> Generator[Finding, None, None]:
        for rel_path, content, is_html in container_documents(project):
            if has_gtm(content):
                yield from self._check(rel_path, content, is_html)

    def _check(self, rel_path: str, content: str, is_html: bool) -> Generator[Finding, None, None]:
        lines = content.split("\n")
        script = bool(GTM_SCRIPT.search(content))
        noscript = bool(GTM_NOSCRIPT.search(content))

        if script and not noscript:
            yield self.create_finding(
                rel_path, find_line(lines, "googletagmanager.com/gtm.js"),
                problem="GTM script tag found but noscript fallback is missing",
            )
        if noscript and not script:
            yield self.create_finding(
                rel_path, find_line(lines, "googletagmanager.com/ns.html"),
                problem="GTM noscript iframe found but main script tag is missing",
                impact=(
                    "Without the main GTM script, tags will not fire for JavaScript-enabled "
                    "users. Analytics and tracking will not work."
                ),
                recommended_fix="Add the GTM script tag inside the <head> section.",
                severity=Severity.HIGH,
            )

        if is_html and script:
            head = re.search(r"<head[^>]*>([\s\S]*?)</head>", content, re.IGNORECASE)
            if head and not GTM_SCRIPT.search(head.group(1)):
                yield self.create_finding(
                    rel_path, find_line(lines, "googletagmanager.com/gtm.js"),
                    problem="GTM script is not placed inside the <head> section",
                    impact=(
                        "GTM should load as early as possible in the <head> for optimal data "
                        "collection. Placing it elsewhere delays tag firing."
                    ),
                    recommended_fix="Move the GTM script tag inside the <head> section, as high as possible.",
                    auto_fix=False,
                )

        if is_html and noscript:
            body = re.search(r"<body[^>]*>([\s\S]{0,500})", content, re.IGNORECASE)
            if body and not GTM_NOSCRIPT.search(body.group(1)):
                yield self.create_finding(
                    rel_path, find_line(lines, "googletagmanager.com/ns.html"),
                    problem="GTM noscript iframe is not placed immediately after the opening <body> tag",
                    impact=(
                        "Google recommends placing the noscript fallback immediately after <body> "
                        "for reliable fallback tracking."
                    ),
                    recommended_fix="Move the GTM noscript iframe to immediately after the opening <body> tag.",
                    severity=Severity.LOW,
                    auto_fix=False,
                )

        ids: List[str] = []
        for found in SCRIPT_ID.findall(content) + NOSCRIPT_ID.findall(content):
            if found not in ids:
                ids.append(found)
        if len(ids) > 1:
            yield self.create_finding(
                rel_path, find_line(lines, "googletagmanager.com"),
                problem=f"Mismatched GTM IDs found: {', '.join(ids)}",
                impact=(
                    "Different GTM container IDs in the script and noscript tags will cause "
                    "inconsistent tracking and split analytics data."
                ),
                recommended_fix="Use the same GTM container ID in both the script and noscript tags.",
                severity=Severity.HIGH,
                auto_fix=False,
            )


@rule
class GtmContainerIdRule(Rule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-GTM-003",
            name="Hard-coded GTM container ID",
            description="Detects GTM container IDs written into the source.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.LOW,
            impact=(
                "Hardcoded IDs make it difficult to manage different GTM containers across "
                "environments (dev, staging, production)."
            ),
            recommended_fix=(
                "Use an environment variable (e.g., NEXT_PUBLIC_GTM_ID, VITE_GTM_ID, "
                "REACT_APP_GTM_ID) for the GTM container ID."
            ),
        )

    def finalize(self, project: ProjectContext) -> Generator[Finding, None, None]:
        seen = set()
        documents = [(p, c) for p, c, _ in container_documents(project) if has_gtm(c)]
        for rel_path, content in documents + script_sources(project):
            if rel_path in seen:
                continue
            seen.add(rel_path)
            line = self._hardcoded_line(content)
            if line is not None:
                yield self.create_finding(
                    rel_path, line,
                    problem="GTM container ID is hardcoded instead of using an environment variable",
                )

    def _hardcoded_line(self, content: str) -> Optional[int]:
        match = HARDCODED_ID.search(content)
        if not match:
            return None
        if any(name in content for name in ENV_VAR_NAMES):
            return None
        if "process.env." in content or "import.meta.env." in content:
            return None
        return find_line(content.split("\n"), match.group(0))
