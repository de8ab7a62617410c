"""
Rendering strategy rules.

Whether a page is server rendered, statically generated or rendered in the
browser decides what crawlers see. Findings in this category always go to
manual review.
"""

import json
import logging
import os
import re
from typing import Generator

from markupaudit.core.rules import Rule, RuleMetadata, ScanContext, ProjectContext, rule
from markupaudit.core.findings import Finding, Severity
from markupaudit.core.sources import PRERENDER_PACKAGES
from markupaudit.rules.seo.common import (
    DOMAIN, APP_DIRS, basename, in_dirs, is_app_route_file, is_dynamic_route, is_pages_route_file
)

logger = logging.getLogger(__name__)

CATEGORY = "rendering"

USE_CLIENT = re.compile(r"^[\"']use client[\"']")
SEO_CONTENT = re.compile(r"<h1|<title|metadata|generateMetadata|<meta", re.IGNORECASE)
UNIVERSAL_PACKAGES = ("@angular/platform-server", "@nguniversal/express-engine", "@angular/ssr")


@rule
class ClientDirectiveRule(Rule):
    """Detects App Router pages and layouts rendered on the client."""

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-RND-001",
            name="Client-rendered page",
            description="Detects 'use client' on App Router pages and layouts.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.CRITICAL,
            impact=(
                "Search engines may not index client-rendered SEO content. Server Components "
                "are preferred for SEO-critical pages."
            ),
            recommended_fix=(
                "Move SEO-critical content to a Server Component. Extract interactive parts "
                "into separate client components."
            ),
            ecosystems=["nextjs"],
        )

    def analyze(self, context: ScanContext) -> Generator[Finding, None, None]:
        if not is_app_route_file(context.rel_path):
            return
        directive = next(
            (i for i, line in enumerate(context.lines) if USE_CLIENT.match(line.strip())), None
        )
        if directive is None:
            return
        if SEO_CONTENT.search(context.content):
            yield self.create_finding(
                context.rel_path, directive + 1,
                problem="Page/layout uses 'use client' but contains SEO-critical content",
            )
        else:
            yield self.create_finding(
                context.rel_path, directive + 1,
                problem="Page/layout uses 'use client' directive",
                impact=(
                    "Client-rendered pages may have delayed indexing. Consider if server "
                    "rendering is more appropriate."
                ),
                recommended_fix=(
                    "Evaluate if this page needs client-side interactivity. If not, remove "
                    "'use client' to leverage Server Components."
                ),
                severity=Severity.MEDIUM,
            )


@rule
class StaticParamsRule(Rule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-RND-002",
            name="Dynamic route without static params",
            description="Detects dynamic App Router pages that are never statically generated.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact=(
                "Without generateStaticParams, dynamic pages use SSR instead of SSG. Static "
                "generation provides faster loading and better crawlability."
            ),
            recommended_fix="Add generateStaticParams() to pre-generate static pages for known paths.",
            ecosystems=["nextjs"],
        )

    def analyze(self, context: ScanContext) -> Generator[Finding, None, None]:
        rel_path = context.rel_path
        if not (is_app_route_file(rel_path) and basename(rel_path).startswith("page")):
            return
        if is_dynamic_route(rel_path) and "generateStaticParams" not in context.content:
            yield self.create_finding(
                rel_path, 1, problem="Dynamic route page missing generateStaticParams"
            )


@rule
class FetchCachingRule(Rule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-RND-003",
            name="fetch() without caching strategy",
            description="Detects server fetch calls that rely on implicit caching defaults.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.LOW,
            impact=(
                "Without explicit cache configuration, fetch behavior depends on defaults. "
                "Explicit caching improves performance and SEO."
            ),
            recommended_fix="Add cache: 'force-cache' for static data, or next: { revalidate: N } for ISR.",
            ecosystems=["nextjs"],
        )

    def analyze(self, context: ScanContext) -> Generator[Finding, None, None]:
        if not in_dirs(context.rel_path, APP_DIRS):
            return
        content = context.content
        for match in re.finditer(r"fetch\s*\(", content):
            window = content[match.start():match.start() + 200]
            if "cache" in window or "revalidate" in window or "next:" in window:
                continue
            yield self.create_finding(
                context.rel_path, context.line_at(match.start()),
                problem="fetch() call without explicit caching strategy",
            )


@rule
class PagesDataFetchingRule(Rule):
    """
    Checks the data fetching method of Pages Router pages.

    API routes under ``pages/api`` are not pages and are skipped.
    """

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-RND-004",
            name="Pages Router data fetching",
            description="Detects pages without pre-rendering or with avoidable SSR.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact=(
                "Page renders client-side only. Content may not be available to search "
                "engine crawlers."
            ),
            recommended_fix="Add getStaticProps for static content or getServerSideProps for dynamic content.",
            ecosystems=["nextjs"],
        )

    def analyze(self, context: ScanContext) -> Generator[Finding, None, None]:
        rel_path = context.rel_path
        if not is_pages_route_file(rel_path) or "/api/" in rel_path:
            return
        content = context.content
        static_props = "getStaticProps" in content
        server_props = "getServerSideProps" in content
        dynamic = is_dynamic_route(rel_path)

        if not static_props and not server_props:
            yield self.create_finding(
                rel_path, 1,
                problem="Page has no data fetching method (getStaticProps or getServerSideProps)",
            )

        if server_props and not dynamic:
            yield self.create_finding(
                rel_path, context.find_line("getServerSideProps"),
                problem="Non-dynamic page uses getServerSideProps instead of getStaticProps",
                impact="SSR is slower than SSG. Static pages load faster and are more reliably indexed.",
                recommended_fix=(
                    "Consider using getStaticProps with revalidate for ISR if data changes "
                    "periodically."
                ),
            )

        if dynamic and static_props and "getStaticPaths" not in content:
            yield self.create_finding(
                rel_path, 1,
                problem="Dynamic route with getStaticProps but missing getStaticPaths",
                impact="Without getStaticPaths, dynamic pages cannot be pre-rendered at build time.",
                recommended_fix="Add getStaticPaths to define which dynamic routes to pre-generate.",
                severity=Severity.HIGH,
            )


@rule
class ReactRenderingRule(Rule):
    """Project-level checks for client-rendered React applications."""

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-RND-005",
            name="React SPA rendering",
            description="Detects React SPAs without metadata management or pre-rendering.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact=(
                "Without server-side metadata rendering, search engines may not see page "
                "titles and descriptions."
            ),
            recommended_fix="Install react-helmet-async for managing document head metadata.",
            ecosystems=["react"],
        )

    def finalize(self, project: ProjectContext) -> Generator[Finding, None, None]:
        deps = project.dependencies

        if "react-helmet" not in deps and "react-helmet-async" not in deps:
            yield self.create_finding(
                "package.json", 1,
                problem="No metadata management library detected (react-helmet or react-helmet-async)",
            )

        if not any(name in deps for name in PRERENDER_PACKAGES):
            yield self.create_finding(
                "package.json", 1,
                problem="React SPA with no pre-rendering strategy detected",
                impact=(
                    "Single Page Applications render content client-side. Search engines may "
                    "not index JavaScript-rendered content reliably."
                ),
                recommended_fix=(
                    "Consider adding react-snap for pre-rendering, or migrating to Next.js/Remix "
                    "for server-side rendering."
                ),
                severity=Severity.CRITICAL,
            )

        yield self.create_finding(
            "package.json", 1,
            problem="Project is a React SPA — SEO capabilities are inherently limited",
            impact=(
                "SPAs rely on client-side JavaScript rendering. While Google can index JavaScript "
                "content, other search engines may not. Initial page load and Time to First "
                "Contentful Paint are slower."
            ),
            recommended_fix=(
                "For SEO-critical applications, consider migrating to Next.js or Remix for "
                "server-side rendering support."
            ),
            severity=Severity.MEDIUM,
        )


@rule
class AngularRenderingRule(Rule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-RND-006",
            name="Angular without SSR",
            description="Detects Angular projects without a working Universal setup.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.CRITICAL,
            impact=(
                "Client-only Angular apps render all content via JavaScript. Search engines "
                "may not index the content."
            ),
            recommended_fix="Add @angular/platform-server and configure Angular Universal for SSR.",
            ecosystems=["angular"],
        )

    def finalize(self, project: ProjectContext) -> Generator[Finding, None, None]:
        deps = project.dependencies
        universal = any(name in deps for name in UNIVERSAL_PACKAGES)

        if not universal:
            yield self.create_finding(
                "package.json", 1,
                problem="Angular project without server-side rendering (Angular Universal not detected)",
            )
            return

        workspace = self._load_workspace(project)
        projects = workspace.get("projects") if isinstance(workspace.get("projects"), dict) else {}
        for name, config in projects.items():
            architect = config.get("architect") if isinstance(config, dict) else None
            if isinstance(architect, dict) and "server" in architect:
                continue
            yield self.create_finding(
                "angular.json", 1,
                problem=f"Project \"{name}\" has Angular Universal dependency but no server build target",
                impact="SSR dependency is installed but not configured. Server-side rendering is not active.",
                recommended_fix="Configure the 'server' build target in angular.json for SSR.",
                severity=Severity.HIGH,
            )

    def _load_workspace(self, project: ProjectContext) -> dict:
        path = os.path.join(project.project_root, "angular.json")
        if not os.path.isfile(path):
            return {}
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Could not parse %s: %s", path, e)
            return {}
        return data if isinstance(data, dict) else {}
