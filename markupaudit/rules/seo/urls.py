"""
URL structure rules.

Route segments come from the Next.js route directories, React Router
``path`` props, Angular route tables and plain HTML file names. None of
these findings are fixed automatically: renaming a route changes a public
URL.
"""

import os
import re
from typing import Generator, List, Optional, Tuple

from markupaudit.core.rules import Rule, RuleMetadata, ScanContext, ProjectContext, rule
from markupaudit.core.findings import Finding, Severity
from markupaudit.core.sources import PRUNED_DIRS
from markupaudit.rules.seo.common import DOMAIN, ROUTE_DIRS
from markupaudit.utils import to_posix

CATEGORY = "url-structure"

# (pattern, message, fix); only the first match per segment is reported.
BAD_URL_PATTERNS: List[Tuple["re.Pattern", str, str]] = [
    (re.compile(r"[A-Z]"), "contains uppercase characters", "Use lowercase-only URL segments"),
    (re.compile(r"_"), "uses underscores", "Replace underscores with hyphens in URL segments"),
    (re.compile(r"\s"), "contains spaces", "Replace spaces with hyphens"),
    (re.compile(r"[^a-zA-Z0-9\-\[\].]"), "contains special characters",
     "Use only lowercase letters, numbers, and hyphens"),
]

UUID_PATTERN = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE)
RANDOM_ID_PATTERN = re.compile(r"^(?=.*\d)[a-z0-9]{20,}$", re.IGNORECASE)
SHORT_SEGMENT_ALLOWED = {"id", "en", "de", "fr", "es", "ja", "zh"}

REACT_ROUTE = re.compile(r"path=[\"']([^\"']+)[\"']")
ANGULAR_ROUTE = re.compile(r"path:\s*['\"]([^'\"]+)['\"]")
ANGULAR_ROUTE_FILE = re.compile(r"routing\.module\.ts$|\.routes\.ts$")


def segment_problem(segment: str) -> Optional[Tuple[str, str]]:
    """(message, fix) for the first formatting problem of a segment."""
    for pattern, message, fix in BAD_URL_PATTERNS:
        if pattern.search(segment):
            return message, fix
    if UUID_PATTERN.search(segment) or RANDOM_ID_PATTERN.match(segment):
        return "looks like a UUID or random ID", "Use a descriptive slug instead of an opaque identifier"
    return None


class RouteSegmentRule(Rule):

    def segment_findings(self, rel_path: str, line: int, path: str) -> Generator[Finding, None, None]:
        for segment in [s for s in path.split("/") if s]:
            if segment.startswith(":") or segment in ("*", "**"):
                continue
            problem = segment_problem(segment)
            if problem:
                message, fix = problem
                yield self.create_finding(
                    rel_path, line,
                    problem=f"Route segment \"{segment}\" {message}",
                    impact="Poorly formatted URLs reduce readability.",
                    recommended_fix=fix,
                )


@rule
class NextRouteSegmentRule(Rule):
    """
    Walks the Next.js route directories.

    Private (``_``) and hidden entries and ``api`` are skipped. Dynamic
    (``[param]``) and group (``(group)``) segments are exempt from the
    formatting checks, but dynamic params named like ``id`` are flagged.
    """

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-URL-001",
            name="Route directory naming",
            description="Detects poorly formatted Next.js route segments.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact="Poorly formatted URLs reduce readability and may affect search rankings.",
            recommended_fix="Use lowercase, hyphenated, descriptive route segments.",
            ecosystems=["nextjs"],
        )

    def finalize(self, project: ProjectContext) -> Generator[Finding, None, None]:
        for root in ROUTE_DIRS:
            directory = os.path.join(project.project_root, root)
            if os.path.isdir(directory):
                yield from self._walk(project, directory, 0)

    def _walk(self, project: ProjectContext, directory: str, depth: int) -> Generator[Finding, None, None]:
        if depth > project.max_depth:
            return
        try:
            entries = sorted(os.listdir(directory))
        except OSError:
            return
        for name in entries:
            if name.startswith((".", "_")) or name in PRUNED_DIRS or name == "api":
                continue
            path = os.path.join(directory, name)
            if not os.path.isdir(path):
                continue
            rel_path = to_posix(os.path.relpath(path, project.project_root))
            yield from self._check_segment(rel_path, name)
            yield from self._walk(project, path, depth + 1)

    def _check_segment(self, rel_path: str, segment: str) -> Generator[Finding, None, None]:
        dynamic = segment.startswith("[") and segment.endswith("]")
        group = segment.startswith("(") and segment.endswith(")")

        if dynamic:
            param = segment[1:-1].replace("...", "")
            if re.match(r"^[a-z]*id$", param, re.IGNORECASE):
                yield self.create_finding(
                    rel_path, 1,
                    problem=f"Dynamic route uses generic ID parameter: [{segment[1:-1]}]",
                    impact="URLs with only numeric IDs are not descriptive. Slugs are preferred for SEO.",
                    recommended_fix="Consider using descriptive slugs (e.g., [slug]) instead of numeric IDs.",
                    severity=Severity.LOW,
                )
            return
        if group:
            return

        problem = segment_problem(segment)
        if problem:
            message, fix = problem
            yield self.create_finding(
                rel_path, 1,
                problem=f"Route segment \"{segment}\" {message}",
                recommended_fix=fix,
            )

        if len(segment) <= 2 and segment.lower() not in SHORT_SEGMENT_ALLOWED:
            yield self.create_finding(
                rel_path, 1,
                problem=f"Route segment \"{segment}\" is too short to be descriptive",
                impact="Short, non-descriptive URL segments provide no context to search engines.",
                recommended_fix="Use descriptive, keyword-rich URL segments.",
                severity=Severity.LOW,
            )


@rule
class ReactRoutePathRule(RouteSegmentRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-URL-002",
            name="React Router paths",
            description="Detects query strings and poorly formatted segments in route paths.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact="Query-based routing is less SEO-friendly than clean URL paths.",
            recommended_fix="Use path-based routing instead of query parameters for content pages.",
            ecosystems=["react"],
        )

    def analyze(self, context: ScanContext) -> Generator[Finding, None, None]:
        for match in REACT_ROUTE.finditer(context.content):
            route = match.group(1)
            line = context.line_at(match.start())
            if "?" in route or "&" in route:
                yield self.create_finding(
                    context.rel_path, line, problem=f"Route uses query parameters: \"{route}\""
                )
            yield from self.segment_findings(context.rel_path, line, route)


@rule
class AngularRoutePathRule(RouteSegmentRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-URL-003",
            name="Angular route paths",
            description="Detects poorly formatted segments in Angular route tables.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact="Poorly formatted URLs reduce readability.",
            recommended_fix="Use lowercase, hyphenated route paths.",
            ecosystems=["angular"],
        )

    def analyze(self, context: ScanContext) -> Generator[Finding, None, None]:
        if not ANGULAR_ROUTE_FILE.search(context.rel_path):
            return
        for match in ANGULAR_ROUTE.finditer(context.content):
            yield from self.segment_findings(
                context.rel_path, context.line_at(match.start()), match.group(1)
            )


@rule
class HtmlFilenameRule(Rule):
    """Static sites map file names straight to URLs; ``index`` files are exempt."""

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-URL-004",
            name="HTML file naming",
            description="Detects HTML file names that make poor URLs.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact="File names directly map to URLs. Clean filenames create clean URLs.",
            recommended_fix="Use lowercase, hyphenated file names.",
            ecosystems=["html"],
        )

    def analyze(self, context: ScanContext) -> Generator[Finding, None, None]:
        filename = context.rel_path.rsplit("/", 1)[-1]
        stem = os.path.splitext(filename)[0]
        if stem == "index":
            return
        problem = segment_problem(stem)
        if problem:
            message, fix = problem
            yield self.create_finding(
                context.rel_path, 1,
                problem=f"Filename \"{filename}\" {message}",
                recommended_fix=fix,
            )
