"""
Tests for the SEO rules.
"""

import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Import rules to register them
import markupaudit.rules  # noqa: F401
from markupaudit.core.domains import SEO
from markupaudit.core.findings import Severity
from markupaudit.core.rules import ProjectContext, ScanContext, registry
from markupaudit.core.sources import Ecosystem


def scan(rule_id, content, rel_path="index.html", ecosystem=Ecosystem.HTML, is_page=True):
    rule = registry.get_rule(rule_id)
    assert rule is not None, rule_id
    context = ScanContext(
        file_path=rel_path,
        rel_path=rel_path,
        content=content,
        ecosystem=ecosystem,
        project_root=".",
        is_page=is_page,
    )
    return list(rule.analyze(context))


def finalize(rule_id, sources, ecosystem=Ecosystem.HTML, project_root="."):
    rule = registry.get_rule(rule_id)
    project = ProjectContext(project_root=project_root, ecosystem=ecosystem, sources=sources)
    return list(rule.finalize(project))


PAGE = """<!DOCTYPE html>
<html>
<head>
  <title>Home</title>
</head>
<body>
  <h1>Welcome</h1>
</body>
</html>
"""


class TestRegistry:
    """Tests for SEO rule registration."""

    def test_every_category_has_rules(self):
        assert registry.categories_for("seo") == set(SEO.category_names)

    def test_rendering_rules_never_auto_fix(self):
        for meta in registry.get_all_metadata("seo"):
            if meta.category == "rendering":
                assert not meta.auto_fixable

    def test_nextjs_rules_filtered_by_ecosystem(self):
        ids = {r.metadata.rule_id for r in registry.get_rules("seo", Ecosystem.HTML)}

        assert "SE-TTL-001" in ids
        assert "SE-IMG-003" not in ids
        assert "SE-RND-001" not in ids


class TestTitleAndMeta:
    """Tests for title and meta description rules."""

    def test_missing_title(self):
        findings = scan("SE-TTL-001", "<html><head></head><body></body></html>")

        assert [f.problem for f in findings] == ["HTML file missing <title> tag"]
        assert findings[0].auto_fix_possible

    def test_empty_title(self):
        content = "<html>\n<head>\n<title> </title>\n</head>\n</html>"
        findings = scan("SE-TTL-001", content)

        assert findings[0].problem == "Empty <title> tag"
        assert findings[0].line == 3

    def test_title_present(self):
        assert scan("SE-TTL-001", PAGE) == []

    def test_title_rule_skips_components(self):
        assert scan("SE-TTL-001", "<div></div>", rel_path="src/App.jsx") == []

    def test_missing_meta_description(self):
        findings = scan("SE-MTA-001", PAGE)
        assert [f.problem for f in findings] == ["HTML file missing meta description tag"]


class TestHeadings:
    """Tests for heading hierarchy."""

    def test_multiple_h1(self):
        content = "<h1>One</h1>\n<p>x</p>\n<h1>Two</h1>\n<h1>Three</h1>"
        findings = scan("SE-HDG-001", content)

        assert [f.line for f in findings] == [3, 4]
        assert findings[0].problem.startswith("Multiple H1 tags found (3 total)")
        assert findings[0].severity == Severity.HIGH

    def test_skipped_level(self):
        findings = scan("SE-HDG-003", "<h1>A</h1>\n<h2>B</h2>\n<h4>C</h4>")

        assert len(findings) == 1
        assert findings[0].problem == "Skipped heading level: H2 → H4 (expected H3)"
        assert findings[0].line == 3

    def test_files_without_headings_are_skipped(self):
        assert scan("SE-HDG-002", "<p>No headings</p>") == []


class TestLandmarks:
    """Tests for semantic landmark rules."""

    def test_missing_main_and_header(self):
        assert [f.problem for f in scan("SE-SEM-001", PAGE)] == ["Missing <main> landmark element"]
        assert [f.problem for f in scan("SE-SEM-002", PAGE)] == ["Missing <header> landmark element"]

    def test_header_not_required_in_nextjs(self):
        findings = scan("SE-SEM-002", "<main></main>", rel_path="app/page.tsx", ecosystem=Ecosystem.NEXTJS)
        assert findings == []

    def test_landmarks_only_checked_on_pages(self):
        assert scan("SE-SEM-001", "<div></div>", is_page=False) == []


class TestImagesAndLinks:
    """Tests for image and link rules."""

    def test_img_missing_alt(self):
        findings = scan("SE-IMG-001", '<img src="/a.png">')
        assert findings[0].problem == "<img> tag missing alt attribute"

    def test_native_img_in_nextjs(self):
        content = "export default function Page() {\n  return <img src=\"/a.png\" alt=\"A\" />;\n}"
        findings = scan("SE-IMG-003", content, rel_path="app/page.tsx", ecosystem=Ecosystem.NEXTJS)

        assert [f.problem for f in findings] == ["Using native <img> tag instead of next/image component"]
        assert findings[0].line == 2

    def test_native_img_allowed_with_next_image(self):
        content = "import Image from 'next/image';\n<img src=\"/a.png\" alt=\"A\" />"
        findings = scan("SE-IMG-003", content, rel_path="app/page.tsx", ecosystem=Ecosystem.NEXTJS)
        assert findings == []

    def test_internal_link_in_nextjs(self):
        content = '<a href="/about">About</a>\n<a href="https://example.com">Out</a>'
        findings = scan("SE-LNK-001", content, rel_path="app/page.tsx", ecosystem=Ecosystem.NEXTJS)

        assert [f.problem for f in findings] == [
            'Using <a href="/about"> for internal navigation instead of next/link'
        ]


class TestGtm:
    """Tests for the project-level Google Tag Manager checks."""

    def test_not_installed(self):
        findings = finalize("SE-GTM-001", {"index.html": PAGE})

        assert len(findings) == 1
        assert findings[0].problem == "Google Tag Manager is not installed"
        assert findings[0].file == "index.html"

    def test_installed(self):
        content = PAGE.replace(
            "</head>",
            "<script src=\"https://www.googletagmanager.com/gtm.js?id=GTM-ABC123\"></script></head>",
        )
        assert finalize("SE-GTM-001", {"index.html": content}) == []

    def test_no_html_files(self):
        assert finalize("SE-GTM-001", {}) == []
