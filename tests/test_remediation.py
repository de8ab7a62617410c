"""
Tests for the fix handlers and the fix orchestrator.
"""

import difflib
import io
import json
import os
import sys

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from markupaudit.config import AuditConfig
from markupaudit.core.domains import ACCESSIBILITY, SEO
from markupaudit.core.engine import AuditEngine
from markupaudit.core.findings import Finding, Severity
from markupaudit.core.report import build_report, write_report
from markupaudit.errors import HandlerError, ReportNotFoundError
from markupaudit.remediation import fixers
from markupaudit.remediation.dispatch import (
    InProcessDispatcher, SubprocessDispatcher, main as dispatch_main,
)
from markupaudit.remediation.engine import (
    NO_REMEDY, FixOrchestrator, LineTracker, map_line, select_findings,
)
from markupaudit.remediation.fixers import (
    PLACEHOLDER_NOTE, HandlerResult, get_fixer, verify_coverage,
)


def make_finding(category, file, line, problem, auto_fix=True, severity=Severity.HIGH,
                 recommended_fix="Fix it", finding_id="A11Y-001"):
    return Finding(
        severity=severity,
        category=category,
        file=file,
        line=line,
        problem=problem,
        impact="Users are affected",
        recommended_fix=recommended_fix,
        auto_fix_possible=auto_fix,
        id=finding_id,
    )


def write(root, rel_path, content):
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)
    return path


def read(path):
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def apply(domain, finding, root):
    return get_fixer(domain, finding.category).apply(finding, str(root))


CARD = (
    "export const Card = ({ open }) => (\n"
    "  <div className=\"wrapper\">\n"
    "    <img src=\"/photo.jpg\" />\n"
    "    <div className=\"card\" onClick={open}>\n"
    "      Open\n"
    "    </div>\n"
    "  </div>\n"
    ");\n"
)


class TestRegistry:
    """Tests for handler registration."""

    def test_coverage(self):
        verify_coverage()

    def test_manual_only_categories_have_no_handler(self):
        assert get_fixer("a11y", "dynamic") is None
        assert get_fixer("seo", "rendering") is None

    def test_missing_handler_detected(self, monkeypatch):
        monkeypatch.delitem(fixers._fixers, ("seo", "gtm"))
        with pytest.raises(RuntimeError) as exc:
            verify_coverage()
        assert "seo/gtm" in str(exc.value)


class TestImageHandler:
    """Tests for the accessibility image handler."""

    def test_decorative_icon(self, tmp_path):
        """Test that an icon image gets an empty alt."""
        original = '<nav>\n  <img src="/icons/close.svg" />\n</nav>\n'
        path = write(tmp_path, "src/Nav.jsx", original)
        finding = make_finding(
            "images", "src/Nav.jsx", 2,
            'Likely decorative <img> missing alt="" (src or class suggests icon/decoration)',
            severity=Severity.MEDIUM,
        )

        result = apply("a11y", finding, tmp_path)

        assert result.success
        assert result.action == 'Added alt="" to decorative image. (src/Nav.jsx line 2)'
        assert read(path) == '<nav>\n  <img alt="" src="/icons/close.svg" />\n</nav>\n'
        assert read(str(path) + ".bak") == original

    def test_placeholder_alt(self, tmp_path):
        path = write(tmp_path, "src/Card.jsx", CARD)
        finding = make_finding("images", "src/Card.jsx", 3, "<img> tag missing alt attribute")

        result = apply("a11y", finding, tmp_path)

        assert result.success
        assert PLACEHOLDER_NOTE in result.action
        assert '<img alt="TODO: describe image" src="/photo.jpg" />' in read(path)

    def test_second_run_is_already_fixed(self, tmp_path):
        path = write(tmp_path, "src/Card.jsx", CARD)
        finding = make_finding("images", "src/Card.jsx", 3, "<img> tag missing alt attribute")

        apply("a11y", finding, tmp_path)
        fixed = read(path)
        result = apply("a11y", finding, tmp_path)

        assert not result.success
        assert result.reason.startswith("Already fixed")
        assert read(path) == fixed
        assert read(str(path) + ".bak") == CARD

    def test_crlf_preserved(self, tmp_path):
        path = write(tmp_path, "index.html", '<body>\r\n<img src="/a.png">\r\n</body>\r\n')
        finding = make_finding("images", "index.html", 2, "<img> tag missing alt attribute")

        assert apply("a11y", finding, tmp_path).success
        assert read(path) == '<body>\r\n<img alt="TODO: describe image" src="/a.png">\r\n</body>\r\n'


class TestSemanticsHandler:
    """Tests for converting clickable elements to buttons."""

    def problem(self, tag="div"):
        return f"<{tag}> with onClick handler used as interactive control without semantic role"

    def test_div_to_button(self, tmp_path):
        path = write(tmp_path, "src/Card.jsx", CARD)
        finding = make_finding("semantics", "src/Card.jsx", 4, self.problem())

        result = apply("a11y", finding, tmp_path)
        content = read(path)

        assert result.success
        assert '<button type="button" className="card" onClick={open}>' in content
        assert "    </button>\n  </div>" in content
        assert content.count("<div") == 1

    def test_missing_closing_tag(self, tmp_path):
        original = '<section>\n  <div onClick={go}>\n    Open\n</section>\n'
        path = write(tmp_path, "src/Broken.jsx", original)
        finding = make_finding("semantics", "src/Broken.jsx", 2, self.problem())

        result = apply("a11y", finding, tmp_path)

        assert not result.success
        assert result.reason == "Could not find closing </div> tag."
        assert read(path) == original
        assert not os.path.exists(str(path) + ".bak")

    def test_nested_interactive_element(self, tmp_path):
        original = '<div onClick={go}>\n  <a href="/more">More</a>\n</div>\n'
        path = write(tmp_path, "src/Tile.jsx", original)
        finding = make_finding("semantics", "src/Tile.jsx", 1, self.problem())

        result = apply("a11y", finding, tmp_path)

        assert not result.success
        assert result.reason == (
            "Nested interactive element <a> detected; cannot safely convert <div> to <button>."
        )
        assert read(path) == original

    def test_role_gets_tabindex(self, tmp_path):
        path = write(tmp_path, "index.html", '<span role="button" onclick="go()">Go</span>\n')
        finding = make_finding(
            "semantics", "index.html", 1,
            "<span> with role but missing tabindex for keyboard accessibility",
        )

        assert apply("a11y", finding, tmp_path).success
        assert read(path).startswith('<span tabindex="0" role="button"')

    def test_unhandled_problem(self, tmp_path):
        write(tmp_path, "index.html", "<h1>A</h1>\n<h1>B</h1>\n")
        finding = make_finding("semantics", "index.html", 2, "Multiple <h1> tags found (2)")

        result = apply("a11y", finding, tmp_path)
        assert result.reason == "This Semantics issue requires manual review."


class TestOtherAccessibilityHandlers:
    """Tests for names, forms, ARIA, keyboard and pattern handlers."""

    def test_icon_button_name(self, tmp_path):
        path = write(tmp_path, "src/Close.jsx", '<button type="button"><svg /></button>\n')
        finding = make_finding(
            "accessible-names", "src/Close.jsx", 1, "Icon-only button missing accessible name",
        )

        assert apply("a11y", finding, tmp_path).success
        assert read(path).startswith('<button aria-label="TODO: label" type="button">')

    def test_label_from_placeholder(self, tmp_path):
        path = write(tmp_path, "src/Form.jsx", '<input type="email" placeholder="Email" />\n')
        finding = make_finding(
            "forms", "src/Form.jsx", 1, "<input> uses placeholder as its only label",
        )

        result = apply("a11y", finding, tmp_path)

        assert result.action == (
            'Added aria-label="Email" to <input> from its placeholder. (src/Form.jsx line 1)'
        )
        assert read(path) == '<input aria-label="Email" type="email" placeholder="Email" />\n'

    def test_redundant_role(self, tmp_path):
        path = write(tmp_path, "index.html", '<nav role="navigation">links</nav>\n')
        finding = make_finding(
            "aria", "index.html", 1,
            "Redundant role=\"navigation\" on <nav> — this is the element's implicit role",
        )

        assert apply("a11y", finding, tmp_path).success
        assert read(path) == "<nav>links</nav>\n"

    def test_positive_tabindex(self, tmp_path):
        path = write(tmp_path, "src/List.jsx", '<div tabIndex="3">x</div>\n')
        finding = make_finding(
            "keyboard", "src/List.jsx", 1,
            'tabindex="3" — positive tabindex disrupts natural focus order',
        )

        result = apply("a11y", finding, tmp_path)

        assert result.action == "Changed tabindex 3 to 0. (src/List.jsx line 1)"
        assert read(path) == '<div tabIndex="0">x</div>\n'

    def test_key_handler_tabindex_in_jsx(self, tmp_path):
        path = write(tmp_path, "src/Row.jsx", "<div onKeyDown={key}>x</div>\n")
        finding = make_finding(
            "keyboard", "src/Row.jsx", 1,
            "<div> has keyboard handler but no tabindex — not keyboard-focusable",
        )

        assert apply("a11y", finding, tmp_path).success
        assert read(path) == "<div tabIndex={0} onKeyDown={key}>x</div>\n"

    def test_modal_gets_dialog_role(self, tmp_path):
        path = write(tmp_path, "src/Modal.jsx", '<div className="modal-backdrop">x</div>\n')
        finding = make_finding(
            "patterns", "src/Modal.jsx", 1,
            'Modal/dialog container missing role="dialog" or role="alertdialog"',
        )

        assert apply("a11y", finding, tmp_path).success
        assert read(path).startswith('<div role="dialog" aria-modal="true" className="modal-backdrop">')

    def test_missing_file(self, tmp_path):
        finding = make_finding("images", "src/Missing.jsx", 1, "<img> tag missing alt attribute")
        result = apply("a11y", finding, tmp_path)
        assert result.reason == "File not found: src/Missing.jsx"

    def test_outside_project_root(self, tmp_path):
        root = tmp_path / "site"
        root.mkdir()
        write(tmp_path, "outside.html", '<img src="/a.png">\n')
        finding = make_finding("images", "../outside.html", 1, "<img> tag missing alt attribute")

        result = apply("a11y", finding, root)

        assert not result.success
        assert result.reason.startswith("Refusing to edit ../outside.html")


class TestSeoHandlers:
    """Tests for the SEO handlers."""

    def test_empty_title(self, tmp_path):
        path = write(tmp_path, "index.html", "<html><head><title></title></head></html>\n")
        finding = make_finding("title", "index.html", 1, "Empty <title> tag", finding_id="SEO-001")

        assert apply("seo", finding, tmp_path).success
        assert "<title>TODO: page title</title>" in read(path)

    def test_metadata_title(self, tmp_path):
        path = write(
            tmp_path, "app/layout.tsx",
            "import './globals.css';\n"
            "import { Inter } from 'next/font/google';\n"
            "\n"
            "export default function RootLayout({ children }) {\n"
            "  return <html lang=\"en\"><body>{children}</body></html>;\n"
            "}\n",
        )
        finding = make_finding(
            "title", "app/layout.tsx", 1, "Layout file missing metadata title or generateMetadata",
            finding_id="SEO-001",
        )

        result = apply("seo", finding, tmp_path)
        content = read(path)

        assert result.action == (
            "Added a metadata export with a title. " + PLACEHOLDER_NOTE + " (app/layout.tsx line 1)"
        )
        assert (
            "from 'next/font/google';\n\n"
            "export const metadata = {\n  title: 'TODO: page title',\n};\n"
        ) in content

    def test_metadata_refused_in_client_component(self, tmp_path):
        write(tmp_path, "app/page.tsx", "'use client';\nexport default function Page() {}\n")
        finding = make_finding(
            "meta-description", "app/page.tsx", 1,
            "Page missing meta description in metadata export", finding_id="SEO-001",
        )

        result = apply("seo", finding, tmp_path)

        assert not result.success
        assert result.reason.startswith("Client components cannot export metadata")

    def test_meta_description_tag(self, tmp_path):
        path = write(tmp_path, "index.html", "<html>\n<head>\n</head>\n</html>\n")
        finding = make_finding(
            "meta-description", "index.html", 1, "HTML file missing meta description tag",
            finding_id="SEO-001",
        )

        assert apply("seo", finding, tmp_path).success
        assert '<head>\n  <meta name="description" content="TODO: page description">' in read(path)

    def test_skipped_heading(self, tmp_path):
        path = write(tmp_path, "index.html", "<h2>A</h2>\n<h4>\n  B\n</h4>\n")
        finding = make_finding(
            "headings", "index.html", 2, "Skipped heading level: H2 → H4 (expected H3)",
            finding_id="SEO-001",
        )

        assert apply("seo", finding, tmp_path).success
        assert read(path) == "<h2>A</h2>\n<h3>\n  B\n</h3>\n"

    def test_main_landmark(self, tmp_path):
        path = write(
            tmp_path, "index.html",
            "<body>\n<header>Top</header>\n<p>Text</p>\n<footer>End</footer>\n</body>\n",
        )
        finding = make_finding(
            "semantic-html", "index.html", 1, "Missing <main> landmark element", finding_id="SEO-001",
        )

        assert apply("seo", finding, tmp_path).success
        assert read(path) == (
            "<body>\n<header>Top</header>\n<main>\n<p>Text</p>\n</main>\n<footer>End</footer>\n</body>\n"
        )

    def test_main_landmark_not_added_to_components(self, tmp_path):
        write(tmp_path, "src/App.jsx", "<div>App</div>\n")
        finding = make_finding(
            "semantic-html", "src/App.jsx", 1, "Missing <main> landmark element", finding_id="SEO-001",
        )
        assert not apply("seo", finding, tmp_path).success

    def test_url_structure_declined(self, tmp_path):
        write(tmp_path, "app/My_Page/page.tsx", "export default function Page() {}\n")
        finding = make_finding(
            "url-structure", "app/My_Page/page.tsx", 1, "Route segment uses underscores",
            finding_id="SEO-001",
        )

        result = apply("seo", finding, tmp_path)
        assert result.reason.startswith("Renaming a route changes a public URL")

    def test_next_image(self, tmp_path):
        path = write(tmp_path, "app/page.tsx", 'export default () => <img src="/a.png" alt="A">;\n')
        finding = make_finding(
            "images", "app/page.tsx", 1, "Using native <img> tag instead of next/image component",
            finding_id="SEO-001",
        )

        assert apply("seo", finding, tmp_path).success
        assert read(path) == (
            "import Image from 'next/image';\n"
            'export default () => <Image src="/a.png" alt="A" />;\n'
        )

    def test_next_link(self, tmp_path):
        path = write(
            tmp_path, "app/page.tsx",
            "import React from 'react';\nexport default () => <a href=\"/about\">About</a>;\n",
        )
        finding = make_finding(
            "internal-links", "app/page.tsx", 2,
            'Using <a href="/about"> for internal navigation instead of next/link',
            finding_id="SEO-001",
        )

        assert apply("seo", finding, tmp_path).success
        assert read(path) == (
            "import React from 'react';\nimport Link from 'next/link';\n"
            "export default () => <Link href=\"/about\">About</Link>;\n"
        )

    def test_gtm_install_html(self, tmp_path):
        path = write(
            tmp_path, "index.html",
            "<html>\n<head>\n  <title>Home</title>\n</head>\n<body>\n  <h1>Home</h1>\n</body>\n</html>\n",
        )
        finding = make_finding(
            "gtm", "index.html", 1, "Google Tag Manager is not installed", finding_id="SEO-001",
        )

        result = apply("seo", finding, tmp_path)
        content = read(path)

        assert result.success
        assert content.index("<!-- Google Tag Manager -->") < content.index("</head>")
        assert content.index("ns.html?id=GTM-XXXXXXX") > content.index("<body>")
        assert "googletagmanager.com/gtm.js?id=" in content

        again = apply("seo", finding, tmp_path)
        assert again.reason == "Already fixed: the GTM snippet is present."

    def test_gtm_install_next(self, tmp_path):
        path = write(
            tmp_path, "app/layout.tsx",
            "export default function RootLayout({ children }) {\n"
            "  return (\n"
            "    <html lang=\"en\">\n"
            "      <body>\n"
            "        {children}\n"
            "      </body>\n"
            "    </html>\n"
            "  );\n"
            "}\n",
        )
        finding = make_finding(
            "gtm", "app/layout.tsx", 1, "Google Tag Manager is not installed", finding_id="SEO-001",
        )

        result = apply("seo", finding, tmp_path)
        content = read(path)

        assert "NEXT_PUBLIC_GTM_ID" in result.action
        assert content.startswith("import Script from 'next/script';\n")
        assert '<Script id="gtm" strategy="afterInteractive">' in content
        assert "process.env.NEXT_PUBLIC_GTM_ID" in content
        assert read(tmp_path / ".env.example") == "NEXT_PUBLIC_GTM_ID=GTM-XXXXXXX\n"


class TestLineTracking:
    """Tests for keeping report lines valid across edits."""

    def opcodes(self, before, after):
        return difflib.SequenceMatcher(
            None, before.split("\n"), after.split("\n"), autojunk=False
        ).get_opcodes()

    def test_map_line_after_insert(self):
        ops = self.opcodes("a\nb\nc", "a\nnew\nb\nc")
        assert map_line(ops, 0) == 0
        assert map_line(ops, 1) == 2
        assert map_line(ops, 2) == 3

    def test_map_line_after_delete(self):
        ops = self.opcodes("a\nb\nc\nd", "a\nd")
        assert map_line(ops, 3) == 1

    def test_tracker(self):
        tracker = LineTracker()
        tracker.record("index.html", "a\nb", "x\ny\na\nb")
        tracker.record("index.html", "x\ny\na\nb", "x\ny\na\nz\nb")

        assert tracker.current_line("index.html", 2) == 5
        assert tracker.current_line("other.html", 2) == 2


@pytest.fixture
def a11y_project(tmp_path):
    write(tmp_path, "src/Card.jsx", CARD)
    findings = [
        make_finding("images", "src/Card.jsx", 3, "<img> tag missing alt attribute",
                     recommended_fix="Add alt text"),
        make_finding("semantics", "src/Card.jsx", 4,
                     "<div> with onClick handler used as interactive control without semantic role"),
        make_finding("keyboard", "src/Card.jsx", 4,
                     "Mouse-only event handler without keyboard equivalent", auto_fix=False),
        make_finding("dynamic", "src/Card.jsx", 2,
                     "Toast/notification element missing aria-live or role=\"status\"",
                     auto_fix=False, recommended_fix="Add role=\"status\""),
    ]
    report = build_report(ACCESSIBILITY, findings, "react", str(tmp_path))
    write_report(ACCESSIBILITY, report, str(tmp_path))
    return tmp_path


class TestFixOrchestrator:
    """Tests for FixOrchestrator."""

    def test_run_all(self, a11y_project):
        orchestrator = FixOrchestrator("a11y", str(a11y_project))
        result = orchestrator.run("all")
        content = read(a11y_project / "src" / "Card.jsx")

        assert [o.id for o in result.fixed] == ["A11Y-001", "A11Y-002"]
        assert [o.id for o in result.skipped] == ["A11Y-003"]
        assert result.skipped[0].reason == NO_REMEDY
        assert [o.id for o in result.manual_review] == ["A11Y-004"]
        assert result.manual_review[0].reason == ACCESSIBILITY.manual_reason
        assert result.manual_review[0].recommendation == 'Add role="status"'
        assert result.counts == {"fixed": 2, "skipped": 1, "manualReview": 1}
        assert '<button type="button" className="card" onClick={open}>' in content
        assert 'alt="TODO: describe image"' in content
        assert os.path.exists(str(a11y_project / "src" / "Card.jsx.bak"))
        assert orchestrator.report_path == str(a11y_project / "a11y-fix-report.md")
        assert read(orchestrator.report_path).startswith("# Accessibility Fix Report")

    def test_second_run_changes_nothing(self, a11y_project):
        FixOrchestrator("a11y", str(a11y_project)).run("all")
        fixed = read(a11y_project / "src" / "Card.jsx")

        result = FixOrchestrator("a11y", str(a11y_project)).run("all")

        assert result.fixed == []
        assert all(o.reason.startswith("Already fixed") for o in result.skipped[:2])
        assert read(a11y_project / "src" / "Card.jsx") == fixed

    def test_dry_run_touches_nothing(self, a11y_project):
        orchestrator = FixOrchestrator("a11y", str(a11y_project))
        result = orchestrator.run("all", dry_run=True)

        assert [o.action for o in result.fixed] == ["Would apply: Fix it", "Would apply: Add alt text"]
        assert all(o.dry_run for o in result.fixed)
        assert read(a11y_project / "src" / "Card.jsx") == CARD
        assert not os.path.exists(str(a11y_project / "src" / "Card.jsx.bak"))
        assert not os.path.exists(str(a11y_project / "a11y-fix-report.md"))
        assert orchestrator.report_path is None

    def test_select_by_id(self, a11y_project):
        result = FixOrchestrator("a11y", str(a11y_project)).run("a11y-001")

        assert result.total_targeted == 1
        assert [o.id for o in result.fixed] == ["A11Y-001"]
        assert "<img src=\"/photo.jpg\" />" in read(a11y_project / "src" / "Card.jsx")

    def test_select_by_category(self, a11y_project):
        result = FixOrchestrator("a11y", str(a11y_project)).run("Images")
        assert [o.id for o in result.fixed] == ["A11Y-002"]

    def test_no_match(self, a11y_project):
        result = FixOrchestrator("a11y", str(a11y_project)).run("forms")

        assert result.message == "No issues found matching filter: forms"
        assert result.total_targeted == 0
        assert not os.path.exists(str(a11y_project / "a11y-fix-report.md"))

    def test_failing_handler_only_skips_its_finding(self, a11y_project):
        class CrashingDispatcher(InProcessDispatcher):
            def dispatch(self, finding, project_root):
                if finding.category == "semantics":
                    raise RuntimeError("boom")
                return super().dispatch(finding, project_root)

        orchestrator = FixOrchestrator(
            ACCESSIBILITY, str(a11y_project), dispatcher=CrashingDispatcher("a11y"),
        )
        result = orchestrator.run("all")

        assert [o.id for o in result.fixed] == ["A11Y-002"]
        crashed = [o for o in result.skipped if o.id == "A11Y-001"]
        assert crashed[0].reason == "Fix failed: boom"

    def test_html_onclick_div_becomes_button(self, tmp_path):
        path = write(
            tmp_path, "index.html",
            "<!DOCTYPE html>\n<html lang=\"en\">\n<head><title>Home</title></head>\n<body>\n"
            "  <div class=\"x\" onclick=\"go()\">Go</div>\n</body>\n</html>\n",
        )
        report = AuditEngine(AuditConfig(framework="html", max_workers=1)).audit(str(tmp_path))
        write_report(ACCESSIBILITY, report, str(tmp_path))
        clickable = [
            f.id for f in report.issues
            if "onClick handler used as interactive control" in f.problem
        ]

        result = FixOrchestrator("a11y", str(tmp_path)).run("semantics")

        assert len(clickable) == 1
        assert clickable[0] in [o.id for o in result.fixed]
        assert '<button type="button" class="x" onclick="go()">Go</button>' in read(path)

    def test_action_names_file_and_line(self, tmp_path):
        """Test the decorative icon scenario from audit to fix."""
        path = write(tmp_path, "index.html", '<ul>\n  <img src="/icons/close.svg">\n</ul>\n')
        report = AuditEngine(AuditConfig(framework="html", max_workers=1)).audit(str(tmp_path))
        write_report(ACCESSIBILITY, report, str(tmp_path))

        result = FixOrchestrator("a11y", str(tmp_path)).run("images")

        assert 'Added alt="" to decorative image. (index.html line 2)' in [
            o.action for o in result.fixed
        ]
        assert '<img alt="" src="/icons/close.svg">' in read(path)

    def test_missing_report(self, tmp_path):
        with pytest.raises(ReportNotFoundError):
            FixOrchestrator("seo", str(tmp_path)).run("all")

    def test_earlier_fix_shifts_later_line(self, tmp_path):
        path = write(
            tmp_path, "index.html",
            "<!DOCTYPE html>\n<html>\n<head>\n</head>\n<body>\n"
            "  <h1>Main</h1>\n  <h1>Second</h1>\n</body>\n</html>\n",
        )
        findings = [
            make_finding("headings", "index.html", 7,
                         "Multiple H1 tags found (2 total). Only one H1 per page is recommended."),
            make_finding("title", "index.html", 1, "HTML file missing <title> tag"),
        ]
        write_report(SEO, build_report(SEO, findings, "html", str(tmp_path)), str(tmp_path))

        result = FixOrchestrator("seo", str(tmp_path)).run("all")
        content = read(path)

        assert result.counts["fixed"] == 2
        assert "<title>TODO: page title</title>" in content
        assert "<h1>Main</h1>" in content
        assert "<h2>Second</h2>" in content

    def test_rendering_goes_to_manual_review(self, tmp_path):
        findings = [make_finding("rendering", "app/page.tsx", 1, "'use client' on a page")]
        write_report(SEO, build_report(SEO, findings, "nextjs", str(tmp_path)), str(tmp_path))

        result = FixOrchestrator("seo", str(tmp_path)).run("all")

        assert result.manual_review[0].reason == SEO.manual_reason

    def test_select_findings(self):
        findings = build_report(ACCESSIBILITY, [
            make_finding("images", "a.jsx", 1, "x"),
            make_finding("forms", "a.jsx", 2, "y"),
        ], "react", "/").issues

        assert len(select_findings(ACCESSIBILITY, findings, "ALL")) == 2
        assert [f.category for f in select_findings(ACCESSIBILITY, findings, "A11Y-002")] == ["forms"]
        assert select_findings(ACCESSIBILITY, findings, "SEO-001") == []


class TestDispatch:
    """Tests for handler dispatch."""

    def test_command(self):
        dispatcher = SubprocessDispatcher("seo", timeout=5)
        assert dispatcher.command() == [
            sys.executable, "-m", "markupaudit.remediation.dispatch", "seo",
        ]

    def test_isolated_mode_selects_subprocess(self, tmp_path):
        config = AuditConfig()
        config.remediation.isolated = True
        orchestrator = FixOrchestrator("a11y", str(tmp_path), config)
        assert isinstance(orchestrator.dispatcher, SubprocessDispatcher)

    def test_handler_result_from_dict(self):
        result = HandlerResult.from_dict({"success": False, "reason": "nope"})
        assert result == HandlerResult(False, reason="nope")

        with pytest.raises(HandlerError):
            HandlerResult.from_dict({"ok": True})
        with pytest.raises(HandlerError):
            HandlerResult.from_dict("fixed")

    def test_unknown_category(self, tmp_path):
        finding = make_finding("layout", "index.html", 1, "x")
        with pytest.raises(HandlerError):
            InProcessDispatcher("a11y").dispatch(finding, str(tmp_path))

    def test_main_usage(self, capsys):
        assert dispatch_main([]) == 2
        assert "usage:" in capsys.readouterr().err

    def test_main_applies_fix(self, tmp_path, monkeypatch, capsys):
        path = write(tmp_path, "index.html", '<img src="/a.png">\n')
        finding = make_finding("images", "index.html", 1, "<img> tag missing alt attribute")
        payload = json.dumps({"finding": finding.to_dict(), "projectRoot": str(tmp_path)})
        monkeypatch.setattr(sys, "stdin", io.StringIO(payload))

        assert dispatch_main(["a11y"]) == 0
        assert json.loads(capsys.readouterr().out)["success"] is True
        assert 'alt="TODO: describe image"' in read(path)

    def test_main_rejects_bad_input(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "stdin", io.StringIO('{"projectRoot": "."}'))
        assert dispatch_main(["a11y"]) == 1
        assert "missing 'finding'" in capsys.readouterr().err

    def test_subprocess_dispatch(self, tmp_path):
        path = write(tmp_path, "index.html", '<img src="/icons/x.svg">\n')
        finding = make_finding("images", "index.html", 1, "<img> tag missing alt attribute")

        result = SubprocessDispatcher("a11y", timeout=60).dispatch(finding, str(tmp_path))

        assert result.success
        assert read(path) == '<img alt="" src="/icons/x.svg">\n'

class ScriptedDispatcher(SubprocessDispatcher):
    """Runs an inline script instead of the real handler for some categories."""

    def __init__(self, domain, scripts, timeout=60):
        super().__init__(domain, timeout=timeout)
        self.scripts = scripts
        self.category = None

    def dispatch(self, finding, project_root):
        self.category = finding.category
        return super().dispatch(finding, project_root)

    def command(self):
        script = self.scripts.get(self.category)
        if script is None:
            return super().command()
        return [self.python, "-c", script]


class TestIsolatedFailures:
    """Tests that a failing child process only skips its own finding."""

    @pytest.mark.parametrize("script,reason", [
        ("import sys; sys.exit(1)", "Fix failed: Handler exited with status 1"),
        ("import sys; sys.stderr.write('boom'); sys.exit(3)", "Fix failed: boom"),
        ("print('not json')", "Fix failed: Malformed handler output: 'not json'"),
    ])
    def test_failed_child(self, a11y_project, script, reason):
        dispatcher = ScriptedDispatcher("a11y", {"semantics": script})
        result = FixOrchestrator(ACCESSIBILITY, str(a11y_project), dispatcher=dispatcher).run("all")

        assert [o.id for o in result.fixed] == ["A11Y-002"]
        failed = [o for o in result.skipped if o.id == "A11Y-001"]
        assert failed[0].reason == reason
        assert 'alt="TODO: describe image"' in read(a11y_project / "src" / "Card.jsx")

    def test_timeout(self, a11y_project):
        sleep = "import time; time.sleep(5)"
        dispatcher = ScriptedDispatcher("a11y", {"semantics": sleep, "images": sleep}, timeout=0.5)
        result = FixOrchestrator(ACCESSIBILITY, str(a11y_project), dispatcher=dispatcher).run("all")

        assert result.fixed == []
        timed_out = [o.reason for o in result.skipped if o.id in ("A11Y-001", "A11Y-002")]
        assert timed_out == ["Fix failed: Handler timed out after 0.5s"] * 2
        assert [o.id for o in result.manual_review] == ["A11Y-004"]
        assert read(a11y_project / "src" / "Card.jsx") == CARD
