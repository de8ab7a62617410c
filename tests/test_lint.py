"""
Tests for the single-file lint.
"""

import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from markupaudit.lint import lint_file


def write(tmp_path, name, content):
    path = tmp_path / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return str(path)


class TestAccessibilityProfile:
    """Tests for the a11y profile."""

    def test_clean_file(self, tmp_path):
        path = write(tmp_path, "Clean.jsx", '<img src="/a.png" alt="Logo" />\n<button>Go</button>\n')
        assert lint_file(path) == []

    def test_warnings(self, tmp_path):
        path = write(
            tmp_path, "Bad.jsx",
            '<img src="/a.png" />\n'
            '<div onClick={go}>Go</div>\n'
            '<input type="text" />\n'
            '<div tabIndex="2">x</div>\n'
            '<button aria-label="">x</button>\n',
        )
        warnings = lint_file(path, "a11y")

        assert warnings[0] == "⚠ A11Y: <img> tag without alt attribute found (WCAG 1.1.1)"
        assert len(warnings) == 5
        assert all(w.startswith("⚠ A11Y: ") for w in warnings)

    def test_bare_image(self, tmp_path):
        path = write(tmp_path, "index.html", "<img>\n")
        assert lint_file(path) == ["⚠ A11Y: <img> tag without alt attribute found (WCAG 1.1.1)"]

    def test_label_by_for_attribute(self, tmp_path):
        path = write(
            tmp_path, "form.html",
            '<label for="email">Email</label>\n<input id="email" type="email">\n',
        )
        assert lint_file(path) == []

    def test_unlabelled_control_with_id(self, tmp_path):
        path = write(tmp_path, "form.html", '<input id="email" type="email">\n')
        assert lint_file(path) == ["⚠ A11Y: <input> has no associated <label> (WCAG 1.3.1)"]


class TestSeoProfile:
    """Tests for the seo profile."""

    def test_multiple_h1_and_empty_title(self, tmp_path):
        path = write(tmp_path, "index.html", "<title></title>\n<h1>A</h1>\n<h1>B</h1>\n")
        warnings = lint_file(path, "seo")

        assert "⚠ SEO: Multiple H1 tags found (2). Only one H1 per page is recommended" in warnings
        assert "⚠ SEO: Empty <title> tag found" in warnings

    def test_client_page_with_metadata(self, tmp_path):
        path = write(
            tmp_path, "app/page.tsx",
            "'use client'\nexport default function Page() { return <h1>Hi</h1> }\n",
        )
        warnings = lint_file(path, "seo")
        assert any("'use client' directive on page/layout" in w for w in warnings)


class TestUiProfile:
    """Tests for the ui profile."""

    def test_component(self, tmp_path):
        path = write(
            tmp_path, "Widget.tsx",
            "import { useState } from 'react'\n"
            "export const W = () => <button style={{ color: '#fff' }}>x</button>\n",
        )
        warnings = lint_file(path, "ui")

        assert "⚠ UI: React hooks used without 'use client' directive" in warnings
        assert any(w.startswith("⚠ UI: Hardcoded color") for w in warnings)
        assert any("without type attribute" in w for w in warnings)

    def test_only_components(self, tmp_path):
        path = write(tmp_path, "index.html", '<button>x</button>\n')
        assert lint_file(path, "ui") == []


class TestSkipping:
    """Tests for files the lint ignores."""

    def test_wrong_extension(self, tmp_path):
        path = write(tmp_path, "notes.md", '<img src="/a.png">\n')
        assert lint_file(path) == []

    def test_build_directories(self, tmp_path):
        for directory in ("node_modules/pkg", "dist", "build", ".next/server"):
            path = write(tmp_path, f"{directory}/page.jsx", '<img src="/a.png" />\n')
            assert lint_file(path) == []

    def test_missing_file(self, tmp_path):
        assert lint_file(str(tmp_path / "Missing.jsx")) == []

    def test_unknown_profile(self, tmp_path):
        path = write(tmp_path, "App.jsx", '<img src="/a.png" />\n')
        assert lint_file(path, "perf") == []
