"""
Tests for the accessibility rules.
"""

import os
import sys

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Import rules to register them
import markupaudit.rules  # noqa: F401
from markupaudit.core.domains import ACCESSIBILITY
from markupaudit.core.findings import Severity
from markupaudit.core.rules import ScanContext, registry
from markupaudit.core.sources import Ecosystem


def scan(rule_id, content, rel_path="src/components/Widget.jsx",
         ecosystem=Ecosystem.REACT, is_page=False):
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


class TestRegistry:
    """Tests for accessibility rule registration."""

    def test_every_category_has_rules(self):
        """Test that each accessibility category is covered by a rule."""
        assert registry.categories_for("a11y") == set(ACCESSIBILITY.category_names)

    def test_rule_ids_are_prefixed(self):
        for meta in registry.get_all_metadata("a11y"):
            assert meta.rule_id.startswith("AX-")
            assert meta.category in ACCESSIBILITY.category_names

    def test_disabled_glob(self):
        """Test disabling rules with a glob pattern."""
        rules = registry.get_rules("a11y", disabled=["ax-dyn-*"])
        ids = {r.metadata.rule_id for r in rules}

        assert ids
        assert not any(rule_id.startswith("AX-DYN-") for rule_id in ids)


class TestImageRules:
    """Tests for image text alternatives."""

    def test_image_without_alt(self):
        findings = scan("AX-IMG-001", '<img src="/hero.jpg" className="hero" />')

        assert len(findings) == 1
        assert findings[0].problem == "<img> tag missing alt attribute"
        assert findings[0].severity == Severity.CRITICAL
        assert findings[0].auto_fix_possible
        assert findings[0].compliance_tag == "WCAG 1.1.1 (A)"

    def test_decorative_image(self):
        """Test that icon sources get the softer decorative finding."""
        findings = scan("AX-IMG-001", '<div>\n  <img src="/icons/close.svg">\n</div>')

        assert len(findings) == 1
        assert findings[0].problem.startswith("Likely decorative <img>")
        assert findings[0].severity == Severity.MEDIUM
        assert findings[0].line == 2

    def test_bare_image(self):
        findings = scan("AX-IMG-001", "<p>\n  <img>\n</p>")

        assert len(findings) == 1
        assert findings[0].problem == "<img> tag missing alt attribute"
        assert findings[0].line == 2

    def test_image_like_tag_names_are_ignored(self):
        assert scan("AX-IMG-001", "<imgix-picture src=\"/a.png\"></imgix-picture>") == []

    def test_image_with_alt(self):
        assert scan("AX-IMG-001", '<img src="/a.png" alt="">') == []

    def test_next_image_only_for_nextjs(self):
        rule = registry.get_rule("AX-IMG-002")
        assert rule.supports_ecosystem(Ecosystem.NEXTJS)
        assert not rule.supports_ecosystem(Ecosystem.REACT)


class TestSemanticsRules:
    """Tests for semantic structure."""

    def test_clickable_div(self):
        findings = scan("AX-SEM-001", '<div className="card" onClick={open}>Open</div>')

        assert len(findings) == 1
        assert "onClick handler used as interactive control" in findings[0].problem
        assert findings[0].severity == Severity.CRITICAL
        assert findings[0].auto_fix_possible

    def test_clickable_div_with_role(self):
        """Test that a role-bearing element needs tabindex and a key handler."""
        findings = scan("AX-SEM-001", '<span role="button" onClick={go}>Go</span>')
        problems = [f.problem for f in findings]

        assert len(findings) == 2
        assert "<span> with role but missing tabindex for keyboard accessibility" in problems
        keyboard = [f for f in findings if "no keyboard event handler" in f.problem]
        assert keyboard and not keyboard[0].auto_fix_possible

    def test_complete_custom_control(self):
        content = '<div role="button" tabIndex={0} onKeyDown={key} onClick={go}>Go</div>'
        assert scan("AX-SEM-001", content) == []

    def test_heading_outline(self):
        content = "<h1>Title</h1>\n<h1>Again</h1>\n<h3>Deep</h3>"
        findings = scan("AX-SEM-002", content, is_page=True)
        problems = [f.problem for f in findings]

        assert any(p.startswith("Multiple <h1> tags found (2)") for p in problems)
        assert "Skipped heading level: H1 → H3 (expected H2)" in problems

    def test_multiple_h1_only_on_pages(self):
        findings = scan("AX-SEM-002", "<h1>A</h1><h1>B</h1>", is_page=False)
        assert findings == []

    def test_anchor_without_href(self):
        findings = scan("AX-SEM-004", '<a className="link" onClick={go}>Go</a>')
        assert len(findings) == 1


class TestNameRules:
    """Tests for accessible names."""

    @pytest.mark.parametrize("content,problem", [
        ('<button type="button"><svg viewBox="0 0 1 1" /></button>', "Icon-only button missing accessible name"),
        ('<button type="button"></button>', "Button has no accessible name (no text content, aria-label, or title)"),
        ('<button type="button" />', "Self-closing <button /> has no accessible name"),
    ])
    def test_unnamed_buttons(self, content, problem):
        findings = scan("AX-NAM-001", content)
        assert [f.problem for f in findings] == [problem]

    def test_named_buttons(self):
        content = (
            '<button type="button">Save</button>\n'
            '<button type="button" aria-label="Close"><svg /></button>\n'
            '<button type="button" title="Menu"></button>'
        )
        assert scan("AX-NAM-001", content) == []

    def test_empty_aria_label(self):
        findings = scan("AX-NAM-004", '<button aria-label="">Save</button>')
        assert [f.problem for f in findings] == ["Empty aria-label provides no accessible name"]


class TestFormRules:
    """Tests for form labelling."""

    def test_placeholder_only(self):
        findings = scan("AX-FRM-001", '<input type="email" placeholder="Email" />')
        assert findings[0].problem == "<input> uses placeholder as its only label"
        assert findings[0].severity == Severity.HIGH

    def test_unlabelled_select(self):
        findings = scan("AX-FRM-001", "<select name=\"size\"></select>")
        assert findings[0].problem == "<select> has no associated label"

    def test_labelled_controls(self):
        content = (
            '<label>Name <input type="text" /></label>\n'
            '<label htmlFor="email">Email</label>\n'
            '<input id="email" type="email" />\n'
            '<input type="hidden" name="token" />\n'
            '<textarea aria-label="Message"></textarea>'
        )
        assert scan("AX-FRM-001", content) == []


class TestKeyboardAriaAndPatterns:
    """Tests for keyboard, ARIA and widget pattern rules."""

    def test_positive_tabindex(self):
        findings = scan("AX-KBD-001", '<div tabIndex="3">x</div>\n<div tabindex="0">y</div>')

        assert len(findings) == 1
        assert findings[0].problem.startswith('tabindex="3"')
        assert findings[0].line == 1

    def test_key_handler_without_tabindex(self):
        findings = scan("AX-KBD-002", '<div onKeyDown={key} onClick={go}>x</div>')

        assert len(findings) == 1
        assert "has keyboard handler but no tabindex" in findings[0].problem
        assert findings[0].auto_fix_possible

    def test_redundant_role(self):
        findings = scan("AX-ARIA-001", '<nav role="navigation">links</nav>')
        assert findings[0].problem.startswith('Redundant role="navigation" on <nav>')

    def test_modal_without_dialog_role(self):
        findings = scan("AX-PAT-001", '<div className="modal-backdrop">x</div>')
        assert findings[0].problem == 'Modal/dialog container missing role="dialog" or role="alertdialog"'

    def test_dialog_without_modal_or_title(self):
        findings = scan("AX-PAT-001", '<div className="modal" role="dialog">x</div>')
        problems = [f.problem for f in findings]

        assert 'Dialog has role="dialog" but missing aria-modal="true"' in problems
        assert "Dialog missing accessible title (no aria-label or aria-labelledby)" in problems

    def test_dynamic_rules_never_auto_fix(self):
        for meta in registry.get_all_metadata("a11y"):
            if meta.category == "dynamic":
                assert not meta.auto_fixable
