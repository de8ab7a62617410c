"""
Fix handlers for the accessibility domain.

Every non-dynamic category has one handler. Values only a human can supply
(labels, image descriptions) are written as ``TODO:`` placeholders.
"""

import re

from markupaudit.core.domains import ACCESSIBILITY
from markupaudit.core.findings import Finding
from markupaudit.errors import AlreadyFixedError, TargetNotFoundError, UnsafeFixError
from markupaudit.remediation.fixers import (
    BaseFixer, SourceFile, register_fixer, with_placeholder_note,
)
from markupaudit.rules.accessibility.common import KEY_HANDLER, TABINDEX, has_accessible_name
from markupaudit.rules.accessibility.images import HAS_ALT, is_likely_decorative
from markupaudit.rules.accessibility.patterns import DIALOG_ROLE
from markupaudit.rules.accessibility.semantics import CONTROL_ROLE
from markupaudit.utils import get_attribute, has_attribute

LABEL_PLACEHOLDER = 'aria-label="TODO: label"'
ALT_PLACEHOLDER = 'alt="TODO: describe image"'

DIALOG_CLASS = re.compile(
    r"\bclass(?:Name)?\s*=\s*[\"'][^\"']*(modal|dialog|popup|overlay|lightbox)", re.IGNORECASE
)
POSITIVE_TABINDEX = re.compile(r"tabindex\s*=\s*[\"'{]?(\d+)[\"'}]?", re.IGNORECASE)
EMPTY_ARIA_LABEL = re.compile(r"\s*aria-label\s*=\s*[\"']\s*[\"']", re.IGNORECASE)
TITLE_ATTR = re.compile(r"\btitle\s*=\s*[\"'][^\"']+[\"']")
LABEL_FOR = re.compile(r"\b(?:for|htmlFor)\s*=\s*[\"']([^\"']+)[\"']")
ONCLICK_ATTR = re.compile(r"\bonclick\s*=", re.IGNORECASE)


def is_named(opening: str) -> bool:
    return has_accessible_name(opening) or bool(TITLE_ATTR.search(opening))


class AccessibilityFixer(BaseFixer):
    domain = ACCESSIBILITY.name


@register_fixer
class SemanticsFixer(AccessibilityFixer):
    """Turns clickable generic elements into buttons and makes role-bearing ones focusable."""

    category = "semantics"
    sub_fixes = [
        (("onClick handler used as interactive control",), "convert_to_button"),
        (("with role but missing tabindex",), "add_tabindex"),
    ]

    def convert_to_button(self, source: SourceFile, finding: Finding) -> str:
        candidates = [
            (start, tag, opening)
            for start, tag, opening in source.elements_on_line("div|span", finding.line)
            if ONCLICK_ATTR.search(opening) and not CONTROL_ROLE.search(opening)
        ]
        if not candidates:
            if re.search(r"<button[\s>]", source.line_text(finding.line)):
                raise AlreadyFixedError(f"line {finding.line} already uses <button>.")
            raise TargetNotFoundError("Could not find a clickable <div> or <span> on the issue line.")

        start, tag, opening = candidates[0]
        if has_attribute(opening, "href"):
            raise UnsafeFixError(f"<{tag}> carries an href; it should become a link, not a button.")

        new_opening = '<button type="button"' + opening[1 + len(tag):]
        self.retag(source, start, tag, "button", opening=new_opening, refuse_nested=True)
        return f'Replaced <{tag.lower()} onClick> with <button type="button">.'

    def add_tabindex(self, source: SourceFile, finding: Finding) -> str:
        with_role = [
            (start, tag, opening)
            for start, tag, opening in source.elements_on_line("div|span", finding.line)
            if CONTROL_ROLE.search(opening)
        ]
        if not with_role:
            raise TargetNotFoundError("Could not find an element with an interactive role on the issue line.")
        missing = [element for element in with_role if not TABINDEX.search(element[2])]
        if not missing:
            raise AlreadyFixedError("tabindex is already present.")

        start, tag, _ = missing[0]
        attribute = self.tabindex_attribute(source)
        self.add_attribute(source, start, tag, attribute)
        return f"Added {attribute} to <{tag.lower()}>."


@register_fixer
class AccessibleNamesFixer(AccessibilityFixer):
    category = "accessible-names"
    sub_fixes = [
        (("Self-closing <button />",), "name_button"),
        (("Icon-only button",), "name_button"),
        (("Button has no accessible name",), "name_button"),
        (("Link has no accessible name",), "name_link"),
        (("Empty aria-label",), "fill_empty_label"),
    ]

    def _name_element(self, source: SourceFile, finding: Finding, tag_name: str) -> str:
        elements = source.elements_on_line(tag_name, finding.line)
        if not elements:
            raise TargetNotFoundError(f"Could not find a <{tag_name}> on the issue line.")
        unnamed = [
            (start, tag, opening) for start, tag, opening in elements
            if not is_named(opening) and not source.element_text(start, tag)
        ]
        if not unnamed:
            raise AlreadyFixedError(f"<{tag_name}> on line {finding.line} has an accessible name.")

        start, tag, _ = unnamed[0]
        self.add_attribute(source, start, tag, LABEL_PLACEHOLDER)
        return with_placeholder_note(f"Added {LABEL_PLACEHOLDER} to <{tag_name}>.")

    def name_button(self, source: SourceFile, finding: Finding) -> str:
        return self._name_element(source, finding, "button")

    def name_link(self, source: SourceFile, finding: Finding) -> str:
        return self._name_element(source, finding, "a")

    def fill_empty_label(self, source: SourceFile, finding: Finding) -> str:
        match = source.search_line(EMPTY_ARIA_LABEL, finding.line)
        if not match:
            raise AlreadyFixedError(f"no empty aria-label on line {finding.line}.")

        tag_start = source.content.rfind("<", 0, match.start())
        tag_match = re.match(r"<([A-Za-z][\w.-]*)", source.content[tag_start:])
        if tag_start == -1 or not tag_match:
            raise TargetNotFoundError("Could not find the element carrying the empty aria-label.")

        if source.element_text(tag_start, tag_match.group(1)):
            source.replace(match.start(), match.end(), "")
            return "Removed the empty aria-label; the element's visible text names it."
        source.replace(match.start(), match.end(), " " + LABEL_PLACEHOLDER)
        return with_placeholder_note(f"Replaced the empty aria-label with {LABEL_PLACEHOLDER}.")


@register_fixer
class ImagesFixer(AccessibilityFixer):
    """
    Adds text alternatives. Images that look decorative (icon, divider and
    background sources or classes) get ``alt=""`` so screen readers skip
    them; everything else gets a placeholder description.
    """

    category = "images"
    sub_fixes = [
        (("Likely decorative",), "mark_decorative"),
        (("<img> tag missing alt attribute",), "add_alt"),
        (("Next.js Image component missing alt",), "add_image_alt"),
    ]

    def _missing_alt(self, source: SourceFile, finding: Finding, names: str, flags: int = re.IGNORECASE):
        elements = source.elements_on_line(names, finding.line, flags)
        if not elements:
            raise TargetNotFoundError(f"Could not find <{names}> on the issue line.")
        missing = [element for element in elements if not HAS_ALT.search(element[2])]
        if not missing:
            raise AlreadyFixedError("alt attribute is already present.")
        return missing[0]

    def mark_decorative(self, source: SourceFile, finding: Finding) -> str:
        start, tag, _ = self._missing_alt(source, finding, "img")
        self.add_attribute(source, start, tag, 'alt=""')
        return 'Added alt="" to decorative image.'

    def add_alt(self, source: SourceFile, finding: Finding) -> str:
        start, tag, opening = self._missing_alt(source, finding, "img")
        if is_likely_decorative(opening):
            self.add_attribute(source, start, tag, 'alt=""')
            return 'Added alt="" to decorative image.'
        self.add_attribute(source, start, tag, ALT_PLACEHOLDER)
        return with_placeholder_note(f"Added {ALT_PLACEHOLDER} to <img>.")

    def add_image_alt(self, source: SourceFile, finding: Finding) -> str:
        start, tag, _ = self._missing_alt(source, finding, "Image", 0)
        self.add_attribute(source, start, tag, ALT_PLACEHOLDER)
        return with_placeholder_note(f"Added {ALT_PLACEHOLDER} to <Image>.")


@register_fixer
class FormsFixer(AccessibilityFixer):
    category = "forms"
    sub_fixes = [
        (("uses placeholder as its only label",), "label_from_placeholder"),
        (("has no associated label",), "add_label"),
    ]

    def _unlabelled(self, source: SourceFile, finding: Finding):
        elements = [
            (start, tag, opening)
            for start, tag, opening in source.elements_on_line("input|select|textarea", finding.line)
            if not re.search(r"\btype\s*=\s*[\"'](hidden|submit)[\"']", opening)
        ]
        if not elements:
            raise TargetNotFoundError("Could not find a form control on the issue line.")
        labelled_ids = set(LABEL_FOR.findall(source.content))
        unlabelled = [
            element for element in elements
            if not has_accessible_name(element[2])
            and get_attribute(element[2], "id") not in labelled_ids
        ]
        if not unlabelled:
            raise AlreadyFixedError("the control is already labelled.")
        return unlabelled[0]

    def label_from_placeholder(self, source: SourceFile, finding: Finding) -> str:
        start, tag, opening = self._unlabelled(source, finding)
        placeholder = (get_attribute(opening, "placeholder") or "").strip()
        if not placeholder:
            self.add_attribute(source, start, tag, LABEL_PLACEHOLDER)
            return with_placeholder_note(f"Added {LABEL_PLACEHOLDER} to <{tag.lower()}>.")
        attribute = 'aria-label="{}"'.format(placeholder.replace('"', "&quot;"))
        self.add_attribute(source, start, tag, attribute)
        return f"Added {attribute} to <{tag.lower()}> from its placeholder."

    def add_label(self, source: SourceFile, finding: Finding) -> str:
        start, tag, _ = self._unlabelled(source, finding)
        self.add_attribute(source, start, tag, LABEL_PLACEHOLDER)
        return with_placeholder_note(f"Added {LABEL_PLACEHOLDER} to <{tag.lower()}>.")


@register_fixer
class AriaFixer(AccessibilityFixer):
    category = "aria"
    sub_fixes = [
        (("Redundant role=",), "remove_redundant_role"),
    ]

    def remove_redundant_role(self, source: SourceFile, finding: Finding) -> str:
        parsed = re.search(r"role=\"([^\"]+)\" on <([\w-]+)>", finding.problem)
        if not parsed:
            raise UnsafeFixError("Could not tell which role is redundant.")
        role, tag_name = parsed.groups()

        role_attr = re.compile(r"\s+role\s*=\s*[\"']" + re.escape(role) + r"[\"']", re.IGNORECASE)
        for start, _, opening in source.elements_on_line(re.escape(tag_name), finding.line):
            match = role_attr.search(opening)
            if match:
                source.replace(start + match.start(), start + match.end(), "")
                return f'Removed redundant role="{role}" from <{tag_name}>.'
        raise AlreadyFixedError(f'no role="{role}" on <{tag_name}> at line {finding.line}.')


@register_fixer
class KeyboardFixer(AccessibilityFixer):
    category = "keyboard"
    sub_fixes = [
        (("positive tabindex",), "reset_tabindex"),
        (("has keyboard handler but no tabindex",), "add_tabindex"),
    ]

    def reset_tabindex(self, source: SourceFile, finding: Finding) -> str:
        start, end = source.line_span(finding.line)
        for match in POSITIVE_TABINDEX.finditer(source.content, start, end):
            if int(match.group(1)) > 0:
                source.replace(match.start(1), match.end(1), "0")
                return f"Changed tabindex {match.group(1)} to 0."
        raise AlreadyFixedError(f"no positive tabindex on line {finding.line}.")

    def add_tabindex(self, source: SourceFile, finding: Finding) -> str:
        handlers = [
            (start, tag, opening)
            for start, tag, opening in source.elements_on_line("div|span", finding.line)
            if KEY_HANDLER.search(opening)
        ]
        if not handlers:
            raise TargetNotFoundError("Could not find an element with a keyboard handler on the issue line.")
        missing = [element for element in handlers if not TABINDEX.search(element[2])]
        if not missing:
            raise AlreadyFixedError("tabindex is already present.")

        start, tag, _ = missing[0]
        attribute = self.tabindex_attribute(source)
        self.add_attribute(source, start, tag, attribute)
        return f"Added {attribute} to <{tag.lower()}>."


@register_fixer
class PatternsFixer(AccessibilityFixer):
    """Gives modal containers dialog semantics."""

    category = "patterns"
    sub_fixes = [
        (("missing role=\"dialog\"",), "add_dialog_role"),
        (("missing aria-modal",), "add_aria_modal"),
        (("Dialog missing accessible title",), "add_dialog_label"),
    ]

    def _dialogs(self, source: SourceFile, finding: Finding):
        dialogs = [
            element for element in source.elements_on_line("div|section", finding.line)
            if DIALOG_CLASS.search(element[2]) or DIALOG_ROLE.search(element[2])
        ]
        if not dialogs:
            raise TargetNotFoundError("Could not find a dialog container on the issue line.")
        return dialogs

    def add_dialog_role(self, source: SourceFile, finding: Finding) -> str:
        missing = [e for e in self._dialogs(source, finding) if not DIALOG_ROLE.search(e[2])]
        if not missing:
            raise AlreadyFixedError("the container already has a dialog role.")
        start, tag, opening = missing[0]
        attributes = 'role="dialog"'
        if not has_attribute(opening, "aria-modal"):
            attributes += ' aria-modal="true"'
        self.add_attribute(source, start, tag, attributes)
        return f"Added {attributes} to <{tag.lower()}>."

    def add_aria_modal(self, source: SourceFile, finding: Finding) -> str:
        dialogs = [e for e in self._dialogs(source, finding) if DIALOG_ROLE.search(e[2])]
        missing = [e for e in dialogs if not has_attribute(e[2], "aria-modal")]
        if not missing:
            raise AlreadyFixedError("aria-modal is already present.")
        start, tag, opening = missing[0]
        role = DIALOG_ROLE.search(opening)
        source.insert(start + role.end(), ' aria-modal="true"')
        return f'Added aria-modal="true" to <{tag.lower()}>.'

    def add_dialog_label(self, source: SourceFile, finding: Finding) -> str:
        dialogs = [e for e in self._dialogs(source, finding) if DIALOG_ROLE.search(e[2])]
        unnamed = [e for e in dialogs if not has_accessible_name(e[2])]
        if not unnamed:
            raise AlreadyFixedError("the dialog already has an accessible title.")
        start, tag, opening = unnamed[0]
        role = DIALOG_ROLE.search(opening)
        source.insert(start + role.end(), " " + LABEL_PLACEHOLDER)
        return with_placeholder_note(
            f"Added {LABEL_PLACEHOLDER} to the dialog; prefer aria-labelledby pointing at its heading."
        )

