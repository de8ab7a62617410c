"""Shared helpers for the accessibility rules."""

import re

from markupaudit.core.domains import ACCESSIBILITY

DOMAIN = ACCESSIBILITY.name

NAMED = r"\s*=\s*[\"'][^\"']+[\"']"
ARIA_LABEL = re.compile(r"\baria-label" + NAMED)
ARIA_LABELLEDBY = re.compile(r"\baria-labelledby" + NAMED)
KEY_HANDLER = re.compile(r"\b(onKeyDown|onKeyUp|onKeyPress)\s*=")
TABINDEX = re.compile(r"\btabindex\s*=", re.IGNORECASE)


def wcag(criterion: str, level: str = "A") -> str:
    return f"WCAG {criterion} ({level})"


def has_accessible_name(attrs: str) -> bool:
    return bool(ARIA_LABEL.search(attrs) or ARIA_LABELLEDBY.search(attrs))


def visible_text(markup: str) -> str:
    return re.sub(r"<[^>]*>", "", markup).strip()


def class_hint_pattern(tags: str, words: str) -> "re.Pattern":
    """Opening tags among ``tags`` whose class/className contains one of ``words``."""
    return re.compile(
        r"<(" + tags + r")\s[^>]*class(?:Name)?\s*=\s*[\"'][^\"']*(" + words + r")[^\"']*[\"'][^>]*>",
        re.IGNORECASE,
    )
