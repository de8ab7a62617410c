"""
Inline lint.

A fast, single-file advisory check meant for editor and agent hooks: it
prints a few warning lines, never writes anything and never fails. The full
rule engine is not involved; each profile is a short list of the most common
mistakes.
"""

import logging
import os
import re
from typing import Callable, Dict, List

from markupaudit.utils import read_text

logger = logging.getLogger(__name__)

FRONTEND_EXTENSIONS = (".html", ".htm", ".tsx", ".jsx", ".ts", ".js", ".vue", ".svelte")
COMPONENT_EXTENSIONS = (".tsx", ".jsx")
SKIPPED_PATH = re.compile(r"[/\\](node_modules|dist|build|\.next)[/\\]")

IMG_WITHOUT_ALT = re.compile(r"<img(?=[\s>/])(?![^>]*\balt\s*=)", re.IGNORECASE)
CLICKABLE_GENERIC = re.compile(r"<(div|span)\s[^>]*onClick", re.IGNORECASE)
CONTROL = re.compile(r"<(input|select|textarea)\s[^>]*>", re.IGNORECASE)
ID_ATTR = re.compile(r"\bid\s*=\s*[\"']([^\"']+)[\"']")
POSITIVE_TABINDEX = re.compile(r"tabindex\s*=\s*[\"'{]?(\d+)", re.IGNORECASE)
EMPTY_ARIA_LABEL = re.compile(r"aria-label\s*=\s*[\"']\s*[\"']", re.IGNORECASE)
HIDDEN_FOCUSABLE = re.compile(
    r"aria-hidden\s*=\s*[\"']true[\"'][^>]*(tabindex|href\s*=|<button|<a\s|<input)", re.IGNORECASE
)
ROUTE_FILE = re.compile(r"^(page|layout)\.(tsx|jsx|ts|js)$")
USE_CLIENT = re.compile(r"['\"]use client['\"]")
HOOKS = re.compile(r"\b(useState|useEffect|useRef|useCallback|useMemo|useContext)\b")


def warning(prefix: str, message: str) -> str:
    return f"⚠ {prefix}: {message}"


def lint_accessibility(content: str, path: str) -> List[str]:
    warnings = []
    if IMG_WITHOUT_ALT.search(content):
        warnings.append("<img> tag without alt attribute found (WCAG 1.1.1)")

    for match in CLICKABLE_GENERIC.finditer(content):
        end = content.find(">", match.start())
        tag = content[match.start():end + 1 if end != -1 else len(content)]
        if not re.search(r"\brole\s*=", tag) and not re.search(r"\b(onKeyDown|onKeyUp|onKeyPress)\s*=", tag):
            warnings.append(
                f"<{match.group(1)}> with onClick but no role or keyboard handler. Use <button> instead"
            )
            break

    for match in CONTROL.finditer(content):
        tag = match.group(0)
        if re.search(r"\btype\s*=\s*[\"']hidden[\"']", tag):
            continue
        if re.search(r"\baria-label(ledby)?\s*=", tag):
            continue
        control_id = ID_ATTR.search(tag)
        if control_id is None:
            warnings.append(
                f"<{match.group(1)}> missing label: add aria-label or an associated <label> (WCAG 1.3.1)"
            )
            break
        value = control_id.group(1)
        if f'htmlFor="{value}"' not in content and f'for="{value}"' not in content:
            warnings.append(f"<{match.group(1)}> has no associated <label> (WCAG 1.3.1)")
            break

    if HIDDEN_FOCUSABLE.search(content):
        warnings.append('aria-hidden="true" applied to or near focusable element (WCAG 4.1.2)')
    if any(int(m.group(1)) > 0 for m in POSITIVE_TABINDEX.finditer(content)):
        warnings.append("tabindex > 0 found; this disrupts natural focus order (WCAG 2.4.3)")
    if EMPTY_ARIA_LABEL.search(content):
        warnings.append("Empty aria-label found; element has no accessible name (WCAG 4.1.2)")
    return [warning("A11Y", w) for w in warnings]


def lint_seo(content: str, path: str) -> List[str]:
    warnings = []
    if IMG_WITHOUT_ALT.search(content):
        warnings.append("<img> tag without alt attribute found")

    h1_count = len(re.findall(r"<h1[\s>]", content, re.IGNORECASE))
    if h1_count > 1:
        warnings.append(f"Multiple H1 tags found ({h1_count}). Only one H1 per page is recommended")

    if ROUTE_FILE.match(os.path.basename(path)) and USE_CLIENT.search(content):
        if re.search(r"<h1|metadata|generateMetadata|<title|<meta", content, re.IGNORECASE):
            warnings.append(
                "'use client' directive on page/layout with SEO-critical content. "
                "Consider using Server Components"
            )

    if re.search(r"<title[^>]*>\s*</title>", content, re.IGNORECASE):
        warnings.append("Empty <title> tag found")

    gtm_count = len(re.findall(r"googletagmanager\.com/gtm\.js", content))
    if gtm_count > 1:
        warnings.append(
            f"Duplicate GTM script tags found ({gtm_count}). Only one GTM installation per page"
        )
    return [warning("SEO", w) for w in warnings]


def lint_ui(content: str, path: str) -> List[str]:
    warnings = []
    if re.search(r"style=\{.*?(#[0-9a-fA-F]{3,8}|rgb\(|rgba\()", content):
        warnings.append("Hardcoded color in inline style. Use Tailwind classes or CSS variables instead")
    if re.search(r"<button(?![^>]*\btype\s*=)", content):
        warnings.append('<button> without type attribute. Add type="button" or type="submit"')
    if IMG_WITHOUT_ALT.search(content):
        warnings.append("<img> without alt attribute. Add descriptive alt text for accessibility")
    if re.search(r"<(div|span)\s[^>]*onClick", content):
        warnings.append(
            'onClick on <div>/<span>. Use <button> or add role="button" and tabIndex={0} for accessibility'
        )
    if HOOKS.search(content) and not USE_CLIENT.search(content):
        warnings.append("React hooks used without 'use client' directive")
    if re.search(r"className=\{`[^`]*\$\{", content):
        warnings.append(
            "Template literal for className. Consider using cn() from @/lib/utils for cleaner "
            "conditional classes"
        )
    return [warning("UI", w) for w in warnings]


PROFILES: Dict[str, Callable[[str, str], List[str]]] = {
    "a11y": lint_accessibility,
    "seo": lint_seo,
    "ui": lint_ui,
}


def lint_file(path: str, profile: str = "a11y") -> List[str]:
    """
    Warning lines for one file.

    Files outside the profile's extensions, inside build or dependency
    directories, or missing altogether produce no warnings.
    """
    extensions = COMPONENT_EXTENSIONS if profile == "ui" else FRONTEND_EXTENSIONS
    if os.path.splitext(path)[1].lower() not in extensions:
        return []
    if SKIPPED_PATH.search(os.sep + os.path.normpath(path)):
        return []
    if profile not in PROFILES:
        logger.warning("Unknown lint profile: %s", profile)
        return []

    content = read_text(path)
    if content is None:
        return []
    return PROFILES[profile](content, path)
