"""Shared helpers for the SEO rules."""

import re
from typing import Optional

from markupaudit.core.domains import SEO
from markupaudit.core.rules import ScanContext
from markupaudit.core.sources import Ecosystem

DOMAIN = SEO.name

APP_DIRS = ("app", "src/app")
PAGES_DIRS = ("pages", "src/pages")
ROUTE_DIRS = APP_DIRS + PAGES_DIRS

TITLE_TAG = re.compile(r"<title[^>]*>([^<]*)</title>", re.IGNORECASE)
META_DESCRIPTION = (
    re.compile(r"<meta\s+name=[\"']description[\"'][^>]*content=[\"']([^\"']*)[\"']", re.IGNORECASE),
    re.compile(r"content=[\"']([^\"']*)[\"'][^>]*name=[\"']description[\"']", re.IGNORECASE),
)
METADATA_TITLE = re.compile(r"metadata\s*[:=]\s*\{[^}]*title", re.DOTALL)
METADATA_DESCRIPTION = re.compile(r"metadata\s*[:=]\s*\{[^}]*description", re.DOTALL)
APP_ROUTE_FILE = re.compile(r"^(page|layout)\.(tsx?|jsx?)$")

MIN_DESCRIPTION_LENGTH = 70
MAX_DESCRIPTION_LENGTH = 160


def in_dirs(rel_path: str, dirs) -> bool:
    return any(rel_path.startswith(d + "/") for d in dirs)


def basename(rel_path: str) -> str:
    return rel_path.rsplit("/", 1)[-1]


def is_app_route_file(rel_path: str) -> bool:
    """A Next.js App Router ``page.*`` or ``layout.*`` file."""
    return in_dirs(rel_path, APP_DIRS) and bool(APP_ROUTE_FILE.match(basename(rel_path)))


def is_pages_route_file(rel_path: str) -> bool:
    """A Next.js Pages Router page (``_app``, ``_document`` and friends excluded)."""
    return in_dirs(rel_path, PAGES_DIRS) and not basename(rel_path).startswith("_")


def is_dynamic_route(rel_path: str) -> bool:
    return "[" in rel_path


def scans_markup(context: ScanContext) -> bool:
    """Angular keeps its markup in templates; components are skipped."""
    if context.ecosystem == Ecosystem.ANGULAR:
        return context.extension == ".html"
    return True


def scans_pages(context: ScanContext) -> bool:
    """Files checked for page structure (headings, landmarks)."""
    if context.ecosystem == Ecosystem.NEXTJS:
        return in_dirs(context.rel_path, ROUTE_DIRS)
    return scans_markup(context)


def meta_description(content: str) -> Optional[str]:
    """Value of the meta description tag, or None when there is no tag."""
    for pattern in META_DESCRIPTION:
        match = pattern.search(content)
        if match:
            return match.group(1)
    return None


def html_title(content: str) -> Optional[str]:
    match = TITLE_TAG.search(content)
    return match.group(1) if match else None
