"""
Audit domain descriptors.

A domain bundles everything that differs between the accessibility and SEO
pipelines: the closed category enumeration (declaration order is rank), the
report id prefix, the report file names, the name of the impact field and the
category whose findings always need a human.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Pattern, Type

from markupaudit.errors import ConfigError


class AccessibilityCategory(Enum):
    SEMANTICS = "semantics"
    ACCESSIBLE_NAMES = "accessible-names"
    IMAGES = "images"
    FORMS = "forms"
    ARIA = "aria"
    KEYBOARD = "keyboard"
    PATTERNS = "patterns"
    DYNAMIC = "dynamic"


class SeoCategory(Enum):
    RENDERING = "rendering"
    TITLE = "title"
    META_DESCRIPTION = "meta-description"
    HEADINGS = "headings"
    SEMANTIC_HTML = "semantic-html"
    URL_STRUCTURE = "url-structure"
    IMAGES = "images"
    INTERNAL_LINKS = "internal-links"
    GTM = "gtm"


@dataclass(frozen=True)
class AuditDomain:
    """Static description of one audit domain."""
    name: str
    title: str
    id_prefix: str
    categories: Type[Enum]
    labels: Dict[str, str]
    impact_key: str
    impact_label: str
    manual_only: str
    manual_reason: str

    @property
    def report_json(self) -> str:
        return f"{self.name}-report.json"

    @property
    def report_markdown(self) -> str:
        return f"{self.name}-report.md"

    @property
    def fix_report(self) -> str:
        return f"{self.name}-fix-report.md"

    @property
    def category_names(self) -> List[str]:
        return [category.value for category in self.categories]

    @property
    def id_pattern(self) -> Pattern:
        return re.compile(r"^" + re.escape(self.id_prefix) + r"-\d+$", re.IGNORECASE)

    def category_rank(self, category: str) -> int:
        """Rank of a category; unknown categories sort after every declared one."""
        names = self.category_names
        return names.index(category) if category in names else len(names)

    def label(self, category: str) -> str:
        return self.labels.get(category, category)

    def is_manual_only(self, category: str) -> bool:
        return category == self.manual_only


ACCESSIBILITY = AuditDomain(
    name="a11y",
    title="Accessibility",
    id_prefix="A11Y",
    categories=AccessibilityCategory,
    labels={
        "semantics": "Semantics",
        "accessible-names": "Accessible Names",
        "images": "Images",
        "forms": "Forms",
        "aria": "ARIA",
        "keyboard": "Keyboard",
        "patterns": "Patterns",
        "dynamic": "Dynamic Content",
    },
    impact_key="impact",
    impact_label="Impact",
    manual_only=AccessibilityCategory.DYNAMIC.value,
    manual_reason="Dynamic content issues require manual review and cannot be safely auto-applied.",
)

SEO = AuditDomain(
    name="seo",
    title="SEO",
    id_prefix="SEO",
    categories=SeoCategory,
    labels={
        "rendering": "Rendering",
        "title": "Title",
        "meta-description": "Meta Description",
        "headings": "Headings",
        "semantic-html": "Semantic HTML",
        "url-structure": "URL Structure",
        "images": "Images",
        "internal-links": "Internal Links",
        "gtm": "Google Tag Manager",
    },
    impact_key="seoImpact",
    impact_label="SEO Impact",
    manual_only=SeoCategory.RENDERING.value,
    manual_reason="Rendering fixes require manual review and cannot be safely auto-applied.",
)

DOMAINS: Dict[str, AuditDomain] = {
    ACCESSIBILITY.name: ACCESSIBILITY,
    SEO.name: SEO,
}


def get_domain(name: Optional[str]) -> AuditDomain:
    """Look up a domain by name (``a11y`` or ``seo``)."""
    key = (name or "").strip().lower()
    if key not in DOMAINS:
        raise ConfigError(
            f"Unknown audit domain: {name!r}. Available: {', '.join(DOMAINS)}"
        )
    return DOMAINS[key]
