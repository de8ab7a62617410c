"""
SEO detection rules.
"""

from markupaudit.rules.seo import rendering
from markupaudit.rules.seo import title
from markupaudit.rules.seo import meta
from markupaudit.rules.seo import headings
from markupaudit.rules.seo import semantic
from markupaudit.rules.seo import urls
from markupaudit.rules.seo import images
from markupaudit.rules.seo import links
from markupaudit.rules.seo import gtm

__all__ = [
    "rendering",
    "title",
    "meta",
    "headings",
    "semantic",
    "urls",
    "images",
    "links",
    "gtm",
]
