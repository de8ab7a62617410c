"""
Accessibility and SEO rules.

This module contains all the rules for detecting accessibility (WCAG)
violations and SEO problems in frontend markup.
"""

# Import all rules to register them
from markupaudit.rules import accessibility, seo

__all__ = [
    "accessibility",
    "seo",
]
