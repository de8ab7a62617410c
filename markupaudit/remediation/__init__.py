"""
Fix handlers and their registry.

Importing this package registers the handlers of every domain and checks
that each category is either handled or manual-only.
"""

from markupaudit.remediation.fixers import (
    BaseFixer, HandlerResult, SourceFile, get_fixer, register_fixer, verify_coverage,
)
from markupaudit.remediation import accessibility, seo  # noqa: F401

verify_coverage()

__all__ = [
    "BaseFixer",
    "HandlerResult",
    "SourceFile",
    "get_fixer",
    "register_fixer",
    "verify_coverage",
]
