"""
Accessibility (WCAG) detection rules.
"""

from markupaudit.rules.accessibility import semantics
from markupaudit.rules.accessibility import names
from markupaudit.rules.accessibility import images
from markupaudit.rules.accessibility import forms
from markupaudit.rules.accessibility import aria
from markupaudit.rules.accessibility import keyboard
from markupaudit.rules.accessibility import patterns
from markupaudit.rules.accessibility import dynamic

__all__ = [
    "semantics",
    "names",
    "images",
    "forms",
    "aria",
    "keyboard",
    "patterns",
    "dynamic",
]
