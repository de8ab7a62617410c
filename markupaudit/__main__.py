"""
Entry point for running markupaudit as a module.

Usage:
    python -m markupaudit audit . --domain a11y
    python -m markupaudit --help
"""

import sys
from markupaudit.cli import main

if __name__ == "__main__":
    sys.exit(main())
