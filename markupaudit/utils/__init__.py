"""Small text and path helpers shared by rules, reports and fixers."""

import fnmatch
import hashlib
import logging
import os
import re
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)


def line_at(content: str, offset: int) -> int:
    """Return the 1-based line number of a character offset."""
    return content.count("\n", 0, offset) + 1


def tag_at(content: str, offset: int) -> str:
    """Return the tag text enclosing ``offset``: from the preceding ``<`` to the next ``>``."""
    start = content.rfind("<", 0, offset + 1)
    if start == -1:
        start = offset
    end = content.find(">", offset)
    if end == -1:
        end = len(content) - 1
    return content[start:end + 1]


def find_line(lines: List[str], needle: str, start: int = 0) -> int:
    """Return the 1-based number of the first line containing ``needle``, or 1."""
    for index in range(start, len(lines)):
        if needle in lines[index]:
            return index + 1
    return 1


def get_attribute(tag: str, name: str) -> Optional[str]:
    """Return the quoted value of attribute ``name`` in ``tag``, or None."""
    match = re.search(
        r"(?<![\w-])" + re.escape(name) + r"\s*=\s*(?:\"([^\"]*)\"|'([^']*)'|\{[\"'`]([^\"'`]*)[\"'`]\})",
        tag,
    )
    if not match:
        return None
    for group in match.groups():
        if group is not None:
            return group
    return ""


def has_attribute(tag: str, name: str) -> bool:
    return re.search(r"(?<![\w-])" + re.escape(name) + r"(?![\w-])", tag) is not None


def fingerprint(*parts: str) -> str:
    """Content-derived key, stable across runs while the wording stays put."""
    digest = hashlib.sha1("|".join(parts).encode("utf-8"))
    return digest.hexdigest()[:12]


def to_posix(path: str) -> str:
    return path.replace(os.sep, "/")


def read_text(path: str, max_size: Optional[int] = None) -> Optional[str]:
    """Read a UTF-8 file, returning None when it is missing, too large or unreadable."""
    try:
        if max_size is not None and os.path.getsize(path) > max_size:
            logger.debug("Skipping %s: larger than %d bytes", path, max_size)
            return None
        with open(path, "r", encoding="utf-8", errors="ignore", newline="") as f:
            return f.read()
    except OSError as e:
        logger.debug("Could not read %s: %s", path, e)
        return None


def matches_any(value: str, patterns: Iterable[str]) -> bool:
    """Case-insensitive glob match of ``value`` against any pattern."""
    value = value.lower()
    return any(fnmatch.fnmatch(value, pattern.lower()) for pattern in patterns)
