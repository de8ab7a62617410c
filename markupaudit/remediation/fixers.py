"""
Fix handler framework.

A handler owns one category of one audit domain. It receives a finding read
back from the persisted report, re-locates the defect in the file as it is
now, and applies the smallest textual edit that removes it. Handlers never
guess: when the defect is gone, cannot be found, or cannot be changed without
ambiguity, they decline with a reason and leave the file untouched.
"""

import logging
import os
import re
from abc import ABC
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Pattern, Tuple, Type

from markupaudit.core.domains import DOMAINS, get_domain
from markupaudit.core.findings import Finding
from markupaudit.errors import (
    FixNotApplied, HandlerError, TargetNotFoundError, UnsafeFixError,
)

logger = logging.getLogger(__name__)

PLACEHOLDER_NOTE = "Human follow-up required: replace the TODO placeholder."
LINE_NOT_FOUND = "Could not locate the issue line."

SCRIPT_EXTENSIONS = (".jsx", ".tsx", ".js", ".ts")
HTML_EXTENSIONS = (".html", ".htm")

NESTED_INTERACTIVE = re.compile(r"<(a|button|input|select|textarea)(?=[\s>/])", re.IGNORECASE)


@dataclass
class HandlerResult:
    """What a handler did with one finding."""
    success: bool
    action: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def fixed(cls, action: str) -> "HandlerResult":
        return cls(True, action=action)

    @classmethod
    def failed(cls, reason: str) -> "HandlerResult":
        return cls(False, reason=reason)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"success": self.success}
        if self.action is not None:
            result["action"] = self.action
        if self.reason is not None:
            result["reason"] = self.reason
        return result

    @classmethod
    def from_dict(cls, data: Any) -> "HandlerResult":
        if not isinstance(data, dict) or not isinstance(data.get("success"), bool):
            raise HandlerError(f"Malformed handler result: {data!r}")
        return cls(data["success"], data.get("action"), data.get("reason"))


def with_placeholder_note(action: str) -> str:
    return f"{action} {PLACEHOLDER_NOTE}"


def tag_end(content: str, start: int) -> int:
    """
    Index of the ``>`` that closes the tag opened at ``start``, or -1.

    Quoted values and JSX expressions are skipped, so ``onClick={() => go()}``
    does not end the tag early.
    """
    depth = 0
    quote = None
    for index in range(start, len(content)):
        char = content[index]
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'`":
            quote = char
        elif char == "{":
            depth += 1
        elif char == "}":
            depth = max(0, depth - 1)
        elif char == ">" and depth == 0:
            return index
    return -1


def find_closing(content: str, tag: str, start: int) -> Optional[Tuple[int, int]]:
    """
    Span of the ``</tag>`` that balances an element whose body begins at
    ``start``. Nested elements of the same name are counted.
    """
    token = re.compile(r"<(/?)" + re.escape(tag) + r"(?=[\s>/])", re.IGNORECASE)
    depth = 0
    position = start
    while True:
        match = token.search(content, position)
        if not match:
            return None
        end = tag_end(content, match.start())
        if end == -1:
            return None
        if match.group(1):
            if depth == 0:
                return match.start(), end + 1
            depth -= 1
        elif content[end - 1] != "/":
            depth += 1
        position = end + 1


class SourceFile:
    """
    A file opened for editing.

    Content is read with ``newline=""`` so CRLF files survive untouched;
    lines are the content split on ``\\n`` only. ``original`` is None for a
    file that does not exist yet.
    """

    def __init__(self, path: str, rel_path: str, content: Optional[str], project_root: str = "."):
        self.path = path
        self.rel_path = rel_path
        self.project_root = project_root
        self.original = content
        self.content = content or ""
        self.related: List["SourceFile"] = []

    @property
    def changed(self) -> bool:
        return self.original is None or self.content != self.original

    @property
    def extension(self) -> str:
        return os.path.splitext(self.path)[1].lower()

    @property
    def is_script(self) -> bool:
        return self.extension in SCRIPT_EXTENSIONS

    @property
    def is_html(self) -> bool:
        return self.extension in HTML_EXTENSIONS

    @property
    def newline(self) -> str:
        return "\r\n" if "\r\n" in self.content else "\n"

    @property
    def lines(self) -> List[str]:
        return self.content.split("\n")

    def line_span(self, line: int) -> Tuple[int, int]:
        """Offsets of ``line`` (1-based), excluding its newline."""
        lines = self.lines
        if line < 1 or line > len(lines):
            raise TargetNotFoundError(LINE_NOT_FOUND)
        start = sum(len(text) + 1 for text in lines[:line - 1])
        return start, start + len(lines[line - 1])

    def line_text(self, line: int) -> str:
        start, end = self.line_span(line)
        return self.content[start:end]

    def search_line(self, pattern: Pattern, line: int) -> Optional[re.Match]:
        """First match of ``pattern`` that starts on ``line``."""
        start, end = self.line_span(line)
        match = pattern.search(self.content, start)
        if match and match.start() <= end:
            return match
        return None

    def elements_on_line(
        self, names: str, line: int, flags: int = re.IGNORECASE
    ) -> List[Tuple[int, str, str]]:
        """(start, tag name, opening tag) of each ``names`` element opened on ``line``."""
        start, end = self.line_span(line)
        pattern = re.compile(r"<(" + names + r")(?=[\s>/])", flags)
        found = []
        for match in pattern.finditer(self.content, start, min(end + 1, len(self.content))):
            close = tag_end(self.content, match.start())
            if close != -1:
                found.append((match.start(), match.group(1), self.content[match.start():close + 1]))
        return found

    def element_text(self, start: int, tag: str) -> str:
        """Visible text of the element opened at ``start``; empty when self-closing or unbalanced."""
        open_end, opening = self.opening_tag(start)
        if opening.endswith("/>"):
            return ""
        close = find_closing(self.content, tag, open_end)
        if close is None:
            return ""
        return re.sub(r"<[^>]*>", "", self.content[open_end:close[0]]).strip()

    def opening_tag(self, start: int) -> Tuple[int, str]:
        """(end offset, text) of the tag opened at ``start``."""
        end = tag_end(self.content, start)
        if end == -1:
            raise UnsafeFixError("Could not find the end of the opening tag.")
        return end + 1, self.content[start:end + 1]

    def replace(self, start: int, end: int, text: str):
        self.content = self.content[:start] + text + self.content[end:]

    def insert(self, offset: int, text: str):
        self.replace(offset, offset, text)


class BaseFixer(ABC):
    """
    Base class for fix handlers.

    Subclasses set ``domain`` and ``category`` and list their sub-fixes in
    ``sub_fixes`` as ``(markers, method name)`` pairs: the first entry whose
    markers all occur in the finding's problem text is applied.
    """

    domain: str = ""
    category: str = ""
    sub_fixes: List[Tuple[Tuple[str, ...], str]] = []

    @property
    def label(self) -> str:
        return get_domain(self.domain).label(self.category)

    def apply(self, finding: Finding, project_root: str) -> HandlerResult:
        """
        Fix one finding on disk.

        The file is backed up to ``<file>.bak`` before it is rewritten. A
        declined fix is returned as a failure; any other exception propagates
        to the caller.
        """
        try:
            source = self.load(finding.file, project_root)
            action = self.fix(source, finding)
        except FixNotApplied as e:
            logger.debug("Not fixing %s (%s): %s", finding.id, finding.file, e)
            return HandlerResult.failed(str(e))

        if not source.changed:
            return HandlerResult.failed(f"Already fixed: {finding.problem}")

        self.save(source)
        for related in source.related:
            if related.changed:
                self.save(related)
        logger.info("Fixed %s in %s: %s", finding.id, finding.file, action)
        return HandlerResult.fixed(f"{action} ({finding.file} line {finding.line})")

    def fix(self, source: SourceFile, finding: Finding) -> str:
        """Apply the matching sub-fix to ``source`` and describe it."""
        for markers, method in self.sub_fixes:
            if all(marker in finding.problem for marker in markers):
                return getattr(self, method)(source, finding)
        raise UnsafeFixError(f"This {self.label} issue requires manual review.")

    def resolve(self, rel_path: str, project_root: str) -> str:
        """Absolute path of ``rel_path``, which must stay inside the project."""
        root = os.path.realpath(project_root)
        path = os.path.realpath(os.path.join(root, rel_path))
        if os.path.commonpath([root, path]) != root:
            raise UnsafeFixError(f"Refusing to edit {rel_path}: it resolves outside the project root.")
        return path

    def load(self, rel_path: str, project_root: str, create: bool = False) -> SourceFile:
        path = self.resolve(rel_path, project_root)
        if not os.path.isfile(path):
            if create:
                return SourceFile(path, rel_path, None, project_root)
            raise TargetNotFoundError(f"File not found: {rel_path}")
        with open(path, "r", encoding="utf-8", newline="") as f:
            return SourceFile(path, rel_path, f.read(), project_root)

    def save(self, source: SourceFile):
        """Write ``<file>.bak`` with the original content, then the new content."""
        if source.original is not None:
            with open(source.path + ".bak", "w", encoding="utf-8", newline="") as f:
                f.write(source.original)
        with open(source.path, "w", encoding="utf-8", newline="") as f:
            f.write(source.content)

    # Shared edits

    def add_attribute(self, source: SourceFile, start: int, tag: str, attribute: str):
        """Insert ``attribute`` right after the tag name of the element at ``start``."""
        source.insert(start + 1 + len(tag), " " + attribute)

    def tabindex_attribute(self, source: SourceFile) -> str:
        return "tabIndex={0}" if source.is_script else 'tabindex="0"'

    def retag(
        self,
        source: SourceFile,
        start: int,
        old: str,
        new: str,
        opening: Optional[str] = None,
        refuse_nested: bool = False,
    ):
        """
        Rename the element opened at ``start`` together with its closing tag.

        Args:
            opening: Replacement for the whole opening tag; by default only
                the tag name changes.
            refuse_nested: Decline when the element contains interactive
                children.

        Raises:
            UnsafeFixError: when the closing tag is missing or the element
                holds interactive content that ``refuse_nested`` forbids.
        """
        open_end, opening_text = source.opening_tag(start)
        if opening is None:
            opening = "<" + new + opening_text[1 + len(old):]

        close = None
        if not opening_text.endswith("/>"):
            close = find_closing(source.content, old, open_end)
            if close is None:
                raise UnsafeFixError(f"Could not find closing </{old}> tag.")
            if refuse_nested:
                nested = NESTED_INTERACTIVE.search(source.content, open_end, close[0])
                if nested:
                    raise UnsafeFixError(
                        f"Nested interactive element <{nested.group(1).lower()}> detected; "
                        f"cannot safely convert <{old}> to <{new}>."
                    )
            source.replace(close[0], close[1], f"</{new}>")
        source.replace(start, open_end, opening)


# Registry of fixers, keyed by (domain, category)
_fixers: Dict[Tuple[str, str], BaseFixer] = {}


def register_fixer(fixer_class: Type[BaseFixer]) -> Type[BaseFixer]:
    """Class decorator registering one handler instance."""
    fixer = fixer_class()
    key = (fixer.domain, fixer.category)
    if key in _fixers:
        raise RuntimeError(f"Duplicate fix handler for {fixer.domain}/{fixer.category}")
    _fixers[key] = fixer
    return fixer_class


def get_fixer(domain: str, category: str) -> Optional[BaseFixer]:
    """Get the handler for a category."""
    return _fixers.get((domain, category))


def verify_coverage():
    """
    Check that every category of every domain is either handled or the
    domain's manual-only category.

    Raises:
        RuntimeError: naming each uncovered category.
    """
    missing = [
        f"{domain.name}/{category}"
        for domain in DOMAINS.values()
        for category in domain.category_names
        if not domain.is_manual_only(category) and (domain.name, category) not in _fixers
    ]
    if missing:
        raise RuntimeError("No fix handler registered for: " + ", ".join(missing))
