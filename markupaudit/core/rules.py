"""
Rule engine for markupaudit.

This module provides the base classes for defining accessibility and SEO
rules, the contexts handed to them, and the registry used to discover them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Type, Set, Generator, Iterable
import os
import re

from markupaudit.core.findings import Finding, Severity
from markupaudit.core.sources import Ecosystem, HTML_EXTENSIONS, package_dependencies
from markupaudit.utils import line_at, tag_at, find_line, matches_any, read_text, to_posix


@dataclass
class RuleMetadata:
    """Metadata for a rule."""
    rule_id: str
    name: str
    description: str
    domain: str
    category: str
    severity: Severity
    impact: str
    recommended_fix: str
    compliance: Optional[str] = None
    ecosystems: List[str] = field(default_factory=lambda: ["*"])
    auto_fixable: bool = False
    enabled_by_default: bool = True


class ScanContext:
    """
    Context provided to rules for one source file.

    ``lines`` is split on ``\\n`` only, so line numbers agree with the fix
    handlers that later edit the same file.
    """

    def __init__(
        self,
        file_path: str,
        rel_path: str,
        content: str,
        ecosystem: Ecosystem,
        project_root: str,
        is_page: bool = False,
        config: Optional[Dict[str, Any]] = None,
    ):
        self.file_path = file_path
        self.rel_path = rel_path
        self.content = content
        self.ecosystem = ecosystem
        self.project_root = project_root
        self.is_page = is_page
        self.config = config or {}
        self._lines: Optional[List[str]] = None

    @property
    def lines(self) -> List[str]:
        if self._lines is None:
            self._lines = self.content.split("\n")
        return self._lines

    @property
    def extension(self) -> str:
        return os.path.splitext(self.rel_path)[1].lower()

    @property
    def is_html(self) -> bool:
        return self.extension in HTML_EXTENSIONS

    def line_at(self, offset: int) -> int:
        return line_at(self.content, offset)

    def tag_at(self, offset: int) -> str:
        return tag_at(self.content, offset)

    def find_line(self, needle: str) -> int:
        return find_line(self.lines, needle)


class ProjectContext:
    """
    Context provided to rules once per audit, after every file was scanned.

    Used by rules that compare files with each other or inspect the project
    layout rather than a single file.
    """

    def __init__(
        self,
        project_root: str,
        ecosystem: Ecosystem,
        sources: Dict[str, str],
        package: Optional[Dict[str, Any]] = None,
        stylesheets: Optional[Dict[str, str]] = None,
        max_depth: int = 10,
        ignore_dirs: Iterable[str] = (),
    ):
        self.project_root = project_root
        self.ecosystem = ecosystem
        self.sources = sources
        self.package = package
        self.stylesheets = stylesheets or {}
        self.max_depth = max_depth
        self.ignore_dirs = tuple(ignore_dirs)

    @property
    def dependencies(self) -> Dict[str, str]:
        return package_dependencies(self.package)

    @property
    def html_files(self) -> List[str]:
        return [p for p in self.sources if os.path.splitext(p)[1].lower() in HTML_EXTENSIONS]

    def exists(self, rel_path: str) -> bool:
        return os.path.exists(os.path.join(self.project_root, rel_path))

    def read(self, rel_path: str) -> Optional[str]:
        """Content of a project file, taken from the source set when already loaded."""
        rel_path = to_posix(rel_path)
        if rel_path in self.sources:
            return self.sources[rel_path]
        return read_text(os.path.join(self.project_root, rel_path))

    def files_under(self, *roots: str) -> List[str]:
        """Source files (relative paths) below any of ``roots``."""
        prefixes = tuple(root.rstrip("/") + "/" for root in roots)
        return [p for p in self.sources if p.startswith(prefixes)]


class Rule(ABC):
    """
    Base class for all markup rules.

    A rule either inspects one file at a time (``analyze``), the whole
    project once (``finalize``), or both.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}

    @property
    @abstractmethod
    def metadata(self) -> RuleMetadata:
        """Return rule metadata."""
        pass

    def analyze(self, context: ScanContext) -> Generator[Finding, None, None]:
        """Analyze one file and yield findings."""
        yield from ()

    def finalize(self, project: ProjectContext) -> Generator[Finding, None, None]:
        """Yield project-level findings once all files were scanned."""
        yield from ()

    def supports_ecosystem(self, ecosystem: Ecosystem) -> bool:
        ecosystems = self.metadata.ecosystems
        return "*" in ecosystems or ecosystem.value in ecosystems

    def create_finding(
        self,
        file: str,
        line: int,
        problem: Optional[str] = None,
        impact: Optional[str] = None,
        recommended_fix: Optional[str] = None,
        severity: Optional[Severity] = None,
        auto_fix: Optional[bool] = None,
        compliance: Optional[str] = None,
    ) -> Finding:
        """
        Create a finding using the rule's metadata as defaults.
        """
        meta = self.metadata
        return Finding(
            severity=severity or meta.severity,
            category=meta.category,
            file=file,
            line=line,
            problem=problem or meta.name,
            impact=impact or meta.impact,
            recommended_fix=recommended_fix or meta.recommended_fix,
            auto_fix_possible=meta.auto_fixable if auto_fix is None else auto_fix,
            compliance_tag=compliance or meta.compliance,
        )


class PatternRule(Rule):
    """
    A rule that scans the whole file content with regex patterns.

    Patterns run over the full text rather than line by line, so tags that
    span several lines are still matched; the reported line is the line of
    the match start.
    """

    @property
    @abstractmethod
    def patterns(self) -> List[re.Pattern]:
        """Return the regex patterns to match."""
        pass

    def applies_to(self, context: ScanContext) -> bool:
        return True

    def analyze(self, context: ScanContext) -> Generator[Finding, None, None]:
        if not self.applies_to(context):
            return
        for pattern in self.patterns:
            for match in pattern.finditer(context.content):
                yield from self.on_match(match, context)

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        """
        Called for every pattern match.

        Override to add context checks or to customize the finding.
        """
        yield self.create_finding(context.rel_path, context.line_at(match.start()))


class RuleRegistry:
    """
    Registry for managing and discovering rules.

    Rules are keyed by rule id and grouped by domain and category.
    """

    _instance: Optional["RuleRegistry"] = None

    def __init__(self):
        self._rules: Dict[str, Type[Rule]] = {}
        self._metadata: Dict[str, RuleMetadata] = {}
        self._disabled_rules: Set[str] = set()

    @classmethod
    def get_instance(cls) -> "RuleRegistry":
        """Get the singleton registry instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def register(self, rule_class: Type[Rule]) -> Type[Rule]:
        """
        Register a rule class.

        Can be used as a decorator:

        @registry.register
        class MyRule(Rule):
            ...
        """
        meta = rule_class().metadata
        if meta.rule_id in self._rules and self._rules[meta.rule_id] is not rule_class:
            raise ValueError(f"Duplicate rule id: {meta.rule_id}")
        self._rules[meta.rule_id] = rule_class
        self._metadata[meta.rule_id] = meta
        if not meta.enabled_by_default:
            self._disabled_rules.add(meta.rule_id)
        return rule_class

    def get_rule(self, rule_id: str, config: Optional[Dict[str, Any]] = None) -> Optional[Rule]:
        """Get a fresh rule instance by ID."""
        if rule_id not in self._rules:
            return None
        return self._rules[rule_id](config)

    def get_rules(
        self,
        domain: str,
        ecosystem: Optional[Ecosystem] = None,
        disabled: Iterable[str] = (),
        config: Optional[Dict[str, Any]] = None,
    ) -> List[Rule]:
        """
        Get enabled rules for a domain, in registration order.

        ``disabled`` holds rule ids or glob patterns (``AX-KBD-*``) to skip.
        """
        disabled = list(disabled)
        rules = []
        for rule_id, meta in self._metadata.items():
            if meta.domain != domain or rule_id in self._disabled_rules:
                continue
            if disabled and matches_any(rule_id, disabled):
                continue
            rule = self.get_rule(rule_id, config)
            if ecosystem is not None and not rule.supports_ecosystem(ecosystem):
                continue
            rules.append(rule)
        return rules

    def get_all_metadata(self, domain: Optional[str] = None) -> List[RuleMetadata]:
        return [m for m in self._metadata.values() if domain is None or m.domain == domain]

    def categories_for(self, domain: str) -> Set[str]:
        return {m.category for m in self._metadata.values() if m.domain == domain}


# Global registry instance
registry = RuleRegistry.get_instance()


def rule(cls: Type[Rule]) -> Type[Rule]:
    """
    Decorator to register a rule with the global registry.

    Usage:
        @rule
        class MyRule(Rule):
            ...
    """
    return registry.register(cls)
