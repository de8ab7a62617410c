"""
Main audit engine for markupaudit.

This module orchestrates one audit run, coordinating between the source set
resolver, the registered rules and the aggregator.
"""

import json
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import List, Dict, Optional, Tuple

from markupaudit.config import AuditConfig, load_audit_config
from markupaudit.core.domains import AuditDomain, get_domain
from markupaudit.core.findings import Finding, Report
from markupaudit.core.report import build_report
from markupaudit.core.rules import Rule, ScanContext, ProjectContext, registry
from markupaudit.core.sources import (
    Ecosystem, detect_ecosystem, is_page_file, read_package_json,
    resolve_sources, resolve_stylesheets,
)
from markupaudit.errors import ConfigError, ReportError
from markupaudit.utils import to_posix

# Import rules to register them with the registry
import markupaudit.rules  # noqa: F401

logger = logging.getLogger(__name__)


class AuditEngine:
    """
    Runs the rules of one audit domain over a project.

    The engine:
    1. Resolves the ecosystem (configured or detected from package.json)
    2. Resolves the ordered source set for that ecosystem
    3. Runs every applicable rule on each file
    4. Runs the project-level checks once all files were scanned
    5. Hands the concatenated findings to the aggregator
    """

    def __init__(self, config: Optional[AuditConfig] = None, domain: Optional[str] = None):
        self.config = config or AuditConfig()
        self.domain: AuditDomain = get_domain(domain or self.config.domain)
        self.registry = registry
        self.errors: List[str] = []

        self.max_workers = self.config.max_workers
        self.max_file_size = self.config.resolver.max_file_size
        self.max_depth = self.config.resolver.max_depth
        self.ignore_dirs = list(self.config.resolver.ignore_dirs)
        self.disabled_rules = list(self.config.rules.disabled)

    def resolve_ecosystem(self, project_root: str, framework: Optional[str] = None) -> Ecosystem:
        """Use the requested framework, or detect it when it is ``auto``."""
        framework = framework or self.config.framework
        if framework and framework != "auto":
            try:
                return Ecosystem(framework)
            except ValueError:
                raise ConfigError(f"Unknown framework: {framework!r}")
        detection = detect_ecosystem(project_root)
        logger.info(
            "Detected %s project (%s)", detection.framework.value,
            "; ".join(detection.evidence) or "no evidence",
        )
        return detection.framework

    def get_rules(self, ecosystem: Ecosystem) -> List[Rule]:
        return self.registry.get_rules(
            self.domain.name, ecosystem, disabled=self.disabled_rules
        )

    def read_file(self, file_path: str) -> Optional[str]:
        """Read a file's contents; line endings are kept as they are on disk."""
        try:
            if os.path.getsize(file_path) > self.max_file_size:
                logger.debug("Skipping %s: larger than %d bytes", file_path, self.max_file_size)
                return None
            with open(file_path, "r", encoding="utf-8", errors="ignore", newline="") as f:
                return f.read()
        except OSError as e:
            self.errors.append(f"Error reading {file_path}: {str(e)}")
            return None

    def scan_file(
        self,
        file_path: str,
        project_root: str,
        ecosystem: Ecosystem,
        rules: List[Rule],
    ) -> Tuple[Optional[str], List[Finding]]:
        """Scan a single file. Returns its content (None if unreadable) and findings."""
        findings: List[Finding] = []

        content = self.read_file(file_path)
        if content is None:
            return None, findings

        rel_path = to_posix(os.path.relpath(file_path, project_root))
        context = ScanContext(
            file_path=file_path,
            rel_path=rel_path,
            content=content,
            ecosystem=ecosystem,
            project_root=project_root,
            is_page=is_page_file(rel_path, ecosystem),
        )

        for rule in rules:
            try:
                findings.extend(rule.analyze(context))
            except Exception as e:
                message = f"Error running rule {rule.metadata.rule_id} on {rel_path}: {str(e)}"
                logger.warning(message)
                self.errors.append(message)

        return content, findings

    def scan(self, project_root: str, ecosystem: Optional[Ecosystem] = None) -> List[Finding]:
        """
        Scan a project and return the raw, unsorted findings.

        Per-file results are merged in source-set order, so the outcome does
        not depend on the number of workers.
        """
        project_root = os.path.abspath(project_root)
        if not os.path.isdir(project_root):
            raise ConfigError(f"Project root is not a directory: {project_root}")
        if ecosystem is None:
            ecosystem = self.resolve_ecosystem(project_root)

        rules = self.get_rules(ecosystem)
        files = resolve_sources(project_root, ecosystem, self.max_depth, self.ignore_dirs)
        logger.info("Scanning %d file(s) with %d %s rule(s)", len(files), len(rules), self.domain.name)

        if len(files) > 1 and self.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                results = list(executor.map(
                    lambda f: self.scan_file(f, project_root, ecosystem, rules), files
                ))
        else:
            results = [self.scan_file(f, project_root, ecosystem, rules) for f in files]

        all_findings: List[Finding] = []
        sources: Dict[str, str] = {}
        for file_path, (content, findings) in zip(files, results):
            if content is None:
                continue
            sources[to_posix(os.path.relpath(file_path, project_root))] = content
            all_findings.extend(findings)

        project = self.create_project_context(project_root, ecosystem, sources)
        for rule in rules:
            try:
                all_findings.extend(rule.finalize(project))
            except Exception as e:
                message = f"Error running project check {rule.metadata.rule_id}: {str(e)}"
                logger.warning(message)
                self.errors.append(message)

        return all_findings

    def create_project_context(
        self, project_root: str, ecosystem: Ecosystem, sources: Dict[str, str]
    ) -> ProjectContext:
        stylesheets: Dict[str, str] = {}
        for path in resolve_stylesheets(project_root, ecosystem, self.max_depth, self.ignore_dirs):
            content = self.read_file(path)
            if content is not None:
                stylesheets[to_posix(os.path.relpath(path, project_root))] = content
        return ProjectContext(
            project_root=project_root,
            ecosystem=ecosystem,
            sources=sources,
            package=read_package_json(project_root),
            stylesheets=stylesheets,
            max_depth=self.max_depth,
            ignore_dirs=self.ignore_dirs,
        )

    def load_external(self, path: str) -> List[Finding]:
        """
        Load findings produced by an external tool (e.g. a browser audit).

        The file holds either a list of finding objects or ``{"issues": [...]}``.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise ReportError(f"Could not read external findings {path}: {e}") from e
        except ValueError as e:
            raise ReportError(f"External findings {path} are not valid JSON: {e}") from e

        if isinstance(data, dict):
            data = data.get("issues")
        if not isinstance(data, list):
            raise ReportError(
                f"External findings {path} must be a list or an object with an 'issues' list"
            )
        findings = [Finding.from_dict(item) for item in data]
        # Positional ids belong to the report being built, not the source tool
        findings = [f.with_identity(None, None) for f in findings]
        logger.info("Merged %d external finding(s) from %s", len(findings), path)
        return findings

    def audit(
        self,
        project_root: str,
        external: Optional[List[str]] = None,
    ) -> Report:
        """
        Run a full audit and aggregate the findings into a report.

        Args:
            project_root: Directory holding the project to audit.
            external: Optional paths of external findings files to merge.

        Returns:
            The aggregated Report, not yet written to disk.
        """
        project_root = os.path.abspath(project_root)
        if not os.path.isdir(project_root):
            raise ConfigError(f"Project root is not a directory: {project_root}")
        ecosystem = self.resolve_ecosystem(project_root)
        findings = self.scan(project_root, ecosystem)
        for path in external or []:
            findings.extend(self.load_external(path))
        return build_report(self.domain, findings, ecosystem.value, project_root)


def create_engine(
    config_path: Optional[str] = None,
    project_root: str = ".",
    **overrides,
) -> AuditEngine:
    """
    Create an audit engine with configuration.

    Args:
        config_path: Optional path to a configuration file. When omitted, a
            config file is searched for upwards from ``project_root``.
        **overrides: Top-level AuditConfig fields to override (domain,
            framework, max_workers).

    Returns:
        Configured AuditEngine instance.
    """
    config = load_audit_config(config_path, start_dir=project_root)
    for key, value in overrides.items():
        if value is None:
            continue
        if not hasattr(config, key):
            raise ConfigError(f"Unknown configuration option: {key}")
        setattr(config, key, value)
    config.validate()
    return AuditEngine(config)
