"""
Configuration system for markupaudit.

Supports YAML and JSON configuration files for customizing source
resolution, rules, output and remediation.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field, asdict

import yaml

from markupaudit.core.domains import get_domain
from markupaudit.core.sources import DEFAULT_MAX_DEPTH
from markupaudit.errors import ConfigError

logger = logging.getLogger(__name__)


# Default configuration file names to search for
CONFIG_FILE_NAMES = [
    ".markupaudit.yaml",
    ".markupaudit.yml",
    ".markupaudit.json",
    "markupaudit.yaml",
    "markupaudit.yml",
    "markupaudit.json",
]

FRAMEWORK_CHOICES = ("auto", "nextjs", "react", "angular", "html")


@dataclass
class ResolverConfig:
    """Configuration for source set resolution."""
    max_depth: int = DEFAULT_MAX_DEPTH
    ignore_dirs: List[str] = field(default_factory=list)
    max_file_size: int = 2 * 1024 * 1024  # 2MB


@dataclass
class RulesConfig:
    """Rule ids (``*`` globs allowed) to switch off."""
    disabled: List[str] = field(default_factory=list)


@dataclass
class OutputConfig:
    """Configuration for terminal output."""
    color: bool = True


@dataclass
class RemediationConfig:
    """Configuration for fix runs."""
    isolated: bool = False
    timeout: float = 30.0
    backup: bool = True


@dataclass
class AuditConfig:
    """
    Main configuration for markupaudit.

    Example YAML config:

    ```yaml
    domain: a11y
    framework: auto
    max_workers: 4

    resolver:
      max_depth: 10
      ignore_dirs:
        - storybook-static
      max_file_size: 2097152

    rules:
      disabled:
        - AX-DYN-*
        - SE-GTM-003

    output:
      color: true

    remediation:
      isolated: false
      timeout: 30
    ```
    """
    domain: str = "a11y"
    framework: str = "auto"
    max_workers: int = 4
    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    rules: RulesConfig = field(default_factory=RulesConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    remediation: RemediationConfig = field(default_factory=RemediationConfig)

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Reject settings no run could honour."""
        get_domain(self.domain)
        if self.framework not in FRAMEWORK_CHOICES:
            raise ConfigError(
                f"Unknown framework: {self.framework!r}. Available: {', '.join(FRAMEWORK_CHOICES)}"
            )
        if self.max_workers < 1:
            raise ConfigError("max_workers must be at least 1")
        if self.resolver.max_depth < 0:
            raise ConfigError("resolver.max_depth must not be negative")
        if self.remediation.timeout <= 0:
            raise ConfigError("remediation.timeout must be positive")
        if not self.remediation.backup:
            raise ConfigError(
                "remediation.backup cannot be disabled: .bak files are the only way to undo a fix"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to a dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuditConfig":
        """Create config from a dictionary. Unknown keys are ignored."""
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a mapping")
        data = dict(data)

        # Flat resolver keys are accepted at the top level too
        resolver = dict(data.pop("resolver", None) or {})
        for key in ("max_depth", "ignore_dirs", "max_file_size"):
            if key in data:
                resolver[key] = data.pop(key)

        nested = {
            "resolver": (ResolverConfig, resolver),
            "rules": (RulesConfig, data.pop("rules", None) or {}),
            "output": (OutputConfig, data.pop("output", None) or {}),
            "remediation": (RemediationConfig, data.pop("remediation", None) or {}),
        }
        for name, (section_cls, section) in nested.items():
            if not isinstance(section, dict):
                raise ConfigError(f"Configuration section '{name}' must be a mapping")
            known = set(section_cls.__dataclass_fields__)
            try:
                data[name] = section_cls(**{k: v for k, v in section.items() if k in known})
            except TypeError as e:
                raise ConfigError(f"Invalid '{name}' section: {e}") from e

        known_fields = {f for f in cls.__dataclass_fields__}
        filtered_data = {k: v for k, v in data.items() if k in known_fields}
        return cls(**filtered_data)


def load_config(path: str) -> Dict[str, Any]:
    """
    Load configuration from a file.

    Supports YAML and JSON formats.
    """
    path = Path(path)

    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    content = path.read_text(encoding="utf-8")

    try:
        if path.suffix == ".json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not parse {path}: {e}") from e

    logger.debug("Loaded configuration from %s", path)
    return data or {}


def find_config(start_path: str = ".") -> Optional[str]:
    """
    Find a configuration file by searching up the directory tree.

    Returns the path to the first config file found, or None.
    """
    current = Path(start_path).resolve()

    while True:
        for name in CONFIG_FILE_NAMES:
            config_path = current / name
            if config_path.is_file():
                return str(config_path)
        if current == current.parent:
            return None
        current = current.parent


def load_audit_config(path: Optional[str] = None, start_dir: str = ".") -> AuditConfig:
    """
    Load an AuditConfig from a file or create a default one.

    If path is None, searches for a config file starting from start_dir.
    """
    if path is None:
        path = find_config(start_dir)

    if path is None:
        return AuditConfig()

    return AuditConfig.from_dict(load_config(path))


def create_default_config() -> str:
    """
    Create a default configuration file content.
    """
    config = AuditConfig().to_dict()
    return yaml.dump(config, default_flow_style=False, sort_keys=False)
