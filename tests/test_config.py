"""
Tests for the configuration system.
"""

import json
import os
import sys

import pytest
import yaml

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from markupaudit.config import (
    AuditConfig, create_default_config, find_config, load_audit_config, load_config,
)
from markupaudit.errors import ConfigError


class TestAuditConfig:
    """Tests for AuditConfig."""

    def test_defaults(self):
        config = AuditConfig()

        assert config.domain == "a11y"
        assert config.framework == "auto"
        assert config.max_workers == 4
        assert config.remediation.isolated is False
        assert config.remediation.timeout == 30.0
        assert config.remediation.backup is True
        assert config.rules.disabled == []

    def test_from_dict(self):
        config = AuditConfig.from_dict({
            "domain": "seo",
            "framework": "nextjs",
            "resolver": {"max_depth": 3, "ignore_dirs": ["storybook-static"]},
            "rules": {"disabled": ["SE-GTM-*"]},
            "remediation": {"isolated": True, "timeout": 5},
        })

        assert config.domain == "seo"
        assert config.framework == "nextjs"
        assert config.resolver.max_depth == 3
        assert config.resolver.ignore_dirs == ["storybook-static"]
        assert config.rules.disabled == ["SE-GTM-*"]
        assert config.remediation.isolated is True
        assert config.remediation.timeout == 5

    def test_flat_resolver_keys(self):
        config = AuditConfig.from_dict({"max_depth": 2, "ignore_dirs": ["vendor"]})
        assert config.resolver.max_depth == 2
        assert config.resolver.ignore_dirs == ["vendor"]

    def test_unknown_keys_ignored(self):
        config = AuditConfig.from_dict({"colour": "blue", "output": {"color": False, "width": 80}})
        assert config.output.color is False

    @pytest.mark.parametrize("data", [
        {"domain": "perf"},
        {"framework": "vue"},
        {"max_workers": 0},
        {"resolver": {"max_depth": -1}},
        {"remediation": {"timeout": 0}},
        {"remediation": {"backup": False}},
        {"rules": ["AX-IMG-001"]},
    ])
    def test_invalid(self, data):
        with pytest.raises(ConfigError):
            AuditConfig.from_dict(data)

    def test_not_a_mapping(self):
        with pytest.raises(ConfigError):
            AuditConfig.from_dict(["a11y"])


class TestConfigFiles:
    """Tests for loading and locating config files."""

    def test_load_yaml(self, tmp_path):
        path = tmp_path / ".markupaudit.yaml"
        path.write_text("domain: seo\nrules:\n  disabled:\n    - SE-URL-*\n")

        data = load_config(str(path))

        assert data == {"domain": "seo", "rules": {"disabled": ["SE-URL-*"]}}

    def test_load_json(self, tmp_path):
        path = tmp_path / "markupaudit.json"
        path.write_text(json.dumps({"max_workers": 2}))
        assert load_config(str(path)) == {"max_workers": 2}

    def test_load_empty(self, tmp_path):
        path = tmp_path / ".markupaudit.yml"
        path.write_text("")
        assert load_config(str(path)) == {}

    def test_load_missing(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(str(tmp_path / "nope.yaml"))

    def test_load_malformed(self, tmp_path):
        path = tmp_path / ".markupaudit.yaml"
        path.write_text("domain: [seo\n")
        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_find_config_searches_upwards(self, tmp_path):
        (tmp_path / ".markupaudit.yaml").write_text("domain: seo\n")
        nested = tmp_path / "src" / "components"
        nested.mkdir(parents=True)

        assert find_config(str(nested)) == str((tmp_path / ".markupaudit.yaml").resolve())

    def test_load_audit_config_from_start_dir(self, tmp_path):
        (tmp_path / ".markupaudit.yaml").write_text("framework: html\n")
        config = load_audit_config(start_dir=str(tmp_path))
        assert config.framework == "html"

    def test_default_config_round_trips(self):
        content = create_default_config()
        data = yaml.safe_load(content)

        assert data["domain"] == "a11y"
        assert data["remediation"]["backup"] is True
        assert AuditConfig.from_dict(data) == AuditConfig()
