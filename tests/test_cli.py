"""
Tests for the command-line interface.
"""

import json
import os
import sys

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from markupaudit import __version__
from markupaudit.cli import create_parser, main


@pytest.fixture
def site(tmp_path):
    (tmp_path / "index.html").write_text(
        "<!DOCTYPE html>\n"
        "<html>\n"
        "<head><title>Home</title></head>\n"
        "<body>\n"
        '  <img src="/hero.jpg">\n'
        "</body>\n"
        "</html>\n"
    )
    return tmp_path


class TestParser:
    """Tests for argument parsing."""

    def test_defaults(self):
        args = create_parser().parse_args(["fix"])

        assert args.target == "."
        assert args.selector == "all"
        assert not args.dry_run

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_no_command(self, capsys):
        assert main([]) == 0
        assert "audit" in capsys.readouterr().out


class TestAuditCommand:
    """Tests for `markupaudit audit`."""

    def test_writes_reports(self, site, capsys):
        assert main(["audit", str(site), "--no-color"]) == 0

        assert (site / "a11y-report.json").exists()
        assert (site / "a11y-report.md").exists()
        data = json.loads((site / "a11y-report.json").read_text())
        assert any(i["problem"] == "<img> tag missing alt attribute" for i in data["issues"])

    def test_json_output(self, site, capsys):
        assert main(["audit", str(site), "--domain", "seo", "--format", "json"]) == 0

        result = json.loads(capsys.readouterr().out)
        assert result["success"] is True
        assert result["jsonReport"].endswith("seo-report.json")
        assert result["summary"]["totalIssues"] >= 1

    def test_missing_directory(self, tmp_path, capsys):
        assert main(["audit", str(tmp_path / "missing")]) == 1
        assert "Error:" in capsys.readouterr().err


class TestFixCommand:
    """Tests for `markupaudit fix`."""

    def test_without_report(self, tmp_path, capsys):
        assert main(["fix", str(tmp_path), "--domain", "seo"]) == 1
        err = capsys.readouterr().err
        assert "seo-report.json not found. Run `markupaudit audit --domain seo` first." in err

    def test_audit_then_fix(self, site, capsys):
        main(["audit", str(site), "--no-color"])
        capsys.readouterr()

        assert main(["fix", str(site), "images", "--no-color"]) == 0

        result = json.loads(capsys.readouterr().out)
        assert result["filter"] == "images"
        assert result["counts"]["fixed"] == 1
        assert 'alt="TODO: describe image"' in (site / "index.html").read_text()
        assert (site / "a11y-fix-report.md").exists()
        assert (site / "index.html.bak").exists()

    def test_dry_run(self, site, capsys):
        main(["audit", str(site)])
        capsys.readouterr()
        original = (site / "index.html").read_text()

        assert main(["fix", str(site), "--dry-run"]) == 0

        result = json.loads(capsys.readouterr().out)
        assert result["dryRun"] is True
        assert (site / "index.html").read_text() == original

    def test_no_match(self, site, capsys):
        main(["audit", str(site)])
        capsys.readouterr()

        assert main(["fix", str(site), "A11Y-999"]) == 0

        captured = capsys.readouterr()
        assert json.loads(captured.out)["message"] == "No issues found matching filter: A11Y-999"
        assert "No issues found matching filter: A11Y-999" in captured.err

    def test_invalid_timeout(self, site, capsys):
        assert main(["fix", str(site), "--timeout", "0"]) == 1
        assert "timeout" in capsys.readouterr().err


class TestOtherCommands:
    """Tests for lint, detect, init and list-rules."""

    def test_lint(self, tmp_path, capsys):
        path = tmp_path / "App.jsx"
        path.write_text('<img src="/a.png" />\n')

        assert main(["lint", str(path)]) == 0
        assert "⚠ A11Y: <img> tag without alt attribute found (WCAG 1.1.1)" in capsys.readouterr().out

    def test_lint_missing_file(self, tmp_path, capsys):
        assert main(["lint", str(tmp_path / "Missing.jsx"), "--profile", "seo"]) == 0
        assert capsys.readouterr().out == ""

    def test_detect(self, tmp_path, capsys):
        (tmp_path / "package.json").write_text(json.dumps({"dependencies": {"next": "14.1.0"}}))

        assert main(["detect", str(tmp_path)]) == 0
        assert json.loads(capsys.readouterr().out)["framework"] == "nextjs"

    def test_init(self, tmp_path, capsys):
        assert main(["init", str(tmp_path)]) == 0
        assert (tmp_path / ".markupaudit.yaml").exists()

        assert main(["init", str(tmp_path)]) == 1
        assert "Use --force to overwrite." in capsys.readouterr().out

        assert main(["init", str(tmp_path), "--force"]) == 0

    def test_list_rules(self, capsys):
        assert main(["list-rules", "--domain", "seo"]) == 0
        out = capsys.readouterr().out

        assert "SEO Rules" in out
        assert "Rendering (manual review only):" in out
        assert "Accessibility Rules" not in out
        assert "Total:" in out
