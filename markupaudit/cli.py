"""
Command-line interface for markupaudit.

Provides the audit, fix and lint commands plus a few helpers for setting up
a project.
"""

import argparse
import json
import logging
import os
import sys
from typing import Optional, List

from markupaudit import __version__
from markupaudit.config import (
    CONFIG_FILE_NAMES, FRAMEWORK_CHOICES, create_default_config, load_audit_config,
)
from markupaudit.core.domains import DOMAINS, get_domain
from markupaudit.core.engine import create_engine
from markupaudit.core.report import write_report
from markupaudit.core.sources import detect_ecosystem
from markupaudit.errors import MarkupAuditError
from markupaudit.formatters.cli import CLIFormatter
from markupaudit.formatters import get_formatter
from markupaudit.lint import PROFILES, lint_file

logger = logging.getLogger(__name__)

DEBUG_VARIABLE = "MARKUPAUDIT_DEBUG"


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="markupaudit",
        description="Accessibility and SEO auditor for frontend projects, with safe automatic fixes.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  markupaudit audit . --domain a11y            # Write a11y-report.json/.md
  markupaudit audit ./site --domain seo        # Audit another project
  markupaudit fix . --domain a11y --dry-run    # Show what would be fixed
  markupaudit fix . --domain a11y A11Y-003     # Fix one finding
  markupaudit fix . --domain seo images        # Fix one category
  markupaudit lint src/App.tsx --profile ui    # Quick single-file check
  markupaudit init                             # Create config file
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    domains = sorted(DOMAINS)

    # Audit command
    audit_parser = subparsers.add_parser("audit", help="Audit a project and write the reports")
    audit_parser.add_argument(
        "target",
        nargs="?",
        default=".",
        help="Project root to audit (default: current directory)",
    )
    audit_parser.add_argument(
        "-d", "--domain",
        choices=domains,
        help="Audit domain (default: from config, else a11y)",
    )
    audit_parser.add_argument(
        "--framework",
        choices=FRAMEWORK_CHOICES,
        help="Skip detection and treat the project as this framework",
    )
    audit_parser.add_argument(
        "--external",
        action="append",
        help="JSON file of findings from another tool to merge (can be specified multiple times)",
    )
    audit_parser.add_argument(
        "-c", "--config",
        help="Path to configuration file",
    )
    audit_parser.add_argument(
        "-f", "--format",
        choices=["text", "json"],
        default="text",
        help="Summary format on stdout (default: text)",
    )
    audit_parser.add_argument(
        "-j", "--jobs",
        type=int,
        help="Number of parallel workers (default: 4)",
    )
    audit_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output",
    )
    audit_parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )

    # Fix command
    fix_parser = subparsers.add_parser("fix", help="Apply fixes from a previous audit")
    fix_parser.add_argument(
        "target",
        nargs="?",
        default=".",
        help="Project root holding the report (default: current directory)",
    )
    fix_parser.add_argument(
        "selector",
        nargs="?",
        default="all",
        help="'all', a finding id such as A11Y-003, or a category name (default: all)",
    )
    fix_parser.add_argument(
        "-d", "--domain",
        choices=domains,
        help="Audit domain (default: from config, else a11y)",
    )
    fix_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show fixes without applying them",
    )
    fix_parser.add_argument(
        "--isolated",
        action="store_true",
        help="Run every handler in its own Python process",
    )
    fix_parser.add_argument(
        "--timeout",
        type=float,
        help="Seconds an isolated handler may run (default: 30)",
    )
    fix_parser.add_argument(
        "-c", "--config",
        help="Path to configuration file",
    )
    fix_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output",
    )
    fix_parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )

    # Lint command
    lint_parser = subparsers.add_parser("lint", help="Quick advisory check of one file")
    lint_parser.add_argument("file", help="File to check")
    lint_parser.add_argument(
        "-p", "--profile",
        choices=sorted(PROFILES),
        default="a11y",
        help="Which checks to run (default: a11y)",
    )

    # Detect command
    detect_parser = subparsers.add_parser("detect", help="Show the detected framework")
    detect_parser.add_argument(
        "target",
        nargs="?",
        default=".",
        help="Project root (default: current directory)",
    )

    # Init command
    init_parser = subparsers.add_parser("init", help="Create a configuration file")
    init_parser.add_argument(
        "target",
        nargs="?",
        default=".",
        help="Directory to create the file in (default: current directory)",
    )
    init_parser.add_argument(
        "-f", "--force",
        action="store_true",
        help="Overwrite existing config file",
    )

    # List-rules command
    rules_parser = subparsers.add_parser("list-rules", help="List available rules")
    rules_parser.add_argument(
        "-d", "--domain",
        choices=domains,
        help="Only list rules of this domain",
    )

    return parser


def configure_logging(verbose: bool = False):
    """Send log records to stderr; stdout is reserved for command output."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def cmd_audit(args: argparse.Namespace) -> int:
    """Execute the audit command."""
    engine = create_engine(
        args.config,
        args.target,
        domain=args.domain,
        framework=args.framework,
        max_workers=args.jobs,
    )
    domain = engine.domain
    project_root = os.path.abspath(args.target)

    if args.verbose and args.format == "text":
        print(f"Auditing {project_root} ({domain.name})...", file=sys.stderr)

    report = engine.audit(project_root, external=args.external)
    json_path, md_path = write_report(domain, report, project_root)

    if args.format == "json":
        print(get_formatter("json", domain).format_audit_result(report, json_path, md_path))
    else:
        use_color = engine.config.output.color and not args.no_color
        CLIFormatter(domain, use_color=use_color).print_audit_summary(
            report, [json_path, md_path], engine.errors
        )
    return 0


def cmd_fix(args: argparse.Namespace) -> int:
    """Execute the fix command."""
    # Imported here so running the dispatch module as a script stays clean
    from markupaudit.remediation.engine import FixOrchestrator

    config = load_audit_config(args.config, start_dir=args.target)
    if args.isolated:
        config.remediation.isolated = True
    if args.timeout is not None:
        config.remediation.timeout = args.timeout
    config.validate()

    domain = get_domain(args.domain or config.domain)
    orchestrator = FixOrchestrator(domain, args.target, config)
    fix_report = orchestrator.run(args.selector, dry_run=args.dry_run)

    print(get_formatter("json", domain).format_fix_report(fix_report))

    use_color = config.output.color and not args.no_color
    formatter = CLIFormatter(domain, use_color=use_color)
    if fix_report.message:
        formatter.console.print(fix_report.message, markup=False)
    else:
        formatter.print_fix_summary(fix_report, orchestrator.report_path)
    return 0


def cmd_lint(args: argparse.Namespace) -> int:
    """Execute the lint command. Always succeeds."""
    for line in lint_file(args.file, args.profile):
        print(line)
    return 0


def cmd_detect(args: argparse.Namespace) -> int:
    """Execute the detect command."""
    detection = detect_ecosystem(os.path.abspath(args.target))
    print(json.dumps(detection.to_dict(), indent=2))
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    """Execute the init command."""
    config_file = os.path.join(args.target, CONFIG_FILE_NAMES[0])

    if os.path.exists(config_file) and not args.force:
        print(f"Configuration file {config_file} already exists.")
        print("Use --force to overwrite.")
        return 1

    content = create_default_config()

    with open(config_file, "w", encoding="utf-8") as f:
        f.write(content)

    print(f"Created configuration file: {config_file}")
    return 0


def cmd_list_rules(args: argparse.Namespace) -> int:
    """Execute the list-rules command."""
    from markupaudit.core.rules import registry

    # Import rules to register them
    import markupaudit.rules  # noqa: F401

    domains = [get_domain(args.domain)] if args.domain else list(DOMAINS.values())
    total = 0

    for domain in domains:
        metadata = registry.get_all_metadata(domain.name)
        print(f"\n{domain.title} Rules")
        print("=" * 70)
        for category in domain.category_names:
            rules = [m for m in metadata if m.category == category]
            if not rules:
                continue
            suffix = " (manual review only)" if domain.is_manual_only(category) else ""
            print(f"\n{domain.label(category)}{suffix}:")
            print("-" * 70)
            for meta in rules:
                status = "✓" if meta.auto_fixable else "○"
                print(f"  {status} {meta.rule_id:<14} {meta.name:<36} [{meta.severity.value}]")
        total += len(metadata)

    print(f"\nTotal: {total} rules")
    print("✓ = auto-fixable, ○ = manual fix")

    return 0


COMMANDS = {
    "audit": cmd_audit,
    "fix": cmd_fix,
    "lint": cmd_lint,
    "detect": cmd_detect,
    "init": cmd_init,
    "list-rules": cmd_list_rules,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    configure_logging(getattr(args, "verbose", False))

    try:
        return COMMANDS[args.command](args)

    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130
    except MarkupAuditError as e:
        print(f"Error: {e}", file=sys.stderr)
        if os.environ.get(DEBUG_VARIABLE):
            raise
        return 1
    except Exception as e:
        logger.debug("Unexpected failure", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        if os.environ.get(DEBUG_VARIABLE):
            raise
        return 1


if __name__ == "__main__":
    sys.exit(main())
