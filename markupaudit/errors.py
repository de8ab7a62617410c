"""
Exception hierarchy for markupaudit.

Fatal conditions (missing report, unwritable destination, bad configuration)
propagate to the CLI. Per-finding conditions raised inside fix handlers are
converted into skipped outcomes by the orchestrator.
"""


class MarkupAuditError(Exception):
    """Base class for all markupaudit errors."""


class ConfigError(MarkupAuditError):
    """Invalid or unreadable configuration."""


class ReportError(MarkupAuditError):
    """A persisted report exists but cannot be interpreted."""


class ReportNotFoundError(ReportError):
    """The report a fix run depends on has not been generated yet."""

    def __init__(self, path: str, domain: str):
        self.path = path
        self.domain = domain
        super().__init__(
            f"{path} not found. Run `markupaudit audit --domain {domain}` first."
        )


class ReportWriteError(MarkupAuditError):
    """A report or fix report could not be written."""


class HandlerError(MarkupAuditError):
    """A fix handler could not be dispatched or returned unusable output."""


class FixNotApplied(MarkupAuditError):
    """A fix handler declined to edit; the message is the skip reason."""


class TargetNotFoundError(FixNotApplied):
    """The file or the defect a finding points at cannot be located."""


class AlreadyFixedError(FixNotApplied):
    """The defect is already absent from the file."""

    def __init__(self, detail: str):
        super().__init__(f"Already fixed: {detail}")


class UnsafeFixError(FixNotApplied):
    """The edit is structurally ambiguous and must not be automated."""
