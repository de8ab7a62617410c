"""
Finding data structures for markupaudit.

This module defines the records passed between the pipeline stages: the
immutable Finding produced by rules, the Report written by the aggregator,
and the outcome records produced by a fix run.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, List, Dict, Any
import json

from markupaudit.errors import ReportError


class Severity(Enum):
    """Severity levels for findings."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort rank, critical first."""
        return SEVERITY_ORDER.index(self)

    def __lt__(self, other):
        return self.rank > other.rank

    def __le__(self, other):
        return self == other or self < other


SEVERITY_ORDER = [Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW]

# Serialized key -> attribute for the fields every finding carries.
_REQUIRED_FIELDS = {
    "severity": "severity",
    "category": "category",
    "file": "file",
    "line": "line",
    "problem": "problem",
    "recommendedFix": "recommended_fix",
    "autoFixPossible": "auto_fix_possible",
}
_IMPACT_KEYS = ("impact", "seoImpact")
_KNOWN_KEYS = set(_REQUIRED_FIELDS) | set(_IMPACT_KEYS) | {"id", "fingerprint", "complianceTag"}


@dataclass(frozen=True)
class Finding:
    """
    A single rule-detected defect.

    Findings are immutable; the aggregator produces copies that carry the
    positional ``id`` and the content-derived ``fingerprint``.
    """
    severity: Severity
    category: str
    file: str
    line: int
    problem: str
    impact: str
    recommended_fix: str
    auto_fix_possible: bool = False
    compliance_tag: Optional[str] = None
    id: Optional[str] = None
    fingerprint: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        """Validate and normalize the finding."""
        if isinstance(self.severity, str):
            try:
                object.__setattr__(self, "severity", Severity(self.severity.lower()))
            except ValueError:
                raise ReportError(f"Unknown severity: {self.severity!r}")
        if not isinstance(self.line, int) or self.line < 1:
            try:
                object.__setattr__(self, "line", max(1, int(self.line)))
            except (TypeError, ValueError):
                raise ReportError(f"Invalid line number: {self.line!r}")

    def with_identity(self, finding_id: str, fingerprint: str) -> "Finding":
        return replace(self, id=finding_id, fingerprint=fingerprint)

    def to_dict(self, impact_key: str = "impact") -> Dict[str, Any]:
        """Convert finding to its persisted dictionary form."""
        result: Dict[str, Any] = {}
        if self.id:
            result["id"] = self.id
        result.update({
            "severity": self.severity.value,
            "category": self.category,
            "file": self.file,
            "line": self.line,
            "problem": self.problem,
            impact_key: self.impact,
            "recommendedFix": self.recommended_fix,
            "autoFixPossible": self.auto_fix_possible,
        })
        if self.compliance_tag:
            result["complianceTag"] = self.compliance_tag
        if self.fingerprint:
            result["fingerprint"] = self.fingerprint
        for key, value in self.extra.items():
            result.setdefault(key, value)
        return result

    def to_json(self, impact_key: str = "impact", indent: int = 2) -> str:
        return json.dumps(self.to_dict(impact_key), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Finding":
        """
        Create a Finding from its persisted form.

        Either impact key is accepted. Unknown keys are kept in ``extra`` so
        they survive a read/write cycle.

        Raises:
            ReportError: if the data is not an object or misses a required field.
        """
        if not isinstance(data, dict):
            raise ReportError(f"Finding must be an object, got {type(data).__name__}")
        missing = [key for key in _REQUIRED_FIELDS if key not in data]
        if missing:
            raise ReportError(
                f"Finding {data.get('id', '<unnamed>')} is missing required field(s): "
                + ", ".join(missing)
            )

        kwargs = {attr: data[key] for key, attr in _REQUIRED_FIELDS.items()}
        kwargs["auto_fix_possible"] = bool(kwargs["auto_fix_possible"])
        kwargs["impact"] = next(
            (data[key] for key in _IMPACT_KEYS if key in data), ""
        )
        return cls(
            id=data.get("id"),
            fingerprint=data.get("fingerprint"),
            compliance_tag=data.get("complianceTag"),
            extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
            **kwargs
        )


@dataclass
class Report:
    """The persisted result of one audit run."""
    domain: str
    framework: str
    project_root: str
    generated_at: str
    summary: Dict[str, Any]
    issues: List[Finding] = field(default_factory=list)

    @property
    def total_issues(self) -> int:
        return len(self.issues)

    @property
    def auto_fixable_count(self) -> int:
        return sum(1 for f in self.issues if f.auto_fix_possible)

    def to_dict(self, impact_key: str = "impact") -> Dict[str, Any]:
        return {
            "generatedAt": self.generated_at,
            "projectRoot": self.project_root,
            "framework": self.framework,
            "domain": self.domain,
            "summary": self.summary,
            "issues": [f.to_dict(impact_key) for f in self.issues],
        }

    def to_json(self, impact_key: str = "impact", indent: int = 2) -> str:
        return json.dumps(self.to_dict(impact_key), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], domain: str) -> "Report":
        if not isinstance(data, dict) or not isinstance(data.get("issues"), list):
            raise ReportError("Report must be an object with an 'issues' list")
        return cls(
            domain=data.get("domain", domain),
            framework=data.get("framework", "unknown"),
            project_root=data.get("projectRoot", ""),
            generated_at=data.get("generatedAt", ""),
            summary=data.get("summary", {}),
            issues=[Finding.from_dict(item) for item in data["issues"]],
        )


class Disposition(Enum):
    """What a fix run did with one targeted finding."""
    FIXED = "fixed"
    SKIPPED = "skipped"
    MANUAL_REVIEW = "manualReview"


@dataclass
class FixOutcome:
    disposition: Disposition
    id: str
    file: str
    problem: str
    action: Optional[str] = None
    reason: Optional[str] = None
    recommendation: Optional[str] = None
    dry_run: bool = False

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"id": self.id, "file": self.file, "problem": self.problem}
        if self.action is not None:
            result["action"] = self.action
        if self.reason is not None:
            result["reason"] = self.reason
        if self.recommendation is not None:
            result["recommendation"] = self.recommendation
        if self.dry_run:
            result["dryRun"] = True
        return result


@dataclass
class FixReport:
    """Outcome of one fix run, in report order within each list."""
    selector: str
    dry_run: bool
    total_targeted: int
    generated_at: str
    fixed: List[FixOutcome] = field(default_factory=list)
    skipped: List[FixOutcome] = field(default_factory=list)
    manual_review: List[FixOutcome] = field(default_factory=list)
    message: Optional[str] = None

    def add(self, outcome: FixOutcome):
        {
            Disposition.FIXED: self.fixed,
            Disposition.SKIPPED: self.skipped,
            Disposition.MANUAL_REVIEW: self.manual_review,
        }[outcome.disposition].append(outcome)

    @property
    def counts(self) -> Dict[str, int]:
        return {
            "fixed": len(self.fixed),
            "skipped": len(self.skipped),
            "manualReview": len(self.manual_review),
        }

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "success": True,
            "dryRun": self.dry_run,
            "filter": self.selector,
            "totalTargeted": self.total_targeted,
        }
        if self.message:
            result["message"] = self.message
        result.update({
            "fixed": [o.to_dict() for o in self.fixed],
            "skipped": [o.to_dict() for o in self.skipped],
            "manualReview": [o.to_dict() for o in self.manual_review],
            "counts": self.counts,
        })
        return result

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
