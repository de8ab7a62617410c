"""
Dynamic content rules (WCAG 4.1.3 status messages).

Findings in this category always go to manual review: whether content
updates need announcing depends on runtime behaviour.
"""

import re
from typing import Generator, List

from markupaudit.core.rules import PatternRule, RuleMetadata, ScanContext, rule
from markupaudit.core.findings import Finding, Severity
from markupaudit.rules.accessibility.common import DOMAIN, class_hint_pattern, wcag

CATEGORY = "dynamic"

LIVE_ROLE = re.compile(r"\brole\s*=\s*[\"'](alert|status|log)[\"']")
ARIA_LIVE = re.compile(r"\baria-live\s*=")


def is_live_region(tag: str) -> bool:
    return bool(ARIA_LIVE.search(tag) or LIVE_ROLE.search(tag))


@rule
class ToastLiveRegionRule(PatternRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-DYN-001",
            name="Toast without live region",
            description="Detects toast and notification containers that are not announced.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact=(
                "Screen readers will not announce dynamic toast messages. Users will miss "
                "important notifications."
            ),
            recommended_fix=(
                "Add role=\"status\" and aria-live=\"polite\" for non-urgent messages, or "
                "role=\"alert\" for urgent ones."
            ),
            compliance=wcag("4.1.3", "AA"),
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [class_hint_pattern(
            "div|span|section", "toast|notification|snackbar|alert-banner|flash-message"
        )]

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        if is_live_region(match.group(0)):
            return
        yield self.create_finding(
            context.rel_path, context.line_at(match.start()),
            problem="Toast/notification element missing aria-live or role=\"status\"",
        )


@rule
class LoadingIndicatorRule(PatternRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-DYN-002",
            name="Silent loading indicator",
            description="Detects spinners and skeletons with no text or ARIA state.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact=(
                "Screen reader users see nothing when content is loading. They may think "
                "the page is broken or empty."
            ),
            recommended_fix=(
                "Add aria-label=\"Loading\" and role=\"status\" or aria-live=\"polite\" "
                "to announce loading state."
            ),
            compliance=wcag("4.1.3", "AA"),
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [class_hint_pattern("div|span", "loading|spinner|loader|skeleton|progress")]

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        tag = match.group(0)
        if (re.search(r"\baria-hidden\s*=\s*[\"']true[\"']", tag)
                or re.search(r"\baria-label\s*=", tag)
                or re.search(r"\brole\s*=\s*[\"'](status|progressbar|alert)[\"']", tag)
                or ARIA_LIVE.search(tag)):
            return
        content = context.content
        close = content.find("</", match.end())
        inner = content[match.end():close] if close != -1 else ""
        if re.sub(r"<[^>]*>", "", inner).strip():
            return
        yield self.create_finding(
            context.rel_path, context.line_at(match.start()),
            problem="Loading indicator has no accessible text or ARIA attributes",
        )


@rule
class BusyWithoutLiveRegionRule(PatternRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-DYN-003",
            name="aria-busy without live region",
            description="Detects aria-busy used on elements that are not live regions.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.LOW,
            impact=(
                "aria-busy suppresses announcements, but without a live region there is "
                "nothing to suppress or resume."
            ),
            recommended_fix=(
                "Add aria-live=\"polite\" to the container so screen readers announce "
                "content when loading completes."
            ),
            compliance=wcag("4.1.3", "AA"),
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [re.compile(r"aria-busy\s*=\s*[\"']true[\"']", re.IGNORECASE)]

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        if is_live_region(context.tag_at(match.start())):
            return
        start = context.content.rfind("<", 0, match.start())
        yield self.create_finding(
            context.rel_path, context.line_at(max(start, 0)),
            problem="aria-busy=\"true\" used without aria-live region",
        )


@rule
class StatusMessageRule(PatternRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-DYN-004",
            name="Status message without live region",
            description="Detects success, error and feedback message containers that are not announced.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.MEDIUM,
            impact="Dynamically updated status messages are not announced to screen reader users.",
            recommended_fix=(
                "Add role=\"status\" with aria-live=\"polite\" for success messages, or "
                "role=\"alert\" for errors."
            ),
            compliance=wcag("4.1.3", "AA"),
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [class_hint_pattern(
            "div|span|p",
            "success-message|error-message|warning-message|status-message|feedback|result-text",
        )]

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        if is_live_region(match.group(0)):
            return
        yield self.create_finding(
            context.rel_path, context.line_at(match.start()),
            problem="Status/feedback message element missing live region semantics",
        )
