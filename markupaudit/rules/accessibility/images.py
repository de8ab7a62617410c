"""
Image text alternative rules (WCAG 1.1.1).
"""

import re
from typing import Generator, List

from markupaudit.core.rules import PatternRule, RuleMetadata, ScanContext, rule
from markupaudit.core.findings import Finding, Severity
from markupaudit.core.sources import Ecosystem
from markupaudit.rules.accessibility.common import DOMAIN, wcag

CATEGORY = "images"

DECORATIVE_HINTS = re.compile(
    r"icon|decorat|separator|divider|spacer|background|bg-|ornament", re.IGNORECASE
)
HAS_ALT = re.compile(r"\balt\s*=")


def is_likely_decorative(attrs: str) -> bool:
    """Guess from src and class names whether an image is decorative."""
    src = re.search(r"\bsrc\s*=\s*[\"']([^\"']+)[\"']", attrs)
    css_class = re.search(r"\b(class|className)\s*=\s*[\"']([^\"']+)[\"']", attrs)
    return bool(
        (src and DECORATIVE_HINTS.search(src.group(1)))
        or (css_class and DECORATIVE_HINTS.search(css_class.group(2)))
    )


@rule
class ImageAltRule(PatternRule):
    """
    Detects <img> elements without an alt attribute.

    Images whose src or class looks decorative get a softer finding asking
    for an empty alt; this is a heuristic and only advisory.
    """

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-IMG-001",
            name="Image missing alt",
            description="Detects <img> elements without a text alternative.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.CRITICAL,
            impact=(
                "Screen readers cannot describe this image. Depending on browser, they "
                "may read the filename or URL, which is meaningless."
            ),
            recommended_fix="Add a descriptive alt attribute. If decorative, add alt=\"\".",
            compliance=wcag("1.1.1"),
            auto_fixable=True,
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [re.compile(r"<img(?=[\s>/])([^>]*?)/?\s*>", re.IGNORECASE)]

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        attrs = match.group(1)
        if HAS_ALT.search(attrs):
            return
        line = context.line_at(match.start())
        if is_likely_decorative(attrs):
            yield self.create_finding(
                context.rel_path, line,
                problem=(
                    "Likely decorative <img> missing alt=\"\" — should have empty alt "
                    "to be ignored by screen readers"
                ),
                impact=(
                    "Without alt=\"\", screen readers may announce the filename, which "
                    "is confusing for decorative images."
                ),
                recommended_fix="Add alt=\"\" to mark this image as decorative.",
                severity=Severity.MEDIUM,
            )
        else:
            yield self.create_finding(
                context.rel_path, line, problem="<img> tag missing alt attribute"
            )


@rule
class NextImageAltRule(PatternRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-IMG-002",
            name="Next.js Image missing alt",
            description="Detects next/image components without an alt prop.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.CRITICAL,
            impact="Screen readers cannot describe this image.",
            recommended_fix="Add alt=\"descriptive text\" or alt=\"\" if decorative.",
            compliance=wcag("1.1.1"),
            ecosystems=[Ecosystem.NEXTJS.value],
            auto_fixable=True,
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [re.compile(r"<Image\s([^>]*?)/?\s*>")]

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        if HAS_ALT.search(match.group(1)):
            return
        yield self.create_finding(
            context.rel_path, context.line_at(match.start()),
            problem="Next.js Image component missing alt attribute",
        )


@rule
class RoleImageNameRule(PatternRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="AX-IMG-003",
            name="role=img without name",
            description="Detects elements with role=\"img\" that have no accessible name.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact="Screen readers identify this as an image but have no description to announce.",
            recommended_fix="Add aria-label=\"description\" or aria-labelledby pointing to a visible label.",
            compliance=wcag("1.1.1"),
        )

    @property
    def patterns(self) -> List[re.Pattern]:
        return [re.compile(r"role\s*=\s*[\"']img[\"']", re.IGNORECASE)]

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        tag = context.tag_at(match.start())
        for attr in ("aria-label", "aria-labelledby", "alt"):
            if re.search(r"\b" + attr + r"\s*=\s*[\"'][^\"']+[\"']", tag):
                return
        yield self.create_finding(
            context.rel_path, context.line_at(match.start()),
            problem="Element with role=\"img\" has no accessible name",
        )
