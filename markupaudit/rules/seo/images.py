"""
Image rules: indexable alt text, layout stability and Next.js optimisation.
"""

import re
from typing import Generator, List

from markupaudit.core.rules import PatternRule, RuleMetadata, ScanContext, rule
from markupaudit.core.findings import Finding, Severity
from markupaudit.rules.seo.common import DOMAIN, scans_markup

CATEGORY = "images"

IMG = re.compile(r"<img(?=[\s>/])([^>]*?)/?\s*>", re.IGNORECASE)
HAS_ALT = re.compile(r"\balt\s*=")


class ImageRule(PatternRule):

    def applies_to(self, context: ScanContext) -> bool:
        return scans_markup(context)

    @property
    def patterns(self) -> List[re.Pattern]:
        return [IMG]


@rule
class ImageAltTextRule(ImageRule):
    """
    Detects images without alt text, and empty alt text on images that are
    not explicitly marked decorative.
    """

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-IMG-001",
            name="Image alt text",
            description="Detects <img> elements search engines cannot describe.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact=(
                "Images without alt text cannot be indexed by search engines and are "
                "inaccessible to screen readers."
            ),
            recommended_fix="Add a descriptive alt attribute: <img alt=\"Description of image\" />",
            auto_fixable=True,
        )

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        attrs = match.group(1)
        line = context.line_at(match.start())
        if not HAS_ALT.search(attrs):
            yield self.create_finding(
                context.rel_path, line, problem="<img> tag missing alt attribute"
            )
            return
        alt = re.search(r"\balt\s*=\s*[\"']([^\"']*)[\"']", attrs)
        if alt is None or alt.group(1).strip():
            return
        decorative = (
            re.search(r"role\s*=\s*[\"']presentation[\"']", attrs)
            or re.search(r"aria-hidden\s*=\s*[\"']true[\"']", attrs)
        )
        if not decorative:
            yield self.create_finding(
                context.rel_path, line,
                problem="<img> tag has empty alt attribute (may not be decorative)",
                impact=(
                    "Empty alt text should only be used for decorative images. Content images "
                    "need descriptive alt text."
                ),
                recommended_fix="Add descriptive alt text, or if decorative, add role=\"presentation\".",
                severity=Severity.MEDIUM,
                auto_fix=False,
            )


@rule
class ImageDimensionsRule(ImageRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-IMG-002",
            name="Image dimensions",
            description="Detects <img> elements without explicit width and height.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.LOW,
            impact=(
                "Missing dimensions cause Cumulative Layout Shift (CLS), a Core Web Vital "
                "that affects SEO ranking."
            ),
            recommended_fix="Add width and height attributes to prevent layout shift.",
        )

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        attrs = match.group(1)
        if re.search(r"\bwidth\s*=", attrs) and re.search(r"\bheight\s*=", attrs):
            return
        yield self.create_finding(
            context.rel_path, context.line_at(match.start()),
            problem="<img> tag missing explicit width/height attributes",
        )


@rule
class NativeImageRule(ImageRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-IMG-003",
            name="Native img in Next.js",
            description="Detects native <img> in files that do not use next/image.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact=(
                "next/image provides automatic optimization, lazy loading, responsive images, "
                "and WebP/AVIF conversion. Native <img> misses these SEO and performance benefits."
            ),
            recommended_fix="Import Image from 'next/image' and replace <img> with <Image>.",
            ecosystems=["nextjs"],
            auto_fixable=True,
        )

    def on_match(self, match: re.Match, context: ScanContext) -> Generator[Finding, None, None]:
        if "next/image" in context.content or "next/legacy/image" in context.content:
            return
        yield self.create_finding(
            context.rel_path, context.line_at(match.start()),
            problem="Using native <img> tag instead of next/image component",
        )


@rule
class NextImageAltTextRule(PatternRule):

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="SE-IMG-004",
            name="Next.js Image alt text",
            description="Detects next/image components without an alt prop.",
            domain=DOMAIN,
            category=CATEGORY,
            severity=Severity.HIGH,
            impact="Images without alt text cannot be indexed and harm accessibility.",
            recommended_fix="Add a descriptive alt prop: <Image alt=\"Description\" />",
            ecosystems=["nextjs"],
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
