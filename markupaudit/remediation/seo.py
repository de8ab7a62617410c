"""
Fix handlers for the SEO domain.

Handlers edit HTML documents, Next.js ``metadata`` exports and JSX markup.
Changes that alter public URLs or need page-specific copy beyond a
placeholder are declined with an explanation.
"""

import os
import re
from typing import Optional

from markupaudit.core.domains import SEO
from markupaudit.core.findings import Finding
from markupaudit.errors import AlreadyFixedError, TargetNotFoundError, UnsafeFixError
from markupaudit.remediation.fixers import (
    BaseFixer, SourceFile, find_closing, register_fixer, with_placeholder_note,
)
from markupaudit.rules.seo.common import (
    METADATA_DESCRIPTION, METADATA_TITLE, META_DESCRIPTION, TITLE_TAG, basename,
    html_title, meta_description,
)
from markupaudit.rules.seo.gtm import ENV_VAR_NAMES, NOSCRIPT_ID, SCRIPT_ID, has_gtm
from markupaudit.rules.seo.links import is_internal
from markupaudit.utils import get_attribute

TITLE_PLACEHOLDER = "TODO: page title"
DESCRIPTION_PLACEHOLDER = "TODO: page description"
GTM_PLACEHOLDER = "GTM-XXXXXXX"

HEAD_OPEN = re.compile(r"<head(?:\s[^>]*)?>", re.IGNORECASE)
BODY_OPEN = re.compile(r"<body(?:\s[^>]*)?>", re.IGNORECASE)
METADATA_EXPORT = re.compile(r"export\s+const\s+metadata\s*(?::\s*[\w.]+\s*)?=\s*\{")
IMPORT_STATEMENT = re.compile(
    r"^import\s[^;'\"]*?from\s+['\"][^'\"]+['\"];?[ \t]*$|^import\s+['\"][^'\"]+['\"];?[ \t]*$",
    re.MULTILINE,
)
USE_DIRECTIVE = re.compile(r"\s*['\"]use (?:client|server)['\"];?[ \t]*")
CLIENT_DIRECTIVE = re.compile(r"^\s*['\"]use client['\"]", re.MULTILINE)
ENV_REFERENCE = re.compile(r"process\.env\.(\w*GTM\w*)")

ENV_FILES = (".env", ".env.local", ".env.development", ".env.production", ".env.example")

GTM_LOADER = (
    "(function(w,d,s,l,i){{w[l]=w[l]||[];w[l].push({{'gtm.start':"
    "new Date().getTime(),event:'gtm.js'}});var f=d.getElementsByTagName(s)[0],"
    "j=d.createElement(s),dl=l!='dataLayer'?'&l='+l:'';j.async=true;j.src="
    "'https://www.googletagmanager.com/gtm.js?id='+i+dl;f.parentNode.insertBefore(j,f);"
    "}})(window,document,'script','dataLayer','{container}');"
)
GTM_FRAME = "https://www.googletagmanager.com/ns.html?id="
FRAME_STYLE = 'height="0" width="0" style="display:none;visibility:hidden"'
JSX_FRAME_STYLE = 'height="0" width="0" style={{ display: "none", visibility: "hidden" }}'


def import_offset(content: str) -> Optional[int]:
    """End of the last import statement (or of a leading directive), None at the top."""
    imports = list(IMPORT_STATEMENT.finditer(content))
    if imports:
        return imports[-1].end()
    directive = USE_DIRECTIVE.match(content)
    return directive.end() if directive else None


def add_import(source: SourceFile, name: str, module: str, named: bool = False) -> bool:
    """
    Import ``name`` from ``module`` unless it is already imported. Named
    imports join an existing import from the same module.
    """
    content = source.content
    quoted = r"['\"]" + re.escape(module) + r"['\"]"
    if re.search(r"import[^;]*\b" + re.escape(name) + r"\b[^;]*from\s+" + quoted, content):
        return False
    if named:
        existing = re.search(r"import\s*\{([^}]*)\}\s*from\s+" + quoted, content)
        if existing:
            source.insert(existing.start(1), f" {name},")
            return True
        statement = f"import {{ {name} }} from '{module}';"
    else:
        statement = f"import {name} from '{module}';"

    offset = import_offset(content)
    if offset is None:
        source.insert(0, statement + source.newline)
    else:
        source.insert(offset, source.newline + statement)
    return True


def gtm_loader(container: str) -> str:
    return GTM_LOADER.format(container=container)


class SeoFixer(BaseFixer):
    domain = SEO.name

    def _after(self, source: SourceFile, pattern: re.Pattern, what: str) -> int:
        match = pattern.search(source.content)
        if not match:
            raise UnsafeFixError(f"Could not find {what} in {source.rel_path}.")
        return match.end()

    def _add_metadata_field(self, source: SourceFile, field: str, value: str) -> str:
        """Add ``field`` to the ``metadata`` export, creating the export when missing."""
        if CLIENT_DIRECTIVE.search(source.content):
            raise UnsafeFixError(
                "Client components cannot export metadata; move it to a server layout or page."
            )
        nl = source.newline
        export = METADATA_EXPORT.search(source.content)
        if export:
            source.insert(export.end(), f"{nl}  {field}: '{value}',")
            return f"Added {field} to the existing metadata export."

        block = f"export const metadata = {{{nl}  {field}: '{value}',{nl}}};"
        offset = import_offset(source.content)
        if offset is None:
            source.insert(0, block + nl + nl)
        else:
            source.insert(offset, nl + nl + block)
        return f"Added a metadata export with a {field}."


@register_fixer
class TitleFixer(SeoFixer):
    category = "title"
    sub_fixes = [
        (("missing <title> tag",), "fix_html_title"),
        (("Empty <title> tag",), "fix_html_title"),
        (("title in index.html",), "fix_html_title"),
        (("title tag in index.html",), "fix_html_title"),
        (("missing metadata title",), "add_metadata_title"),
    ]

    def fix_html_title(self, source: SourceFile, finding: Finding) -> str:
        title = html_title(source.content)
        if title is not None and title.strip() and "React App" not in title:
            raise AlreadyFixedError("the document has a title.")

        if title is not None:
            match = TITLE_TAG.search(source.content)
            source.replace(match.start(1), match.end(1), TITLE_PLACEHOLDER)
            return with_placeholder_note(f"Set the <title> text to \"{TITLE_PLACEHOLDER}\".")

        offset = self._after(source, HEAD_OPEN, "<head>")
        source.insert(offset, f"{source.newline}  <title>{TITLE_PLACEHOLDER}</title>")
        return with_placeholder_note(f"Added <title>{TITLE_PLACEHOLDER}</title> to <head>.")

    def add_metadata_title(self, source: SourceFile, finding: Finding) -> str:
        if METADATA_TITLE.search(source.content) or "generateMetadata" in source.content:
            raise AlreadyFixedError("the metadata export has a title.")
        return with_placeholder_note(self._add_metadata_field(source, "title", TITLE_PLACEHOLDER))


@register_fixer
class MetaDescriptionFixer(SeoFixer):
    category = "meta-description"
    sub_fixes = [
        (("missing meta description tag",), "fix_html_description"),
        (("Empty meta description",), "fix_html_description"),
        (("meta description in index.html",), "fix_html_description"),
        (("missing meta description in metadata export",), "add_metadata_description"),
    ]

    def fix_html_description(self, source: SourceFile, finding: Finding) -> str:
        value = meta_description(source.content)
        if value is not None and value.strip():
            raise AlreadyFixedError("the document has a meta description.")

        if value is not None:
            for pattern in META_DESCRIPTION:
                match = pattern.search(source.content)
                if match:
                    source.replace(match.start(1), match.end(1), DESCRIPTION_PLACEHOLDER)
                    break
            return with_placeholder_note("Filled the empty meta description with a placeholder.")

        offset = self._after(source, HEAD_OPEN, "<head>")
        source.insert(
            offset,
            f'{source.newline}  <meta name="description" content="{DESCRIPTION_PLACEHOLDER}">',
        )
        return with_placeholder_note("Added a meta description tag to <head>.")

    def add_metadata_description(self, source: SourceFile, finding: Finding) -> str:
        if METADATA_DESCRIPTION.search(source.content) or "generateMetadata" in source.content:
            raise AlreadyFixedError("the metadata export has a description.")
        return with_placeholder_note(
            self._add_metadata_field(source, "description", DESCRIPTION_PLACEHOLDER)
        )


@register_fixer
class HeadingsFixer(SeoFixer):
    """Retags headings in place; the closing tag may sit on a later line."""

    category = "headings"
    sub_fixes = [
        (("Multiple H1 tags found",), "demote_extra_h1"),
        (("Skipped heading level",), "fix_skipped_level"),
    ]

    def demote_extra_h1(self, source: SourceFile, finding: Finding) -> str:
        first = re.search(r"<h1(?=[\s>])", source.content, re.IGNORECASE)
        extra = [
            (start, tag) for start, tag, _ in source.elements_on_line("h1", finding.line)
            if first is None or start != first.start()
        ]
        if not extra:
            raise AlreadyFixedError(f"no additional <h1> on line {finding.line}.")
        start, tag = extra[0]
        self.retag(source, start, tag, "h2")
        return "Changed the additional <h1> to <h2>."

    def fix_skipped_level(self, source: SourceFile, finding: Finding) -> str:
        levels = re.search(r"H(\d) → H(\d) \(expected H(\d)\)", finding.problem)
        if not levels:
            raise UnsafeFixError("Could not read the heading levels from the finding.")
        current, expected = levels.group(2), levels.group(3)

        elements = source.elements_on_line(f"h{current}", finding.line)
        if not elements:
            raise AlreadyFixedError(f"no <h{current}> on line {finding.line}.")
        start, tag, _ = elements[0]
        self.retag(source, start, tag, f"h{expected}")
        return f"Changed <h{current}> to <h{expected}>."


@register_fixer
class SemanticHtmlFixer(SeoFixer):
    """
    Adds missing landmarks to static HTML documents. Components are left
    alone: where a landmark belongs in a component tree is a layout decision.
    """

    category = "semantic-html"
    sub_fixes = [
        (("Missing <main> landmark",), "add_main"),
        (("Missing <header> landmark",), "add_header"),
    ]

    def add_main(self, source: SourceFile, finding: Finding) -> str:
        content = source.content
        if re.search(r"<main[\s>]", content, re.IGNORECASE):
            raise AlreadyFixedError("<main> is present.")
        if not source.is_html:
            raise UnsafeFixError("Adding <main> to a component requires manual review.")

        body = BODY_OPEN.search(content)
        body_close = content.lower().rfind("</body>")
        if not body or body_close == -1:
            raise UnsafeFixError("Could not find the <body> element to wrap in <main>.")

        header = re.search(r"</header>", content, re.IGNORECASE)
        footer = re.search(r"<footer[\s>]", content, re.IGNORECASE)
        start = header.end() if header and body.end() <= header.start() < body_close else body.end()
        end = footer.start() if footer and start <= footer.start() < body_close else body_close

        nl = source.newline
        source.insert(end, f"</main>{nl}")
        source.insert(start, f"{nl}<main>")
        return "Wrapped the page content in a <main> landmark."

    def add_header(self, source: SourceFile, finding: Finding) -> str:
        content = source.content
        if re.search(r"<header[\s>]", content, re.IGNORECASE):
            raise AlreadyFixedError("<header> is present.")
        if not source.is_html:
            raise UnsafeFixError("Adding <header> to a component requires manual review.")

        nav = re.search(r"<nav(?=[\s>])", content, re.IGNORECASE)
        if not nav:
            raise UnsafeFixError("No <nav> to wrap; add the <header> landmark by hand.")
        open_end, _ = source.opening_tag(nav.start())
        close = find_closing(content, "nav", open_end)
        if close is None:
            raise UnsafeFixError("Could not find closing </nav> tag.")

        source.insert(close[1], "</header>")
        source.insert(nav.start(), "<header>")
        return "Wrapped the primary <nav> in a <header> landmark."


@register_fixer
class UrlStructureFixer(SeoFixer):
    category = "url-structure"

    def fix(self, source: SourceFile, finding: Finding) -> str:
        raise UnsafeFixError(
            "Renaming a route changes a public URL; rename it by hand and redirect the old path."
        )


@register_fixer
class ImagesFixer(SeoFixer):
    category = "images"
    sub_fixes = [
        (("native <img> tag instead of next/image",), "convert_to_next_image"),
        (("<img> tag missing alt attribute",), "add_alt"),
        (("Next.js Image component missing alt",), "add_image_alt"),
    ]

    def _add_alt(self, source: SourceFile, finding: Finding, names: str, flags: int) -> str:
        elements = source.elements_on_line(names, finding.line, flags)
        if not elements:
            raise TargetNotFoundError(f"Could not find <{names}> on the issue line.")
        missing = [e for e in elements if not re.search(r"\balt\s*=", e[2])]
        if not missing:
            raise AlreadyFixedError("alt attribute is already present.")
        start, tag, _ = missing[0]
        self.add_attribute(source, start, tag, 'alt="TODO: describe image"')
        return with_placeholder_note(f'Added alt="TODO: describe image" to <{tag}>.')

    def add_alt(self, source: SourceFile, finding: Finding) -> str:
        return self._add_alt(source, finding, "img", re.IGNORECASE)

    def add_image_alt(self, source: SourceFile, finding: Finding) -> str:
        return self._add_alt(source, finding, "Image", 0)

    def convert_to_next_image(self, source: SourceFile, finding: Finding) -> str:
        elements = source.elements_on_line("img", finding.line, 0)
        if not elements:
            raise AlreadyFixedError(f"no <img> on line {finding.line}.")
        start, tag, opening = elements[0]

        replacement = "<Image" + opening[len("<img"):]
        if not replacement.endswith("/>"):
            replacement = replacement[:-1].rstrip() + " />"
        source.replace(start, start + len(opening), replacement)
        add_import(source, "Image", "next/image")
        return "Replaced <img> with next/image <Image>; set width and height (or fill) on it."


@register_fixer
class InternalLinksFixer(SeoFixer):
    category = "internal-links"
    sub_fixes = [
        (("instead of next/link",), "use_next_link"),
        (("instead of routerLink",), "use_router_link"),
        (("instead of React Router Link",), "use_react_router_link"),
    ]

    def _internal_anchor(self, source: SourceFile, finding: Finding):
        for start, tag, opening in source.elements_on_line("a", finding.line):
            href = get_attribute(opening, "href")
            if href and is_internal(href):
                return start, tag, opening
        raise AlreadyFixedError(f"no internal <a href> on line {finding.line}.")

    def use_next_link(self, source: SourceFile, finding: Finding) -> str:
        start, tag, _ = self._internal_anchor(source, finding)
        self.retag(source, start, tag, "Link")
        add_import(source, "Link", "next/link")
        return "Replaced <a> with next/link <Link>."

    def use_router_link(self, source: SourceFile, finding: Finding) -> str:
        start, _, opening = self._internal_anchor(source, finding)
        updated = re.sub(r"(?<![\w-])href(?=\s*=)", "routerLink", opening, count=1)
        source.replace(start, start + len(opening), updated)
        return "Replaced href with the routerLink directive."

    def use_react_router_link(self, source: SourceFile, finding: Finding) -> str:
        start, tag, opening = self._internal_anchor(source, finding)
        updated = "<Link" + re.sub(r"(?<![\w-])href(?=\s*=)", "to", opening[1 + len(tag):], count=1)
        self.retag(source, start, tag, "Link", opening=updated)
        add_import(source, "Link", "react-router-dom", named=True)
        return "Replaced <a href> with React Router <Link to>."


@register_fixer
class GtmFixer(SeoFixer):
    """
    Installs the Google Tag Manager snippet or completes a half-installed one.

    HTML documents get the container ID inline; Next.js files read it from a
    public environment variable, which is added to ``.env.example``.
    """

    category = "gtm"
    sub_fixes = [
        (("Google Tag Manager is not installed",), "install"),
        (("noscript fallback is missing",), "add_noscript"),
        (("main script tag is missing",), "add_script"),
    ]

    def env_var(self, project_root: str) -> str:
        """The GTM variable already used by the project, defaulting to NEXT_PUBLIC_GTM_ID."""
        for name in ENV_FILES:
            path = os.path.join(project_root, name)
            if not os.path.isfile(path):
                continue
            with open(path, "r", encoding="utf-8", errors="ignore") as f:
                content = f.read()
            for var in ENV_VAR_NAMES:
                if var.startswith("NEXT_PUBLIC_") and re.search(r"^" + var + r"\s*=", content, re.MULTILINE):
                    return var
        return "NEXT_PUBLIC_GTM_ID"

    def declare_env_var(self, source: SourceFile, project_root: str, var: str):
        env = self.load(".env.example", project_root, create=True)
        if re.search(r"^" + re.escape(var) + r"\s*=", env.content, re.MULTILINE):
            return
        if env.content and not env.content.endswith("\n"):
            env.content += "\n"
        env.content += f"{var}={GTM_PLACEHOLDER}\n"
        source.related.append(env)

    def html_script(self, container: str, nl: str) -> str:
        return (
            f"{nl}  <!-- Google Tag Manager -->"
            f"{nl}  <script>{gtm_loader(container)}</script>"
            f"{nl}  <!-- End Google Tag Manager -->"
        )

    def html_noscript(self, container: str, nl: str) -> str:
        return (
            f'{nl}  <noscript><iframe src="{GTM_FRAME}{container}" {FRAME_STYLE}></iframe></noscript>'
        )

    def jsx_noscript(self, var: str, nl: str) -> str:
        return (
            f"{nl}        <noscript>"
            f"<iframe src={{`{GTM_FRAME}${{process.env.{var}}}`}} {JSX_FRAME_STYLE} />"
            f"</noscript>"
        )

    def jsx_script(self, var: str, nl: str) -> str:
        loader = gtm_loader("${process.env." + var + "}")
        return f'{nl}        <Script id="gtm" strategy="afterInteractive">{{`{loader}`}}</Script>'

    def install(self, source: SourceFile, finding: Finding) -> str:
        if has_gtm(source.content):
            raise AlreadyFixedError("the GTM snippet is present.")
        nl = source.newline

        if source.is_html:
            head = self._after(source, HEAD_OPEN, "<head>")
            body = self._after(source, BODY_OPEN, "<body>")
            source.insert(body, self.html_noscript(GTM_PLACEHOLDER, nl))
            source.insert(head, self.html_script(GTM_PLACEHOLDER, nl))
            return with_placeholder_note(
                f"Installed the GTM script and noscript snippets with container {GTM_PLACEHOLDER}."
            )

        var = self.env_var(source.project_root)
        name = basename(source.rel_path)
        if name.startswith("_document"):
            head_close = source.content.find("</Head>")
            body = BODY_OPEN.search(source.content)
            if head_close == -1 or not body:
                raise UnsafeFixError("Could not find <Head> and <body> in the custom document.")
            source.insert(body.end(), self.jsx_noscript(var, nl))
            loader = gtm_loader("${process.env." + var + "}")
            source.insert(
                head_close,
                f"  <script dangerouslySetInnerHTML={{{{ __html: `{loader}` }}}} />{nl}        ",
            )
        else:
            body = self._after(source, BODY_OPEN, "<body>")
            source.insert(body, self.jsx_script(var, nl) + self.jsx_noscript(var, nl))
            add_import(source, "Script", "next/script")

        self.declare_env_var(source, source.project_root, var)
        return with_placeholder_note(
            f"Installed GTM reading the container ID from {var}; set it in your environment "
            f"({GTM_PLACEHOLDER} in .env.example)."
        )

    def _container(self, source: SourceFile, pattern: re.Pattern) -> Optional[str]:
        match = pattern.search(source.content)
        return match.group(1) if match else None

    def add_noscript(self, source: SourceFile, finding: Finding) -> str:
        if "googletagmanager.com/ns.html" in source.content:
            raise AlreadyFixedError("the GTM noscript fallback is present.")
        nl = source.newline
        body = self._after(source, BODY_OPEN, "<body>")

        env = ENV_REFERENCE.search(source.content)
        if source.is_script and env:
            source.insert(body, self.jsx_noscript(env.group(1), nl))
            return f"Added the GTM noscript fallback reading {env.group(1)}."

        container = self._container(source, SCRIPT_ID)
        snippet = self.html_noscript(container or GTM_PLACEHOLDER, nl)
        if source.is_script:
            snippet = snippet.replace(f" {FRAME_STYLE}></iframe>", f" {JSX_FRAME_STYLE} />")
        source.insert(body, snippet)
        action = f"Added the GTM noscript fallback for {container or GTM_PLACEHOLDER}."
        return action if container else with_placeholder_note(action)

    def add_script(self, source: SourceFile, finding: Finding) -> str:
        if "googletagmanager.com/gtm.js" in source.content:
            raise AlreadyFixedError("the GTM script is present.")
        nl = source.newline
        container = self._container(source, NOSCRIPT_ID)
        env = None if source.is_html else ENV_REFERENCE.search(source.content)

        if source.is_html:
            head = self._after(source, HEAD_OPEN, "<head>")
            source.insert(head, self.html_script(container or GTM_PLACEHOLDER, nl))
        else:
            body = self._after(source, BODY_OPEN, "<body>")
            if env:
                source.insert(body, self.jsx_script(env.group(1), nl))
            else:
                loader = gtm_loader(container or GTM_PLACEHOLDER)
                source.insert(
                    body,
                    f'{nl}        <Script id="gtm" strategy="afterInteractive">{{`{loader}`}}</Script>',
                )
            add_import(source, "Script", "next/script")

        if env:
            return f"Added the GTM script reading {env.group(1)}."
        if container:
            return f"Added the GTM script for {container}."
        return with_placeholder_note(f"Added the GTM script for {GTM_PLACEHOLDER}.")
