#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mail2md/converter.py
"""HTML and email to Markdown conversion.

This module ties the pieces of the conversion together: the parser builds a
``Document`` tree, the email context detector classifies it, a fresh
``TreeWalker`` renders it through the custom, email and base rule tables, and
the assembled Markdown is post-processed and returned with metadata about the
links, images and email headers found in the input.

Examples
--------
Basic conversion:

    >>> from mail2md.converter import html_to_markdown
    >>> html_to_markdown("<p>Hello <strong>world</strong>!</p>")
    'Hello **world**!'

Email conversion with metadata:

    >>> from mail2md.converter import HTMLToMarkdownExtractor
    >>> extractor = HTMLToMarkdownExtractor()
    >>> result = extractor.convert(email_html)
    >>> result.metadata.email_headers.subject

"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from mail2md.constants import INVALID_INPUT_MESSAGE
from mail2md.dom import Document, Element
from mail2md.email_utils import (
    EmailContext,
    EmailHeaders,
    detect_email_context,
    extract_email_headers,
    is_inline_image,
)
from mail2md.exceptions import ConversionError, DependencyError, InputError, ParsingError, ValidationError
from mail2md.options import EMAIL_DEFAULTS, ConversionOptions
from mail2md.parser import ensure_parser_available, parse_html
from mail2md.rules import WalkState
from mail2md.rules.base import BaseRules
from mail2md.rules.custom import CustomRuleTable
from mail2md.rules.email import EmailRules
from mail2md.text import collapse_blank_lines, fix_markdown_formatting, trim_markdown
from mail2md.utils.decorators import debug_timer
from mail2md.walker import TreeWalker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageInfo:
    """An image found in the input."""

    src: str
    alt: str = ""
    title: Optional[str] = None
    is_inline: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"src": self.src, "alt": self.alt, "isInline": self.is_inline}
        if self.title:
            data["title"] = self.title
        return data


@dataclass(frozen=True)
class LinkInfo:
    """A hyperlink found in the input."""

    href: str
    text: str = ""
    title: Optional[str] = None
    is_email: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"href": self.href, "text": self.text, "isEmail": self.is_email}
        if self.title:
            data["title"] = self.title
        return data


@dataclass
class ConversionMetadata:
    """Information collected alongside the Markdown.

    Attributes
    ----------
    title : str, optional
        Text of the first ``title`` element
    email_headers : EmailHeaders, optional
        Headers recovered from the markup of an email
    images : list of ImageInfo
        Images in document order
    links : list of LinkInfo
        Anchors with an ``href`` in document order
    errors : list of str
        Rules that failed during the walk and were skipped
    email_context : EmailContext
        Classification used for the conversion

    """

    title: Optional[str] = None
    email_headers: Optional[EmailHeaders] = None
    images: list[ImageInfo] = field(default_factory=list)
    links: list[LinkInfo] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    email_context: EmailContext = field(default_factory=EmailContext)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready mapping, omitting absent values."""
        data: dict[str, Any] = {
            "images": [image.to_dict() for image in self.images],
            "links": [link.to_dict() for link in self.links],
        }
        if self.title:
            data["title"] = self.title
        if self.email_headers is not None and not self.email_headers.is_empty():
            data["emailHeaders"] = self.email_headers.to_dict()
        if self.errors:
            data["errors"] = list(self.errors)
        return data


@dataclass
class ConversionResult:
    """Markdown output and metadata of one conversion."""

    markdown: str
    metadata: ConversionMetadata = field(default_factory=ConversionMetadata)

    def to_dict(self) -> dict[str, Any]:
        return {"markdown": self.markdown, "metadata": self.metadata.to_dict()}


class HTMLToMarkdownExtractor:
    """Convert HTML, and HTML email in particular, to Markdown.

    The rule tables are built once from the options and reused by every
    ``convert`` call. ``update_options`` replaces the options and rebuilds
    the tables, so no rule ever sees stale option values.

    Parameters
    ----------
    options : ConversionOptions, optional
        Conversion options. Defaults to ``ConversionOptions()``.

    Raises
    ------
    DependencyError
        If BeautifulSoup or the configured parser backend is not installed

    """

    def __init__(self, options: Optional[ConversionOptions] = None) -> None:
        self.options = options or ConversionOptions()
        ensure_parser_available(self.options.html_parser)
        self._build_rule_tables()
        self._walker: Optional[TreeWalker] = None

    def _build_rule_tables(self) -> None:
        self.base_rules = BaseRules(self.options)
        self.email_rules = EmailRules(self.options, self.base_rules)
        self.custom_rules = CustomRuleTable(self.options)
        logger.debug("Built rule tables: %r, %r, %d custom", self.base_rules, self.email_rules, len(self.custom_rules))

    def update_options(self, **changes: Any) -> None:
        """Replace option values and rebuild the rule tables.

        Parameters
        ----------
        **changes : Any
            ``ConversionOptions`` field names and their new values

        """
        options = self.options.create_updated(**changes)
        if options.html_parser != self.options.html_parser:
            ensure_parser_available(options.html_parser)
        self.options = options
        self._build_rule_tables()

    def convert(self, html: str) -> ConversionResult:
        """Convert an HTML string to Markdown.

        Parameters
        ----------
        html : str
            HTML document or fragment

        Returns
        -------
        ConversionResult
            Markdown and the collected metadata

        Raises
        ------
        InputError
            If ``html`` is not a string or is blank
        DependencyError
            If the parser backend is not installed
        ParsingError
            If the parser backend fails on the input
        ConversionError
            If anything else fails during the conversion

        """
        if not isinstance(html, str) or not html.strip():
            raise InputError(INVALID_INPUT_MESSAGE, parameter_value=html)

        try:
            with debug_timer(logger, "HTML to Markdown conversion"):
                return self._convert(html)
        except (ValidationError, DependencyError, ParsingError):
            raise
        except Exception as e:
            raise ConversionError(
                f"HTML to Markdown conversion failed: {e}", conversion_stage="conversion", original_error=e
            ) from e
        finally:
            self._cleanup()

    def _convert(self, html: str) -> ConversionResult:
        document = parse_html(html, self.options)

        context = detect_email_context(document)
        if self.options.is_email and not context.is_email_content:
            context = EmailContext(
                is_email_content=True,
                has_email_headers=context.has_email_headers,
                has_signature=context.has_signature,
                has_quoted_content=context.has_quoted_content,
                client_type=context.client_type,
            )
        logger.debug("Email context: %s", context)

        self._walker = TreeWalker(
            self.options,
            self.base_rules,
            email_rules=self.email_rules,
            custom_rules=self.custom_rules,
            email_context=context,
        )
        root = document.body or document
        markdown = self._walker.walk(root)
        markdown = self._append_link_definitions(markdown, self._walker.state)
        markdown = self._post_process(markdown)

        metadata = self._extract_metadata(document, context)
        metadata.errors = list(self._walker.state.errors)
        return ConversionResult(markdown=markdown, metadata=metadata)

    def _append_link_definitions(self, markdown: str, state: WalkState) -> str:
        if self.options.link_style != "referenced" or not state.link_references:
            return markdown
        definitions = state.link_references.render_definitions(self.options.link_reference_style)
        return f"{markdown.rstrip()}\n\n{definitions}\n"

    def _post_process(self, markdown: str) -> str:
        markdown = collapse_blank_lines(markdown)
        if self.options.trim_whitespace:
            markdown = trim_markdown(markdown)
        return fix_markdown_formatting(markdown)

    def _extract_metadata(self, document: Document, context: EmailContext) -> ConversionMetadata:
        metadata = ConversionMetadata(email_context=context)

        title = document.find("title")
        if title is not None and title.text_content.strip():
            metadata.title = title.text_content.strip()

        if self.options.preserve_email_headers and context.has_email_headers:
            headers = extract_email_headers(document)
            if not headers.is_empty():
                metadata.email_headers = headers

        metadata.images = [_image_info(img) for img in document.find_all("img")]
        metadata.links = [_link_info(a) for a in document.find_all("a") if a.get_attribute("href")]
        return metadata

    def _cleanup(self) -> None:
        if self._walker is not None:
            self._walker.reset()
        self._walker = None


def _image_info(element: Element) -> ImageInfo:
    src = element.get_attribute("src") or ""
    return ImageInfo(
        src=src,
        alt=element.get_attribute("alt") or "",
        title=element.get_attribute("title"),
        is_inline=is_inline_image(src),
    )


def _link_info(element: Element) -> LinkInfo:
    href = element.get_attribute("href") or ""
    return LinkInfo(
        href=href,
        text=element.text_content.strip(),
        title=element.get_attribute("title"),
        is_email=href.lower().startswith("mailto:"),
    )


def _resolve_options(options: Optional[ConversionOptions], overrides: dict[str, Any]) -> ConversionOptions:
    options = options or ConversionOptions()
    if overrides:
        options = options.create_updated(**overrides)
    return options


def html_to_markdown(html: str, options: Optional[ConversionOptions] = None, **kwargs: Any) -> str:
    """Convert HTML to Markdown.

    Parameters
    ----------
    html : str
        HTML document or fragment
    options : ConversionOptions, optional
        Conversion options
    **kwargs : Any
        Option overrides applied on top of ``options``

    Returns
    -------
    str
        Markdown

    Examples
    --------
    >>> html_to_markdown("<h2>Notes</h2><ul><li>One</li><li>Two</li></ul>")
    '## Notes\\n\\n- One\\n- Two'

    """
    return HTMLToMarkdownExtractor(_resolve_options(options, kwargs)).convert(html).markdown


def email_to_markdown(html: str, options: Optional[ConversionOptions] = None, **kwargs: Any) -> str:
    """Convert the HTML body of an email to Markdown.

    Email handling is forced on, together with signature, quote, inline
    style and Outlook processing unless ``options`` says otherwise.
    """
    options = options.create_updated(is_email=True) if options is not None else ConversionOptions(**EMAIL_DEFAULTS)
    return HTMLToMarkdownExtractor(_resolve_options(options, kwargs)).convert(html).markdown


def convert_with_options(html: str, options: Optional[ConversionOptions] = None, **kwargs: Any) -> ConversionResult:
    """Run a one-off conversion and return the full result with metadata."""
    return HTMLToMarkdownExtractor(_resolve_options(options, kwargs)).convert(html)
