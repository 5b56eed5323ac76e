#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mail2md/parser.py
"""HTML pre-processing and tree construction.

This module prepares raw (often email-generated) HTML and turns it into the
``mail2md.dom`` tree the conversion engine walks. Parsing itself and HTML
entity decoding are delegated to BeautifulSoup with a configurable tree
builder.

"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Optional

from mail2md.constants import DEPS_HTML, PARSER_PACKAGES, STRIPPED_TAGS
from mail2md.dom import Comment, Document, Element, Node, Text
from mail2md.exceptions import DependencyError, ParsingError
from mail2md.options import ConversionOptions
from mail2md.utils.decorators import requires_dependencies

if TYPE_CHECKING:
    from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

_STRIPPED_BLOCKS = [
    re.compile(rf"<{tag}\b[^>]*>.*?</{tag}\s*>", re.IGNORECASE | re.DOTALL) for tag in sorted(STRIPPED_TAGS)
]
_STRIPPED_SELF_CLOSING = re.compile(r"<(?:script|style)\b[^>]*/>", re.IGNORECASE)

_XML_DECLARATION = re.compile(r"<\?xml[^>]*>", re.IGNORECASE)
_XMLNS_ATTRIBUTE = re.compile(r"\s+xmlns:[\w-]+=\"[^\"]*\"", re.IGNORECASE)
_CONDITIONAL_COMMENT = re.compile(r"<!--\[if[^>]*>.*?<!\[endif\]-->", re.IGNORECASE | re.DOTALL)
_DOWNLEVEL_CONDITIONAL = re.compile(r"<!\[(?:if[^\]]*|endif)\]>", re.IGNORECASE)
_XML_ISLAND = re.compile(r"<xml\b[^>]*>.*?</xml\s*>", re.IGNORECASE | re.DOTALL)
_NAMESPACED_TAG = re.compile(r"</?[a-z]+:[a-z][\w-]*\b[^>]*>", re.IGNORECASE)
_STYLE_ATTRIBUTE = re.compile(r"(\sstyle\s*=\s*)(\"[^\"]*\"|'[^']*')", re.IGNORECASE)
_MSO_DECLARATION = re.compile(r"(?:mso-|-webkit-)[\w-]+\s*:[^;\"']*;?", re.IGNORECASE)
_EMPTY_MSO_SPAN = re.compile(r"<span[^>]*mso[^>]*>\s*</span>", re.IGNORECASE)


def preprocess_html(html: str, options: Optional[ConversionOptions] = None) -> str:
    """Strip content the converter must never see.

    Removes ``script`` and ``style`` blocks and, when
    ``handle_outlook_specific`` is set, the XML declarations, conditional
    comments, namespaced ``o:``/``v:`` tags and ``mso-`` style declarations
    that Outlook and Word emit.

    Parameters
    ----------
    html : str
        Raw HTML
    options : ConversionOptions, optional
        Conversion options; defaults apply when omitted.

    Returns
    -------
    str
        Cleaned HTML ready for parsing

    """
    options = options or ConversionOptions()

    for pattern in _STRIPPED_BLOCKS:
        html = pattern.sub("", html)
    html = _STRIPPED_SELF_CLOSING.sub("", html)

    if options.handle_outlook_specific:
        html = process_outlook_html(html)

    return html


def process_outlook_html(html: str) -> str:
    """Remove Outlook/Word specific markup while keeping the visible structure."""
    html = _XML_DECLARATION.sub("", html)
    html = _XMLNS_ATTRIBUTE.sub("", html)
    html = _CONDITIONAL_COMMENT.sub("", html)
    html = _DOWNLEVEL_CONDITIONAL.sub("", html)
    html = _XML_ISLAND.sub("", html)
    html = _NAMESPACED_TAG.sub("", html)
    html = _EMPTY_MSO_SPAN.sub("", html)
    return _STYLE_ATTRIBUTE.sub(_strip_mso_styles, html)


def _strip_mso_styles(match: re.Match[str]) -> str:
    quoted = match.group(2)
    declarations = _MSO_DECLARATION.sub("", quoted[1:-1]).strip()
    if not declarations:
        return ""
    return f"{match.group(1)}{quoted[0]}{declarations}{quoted[0]}"


@requires_dependencies("HTML parser", DEPS_HTML)
def ensure_parser_available(parser_name: str) -> None:
    """Verify that BeautifulSoup and the requested tree builder are installed.

    Raises
    ------
    DependencyError
        If ``beautifulsoup4`` or the tree builder is missing.

    """
    from bs4.builder import builder_registry

    if builder_registry.lookup(parser_name) is None:
        package = PARSER_PACKAGES.get(parser_name, (parser_name, ""))
        raise DependencyError("HTML parser", missing_packages=[package])


@requires_dependencies("HTML parser", DEPS_HTML)
def parse_html(html: str, options: Optional[ConversionOptions] = None) -> Document:
    """Parse HTML into a ``Document`` tree.

    Parameters
    ----------
    html : str
        HTML to parse. It is pre-processed first.
    options : ConversionOptions, optional
        Controls the parser backend and artifact removal.

    Returns
    -------
    Document
        Root of the parsed tree

    Raises
    ------
    DependencyError
        If the configured parser backend is not installed
    ParsingError
        If the backend fails on the input

    """
    from bs4 import BeautifulSoup
    from bs4.exceptions import FeatureNotFound

    options = options or ConversionOptions()
    html = preprocess_html(html, options)

    try:
        soup = BeautifulSoup(html, options.html_parser)
    except FeatureNotFound as e:
        package = PARSER_PACKAGES.get(options.html_parser, (options.html_parser, ""))
        raise DependencyError(
            "HTML parser",
            missing_packages=[package],
            message=f"Selected html_parser not found: {options.html_parser!r}. Install with: pip install {package[0]}",
        ) from e
    except Exception as e:
        raise ParsingError(f"Failed to parse HTML: {e}", parsing_stage="parsing", original_error=e) from e

    remove_email_artifacts(soup, options)
    return build_tree(soup, strip_comments=options.strip_comments)


def remove_email_artifacts(soup: "BeautifulSoup", options: ConversionOptions) -> None:
    """Drop Gmail history containers, tracking pixels and empty font tags in place."""
    for tag in soup.find_all(class_="gmail_extra"):
        if not tag.decomposed:
            tag.decompose()

    if options.remove_tracking_pixels:
        for img in soup.find_all("img"):
            if _is_tracking_pixel(img.get("width"), img.get("height"), img.get("style")):
                logger.debug("Removing tracking pixel: %s", img.get("src"))
                img.decompose()

    for font in soup.find_all("font"):
        if font.decomposed:
            continue
        if not font.get_text(strip=True) and font.find("img") is None:
            font.decompose()


def _is_tracking_pixel(width: object, height: object, style: object) -> bool:
    if str(width).strip().lower() in ("1", "1px") and str(height).strip().lower() in ("1", "1px"):
        return True
    if isinstance(style, str):
        compact = style.replace(" ", "").lower()
        return "width:1px" in compact and "height:1px" in compact
    return False


def build_tree(soup: "BeautifulSoup", strip_comments: bool = True) -> Document:
    """Convert a BeautifulSoup tree into a ``Document``.

    Doctype, CDATA, declarations and processing instructions are dropped.
    Multi-valued attributes such as ``class`` are joined with spaces.

    Parameters
    ----------
    soup : BeautifulSoup
        Parsed soup
    strip_comments : bool, default True
        Drop comments instead of creating ``Comment`` nodes

    Returns
    -------
    Document

    """
    from bs4.element import CData, Declaration, Doctype, NavigableString, ProcessingInstruction, Tag
    from bs4.element import Comment as SoupComment

    document = Document()
    stack: list[tuple[Tag, Node]] = [(soup, document)]

    while stack:
        source, target = stack.pop()
        for child in source.children:
            if isinstance(child, SoupComment):
                if not strip_comments:
                    target.append_child(Comment(str(child)))
            elif isinstance(child, (CData, Declaration, Doctype, ProcessingInstruction)):
                continue
            elif isinstance(child, NavigableString):
                target.append_child(Text(str(child)))
            elif isinstance(child, Tag):
                attributes = {
                    name.lower(): " ".join(value) if isinstance(value, list) else str(value)
                    for name, value in child.attrs.items()
                }
                element = Element(child.name, attributes)
                target.append_child(element)
                stack.append((child, element))

    return document
