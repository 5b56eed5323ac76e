#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mail2md/text.py
"""Text normalization and Markdown post-processing utilities.

This module provides the escaping used for literal text runs, whitespace
normalization for text nodes, and the clean-up passes applied to the
assembled Markdown string.

"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Literal, Optional

from mail2md.constants import MARKDOWN_INLINE_CHARS, MARKDOWN_SPECIAL_CHARS

WhitespaceMode = Literal["collapse", "preserve"]
EscapeContext = Literal["full", "text", "inline", "table", "link"]

# HTML whitespace only; non-breaking spaces are content
_WHITESPACE_RUN = re.compile(r"[ \t\n\r\f]+")

_LINE_START_MARKER = re.compile(r"^([ \t]*)([-+>])(?=[ \t]|$)", re.MULTILINE)
_LINE_START_ORDERED = re.compile(r"^([ \t]*)(\d+)([.)])(?=[ \t]|$)", re.MULTILINE)

_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_FENCE_LINE = re.compile(r"^[ \t]{0,3}(`{3,}|~{3,})")
_HEADING_NO_SPACE = re.compile(r"^(#{1,6})(?=[^\s#])")
_HEADING_EXTRA_SPACE = re.compile(r"^(#{1,6})[ \t]{2,}")
_HEADING_LINE = re.compile(r"^#{1,6}[ \t]")
_LEADING_BLANK_LINES = re.compile(r"(?:[ \t]*\n)+")
_LIST_MARKER_SPACING = re.compile(r"^([ \t]{0,3})([-*+]|\d+\.)[ \t]{2,}(?=\S)")


@lru_cache(maxsize=16)
def _escape_pattern(chars: str) -> re.Pattern[str]:
    cls = re.escape(chars)
    return re.compile(rf"\\([{cls}])|([{cls}])")


@lru_cache(maxsize=16)
def _unescape_pattern(chars: str) -> re.Pattern[str]:
    return re.compile(rf"\\([{re.escape(chars)}])")


def escape_markdown(text: Optional[str], chars: str = MARKDOWN_SPECIAL_CHARS) -> str:
    r"""Escape Markdown special characters in text.

    A character that is already preceded by a backslash is left alone, so
    escaping is idempotent.

    That rule cannot tell an existing escape from a literal backslash that
    happens to sit in front of a special character. Source text such as
    ``a\*b`` comes back unchanged and renders as ``a*b``, and
    :func:`unescape_markdown` then yields ``a*b`` rather than the original
    text. Input that must keep such backslashes should be placed in code
    spans or code blocks.

    Parameters
    ----------
    text : str or None
        Text to escape
    chars : str, default MARKDOWN_SPECIAL_CHARS
        Characters to escape

    Returns
    -------
    str
        Escaped text, or an empty string for empty input

    Examples
    --------
    >>> escape_markdown("*bold* and [link]")
    '\\*bold\\* and \\[link\\]'
    >>> escape_markdown(escape_markdown("a_b"))
    'a\\_b'

    """
    if not text:
        return ""
    return _escape_pattern(chars).sub(lambda m: m.group(0) if m.group(1) else "\\" + m.group(2), text)


def unescape_markdown(text: Optional[str], chars: str = MARKDOWN_SPECIAL_CHARS) -> str:
    r"""Remove backslash escapes in front of Markdown special characters.

    Examples
    --------
    >>> unescape_markdown("\\*bold\\*")
    '*bold*'

    """
    if not text:
        return ""
    return _unescape_pattern(chars).sub(r"\1", text)


def escape_markdown_context_aware(text: Optional[str], context: EscapeContext = "text") -> str:
    r"""Escape text according to where it will appear in the output.

    Parameters
    ----------
    text : str or None
        Text to escape
    context : {"full", "text", "inline", "table", "link"}, default "text"
        - "full": every character in MARKDOWN_SPECIAL_CHARS
        - "text": characters significant inside an inline run, plus list,
          quote and ordered-list markers at the start of a line
        - "inline": only the characters significant inside an inline run,
          for text that continues a line
        - "table": pipes only, for cell content
        - "link": square brackets and backslashes, for link text

    Returns
    -------
    str
        Escaped text

    Examples
    --------
    >>> escape_markdown_context_aware("Costs $5.00 (approx.)")
    'Costs $5.00 (approx.)'
    >>> escape_markdown_context_aware("- not a list")
    '\\- not a list'
    >>> escape_markdown_context_aware("a | b", "table")
    'a \\| b'

    """
    if not text:
        return ""

    if context == "full":
        return escape_markdown(text)
    if context == "table":
        return escape_markdown(text, "|")
    if context == "link":
        return escape_markdown(text, "\\[]")

    escaped = escape_markdown(text, MARKDOWN_INLINE_CHARS)
    if context == "inline":
        return escaped
    escaped = _LINE_START_MARKER.sub(r"\1\\\2", escaped)
    return _LINE_START_ORDERED.sub(r"\1\2\\\3", escaped)


def normalize_whitespace(text: Optional[str], mode: WhitespaceMode = "collapse") -> str:
    """Normalize whitespace in a text run.

    Parameters
    ----------
    text : str or None
        Text to normalize
    mode : {"collapse", "preserve"}, default "collapse"
        "collapse" folds every run of spaces, tabs and line breaks into a
        single space; "preserve" returns the text unchanged.

    Returns
    -------
    str
        Normalized text

    """
    if not text:
        return ""
    if mode == "preserve":
        return text
    return _WHITESPACE_RUN.sub(" ", text)


def is_whitespace_only(text: str) -> bool:
    return not _WHITESPACE_RUN.sub("", text)


def collapse_blank_lines(markdown: str) -> str:
    """Collapse three or more consecutive newlines to exactly two."""
    return _EXCESS_NEWLINES.sub("\n\n", markdown)


def fix_markdown_formatting(markdown: str) -> str:
    """Apply the final formatting fix-up pass.

    Outside fenced code blocks this puts exactly one space after heading
    hashes and list markers, strips trailing whitespace from each line and
    separates ATX headings from neighbouring lines with a blank line.
    Fenced code is passed through untouched.

    Parameters
    ----------
    markdown : str
        Assembled Markdown

    Returns
    -------
    str
        Markdown with consistent heading and list spacing

    """
    lines = markdown.split("\n")
    fence: Optional[str] = None
    fixed: list[str] = []
    after_heading = False

    for line in lines:
        fence_match = _FENCE_LINE.match(line)
        if fence is not None:
            if fence_match and fence_match.group(1)[0] == fence[0] and len(fence_match.group(1)) >= len(fence):
                if not line.strip().strip(fence[0]):
                    fence = None
            fixed.append(line)
            after_heading = False
            continue
        if fence_match:
            fence = fence_match.group(1)
            if after_heading and fixed and fixed[-1].strip():
                fixed.append("")
            fixed.append(line.rstrip())
            after_heading = False
            continue

        line = line.rstrip(" \t")
        line = _HEADING_NO_SPACE.sub(r"\1 ", line)
        line = _HEADING_EXTRA_SPACE.sub(r"\1 ", line)
        line = _LIST_MARKER_SPACING.sub(r"\1\2 ", line)
        heading = bool(_HEADING_LINE.match(line))
        if line and fixed and fixed[-1].strip() and (heading or after_heading):
            fixed.append("")
        fixed.append(line)
        after_heading = heading

    return collapse_blank_lines("\n".join(fixed))


def trim_markdown(markdown: str) -> str:
    """Strip surrounding whitespace, keeping the indent of a leading indented code block."""
    lead = _LEADING_BLANK_LINES.match(markdown)
    start = lead.end() if lead else 0
    if markdown.startswith("    ", start):
        return markdown[start:].rstrip()
    return markdown.strip()
