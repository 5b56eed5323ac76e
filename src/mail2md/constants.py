#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mail2md/constants.py
"""Constants and default values for mail2md.

This module centralizes the element classification tables, escape character
sets, option defaults and the vocabularies used by the email heuristics, so
that the rule tables and the detector share a single source of truth.

"""

from __future__ import annotations

from typing import Literal

# Element classification --------------------------------------------------

BLOCK_ELEMENTS = frozenset(
    [
        "div",
        "p",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "blockquote",
        "pre",
        "ul",
        "ol",
        "li",
        "table",
        "tr",
        "td",
        "th",
        "thead",
        "tbody",
        "tfoot",
        "section",
        "article",
        "header",
        "footer",
        "main",
        "aside",
        "nav",
        "form",
        "fieldset",
        "hr",
    ]
)

INLINE_ELEMENTS = frozenset(
    [
        "span",
        "a",
        "strong",
        "b",
        "em",
        "i",
        "u",
        "s",
        "strike",
        "del",
        "ins",
        "mark",
        "small",
        "sub",
        "sup",
        "code",
        "kbd",
        "samp",
        "var",
        "abbr",
        "acronym",
        "cite",
        "dfn",
        "time",
        "img",
    ]
)

HEADING_TAGS = frozenset(["h1", "h2", "h3", "h4", "h5", "h6"])

# Text under these ancestors is emitted without Markdown escaping
CODE_CONTEXT_TAGS = frozenset(["code", "pre"])

# Text under these ancestors keeps its whitespace verbatim
PRESERVE_WHITESPACE_TAGS = frozenset(["pre"])

# Dropped by the pre-processor along with their content
STRIPPED_TAGS = frozenset(["script", "style"])

# Escaping ----------------------------------------------------------------

# Full set handled by escape_markdown()/unescape_markdown()
MARKDOWN_SPECIAL_CHARS = "\\`*_{}[]()#+-.!|~"

# Characters that change meaning anywhere inside an inline run
MARKDOWN_INLINE_CHARS = "\\`*_[]|~#"

# Type aliases ------------------------------------------------------------

CodeBlockStyle = Literal["fenced", "indented"]
LinkStyle = Literal["inlined", "referenced"]
LinkReferenceStyle = Literal["full", "collapsed", "shortcut"]
TableHandling = Literal["convert", "preserve", "remove"]
ClientTypeName = Literal["outlook", "gmail", "yahoo", "thunderbird", "apple", "other"]
HtmlParser = Literal["html.parser", "lxml", "html5lib"]

CODE_BLOCK_STYLES = ("fenced", "indented")
LINK_STYLES = ("inlined", "referenced")
LINK_REFERENCE_STYLES = ("full", "collapsed", "shortcut")
TABLE_HANDLING_MODES = ("convert", "preserve", "remove")
HTML_PARSERS = ("html.parser", "lxml", "html5lib")
BULLET_MARKERS = ("-", "*", "+")

# Option defaults ---------------------------------------------------------

DEFAULT_PRESERVE_WHITESPACE = False
DEFAULT_TRIM_WHITESPACE = True
DEFAULT_BULLET_LIST_MARKER = "-"
DEFAULT_CODE_BLOCK_STYLE: CodeBlockStyle = "fenced"
DEFAULT_FENCE = "```"
DEFAULT_EM_DELIMITER = "*"
DEFAULT_STRONG_DELIMITER = "**"
DEFAULT_LINK_STYLE: LinkStyle = "inlined"
DEFAULT_LINK_REFERENCE_STYLE: LinkReferenceStyle = "full"
DEFAULT_TABLE_HANDLING: TableHandling = "convert"
DEFAULT_HTML_PARSER: HtmlParser = "html.parser"

DEFAULT_BATCH_CHUNK_SIZE = 10

INVALID_INPUT_MESSAGE = "Invalid HTML input: must be a non-empty string"

# CLI exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_VALIDATION_ERROR = 2
EXIT_DEPENDENCY_ERROR = 3

# Email heuristics --------------------------------------------------------

SIGNATURE_INDICATORS = (
    "signature",
    "sig",
    "email-signature",
    "footer",
    "sent from",
    "regards",
    "best regards",
    "sincerely",
)

QUOTED_CLASS_INDICATORS = ("quoted", "gmail_quote", "yahoo_quoted")

OUTLOOK_CLASS_INDICATORS = ("WordSection", "MsoNormal")

IMPORTANT_COLORS = ("red", "#ff0000", "#dc3545", "#d9534f")

# (attribute, fragment) pairs whose presence marks a document as email
EMAIL_STRUCTURE_MARKERS = (
    ("id", "gmail"),
    ("class", "gmail"),
    ("id", "outlook"),
    ("class", "outlook"),
    ("class", "mso"),
    ("class", "yahoo"),
    ("id", "yahoo"),
    ("class", "signature"),
    ("class", "quoted"),
    ("class", "email"),
    ("id", "email"),
)

EMAIL_TEXT_MARKERS = (
    "from:",
    "to:",
    "subject:",
    "sent from",
    "best regards",
    "sincerely",
    "kind regards",
    "thanks",
    "forwarded message",
    "original message",
    "reply to",
    "cc:",
    "bcc:",
)

SIGNATURE_TEXT_PATTERNS = (
    r"best regards,?\s*\n",
    r"sincerely,?\s*\n",
    r"kind regards,?\s*\n",
    r"sent from my \w+",
    r"--\s*\n",
)

QUOTE_ATTRIBUTION_PATTERNS = (
    r"On .+?, .+ wrote:",
    r"From: .+",
    r".+ wrote:",
    r"Sent from .+",
)

EMAIL_HEADER_CLASS_MARKERS = ("from", "to", "subject", "date", "sender")

SIGNATURE_STRUCTURE_MARKERS = ("signature", "sig", "footer")

QUOTE_CLASS_MARKERS = ("quoted", "gmail_quote", "yahoo_quoted", "quote")

# Client type precedence: first match wins
CLIENT_MARKERS: tuple[tuple[ClientTypeName, tuple[tuple[str, str], ...]], ...] = (
    ("gmail", (("class", "gmail"), ("id", "gmail"))),
    ("outlook", (("class", "outlook"), ("class", "mso"), ("class", "wordsection"))),
    ("yahoo", (("class", "yahoo"), ("id", "yahoo"))),
    ("apple", (("class", "apple"), ("id", "applemail"))),
    ("thunderbird", (("class", "thunderbird"), ("class", "moz"))),
)

GENERATOR_CLIENT_MARKERS: tuple[tuple[str, ClientTypeName], ...] = (
    ("outlook", "outlook"),
    ("microsoft", "outlook"),
    ("apple", "apple"),
    ("thunderbird", "thunderbird"),
)

INLINE_IMAGE_PREFIXES = ("cid:", "data:", "blob:")

# Dependencies ------------------------------------------------------------

DEPS_HTML = [("beautifulsoup4", "bs4", ">=4.9.0")]

PARSER_PACKAGES = {
    "lxml": ("lxml", ""),
    "html5lib": ("html5lib", ""),
}
