#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mail2md/email_utils.py
"""Email context detection and email-specific heuristics.

The detector classifies a parsed tree once per conversion. Its result decides
whether the email rule table participates and whether header extraction is
attempted. The element-level predicates (signature, quoted content, Outlook
container, layout table, important color) are shared with the email rules.

Attribute fragment matching is case-insensitive throughout, so Word's
``MsoNormal`` counts as an ``mso`` marker.

"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from email.utils import getaddresses, parseaddr
from enum import Enum
from typing import Any, Iterable, Optional

from mail2md.constants import (
    CLIENT_MARKERS,
    EMAIL_HEADER_CLASS_MARKERS,
    EMAIL_STRUCTURE_MARKERS,
    EMAIL_TEXT_MARKERS,
    GENERATOR_CLIENT_MARKERS,
    IMPORTANT_COLORS,
    INLINE_IMAGE_PREFIXES,
    OUTLOOK_CLASS_INDICATORS,
    QUOTE_ATTRIBUTION_PATTERNS,
    QUOTE_CLASS_MARKERS,
    QUOTED_CLASS_INDICATORS,
    SIGNATURE_INDICATORS,
    SIGNATURE_STRUCTURE_MARKERS,
    SIGNATURE_TEXT_PATTERNS,
)
from mail2md.dom import Document, Element, Node

logger = logging.getLogger(__name__)

_SIGNATURE_PATTERNS = [re.compile(p, re.IGNORECASE) for p in SIGNATURE_TEXT_PATTERNS]
_QUOTE_LINE = re.compile(r"^>\s", re.MULTILINE)
_WROTE_LINE = re.compile(r"wrote:$", re.MULTILINE)
_ATTRIBUTION_PATTERNS = [re.compile(p, re.IGNORECASE) for p in QUOTE_ATTRIBUTION_PATTERNS]
_OLE_IMAGE = re.compile(r"image00\d", re.IGNORECASE)

_TEXT_HEADER_PATTERNS = (
    ("from", re.compile(r"from:\s*([^\n]+)", re.IGNORECASE)),
    ("to", re.compile(r"to:\s*([^\n]+)", re.IGNORECASE)),
    ("subject", re.compile(r"subject:\s*([^\n]+)", re.IGNORECASE)),
    ("date", re.compile(r"date:\s*([^\n]+)", re.IGNORECASE)),
    ("sent", re.compile(r"sent:\s*([^\n]+)", re.IGNORECASE)),
)


class ClientType(str, Enum):
    """Email client that most likely produced the markup."""

    OUTLOOK = "outlook"
    GMAIL = "gmail"
    YAHOO = "yahoo"
    THUNDERBIRD = "thunderbird"
    APPLE = "apple"
    OTHER = "other"


@dataclass(frozen=True)
class EmailContext:
    """Classification of a document as email-originated markup.

    Attributes
    ----------
    is_email_content : bool
        Whether the email rule table participates in the conversion.
    has_email_headers : bool
        Whether header-like structure was found.
    has_signature : bool
        Whether a signature block or sign-off phrase was found.
    has_quoted_content : bool
        Whether quoted reply content was found.
    client_type : ClientType
        Detected originating client.

    """

    is_email_content: bool = False
    has_email_headers: bool = False
    has_signature: bool = False
    has_quoted_content: bool = False
    client_type: ClientType = ClientType.OTHER


@dataclass
class EmailHeaders:
    """Header values recovered from the markup of a rendered email."""

    from_: Optional[str] = None
    to: list[str] = field(default_factory=list)
    cc: list[str] = field(default_factory=list)
    bcc: list[str] = field(default_factory=list)
    subject: Optional[str] = None
    date: Optional[str] = None
    message_id: Optional[str] = None

    def is_empty(self) -> bool:
        return not any([self.from_, self.to, self.cc, self.bcc, self.subject, self.date, self.message_id])

    def to_dict(self) -> dict[str, Any]:
        """Return the populated headers keyed by their conventional names."""
        data = {
            "from": self.from_,
            "to": self.to,
            "cc": self.cc,
            "bcc": self.bcc,
            "subject": self.subject,
            "date": self.date,
            "messageId": self.message_id,
        }
        return {key: value for key, value in data.items() if value}


# Attribute helpers -------------------------------------------------------


def attribute_contains(element: Element, attribute: str, fragment: str) -> bool:
    """Return True if ``attribute`` exists and contains ``fragment`` (case-insensitive)."""
    value = element.get_attribute(attribute)
    return value is not None and fragment.lower() in value.lower()


def _any_element(elements: Iterable[Element], markers: Iterable[tuple[str, str]]) -> bool:
    markers = tuple(markers)
    return any(attribute_contains(el, attr, fragment) for el in elements for attr, fragment in markers)


def body_text(document: Node) -> str:
    """Text content of the ``body`` element, or of the whole tree without one."""
    body = document.body if isinstance(document, Document) else None
    return (body or document).text_content


# Element-level heuristics ------------------------------------------------


def is_signature_element(element: Element) -> bool:
    """Classify an element as a signature block.

    Matches when the ``class``, ``id`` or text content contains any of the
    signature indicators. The text check includes descendants, so a
    container wrapping a whole message with a sign-off also matches.
    """
    haystacks = [
        (element.get_attribute("class") or "").lower(),
        (element.get_attribute("id") or "").lower(),
        element.text_content.lower(),
    ]
    return any(indicator in haystack for haystack in haystacks for indicator in SIGNATURE_INDICATORS)


def is_quoted_element(element: Element) -> bool:
    """Classify an element as quoted reply content.

    Any element with ``dir="ltr"`` matches as well. Gmail wraps most of its
    markup in such containers, so this over-matches on purpose.
    """
    class_name = (element.get_attribute("class") or "").lower()
    if any(indicator in class_name for indicator in QUOTED_CLASS_INDICATORS):
        return True
    if "border-left" in (element.get_attribute("style") or "").lower():
        return True
    return (element.get_attribute("dir") or "").lower() == "ltr"


def is_outlook_artifact(element: Element) -> bool:
    class_name = (element.get_attribute("class") or "").lower()
    if any(indicator.lower() in class_name for indicator in OUTLOOK_CLASS_INDICATORS):
        return True
    return "mso-" in (element.get_attribute("style") or "").lower()


def is_layout_table(table: Element) -> bool:
    """Return True when a table is used for layout rather than data.

    A table is layout when it has ``role="presentation"``, when both
    ``cellpadding`` and ``cellspacing`` are ``"0"``, or when it lacks header
    cells together with more than one row.
    """
    if (table.get_attribute("role") or "").lower() == "presentation":
        return True
    if table.get_attribute("cellpadding") == "0" and table.get_attribute("cellspacing") == "0":
        return True
    has_headers = table.find("th") is not None
    has_multiple_rows = len(table.find_all("tr")) > 1
    return not (has_headers and has_multiple_rows)


def has_important_color(value: Optional[str]) -> bool:
    if not value:
        return False
    value = value.lower()
    return any(color in value for color in IMPORTANT_COLORS)


def parse_inline_style(style: Optional[str]) -> dict[str, str]:
    """Parse a ``style`` attribute into a property to value mapping.

    Property names are lower-cased; values are stripped.

    Examples
    --------
    >>> parse_inline_style("font-weight: bold; color:#FF0000")
    {'font-weight': 'bold', 'color': '#FF0000'}

    """
    declarations: dict[str, str] = {}
    for declaration in (style or "").split(";"):
        name, sep, value = declaration.partition(":")
        if sep and name.strip():
            declarations[name.strip().lower()] = value.strip()
    return declarations


def is_inline_image(src: Optional[str]) -> bool:
    """Return True for images embedded in the message rather than linked.

    Covers ``cid:`` attachments, ``data:`` and ``blob:`` URLs and the
    ``image001``-style names Outlook gives embedded pictures.
    """
    if not src:
        return False
    if src.lower().startswith(INLINE_IMAGE_PREFIXES):
        return True
    return _OLE_IMAGE.search(src) is not None


# Address helpers ---------------------------------------------------------


def parse_email_list(value: Optional[str]) -> list[str]:
    """Split a recipient list into bare addresses.

    Parameters
    ----------
    value : str or None
        A header value such as ``"Ann <ann@example.com>, bob@example.com"``.
        Semicolons are accepted as separators as well.

    Returns
    -------
    list of str
        Addresses containing an ``@``, in order of appearance

    """
    if not value:
        return []
    pairs = getaddresses([value.replace(";", ",")])
    return [address.strip() for _, address in pairs if "@" in address]


def parse_email_address(value: str) -> tuple[Optional[str], str]:
    """Split ``"Name <address>"`` into ``(name, address)``.

    The name is None when the value is a bare address.
    """
    name, address = parseaddr(value.strip())
    if not address:
        return None, value.strip()
    return (name.strip() or None), address.strip()


def extract_quote_attribution(element: Element) -> Optional[str]:
    """Return the "On ..., X wrote:" style attribution line of a quoted block."""
    content = element.text_content.strip()
    for pattern in _ATTRIBUTION_PATTERNS:
        match = pattern.search(content)
        if match:
            return match.group(0).strip()
    return None


# Detection ---------------------------------------------------------------


class EmailContextDetector:
    """Classify a parsed document as email content.

    The detector is stateless; ``detect`` is a pure function of the tree.
    """

    def detect(self, document: Document) -> EmailContext:
        """Compute the email context for ``document``.

        Structural markers are checked first, falling back to phrase markers
        in the body text. Header, signature and quote presence are computed
        independently of that outcome.

        Parameters
        ----------
        document : Document
            Parsed tree

        Returns
        -------
        EmailContext

        """
        elements = document.find_all("*")
        text = body_text(document)

        is_email = self._has_structural_markers(elements) or self._has_text_markers(text)

        context = EmailContext(
            is_email_content=is_email,
            has_email_headers=self._has_email_headers(elements),
            has_signature=self._has_signature(elements, text),
            has_quoted_content=self._has_quoted_content(elements, text),
            client_type=self._detect_client_type(elements),
        )
        logger.debug("Detected email context: %s", context)
        return context

    def _has_structural_markers(self, elements: list[Element]) -> bool:
        if _any_element(elements, EMAIL_STRUCTURE_MARKERS):
            return True
        return any(
            el.tag_name == "blockquote" and (el.get_attribute("type") or "").lower() == "cite" for el in elements
        )

    def _has_text_markers(self, text: str) -> bool:
        lowered = text.lower()
        return any(phrase in lowered for phrase in EMAIL_TEXT_MARKERS)

    def _has_email_headers(self, elements: list[Element]) -> bool:
        markers = [("id", "header"), ("class", "header")]
        markers.extend(("class", fragment) for fragment in EMAIL_HEADER_CLASS_MARKERS)
        if _any_element(elements, markers):
            return True
        metas = [el for el in elements if el.tag_name == "meta"]
        return _any_element(metas, [("name", "email"), ("property", "email")])

    def _has_signature(self, elements: list[Element], text: str) -> bool:
        markers = [(attr, fragment) for fragment in SIGNATURE_STRUCTURE_MARKERS for attr in ("class", "id")]
        if _any_element(elements, markers):
            return True
        return any(pattern.search(text) for pattern in _SIGNATURE_PATTERNS)

    def _has_quoted_content(self, elements: list[Element], text: str) -> bool:
        if any(el.tag_name == "blockquote" for el in elements):
            return True
        markers = [("class", fragment) for fragment in QUOTE_CLASS_MARKERS] + [("id", "quote")]
        if _any_element(elements, markers):
            return True
        if any((el.get_attribute("dir") or "").lower() == "ltr" for el in elements):
            return True
        return bool(_QUOTE_LINE.search(text) or _WROTE_LINE.search(text))

    def _detect_client_type(self, elements: list[Element]) -> ClientType:
        for client, markers in CLIENT_MARKERS:
            if _any_element(elements, markers):
                return ClientType(client)

        for el in elements:
            if el.tag_name == "meta" and (el.get_attribute("name") or "").lower() == "generator":
                generator = (el.get_attribute("content") or "").lower()
                for fragment, client in GENERATOR_CLIENT_MARKERS:
                    if fragment in generator:
                        return ClientType(client)
                break

        return ClientType.OTHER


def detect_email_context(document: Document) -> EmailContext:
    return EmailContextDetector().detect(document)


# Header extraction -------------------------------------------------------


def _extract_header_value(elements: list[Element], field_names: Iterable[str]) -> Optional[str]:
    for name in field_names:
        for attr in ("class", "id"):
            for el in elements:
                if attribute_contains(el, attr, name):
                    return el.text_content.strip()
        data_attr = f"data-{name}"
        for el in elements:
            value = el.get_attribute(data_attr)
            if value is not None:
                return value.strip()
    return None


def extract_email_headers(document: Document) -> EmailHeaders:
    """Recover From/To/Cc/Bcc/Subject/Date from the rendered markup.

    Each field is looked up by class fragment, then id fragment, then a
    ``data-<field>`` attribute. When neither From nor Subject is found that
    way, ``Field: value`` lines in the body text are used instead.

    Parameters
    ----------
    document : Document
        Parsed tree

    Returns
    -------
    EmailHeaders

    """
    elements = [el for el in document.find_all("*") if el.tag_name not in ("html", "head", "body")]
    headers = EmailHeaders(
        from_=_extract_header_value(elements, ["from", "sender"]),
        subject=_extract_header_value(elements, ["subject"]),
        date=_extract_header_value(elements, ["date", "sent"]),
        to=parse_email_list(_extract_header_value(elements, ["to", "recipient"])),
        cc=parse_email_list(_extract_header_value(elements, ["cc"])),
        bcc=parse_email_list(_extract_header_value(elements, ["bcc"])),
        message_id=_extract_header_value(elements, ["message-id"]),
    )

    if not headers.from_ and not headers.subject:
        _extract_headers_from_text(body_text(document), headers)

    return headers


def _extract_headers_from_text(text: str, headers: EmailHeaders) -> None:
    for name, pattern in _TEXT_HEADER_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        value = match.group(1).strip()
        if name == "from" and not headers.from_:
            headers.from_ = value
        elif name == "to" and not headers.to:
            headers.to = parse_email_list(value)
        elif name == "subject" and not headers.subject:
            headers.subject = value
        elif name in ("date", "sent") and not headers.date:
            headers.date = value
