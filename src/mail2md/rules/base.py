#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mail2md/rules/base.py
"""Base rule table for generic HTML elements.

Block rules surround their output with newlines and leave blank-line
normalization to the post-processing step, so each rule only needs to know
about its own element.

"""

from __future__ import annotations

import re
from functools import partial
from typing import Optional
from urllib.parse import urljoin

from mail2md.dom import Element
from mail2md.options import ConversionOptions
from mail2md.rules import Rule, RuleTable, WalkState
from mail2md.rules.tables import render_table
from mail2md.text import collapse_blank_lines, escape_markdown, unescape_markdown

_LANGUAGE_CLASS = re.compile(r"(?:^|\s)(?:language|lang)-([\w+#.-]+)")
_BACKTICK_RUN = re.compile(r"`+")
_LINE_BREAKS = re.compile(r"\s*\n\s*")

HTML_WRAPPED_TAGS = ("u", "ins", "small", "sub", "sup")
SECTIONING_TAGS = ("section", "article", "header", "footer", "main", "aside", "nav", "form", "fieldset")


def split_outer_whitespace(content: str) -> tuple[str, str, str]:
    """Split content into leading whitespace, stripped core and trailing whitespace."""
    core = content.strip()
    if not core:
        return content, "", ""
    start = content.index(core[0])
    return content[:start], core, content[start + len(core) :]


def wrap_inline(content: str, delimiter: str, closing: Optional[str] = None) -> str:
    """Wrap the stripped content in delimiters, keeping outer whitespace outside.

    Returns an empty string when there is nothing but whitespace to wrap.
    """
    leading, core, trailing = split_outer_whitespace(content)
    if not core:
        return ""
    return f"{leading}{delimiter}{core}{closing if closing is not None else delimiter}{trailing}"


def resolve_url(url: str, base_url: Optional[str]) -> str:
    if not base_url or not url or url.startswith(("#", "mailto:", "tel:", "data:", "cid:")):
        return url
    return urljoin(base_url, url)


def format_title(title: Optional[str]) -> str:
    if not title:
        return ""
    escaped = title.replace('"', '\\"')
    return f' "{escaped}"'


def format_destination(url: str) -> str:
    if " " in url or "(" in url or ")" in url:
        return f"<{url}>"
    return url


def render_link(text: str, href: str, title: Optional[str], options: ConversionOptions, state: WalkState) -> str:
    """Render a hyperlink in the configured link style.

    Parameters
    ----------
    text : str
        Rendered link text
    href : str
        Resolved link target
    title : str, optional
        Link title
    options : ConversionOptions
        Supplies ``link_style`` and ``link_reference_style``
    state : WalkState
        Collects references for the referenced style

    Returns
    -------
    str
        Markdown link

    """
    if options.link_style == "referenced":
        ref = state.link_references.reference(href, title, text)
        if options.link_reference_style == "full":
            return f"[{text}][{ref.number}]"
        if ref.label != text:
            return f"[{text}][{ref.label}]"
        if options.link_reference_style == "collapsed":
            return f"[{text}][]"
        return f"[{text}]"

    return f"[{text}]({format_destination(href)}{format_title(title)})"


def mailto_address(href: str) -> str:
    """Return the address part of a ``mailto:`` URL without its query."""
    return href[len("mailto:") :].split("?", 1)[0]


def extract_code_language(element: Element) -> str:
    """Find a ``language-xxx``/``lang-xxx`` class on the element or a descendant ``code``."""
    candidates = [element] + element.find_all("code")
    for candidate in candidates:
        match = _LANGUAGE_CLASS.search(candidate.get_attribute("class") or "")
        if match:
            return match.group(1)
    return ""


def code_fence_for(content: str, fence: str) -> str:
    """Lengthen ``fence`` until it does not occur inside ``content``."""
    while fence in content:
        fence += fence[0]
    return fence


def quote_lines(content: str, prefix: str = "> ", keep_quoted: bool = True) -> str:
    """Prefix each line of content for a blockquote.

    Lines that already start with ``>`` come from a nested quote that has
    its full prefix and are kept as they are when ``keep_quoted`` is set.
    Runs of blank lines are collapsed to one, which gets the prefix
    without its trailing space.
    """
    lines = []
    for line in collapse_blank_lines(content).split("\n"):
        if keep_quoted and line.startswith(">"):
            lines.append(line)
        elif not line.strip():
            lines.append(prefix.rstrip())
        else:
            lines.append(f"{prefix}{line}")
    return "\n".join(lines)


class BaseRules(RuleTable):
    """Rules for generic HTML elements."""

    name = "base"

    def _build_rules(self) -> dict[str, Rule]:
        rules: dict[str, Rule] = {f"h{level}": partial(self._heading, level=level) for level in range(1, 7)}
        rules.update(
            {
                "p": self._paragraph,
                "br": self._line_break,
                "hr": self._horizontal_rule,
                "strong": self._strong,
                "b": self._strong,
                "em": self._emphasis,
                "i": self._emphasis,
                "code": self._code,
                "pre": self._pre,
                "a": self._link,
                "img": self._image,
                "ul": self._list,
                "ol": self._list,
                "li": self._list_item,
                "blockquote": self._blockquote,
                "table": self._table,
                "thead": self._passthrough,
                "tbody": self._passthrough,
                "tfoot": self._passthrough,
                "tr": self._passthrough,
                "td": self._cell,
                "th": self._cell,
                "div": self._division,
                "span": self._passthrough,
                "head": self._omit,
                "title": self._omit,
                "del": self._strikethrough,
                "s": self._strikethrough,
                "strike": self._strikethrough,
            }
        )
        rules.update({tag: self._html_wrapped for tag in HTML_WRAPPED_TAGS})
        rules.update({tag: self._division for tag in SECTIONING_TAGS})
        return rules

    def _heading(self, element: Element, content: str, state: WalkState, level: int) -> str:
        text = _LINE_BREAKS.sub(" ", content.strip())
        if not text:
            return ""
        return f"\n{'#' * level} {text}\n\n"

    def _paragraph(self, element: Element, content: str, state: WalkState) -> str:
        text = content.strip()
        return f"\n{text}\n\n" if text else ""

    def _line_break(self, element: Element, content: str, state: WalkState) -> str:
        return "\n"

    def _horizontal_rule(self, element: Element, content: str, state: WalkState) -> str:
        return "\n---\n\n"

    def _strong(self, element: Element, content: str, state: WalkState) -> str:
        return wrap_inline(content, self.options.strong_delimiter)

    def _emphasis(self, element: Element, content: str, state: WalkState) -> str:
        return wrap_inline(content, self.options.em_delimiter)

    def _strikethrough(self, element: Element, content: str, state: WalkState) -> str:
        return wrap_inline(content, "~~")

    def _html_wrapped(self, element: Element, content: str, state: WalkState) -> str:
        if not content.strip():
            return ""
        return f"<{element.tag_name}>{content}</{element.tag_name}>"

    def _passthrough(self, element: Element, content: str, state: WalkState) -> str:
        return content

    def _omit(self, element: Element, content: str, state: WalkState) -> str:
        return ""

    def _cell(self, element: Element, content: str, state: WalkState) -> str:
        text = content.strip()
        return f"{text}\n" if text else ""

    def _division(self, element: Element, content: str, state: WalkState) -> str:
        text = content.strip()
        return f"{text}\n" if text else ""

    def _code(self, element: Element, content: str, state: WalkState) -> str:
        if not content:
            return ""
        if element.closest("pre") is not None:
            return content

        longest = max((len(run) for run in _BACKTICK_RUN.findall(content)), default=0)
        delimiter = "`" * (longest + 1)
        if content.startswith("`") or content.endswith("`"):
            return f"{delimiter} {content} {delimiter}"
        return f"{delimiter}{content}{delimiter}"

    def _pre(self, element: Element, content: str, state: WalkState) -> str:
        code = content.strip("\n").rstrip()
        if not code.strip():
            return ""

        if self.options.code_block_style == "indented":
            indented = "\n".join(f"    {line}" if line else "" for line in code.split("\n"))
            return f"\n{indented}\n\n"

        fence = code_fence_for(code, self.options.fence)
        language = extract_code_language(element)
        return f"\n{fence}{language}\n{code}\n{fence}\n\n"

    def _link(self, element: Element, content: str, state: WalkState) -> str:
        href = element.get_attribute("href")
        if not href:
            return content

        text = content.strip()
        if not text:
            return ""

        if href.lower().startswith("mailto:"):
            address = mailto_address(href)
            if unescape_markdown(text) == address:
                return f"<{address}>"

        href = resolve_url(href, self.options.base_url)
        return render_link(text, href, element.get_attribute("title"), self.options, state)

    def _image(self, element: Element, content: str, state: WalkState) -> str:
        src = resolve_url(element.get_attribute("src") or "", self.options.base_url)
        alt = escape_markdown(element.get_attribute("alt") or "", "\\[]")
        return f"![{alt}]({format_destination(src)}{format_title(element.get_attribute('title'))})"

    def _list(self, element: Element, content: str, state: WalkState) -> str:
        items = content.strip("\n")
        if not items.strip():
            return ""
        return f"\n{items}\n"

    def _list_item(self, element: Element, content: str, state: WalkState) -> str:
        text = content.strip()
        if not text:
            return ""

        parent = element.parent
        if isinstance(parent, Element) and parent.tag_name == "ol":
            siblings = [child for child in parent.element_children if child.tag_name == "li"]
            position = next((i for i, sibling in enumerate(siblings) if sibling is element), 0)
            marker = f"{position + 1}."
        else:
            marker = self.options.bullet_list_marker

        indent = " " * (len(marker) + 1)
        first, *rest = text.split("\n")
        lines = [f"{marker} {first}"] + [f"{indent}{line}" if line.strip() else "" for line in rest]
        return "\n".join(lines) + "\n"

    def _blockquote(self, element: Element, content: str, state: WalkState) -> str:
        text = content.strip()
        if not text:
            return ""
        depth = sum(
            1 for ancestor in element.iter_ancestors()
            if isinstance(ancestor, Element) and ancestor.tag_name == "blockquote"
        )
        return f"\n{quote_lines(text, '> ' * (depth + 1))}\n\n"

    def _table(self, element: Element, content: str, state: WalkState) -> str:
        return render_table(element, self.options)
