#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mail2md/rules/email.py
"""Email rule table.

These rules take precedence over the base table when the document was
classified as email. They recognize signatures, quoted replies, Outlook
containers and layout tables, and translate inline CSS into Markdown.
Unclassified ``div`` elements fall through to the base rendering.

"""

from __future__ import annotations

from typing import Optional

from mail2md.dom import Element
from mail2md.email_utils import (
    has_important_color,
    is_layout_table,
    is_outlook_artifact,
    is_quoted_element,
    is_signature_element,
    parse_inline_style,
)
from mail2md.options import ConversionOptions
from mail2md.rules import Rule, RuleTable, WalkState
from mail2md.rules.base import (
    BaseRules,
    mailto_address,
    quote_lines,
    render_link,
    resolve_url,
    wrap_inline,
)
from mail2md.rules.tables import render_table
from mail2md.text import unescape_markdown

_ITALIC_STYLES = ("italic", "oblique")


def _style_value(declarations: dict[str, str], name: str) -> str:
    return declarations.get(name, "").replace("!important", "").strip().lower()


def _is_bold_weight(weight: str) -> bool:
    if weight in ("bold", "bolder"):
        return True
    return weight.isdigit() and int(weight) >= 600


class EmailRules(RuleTable):
    """Rules for markup produced by email clients.

    Parameters
    ----------
    options : ConversionOptions
        Options baked into the rules
    base : BaseRules, optional
        Table used for elements that match no email heuristic. Built from
        ``options`` when omitted.

    """

    name = "email"

    def __init__(self, options: ConversionOptions, base: Optional[BaseRules] = None) -> None:
        self._base = base if base is not None else BaseRules(options)
        super().__init__(options)

    def _build_rules(self) -> dict[str, Rule]:
        return {
            "div": self._division,
            "table": self._table,
            "span": self._span,
            "font": self._font,
            "a": self._link,
            "blockquote": self._blockquote,
            "pre": self._delegate,
        }

    def _division(self, element: Element, content: str, state: WalkState) -> str:
        if is_signature_element(element):
            if not self.options.handle_email_signatures:
                return ""
            text = content.strip()
            return f"\n\n---\n{text}\n" if text else ""

        if is_quoted_element(element):
            if not self.options.preserve_email_quotes:
                return ""
            text = content.strip()
            return f"\n{quote_lines(text, keep_quoted=False)}\n\n" if text else ""

        if self.options.handle_outlook_specific and is_outlook_artifact(element):
            return content

        return self._delegate(element, content, state)

    def _table(self, element: Element, content: str, state: WalkState) -> str:
        if is_layout_table(element):
            return content
        return render_table(element, self.options)

    def _span(self, element: Element, content: str, state: WalkState) -> str:
        if not self.options.convert_inline_styles or not content.strip():
            return content
        return self._apply_style(element.get_attribute("style"), content)

    def _font(self, element: Element, content: str, state: WalkState) -> str:
        if not self.options.convert_inline_styles or not content.strip():
            return content
        if has_important_color(element.get_attribute("color")):
            return wrap_inline(content, "<mark>", "</mark>")
        return self._apply_style(element.get_attribute("style"), content)

    def _apply_style(self, style: Optional[str], content: str) -> str:
        declarations = parse_inline_style(style)
        if not declarations:
            return content
        if _is_bold_weight(_style_value(declarations, "font-weight")):
            return wrap_inline(content, self.options.strong_delimiter)
        if _style_value(declarations, "font-style") in _ITALIC_STYLES:
            return wrap_inline(content, self.options.em_delimiter)
        decoration = _style_value(declarations, "text-decoration-line") or _style_value(declarations, "text-decoration")
        if "underline" in decoration:
            return wrap_inline(content, "<u>", "</u>")
        if has_important_color(declarations.get("color")) or has_important_color(declarations.get("background-color")):
            return wrap_inline(content, "<mark>", "</mark>")
        return content

    def _link(self, element: Element, content: str, state: WalkState) -> str:
        href = element.get_attribute("href")
        if not href:
            return content

        text = content.strip()
        lowered = href.lower()
        if lowered.startswith("tel:"):
            return content
        if not text:
            return ""

        if lowered.startswith("mailto:"):
            address = mailto_address(href)
            if unescape_markdown(text) == address:
                return f"<{address}>"
            return render_link(text, href, None, self.options, state)

        href = resolve_url(href, self.options.base_url)
        return render_link(text, href, element.get_attribute("title"), self.options, state)

    def _blockquote(self, element: Element, content: str, state: WalkState) -> str:
        text = content.strip()
        if not text:
            return ""
        return f"\n{quote_lines(text)}\n\n"

    def _delegate(self, element: Element, content: str, state: WalkState) -> str:
        rule = self._base.get_rule(element.tag_name)
        return rule(element, content, state) if rule is not None else content
