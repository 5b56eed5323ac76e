#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mail2md/walker.py
"""Tree walker that renders a document tree to Markdown.

Children are rendered before their parent's rule runs, since every rule
receives the rendered child content as a string. Rule resolution follows a
fixed precedence:

1. elements listed in ``ignore_elements`` render as nothing
2. custom rules
3. elements listed in ``keep_elements`` are emitted as HTML
4. email rules, only when the document was classified as email
5. base rules
6. no rule: the element is transparent and yields its child content

A walker instance belongs to a single conversion and carries that
conversion's visited set, link references and error log.

"""

from __future__ import annotations

import logging
from typing import Optional

from mail2md.constants import BLOCK_ELEMENTS, CODE_CONTEXT_TAGS, INLINE_ELEMENTS, PRESERVE_WHITESPACE_TAGS
from mail2md.dom import Comment, Document, Element, Node, Text, to_html
from mail2md.email_utils import EmailContext
from mail2md.options import ConversionOptions
from mail2md.rules import Rule, WalkState
from mail2md.rules.base import BaseRules
from mail2md.rules.custom import CustomRuleTable
from mail2md.rules.email import EmailRules
from mail2md.text import escape_markdown_context_aware, normalize_whitespace

logger = logging.getLogger(__name__)

# Containers treated like block elements for whitespace trimming
_ROOT_CONTAINERS = frozenset(["html", "body"])

# Siblings at which adjacent text loses its surrounding whitespace
_TRIM_BOUNDARIES = BLOCK_ELEMENTS | {"br"}


def is_block(node: Optional[Node]) -> bool:
    return isinstance(node, Element) and node.tag_name in BLOCK_ELEMENTS


def is_inline(node: Optional[Node]) -> bool:
    return isinstance(node, Element) and node.tag_name in INLINE_ELEMENTS


class TreeWalker:
    """Render a node tree to Markdown using layered rule tables.

    Parameters
    ----------
    options : ConversionOptions
        Conversion options
    base_rules : BaseRules
        Generic rules, always consulted
    email_rules : EmailRules, optional
        Email rules, consulted only when ``email_context.is_email_content``
    custom_rules : CustomRuleTable, optional
        User rules, consulted first
    email_context : EmailContext, optional
        Classification of the document being walked

    """

    def __init__(
        self,
        options: ConversionOptions,
        base_rules: BaseRules,
        email_rules: Optional[EmailRules] = None,
        custom_rules: Optional[CustomRuleTable] = None,
        email_context: Optional[EmailContext] = None,
    ) -> None:
        self.options = options
        self.base_rules = base_rules
        self.email_rules = email_rules
        self.custom_rules = custom_rules
        self.state = WalkState(email_context=email_context or EmailContext())
        self._visited: set[int] = set()
        self._ignored = frozenset(options.ignore_elements)
        self._kept = frozenset(options.keep_elements)

    @property
    def email_active(self) -> bool:
        return self.email_rules is not None and self.state.email_context.is_email_content

    def walk(self, node: Node) -> str:
        """Render ``node`` and its descendants.

        Parameters
        ----------
        node : Node
            Root of the subtree to render, usually a ``Document``

        Returns
        -------
        str
            Raw Markdown, before post-processing

        """
        return self._convert_node(node, in_pre=False, in_code=False)

    def reset(self) -> None:
        """Forget the visited set and collected state."""
        self._visited.clear()
        self.state = WalkState(email_context=self.state.email_context)

    def _convert_node(self, node: Node, in_pre: bool, in_code: bool) -> str:
        if id(node) in self._visited:
            return ""
        self._visited.add(id(node))

        if isinstance(node, Element):
            return self._convert_element(node, in_pre, in_code)
        if isinstance(node, Document):
            return self._process_nodes(node.children, node, in_pre, in_code)
        if isinstance(node, Text):
            return self._render_text(node.data, None, None, None, in_pre, in_code)
        return ""

    def _convert_element(self, element: Element, in_pre: bool, in_code: bool) -> str:
        tag = element.tag_name
        if tag in self._ignored:
            return ""

        rule = self.custom_rules.get_rule(tag) if self.custom_rules is not None else None
        if rule is None and tag in self._kept:
            return to_html(element)
        if rule is None and self.email_active:
            rule = self.email_rules.get_rule(tag)  # type: ignore[union-attr]
        if rule is None:
            rule = self.base_rules.get_rule(tag)

        content = self._process_nodes(
            element.children,
            element,
            in_pre=in_pre or tag in PRESERVE_WHITESPACE_TAGS,
            in_code=in_code or tag in CODE_CONTEXT_TAGS,
        )

        if rule is None:
            return content
        return self._apply_rule(rule, element, content)

    def _apply_rule(self, rule: Rule, element: Element, content: str) -> str:
        try:
            return rule(element, content, self.state)
        except Exception as e:
            logger.warning(f"Rule for <{element.tag_name}> failed: {e}")
            self.state.errors.append(f"{element.tag_name}: {e}")
            return content

    def _process_nodes(self, children: list[Node], parent: Optional[Node], in_pre: bool, in_code: bool) -> str:
        preserve = in_pre or self.options.preserve_whitespace
        parts: list[str] = []
        previous: Optional[Node] = None
        previous_output = ""

        for index, child in enumerate(children):
            if isinstance(child, Text):
                if id(child) in self._visited:
                    continue
                self._visited.add(id(child))
                before, after = _neighbours(children, index)
                output = self._render_text(child.data, parent, before, after, in_pre, in_code)
            else:
                output = self._convert_node(child, in_pre, in_code)

            if (
                not preserve
                and output
                and previous_output
                and is_inline(previous)
                and is_inline(child)
                and not previous_output[-1].isspace()
                and not output[0].isspace()
            ):
                parts.append(" ")

            parts.append(output)
            if not isinstance(child, Comment):
                previous = child
                previous_output = output

        return "".join(parts)

    def _render_text(
        self,
        data: str,
        parent: Optional[Node],
        before: Optional[Node],
        after: Optional[Node],
        in_pre: bool,
        in_code: bool,
    ) -> str:
        starts_line = before is None or _is_trim_boundary(before)
        if in_pre or self.options.preserve_whitespace:
            text = data
            starts_line = True
        else:
            text = normalize_whitespace(data)
            if _is_block_container(parent):
                if starts_line:
                    text = text.lstrip(" ")
                if after is None or _is_trim_boundary(after):
                    text = text.rstrip(" ")

        if not text or in_code:
            return text
        return escape_markdown_context_aware(text, "text" if starts_line else "inline")


def _is_block_container(node: Optional[Node]) -> bool:
    if isinstance(node, Document):
        return True
    return isinstance(node, Element) and (node.tag_name in BLOCK_ELEMENTS or node.tag_name in _ROOT_CONTAINERS)


def _is_trim_boundary(node: Node) -> bool:
    return isinstance(node, Element) and node.tag_name in _TRIM_BOUNDARIES


def _neighbours(children: list[Node], index: int) -> tuple[Optional[Node], Optional[Node]]:
    """Closest non-comment siblings before and after ``children[index]``."""
    before = after = None
    for i in range(index - 1, -1, -1):
        if not isinstance(children[i], Comment):
            before = children[i]
            break
    for i in range(index + 1, len(children)):
        if not isinstance(children[i], Comment):
            after = children[i]
            break
    return before, after
