#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/test_walker.py
"""Unit tests for the tree walker.

Tests cover:
- Rule precedence (ignore, custom, keep, email, base, transparent)
- Whitespace trimming around block boundaries
- Termination on cyclic trees
- Recording of failing rules

"""

import logging

import pytest

from mail2md.converter import convert_with_options, html_to_markdown
from mail2md.dom import Document, Element, Text
from mail2md.email_utils import EmailContext
from mail2md.options import ConversionOptions, CustomRule
from mail2md.rules.base import BaseRules
from mail2md.rules.custom import CustomRuleTable
from mail2md.rules.email import EmailRules
from mail2md.walker import TreeWalker, is_block, is_inline


def _walker(options=None, email=False):
    options = options or ConversionOptions()
    base = BaseRules(options)
    return TreeWalker(
        options,
        base,
        email_rules=EmailRules(options, base),
        custom_rules=CustomRuleTable(options),
        email_context=EmailContext(is_email_content=email),
    )


def _element(tag, *children, **attrs):
    element = Element(tag, attrs)
    for child in children:
        element.append_child(Text(child) if isinstance(child, str) else child)
    return element


@pytest.mark.unit
class TestPrecedence:
    """Tests for rule resolution order."""

    def test_ignored_elements_dropped(self):
        assert html_to_markdown("<p>Keep</p><footer>Drop</footer>", ignore_elements=["footer"]) == "Keep"

    def test_ignore_beats_custom(self):
        options = ConversionOptions(ignore_elements=("mark",), custom_rules=(CustomRule("mark", "==${content}=="),))
        assert html_to_markdown("<p>a <mark>b</mark></p>", options) == "a"

    def test_keep_elements_emitted_as_html(self):
        assert html_to_markdown('<p>A <mark class="x">b</mark></p>', keep_elements=["mark"]) == 'A <mark class="x">b</mark>'

    def test_custom_beats_keep(self):
        options = ConversionOptions(keep_elements=("mark",), custom_rules=(CustomRule("mark", "==${content}=="),))
        assert html_to_markdown("<p><mark>b</mark></p>", options) == "==b=="

    def test_email_rules_only_when_email(self):
        div = _element("div", "Ann", **{"class": "signature"})
        document = Document()
        document.append_child(div)
        assert _walker(email=False).walk(document) == "Ann\n"
        assert _walker(email=True).walk(document) == "\n\n---\nAnn\n"

    def test_transparent_without_rule(self):
        document = Document()
        document.append_child(_element("abbr", "HTML"))
        assert _walker().walk(document) == "HTML"

    def test_email_active_property(self):
        assert _walker(email=True).email_active
        assert not _walker(email=False).email_active


@pytest.mark.unit
class TestWhitespace:
    """Tests for text handling during the walk."""

    def test_inter_block_whitespace_dropped(self):
        assert html_to_markdown("<div>\n  <p>One</p>\n  <p>Two</p>\n</div>") == "One\n\nTwo"

    def test_inline_whitespace_collapsed(self):
        assert html_to_markdown("<p>a   lot\n of   space</p>") == "a lot of space"

    def test_whitespace_between_inline_elements_kept(self):
        assert html_to_markdown("<p><em>a</em> <strong>b</strong></p>") == "*a* **b**"

    def test_preserve_whitespace_option(self):
        markdown = html_to_markdown("<p>a   b</p>", preserve_whitespace=True)
        assert markdown == "a   b"

    def test_non_breaking_space_kept(self):
        assert html_to_markdown("<p>a&nbsp;&nbsp;b</p>") == "a\xa0\xa0b"

    def test_comments_do_not_break_trimming(self):
        html = "<p>x<!-- note --></p>"
        assert html_to_markdown(html, strip_comments=False) == "x"


@pytest.mark.unit
class TestRobustness:
    """Tests for cyclic trees and failing rules."""

    def test_cyclic_tree_terminates(self):
        document = Document()
        div = document.append_child(Element("div"))
        p = div.append_child(Element("p"))
        p.append_child(Text("X"))
        p.append_child(div)
        assert "X" in _walker().walk(document)

    def test_shared_text_node_rendered_once(self):
        text = Text("once")
        document = Document()
        first = document.append_child(Element("p"))
        second = document.append_child(Element("p"))
        first.children.append(text)
        second.children.append(text)
        assert _walker().walk(document).count("once") == 1

    def test_failing_rule_recorded(self, caplog):
        def explode(content, element, options):
            raise ValueError("boom")

        with caplog.at_level(logging.WARNING, logger="mail2md.walker"):
            result = convert_with_options("<p>Hello</p>", custom_rules=[CustomRule("p", explode)])

        assert result.markdown == "Hello"
        assert result.metadata.errors == ["p: boom"]
        assert "Rule for <p> failed: boom" in caplog.text

    def test_reset_clears_state(self):
        walker = _walker(ConversionOptions(link_style="referenced"))
        document = Document()
        document.append_child(_element("a", "x", href="https://x.com"))
        walker.walk(document)
        assert len(walker.state.link_references) == 1
        walker.reset()
        assert len(walker.state.link_references) == 0
        assert walker.walk(document) == "[x][1]"


@pytest.mark.unit
def test_element_classification():
    assert is_block(Element("p"))
    assert not is_block(Element("span"))
    assert is_inline(Element("em"))
    assert not is_inline(Text("x"))
    assert not is_inline(None)
