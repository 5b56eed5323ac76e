#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/test_text.py
"""Unit tests for text escaping, whitespace normalization and post-processing.

Tests cover:
- Markdown escaping in the full, text, inline, table and link contexts
- Idempotence of escaping and recovery through unescaping
- Whitespace collapsing and preservation
- Blank-line collapsing and the final formatting fix-up pass

"""

import pytest
from hypothesis import given, strategies as st

from mail2md.constants import MARKDOWN_SPECIAL_CHARS
from mail2md.text import (
    collapse_blank_lines,
    escape_markdown,
    escape_markdown_context_aware,
    fix_markdown_formatting,
    is_whitespace_only,
    normalize_whitespace,
    trim_markdown,
    unescape_markdown,
)


@pytest.mark.unit
class TestEscapeMarkdown:
    """Tests for escape_markdown and unescape_markdown."""

    def test_escapes_special_characters(self):
        assert escape_markdown("*bold* and [link]") == "\\*bold\\* and \\[link\\]"

    def test_escapes_every_special_character(self):
        for char in MARKDOWN_SPECIAL_CHARS:
            assert escape_markdown(char) == "\\" + char

    def test_empty_and_none_input(self):
        assert escape_markdown("") == ""
        assert escape_markdown(None) == ""
        assert unescape_markdown(None) == ""

    def test_plain_text_unchanged(self):
        assert escape_markdown("Hello world") == "Hello world"

    def test_already_escaped_characters_left_alone(self):
        assert escape_markdown("a\\_b") == "a\\_b"

    def test_literal_backslash_before_special_character_is_not_doubled(self):
        """A literal backslash in front of a special character reads as an escape."""
        assert escape_markdown("a\\*b") == "a\\*b"
        assert unescape_markdown(escape_markdown("a\\*b")) == "a*b"

    def test_custom_character_set(self):
        assert escape_markdown("a | b * c", "|") == "a \\| b * c"

    def test_unescape_recovers_each_character(self):
        for char in MARKDOWN_SPECIAL_CHARS:
            assert unescape_markdown(escape_markdown(f"x{char}y")) == f"x{char}y"


@pytest.mark.unit
class TestContextAwareEscaping:
    """Tests for escape_markdown_context_aware."""

    def test_text_context_leaves_prices_and_parentheses(self):
        assert escape_markdown_context_aware("Costs $5.00 (approx.)") == "Costs $5.00 (approx.)"

    def test_text_context_escapes_list_marker_at_line_start(self):
        assert escape_markdown_context_aware("- not a list") == "\\- not a list"
        assert escape_markdown_context_aware("+ not a list") == "\\+ not a list"

    def test_text_context_escapes_quote_marker(self):
        assert escape_markdown_context_aware("> not a quote") == "\\> not a quote"

    def test_text_context_escapes_ordered_marker(self):
        assert escape_markdown_context_aware("1. Not ordered") == "1\\. Not ordered"
        assert escape_markdown_context_aware("2) Not ordered") == "2\\) Not ordered"

    def test_text_context_keeps_hyphen_inside_words(self):
        assert escape_markdown_context_aware("well-known e-mail") == "well-known e-mail"

    def test_text_context_escapes_inline_characters(self):
        assert escape_markdown_context_aware("a*b_c") == "a\\*b\\_c"

    def test_inline_context_skips_line_start_markers(self):
        assert escape_markdown_context_aware("- item", "inline") == "- item"
        assert escape_markdown_context_aware("1. item", "inline") == "1. item"
        assert escape_markdown_context_aware("*x*", "inline") == "\\*x\\*"

    def test_table_context_escapes_pipes_only(self):
        assert escape_markdown_context_aware("a | b *c*", "table") == "a \\| b *c*"

    def test_link_context(self):
        assert escape_markdown_context_aware("[x] *y*", "link") == "\\[x\\] *y*"

    def test_full_context(self):
        assert escape_markdown_context_aware("(a.b)", "full") == "\\(a\\.b\\)"

    def test_empty_input(self):
        assert escape_markdown_context_aware("") == ""
        assert escape_markdown_context_aware(None) == ""


@pytest.mark.unit
class TestWhitespace:
    """Tests for normalize_whitespace and is_whitespace_only."""

    def test_collapses_runs(self):
        assert normalize_whitespace("a  \n\t b") == "a b"

    def test_non_breaking_space_is_content(self):
        assert normalize_whitespace("a\xa0\xa0b") == "a\xa0\xa0b"

    def test_preserve_mode(self):
        assert normalize_whitespace("a  \n b", "preserve") == "a  \n b"

    def test_empty(self):
        assert normalize_whitespace(None) == ""

    def test_whitespace_only(self):
        assert is_whitespace_only(" \n\t ")
        assert not is_whitespace_only(" \xa0 ")


@pytest.mark.unit
class TestPostProcessing:
    """Tests for collapse_blank_lines and fix_markdown_formatting."""

    def test_collapse_blank_lines(self):
        assert collapse_blank_lines("a\n\n\n\nb") == "a\n\nb"
        assert collapse_blank_lines("a\n\nb") == "a\n\nb"

    def test_heading_without_space(self):
        assert fix_markdown_formatting("#Title") == "# Title"

    def test_heading_with_extra_space(self):
        assert fix_markdown_formatting("##   Title") == "## Title"

    def test_list_marker_spacing(self):
        assert fix_markdown_formatting("-   item\n1.  first") == "- item\n1. first"

    def test_trailing_whitespace_removed(self):
        assert fix_markdown_formatting("text   \nmore\t") == "text\nmore"

    def test_fenced_code_untouched(self):
        markdown = "```\n#not-a-heading  \n-   keep\n```\n#Heading"
        assert fix_markdown_formatting(markdown) == "```\n#not-a-heading  \n-   keep\n```\n\n# Heading"

    def test_escaped_hash_not_treated_as_heading(self):
        assert fix_markdown_formatting("\\#tag") == "\\#tag"

    def test_heading_separated_by_blank_lines(self):
        assert fix_markdown_formatting("text\n## B\nmore") == "text\n\n## B\n\nmore"

    def test_heading_spacing_not_doubled(self):
        assert fix_markdown_formatting("text\n\n## B\n\nmore") == "text\n\n## B\n\nmore"
        assert fix_markdown_formatting("# A\n## B") == "# A\n\n## B"

    def test_heading_before_fence_separated(self):
        assert fix_markdown_formatting("## Code\n```\n# x\n```") == "## Code\n\n```\n# x\n```"

    def test_trim_markdown_strips_surrounding_whitespace(self):
        assert trim_markdown("\n\n  text  \n\n") == "text"

    def test_trim_markdown_keeps_leading_code_indent(self):
        assert trim_markdown("\n    code\n      more\n\n") == "    code\n      more"


@pytest.mark.unit
@pytest.mark.fuzzing
class TestEscapingProperties:
    """Property-based tests for the escaping helpers."""

    @given(st.text(max_size=200))
    def test_escape_is_idempotent(self, text):
        """Property: escaping escaped text changes nothing."""
        once = escape_markdown(text)
        assert escape_markdown(once) == once

    @given(st.text(alphabet=st.sampled_from(list("abc xyz\n") + list(MARKDOWN_SPECIAL_CHARS.replace("\\", ""))), max_size=100))
    def test_unescape_inverts_escape(self, text):
        """Property: unescaping once recovers text without backslashes."""
        assert unescape_markdown(escape_markdown(text)) == text

    @given(st.text(max_size=200))
    def test_context_escaping_is_idempotent(self, text):
        """Property: the inline context is stable under repetition."""
        once = escape_markdown_context_aware(text, "inline")
        assert escape_markdown_context_aware(once, "inline") == once

    @given(st.text(max_size=200))
    def test_normalized_text_has_no_whitespace_runs(self, text):
        normalized = normalize_whitespace(text)
        assert "  " not in normalized
        assert "\n" not in normalized
