#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/test_email_rules.py
"""Unit tests for the email rule table.

Tests cover:
- Signature and quoted-reply containers and their options
- Outlook containers and layout tables
- Inline style translation
- Email link handling (tel:, mailto:)
- Flat blockquotes and fallback to the base rules

"""

import pytest

from mail2md.converter import email_to_markdown, html_to_markdown
from mail2md.options import ConversionOptions
from mail2md.rules.base import BaseRules
from mail2md.rules.email import EmailRules


@pytest.mark.unit
class TestEmailContainers:
    """Tests for the div rule."""

    def test_signature_behind_divider(self):
        assert email_to_markdown('<p>Body</p><div class="signature">John</div>') == "Body\n\n---\nJohn"

    def test_signature_dropped_when_disabled(self):
        options = ConversionOptions(handle_email_signatures=False)
        assert email_to_markdown('<p>Body</p><div class="signature">John</div>', options) == "Body"

    def test_quoted_reply(self):
        assert email_to_markdown('<p>Reply</p><div class="gmail_quote">Old text</div>') == "Reply\n\n> Old text"

    def test_quoted_reply_dropped_when_disabled(self):
        options = ConversionOptions(preserve_email_quotes=False)
        assert email_to_markdown('<p>Reply</p><div class="gmail_quote">Old text</div>', options) == "Reply"

    def test_border_left_quote(self):
        html = '<div style="border-left: 1px solid #ccc">Earlier</div>'
        assert email_to_markdown(html) == "> Earlier"

    def test_dir_ltr_only_quoted_in_email_mode(self):
        assert html_to_markdown('<div dir="ltr">Text</div>') == "Text"
        assert email_to_markdown('<div dir="ltr">Text</div>') == "> Text"

    def test_nested_quote_gets_extra_level(self):
        html = '<div class="gmail_quote"><blockquote>Original</blockquote></div>'
        assert email_to_markdown(html) == "> > Original"

    def test_outlook_container_unwrapped(self):
        html = '<div class="WordSection1"><p class="MsoNormal">Hi</p><p class="MsoNormal">There</p></div>'
        assert email_to_markdown(html) == "Hi\n\nThere"

    def test_plain_div_falls_back_to_base(self):
        assert email_to_markdown("<div>Plain</div>") == "Plain"

    def test_detection_activates_email_rules(self):
        assert html_to_markdown('<p>Body</p><div class="signature">John</div>') == "Body\n\n---\nJohn"


@pytest.mark.unit
class TestEmailTables:
    """Tests for layout and data tables in email."""

    def test_layout_table_flattened(self):
        html = '<table role="presentation"><tr><td>Cell one</td><td>Cell two</td></tr></table>'
        assert email_to_markdown(html) == "Cell one\nCell two"
        assert html_to_markdown(html) == "| Cell one | Cell two |\n| --- | --- |"

    def test_data_table_converted(self):
        html = "<table><tr><th>Phase</th><th>Owner</th></tr><tr><td>Design</td><td>Alice</td></tr></table>"
        assert email_to_markdown(html) == "| Phase | Owner |\n| --- | --- |\n| Design | Alice |"


@pytest.mark.unit
class TestInlineStyles:
    """Tests for the span and font rules."""

    @pytest.mark.parametrize(
        "style,expected",
        [
            ("font-weight: bold", "**Hi**"),
            ("font-weight:700", "**Hi**"),
            ("font-style: italic", "*Hi*"),
            ("text-decoration: underline", "<u>Hi</u>"),
            ("color: red", "<mark>Hi</mark>"),
            ("color: #DC3545", "<mark>Hi</mark>"),
            ("font-weight: bold; color: red", "**Hi**"),
            ("color: blue", "Hi"),
            ("font-weight: 600", "**Hi**"),
            ("font-weight: 400", "Hi"),
            ("FONT-WEIGHT: Bold !important", "**Hi**"),
            ("font-style: oblique", "*Hi*"),
            ("text-decoration-line: underline", "<u>Hi</u>"),
            ("background-color: #ff0000", "<mark>Hi</mark>"),
            ("font-family: bold-sans", "Hi"),
        ],
    )
    def test_span_styles(self, style, expected):
        assert email_to_markdown(f'<p><span style="{style}">Hi</span></p>') == expected

    def test_styles_ignored_outside_email(self):
        assert html_to_markdown('<p><span style="font-weight: bold">Hi</span></p>') == "Hi"

    def test_styles_ignored_when_disabled(self):
        options = ConversionOptions(convert_inline_styles=False)
        assert email_to_markdown('<p><span style="font-weight: bold">Hi</span></p>', options) == "Hi"

    def test_font_color(self):
        assert email_to_markdown('<p><font color="#FF0000">Urgent</font></p>') == "<mark>Urgent</mark>"

    def test_font_style(self):
        assert email_to_markdown('<p><font style="font-style: italic">Note</font></p>') == "*Note*"

    def test_whitespace_kept_outside_markers(self):
        html = '<p>Due<span style="font-weight: bold"> Friday </span>EOD</p>'
        assert email_to_markdown(html) == "Due **Friday** EOD"


@pytest.mark.unit
class TestEmailLinks:
    """Tests for the email link rule."""

    def test_tel_link_is_plain_text(self):
        assert email_to_markdown('<p>Call <a href="tel:+15551234">555-1234</a></p>') == "Call 555-1234"

    def test_mailto_same_text(self):
        assert email_to_markdown('<a href="mailto:info@company.com">info@company.com</a>') == "<info@company.com>"

    def test_mailto_other_text(self):
        html = '<a href="mailto:info@company.com">Email us</a>'
        assert email_to_markdown(html) == "[Email us](mailto:info@company.com)"

    def test_web_link(self):
        assert email_to_markdown('<a href="https://company.com" title="Home">Site</a>') == '[Site](https://company.com "Home")'


@pytest.mark.unit
class TestEmailRuleTable:
    """Tests for the table itself."""

    def test_tags(self):
        rules = EmailRules(ConversionOptions())
        assert rules.tags == frozenset(["div", "table", "span", "font", "a", "blockquote", "pre"])

    def test_flat_blockquote(self):
        html = "<blockquote><blockquote><blockquote>X</blockquote></blockquote></blockquote>"
        assert email_to_markdown(html) == "> X"

    def test_pre_delegates_to_base(self):
        assert email_to_markdown("<pre>code  here</pre>") == "```\ncode  here\n```"

    def test_shares_base_table(self):
        base = BaseRules(ConversionOptions())
        rules = EmailRules(ConversionOptions(), base)
        assert rules._base is base
