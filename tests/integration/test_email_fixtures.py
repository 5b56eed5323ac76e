#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/integration/test_email_fixtures.py
"""End-to-end conversion of saved client emails under ``tests/fixtures/emails``."""

import json

import pytest

from mail2md import HTMLToMarkdownExtractor, email_to_markdown, html_to_markdown
from mail2md.cli import main
from mail2md.email_utils import ClientType
from mail2md.options import EMAIL_DEFAULTS, ConversionOptions


def _lines(markdown):
    return markdown.split("\n")


@pytest.fixture
def email_extractor():
    return HTMLToMarkdownExtractor(ConversionOptions(**EMAIL_DEFAULTS))


@pytest.mark.integration
class TestGmailReply:
    """A Gmail reply with a sign-off and the quoted previous message."""

    def test_body_formatting(self, load_fixture):
        markdown = email_to_markdown(load_fixture("emails/gmail_reply.html"))

        assert "**quarterly report**" in markdown
        assert "- Revenue increased by 15%" in _lines(markdown)
        assert "- New product launch successful" in _lines(markdown)
        assert "Best regards," in markdown
        assert "---" in _lines(markdown)

    def test_quoted_message_is_prefixed(self, load_fixture):
        markdown = email_to_markdown(load_fixture("emails/gmail_reply.html"))

        quoted = [line for line in _lines(markdown) if "Could you please send me the quarterly report" in line]
        assert len(quoted) == 1
        assert quoted[0].startswith(">")
        assert "<john@company.com>" in markdown

    def test_quotes_dropped_when_disabled(self, load_fixture):
        markdown = email_to_markdown(
            load_fixture("emails/gmail_reply.html"),
            ConversionOptions(**{**EMAIL_DEFAULTS, "preserve_email_quotes": False}),
        )

        assert "Could you please send me" not in markdown
        assert "**quarterly report**" in markdown

    def test_context_and_links(self, email_extractor, load_fixture):
        result = email_extractor.convert(load_fixture("emails/gmail_reply.html"))
        context = result.metadata.email_context

        assert context.is_email_content
        assert context.client_type is ClientType.GMAIL
        assert context.has_quoted_content
        assert [link.href for link in result.metadata.links] == ["mailto:john@company.com"]
        assert result.metadata.links[0].is_email

    def test_detected_without_forcing(self, load_fixture):
        html = load_fixture("emails/gmail_reply.html")

        assert html_to_markdown(html) == email_to_markdown(html, ConversionOptions())


@pytest.mark.integration
class TestOutlookMessage:
    """A Word-generated Outlook message with a layout table."""

    def test_office_markup_removed(self, load_fixture):
        markdown = email_to_markdown(load_fixture("emails/outlook_message.html"))

        assert "o:p" not in markdown
        assert "\xa0" not in markdown
        assert "&nbsp;" not in markdown
        assert "mso" not in markdown.lower()

    def test_inline_formatting(self, load_fixture):
        markdown = email_to_markdown(load_fixture("emails/outlook_message.html"))

        assert "Dear Team," in markdown
        assert "**project timeline**" in markdown
        assert "<mark>Friday EOD</mark>" in markdown
        assert "Best regards," in markdown

    def test_layout_table_is_flattened(self, load_fixture):
        markdown = email_to_markdown(load_fixture("emails/outlook_message.html"))

        assert "**Phase**" in markdown
        assert "Alice" in markdown
        assert "| --- |" not in markdown

    def test_client_type(self, email_extractor, load_fixture):
        result = email_extractor.convert(load_fixture("emails/outlook_message.html"))

        assert result.metadata.email_context.client_type is ClientType.OUTLOOK
        assert result.metadata.errors == []


@pytest.mark.integration
class TestCompanyOverview:
    """A marketing message with embedded images and a signature block."""

    def test_images_and_links(self, load_fixture):
        markdown = email_to_markdown(load_fixture("emails/company_overview.html"))

        assert "![Company Logo](cid:logo@company.com)" in markdown
        assert "<info@company.com>" in markdown
        assert "[company.com](https://company.com)" in markdown
        assert "track.company.com" not in markdown

    def test_structure(self, load_fixture):
        lines = _lines(email_to_markdown(load_fixture("emails/company_overview.html")))

        assert "## Company Name Inc." in lines
        assert "### Our Services" in lines
        assert "- **Consulting** - Expert advice for your business" in lines
        assert "Phone: (555) 123-4567" in lines

    def test_signature_separated(self, load_fixture):
        markdown = email_to_markdown(load_fixture("emails/company_overview.html"))

        signature = markdown[markdown.rindex("---") :]
        assert "John Smith" in signature
        assert "Sales Director" in signature

    def test_layout_table_has_no_pipes(self, load_fixture):
        assert "|" not in email_to_markdown(load_fixture("emails/company_overview.html"))

    def test_image_metadata(self, email_extractor, load_fixture):
        result = email_extractor.convert(load_fixture("emails/company_overview.html"))
        images = result.metadata.images

        assert len(images) == 2
        assert images[0].src == "cid:logo@company.com"
        assert images[0].alt == "Company Logo"
        assert all(image.is_inline for image in images)
        assert result.metadata.email_context.has_signature

    def test_link_metadata(self, email_extractor, load_fixture):
        result = email_extractor.convert(load_fixture("emails/company_overview.html"))

        assert [(link.href, link.is_email) for link in result.metadata.links] == [
            ("mailto:info@company.com", True),
            ("https://company.com", False),
        ]

    def test_tracking_pixel_kept_when_requested(self, load_fixture):
        options = ConversionOptions(**{**EMAIL_DEFAULTS, "remove_tracking_pixels": False})
        result = HTMLToMarkdownExtractor(options).convert(load_fixture("emails/company_overview.html"))

        assert len(result.metadata.images) == 3


@pytest.mark.integration
class TestNewsletter:
    """A newsletter body with a header row table."""

    def test_headings_and_list(self, load_fixture):
        lines = _lines(email_to_markdown(load_fixture("emails/newsletter.html")))

        assert "# Welcome to Our Newsletter" in lines
        assert "## Key Features" in lines
        assert "- Email-optimized conversion" in lines
        assert "This is a **sample email** with *various formatting*." in lines

    def test_data_table(self, load_fixture):
        lines = _lines(email_to_markdown(load_fixture("emails/newsletter.html")))

        assert "| Feature | Supported |" in lines
        assert "| --- | --- |" in lines
        assert "| Headers | ✓ |" in lines
        assert "| Links | ✓ |" in lines

    def test_link_and_signature(self, load_fixture):
        markdown = email_to_markdown(load_fixture("emails/newsletter.html"))

        assert "Visit our website at [example.com](https://example.com)" in markdown
        assert markdown.endswith("---\nBest regards,\nThe Team")

    def test_tables_removed(self, load_fixture):
        markdown = email_to_markdown(load_fixture("emails/newsletter.html"), table_handling="remove")

        assert "Supported" not in markdown
        assert "# Welcome to Our Newsletter" in markdown


@pytest.mark.integration
class TestWebmailHeaders:
    """A saved webmail page whose headers are marked up with classes."""

    def test_headers_extracted(self, email_extractor, load_fixture):
        result = email_extractor.convert(load_fixture("emails/webmail_headers.html"))
        headers = result.metadata.email_headers

        assert headers is not None
        assert headers.from_ == "Alice Smith <alice@example.com>"
        assert headers.to == ["bob@example.com", "carol@example.com"]
        assert headers.subject == "Q3 planning"
        assert headers.date == "Mon, 15 Jan 2024 10:00:00 +0000"
        assert result.metadata.title == "Q3 planning"

    def test_headers_skipped_when_disabled(self, load_fixture):
        options = ConversionOptions(**{**EMAIL_DEFAULTS, "preserve_email_headers": False})
        result = HTMLToMarkdownExtractor(options).convert(load_fixture("emails/webmail_headers.html"))

        assert result.metadata.email_headers is None

    def test_body(self, load_fixture):
        markdown = email_to_markdown(load_fixture("emails/webmail_headers.html"))

        assert "window.track" not in markdown
        assert "Items marked **bold** need a decision." in markdown
        assert markdown.endswith("1. Budget review\n2. Hiring plan")

    def test_json_output_from_cli(self, load_fixture, temp_dir, capsys):
        path = temp_dir / "message.html"
        path.write_text(load_fixture("emails/webmail_headers.html"), encoding="utf-8")

        exit_code = main([str(path), "--email", "--format", "json", "--no-config"])

        payload = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert payload["metadata"]["emailHeaders"]["subject"] == "Q3 planning"
        assert payload["metadata"]["emailHeaders"]["to"] == ["bob@example.com", "carol@example.com"]
        assert "Hiring plan" in payload["markdown"]
