"""mail2md - HTML and email to Markdown conversion.

mail2md converts HTML, and the HTML produced by email clients such as
Outlook, Gmail and Yahoo in particular, into clean Markdown together with
metadata about the links, images and email headers it found.

Conversion runs a layered rule system over a parsed document tree: custom
rules first, then email rules when the document was classified as email,
then the generic HTML rules.

Examples
--------
Basic usage:

    >>> from mail2md import html_to_markdown
    >>> html_to_markdown("<h1>Title</h1><p>Some <em>text</em></p>")
    '# Title\\n\\nSome *text*'

Email with metadata:

    >>> from mail2md import HTMLToMarkdownExtractor, ConversionOptions
    >>> extractor = HTMLToMarkdownExtractor(ConversionOptions(is_email=True))
    >>> result = extractor.convert(html)
    >>> result.metadata.email_headers

Custom rules:

    >>> from mail2md import RuleBuilder
    >>> rule = RuleBuilder().for_selector("mark").with_replacement("==${content}==").build()
    >>> html_to_markdown("<p><mark>hi</mark></p>", custom_rules=[rule])
    '==hi=='

"""

#  Copyright (c) 2025 Tom Villani, Ph.D.

# Check Python version before any imports
import sys

if sys.version_info < (3, 10):
    raise ImportError(
        "mail2md requires Python 3.10 or later. "
        f"You are using Python {sys.version_info.major}.{sys.version_info.minor}."
    )

__version__ = "1.0.0"

from mail2md.batch import BatchItem, convert_batch, convert_batch_async
from mail2md.converter import (
    ConversionMetadata,
    ConversionResult,
    HTMLToMarkdownExtractor,
    ImageInfo,
    LinkInfo,
    convert_with_options,
    email_to_markdown,
    html_to_markdown,
)
from mail2md.email_utils import ClientType, EmailContext, EmailHeaders, detect_email_context
from mail2md.exceptions import (
    ConfigError,
    ConversionError,
    DependencyError,
    InputError,
    Mail2MdError,
    ParsingError,
    ValidationError,
)
from mail2md.options import EMAIL_DEFAULTS, ConversionOptions, CustomRule
from mail2md.rules.custom import CustomRuleTable, RuleBuilder

__all__ = [
    "__version__",
    # Conversion
    "HTMLToMarkdownExtractor",
    "html_to_markdown",
    "email_to_markdown",
    "convert_with_options",
    "ConversionResult",
    "ConversionMetadata",
    "ImageInfo",
    "LinkInfo",
    # Batch
    "convert_batch",
    "convert_batch_async",
    "BatchItem",
    # Options and rules
    "ConversionOptions",
    "EMAIL_DEFAULTS",
    "CustomRule",
    "CustomRuleTable",
    "RuleBuilder",
    # Email
    "EmailContext",
    "EmailHeaders",
    "ClientType",
    "detect_email_context",
    # Exceptions
    "Mail2MdError",
    "ValidationError",
    "InputError",
    "ConfigError",
    "ParsingError",
    "ConversionError",
    "DependencyError",
]
