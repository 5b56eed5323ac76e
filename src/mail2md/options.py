#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mail2md/options.py
"""Configuration options for HTML-to-Markdown conversion.

``ConversionOptions`` is an immutable value: rule tables are built from it
once and rebuilt whenever a caller swaps in a modified copy produced by
``create_updated``.
"""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass, field, fields, replace
from typing import TYPE_CHECKING, Any, Callable, Mapping, Union

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self

from mail2md.constants import (
    BULLET_MARKERS,
    CODE_BLOCK_STYLES,
    DEFAULT_BULLET_LIST_MARKER,
    DEFAULT_CODE_BLOCK_STYLE,
    DEFAULT_EM_DELIMITER,
    DEFAULT_FENCE,
    DEFAULT_HTML_PARSER,
    DEFAULT_LINK_REFERENCE_STYLE,
    DEFAULT_LINK_STYLE,
    DEFAULT_PRESERVE_WHITESPACE,
    DEFAULT_STRONG_DELIMITER,
    DEFAULT_TABLE_HANDLING,
    DEFAULT_TRIM_WHITESPACE,
    HTML_PARSERS,
    LINK_REFERENCE_STYLES,
    LINK_STYLES,
    TABLE_HANDLING_MODES,
    CodeBlockStyle,
    HtmlParser,
    LinkReferenceStyle,
    LinkStyle,
    TableHandling,
)
from mail2md.exceptions import ValidationError

if TYPE_CHECKING:
    from mail2md.dom import Element

RuleCallback = Callable[[str, "Element", "ConversionOptions"], str]
Replacement = Union[str, RuleCallback]

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


@dataclass(frozen=True)
class CloneFrozenMixin:
    """Mixin providing frozen dataclass cloning capabilities."""

    def create_updated(self, **kwargs: Any) -> Self:
        """Create a new instance with updated field values.

        Parameters
        ----------
        **kwargs : Any
            Field names and their new values

        Returns
        -------
        Self
            New instance with specified fields updated

        """
        return replace(self, **kwargs)


@dataclass(frozen=True)
class CustomRule:
    """A user-supplied rendering rule.

    Parameters
    ----------
    selector : str
        Tag name the rule applies to, or ``*`` for every element. Only the
        leading tag-name token of a CSS-like selector is honored, so
        ``div.note`` applies to every ``div``.
    replacement : str or callable
        Either a template using ``${content}``, ``${text}`` and
        ``${attrName}`` placeholders, or a callback receiving
        ``(content, element, options)`` and returning the Markdown fragment.
    priority : int, default 0
        Higher priorities win when several rules match the same element.

    """

    selector: str
    replacement: Replacement
    priority: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CustomRule":
        """Build a rule from a ``{selector, replacement, priority}`` mapping."""
        try:
            return cls(
                selector=str(data["selector"]),
                replacement=data["replacement"],
                priority=int(data.get("priority", 0)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(
                f"Invalid custom rule definition: {data!r}",
                parameter_name="custom_rules",
                parameter_value=data,
                original_error=e,
            ) from e


@dataclass(frozen=True)
class ConversionOptions(CloneFrozenMixin):
    """Configuration options for HTML-to-Markdown conversion.

    Parameters
    ----------
    preserve_whitespace : bool, default False
        Keep text whitespace verbatim instead of collapsing runs to one space.
    trim_whitespace : bool, default True
        Strip leading and trailing whitespace from the final Markdown.
    bullet_list_marker : {"-", "*", "+"}, default "-"
        Marker used for unordered list items.
    code_block_style : {"fenced", "indented"}, default "fenced"
        How ``pre`` blocks are rendered.
    fence : str, default "```"
        Fence used for fenced code blocks.
    em_delimiter : str, default "*"
        Delimiter wrapped around emphasized text.
    strong_delimiter : str, default "**"
        Delimiter wrapped around strong text.
    link_style : {"inlined", "referenced"}, default "inlined"
        Render links inline or as numbered references listed at the end.
    link_reference_style : {"full", "collapsed", "shortcut"}, default "full"
        Shape of referenced links.
    preserve_email_headers : bool, default True
        Extract From/To/Subject/Date headers into the metadata.
    handle_email_signatures : bool, default True
        Render signature blocks behind a ``---`` divider; drop them when False.
    convert_inline_styles : bool, default True
        Translate bold/italic/underline/colored inline styles in email markup.
    preserve_email_quotes : bool, default True
        Render quoted replies as blockquotes; drop them when False.
    handle_outlook_specific : bool, default True
        Strip Outlook/Word artifacts before parsing and unwrap their containers.
    table_handling : {"convert", "preserve", "remove"}, default "convert"
        Convert tables to Markdown, keep them as HTML, or drop them.
    custom_rules : tuple of CustomRule, default ()
        User rules consulted before every built-in rule.
    ignore_elements : tuple of str, default ()
        Tags rendered as nothing, including their content.
    keep_elements : tuple of str, default ()
        Tags emitted verbatim as HTML.
    html_parser : {"html.parser", "lxml", "html5lib"}, default "html.parser"
        BeautifulSoup tree builder.
    base_url : str or None, default None
        Base used to resolve relative link and image targets.
    strip_comments : bool, default True
        Drop HTML comments while building the tree.
    remove_tracking_pixels : bool, default True
        Drop 1x1 images commonly used as read receipts.
    is_email : bool, default False
        Treat the input as email regardless of detection.

    """

    preserve_whitespace: bool = field(
        default=DEFAULT_PRESERVE_WHITESPACE,
        metadata={"help": "Keep whitespace in text verbatim", "importance": "advanced"},
    )
    trim_whitespace: bool = field(
        default=DEFAULT_TRIM_WHITESPACE,
        metadata={"help": "Trim leading/trailing whitespace from the output", "cli_name": "no-trim-whitespace"},
    )
    bullet_list_marker: str = field(
        default=DEFAULT_BULLET_LIST_MARKER,
        metadata={"help": "Marker for unordered list items", "choices": list(BULLET_MARKERS), "importance": "core"},
    )
    code_block_style: CodeBlockStyle = field(
        default=DEFAULT_CODE_BLOCK_STYLE,
        metadata={"help": "Code block rendering", "choices": list(CODE_BLOCK_STYLES), "importance": "core"},
    )
    fence: str = field(
        default=DEFAULT_FENCE,
        metadata={"help": "Fence for fenced code blocks", "importance": "advanced"},
    )
    em_delimiter: str = field(
        default=DEFAULT_EM_DELIMITER,
        metadata={"help": "Delimiter for emphasis", "choices": ["*", "_"], "importance": "advanced"},
    )
    strong_delimiter: str = field(
        default=DEFAULT_STRONG_DELIMITER,
        metadata={"help": "Delimiter for strong emphasis", "choices": ["**", "__"], "importance": "advanced"},
    )
    link_style: LinkStyle = field(
        default=DEFAULT_LINK_STYLE,
        metadata={"help": "Inline links or numbered references", "choices": list(LINK_STYLES), "importance": "core"},
    )
    link_reference_style: LinkReferenceStyle = field(
        default=DEFAULT_LINK_REFERENCE_STYLE,
        metadata={
            "help": "Reference link shape when link_style='referenced'",
            "choices": list(LINK_REFERENCE_STYLES),
            "importance": "advanced",
        },
    )
    preserve_email_headers: bool = field(
        default=True,
        metadata={"help": "Extract email headers into metadata", "cli_name": "no-email-headers"},
    )
    handle_email_signatures: bool = field(
        default=True,
        metadata={"help": "Render email signatures behind a divider", "cli_name": "no-signatures"},
    )
    convert_inline_styles: bool = field(
        default=True,
        metadata={"help": "Translate inline CSS styles to Markdown", "cli_name": "no-inline-styles"},
    )
    preserve_email_quotes: bool = field(
        default=True,
        metadata={"help": "Render quoted replies as blockquotes", "cli_name": "no-quotes"},
    )
    handle_outlook_specific: bool = field(
        default=True,
        metadata={"help": "Strip Outlook artifacts", "cli_name": "no-outlook-cleanup"},
    )
    table_handling: TableHandling = field(
        default=DEFAULT_TABLE_HANDLING,
        metadata={"help": "Table handling mode", "choices": list(TABLE_HANDLING_MODES), "importance": "core"},
    )
    custom_rules: tuple[CustomRule, ...] = field(
        default=(),
        metadata={"help": "Custom rendering rules", "exclude_from_cli": True},
    )
    ignore_elements: tuple[str, ...] = field(
        default=(),
        metadata={"help": "Tags to drop entirely", "exclude_from_cli": True},
    )
    keep_elements: tuple[str, ...] = field(
        default=(),
        metadata={"help": "Tags to keep as raw HTML", "exclude_from_cli": True},
    )
    html_parser: HtmlParser = field(
        default=DEFAULT_HTML_PARSER,
        metadata={"help": "BeautifulSoup parser backend", "choices": list(HTML_PARSERS), "importance": "advanced"},
    )
    base_url: str | None = field(
        default=None,
        metadata={"help": "Base URL for resolving relative links and images", "importance": "advanced"},
    )
    strip_comments: bool = field(
        default=True,
        metadata={"help": "Drop HTML comments", "cli_name": "keep-comments"},
    )
    remove_tracking_pixels: bool = field(
        default=True,
        metadata={"help": "Drop 1x1 tracking images", "cli_name": "keep-tracking-pixels"},
    )
    is_email: bool = field(
        default=False,
        metadata={"help": "Force email handling", "exclude_from_cli": True},
    )

    def __post_init__(self) -> None:
        """Normalize sequence fields and validate choices.

        Raises
        ------
        ValueError
            If a field holds a value outside its allowed choices.

        """
        object.__setattr__(
            self,
            "custom_rules",
            tuple(r if isinstance(r, CustomRule) else CustomRule.from_dict(r) for r in self.custom_rules),
        )
        object.__setattr__(self, "ignore_elements", tuple(t.lower() for t in self.ignore_elements))
        object.__setattr__(self, "keep_elements", tuple(t.lower() for t in self.keep_elements))

        for f in fields(self):
            choices = f.metadata.get("choices")
            if choices and getattr(self, f.name) not in choices:
                raise ValueError(f"{f.name} must be one of {choices}, got {getattr(self, f.name)!r}")

        if not self.fence or set(self.fence) - {"`", "~"} or len(self.fence) < 3:
            raise ValueError(f"fence must be at least three backticks or tildes, got {self.fence!r}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ConversionOptions":
        """Build options from a mapping of camelCase or snake_case keys.

        Parameters
        ----------
        data : Mapping[str, Any]
            Option values, e.g. ``{"bulletListMarker": "*"}`` or
            ``{"bullet_list_marker": "*"}``.

        Returns
        -------
        ConversionOptions

        Raises
        ------
        ValidationError
            If a key is unknown or a value is rejected.

        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_BOUNDARY.sub("_", key).lower().replace("-", "_")
            if name not in known:
                raise ValidationError(f"Unknown conversion option: {key}", parameter_name=key, parameter_value=value)
            if name in ("custom_rules", "ignore_elements", "keep_elements"):
                value = tuple(value)
            kwargs[name] = value

        try:
            return cls(**kwargs)
        except ValueError as e:
            raise ValidationError(str(e), original_error=e) from e


EMAIL_DEFAULTS: dict[str, Any] = {
    "handle_email_signatures": True,
    "convert_inline_styles": True,
    "preserve_email_quotes": True,
    "handle_outlook_specific": True,
    "preserve_email_headers": True,
    "table_handling": "convert",
    "is_email": True,
}
