#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/test_options.py
"""Unit tests for ConversionOptions and CustomRule."""

from dataclasses import FrozenInstanceError

import pytest

from mail2md.exceptions import ValidationError
from mail2md.options import EMAIL_DEFAULTS, ConversionOptions, CustomRule


@pytest.mark.unit
class TestConversionOptions:
    """Tests for defaults, validation and cloning."""

    def test_defaults(self):
        options = ConversionOptions()
        assert options.bullet_list_marker == "-"
        assert options.code_block_style == "fenced"
        assert options.fence == "```"
        assert options.em_delimiter == "*"
        assert options.strong_delimiter == "**"
        assert options.link_style == "inlined"
        assert options.table_handling == "convert"
        assert options.html_parser == "html.parser"
        assert options.trim_whitespace is True
        assert options.is_email is False
        assert options.custom_rules == ()

    def test_frozen(self):
        options = ConversionOptions()
        with pytest.raises(FrozenInstanceError):
            options.bullet_list_marker = "*"  # type: ignore[misc]

    def test_create_updated_returns_copy(self):
        options = ConversionOptions()
        updated = options.create_updated(bullet_list_marker="+")
        assert updated.bullet_list_marker == "+"
        assert options.bullet_list_marker == "-"

    @pytest.mark.parametrize(
        "field_name,value",
        [
            ("bullet_list_marker", "#"),
            ("code_block_style", "tabbed"),
            ("link_style", "footnote"),
            ("table_handling", "flatten"),
            ("html_parser", "regex"),
        ],
    )
    def test_invalid_choice(self, field_name, value):
        with pytest.raises(ValueError, match=field_name):
            ConversionOptions(**{field_name: value})

    @pytest.mark.parametrize("fence", ["", "``", "---"])
    def test_invalid_fence(self, fence):
        with pytest.raises(ValueError, match="fence"):
            ConversionOptions(fence=fence)

    def test_tilde_fence_allowed(self):
        assert ConversionOptions(fence="~~~~").fence == "~~~~"

    def test_sequences_normalized(self):
        options = ConversionOptions(ignore_elements=["FOOTER"], keep_elements=["Mark"])
        assert options.ignore_elements == ("footer",)
        assert options.keep_elements == ("mark",)

    def test_custom_rules_from_mappings(self):
        options = ConversionOptions(custom_rules=({"selector": "mark", "replacement": "==${content}=="},))
        assert options.custom_rules == (CustomRule("mark", "==${content}==", 0),)

    def test_email_defaults(self):
        options = ConversionOptions(**EMAIL_DEFAULTS)
        assert options.is_email is True
        assert options.handle_email_signatures is True


@pytest.mark.unit
class TestFromDict:
    """Tests for building options from camelCase, snake_case and kebab-case keys."""

    def test_camel_case(self):
        options = ConversionOptions.from_dict({"bulletListMarker": "*", "handleEmailSignatures": False})
        assert options.bullet_list_marker == "*"
        assert options.handle_email_signatures is False

    def test_snake_and_kebab_case(self):
        options = ConversionOptions.from_dict({"link_style": "referenced", "table-handling": "remove"})
        assert options.link_style == "referenced"
        assert options.table_handling == "remove"

    def test_lists_become_tuples(self):
        options = ConversionOptions.from_dict({"ignoreElements": ["nav"]})
        assert options.ignore_elements == ("nav",)

    def test_unknown_key(self):
        with pytest.raises(ValidationError, match="Unknown conversion option: colour") as exc_info:
            ConversionOptions.from_dict({"colour": "red"})
        assert exc_info.value.parameter_name == "colour"

    def test_invalid_value_becomes_validation_error(self):
        with pytest.raises(ValidationError, match="bullet_list_marker"):
            ConversionOptions.from_dict({"bulletListMarker": "x"})


@pytest.mark.unit
class TestCustomRule:
    """Tests for CustomRule.from_dict."""

    def test_from_dict(self):
        rule = CustomRule.from_dict({"selector": "kbd", "replacement": "<${content}>", "priority": "3"})
        assert rule == CustomRule("kbd", "<${content}>", 3)

    def test_from_dict_missing_key(self):
        with pytest.raises(ValidationError, match="Invalid custom rule"):
            CustomRule.from_dict({"selector": "kbd"})
