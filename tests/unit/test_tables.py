#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/test_tables.py
"""Unit tests for table rendering."""

import pytest

from mail2md.converter import html_to_markdown
from mail2md.options import ConversionOptions
from mail2md.parser import parse_html
from mail2md.rules.tables import HEADER_CELL_MAX_LENGTH, cell_content, looks_like_headers

PEOPLE = (
    "<table><tr><th>Name</th><th>Age</th></tr>"
    "<tr><td>John</td><td>30</td></tr>"
    "<tr><td>Jane</td><td>25</td></tr></table>"
)


@pytest.mark.unit
class TestConvertTable:
    """Tests for the pipe table conversion."""

    def test_header_row(self):
        assert html_to_markdown(PEOPLE) == "| Name | Age |\n| --- | --- |\n| John | 30 |\n| Jane | 25 |"

    def test_thead_and_tbody(self):
        html = (
            "<table><thead><tr><th>A</th><th>B</th></tr></thead>"
            "<tbody><tr><td>1</td><td>2</td></tr></tbody></table>"
        )
        assert html_to_markdown(html) == "| A | B |\n| --- | --- |\n| 1 | 2 |"

    def test_no_separator_without_header_shape(self):
        html = "<table><tr><td>one</td><td>two</td></tr><tr><td>three</td><td>four</td></tr></table>"
        assert html_to_markdown(html) == "| one | two |\n| three | four |"

    def test_capitalized_first_row_gets_separator(self):
        html = "<table><tr><td>Item</td><td>Price</td></tr><tr><td>tea</td><td>2</td></tr></table>"
        assert html_to_markdown(html) == "| Item | Price |\n| --- | --- |\n| tea | 2 |"

    def test_empty_cells_and_short_rows_padded(self):
        html = "<table><tr><th>A</th><th>B</th></tr><tr><td>a</td><td></td></tr><tr><td>x</td></tr></table>"
        assert html_to_markdown(html) == "| A | B |\n| --- | --- |\n| a |   |\n| x |   |"

    def test_pipes_escaped(self):
        html = "<table><tr><th>Expr</th></tr><tr><td>a | b</td></tr></table>"
        assert html_to_markdown(html) == "| Expr |\n| --- |\n| a \\| b |"

    def test_cell_formatting(self):
        html = (
            "<table><tr><th>Key</th></tr>"
            "<tr><td><strong>bold</strong> <em>it</em> <code>c</code><br>next <a href='x'>link</a></td></tr></table>"
        )
        assert html_to_markdown(html) == "| Key |\n| --- |\n| **bold** *it* `c` next link |"

    def test_nested_table_rows_skipped(self):
        html = (
            "<table><tr><th>Outer</th></tr>"
            "<tr><td>cell<table><tr><td>inner</td></tr></table></td></tr></table>"
        )
        markdown = html_to_markdown(html)
        assert markdown.splitlines()[:2] == ["| Outer |", "| --- |"]
        assert markdown.count("| --- |") == 1

    def test_empty_table_dropped(self):
        assert html_to_markdown("<table></table><p>x</p>") == "x"

    def test_table_between_paragraphs(self):
        markdown = html_to_markdown(f"<p>Before</p>{PEOPLE}<p>After</p>")
        assert markdown.startswith("Before\n\n| Name | Age |")
        assert markdown.endswith("| Jane | 25 |\n\nAfter")


@pytest.mark.unit
class TestTableHandling:
    """Tests for the convert/preserve/remove modes."""

    def test_remove(self):
        assert html_to_markdown(f"<p>a</p>{PEOPLE}", table_handling="remove") == "a"

    def test_preserve(self):
        html = '<table class="grid"><tr><td>x &amp; y</td></tr></table>'
        assert html_to_markdown(html, table_handling="preserve") == '<table class="grid"><tr><td>x &amp; y</td></tr></table>'


@pytest.mark.unit
class TestHeaderHeuristics:
    """Tests for looks_like_headers and cell_content."""

    def test_looks_like_headers(self):
        assert looks_like_headers(["Name", "Age"])
        assert not looks_like_headers(["Name", "age"])
        assert not looks_like_headers(["Name", ""])
        assert not looks_like_headers([])
        assert not looks_like_headers(["A" * HEADER_CELL_MAX_LENGTH])

    def test_cell_content_single_line(self):
        cell = parse_html("<td>  multi\n  line   text </td>").find("td")
        assert cell_content(cell, ConversionOptions()) == "multi line text"
