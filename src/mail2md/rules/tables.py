#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mail2md/rules/tables.py
"""Table rendering shared by the base and email rule tables."""

from __future__ import annotations

from mail2md.constants import MARKDOWN_INLINE_CHARS
from mail2md.dom import Comment, Element, Node, Text, to_html
from mail2md.options import ConversionOptions
from mail2md.text import escape_markdown, normalize_whitespace

HEADER_CELL_MAX_LENGTH = 50


def render_table(table: Element, options: ConversionOptions) -> str:
    """Render a table according to ``options.table_handling``.

    Parameters
    ----------
    table : Element
        The ``table`` element
    options : ConversionOptions
        "convert" produces a Markdown table, "preserve" keeps the HTML and
        "remove" drops the table.

    Returns
    -------
    str
        Markdown fragment

    """
    if options.table_handling == "remove":
        return ""
    if options.table_handling == "preserve":
        return f"\n{to_html(table)}\n\n"
    return convert_table(table, options)


def convert_table(table: Element, options: ConversionOptions) -> str:
    """Convert a table to a pipe table.

    Rows of nested tables are skipped. A separator row follows the first row
    when it contains ``th`` cells or looks like a header row. Short rows are
    padded with empty cells.

    """
    rows = [row for row in table.find_all("tr") if row.closest("table") is table]

    grid: list[list[str]] = []
    first_row_has_th = False
    for row in rows:
        cells = [cell for cell in row.element_children if cell.tag_name in ("td", "th")]
        if not cells:
            continue
        if not grid:
            first_row_has_th = any(cell.tag_name == "th" for cell in cells)
        grid.append([cell_content(cell, options) for cell in cells])

    if not grid:
        return ""

    width = max(len(row) for row in grid)
    lines = []
    for index, row in enumerate(grid):
        padded = [cell or " " for cell in row] + [" "] * (width - len(row))
        lines.append("| " + " | ".join(padded) + " |")
        if index == 0 and (first_row_has_th or looks_like_headers(row)):
            lines.append("| " + " | ".join(["---"] * width) + " |")

    return "\n" + "\n".join(lines) + "\n\n"


def looks_like_headers(cells: list[str]) -> bool:
    """Return True when every cell is short, non-empty and capitalized."""
    return bool(cells) and all(
        cell and len(cell) < HEADER_CELL_MAX_LENGTH and cell[0].isupper() for cell in cells
    )


def cell_content(cell: Element, options: ConversionOptions) -> str:
    """Flatten a cell to a single line of Markdown.

    Only strong/b, em/i and code survive as formatting; any other markup is
    reduced to its text. Pipes are escaped and line breaks become spaces.
    """
    parts: list[str] = []
    _collect_cell_text(cell, parts, options, {id(cell)})
    text = normalize_whitespace("".join(parts)).strip()
    return escape_markdown(text, "|")


def _collect_cell_text(node: Node, parts: list[str], options: ConversionOptions, seen: set[int]) -> None:
    for child in node.children:
        if id(child) in seen:
            continue
        seen.add(id(child))

        if isinstance(child, Text):
            parts.append(escape_markdown(normalize_whitespace(child.data), MARKDOWN_INLINE_CHARS))
        elif isinstance(child, Comment):
            continue
        elif isinstance(child, Element):
            tag = child.tag_name
            if tag in ("strong", "b"):
                parts.append(_wrap_inline(child, options.strong_delimiter))
            elif tag in ("em", "i"):
                parts.append(_wrap_inline(child, options.em_delimiter))
            elif tag == "code":
                code = normalize_whitespace(child.text_content).strip()
                parts.append(f"`{code}`" if code else "")
            elif tag == "br":
                parts.append(" ")
            else:
                _collect_cell_text(child, parts, options, seen)


def _wrap_inline(element: Element, delimiter: str) -> str:
    text = normalize_whitespace(element.text_content)
    inner = text.strip()
    if not inner:
        return text
    inner = escape_markdown(inner, MARKDOWN_INLINE_CHARS)
    leading = " " if text[:1] == " " else ""
    trailing = " " if text[-1:] == " " else ""
    return f"{leading}{delimiter}{inner}{delimiter}{trailing}"
