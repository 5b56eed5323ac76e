#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mail2md/dom.py
"""Minimal document tree consumed by the conversion engine.

The tree is a closed set of node variants (``Document``, ``Element``,
``Text`` and ``Comment``) discriminated by ``Node.kind``. Parents are held
through weak references so a node never owns its parent, and every traversal
helper tracks visited identities so a malformed tree (a node linked beneath
itself) cannot loop forever.

"""

from __future__ import annotations

import html
import weakref
from enum import Enum
from typing import Iterator, Optional

VOID_ELEMENTS = frozenset(
    ["area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "track", "wbr"]
)


class NodeKind(Enum):
    """Discriminant for the node variants."""

    DOCUMENT = "document"
    ELEMENT = "element"
    TEXT = "text"
    COMMENT = "comment"


class Node:
    """Base class for all tree nodes.

    Attributes
    ----------
    kind : NodeKind
        Variant discriminant, fixed per subclass.
    children : list of Node
        Child nodes in document order.

    """

    kind: NodeKind

    def __init__(self) -> None:
        self.children: list[Node] = []
        self._parent: Optional[weakref.ReferenceType[Node]] = None

    @property
    def parent(self) -> Optional[Node]:
        """Return the parent node, or None for a root or detached node."""
        return self._parent() if self._parent is not None else None

    def append_child(self, child: Node) -> Node:
        """Append ``child`` and point its parent reference at this node."""
        child._parent = weakref.ref(self)
        self.children.append(child)
        return child

    @property
    def text_content(self) -> str:
        """Concatenated text of all descendant ``Text`` nodes."""
        return "".join(node.data for node in self.iter_descendants() if isinstance(node, Text))

    def iter_descendants(self) -> Iterator[Node]:
        """Yield descendants depth-first in document order, each at most once."""
        seen = {id(self)}
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            if id(node) in seen:
                continue
            seen.add(id(node))
            yield node
            stack.extend(reversed(node.children))

    def iter_ancestors(self) -> Iterator[Node]:
        """Yield ancestors from the parent upwards, stopping on a repeat."""
        seen = {id(self)}
        node = self.parent
        while node is not None and id(node) not in seen:
            seen.add(id(node))
            yield node
            node = node.parent

    def find_all(self, tag_name: str) -> list[Element]:
        """Return every descendant element with the given tag name.

        ``*`` matches all elements.
        """
        tag_name = tag_name.lower()
        return [
            node
            for node in self.iter_descendants()
            if isinstance(node, Element) and (tag_name == "*" or node.tag_name == tag_name)
        ]

    def find(self, tag_name: str) -> Optional[Element]:
        """Return the first descendant element with the given tag name."""
        tag_name = tag_name.lower()
        for node in self.iter_descendants():
            if isinstance(node, Element) and node.tag_name == tag_name:
                return node
        return None

    def closest(self, tag_name: str) -> Optional[Element]:
        """Return the nearest ancestor element with the given tag name."""
        tag_name = tag_name.lower()
        for node in self.iter_ancestors():
            if isinstance(node, Element) and node.tag_name == tag_name:
                return node
        return None

    @property
    def element_children(self) -> list[Element]:
        """Child nodes that are elements."""
        return [child for child in self.children if isinstance(child, Element)]


class Document(Node):
    """Root of a parsed tree."""

    kind = NodeKind.DOCUMENT

    @property
    def body(self) -> Optional[Element]:
        """The ``body`` element, if the parser produced one."""
        return self.find("body")

    def __repr__(self) -> str:
        return f"Document(children={len(self.children)})"


class Element(Node):
    """An HTML element.

    Parameters
    ----------
    tag_name : str
        Element name; stored lower-cased.
    attributes : dict, optional
        Attribute name to value mapping.

    """

    kind = NodeKind.ELEMENT

    def __init__(self, tag_name: str, attributes: Optional[dict[str, str]] = None) -> None:
        super().__init__()
        self.tag_name = tag_name.lower()
        self.attributes: dict[str, str] = dict(attributes or {})

    def get_attribute(self, name: str) -> Optional[str]:
        """Return the attribute value, or None when absent."""
        return self.attributes.get(name.lower())

    def has_attribute(self, name: str) -> bool:
        return name.lower() in self.attributes

    @property
    def class_list(self) -> list[str]:
        return (self.get_attribute("class") or "").split()

    def __repr__(self) -> str:
        return f"Element({self.tag_name!r}, attributes={self.attributes!r})"


class Text(Node):
    """A run of character data."""

    kind = NodeKind.TEXT

    def __init__(self, data: str) -> None:
        super().__init__()
        self.data = data

    @property
    def text_content(self) -> str:
        return self.data

    def __repr__(self) -> str:
        return f"Text({self.data!r})"


class Comment(Node):
    """An HTML comment. Contributes nothing to the rendered output."""

    kind = NodeKind.COMMENT

    def __init__(self, data: str) -> None:
        super().__init__()
        self.data = data

    @property
    def text_content(self) -> str:
        return self.data

    def __repr__(self) -> str:
        return f"Comment({self.data!r})"


def to_html(node: Node) -> str:
    """Serialize a node and its descendants back to HTML.

    Used for elements kept verbatim and for tables in ``preserve`` mode.

    Parameters
    ----------
    node : Node
        Subtree root to serialize.

    Returns
    -------
    str
        HTML markup. A node reachable twice is serialized only once.

    """
    parts: list[str] = []
    _serialize(node, parts, set())
    return "".join(parts)


def _serialize(node: Node, parts: list[str], seen: set[int]) -> None:
    if id(node) in seen:
        return
    seen.add(id(node))

    if isinstance(node, Text):
        parts.append(html.escape(node.data, quote=False))
    elif isinstance(node, Comment):
        parts.append(f"<!--{node.data}-->")
    elif isinstance(node, Element):
        attrs = "".join(f' {name}="{html.escape(value)}"' for name, value in node.attributes.items())
        parts.append(f"<{node.tag_name}{attrs}>")
        if node.tag_name in VOID_ELEMENTS:
            return
        for child in node.children:
            _serialize(child, parts, seen)
        parts.append(f"</{node.tag_name}>")
    else:
        for child in node.children:
            _serialize(child, parts, seen)
