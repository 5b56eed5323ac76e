#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mail2md/rules/__init__.py
"""Rule tables mapping element tags to Markdown rendering functions.

A rule receives the element, the already rendered Markdown of its children
and the per-conversion ``WalkState``, and returns the Markdown fragment for
the element. Rule tables are built from a ``ConversionOptions`` value and
never mutated afterwards; new options mean new tables.

"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Iterator, Mapping, Optional

from mail2md.dom import Element
from mail2md.email_utils import EmailContext
from mail2md.options import ConversionOptions

Rule = Callable[[Element, str, "WalkState"], str]


@dataclass(frozen=True)
class LinkReference:
    """A numbered link target collected for referenced-style links."""

    number: int
    url: str
    title: Optional[str]
    label: str


class LinkReferences:
    """Link targets in first-seen order, keyed by ``(url, title)``.

    Identical targets share a single reference number.
    """

    def __init__(self) -> None:
        self._references: dict[tuple[str, Optional[str]], LinkReference] = {}

    def reference(self, url: str, title: Optional[str] = None, text: str = "") -> LinkReference:
        """Return the reference for a target, registering it on first sight.

        Parameters
        ----------
        url : str
            Link target
        title : str, optional
            Link title
        text : str, default ""
            Rendered link text; becomes the label of a new reference for
            the collapsed and shortcut styles.

        Returns
        -------
        LinkReference

        """
        key = (url, title or None)
        existing = self._references.get(key)
        if existing is not None:
            return existing
        number = len(self._references) + 1
        ref = LinkReference(number=number, url=url, title=title or None, label=text or str(number))
        self._references[key] = ref
        return ref

    def __iter__(self) -> Iterator[LinkReference]:
        return iter(self._references.values())

    def __len__(self) -> int:
        return len(self._references)

    def render_definitions(self, reference_style: str = "full") -> str:
        """Render the ``[n]: url "title"`` definition block."""
        lines = []
        for ref in self:
            label = str(ref.number) if reference_style == "full" else ref.label
            title = f' "{_escape_title(ref.title)}"' if ref.title else ""
            lines.append(f"[{label}]: {ref.url}{title}")
        return "\n".join(lines)


def _escape_title(title: str) -> str:
    return title.replace('"', '\\"')


@dataclass
class WalkState:
    """Mutable state owned by a single conversion.

    Attributes
    ----------
    email_context : EmailContext
        Classification computed once before the walk.
    link_references : LinkReferences
        Targets collected by referenced-style link rules.
    errors : list of str
        Messages of rules that raised and were skipped.

    """

    email_context: EmailContext = field(default_factory=EmailContext)
    link_references: LinkReferences = field(default_factory=LinkReferences)
    errors: list[str] = field(default_factory=list)


class RuleTable:
    """Immutable tag-name to rule mapping built from conversion options.

    Subclasses implement ``_build_rules``.

    Parameters
    ----------
    options : ConversionOptions
        Options baked into the rules of this table.

    """

    name = "rules"

    def __init__(self, options: ConversionOptions) -> None:
        self.options = options
        self._rules: Mapping[str, Rule] = MappingProxyType(self._build_rules())

    def _build_rules(self) -> dict[str, Rule]:
        raise NotImplementedError

    def get_rule(self, tag_name: str) -> Optional[Rule]:
        """Return the rule registered for ``tag_name``, if any."""
        return self._rules.get(tag_name.lower())

    def __contains__(self, tag_name: object) -> bool:
        return isinstance(tag_name, str) and tag_name.lower() in self._rules

    @property
    def tags(self) -> frozenset[str]:
        return frozenset(self._rules)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(tags={len(self._rules)})"


__all__ = ["Rule", "RuleTable", "WalkState", "LinkReference", "LinkReferences"]
