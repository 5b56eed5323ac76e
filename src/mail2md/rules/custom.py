#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mail2md/rules/custom.py
"""User-supplied rendering rules.

Custom rules take precedence over every built-in rule. Selectors are matched
by tag name only: the leading tag-name token of a selector is used, ``*``
applies to every element, and selectors without a leading tag (``.note``,
``#footer``) are stored under their literal text and therefore never match an
element.

Replacement templates support three placeholders, substituted in a single
pass:

- ``${content}``: the rendered Markdown of the element's children
- ``${text}``: the element's plain text content
- ``${name}``: the value of attribute ``name`` (empty when absent)

"""

from __future__ import annotations

import logging
import re
from typing import Iterable, NamedTuple, Optional

from mail2md.dom import Element
from mail2md.exceptions import ValidationError
from mail2md.options import ConversionOptions, CustomRule, Replacement
from mail2md.rules import Rule, WalkState

logger = logging.getLogger(__name__)

GLOBAL_SELECTOR = "*"


class _Entry(NamedTuple):
    rule: CustomRule
    sequence: int
    fn: Rule


_LEADING_TAG = re.compile(r"^\s*([a-zA-Z][a-zA-Z0-9-]*)")
_PLACEHOLDER = re.compile(r"\$\{([\w:-]+)\}")


def parse_selector(selector: str) -> str:
    """Reduce a selector to the key it is matched under.

    Examples
    --------
    >>> parse_selector("DIV.warning")
    'div'
    >>> parse_selector("*")
    '*'
    >>> parse_selector(".warning")
    '.warning'

    """
    selector = selector.strip()
    if selector == GLOBAL_SELECTOR:
        return GLOBAL_SELECTOR
    match = _LEADING_TAG.match(selector)
    if match:
        return match.group(1).lower()
    return selector.lower()


def render_template(template: str, element: Element, content: str) -> str:
    """Substitute the placeholders of a replacement template.

    Substituted values are not scanned again, so content that itself
    contains ``${...}`` is emitted literally.
    """

    def substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if name == "content":
            return content
        if name == "text":
            return element.text_content
        return element.get_attribute(name) or ""

    return _PLACEHOLDER.sub(substitute, template)


def make_rule(replacement: Replacement, options: ConversionOptions) -> Rule:
    """Turn a template string or callback into a rule function."""
    if isinstance(replacement, str):

        def template_rule(element: Element, content: str, state: WalkState) -> str:
            return render_template(replacement, element, content)

        return template_rule

    def callback_rule(element: Element, content: str, state: WalkState) -> str:
        return str(replacement(content, element, options))

    return callback_rule


class CustomRuleTable:
    """Priority-ordered registry of custom rules.

    Parameters
    ----------
    options : ConversionOptions
        Passed to callback replacements. The rules listed in
        ``options.custom_rules`` are registered first.
    rules : iterable of CustomRule, optional
        Additional rules registered after the option rules.

    """

    name = "custom"

    def __init__(self, options: ConversionOptions, rules: Optional[Iterable[CustomRule]] = None) -> None:
        self.options = options
        self._rules: dict[str, list[_Entry]] = {}
        self._sequence = 0
        for rule in options.custom_rules:
            self.add_rule(rule)
        for rule in rules or ():
            self.add_rule(rule)

    def add_rule(self, rule: CustomRule) -> None:
        """Register a rule. Later rules lose ties against earlier ones."""
        if not rule.selector or not rule.selector.strip():
            raise ValidationError("Custom rule selector must not be empty", parameter_name="selector")
        key = parse_selector(rule.selector)
        self._rules.setdefault(key, []).append(_Entry(rule, self._sequence, make_rule(rule.replacement, self.options)))
        self._sequence += 1
        logger.debug("Registered custom rule for %r (priority %d)", key, rule.priority)

    def remove_rule(self, selector: str) -> bool:
        """Remove every rule registered under ``selector``'s key.

        Returns
        -------
        bool
            True if any rule was removed

        """
        return self._rules.pop(parse_selector(selector), None) is not None

    def clear_rules(self) -> None:
        self._rules.clear()

    def get_rule(self, tag_name: str) -> Optional[Rule]:
        """Return the highest-priority rule for ``tag_name``.

        Tag-specific and global rules compete on priority; among equal
        priorities the rule registered first wins.
        """
        candidates = self._rules.get(tag_name.lower(), []) + self._rules.get(GLOBAL_SELECTOR, [])
        if not candidates:
            return None
        best = max(candidates, key=lambda entry: (entry.rule.priority, -entry.sequence))
        return best.fn

    def rules(self) -> list[CustomRule]:
        """Registered rules in registration order."""
        entries = sorted((e for entries in self._rules.values() for e in entries), key=lambda e: e.sequence)
        return [entry.rule for entry in entries]

    def __len__(self) -> int:
        return sum(len(pairs) for pairs in self._rules.values())

    def __contains__(self, tag_name: object) -> bool:
        return isinstance(tag_name, str) and self.get_rule(tag_name) is not None


class RuleBuilder:
    """Fluent builder for ``CustomRule``.

    Examples
    --------
    >>> rule = (
    ...     RuleBuilder()
    ...     .for_selector("mark")
    ...     .with_replacement("==${content}==")
    ...     .with_priority(5)
    ...     .build()
    ... )
    >>> rule.selector, rule.priority
    ('mark', 5)

    """

    def __init__(self) -> None:
        self._selector: Optional[str] = None
        self._replacement: Optional[Replacement] = None
        self._priority = 0

    def for_selector(self, selector: str) -> RuleBuilder:
        self._selector = selector
        return self

    def with_replacement(self, replacement: Replacement) -> RuleBuilder:
        self._replacement = replacement
        return self

    def with_priority(self, priority: int) -> RuleBuilder:
        self._priority = priority
        return self

    def build(self) -> CustomRule:
        """Create the rule.

        Raises
        ------
        ValidationError
            If the selector or the replacement was not set.

        """
        if not self._selector:
            raise ValidationError("Custom rule requires a selector", parameter_name="selector")
        if self._replacement is None:
            raise ValidationError("Custom rule requires a replacement", parameter_name="replacement")
        return CustomRule(selector=self._selector, replacement=self._replacement, priority=self._priority)
