"""Minimal CSS selector matching over DOMTreeNode trees.

Supported: selector lists, type and universal selectors, ``.class``, ``#id``,
``[attr]``, ``[attr=value]``, ``[attr*=value]``, ``[attr~=value]`` and the
descendant and child combinators. That covers what page cleanup and site
detection need; anything else raises SelectorError.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache

from pagecapture.dom.views import DOMTreeNode, NodeType
from pagecapture.exceptions import SelectorError

_IDENT = r"-?[_a-zA-Z][\w-]*"

_TOKEN_RE = re.compile(
    rf"""
    (?P<ws>\s+)
    | (?P<comma>,)
    | (?P<child>>)
    | (?P<star>\*)
    | (?P<type>{_IDENT})
    | \.(?P<class>{_IDENT})
    | \#(?P<id>-?[\w-]+)
    | \[\s*(?P<attr>[^\s~*|^$=\]]+)\s*
        (?:(?P<op>[~*]?=)\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^\s\]]+))\s*)?\]
    """,
    re.VERBOSE,
)


@dataclass(slots=True)
class AttributeTest:
    name: str
    op: str | None = None
    value: str = ""

    def matches(self, node: DOMTreeNode) -> bool:
        actual = node.attributes.get(self.name)
        if actual is None:
            return False
        if self.op is None:
            return True
        if self.op == "=":
            return actual == self.value
        if self.op == "*=":
            return bool(self.value) and self.value in actual
        if self.op == "~=":
            return self.value in actual.split()
        return False


@dataclass(slots=True)
class CompoundSelector:
    tag: str | None = None
    ids: list[str] = field(default_factory=list)
    classes: list[str] = field(default_factory=list)
    attributes: list[AttributeTest] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.tag is None and not self.ids and not self.classes and not self.attributes

    def matches(self, node: DOMTreeNode) -> bool:
        if node.node_type != NodeType.ELEMENT_NODE:
            return False
        if self.tag is not None and self.tag != "*" and node.tag_name != self.tag:
            return False
        if self.ids and any(node.attributes.get("id") != element_id for element_id in self.ids):
            return False
        if self.classes:
            class_list = node.class_list
            if any(name not in class_list for name in self.classes):
                return False
        return all(test.matches(node) for test in self.attributes)


@dataclass(slots=True)
class ComplexSelector:
    # compounds[i] is joined to compounds[i + 1] by combinators[i] (" " or ">")
    compounds: list[CompoundSelector]
    combinators: list[str]

    def matches(self, node: DOMTreeNode) -> bool:
        return self._match_from(node, len(self.compounds) - 1)

    def _match_from(self, node: DOMTreeNode, index: int) -> bool:
        if not self.compounds[index].matches(node):
            return False
        if index == 0:
            return True
        combinator = self.combinators[index - 1]
        parent = node.parent_node
        if combinator == ">":
            return parent is not None and self._match_from(parent, index - 1)
        while parent is not None:
            if self._match_from(parent, index - 1):
                return True
            parent = parent.parent_node
        return False


@dataclass(slots=True)
class ParsedSelector:
    text: str
    alternatives: list[ComplexSelector]

    def matches(self, node: DOMTreeNode) -> bool:
        return any(alternative.matches(node) for alternative in self.alternatives)


@lru_cache(maxsize=256)
def parse_selector(text: str) -> ParsedSelector:
    """Parse ``text`` into a ParsedSelector, raising SelectorError on bad input."""
    if not text or not text.strip():
        raise SelectorError("empty selector", selector=text)

    alternatives: list[ComplexSelector] = []
    compounds: list[CompoundSelector] = []
    combinators: list[str] = []
    current = CompoundSelector()
    pending: str | None = None

    def close_compound() -> None:
        nonlocal current, pending
        if current.is_empty:
            return
        if compounds:
            combinators.append(pending or " ")
        elif pending == ">":
            raise SelectorError("selector starts with a combinator", selector=text)
        compounds.append(current)
        current = CompoundSelector()
        pending = None

    def close_complex() -> None:
        nonlocal compounds, combinators, pending
        close_compound()
        if not compounds or pending == ">":
            raise SelectorError("empty selector in list", selector=text)
        alternatives.append(ComplexSelector(compounds, combinators))
        compounds = []
        combinators = []
        pending = None

    pos = 0
    stripped = text.strip()
    while pos < len(stripped):
        match = _TOKEN_RE.match(stripped, pos)
        if match is None:
            raise SelectorError(f"unsupported syntax at offset {pos}", selector=text)
        pos = match.end()
        kind = match.lastgroup

        if kind == "ws":
            close_compound()
        elif kind == "comma":
            close_complex()
        elif kind == "child":
            close_compound()
            if pending == ">" or not compounds:
                raise SelectorError("misplaced child combinator", selector=text)
            pending = ">"
        elif kind in ("star", "type"):
            if current.tag is not None or not current.is_empty:
                raise SelectorError("type selector must come first in a compound", selector=text)
            current.tag = "*" if kind == "star" else match.group("type").lower()
        elif kind == "class":
            current.classes.append(match.group("class"))
        elif kind == "id":
            current.ids.append(match.group("id"))
        else:
            value = match.group("dq")
            if value is None:
                value = match.group("sq")
            if value is None:
                value = match.group("bare") or ""
            current.attributes.append(AttributeTest(match.group("attr").lower(), match.group("op"), value))

    close_complex()
    return ParsedSelector(text=text, alternatives=alternatives)


def matches(node: DOMTreeNode, selector: str | ParsedSelector) -> bool:
    parsed = parse_selector(selector) if isinstance(selector, str) else selector
    return parsed.matches(node)


def query_selector_all(
    root: DOMTreeNode,
    selector: str | ParsedSelector,
    pierce: bool = False,
) -> list[DOMTreeNode]:
    """All elements under ``root`` matching ``selector``, in document order.

    The list is a snapshot: callers may mutate the tree while iterating it.
    """
    parsed = parse_selector(selector) if isinstance(selector, str) else selector
    return [node for node in root.iter_elements(pierce_shadow=pierce) if parsed.matches(node)]


def query_selector(root: DOMTreeNode, selector: str | ParsedSelector, pierce: bool = False) -> DOMTreeNode | None:
    parsed = parse_selector(selector) if isinstance(selector, str) else selector
    for node in root.iter_elements(pierce_shadow=pierce):
        if parsed.matches(node):
            return node
    return None
