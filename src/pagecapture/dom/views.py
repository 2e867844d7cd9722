"""DOM tree views for capture preprocessing.

The tree mirrors what a CDP ``DOM.getDocument(pierce=True)`` call exposes:
element, text, comment, fragment and document nodes, where an element may
own attached shadow roots that ordinary child traversal does not see.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

# Elements whose text content is emitted verbatim by serializers
RAW_TEXT_ELEMENTS = {"style", "script", "xmp", "iframe", "noembed", "noframes"}

VOID_ELEMENTS = {
    "area",
    "base",
    "br",
    "col",
    "embed",
    "hr",
    "img",
    "input",
    "link",
    "meta",
    "source",
    "track",
    "wbr",
}

SHADOW_ROOT_TYPES = ("open", "closed", "user-agent")


class NodeType(IntEnum):
    """DOM node types, numbered as in the W3C DOM standard."""

    ELEMENT_NODE = 1
    ATTRIBUTE_NODE = 2
    TEXT_NODE = 3
    CDATA_SECTION_NODE = 4
    ENTITY_REFERENCE_NODE = 5
    ENTITY_NODE = 6
    PROCESSING_INSTRUCTION_NODE = 7
    COMMENT_NODE = 8
    DOCUMENT_NODE = 9
    DOCUMENT_TYPE_NODE = 10
    DOCUMENT_FRAGMENT_NODE = 11
    NOTATION_NODE = 12


@dataclass(eq=False)
class DOMTreeNode:
    """
    Mutable DOM tree node.

    Equality is identity: two structurally equal nodes are still different
    nodes in the tree. Shadow roots hang off ``shadow_roots`` and are not part
    of ``children_nodes``.
    """

    node_type: NodeType
    node_name: str
    node_value: str = ""
    attributes: dict[str, str] = field(default_factory=dict)

    # Shadow DOM
    shadow_root_type: str | None = None
    shadow_roots: list[DOMTreeNode] | None = None

    # Navigation
    parent_node: DOMTreeNode | None = None
    children_nodes: list[DOMTreeNode] | None = None

    # Set on shadow roots, points back at the host element
    host_node: DOMTreeNode | None = None

    # Frame info
    frame_id: str | None = None
    content_document: DOMTreeNode | None = None

    @property
    def tag_name(self) -> str:
        return self.node_name.lower()

    @property
    def children(self) -> list[DOMTreeNode]:
        return self.children_nodes or []

    @property
    def children_and_shadow_roots(self) -> list[DOMTreeNode]:
        """Get all children including shadow roots."""
        result = []
        if self.shadow_roots:
            result.extend(self.shadow_roots)
        if self.children_nodes:
            result.extend(self.children_nodes)
        return result

    @property
    def is_element(self) -> bool:
        return self.node_type == NodeType.ELEMENT_NODE

    @property
    def is_text(self) -> bool:
        return self.node_type == NodeType.TEXT_NODE

    @property
    def is_shadow_host(self) -> bool:
        return self.is_element and bool(self.shadow_roots)

    @property
    def is_shadow_root(self) -> bool:
        return self.node_type == NodeType.DOCUMENT_FRAGMENT_NODE and self.host_node is not None

    @property
    def shadow_root(self) -> DOMTreeNode | None:
        if not self.shadow_roots:
            return None
        return self.shadow_roots[0]

    # Attributes

    def get_attribute(self, name: str, default: str | None = None) -> str | None:
        return self.attributes.get(name, default)

    def set_attribute(self, name: str, value: str) -> None:
        self.attributes[name] = str(value)

    def remove_attribute(self, name: str) -> None:
        self.attributes.pop(name, None)

    def has_attribute(self, name: str) -> bool:
        return name in self.attributes

    @property
    def class_list(self) -> list[str]:
        return self.attributes.get("class", "").split()

    # Tree mutation

    def append_child(self, child: DOMTreeNode) -> DOMTreeNode:
        """Append ``child`` as the last child, detaching it from its old parent first.

        Appending a fragment moves the fragment's children instead, leaving
        the fragment empty, as ``Node.appendChild`` does in the browser.
        """
        if child.node_type == NodeType.DOCUMENT_FRAGMENT_NODE and not child.is_shadow_root:
            for grandchild in list(child.children):
                self.append_child(grandchild)
            return child
        child.remove()
        if self.children_nodes is None:
            self.children_nodes = []
        self.children_nodes.append(child)
        child.parent_node = self
        return child

    def insert_before(self, child: DOMTreeNode, reference: DOMTreeNode | None) -> DOMTreeNode:
        """Insert ``child`` before ``reference``; append when ``reference`` is None."""
        if reference is None:
            return self.append_child(child)
        if reference.parent_node is not self:
            raise ValueError(f"<{reference.tag_name}> is not a child of <{self.tag_name}>")
        child.remove()
        assert self.children_nodes is not None
        index = self._index_of(reference)
        self.children_nodes.insert(index, child)
        child.parent_node = self
        return child

    def insert_after(self, sibling: DOMTreeNode) -> DOMTreeNode:
        """Insert ``sibling`` immediately after this node (``insertAdjacentElement('afterend')``)."""
        if self.parent_node is None:
            raise ValueError(f"cannot insert a sibling after detached <{self.tag_name}>")
        parent = self.parent_node
        sibling.remove()
        assert parent.children_nodes is not None
        index = parent._index_of(self)
        parent.children_nodes.insert(index + 1, sibling)
        sibling.parent_node = parent
        return sibling

    def remove(self) -> None:
        """Detach this node from its parent. No-op for detached nodes."""
        parent = self.parent_node
        if parent is None:
            return
        if parent.children_nodes:
            index = parent._index_of(self)
            del parent.children_nodes[index]
        self.parent_node = None

    def replace_with(self, replacement: DOMTreeNode) -> DOMTreeNode:
        self.insert_after(replacement)
        self.remove()
        return replacement

    def clear_children(self) -> None:
        for child in list(self.children):
            child.remove()

    def index_in_parent(self) -> int:
        if self.parent_node is None:
            return -1
        return self.parent_node._index_of(self)

    def _index_of(self, child: DOMTreeNode) -> int:
        for i, candidate in enumerate(self.children):
            if candidate is child:
                return i
        raise ValueError(f"<{child.tag_name}> is not a child of <{self.tag_name}>")

    # Shadow roots

    def attach_shadow(self, mode: str = "open") -> DOMTreeNode:
        """Attach and return an empty shadow root, like ``Element.attachShadow``."""
        if not self.is_element:
            raise ValueError("only elements can host a shadow root")
        if self.shadow_roots:
            raise ValueError(f"<{self.tag_name}> already hosts a shadow root")
        if mode not in SHADOW_ROOT_TYPES:
            raise ValueError(f"unknown shadow root mode: {mode!r}")
        shadow = create_fragment()
        shadow.shadow_root_type = mode
        shadow.host_node = self
        self.shadow_roots = [shadow]
        return shadow

    # Text

    @property
    def text_content(self) -> str:
        if self.node_type in (NodeType.TEXT_NODE, NodeType.COMMENT_NODE, NodeType.CDATA_SECTION_NODE):
            return self.node_value
        return "".join(
            node.node_value for node in self.iter_descendants() if node.node_type == NodeType.TEXT_NODE
        )

    @text_content.setter
    def text_content(self, value: str) -> None:
        if self.node_type in (NodeType.TEXT_NODE, NodeType.COMMENT_NODE, NodeType.CDATA_SECTION_NODE):
            self.node_value = value
            return
        self.clear_children()
        if value:
            self.append_child(create_text(value))

    def get_all_children_text(self, max_depth: int = -1) -> str:
        """Get all text content from children."""
        text_parts = []

        def collect_text(node: DOMTreeNode, current_depth: int) -> None:
            if max_depth != -1 and current_depth > max_depth:
                return
            if node.node_type == NodeType.TEXT_NODE:
                text_parts.append(node.node_value)
            elif node.node_type == NodeType.ELEMENT_NODE:
                for child in node.children:
                    collect_text(child, current_depth + 1)

        collect_text(self, 0)
        return "\n".join(text_parts).strip()

    # Traversal

    def iter_descendants(self, pierce_shadow: bool = False) -> Iterator[DOMTreeNode]:
        """Yield descendants in pre-order, depth-first.

        With ``pierce_shadow`` an element's shadow root (and its content) is
        visited before the element's light children.
        """
        stack: list[DOMTreeNode] = list(reversed(self._traversal_children(pierce_shadow)))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node._traversal_children(pierce_shadow)))

    def _traversal_children(self, pierce_shadow: bool) -> list[DOMTreeNode]:
        if pierce_shadow:
            return self.children_and_shadow_roots
        return self.children

    def iter_elements(self, pierce_shadow: bool = False) -> Iterator[DOMTreeNode]:
        for node in self.iter_descendants(pierce_shadow=pierce_shadow):
            if node.node_type == NodeType.ELEMENT_NODE:
                yield node

    def ancestors(self) -> Iterator[DOMTreeNode]:
        current = self.parent_node
        while current is not None:
            yield current
            current = current.parent_node

    def closest(self, predicate: Callable[[DOMTreeNode], bool]) -> DOMTreeNode | None:
        """First of this node and its ancestors for which ``predicate`` holds."""
        if predicate(self):
            return self
        for ancestor in self.ancestors():
            if predicate(ancestor):
                return ancestor
        return None

    @property
    def owner_document(self) -> DOMTreeNode | None:
        root = self
        while root.parent_node is not None:
            root = root.parent_node
        if root.node_type == NodeType.DOCUMENT_NODE:
            return root
        return None

    # Cloning

    def clone(self, deep: bool = True, memo: dict[int, DOMTreeNode] | None = None) -> DOMTreeNode:
        """Return a detached copy of this node.

        A deep clone copies descendants and attached shadow roots. When
        ``memo`` is given, every ``id(original) -> clone`` pair is recorded so
        callers can find where a node ended up after its subtree was cloned.
        """
        copy = DOMTreeNode(
            node_type=self.node_type,
            node_name=self.node_name,
            node_value=self.node_value,
            attributes=dict(self.attributes),
            shadow_root_type=self.shadow_root_type,
            frame_id=self.frame_id,
        )
        if memo is not None:
            memo[id(self)] = copy
        if not deep:
            return copy
        for child in self.children:
            copy.append_child(child.clone(deep=True, memo=memo))
        if self.shadow_roots:
            copy.shadow_roots = []
            for shadow in self.shadow_roots:
                shadow_copy = shadow.clone(deep=True, memo=memo)
                shadow_copy.host_node = copy
                copy.shadow_roots.append(shadow_copy)
        return copy

    def __repr__(self) -> str:
        if self.node_type == NodeType.ELEMENT_NODE:
            shadow = " #shadow" if self.shadow_roots else ""
            return f"<DOMTreeNode {self.tag_name}{shadow} children={len(self.children)}>"
        return f"<DOMTreeNode {self.node_name} {self.node_value[:20]!r}>"


# Node factories


def create_document() -> DOMTreeNode:
    return DOMTreeNode(node_type=NodeType.DOCUMENT_NODE, node_name="#document")


def create_element(
    tag_name: str,
    attributes: Optional[dict[str, str]] = None,
    children: Optional[list[DOMTreeNode]] = None,
) -> DOMTreeNode:
    element = DOMTreeNode(
        node_type=NodeType.ELEMENT_NODE,
        node_name=tag_name.upper(),
        attributes=dict(attributes or {}),
    )
    for child in children or []:
        element.append_child(child)
    return element


def create_text(text: str) -> DOMTreeNode:
    return DOMTreeNode(node_type=NodeType.TEXT_NODE, node_name="#text", node_value=text)


def create_comment(text: str) -> DOMTreeNode:
    return DOMTreeNode(node_type=NodeType.COMMENT_NODE, node_name="#comment", node_value=text)


def create_fragment(children: Optional[list[DOMTreeNode]] = None) -> DOMTreeNode:
    fragment = DOMTreeNode(node_type=NodeType.DOCUMENT_FRAGMENT_NODE, node_name="#document-fragment")
    for child in children or []:
        fragment.append_child(child)
    return fragment


def create_doctype(name: str = "html") -> DOMTreeNode:
    return DOMTreeNode(node_type=NodeType.DOCUMENT_TYPE_NODE, node_name=name)


@dataclass(slots=True)
class FlattenRecord:
    """Outcome of flattening one shadow host."""

    tag_name: str
    identity: str | None
    wrapper: DOMTreeNode | None
    reused_identity: bool = False
    style_rewrites: int = 0
    warnings: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.wrapper is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tag_name": self.tag_name,
            "identity": self.identity,
            "wrapper": self.wrapper.tag_name if self.wrapper else None,
            "reused_identity": self.reused_identity,
            "style_rewrites": self.style_rewrites,
            "warnings": list(self.warnings),
            "error": self.error,
        }


class CaptureReport(BaseModel):
    """Summary of one capture preprocessing run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    url: str | None = None
    title: str = ""
    lang: str = ""
    adapter: str = "default"
    flattened: list[dict[str, Any]] = Field(default_factory=list)
    removed_elements: int = 0
    lazy_images: int = 0
    icons_refreshed: int = 0
    errors: list[str] = Field(default_factory=list)

    @property
    def flattened_count(self) -> int:
        return sum(1 for record in self.flattened if record.get("error") is None)
