"""HTML serializer for DOMTreeNode trees.

Produces markup suitable for handing to a capture tool: void elements have no
end tag, raw-text elements keep their content verbatim, and attached shadow
roots are written as declarative shadow DOM templates so a browser that
re-parses the output rebuilds them.
"""

from __future__ import annotations

import logging

from pagecapture.dom.views import RAW_TEXT_ELEMENTS, VOID_ELEMENTS, DOMTreeNode, NodeType

logger = logging.getLogger(__name__)


def escape_text(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace("\xa0", "&nbsp;")


def escape_attribute(value: str) -> str:
    return value.replace("&", "&amp;").replace('"', "&quot;").replace("\xa0", "&nbsp;")


class HTMLSerializer:
    """Serializes a DOM tree back to HTML."""

    def __init__(self, include_shadow_roots: bool = True, include_doctype: bool = True):
        """
        Args:
            include_shadow_roots: Emit attached shadow roots as
                ``<template shadowrootmode="...">`` inside their host.
            include_doctype: Emit doctype nodes.
        """
        self.include_shadow_roots = include_shadow_roots
        self.include_doctype = include_doctype

    def serialize(self, node: DOMTreeNode) -> str:
        parts: list[str] = []
        self._serialize_node(node, parts)
        return "".join(parts)

    def serialize_children(self, node: DOMTreeNode) -> str:
        """Serialize only the children of ``node`` (``innerHTML``)."""
        parts: list[str] = []
        for child in node.children:
            self._serialize_node(child, parts)
        return "".join(parts)

    def _serialize_node(self, node: DOMTreeNode, parts: list[str]) -> None:
        node_type = node.node_type

        if node_type == NodeType.ELEMENT_NODE:
            self._serialize_element(node, parts)
        elif node_type == NodeType.TEXT_NODE:
            parent = node.parent_node
            if parent is not None and parent.tag_name in RAW_TEXT_ELEMENTS:
                parts.append(node.node_value)
            else:
                parts.append(escape_text(node.node_value))
        elif node_type == NodeType.COMMENT_NODE:
            parts.append(f"<!--{node.node_value}-->")
        elif node_type == NodeType.DOCUMENT_TYPE_NODE:
            if self.include_doctype:
                parts.append(f"<!DOCTYPE {node.node_name}>")
        elif node_type in (NodeType.DOCUMENT_NODE, NodeType.DOCUMENT_FRAGMENT_NODE):
            for child in node.children:
                self._serialize_node(child, parts)
        else:
            logger.debug(f"Skipping unsupported node type {node_type.name} during serialization")

    def _serialize_element(self, node: DOMTreeNode, parts: list[str]) -> None:
        tag = node.tag_name
        parts.append(f"<{tag}")
        for name, value in node.attributes.items():
            if value == "":
                parts.append(f" {name}")
            else:
                parts.append(f' {name}="{escape_attribute(value)}"')
        parts.append(">")

        if tag in VOID_ELEMENTS:
            return

        if self.include_shadow_roots and node.shadow_roots:
            for shadow in node.shadow_roots:
                mode = shadow.shadow_root_type or "open"
                parts.append(f'<template shadowrootmode="{mode}">')
                for child in shadow.children:
                    self._serialize_node(child, parts)
                parts.append("</template>")

        for child in node.children:
            self._serialize_node(child, parts)
        parts.append(f"</{tag}>")


def to_html(node: DOMTreeNode, include_shadow_roots: bool = True) -> str:
    return HTMLSerializer(include_shadow_roots=include_shadow_roots).serialize(node)
