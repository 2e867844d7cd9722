"""DOM service: builds DOMTreeNode trees from CDP payloads."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from pagecapture.dom.views import SHADOW_ROOT_TYPES, DOMTreeNode, NodeType, create_fragment
from pagecapture.exceptions import InvalidDocumentError

if TYPE_CHECKING:
    from cdp_use.client import CDPClient

logger = logging.getLogger(__name__)


class DomService:
    """
    Service for turning Chrome DevTools Protocol DOM dumps into mutable trees.

    The expected payload is the result of ``DOM.getDocument`` with
    ``depth=-1`` and ``pierce=true``, so shadow roots, template contents and
    iframe documents are all present inline.
    """

    def __init__(self, include_content_documents: bool = True):
        self.include_content_documents = include_content_documents

    @staticmethod
    def _parse_attributes(attributes_list: Optional[list[str]]) -> dict[str, str]:
        """Parse CDP attributes array into a dictionary."""
        if not attributes_list:
            return {}
        attrs = {}
        for i in range(0, len(attributes_list), 2):
            if i + 1 < len(attributes_list):
                attrs[attributes_list[i]] = attributes_list[i + 1]
        return attrs

    def build_tree(self, cdp_document: dict[str, Any]) -> DOMTreeNode:
        """Build a tree from a ``DOM.getDocument`` result or a bare CDP node."""
        if not isinstance(cdp_document, dict):
            raise InvalidDocumentError(f"CDP payload must be an object, got {type(cdp_document).__name__}")
        root = cdp_document.get("root", cdp_document)
        if not isinstance(root, dict):
            raise InvalidDocumentError("CDP payload 'root' must be an object")
        tree = self._build_node(root, parent=None)
        logger.debug(f"Built DOM tree rooted at {tree.node_name}")
        return tree

    def load_snapshot(self, path: str | Path) -> DOMTreeNode:
        """Read a JSON dump of ``DOM.getDocument`` from disk and build its tree."""
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                payload = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidDocumentError(f"{path} is not valid JSON: {e}") from e
        return self.build_tree(payload)

    async def fetch_document(self, client: CDPClient, session_id: str | None = None) -> DOMTreeNode:
        """Fetch the live document through CDP and build its tree."""
        logger.info("Fetching DOM document with depth=-1, pierce=true")
        dom_result = await client.send.DOM.getDocument(params={"depth": -1, "pierce": True}, session_id=session_id)
        return self.build_tree(dom_result)

    def _build_node(self, node: dict[str, Any], parent: Optional[DOMTreeNode]) -> DOMTreeNode:
        """Build a tree node (and its subtree) from a raw CDP node."""
        node_type_value = node.get("nodeType")
        node_name = node.get("nodeName")
        if node_type_value is None or not node_name:
            raise InvalidDocumentError(f"CDP node is missing nodeType/nodeName: {sorted(node)}")
        try:
            node_type = NodeType(node_type_value)
        except ValueError as e:
            raise InvalidDocumentError(f"Unknown CDP nodeType {node_type_value!r}") from e

        tree_node = DOMTreeNode(
            node_type=node_type,
            node_name=node_name,
            node_value=node.get("nodeValue", "") or "",
            attributes=self._parse_attributes(node.get("attributes")),
            frame_id=node.get("frameId"),
        )
        if parent is not None:
            parent.append_child(tree_node)

        for child in node.get("children", []):
            self._build_node(child, parent=tree_node)

        # <template> content lives in its own fragment; keep it inline
        template_content = node.get("templateContent")
        if template_content:
            content = self._build_node(template_content, parent=None)
            tree_node.append_child(content)

        content_document = node.get("contentDocument")
        if content_document and self.include_content_documents:
            tree_node.content_document = self._build_node(content_document, parent=None)

        for shadow_root in node.get("shadowRoots", []):
            self._attach_shadow_root(tree_node, shadow_root)

        return tree_node

    def _attach_shadow_root(self, host: DOMTreeNode, shadow_root: dict[str, Any]) -> None:
        mode = shadow_root.get("shadowRootType", "open")
        if mode not in SHADOW_ROOT_TYPES:
            logger.debug(f"Unknown shadowRootType {mode!r} on <{host.tag_name}>, treating as open")
            mode = "open"
        if mode == "user-agent":
            # Built-in controls (<input>, <video>) render their own UI; not page content
            return
        shadow = create_fragment()
        shadow.shadow_root_type = mode
        shadow.host_node = host
        for child in shadow_root.get("children", []):
            self._build_node(child, parent=shadow)
        if host.shadow_roots is None:
            host.shadow_roots = []
        host.shadow_roots.append(shadow)
