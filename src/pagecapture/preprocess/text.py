"""Text fixes for documentation sites rendered for screen readers and PDF."""

from __future__ import annotations

import re

from pagecapture.dom.selector import query_selector, query_selector_all
from pagecapture.dom.views import DOMTreeNode, NodeType
from pagecapture.preprocess.cleanup import is_preformatted

_ANGLE_TRANSLATION = str.maketrans({"<": "\u2039", ">": "\u203a"})
_LEADING_WS_RE = re.compile(r"^\s+")
_TRAILING_WS_RE = re.compile(r"\s+$")


def clean_angle_brackets(root: DOMTreeNode) -> int:
    """Swap ``<``/``>`` in prose for single guillemets so screen readers do not announce markup.

    Text in ``pre code`` blocks, ``<style>`` and ``<script>`` is left alone.
    """
    body = query_selector(root, "body") or root
    changed = 0
    for node in list(body.iter_descendants()):
        if node.node_type != NodeType.TEXT_NODE or is_preformatted(node):
            continue
        if "<" in node.node_value or ">" in node.node_value:
            node.node_value = node.node_value.translate(_ANGLE_TRANSLATION)
            changed += 1
    return changed


def normalize_code_spacing(root: DOMTreeNode) -> None:
    """Leave exactly one space before and after inline ``<code>``, none inside its edges."""
    for code in query_selector_all(root, "code"):
        parent = code.parent_node
        if parent is None or (parent.is_element and parent.tag_name == "pre"):
            continue

        if code.children and code.children[0].is_text:
            code.children[0].node_value = _LEADING_WS_RE.sub("", code.children[0].node_value)
        if code.children and code.children[-1].is_text:
            code.children[-1].node_value = _TRAILING_WS_RE.sub("", code.children[-1].node_value)

        index = code.index_in_parent()
        siblings = parent.children
        if index > 0 and siblings[index - 1].is_text:
            before = siblings[index - 1]
            before.node_value = _TRAILING_WS_RE.sub("", before.node_value) + " "
        if index + 1 < len(siblings) and siblings[index + 1].is_text:
            after = siblings[index + 1]
            after.node_value = " " + _LEADING_WS_RE.sub("", after.node_value)
