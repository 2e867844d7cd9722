"""Content sanitizers run on the flattened tree before capture.

Removes boilerplate (ads, cookie banners, footers), normalizes whitespace in
text blocks and appends print stylesheets that keep text from breaking
across PDF pages.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from pagecapture.config import DEFAULT_CLEANUP_SELECTORS
from pagecapture.dom.selector import parse_selector, query_selector, query_selector_all
from pagecapture.dom.views import RAW_TEXT_ELEMENTS, DOMTreeNode, NodeType, create_element

logger = logging.getLogger(__name__)

TEXT_BLOCK_SELECTOR = "p, div, span, li, h1, h2, h3, h4, h5, h6"

PRINT_STYLESHEET = """
        body {
            font-variation-settings: "wght" 400;
            font-feature-settings: "kern" 0, "liga" 0, "calt" 0;
        }
        * {
            font-family: system-ui, -apple-system, "Segoe UI", Roboto, sans-serif !important;
        }
        p, li, td, th {
            page-break-inside: avoid;
            break-inside: avoid;
            orphans: 3;
            widows: 3;
        }
    """

CODE_STYLESHEET = """
        p > code {
            display: inline !important;
            position: static !important;
            float: none !important;
            opacity: 1 !important;
            transform: none !important;

            filter: none !important;
            backdrop-filter: none !important;

            border-radius: 0 !important;
            padding: unset !important;
        }
    """

_ZERO_WIDTH_RE = re.compile("[\u200b-\u200d\ufeff]")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(slots=True)
class CleanupStats:
    removed_elements: int = 0
    text_nodes_normalized: int = 0
    empty_paragraphs_removed: int = 0


def normalize_text(text: str) -> str:
    """Drop zero-width characters, turn NBSP into a space and collapse whitespace runs."""
    text = _ZERO_WIDTH_RE.sub("", text)
    text = text.replace("\xa0", " ")
    return _WHITESPACE_RE.sub(" ", text)


def is_preformatted(node: DOMTreeNode) -> bool:
    """True for text inside ``pre code`` blocks or raw-text elements, which must keep their whitespace."""
    parent = node.parent_node
    if parent is None:
        return False
    if parent.tag_name in RAW_TEXT_ELEMENTS:
        return True
    code = parent.closest(lambda n: n.is_element and n.tag_name == "code")
    return code is not None and code.closest(lambda n: n.is_element and n.tag_name == "pre") is not None


def remove_matching(root: DOMTreeNode, selectors: list[str]) -> int:
    """Remove every element matching any of ``selectors``; returns how many were removed."""
    if not selectors:
        return 0
    parsed = parse_selector(", ".join(selectors))
    removed = 0
    for node in query_selector_all(root, parsed):
        # Skip nodes already gone with a removed ancestor
        if node.parent_node is None or not _is_connected(node, root):
            continue
        node.remove()
        removed += 1
    return removed


def _is_connected(node: DOMTreeNode, root: DOMTreeNode) -> bool:
    return any(ancestor is root for ancestor in node.ancestors())


def normalize_text_blocks(root: DOMTreeNode, selector: str = TEXT_BLOCK_SELECTOR) -> int:
    """Normalize every text node that sits inside an element matching ``selector``."""
    blocks = parse_selector(selector)
    changed = 0
    for node in list(root.iter_descendants()):
        if node.node_type != NodeType.TEXT_NODE or is_preformatted(node):
            continue
        if node.parent_node is None or node.parent_node.closest(blocks.matches) is None:
            continue
        cleaned = normalize_text(node.node_value)
        if cleaned != node.node_value:
            node.node_value = cleaned
            changed += 1
    return changed


def tighten_inline_code(root: DOMTreeNode) -> None:
    """Drop the single space around ``<code>`` children of paragraphs."""
    for paragraph in query_selector_all(root, "p"):
        for child in paragraph.children:
            if not (child.is_element and child.tag_name == "code"):
                continue
            index = child.index_in_parent()
            siblings = paragraph.children
            if index > 0 and siblings[index - 1].is_text and siblings[index - 1].node_value.endswith(" "):
                siblings[index - 1].node_value = siblings[index - 1].node_value[:-1]
            if index + 1 < len(siblings) and siblings[index + 1].is_text and siblings[index + 1].node_value.startswith(" "):
                siblings[index + 1].node_value = siblings[index + 1].node_value[1:]


def remove_empty_paragraphs(root: DOMTreeNode) -> int:
    removed = 0
    for paragraph in query_selector_all(root, "p"):
        if not paragraph.text_content.strip():
            paragraph.remove()
            removed += 1
    return removed


def find_head(root: DOMTreeNode, create: bool = True) -> DOMTreeNode | None:
    """Return the document's ``<head>``, creating one under ``<html>`` if asked to."""
    head = query_selector(root, "head")
    if head is not None or not create:
        return head
    html = root if root.is_element and root.tag_name == "html" else query_selector(root, "html")
    if html is None:
        return None
    head = create_element("head")
    html.insert_before(head, html.children[0] if html.children else None)
    return head


def append_stylesheet(root: DOMTreeNode, css: str) -> DOMTreeNode | None:
    """Append a ``<style>`` holding ``css`` to the head (or to ``root`` when there is no document shell)."""
    style = create_element("style")
    style.text_content = css
    head = find_head(root)
    if head is None:
        logger.debug("No <html> element found, appending stylesheet to the root")
        root.append_child(style)
    else:
        head.append_child(style)
    return style


def page_cleanup(root: DOMTreeNode, selectors: list[str] | None = None) -> CleanupStats:
    """Clean the page for PDF output and screen readers.

    Removes unwanted elements, normalizes text, removes empty paragraphs and
    adds the print stylesheet.
    """
    if selectors is None:
        selectors = list(DEFAULT_CLEANUP_SELECTORS)
    stats = CleanupStats()
    stats.removed_elements = remove_matching(root, selectors)
    stats.text_nodes_normalized = normalize_text_blocks(root)
    tighten_inline_code(root)
    stats.empty_paragraphs_removed = remove_empty_paragraphs(root)
    append_stylesheet(root, PRINT_STYLESHEET)
    logger.debug(
        f"Page cleanup: removed {stats.removed_elements} element(s), "
        f"normalized {stats.text_nodes_normalized} text node(s), "
        f"dropped {stats.empty_paragraphs_removed} empty paragraph(s)"
    )
    return stats


def inject_code_style(root: DOMTreeNode) -> DOMTreeNode | None:
    """Keep inline ``<code>`` in paragraphs from being positioned or transformed away in print."""
    return append_stylesheet(root, CODE_STYLESHEET)
