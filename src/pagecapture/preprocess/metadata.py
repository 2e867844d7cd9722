"""Document metadata accessors: language, title and chapter numbering."""

from __future__ import annotations

import logging
import re

from pagecapture.dom.selector import query_selector
from pagecapture.dom.views import DOMTreeNode, NodeType

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")

# Largest chapter number that still parses; anything bigger counts as no number
MAX_CHAPTER_NUMBER = 2**32 - 1


def document_element(root: DOMTreeNode) -> DOMTreeNode | None:
    """The ``<html>`` element of ``root`` (``root`` itself when it is one)."""
    if root.is_element and root.tag_name == "html":
        return root
    if root.node_type == NodeType.DOCUMENT_NODE:
        for child in root.children:
            if child.is_element:
                return child
    return query_selector(root, "html")


def lang_set(root: DOMTreeNode, default: str = "en") -> str:
    """Give the document a ``lang`` attribute unless it has one. Returns the effective language."""
    html = document_element(root)
    if html is None:
        logger.debug("No document element, leaving language unset")
        return default
    lang = html.get_attribute("lang") or ""
    if not lang:
        lang = default
        html.set_attribute("lang", lang)
    return lang


def title_extract(root: DOMTreeNode, url: str | None = None) -> str:
    """The document ``<title>`` text, falling back to ``url`` when it is missing or blank."""
    title_element = query_selector(root, "title")
    title = ""
    if title_element is not None:
        title = _WHITESPACE_RE.sub(" ", title_element.text_content).strip()
    if not title:
        title = url or ""
    return title


def extract_chapter_number(url: str) -> int:
    """Chapter number taken from the last path segment of ``url``.

    The number spans from the first to the last digit of the segment, so
    ``ch04.html`` is 4 and ``ch04-01.html`` is no number at all. Returns 0
    when there is none.
    """
    segment = url.rsplit("/", 1)[-1]
    digit_positions = [i for i, char in enumerate(segment) if char.isascii() and char.isdigit()]
    if not digit_positions:
        return 0
    digits = segment[digit_positions[0] : digit_positions[-1] + 1]
    if not digits.isdigit():
        return 0
    number = int(digits)
    if number > MAX_CHAPTER_NUMBER:
        return 0
    return number


def chapter_title(title: str, url: str) -> str:
    """Prefix ``title`` with ``Chapter N - `` when ``url`` carries a chapter number."""
    number = extract_chapter_number(url)
    if number > 0:
        return f"Chapter {number} - {title}"
    return title
