"""mdBook documentation sites."""

from __future__ import annotations

import logging

from pagecapture.adapters.base import ResourceAdapter
from pagecapture.dom.selector import query_selector
from pagecapture.dom.serializer import to_html
from pagecapture.dom.views import DOMTreeNode
from pagecapture.preprocess.cleanup import inject_code_style, normalize_text_blocks
from pagecapture.preprocess.metadata import document_element
from pagecapture.preprocess.text import clean_angle_brackets, normalize_code_spacing

logger = logging.getLogger(__name__)

MDBOOK_TEXT_BLOCK_SELECTOR = "p, td, div, span, li, h1, h2, h3, h4, h5, h6"

# Themes shipped with mdBook; the active one is a class on <html>
MDBOOK_THEMES = ("light", "rust", "coal", "navy", "ayu")

DETECTION_THRESHOLD = 5


def mdbook_score(root: DOMTreeNode, html: str) -> int:
    """Heuristic score for pages without a generator tag."""
    score = 0
    if query_selector(root, "ul.chapter") is not None:
        score += 2
    if query_selector(root, "li.chapter-item") is not None:
        score += 2
    if query_selector(root, "main#content, #content") is not None:
        score += 1
    if "book.js" in html:
        score += 3
    if "elasticlunr" in html:
        score += 2
    if "mdBook" in html:
        score += 1
    return score


class MdBookAdapter(ResourceAdapter):
    name = "mdbook"

    def detect(self, root: DOMTreeNode, html: str | None = None) -> bool:
        generator = query_selector(root, 'meta[name="generator"]')
        if generator is not None and generator.has_attribute("content"):
            # An explicit generator tag is authoritative either way
            return "mdbook" in generator.get_attribute("content", "").lower()

        if html is None:
            html = to_html(root)
        score = mdbook_score(root, html)
        logger.debug(f"mdBook detection score: {score}")
        return score >= DETECTION_THRESHOLD

    def before_capture(self, root: DOMTreeNode) -> None:
        """Force the light theme so captures do not come out dark."""
        html = document_element(root)
        if html is None:
            logger.debug("No document element, cannot force the light theme")
            return
        html.set_attribute("data-theme", "light")
        classes = [name for name in html.class_list if name not in MDBOOK_THEMES]
        classes.append("light")
        html.set_attribute("class", " ".join(classes))

    def after_capture(self, root: DOMTreeNode) -> None:
        normalize_code_spacing(root)
        normalize_text_blocks(root, MDBOOK_TEXT_BLOCK_SELECTOR)
        body = query_selector(root, "body") or root
        clean_angle_brackets(body)
        inject_code_style(root)
