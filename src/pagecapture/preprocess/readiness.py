"""Readiness preparation.

Waiting for the load event, image decoding and paint frames happens in the
browser. What remains visible in the tree is the switch from lazy to eager
image loading, which makes below-the-fold images part of the capture.
"""

from __future__ import annotations

import logging

from pagecapture.dom.selector import query_selector_all
from pagecapture.dom.views import DOMTreeNode

logger = logging.getLogger(__name__)


def prepare_lazy_images(root: DOMTreeNode) -> int:
    """Force ``img[loading=lazy]`` to load eagerly. Returns the number of images touched."""
    images = query_selector_all(root, 'img[loading="lazy"]', pierce=True)
    for img in images:
        img.set_attribute("loading", "auto")
        # Re-assigning src is what restarts the fetch in a live page
        src = img.get_attribute("src")
        if src is not None:
            img.set_attribute("src", src)
    if images:
        logger.debug(f"Switched {len(images)} lazy image(s) to eager loading")
    return len(images)
