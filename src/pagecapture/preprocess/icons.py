"""Iconify icon refresh.

``<iconify-icon>`` renders through a mutation observer that may not have
fired before capture. Replacing each icon with a childless clone marked
``noobserver`` makes the element render its SVG synchronously.
"""

from __future__ import annotations

import logging

from pagecapture.dom.selector import query_selector_all
from pagecapture.dom.views import DOMTreeNode

logger = logging.getLogger(__name__)

ICONIFY_TAG = "iconify-icon"


def refresh_iconify_icons(root: DOMTreeNode) -> int:
    icons = query_selector_all(root, ICONIFY_TAG)
    for icon in icons:
        fresh = icon.clone(deep=False)
        fresh.set_attribute("noobserver", "")
        icon.replace_with(fresh)
    if icons:
        logger.debug(f"Refreshed {len(icons)} iconify icon(s)")
    return len(icons)
