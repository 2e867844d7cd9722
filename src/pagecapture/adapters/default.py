from __future__ import annotations

from pagecapture.adapters.base import ResourceAdapter
from pagecapture.dom.views import DOMTreeNode


class DefaultAdapter(ResourceAdapter):
    """Fallback adapter: matches every page and changes nothing."""

    name = "default"

    def detect(self, root: DOMTreeNode, html: str | None = None) -> bool:
        return True
