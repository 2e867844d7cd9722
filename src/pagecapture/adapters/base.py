"""Base class for site adapters."""

from __future__ import annotations

from pagecapture.dom.views import DOMTreeNode


class ResourceAdapter:
    """
    Hooks that adjust a page for a particular documentation generator.

    Subclasses override ``detect`` to recognize their site and the capture
    hooks to edit the tree before and after the generic preprocessing.
    ``html`` is the serialized document, passed for detectors that look at
    raw markup (script names, inline text) rather than tree structure.
    """

    name: str = "base"

    def detect(self, root: DOMTreeNode, html: str | None = None) -> bool:
        return False

    def before_capture(self, root: DOMTreeNode) -> None:
        pass

    def after_capture(self, root: DOMTreeNode) -> None:
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"
