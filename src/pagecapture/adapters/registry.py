"""Adapter registry: picks the site adapter for a document."""

from __future__ import annotations

import logging

from pagecapture.adapters.base import ResourceAdapter
from pagecapture.adapters.default import DefaultAdapter
from pagecapture.adapters.mdbook import MdBookAdapter
from pagecapture.dom.serializer import to_html
from pagecapture.dom.views import DOMTreeNode
from pagecapture.exceptions import AdapterNotFoundError

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Ordered collection of adapters; the first whose ``detect`` succeeds wins."""

    def __init__(self, exclude_adapters: list[str] | None = None):
        self.adapters: list[ResourceAdapter] = []
        self.exclude_adapters = exclude_adapters if exclude_adapters is not None else []
        self.fallback: ResourceAdapter = DefaultAdapter()

    def register(self, adapter: ResourceAdapter) -> ResourceAdapter:
        if adapter.name in self.exclude_adapters:
            logger.debug(f"Skipping excluded adapter {adapter.name!r}")
            return adapter
        if any(existing.name == adapter.name for existing in self.adapters):
            raise ValueError(f"Adapter {adapter.name!r} is already registered")
        self.adapters.append(adapter)
        return adapter

    def get(self, name: str) -> ResourceAdapter | None:
        for adapter in self.adapters:
            if adapter.name == name:
                return adapter
        if self.fallback.name == name:
            return self.fallback
        return None

    @property
    def names(self) -> list[str]:
        return [adapter.name for adapter in self.adapters]

    def detect(self, root: DOMTreeNode, strict: bool = False) -> ResourceAdapter:
        """Return the first matching adapter.

        Falls back to the default adapter, or raises AdapterNotFoundError when
        ``strict`` is set and no registered adapter matches.
        """
        html = to_html(root) if self.adapters else ""
        for adapter in self.adapters:
            if adapter.detect(root, html):
                logger.info(f"Detected site adapter: {adapter.name}")
                return adapter
        if strict:
            raise AdapterNotFoundError(f"No adapter matched among {self.names}")
        logger.debug("No site adapter matched, using default")
        return self.fallback

    @classmethod
    def with_builtin_adapters(cls, exclude_adapters: list[str] | None = None) -> AdapterRegistry:
        registry = cls(exclude_adapters=exclude_adapters)
        registry.register(MdBookAdapter())
        return registry
