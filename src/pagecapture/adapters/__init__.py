from pagecapture.adapters.base import ResourceAdapter
from pagecapture.adapters.default import DefaultAdapter
from pagecapture.adapters.mdbook import MdBookAdapter
from pagecapture.adapters.registry import AdapterRegistry

__all__ = ["AdapterRegistry", "DefaultAdapter", "MdBookAdapter", "ResourceAdapter"]
