"""pagecapture - DOM preprocessing for deterministic page capture."""

__version__ = "0.1.0"

# Core tree model
from pagecapture.dom.views import CaptureReport, DOMTreeNode, FlattenRecord, NodeType
from pagecapture.dom.service import DomService
from pagecapture.dom.serializer import HTMLSerializer, to_html

# Shadow DOM flattening
from pagecapture.dom.flatten import ShadowDomFlattener, flatten_shadow_dom

# Pipeline and adapters
from pagecapture.adapters import AdapterRegistry, DefaultAdapter, MdBookAdapter, ResourceAdapter
from pagecapture.pipeline import CapturePipeline, run_pipeline

from pagecapture.config import CaptureSettings, FlattenSettings
from pagecapture.exceptions import (
    AdapterNotFoundError,
    FlattenError,
    InvalidDocumentError,
    PageCaptureError,
    SelectorError,
)

__all__ = [
    "__version__",
    "AdapterNotFoundError",
    "AdapterRegistry",
    "CaptureReport",
    "CapturePipeline",
    "CaptureSettings",
    "DOMTreeNode",
    "DefaultAdapter",
    "DomService",
    "FlattenError",
    "FlattenRecord",
    "FlattenSettings",
    "HTMLSerializer",
    "InvalidDocumentError",
    "MdBookAdapter",
    "NodeType",
    "PageCaptureError",
    "ResourceAdapter",
    "SelectorError",
    "ShadowDomFlattener",
    "flatten_shadow_dom",
    "run_pipeline",
    "to_html",
]
