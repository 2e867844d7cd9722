"""DOM processing module."""

from .views import (
    CaptureReport,
    DOMTreeNode,
    FlattenRecord,
    NodeType,
    create_comment,
    create_doctype,
    create_document,
    create_element,
    create_fragment,
    create_text,
)
from .service import DomService
from .selector import matches, query_selector_all

__all__ = [
    "CaptureReport",
    "DOMTreeNode",
    "DomService",
    "FlattenRecord",
    "NodeType",
    "create_comment",
    "create_doctype",
    "create_document",
    "create_element",
    "create_fragment",
    "create_text",
    "matches",
    "query_selector_all",
]
