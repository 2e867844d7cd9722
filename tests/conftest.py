"""Pytest configuration and fixtures for the pagecapture test suite.

This module provides shared configuration and fixtures used across the
entire test suite. It puts the ``src`` directory on the Python path and
builds small document trees by hand, so tests do not need a browser.

Path Setup:
    The src directory is added to sys.path to enable imports like:
    ``from pagecapture.dom.views import DOMTreeNode``
"""

import itertools
import sys
from pathlib import Path

import pytest

src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from pagecapture.dom.views import (  # noqa: E402
    create_doctype,
    create_document,
    create_element,
    create_text,
)


# ---------------------------------------------------------------------------
# Tree helpers
# ---------------------------------------------------------------------------


def make_document(*body_children, head_children=None, html_attributes=None):
    """Build ``#document > [doctype, html > [head, body]]`` around the given nodes."""
    document = create_document()
    document.append_child(create_doctype("html"))
    head = create_element("head", children=list(head_children or []))
    body = create_element("body", children=list(body_children))
    document.append_child(create_element("html", html_attributes, children=[head, body]))
    return document


def make_host(tag_name, *shadow_children, attributes=None, mode="open", light_children=None):
    """Build an element with an attached shadow root holding ``shadow_children``."""
    host = create_element(tag_name, attributes, children=list(light_children or []))
    shadow = host.attach_shadow(mode)
    for child in shadow_children:
        shadow.append_child(child)
    return host


def make_style(css):
    style = create_element("style")
    style.append_child(create_text(css))
    return style


def body_of(document):
    html = next(child for child in document.children if child.is_element)
    return html.children[1]


def count_shadow_roots(root):
    """Number of attached shadow roots under (and including) ``root``."""
    nodes = [root, *root.iter_descendants(pierce_shadow=True)]
    return sum(len(node.shadow_roots or []) for node in nodes)


def sequential_generator(prefix="id"):
    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter)}"


# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def generator():
    """Deterministic identity generator yielding id1, id2, ..."""
    return sequential_generator()


@pytest.fixture()
def card_document():
    """A document with one ``<card>`` host whose shadow root holds a style and a span."""
    card = make_host(
        "card",
        make_style(":host{color:red}"),
        create_element("span", children=[create_text("hi")]),
    )
    before = create_element("p", children=[create_text("before")])
    after = create_element("p", children=[create_text("after")])
    return make_document(before, card, after)


@pytest.fixture()
def cdp_payload():
    """A ``DOM.getDocument`` result with one shadow host, a template and an iframe."""
    return {
        "root": {
            "nodeId": 1,
            "nodeType": 9,
            "nodeName": "#document",
            "children": [
                {"nodeId": 2, "nodeType": 10, "nodeName": "html"},
                {
                    "nodeId": 3,
                    "nodeType": 1,
                    "nodeName": "HTML",
                    "attributes": ["lang", "de"],
                    "children": [
                        {
                            "nodeId": 4,
                            "nodeType": 1,
                            "nodeName": "HEAD",
                            "children": [
                                {
                                    "nodeId": 5,
                                    "nodeType": 1,
                                    "nodeName": "TITLE",
                                    "children": [{"nodeId": 6, "nodeType": 3, "nodeName": "#text", "nodeValue": "Docs"}],
                                }
                            ],
                        },
                        {
                            "nodeId": 7,
                            "nodeType": 1,
                            "nodeName": "BODY",
                            "children": [
                                {
                                    "nodeId": 8,
                                    "nodeType": 1,
                                    "nodeName": "X-CARD",
                                    "attributes": ["class", "card"],
                                    "shadowRoots": [
                                        {
                                            "nodeId": 9,
                                            "nodeType": 11,
                                            "nodeName": "#document-fragment",
                                            "shadowRootType": "open",
                                            "children": [
                                                {
                                                    "nodeId": 10,
                                                    "nodeType": 1,
                                                    "nodeName": "STYLE",
                                                    "children": [
                                                        {"nodeId": 11, "nodeType": 3, "nodeName": "#text", "nodeValue": ":host { display: block }"}
                                                    ],
                                                },
                                                {
                                                    "nodeId": 12,
                                                    "nodeType": 1,
                                                    "nodeName": "B",
                                                    "children": [{"nodeId": 13, "nodeType": 3, "nodeName": "#text", "nodeValue": "bold"}],
                                                },
                                            ],
                                        }
                                    ],
                                },
                                {
                                    "nodeId": 14,
                                    "nodeType": 1,
                                    "nodeName": "INPUT",
                                    "attributes": ["type", "text"],
                                    "shadowRoots": [
                                        {
                                            "nodeId": 15,
                                            "nodeType": 11,
                                            "nodeName": "#document-fragment",
                                            "shadowRootType": "user-agent",
                                            "children": [{"nodeId": 16, "nodeType": 1, "nodeName": "DIV"}],
                                        }
                                    ],
                                },
                                {
                                    "nodeId": 17,
                                    "nodeType": 1,
                                    "nodeName": "TEMPLATE",
                                    "templateContent": {
                                        "nodeId": 18,
                                        "nodeType": 11,
                                        "nodeName": "#document-fragment",
                                        "children": [{"nodeId": 19, "nodeType": 1, "nodeName": "P"}],
                                    },
                                },
                                {
                                    "nodeId": 20,
                                    "nodeType": 1,
                                    "nodeName": "IFRAME",
                                    "frameId": "frame-1",
                                    "contentDocument": {"nodeId": 21, "nodeType": 9, "nodeName": "#document"},
                                },
                            ],
                        },
                    ],
                },
            ],
        }
    }
