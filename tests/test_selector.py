"""Tests for the CSS selector subset used by sanitizers and adapters."""

import pytest

from pagecapture.dom.selector import matches, parse_selector, query_selector, query_selector_all
from pagecapture.dom.views import create_element, create_text
from pagecapture.exceptions import PageCaptureError, SelectorError

from conftest import make_document, make_host


@pytest.fixture
def page():
    """A small page: nav list, article with paragraphs, footer."""
    nav = create_element(
        "ul",
        {"class": "chapter"},
        children=[
            create_element("li", {"class": "chapter-item active"}),
            create_element("li", {"class": "chapter-item"}),
        ],
    )
    article = create_element(
        "main",
        {"id": "content"},
        children=[
            create_element("p", {"data-role": "intro"}, children=[create_text("Hello")]),
            create_element("div", children=[create_element("p", {"title": "deep note"})]),
        ],
    )
    footer = create_element("footer", {"class": "footer"})
    return make_document(nav, article, footer)


class TestParse:
    """Tests for selector parsing."""

    @pytest.mark.parametrize(
        "text",
        [
            "div",
            "*",
            ".a.b",
            "#main",
            "[hidden]",
            '[name="generator"]',
            "[lang=en]",
            "[href*='book.js']",
            "[class~=x]",
            "main#content > p",
            "ul.chapter li",
            "p, td, div",
        ],
    )
    def test_supported_syntax(self, text):
        """Test the supported subset parses."""
        assert parse_selector(text).alternatives

    @pytest.mark.parametrize("text", ["", "   ", "> p", "p >", "p > > a", "a,,b", "p:hover", "a + b"])
    def test_invalid_syntax_raises(self, text):
        """Test unsupported or malformed selectors raise SelectorError."""
        with pytest.raises(SelectorError):
            parse_selector(text)

    def test_selector_error_is_capture_error(self):
        """Test SelectorError carries the selector and derives from the base error."""
        with pytest.raises(PageCaptureError) as exc_info:
            parse_selector("p:hover")
        assert exc_info.value.selector == "p:hover"
        assert "p:hover" in str(exc_info.value)

    def test_type_must_lead_compound(self):
        """Test a type selector must lead its compound."""
        assert parse_selector(".a div.b p").alternatives
        with pytest.raises(SelectorError):
            parse_selector(".a*")


class TestMatching:
    """Tests for matching and querying."""

    def test_query_by_class(self, page):
        """Test class selectors match all class tokens."""
        items = query_selector_all(page, "li.chapter-item")
        assert len(items) == 2
        assert query_selector_all(page, ".chapter-item.active") == [items[0]]

    def test_query_by_id_and_child(self, page):
        """Test the child combinator only looks at the direct parent."""
        direct = query_selector_all(page, "main#content > p")
        anywhere = query_selector_all(page, "#content p")
        assert len(direct) == 1
        assert len(anywhere) == 2

    def test_attribute_operators(self, page):
        """Test presence, equality, substring and word matching."""
        assert len(query_selector_all(page, "[data-role]")) == 1
        assert len(query_selector_all(page, '[data-role="intro"]')) == 1
        assert len(query_selector_all(page, "[data-role=outro]")) == 0
        assert len(query_selector_all(page, "[title*=note]")) == 1
        assert len(query_selector_all(page, "[title~=deep]")) == 1
        assert len(query_selector_all(page, "[title~=dee]")) == 0

    def test_selector_list_in_document_order(self, page):
        """Test a selector list returns one match per element, in tree order."""
        found = query_selector_all(page, "footer, .footer, ul")
        assert [node.tag_name for node in found] == ["ul", "footer"]

    def test_query_selector_first(self, page):
        """Test query_selector returns the first match or None."""
        assert query_selector(page, "p").get_attribute("data-role") == "intro"
        assert query_selector(page, "table") is None

    def test_matches(self, page):
        """Test matching a single node."""
        main = query_selector(page, "main")
        assert matches(main, "#content")
        assert not matches(main, "#other")
        assert not matches(create_text("x"), "*")

    def test_shadow_content_needs_pierce(self):
        """Test shadow trees are only searched with pierce=True."""
        document = make_document(make_host("x-card", create_element("span", {"class": "inside"})))
        assert query_selector_all(document, ".inside") == []
        assert len(query_selector_all(document, ".inside", pierce=True)) == 1

    def test_root_is_not_included(self):
        """Test the root itself is not part of the result."""
        root = create_element("div", children=[create_element("div")])
        assert len(query_selector_all(root, "div")) == 1
