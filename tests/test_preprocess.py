"""Tests for the capture preprocessing steps.

This module covers the single-pass tree edits that run around shadow
flattening:

    - Readiness: lazy images switched to eager loading
    - Cleanup: boilerplate removal, text normalization, print stylesheet
    - Inline code style injection
    - Iconify icon refresh
    - Document language, title and chapter numbering
    - Angle bracket and inline code spacing fixes
"""

import pytest

from pagecapture.dom.selector import query_selector, query_selector_all
from pagecapture.dom.views import create_element, create_text
from pagecapture.preprocess import (
    chapter_title,
    clean_angle_brackets,
    extract_chapter_number,
    inject_code_style,
    lang_set,
    normalize_code_spacing,
    page_cleanup,
    prepare_lazy_images,
    refresh_iconify_icons,
    title_extract,
)
from pagecapture.preprocess.cleanup import (
    CODE_STYLESHEET,
    PRINT_STYLESHEET,
    append_stylesheet,
    find_head,
    normalize_text,
    remove_matching,
)

from conftest import body_of, make_document, make_host


def paragraph(*children):
    return create_element("p", children=[create_text(c) if isinstance(c, str) else c for c in children])


def code(text):
    return create_element("code", children=[create_text(text)])


class TestReadiness:
    """Tests for lazy image preparation."""

    def test_lazy_images_become_eager(self):
        """Test only lazy images are touched, including ones in shadow trees."""
        lazy = create_element("img", {"loading": "lazy", "src": "a.png"})
        eager = create_element("img", {"loading": "eager", "src": "b.png"})
        shadowed = create_element("img", {"loading": "lazy", "src": "c.png"})
        document = make_document(lazy, eager, make_host("x-gallery", shadowed))

        assert prepare_lazy_images(document) == 2

        assert lazy.attributes == {"loading": "auto", "src": "a.png"}
        assert shadowed.get_attribute("loading") == "auto"
        assert eager.get_attribute("loading") == "eager"

    def test_lazy_image_without_src(self):
        """Test an image without src keeps having none."""
        img = create_element("img", {"loading": "lazy"})
        prepare_lazy_images(make_document(img))
        assert not img.has_attribute("src")


class TestPageCleanup:
    """Tests for boilerplate removal and text normalization."""

    @pytest.fixture
    def page(self):
        return make_document(
            create_element("div", {"class": "ads"}, children=[create_element("div", {"class": "cookie"})]),
            create_element("div", {"class": "cookie banner"}),
            paragraph("  Hello\u200b\xa0 world  "),
            paragraph("Use ", code("x"), " here"),
            paragraph("   "),
            create_element("div", children=[create_element("pre", children=[code("a   b\n  c")])]),
            create_element("footer", {"class": "footer"}, children=[create_text("(c)")]),
        )

    def test_removes_default_selectors(self, page):
        """Test ads, cookie banners and footers are removed, each counted once."""
        stats = page_cleanup(page)

        assert stats.removed_elements == 3
        assert query_selector_all(page, ".ads, .cookie, footer") == []

    def test_normalizes_text(self, page):
        """Test zero-width characters, NBSP and whitespace runs are cleaned."""
        page_cleanup(page)
        first = query_selector(page, "p")
        assert first.text_content == " Hello world "

    def test_preformatted_code_is_untouched(self, page):
        """Test ``pre code`` keeps its whitespace."""
        page_cleanup(page)
        assert query_selector(page, "pre code").text_content == "a   b\n  c"

    def test_tightens_inline_code(self, page):
        """Test the single spaces around inline code in paragraphs are dropped."""
        page_cleanup(page)
        second = query_selector_all(page, "p")[1]
        assert [child.node_value for child in second.children if child.is_text] == ["Use", "here"]

    def test_drops_empty_paragraphs(self, page):
        """Test blank paragraphs are removed."""
        stats = page_cleanup(page)
        assert stats.empty_paragraphs_removed == 1
        assert len(query_selector_all(page, "p")) == 2

    def test_appends_print_stylesheet(self, page):
        """Test the print stylesheet is added to head."""
        page_cleanup(page)
        head = query_selector(page, "head")
        assert head.children[-1].tag_name == "style"
        assert head.children[-1].text_content == PRINT_STYLESHEET

    def test_custom_selectors(self, page):
        """Test explicit selectors replace the defaults."""
        stats = page_cleanup(page, ["footer"])
        assert stats.removed_elements == 1
        assert query_selector(page, ".ads") is not None

    def test_nested_matches_counted_once(self):
        """Test a match inside an already removed match is not counted."""
        outer = create_element("div", {"class": "ads"}, children=[create_element("div", {"class": "ads"})])
        document = make_document(outer)
        assert remove_matching(document, [".ads"]) == 1

    def test_normalize_text(self):
        assert normalize_text("a\u200d\ufeffb\xa0\xa0c\n\td") == "ab c d"


class TestStylesheets:
    """Tests for stylesheet injection."""

    def test_inject_code_style(self):
        """Test the inline code style block goes to head."""
        document = make_document()
        style = inject_code_style(document)
        assert style.parent_node is query_selector(document, "head")
        assert style.text_content == CODE_STYLESHEET
        assert "p > code" in CODE_STYLESHEET

    def test_head_is_created(self):
        """Test a missing head is created as the first child of html."""
        body = create_element("body")
        html = create_element("html", children=[body])
        head = find_head(html)
        assert html.children == [head, body]
        assert find_head(create_element("div"), create=True) is None

    def test_no_document_shell(self):
        """Test fragments without html get the style appended to the root."""
        root = create_element("div")
        style = append_stylesheet(root, "p {}")
        assert style.parent_node is root


class TestIcons:
    """Tests for iconify icon refresh."""

    def test_icons_are_replaced(self):
        """Test each icon becomes a childless clone marked noobserver."""
        icon = create_element("iconify-icon", {"icon": "mdi:home"}, children=[create_element("svg")])
        document = make_document(create_text("a"), icon, create_text("b"))

        assert refresh_iconify_icons(document) == 1

        body = body_of(document)
        fresh = body.children[1]
        assert fresh is not icon
        assert fresh.tag_name == "iconify-icon"
        assert fresh.attributes == {"icon": "mdi:home", "noobserver": ""}
        assert fresh.children == []
        assert icon.parent_node is None

    def test_no_icons(self):
        assert refresh_iconify_icons(make_document(create_element("p"))) == 0


class TestMetadata:
    """Tests for language and title accessors."""

    def test_lang_defaults(self):
        """Test a missing lang is filled in."""
        document = make_document()
        assert lang_set(document) == "en"
        assert query_selector(document, "html").get_attribute("lang") == "en"

    def test_lang_is_kept(self):
        """Test an existing lang wins over the default."""
        document = make_document(html_attributes={"lang": "de"})
        assert lang_set(document, default="fr") == "de"

    def test_lang_without_document_element(self):
        """Test a tree without html is left alone."""
        root = create_element("div")
        assert lang_set(root, default="fr") == "fr"
        assert root.attributes == {}

    def test_title_is_collapsed(self):
        """Test title whitespace is collapsed and trimmed."""
        document = make_document(head_children=[create_element("title", children=[create_text("  My\n  Page ")])])
        assert title_extract(document, "https://x") == "My Page"

    @pytest.mark.parametrize("head_children", [[], [create_element("title", children=[create_text("  ")])]])
    def test_title_falls_back_to_url(self, head_children):
        """Test missing or blank titles fall back to the URL."""
        document = make_document(head_children=head_children)
        assert title_extract(document, "https://x/a") == "https://x/a"
        assert title_extract(document) == ""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://book.example/ch04.html", 4),
            ("https://book.example/chapter_007", 7),
            ("https://book.example/ch04-01.html", 0),
            ("https://book.example/intro.html", 0),
            ("https://book.example/12/", 0),
            ("ch3", 3),
            ("https://book.example/ch99999999999.html", 0),
        ],
    )
    def test_extract_chapter_number(self, url, expected):
        """Test the number is read from the last path segment."""
        assert extract_chapter_number(url) == expected

    def test_chapter_title(self):
        """Test the chapter prefix is added only when a number is found."""
        assert chapter_title("Intro", "https://b/ch02.html") == "Chapter 2 - Intro"
        assert chapter_title("Intro", "https://b/intro.html") == "Intro"
        assert chapter_title("Zero", "https://b/ch00.html") == "Zero"


class TestText:
    """Tests for text fixes."""

    def test_clean_angle_brackets(self):
        """Test prose brackets become guillemets while code and scripts are kept."""
        prose = paragraph("Vec<T> and a<b")
        block = create_element("pre", children=[code("Vec<T>")])
        script = create_element("script", children=[create_text("if (a < b) {}")])
        title = create_element("title", children=[create_text("<Home>")])
        document = make_document(prose, block, script, head_children=[title])

        assert clean_angle_brackets(document) == 1

        assert prose.text_content == "Vec\u2039T\u203a and a\u2039b"
        assert block.text_content == "Vec<T>"
        assert script.text_content == "if (a < b) {}"
        assert title.text_content == "<Home>"

    def test_normalize_code_spacing(self):
        """Test inline code gets one space on each side and none inside."""
        p = paragraph("see", code("  x  "), "now")
        block = create_element("pre", children=[code("  y  ")])
        document = make_document(p, block)

        normalize_code_spacing(document)

        assert [child.text_content for child in p.children] == ["see ", "x", " now"]
        assert block.text_content == "  y  "
