"""Tests for framework-rendered HTML: error pages and meta tags."""

from aerossr.config import MetaTags
from aerossr.templating.html import inject_meta_tags, render_error_page, render_meta_tags


class TestErrorPage:
    def test_status_and_reason(self) -> None:
        html = render_error_page(404, "Nothing here")
        assert "<title>404 Not Found</title>" in html
        assert "Nothing here" in html

    def test_unknown_status(self) -> None:
        assert "599 Error" in render_error_page(599)

    def test_message_is_escaped(self) -> None:
        html = render_error_page(400, "<script>alert(1)</script>")
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_no_message_paragraph_when_empty(self) -> None:
        assert "<p>" not in render_error_page(500)


class TestMetaTags:
    def test_render(self) -> None:
        html = render_meta_tags(MetaTags(title="Shop", description="Things"))
        assert '<meta charset="UTF-8">' in html
        assert '<meta name="description" content="Things">' in html
        assert "<title>Shop</title>" in html

    def test_empty_description_omitted(self) -> None:
        assert "description" not in render_meta_tags(MetaTags(description=""))

    def test_values_are_escaped(self) -> None:
        html = render_meta_tags(MetaTags(title='</title><script>"x"'))
        assert "<script>" not in html

    def test_inject_before_head_close(self) -> None:
        page = "<html><head><link rel=icon></head><body></body></html>"
        html = inject_meta_tags(page, MetaTags(title="Home"))
        assert html.index("<title>Home</title>") < html.index("</head>")
        assert html.startswith("<html><head><link rel=icon>")
        assert html.endswith("</head><body></body></html>")

    def test_inject_case_insensitive(self) -> None:
        html = inject_meta_tags("<HEAD></HEAD >", MetaTags(title="T"))
        assert html.index("<title>T</title>") < html.index("</HEAD >")

    def test_no_head_unchanged(self) -> None:
        assert inject_meta_tags("<p>fragment</p>", MetaTags()) == "<p>fragment</p>"
