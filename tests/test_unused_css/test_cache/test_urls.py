from __future__ import annotations

import pytest

from unused_css.cache.urls import absolute_url, is_absolute, rewrite_absolute_urls

SHEET = "https://example.com/wp-content/plugins/shop/css/style.css"


class TestAbsoluteUrl:
    def test_relative(self):
        assert absolute_url("style.css", "https://example.com/blog/") == "https://example.com/blog/style.css"

    def test_root_relative(self):
        assert absolute_url("/a.css", "https://example.com/blog/") == "https://example.com/a.css"

    def test_protocol_relative(self):
        assert absolute_url("//cdn.example.net/a.css", "https://example.com/") == "https://cdn.example.net/a.css"

    def test_html_entities_decoded(self):
        assert absolute_url("/a.css?ver=1&amp;x=2", "https://example.com/") == "https://example.com/a.css?ver=1&x=2"


class TestIsAbsolute:
    @pytest.mark.parametrize("url", ["https://a.test/x", "data:image/png;base64,AA", "//cdn.test/x"])
    def test_absolute(self, url):
        assert is_absolute(url)

    def test_relative(self):
        assert not is_absolute("../img/a.png")


class TestRewriteAbsoluteUrls:
    def test_relative_url_resolved(self):
        css = ".a{background:url(../img/bg.png)}"
        assert rewrite_absolute_urls(css, SHEET) == (
            ".a{background:url(https://example.com/wp-content/plugins/shop/img/bg.png)}"
        )

    def test_quoted_url_resolved(self):
        css = ".a{background:url('img/bg.png')}"
        assert "url('https://example.com/wp-content/plugins/shop/css/img/bg.png')" in rewrite_absolute_urls(css, SHEET)

    def test_data_uri_kept(self):
        css = ".a{background:url(data:image/png;base64,AAAA)}"
        assert rewrite_absolute_urls(css, SHEET) == css

    def test_fragment_kept(self):
        css = ".a{filter:url(#blur)}"
        assert rewrite_absolute_urls(css, SHEET) == css

    def test_absolute_kept(self):
        css = ".a{background:url(https://cdn.example.net/x.png)}"
        assert rewrite_absolute_urls(css, SHEET) == css

    def test_import_resolved(self):
        css = '@import "extra.css";'
        assert rewrite_absolute_urls(css, SHEET) == (
            '@import "https://example.com/wp-content/plugins/shop/css/extra.css";'
        )
