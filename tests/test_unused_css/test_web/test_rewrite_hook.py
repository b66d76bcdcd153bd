"""Tests for rewriting stylesheet links in a host Flask app's responses."""
from __future__ import annotations

import pytest
from flask import Flask, jsonify

from unused_css.cache.layout import CacheLayout
from unused_css.cache.store import CacheStore
from unused_css.config import UnusedCSSConfig
from unused_css.model.manifest import content_filename
from unused_css.model.mode import Mode
from unused_css.web.rewrite import register_rewrite

SHOP_CSS = "http://localhost/wp-content/plugins/shop/style.css"
PAGE = '<html><head><link rel="stylesheet" href="/wp-content/plugins/shop/style.css"></head></html>'


def _site(tmp_path, mode: Mode, **kwargs) -> tuple[Flask, CacheStore]:
    config = UnusedCSSConfig(
        site_url="http://localhost",
        cache_base_dir=str(tmp_path),
        css_mode=mode,
        admin_token="tok",
    )
    app = Flask(__name__)
    app.config["TESTING"] = True

    @app.route("/shop/")
    def shop():
        return PAGE

    @app.route("/missing/")
    def missing():
        return PAGE, 404

    @app.route("/api/")
    def api():
        return jsonify({"html": PAGE})

    engine = register_rewrite(app, config, **kwargs)
    store = engine.store
    store.process({SHOP_CSS: ".shop{color:red}"}, "http://localhost/shop/")
    store.process({SHOP_CSS: ".shop{color:red}"}, "http://localhost/missing/")
    return app, store


class TestRewriteHook:
    def test_enabled_rewrites_html(self, tmp_path):
        app, store = _site(tmp_path, Mode.ENABLED)
        body = app.test_client().get("/shop/").get_data(as_text=True)
        assert store.layout.entry_url(content_filename(".shop{color:red}")) in body

    def test_disabled_leaves_html(self, tmp_path):
        app, _ = _site(tmp_path, Mode.DISABLED)
        assert app.test_client().get("/shop/").get_data(as_text=True) == PAGE

    def test_preview_only_for_privileged(self, tmp_path):
        app, store = _site(tmp_path, Mode.PREVIEW)
        client = app.test_client()
        assert client.get("/shop/").get_data(as_text=True) == PAGE
        body = client.get("/shop/", headers={"X-Unused-CSS-Token": "tok"}).get_data(as_text=True)
        assert store.layout.entry_url(content_filename(".shop{color:red}")) in body

    def test_stats_marks_links(self, tmp_path):
        app, _ = _site(tmp_path, Mode.STATS)
        assert "data-ucss-processed='true'" in app.test_client().get("/shop/").get_data(as_text=True)

    def test_error_responses_untouched(self, tmp_path):
        app, _ = _site(tmp_path, Mode.ENABLED)
        assert app.test_client().get("/missing/").get_data(as_text=True) == PAGE

    def test_non_html_untouched(self, tmp_path):
        app, _ = _site(tmp_path, Mode.ENABLED)
        assert app.test_client().get("/api/").get_json() == {"html": PAGE}

    def test_shared_store(self, tmp_path):
        store = CacheStore(CacheLayout(base_dir=tmp_path / "other", site_url="http://localhost"))
        _, used = _site(tmp_path, Mode.ENABLED, store=store)
        assert used is store

    @pytest.mark.parametrize("allowed", [True, False])
    def test_custom_viewer_check(self, tmp_path, allowed):
        app, _ = _site(tmp_path, Mode.PREVIEW, viewer_check=lambda request: allowed)
        body = app.test_client().get("/shop/").get_data(as_text=True)
        assert (body != PAGE) is allowed
