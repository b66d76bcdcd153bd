from __future__ import annotations

from flask import Flask, Response, request

from unused_css.cache.layout import CacheLayout
from unused_css.cache.rewrite import RewriteEngine
from unused_css.cache.store import CacheStore
from unused_css.config import UnusedCSSConfig
from unused_css.model.mode import Mode
from unused_css.web.auth import ViewerCheck, token_viewer_check


def register_rewrite(
    app: Flask,
    config: UnusedCSSConfig,
    *,
    store: CacheStore | None = None,
    viewer_check: ViewerCheck | None = None,
) -> RewriteEngine:
    """Rewrite stylesheet links in every successful HTML response *app* sends."""
    engine = RewriteEngine(store or CacheStore(CacheLayout.from_config(config)))
    check = viewer_check or token_viewer_check(config.admin_token)

    @app.after_request
    def rewrite_stylesheets(response: Response) -> Response:
        if (
            config.css_mode is Mode.DISABLED
            or response.status_code != 200
            or response.mimetype != "text/html"
            or response.direct_passthrough
        ):
            return response
        markup = response.get_data(as_text=True)
        response.set_data(engine.rewrite(markup, request.url, config.css_mode, check(request)))
        return response

    return engine
