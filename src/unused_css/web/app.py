from __future__ import annotations

from flask import Flask

from unused_css.cache.invalidation import CacheInvalidator
from unused_css.cache.layout import CacheLayout
from unused_css.cache.stats import StatsAggregator
from unused_css.cache.store import CacheStore
from unused_css.config import UnusedCSSConfig
from unused_css.web.auth import ViewerCheck, token_viewer_check


def create_app(
    config: UnusedCSSConfig | None = None,
    *,
    invalidator: CacheInvalidator | None = None,
    viewer_check: ViewerCheck | None = None,
) -> Flask:
    """Create and configure the Flask app."""
    config = config or UnusedCSSConfig()
    app = Flask(__name__)

    layout = CacheLayout.from_config(config)
    app.extensions["unused_css_config"] = config
    app.extensions["cache_store"] = CacheStore(
        layout,
        invalidator=invalidator,
        extra_purge_dirs=config.extra_purge_dirs,
    )
    app.extensions["stats_aggregator"] = StatsAggregator(layout, plugins_dir=config.plugins_dir or None)
    app.extensions["viewer_check"] = viewer_check or token_viewer_check(config.admin_token)

    from unused_css.web.routes.api import api_bp

    app.register_blueprint(api_bp, url_prefix="/unused-css")

    return app
