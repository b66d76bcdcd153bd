from __future__ import annotations

import pytest

from unused_css.config import UnusedCSSConfig
from unused_css.model.mode import Mode
from unused_css.web.app import create_app

ADMIN_TOKEN = "let-me-in"


@pytest.fixture
def config(tmp_path):
    return UnusedCSSConfig(
        site_url="https://example.com",
        cache_base_dir=str(tmp_path / "cache"),
        css_mode=Mode.ENABLED,
        admin_token=ADMIN_TOKEN,
    )


@pytest.fixture
def invalidated():
    return []


@pytest.fixture
def app(config, invalidated):
    """Create a Flask app for testing."""
    application = create_app(config, invalidator=_Recorder(invalidated))
    application.config["TESTING"] = True
    return application


@pytest.fixture
def client(app):
    """Create a Flask test client."""
    return app.test_client()


@pytest.fixture
def admin_headers():
    return {"X-Unused-CSS-Token": ADMIN_TOKEN}


class _Recorder:
    def __init__(self, seen: list) -> None:
        self._seen = seen

    def invalidate(self, post_id: str) -> None:
        self._seen.append(post_id)
