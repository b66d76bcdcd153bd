"""Absolute-URL helpers for cached CSS and rewritten markup."""
from __future__ import annotations

import html
import re
from urllib.parse import urljoin, urlparse

_CSS_REFERENCE_RE = re.compile(
    r"""url\(\s*['"]?(?P<url>[^'")]+)['"]?\s*\)"""
    r"""|@import\s+['"](?P<import>[^'"]+\.[^\s'"]+)['"]"""
)


def is_absolute(url: str) -> bool:
    return bool(urlparse(url).scheme) or url.startswith("//")


def absolute_url(href: str, base_url: str) -> str:
    """Resolve a (possibly HTML-escaped) *href* against *base_url*."""
    return urljoin(base_url, html.unescape(href.strip()))


def rewrite_absolute_urls(css: str, base_url: str) -> str:
    """Make every relative ``url()`` and ``@import`` reference in *css* absolute.

    ``data:`` URIs, fragment references and already absolute URLs are kept.
    """

    def _replace(match: re.Match[str]) -> str:
        relative = (match.group("url") or match.group("import")).strip()
        if relative.startswith("#") or is_absolute(relative):
            return match.group(0)
        return match.group(0).replace(relative, urljoin(base_url, relative), 1)

    return _CSS_REFERENCE_RE.sub(_replace, css)
