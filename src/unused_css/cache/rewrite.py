"""Swap stylesheet links in rendered HTML for their cached, reduced copies."""

from __future__ import annotations

import logging
import re

from unused_css.cache.store import CacheStore
from unused_css.cache.urls import absolute_url
from unused_css.detector.dom import PROCESSED_ATTRIBUTE
from unused_css.model.manifest import EMPTY_CSS_FILENAME
from unused_css.model.mode import Mode

logger = logging.getLogger(__name__)

_LINK_TAG_RE = re.compile(r"<link\b[^>]*>", re.IGNORECASE)
_REL_STYLESHEET_RE = re.compile(r"""\srel\s*=\s*(['"])[^'"]*\bstylesheet\b[^'"]*\1""", re.IGNORECASE)
_HREF_RE = re.compile(r"""\shref\s*=\s*(['"])(?P<href>[^'"]+)\1""", re.IGNORECASE)


def find_stylesheet_links(markup: str) -> list[tuple[str, str]]:
    """Return ``(tag, href)`` for every ``<link rel="stylesheet" href=...>`` in *markup*."""
    links = []
    for match in _LINK_TAG_RE.finditer(markup):
        tag = match.group(0)
        if not _REL_STYLESHEET_RE.search(tag):
            continue
        href = _HREF_RE.search(tag)
        if href:
            links.append((tag, href.group("href")))
    return links


class RewriteEngine:
    def __init__(self, store: CacheStore) -> None:
        self.store = store

    def rewrite(self, markup: str, page_url: str, mode: Mode, viewer_is_privileged: bool = False) -> str:
        """Rewrite stylesheet links in *markup* according to the manifest for *page_url*.

        Markup is returned untouched when the mode is ``disabled``, when a
        ``preview`` viewer is not privileged, or when the page has no manifest.
        """
        if mode is Mode.DISABLED:
            return markup
        if mode is Mode.PREVIEW and not viewer_is_privileged:
            return markup

        manifest = self.store.load_manifest(page_url)
        if manifest is None:
            return markup

        replaced = 0
        for tag, href in find_stylesheet_links(markup):
            filename = manifest.get(absolute_url(href, page_url))
            if filename is None:
                continue

            if mode is Mode.STATS:
                if PROCESSED_ATTRIBUTE in tag:
                    continue
                new_tag = re.sub(r"^<link\b", f"<link {PROCESSED_ATTRIBUTE}='true'", tag, flags=re.IGNORECASE)
            elif filename == EMPTY_CSS_FILENAME:
                new_tag = ""
            else:
                new_tag = tag.replace(href, self.store.layout.entry_url(filename))

            markup = markup.replace(tag, new_tag)
            replaced += 1

        logger.debug("Rewrote %d stylesheet link(s) for %s in %s mode", replaced, page_url, mode)
        return markup
