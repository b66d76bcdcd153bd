"""Content-addressed store for filtered CSS plus per-page manifests."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable, Mapping
from pathlib import Path

import csscompressor
from packaging import version

from unused_css.cache.invalidation import CacheInvalidator, NullInvalidator
from unused_css.cache.layout import CacheLayout
from unused_css.cache.urls import absolute_url, rewrite_absolute_urls
from unused_css.model.manifest import (
    MANIFEST_FILENAME,
    CacheManifest,
    atomic_write_text,
    content_filename,
)

logger = logging.getLogger(__name__)

# csscompressor <= 0.9.5 strips whitespace inside url() tokens, which breaks
# inline SVG data URIs such as viewBox='0 0 16 16'.
if version.parse(csscompressor.__version__) <= version.parse("0.9.5"):
    _preserve_call_tokens_original = csscompressor._preserve_call_tokens
    _url_re = csscompressor._url_re

    def _preserve_call_tokens(*args, **kwargs):
        if _url_re == args[1]:
            kwargs["remove_ws"] = False
        return _preserve_call_tokens_original(*args, **kwargs)

    csscompressor._preserve_call_tokens = _preserve_call_tokens


def minify_css(css: str) -> str:
    return csscompressor.compress(css) if css.strip() else ""


def delete_directory_contents(directory: Path) -> None:
    """Remove everything inside *directory*, keeping the directory itself."""
    if not directory.is_dir():
        return
    for child in directory.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink(missing_ok=True)


class CacheStore:
    """Persist filtered stylesheets by content hash and record page manifests.

    Cache entries are write-once: a file named after the hash of its content
    is only created when missing, so concurrent writers of identical CSS
    converge on the same file. Manifests are overwritten wholesale on every
    ``process`` call (last writer wins).
    """

    def __init__(
        self,
        layout: CacheLayout,
        *,
        invalidator: CacheInvalidator | None = None,
        extra_purge_dirs: Iterable[str | Path] = (),
    ) -> None:
        self.layout = layout
        self._invalidator = invalidator or NullInvalidator()
        self._extra_purge_dirs = tuple(Path(p) for p in extra_purge_dirs)

    def process(
        self,
        report: Mapping[str, str],
        page_url: str,
        post_id: str | None = None,
        post_types: Iterable[str] = (),
    ) -> CacheManifest:
        """Cache each stylesheet in *report* and write the manifest for *page_url*."""
        page_dir = self.layout.page_dir(page_url)
        page_dir.mkdir(parents=True, exist_ok=True)
        self.layout.root_path.mkdir(parents=True, exist_ok=True)

        lookup: dict[str, str] = {}
        for sheet_url, css in report.items():
            sheet_url = absolute_url(sheet_url, page_url)
            css = rewrite_absolute_urls(minify_css(css), sheet_url)
            filename = content_filename(css)
            self._write_entry(filename, css)
            lookup[sheet_url] = filename

        manifest = CacheManifest(
            lookup=lookup,
            source_url=page_url,
            post_id=post_id,
            post_types=tuple(post_types),
        )
        manifest.save(page_dir / MANIFEST_FILENAME)
        logger.info("Cached %d stylesheet(s) for %s", len(lookup), page_url)

        if post_id:
            try:
                self._invalidator.invalidate(post_id)
            except Exception:
                logger.exception("Cache invalidation failed for post %s", post_id)
        return manifest

    def load_manifest(self, page_url: str) -> CacheManifest | None:
        """Return the manifest for *page_url*, or ``None`` if absent or unreadable."""
        path = self.layout.lookup_file(page_url)
        if not path.is_file():
            return None
        try:
            return CacheManifest.load(path)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable manifest %s: %s", path, exc)
            return None

    def cache_summary(self) -> dict[str, int]:
        root = self.layout.root_path
        root.mkdir(parents=True, exist_ok=True)
        return {
            "num_css_files": sum(1 for p in root.glob("*.css") if p.is_file()),
            "num_lookup_files": sum(1 for p in root.rglob(MANIFEST_FILENAME) if p.is_file()),
        }

    def clear(self) -> None:
        """Delete every cached file and manifest, plus any extra purge directories."""
        delete_directory_contents(self.layout.root_path)
        for directory in self._extra_purge_dirs:
            delete_directory_contents(directory)
        logger.info("Cleared CSS cache at %s", self.layout.root_path)

    def _write_entry(self, filename: str, css: str) -> None:
        path = self.layout.entry_path(filename)
        if path.exists():
            return
        atomic_write_text(path, css)
