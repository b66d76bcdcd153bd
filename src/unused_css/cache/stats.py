"""Usage statistics folded from every page manifest in the cache."""

from __future__ import annotations

import logging
import re
from dataclasses import asdict
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from unused_css.cache.layout import CacheLayout
from unused_css.model.manifest import EMPTY_CSS_FILENAME, MANIFEST_FILENAME, CacheManifest
from unused_css.model.stats import PageUsage, StatsBucket

logger = logging.getLogger(__name__)

SOURCE_MARKER = "plugins"
SLUG_PLACEHOLDER = "{slug}"

# Body-class tokens too specific to group pages by.
_IGNORED_POST_TYPE_RE = re.compile(r"home|(-(template|id|child|parent))")


def filter_post_types(post_types: Any) -> tuple[str, ...]:
    if isinstance(post_types, str):
        post_types = [post_types]
    return tuple(t for t in (post_types or ()) if not _IGNORED_POST_TYPE_RE.search(t))


def source_from_url(url: str) -> str | None:
    """Name of the directory following ``plugins/`` in *url*'s path, if any."""
    parts = urlparse(url).path.split("/")
    try:
        index = parts.index(SOURCE_MARKER)
    except ValueError:
        return None
    if index + 1 < len(parts) and parts[index + 1]:
        return parts[index + 1]
    return None


def _sorted(counts: dict[str, int]) -> dict[str, int]:
    return dict(sorted(counts.items()))


class StatsAggregator:
    """Aggregate manifests by page path, by source plugin and by page type.

    Manifests are located in a single directory walk and folded into one
    record per page; pages of type ``single`` share a ``{slug}`` record so
    structurally identical posts are counted together.
    """

    def __init__(self, layout: CacheLayout, *, plugins_dir: str | Path | None = None) -> None:
        self._layout = layout
        self._plugins_dir = Path(plugins_dir) if plugins_dir else None

    def stats(self) -> dict[str, Any]:
        pages = self.page_usage()
        data = {
            "by_path": self.by_path(pages),
            "by_plugin": self.by_plugin(pages),
            "by_post_type": self.by_post_type(pages),
        }
        return {
            "plugin_stats": {
                group: {key: asdict(bucket) for key, bucket in buckets.items()}
                for group, buckets in data.items()
            }
        }

    def manifest_paths(self) -> list[Path]:
        root = self._layout.root_path
        if not root.is_dir():
            return []
        return sorted(p for p in root.rglob(MANIFEST_FILENAME) if p.is_file())

    def page_usage(self) -> dict[str, PageUsage]:
        pages: dict[str, PageUsage] = {}
        for path in self.manifest_paths():
            try:
                manifest = CacheManifest.load(path)
            except (OSError, ValueError) as exc:
                logger.warning("Skipping unreadable manifest %s: %s", path, exc)
                continue

            post_types = filter_post_types(manifest.post_types)
            key = self._layout.relative_path(path.parent)
            if "single" in post_types and key != "/":
                head, _, _ = key.rpartition("/")
                key = f"{head}/{SLUG_PLACEHOLDER}" if head else SLUG_PLACEHOLDER

            page = pages.setdefault(key, PageUsage(path=key))
            page.post_types = post_types
            page.post_id = manifest.post_id

            for url, filename in manifest.lookup.items():
                source = source_from_url(url)
                if source is None:
                    continue
                bucket = page.empty if Path(filename).name == EMPTY_CSS_FILENAME else page.used
                bucket[source] = bucket.get(source, 0) + 1

        return dict(sorted(pages.items()))

    def by_path(self, pages: dict[str, PageUsage]) -> dict[str, StatsBucket]:
        return {
            path: StatsBucket(
                sortkey=path,
                empty_css_count=len(page.empty),
                found_css_count=len(page.used),
                empty_urls=_sorted(page.empty),
                found_urls=_sorted(page.used),
            )
            for path, page in pages.items()
        }

    def by_plugin(self, pages: dict[str, PageUsage]) -> dict[str, StatsBucket]:
        buckets: dict[str, StatsBucket] = {}
        for path, page in pages.items():
            for source, count in page.used.items():
                bucket = buckets.setdefault(source, StatsBucket(sortkey=source))
                bucket.found_css_count += 1
                bucket.found_urls[path] = count
            for source, count in page.empty.items():
                bucket = buckets.setdefault(source, StatsBucket(sortkey=source))
                bucket.empty_css_count += 1
                bucket.empty_urls[path] = count

        for source in self.installed_sources():
            buckets.setdefault(source, StatsBucket(sortkey=source))
        return dict(sorted(buckets.items()))

    def by_post_type(self, pages: dict[str, PageUsage]) -> dict[str, StatsBucket]:
        buckets: dict[str, StatsBucket] = {}
        for page in pages.values():
            for post_type in page.post_types:
                bucket = buckets.setdefault(post_type, StatsBucket(sortkey=post_type))
                for source, count in page.used.items():
                    bucket.found_urls[source] = bucket.found_urls.get(source, 0) + count
                for source, count in page.empty.items():
                    bucket.empty_urls[source] = bucket.empty_urls.get(source, 0) + count

        for bucket in buckets.values():
            bucket.found_urls = _sorted(bucket.found_urls)
            bucket.empty_urls = _sorted(bucket.empty_urls)
            bucket.found_css_count = len(bucket.found_urls)
            bucket.empty_css_count = len(bucket.empty_urls)
        return buckets

    def installed_sources(self) -> list[str]:
        """Directories in the plugins directory, reported even when unused."""
        if self._plugins_dir is None or not self._plugins_dir.is_dir():
            return []
        return sorted(
            p.name for p in self._plugins_dir.iterdir()
            if p.is_dir() and not p.name.startswith(("_", "."))
        )
