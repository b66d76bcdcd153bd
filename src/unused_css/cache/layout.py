from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlparse

from unused_css.config import UnusedCSSConfig
from unused_css.model.manifest import MANIFEST_FILENAME


def page_segments(url: str) -> list[str]:
    """Path segments of *url*, without empty, ``.`` or ``..`` parts."""
    path = unquote(urlparse(url).path)
    return [s for s in path.split("/") if s not in ("", ".", "..")]


@dataclass(frozen=True)
class CacheLayout:
    """Where cached stylesheets and page manifests live, on disk and on the web.

    Hash-named CSS files sit directly in ``root_path``; each page gets a
    directory mirroring its URL path holding its ``lookup.json``.
    """

    base_dir: Path
    site_url: str
    cache_directory: str = "acd-unused-css"
    base_url: str = ""

    @classmethod
    def from_config(cls, config: UnusedCSSConfig) -> CacheLayout:
        return cls(
            base_dir=Path(config.cache_base_dir),
            site_url=config.site_url,
            cache_directory=config.cache_directory,
            base_url=config.resolved_cache_base_url,
        )

    @property
    def hostname(self) -> str:
        return urlparse(self.site_url).hostname or "localhost"

    @property
    def root_path(self) -> Path:
        return Path(self.base_dir) / self.cache_directory / self.hostname

    @property
    def root_url(self) -> str:
        base = (self.base_url or f"{self.site_url.rstrip('/')}/cache").rstrip("/")
        return f"{base}/{self.cache_directory}/{self.hostname}"

    def page_dir(self, url: str) -> Path:
        return self.root_path.joinpath(*page_segments(url))

    def lookup_file(self, url: str) -> Path:
        return self.page_dir(url) / MANIFEST_FILENAME

    def entry_path(self, filename: str) -> Path:
        return self.root_path / filename

    def entry_url(self, filename: str) -> str:
        return f"{self.root_url}/{filename}"

    def relative_path(self, directory: Path) -> str:
        """Path of *directory* relative to the cache root; ``/`` for the root itself."""
        try:
            relative = Path(directory).relative_to(self.root_path).as_posix()
        except ValueError:
            relative = Path(directory).as_posix()
        relative = relative.strip("/")
        return "/" if relative in ("", ".") else relative
