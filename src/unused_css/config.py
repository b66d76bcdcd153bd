from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields
from typing import Any
from urllib.parse import urlparse

from unused_css.model.mode import Mode

logger = logging.getLogger(__name__)

# Used when no include patterns are configured.
DEFAULT_INCLUDE_PATTERNS: tuple[str, ...] = (r"^\.hover", r"\.dropdown")


def split_include_patterns(raw: str | Iterable[str]) -> list[str]:
    """Split newline-separated include patterns, normalising escaped backslashes."""
    lines = raw.splitlines() if isinstance(raw, str) else list(raw)
    patterns = []
    for line in lines:
        line = line.strip()
        if line:
            patterns.append(line.replace("\\\\", "\\"))
    return patterns


def compile_include_patterns(raw: str | Iterable[str]) -> tuple[re.Pattern[str], ...]:
    """Compile include patterns; invalid expressions are logged and skipped."""
    compiled = []
    for pattern in split_include_patterns(raw):
        try:
            compiled.append(re.compile(pattern))
        except re.error as exc:
            logger.warning("Ignoring invalid include pattern %r: %s", pattern, exc)
    return tuple(compiled)


@dataclass(frozen=True)
class UnusedCSSConfig:
    site_url: str = "http://localhost:5000"
    cache_base_dir: str = "cache"
    cache_base_url: str = ""  # defaults to <site_url>/cache
    cache_directory: str = "acd-unused-css"
    css_mode: Mode = Mode.PREVIEW
    include_patterns: str = ""  # newline-separated regular expressions
    admin_token: str = ""
    plugins_dir: str = ""
    extra_purge_dirs: tuple[str, ...] = ()
    log_warnings: bool = False
    host: str = "127.0.0.1"
    port: int = 5000

    def __post_init__(self) -> None:
        if not isinstance(self.css_mode, Mode):
            object.__setattr__(self, "css_mode", Mode(self.css_mode))
        if not isinstance(self.extra_purge_dirs, tuple):
            object.__setattr__(self, "extra_purge_dirs", tuple(self.extra_purge_dirs))

    @property
    def hostname(self) -> str:
        return urlparse(self.site_url).hostname or "localhost"

    @property
    def resolved_cache_base_url(self) -> str:
        return (self.cache_base_url or f"{self.site_url.rstrip('/')}/cache").rstrip("/")

    @property
    def include_pattern_sources(self) -> list[str]:
        return split_include_patterns(self.include_patterns) or list(DEFAULT_INCLUDE_PATTERNS)

    def compiled_include_patterns(self) -> tuple[re.Pattern[str], ...]:
        return compile_include_patterns(self.include_pattern_sources)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> UnusedCSSConfig:
        """Build a config from a settings mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        if isinstance(kwargs.get("include_patterns"), list):
            kwargs["include_patterns"] = "\n".join(kwargs["include_patterns"])
        if "extra_purge_dirs" in kwargs:
            kwargs["extra_purge_dirs"] = tuple(kwargs["extra_purge_dirs"])
        return cls(**kwargs)
