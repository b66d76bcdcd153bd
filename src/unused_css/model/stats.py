from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class PageUsage:
    """Per-page (or collapsed page group) tally of empty and used stylesheets by source."""

    path: str
    post_types: tuple[str, ...] = ()
    post_id: str | None = None
    empty: dict[str, int] = field(default_factory=dict)
    used: dict[str, int] = field(default_factory=dict)


@dataclass
class StatsBucket:
    sortkey: str
    empty_css_count: int = 0
    found_css_count: int = 0
    empty_urls: dict[str, int] = field(default_factory=dict)
    found_urls: dict[str, int] = field(default_factory=dict)
