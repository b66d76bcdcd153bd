"""Server side: content-addressed CSS cache, page manifests, HTML rewriting and stats."""
from unused_css.cache.invalidation import CacheInvalidator, CallbackInvalidator, NullInvalidator
from unused_css.cache.layout import CacheLayout
from unused_css.cache.rewrite import RewriteEngine
from unused_css.cache.stats import StatsAggregator
from unused_css.cache.store import CacheStore

__all__ = [
    "CacheInvalidator",
    "CacheLayout",
    "CacheStore",
    "CallbackInvalidator",
    "NullInvalidator",
    "RewriteEngine",
    "StatsAggregator",
]
