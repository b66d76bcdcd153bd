"""unused-css: serve each page only the CSS it uses."""
from __future__ import annotations

from unused_css.config import UnusedCSSConfig
from unused_css.model.mode import Mode

__all__ = [
    "Mode",
    "UnusedCSSConfig",
]
