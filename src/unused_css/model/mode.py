from __future__ import annotations

from enum import StrEnum


class Mode(StrEnum):
    ENABLED = "enabled"
    STATS = "stats"
    PREVIEW = "preview"
    DISABLED = "disabled"

    @property
    def detects(self) -> bool:
        """Whether the usage detector runs on rendered pages in this mode."""
        return self is not Mode.DISABLED
