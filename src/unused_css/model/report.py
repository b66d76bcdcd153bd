"""Usage report and the envelope that carries it from detector to cache store."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from unused_css.errors import PayloadDecodeError


class StylesheetUsageReport(Mapping[str, str]):
    """Read-only mapping of stylesheet URL to its reconstructed CSS text."""

    def __init__(self, sheets: Mapping[str, str] | None = None) -> None:
        self._sheets: dict[str, str] = dict(sheets or {})

    def __getitem__(self, href: str) -> str:
        return self._sheets[href]

    def __iter__(self) -> Iterator[str]:
        return iter(self._sheets)

    def __len__(self) -> int:
        return len(self._sheets)

    def __repr__(self) -> str:
        return f"StylesheetUsageReport({list(self._sheets)!r})"

    def to_dict(self) -> dict[str, str]:
        return dict(self._sheets)


@dataclass(frozen=True)
class TransmissionEnvelope:
    css: StylesheetUsageReport
    url: str
    post_id: str | None = None
    post_types: tuple[str, ...] = ()
    reduction: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "css": self.css.to_dict(),
            "url": self.url,
            "post_id": self.post_id,
            "post_types": list(self.post_types),
            "reduction": self.reduction,
        }

    @classmethod
    def from_dict(cls, data: Any) -> TransmissionEnvelope:
        """Build an envelope from decoded JSON, rejecting malformed shapes."""
        if not isinstance(data, dict):
            raise PayloadDecodeError("payload must be a JSON object")

        css = data.get("css")
        if not isinstance(css, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in css.items()
        ):
            raise PayloadDecodeError("'css' must map stylesheet URLs to CSS text")

        url = data.get("url")
        if not isinstance(url, str) or not url:
            raise PayloadDecodeError("'url' must be a non-empty string")

        post_id = data.get("post_id")
        if post_id is not None:
            if isinstance(post_id, bool) or not isinstance(post_id, (str, int)):
                raise PayloadDecodeError("'post_id' must be a string, integer or null")
            post_id = str(post_id) or None

        post_types = data.get("post_types") or []
        if not isinstance(post_types, list) or not all(isinstance(t, str) for t in post_types):
            raise PayloadDecodeError("'post_types' must be a list of strings")

        reduction = data.get("reduction", 0)
        if isinstance(reduction, bool) or not isinstance(reduction, (int, float)):
            raise PayloadDecodeError("'reduction' must be a number")

        return cls(
            css=StylesheetUsageReport(css),
            url=url,
            post_id=post_id,
            post_types=tuple(post_types),
            reduction=float(reduction),
        )
