"""Cache manifest: per-page lookup of original stylesheet URL to cached filename."""

from __future__ import annotations

import hashlib
import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

MANIFEST_FILENAME = "lookup.json"

# Cached filename for a stylesheet where no rule survived filtering.
EMPTY_CSS_FILENAME = hashlib.md5(b"").hexdigest() + ".css"


def content_filename(css: str) -> str:
    """Return the content-addressed filename for *css*."""
    return hashlib.md5(css.encode("utf-8")).hexdigest() + ".css"


def atomic_write_text(path: Path, text: str) -> None:
    """Write *text* to *path* via a sibling temp file and ``os.replace``."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-", suffix=path.suffix)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


@dataclass(frozen=True)
class CacheManifest:
    lookup: dict[str, str] = field(default_factory=dict)
    source_url: str = ""
    post_id: str | None = None
    post_types: tuple[str, ...] = ()

    def get(self, sheet_url: str) -> str | None:
        return self.lookup.get(sheet_url)

    def to_dict(self) -> dict[str, Any]:
        return {
            "lookup": dict(self.lookup),
            "source_url": self.source_url,
            "post_id": self.post_id,
            "post_types": list(self.post_types),
        }

    # --- persistence ----------------------------------------------------------

    def save(self, path: Path) -> None:
        """Overwrite the manifest at *path* wholesale."""
        path.parent.mkdir(parents=True, exist_ok=True)
        atomic_write_text(path, json.dumps(self.to_dict()))

    @classmethod
    def load(cls, path: Path) -> CacheManifest:
        """Read a manifest from *path*.

        Raises ``OSError`` if the file cannot be read and ``ValueError`` if it
        does not hold a manifest object.
        """
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Manifest at {path} is not a JSON object")
        lookup = data.get("lookup") or {}
        if not isinstance(lookup, dict):
            raise ValueError(f"Manifest at {path} has a malformed lookup")
        post_id = data.get("post_id")
        return cls(
            lookup={str(k): str(v) for k, v in lookup.items()},
            source_url=data.get("source_url") or "",
            post_id=str(post_id) if post_id not in (None, "") else None,
            post_types=tuple(data.get("post_types") or ()),
        )
