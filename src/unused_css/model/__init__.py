from unused_css.model.manifest import (
    EMPTY_CSS_FILENAME,
    MANIFEST_FILENAME,
    CacheManifest,
    content_filename,
)
from unused_css.model.mode import Mode
from unused_css.model.report import StylesheetUsageReport, TransmissionEnvelope
from unused_css.model.stats import PageUsage, StatsBucket

__all__ = [
    "CacheManifest",
    "EMPTY_CSS_FILENAME",
    "MANIFEST_FILENAME",
    "Mode",
    "PageUsage",
    "StatsBucket",
    "StylesheetUsageReport",
    "TransmissionEnvelope",
    "content_filename",
]
