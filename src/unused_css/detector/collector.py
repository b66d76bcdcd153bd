"""Run the stylesheet walker over a page and package the result for the server."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import Protocol
from urllib.parse import urlparse

from unused_css.detector.dom import DocumentAdapter, StylesheetHandle
from unused_css.detector.walker import StylesheetWalker
from unused_css.model.report import StylesheetUsageReport, TransmissionEnvelope

logger = logging.getLogger(__name__)

# Body class tokens that describe what kind of page this is.
_POST_TYPE_RE = re.compile(
    r"^(rtl|home|blog|privacy-policy|archive|date|search(-[\w-]+)?|paged|attachment"
    r"|error404|[\w-]+-template|single(-[\w-]+)?|page(-[\w-]+)?"
    r"|post-type-archive(-[\w-]+)?|author(-[\w-]+)?|category(-[\w-]+)?"
    r"|tag(-[\w-]+)?|tax(-[\w-]+)?|term(-[\w-]+)?)$"
)
_POST_ID_RE = re.compile(r"^(?:postid|page-id)-(.+)$")


def post_types_from_classes(classes: Sequence[str]) -> tuple[str, ...]:
    return tuple(cls for cls in classes if _POST_TYPE_RE.match(cls))


def post_id_from_classes(classes: Sequence[str]) -> str | None:
    for cls in classes:
        match = _POST_ID_RE.match(cls)
        if match:
            return match.group(1)
    return None


def calculate_reduction(original_length: int, filtered_length: int) -> float:
    """Percentage of CSS bytes removed; 0 when nothing was measured."""
    if original_length == 0:
        return 0.0
    return (original_length - filtered_length) / original_length * 100


class EnvelopeSink(Protocol):
    def send(self, envelope: TransmissionEnvelope) -> object: ...


class UsageCollector:
    """Collect the used CSS of every eligible stylesheet on a page, once."""

    def __init__(
        self,
        document: DocumentAdapter,
        *,
        include_patterns: Sequence[re.Pattern[str]] = (),
        cache_directory: str = "acd-unused-css",
        transmitter: EnvelopeSink | None = None,
        log_warnings: bool = True,
    ) -> None:
        self._document = document
        self._include_patterns = tuple(include_patterns)
        self._cache_directory = cache_directory
        self._transmitter = transmitter
        self._log_warnings = log_warnings
        self._report: StylesheetUsageReport | None = None
        self.has_collected = False
        self.envelope: TransmissionEnvelope | None = None
        self.reduction = 0.0

    def should_process_sheet(self, handle: StylesheetHandle) -> bool:
        if not handle.href:
            return False
        try:
            parsed = urlparse(handle.href)
        except ValueError as exc:
            self._warn("Error processing stylesheet %r: %s", handle.href, exc)
            return False
        return (
            parsed.netloc == self._document.host
            and self._cache_directory not in parsed.path
            and not handle.processed
        )

    def collect(self) -> StylesheetUsageReport:
        """Walk every eligible stylesheet and transmit the result.

        Only the first call does any work; later calls return the first report.
        """
        if self.has_collected:
            return self._report or StylesheetUsageReport()
        self.has_collected = True

        walker = StylesheetWalker(
            self._document, self._include_patterns, log_warnings=self._log_warnings
        )
        sheets: dict[str, str] = {}
        for handle in self._document.list_stylesheets():
            if not self.should_process_sheet(handle):
                continue
            assert handle.href is not None
            css = walker.walk(handle.sheet, href=handle.href)
            # Unreadable sheets stay out of the report so their links are kept.
            if css is None:
                continue
            # Processed hrefs are reported even when nothing survived.
            sheets[handle.href] = sheets.get(handle.href, "") + css

        self._report = StylesheetUsageReport(sheets)
        self.reduction = calculate_reduction(walker.original_length, walker.filtered_length)
        logger.info(
            "Collected %d stylesheet(s) from %s, reduction %.2f%%",
            len(sheets), self._document.url, self.reduction,
        )

        if self._report:
            self.envelope = self.build_envelope(self._report)
            if self._transmitter is not None:
                self._transmitter.send(self.envelope)
        return self._report

    def build_envelope(self, report: StylesheetUsageReport) -> TransmissionEnvelope:
        classes = self._document.body_classes()
        return TransmissionEnvelope(
            css=report,
            url=self._document.url,
            post_id=post_id_from_classes(classes),
            post_types=post_types_from_classes(classes),
            reduction=self.reduction,
        )

    def _warn(self, msg: str, *args: object) -> None:
        level = logging.WARNING if self._log_warnings else logging.DEBUG
        logger.log(level, msg, *args)
