"""In-page usage detector: match selectors against a document and rebuild the used CSS."""
from unused_css.detector.collector import UsageCollector
from unused_css.detector.dom import DocumentAdapter, StylesheetHandle
from unused_css.detector.matcher import SelectorMatcher
from unused_css.detector.scheduler import CollectionScheduler, SchedulerState, ThreadingHost
from unused_css.detector.soup import SoupDocument
from unused_css.detector.transport import Transmitter, decode_payload, encode_payload
from unused_css.detector.walker import StylesheetWalker

__all__ = [
    "CollectionScheduler",
    "DocumentAdapter",
    "SchedulerState",
    "SelectorMatcher",
    "SoupDocument",
    "StylesheetHandle",
    "StylesheetWalker",
    "ThreadingHost",
    "Transmitter",
    "UsageCollector",
    "decode_payload",
    "encode_payload",
]
