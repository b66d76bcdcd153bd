"""Decide whether a selector is exercised by the current document."""

from __future__ import annotations

import logging
import re

from unused_css.detector.dom import DocumentAdapter

logger = logging.getLogger(__name__)

_NEGATION_RE = re.compile(r":not\([^)]+\)")
_TRAILING_COMMA_RE = re.compile(r",\s*$")
# Longest alternatives first so ":focus-within" is not cut down to "-within".
_DYNAMIC_PSEUDO_RE = re.compile(
    r":(?:focus-within|focus-visible|hover|active|focus|visited)(?![\w-])"
)
_PSEUDO_ELEMENT_RE = re.compile(r"(?:::[\w-]+|:(?:before|after|first-line|first-letter))$", re.IGNORECASE)

# Computed content value meaning "generates no box".
_NO_CONTENT = "none"


def clean_selector(selector: str) -> str:
    """Drop negations and interaction-state pseudo-classes from *selector*."""
    cleaned = _NEGATION_RE.sub("", selector)
    cleaned = _TRAILING_COMMA_RE.sub("", cleaned)
    return _DYNAMIC_PSEUDO_RE.sub("", cleaned)


def split_pseudo_element(selector: str) -> tuple[str, str | None]:
    """Split *selector* into its element-matchable base and trailing pseudo-element."""
    match = _PSEUDO_ELEMENT_RE.search(selector)
    if match is None:
        return selector.strip(), None
    return selector[:match.start()].strip(), match.group(0)


class SelectorMatcher:
    """Structural selector matching against a :class:`DocumentAdapter`.

    Interaction states (``:hover``, ``:focus`` and friends) and ``:not()``
    groups are stripped before querying, so a rule counts as used when the
    element it would style exists. Rules targeting a pseudo-element count only
    when some matching element actually renders that pseudo-element.

    Never raises: unparseable selectors and engine errors are logged and the
    selector is reported as unused.
    """

    def __init__(self, document: DocumentAdapter, *, log_warnings: bool = True) -> None:
        self._document = document
        self._log_warnings = log_warnings

    def matches(self, selector: str) -> bool:
        try:
            if selector.strip() == ":root":
                return True

            if not self._document.is_valid_selector(selector):
                self._warn("Invalid selector: %r", selector)
                return False

            base, pseudo_element = split_pseudo_element(clean_selector(selector))
            elements = self._document.query_matching_elements(base or "*")
            if not elements:
                return False
            if pseudo_element is None:
                return True

            for element in elements:
                style = self._document.computed_style_of(element, pseudo_element)
                content = style.get("content", "none").strip()
                display = style.get("display", "inline").strip()
                if content != _NO_CONTENT and display != "none":
                    return True
            return False
        except Exception as exc:
            self._warn("Error querying selector %r: %s", selector, exc)
            return False

    def _warn(self, msg: str, *args: object) -> None:
        level = logging.WARNING if self._log_warnings else logging.DEBUG
        logger.log(level, msg, *args)
