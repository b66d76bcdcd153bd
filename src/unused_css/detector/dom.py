"""Capability interface over a host document and its stylesheets."""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

# Attribute the rewrite engine adds to links it has already recorded in stats mode.
PROCESSED_ATTRIBUTE = "data-ucss-processed"


@dataclass(frozen=True)
class StylesheetHandle:
    """A stylesheet attached to the document.

    ``sheet`` is a cssutils ``CSSStyleSheet`` (or ``None`` when the sheet could
    not be loaded); ``owner_attrs`` are the attributes of the owning
    ``<link>``/``<style>`` element.
    """

    href: str | None
    sheet: Any = None
    owner_attrs: Mapping[str, str] = field(default_factory=dict, hash=False)

    @property
    def processed(self) -> bool:
        return self.owner_attrs.get(PROCESSED_ATTRIBUTE) == "true"


class DocumentAdapter(Protocol):
    """What the detector needs from the live page."""

    @property
    def url(self) -> str: ...

    @property
    def host(self) -> str: ...

    def body_classes(self) -> list[str]:
        """Class tokens on the document body."""
        ...

    def list_stylesheets(self) -> Sequence[StylesheetHandle]:
        """Stylesheets attached to the document, in document order."""
        ...

    def list_rules(self, sheet: Any) -> Sequence[Any]:
        """Rules of *sheet*.

        Raises :class:`~unused_css.errors.StylesheetAccessError` when the rules
        cannot be read.
        """
        ...

    def is_valid_selector(self, selector: str) -> bool: ...

    def query_matching_elements(self, selector: str) -> Sequence[Any]:
        """Elements matching *selector*, ignoring any pseudo-elements in it.

        Raises :class:`~unused_css.errors.SelectorError` for selectors the
        engine cannot evaluate.
        """
        ...

    def computed_style_of(self, element: Any, pseudo_element: str | None = None) -> Mapping[str, str]:
        """Computed ``content`` and ``display`` of *element* (or its pseudo-element)."""
        ...
