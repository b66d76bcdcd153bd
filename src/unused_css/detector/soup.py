"""DocumentAdapter over an HTML snapshot: BeautifulSoup for the DOM, cssutils for the CSSOM."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator
from typing import Any
from urllib.parse import urljoin, urlparse

import cssutils
import httpx
import soupsieve as sv
from bs4 import BeautifulSoup, Tag
from cssutils.css import CSSRule

from unused_css.detector.dom import StylesheetHandle
from unused_css.errors import SelectorError, StylesheetAccessError

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], "str | None"]

# Pseudo-elements soupsieve cannot parse but browsers accept in selectors.
_PSEUDO_ELEMENT_RE = re.compile(
    r"::[\w-]+(?:\([^)]*\))?|:(?:before|after|first-line|first-letter)(?![\w-])",
    re.IGNORECASE,
)
_LEGACY_PSEUDO_ELEMENTS = {"before", "after", "first-line", "first-letter"}
# Characters that end a compound selector, so a stripped pseudo-element needs "*".
_COMPOUND_END_RE = re.compile(r"[\w\-\]\)\*]$")


def strip_pseudo_elements(selector: str) -> str:
    """Remove pseudo-elements from *selector*, keeping it syntactically complete."""

    def _replace(match: re.Match[str]) -> str:
        before = selector[:match.start()]
        return "" if _COMPOUND_END_RE.search(before) else "*"

    return _PSEUDO_ELEMENT_RE.sub(_replace, selector)


class HttpxFetcher:
    """Fetch stylesheet text with an httpx client; failures are logged and yield ``None``."""

    def __init__(self, client: httpx.Client) -> None:
        self._client = client

    def __call__(self, url: str) -> str | None:
        try:
            response = self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Could not fetch stylesheet %s: %s", url, exc)
            return None
        return response.text


class SoupDocument:
    """A parsed page plus the stylesheets it links, queried like a live DOM.

    Linked stylesheets (and their ``@import``s) are loaded through *fetcher*
    the first time the document's stylesheets are listed. Computed styles are
    resolved by cascading every loaded rule that applies to an element,
    ordered by importance, specificity and source order; media conditions are
    not evaluated.
    """

    def __init__(self, html: str, url: str, *, fetcher: Fetcher | None = None) -> None:
        self._url = url
        self._host = urlparse(url).netloc
        self._soup = BeautifulSoup(html, "html.parser")
        self._fetcher = fetcher
        self._handles: list[StylesheetHandle] | None = None
        self._parser = cssutils.CSSParser(
            loglevel=logging.CRITICAL,
            fetcher=self._fetch_for_cssutils,
            parseComments=False,
            validate=False,
        )

    @classmethod
    def from_url(cls, url: str, client: httpx.Client) -> SoupDocument:
        """Download *url* and return a document whose sheets load through *client*."""
        response = client.get(url)
        response.raise_for_status()
        return cls(response.text, str(response.url), fetcher=HttpxFetcher(client))

    @property
    def url(self) -> str:
        return self._url

    @property
    def host(self) -> str:
        return self._host

    def body_classes(self) -> list[str]:
        body = self._soup.body
        if body is None:
            return []
        classes = body.get("class") or []
        return list(classes) if not isinstance(classes, str) else classes.split()

    def list_stylesheets(self) -> list[StylesheetHandle]:
        if self._handles is None:
            self._handles = list(self._load_stylesheets())
        return self._handles

    def list_rules(self, sheet: Any) -> list[Any]:
        if sheet is None:
            raise StylesheetAccessError("Stylesheet was not loaded")
        href = getattr(sheet, "href", None)
        if href and urlparse(href).netloc not in ("", self._host):
            raise StylesheetAccessError("Cross-origin stylesheet rules are not readable", href=href)
        return list(sheet.cssRules)

    def is_valid_selector(self, selector: str) -> bool:
        try:
            sv.compile(strip_pseudo_elements(selector))
        except (sv.SelectorSyntaxError, NotImplementedError):
            return False
        return True

    def query_matching_elements(self, selector: str) -> list[Tag]:
        try:
            return self._soup.select(strip_pseudo_elements(selector))
        except (sv.SelectorSyntaxError, NotImplementedError) as exc:
            raise SelectorError(str(exc), selector=selector, cause=exc) from exc

    def computed_style_of(self, element: Tag, pseudo_element: str | None = None) -> dict[str, str]:
        pseudo = pseudo_element.lstrip(":").lower() if pseudo_element else None
        candidates: list[tuple[bool, tuple[int, ...], int, str, str]] = []
        order = 0
        for handle in self.list_stylesheets():
            for rule in self._iter_style_rules(handle.sheet):
                order += 1
                for selector in rule.selectorList:
                    base = self._base_for_pseudo(selector.selectorText, pseudo)
                    if base is None or not self._element_matches(base, element):
                        continue
                    for prop in rule.style.getProperties():
                        if prop.name in ("content", "display"):
                            candidates.append(
                                (prop.priority == "important", selector.specificity, order, prop.name, prop.value)
                            )

        if pseudo is None and element.get("style"):
            order += 1
            inline = cssutils.parseStyle(element["style"])
            for prop in inline.getProperties():
                if prop.name in ("content", "display"):
                    candidates.append((prop.priority == "important", (1, 0, 0, 0), order, prop.name, prop.value))

        style = {"content": "normal", "display": "inline"}
        for _important, _specificity, _order, name, value in sorted(candidates, key=lambda c: c[:3]):
            style[name] = value
        if pseudo in ("before", "after") and style["content"] == "normal":
            style["content"] = "none"
        return style

    # --- internals -------------------------------------------------------------

    def _fetch_for_cssutils(self, url: str) -> tuple[str | None, str] | None:
        if self._fetcher is None:
            return None
        text = self._fetcher(url)
        if text is None:
            return None
        return None, text

    def _load_stylesheets(self) -> Iterator[StylesheetHandle]:
        for tag in self._soup.find_all(["link", "style"]):
            attrs = {k: " ".join(v) if isinstance(v, list) else v for k, v in tag.attrs.items()}
            if tag.name == "style":
                sheet = self._parser.parseString(tag.string or "", href=self._url)
                yield StylesheetHandle(href=None, sheet=sheet, owner_attrs=attrs)
                continue

            rel = [r.lower() for r in (tag.get("rel") or [])]
            href = tag.get("href")
            if "stylesheet" not in rel or not href:
                continue
            absolute = urljoin(self._url, href)
            text = self._fetcher(absolute) if self._fetcher else None
            sheet = self._parser.parseString(text, href=absolute) if text is not None else None
            yield StylesheetHandle(href=absolute, sheet=sheet, owner_attrs=attrs)

    def _iter_style_rules(self, sheet: Any) -> Iterator[Any]:
        if sheet is None:
            return
        for rule in sheet.cssRules:
            if rule.type == CSSRule.STYLE_RULE:
                yield rule
            elif rule.type == CSSRule.MEDIA_RULE:
                yield from (r for r in rule.cssRules if r.type == CSSRule.STYLE_RULE)
            elif rule.type == CSSRule.IMPORT_RULE:
                yield from self._iter_style_rules(rule.styleSheet)

    @staticmethod
    def _base_for_pseudo(selector: str, pseudo: str | None) -> str | None:
        """Return the element part of *selector* if it targets *pseudo*, else ``None``."""
        match = re.search(r"(::?)([\w-]+)$", selector)
        is_pseudo_element = bool(match) and (
            match.group(1) == "::" or match.group(2).lower() in _LEGACY_PSEUDO_ELEMENTS
        )
        if pseudo is None:
            return None if is_pseudo_element else selector
        if not is_pseudo_element or match.group(2).lower() != pseudo:
            return None
        return selector[:match.start()].strip() or "*"

    @staticmethod
    def _element_matches(selector: str, element: Tag) -> bool:
        try:
            return sv.match(selector, element)
        except (sv.SelectorSyntaxError, NotImplementedError):
            return False
