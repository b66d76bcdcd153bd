"""Rebuild a stylesheet keeping only the rules the document exercises."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import Any

from cssutils.css import CSSRule

from unused_css.detector.dom import DocumentAdapter
from unused_css.detector.matcher import SelectorMatcher
from unused_css.errors import StylesheetAccessError

logger = logging.getLogger(__name__)

_PRIVATE_USE_RE = re.compile("[\ue000-\uf8ff]")
_HEX_OR_SPACE_RE = re.compile(r"[0-9a-fA-F \t\n]")
_KEYFRAMES_RE = re.compile(r"^\s*@(?:-[a-z]+-)?keyframes\b", re.IGNORECASE)


def re_escape_content(value: str) -> str:
    """Replace private-use glyphs (icon fonts) with CSS hex escapes."""

    def _escape(match: re.Match[str]) -> str:
        escaped = "\\" + format(ord(match.group(0)), "04x")
        following = value[match.end():match.end() + 1]
        # A hex digit or space right after the escape would be read as part of it.
        if following and _HEX_OR_SPACE_RE.match(following):
            escaped += " "
        return escaped

    return _PRIVATE_USE_RE.sub(_escape, value)


def reconstruct_rule(rule: Any) -> str:
    """Serialise *rule*, re-escaping private-use glyphs in ``content`` values."""
    text = rule.cssText
    for prop in rule.style.getProperties(all=True):
        if prop.name != "content":
            continue
        original = prop.value
        escaped = re_escape_content(original)
        if escaped != original:
            text = re.sub(
                r"(content\s*:\s*)" + re.escape(original),
                lambda m: m.group(1) + escaped,
                text,
            )
    return text


def normalise_family(value: str) -> str:
    return value.replace('"', "").replace("'", "").strip()


def is_keyframes_rule(rule: Any) -> bool:
    return rule.type == CSSRule.UNKNOWN_RULE and bool(_KEYFRAMES_RE.match(rule.cssText))


class StylesheetWalker:
    """Walk cssutils stylesheets and emit the rules worth keeping.

    One walker serves a whole collection run: ``original_length`` and
    ``filtered_length`` accumulate across every sheet walked so the collector
    can report the overall reduction.
    """

    def __init__(
        self,
        document: DocumentAdapter,
        include_patterns: Sequence[re.Pattern[str]] = (),
        *,
        matcher: SelectorMatcher | None = None,
        log_warnings: bool = True,
    ) -> None:
        self._document = document
        self._include_patterns = tuple(include_patterns)
        self._matcher = matcher or SelectorMatcher(document, log_warnings=log_warnings)
        self._log_warnings = log_warnings
        self.original_length = 0
        self.filtered_length = 0

    def should_include_selector(self, selector: str) -> bool:
        return any(p.search(selector) for p in self._include_patterns)

    def is_used(self, selector: str) -> bool:
        return self.should_include_selector(selector) or self._matcher.matches(selector)

    def walk(self, sheet: Any, href: str | None = None) -> str | None:
        """Return the reconstructed CSS text for *sheet* and its imports.

        Returns ``None`` when the sheet's rules cannot be read at all, so the
        caller can tell an unloaded sheet from one with no used rules.
        """
        label = href or getattr(sheet, "href", None) or "<inline>"
        try:
            rules = list(self._document.list_rules(sheet))
        except StylesheetAccessError as exc:
            self._warn("Error processing stylesheet %r: %s", label, exc)
            return None

        families = self._used_font_families(rules)

        parts: list[str] = []
        for rule in rules:
            try:
                parts.append(self._walk_rule(rule, families))
            except Exception as exc:
                self._warn(
                    "Error testing rule %r in %r: %s",
                    getattr(rule, "selectorText", rule.type), label, exc,
                )
        return "".join(parts)

    # --- internals -------------------------------------------------------------

    def _used_font_families(self, rules: Sequence[Any]) -> set[str]:
        families: set[str] = set()
        for rule in rules:
            if rule.type == CSSRule.MEDIA_RULE:
                inner = [r for r in rule.cssRules if r.type == CSSRule.STYLE_RULE]
            elif rule.type == CSSRule.STYLE_RULE:
                inner = [rule]
            else:
                continue
            for style_rule in inner:
                value = style_rule.style.getPropertyValue("font-family")
                for family in value.split(","):
                    family = normalise_family(family)
                    if family:
                        families.add(family)
        return families

    def _walk_rule(self, rule: Any, families: set[str]) -> str:
        if rule.type == CSSRule.IMPORT_RULE:
            imported = rule.styleSheet
            if imported is None:
                self._warn("Imported stylesheet %r could not be loaded", rule.href)
                return ""
            return self.walk(imported, href=rule.href) or ""

        if rule.type == CSSRule.MEDIA_RULE:
            inner = []
            for inner_rule in rule.cssRules:
                if inner_rule.type != CSSRule.STYLE_RULE:
                    continue
                try:
                    text = self._walk_style_rule(inner_rule)
                except Exception as exc:
                    self._warn("Error testing rule %r: %s", inner_rule.selectorText, exc)
                    continue
                if text:
                    inner.append(f"  {text}\n")
            if not inner:
                return ""
            return f"@media {rule.media.mediaText} {{\n{''.join(inner)}}}\n"

        if rule.type == CSSRule.FONT_FACE_RULE:
            family = normalise_family(rule.style.getPropertyValue("font-family"))
            if family and family in families:
                return rule.cssText + "\n"
            return ""

        if is_keyframes_rule(rule):
            return rule.cssText + "\n"

        if rule.type == CSSRule.STYLE_RULE:
            text = self._walk_style_rule(rule)
            return text + "\n" if text else ""

        return ""

    def _walk_style_rule(self, rule: Any) -> str:
        self.original_length += len(rule.cssText)
        if not self.is_used(rule.selectorText):
            return ""
        text = reconstruct_rule(rule)
        self.filtered_length += len(text)
        return text

    def _warn(self, msg: str, *args: object) -> None:
        level = logging.WARNING if self._log_warnings else logging.DEBUG
        logger.log(level, msg, *args)
