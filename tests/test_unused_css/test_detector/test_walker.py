"""Tests for StylesheetWalker over real cssutils stylesheets."""
from __future__ import annotations

import re
from types import SimpleNamespace

import cssutils
import pytest

from unused_css.detector.soup import SoupDocument
from unused_css.detector.walker import (
    StylesheetWalker,
    normalise_family,
    re_escape_content,
    reconstruct_rule,
)

PAGE_URL = "https://example.com/page/"
SHEET_URL = "https://example.com/style.css"


def _document(body: str, css: str, extra: dict[str, str] | None = None) -> SoupDocument:
    sheets = {SHEET_URL: css, **(extra or {})}
    html = f'<html><head><link rel="stylesheet" href="/style.css"></head><body>{body}</body></html>'
    return SoupDocument(html, PAGE_URL, fetcher=sheets.get)


def _walk(body: str, css: str, include: tuple[str, ...] = (), extra=None) -> tuple[str, StylesheetWalker]:
    doc = _document(body, css, extra)
    walker = StylesheetWalker(doc, [re.compile(p) for p in include])
    handle = doc.list_stylesheets()[0]
    return walker.walk(handle.sheet, href=handle.href), walker


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestReEscapeContent:
    def test_plain_text_unchanged(self):
        assert re_escape_content('"abc"') == '"abc"'

    def test_private_use_glyph_escaped(self):
        assert re_escape_content('"\ue001"') == '"\\e001"'

    def test_space_added_before_hex_digit(self):
        assert re_escape_content("\ue001a") == "\\e001 a"

    def test_no_space_before_non_hex(self):
        assert re_escape_content("\ue001z") == "\\e001z"

    def test_upper_range(self):
        assert re_escape_content("\uf8ff") == "\\f8ff"


class TestReconstructRule:
    def _rule(self, text: str, content: str):
        prop = SimpleNamespace(name="content", value=content)
        style = SimpleNamespace(getProperties=lambda all=False: [prop])
        return SimpleNamespace(cssText=text, style=style)

    def test_replaces_glyph_in_content(self):
        rule = self._rule('.i:before {\n    content: "\ue001"\n    }', '"\ue001"')
        assert reconstruct_rule(rule) == '.i:before {\n    content: "\\e001"\n    }'

    def test_rule_without_glyph_unchanged(self):
        rule = self._rule('.i:before {\n    content: "x"\n    }', '"x"')
        assert reconstruct_rule(rule) == rule.cssText

    def test_parsed_rule_glyph_escape_round_trips(self):
        rule = cssutils.parseString('.i:before { content: "\uf101" }').cssRules[0]
        out = reconstruct_rule(rule)
        assert "\uf101" not in out
        escape = re.search(r"\\([0-9a-fA-F]{1,6})", out)
        assert escape is not None
        assert chr(int(escape.group(1), 16)) == "\uf101"


class TestNormaliseFamily:
    @pytest.mark.parametrize("raw", ['"Icons"', "'Icons'", " Icons "])
    def test_quotes_and_spaces_removed(self, raw):
        assert normalise_family(raw) == "Icons"


# ---------------------------------------------------------------------------
# StylesheetWalker
# ---------------------------------------------------------------------------


class TestStyleRules:
    def test_keeps_used_and_drops_unused(self):
        out, _ = _walk(
            '<div class="used-rule"></div>',
            ".used-rule { color: red } .gone-rule { color: blue }",
        )
        assert ".used-rule" in out
        assert ".gone-rule" not in out

    def test_lengths_track_original_and_filtered(self):
        _, walker = _walk(
            '<div class="used-rule"></div>',
            ".used-rule { color: red } .gone-rule { color: blue }",
        )
        assert walker.original_length > walker.filtered_length > 0

    def test_include_pattern_forces_rule(self):
        out, _ = _walk("<p></p>", ".dropdown-open { display: block }", include=(r"\.dropdown",))
        assert ".dropdown-open" in out

    def test_hover_rule_kept_for_present_element(self):
        out, _ = _walk('<a class="btn-link"></a>', ".btn-link:hover { color: red }")
        assert ".btn-link:hover" in out

    def test_selector_list_tested_whole(self):
        out, _ = _walk('<div class="alpha-one"></div>', ".alpha-one, .beta-two { color: red }")
        assert ".beta-two" in out


class TestPseudoElementRules:
    def test_selector_list_with_pseudo_element_on_each_branch(self):
        out, _ = _walk('<i class="icon-b"></i>', '.icon-a::before, .icon-b::before { content: "x" }')
        assert ".icon-b" in out

    def test_legacy_single_colon_selector_list(self):
        out, _ = _walk('<i class="icon-d"></i>', '.icon-c:before, .icon-d:before { content: "y" }')
        assert ".icon-d" in out

    def test_before_without_content_dropped(self):
        out, _ = _walk('<i class="icon-e"></i>', ".icon-e::before { color: red }")
        assert out == ""

    def test_pseudo_elements_without_content_property_kept(self):
        out, _ = _walk(
            '<input class="field"><p>Intro</p>',
            ".field::placeholder { color: grey } p::first-letter { font-size: 2em }",
        )
        assert ".field::placeholder" in out
        assert "p::first-letter" in out

    def test_pseudo_element_of_absent_element_dropped(self):
        out, _ = _walk("<p></p>", ".gone::placeholder { color: grey }")
        assert out == ""


class TestMediaRules:
    def test_used_rules_wrapped_in_media(self):
        out, _ = _walk(
            '<div class="media-used"></div>',
            "@media (max-width: 600px) { .media-used { color: red } .media-gone { color: blue } }",
        )
        assert out.startswith("@media")
        assert "max-width" in out
        assert ".media-used" in out
        assert ".media-gone" not in out

    def test_empty_media_omitted(self):
        out, _ = _walk("<p></p>", "@media print { .media-gone { color: blue } }")
        assert out == ""

    def test_media_rules_count_towards_lengths(self):
        _, walker = _walk("<p></p>", "@media print { .media-gone { color: blue } }")
        assert walker.original_length > 0
        assert walker.filtered_length == 0


class TestFontFaceRules:
    FONT = '@font-face { font-family: "Shop Icons"; src: url(icons.woff) } '

    def test_font_face_kept_when_family_used(self):
        out, _ = _walk(
            '<i class="icon-used"></i>',
            self.FONT + ".icon-used { font-family: 'Shop Icons', sans-serif }",
        )
        assert "@font-face" in out

    def test_font_face_dropped_when_family_unused(self):
        out, _ = _walk('<p class="plain-text"></p>', self.FONT + ".plain-text { font-family: serif }")
        assert "@font-face" not in out

    def test_family_referenced_inside_media_counts(self):
        out, _ = _walk(
            "<p></p>",
            self.FONT + "@media print { .print-only { font-family: 'Shop Icons' } }",
        )
        assert "@font-face" in out


class TestKeyframesRules:
    def test_keyframes_kept(self):
        out, _ = _walk("<p></p>", "@keyframes spin { from { opacity: 0 } to { opacity: 1 } }")
        assert "@keyframes spin" in out


class TestImportRules:
    def test_imported_rules_filtered_and_appended(self):
        out, _ = _walk(
            '<div class="from-import"></div>',
            '@import "more.css"; .own-gone { color: red }',
            extra={"https://example.com/more.css": ".from-import { color: red } .import-gone { color: blue }"},
        )
        assert ".from-import" in out
        assert ".import-gone" not in out
        assert ".own-gone" not in out

    def test_missing_import_keeps_parent_rules(self):
        out, _ = _walk('<div class="own"></div>', '@import "missing.css"; .own { color: red }')
        assert ".own" in out


class TestInaccessibleSheets:
    def test_unloaded_sheet_yields_none(self, caplog):
        doc = SoupDocument("<html></html>", PAGE_URL)
        assert StylesheetWalker(doc).walk(None, href=SHEET_URL) is None
        assert "Error processing stylesheet" in caplog.text
