"""
Tests for inline content normalization.
"""

import pytest

from notequill.models.block import InlineRun
from notequill.parser.inline_parser import extract_styles, normalize_inline_content, runs_text


class TestExtractStyles:
    """Test cases for style extraction."""

    def test_list_of_tags(self):
        assert extract_styles(["bold", "italic"]) == {"bold", "italic"}

    def test_map_keeps_truthy_keys_only(self):
        assert extract_styles({"bold": True, "italic": False, "code": 1}) == {"bold", "code"}

    def test_map_excludes_color_entries(self):
        styles = extract_styles({"bold": True, "textColor": "red", "backgroundColor": "yellow"})
        assert styles == {"bold"}

    @pytest.mark.parametrize("raw", [None, "bold", 3])
    def test_other_shapes_give_no_styles(self, raw):
        assert extract_styles(raw) == set()


class TestNormalizeInlineContent:
    """Test cases for normalize_inline_content."""

    @pytest.mark.parametrize("content", [None, "plain", {"text": "x"}, 42])
    def test_non_list_input_is_empty(self, content):
        assert normalize_inline_content(content) == []

    def test_styles_as_list_and_map_are_equivalent(self):
        as_list = normalize_inline_content([{"text": "Hi", "styles": ["bold"]}])
        as_map = normalize_inline_content([{"text": "Hi", "styles": {"bold": True}}])
        assert as_list[0].styles == as_map[0].styles == frozenset({"bold"})

    def test_href_preferred_over_url(self):
        runs = normalize_inline_content([{"text": "a", "href": "https://a.test", "url": "https://b.test"}])
        assert runs[0].href == "https://a.test"

    def test_url_used_when_href_missing(self):
        runs = normalize_inline_content([{"text": "a", "url": "https://b.test"}])
        assert runs[0].href == "https://b.test"
        assert runs[0].is_underlined

    def test_link_item_flattens_nested_runs(self):
        content = [
            {"type": "text", "text": "see "},
            {
                "type": "link",
                "href": "https://docs.test/page",
                "content": [
                    {"type": "text", "text": "the ", "styles": {}},
                    {"type": "text", "text": "docs", "styles": {"bold": True}},
                ],
            },
        ]
        runs = normalize_inline_content(content)
        assert [run.text for run in runs] == ["see ", "the ", "docs"]
        assert runs[0].href is None
        assert runs[1].href == runs[2].href == "https://docs.test/page"
        assert runs[2].is_bold

    def test_colors_read_from_style_map(self):
        runs = normalize_inline_content([
            {"text": "c", "styles": {"textColor": "red", "backgroundColor": "yellow"}},
        ])
        assert runs[0].text_color is not None
        assert runs[0].background_color is not None

    def test_default_color_means_no_color(self):
        runs = normalize_inline_content([{"text": "c", "styles": {"textColor": "default"}}])
        assert runs[0].text_color is None

    def test_string_items_and_empty_items(self):
        runs = normalize_inline_content(["one", "", {"text": ""}, {"styles": ["bold"]}, 5, {"text": "two"}])
        assert [run.text for run in runs] == ["one", "two"]

    def test_legacy_type_folded_into_styles(self):
        runs = normalize_inline_content([{"type": "code", "text": "x = 1"}])
        assert runs[0].is_code

    def test_strike_aliases(self):
        runs = normalize_inline_content([
            {"text": "a", "styles": ["strike"]},
            {"text": "b", "styles": {"strikethrough": True}},
        ])
        assert all(run.is_strike for run in runs)

    def test_text_preserved_in_order(self):
        content = [
            {"text": "Hello ", "styles": ["bold"]},
            {"text": "big ", "styles": {"italic": True, "code": True}},
            {"text": "world", "href": "https://w.test"},
        ]
        assert runs_text(normalize_inline_content(content)) == "Hello big world"


def test_inline_run_style_helpers():
    run = InlineRun(text="x", styles=frozenset({"italics", "underline"}))
    assert run.is_italic
    assert run.is_underlined
    assert not run.is_bold
