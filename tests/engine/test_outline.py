"""
Tests for the heading scan and the PDF outline.
"""

from unittest.mock import Mock, call

from notequill.engine.outline import (
    TITLE_ANCHOR,
    attach_outline,
    bind_unplaced,
    collect_headings,
    heading_anchor,
)
from notequill.models.block import HeadingReference
from notequill.parser.block_parser import parse_blocks


def tree():
    return parse_blocks([
        {"type": "heading1", "content": "One"},
        {"type": "paragraph", "content": "text", "children": [
            {"type": "heading2", "content": "Nested"},
        ]},
        {"type": "toggleListItem", "content": "closed", "children": [
            {"type": "heading3", "content": "Hidden"},
        ]},
        {"type": "toggleListItem", "props": {"open": True}, "content": "open", "children": [
            {"type": "heading3", "content": "Visible"},
        ]},
    ])


class TestCollectHeadings:
    """Test cases for the structural heading scan."""

    def test_document_order_and_anchors(self):
        headings = collect_headings(tree())

        assert [(h.text, h.level) for h in headings] == [("One", 1), ("Nested", 2), ("Visible", 3)]
        assert [h.page_anchor for h in headings] == ["heading-1", "heading-2", "heading-3"]
        assert not any(h.is_placed for h in headings)

    def test_depth_limit(self):
        headings = collect_headings(tree(), max_depth=1)
        assert [h.text for h in headings] == ["One"]

    def test_anchor_names(self):
        assert heading_anchor(0) == "heading-1"


class TestAttachOutline:
    """Test cases for outline nesting."""

    def test_entries_nested_under_title(self):
        canvas = Mock()
        headings = [
            HeadingReference("A", 1, "heading-1", 2),
            HeadingReference("B", 3, "heading-2", 2),
            HeadingReference("C", 2, "heading-3", 3),
        ]

        assert attach_outline(canvas, "Doc", headings) == 3

        assert canvas.addOutlineEntry.call_args_list == [
            call("Doc", TITLE_ANCHOR, level=0, closed=False),
            call("A", "heading-1", level=1, closed=False),
            # level 3 directly under level 1 is clamped to 2
            call("B", "heading-2", level=2, closed=False),
            call("C", "heading-3", level=2, closed=False),
        ]
        canvas.showOutline.assert_called_once()

    def test_first_heading_never_deeper_than_one(self):
        canvas = Mock()
        attach_outline(canvas, "Doc", [HeadingReference("Deep", 3, "heading-1", 1)])
        assert canvas.addOutlineEntry.call_args_list[1] == call("Deep", "heading-1", level=1, closed=False)

    def test_bind_unplaced(self):
        canvas = Mock()
        headings = [HeadingReference("A", 1, "heading-1", 1), HeadingReference("B", 1, "heading-2")]

        assert bind_unplaced(canvas, headings) == 1
        canvas.bookmarkPage.assert_called_once_with("heading-2")
