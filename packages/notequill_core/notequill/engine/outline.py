"""
Headings, table of contents and PDF outline.

The export runs three explicit passes:

1. collect_headings() scans the tree and builds provisional references (the
   TOC text needs no page numbers);
2. the layout engine draws the body and stamps each reference with the page
   it actually landed on;
3. attach_outline() adds the bookmark tree from the recorded anchors.

Anchors are allocated in document order by both passes, so a TOC entry and
the heading it points to always share a destination name.
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Sequence, Tuple

from reportlab.pdfgen.canvas import Canvas

from ..models.block import Block, HeadingReference

logger = logging.getLogger(__name__)

TITLE_ANCHOR = "document-title"


def heading_anchor(index: int) -> str:
    """Named destination of the index-th heading (0-based, document order)."""
    return f"heading-{index + 1}"


def iter_rendered_blocks(blocks: Sequence[Block], max_depth: int, depth: int = 0) -> Iterator[Tuple[Block, int]]:
    """

    Yields (block, depth) in the order the layout engine draws them.

    Collapsed toggles, page breaks and tables do not contribute children,
    and nothing deeper than max_depth is visited.

    """
    for block in blocks:
        yield block, depth
        children = block.renderable_children
        if children and depth + 1 < max_depth:
            yield from iter_rendered_blocks(children, max_depth, depth + 1)


def collect_headings(blocks: Sequence[Block], max_depth: int = 32) -> List[HeadingReference]:
    """
    Pass 1: structural scan for the table of contents.

    Args:
        blocks: Top-level blocks
        max_depth: Nesting limit shared with the layout engine

    Returns:
        Provisional HeadingReference list (page_number unset)
    """
    headings: List[HeadingReference] = []
    for block, _depth in iter_rendered_blocks(blocks, max_depth):
        level = block.heading_level
        if level is None:
            continue
        headings.append(
            HeadingReference(
                text=block.text.strip(),
                level=level,
                page_anchor=heading_anchor(len(headings)),
            )
        )
    logger.debug(f"Heading scan found {len(headings)} headings")
    return headings


def bind_unplaced(canvas: Canvas, headings: Sequence[HeadingReference]) -> int:
    """
    Bind destinations of headings that were never drawn to the current page.

    The TOC links to every provisional anchor, and a PDF cannot reference an
    undefined destination.

    Returns:
        Number of anchors bound
    """
    bound = 0
    for heading in headings:
        if not heading.is_placed:
            canvas.bookmarkPage(heading.page_anchor)
            bound += 1
    if bound:
        logger.warning(f"{bound} headings were not drawn; their links point to the last page")
    return bound


def attach_outline(canvas: Canvas, title: str, headings: Sequence[HeadingReference]) -> int:
    """
    Pass 3: add outline entries nested under a root entry for the title.

    Args:
        canvas: Canvas whose heading destinations are all defined
        title: Document title for the root entry
        headings: References recorded by the layout engine

    Returns:
        Number of heading entries added
    """
    canvas.addOutlineEntry(title or "Document", TITLE_ANCHOR, level=0, closed=False)
    previous_level = 0
    for heading in headings:
        # outline levels may only deepen one step at a time
        level = max(1, min(heading.level, previous_level + 1))
        canvas.addOutlineEntry(heading.text or "Untitled", heading.page_anchor, level=level, closed=False)
        previous_level = level
    canvas.showOutline()
    return len(headings)
