"""Explicit drawing position for the layout engine."""

from __future__ import annotations

from dataclasses import dataclass

from ..exceptions import LayoutError


@dataclass
class LayoutCursor:
    """
    Current drawing position.

    ``y`` is the top-down distance from the page's top edge; ``page_index`` is
    zero-based. The cursor only changes through the methods below.
    """

    x: float
    y: float
    page_index: int = 0

    @property
    def page_number(self) -> int:
        return self.page_index + 1

    def advance(self, dy: float) -> None:
        """Move down by dy points."""
        if dy < 0:
            raise LayoutError("cursor can only advance downwards", f"dy={dy}")
        self.y += dy

    def next_page(self, x: float, top: float) -> None:
        """Move to the top of the next page."""
        self.page_index += 1
        self.x = x
        self.y = top
