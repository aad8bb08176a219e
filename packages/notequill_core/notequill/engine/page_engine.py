"""
Page flow over a ReportLab canvas.

Owns the LayoutCursor and the canvas page lifecycle: it decides when a new
page is needed, runs page-end hooks (footers) before a page is finished, and
converts layout coordinates to canvas coordinates.
"""

from __future__ import annotations

import logging
from typing import Callable, List

from reportlab.pdfgen.canvas import Canvas

from .geometry import PageGeometry
from .layout_cursor import LayoutCursor

logger = logging.getLogger(__name__)

PageHook = Callable[[Canvas, int], None]


class PageFlow:
    """Cursor plus page lifecycle for one export."""

    def __init__(self, canvas: Canvas, geometry: PageGeometry):
        self.canvas = canvas
        self.geometry = geometry
        self.cursor = LayoutCursor(x=geometry.content_left, y=geometry.content_top)
        self._page_end_hooks: List[PageHook] = []
        self._page_start_hooks: List[PageHook] = []
        self._finished = False

    def add_page_end_hook(self, hook: PageHook) -> None:
        """Register a callable run on every page just before it is finished."""
        self._page_end_hooks.append(hook)

    def remove_page_end_hook(self, hook: PageHook) -> None:
        if hook in self._page_end_hooks:
            self._page_end_hooks.remove(hook)

    def add_page_start_hook(self, hook: PageHook) -> None:
        """Register a callable run after every new page has started."""
        self._page_start_hooks.append(hook)

    @property
    def page_number(self) -> int:
        return self.cursor.page_number

    @property
    def page_count(self) -> int:
        return self.cursor.page_index + 1

    @property
    def at_page_top(self) -> bool:
        return self.cursor.y <= self.geometry.content_top + 0.01

    def remaining_height(self) -> float:
        """Vertical space between the cursor and the bottom margin."""
        return self.geometry.content_bottom - self.cursor.y

    def fits(self, height: float) -> bool:
        return height <= self.remaining_height() + 0.01

    def to_canvas_y(self, y: float) -> float:
        return self.geometry.to_canvas_y(y)

    def _run_page_end_hooks(self) -> None:
        for hook in self._page_end_hooks:
            hook(self.canvas, self.page_number)

    def new_page(self) -> None:
        """Finish the current page and move the cursor to the next one."""
        self._run_page_end_hooks()
        self.canvas.showPage()
        self.cursor.next_page(self.geometry.content_left, self.geometry.content_top)
        logger.debug(f"Started page {self.page_number}")
        for hook in self._page_start_hooks:
            hook(self.canvas, self.page_number)

    def ensure_space(self, height: float) -> bool:
        """
        Start a new page unless height fits below the cursor.

        A block taller than a whole page is drawn from the top of a fresh page
        instead of triggering endless breaks.

        Args:
            height: Required vertical space

        Returns:
            True if a page break happened
        """
        if self.fits(height) or self.at_page_top:
            return False
        self.new_page()
        return True

    def finish(self) -> None:
        """Run page-end hooks for the last page; idempotent."""
        if self._finished:
            return
        self._run_page_end_hooks()
        self._finished = True
