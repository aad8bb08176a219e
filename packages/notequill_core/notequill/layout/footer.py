"""
Running page footer.

Draws the document title and the 1-based page number, centered below the
content area, on every page as it is finished.
"""

from typing import Optional
import logging

from reportlab.pdfgen.canvas import Canvas

from ..engine.geometry import PageGeometry
from ..utils.color_utils import to_reportlab_color

logger = logging.getLogger(__name__)


class PageFooter:
    """
    Footer drawn at the bottom of every page.

    The canvas graphics state is saved and restored around drawing, so body
    layout never sees the footer's font or color.
    """

    def __init__(self, title: str, geometry: PageGeometry, font_name: str = "Helvetica",
                 font_size: float = 9.0, color: str = "#6b7280",
                 template: str = "{title} · Page {page}"):
        """
        Initialize footer.

        Args:
            title: Document title shown on every page
            geometry: Page geometry used for positioning
            font_name: Footer font
            font_size: Footer font size
            color: Footer text color
            template: Format string with ``title`` and ``page`` fields
        """
        self.title = title
        self.geometry = geometry
        self.font_name = font_name
        self.font_size = font_size
        self.color = color
        self.template = template

    def baseline_y(self) -> float:
        """Canvas y of the footer baseline, centered in the bottom margin."""
        bottom_margin = self.geometry.margins.bottom
        return max(bottom_margin / 2.0 - self.font_size / 3.0, 4.0)

    def draw(self, canvas: Canvas, page_number: int, title: Optional[str] = None) -> None:
        """
        Draw the footer for one page.

        Args:
            canvas: ReportLab canvas positioned on the page
            page_number: 1-based page number
            title: Optional title override
        """
        text = self.template.format(title=title if title is not None else self.title, page=page_number)
        canvas.saveState()
        try:
            canvas.setFont(self.font_name, self.font_size)
            canvas.setFillColor(to_reportlab_color(self.color))
            canvas.drawCentredString(self.geometry.size.width / 2.0, self.baseline_y(), text)
        finally:
            canvas.restoreState()
        logger.debug(f"Footer drawn on page {page_number}")

    __call__ = draw
