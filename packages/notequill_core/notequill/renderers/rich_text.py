"""
Rich-text rendering onto the page flow.

Lays out a fragment list with LineBreaker and draws each visual line as one
ReportLab text object: per-segment font and color changes, background
highlights sized to the wrapped segment, underline and strike rules, and
clickable link rectangles.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from reportlab.pdfgen.canvas import Canvas

from ..engine.line_breaker import LineBreaker, Segment, TextLine
from ..engine.page_engine import PageFlow
from ..engine.text_metrics import TextMetricsEngine, TextStyle
from ..models.block import InlineRun
from ..utils.color_utils import to_reportlab_color

logger = logging.getLogger(__name__)

DECORATION_WIDTH = 0.6


@dataclass
class RenderedText:
    """Outcome of one render() call."""

    line_count: int
    height: float
    start_page: int
    end_page: int
    text: str


class RichTextRenderer:
    """Draws styled fragments and advances the layout cursor."""

    def __init__(self, flow: PageFlow, metrics: TextMetricsEngine, defaults: TextStyle):
        self.flow = flow
        self.metrics = metrics
        self.defaults = defaults
        self.line_breaker = LineBreaker(metrics)

    @property
    def canvas(self) -> Canvas:
        return self.flow.canvas

    def layout(self, fragments: Sequence[InlineRun], width: float, style: Optional[TextStyle] = None) -> List[TextLine]:
        """Break fragments into lines without drawing."""
        return self.line_breaker.break_runs(fragments, width, style or self.defaults)

    def measure(self, fragments: Sequence[InlineRun], width: float, style: Optional[TextStyle] = None) -> float:
        """Height the fragments would occupy at the given width."""
        return sum(line.height for line in self.layout(fragments, width, style))

    def restore_defaults(self) -> None:
        """Reset font, size and colors so sibling blocks start clean."""
        c = self.canvas
        c.setFont(self.defaults.font_name, self.defaults.size)
        color = to_reportlab_color(self.defaults.color)
        c.setFillColor(color)
        c.setStrokeColor(color)

    def _line_origin(self, line: TextLine, x: float, width: float, align: str) -> float:
        if align == "center":
            return x + max(width - line.width, 0.0) / 2.0
        if align == "right":
            return x + max(width - line.width, 0.0)
        return x

    def _draw_backgrounds(self, line: TextLine, x: float, top: float) -> None:
        c = self.canvas
        for segment in line.segments:
            if not segment.style.background or not segment.width:
                continue
            c.saveState()
            c.setFillColor(to_reportlab_color(segment.style.background))
            c.rect(
                x + segment.x_offset,
                self.flow.to_canvas_y(top + line.height - line.line_gap / 2.0),
                segment.width,
                line.height - line.line_gap / 2.0,
                stroke=0,
                fill=1,
            )
            c.restoreState()

    def _draw_decorations(self, segment: Segment, x: float, baseline: float, top: float, line: TextLine) -> None:
        c = self.canvas
        style = segment.style
        seg_x = x + segment.x_offset
        if style.underline or style.strike:
            c.saveState()
            c.setStrokeColor(to_reportlab_color(style.color))
            c.setLineWidth(DECORATION_WIDTH)
            if style.underline:
                y = self.flow.to_canvas_y(baseline + 1.5)
                c.line(seg_x, y, seg_x + segment.width, y)
            if style.strike:
                y = self.flow.to_canvas_y(baseline - style.size * 0.3)
                c.line(seg_x, y, seg_x + segment.width, y)
            c.restoreState()
        if style.href:
            c.linkURL(
                style.href,
                (
                    seg_x,
                    self.flow.to_canvas_y(top + line.height),
                    seg_x + segment.width,
                    self.flow.to_canvas_y(top),
                ),
                relative=0,
                thickness=0,
            )

    def draw_line(self, line: TextLine, x: float, top: float, width: float, align: str = "left") -> None:
        """Draw one laid-out line with its top edge at layout y ``top``."""
        c = self.canvas
        origin = self._line_origin(line, x, width, align)
        if not line.segments:
            c.setFont(self.defaults.font_name, line.size or self.defaults.size)
            c.drawString(origin, self.flow.to_canvas_y(top + line.size), "")
            return
        ascent = max(self.metrics.ascent(seg.style.font_name, seg.style.size) for seg in line.segments)
        baseline = top + ascent
        self._draw_backgrounds(line, origin, top)

        text_object = c.beginText()
        text_object.setTextOrigin(origin, self.flow.to_canvas_y(baseline))
        for segment in line.segments:
            text_object.setFont(segment.style.font_name, segment.style.size)
            text_object.setFillColor(to_reportlab_color(segment.style.color))
            text_object.textOut(segment.text)
        c.drawText(text_object)

        for segment in line.segments:
            self._draw_decorations(segment, origin, baseline, top, line)

    def draw_lines(self, lines: Sequence[TextLine], x: float, top: float, width: float, align: str = "left") -> float:
        """
        Draw lines at a fixed position without pagination.

        Used for boxed content (callouts, table cells) whose room has already
        been reserved.

        Returns:
            Total height drawn
        """
        y = top
        for line in lines:
            self.draw_line(line, x, y, width, align)
            y += line.height
        self.restore_defaults()
        return y - top

    def render(
        self,
        fragments: Sequence[InlineRun],
        x: Optional[float] = None,
        width: Optional[float] = None,
        style: Optional[TextStyle] = None,
    ) -> RenderedText:
        """
        Render fragments at the cursor, breaking pages as lines overflow.

        Args:
            fragments: Inline runs of one paragraph
            x: Left edge (defaults to the cursor x)
            width: Available width (defaults to the rest of the content width)
            style: Base style (defaults to the renderer defaults)

        Returns:
            RenderedText summary; the cursor sits below the last line
        """
        style = style or self.defaults
        cursor = self.flow.cursor
        if x is None:
            x = cursor.x
        if width is None:
            width = self.flow.geometry.content_right - x
        lines = self.layout(fragments, width, style)
        start_page = self.flow.page_number
        height = 0.0
        for line in lines:
            if not self.flow.fits(line.height):
                self.flow.ensure_space(line.height)
            self.draw_line(line, x, cursor.y, width, style.align)
            cursor.advance(line.height)
            height += line.height
        self.restore_defaults()
        return RenderedText(
            line_count=len(lines),
            height=height,
            start_page=start_page,
            end_page=self.flow.page_number,
            text="".join(run.text for run in fragments),
        )
