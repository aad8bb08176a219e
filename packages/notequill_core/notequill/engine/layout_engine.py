"""

BlockLayoutEngine - recursive block tree walker.

Dispatches on block type, computes indentation per nesting level, reserves
room for blocks whose height can be measured up front (callouts, code blocks,
images, table rows) and lets flowing text paginate line by line.

"""

from __future__ import annotations

import logging
import math
import posixpath
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence
from urllib.parse import urlsplit

from ..config import RenderOptions
from ..exceptions import ExportCancelledError
from ..media.converters import LoadedImage, MediaConverter
from ..media.image_resolver import ImageResolver
from ..models.block import Block, HeadingReference, InlineRun
from ..renderers.rich_text import RichTextRenderer
from ..utils.color_utils import resolve_color, to_reportlab_color
from .line_breaker import TextLine
from .outline import heading_anchor
from .page_engine import PageFlow
from .text_metrics import TextMetricsEngine, TextStyle

logger = logging.getLogger(__name__)

ImageLoader = Callable[[str], Optional[bytes]]

BULLET = "•"
QUOTE_EXTRA_INDENT = 15.0
QUOTE_BAR_OFFSET = 6.0
BOX_PADDING = 8.0
BOX_RADIUS = 4.0
CELL_PADDING = 5.0
DIVIDER_HEIGHT = 12.0
IMAGE_GAP = 4.0

MEDIA_LABELS = {
    "video": "Video",
    "audio": "Audio",
    "file": "File",
}


class BlockLayoutEngine:
    """
    Renders Blocks onto a PageFlow.

    One engine instance serves one export. Headings drawn by the engine are
    stamped onto ``headings`` (pre-filled by the assembler's heading scan) with
    the page they landed on.
    """

    def __init__(
        self,
        flow: PageFlow,
        renderer: RichTextRenderer,
        metrics: TextMetricsEngine,
        options: RenderOptions,
        image_loader: Optional[ImageLoader] = None,
        media_converter: Optional[MediaConverter] = None,
        origin: Optional[str] = None,
        headings: Optional[List[HeadingReference]] = None,
    ):
        self.flow = flow
        self.renderer = renderer
        self.metrics = metrics
        self.options = options
        self.image_loader = image_loader
        self.media_converter = media_converter or MediaConverter()
        self.origin = origin
        self.headings: List[HeadingReference] = headings if headings is not None else []
        self._heading_index = 0
        self.body_style: TextStyle = renderer.defaults

        self._handlers: Dict[str, Callable[[Block, float, Dict[int, int], int], None]] = {
            "heading1": self._render_heading,
            "heading2": self._render_heading,
            "heading3": self._render_heading,
            "bulletListItem": self._render_bullet,
            "numberListItem": self._render_numbered,
            "checkListItem": self._render_checklist,
            "toggleListItem": self._render_toggle,
            "quote": self._render_quote,
            "callout": self._render_callout,
            "divider": self._render_divider,
            "pageBreak": self._render_page_break,
            "codeBlock": self._render_code_block,
            "image": self._render_image,
            "video": self._render_media,
            "audio": self._render_media,
            "file": self._render_media,
            "table": self._render_table,
        }

    # ------------------------------------------------------------------
    # Tree walk
    # ------------------------------------------------------------------

    def render_blocks(self, blocks: Sequence[Block], indent: float = 0.0, depth: int = 0) -> None:
        """
        Render a sibling list with its own list counters.

        Args:
            blocks: Sibling blocks
            indent: Left indentation in points
            depth: Nesting depth (0 for top level)
        """
        counters: Dict[int, int] = {}
        for block in blocks:
            self.render_block(block, indent, depth, counters)

    def render_block(self, block: Block, indent: float, depth: int, counters: Dict[int, int]) -> None:
        """Render one block, then its children one indentation step deeper."""
        if block.type != "numberListItem":
            counters.pop(depth, None)
        handler = self._handlers.get(block.type, self._render_paragraph)
        handler(block, indent, counters, depth)

        children = block.renderable_children
        if not children:
            return
        if depth + 1 >= self.options.max_depth:
            logger.warning(
                f"Nesting limit {self.options.max_depth} reached; "
                f"{len(children)} children of {block.type} skipped"
            )
            return
        self.render_blocks(children, indent + self.options.indent_step, depth + 1)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _left(self, indent: float) -> float:
        return self.flow.geometry.content_left + indent

    def _width(self, indent: float) -> float:
        return max(self.flow.geometry.content_right - self._left(indent), 1.0)

    def _spacing(self) -> None:
        self.flow.cursor.advance(self.options.block_spacing)

    def _style(self, block: Optional[Block] = None, **changes) -> TextStyle:
        style = self.body_style
        if block is not None:
            align = block.props.get("textAlignment")
            if align in ("left", "center", "right"):
                changes.setdefault("align", align)
            color = resolve_color(block.props.get("textColor"))
            if color:
                changes.setdefault("color", color)
        return replace(style, **changes) if changes else style

    def _text(self, block: Block, indent: float, style: TextStyle, prefix: Optional[str] = None) -> None:
        fragments = block.fragments()
        if prefix:
            fragments = [InlineRun(text=prefix)] + fragments
        self.renderer.render(fragments, x=self._left(indent), width=self._width(indent), style=style)

    def _absolute_url(self, url: str) -> Optional[str]:
        """Absolute form of url, or None when it cannot be parsed."""
        if url.startswith("data:"):
            return url
        try:
            return ImageResolver.absolute_url(url, self.origin)
        except ValueError as exc:
            logger.warning(f"Malformed media URL {url[:80]!r}: {exc}")
            return None

    def _draw_boxed_lines(
        self,
        lines: List[TextLine],
        indent: float,
        fill: str,
        stroke: Optional[str],
        align: str = "left",
    ) -> None:
        """

        Draws lines inside a padded box, splitting the box across pages.

        Each page gets as many lines as fit below the cursor; the box is drawn
        around that chunk before the text.

        """
        c = self.flow.canvas
        x = self._left(indent)
        width = self._width(indent)
        inner_width = max(width - 2 * BOX_PADDING, 1.0)
        pending = list(lines)
        while pending:
            available = self.flow.remaining_height() - 2 * BOX_PADDING
            chunk: List[TextLine] = []
            used = 0.0
            for line in pending:
                if chunk and used + line.height > available:
                    break
                chunk.append(line)
                used += line.height
            if used > available and not self.flow.at_page_top:
                self.flow.new_page()
                continue
            box_height = used + 2 * BOX_PADDING
            top = self.flow.cursor.y
            c.saveState()
            c.setFillColor(to_reportlab_color(fill))
            if stroke:
                c.setStrokeColor(to_reportlab_color(stroke))
                c.setLineWidth(0.8)
            c.roundRect(
                x,
                self.flow.to_canvas_y(top + box_height),
                width,
                box_height,
                BOX_RADIUS,
                stroke=1 if stroke else 0,
                fill=1,
            )
            c.restoreState()
            self.renderer.draw_lines(chunk, x + BOX_PADDING, top + BOX_PADDING, inner_width, align)
            self.flow.cursor.advance(box_height)
            pending = pending[len(chunk):]
            if pending:
                self.flow.new_page()

    # ------------------------------------------------------------------
    # Block handlers
    # ------------------------------------------------------------------

    def _render_paragraph(self, block: Block, indent: float, counters: Dict[int, int], depth: int) -> None:
        self._text(block, indent, self._style(block))
        self._spacing()

    def _render_heading(self, block: Block, indent: float, counters: Dict[int, int], depth: int) -> None:
        level = block.heading_level or 1
        size = self.options.heading_sizes[level - 1]
        style = self._style(block, bold=True, size=size, line_gap=self.options.line_gap + 2)
        # the bookmark must land on the page the first line is drawn on
        self.flow.ensure_space(style.size + style.line_gap)

        anchor = heading_anchor(self._heading_index)
        x = self._left(indent)
        self.flow.canvas.bookmarkPage(
            anchor,
            fit="XYZ",
            left=x,
            top=self.flow.to_canvas_y(self.flow.cursor.y),
        )
        text = block.text.strip()
        if self._heading_index < len(self.headings):
            reference = self.headings[self._heading_index]
            reference.page_number = self.flow.page_number
        else:
            reference = HeadingReference(text=text, level=level, page_anchor=anchor, page_number=self.flow.page_number)
            self.headings.append(reference)
        self._heading_index += 1
        logger.debug(f"Heading {anchor} '{text[:40]}' on page {self.flow.page_number}")

        self._text(block, indent, style)
        self._spacing()

    def _render_bullet(self, block: Block, indent: float, counters: Dict[int, int], depth: int) -> None:
        self._text(block, indent, self._style(block), prefix=f"{BULLET} ")
        self._spacing()

    def _render_numbered(self, block: Block, indent: float, counters: Dict[int, int], depth: int) -> None:
        if depth not in counters:
            counters[depth] = self._start_index(block)
        number = counters[depth]
        self._text(block, indent, self._style(block), prefix=f"{number}. ")
        counters[depth] = number + 1
        self._spacing()

    @staticmethod
    def _start_index(block: Block) -> int:
        start = block.props.get("start")
        try:
            value = int(start)
        except (TypeError, ValueError):
            return 1
        return value if value >= 0 else 1

    def _render_checklist(self, block: Block, indent: float, counters: Dict[int, int], depth: int) -> None:
        checked = bool(block.props.get("checked"))
        style = self._style(block, strike=checked)
        self._text(block, indent, style, prefix="[x] " if checked else "[ ] ")
        self._spacing()

    def _render_toggle(self, block: Block, indent: float, counters: Dict[int, int], depth: int) -> None:
        glyph = "[>] " if block.is_collapsed else "[v] "
        self._text(block, indent, self._style(block, bold=True), prefix=glyph)
        self._spacing()

    def _draw_quote_bar(self, x: float, top: float, bottom: float) -> None:
        if bottom <= top:
            return
        c = self.flow.canvas
        c.saveState()
        c.setStrokeColor(to_reportlab_color(self.options.quote_color))
        c.setLineWidth(2)
        c.line(x, self.flow.to_canvas_y(top), x, self.flow.to_canvas_y(bottom))
        c.restoreState()

    def _render_quote(self, block: Block, indent: float, counters: Dict[int, int], depth: int) -> None:
        quote_indent = indent + QUOTE_EXTRA_INDENT
        style = self._style(block, italic=True, color=self.options.quote_color)
        bar_x = self._left(quote_indent) - QUOTE_BAR_OFFSET
        segment_top = [self.flow.cursor.y]

        def close_segment(canvas, page_number: int) -> None:
            # one bar segment per page the quote spans
            self._draw_quote_bar(bar_x, segment_top[0], self.flow.cursor.y)
            segment_top[0] = self.flow.geometry.content_top

        self.flow.add_page_end_hook(close_segment)
        try:
            self._text(block, quote_indent, style)
        finally:
            self.flow.remove_page_end_hook(close_segment)
        self._draw_quote_bar(bar_x, segment_top[0], self.flow.cursor.y)
        self._spacing()

    def _render_callout(self, block: Block, indent: float, counters: Dict[int, int], depth: int) -> None:
        style = self._style(block)
        fill = resolve_color(block.props.get("backgroundColor"), background=True) or self.options.callout_background
        inner_width = max(self._width(indent) - 2 * BOX_PADDING, 1.0)
        lines = self.renderer.layout(block.fragments(), inner_width, style)
        height = sum(line.height for line in lines) + 2 * BOX_PADDING
        self.flow.ensure_space(height)
        self._draw_boxed_lines(lines, indent, fill, self.options.callout_border, style.align)
        self._spacing()

    def _render_divider(self, block: Block, indent: float, counters: Dict[int, int], depth: int) -> None:
        self.flow.ensure_space(DIVIDER_HEIGHT)
        y = self.flow.to_canvas_y(self.flow.cursor.y + DIVIDER_HEIGHT / 2.0)
        c = self.flow.canvas
        c.saveState()
        c.setStrokeColor(to_reportlab_color(self.options.table_border))
        c.setLineWidth(0.8)
        c.line(self._left(indent), y, self.flow.geometry.content_right, y)
        c.restoreState()
        self.flow.cursor.advance(DIVIDER_HEIGHT)

    def _render_page_break(self, block: Block, indent: float, counters: Dict[int, int], depth: int) -> None:
        self.flow.new_page()

    def _render_code_block(self, block: Block, indent: float, counters: Dict[int, int], depth: int) -> None:
        mono = self.body_style.mono_family
        style = replace(
            self.body_style,
            family=mono,
            size=self.options.code_font_size,
            line_gap=max(self.options.line_gap - 1, 1.0),
            bold=False,
            italic=False,
            align="left",
        )
        code = "".join(run.text for run in block.fragments())
        inner_width = max(self._width(indent) - 2 * BOX_PADDING, 1.0)
        lines = self.renderer.layout([InlineRun(text=code)], inner_width, style)
        height = sum(line.height for line in lines) + 2 * BOX_PADDING
        if height <= self.flow.geometry.content_height:
            self.flow.ensure_space(height)
        self._draw_boxed_lines(lines, indent, self.options.code_background, None)
        self._spacing()

    # ------------------------------------------------------------------
    # Images and media
    # ------------------------------------------------------------------

    def _caption_style(self) -> TextStyle:
        return replace(
            self.body_style,
            size=max(self.body_style.size - 2, 6.0),
            italic=True,
            color=self.options.muted_color,
            align="center",
        )

    def _fetch(self, url: str) -> Optional[bytes]:
        """Image bytes from the loader; a raising loader counts as a failed fetch."""
        if not self.image_loader or not url:
            return None
        try:
            return self.image_loader(url)
        except ExportCancelledError:
            raise
        except Exception as exc:
            logger.warning(f"Image loader failed for {url[:80]!r}: {exc}")
            return None

    def _load_image(self, url: str) -> Optional[LoadedImage]:
        data = self._fetch(url)
        if not data:
            return None
        return self.media_converter.load_image(data)

    @staticmethod
    def _preview_width(block: Block) -> Optional[float]:
        for key in ("previewWidth", "width"):
            try:
                value = float(block.props.get(key))
            except (TypeError, ValueError):
                continue
            if math.isfinite(value) and value > 0:
                return value
        return None

    def _image_size(self, block: Block, loaded: LoadedImage, indent: float) -> tuple[float, float]:
        available = self._width(indent)
        width = min(self._preview_width(block) or loaded.width, available)
        height = width * loaded.aspect_ratio
        max_height = self.flow.geometry.content_height * self.options.image_max_height_ratio
        if height > max_height:
            width *= max_height / height
            height = max_height
        return width, height

    def _image_x(self, block: Block, indent: float, width: float) -> float:
        left = self._left(indent)
        align = block.props.get("textAlignment") or block.props.get("alignment")
        if align == "center":
            return left + (self._width(indent) - width) / 2.0
        if align == "right":
            return self.flow.geometry.content_right - width
        return left

    def _draw_image(self, loaded: LoadedImage, x: float, top: float, width: float, height: float) -> None:
        self.flow.canvas.drawImage(
            loaded.reader,
            x,
            self.flow.to_canvas_y(top + height),
            width=width,
            height=height,
            mask="auto",
        )

    def _render_image(self, block: Block, indent: float, counters: Dict[int, int], depth: int) -> None:
        url = block.props.get("url") or block.props.get("src") or ""
        caption = str(block.props.get("caption") or "").strip()
        caption_runs = [InlineRun(text=caption)] if caption else []

        loaded = self._load_image(url) if isinstance(url, str) else None
        placed = False
        if loaded is not None:
            width, height = self._image_size(block, loaded, indent)
            caption_height = (
                self.renderer.measure(caption_runs, self._width(indent), self._caption_style()) if caption_runs else 0.0
            )
            self.flow.ensure_space(height + IMAGE_GAP + caption_height)
            x = self._image_x(block, indent, width)
            top = self.flow.cursor.y
            try:
                self._draw_image(loaded, x, top, width, height)
                placed = True
            except Exception as exc:  # reportlab surfaces decoder errors as plain exceptions
                logger.debug(f"drawImage failed for {url}: {exc}")
                if not loaded.converted:
                    converted = self.media_converter.load_converted(self._fetch(url) or b"")
                    if converted is not None:
                        try:
                            self._draw_image(converted, x, top, width, height)
                            placed = True
                        except Exception as retry_exc:
                            logger.debug(f"drawImage failed after conversion for {url}: {retry_exc}")
            if placed:
                self.flow.cursor.advance(height + IMAGE_GAP)

        if not placed:
            logger.warning(f"Image block rendered without image: {url[:80] if isinstance(url, str) else url!r}")
            alt = caption or str(block.props.get("name") or "").strip() or "[Image]"
            self.renderer.render([InlineRun(text=alt)], x=self._left(indent), width=self._width(indent), style=self._caption_style())
        elif caption_runs:
            self.renderer.render(caption_runs, x=self._left(indent), width=self._width(indent), style=self._caption_style())
        self._spacing()

    def _render_media(self, block: Block, indent: float, counters: Dict[int, int], depth: int) -> None:
        kind = MEDIA_LABELS.get(block.type, "File")
        url = block.props.get("url") or ""
        url = url if isinstance(url, str) else ""
        link = self._absolute_url(url) if url else None
        name = str(block.props.get("name") or "").strip()
        if not name and url:
            name = (posixpath.basename(urlsplit(link).path) if link else "") or url
        label = f"[{kind}] {name or kind}"
        caption = str(block.props.get("caption") or "").strip()
        if caption:
            label = f"{label} - {caption}"
        self.renderer.render([InlineRun(text=label)], x=self._left(indent), width=self._width(indent),
                             style=self._style(block, bold=True))
        if url:
            # unparseable URLs are printed as plain text
            run = InlineRun(text=link, href=link) if link else InlineRun(text=url)
            self.renderer.render([run], x=self._left(indent), width=self._width(indent), style=self._style(block))
        self._spacing()

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    @staticmethod
    def _cell_fragments(cell: List[Block]) -> List[InlineRun]:
        fragments: List[InlineRun] = []
        for index, cell_block in enumerate(cell):
            if index:
                fragments.append(InlineRun(text="\n"))
            fragments.extend(cell_block.fragments())
        return fragments

    def _layout_row(self, cells: List[List[Block]], column_count: int, column_width: float, header: bool):
        style = self._style(None, bold=True) if header else self._style(None)
        inner = max(column_width - 2 * CELL_PADDING, 1.0)
        laid_out = []
        for index in range(column_count):
            cell = cells[index] if index < len(cells) else []
            laid_out.append(self.renderer.layout(self._cell_fragments(cell), inner, style))
        height = max(sum(line.height for line in lines) for lines in laid_out) + 2 * CELL_PADDING
        return laid_out, height

    def _draw_row(self, laid_out, x: float, column_width: float, height: float, header: bool) -> None:
        c = self.flow.canvas
        top = self.flow.cursor.y
        inner = max(column_width - 2 * CELL_PADDING, 1.0)
        c.saveState()
        c.setStrokeColor(to_reportlab_color(self.options.table_border))
        c.setLineWidth(0.6)
        if header:
            c.setFillColor(to_reportlab_color(self.options.table_header_background))
        for index, lines in enumerate(laid_out):
            cell_x = x + index * column_width
            c.rect(cell_x, self.flow.to_canvas_y(top + height), column_width, height, stroke=1, fill=1 if header else 0)
        c.restoreState()
        for index, lines in enumerate(laid_out):
            cell_x = x + index * column_width
            self.renderer.draw_lines(lines, cell_x + CELL_PADDING, top + CELL_PADDING, inner)
        self.flow.cursor.advance(height)

    def _render_table(self, block: Block, indent: float, counters: Dict[int, int], depth: int) -> None:
        rows = block.rows or []
        if not rows:
            self.renderer.render([InlineRun(text="[Table]")], x=self._left(indent), width=self._width(indent),
                                 style=self._style(block))
            self._spacing()
            return

        column_count = max(len(row.cells) for row in rows)
        x = self._left(indent)
        column_width = self._width(indent) / column_count
        header_layout = None
        for row_index, row in enumerate(rows):
            header = row_index == 0
            laid_out, height = self._layout_row(row.cells, column_count, column_width, header)
            if header:
                header_layout = (laid_out, height)
            broke = self.flow.ensure_space(height)
            if broke and not header and header_layout is not None:
                # repeat the header row at the top of the continued table
                self._draw_row(header_layout[0], x, column_width, header_layout[1], True)
            if height > self.flow.remaining_height():
                logger.debug(f"Table row {row_index} taller than the page; content will be clipped")
            self._draw_row(laid_out, x, column_width, height, header)
        self._spacing()
