"""

DocumentAssembler - builds the whole PDF for one export:
- title page header and the root bookmark
- contents list from the heading scan
- body through BlockLayoutEngine
- running footers and the outline

"""

from __future__ import annotations

import io
import logging
import threading
from dataclasses import replace
from typing import Callable, List, Optional, Sequence

import requests
from reportlab.pdfgen.canvas import Canvas

from ...config import RenderOptions
from ...exceptions import CompilationError, ExportCancelledError
from ...layout.footer import PageFooter
from ...media.converters import MediaConverter
from ...media.image_resolver import ImageResolver
from ...models.block import Block, HeadingReference, InlineRun
from ...renderers.rich_text import RichTextRenderer
from ..geometry import Margins, PageGeometry, Rect, Size
from ..layout_engine import BlockLayoutEngine
from ..outline import (
    TITLE_ANCHOR,
    attach_outline,
    bind_unplaced,
    collect_headings,
    iter_rendered_blocks,
)
from ..page_engine import PageFlow
from ..text_metrics import TextMetricsEngine, TextStyle
from ..utils.font_registry import font_variant, resolve_families

logger = logging.getLogger(__name__)

TITLE_SPACING = 14.0
TOC_ENTRY_GAP = 2.0


def image_urls(blocks: Sequence[Block], max_depth: int = 32) -> List[str]:
    """Image references in the order the layout engine will draw them."""
    urls = []
    for block, _depth in iter_rendered_blocks(blocks, max_depth):
        if block.type != "image":
            continue
        url = block.props.get("url") or block.props.get("src")
        if isinstance(url, str) and url.strip():
            urls.append(url)
    return urls


class DocumentAssembler:
    """
    Assembles one PDF document from a parsed block list.

    An assembler may be reused; every assemble() call builds a fresh canvas,
    cursor and image cache.
    """

    def __init__(
        self,
        options: Optional[RenderOptions] = None,
        *,
        origin: Optional[str] = None,
        cookie: Optional[str] = None,
        session: Optional[requests.Session] = None,
        cancel_event: Optional[threading.Event] = None,
        image_loader: Optional[Callable[[str], Optional[bytes]]] = None,
    ):
        """
        Initialize document assembler.

        Args:
            options: Render options (defaults if None)
            origin: Base URL for relative image references
            cookie: Cookie header forwarded on image fetches
            session: requests Session used by the image resolver
            cancel_event: Event that aborts the export when set
            image_loader: Replaces HTTP image resolution entirely (url -> bytes)
        """
        self.options = options or RenderOptions()
        self.origin = origin
        self.cookie = cookie
        self.session = session
        self.cancel_event = cancel_event
        self.image_loader = image_loader
        self.media_converter = MediaConverter()

        self.page_count = 0
        self.headings: List[HeadingReference] = []

    def _geometry(self) -> PageGeometry:
        return PageGeometry(
            size=Size.from_tuple(self.options.page_size),
            margins=Margins.uniform(self.options.margin),
        )

    def _make_resolver(self) -> Optional[ImageResolver]:
        if self.image_loader is not None:
            return None
        return ImageResolver(
            self.session,
            timeout=self.options.fetch_timeout,
            original_extensions=self.options.original_image_extensions,
            cancel_event=self.cancel_event,
        )

    def _make_loader(
        self, blocks: Sequence[Block], resolver: Optional[ImageResolver]
    ) -> Callable[[str], Optional[bytes]]:
        if resolver is None:
            return self.image_loader
        if self.options.prefetch_workers > 0:
            urls = image_urls(blocks, self.options.max_depth)
            if urls:
                logger.debug(f"Prefetching {len(urls)} images with {self.options.prefetch_workers} workers")
                resolver.prefetch(urls, self.origin, self.cookie, max_workers=self.options.prefetch_workers)

        def load(url: str) -> Optional[bytes]:
            return resolver.resolve(url, self.origin, self.cookie)

        return load

    def _check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise ExportCancelledError("Export cancelled")

    def _draw_title(self, flow: PageFlow, renderer: RichTextRenderer, title: str) -> None:
        flow.canvas.bookmarkPage(TITLE_ANCHOR, fit="XYZ", left=flow.geometry.content_left,
                                 top=flow.to_canvas_y(flow.cursor.y))
        style = replace(renderer.defaults, bold=True, size=self.options.title_font_size)
        renderer.render([InlineRun(text=title)], style=style)
        flow.cursor.advance(TITLE_SPACING)

    def _draw_contents(self, flow: PageFlow, renderer: RichTextRenderer, headings: Sequence[HeadingReference]) -> None:
        """

        Draws the contents list and breaks to a new page.

        Each entry is a link to the named destination its heading registers
        during body layout.

        """
        options = self.options
        heading_style = replace(renderer.defaults, bold=True, size=options.heading_sizes[1])
        renderer.render([InlineRun(text=options.toc_title)], style=heading_style)
        flow.cursor.advance(options.block_spacing)

        c = flow.canvas
        for heading in headings:
            x = flow.geometry.content_left + (heading.level - 1) * options.indent_step
            width = flow.geometry.content_right - x
            style = replace(renderer.defaults, bold=heading.level == 1)
            flow.ensure_space(style.size + style.line_gap)
            start_page = flow.page_number
            top = flow.cursor.y
            rendered = renderer.render([InlineRun(text=heading.text or "Untitled")], x=x, width=width, style=style)
            if rendered.end_page == start_page:
                c.linkRect(
                    "",
                    heading.page_anchor,
                    flow.geometry.to_canvas_rect(Rect(x, top, width, flow.cursor.y - top)),
                    relative=0,
                    thickness=0,
                )
            flow.cursor.advance(TOC_ENTRY_GAP)
        flow.new_page()

    def assemble(self, title: str, blocks: Sequence[Block]) -> bytes:
        """
        Render a document to PDF bytes.

        Args:
            title: Document title (drawn at the top, in footers and the outline)
            blocks: Parsed top-level blocks

        Returns:
            PDF file content

        Raises:
            ExportCancelledError: If cancel_event was set during the export
            CompilationError: If the PDF could not be assembled
        """
        title = title or ""
        try:
            return self._assemble(title, blocks)
        except ExportCancelledError:
            logger.info(f"Export of '{title}' cancelled")
            raise
        except CompilationError:
            raise
        except Exception as exc:
            logger.error(f"PDF assembly failed for '{title}': {exc}")
            raise CompilationError("PDF assembly failed", str(exc)) from exc

    def _assemble(self, title: str, blocks: Sequence[Block]) -> bytes:
        self._check_cancelled()
        resolver = self._make_resolver()
        try:
            return self._render(title, blocks, self._make_loader(blocks, resolver))
        finally:
            if resolver is not None:
                resolver.close()

    def _render(self, title: str, blocks: Sequence[Block], loader: Callable[[str], Optional[bytes]]) -> bytes:
        options = self.options
        buffer = io.BytesIO()
        geometry = self._geometry()
        canvas = Canvas(buffer, pagesize=options.page_size, pageCompression=1 if options.page_compression else 0)
        canvas.setTitle(title or "Document")

        body_family, mono_family = resolve_families(options.font_family, options.monospace_family, options.unicode_fonts)
        defaults = TextStyle(
            family=body_family,
            mono_family=mono_family,
            size=options.body_font_size,
            color=options.text_color,
            link_color=options.link_color,
            line_gap=options.line_gap,
        )

        flow = PageFlow(canvas, geometry)
        footer = PageFooter(
            title,
            geometry,
            font_name=font_variant(body_family),
            font_size=options.footer_font_size,
            color=options.muted_color,
        )
        flow.add_page_end_hook(footer)

        metrics = TextMetricsEngine()
        renderer = RichTextRenderer(flow, metrics, defaults)
        renderer.restore_defaults()

        self._draw_title(flow, renderer, title)

        # pass 1: structural scan for the contents list
        headings = collect_headings(blocks, options.max_depth)
        if headings:
            self._draw_contents(flow, renderer, headings)

        # pass 2: body, stamping real pages onto the references
        engine = BlockLayoutEngine(
            flow,
            renderer,
            metrics,
            options,
            image_loader=loader,
            media_converter=self.media_converter,
            origin=self.origin,
            headings=headings,
        )
        engine.render_blocks(blocks)
        self._check_cancelled()
        bind_unplaced(canvas, headings)
        flow.finish()

        # pass 3: outline from the recorded anchors
        attach_outline(canvas, title, headings)
        canvas.save()

        content = buffer.getvalue()
        self.page_count = flow.page_count
        self.headings = list(headings)
        logger.info(f"Assembled '{title}': {self.page_count} pages, {len(content)} bytes, {len(headings)} headings")
        return content
