"""

Simple high-level API for notequill.

Main entry point for users - one call per export.

Usage example:
>>> from notequill import render_to_pdf, export_document
>>>
>>> # Raw PDF bytes
>>> pdf = render_to_pdf("Doc", '[{"type": "paragraph", "content": "Hello"}]')
>>>
>>> # Bytes plus the response headers an HTTP handler needs
>>> result = export_document("Doc", blocks, origin="https://notes.example.com",
...                          cookie=request.headers.get("Cookie"))
>>> result.mime_type, result.filename

"""

from __future__ import annotations

import logging
import threading
from typing import Any, Mapping, Optional, Union

import requests

from .config import RenderOptions
from .export.pdf_exporter import ExportResult, PdfExporter

logger = logging.getLogger(__name__)

__all__ = [
    "render_to_pdf",
    "export_document",
]

OptionsLike = Union[RenderOptions, Mapping[str, Any], None]


def _coerce_options(options: OptionsLike) -> RenderOptions:
    if isinstance(options, RenderOptions):
        return options
    return RenderOptions.from_dict(options)


def export_document(
    title: str,
    blocks: Any,
    origin: str = "",
    cookie: Optional[str] = None,
    *,
    options: OptionsLike = None,
    session: Optional[requests.Session] = None,
    cancel_event: Optional[threading.Event] = None,
) -> ExportResult:
    """
    Export a block tree to PDF.

    Args:
        title: Document title
        blocks: JSON string or parsed block list (malformed input -> empty document)
        origin: Base URL for relative image references
        cookie: Caller's Cookie header, forwarded on image fetches
        options: RenderOptions or a mapping of option values
        session: requests Session for image fetches
        cancel_event: Event that abandons the export when set

    Returns:
        ExportResult with PDF bytes, MIME type and filename

    Raises:
        ExportCancelledError: If cancel_event was set
        CompilationError: If the PDF could not be assembled
    """
    exporter = PdfExporter(
        title,
        blocks,
        origin=origin,
        cookie=cookie,
        options=_coerce_options(options),
        session=session,
        cancel_event=cancel_event,
    )
    result = exporter.export()
    logger.debug(f"Exported {result.filename} ({result.size} bytes)")
    return result


def render_to_pdf(
    title: str,
    blocks: Any,
    origin: str = "",
    cookie: Optional[str] = None,
    *,
    options: OptionsLike = None,
    session: Optional[requests.Session] = None,
    cancel_event: Optional[threading.Event] = None,
) -> bytes:
    """Renders a block tree to PDF bytes (convenience function)."""
    return export_document(
        title,
        blocks,
        origin,
        cookie,
        options=options,
        session=session,
        cancel_event=cancel_event,
    ).content
