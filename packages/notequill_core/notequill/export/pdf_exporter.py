"""
PDF exporter for block documents.

Wraps DocumentAssembler with ingestion, the response filename and MIME type.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from ..config import RenderOptions
from ..engine.assembler.document_assembler import DocumentAssembler
from ..parser.block_parser import parse_blocks
from .base_exporter import BaseExporter

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"

_UNSAFE_FILENAME = re.compile(r'[\\/"\x00-\x1f]+')


def export_filename(title: Optional[str], extension: str = "pdf") -> str:
    """``{title}.{extension}`` with path separators, quotes and control characters removed."""
    stem = _UNSAFE_FILENAME.sub("", title or "").strip()
    return f"{stem or 'document'}.{extension}"


@dataclass
class ExportResult:
    """Exported bytes with the headers an HTTP handler needs."""

    content: bytes
    mime_type: str = PDF_MIME_TYPE
    filename: str = "document.pdf"

    @property
    def content_disposition(self) -> str:
        return f'attachment; filename="{self.filename}"'

    @property
    def size(self) -> int:
        return len(self.content)


class PdfExporter(BaseExporter):
    """
    Exporter producing a PDF file.

    Export options may contain any RenderOptions field; an explicit
    ``options`` object takes precedence.
    """

    def __init__(
        self,
        title: str,
        blocks: Any,
        origin: str = "",
        cookie: Optional[str] = None,
        options: Optional[RenderOptions] = None,
        output_path: Optional[str] = None,
        export_options: Optional[Dict[str, Any]] = None,
        session: Optional[requests.Session] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        super().__init__(title, blocks, output_path, export_options)
        self.origin = origin
        self.cookie = cookie
        self.options = options if options is not None else RenderOptions.from_dict(self.export_options)
        self.session = session
        self.cancel_event = cancel_event
        self.page_count = 0
        self.heading_count = 0

    def get_supported_formats(self) -> List[str]:
        return ["pdf"]

    def get_export_info(self) -> Dict[str, Any]:
        return {
            "format": "pdf",
            "mime_type": PDF_MIME_TYPE,
            "filename": export_filename(self.title),
            "page_size": self.options.page_size,
            "page_count": self.page_count,
            "heading_count": self.heading_count,
        }

    def export_to_bytes(self) -> bytes:
        blocks = parse_blocks(self.blocks)
        assembler = DocumentAssembler(
            self.options,
            origin=self.origin,
            cookie=self.cookie,
            session=self.session,
            cancel_event=self.cancel_event,
        )
        content = assembler.assemble(self.title, blocks)
        self.page_count = assembler.page_count
        self.heading_count = len(assembler.headings)
        return content

    def export(self) -> ExportResult:
        """
        Export to an ExportResult.

        Returns:
            PDF bytes, MIME type and suggested filename
        """
        return ExportResult(
            content=self.export_to_bytes(),
            mime_type=PDF_MIME_TYPE,
            filename=export_filename(self.title),
        )
