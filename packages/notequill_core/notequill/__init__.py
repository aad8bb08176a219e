"""
notequill - PDF export for rich-text block documents.

This package renders the block tree stored by a notes / knowledge-base editor
into a paginated, styled PDF.

Features:
- Tolerant ingestion of legacy block shapes (styles, links, three table encodings)
- Inline styling: bold, italic, code, strikethrough, underline, colors, links
- Headings with a generated contents list and PDF outline
- Lists, checklists, toggles, quotes, callouts, code blocks and tables
- Image fetching with original-asset preference and PNG conversion fallback
- Running footers with the document title and page number

Quick Start:
    from notequill import render_to_pdf

    pdf_bytes = render_to_pdf("Doc", blocks_json, origin="https://notes.example.com")

    # with response headers
    from notequill import export_document

    result = export_document("Doc", blocks_json)
    result.filename, result.mime_type
"""

from .version import __version__, __version_info__

# Exceptions - always available
from .exceptions import (
    NotequillError,
    LayoutError,
    MediaError,
    CompilationError,
    ExportCancelledError,
)

from .config import RenderOptions
from .models import Block, HeadingReference, InlineRun, TableRow
from .parser import parse_blocks, normalize_inline_content, normalize_table_rows
from .media import ImageResolver, MediaConverter
from .engine.assembler.document_assembler import DocumentAssembler
from .export.pdf_exporter import ExportResult, PdfExporter

# Simple High-Level API - main entry point for users
from .api import export_document, render_to_pdf

__author__ = "AddNap"

__all__ = [
    # Version
    "__version__",
    "__version_info__",

    # Simple High-Level API (main entry point)
    "render_to_pdf",
    "export_document",

    # Advanced API
    "RenderOptions",
    "DocumentAssembler",
    "PdfExporter",
    "ExportResult",
    "ImageResolver",
    "MediaConverter",
    "parse_blocks",
    "normalize_inline_content",
    "normalize_table_rows",

    # Model
    "Block",
    "HeadingReference",
    "InlineRun",
    "TableRow",

    # Exceptions
    "NotequillError",
    "LayoutError",
    "MediaError",
    "CompilationError",
    "ExportCancelledError",
]
