"""
Parser module for editor block trees.

This module turns stored editor JSON into the Block model: inline runs,
table rows and plain-text fallbacks are normalized once, at ingestion.
"""

from .block_parser import parse_block, parse_blocks
from .inline_parser import extract_styles, normalize_inline_content, runs_text
from .table_parser import normalize_cell, normalize_table_rows
from .text_extractor import block_text, blocks_text, extract_plain_text

__all__ = [
    "parse_block",
    "parse_blocks",
    "extract_styles",
    "normalize_inline_content",
    "runs_text",
    "normalize_cell",
    "normalize_table_rows",
    "block_text",
    "blocks_text",
    "extract_plain_text",
]
