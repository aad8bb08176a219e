"""
Block tree ingestion.

Turns the editor's stored JSON (a string or an already parsed list) into the
Block model. All shape polymorphism is resolved here, once; the layout engine
only ever sees normalized Blocks.
"""

from __future__ import annotations

import json
import logging
from typing import Any, List, Mapping

from ..models.block import Block
from .inline_parser import normalize_inline_content
from .table_parser import normalize_table_rows
from .text_extractor import extract_plain_text

logger = logging.getLogger(__name__)

MAX_INGEST_DEPTH = 256

# Alternative type names written by other editor schemas.
TYPE_ALIASES = {
    "bullet_list": "bulletListItem",
    "listItem": "bulletListItem",
    "ordered_list": "numberListItem",
}


def canonical_type(block_type: str, props: Mapping[str, Any]) -> str:
    """
    Map an editor type name onto the type names the layout engine handles.

    A generic ``heading`` becomes ``heading1``..``heading3`` from its
    ``level`` prop (clamped, 1 when missing or invalid).
    """
    if block_type == "heading":
        try:
            level = int(props.get("level", 1))
        except (TypeError, ValueError, OverflowError):
            level = 1
        return f"heading{min(max(level, 1), 3)}"
    return TYPE_ALIASES.get(block_type, block_type)


def parse_block(raw: Any, depth: int = 0) -> Block:
    """
    Build one Block from a raw mapping.

    Args:
        raw: Raw block mapping (non-mappings yield an empty paragraph)
        depth: Current nesting depth

    Returns:
        Normalized Block
    """
    if not isinstance(raw, Mapping):
        return Block(type="paragraph", fallback_text=extract_plain_text(raw))

    block_type = raw.get("type")
    if not isinstance(block_type, str) or not block_type:
        block_type = "paragraph"

    props = raw.get("props")
    props = dict(props) if isinstance(props, Mapping) else {}
    block_type = canonical_type(block_type, props)

    raw_content = raw.get("content")
    rows = None
    if block_type == "table":
        rows = normalize_table_rows(raw)
        content = []
        fallback_text = ""
    else:
        content = normalize_inline_content(raw_content)
        fallback_text = "" if content else extract_plain_text(raw_content)

    children: List[Block] = []
    raw_children = raw.get("children")
    if block_type != "table" and isinstance(raw_children, list):
        if depth >= MAX_INGEST_DEPTH:
            logger.warning(f"Block nesting deeper than {MAX_INGEST_DEPTH}; children dropped")
        else:
            children = [parse_block(child, depth + 1) for child in raw_children]

    block_id = raw.get("id")
    return Block(
        type=block_type,
        content=content,
        children=children,
        props=props,
        rows=rows,
        fallback_text=fallback_text,
        id=str(block_id) if block_id is not None else None,
    )


def parse_blocks(content: Any) -> List[Block]:
    """
    Parse a block tree given as JSON text or as a parsed list.

    Malformed input (invalid JSON, non-list top level) yields an empty list;
    this boundary never raises.

    Args:
        content: JSON string, bytes, list of block mappings, or Blocks

    Returns:
        List of top-level Blocks
    """
    if content is None:
        return []
    if isinstance(content, (bytes, bytearray)):
        try:
            content = content.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("Block tree is not valid UTF-8")
            return []
    if isinstance(content, str):
        if not content.strip():
            return []
        try:
            content = json.loads(content)
        except ValueError as exc:
            logger.debug(f"Block tree is not valid JSON: {exc}")
            return []
    if not isinstance(content, list):
        return []
    blocks: List[Block] = []
    for raw in content:
        if isinstance(raw, Block):
            blocks.append(raw)
        else:
            blocks.append(parse_block(raw))
    return blocks
