"""Plain-text extraction from raw block content and parsed blocks."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping

from ..models.block import Block


def extract_plain_text(content: Any) -> str:
    """

    Best-effort text of a raw ``content`` value of any shape.

    Strings are returned as-is; mappings contribute their ``text`` (or their
    nested ``content``); lists are concatenated in order.

    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, (int, float)) and not isinstance(content, bool):
        return str(content)
    if isinstance(content, Mapping):
        text = content.get("text")
        if isinstance(text, str):
            return text
        return extract_plain_text(content.get("content"))
    if isinstance(content, (list, tuple)):
        return "".join(extract_plain_text(item) for item in content)
    return ""


def block_text(block: Block) -> str:
    """Text of a block and its visible descendants, one line per block."""
    parts: List[str] = []
    own = block.text.strip()
    if own:
        parts.append(own)
    if block.rows:
        for row in block.rows:
            cells = [blocks_text(cell) for cell in row.cells]
            parts.append("\t".join(cells))
    child_text = blocks_text(block.visible_children)
    if child_text:
        parts.append(child_text)
    return "\n".join(parts)


def blocks_text(blocks: Iterable[Block]) -> str:
    """Text of a block list, blocks separated by newlines."""
    return "\n".join(filter(None, (block_text(block) for block in blocks)))
