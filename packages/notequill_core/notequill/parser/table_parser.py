"""
Table normalization.

Tables reach the exporter in three shapes:

(a) row blocks nested under ``children`` (optionally wrapped once more),
(b) ``props.rows`` holding arrays of cells or ``{"cells": [...]}`` objects,
(c) ``content = {"type": "tableContent", "rows": [...]}``.

The shapes are tried in that order and the first one yielding rows wins. Every
cell becomes a list with exactly one paragraph Block.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Mapping, Optional

from ..models.block import CELL_TYPES, ROW_TYPES, Block, InlineRun, TableRow
from .inline_parser import normalize_inline_content
from .text_extractor import extract_plain_text

logger = logging.getLogger(__name__)


def _is_row_like(node: Any) -> bool:
    return isinstance(node, Mapping) and (node.get("type") in ROW_TYPES or "cells" in node)


def _cell_runs(cell: Any) -> List[InlineRun]:
    if isinstance(cell, str):
        return [InlineRun(text=cell)] if cell else []
    if isinstance(cell, list):
        # a list of inline runs, or a list of blocks
        runs = normalize_inline_content(cell)
        if runs:
            return runs
        runs = []
        for item in cell:
            if isinstance(item, Mapping) and "content" in item:
                runs.extend(_cell_runs(item.get("content")))
        return runs
    if isinstance(cell, Mapping):
        if isinstance(cell.get("text"), str):
            return _cell_runs(cell["text"])
        content = cell.get("content")
        if content is not None:
            return _cell_runs(content)
        children = cell.get("children")
        if isinstance(children, list):
            return _cell_runs(children)
        return []
    text = extract_plain_text(cell)
    return [InlineRun(text=text)] if text else []


def normalize_cell(cell: Any) -> List[Block]:
    """Coerce any cell shape into a one-paragraph block list."""
    return [Block(type="paragraph", content=_cell_runs(cell))]


def _row_cells(node: Any) -> Optional[List[Any]]:
    if isinstance(node, list):
        return node
    if not isinstance(node, Mapping):
        return None
    cells = node.get("cells")
    if isinstance(cells, list):
        return cells
    children = node.get("children")
    if isinstance(children, list):
        if any(isinstance(c, Mapping) and c.get("type") in CELL_TYPES for c in children):
            return [c for c in children if isinstance(c, Mapping) and c.get("type") in CELL_TYPES]
        return children
    content = node.get("content")
    if isinstance(content, list):
        return content
    return None


def _build_rows(raw_rows: List[Any]) -> List[TableRow]:
    rows: List[TableRow] = []
    for raw in raw_rows:
        cells = _row_cells(raw)
        if cells is None:
            continue
        rows.append(TableRow(cells=[normalize_cell(cell) for cell in cells]))
    return rows


def _rows_from_children(raw: Mapping[str, Any]) -> List[TableRow]:
    children = raw.get("children")
    if not isinstance(children, list) or not children:
        return []
    row_nodes = [child for child in children if _is_row_like(child)]
    if not row_nodes and len(children) == 1 and isinstance(children[0], Mapping):
        # one spurious wrapper level around the rows
        inner = children[0].get("children")
        if isinstance(inner, list):
            row_nodes = [child for child in inner if _is_row_like(child)]
    if not row_nodes:
        # walk deeper for row-like nodes anywhere in the subtree
        found: List[Any] = []

        def _walk(nodes: List[Any]) -> None:
            for node in nodes:
                if _is_row_like(node):
                    found.append(node)
                elif isinstance(node, Mapping) and isinstance(node.get("children"), list):
                    _walk(node["children"])

        _walk(children)
        row_nodes = found
    return _build_rows(row_nodes)


def _rows_from_props(raw: Mapping[str, Any]) -> List[TableRow]:
    props = raw.get("props")
    if not isinstance(props, Mapping):
        return []
    rows = props.get("rows")
    if not isinstance(rows, list):
        return []
    return _build_rows(rows)


def _rows_from_table_content(raw: Mapping[str, Any]) -> List[TableRow]:
    content = raw.get("content")
    if not isinstance(content, Mapping) or content.get("type") != "tableContent":
        return []
    rows = content.get("rows")
    if not isinstance(rows, list):
        return []
    return _build_rows(rows)


_SHAPES: List[Callable[[Mapping[str, Any]], List[TableRow]]] = [
    _rows_from_children,
    _rows_from_props,
    _rows_from_table_content,
]


def normalize_table_rows(raw: Any) -> List[TableRow]:
    """
    Normalize a raw table block into rows of single-paragraph cells.

    Args:
        raw: Raw table block mapping

    Returns:
        List of TableRow, empty when no shape yields rows
    """
    if not isinstance(raw, Mapping):
        return []
    for shape in _SHAPES:
        try:
            rows = shape(raw)
        except Exception as exc:
            logger.debug(f"Table shape {shape.__name__} failed: {exc}")
            continue
        rows = [row for row in rows if row.cells]
        if rows:
            logger.debug(f"Table normalized via {shape.__name__}: {len(rows)} rows")
            return rows
    return []
