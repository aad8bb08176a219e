"""
Block tree model.

A document is an ordered list of Blocks; each Block carries its inline runs,
its children and a loosely typed property bag. Instances are built once by
notequill.parser.block_parser and are treated as read-only afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional

HEADING_LEVELS = {"heading1": 1, "heading2": 2, "heading3": 3}

ROW_TYPES = frozenset({"tableRow", "table_row", "row"})
CELL_TYPES = frozenset({"tableCell", "table_cell", "cell"})

# Blocks whose children are never rendered as nested blocks.
LEAF_TYPES = frozenset({"pageBreak", "table"})


@dataclass(frozen=True)
class InlineRun:
    """A contiguous span of text sharing one style set."""

    text: str
    styles: FrozenSet[str] = frozenset()
    href: Optional[str] = None
    text_color: Optional[str] = None
    background_color: Optional[str] = None

    def has_style(self, *names: str) -> bool:
        return any(name in self.styles for name in names)

    @property
    def is_code(self) -> bool:
        return "code" in self.styles

    @property
    def is_bold(self) -> bool:
        return "bold" in self.styles

    @property
    def is_italic(self) -> bool:
        return self.has_style("italic", "italics")

    @property
    def is_strike(self) -> bool:
        return self.has_style("strike", "strikethrough", "strikeThrough")

    @property
    def is_underlined(self) -> bool:
        return self.href is not None or "underline" in self.styles


@dataclass
class TableRow:
    """One table row; every cell is a list of Blocks."""

    cells: List[List["Block"]] = field(default_factory=list)


@dataclass
class Block:
    """One node of the document tree."""

    type: str = "paragraph"
    content: List[InlineRun] = field(default_factory=list)
    children: List["Block"] = field(default_factory=list)
    props: Dict[str, Any] = field(default_factory=dict)
    rows: Optional[List[TableRow]] = None
    fallback_text: str = ""
    id: Optional[str] = None

    @property
    def heading_level(self) -> Optional[int]:
        return HEADING_LEVELS.get(self.type)

    @property
    def is_collapsed(self) -> bool:
        """True for a toggle whose children are hidden."""
        if self.type != "toggleListItem":
            return False
        return not (self.props.get("open") or self.props.get("expanded"))

    @property
    def visible_children(self) -> List["Block"]:
        return [] if self.is_collapsed else self.children

    @property
    def renderable_children(self) -> List["Block"]:
        """Children the layout engine descends into."""
        if self.type in LEAF_TYPES:
            return []
        return self.visible_children

    def fragments(self) -> List[InlineRun]:
        """Styled runs, or a single run holding the plain-text fallback."""
        if self.content:
            return list(self.content)
        if self.fallback_text:
            return [InlineRun(text=self.fallback_text)]
        return []

    @property
    def text(self) -> str:
        return "".join(run.text for run in self.fragments())


@dataclass
class HeadingReference:
    """A heading recorded for the table of contents and the outline."""

    text: str
    level: int
    page_anchor: str
    page_number: Optional[int] = None

    @property
    def is_placed(self) -> bool:
        return self.page_number is not None
