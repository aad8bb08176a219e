"""Geometry primitives for page layout.

Layout coordinates are measured top-down from the top edge of the page, the
way text flows; conversion to ReportLab's bottom-up space happens only in
PageGeometry.to_canvas_y.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


@dataclass(slots=True)
class Size:
    width: float
    height: float

    @classmethod
    def from_tuple(cls, value: Iterable[float]) -> "Size":
        width, height = value
        return cls(float(width), float(height))


@dataclass(slots=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    def __post_init__(self):
        """Ensure non-negative dimensions."""
        if self.width < 0:
            self.width = abs(self.width)
        if self.height < 0:
            self.height = abs(self.height)

    @property
    def left(self) -> float:
        return self.x

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(slots=True)
class Margins:
    top: float = 0.0
    bottom: float = 0.0
    left: float = 0.0
    right: float = 0.0

    @classmethod
    def uniform(cls, value: float) -> "Margins":
        return cls(value, value, value, value)


@dataclass(slots=True)
class PageGeometry:
    size: Size
    margins: Margins

    @property
    def content_left(self) -> float:
        return self.margins.left

    @property
    def content_right(self) -> float:
        return self.size.width - self.margins.right

    @property
    def content_width(self) -> float:
        return self.content_right - self.content_left

    @property
    def content_top(self) -> float:
        return self.margins.top

    @property
    def content_bottom(self) -> float:
        return self.size.height - self.margins.bottom

    @property
    def content_height(self) -> float:
        return self.content_bottom - self.content_top

    def to_canvas_y(self, y: float) -> float:
        """Convert a top-down layout y into ReportLab's bottom-up y."""
        return self.size.height - y

    def to_canvas_rect(self, rect: Rect) -> tuple[float, float, float, float]:
        """(x1, y1, x2, y2) in canvas space, as used by linkURL/linkRect."""
        return (
            rect.left,
            self.to_canvas_y(rect.bottom),
            rect.right,
            self.to_canvas_y(rect.top),
        )
