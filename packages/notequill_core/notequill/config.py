"""
Render options for the PDF export.

All values are points unless stated otherwise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from reportlab.lib.pagesizes import A4, LETTER, LEGAL

logger = logging.getLogger(__name__)

PAGE_SIZES: Dict[str, Tuple[float, float]] = {
    "A4": A4,
    "LETTER": LETTER,
    "LEGAL": LEGAL,
}

DEFAULT_ORIGINAL_EXTENSIONS: Tuple[str, ...] = ("jpg", "jpeg", "png", "gif", "webp")


@dataclass
class RenderOptions:
    """Options controlling page geometry, typography and image fetching."""

    page_size: Union[str, Tuple[float, float]] = "A4"
    margin: float = 50.0
    indent_step: float = 20.0

    font_family: str = "Helvetica"
    monospace_family: str = "Courier"
    unicode_fonts: bool = False
    body_font_size: float = 12.0
    line_gap: float = 4.0
    block_spacing: float = 6.0
    heading_sizes: Tuple[float, float, float] = (22.0, 18.0, 16.0)
    title_font_size: float = 24.0
    code_font_size: float = 10.0
    footer_font_size: float = 9.0

    text_color: str = "#111827"
    link_color: str = "#2563eb"
    quote_color: str = "#4b5563"
    muted_color: str = "#6b7280"
    callout_background: str = "#f1f5f9"
    callout_border: str = "#cbd5e1"
    code_background: str = "#f6f8fa"
    table_border: str = "#9ca3af"
    table_header_background: str = "#e5e7eb"

    image_max_height_ratio: float = 0.6
    original_image_extensions: Tuple[str, ...] = DEFAULT_ORIGINAL_EXTENSIONS
    fetch_timeout: float = 10.0
    prefetch_workers: int = 0

    max_depth: int = 32
    toc_title: str = "Contents"
    page_compression: bool = True

    def __post_init__(self):
        if isinstance(self.page_size, str):
            key = self.page_size.upper()
            if key not in PAGE_SIZES:
                raise ValueError(f"Unknown page size: {self.page_size}")
            self.page_size = PAGE_SIZES[key]
        else:
            width, height = self.page_size
            self.page_size = (float(width), float(height))
        if self.margin < 0:
            raise ValueError("margin must not be negative")
        if self.margin * 2 >= min(self.page_size):
            raise ValueError("margin leaves no room for content")
        if not 0 < self.image_max_height_ratio <= 1:
            raise ValueError("image_max_height_ratio must be in (0, 1]")
        if self.max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        if len(self.heading_sizes) != 3:
            raise ValueError("heading_sizes needs exactly three values")
        self.heading_sizes = tuple(float(size) for size in self.heading_sizes)
        self.original_image_extensions = tuple(
            ext.lower().lstrip(".") for ext in self.original_image_extensions
        )

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "RenderOptions":
        """
        Build options from a plain mapping.

        Args:
            data: Mapping of option names to values (None -> defaults)

        Returns:
            RenderOptions instance

        Raises:
            ValueError: If the mapping contains unknown keys
        """
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown render options: {', '.join(unknown)}")
        values = dict(data)
        for key in ("heading_sizes", "original_image_extensions"):
            if key in values and isinstance(values[key], list):
                values[key] = tuple(values[key])
        return cls(**values)
