"""

TextMetricsEngine - measuring text for layout decisions.

Uses ReportLab font metrics to calculate:
- string widths
- ascents and baselines
- character splits for overlong words

"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from reportlab.pdfbase import pdfmetrics

from ..models.block import InlineRun
from .utils.font_registry import font_variant

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TextStyle:
    """Base style a block hands to the text renderer."""

    family: str = "Helvetica"
    mono_family: str = "Courier"
    size: float = 12.0
    color: str = "#111827"
    link_color: str = "#2563eb"
    bold: bool = False
    italic: bool = False
    strike: bool = False
    line_gap: float = 4.0
    align: str = "left"

    @property
    def font_name(self) -> str:
        return font_variant(self.family, self.bold, self.italic)


@dataclass(frozen=True)
class RunStyle:
    """Concrete drawing attributes of one run."""

    font_name: str
    size: float
    color: str
    underline: bool = False
    strike: bool = False
    background: Optional[str] = None
    href: Optional[str] = None


def resolve_run_style(run: InlineRun, base: TextStyle) -> RunStyle:
    """
    Select font, size, color and decorations for a run.

    code -> monospace; bold+italic -> bold oblique; bold -> bold;
    italic -> oblique; otherwise the regular face. Links are always
    underlined and use the link color unless the run has its own color.
    """
    bold = run.is_bold or base.bold
    italic = run.is_italic or base.italic
    if run.is_code:
        font_name = base.mono_family
        size = max(base.size - 1.0, 1.0)
    else:
        font_name = font_variant(base.family, bold, italic)
        size = base.size
    if run.text_color:
        color = run.text_color
    elif run.href:
        color = base.link_color
    else:
        color = base.color
    return RunStyle(
        font_name=font_name,
        size=size,
        color=color,
        underline=run.is_underlined,
        strike=run.is_strike or base.strike,
        background=run.background_color,
        href=run.href,
    )


class TextMetricsEngine:
    """

    Engine for calculating text metrics.

    Widths come from ReportLab's font tables; heights are the font size plus
    the configured line gap.

    """

    def __init__(self):
        self._width_cache: Dict[Tuple[str, str, float], float] = {}

    def string_width(self, text: str, font_name: str, size: float) -> float:
        """Width of text in points."""
        if not text:
            return 0.0
        key = (text, font_name, size)
        cached = self._width_cache.get(key)
        if cached is None:
            cached = pdfmetrics.stringWidth(text, font_name, size)
            if len(self._width_cache) < 20000:
                self._width_cache[key] = cached
        return cached

    @staticmethod
    def ascent(font_name: str, size: float) -> float:
        """Distance from the top of a line to its baseline."""
        ascent, _descent = pdfmetrics.getAscentDescent(font_name, size)
        return ascent

    def split_word(self, word: str, font_name: str, size: float, max_width: float) -> List[str]:
        """Split a single overlong word into pieces that fit max_width."""
        pieces: List[str] = []
        current = ""
        for char in word:
            if current and self.string_width(current + char, font_name, size) > max_width:
                pieces.append(current)
                current = char
            else:
                current += char
        pieces.append(current)
        return pieces
