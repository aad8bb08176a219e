"""Multi-run line breaking.

Runs of one paragraph are broken into visual lines together, so a styled
run continues on the line where the previous run stopped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..models.block import InlineRun
from .text_metrics import RunStyle, TextMetricsEngine, TextStyle, resolve_run_style

_TOKEN_RE = re.compile(r"\n|[ \t]+|[^ \t\n]+")


@dataclass
class Segment:
    """Text of one run placed on one line."""

    text: str
    style: RunStyle
    width: float
    x_offset: float = 0.0


@dataclass
class TextLine:
    segments: List[Segment] = field(default_factory=list)
    width: float = 0.0
    size: float = 0.0
    line_gap: float = 0.0

    @property
    def height(self) -> float:
        return self.size + self.line_gap

    @property
    def text(self) -> str:
        return "".join(segment.text for segment in self.segments)


class LineBreaker:
    """Greedy line breaker over a sequence of styled runs."""

    def __init__(self, metrics_engine: TextMetricsEngine) -> None:
        self.metrics_engine = metrics_engine

    def _new_line(self, base: TextStyle) -> TextLine:
        return TextLine(size=base.size, line_gap=base.line_gap)

    def _append(self, line: TextLine, text: str, style: RunStyle, width: float) -> None:
        last: Optional[Segment] = line.segments[-1] if line.segments else None
        if last is not None and last.style == style:
            last.text += text
            last.width += width
        else:
            line.segments.append(Segment(text=text, style=style, width=width, x_offset=line.width))
        line.width += width
        line.size = max(line.size, style.size)

    def _trim(self, line: TextLine) -> TextLine:
        while line.segments:
            last = line.segments[-1]
            stripped = last.text.rstrip(" \t")
            if stripped == last.text:
                break
            if not stripped:
                line.width -= last.width
                line.segments.pop()
                continue
            new_width = self.metrics_engine.string_width(stripped, last.style.font_name, last.style.size)
            line.width -= last.width - new_width
            last.text = stripped
            last.width = new_width
            break
        return line

    def break_runs(self, runs: Sequence[InlineRun], max_width: float, base: TextStyle) -> List[TextLine]:
        """
        Break runs into lines no wider than max_width.

        Args:
            runs: Inline runs of one paragraph
            max_width: Available width in points
            base: Base text style of the block

        Returns:
            List of TextLine; one empty line for empty input
        """
        max_width = max(max_width, 1.0)
        lines: List[TextLine] = []
        line = self._new_line(base)
        wrapped = False

        for run in runs:
            style = resolve_run_style(run, base)
            for token in _TOKEN_RE.findall(run.text):
                if token == "\n":
                    lines.append(self._trim(line))
                    line = self._new_line(base)
                    wrapped = False
                    continue
                width = self.metrics_engine.string_width(token, style.font_name, style.size)
                is_space = token.isspace()
                if is_space and not line.segments and wrapped:
                    continue
                if line.width + width <= max_width:
                    self._append(line, token, style, width)
                    continue
                if is_space:
                    lines.append(self._trim(line))
                    line = self._new_line(base)
                    wrapped = True
                    continue
                if line.segments:
                    lines.append(self._trim(line))
                    line = self._new_line(base)
                    wrapped = True
                if width <= max_width:
                    self._append(line, token, style, width)
                    continue
                pieces = self.metrics_engine.split_word(token, style.font_name, style.size, max_width)
                for piece in pieces[:-1]:
                    piece_width = self.metrics_engine.string_width(piece, style.font_name, style.size)
                    self._append(line, piece, style, piece_width)
                    lines.append(line)
                    line = self._new_line(base)
                    wrapped = True
                last_piece = pieces[-1]
                self._append(
                    line,
                    last_piece,
                    style,
                    self.metrics_engine.string_width(last_piece, style.font_name, style.size),
                )

        lines.append(self._trim(line))
        return lines
