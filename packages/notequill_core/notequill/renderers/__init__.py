"""
Renderers module for drawing text onto the PDF canvas.
"""

from .rich_text import RenderedText, RichTextRenderer

__all__ = [
    "RenderedText",
    "RichTextRenderer",
]
